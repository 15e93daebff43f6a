"""Tests for the depot command-line interface."""

from pathlib import Path

import pytest

from depot.cli.main import build_arg_parser, main


@pytest.fixture
def disk_root(tmp_path: Path) -> Path:
    return tmp_path / "disk"


@pytest.fixture
def config_file(tmp_path: Path, disk_root: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Write a config with a local default disk and a memory disk."""
    monkeypatch.delenv("DEPOT_DEFAULT_DISK", raising=False)
    path = tmp_path / "depot.yaml"
    path.write_text(
        "logging:\n"
        "  level: WARNING\n"
        "storage:\n"
        "  default: files\n"
        "  disks:\n"
        "    files:\n"
        "      driver: local\n"
        f"      path: {disk_root}\n"
        "      public_url: https://cdn.example.com\n"
        "    scratch:\n"
        "      driver: memory\n"
    )
    return str(path)


@pytest.fixture
def run(config_file: str):
    """Run the CLI against the test config."""

    def _run(*argv: str) -> int:
        return main(["--config", config_file, *argv])

    return _run


class TestArgParser:
    """Tests for argument parsing."""

    def test_subcommand_required(self):
        """Test that a command must be given."""
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args([])

    def test_global_options(self):
        """Test global options before the subcommand."""
        args = build_arg_parser().parse_args(
            ["--disk", "scratch", "--log-level", "DEBUG", "ls", "-r", "docs"]
        )
        assert args.disk == "scratch"
        assert args.log_level == "DEBUG"
        assert args.cmd == "ls"
        assert args.recursive is True
        assert args.directory == "docs"


class TestCommands:
    """Tests for storage subcommands."""

    def test_put_and_cat(self, run, tmp_path: Path, disk_root: Path, capsysbinary):
        """Test writing a local file and reading it back."""
        source = tmp_path / "hello.txt"
        source.write_bytes(b"hello depot\n")

        assert run("put", "greetings/hello.txt", str(source)) == 0
        assert (disk_root / "greetings" / "hello.txt").read_bytes() == b"hello depot\n"
        capsysbinary.readouterr()

        assert run("cat", "greetings/hello.txt") == 0
        assert capsysbinary.readouterr().out == b"hello depot\n"

    def test_ls(self, run, disk_root: Path, capsys):
        """Test listing files and directories."""
        (disk_root / "docs" / "sub").mkdir(parents=True)
        (disk_root / "docs" / "a.txt").write_text("a")
        (disk_root / "docs" / "sub" / "b.txt").write_text("b")

        assert run("ls", "-r", "docs") == 0
        assert capsys.readouterr().out.splitlines() == ["docs/a.txt", "docs/sub/b.txt"]

        assert run("ls", "--dirs", "docs") == 0
        assert capsys.readouterr().out.splitlines() == ["docs/sub"]

    def test_ls_missing_directory(self, run, capsys):
        """Test that listing a missing directory fails."""
        assert run("ls", "nowhere") == 1
        assert "Directory not found in storage: nowhere" in capsys.readouterr().out

    def test_traversal_reported(self, run, capsys):
        """Test that escaping the root is reported, not performed."""
        assert run("cat", "../depot.yaml") == 1
        assert "Path traversal detected: ../depot.yaml" in capsys.readouterr().out

    def test_missing_file(self, run, capsys):
        """Test that reading a missing file fails."""
        assert run("cat", "missing.txt") == 1
        assert "File not found in storage: missing.txt" in capsys.readouterr().out

    def test_upload_prints_url(self, run, tmp_path: Path, capsys):
        """Test that upload prints the public URL of the generated name."""
        source = tmp_path / "Photo.JPG"
        source.write_bytes(b"\xff\xd8\xff")

        assert run("upload", str(source)) == 0
        url = capsys.readouterr().out.strip()
        assert url.startswith("https://cdn.example.com/")
        assert url.endswith(".jpg")

    def test_cp_mv_rm(self, run, disk_root: Path):
        """Test copy, move and delete."""
        disk_root.mkdir(parents=True)
        (disk_root / "a.txt").write_text("a")

        assert run("cp", "a.txt", "b.txt") == 0
        assert run("mv", "b.txt", "archive/b.txt") == 0
        assert (disk_root / "archive" / "b.txt").read_text() == "a"

        assert run("rm", "a.txt") == 0
        assert not (disk_root / "a.txt").exists()
        assert run("rm", "a.txt") == 1

    def test_mkdir_rmdir(self, run, disk_root: Path, capsys):
        """Test directory creation and the recursive flag."""
        assert run("mkdir", "reports/2024") == 0
        assert (disk_root / "reports" / "2024").is_dir()

        assert run("rmdir", "reports") == 1
        assert "use -r" in capsys.readouterr().out
        assert run("rmdir", "-r", "reports") == 0
        assert not (disk_root / "reports").exists()

    def test_url(self, run, capsys):
        """Test public URL output."""
        assert run("url", "img/a.png") == 0
        assert capsys.readouterr().out.strip() == "https://cdn.example.com/img/a.png"

    def test_info(self, run, disk_root: Path, capsys):
        """Test file metadata output."""
        disk_root.mkdir(parents=True)
        (disk_root / "data.json").write_text('{"a": 1}')

        assert run("info", "data.json") == 0
        out = capsys.readouterr().out
        assert "8 bytes" in out
        assert "application/json" in out

    def test_disk_option(self, run, capsys):
        """Test running against a non-default disk."""
        assert run("--disk", "scratch", "url", "a.png") == 0
        assert capsys.readouterr().out.strip() == "a.png"

        assert run("--disk", "scratch", "ls") == 0
        assert capsys.readouterr().out == ""

    def test_unknown_disk(self, run, capsys):
        """Test that an unconfigured disk is reported."""
        assert run("--disk", "s3", "ls") == 1
        assert "Storage configuration missing: disks.s3" in capsys.readouterr().out

    def test_disks(self, run, capsys):
        """Test the disk table."""
        assert run("disks") == 0
        out = capsys.readouterr().out
        assert "files" in out
        assert "scratch" in out
        assert "memory" in out


class TestConfigErrors:
    """Tests for configuration failures."""

    def test_invalid_config(self, tmp_path: Path, capsys):
        """Test that an invalid config file exits with an error."""
        path = tmp_path / "depot.yaml"
        path.write_text("storage: [1, 2]\n")

        assert main(["--config", str(path), "disks"]) == 1
        assert "Could not load config" in capsys.readouterr().out

    def test_unsupported_config_format(self, tmp_path: Path, capsys):
        """Test that an unknown config extension exits with an error."""
        path = tmp_path / "depot.toml"
        path.write_text("")

        assert main(["--config", str(path), "disks"]) == 1
        assert "Unsupported config format" in capsys.readouterr().out
