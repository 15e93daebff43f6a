"""Tests for MemoryStorageBackend.

Tests the in-memory backend: key normalization, implicit directories,
listing and directory deletion rules.
"""

from pathlib import Path
import re
import time

import pytest

from depot.core.storage import (
    InvalidPathError,
    MemoryStorageBackend,
    StorageBackend,
    StorageFileNotFoundError,
    UploadFailedError,
)


class TestKeys:
    """Tests for key normalization and directory tracking."""

    def test_satisfies_protocol(self, memory_backend: MemoryStorageBackend):
        """Test that the backend implements the StorageBackend contract."""
        assert isinstance(memory_backend, StorageBackend)

    def test_surrounding_slashes_trimmed(self, memory_backend: MemoryStorageBackend):
        """Test that "/a/b.txt" and "a/b.txt" name the same file."""
        memory_backend.put("/a/b.txt/", b"x")

        assert memory_backend.get("a/b.txt") == b"x"
        assert set(memory_backend.stored_files) == {"a/b.txt"}

    def test_parents_registered(self, memory_backend: MemoryStorageBackend):
        """Test that every ancestor of a stored file is a directory."""
        memory_backend.put("a/b/c.txt", b"x")
        assert memory_backend.stored_directories == {"a", "a/b"}

    def test_empty_key_rejected(self, memory_backend: MemoryStorageBackend):
        """Test that writes need a non-empty key."""
        with pytest.raises(InvalidPathError):
            memory_backend.put("/", b"x")

    def test_snapshots_are_copies(self, memory_backend: MemoryStorageBackend):
        """Test that inspection helpers do not expose internal state."""
        memory_backend.put("a/b.txt", b"x")
        memory_backend.stored_files.clear()
        memory_backend.stored_directories.clear()

        assert memory_backend.exists("a/b.txt")
        assert memory_backend.exists("a")

    def test_clear(self, memory_backend: MemoryStorageBackend):
        """Test that clear() empties the backend."""
        memory_backend.put("a/b.txt", b"x")
        memory_backend.clear()

        assert memory_backend.stored_files == {}
        assert memory_backend.stored_directories == set()

    def test_from_config(self):
        """Test building from an option mapping."""
        backend = MemoryStorageBackend.from_config({"driver": "memory", "public_url": None})
        assert backend.public_url == ""

        backend = MemoryStorageBackend.from_config({"public_url": "https://cdn.example.com/"})
        assert backend.get_public_url("a.png") == "https://cdn.example.com/a.png"


class TestReadWrite:
    """Tests for file operations."""

    def test_round_trip(self, memory_backend: MemoryStorageBackend):
        """Test that bytes and text survive a round-trip."""
        memory_backend.put("bin", b"\x00\xff")
        memory_backend.put("text.txt", "héllo")

        assert memory_backend.get("bin") == b"\x00\xff"
        assert memory_backend.get("text.txt") == "héllo".encode()

    def test_get_missing(self, memory_backend: MemoryStorageBackend):
        """Test that missing files raise."""
        with pytest.raises(StorageFileNotFoundError):
            memory_backend.get("missing")

    def test_metadata(self, memory_backend: MemoryStorageBackend):
        """Test size, timestamp and MIME type."""
        before = int(time.time())
        memory_backend.put("data.json", b'{"a": 1}')

        assert memory_backend.size("data.json") == 8
        assert memory_backend.last_modified("data.json") >= before
        assert memory_backend.mime_type("data.json") == "application/json"

    def test_append_and_prepend_order(self, memory_backend: MemoryStorageBackend):
        """Test that appended and prepended contents land at the ends."""
        memory_backend.put("f.txt", "Middle")
        memory_backend.prepend("f.txt", "Start-")
        memory_backend.append("f.txt", "-End")
        assert memory_backend.get("f.txt") == b"Start-Middle-End"

    def test_append_prepend_create(self, memory_backend: MemoryStorageBackend):
        """Test that append and prepend create missing files with parents."""
        memory_backend.append("logs/a.log", "a")
        memory_backend.prepend("logs/b.log", "b")

        assert memory_backend.get("logs/a.log") == b"a"
        assert memory_backend.get("logs/b.log") == b"b"
        assert memory_backend.exists("logs")

    def test_download_writes_temp_file(self, memory_backend: MemoryStorageBackend):
        """Test that download materializes contents on disk."""
        memory_backend.put("reports/q1.csv", b"a,b\n1,2\n")

        path = Path(memory_backend.download("reports/q1.csv"))

        assert path.name.startswith("depot_")
        assert path.read_bytes() == b"a,b\n1,2\n"
        path.unlink()

    def test_download_missing(self, memory_backend: MemoryStorageBackend):
        """Test that downloading a missing file raises."""
        with pytest.raises(StorageFileNotFoundError):
            memory_backend.download("nope")


class TestUpload:
    """Tests for upload()."""

    def test_upload(self, tmp_path: Path):
        """Test that uploads are stored under a unique name."""
        backend = MemoryStorageBackend(public_url="/media")
        source = tmp_path / "avatar.PNG"
        source.write_bytes(b"\x89PNG\r\n\x1a\n")

        url = backend.upload("../avatar.PNG", source)

        match = re.fullmatch(r"/media/([0-9a-f]{32}\.png)", url)
        assert match
        assert backend.get(match.group(1)) == b"\x89PNG\r\n\x1a\n"

    def test_upload_missing_source(self, memory_backend: MemoryStorageBackend, tmp_path: Path):
        """Test that a missing source file fails the upload."""
        with pytest.raises(UploadFailedError):
            memory_backend.upload("a.txt", tmp_path / "missing.txt")
        assert memory_backend.stored_files == {}


class TestCopyMoveDelete:
    """Tests for copy, move and delete."""

    def test_copy_is_independent(self, memory_backend: MemoryStorageBackend):
        """Test that appending to a copy leaves the source unchanged."""
        memory_backend.put("a.txt", b"data")
        memory_backend.copy("a.txt", "dir/b.txt")
        memory_backend.append("dir/b.txt", b"!")

        assert memory_backend.get("a.txt") == b"data"
        assert memory_backend.get("dir/b.txt") == b"data!"
        assert memory_backend.exists("dir")

    def test_move(self, memory_backend: MemoryStorageBackend):
        """Test that move relocates the file."""
        memory_backend.put("a.txt", b"data")
        memory_backend.move("/a.txt", "archive/a.txt")

        assert not memory_backend.exists("a.txt")
        assert memory_backend.get("archive/a.txt") == b"data"

    def test_copy_move_missing_source(self, memory_backend: MemoryStorageBackend):
        """Test that copy and move of a missing file raise."""
        with pytest.raises(StorageFileNotFoundError):
            memory_backend.copy("missing", "b")
        with pytest.raises(StorageFileNotFoundError):
            memory_backend.move("missing", "b")

    def test_delete_files_only(self, memory_backend: MemoryStorageBackend):
        """Test that delete removes files and ignores directories."""
        memory_backend.put("a/b.txt", b"x")

        assert memory_backend.delete("a") is False
        assert memory_backend.delete("a/b.txt") is True
        assert memory_backend.delete("a/b.txt") is False
        assert memory_backend.exists("a")


class TestListing:
    """Tests for files() and directories()."""

    @pytest.fixture
    def populated(self, memory_backend: MemoryStorageBackend) -> MemoryStorageBackend:
        memory_backend.put("d1/d2/c.txt", b"")
        memory_backend.put("a.txt", b"")
        memory_backend.put("d1/b.txt", b"")
        memory_backend.make_directory("empty")
        return memory_backend

    def test_files(self, populated: MemoryStorageBackend):
        """Test direct and recursive file listing."""
        assert populated.files() == ["a.txt"]
        assert populated.files("/d1/") == ["d1/b.txt"]
        assert populated.files("", recursive=True) == ["a.txt", "d1/b.txt", "d1/d2/c.txt"]

    def test_directories(self, populated: MemoryStorageBackend):
        """Test direct and recursive directory listing."""
        assert populated.directories() == ["d1", "empty"]
        assert populated.directories("", recursive=True) == ["d1", "d1/d2", "empty"]

    def test_prefix_is_segment_aware(self, memory_backend: MemoryStorageBackend):
        """Test that "docs" does not list the contents of "docs2"."""
        memory_backend.put("docs/a.txt", b"")
        memory_backend.put("docs2/b.txt", b"")

        assert memory_backend.files("docs", recursive=True) == ["docs/a.txt"]

    def test_sibling_order_matches_walk(self, memory_backend: MemoryStorageBackend):
        """Test that directory "a" sorts before "a-b.txt" like a directory walk would."""
        memory_backend.put("a-b.txt", b"")
        memory_backend.put("a/z.txt", b"")

        assert memory_backend.files("", recursive=True) == ["a/z.txt", "a-b.txt"]


class TestDirectories:
    """Tests for make_directory() and delete_directory()."""

    def test_make_directory_registers_parents(self, memory_backend: MemoryStorageBackend):
        """Test that nested directories are all registered."""
        memory_backend.make_directory("x/y/")
        assert memory_backend.stored_directories == {"x", "x/y"}

    def test_make_root_is_noop(self, memory_backend: MemoryStorageBackend):
        """Test that the root needs no entry."""
        memory_backend.make_directory("/")
        assert memory_backend.stored_directories == set()

    def test_delete_empty_directory(self, memory_backend: MemoryStorageBackend):
        """Test deleting a directory without contents."""
        memory_backend.make_directory("empty")
        assert memory_backend.delete_directory("empty") is True
        assert not memory_backend.exists("empty")

    def test_non_empty_requires_recursive(self, memory_backend: MemoryStorageBackend):
        """Test recursive deletion rules."""
        memory_backend.put("a/b/c.txt", b"x")
        memory_backend.put("ab/keep.txt", b"x")

        assert memory_backend.delete_directory("a") is False
        assert memory_backend.delete_directory("a", recursive=True) is True

        assert memory_backend.stored_files.keys() == {"ab/keep.txt"}
        assert memory_backend.stored_directories == {"ab"}

    def test_unknown_directory(self, memory_backend: MemoryStorageBackend):
        """Test that unknown directories answer False."""
        assert memory_backend.delete_directory("missing", recursive=True) is False
