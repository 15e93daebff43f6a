"""Command-line interface for depot.

Runs storage operations against the disks declared in a config file.
"""

from __future__ import annotations

import argparse
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from depot.core.config import AppConfig, load_app_config
from depot.core.storage import (
    StorageBackend,
    StorageDirectoryNotFoundError,
    StorageError,
    StorageManager,
)
from depot.core.utils.logging import configure_logging, get_logger

console = Console()


def _print_path(path: str) -> None:
    console.print(path, markup=False, highlight=False)


def cmd_disks(manager: StorageManager, args: argparse.Namespace) -> int:
    """List configured disks."""
    table = Table(title="Disks")
    table.add_column("Name")
    table.add_column("Driver")
    table.add_column("Default")
    table.add_column("Location")

    default = manager.get_default_driver()
    for name, options in sorted(manager.get_disks().items()):
        table.add_row(
            name,
            str(options.get("driver") or "local"),
            "*" if name == default else "",
            str(options.get("path", "")),
        )

    console.print(table)
    return 0


def cmd_ls(storage: StorageBackend, args: argparse.Namespace) -> int:
    """List files (or directories) below a directory."""
    if args.directory and not storage.exists(args.directory):
        raise StorageDirectoryNotFoundError(args.directory)

    listing = storage.directories if args.dirs else storage.files
    for path in listing(args.directory, recursive=args.recursive):
        _print_path(path)
    return 0


def cmd_cat(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Write a file's raw contents to stdout."""
    data = storage.get(args.path)
    sys.stdout.buffer.write(data)
    sys.stdout.flush()
    return 0


def cmd_put(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Write a local file (or stdin with "-") to a storage path."""
    if args.source == "-":
        data = sys.stdin.buffer.read()
    else:
        data = Path(args.source).read_bytes()

    storage.put(args.path, data)
    console.print(f"[green]Stored[/green] {args.path} ({len(data)} bytes)")
    return 0


def cmd_upload(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Upload a local file under a generated name."""
    url = storage.upload(args.name or Path(args.source).name, args.source)
    _print_path(url)
    return 0


def cmd_rm(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Delete a file."""
    if not storage.delete(args.path):
        console.print(f"[yellow]Not deleted:[/yellow] {args.path}")
        return 1
    console.print(f"[green]Deleted[/green] {args.path}")
    return 0


def cmd_mkdir(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Create a directory."""
    storage.make_directory(args.directory)
    return 0


def cmd_rmdir(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Delete a directory."""
    if not storage.delete_directory(args.directory, recursive=args.recursive):
        hint = "" if args.recursive else " (not empty? use -r)"
        console.print(f"[yellow]Not deleted:[/yellow] {args.directory}{hint}")
        return 1
    console.print(f"[green]Deleted[/green] {args.directory}")
    return 0


def cmd_cp(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Copy a file."""
    storage.copy(args.source, args.destination)
    return 0


def cmd_mv(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Move a file."""
    storage.move(args.source, args.destination)
    return 0


def cmd_url(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Print the public URL of a path."""
    _print_path(storage.get_public_url(args.path))
    return 0


def cmd_info(storage: StorageBackend, args: argparse.Namespace) -> int:
    """Show size, modification time and MIME type of a file."""
    modified = datetime.fromtimestamp(storage.last_modified(args.path), tz=UTC)

    table = Table(show_header=False)
    table.add_row("Path", args.path)
    table.add_row("Size", f"{storage.size(args.path)} bytes")
    table.add_row("Modified", modified.isoformat())
    table.add_row("MIME type", storage.mime_type(args.path) or "unknown")
    console.print(table)
    return 0


_STORAGE_COMMANDS: dict[str, Callable[[StorageBackend, argparse.Namespace], int]] = {
    "ls": cmd_ls,
    "cat": cmd_cat,
    "put": cmd_put,
    "upload": cmd_upload,
    "rm": cmd_rm,
    "mkdir": cmd_mkdir,
    "rmdir": cmd_rmdir,
    "cp": cmd_cp,
    "mv": cmd_mv,
    "url": cmd_url,
    "info": cmd_info,
}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="depot",
        description="depot - file storage across local and in-memory disks",
    )
    p.add_argument(
        "--config",
        default=None,
        help=f"Path to config file (default: {AppConfig.default_path()})",
    )
    p.add_argument("--disk", default=None, help="Disk name (default: configured default)")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override configured log level",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("disks", help="List configured disks")

    ls = sub.add_parser("ls", help="List files in a directory")
    ls.add_argument("directory", nargs="?", default="")
    ls.add_argument("-r", "--recursive", action="store_true", help="Include all descendants")
    ls.add_argument("--dirs", action="store_true", help="List directories instead of files")

    cat = sub.add_parser("cat", help="Print file contents")
    cat.add_argument("path")

    put = sub.add_parser("put", help="Write a local file to a storage path")
    put.add_argument("path")
    put.add_argument("source", help='Local file, or "-" for stdin')

    upload = sub.add_parser("upload", help="Upload a local file under a generated name")
    upload.add_argument("source")
    upload.add_argument("--name", default=None, help="Client filename (extension is kept)")

    rm = sub.add_parser("rm", help="Delete a file")
    rm.add_argument("path")

    mkdir = sub.add_parser("mkdir", help="Create a directory")
    mkdir.add_argument("directory")

    rmdir = sub.add_parser("rmdir", help="Delete a directory")
    rmdir.add_argument("directory")
    rmdir.add_argument("-r", "--recursive", action="store_true", help="Delete contents too")

    cp = sub.add_parser("cp", help="Copy a file")
    cp.add_argument("source")
    cp.add_argument("destination")

    mv = sub.add_parser("mv", help="Move a file")
    mv.add_argument("source")
    mv.add_argument("destination")

    url = sub.add_parser("url", help="Print the public URL of a path")
    url.add_argument("path")

    info = sub.add_parser("info", help="Show file metadata")
    info.add_argument("path")

    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_app_config(args.config)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]ERROR: Could not load config: {escape(str(e))}[/red]")
        return 1

    configure_logging(
        level=args.log_level or config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )

    manager = StorageManager(config.storage.model_dump())
    if args.cmd == "disks":
        return cmd_disks(manager, args)

    disk_name = args.disk or manager.get_default_driver()
    logger = get_logger(__name__, disk=disk_name)
    logger.debug("Running '%s'", args.cmd)

    try:
        storage = manager.disk(disk_name)
        return _STORAGE_COMMANDS[args.cmd](storage, args)
    except (StorageError, OSError, ValidationError) as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}", highlight=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
