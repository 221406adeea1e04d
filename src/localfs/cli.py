"""CLI commands using Typer."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, BinaryIO, Iterator

import typer
from rich.console import Console
from rich.logging import RichHandler

from localfs import __version__
from localfs.console import ConsoleOutput
from localfs.context import create_context
from localfs.errors import ConfigError, StorageError
from localfs.types import ReadRange

if TYPE_CHECKING:
    from localfs.context import AppContext

app = typer.Typer(
    name="localfs",
    help="Local filesystem storage adapter",
    no_args_is_help=True,
)

console = Console()
output = ConsoleOutput(console)

# Chunk size for streaming local sources into the backend
UPLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class CliState:
    """Global options captured by the callback."""

    root: Path | None = None
    config_file: Path | None = None


state = CliState()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"localfs v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send debug logs to stderr through rich when verbose."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.callback()
def main(
    root: Annotated[
        Path | None, typer.Option("--root", "-r", help="Root directory of the store")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="YAML configuration file")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Local filesystem storage adapter."""
    state.root = root
    state.config_file = config
    configure_logging(verbose)


def _get_context(_context: AppContext | None) -> AppContext:
    """Return the injected context or build one from global options."""
    if _context is not None:
        return _context
    try:
        return create_context(state.root, state.config_file)
    except ConfigError as e:
        output.show_error(str(e))
        raise typer.Exit(1) from e


def _fail(error: StorageError) -> typer.Exit:
    output.show_error(str(error))
    return typer.Exit(1)


def _check_source(source: Path | None) -> None:
    """Fail before the target is touched if a local source file is missing."""
    if source is None or str(source) == "-":
        return
    if not source.is_file():
        output.show_error(f"Source file not found: {source}")
        raise typer.Exit(1)


def _read_source(source: Path | None) -> Iterator[bytes]:
    """Yield chunks of a local file, or of stdin when no file is given."""
    if source is None or str(source) == "-":
        stream: BinaryIO = sys.stdin.buffer
        yield from iter(partial(stream.read, UPLOAD_CHUNK_SIZE), b"")
        return
    with open(source, "rb") as f:
        yield from iter(partial(f.read, UPLOAD_CHUNK_SIZE), b"")


# ============================================================================
# Inspection Commands
# ============================================================================


@app.command("stat")
def stat_cmd(
    path: Annotated[str, typer.Argument(help="Logical path")],
    _context=None,
) -> None:
    """Show metadata of a file or directory."""
    ctx = _get_context(_context)
    try:
        metadata = ctx.backend.stat(path)
    except StorageError as e:
        raise _fail(e) from e
    output.show_metadata(path, metadata)


@app.command("ls")
def ls_cmd(
    path: Annotated[str, typer.Argument(help="Directory (root if omitted)")] = "",
    _context=None,
) -> None:
    """List the direct children of a directory."""
    ctx = _get_context(_context)
    try:
        entries = list(ctx.backend.list(path))
    except StorageError as e:
        raise _fail(e) from e
    output.show_entries(path, entries)


@app.command("cat")
def cat_cmd(
    path: Annotated[str, typer.Argument(help="Logical path of a file")],
    offset: Annotated[int, typer.Option("--offset", "-o", min=0, help="First byte")] = 0,
    length: Annotated[
        int | None, typer.Option("--length", "-n", min=0, help="Bytes to read")
    ] = None,
    _context=None,
) -> None:
    """Write a file, or a byte range of it, to stdout."""
    ctx = _get_context(_context)
    byte_range = ReadRange(offset, length) if offset or length is not None else None
    try:
        for chunk in ctx.backend.read(path, byte_range):
            typer.echo(chunk, nl=False)
    except StorageError as e:
        raise _fail(e) from e


@app.command("caps")
def caps_cmd(
    _context=None,
) -> None:
    """Show the operations this backend supports."""
    ctx = _get_context(_context)
    output.show_info(ctx.backend.info())


# ============================================================================
# Mutation Commands
# ============================================================================


@app.command("put")
def put_cmd(
    path: Annotated[str, typer.Argument(help="Logical path of the target file")],
    source: Annotated[
        Path | None, typer.Argument(help="Local file to upload (stdin if omitted)")
    ] = None,
    parents: Annotated[
        bool, typer.Option("--parents", "-p", help="Create missing parent directories")
    ] = False,
    _context=None,
) -> None:
    """Create or replace a file with the content of a local file or stdin."""
    ctx = _get_context(_context)
    _check_source(source)
    try:
        ctx.backend.write(path, _read_source(source), create_parents=parents)
    except StorageError as e:
        raise _fail(e) from e
    except OSError as e:
        output.show_error(f"Cannot read {source}: {e}")
        raise typer.Exit(1) from e
    output.show_success(f"Wrote {path}")


@app.command("append")
def append_cmd(
    path: Annotated[str, typer.Argument(help="Logical path of the target file")],
    source: Annotated[
        Path | None, typer.Argument(help="Local file to append (stdin if omitted)")
    ] = None,
    _context=None,
) -> None:
    """Append the content of a local file or stdin to a file."""
    ctx = _get_context(_context)
    _check_source(source)
    try:
        ctx.backend.append(path, _read_source(source))
    except StorageError as e:
        raise _fail(e) from e
    except OSError as e:
        output.show_error(f"Cannot read {source}: {e}")
        raise typer.Exit(1) from e
    output.show_success(f"Appended to {path}")


@app.command("mkdir")
def mkdir_cmd(
    path: Annotated[str, typer.Argument(help="Logical path of the directory")],
    _context=None,
) -> None:
    """Create a directory and its missing parents."""
    ctx = _get_context(_context)
    try:
        ctx.backend.create_dir(path)
    except StorageError as e:
        raise _fail(e) from e
    output.show_success(f"Created {path}")


@app.command("rm")
def rm_cmd(
    path: Annotated[str, typer.Argument(help="Logical path to delete")],
    _context=None,
) -> None:
    """Delete a file or a directory tree. Missing paths are not an error."""
    ctx = _get_context(_context)
    try:
        ctx.backend.delete(path)
    except StorageError as e:
        raise _fail(e) from e
    output.show_success(f"Deleted {path}")


@app.command("cp")
def cp_cmd(
    src: Annotated[str, typer.Argument(help="Source file")],
    dst: Annotated[str, typer.Argument(help="Destination file")],
    _context=None,
) -> None:
    """Copy a file, replacing the destination."""
    ctx = _get_context(_context)
    try:
        ctx.backend.copy(src, dst)
    except StorageError as e:
        raise _fail(e) from e
    output.show_success(f"Copied {src} to {dst}")


@app.command("mv")
def mv_cmd(
    src: Annotated[str, typer.Argument(help="Source path")],
    dst: Annotated[str, typer.Argument(help="Destination path")],
    _context=None,
) -> None:
    """Move a file or directory, replacing the destination."""
    ctx = _get_context(_context)
    try:
        ctx.backend.rename(src, dst)
    except StorageError as e:
        raise _fail(e) from e
    output.show_success(f"Moved {src} to {dst}")
