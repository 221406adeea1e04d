"""Rich output helpers for the command line."""

from __future__ import annotations

from typing import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from localfs.types import AdapterInfo, Capability, ListEntry, Metadata


def format_size(size: int) -> str:
    """Format a byte count for humans (e.g. 1.5 KiB)."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KiB", "MiB"):
        value /= 1024
        if value < 1024:
            return f"{value:.1f} {unit}"
    return f"{value / 1024:.1f} GiB"


class ConsoleOutput:
    """Text output for localfs commands (non-interactive)."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize output.

        Args:
            console: Console to print to. Defaults to stdout.
        """
        self.console = console or Console()

    def show_metadata(self, path: str, metadata: Metadata) -> None:
        """Display the metadata of one path."""
        table = Table(title=escape(path or "/"), show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("kind", metadata.kind.value)
        table.add_row("size", f"{metadata.size} ({format_size(metadata.size)})")
        table.add_row("last modified", metadata.last_modified.isoformat())
        table.add_row("content type", metadata.content_type or "-")
        self.console.print(table)

    def show_entries(self, path: str, entries: Iterable[ListEntry]) -> int:
        """Display a directory listing sorted by path.

        Returns:
            Number of entries shown.
        """
        rows = sorted(entries, key=lambda e: e.path)
        if not rows:
            self.console.print(f"[yellow]{escape(path or '/')} is empty[/yellow]")
            return 0

        table = Table(title=escape(f"Contents of {path or '/'}"))
        table.add_column("Name", style="cyan")
        table.add_column("Kind")
        table.add_column("Size", justify="right")
        table.add_column("Modified", style="dim")
        for entry in rows:
            name = f"{entry.name}/" if entry.metadata.is_dir else entry.name
            table.add_row(
                name,
                entry.metadata.kind.value,
                format_size(entry.metadata.size),
                entry.metadata.last_modified.strftime("%Y-%m-%d %H:%M:%S"),
            )
        self.console.print(table)
        return len(rows)

    def show_info(self, info: AdapterInfo) -> None:
        """Display backend scheme, root and capabilities."""
        table = Table(title=f"{info.scheme} backend at {info.root}")
        table.add_column("Operation", style="cyan")
        table.add_column("Supported")
        for capability in Capability:
            supported = info.capabilities.supports(capability)
            table.add_row(capability.value, "[green]yes[/green]" if supported else "[red]no[/red]")
        self.console.print(table)

    def show_success(self, message: str) -> None:
        """Display success message.

        Args:
            message: Message to display.
        """
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def show_error(self, message: str) -> None:
        """Display error message.

        Args:
            message: Message to display.
        """
        self.console.print(f"[red]✗[/red] {escape(message)}")
