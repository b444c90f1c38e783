"""Rich-powered rendering of stored log entries."""
from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..parsers.base import LogEntry

_console = Console()

_LEVEL_COLOURS = {
    "fatal": "bold red",
    "panic": "bold red",
    "critical": "bold red",
    "error": "red",
    "warn": "yellow",
    "warning": "yellow",
    "debug": "dim",
    "info": "green",
}

COLUMNS = ("timestamp", "service", "level", "message")


def level_colour(level: str) -> str:
    return _LEVEL_COLOURS.get(level.lower(), "white")


def format_stream_line(entry: LogEntry) -> str:
    """One coloured console line: timestamp, level, service, message."""
    colour = level_colour(entry.level)
    return (
        f"[dim]{entry.timestamp}[/dim] [{colour}]{escape(entry.level.upper()):8}[/{colour}] "
        f"[cyan]{escape(entry.service)}[/cyan] {escape(entry.message)}"
    )


def build_entries_table(entries: Sequence[LogEntry], title: str = "Log Entries") -> Table:
    table = Table(title=title, box=box.ROUNDED, show_lines=False, highlight=True)
    for col in COLUMNS:
        table.add_column(col, overflow="fold", max_width=80 if col == "message" else 30)
    for entry in entries:
        table.add_row(
            Text(entry.timestamp),
            Text(entry.service),
            Text(entry.level),
            Text(entry.message),
            style=level_colour(entry.level) if entry.level != "info" else "",
        )
    return table


def print_entries_table(
    entries: Sequence[LogEntry],
    title: str = "Log Entries",
    console: Console | None = None,
) -> None:
    """Render entries as a Rich table, coloured by level."""
    out = console or _console
    if not entries:
        out.print("[yellow]No entries to display.[/yellow]")
        return
    out.print(build_entries_table(entries, title=title))
