"""Textual table viewer for stored log entries.

Launch with:
    logfunnel view
    logfunnel view --service api --level error

Requires: textual>=0.47
"""
from __future__ import annotations

from typing import ClassVar

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, Static

from ..storage.sqlite_store import LogStore
from .tables import COLUMNS, level_colour


class StatusBar(Static):
    """Status bar showing the page position and active filters."""

    shown: reactive[int] = reactive(0)
    offset: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)

    def render(self) -> str:
        first = self.offset + 1 if self.shown else 0
        return (
            f"[bold cyan]Showing:[/bold cyan] {first}-{self.offset + self.shown} "
            f"[bold cyan]of[/bold cyan] {self.total}"
        )


class LogViewer(App[None]):
    """Full-screen, filterable table of stored entries.

    Keybindings:
        q       — quit
        r       — refresh
        n / p   — next / previous page
    """

    CSS = """
    Horizontal {
        height: 3;
    }
    Input {
        width: 1fr;
    }
    DataTable {
        height: 1fr;
        border: round $primary;
    }
    StatusBar {
        dock: bottom;
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("n", "next_page", "Next page"),
        Binding("p", "prev_page", "Prev page"),
    ]

    def __init__(
        self,
        store: LogStore,
        service: str = "",
        level: str = "",
        page_size: int = 50,
    ) -> None:
        super().__init__()
        self._store = store
        self._service = service
        self._level = level
        self._page_size = page_size
        self._offset = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal():
            yield Input(value=self._service, placeholder="Filter by service", id="service")
            yield Input(value=self._level, placeholder="Filter by level", id="level")
        yield DataTable(id="entries", zebra_stripes=True)
        yield StatusBar(id="status")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#entries", DataTable)
        table.add_columns(*COLUMNS)
        table.cursor_type = "row"
        self._load()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "service":
            self._service = event.value.strip()
        elif event.input.id == "level":
            self._level = event.value.strip()
        self._offset = 0
        self._load()

    def _load(self) -> None:
        service = self._service or None
        level = self._level or None
        entries = self._store.list(
            service=service, level=level, limit=self._page_size, offset=self._offset
        )
        table = self.query_one("#entries", DataTable)
        table.clear()
        for entry in entries:
            table.add_row(
                Text(entry.timestamp, style="dim"),
                Text(entry.service),
                Text(entry.level, style=level_colour(entry.level)),
                Text(entry.message[:300]),
            )
        status = self.query_one("#status", StatusBar)
        status.offset = self._offset
        status.shown = len(entries)
        status.total = self._store.count(service=service, level=level)

    def action_refresh(self) -> None:
        self._load()

    def action_next_page(self) -> None:
        if self._offset + self._page_size < self._store.count(
            service=self._service or None, level=self._level or None
        ):
            self._offset += self._page_size
            self._load()

    def action_prev_page(self) -> None:
        if self._offset:
            self._offset = max(self._offset - self._page_size, 0)
            self._load()


def run_viewer(store: LogStore, service: str = "", level: str = "", page_size: int = 50) -> None:
    """Entry point for the TUI viewer."""
    app = LogViewer(store=store, service=service, level=level, page_size=page_size)
    app.run()
