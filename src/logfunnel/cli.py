"""Logfunnel CLI — entry point.

Commands:
    logfunnel normalize [PAYLOAD]   Normalize one payload and print it as JSON
    logfunnel ingest    <file>      Normalize every line of a file and store it
    logfunnel logs                  Query stored entries
    logfunnel formats               List format rules in priority order
    logfunnel detect    <line>      Show which rule claims a line
    logfunnel serve                 Run the HTTP ingestion server
    logfunnel view                  Interactive table viewer (TUI)
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import settings
from .errors import InvalidBase64Error, StorageError
from .normalizer import PayloadNormalizer
from .parsers.registry import default_registry
from .storage.sqlite_store import LogStore
from .visualization.tables import format_stream_line, print_entries_table

console = Console()
err_console = Console(stderr=True)

db_option = click.option(
    "--db", "db_path", default=lambda: settings.db_path,
    type=click.Path(dir_okay=False), help="SQLite database file.", show_default="from settings",
)


def _open_store(db_path: str) -> LogStore:
    try:
        return LogStore(db_path)
    except StorageError as exc:
        err_console.print(f"[red]{exc}[/red]")
        sys.exit(1)


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="logfunnel")
@click.option(
    "--log-level", default=lambda: settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Diagnostic log level (stderr).",
)
def main(log_level: str) -> None:
    """logfunnel — normalize heterogeneous log payloads into one record shape."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


# ── normalize ────────────────────────────────────────────────────────────────


@main.command()
@click.argument("payload", required=False)
def normalize(payload: str | None) -> None:
    """Normalize a single payload (argument or stdin) and print the entry.

    \b
    Examples:
      logfunnel normalize '{"service":"api","level":"error","message":"timeout"}'
      logfunnel normalize '{"raw_b64":"aW5mbyB0ZXN0"}'
      tail -n1 /var/log/nginx/access.log | logfunnel normalize
    """
    body = payload if payload is not None else click.get_text_stream("stdin").read()
    normalizer = PayloadNormalizer(max_unwrap_depth=settings.unwrap_depth)
    try:
        entry = normalizer.normalize(body.rstrip("\r\n"))
    except InvalidBase64Error as exc:
        err_console.print(f"[red]Rejected:[/red] {exc}")
        sys.exit(1)
    click.echo(json.dumps(entry.as_dict()))


# ── ingest ───────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@db_option
@click.option("--quiet", "-q", is_flag=True, help="Do not echo stored entries.")
def ingest(file: Path, db_path: str, quiet: bool) -> None:
    """Normalize each non-empty line of FILE as a payload and store it.

    \b
    Examples:
      logfunnel ingest access.log
      logfunnel ingest payloads.ndjson --db /tmp/logs.db -q
    """
    normalizer = PayloadNormalizer(max_unwrap_depth=settings.unwrap_depth)
    stored = rejected = 0
    with _open_store(db_path) as store, file.open(encoding="utf-8", errors="replace") as fh:
        for lineno, raw_line in enumerate(fh, start=1):
            line = raw_line.rstrip("\r\n")
            if not line.strip():
                continue
            try:
                entry = normalizer.normalize(line)
            except InvalidBase64Error as exc:
                err_console.print(f"[yellow]line {lineno}: {exc}[/yellow]")
                rejected += 1
                continue
            try:
                store.insert(entry)
            except StorageError as exc:
                err_console.print(f"[red]line {lineno}: {exc}[/red]")
                sys.exit(1)
            stored += 1
            if not quiet:
                console.print(format_stream_line(entry))

    console.print(f"\n[dim]Stored {stored} entries from {file.name} ({rejected} rejected)[/dim]")


# ── logs ─────────────────────────────────────────────────────────────────────


@main.command()
@db_option
@click.option("--service", "-s", default="", help="Exact service filter.")
@click.option("--level", "-l", default="", help="Exact level filter.")
@click.option("--limit", "-n", default=lambda: settings.page_size, type=int, help="Max entries.")
@click.option("--offset", default=0, type=int, help="Entries to skip.")
@click.option(
    "--output", "-o", "output_fmt", default="table",
    type=click.Choice(["table", "stream", "json"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)
def logs(db_path: str, service: str, level: str, limit: int, offset: int, output_fmt: str) -> None:
    """Show stored entries, newest first.

    \b
    Examples:
      logfunnel logs
      logfunnel logs --level error --limit 50
      logfunnel logs --service nginx --output json
    """
    limit = min(max(limit, 0), settings.max_page_size)
    with _open_store(db_path) as store:
        entries = store.list(
            service=service or None, level=level or None, limit=limit, offset=max(offset, 0)
        )

    if output_fmt == "json":
        for entry in entries:
            click.echo(json.dumps(entry.as_dict()))
        return

    if not entries:
        err_console.print("[yellow]No entries found.[/yellow]")
        return

    if output_fmt == "table":
        print_entries_table(entries, title=Path(db_path).name, console=console)
    else:
        for entry in entries:
            console.print(format_stream_line(entry))


# ── formats / detect ─────────────────────────────────────────────────────────


@main.command()
def formats() -> None:
    """List the format rules in the order they are tried."""
    tbl = Table(title="Format rules (first match wins)", box=box.SIMPLE_HEAVY)
    tbl.add_column("#", style="dim", width=4)
    tbl.add_column("Rule")
    tbl.add_column("Fallback service", style="cyan")
    for rank, rule in enumerate(default_registry.rules, start=1):
        tbl.add_row(str(rank), rule.name, rule.default_service)
    console.print(tbl)


@main.command()
@click.argument("line")
def detect(line: str) -> None:
    """Print the name of the rule that claims LINE ("fallback" if none)."""
    click.echo(default_registry.detect(line) or "fallback")


# ── serve / view ─────────────────────────────────────────────────────────────


@main.command()
@db_option
@click.option("--host", default=lambda: settings.host, help="Bind address.")
@click.option("--port", default=lambda: settings.port, type=int, help="Bind port.")
def serve(db_path: str, host: str, port: int) -> None:
    """Run the HTTP ingestion/query server (POST/GET /logs)."""
    from .server import create_app

    app = create_app(store=_open_store(db_path))
    console.print(f"[dim]Serving on http://{host}:{port} (db: {db_path})[/dim]")
    app.run(host=host, port=port)


@main.command()
@db_option
@click.option("--service", "-s", default="", help="Initial service filter.")
@click.option("--level", "-l", default="", help="Initial level filter.")
def view(db_path: str, service: str, level: str) -> None:
    """Browse stored entries in a filterable terminal table."""
    try:
        from .visualization.tui import run_viewer
    except ImportError:
        err_console.print(
            "[red]Textual is not installed.[/red] Install it with:\n"
            "  pip install 'logfunnel[tui]'"
        )
        sys.exit(1)
    with _open_store(db_path) as store:
        run_viewer(store, service=service, level=level)


if __name__ == "__main__":
    main()
