"""devtoolbox source commands: add, sources, show, refresh, remove.

Source dispatch by option:
  --github URL  → GitHubFetcher (important files of the default branch, as code)
  --url URL     → WebFetcher (page reduced to text)
  --file PATH   → FileReader (code / markdown / text by extension, PDF via pypdf)

A failed fetch is still stored, with status 'error' and no chunks, so it shows
up in ``devtoolbox sources`` and can be retried with ``devtoolbox refresh``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from devtoolbox.cli.errors import (
    err_config,
    err_ingest_failed,
    err_invalid_locator,
    err_no_db,
    err_no_sources_given,
    err_source_not_found,
    err_ssrf_blocked,
)
from devtoolbox.config import ConfigError, ToolboxConfig, load_config
from devtoolbox.context.models import ERROR, FILE, GITHUB, READY, URL, ContextSource
from devtoolbox.db.connection import Database
from devtoolbox.db.repository import Repository
from devtoolbox.ingest.base import IngestError
from devtoolbox.ingest.pipeline import make_fetcher
from devtoolbox.ingest.web import SsrfError

console = Console()

_DEFAULT_DB = Path(".devtoolbox.db")

_STATUS_STYLE = {READY: "green", ERROR: "red"}


def add_cmd(
    github: Annotated[
        list[str] | None,
        typer.Option("--github", "-g", help="GitHub repository URL (repeatable)."),
    ] = None,
    url: Annotated[
        list[str] | None,
        typer.Option("--url", "-u", help="Web page URL (repeatable)."),
    ] = None,
    file: Annotated[
        list[Path] | None,
        typer.Option("--file", "-f", help="Local file path (repeatable)."),
    ] = None,
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db (created if missing)."),
    ] = _DEFAULT_DB,
) -> None:
    """Add context sources: fetch, chunk and store them."""
    requests: list[tuple[str, str]] = [(GITHUB, g) for g in github or []]
    requests += [(URL, u) for u in url or []]
    requests += [(FILE, str(f.expanduser().resolve())) for f in file or []]

    if not requests:
        console.print(err_no_sources_given())
        raise typer.Exit(1)

    cfg = _load_config_or_exit()
    conn = Database(db).connect()
    repo = Repository(conn)

    failures = 0
    try:
        for kind, locator in requests:
            if not _add_one(repo, cfg, kind, locator):
                failures += 1
    finally:
        conn.close()

    if failures:
        console.print(f"\n[red]{failures} of {len(requests)} source(s) failed.[/]")
        raise typer.Exit(1)


def sources_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
) -> None:
    """List context sources with their status and size."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    conn = Database(db).connect()
    try:
        repo = Repository(conn)
        sources = repo.list_sources()
        stored_tokens = repo.total_tokens()
    finally:
        conn.close()

    if not sources:
        console.print("[dim]No sources yet.[/]  Run:  devtoolbox add --file <path>")
        return

    table = Table(title="Context sources")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Chunks", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Last fetched", style="dim")

    for s in sources:
        style = _STATUS_STYLE.get(s.status, "yellow")
        table.add_row(
            s.id[:8],
            s.kind,
            escape(s.title),
            f"[{style}]{s.status}[/]",
            str(len(s.chunks)),
            f"{s.total_tokens:,}",
            s.metadata.last_fetched or "-",
        )
    console.print(table)
    console.print(f"[dim]{len(sources)} source(s), {stored_tokens:,} tokens stored[/]")

    for s in sources:
        if s.status == ERROR and s.error:
            console.print(f"[red]✗[/] {s.id[:8]} {escape(s.title)}: {escape(s.error)}")


def show_cmd(
    source: Annotated[str, typer.Argument(help="Source id, id prefix or locator.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
    full: Annotated[
        bool,
        typer.Option("--full", help="Print chunk contents as well."),
    ] = False,
) -> None:
    """Show one source and its chunks."""
    existing = _resolve_or_exit(db, source)

    console.print(f"\n[bold]{escape(existing.title)}[/]  [dim]({existing.id})[/]")
    console.print(f"  Kind:    {existing.kind}")
    console.print(f"  Locator: {escape(existing.locator)}")
    console.print(f"  Status:  {existing.status}")
    if existing.error:
        console.print(f"  Error:   [red]{escape(existing.error)}[/]")
    console.print(f"  Chunks:  {len(existing.chunks)}  |  Tokens: {existing.total_tokens:,}\n")

    if not existing.chunks:
        return

    table = Table(show_lines=full)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Chunk", style="dim", no_wrap=True)
    table.add_column("Kind")
    table.add_column("File")
    table.add_column("Lines", justify="right")
    table.add_column("Tokens", justify="right")
    if full:
        table.add_column("Content")

    for i, c in enumerate(existing.chunks, start=1):
        meta = c.metadata
        lines = (
            f"{meta.start_line}-{meta.end_line}"
            if meta.start_line is not None and meta.end_line is not None
            else "-"
        )
        row = [
            str(i),
            c.id[:8],
            c.kind,
            escape(meta.file_path or "-"),
            lines,
            str(c.tokens),
        ]
        if full:
            row.append(escape(c.content))
        table.add_row(*row)
    console.print(table)


def refresh_cmd(
    source: Annotated[str, typer.Argument(help="Source id, id prefix or locator.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
) -> None:
    """Re-fetch a source in place, keeping its id."""
    existing = _resolve_or_exit(db, source)
    cfg = _load_config_or_exit()

    conn = Database(db).connect()
    try:
        ok = _add_one(Repository(conn), cfg, existing.kind, existing.locator, existing.id)
    finally:
        conn.close()

    if not ok:
        raise typer.Exit(1)


def remove_cmd(
    source: Annotated[str, typer.Argument(help="Source id, id prefix or locator.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a source and all its chunks."""
    existing = _resolve_or_exit(db, source)

    console.print(f"\nRemove source: [bold]{escape(existing.title)}[/]  [dim]({existing.id})[/]")
    console.print(f"  Chunks: {len(existing.chunks)}  |  Tokens: {existing.total_tokens:,}")

    if not yes:
        if not typer.confirm("Confirm removal?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    conn = Database(db).connect()
    try:
        removed = Repository(conn).delete_source(existing.id)
    finally:
        conn.close()

    console.print(f"\n[green]✓[/] Removed: {escape(existing.title)}")
    console.print(f"  {removed} chunks deleted")


# ------------------------------------------------------------------
# Per-source pipeline
# ------------------------------------------------------------------


def _add_one(
    repo: Repository,
    cfg: ToolboxConfig,
    kind: str,
    locator: str,
    source_id: str | None = None,
) -> bool:
    """Fetch one source and store the outcome. Returns False on failure.

    A locator that is already stored is refreshed under its existing id.
    """
    console.print(f"\n[bold]→ {escape(locator)}[/]")

    if source_id is None:
        existing = repo.get_source_by_locator(locator)
        if existing is not None:
            console.print("  [yellow]↻ Already added, refreshing[/]")
            source_id = existing.id

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task(f"Fetching ({kind})…", total=None)
        try:
            result = make_fetcher(kind, cfg).fetch(locator, source_id=source_id)
        except IngestError as exc:
            repo.save_source(exc.source)
            if isinstance(exc.__cause__, SsrfError):
                console.print(err_ssrf_blocked(locator, str(exc)))
            else:
                console.print(err_ingest_failed(locator, str(exc)))
            return False
        except ValueError as exc:
            console.print(err_invalid_locator(locator, str(exc)))
            return False

    repo.save_source(result)
    console.print(
        f"  [green]✓[/] {escape(result.title)}: {len(result.chunks)} chunks, "
        f"{result.total_tokens:,} tokens  [dim]({result.id[:8]})[/]"
    )
    return True


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _resolve_or_exit(db: Path, ref: str) -> ContextSource:
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    conn = Database(db).connect()
    try:
        found = Repository(conn).find_source(ref)
    finally:
        conn.close()

    if found is None:
        console.print(err_source_not_found(ref))
        raise typer.Exit(1)
    return found


def _load_config_or_exit() -> ToolboxConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
