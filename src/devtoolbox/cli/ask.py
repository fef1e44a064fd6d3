"""devtoolbox query and ask commands.

  devtoolbox query "how is the router configured"    → show what would be attached
  devtoolbox ask "explain the export function"       → attach context, call the model
  devtoolbox ask "landing page" --preview-dir out/   → also write index.html/style.css/script.js

Context selection is the same for both: keyword relevance over every ready
source, then the largest best-first prefix that fits the token budget.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from devtoolbox.chat import llm_client
from devtoolbox.chat.preview import extract_code_blocks, write_preview
from devtoolbox.chat.prompt import build_messages, chunk_label
from devtoolbox.cli.errors import (
    err_config,
    err_llm_failed,
    err_no_api_key,
    err_no_db,
    err_no_preview_code,
)
from devtoolbox.config import ConfigError, ToolboxConfig, load_config
from devtoolbox.context.models import ContextChunk, ContextSource
from devtoolbox.context.retrieval import (
    apply_token_budget,
    rank_chunks,
    select_relevant_chunks,
)
from devtoolbox.db.connection import Database
from devtoolbox.db.repository import Repository

logger = logging.getLogger(__name__)

console = Console()

_DEFAULT_DB = Path(".devtoolbox.db")


def query_cmd(
    text: Annotated[str, typer.Argument(help="Question or keywords.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", "-t", min=0, help="Context token budget."),
    ] = None,
) -> None:
    """Show the context chunks that would be attached to a question."""
    if not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = _load_config_or_exit()
    budget = max_tokens if max_tokens is not None else cfg.context.max_tokens

    sources = _load_sources(db)
    ranked = rank_chunks(text, sources)
    selected, total = apply_token_budget(ranked, budget)

    if not selected:
        console.print("[yellow]No context fits the budget.[/]")
        return

    titles = {s.id: s.title for s in sources}
    table = Table(title=f"Context for: {escape(text)}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Source")
    table.add_column("Chunk")
    table.add_column("Tokens", justify="right")

    for i, sc in enumerate(ranked[: len(selected)], start=1):
        table.add_row(
            str(i),
            f"{sc.score:g}",
            escape(titles.get(sc.source_id, sc.source_id[:8])),
            escape(chunk_label(sc.chunk)),
            str(sc.chunk.tokens),
        )
    console.print(table)
    console.print(
        f"[dim]{len(selected)} of {len(ranked)} chunks, {total:,} / {budget:,} tokens[/]"
    )


def ask_cmd(
    text: Annotated[str, typer.Argument(help="Question for the assistant.")],
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to .devtoolbox.db."),
    ] = _DEFAULT_DB,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", "-t", min=0, help="Context token budget."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM model string (provider/model)."),
    ] = None,
    no_context: Annotated[
        bool,
        typer.Option("--no-context", help="Do not attach any stored context."),
    ] = False,
    preview_dir: Annotated[
        Path | None,
        typer.Option("--preview-dir", help="Write HTML/CSS/JS code blocks from the answer here."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the messages instead of calling the model."),
    ] = False,
) -> None:
    """Ask the assistant a question with relevant context attached."""
    cfg = _load_config_or_exit()
    chat_model = model or cfg.chat.model
    budget = max_tokens if max_tokens is not None else cfg.context.max_tokens

    if not dry_run:
        try:
            llm_client.validate_api_key(chat_model)
        except EnvironmentError as exc:
            console.print(err_no_api_key(str(exc)))
            raise typer.Exit(1)

    chunks: list[ContextChunk] = []
    if not no_context:
        if db.exists():
            chunks = select_relevant_chunks(text, _load_sources(db), max_tokens=budget)
            total = sum(c.tokens for c in chunks)
            console.print(f"[dim]Context: {len(chunks)} chunks, {total:,} tokens[/]")
        else:
            logger.debug("No database at %s; asking without context", db)

    messages = build_messages(text, chunks, cfg.chat.system_prompt)

    if dry_run:
        for msg in messages:
            console.print(
                Panel(escape(msg["content"]), title=f"[bold]{msg['role']}[/]", expand=False)
            )
        return

    try:
        answer = _run_completion(cfg, chat_model, messages)
    except llm_client.LLM_ERRORS as exc:
        console.print(err_llm_failed(str(exc)))
        raise typer.Exit(1)

    if preview_dir is not None:
        _write_preview(answer, preview_dir)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _run_completion(cfg: ToolboxConfig, chat_model: str, messages: list[dict]) -> str:
    if cfg.chat.stream:
        parts: list[str] = []
        for delta in llm_client.stream(
            chat_model,
            messages,
            max_tokens=cfg.chat.max_tokens,
            temperature=cfg.chat.temperature,
        ):
            parts.append(delta)
            console.print(delta, end="", markup=False, highlight=False, soft_wrap=True)
        console.print()
        return "".join(parts)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task(f"Asking {chat_model}…", total=None)
        answer = llm_client.complete(
            chat_model,
            messages,
            max_tokens=cfg.chat.max_tokens,
            temperature=cfg.chat.temperature,
        )
    console.print(answer, markup=False, highlight=False)
    return answer


def _write_preview(answer: str, directory: Path) -> None:
    bundle = extract_code_blocks(answer)
    if bundle.is_empty:
        console.print(err_no_preview_code())
        return
    for path in write_preview(bundle, directory):
        console.print(f"  [green]✓[/] {path}")


def _load_sources(db: Path) -> list[ContextSource]:
    conn = Database(db).connect()
    try:
        return Repository(conn).list_sources()
    finally:
        conn.close()


def _load_config_or_exit() -> ToolboxConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
