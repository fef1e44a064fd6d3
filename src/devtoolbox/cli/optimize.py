"""devtoolbox optimize-prompt: rewrite a prompt for a target model.

  devtoolbox optimize-prompt "Write tests" -r "make it specific to pytest"
  devtoolbox optimize-prompt -f prompts/review.txt -r "shorter" -o prompts/review.txt
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from devtoolbox.chat import llm_client
from devtoolbox.chat.optimizer import build_optimizer_messages, clean_optimized
from devtoolbox.cli.errors import (
    err_config,
    err_invalid_prompt,
    err_llm_failed,
    err_no_api_key,
)
from devtoolbox.config import ConfigError, ToolboxConfig, load_config

console = Console()


def optimize_cmd(
    text: Annotated[
        str | None,
        typer.Argument(help="Prompt to optimize (or use --file)."),
    ] = None,
    request: Annotated[
        str,
        typer.Option("--request", "-r", help="What to improve, e.g. 'make it more concise'."),
    ] = "",
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read the prompt from this file."),
    ] = None,
    target_model: Annotated[
        str | None,
        typer.Option("--target-model", help="Model the prompt is written for (default: chat model)."),
    ] = None,
    prompt_type: Annotated[
        str,
        typer.Option("--type", help="Prompt type: user or system."),
    ] = "user",
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM model that does the rewriting."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the optimized prompt to this file."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the messages instead of calling the model."),
    ] = False,
) -> None:
    """Ask the model for an optimized version of a prompt."""
    prompt = _read_prompt(text, file)
    cfg = _load_config_or_exit()
    chat_model = model or cfg.chat.model

    try:
        messages = build_optimizer_messages(
            prompt, request, target_model or chat_model, prompt_type
        )
    except ValueError as exc:
        console.print(err_invalid_prompt(str(exc)))
        raise typer.Exit(1)

    if dry_run:
        for msg in messages:
            console.print(
                Panel(escape(msg["content"]), title=f"[bold]{msg['role']}[/]", expand=False)
            )
        return

    try:
        llm_client.validate_api_key(chat_model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(str(exc)))
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"Optimizing with {chat_model}…", total=None)
            answer = llm_client.complete(
                chat_model,
                messages,
                max_tokens=cfg.chat.max_tokens,
                temperature=cfg.chat.temperature,
            )
    except llm_client.LLM_ERRORS as exc:
        console.print(err_llm_failed(str(exc)))
        raise typer.Exit(1)

    optimized = clean_optimized(answer)
    console.print(optimized, markup=False, highlight=False)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(optimized + "\n", encoding="utf-8")
        console.print(f"  [green]✓[/] {output}")


def _read_prompt(text: str | None, file: Path | None) -> str:
    if (text is None) == (file is None):
        console.print(err_invalid_prompt("Give the prompt as an argument or with --file, not both."))
        raise typer.Exit(1)
    if file is None:
        return text or ""
    try:
        return file.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        console.print(err_invalid_prompt(f"Could not read '{file}': {exc.strerror or exc}"))
        raise typer.Exit(1)


def _load_config_or_exit() -> ToolboxConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
