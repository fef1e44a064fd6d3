"""devtoolbox rich error messages.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from devtoolbox.cli.errors import err_no_api_key, err_no_db
    console.print(err_no_api_key("groq"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(message: str) -> str:
    """Missing provider API key.

    *message* is the text of the EnvironmentError raised by
    ``llm_client.validate_api_key``; it already names the variable to set.
    """
    return (
        f"[red]Error:[/] {escape(message)}\n"
        "  Or choose another model:  devtoolbox ask --model ollama/llama3 ..."
    )


def err_no_db(db_path: str = ".devtoolbox.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{escape(db_path)}'.\n"
        "  Run:  devtoolbox init"
    )


def err_no_sources_given() -> str:
    return (
        "[red]Error:[/] No sources given.\n"
        "  Use --github URL, --url URL or --file PATH (each repeatable)."
    )


def err_invalid_locator(locator: str, reason: str) -> str:
    """A locator was rejected before anything was fetched."""
    return (
        f"[red]✗ Invalid source:[/] '{escape(locator)}'\n"
        f"  {escape(reason)}"
    )


def err_ssrf_blocked(url: str, reason: str) -> str:
    """URL resolves to a private/reserved address."""
    return (
        f"[red]✗ Blocked (SSRF protection):[/] '{escape(url)}'\n"
        f"  {escape(reason)}\n"
        "  Use a publicly reachable URL."
    )


def err_ingest_failed(locator: str, reason: str) -> str:
    """Fetch failed; the source was stored with status 'error'."""
    return (
        f"[red]✗ Failed:[/] {escape(locator)}\n"
        f"  {escape(reason)}\n"
        "  Fix the cause, then run:  devtoolbox refresh <source>"
    )


def err_source_not_found(source: str) -> str:
    """Source reference did not resolve."""
    return (
        f"[yellow]Source not found:[/] '{escape(source)}' is not in the context store.\n"
        "  Run:  devtoolbox sources  to see all sources (an id prefix is enough)."
    )


def err_config(message: str) -> str:
    """Config file is invalid or contains a forbidden key."""
    return f"[red]Error:[/] {escape(message)}"


def err_llm_failed(message: str) -> str:
    """Chat completion failed after retries."""
    return (
        f"[red]Error:[/] Model request failed: {escape(message)}\n"
        "  Check the model name and your network, then retry."
    )


def err_invalid_prompt(reason: str) -> str:
    """optimize-prompt input is missing or malformed."""
    return (
        f"[red]Error:[/] {escape(reason)}\n"
        "  Usage:  devtoolbox optimize-prompt \"<prompt>\" --request \"<what to improve>\""
    )


def err_no_preview_code() -> str:
    return (
        "[yellow]No preview written:[/] the answer has no ```html, ```css or "
        "```javascript code blocks."
    )
