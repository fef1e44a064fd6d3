"""devtoolbox init: create the context store and the global config.

Creates:
  .devtoolbox.db              context sources and chunks (schema migrated)
  ~/.devtoolbox/config.yaml   global model defaults (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from devtoolbox.config import ensure_global_config
from devtoolbox.db.connection import Database
from devtoolbox.db.migrations import schema_version

console = Console()

_DEFAULT_DB = Path(".devtoolbox.db")


def init_cmd(
    db: Annotated[
        Path,
        typer.Option("--db", help="Path to the database to create."),
    ] = _DEFAULT_DB,
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override the global config path."),
    ] = None,
) -> None:
    """Create the context database and the global config."""
    existed = db.exists()
    db.parent.mkdir(parents=True, exist_ok=True)

    with Database(db) as conn:
        version = schema_version(conn)
    if existed:
        console.print(
            f"  [yellow]↷[/] {db} already exists (schema v{version}, data kept)"
        )
    else:
        console.print(f"  [green]✓[/] {db} (schema v{version})")

    cfg_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    console.print("\nNext steps:")
    console.print("  1. devtoolbox add --github <repo-url> --url <page> --file <path>")
    console.print("  2. devtoolbox sources                 (check what was fetched)")
    console.print("  3. devtoolbox ask \"<question>\"        (needs e.g. GROQ_API_KEY)")
