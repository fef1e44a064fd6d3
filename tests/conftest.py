"""Shared pytest fixtures."""

from __future__ import annotations

import pytest
from rich.console import Console

from devtoolbox.db.connection import Database
from devtoolbox.db.repository import Repository


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema migrated, closed after test."""
    db = Database(tmp_path / ".devtoolbox.db")
    conn = db.connect()
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Keep the user's real ~/.devtoolbox and environment out of tests."""
    monkeypatch.setattr("devtoolbox.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    monkeypatch.delenv("DEVTOOLBOX_CHAT_MODEL", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


@pytest.fixture
def wide_console(monkeypatch):
    """Give every CLI module a wide console so tables do not wrap in assertions."""
    for module in ("ask", "init", "optimize", "sources"):
        monkeypatch.setattr(
            f"devtoolbox.cli.{module}.console", Console(width=200, color_system=None)
        )
