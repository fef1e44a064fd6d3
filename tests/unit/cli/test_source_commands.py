"""Tests for devtoolbox init, add, sources, show, refresh and remove."""

from __future__ import annotations

import base64
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from devtoolbox.cli.main import app
from devtoolbox.context.models import ERROR, READY
from devtoolbox.db.connection import Database
from devtoolbox.db.repository import Repository
from devtoolbox.ingest.github import GitHubFetcher

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project(tmp_path: Path, monkeypatch, wide_console) -> Path:
    """Run commands from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def notes(project: Path) -> Path:
    path = project / "notes.md"
    path.write_text("# Setup\nRun make.\n# Deploy\nPush to main.\n", encoding="utf-8")
    return path


def _stored(project: Path) -> list:
    with Database(project / ".devtoolbox.db") as conn:
        return Repository(conn).list_sources()


def _add(path: Path):
    return runner.invoke(app, ["add", "--file", str(path)])


# ---------------------------------------------------------------------------
# init / version
# ---------------------------------------------------------------------------


def test_init_creates_db_and_global_config(project: Path) -> None:
    global_cfg = project / "home" / "config.yaml"
    result = runner.invoke(app, ["init", "--global-config", str(global_cfg)])

    assert result.exit_code == 0, result.output
    assert (project / ".devtoolbox.db").exists()
    assert global_cfg.exists()
    assert "(schema v1)" in result.output
    assert "Next steps" in result.output


def test_init_twice_keeps_data(project: Path, notes: Path) -> None:
    runner.invoke(app, ["init"])
    _add(notes)

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert len(_stored(project)) == 1


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.output.startswith("devtoolbox ")


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def test_add_file(project: Path, notes: Path) -> None:
    result = _add(notes)

    assert result.exit_code == 0, result.output
    assert "2 chunks" in result.output
    (source,) = _stored(project)
    assert source.status == READY
    assert source.locator == str(notes.resolve())


def test_add_relative_path_is_stored_absolute(project: Path, notes: Path) -> None:
    runner.invoke(app, ["add", "--file", "notes.md"])

    assert _stored(project)[0].locator == str(notes.resolve())


def test_add_same_file_twice_refreshes(project: Path, notes: Path) -> None:
    _add(notes)
    first_id = _stored(project)[0].id
    notes.write_text("Only one paragraph now.", encoding="utf-8")

    result = _add(notes)

    assert "refreshing" in result.output
    (source,) = _stored(project)
    assert source.id == first_id
    assert [c.content for c in source.chunks] == ["Only one paragraph now."]


def test_add_missing_file_stores_error(project: Path) -> None:
    result = runner.invoke(app, ["add", "--file", "missing.txt"])

    assert result.exit_code == 1
    assert "Failed" in result.output
    (source,) = _stored(project)
    assert source.status == ERROR
    assert "does not exist" in source.error


def test_add_invalid_github_url_is_not_stored(project: Path) -> None:
    result = runner.invoke(app, ["add", "--github", "https://example.com/x"])

    assert result.exit_code == 1
    assert "Invalid source" in result.output
    assert _stored(project) == []


def test_add_ssrf_url_reports_block(project: Path) -> None:
    addr = [(None, None, None, None, ("127.0.0.1", 0))]
    with patch("devtoolbox.ingest.web.socket.getaddrinfo", return_value=addr):
        result = runner.invoke(app, ["add", "--url", "http://localhost:8080/"])

    assert result.exit_code == 1
    assert "SSRF" in result.output
    assert _stored(project)[0].status == ERROR


def test_add_github_repository(project: Path) -> None:
    content = base64.b64encode(b"export const x = 1;\n").decode()

    def _fake(endpoint: str) -> dict:
        if endpoint == "/repos/octo/demo":
            return {"default_branch": "main"}
        if "/git/trees/" in endpoint:
            return {"tree": [{"path": "index.js", "type": "blob"}]}
        return {"content": content, "size": 20}

    with patch.object(GitHubFetcher, "_get_json", side_effect=_fake):
        result = runner.invoke(app, ["add", "--github", "https://github.com/octo/demo"])

    assert result.exit_code == 0, result.output
    (source,) = _stored(project)
    assert source.title == "octo/demo"
    assert source.chunks[0].metadata.language == "javascript"


def test_add_without_sources_fails(project: Path) -> None:
    result = runner.invoke(app, ["add"])

    assert result.exit_code == 1
    assert "No sources given" in result.output


def test_add_mixed_success_exits_nonzero(project: Path, notes: Path) -> None:
    result = runner.invoke(app, ["add", "--file", str(notes), "--file", "nope.txt"])

    assert result.exit_code == 1
    assert "1 of 2 source(s) failed" in result.output
    assert {s.status for s in _stored(project)} == {READY, ERROR}


def test_add_invalid_config_exits(project: Path, notes: Path) -> None:
    (project / "devtoolbox.yaml").write_text("context:\n  chunk_size: 0\n", encoding="utf-8")

    result = _add(notes)

    assert result.exit_code == 1
    assert "chunk_size" in result.output


# ---------------------------------------------------------------------------
# sources / show
# ---------------------------------------------------------------------------


def test_sources_without_db(project: Path) -> None:
    result = runner.invoke(app, ["sources"])

    assert result.exit_code == 1
    assert "devtoolbox init" in result.output


def test_sources_lists_status_and_errors(project: Path, notes: Path) -> None:
    _add(notes)
    runner.invoke(app, ["add", "--file", "gone.txt"])

    result = runner.invoke(app, ["sources"])

    assert result.exit_code == 0
    assert "notes.md" in result.output
    assert "ready" in result.output
    assert "error" in result.output
    assert "does not exist" in result.output
    assert "2 source(s), 11 tokens stored" in result.output


def test_show_by_id_prefix(project: Path, notes: Path) -> None:
    _add(notes)
    source_id = _stored(project)[0].id

    result = runner.invoke(app, ["show", source_id[:8], "--full"])

    assert result.exit_code == 0, result.output
    assert source_id in result.output
    assert "documentation" in result.output
    assert "Push to main." in result.output


def test_show_unknown_source(project: Path, notes: Path) -> None:
    _add(notes)

    result = runner.invoke(app, ["show", "zzzz"])

    assert result.exit_code == 1
    assert "Source not found" in result.output


# ---------------------------------------------------------------------------
# refresh / remove
# ---------------------------------------------------------------------------


def test_refresh_keeps_id(project: Path, notes: Path) -> None:
    _add(notes)
    before = _stored(project)[0]
    notes.write_text("# Changed\nNew text.\n", encoding="utf-8")

    result = runner.invoke(app, ["refresh", before.id])

    assert result.exit_code == 0, result.output
    (after,) = _stored(project)
    assert after.id == before.id
    assert [c.content for c in after.chunks] == ["# Changed\nNew text."]


def test_refresh_failure_marks_error(project: Path, notes: Path) -> None:
    _add(notes)
    notes.unlink()

    result = runner.invoke(app, ["refresh", str(notes.resolve())])

    assert result.exit_code == 1
    (source,) = _stored(project)
    assert source.status == ERROR
    assert source.chunks == []


def test_remove_with_yes(project: Path, notes: Path) -> None:
    _add(notes)
    source_id = _stored(project)[0].id

    result = runner.invoke(app, ["remove", source_id, "--yes"])

    assert result.exit_code == 0
    assert "2 chunks deleted" in result.output
    assert _stored(project) == []


def test_remove_cancelled(project: Path, notes: Path) -> None:
    _add(notes)
    source_id = _stored(project)[0].id

    result = runner.invoke(app, ["remove", source_id], input="n\n")

    assert "Cancelled" in result.output
    assert len(_stored(project)) == 1
