"""Tests for devtoolbox optimize-prompt."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import litellm
import pytest
from typer.testing import CliRunner

from devtoolbox.cli.main import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch, wide_console) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")
    return tmp_path


def test_optimize_prints_rewritten_prompt(project: Path) -> None:
    with patch("devtoolbox.chat.llm_client.complete", return_value="Write pytest tests.\n") as m:
        result = runner.invoke(
            app, ["optimize-prompt", "Write tests", "--request", "target pytest"]
        )

    assert result.exit_code == 0, result.output
    assert "Write pytest tests." in result.output
    model, messages = m.call_args.args
    assert model == "groq/llama3-8b-8192"
    assert "Target Model: groq/llama3-8b-8192" in messages[0]["content"]
    assert "Current Prompt:\nWrite tests" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "Please optimize this prompt."}


def test_optimize_reads_file_and_writes_output(project: Path) -> None:
    (project / "review.txt").write_text("Review this diff.\n", encoding="utf-8")
    with patch("devtoolbox.chat.llm_client.complete", return_value="```\nReview the diff.\n```") as m:
        result = runner.invoke(
            app,
            [
                "optimize-prompt",
                "--file", "review.txt",
                "-r", "be specific",
                "--target-model", "openai/gpt-4o",
                "--type", "system",
                "-o", "out/review.txt",
            ],
        )

    assert result.exit_code == 0, result.output
    system = m.call_args.args[1][0]["content"]
    assert "Target Model: openai/gpt-4o" in system
    assert "Prompt Type: system" in system
    assert (project / "out" / "review.txt").read_text(encoding="utf-8") == "Review the diff.\n"


def test_optimize_dry_run_skips_model(project: Path, monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY")
    with patch("devtoolbox.chat.llm_client.complete") as m:
        result = runner.invoke(app, ["optimize-prompt", "Write tests", "-r", "shorter", "--dry-run"])

    assert result.exit_code == 0, result.output
    m.assert_not_called()
    assert "Optimization Request" in result.output


def test_optimize_requires_request(project: Path) -> None:
    result = runner.invoke(app, ["optimize-prompt", "Write tests"])

    assert result.exit_code == 1
    assert "request must not be empty" in result.output


def test_optimize_rejects_prompt_and_file_together(project: Path) -> None:
    result = runner.invoke(app, ["optimize-prompt", "x", "--file", "y.txt", "-r", "z"])

    assert result.exit_code == 1
    assert "not both" in result.output


def test_optimize_missing_api_key(project: Path, monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY")

    result = runner.invoke(app, ["optimize-prompt", "Write tests", "-r", "shorter"])

    assert result.exit_code == 1
    assert "GROQ_API_KEY" in result.output


def test_optimize_model_error_exits(project: Path) -> None:
    error = litellm.exceptions.NotFoundError(
        message="model not found", llm_provider="groq", model="nope"
    )
    with patch("devtoolbox.chat.llm_client.complete", side_effect=error):
        result = runner.invoke(app, ["optimize-prompt", "Write tests", "-r", "shorter"])

    assert result.exit_code == 1
    assert "Model request failed" in result.output
