"""Tests for FileReader: kind detection, size limit, PDF and DOCX handling."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from devtoolbox.context.models import CODE, DOCUMENTATION, ERROR, FILE, READY, TEXT
from devtoolbox.ingest.base import IngestError
from devtoolbox.ingest.files import FileReader, detect_content_kind, guess_mime_type


@pytest.mark.parametrize(
    "name, kind",
    [
        ("app.tsx", CODE),
        ("script.sh", CODE),
        ("README.md", DOCUMENTATION),
        ("guide.markdown", DOCUMENTATION),
        ("notes.txt", TEXT),
        ("data.csv", TEXT),
        ("noext", TEXT),
    ],
)
def test_detect_content_kind(name, kind):
    path = Path(name)
    assert detect_content_kind(path, guess_mime_type(path)) == kind


def test_guess_mime_type_unknown_falls_back():
    assert guess_mime_type(Path("blob.zzz")) == "application/octet-stream"


def test_reads_code_file(tmp_path: Path):
    path = tmp_path / "util.py"
    path.write_text("import os\n\ndef cwd():\n    return os.getcwd()\n", encoding="utf-8")

    source = FileReader().fetch(str(path))

    assert source.status == READY
    assert source.kind == FILE
    assert source.title == "util.py"
    assert source.metadata.size == path.stat().st_size
    assert [c.kind for c in source.chunks] == [CODE, CODE]
    assert source.chunks[1].metadata.start_line == 3


def test_reads_markdown_as_documentation(tmp_path: Path):
    path = tmp_path / "README.md"
    path.write_text("# Intro\nhello\n# Usage\nworld\n", encoding="utf-8")

    source = FileReader().fetch(str(path))

    assert source.metadata.file_type == "text/markdown"
    assert [c.content for c in source.chunks] == ["# Intro\nhello", "# Usage\nworld"]


def test_invalid_utf8_is_replaced(tmp_path: Path):
    path = tmp_path / "latin.txt"
    path.write_bytes(b"caf\xe9 au lait")

    source = FileReader().fetch(str(path))

    assert source.chunks[0].content == "caf\ufffd au lait"


def test_missing_file_fails(tmp_path: Path):
    with pytest.raises(IngestError, match="does not exist") as excinfo:
        FileReader().fetch(str(tmp_path / "nope.txt"))

    assert excinfo.value.source.status == ERROR


def test_oversized_file_fails(tmp_path: Path):
    path = tmp_path / "huge.txt"
    path.write_bytes(b"a" * (5 * 1024 * 1024 + 1))

    with pytest.raises(IngestError, match="5 MB"):
        FileReader().fetch(str(path))


def test_empty_file_is_ready_without_chunks(tmp_path: Path):
    path = tmp_path / "empty.txt"
    path.write_text("", encoding="utf-8")

    source = FileReader().fetch(str(path))

    assert source.status == READY
    assert source.chunks == []


def test_pdf_text_is_extracted(tmp_path: Path):
    path = tmp_path / "spec.pdf"
    path.write_bytes(b"%PDF-1.4")
    with patch("devtoolbox.ingest.files._extract_pdf_text", return_value="Page one\n\nPage two"):
        source = FileReader().fetch(str(path))

    assert source.metadata.file_type == "application/pdf"
    assert source.chunks[0].content == "Page one\n\nPage two"
    assert source.chunks[0].kind == TEXT


def test_corrupt_pdf_fails(tmp_path: Path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    with pytest.raises(IngestError, match="Could not read PDF"):
        FileReader().fetch(str(path))


def test_docx_gets_placeholder(tmp_path: Path):
    path = tmp_path / "report.docx"
    path.write_bytes(b"x" * 2048)

    source = FileReader().fetch(str(path))

    assert source.chunks[0].content == "DOCX file: report.docx (2KB)"


def test_max_chunks_is_applied(tmp_path: Path):
    path = tmp_path / "many.txt"
    path.write_text("\n\n".join("p" * 40 for _ in range(20)), encoding="utf-8")

    source = FileReader(chunk_size=10, max_chunks=3).fetch(str(path))

    assert len(source.chunks) == 3
