"""File reader: local documents as context sources.

Content kind by file:
  known source-code extension  → code
  .md / .markdown / text/markdown → documentation
  anything else                → text

PDF text is extracted page by page with pypdf. DOCX is not parsed; the
source gets a one-line placeholder so it still shows up in context.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

from devtoolbox.context.chunking import chunk
from devtoolbox.context.languages import CODE_EXTENSIONS
from devtoolbox.context.models import (
    CODE,
    DOCUMENTATION,
    FILE,
    TEXT,
    ContextChunk,
    ContextSource,
    SourceMetadata,
)
from devtoolbox.ingest.base import BaseFetcher

_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_PDF_MIME = "application/pdf"
_DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
# Types the platform mimetypes table may lack or get wrong.
_EXPLICIT_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".pdf": _PDF_MIME,
    ".docx": _DOCX_MIME,
}


def guess_mime_type(path: Path) -> str:
    explicit = _EXPLICIT_TYPES.get(path.suffix.lower())
    if explicit:
        return explicit
    mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


def detect_content_kind(path: Path, mime_type: str) -> str:
    """Map a file to the chunking strategy that suits it."""
    ext = path.suffix.lower().lstrip(".")
    if ext in CODE_EXTENSIONS:
        return CODE
    if "text/markdown" in mime_type:
        return DOCUMENTATION
    return TEXT


class FileReader(BaseFetcher):
    """Read a local file into a ``file`` source."""

    def _new_source(self, locator: str) -> ContextSource:
        path = Path(locator)
        return ContextSource(
            kind=FILE,
            locator=locator,
            title=path.name or locator,
            metadata=SourceMetadata(file_type=guess_mime_type(path)),
        )

    def _load(self, source: ContextSource) -> list[ContextChunk]:
        path = Path(source.locator)
        if not path.is_file():
            raise ValueError(f"File does not exist: {source.locator}")
        size = path.stat().st_size
        source.metadata.size = size
        if size > _MAX_BYTES:
            raise ValueError(
                f"File exceeds {_MAX_BYTES // (1024 * 1024)} MB limit: '{source.locator}'"
            )

        mime_type = source.metadata.file_type or guess_mime_type(path)
        content = self._read(path, mime_type, size)
        return chunk(
            content,
            source.locator,
            detect_content_kind(path, mime_type),
            chunk_size=self.chunk_size,
        )

    @staticmethod
    def _read(path: Path, mime_type: str, size: int) -> str:
        if mime_type == _PDF_MIME:
            return _extract_pdf_text(path)
        if mime_type == _DOCX_MIME:
            return f"DOCX file: {path.name} ({round(size / 1024)}KB)"
        return path.read_text(encoding="utf-8", errors="replace")


def _extract_pdf_text(path: Path) -> str:
    """Extract all page text from the PDF at *path*; blank pages are skipped."""
    try:
        reader = pypdf.PdfReader(path)
        parts: list[str] = []
        for page in reader.pages:
            page_text = (page.extract_text() or "").strip()
            if page_text:
                parts.append(page_text)
    except PyPdfError as exc:
        raise ValueError(f"Could not read PDF '{path.name}': {exc}") from exc
    return "\n\n".join(parts)
