"""Code chunker: declaration-aware line splitting with a size cap."""

from __future__ import annotations

import math

from devtoolbox.context.base import BaseChunker
from devtoolbox.context.languages import detect_language, is_code_boundary
from devtoolbox.context.models import CODE, ChunkMetadata, ContextChunk


class CodeChunker(BaseChunker):
    """Split source code into chunks on top-level declarations.

    Strategy:
    - Walk the content line by line, accumulating a buffer.
    - A line that opens a declaration for the detected language (see
      ``languages.is_code_boundary``) closes the current buffer, so each
      declaration starts a new chunk.
    - A buffer whose estimate exceeds ``chunk_size`` is closed right after the
      line that pushed it over.
    - Blank buffers are dropped; the trailing buffer is always flushed.

    Line numbers are 1-based and inclusive, and point at the first and last
    non-blank line of the chunk.
    """

    def chunk(self, content: str, source: str) -> list[ContextChunk]:
        if not content.strip():
            return []

        language = detect_language(source)
        chunks: list[ContextChunk] = []
        buffer: list[str] = []
        buffer_chars = 0
        start_line = 1

        for line_no, line in enumerate(content.split("\n"), start=1):
            if buffer and is_code_boundary(line, language):
                self._flush(chunks, buffer, start_line, source, language)
                buffer = []
                buffer_chars = 0
                start_line = line_no

            buffer.append(line)
            buffer_chars += len(line) + 1

            if math.ceil(buffer_chars / 4) > self.chunk_size:
                self._flush(chunks, buffer, start_line, source, language)
                buffer = []
                buffer_chars = 0
                start_line = line_no + 1

        if buffer:
            self._flush(chunks, buffer, start_line, source, language)
        return chunks

    def _flush(
        self,
        chunks: list[ContextChunk],
        buffer: list[str],
        start_line: int,
        source: str,
        language: str,
    ) -> None:
        first = next((i for i, ln in enumerate(buffer) if ln.strip()), None)
        if first is None:
            return
        last = max(i for i, ln in enumerate(buffer) if ln.strip())
        metadata = ChunkMetadata(
            source=source,
            kind=CODE,
            language=language,
            file_path=source,
            start_line=start_line + first,
            end_line=start_line + last,
        )
        chunk = self._make_chunk(_join(buffer), metadata)
        if chunk is not None:
            chunks.append(chunk)


def _join(lines: list[str]) -> str:
    return "".join(line + "\n" for line in lines)
