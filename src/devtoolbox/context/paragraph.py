"""Paragraph chunker: greedy packing of blank-line separated paragraphs."""

from __future__ import annotations

import re

from devtoolbox.context.base import CHUNK_SIZE, BaseChunker, estimate_tokens
from devtoolbox.context.models import CONTENT_KINDS, TEXT, ChunkMetadata, ContextChunk

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


class ParagraphChunker(BaseChunker):
    """Pack consecutive paragraphs into chunks of at most ``chunk_size`` tokens.

    A paragraph is flushed into a new buffer when adding it to the current one
    would exceed the budget. A single paragraph larger than the budget is
    emitted whole; it is never subdivided.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE, kind: str = TEXT) -> None:
        super().__init__(chunk_size=chunk_size)
        if kind not in CONTENT_KINDS:
            raise ValueError(f"Unknown content kind: {kind!r}")
        self.kind = kind

    def chunk(self, content: str, source: str) -> list[ContextChunk]:
        if not content.strip():
            return []

        metadata = ChunkMetadata(source=source, kind=self.kind)
        chunks: list[ContextChunk] = []
        current = ""

        for paragraph in _PARAGRAPH_SPLIT_RE.split(content):
            if estimate_tokens(current + paragraph) > self.chunk_size:
                chunk = self._make_chunk(current, metadata)
                if chunk is not None:
                    chunks.append(chunk)
                current = paragraph
            else:
                current += ("\n\n" if current else "") + paragraph

        chunk = self._make_chunk(current, metadata)
        if chunk is not None:
            chunks.append(chunk)
        return chunks
