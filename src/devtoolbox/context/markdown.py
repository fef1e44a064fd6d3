"""Markdown chunker: heading-aware sections with paragraph fallback."""

from __future__ import annotations

import re

from devtoolbox.context.base import BaseChunker
from devtoolbox.context.models import DOCUMENTATION, ChunkMetadata, ContextChunk
from devtoolbox.context.paragraph import ParagraphChunker

# Any heading level; the marker is captured so it can be reattached.
_HEADING_SPLIT_RE = re.compile(r"^(#+\s)", re.MULTILINE)


class MarkdownChunker(BaseChunker):
    """Split Markdown on heading boundaries.

    Strategy:
    - Text before the first heading (preamble) is its own section.
    - Each heading marker plus the text up to the next heading is a section.
    - Sections over ``chunk_size`` are handed to ParagraphChunker.
    - Blank sections are dropped.
    """

    def chunk(self, content: str, source: str) -> list[ContextChunk]:
        if not content.strip():
            return []

        chunks: list[ContextChunk] = []
        for section in self._split_on_headings(content):
            if not section.strip():
                continue
            if self.exceeds_budget(section):
                sub = ParagraphChunker(chunk_size=self.chunk_size, kind=DOCUMENTATION)
                chunks.extend(sub.chunk(section, source))
                continue
            chunk = self._make_chunk(
                section, ChunkMetadata(source=source, kind=DOCUMENTATION)
            )
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    @staticmethod
    def _split_on_headings(content: str) -> list[str]:
        parts = _HEADING_SPLIT_RE.split(content)
        # parts = [preamble, marker1, body1, marker2, body2, ...]
        sections = [parts[0]]
        for i in range(1, len(parts), 2):
            sections.append(parts[i] + parts[i + 1])
        return sections
