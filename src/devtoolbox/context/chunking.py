"""Content-kind dispatch to the chunking strategies."""

from __future__ import annotations

from devtoolbox.context.base import CHUNK_SIZE, BaseChunker
from devtoolbox.context.code import CodeChunker
from devtoolbox.context.markdown import MarkdownChunker
from devtoolbox.context.models import CODE, CONTENT_KINDS, DOCUMENTATION, ContextChunk
from devtoolbox.context.paragraph import ParagraphChunker


def select_chunker(content: str, kind: str, chunk_size: int = CHUNK_SIZE) -> BaseChunker:
    """Pick the strategy for *kind*.

    ``documentation`` only gets the Markdown strategy when the content has at
    least one ``#``; otherwise it falls back to paragraphs, like ``text``.
    """
    if kind not in CONTENT_KINDS:
        raise ValueError(f"Unknown content kind: {kind!r}")
    if kind == CODE:
        return CodeChunker(chunk_size=chunk_size)
    if kind == DOCUMENTATION and "#" in content:
        return MarkdownChunker(chunk_size=chunk_size)
    return ParagraphChunker(chunk_size=chunk_size, kind=kind)


def chunk(
    content: str,
    source: str,
    kind: str,
    chunk_size: int = CHUNK_SIZE,
) -> list[ContextChunk]:
    """Split *content* from *source* into chunks according to *kind*.

    Returns an empty list for blank content.
    """
    if not content.strip():
        return []
    return select_chunker(content, kind, chunk_size).chunk(content, source)
