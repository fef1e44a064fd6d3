"""Base chunker interface and the shared token estimator."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from devtoolbox.context.models import ChunkMetadata, ContextChunk

CHUNK_SIZE = 1000  # estimated tokens


def estimate_tokens(text: str) -> int:
    """Approximate token count: ``ceil(len(text) / 4)``.

    Deterministic and dependency-free. Not an exact match for any model's
    tokenizer; treat it as a heuristic.
    """
    return math.ceil(len(text) / 4)


class BaseChunker(ABC):
    """Abstract base for the content-kind chunking strategies.

    Subclasses implement ``chunk()`` and build their output with
    ``_make_chunk()`` so every chunk's ``tokens`` is computed the same way.
    """

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.chunk_size = chunk_size

    @abstractmethod
    def chunk(self, content: str, source: str) -> list[ContextChunk]:
        """Split *content* into ContextChunk objects.

        Args:
            content: Full decoded text of the document.
            source: Locator of the document (URL or file path).

        Returns:
            Ordered list of chunks; empty for blank content.
        """

    def exceeds_budget(self, text: str) -> bool:
        return estimate_tokens(text) > self.chunk_size

    @staticmethod
    def _make_chunk(text: str, metadata: ChunkMetadata) -> ContextChunk | None:
        """Strip *text* and wrap it; returns None for blank text."""
        content = text.strip()
        if not content:
            return None
        return ContextChunk(
            content=content,
            metadata=metadata,
            tokens=estimate_tokens(content),
        )
