"""Base fetcher interface for all context source types."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from devtoolbox.context.base import CHUNK_SIZE
from devtoolbox.context.models import MAX_CHUNKS_PER_SOURCE, ContextChunk, ContextSource

logger = logging.getLogger(__name__)


class IngestError(RuntimeError):
    """Raised when a source could not be fetched or read.

    ``source`` is the failed ContextSource (status ``error``) so the caller
    can persist the failure.
    """

    def __init__(self, message: str, source: ContextSource) -> None:
        super().__init__(message)
        self.source = source


class BaseFetcher(ABC):
    """Abstract base for the repository, web and file producers.

    ``fetch()`` owns the source lifecycle: it creates the source in
    ``loading``, calls ``_load()`` and then marks it ``ready`` (chunks capped
    at ``max_chunks``) or ``error``. Subclasses only implement
    ``_new_source()`` and ``_load()``.
    """

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        max_chunks: int = MAX_CHUNKS_PER_SOURCE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 1 <= max_chunks <= MAX_CHUNKS_PER_SOURCE:
            raise ValueError(f"max_chunks must be between 1 and {MAX_CHUNKS_PER_SOURCE}")
        self.chunk_size = chunk_size
        self.max_chunks = max_chunks

    def fetch(self, locator: str, source_id: str | None = None) -> ContextSource:
        """Ingest *locator* and return a ready source.

        Args:
            locator: URL or file path.
            source_id: Reuse an existing id (refresh). A fresh id otherwise.

        Raises:
            ValueError: If *locator* is not valid for this fetcher.
            IngestError: If fetching or reading failed.
        """
        source = self._new_source(locator)
        if source_id is not None:
            source.id = source_id

        try:
            chunks = self._load(source)
        except (ValueError, RuntimeError, OSError) as exc:
            source.mark_failed(str(exc))
            logger.warning("Ingest failed for %s: %s", source.title, exc)
            raise IngestError(str(exc), source) from exc

        source.mark_ready(chunks, limit=self.max_chunks)
        if len(chunks) > len(source.chunks):
            logger.info(
                "%s: kept %d of %d chunks", source.title, len(source.chunks), len(chunks)
            )
        return source

    @abstractmethod
    def _new_source(self, locator: str) -> ContextSource:
        """Return a ``loading`` source for *locator*; raise ValueError if invalid."""

    @abstractmethod
    def _load(self, source: ContextSource) -> list[ContextChunk]:
        """Fetch the content of *source* and return its chunks."""
