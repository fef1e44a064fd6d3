"""Fetcher dispatch by source kind, plus in-place refresh."""

from __future__ import annotations

from devtoolbox.config import ToolboxConfig
from devtoolbox.context.models import FILE, GITHUB, URL, ContextSource
from devtoolbox.ingest.base import BaseFetcher
from devtoolbox.ingest.files import FileReader
from devtoolbox.ingest.github import GitHubFetcher
from devtoolbox.ingest.web import WebFetcher


def make_fetcher(kind: str, config: ToolboxConfig | None = None) -> BaseFetcher:
    """Return the configured fetcher for a source *kind*."""
    cfg = config or ToolboxConfig()
    chunk_size = cfg.context.chunk_size
    max_chunks = cfg.context.max_chunks_per_source

    if kind == GITHUB:
        return GitHubFetcher(
            chunk_size=chunk_size,
            max_chunks=max_chunks,
            api_url=cfg.github.api_url,
            max_files=cfg.github.max_files,
            max_file_bytes=cfg.github.max_file_bytes,
        )
    if kind == URL:
        return WebFetcher(chunk_size=chunk_size, max_chunks=max_chunks)
    if kind == FILE:
        return FileReader(chunk_size=chunk_size, max_chunks=max_chunks)
    raise ValueError(f"Unsupported source kind: {kind!r}")


def ingest(kind: str, locator: str, config: ToolboxConfig | None = None) -> ContextSource:
    """Fetch *locator* as a new source of *kind*.

    Raises:
        ValueError: Invalid locator.
        IngestError: Fetch failed; ``exc.source`` carries the error status.
    """
    return make_fetcher(kind, config).fetch(locator)


def refresh_source(
    source: ContextSource, config: ToolboxConfig | None = None
) -> ContextSource:
    """Re-fetch *source*; the returned source keeps the same id."""
    return make_fetcher(source.kind, config).fetch(source.locator, source_id=source.id)
