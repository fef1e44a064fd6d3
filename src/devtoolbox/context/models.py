"""Domain models for context sources and their chunks."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

# Source kinds
GITHUB = "github"
URL = "url"
FILE = "file"
SOURCE_KINDS: frozenset[str] = frozenset([GITHUB, URL, FILE])

# Source lifecycle
LOADING = "loading"
READY = "ready"
ERROR = "error"
SOURCE_STATUSES: frozenset[str] = frozenset([LOADING, READY, ERROR])

# Content kinds
CODE = "code"
DOCUMENTATION = "documentation"
TEXT = "text"
CONTENT_KINDS: frozenset[str] = frozenset([CODE, DOCUMENTATION, TEXT])

MAX_CHUNKS_PER_SOURCE = 50


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ChunkMetadata:
    """Provenance of a chunk.

    Attributes:
        source: Locator of the source the chunk was cut from.
        kind: Content kind: 'code', 'documentation' or 'text'.
        language: Detected language (code chunks only).
        file_path: File the chunk came from (code chunks only).
        start_line: 1-based first line (code chunks only).
        end_line: 1-based last line, inclusive (code chunks only).
    """

    source: str
    kind: str
    language: str | None = None
    file_path: str | None = None
    start_line: int | None = None
    end_line: int | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> ChunkMetadata:
        return cls(
            source=str(data.get("source", "")),
            kind=str(data.get("kind", TEXT)),
            language=data.get("language"),
            file_path=data.get("file_path"),
            start_line=data.get("start_line"),
            end_line=data.get("end_line"),
        )


@dataclass(frozen=True)
class ContextChunk:
    """One bounded, immutable segment of ingested content."""

    content: str
    metadata: ChunkMetadata
    tokens: int
    id: str = field(default_factory=new_id)

    @property
    def kind(self) -> str:
        return self.metadata.kind


@dataclass
class SourceMetadata:
    file_type: str | None = None
    size: int | None = None
    last_fetched: str | None = None  # ISO-8601, UTC

    def to_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> SourceMetadata:
        return cls(
            file_type=data.get("file_type"),
            size=data.get("size"),
            last_fetched=data.get("last_fetched"),
        )


@dataclass
class ContextSource:
    """One ingested origin (repository, web page or file) owning its chunks.

    A source starts in ``loading``; ingestion moves it to ``ready`` via
    :meth:`mark_ready` or to ``error`` via :meth:`mark_failed`. A refresh keeps
    the ``id`` and replaces ``chunks`` wholesale.
    """

    kind: str
    locator: str
    title: str
    status: str = LOADING
    chunks: list[ContextChunk] = field(default_factory=list)
    metadata: SourceMetadata = field(default_factory=SourceMetadata)
    error: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.kind not in SOURCE_KINDS:
            raise ValueError(f"Unknown source kind: {self.kind!r}")
        if self.status not in SOURCE_STATUSES:
            raise ValueError(f"Unknown source status: {self.status!r}")

    @property
    def is_ready(self) -> bool:
        return self.status == READY

    @property
    def total_tokens(self) -> int:
        return sum(c.tokens for c in self.chunks)

    def mark_ready(
        self, chunks: list[ContextChunk], limit: int = MAX_CHUNKS_PER_SOURCE
    ) -> None:
        """Store the first *limit* chunks and flip to ready."""
        self.chunks = list(chunks[: min(limit, MAX_CHUNKS_PER_SOURCE)])
        self.status = READY
        self.error = None
        self.metadata.last_fetched = _utcnow()

    def mark_failed(self, message: str) -> None:
        self.chunks = []
        self.status = ERROR
        self.error = message


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
