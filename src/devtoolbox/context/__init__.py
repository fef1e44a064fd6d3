"""Context engine: chunk ingested text and pick the relevant slice for a query."""

from devtoolbox.context.base import CHUNK_SIZE, BaseChunker, estimate_tokens
from devtoolbox.context.chunking import chunk, select_chunker
from devtoolbox.context.code import CodeChunker
from devtoolbox.context.markdown import MarkdownChunker
from devtoolbox.context.models import (
    MAX_CHUNKS_PER_SOURCE,
    ChunkMetadata,
    ContextChunk,
    ContextSource,
    SourceMetadata,
)
from devtoolbox.context.paragraph import ParagraphChunker
from devtoolbox.context.retrieval import (
    DEFAULT_MAX_TOKENS,
    ScoredChunk,
    rank_chunks,
    score_chunk,
    select_relevant_chunks,
)

__all__ = [
    "CHUNK_SIZE",
    "DEFAULT_MAX_TOKENS",
    "MAX_CHUNKS_PER_SOURCE",
    "BaseChunker",
    "ChunkMetadata",
    "CodeChunker",
    "ContextChunk",
    "ContextSource",
    "MarkdownChunker",
    "ParagraphChunker",
    "ScoredChunk",
    "SourceMetadata",
    "chunk",
    "estimate_tokens",
    "rank_chunks",
    "score_chunk",
    "select_chunker",
    "select_relevant_chunks",
]
