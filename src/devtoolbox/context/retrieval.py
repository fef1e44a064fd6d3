"""Keyword-overlap relevance ranking with greedy token-budget selection.

Score:
  base(chunk) = sum over query words of occurrences of the word in the chunk
  score       = base * 1.5   if chunk is code and the query mentions a code word
              = base         otherwise

Selection walks chunks best-first and stops at the first chunk that would
push the running total over the budget. There is no minimum score.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from devtoolbox.context.models import CODE, ContextChunk, ContextSource

DEFAULT_MAX_TOKENS = 4000
CODE_BOOST = 1.5
CODE_QUERY_WORDS: frozenset[str] = frozenset(
    ["function", "class", "method", "variable", "import", "export"]
)


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk together with its relevance score and owning source."""

    chunk: ContextChunk
    score: float
    source_id: str


def query_words(query: str) -> list[str]:
    return query.lower().split()


def score_chunk(chunk: ContextChunk, words: list[str]) -> float:
    """Relevance of *chunk* to the lower-cased *words*.

    Occurrences are counted as plain substrings, case-insensitively and
    without word boundaries ("port" matches "import").
    """
    content = chunk.content.lower()
    score: float = sum(content.count(word) for word in words)
    if chunk.kind == CODE and any(word in CODE_QUERY_WORDS for word in words):
        score *= CODE_BOOST
    return score


def rank_chunks(query: str, sources: Iterable[ContextSource]) -> list[ScoredChunk]:
    """Score every chunk of every ready source, best first.

    The sort is stable: equal scores keep source order, then chunk order.
    """
    words = query_words(query)
    scored = [
        ScoredChunk(chunk=c, score=score_chunk(c, words), source_id=s.id)
        for s in sources
        if s.is_ready
        for c in s.chunks
    ]
    scored.sort(key=lambda sc: sc.score, reverse=True)
    return scored


def apply_token_budget(
    ranked: Iterable[ScoredChunk], max_tokens: int
) -> tuple[list[ContextChunk], int]:
    """Take chunks in order until the next one would exceed *max_tokens*.

    Returns (selected, total_tokens).
    """
    selected: list[ContextChunk] = []
    total = 0
    for sc in ranked:
        if total + sc.chunk.tokens > max_tokens:
            break
        selected.append(sc.chunk)
        total += sc.chunk.tokens
    return selected, total


def select_relevant_chunks(
    query: str,
    sources: Iterable[ContextSource],
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> list[ContextChunk]:
    """Return the budgeted, relevance-ordered chunks to attach to *query*.

    Chunks of sources that are still loading or failed are never returned.
    """
    selected, _ = apply_token_budget(rank_chunks(query, sources), max_tokens)
    return selected
