"""Tests for Repository: source upsert, chunk replacement, lookups, cascade."""

from __future__ import annotations

import sqlite3

import pytest

from devtoolbox.context.models import (
    CODE,
    ERROR,
    FILE,
    READY,
    URL,
    ChunkMetadata,
    ContextChunk,
    ContextSource,
    SourceMetadata,
)
from devtoolbox.db.repository import Repository


def _chunk(content: str, **meta) -> ContextChunk:
    return ContextChunk(
        content=content,
        metadata=ChunkMetadata(source="/p/a.py", kind=CODE, **meta),
        tokens=len(content),
    )


def _ready_source(locator: str = "/p/a.py", n: int = 2) -> ContextSource:
    src = ContextSource(
        kind=FILE, locator=locator, title="a.py", metadata=SourceMetadata(file_type="text/x-python")
    )
    src.mark_ready([_chunk(f"chunk {i}", language="python", start_line=i, end_line=i) for i in range(n)])
    return src


def test_save_and_get_round_trip(repo: Repository):
    src = _ready_source()
    repo.save_source(src)

    loaded = repo.get_source(src.id)

    assert loaded is not None
    assert loaded.status == READY
    assert loaded.title == "a.py"
    assert loaded.metadata.file_type == "text/x-python"
    assert loaded.metadata.last_fetched == src.metadata.last_fetched
    assert [c.content for c in loaded.chunks] == ["chunk 0", "chunk 1"]
    assert loaded.chunks[1].metadata.start_line == 1
    assert loaded.chunks[0].id == src.chunks[0].id


def test_get_missing_returns_none(repo: Repository):
    assert repo.get_source("nope") is None


def test_save_replaces_chunks_on_refresh(repo: Repository):
    src = _ready_source(n=3)
    repo.save_source(src)

    src.mark_ready([_chunk("only")])
    repo.save_source(src)

    assert [c.content for c in repo.list_chunks(src.id)] == ["only"]
    assert len(repo.list_sources()) == 1


def test_error_source_is_stored_without_chunks(repo: Repository):
    src = ContextSource(kind=URL, locator="https://x.example", title="x.example")
    src.mark_failed("Failed to fetch URL")
    repo.save_source(src)

    loaded = repo.get_source(src.id)

    assert loaded.status == ERROR
    assert loaded.error == "Failed to fetch URL"
    assert loaded.chunks == []


def test_get_by_locator(repo: Repository):
    src = _ready_source("/p/b.py")
    repo.save_source(src)

    assert repo.get_source_by_locator("/p/b.py").id == src.id
    assert repo.get_source_by_locator("/p/zzz.py") is None


def test_find_source_by_id_prefix_and_locator(repo: Repository):
    src = _ready_source()
    repo.save_source(src)

    assert repo.find_source(src.id).id == src.id
    assert repo.find_source(src.id[:6]).id == src.id
    assert repo.find_source("/p/a.py").id == src.id
    assert repo.find_source("") is None
    assert repo.find_source("no-such") is None


def test_find_source_ambiguous_prefix(repo: Repository):
    a = _ready_source("/p/a.py")
    b = _ready_source("/p/b.py")
    a.id = "abc-1"
    b.id = "abc-2"
    repo.save_source(a)
    repo.save_source(b)

    assert repo.find_source("abc") is None
    assert repo.find_source("abc-2").locator == "/p/b.py"


def test_list_sources_by_status(repo: Repository):
    ok = _ready_source("/p/ok.py")
    bad = ContextSource(kind=FILE, locator="/p/bad.py", title="bad.py")
    bad.mark_failed("missing")
    repo.save_source(ok)
    repo.save_source(bad)

    assert [s.locator for s in repo.list_sources()] == ["/p/ok.py", "/p/bad.py"]
    assert [s.locator for s in repo.list_sources(status=READY)] == ["/p/ok.py"]


def test_delete_cascades_chunks(repo: Repository, tmp_db: sqlite3.Connection):
    src = _ready_source(n=4)
    repo.save_source(src)

    removed = repo.delete_source(src.id)

    assert removed == 4
    assert repo.get_source(src.id) is None
    assert tmp_db.execute("SELECT COUNT(*) FROM chunks").fetchone()[0] == 0


def test_total_tokens(repo: Repository):
    repo.save_source(_ready_source("/p/a.py", n=2))
    repo.save_source(_ready_source("/p/b.py", n=1))

    assert repo.total_tokens() == len("chunk 0") * 2 + len("chunk 1")


def test_chunk_requires_existing_source(tmp_db: sqlite3.Connection):
    with pytest.raises(sqlite3.IntegrityError):
        tmp_db.execute(
            "INSERT INTO chunks (id, source_id, position, content, tokens) "
            "VALUES ('c', 'missing', 0, 'x', 1)"
        )
