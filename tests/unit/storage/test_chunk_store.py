from __future__ import annotations

import pytest

from docrecall.errors import StorageFailure
from docrecall.storage import ChunkStore
from docrecall.storage.schema import SCHEMA_VERSION


def _fts_count(store: ChunkStore, term: str) -> int:
    with store.connection() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM chunks_fts WHERE chunks_fts MATCH ?", (f'"{term}"',)
        ).fetchone()[0]


def test_initialize_records_schema_version(store: ChunkStore) -> None:
    assert store.get_meta("schema_version") == str(SCHEMA_VERSION)
    assert store.get_meta("created_at")
    assert store.get_meta("missing") is None


def test_initialize_is_repeatable(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("c1", "persistent content"))

    store.initialize()

    assert store.get_chunk("c1") is not None
    assert len(store.search("persistent")) == 1


def test_save_and_get_round_trip_structure(store: ChunkStore, chunk_factory) -> None:
    chunk = chunk_factory("c1", "body text", name="Setup")
    chunk.section_path = ["Guide", "Setup"]
    chunk.section_level = 2
    chunk.metadata = {"source": "upload"}
    store.save_chunk(chunk)

    loaded = store.get_chunk("c1")

    assert loaded is not None
    assert loaded.section_path == ["Guide", "Setup"]
    assert loaded.section_level == 2
    assert loaded.metadata == {"source": "upload"}
    assert loaded.name == "Setup"
    assert store.get_chunk("nope") is None


def test_search_ranks_by_bm25_and_activation(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("c1", "kernel kernel kernel tuning"),
            chunk_factory("c2", "kernel notes and many other words about something else"),
            chunk_factory("f1", "gardening calendar"),
            chunk_factory("f2", "sourdough starter"),
            chunk_factory("f3", "tide tables"),
        ]
    )

    hits = store.search("kernel")

    assert [hit.chunk.chunk_id for hit in hits] == ["c1", "c2"]
    for hit in hits:
        assert hit.bm25 > 0
        assert hit.activation == 0.0
        assert hit.rank == pytest.approx(hit.bm25 + 2.0 * hit.activation)


def test_accessed_chunk_gets_activation_boost(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("c1", "kernel tuning"),
            chunk_factory("c2", "kernel tuning"),
        ]
    )
    for _ in range(3):
        store.record_access("c2", "kernel")

    hits = store.search("kernel")

    assert hits[0].chunk.chunk_id == "c2"
    assert hits[0].activation > 0
    assert hits[0].rank == pytest.approx(hits[0].bm25 + 2.0 * hits[0].activation)
    assert hits[0].rank > hits[1].rank


def test_activation_weight_is_configurable(tmp_path, chunk_factory) -> None:
    store = ChunkStore(tmp_path / "weighted.db", activation_weight=0.0)
    store.initialize()
    store.save_chunk(chunk_factory("c1", "kernel tuning"))
    store.record_access("c1", "kernel")

    hit = store.search("kernel")[0]

    assert hit.activation > 0
    assert hit.rank == pytest.approx(hit.bm25)


def test_decay_override_does_not_write(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("c1", "kernel tuning"))
    store.record_access("c1", "kernel")
    cached = store.search("kernel")[0].activation

    overridden = store.search("kernel", decay=0.9)[0].activation

    assert overridden > 0
    assert store.search("kernel")[0].activation == pytest.approx(cached)
    assert len(store.access_history("c1")) == 1


def test_search_respects_limit(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks([chunk_factory(f"c{i}", f"widget number {i}") for i in range(8)])

    assert len(store.search("widget", limit=3)) == 3
    assert store.search("widget", limit=0) == []


def test_stop_word_only_query_returns_nothing(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("c1", "the and of what"))

    assert store.search("the and of") == []


def test_punctuation_in_query_is_harmless(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("c1", "proxy configuration"))

    hits = store.search('proxy "AND" (NEAR*) -:')

    assert [hit.chunk.chunk_id for hit in hits] == ["c1"]


def test_role_filter_isolates_content(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("pub", "budget plan", role="public"),
            chunk_factory("adm", "budget plan", role="admin"),
            chunk_factory("alice", "budget plan", role="user:alice"),
            chunk_factory("bob", "budget plan", role="user:bob"),
        ]
    )

    visible = {hit.chunk.chunk_id for hit in store.search("budget", roles=["public", "user:alice"])}
    everything = {hit.chunk.chunk_id for hit in store.search("budget")}

    assert visible == {"pub", "alice"}
    assert everything == {"pub", "adm", "alice", "bob"}


def test_type_filter(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("doc", "holiday schedule", type="kb"),
            chunk_factory("chat", "holiday schedule", type="conv"),
        ]
    )

    hits = store.search("holiday", types=["conv"])

    assert [hit.chunk.chunk_id for hit in hits] == ["chat"]


def test_upsert_keeps_fulltext_in_sync(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("c1", "alpha content"))
    store.record_access("c1", "alpha")

    store.save_chunk(chunk_factory("c1", "bravo content"))

    assert store.search("alpha") == []
    assert [hit.chunk.chunk_id for hit in store.search("bravo")] == ["c1"]
    assert _fts_count(store, "alpha") == 0
    assert len(store.access_history("c1")) == 1
    with store.connection() as conn:
        count = conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
        access_count = conn.execute(
            "SELECT access_count FROM chunks WHERE chunk_id = 'c1'"
        ).fetchone()[0]
    assert count == 1
    assert access_count == 1


def test_delete_by_file_removes_everything(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("a1", "lighthouse keeper", file_path="/docs/a.md"),
            chunk_factory("a2", "lighthouse lamp", file_path="/docs/a.md"),
            chunk_factory("b1", "lighthouse map", file_path="/docs/b.md"),
        ]
    )
    store.record_access("a1", "lighthouse")

    removed = store.delete_by_file("/docs/a.md")

    assert removed == 2
    assert store.get_chunk("a1") is None
    assert [hit.chunk.chunk_id for hit in store.search("lighthouse")] == ["b1"]
    assert _fts_count(store, "keeper") == 0
    with store.connection() as conn:
        orphans = conn.execute(
            "SELECT COUNT(*) FROM access_history WHERE chunk_id = 'a1'"
        ).fetchone()[0]
    assert orphans == 0


def test_delete_by_unknown_file_is_zero(store: ChunkStore) -> None:
    assert store.delete_by_file("/nowhere.md") == 0


def test_replace_file_swaps_chunks(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("old", "outdated section", file_path="/docs/a.md"))

    removed = store.replace_file(
        "/docs/a.md", [chunk_factory("new", "current section", file_path="/docs/a.md")]
    )

    assert removed == 1
    assert store.get_chunk("old") is None
    assert store.get_chunk("new") is not None


def test_replace_file_is_atomic(store: ChunkStore, chunk_factory) -> None:
    store.save_chunk(chunk_factory("old", "outdated section", file_path="/docs/a.md"))
    bad = chunk_factory("new", "current section", file_path="/docs/a.md")
    bad.file_path = None

    with pytest.raises(StorageFailure):
        store.replace_file("/docs/a.md", [bad])

    assert store.get_chunk("old") is not None


def test_recent_by_type_newest_first(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("m1", "first", type="conv", created_at="2024-01-01T00:00:00+00:00"),
            chunk_factory("m2", "second", type="conv", created_at="2024-02-01T00:00:00+00:00"),
            chunk_factory("d1", "doc", type="kb", created_at="2024-03-01T00:00:00+00:00"),
        ]
    )

    recent = store.recent_by_type(limit=5, types=["conv"])

    assert [c.chunk_id for c in recent] == ["m2", "m1"]
    assert [c.chunk_id for c in store.recent_by_type(limit=1)] == ["d1"]


def test_stats(store: ChunkStore, chunk_factory) -> None:
    store.save_chunks(
        [
            chunk_factory("a1", "one", file_path="/docs/a.md"),
            chunk_factory("a2", "two", file_path="/docs/a.md"),
            chunk_factory("m1", "three", type="conv", file_path="memory/chats/7"),
        ]
    )

    assert store.get_stats() == {
        "total_chunks": 3,
        "by_type": {"kb": 2, "conv": 1},
        "indexed_files": 2,
    }


def test_unopenable_store_raises_storage_failure(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = ChunkStore(blocker / "documents.db")

    with pytest.raises(StorageFailure):
        store.get_stats()
