# --- TRADEMARK NOTICE ---
# Lightcap (EUIPO. Reg. 019172085) — Contact: alpay@lightcap.ai
# Do not remove this notice from source distributions.

from __future__ import annotations

import json
from pathlib import Path

import pytest

from markov_engine.cache import (
    CacheEntry,
    CacheManager,
    CachePayload,
    FileCacheStore,
    MemoryCacheStore,
    sample_lines,
)
from markov_engine.config import CacheConfig
from markov_engine.errors import FailureKind, StorageQuotaExceededError

KEY = "markov-corpus-cache"


def _corpus(line_count: int, width: int = 79) -> str:
    return "\n".join(f"{index:07d} " + "a" * (width - 8) for index in range(line_count))


def _manager(clock, limit: int = 5 * 1024 * 1024, store=None) -> CacheManager:
    return CacheManager(
        store=store if store is not None else MemoryCacheStore(),
        config=CacheConfig(size_limit_bytes=limit),
        clock=clock,
    )


def test_put_then_get_round_trips_text(clock) -> None:
    manager = _manager(clock)
    payload = CachePayload(text="line one\nline two", stats={"lines": 2, "characters": 17})
    result = manager.put(KEY, payload)
    assert result.stored
    assert result.tier == "full"
    entry = manager.get(KEY, max_age_hours=1000)
    assert entry is not None
    assert entry.text == payload.text
    assert entry.stats == payload.stats
    assert entry.timestamp == clock.now


def test_get_missing_key_is_a_miss(clock) -> None:
    assert _manager(clock).get(KEY, 24) is None


def test_stale_entry_is_a_miss_and_evicted(clock) -> None:
    store = MemoryCacheStore()
    old = CacheEntry(text="well formed text", stats={"lines": 1}, timestamp=clock.now - 25 * 60 * 60)
    store.set(KEY, old.serialize())
    manager = _manager(clock, store=store)
    assert manager.get(KEY, max_age_hours=24) is None
    assert store.get(KEY) is None


def test_entry_expires_exactly_at_ttl(clock) -> None:
    manager = _manager(clock)
    manager.put(KEY, CachePayload(text="fresh"))
    clock.advance(23.5)
    assert manager.get(KEY, 24) is not None
    clock.advance(0.5)
    assert manager.get(KEY, 24) is None


@pytest.mark.parametrize("raw", ["not json", json.dumps(["list"]), json.dumps({"text": 3, "timestamp": 1})])
def test_corrupt_entry_is_discarded(clock, raw: str) -> None:
    store = MemoryCacheStore()
    store.set(KEY, raw)
    assert _manager(clock, store=store).get(KEY, 24) is None
    assert store.keys() == []


def test_sample_lines_keeps_every_nth_line() -> None:
    assert sample_lines("0\n1\n2\n3\n4\n5\n6\n7\n8", 4) == "0\n4\n8"


def test_oversized_payload_is_stored_at_quarter_tier(clock) -> None:
    text = _corpus(100)
    manager = _manager(clock, limit=5000)
    result = manager.put(KEY, CachePayload(text=text, stats={"lines": 100, "characters": len(text)}))
    assert result.stored
    assert result.tier == "every-4"
    assert result.size_bytes <= 5000
    entry = manager.get(KEY, 24)
    assert entry is not None
    assert entry.text == sample_lines(text, 4)
    assert entry.stats == {"lines": 25, "characters": len(entry.text)}


def test_payload_falls_through_to_tenth_tier(clock) -> None:
    text = _corpus(100)
    manager = _manager(clock, limit=1000)
    result = manager.put(KEY, CachePayload(text=text, stats={"lines": 100}))
    assert result.tier == "every-10"
    entry = manager.get(KEY, 24)
    assert entry is not None
    assert entry.text.split("\n") == text.split("\n")[::10]
    assert entry.stats["lines"] == 10


def test_megabyte_scale_corpus_degrades_to_quarter_tier(clock) -> None:
    text = _corpus(100_000)
    assert len(text) > 7_900_000
    manager = _manager(clock)
    result = manager.put(KEY, CachePayload(text=text, stats={"lines": 100_000}))
    assert result.stored
    assert result.tier == "every-4"
    assert 1_900_000 < result.size_bytes <= 5 * 1024 * 1024


def test_put_reports_best_effort_failure(clock) -> None:
    store = MemoryCacheStore()
    manager = _manager(clock, limit=100, store=store)
    result = manager.put(KEY, CachePayload(text=_corpus(100)))
    assert not result.stored
    assert result.failure is FailureKind.STORAGE_QUOTA_EXCEEDED
    assert store.keys() == []


def test_store_quota_triggers_stale_eviction_tier(clock) -> None:
    store = MemoryCacheStore(quota_bytes=1500)
    stale = CacheEntry(text="x" * 950, timestamp=clock.now - 48 * 60 * 60)
    store.set("old-cache", stale.serialize())
    manager = _manager(clock, store=store)
    result = manager.put(KEY, CachePayload(text=_corpus(100), stats={"lines": 100}))
    assert result.stored
    assert result.tier == "evict-then-every-10"
    assert store.keys() == [KEY]


def test_memory_store_enforces_quota() -> None:
    store = MemoryCacheStore(quota_bytes=10)
    store.set("a", "12345")
    store.set("a", "1234567890")
    with pytest.raises(StorageQuotaExceededError):
        store.set("b", "1")


def test_evict_stale_removes_old_and_unreadable_entries(clock) -> None:
    store = MemoryCacheStore()
    store.set("fresh", CacheEntry(text="f", timestamp=clock.now).serialize())
    store.set("old", CacheEntry(text="o", timestamp=clock.now - 30 * 60 * 60).serialize())
    store.set("junk", "{")
    manager = _manager(clock, store=store)
    assert manager.evict_stale() == 2
    assert store.keys() == ["fresh"]


def test_storage_usage_and_evict(clock) -> None:
    manager = _manager(clock)
    manager.put(KEY, CachePayload(text="abc"))
    assert manager.storage_usage() == len(manager.store.get(KEY).encode("utf-8"))
    manager.evict(KEY)
    assert manager.storage_usage() == 0


def test_file_store_persists_entries(tmp_path: Path, clock) -> None:
    store = FileCacheStore(tmp_path / "cache")
    manager = _manager(clock, store=store)
    manager.put(KEY, CachePayload(text="persisted text", stats={"lines": 1}))
    reopened = _manager(clock, store=FileCacheStore(tmp_path / "cache"))
    entry = reopened.get(KEY, 24)
    assert entry is not None
    assert entry.text == "persisted text"
    assert store.keys() == [KEY]
    store.remove(KEY)
    assert store.get(KEY) is None
    store.remove(KEY)


def test_file_store_quota(tmp_path: Path) -> None:
    store = FileCacheStore(tmp_path, quota_bytes=4)
    with pytest.raises(StorageQuotaExceededError):
        store.set("k", "too long")


def test_undecodable_file_entry_is_a_miss_and_removed(tmp_path: Path, clock) -> None:
    store = FileCacheStore(tmp_path)
    (tmp_path / f"{KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
    manager = _manager(clock, store=store)
    assert manager.storage_usage() == 0
    assert manager.get(KEY) is None
    assert store.keys() == []


def test_evict_stale_counts_undecodable_files(tmp_path: Path, clock) -> None:
    store = FileCacheStore(tmp_path)
    (tmp_path / "broken.json").write_bytes(b"\xff\xfe")
    assert _manager(clock, store=store).evict_stale() == 1
    assert store.keys() == []


def test_put_reports_failure_when_store_cannot_write(tmp_path: Path, clock) -> None:
    blocker = tmp_path / "cache"
    blocker.write_text("not a directory", encoding="utf8")
    result = _manager(clock, store=FileCacheStore(blocker)).put(KEY, CachePayload(text="abc"))
    assert result.stored is False
    assert result.failure is FailureKind.STORAGE_QUOTA_EXCEEDED


def test_peek_returns_stale_entry_without_evicting(clock) -> None:
    manager = _manager(clock)
    manager.put(KEY, CachePayload(text="old text"))
    clock.advance(48)
    entry = manager.peek(KEY)
    assert entry is not None
    assert entry.text == "old text"
    assert manager.store.keys() == [KEY]
    assert manager.peek("missing") is None
