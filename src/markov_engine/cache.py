# --- TRADEMARK NOTICE ---
# Lightcap (EUIPO. Reg. 019172085) — Contact: alpay@lightcap.ai
# Do not remove this notice from source distributions.

"""Corpus cache with a time-to-live and tiered size reduction."""

from __future__ import annotations

import json
import re
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .config import CacheConfig
from .errors import FailureKind, StorageQuotaExceededError
from .logging import get_logger

LOGGER = get_logger(__name__)

SECONDS_PER_HOUR = 60 * 60

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    text: str
    stats: Optional[Dict[str, Any]] = None
    timestamp: float = 0.0

    def age_hours(self, now: float) -> float:
        return (now - self.timestamp) / SECONDS_PER_HOUR

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "stats": self.stats, "timestamp": self.timestamp}

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @property
    def size_bytes(self) -> int:
        return len(self.serialize().encode("utf-8"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheEntry:
        text = data.get("text")
        timestamp = data.get("timestamp")
        if not isinstance(text, str) or not isinstance(timestamp, (int, float)):
            msg = "cache entry needs a string 'text' and a numeric 'timestamp'"
            raise ValueError(msg)
        stats = data.get("stats")
        return cls(text=text, stats=dict(stats) if isinstance(stats, Mapping) else None, timestamp=float(timestamp))

    @classmethod
    def deserialize(cls, raw: str) -> CacheEntry:
        data = json.loads(raw)
        if not isinstance(data, Mapping):
            msg = "cache entry must be a JSON object"
            raise ValueError(msg)
        return cls.from_dict(data)


class CacheStore(Protocol):
    """Single-owner string key/value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...


def _check_quota(quota_bytes: Optional[int], current: int, incoming: int) -> None:
    if quota_bytes is not None and current + incoming > quota_bytes:
        msg = f"storing {incoming} bytes would exceed the {quota_bytes} byte quota"
        raise StorageQuotaExceededError(msg)


class MemoryCacheStore:
    """Dictionary-backed store with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def _used(self, exclude: Optional[str] = None) -> int:
        return sum(len(value.encode("utf-8")) for key, value in self._data.items() if key != exclude)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_quota(self.quota_bytes, self._used(exclude=key), len(value.encode("utf-8")))
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class FileCacheStore:
    """One JSON document per key inside ``directory``."""

    _UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")

    def __init__(self, directory: Path, quota_bytes: Optional[int] = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._UNSAFE_RE.sub('_', key)}.json"

    def _used(self, exclude: Optional[Path] = None) -> int:
        if not self.directory.is_dir():
            return 0
        return sum(path.stat().st_size for path in self.directory.glob("*.json") if path != exclude)

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        _check_quota(self.quota_bytes, self._used(exclude=path), len(value.encode("utf-8")))
        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob("*.json"))


@dataclass
class CachePayload:
    """Corpus text offered to the cache, before timestamping."""

    text: str
    stats: Optional[Dict[str, Any]] = None


@dataclass
class CachePutResult:
    stored: bool
    tier: Optional[str] = None
    size_bytes: int = 0
    failure: Optional[FailureKind] = None


def sample_lines(text: str, step: int) -> str:
    """Keep every ``step``-th line of ``text``, starting with the first."""
    return "\n".join(line for index, line in enumerate(text.split("\n")) if index % step == 0)


@dataclass
class ReductionTier:
    """One step of the size-reduction chain.

    ``step`` of 1 stores the payload unchanged. ``evict_first`` sweeps stale
    entries from the store before the write is attempted.
    """

    name: str
    step: int = 1
    evict_first: bool = False

    def apply(self, payload: CachePayload, timestamp: float) -> CacheEntry:
        if self.step == 1:
            return CacheEntry(text=payload.text, stats=payload.stats, timestamp=timestamp)
        reduced = sample_lines(payload.text, self.step)
        stats = dict(payload.stats or {})
        stats["lines"] = int(stats.get("lines") or 0) // self.step
        stats["characters"] = len(reduced)
        return CacheEntry(text=reduced, stats=stats, timestamp=timestamp)


def default_tiers(reduction_factors: Sequence[int] = (4, 10)) -> List[ReductionTier]:
    tiers = [ReductionTier("full")]
    tiers.extend(ReductionTier(f"every-{factor}", step=factor) for factor in reduction_factors)
    if reduction_factors:
        tiers.append(ReductionTier(f"evict-then-every-{reduction_factors[-1]}", step=reduction_factors[-1], evict_first=True))
    return tiers


@dataclass
class CacheManager:
    """Read and write corpus snapshots in a :class:`CacheStore`."""

    store: CacheStore = field(default_factory=MemoryCacheStore)
    config: CacheConfig = field(default_factory=CacheConfig)
    clock: Clock = time.time
    tiers: List[ReductionTier] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.tiers:
            self.tiers = default_tiers(self.config.reduction_factors)

    def get(self, key: str, max_age_hours: Optional[float] = None) -> Optional[CacheEntry]:
        """Return a fresh entry or ``None``; stale and corrupt entries are evicted."""

        max_age = self.config.max_age_hours if max_age_hours is None else max_age_hours
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            entry = CacheEntry.deserialize(raw)
        except (OSError, ValueError) as exc:
            LOGGER.error("Discarding unreadable cache entry %s: %s", key, exc)
            self._discard(key)
            return None
        age = entry.age_hours(self.clock())
        if age >= max_age:
            LOGGER.info("Cache entry %s is %.1fh old; evicting", key, age)
            self._discard(key)
            return None
        return entry

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry whatever its age, without evicting anything."""

        try:
            raw = self.store.get(key)
            return None if raw is None else CacheEntry.deserialize(raw)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Cache entry %s is unreadable: %s", key, exc)
            return None

    def put(self, key: str, payload: CachePayload) -> CachePutResult:
        """Store ``payload`` under ``key``, degrading through the tiers until one fits."""

        timestamp = self.clock()
        limit = self.config.size_limit_bytes
        for tier in self.tiers:
            if tier.evict_first:
                self.evict_stale(self.config.eviction_age_hours)
            entry = tier.apply(payload, timestamp)
            size = entry.size_bytes
            if size > limit:
                LOGGER.warning("Cache tier %s is %d bytes, above the %d byte limit", tier.name, size, limit)
                continue
            try:
                self.store.set(key, entry.serialize())
            except StorageQuotaExceededError as exc:
                LOGGER.warning("Cache tier %s refused by store: %s", tier.name, exc)
                continue
            except OSError as exc:
                LOGGER.error("Cache tier %s could not be written: %s", tier.name, exc)
                continue
            LOGGER.info("Cached %s at tier %s (%d bytes)", key, tier.name, size)
            return CachePutResult(stored=True, tier=tier.name, size_bytes=size)
        LOGGER.error("Skipping cache write for %s; no tier fits within %d bytes", key, limit)
        return CachePutResult(stored=False, failure=FailureKind.STORAGE_QUOTA_EXCEEDED)

    def evict(self, key: str) -> None:
        self._discard(key)

    def _discard(self, key: str) -> bool:
        try:
            self.store.remove(key)
        except OSError as exc:
            LOGGER.error("Failed to remove cache entry %s: %s", key, exc)
            return False
        return True

    def evict_stale(self, max_age_hours: Optional[float] = None) -> int:
        """Remove entries older than ``max_age_hours`` and any unreadable ones."""

        max_age = self.config.eviction_age_hours if max_age_hours is None else max_age_hours
        now = self.clock()
        removed = 0
        for key in self.store.keys():
            try:
                raw = self.store.get(key)
                if raw is None:
                    continue
                expired = CacheEntry.deserialize(raw).age_hours(now) > max_age
            except (OSError, ValueError):
                expired = True
            if expired and self._discard(key):
                removed += 1
        if removed:
            LOGGER.info("Evicted %d stale cache entries", removed)
        return removed

    def storage_usage(self, keys: Optional[Iterable[str]] = None) -> int:
        """Total bytes held by ``keys`` (all keys by default)."""

        total = 0
        for key in self.store.keys() if keys is None else keys:
            try:
                raw = self.store.get(key)
            except (OSError, UnicodeDecodeError) as exc:
                LOGGER.warning("Skipping unreadable cache entry %s: %s", key, exc)
                continue
            if raw is not None:
                total += len(raw.encode("utf-8"))
        return total


__all__ = [
    "CacheEntry",
    "CacheManager",
    "CachePayload",
    "CachePutResult",
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "ReductionTier",
    "default_tiers",
    "sample_lines",
]
