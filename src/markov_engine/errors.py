"""Failure kinds and exceptions used inside the Markov engine."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Expected failure conditions; each is recovered inside the engine."""

    SOURCE_UNAVAILABLE = "source_unavailable"
    CORPUS_INSUFFICIENT = "corpus_insufficient"
    MODEL_EMPTY = "model_empty"
    STORAGE_QUOTA_EXCEEDED = "storage_quota_exceeded"
    GENERATION_EXHAUSTED = "generation_exhausted"


class MarkovEngineError(Exception):
    """Base class for errors raised by the Markov engine."""


class SourceUnavailableError(MarkovEngineError):
    """Raised by a corpus source when it cannot produce a payload."""


class StorageQuotaExceededError(MarkovEngineError):
    """Raised by a cache store when a write would exceed its quota."""


__all__ = [
    "FailureKind",
    "MarkovEngineError",
    "SourceUnavailableError",
    "StorageQuotaExceededError",
]
