"""Markov engine package."""

from .cache import CacheEntry, CacheManager, CachePayload, FileCacheStore, MemoryCacheStore
from .config import EngineConfig, load_config
from .engine import PLACEHOLDER_TEXT, EngineState, MarkovEngine, SourceTier
from .generator import MarkovGenerator, RecentBeginnings
from .loader import (
    FALLBACK_SENTENCES,
    CorpusLoader,
    DirectoryCorpusSource,
    HttpCorpusSource,
    StaticCorpusSource,
)
from .model import MarkovModel, build_model

__all__ = [
    "FALLBACK_SENTENCES",
    "PLACEHOLDER_TEXT",
    "CacheEntry",
    "CacheManager",
    "CachePayload",
    "CorpusLoader",
    "DirectoryCorpusSource",
    "EngineConfig",
    "EngineState",
    "FileCacheStore",
    "HttpCorpusSource",
    "MarkovEngine",
    "MarkovGenerator",
    "MarkovModel",
    "MemoryCacheStore",
    "RecentBeginnings",
    "SourceTier",
    "StaticCorpusSource",
    "build_model",
    "load_config",
]

__version__ = "0.1.0"
