# --- TRADEMARK NOTICE ---
# Lightcap (EUIPO. Reg. 019172085) — Contact: alpay@lightcap.ai
# Do not remove this notice from source distributions.

"""Fallback chain controller and the text-producing facade."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from enum import Enum
from typing import Optional

import numpy as np

from .cache import CacheManager, CachePayload, Clock, SECONDS_PER_HOUR
from .config import EngineConfig
from .errors import FailureKind, SourceUnavailableError
from .generator import MarkovGenerator
from .loader import FALLBACK_SENTENCES, Corpus, CorpusLoader, CorpusSource
from .logging import get_logger
from .model import MarkovModel, build_model

LOGGER = get_logger(__name__)

PLACEHOLDER_TEXT = "Generated text could not be created."


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class SourceTier(str, Enum):
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"


def render_markdown_quotes(lines: Sequence[str]) -> str:
    """Format generated lines as Markdown blockquotes separated by blank lines."""
    return "\n\n".join(f"> {line}" for line in lines)


class MarkovEngine:
    """Load a corpus through cache, remote source and fallback, then generate.

    Each instance owns its cache manager and source. Concurrent ``load`` calls
    share one in-flight task, and a finished model is swapped in whole.
    """

    def __init__(
        self,
        source: Optional[CorpusSource] = None,
        cache: Optional[CacheManager] = None,
        config: Optional[EngineConfig] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        fallback_lines: Sequence[str] = FALLBACK_SENTENCES,
        clock: Clock = time.time,
    ) -> None:
        self.config = config or EngineConfig()
        self.source = source
        self.cache = cache
        self.loader = CorpusLoader(self.config.loader)
        self.generator = MarkovGenerator(self.config.generator, rng=rng)
        self.fallback_lines = tuple(fallback_lines)
        self.clock = clock
        self.state = EngineState.UNINITIALIZED
        self.tier: Optional[SourceTier] = None
        self.failures: list[FailureKind] = []
        self._model: Optional[MarkovModel] = None
        self._loaded_at = 0.0
        self._pending: Optional[asyncio.Task[MarkovModel]] = None
        self._available: Optional[bool] = None

    @property
    def model(self) -> Optional[MarkovModel]:
        return self._model

    def _expired(self) -> bool:
        age_hours = (self.clock() - self._loaded_at) / SECONDS_PER_HOUR
        return age_hours >= self.config.cache.max_age_hours

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> MarkovModel:
        """Return the current model, loading it once if needed."""

        if self._pending is None:
            if self.state is EngineState.READY and self._model is not None and not self._expired():
                return self._model
            self._pending = self._start_load()
        return await asyncio.shield(self._pending)

    def _start_load(self) -> asyncio.Task[MarkovModel]:
        previous = self.state
        self.state = EngineState.LOADING
        task = asyncio.ensure_future(self._run_chain())

        def _settle(done: asyncio.Task[MarkovModel]) -> None:
            # Registered before any shield, so this runs before waiting callers resume.
            self._pending = None
            if done.cancelled():
                error: Optional[BaseException] = asyncio.CancelledError()
            else:
                error = done.exception()
            if error is None:
                return
            if not isinstance(error, asyncio.CancelledError):
                LOGGER.error("Unexpected failure while loading the corpus", exc_info=error)
            self.state = previous if self._model is not None else EngineState.UNINITIALIZED

        task.add_done_callback(_settle)
        return task

    async def refresh(self) -> MarkovModel:
        """Drop the cached corpus and rebuild from the remote source."""

        if self._pending is not None:
            return await asyncio.shield(self._pending)
        if self.cache is not None:
            self.cache.evict(self.config.cache.key)
        self._loaded_at = float("-inf")
        return await self.load()

    async def _run_chain(self) -> MarkovModel:
        self.failures = []
        loaded_at = self.clock()
        tier = SourceTier.CACHE
        cached = self._from_cache()
        if cached is not None:
            corpus, loaded_at = cached
        else:
            corpus = await self._from_source()
            tier = SourceTier.REMOTE
        if corpus is None:
            corpus = self.loader.load_lines(self.fallback_lines)
            tier = SourceTier.FALLBACK
            LOGGER.warning("Using %d built-in fallback lines", len(corpus.lines))
        model = build_model(corpus.lines, self.config.model.order)
        self._model = model
        self._loaded_at = loaded_at
        self.tier = tier
        self.state = EngineState.READY
        LOGGER.info("Markov model ready from %s tier: %s", tier.value, model.stats())
        return model

    def _from_cache(self) -> Optional[tuple[Corpus, float]]:
        """Return the cached corpus and the time it was written."""
        if self.cache is None:
            return None
        entry = self.cache.get(self.config.cache.key, self.config.cache.max_age_hours)
        if entry is None:
            LOGGER.debug("No fresh cache entry for %s", self.config.cache.key)
            return None
        result = self.loader.load(entry.text)
        if not result.ok:
            self.failures.append(FailureKind.CORPUS_INSUFFICIENT)
            return None
        return result.corpus, entry.timestamp

    async def _from_source(self) -> Optional[Corpus]:
        if self.source is None:
            self.failures.append(FailureKind.SOURCE_UNAVAILABLE)
            return None
        try:
            payload = await self.source.fetch()
        except SourceUnavailableError as exc:
            LOGGER.warning("Corpus source unavailable: %s", exc)
            self.failures.append(FailureKind.SOURCE_UNAVAILABLE)
            return None
        if len(payload.text) < self.config.loader.min_corpus_chars:
            LOGGER.warning("Corpus source returned %d characters; falling back", len(payload.text))
            self.failures.append(FailureKind.CORPUS_INSUFFICIENT)
            return None
        result = self.loader.load(payload.texts)
        if result.corpus is None:
            self.failures.append(result.failure or FailureKind.CORPUS_INSUFFICIENT)
            return None
        self._store(result.corpus, payload.stats)
        return result.corpus

    def _store(self, corpus: Corpus, source_stats: Optional[dict]) -> None:
        if self.cache is None:
            return
        stats = dict(source_stats or {})
        stats.update(corpus.stats())
        outcome = self.cache.put(self.config.cache.key, CachePayload(text=corpus.text, stats=stats))
        if not outcome.stored:
            self.failures.append(FailureKind.STORAGE_QUOTA_EXCEEDED)
            LOGGER.warning("Corpus loaded but not cached")

    # ------------------------------------------------------------------
    # Producer interface
    # ------------------------------------------------------------------
    async def generate_one(self, max_length: Optional[int] = None, max_sentences: Optional[int] = None) -> str:
        model = await self.load()
        try:
            text = self.generator.generate_one(model, max_length, max_sentences)
        except Exception:
            LOGGER.exception("Unexpected failure while generating text")
            raise
        if not text:
            LOGGER.warning("Model has no beginnings; returning placeholder text")
            return PLACEHOLDER_TEXT
        return text

    async def generate_batch(
        self,
        count: int,
        max_length: Optional[int] = None,
        max_sentences: Optional[int] = None,
    ) -> list[str]:
        model = await self.load()
        try:
            lines = self.generator.generate_batch(model, count, max_length, max_sentences)
        except Exception:
            LOGGER.exception("Unexpected failure while generating a batch")
            raise
        if len(lines) < count:
            self.failures.append(FailureKind.GENERATION_EXHAUSTED)
        return lines

    async def generate_markdown(
        self,
        count: int = 5,
        max_length: Optional[int] = None,
        max_sentences: Optional[int] = None,
    ) -> str:
        lines = await self.generate_batch(count, max_length, max_sentences)
        if not lines:
            lines = [PLACEHOLDER_TEXT]
        return render_markdown_quotes(lines)

    async def is_available(self) -> bool:
        """Report whether a fresh cache entry or a reachable source exists."""

        if self._available is not None:
            return self._available
        available = False
        if self.cache is not None and self.cache.get(self.config.cache.key) is not None:
            available = True
        elif self.source is not None:
            available = await self.source.probe()
        self._available = available
        return available


__all__ = [
    "PLACEHOLDER_TEXT",
    "EngineState",
    "MarkovEngine",
    "SourceTier",
    "render_markdown_quotes",
]
