# --- TRADEMARK NOTICE ---
# Lightcap (EUIPO. Reg. 019172085) — Contact: alpay@lightcap.ai
# Do not remove this notice from source distributions.

"""Weighted random walk over a :class:`MarkovModel`."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .cleaning import clean_generated_text, has_artifacts, is_degenerate
from .config import GeneratorConfig
from .logging import configure_logging
from .model import MarkovModel
from .utils.text import count_terminals, is_terminal, truncate_sentences

LOGGER = configure_logging(logger_name=__name__)


@dataclass
class GenerationRequest:
    max_length: int = 500
    max_sentences: int = 2


class RecentBeginnings:
    """Fixed-capacity FIFO of recently used beginnings."""

    def __init__(self, capacity: int = 5) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._items: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def push(self, beginning: str) -> None:
        self._items.append(beginning)

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, beginning: object) -> bool:
        return beginning in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)


class MarkovGenerator:
    """Sample bounded text from a model while avoiding recent openings."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.recent = RecentBeginnings(self.config.recent_capacity)

    def _choice(self, items: Sequence[str]) -> str:
        return items[int(self.rng.integers(len(items)))]

    def _pick_beginning(self, model: MarkovModel) -> str:
        for _ in range(self.config.beginning_attempts):
            candidate = self._choice(model.beginnings)
            if candidate in self.recent or has_artifacts(candidate):
                continue
            return candidate
        return self._choice(model.beginnings)

    def _walk(self, model: MarkovModel, beginning: str, request: GenerationRequest) -> str:
        result = truncate_sentences(beginning[: max(request.max_length, 0)], request.max_sentences)
        sentences = count_terminals(result)
        while len(result) < request.max_length and sentences < request.max_sentences:
            successors = model.successors(result[-model.order :])
            if successors is None:
                break
            next_char = self._choice(successors)
            result += next_char
            if is_terminal(next_char):
                sentences += 1
        return result

    def generate_one(
        self,
        model: MarkovModel,
        max_length: Optional[int] = None,
        max_sentences: Optional[int] = None,
    ) -> str:
        """Generate one string; returns ``''`` when ``model`` has no beginnings."""

        if model.is_empty:
            return ""
        request = GenerationRequest(
            max_length=self.config.max_length if max_length is None else max_length,
            max_sentences=self.config.max_sentences if max_sentences is None else max_sentences,
        )
        beginning = self._pick_beginning(model)
        text = self._walk(model, beginning, request)
        text = clean_generated_text(text, self.config.min_clean_length)
        self.recent.push(beginning)
        return text

    def generate_batch(
        self,
        model: MarkovModel,
        count: int,
        max_length: Optional[int] = None,
        max_sentences: Optional[int] = None,
    ) -> list[str]:
        """Collect up to ``count`` non-degenerate strings within the attempt budget."""

        lines: list[str] = []
        attempts = 0
        budget = max(count, 0) * self.config.batch_attempt_factor
        while len(lines) < count and attempts < budget:
            attempts += 1
            text = self.generate_one(model, max_length, max_sentences)
            if is_degenerate(text, min_words=self.config.min_words, min_length=self.config.min_output_length):
                continue
            lines.append(text)
        if len(lines) < count:
            LOGGER.warning("Generated %d of %d lines after %d attempts", len(lines), count, attempts)
        return lines


__all__ = ["GenerationRequest", "MarkovGenerator", "RecentBeginnings"]
