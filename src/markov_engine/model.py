"""Character-level n-gram model construction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

from .logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class MarkovModel:
    """Immutable snapshot of an order-``k`` character model.

    ``ngrams`` maps every ``k``-character prefix to the characters observed
    after it, in corpus order and with repeats, so a uniform pick over a
    successor tuple is a frequency-weighted pick over distinct characters.
    ``beginnings`` keeps one prefix per source line, also with repeats.
    """

    order: int
    ngrams: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    beginnings: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.beginnings

    def successors(self, prefix: str) -> Optional[Tuple[str, ...]]:
        """Return recorded successors of ``prefix``; ``None`` marks a line end."""
        found = self.ngrams.get(prefix)
        return found or None

    def stats(self) -> Dict[str, int]:
        return {
            "order": self.order,
            "ngrams": len(self.ngrams),
            "beginnings": len(self.beginnings),
        }


def build_model(lines: Iterable[str], order: int) -> MarkovModel:
    """Build a :class:`MarkovModel` of ``order`` from ``lines``."""

    if order < 1:
        msg = f"order must be a positive integer, got {order}"
        raise ValueError(msg)
    ngrams: Dict[str, List[str]] = {}
    beginnings: List[str] = []
    line_count = 0
    for line in lines:
        line_count += 1
        if len(line) < order:
            continue
        beginnings.append(line[:order])
        for i in range(len(line) - order):
            ngrams.setdefault(line[i : i + order], []).append(line[i + order])
    frozen = MappingProxyType({gram: tuple(chars) for gram, chars in ngrams.items()})
    model = MarkovModel(order=order, ngrams=frozen, beginnings=tuple(beginnings))
    LOGGER.debug(
        "Built order-%d model from %d lines: %d prefixes, %d beginnings",
        order,
        line_count,
        len(frozen),
        len(beginnings),
    )
    return model


__all__ = ["MarkovModel", "build_model"]
