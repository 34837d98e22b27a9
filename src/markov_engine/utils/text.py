"""Text processing helpers used throughout the Markov engine package."""

from __future__ import annotations

import re

TERMINALS = frozenset(".!?")

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: str) -> str:
    """Collapse every whitespace run to one space and trim the ends."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def is_terminal(char: str) -> bool:
    """Return ``True`` when ``char`` closes a sentence."""
    return char in TERMINALS


def count_terminals(value: str) -> int:
    """Count sentence-closing punctuation marks in ``value``."""
    return sum(1 for char in value if char in TERMINALS)


def truncate_sentences(value: str, max_sentences: int) -> str:
    """Cut ``value`` right after its ``max_sentences``-th terminal mark."""
    if max_sentences < 0:
        max_sentences = 0
    seen = 0
    for index, char in enumerate(value):
        if char in TERMINALS:
            if seen == max_sentences:
                return value[:index]
            seen += 1
            if seen == max_sentences:
                return value[: index + 1]
    return value


def has_letters(value: str) -> bool:
    return any(char.isalpha() for char in value)
