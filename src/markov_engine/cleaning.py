"""Cleaning passes applied to raw corpora and to generated text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from .utils.text import collapse_whitespace, has_letters

_BOILERPLATE_PATTERNS = [
    re.compile(r"^\*\*\*\s*(START|END) OF (THE|THIS) PROJECT GUTENBERG E?BOOK.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\*\*\*\s*(START|END) OF .*\*\*\*\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Project Gutenberg.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"This eBook is for the use of anyone anywhere.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Updated editions will.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Creating the works from.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"The Foundation's EBook.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*(Transcriber's Note|Produced by)\b.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(
        r"^\s*(Title|Author|Release Date|Release date|Most recently updated|Language|Character set encoding):.*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(r"^\s*Contents\s*$", re.IGNORECASE | re.MULTILINE),
]

# Lines without lowercase letters: play titles, speaker tags, roman numerals.
_HEADING_RE = re.compile(r"^[^a-z\n]*[A-Z]{2,}[^a-z\n]*$", re.MULTILINE)
_ACT_SCENE_LINE_RE = re.compile(r"^\s*(Act|Scene)\s+[IVXLC]+\b.*$", re.IGNORECASE | re.MULTILINE)
_ENTRANCE_LINE_RE = re.compile(r"^\s*(Enter|Exit|Exeunt|Re-enter)\b.*$", re.IGNORECASE | re.MULTILINE)

_BRACKETED_RE = re.compile(r"\[[^\]\n]*\]")
_PARENTHETICAL_RE = re.compile(r"\([^)\n]*\)")
_ACT_SCENE_RE = re.compile(r"\b(Act|Scene)\s+[IVXLC]+\b\.?", re.IGNORECASE)
_ENTRANCE_RE = re.compile(r"\b(Enter|Exit|Exeunt)\s+", re.IGNORECASE)
_ARTIFACT_CHARS_RE = re.compile(r"[_\[\]]")

_SPACES_RE = re.compile(r"[ \t]+")
_SENTENCE_BREAK_RE = re.compile(r"([.!?])[ \t]+(?=[A-Z])")
_BLANK_RUN_RE = re.compile(r"\n\s*\n\s*\n+")
_NUMERIC_RE = re.compile(r"^\d+$")

ARTIFACT_CHARS = ("_", "[", "]")


class ProfanityFilter:
    """Remove listed words, matched as whole words regardless of case."""

    def __init__(self, words: Iterable[str]) -> None:
        self.words = sorted({word.strip().lower() for word in words if word.strip()}, key=len, reverse=True)
        if self.words:
            alternation = "|".join(re.escape(word) for word in self.words)
            self._pattern: Optional[re.Pattern[str]] = re.compile(rf"\b({alternation})\b", re.IGNORECASE)
        else:
            self._pattern = None

    def clean(self, text: str) -> str:
        if self._pattern is None or not text:
            return text
        return self._pattern.sub("", text)


def normalise_line_breaks(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_boilerplate(text: str) -> str:
    """Drop e-book headers, footers, metadata lines and bare headings."""
    for pattern in _BOILERPLATE_PATTERNS:
        text = pattern.sub("", text)
    text = text.replace("™", "")
    text = _HEADING_RE.sub("", text)
    text = _ACT_SCENE_LINE_RE.sub("", text)
    return _ENTRANCE_LINE_RE.sub("", text)


def strip_stage_directions(text: str) -> str:
    """Remove bracketed and parenthetical asides that stay on one line."""
    text = _BRACKETED_RE.sub("", text)
    return _PARENTHETICAL_RE.sub("", text)


def normalise_layout(text: str, *, sentence_per_line: bool = True) -> str:
    """Collapse horizontal whitespace and blank-line runs.

    With ``sentence_per_line`` every sentence that is followed by a capitalised
    word starts a new line, so sentence openings become model beginnings.
    """
    text = _SPACES_RE.sub(" ", text)
    if sentence_per_line:
        text = _SENTENCE_BREAK_RE.sub(r"\1\n", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def clean_corpus_text(
    text: str,
    profanity: Optional[ProfanityFilter] = None,
    *,
    sentence_per_line: bool = True,
) -> str:
    """Run every corpus cleaning pass over ``text``."""
    text = normalise_line_breaks(text)
    text = strip_boilerplate(text)
    text = strip_stage_directions(text)
    if profanity is not None:
        text = profanity.clean(text)
    return normalise_layout(text, sentence_per_line=sentence_per_line)


def is_quality_line(line: str, min_length: int = 5) -> bool:
    """Reject short, purely numeric, or letterless lines."""
    if len(line) < min_length:
        return False
    if _NUMERIC_RE.match(line):
        return False
    return has_letters(line)


def split_lines(text: str, min_length: int = 5) -> list[str]:
    lines = (_SPACES_RE.sub(" ", line).strip() for line in text.split("\n"))
    return [line for line in lines if is_quality_line(line, min_length)]


def has_artifacts(text: str) -> bool:
    return any(char in text for char in ARTIFACT_CHARS)


def clean_generated_text(text: str, min_length: int = 10) -> str:
    """Strip leftover stage directions; keep ``text`` if too little survives."""
    if not text:
        return text
    cleaned = strip_stage_directions(text)
    cleaned = _ACT_SCENE_RE.sub("", cleaned)
    cleaned = _ENTRANCE_RE.sub("", cleaned)
    cleaned = _ARTIFACT_CHARS_RE.sub("", cleaned)
    cleaned = collapse_whitespace(cleaned)
    if len(cleaned) < min_length:
        return text
    return cleaned


def is_degenerate(text: str, *, min_words: int = 3, min_length: int = 20) -> bool:
    """Return ``True`` for output that is not worth handing to a caller."""
    stripped = text.strip()
    if len(stripped) < min_length:
        return True
    if len(stripped.split()) < min_words:
        return True
    if _NUMERIC_RE.match(stripped.replace(" ", "")):
        return True
    if not any(char.isalnum() for char in stripped):
        return True
    return has_artifacts(stripped)


__all__ = [
    "ARTIFACT_CHARS",
    "ProfanityFilter",
    "clean_corpus_text",
    "clean_generated_text",
    "has_artifacts",
    "is_degenerate",
    "is_quality_line",
    "normalise_layout",
    "split_lines",
    "strip_boilerplate",
    "strip_stage_directions",
]
