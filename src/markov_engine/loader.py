"""Corpus acquisition and cleaning."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol, Union

import requests

from .cleaning import ProfanityFilter, clean_corpus_text, split_lines
from .config import LoaderConfig
from .errors import FailureKind, SourceUnavailableError
from .logging import get_logger

LOGGER = get_logger(__name__)

USER_AGENT = "MarkovEngine/0.1"

FALLBACK_SENTENCES = (
    "The quick brown fox jumps over the lazy dog.",
    "A journey of a thousand miles begins with a single step.",
    "All that glitters is not gold.",
    "Actions speak louder than words.",
    "Beauty is in the eye of the beholder.",
    "Every cloud has a silver lining.",
    "Time heals all wounds.",
    "The early bird catches the worm.",
    "Don't judge a book by its cover.",
    "When life gives you lemons, make lemonade.",
    "Rome wasn't built in a day.",
    "The pen is mightier than the sword.",
    "Where there's a will, there's a way.",
    "Practice makes perfect.",
    "Better late than never.",
)


@dataclass(frozen=True)
class Corpus:
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def characters(self) -> int:
        return sum(len(line) for line in self.lines)

    def stats(self) -> dict[str, int]:
        return {"lines": len(self.lines), "characters": len(self.text)}


@dataclass(frozen=True)
class LoadResult:
    """Either a usable corpus or the failure that prevented one."""

    corpus: Optional[Corpus] = None
    failure: Optional[FailureKind] = None

    @property
    def ok(self) -> bool:
        return self.corpus is not None


@dataclass
class CorpusPayload:
    """Raw blobs returned by a corpus source."""

    texts: list[str] = field(default_factory=list)
    stats: Optional[dict[str, Any]] = None

    @property
    def text(self) -> str:
        return "\n\n".join(self.texts)


class CorpusLoader:
    """Join, clean and line-split raw corpus text."""

    def __init__(self, config: Optional[LoaderConfig] = None) -> None:
        self.config = config or LoaderConfig()
        self.profanity = ProfanityFilter(self.config.profanity_words)

    def load(self, sources: Union[str, Sequence[str]]) -> LoadResult:
        blobs = [sources] if isinstance(sources, str) else [blob for blob in sources if blob]
        combined = "\n\n".join(blobs)
        cleaned = clean_corpus_text(
            combined,
            self.profanity,
            sentence_per_line=self.config.sentence_per_line,
        )
        corpus = Corpus(tuple(split_lines(cleaned, self.config.min_line_length)))
        if corpus.characters < self.config.min_corpus_chars:
            LOGGER.warning(
                "Corpus has %d usable characters, below the %d required",
                corpus.characters,
                self.config.min_corpus_chars,
            )
            return LoadResult(failure=FailureKind.CORPUS_INSUFFICIENT)
        LOGGER.debug("Loaded corpus with %d lines from %d sources", len(corpus.lines), len(blobs))
        return LoadResult(corpus=corpus)

    def load_lines(self, lines: Iterable[str]) -> Corpus:
        """Apply the line quality filter only; used for hand-authored text."""
        kept = []
        for line in lines:
            if not line:
                continue
            kept.extend(split_lines(line, self.config.min_line_length))
        return Corpus(tuple(kept))


class CorpusSource(Protocol):
    async def fetch(self) -> CorpusPayload:
        ...

    async def probe(self) -> bool:
        ...


class StaticCorpusSource:
    """Serve blobs held in memory."""

    def __init__(self, texts: Union[str, Sequence[str]], stats: Optional[dict[str, Any]] = None) -> None:
        self.texts = [texts] if isinstance(texts, str) else list(texts)
        self.stats = stats

    async def fetch(self) -> CorpusPayload:
        if not any(text.strip() for text in self.texts):
            raise SourceUnavailableError("static source holds no text")
        return CorpusPayload(texts=list(self.texts), stats=self.stats)

    async def probe(self) -> bool:
        return any(text.strip() for text in self.texts)


class DirectoryCorpusSource:
    """Compile every matching text file found in a directory."""

    def __init__(self, directory: Path, pattern: str = "*.txt", limit: int = 100) -> None:
        self.directory = Path(directory)
        self.pattern = pattern
        self.limit = limit

    def _files(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(path for path in self.directory.glob(self.pattern) if path.is_file())[: self.limit]

    def _read_all(self) -> CorpusPayload:
        files = self._files()
        if not files:
            raise SourceUnavailableError(f"no {self.pattern} files in {self.directory}")
        texts: list[str] = []
        for path in files:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                LOGGER.error("Failed to read %s: %s", path, exc)
                continue
            if text.strip():
                texts.append(text)
                LOGGER.debug("Loaded %s (%d characters)", path.name, len(text))
        if not texts:
            raise SourceUnavailableError(f"no readable text in {self.directory}")
        LOGGER.info("Compiled %d of %d files from %s", len(texts), len(files), self.directory)
        return CorpusPayload(texts=texts, stats={"files": len(texts)})

    async def fetch(self) -> CorpusPayload:
        return await asyncio.to_thread(self._read_all)

    async def probe(self) -> bool:
        return bool(await asyncio.to_thread(self._files))


class HttpCorpusSource:
    """Fetch ``{"text": ..., "stats": ...}`` from an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def _get(self) -> requests.Response:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SourceUnavailableError(f"request to {self.url} failed: {exc}") from exc
        return response

    def _fetch_sync(self) -> CorpusPayload:
        response = self._get()
        if not response.ok:
            raise SourceUnavailableError(f"{self.url} answered {response.status_code}: {response.text[:200]}")
        try:
            data = response.json()
        except ValueError as exc:
            raise SourceUnavailableError(f"{self.url} returned invalid JSON") from exc
        if not isinstance(data, Mapping):
            raise SourceUnavailableError(f"{self.url} returned {type(data).__name__}, expected an object")
        text = data.get("text")
        stats = data.get("stats")
        return CorpusPayload(
            texts=[text] if isinstance(text, str) and text else [],
            stats=dict(stats) if isinstance(stats, Mapping) else None,
        )

    async def fetch(self) -> CorpusPayload:
        return await asyncio.to_thread(self._fetch_sync)

    async def probe(self) -> bool:
        try:
            response = await asyncio.to_thread(self._get)
        except SourceUnavailableError:
            return False
        return response.ok


__all__ = [
    "FALLBACK_SENTENCES",
    "Corpus",
    "CorpusLoader",
    "CorpusPayload",
    "CorpusSource",
    "DirectoryCorpusSource",
    "HttpCorpusSource",
    "LoadResult",
    "StaticCorpusSource",
]
