from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Optional

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from markov_engine.config import EngineConfig
from markov_engine.errors import SourceUnavailableError
from markov_engine.loader import CorpusPayload

SAMPLE_TEXT = """\
The river ran quietly past the old mill at the edge of the village.
Children gathered on the bridge to watch the water turn the great wheel.
The miller told them stories about the winter the river froze solid.
Nobody in the village could remember a colder season than that one.
The bakers kept their ovens burning through the night to stay warm.
By spring the river was running again and the wheel turned once more.
The village held a festival on the bridge to celebrate the thaw.
Everyone agreed that the bread tasted better after a hard winter.
"""


class CountingSource:
    """Corpus source double that records how often it was called."""

    def __init__(
        self,
        text: str = SAMPLE_TEXT,
        *,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.fetches = 0
        self.probes = 0

    async def fetch(self) -> CorpusPayload:
        self.fetches += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return CorpusPayload(texts=[self.text], stats={"source": "test"})

    async def probe(self) -> bool:
        self.probes += 1
        return self.error is None


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, hours: float) -> None:
        self.now += hours * 60 * 60


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(7)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def make_source() -> type[CountingSource]:
    return CountingSource


@pytest.fixture
def counting_source() -> CountingSource:
    return CountingSource()


@pytest.fixture
def failing_source() -> CountingSource:
    return CountingSource(error=SourceUnavailableError("storage offline"))


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Path]:
    yield tmp_path
