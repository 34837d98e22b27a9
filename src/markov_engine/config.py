"""Configuration helpers for the Markov engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional, cast

from .utils.io import load_yaml_or_json, save_json

DEFAULT_CACHE_KEY = "markov-corpus-cache"
DEFAULT_SIZE_LIMIT_BYTES = 5 * 1024 * 1024

DEFAULT_PROFANITY_WORDS = [
    "arse",
    "arsehole",
    "asshole",
    "bastard",
    "bitch",
    "bollocks",
    "bullshit",
    "cunt",
    "dick",
    "fuck",
    "fucker",
    "fucking",
    "motherfucker",
    "piss",
    "prick",
    "shit",
    "slut",
    "twat",
    "wanker",
    "whore",
]


@dataclass
class ModelConfig:
    """Configuration for the n-gram model."""

    order: int = 9


@dataclass
class GeneratorConfig:
    """Configuration for the random walk and its quality filters."""

    max_length: int = 500
    max_sentences: int = 2
    recent_capacity: int = 5
    beginning_attempts: int = 20
    batch_attempt_factor: int = 10
    min_clean_length: int = 10
    min_output_length: int = 20
    min_words: int = 3
    seed: Optional[int] = None


@dataclass
class LoaderConfig:
    """Configuration for corpus cleaning."""

    min_line_length: int = 5
    min_corpus_chars: int = 100
    sentence_per_line: bool = True
    profanity_words: list[str] = field(default_factory=lambda: list(DEFAULT_PROFANITY_WORDS))


@dataclass
class CacheConfig:
    """Configuration for the corpus cache."""

    key: str = DEFAULT_CACHE_KEY
    max_age_hours: float = 24.0
    size_limit_bytes: int = DEFAULT_SIZE_LIMIT_BYTES
    reduction_factors: list[int] = field(default_factory=lambda: [4, 10])
    eviction_age_hours: float = 24.0
    directory: Optional[Path] = None


@dataclass
class SourceConfig:
    """Configuration for the remote corpus source."""

    url: Optional[str] = None
    directory: Optional[Path] = None
    timeout: float = 10.0


@dataclass
class EngineConfig:
    """Top-level configuration for the Markov engine."""

    model: ModelConfig = field(default_factory=ModelConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    source: SourceConfig = field(default_factory=SourceConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        cache = dict(data.get("cache", {}))
        if cache.get("directory") is not None:
            cache["directory"] = Path(cache["directory"])
        source = dict(data.get("source", {}))
        if source.get("directory") is not None:
            source["directory"] = Path(source["directory"])
        return cls(
            model=ModelConfig(**data.get("model", {})),
            generator=GeneratorConfig(**data.get("generator", {})),
            loader=LoaderConfig(**data.get("loader", {})),
            cache=CacheConfig(**cache),
            source=SourceConfig(**source),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for section in ("cache", "source"):
            directory = data[section].get("directory")
            if directory is not None:
                data[section]["directory"] = str(directory)
        return data

    def save(self, path: Path) -> None:
        save_json(Path(path), self.to_dict())


def _merge_dict(base: dict[str, Any], overrides: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for override in overrides:
        for key, value in override.items():
            existing = result.get(key)
            if isinstance(value, Mapping) and isinstance(existing, Mapping):
                nested = _merge_dict(cast(dict[str, Any], dict(existing)), [value])
                result[key] = nested
            else:
                result[key] = value
    return result


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Iterable[Mapping[str, Any]]] = None,
) -> EngineConfig:
    """Load configuration from disk and merge overrides."""

    overrides = list(overrides or [])
    if path is None:
        base: dict[str, Any] = {}
    else:
        loaded = load_yaml_or_json(Path(path))
        if not isinstance(loaded, Mapping):
            msg = "Expected mapping at root of configuration"
            raise TypeError(msg)
        base = dict(loaded)

    merged = _merge_dict(base, overrides)
    return EngineConfig.from_dict(merged)
