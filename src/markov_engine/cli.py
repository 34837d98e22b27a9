"""Command line interface for the Markov engine."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Optional

import typer

from .cache import CacheManager, FileCacheStore, MemoryCacheStore
from .config import EngineConfig, load_config
from .engine import MarkovEngine
from .loader import CorpusSource, DirectoryCorpusSource, HttpCorpusSource
from .logging import configure_logging
from .utils.random import make_rng, seed_everything

LOGGER = configure_logging(logger_name=__name__)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Path to engine configuration (YAML or JSON).",
)
SOURCE_URL_OPTION = typer.Option(
    None,
    "--source-url",
    envvar="MARKOV_ENGINE_SOURCE_URL",
    help="HTTP endpoint returning {text, stats} JSON.",
)
CORPUS_DIR_OPTION = typer.Option(
    None,
    "--corpus-dir",
    help="Directory of .txt files used when no URL is given.",
)
CACHE_DIR_OPTION = typer.Option(
    None,
    "--cache-dir",
    envvar="MARKOV_ENGINE_CACHE_DIR",
    help="Directory for the persistent corpus cache.",
)

app = typer.Typer(help="Generate Markov-chain text from a cached, remote or built-in corpus.")


def _resolve_config(
    config_path: Optional[Path],
    source_url: Optional[str] = None,
    corpus_dir: Optional[Path] = None,
    cache_dir: Optional[Path] = None,
) -> EngineConfig:
    config = load_config(config_path)
    if source_url:
        config.source.url = source_url
    if corpus_dir is not None:
        config.source.directory = corpus_dir
    if cache_dir is not None:
        config.cache.directory = cache_dir
    return config


def _build_source(config: EngineConfig) -> Optional[CorpusSource]:
    if config.source.url:
        return HttpCorpusSource(config.source.url, timeout=config.source.timeout)
    if config.source.directory is not None:
        return DirectoryCorpusSource(config.source.directory)
    return None


def _build_cache(config: EngineConfig) -> CacheManager:
    if config.cache.directory is None:
        return CacheManager(store=MemoryCacheStore(), config=config.cache)
    return CacheManager(store=FileCacheStore(config.cache.directory), config=config.cache)


def build_engine(config: EngineConfig, seed: Optional[int] = None) -> MarkovEngine:
    """Wire an engine from ``config``; ``seed`` makes output reproducible."""

    rng = None
    if seed is not None:
        seed_everything(seed)
        rng = make_rng(seed)
    return MarkovEngine(source=_build_source(config), cache=_build_cache(config), config=config, rng=rng)


@app.command()
def generate(
    count: int = typer.Option(1, "--count", "-n", min=1, help="Number of passages to generate."),
    max_length: Optional[int] = typer.Option(None, "--max-length", min=1, help="Maximum characters per passage."),
    max_sentences: Optional[int] = typer.Option(None, "--max-sentences", min=1, help="Maximum sentences per passage."),
    markdown: bool = typer.Option(False, "--markdown", help="Render passages as Markdown blockquotes."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed."),
    config_path: Optional[Path] = CONFIG_OPTION,
    source_url: Optional[str] = SOURCE_URL_OPTION,
    corpus_dir: Optional[Path] = CORPUS_DIR_OPTION,
    cache_dir: Optional[Path] = CACHE_DIR_OPTION,
) -> None:
    """Generate passages and print them."""

    config = _resolve_config(config_path, source_url, corpus_dir, cache_dir)
    engine = build_engine(config, seed)

    async def _run() -> list[str]:
        if markdown:
            return [await engine.generate_markdown(count, max_length, max_sentences)]
        if count == 1:
            return [await engine.generate_one(max_length, max_sentences)]
        return await engine.generate_batch(count, max_length, max_sentences)

    for passage in asyncio.run(_run()):
        typer.echo(passage)
    LOGGER.info("Generated from %s tier", engine.tier.value if engine.tier else "unknown")


@app.command("cache-info")
def cache_info(
    config_path: Optional[Path] = CONFIG_OPTION,
    cache_dir: Optional[Path] = CACHE_DIR_OPTION,
) -> None:
    """Print the age and size of the cached corpus without evicting it."""

    config = _resolve_config(config_path, cache_dir=cache_dir)
    cache = _build_cache(config)
    entry = cache.peek(config.cache.key)
    report: dict[str, object] = {"key": config.cache.key, "usage_bytes": cache.storage_usage()}
    if entry is None:
        report["cached"] = False
    else:
        age_hours = entry.age_hours(time.time())
        report.update(
            cached=True,
            fresh=age_hours < config.cache.max_age_hours,
            age_hours=round(age_hours, 3),
            size_bytes=entry.size_bytes,
            stats=entry.stats,
        )
    typer.echo(json.dumps(report, indent=2))


@app.command("cache-clear")
def cache_clear(
    stale_only: bool = typer.Option(False, "--stale-only", help="Only evict entries past the eviction window."),
    config_path: Optional[Path] = CONFIG_OPTION,
    cache_dir: Optional[Path] = CACHE_DIR_OPTION,
) -> None:
    """Evict the cached corpus."""

    config = _resolve_config(config_path, cache_dir=cache_dir)
    cache = _build_cache(config)
    if stale_only:
        removed = cache.evict_stale()
        typer.echo(f"Evicted {removed} stale entries")
        return
    cache.evict(config.cache.key)
    typer.echo(f"Evicted {config.cache.key}")


if __name__ == "__main__":
    app()
