"""Utility helpers shared across the Markov engine package."""

from .io import load_yaml_or_json, save_json
from .random import deterministic_hash, make_rng, seed_everything
from .text import collapse_whitespace, count_terminals, has_letters, is_terminal

__all__ = [
    "collapse_whitespace",
    "count_terminals",
    "deterministic_hash",
    "has_letters",
    "is_terminal",
    "load_yaml_or_json",
    "make_rng",
    "save_json",
    "seed_everything",
]
