"""Deterministic terrain and token placement engine."""

from .generate import generate_json, generate_map, run_map_generation
from .tokens import generate_tokens, run_token_generation

__all__ = [
    "generate_json",
    "generate_map",
    "generate_tokens",
    "run_map_generation",
    "run_token_generation",
]
