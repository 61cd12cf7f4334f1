"""Utility modules for the schema cache."""

from .hashing import compute_cache_key, normalize_prompt, prompt_digest
from .logging import configure_logging

__all__ = [
    "compute_cache_key",
    "configure_logging",
    "normalize_prompt",
    "prompt_digest",
]
