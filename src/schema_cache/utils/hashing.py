"""Prompt normalization and cache-key derivation."""

import hashlib


def normalize_prompt(prompt: str) -> str:
    """Return the canonical form of a prompt (trimmed, lowercase)."""
    return prompt.strip().lower()


def prompt_digest(prompt: str) -> bytes:
    """SHA-256 digest of the normalized prompt."""
    return hashlib.sha256(normalize_prompt(prompt).encode("utf-8")).digest()


def compute_cache_key(prompt: str) -> str:
    """Derive the exact-match cache key for a prompt.

    Two prompts with the same normalized form always share a key.

    Args:
        prompt: The raw prompt text

    Returns:
        Hex-encoded SHA-256 of the normalized prompt
    """
    return prompt_digest(prompt).hex()
