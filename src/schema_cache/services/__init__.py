"""Cache engine.

``CacheService`` decides hit or miss for a prompt, writes generated
artifacts and keeps usage accounting. It only talks to a ``CacheStore`` and
an ``EmbeddingProvider``; which ones is decided in ``schema_cache.api.dependencies``.
"""

from .cache_service import CacheService

__all__ = [
    "CacheService",
]
