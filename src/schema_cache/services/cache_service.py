"""Cache service for core business logic.

This service orchestrates cache operations by coordinating
the repository (data access) and embedding provider (vector generation).
It holds no mutable state of its own: counters live in the store, so one
instance per request and many concurrent callers are both safe.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from schema_cache.config import settings
from schema_cache.entities import CacheEntryEntity, CacheMatchEntity, CacheStatsEntity
from schema_cache.protocols import CacheStore, EmbeddingProvider
from schema_cache.utils.hashing import compute_cache_key

logger = structlog.stdlib.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_threshold(threshold: float) -> None:
    if not 0 < threshold <= 1:
        raise ValueError(f"Similarity threshold must be in (0, 1], got {threshold}")


class CacheService:
    """Core cache orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - CacheStore: can be Redis, in-memory, pgvector, etc.
    - EmbeddingProvider: can be the hash placeholder, OpenAI, etc.

    A store failure propagates to the caller unchanged; the service never
    retries and never turns a failure into a miss on its own.

    Example:
        ```python
        from schema_cache.repositories import HashEmbeddingProvider, RedisCacheRepository
        from schema_cache.services import CacheService

        provider = HashEmbeddingProvider.create()
        cache = CacheService.create(
            repository=RedisCacheRepository.create(embedding_provider=provider),
            embedding_provider=provider,
        )

        match = await cache.find_similar("Create a blog schema")
        if match is None:
            result = await generate(prompt)  # the expensive call
            await cache.store(prompt, result.schema, result.sql, result.tokens)
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        similarity_threshold: float | None = None,
        candidate_limit: int | None = None,
        cost_per_1k_tokens: float | None = None,
        default_model: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the cache service.

        Args:
            repository: Cache storage backend (required).
            embedding_provider: Embedding generation service (required).
            similarity_threshold: Minimum cosine similarity for a hit (0-1]. Defaults to settings.
            candidate_limit: Candidates fetched per similarity query. Defaults to settings.
            cost_per_1k_tokens: Blended price used for savings estimates. Defaults to settings.
            default_model: Model recorded when store() is not told one. Defaults to settings.
            clock: Returns the current UTC time. Defaults to datetime.now(timezone.utc).
        """
        self._repository = repository
        self._embeddings = embedding_provider
        self._threshold = similarity_threshold or settings.cache_similarity_threshold
        self._candidate_limit = candidate_limit or settings.cache_candidate_limit
        self._cost_per_1k = (
            cost_per_1k_tokens if cost_per_1k_tokens is not None else settings.cost_per_1k_tokens
        )
        self._default_model = default_model or settings.default_model
        self._clock = clock or _utcnow

        _validate_threshold(self._threshold)

    @classmethod
    def create(
        cls,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        similarity_threshold: float | None = None,
    ) -> "CacheService":
        """Factory method to create CacheService with sensible defaults.

        Like dict.fromkeys() or Path.home() - this is an alternative constructor
        that fills everything else in from settings.

        Args:
            repository: Cache storage backend (required).
            embedding_provider: Embedding generation service (required).
            similarity_threshold: Min similarity for cache hits. If None, uses settings.

        Returns:
            Configured CacheService instance
        """
        return cls(
            repository=repository,
            embedding_provider=embedding_provider,
            similarity_threshold=similarity_threshold,
        )

    async def find_similar(
        self,
        prompt: str,
        threshold: float | None = None,
    ) -> CacheMatchEntity | None:
        """Look up a cached artifact for a semantically equivalent prompt.

        Business logic:
        1. Embed the normalized prompt
        2. Ask the store for candidates at or above the threshold
        3. Record a hit on the top-ranked candidate only
        4. Return it with its similarity, or None on a miss

        Args:
            prompt: The prompt to search for
            threshold: Override the default similarity threshold (0-1]

        Returns:
            CacheMatchEntity if found, None otherwise
        """
        threshold = threshold if threshold is not None else self._threshold
        _validate_threshold(threshold)

        vector = await self._embeddings.encode(prompt)

        candidates = self._repository.similarity_search(
            embedding=vector,
            threshold=threshold,
            limit=self._candidate_limit,
        )
        if not candidates:
            logger.debug("cache.miss", threshold=threshold)
            return None

        best, similarity = candidates[0]
        updated = self._repository.record_hit(best.cache_key, self._clock())
        if updated is None:
            # Deleted between search and hit (invalidate or prune)
            logger.debug("cache.miss.evicted", cache_key=best.cache_key[:12])
            return None

        logger.info(
            "cache.hit",
            cache_key=updated.cache_key[:12],
            similarity=f"{similarity:.4f}",
            threshold=threshold,
            usage_count=updated.usage_count,
        )
        return CacheMatchEntity(entry=updated, similarity=similarity)

    async def search(self, prompt: str) -> CacheMatchEntity | None:
        """Lookup with the looser threshold used by the public search API."""
        return await self.find_similar(prompt, settings.search_similarity_threshold)

    async def store(
        self,
        prompt: str,
        schema: Any,
        sql: str,
        tokens_used: int = 0,
        model_used: str | None = None,
    ) -> str:
        """Store a generated artifact for a prompt.

        Writes are upserts keyed by the cache key: storing the same prompt
        again replaces the artifact without touching usage accounting.

        Args:
            prompt: The original prompt text
            schema: The generated data-model definition
            sql: The generated SQL
            tokens_used: Tokens the generation consumed
            model_used: Generator identifier. Defaults to the configured model.

        Returns:
            The cache key for the entry
        """
        vector = await self._embeddings.encode(prompt)
        now = self._clock()

        entry = CacheEntryEntity(
            cache_key=compute_cache_key(prompt),
            prompt=prompt,
            embedding=vector,
            schema=schema,
            sql=sql,
            model_used=model_used or self._default_model,
            tokens_saved=tokens_used,
            usage_count=1,
            created_at=now,
            last_used_at=now,
        )
        key = self._repository.upsert(entry)

        logger.info("cache.stored", cache_key=key[:12], tokens_saved=tokens_used)
        return key

    def invalidate(self, cache_key: str) -> bool:
        """Delete a cache entry by key. Absent keys are a no-op.

        Args:
            cache_key: The cache key to delete

        Returns:
            True if an entry was deleted, False otherwise
        """
        deleted = self._repository.delete_by_key(cache_key)
        logger.info("cache.invalidated", cache_key=cache_key[:12], deleted=deleted)
        return deleted

    def get_stats(self) -> CacheStatsEntity:
        """Aggregate usage statistics across all entries.

        Returns:
            CacheStatsEntity, all zeros for an empty store
        """
        rows = self._repository.scan_all()
        return CacheStatsEntity(
            total_cached=len(rows),
            total_hits=sum(usage_count - 1 for usage_count, _ in rows),
            total_tokens_saved=sum(tokens * (usage_count - 1) for usage_count, tokens in rows),
        )

    def prune_old_cache(self, max_age_days: int | None = None) -> int:
        """Delete entries not used within max_age_days.

        Meant to be triggered by an external scheduler; nothing here runs
        on its own.

        Args:
            max_age_days: Maximum idle age in days. Defaults to settings.

        Returns:
            Number of entries removed
        """
        max_age_days = max_age_days if max_age_days is not None else settings.cache_max_age_days
        if max_age_days < 0:
            raise ValueError(f"max_age_days must not be negative, got {max_age_days}")

        cutoff = self._clock() - timedelta(days=max_age_days)
        removed = self._repository.delete_older_than(cutoff)

        logger.info("cache.pruned", max_age_days=max_age_days, removed=removed)
        return removed

    def get_most_used_prompts(self, limit: int = 10) -> list[CacheEntryEntity]:
        """Return the most reused entries, highest usage first.

        Args:
            limit: Maximum number of entries

        Returns:
            List of CacheEntryEntity
        """
        return self._repository.top_by_usage(limit)

    def calculate_cost_savings(self, tokens_used: int) -> float:
        """Estimate the generation cost avoided for a number of tokens."""
        return tokens_used / 1000 * self._cost_per_1k

    def get_embedding_status(self) -> dict[str, Any]:
        """Describe the embedding provider in use.

        Returns:
            Dictionary with configured, model, dimension and fallback
        """
        fallback = self._embeddings.is_fallback
        return {
            "configured": not fallback,
            "model": self._embeddings.model_name,
            "dimension": self._embeddings.dimension,
            "fallback": fallback,
        }

    async def is_healthy(self) -> bool:
        """Check if cache is healthy.

        Returns:
            True if both repository and embeddings are healthy
        """
        repo_healthy = self._repository.health_check()
        embeddings_healthy = await self._embeddings.is_available()
        return repo_healthy and embeddings_healthy

    @property
    def threshold(self) -> float:
        """Get current similarity threshold."""
        return self._threshold

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Get the underlying embedding provider (for testing)."""
        return self._embeddings
