"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import time

import httpx
import redis
import structlog
from fastapi import HTTPException, status

from schema_cache.config import settings
from schema_cache.dto import (
    CacheInvalidateResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    CostSavingsResponse,
    EmbeddingStatusResponse,
    HealthCheckResponse,
    LookupCacheRequest,
    MostUsedPromptItem,
    PruneCacheRequest,
    PruneCacheResponse,
    SearchCacheRequest,
    StoreCacheRequest,
)
from schema_cache.entities import CacheMatchEntity
from schema_cache.services import CacheService

logger = structlog.stdlib.get_logger()

# Backend failures a lookup survives by reporting a miss
STORE_ERRORS = (redis.RedisError, httpx.HTTPError, RuntimeError, ConnectionError)


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates business logic to CacheService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    A store outage during lookup is reported as a miss so that callers
    fall through to generation; every other failure is a 500.

    Example:
        ```python
        handler = CacheHandler(cache_service=cache_service)

        # Use in FastAPI route
        @app.post("/cache/lookup", response_model=CacheLookupResponse)
        async def lookup(request: LookupCacheRequest):
            return await handler.lookup(request)
        ```
    """

    def __init__(self, cache_service: CacheService) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The cache service for business logic (required).
        """
        self._cache = cache_service

    def _to_lookup_response(
        self, match: CacheMatchEntity | None, lookup_time_ms: float
    ) -> CacheLookupResponse:
        if match is None:
            return CacheLookupResponse(found=False, lookup_time_ms=lookup_time_ms)

        return CacheLookupResponse(
            found=True,
            cache_key=match.cache_key,
            schema_=match.schema,
            sql=match.sql,
            similarity=match.similarity,
            tokens_saved=match.tokens_saved,
            cost_saved=self._cache.calculate_cost_savings(match.tokens_saved),
            lookup_time_ms=lookup_time_ms,
        )

    async def _lookup(self, prompt: str, threshold: float) -> CacheLookupResponse:
        start_time = time.time()
        try:
            match = await self._cache.find_similar(prompt, threshold)
        except STORE_ERRORS as e:
            logger.warning("cache.lookup.degraded", error=str(e))
            match = None
        lookup_time_ms = (time.time() - start_time) * 1000
        return self._to_lookup_response(match, lookup_time_ms)

    async def lookup(self, request: LookupCacheRequest) -> CacheLookupResponse:
        """Handle POST /cache/lookup requests (general path, strict threshold).

        Args:
            request: The lookup request DTO

        Returns:
            CacheLookupResponse, found=False on a miss or a store outage
        """
        threshold = request.threshold if request.threshold is not None else self._cache.threshold
        return await self._lookup(request.prompt, threshold)

    async def search(self, request: SearchCacheRequest) -> CacheLookupResponse:
        """Handle POST /cache/search requests (public path, looser threshold).

        Args:
            request: The search request DTO

        Returns:
            CacheLookupResponse, found=False on a miss or a store outage
        """
        return await self._lookup(request.prompt, settings.search_similarity_threshold)

    async def store(self, request: StoreCacheRequest) -> CacheStoreResponse:
        """Handle POST /cache/store requests.

        Args:
            request: The store request DTO

        Returns:
            CacheStoreResponse with storage confirmation

        Raises:
            HTTPException: If an error occurs during storage
        """
        try:
            cache_key = await self._cache.store(
                prompt=request.prompt,
                schema=request.schema_,
                sql=request.sql,
                tokens_used=request.tokens_used,
                model_used=request.model_used,
            )

            return CacheStoreResponse(
                success=True,
                cache_key=cache_key,
                message="Entry stored successfully",
            )

        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store entry: {e}",
            ) from e

    async def invalidate(self, cache_key: str) -> CacheInvalidateResponse:
        """Handle DELETE /cache/{cache_key} requests."""
        try:
            deleted = self._cache.invalidate(cache_key)
            return CacheInvalidateResponse(cache_key=cache_key, deleted=deleted)

        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to invalidate entry: {e}",
            ) from e

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Returns:
            CacheStatsResponse with cache statistics

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            stats = self._cache.get_stats()

            return CacheStatsResponse(
                total_cached=stats.total_cached,
                total_hits=stats.total_hits,
                total_tokens_saved=stats.total_tokens_saved,
                hit_rate=stats.hit_rate,
                cost_saved=self._cache.calculate_cost_savings(stats.total_tokens_saved),
            )

        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def most_used(self, limit: int) -> list[MostUsedPromptItem]:
        """Handle GET /cache/top requests."""
        try:
            entries = self._cache.get_most_used_prompts(limit)
            return [
                MostUsedPromptItem(
                    cache_key=entry.cache_key,
                    prompt=entry.prompt,
                    usage_count=entry.usage_count,
                    tokens_saved=entry.tokens_saved,
                )
                for entry in entries
            ]

        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to rank prompts: {e}",
            ) from e

    async def prune(self, request: PruneCacheRequest) -> PruneCacheResponse:
        """Handle POST /cache/prune requests.

        Args:
            request: The prune request DTO

        Returns:
            PruneCacheResponse with the number of entries removed
        """
        max_age_days = (
            request.max_age_days if request.max_age_days is not None else settings.cache_max_age_days
        )
        try:
            deleted = self._cache.prune_old_cache(max_age_days)
            return PruneCacheResponse(max_age_days=max_age_days, deleted_count=deleted)

        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to prune cache: {e}",
            ) from e

    def cost_savings(self, tokens: int) -> CostSavingsResponse:
        """Handle GET /cache/cost requests."""
        return CostSavingsResponse(
            tokens=tokens,
            cost_saved=self._cache.calculate_cost_savings(tokens),
        )

    def embedding_status(self) -> EmbeddingStatusResponse:
        """Handle GET /cache/embedding requests."""
        embedding = self._cache.get_embedding_status()
        if embedding["configured"]:
            recommendation = "Semantic embeddings active"
        else:
            recommendation = "Set OPENAI_API_KEY environment variable for better semantic matching"
        return EmbeddingStatusResponse(**embedding, recommendation=recommendation)

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with health status
        """
        is_healthy = await self._cache.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
        )
