"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class CacheLookupResponse(BaseModel):
    """Response DTO for lookup and search operations."""

    found: bool = Field(..., description="Whether a cached artifact matched")
    cache_key: str | None = Field(None, description="Key of the matched entry")
    schema_: Any = Field(None, alias="schema", description="The cached schema definition")
    sql: str | None = Field(None, description="The cached SQL")
    similarity: float | None = Field(
        None,
        description="Cosine similarity to the query (1 = identical)",
        ge=0.0,
        le=1.0,
    )
    tokens_saved: int | None = Field(None, description="Tokens the original generation consumed")
    cost_saved: float | None = Field(None, description="Estimated cost avoided by this hit (USD)")
    lookup_time_ms: float = Field(..., description="Time taken for the lookup in milliseconds")

    model_config = {"populate_by_name": True}


class CacheStoreResponse(BaseModel):
    """Response DTO for cache store operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    cache_key: str = Field(..., description="The cache key for the entry")
    message: str = Field(..., description="Human-readable status message")


class CacheInvalidateResponse(BaseModel):
    """Response DTO for key invalidation."""

    cache_key: str = Field(..., description="The key that was invalidated")
    deleted: bool = Field(..., description="Whether an entry existed and was removed")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_cached: int = Field(..., description="Number of cached entries", ge=0)
    total_hits: int = Field(..., description="Reuses beyond each initial store", ge=0)
    total_tokens_saved: int = Field(..., description="Tokens saved by reuse", ge=0)
    hit_rate: float = Field(..., description="hits / (hits + cached)", ge=0.0, le=1.0)
    cost_saved: float = Field(..., description="Estimated cost saved by reuse (USD)", ge=0.0)


class MostUsedPromptItem(BaseModel):
    """Single entry of the usage ranking."""

    cache_key: str
    prompt: str
    usage_count: int = Field(..., ge=1)
    tokens_saved: int = Field(..., ge=0)


class PruneCacheResponse(BaseModel):
    """Response DTO for the eviction sweep."""

    max_age_days: int
    deleted_count: int = Field(..., ge=0)


class CostSavingsResponse(BaseModel):
    """Response DTO for a cost estimate."""

    tokens: int = Field(..., ge=0)
    cost_saved: float = Field(..., ge=0.0)


class EmbeddingStatusResponse(BaseModel):
    """Response DTO for the embedding provider status."""

    configured: bool = Field(..., description="Whether a real embedding model is in use")
    model: str = Field(..., description="Embedding model identifier")
    dimension: int = Field(..., description="Embedding vector length")
    fallback: bool = Field(..., description="Whether the hash placeholder is in use")
    recommendation: str = Field(..., description="Next step for better semantic matching")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the store and embeddings are reachable")
