"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import LookupCacheRequest, PruneCacheRequest, SearchCacheRequest, StoreCacheRequest
from .responses import (
    CacheInvalidateResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    CostSavingsResponse,
    EmbeddingStatusResponse,
    HealthCheckResponse,
    MostUsedPromptItem,
    PruneCacheResponse,
)

__all__ = [
    "LookupCacheRequest",
    "SearchCacheRequest",
    "StoreCacheRequest",
    "PruneCacheRequest",
    "CacheLookupResponse",
    "CacheStoreResponse",
    "CacheInvalidateResponse",
    "CacheStatsResponse",
    "MostUsedPromptItem",
    "PruneCacheResponse",
    "CostSavingsResponse",
    "EmbeddingStatusResponse",
    "HealthCheckResponse",
]
