"""Schema Cache - semantic caching for generated schemas and SQL.

Avoids re-running an expensive schema-generation LLM call by recognising
that a new prompt is equivalent to one already answered, and returning the
stored schema definition and SQL instead.

Layers:
    - protocols: Interface contracts (CacheStore, EmbeddingProvider)
    - repositories: Data access implementations
    - services: Business logic
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from schema_cache.repositories import HashEmbeddingProvider, InMemoryCacheRepository
    from schema_cache.services import CacheService

    cache = CacheService(
        repository=InMemoryCacheRepository(),
        embedding_provider=HashEmbeddingProvider(),
    )
    ```

For HTTP API:
    ```python
    from schema_cache.api.app import app
    ```
"""

__version__ = "0.1.0"

from schema_cache.config import get_redis_client, settings  # noqa: E402
from schema_cache.dto import LookupCacheRequest, StoreCacheRequest  # noqa: E402
from schema_cache.entities import CacheEntryEntity, CacheMatchEntity, CacheStatsEntity  # noqa: E402
from schema_cache.handlers import CacheHandler  # noqa: E402
from schema_cache.protocols import CacheStore, EmbeddingProvider  # noqa: E402
from schema_cache.repositories import (  # noqa: E402
    HashEmbeddingProvider,
    InMemoryCacheRepository,
    OpenAIEmbeddingProvider,
    RedisCacheRepository,
)
from schema_cache.services import CacheService  # noqa: E402

__all__ = [
    "__version__",
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheStore",
    "EmbeddingProvider",
    # Services (business logic)
    "CacheService",
    # Handlers (HTTP)
    "CacheHandler",
    # Repositories (data access)
    "RedisCacheRepository",
    "InMemoryCacheRepository",
    "HashEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    # Entities (domain models)
    "CacheEntryEntity",
    "CacheMatchEntity",
    "CacheStatsEntity",
    # DTOs (API contracts)
    "LookupCacheRequest",
    "StoreCacheRequest",
]
