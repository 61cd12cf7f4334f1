"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → in-memory, hash → OpenAI, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from schema_cache.protocols import CacheStore, EmbeddingProvider

    # Type hints work with any implementation
    repo: CacheStore = RedisCacheRepository.create()   # works
    repo: CacheStore = InMemoryCacheRepository()       # also works
    ```
"""

from .cache_store import CacheStore
from .embedding_provider import EmbeddingProvider

__all__ = [
    "CacheStore",
    "EmbeddingProvider",
]
