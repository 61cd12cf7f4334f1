"""Repository layer for data access.

This layer abstracts external dependencies (Redis, embedding APIs)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → in-memory, hash → OpenAI, etc.)
- Unit testing with the in-memory store
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from schema_cache.protocols import CacheStore, EmbeddingProvider

from .hash_embedding_provider import HashEmbeddingProvider
from .memory_repository import InMemoryCacheRepository
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .redis_repository import RedisCacheRepository

__all__ = [
    "CacheStore",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "InMemoryCacheRepository",
    "OpenAIEmbeddingProvider",
    "RedisCacheRepository",
]
