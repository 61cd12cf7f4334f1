"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request

from schema_cache.config import Settings, settings
from schema_cache.handlers import CacheHandler
from schema_cache.protocols import CacheStore, EmbeddingProvider
from schema_cache.repositories import (
    HashEmbeddingProvider,
    InMemoryCacheRepository,
    OpenAIEmbeddingProvider,
    RedisCacheRepository,
)
from schema_cache.services import CacheService

logger = structlog.stdlib.get_logger()


def build_embedding_provider(config: Settings = settings) -> EmbeddingProvider:
    """Pick the embedding provider from configuration.

    The OpenAI provider is used when OPENAI_API_KEY is set, otherwise the
    SHA-256 pseudo-embedding. Switching providers invalidates stored
    vectors: clear the cache afterwards.
    """
    if config.embeddings_configured:
        return OpenAIEmbeddingProvider.create()
    return HashEmbeddingProvider.create()


def build_repository(embedding_provider: EmbeddingProvider, config: Settings = settings) -> CacheStore:
    """Pick the cache store from configuration (CACHE_BACKEND)."""
    if config.cache_backend == "memory":
        return InMemoryCacheRepository.create()
    return RedisCacheRepository.create(embedding_provider=embedding_provider)


def build_cache_service(config: Settings = settings) -> CacheService:
    """Construct the service with explicitly created, injected dependencies."""
    embedding_provider = build_embedding_provider(config)
    repository = build_repository(embedding_provider, config)
    return CacheService.create(
        repository=repository,
        embedding_provider=embedding_provider,
    )


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


# Type alias for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
