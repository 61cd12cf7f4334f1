from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from schema_cache import __version__
from schema_cache.api.dependencies import HandlerDep, build_cache_service
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
from schema_cache.handlers import CacheHandler
from schema_cache.services import CacheService
from schema_cache.utils import configure_logging

logger = structlog.stdlib.get_logger()


def create_app(cache_service: CacheService | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        cache_service: Pre-built service to serve. If None, one is built
            from settings at startup.

    Returns:
        The configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize the layers and store them in app.state."""
        configure_logging(settings.log_level, settings.log_format)

        service = cache_service or build_cache_service()
        app.state.cache_service = service
        app.state.cache_handler = CacheHandler(cache_service=service)

        logger.info(
            "schema_cache.startup",
            version=__version__,
            backend=settings.cache_backend,
            threshold=service.threshold,
            embedding_model=service.embedding_provider.model_name,
        )

        yield

        close = getattr(service.embedding_provider, "close", None)
        if close is not None:
            await close()

        del app.state.cache_handler
        del app.state.cache_service
        logger.info("schema_cache.shutdown")

    app = FastAPI(
        title="Schema Cache API",
        description="Semantic cache for generated schemas and SQL",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Schema Cache API",
            "version": __version__,
            "description": "Semantic cache for generated schemas and SQL",
            "endpoints": {
                "lookup": "/cache/lookup",
                "search": "/cache/search",
                "store": "/cache/store",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        return await handler.health_check()

    @app.post("/cache/lookup", response_model=CacheLookupResponse)
    async def lookup_cache(request: LookupCacheRequest, handler: HandlerDep) -> CacheLookupResponse:
        return await handler.lookup(request)

    @app.post("/cache/search", response_model=CacheLookupResponse)
    async def search_cache(request: SearchCacheRequest, handler: HandlerDep) -> CacheLookupResponse:
        return await handler.search(request)

    @app.post("/cache/store", response_model=CacheStoreResponse)
    async def store_cache(request: StoreCacheRequest, handler: HandlerDep) -> CacheStoreResponse:
        return await handler.store(request)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
        return await handler.get_stats()

    @app.get("/cache/top", response_model=list[MostUsedPromptItem])
    async def most_used_prompts(
        handler: HandlerDep,
        limit: int = Query(10, ge=1, le=100),
    ) -> list[MostUsedPromptItem]:
        return await handler.most_used(limit)

    @app.post("/cache/prune", response_model=PruneCacheResponse)
    async def prune_cache(request: PruneCacheRequest, handler: HandlerDep) -> PruneCacheResponse:
        return await handler.prune(request)

    @app.get("/cache/cost", response_model=CostSavingsResponse)
    async def cost_savings(handler: HandlerDep, tokens: int = Query(..., ge=0)) -> CostSavingsResponse:
        return handler.cost_savings(tokens)

    @app.get("/cache/embedding", response_model=EmbeddingStatusResponse)
    async def embedding_status(handler: HandlerDep) -> EmbeddingStatusResponse:
        return handler.embedding_status()

    @app.delete("/cache/{cache_key}", response_model=CacheInvalidateResponse)
    async def invalidate_cache(cache_key: str, handler: HandlerDep) -> CacheInvalidateResponse:
        return await handler.invalidate(cache_key)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "schema_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
