"""
Shared test fixtures.

Uses the in-memory store and a controllable clock so that no Redis
instance or embedding API is needed.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from schema_cache.api.app import create_app
from schema_cache.entities import CacheEntryEntity
from schema_cache.repositories import HashEmbeddingProvider, InMemoryCacheRepository
from schema_cache.services import CacheService

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class StaticEmbeddingProvider:
    """Returns pre-registered vectors, for crafting exact similarities."""

    def __init__(self, vectors: dict[str, list[float]]) -> None:
        self._vectors = vectors

    @property
    def dimension(self) -> int:
        return len(next(iter(self._vectors.values())))

    @property
    def model_name(self) -> str:
        return "static"

    @property
    def is_fallback(self) -> bool:
        return False

    async def encode(self, text: str) -> list[float]:
        return self._vectors[text]

    async def is_available(self) -> bool:
        return True


def make_entry(
    cache_key: str,
    embedding: list[float] | None = None,
    usage_count: int = 1,
    tokens_saved: int = 0,
    last_used_at: datetime = START,
    prompt: str | None = None,
) -> CacheEntryEntity:
    return CacheEntryEntity(
        cache_key=cache_key,
        prompt=prompt or f"prompt {cache_key}",
        embedding=embedding or [1.0, 0.0],
        schema={"tables": [cache_key]},
        sql=f"CREATE TABLE {cache_key} (id int);",
        model_used="test-model",
        tokens_saved=tokens_saved,
        usage_count=usage_count,
        created_at=last_used_at,
        last_used_at=last_used_at,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryCacheRepository:
    return InMemoryCacheRepository()


@pytest.fixture
def provider() -> HashEmbeddingProvider:
    return HashEmbeddingProvider(dimension=1536)


@pytest.fixture
def cache_service(
    repository: InMemoryCacheRepository,
    provider: HashEmbeddingProvider,
    clock: FakeClock,
) -> CacheService:
    return CacheService(
        repository=repository,
        embedding_provider=provider,
        similarity_threshold=0.95,
        cost_per_1k_tokens=0.045,
        clock=clock,
    )


@pytest.fixture
def client(cache_service: CacheService):
    """Create a test client with the lifespan running."""
    with TestClient(create_app(cache_service=cache_service)) as test_client:
        yield test_client
