"""Tests for the Redis store.

Hash, script and sweep behaviour runs against fakeredis. Index-backed
queries (vector search, ranking) need RediSearch and only run when
REDIS_STACK_URL points at a Redis Stack server.
"""

import json
import os
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import fakeredis
import pytest
import redis
from fastapi.testclient import TestClient
from redis.backoff import NoBackoff
from redis.retry import Retry

from schema_cache.api.app import create_app
from schema_cache.repositories import HashEmbeddingProvider, RedisCacheRepository
from schema_cache.repositories.redis_repository import (
    _entry_from_fields,
    _entry_from_hash,
    _pack_vector,
)
from schema_cache.services import CacheService
from tests.conftest import START, FakeClock, make_entry

CREATED = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
USED = datetime(2026, 1, 3, 8, 30, tzinfo=timezone.utc)

REDIS_STACK_URL = os.getenv("REDIS_STACK_URL")


def _raw_hash() -> dict[bytes, bytes]:
    return {
        b"cache_key": b"abc123",
        b"prompt": b"Create a blog schema",
        b"prompt_vector": _pack_vector([0.5, 0.25, 0.0]),
        b"response_schema": json.dumps({"tables": ["posts"]}).encode(),
        b"response_sql": b"CREATE TABLE posts (id int);",
        b"model_used": b"claude-3-opus-20240229",
        b"tokens_saved": b"500",
        b"usage_count": b"3",
        b"created_at": str(CREATED.timestamp()).encode(),
        b"last_used_at": str(USED.timestamp()).encode(),
    }


@pytest.fixture
def redis_repository() -> RedisCacheRepository:
    return RedisCacheRepository(
        redis_client=fakeredis.FakeRedis(server=fakeredis.FakeServer()),
        embedding_provider=HashEmbeddingProvider(dimension=2),
        index_name="test_cache",
    )


@pytest.fixture
def dead_redis_repository() -> RedisCacheRepository:
    """Repository whose client points at a port nothing listens on."""
    client = redis.Redis(host="127.0.0.1", port=1, socket_connect_timeout=0.5, retry=Retry(NoBackoff(), 0))
    return RedisCacheRepository(
        redis_client=client,
        embedding_provider=HashEmbeddingProvider(dimension=1536),
        index_name="test_cache",
    )


@pytest.mark.unit
class TestRedisRowCodec:
    def test_entry_from_hash(self) -> None:
        entry = _entry_from_hash(_raw_hash())

        assert entry.cache_key == "abc123"
        assert entry.schema == {"tables": ["posts"]}
        assert entry.tokens_saved == 500
        assert entry.usage_count == 3
        assert entry.created_at == CREATED
        assert entry.last_used_at == USED
        # float32 represents these exactly
        assert entry.embedding == [0.5, 0.25, 0.0]

    def test_entry_from_search_result(self) -> None:
        result = {
            "id": "schema_cache:abc123",
            "vector_distance": "0",
            **{k.decode(): v.decode() for k, v in _raw_hash().items() if k != b"prompt_vector"},
        }
        entry = _entry_from_fields(result)

        assert entry.prompt == "Create a blog schema"
        assert entry.sql == "CREATE TABLE posts (id int);"
        assert entry.embedding == []


@pytest.mark.unit
class TestRedisRows:
    def test_upsert_then_get(self, redis_repository: RedisCacheRepository) -> None:
        entry = make_entry("blog", embedding=[0.5, 0.25], tokens_saved=500)

        assert redis_repository.upsert(entry) == "blog"
        stored = redis_repository.get_by_key("blog")

        assert stored == entry
        assert stored.embedding == [0.5, 0.25]  # type: ignore[union-attr]
        assert redis_repository.client.exists("test_cache:blog") == 1

    def test_missing_key(self, redis_repository: RedisCacheRepository) -> None:
        assert redis_repository.get_by_key("nope") is None
        assert redis_repository.record_hit("nope", START) is None
        assert redis_repository.delete_by_key("nope") is False

    def test_restore_keeps_accounting(self, redis_repository: RedisCacheRepository) -> None:
        redis_repository.upsert(make_entry("blog", tokens_saved=100))
        hit_at = START + timedelta(hours=1)
        redis_repository.record_hit("blog", hit_at)

        replacement = replace(
            make_entry("blog", tokens_saved=300, last_used_at=START + timedelta(days=2)),
            sql="SELECT 2;",
        )
        redis_repository.upsert(replacement)

        entry = redis_repository.get_by_key("blog")
        assert entry is not None
        assert entry.sql == "SELECT 2;"
        assert entry.tokens_saved == 300
        assert entry.usage_count == 2
        assert entry.created_at == START
        assert entry.last_used_at == hit_at

    def test_record_hit_increments_and_never_moves_back(self, redis_repository: RedisCacheRepository) -> None:
        redis_repository.upsert(make_entry("blog"))
        later = START + timedelta(minutes=10)

        first = redis_repository.record_hit("blog", later)
        second = redis_repository.record_hit("blog", START - timedelta(days=1))

        assert first is not None and second is not None
        assert (first.usage_count, first.last_used_at) == (2, later)
        assert (second.usage_count, second.last_used_at) == (3, later)

    def test_delete_older_than_strict_cutoff(self, redis_repository: RedisCacheRepository) -> None:
        cutoff = START - timedelta(days=30)
        redis_repository.upsert(make_entry("recent", last_used_at=START - timedelta(days=1)))
        redis_repository.upsert(make_entry("at_cutoff", last_used_at=cutoff))
        redis_repository.upsert(make_entry("just_stale", last_used_at=START - timedelta(days=31)))
        redis_repository.upsert(make_entry("stale", last_used_at=START - timedelta(days=40)))

        assert redis_repository.delete_older_than(cutoff) == 2
        remaining = {key for key in ("recent", "at_cutoff", "just_stale", "stale") if redis_repository.get_by_key(key)}
        assert remaining == {"recent", "at_cutoff"}

    def test_hit_rescues_row_from_sweep(self, redis_repository: RedisCacheRepository) -> None:
        redis_repository.upsert(make_entry("blog", last_used_at=START - timedelta(days=40)))
        redis_repository.record_hit("blog", START)

        assert redis_repository.delete_older_than(START - timedelta(days=30)) == 0
        assert redis_repository.get_by_key("blog") is not None

    def test_scan_all(self, redis_repository: RedisCacheRepository) -> None:
        assert redis_repository.scan_all() == []

        for key, usage, tokens in [("a", 1, 100), ("b", 3, 200)]:
            redis_repository.upsert(make_entry(key, usage_count=usage, tokens_saved=tokens))

        assert sorted(redis_repository.scan_all()) == [(1, 100), (3, 200)]

    def test_delete_and_clear(self, redis_repository: RedisCacheRepository) -> None:
        for key in ("a", "b", "c"):
            redis_repository.upsert(make_entry(key))

        assert redis_repository.delete_by_key("a") is True
        assert redis_repository.clear_all() == 2
        assert redis_repository.scan_all() == []

    def test_health_check(self, redis_repository: RedisCacheRepository) -> None:
        assert redis_repository.health_check() is True


@pytest.mark.unit
class TestCacheServiceOnRedis:
    @pytest.mark.asyncio
    async def test_idempotent_store(self, redis_repository: RedisCacheRepository) -> None:
        cache = CacheService(
            repository=redis_repository,
            embedding_provider=HashEmbeddingProvider(dimension=2),
            clock=FakeClock(),
        )
        key = await cache.store("Create a blog schema", {"v": 1}, "SELECT 1;", tokens_used=100)
        again = await cache.store("  create a blog SCHEMA", {"v": 2}, "SELECT 2;", tokens_used=100)

        assert again == key
        assert cache.get_stats().total_cached == 1
        assert redis_repository.get_by_key(key).schema == {"v": 2}  # type: ignore[union-attr]

    def test_stats_and_prune(self, redis_repository: RedisCacheRepository) -> None:
        cache = CacheService(
            repository=redis_repository,
            embedding_provider=HashEmbeddingProvider(dimension=2),
            clock=FakeClock(),
        )
        for key, usage, tokens, age in [("a", 1, 100, 1), ("b", 3, 200, 31), ("c", 5, 50, 40)]:
            redis_repository.upsert(
                make_entry(key, usage_count=usage, tokens_saved=tokens, last_used_at=START - timedelta(days=age))
            )

        stats = cache.get_stats()
        assert (stats.total_cached, stats.total_hits, stats.total_tokens_saved) == (3, 6, 600)

        assert cache.prune_old_cache(30) == 2
        assert cache.get_stats().total_cached == 1


@pytest.mark.unit
class TestRedisUnavailable:
    def test_construction_does_no_io(self, dead_redis_repository: RedisCacheRepository) -> None:
        assert dead_redis_repository.health_check() is False

    @pytest.mark.asyncio
    async def test_search_raises_redis_error(self, dead_redis_repository: RedisCacheRepository) -> None:
        cache = CacheService(repository=dead_redis_repository, embedding_provider=HashEmbeddingProvider(1536))
        with pytest.raises(redis.RedisError):
            await cache.find_similar("Create a blog schema")

    def test_lookup_and_search_degrade_to_miss(self, dead_redis_repository: RedisCacheRepository) -> None:
        cache = CacheService(repository=dead_redis_repository, embedding_provider=HashEmbeddingProvider(1536))
        with TestClient(create_app(cache_service=cache)) as client:
            for path in ("/cache/lookup", "/cache/search"):
                response = client.post(path, json={"prompt": "Create a blog schema"})
                assert response.status_code == 200
                assert response.json()["found"] is False

            assert client.get("/health").json()["cache_healthy"] is False


@pytest.fixture
def stack_repository():
    client = redis.Redis.from_url(REDIS_STACK_URL)  # type: ignore[arg-type]
    repository = RedisCacheRepository(
        redis_client=client,
        embedding_provider=HashEmbeddingProvider(dimension=2),
        index_name=f"test_cache_{uuid.uuid4().hex[:8]}",
    )
    yield repository
    repository.clear_all()
    repository.ensure_index().delete(drop=True)


@pytest.mark.redis_stack
@pytest.mark.skipif(REDIS_STACK_URL is None, reason="REDIS_STACK_URL not set")
class TestRedisIndexQueries:
    def test_similarity_search(self, stack_repository: RedisCacheRepository) -> None:
        stack_repository.ensure_index()
        stack_repository.upsert(make_entry("best", [1.0, 0.0]))
        stack_repository.upsert(make_entry("runner_up", [0.6, 0.8]))

        matches = stack_repository.similarity_search([1.0, 0.0], threshold=0.5)
        assert [(entry.cache_key, similarity) for entry, similarity in matches] == [
            ("best", 1.0),
            ("runner_up", pytest.approx(0.6, abs=1e-6)),
        ]
        assert stack_repository.similarity_search([1.0, 0.0], threshold=0.7)[0][0].cache_key == "best"
        assert len(stack_repository.similarity_search([1.0, 0.0], threshold=0.7)) == 1

    def test_top_by_usage(self, stack_repository: RedisCacheRepository) -> None:
        stack_repository.ensure_index()
        for key, usage in [("a", 2), ("b", 9), ("c", 5), ("d", 1)]:
            stack_repository.upsert(make_entry(key, usage_count=usage))

        top = stack_repository.top_by_usage(3)
        assert [(e.cache_key, e.usage_count) for e in top] == [("b", 9), ("c", 5), ("a", 2)]
