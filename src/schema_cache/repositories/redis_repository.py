"""Redis implementation of CacheStore.

This repository uses Redis Stack with vector search capabilities (HNSW index).
It's the default implementation and satisfies the CacheStore protocol.

Each entry is one hash at ``{index_name}:{cache_key}``, so writing the same
normalized prompt twice always lands on the same row. Upserts run inside
MULTI/EXEC while hits and the age sweep run as Lua scripts, making each
read-modify-write a single atomic operation on the server.
"""

import json
import struct
from datetime import datetime, timezone
from typing import Any

import redis
import structlog
from redisvl.exceptions import RedisVLError
from redisvl.index import SearchIndex
from redisvl.query import FilterQuery, VectorQuery

from schema_cache.config import get_redis_client, settings
from schema_cache.entities import CacheEntryEntity
from schema_cache.protocols import EmbeddingProvider

logger = structlog.stdlib.get_logger()

# float32 vectors: 1 - cosine_distance is only good to ~1e-7
SIMILARITY_PRECISION = 6

# Increment usage_count, advance last_used_at (never backwards), return the row
RECORD_HIT_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return nil
end
redis.call('HINCRBY', KEYS[1], 'usage_count', 1)
local last = tonumber(redis.call('HGET', KEYS[1], 'last_used_at') or '0')
if tonumber(ARGV[1]) > last then
  redis.call('HSET', KEYS[1], 'last_used_at', ARGV[1])
end
return redis.call('HGETALL', KEYS[1])
"""

# Delete the row only if it is still idle past the cutoff
DELETE_IF_IDLE_SCRIPT = """
local last = redis.call('HGET', KEYS[1], 'last_used_at')
if last and tonumber(last) < tonumber(ARGV[1]) then
  return redis.call('DEL', KEYS[1])
end
return 0
"""

RETURN_FIELDS = [
    "cache_key",
    "prompt",
    "response_schema",
    "response_sql",
    "model_used",
    "tokens_saved",
    "usage_count",
    "created_at",
    "last_used_at",
]


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _to_timestamp(value: datetime) -> float:
    return value.timestamp()


def _from_timestamp(value: Any) -> datetime:
    return datetime.fromtimestamp(float(_text(value)), tz=timezone.utc)


def _pack_vector(vector: list[float]) -> bytes:
    return struct.pack(f"{len(vector)}f", *vector)


def _unpack_vector(raw: bytes) -> list[float]:
    return list(struct.unpack(f"{len(raw) // 4}f", raw))


def _entry_from_fields(fields: dict[str, Any], embedding: list[float] | None = None) -> CacheEntryEntity:
    """Build an entity from decoded hash fields or search result fields."""
    return CacheEntryEntity(
        cache_key=_text(fields["cache_key"]),
        prompt=_text(fields["prompt"]),
        schema=json.loads(_text(fields["response_schema"])),
        sql=_text(fields["response_sql"]),
        model_used=_text(fields["model_used"]),
        tokens_saved=int(_text(fields["tokens_saved"])),
        usage_count=int(_text(fields["usage_count"])),
        created_at=_from_timestamp(fields["created_at"]),
        last_used_at=_from_timestamp(fields["last_used_at"]),
        embedding=embedding or [],
    )


def _entry_from_hash(raw: dict[bytes, bytes]) -> CacheEntryEntity:
    """Build an entity from a raw HGETALL reply."""
    vector_raw = raw.pop(b"prompt_vector", b"")
    fields = {_text(k): v for k, v in raw.items()}
    return _entry_from_fields(fields, _unpack_vector(vector_raw))


class RedisCacheRepository:
    """Redis implementation using HNSW vector index.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Uses Redis Stack's vector search with:
    - HNSW (Hierarchical Navigable Small World) algorithm
    - COSINE distance metric
    - No TTL: eviction is the age-based prune sweep

    The constructor does no I/O. The search index is created by
    ``ensure_index()``, which ``create()`` calls eagerly and every
    index-backed query calls on demand. Failures from redisvl surface as
    ``redis.RedisError`` like every other store failure.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        index_name: str | None = None,
    ) -> None:
        """Initialize the Redis cache repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            embedding_provider: Provider for getting vector dimension.
            index_name: Name of the Redis search index.
        """
        self._client = redis_client or get_redis_client()
        self._index_name = index_name or settings.cache_index_name
        self._dimension = embedding_provider.dimension if embedding_provider else settings.embedding_dimension
        self._index: SearchIndex | None = None
        self._record_hit = self._client.register_script(RECORD_HIT_SCRIPT)
        self._delete_if_idle = self._client.register_script(DELETE_IF_IDLE_SCRIPT)

    @classmethod
    def create(
        cls,
        embedding_provider: EmbeddingProvider | None = None,
        index_name: str | None = None,
    ) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository with defaults.

        Creates the index right away. If Redis is unreachable the app still
        starts, and the index is created on the first query instead.

        Args:
            embedding_provider: Provider for vector dimension.
            index_name: Redis index name. If None, uses settings.

        Returns:
            Configured RedisCacheRepository
        """
        repository = cls(
            embedding_provider=embedding_provider,
            index_name=index_name,
        )
        try:
            repository.ensure_index()
        except redis.RedisError as e:
            logger.warning("redis.index.deferred", index=repository._index_name, error=str(e))
        return repository

    def _key(self, cache_key: str) -> str:
        return f"{self._index_name}:{cache_key}"

    def _index_schema(self) -> dict[str, Any]:
        return {
            "index": {
                "name": self._index_name,
                "prefix": f"{self._index_name}:",
                "storage_type": "hash",
            },
            "fields": [
                {"name": "cache_key", "type": "tag"},
                {"name": "prompt", "type": "text", "attrs": {"weight": 1.0}},
                {"name": "response_schema", "type": "text"},
                {"name": "response_sql", "type": "text"},
                {"name": "model_used", "type": "tag"},
                {"name": "tokens_saved", "type": "numeric"},
                {"name": "usage_count", "type": "numeric", "attrs": {"sortable": True}},
                {"name": "created_at", "type": "numeric"},
                {"name": "last_used_at", "type": "numeric", "attrs": {"sortable": True}},
                {
                    "name": "prompt_vector",
                    "type": "vector",
                    "attrs": {
                        "dims": self._dimension,
                        "algorithm": "HNSW",
                        "metric": "COSINE",
                        "datatype": "FLOAT32",
                    },
                },
            ],
        }

    def ensure_index(self) -> SearchIndex:
        """Ensure the Redis vector index exists and return it.

        Raises:
            redis.RedisError: If Redis is unreachable or rejects the index
        """
        if self._index is not None:
            return self._index

        try:
            index = SearchIndex.from_dict(self._index_schema(), redis_client=self._client)
            index.create(overwrite=False)
            logger.info("redis.index.created", index=self._index_name, dims=self._dimension)
        except (redis.ResponseError, RedisVLError) as e:
            if "already exists" not in str(e):
                raise redis.RedisError(f"Failed to create index {self._index_name}: {e}") from e
            logger.info("redis.index.exists", index=self._index_name)

        self._index = index
        return index

    def _query(self, query: VectorQuery | FilterQuery) -> list[dict[str, Any]]:
        try:
            return self.ensure_index().query(query)
        except RedisVLError as e:
            raise redis.RedisError(f"Index query failed: {e}") from e

    def upsert(self, entry: CacheEntryEntity) -> str:
        """Insert or overwrite an entry keyed by its cache key.

        Content fields are always written. Accounting fields are only set
        when absent (HSETNX), so an overwrite keeps usage_count, created_at
        and last_used_at.

        Args:
            entry: The entry to write

        Returns:
            The cache key of the row
        """
        key = self._key(entry.cache_key)

        pipe = self._client.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "cache_key": entry.cache_key,
                "prompt": entry.prompt,
                "prompt_vector": _pack_vector(entry.embedding),
                "response_schema": json.dumps(entry.schema),
                "response_sql": entry.sql,
                "model_used": entry.model_used,
                "tokens_saved": str(entry.tokens_saved),
            },
        )
        pipe.hsetnx(key, "usage_count", str(entry.usage_count))
        pipe.hsetnx(key, "created_at", str(_to_timestamp(entry.created_at)))
        pipe.hsetnx(key, "last_used_at", str(_to_timestamp(entry.last_used_at)))
        pipe.execute()

        return entry.cache_key

    def get_by_key(self, cache_key: str) -> CacheEntryEntity | None:
        """Point lookup by cache key.

        Args:
            cache_key: The cache key to fetch

        Returns:
            The entry, or None if absent
        """
        raw = self._client.hgetall(self._key(cache_key))
        if not raw:
            return None
        return _entry_from_hash(raw)  # type: ignore[arg-type]

    def similarity_search(
        self,
        embedding: list[float],
        threshold: float,
        limit: int = 5,
    ) -> list[tuple[CacheEntryEntity, float]]:
        """Find entries by cosine similarity.

        Args:
            embedding: The query embedding vector
            threshold: Minimum cosine similarity (inclusive)
            limit: Maximum number of candidates to return

        Returns:
            List of (entry, similarity), most similar first

        Raises:
            redis.RedisError: If the store or the index is unavailable
        """
        query = VectorQuery(
            vector=embedding,
            vector_field_name="prompt_vector",
            return_fields=RETURN_FIELDS,
            num_results=limit,
        )

        matches = []
        for result in self._query(query):
            distance = float(result.get("vector_distance", 2.0))
            similarity = round(1.0 - distance, SIMILARITY_PRECISION)
            if similarity >= threshold:
                matches.append((_entry_from_fields(result), similarity))

        matches.sort(key=lambda m: m[1], reverse=True)
        return matches[:limit]

    def record_hit(self, cache_key: str, used_at: datetime) -> CacheEntryEntity | None:
        """Atomically increment usage_count and advance last_used_at.

        Args:
            cache_key: The key of the hit entry
            used_at: Time of the hit

        Returns:
            The entry after the increment, or None if it vanished
        """
        reply = self._record_hit(keys=[self._key(cache_key)], args=[str(_to_timestamp(used_at))])
        if not reply:
            return None
        raw = dict(zip(reply[::2], reply[1::2]))
        return _entry_from_hash(raw)

    def delete_by_key(self, cache_key: str) -> bool:
        """Delete a specific entry by key.

        Args:
            cache_key: The cache key to delete

        Returns:
            True if deleted, False otherwise
        """
        result: int = self._client.delete(self._key(cache_key))  # type: ignore[assignment]
        return result > 0

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete entries whose last_used_at is before cutoff.

        The compare and the delete run as one script per key, so a hit
        landing during the sweep keeps its row.

        Args:
            cutoff: Entries last used strictly before this are removed

        Returns:
            Number of entries deleted
        """
        threshold = str(_to_timestamp(cutoff))
        count = 0
        for key in self._client.scan_iter(match=f"{self._index_name}:*"):
            count += int(self._delete_if_idle(keys=[key], args=[threshold]))
        return count

    def scan_all(self) -> list[tuple[int, int]]:
        """Read (usage_count, tokens_saved) for every entry.

        Returns:
            One tuple per entry
        """
        keys = list(self._client.scan_iter(match=f"{self._index_name}:*"))
        pipe = self._client.pipeline(transaction=False)
        for key in keys:
            pipe.hmget(key, ["usage_count", "tokens_saved"])

        rows = []
        for usage_count, tokens_saved in pipe.execute() if keys else []:
            if usage_count is None:
                continue
            rows.append((int(_text(usage_count)), int(_text(tokens_saved or b"0"))))
        return rows

    def top_by_usage(self, limit: int = 10) -> list[CacheEntryEntity]:
        """Return the most used entries, ranked by the index.

        Args:
            limit: Maximum number of entries

        Returns:
            Entries ordered by usage_count, highest first

        Raises:
            redis.RedisError: If the store or the index is unavailable
        """
        query = FilterQuery(
            filter_expression="*",
            return_fields=RETURN_FIELDS,
            num_results=limit,
        )
        query.sort_by("usage_count", asc=False)
        return [_entry_from_fields(result) for result in self._query(query)]

    def clear_all(self) -> int:
        """Clear all entries from the cache, keeping the index.

        Returns:
            Number of entries deleted
        """
        count = 0
        for key in self._client.scan_iter(match=f"{self._index_name}:*"):
            if self._client.delete(key):
                count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
