"""Cache storage protocol.

Defines the interface for any persisted store that can keep cache rows
keyed by cache key and answer vector-similarity queries over them.

Implementations can include:
- Redis Stack with vector search (default)
- In-memory store (tests, local development)
- PostgreSQL with pgvector
- Any other store with cosine similarity search

Every read-modify-write (upsert, hit increment) must be a single atomic
operation at the storage layer. The service holds no locks.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from schema_cache.entities import CacheEntryEntity


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Example:
        ```python
        from schema_cache.protocols import CacheStore

        # Type check passes for any matching implementation
        repo: CacheStore = RedisCacheRepository.create()
        repo: CacheStore = InMemoryCacheRepository()
        ```
    """

    def upsert(self, entry: CacheEntryEntity) -> str:
        """Insert an entry, or overwrite the content of the row with its key.

        On overwrite, prompt, embedding, schema, sql, model_used and
        tokens_saved are replaced; usage_count, created_at and
        last_used_at are kept.

        Args:
            entry: The entry to write

        Returns:
            The cache key of the row
        """
        ...

    def get_by_key(self, cache_key: str) -> CacheEntryEntity | None:
        """Point lookup by cache key.

        Args:
            cache_key: The cache key to fetch

        Returns:
            The entry, or None if absent
        """
        ...

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
        """
        ...

    def record_hit(self, cache_key: str, used_at: datetime) -> CacheEntryEntity | None:
        """Atomically increment usage_count and advance last_used_at.

        Args:
            cache_key: The key of the hit entry
            used_at: Time of the hit

        Returns:
            The entry after the increment, or None if it vanished
        """
        ...

    def delete_by_key(self, cache_key: str) -> bool:
        """Delete a specific entry by key.

        Args:
            cache_key: The cache key to delete

        Returns:
            True if deleted, False if there was nothing to delete
        """
        ...

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every entry whose last_used_at is before cutoff.

        Args:
            cutoff: Entries last used strictly before this are removed

        Returns:
            Number of entries deleted
        """
        ...

    def scan_all(self) -> list[tuple[int, int]]:
        """Read the accounting fields of every entry.

        Returns:
            List of (usage_count, tokens_saved) tuples
        """
        ...

    def top_by_usage(self, limit: int = 10) -> list[CacheEntryEntity]:
        """Return the most used entries.

        Args:
            limit: Maximum number of entries

        Returns:
            Entries ordered by usage_count, highest first
        """
        ...

    def clear_all(self) -> int:
        """Clear all entries from the cache.

        Returns:
            Number of entries deleted
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...
