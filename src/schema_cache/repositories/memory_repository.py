"""In-memory implementation of CacheStore.

Keeps rows in a dict guarded by a lock and ranks candidates by cosine
similarity with numpy. Used by the test suite and for local runs with
CACHE_BACKEND=memory; state is lost when the process exits.
"""

import threading
from dataclasses import replace
from datetime import datetime

import numpy as np

from schema_cache.entities import CacheEntryEntity

# Similarities are rounded so that identical vectors score exactly 1.0
SIMILARITY_PRECISION = 10


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors, 0.0 if either is all zeros."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return round(float(np.dot(va, vb) / norm), SIMILARITY_PRECISION)


class InMemoryCacheRepository:
    """Process-local implementation of the CacheStore protocol.

    Each public method takes the lock for its whole read-modify-write,
    which gives the same per-statement atomicity a database would.
    """

    def __init__(self) -> None:
        self._rows: dict[str, CacheEntryEntity] = {}
        self._lock = threading.Lock()

    @classmethod
    def create(cls) -> "InMemoryCacheRepository":
        """Factory method mirroring RedisCacheRepository.create()."""
        return cls()

    def upsert(self, entry: CacheEntryEntity) -> str:
        with self._lock:
            existing = self._rows.get(entry.cache_key)
            if existing is None:
                self._rows[entry.cache_key] = entry
            else:
                self._rows[entry.cache_key] = replace(
                    entry,
                    usage_count=existing.usage_count,
                    created_at=existing.created_at,
                    last_used_at=existing.last_used_at,
                )
        return entry.cache_key

    def get_by_key(self, cache_key: str) -> CacheEntryEntity | None:
        with self._lock:
            return self._rows.get(cache_key)

    def similarity_search(
        self,
        embedding: list[float],
        threshold: float,
        limit: int = 5,
    ) -> list[tuple[CacheEntryEntity, float]]:
        with self._lock:
            rows = list(self._rows.values())

        candidates = []
        for entry in rows:
            similarity = cosine_similarity(embedding, entry.embedding)
            if similarity >= threshold:
                candidates.append((entry, similarity))

        candidates.sort(key=lambda c: c[1], reverse=True)
        return candidates[:limit]

    def record_hit(self, cache_key: str, used_at: datetime) -> CacheEntryEntity | None:
        with self._lock:
            entry = self._rows.get(cache_key)
            if entry is None:
                return None
            updated = replace(
                entry,
                usage_count=entry.usage_count + 1,
                last_used_at=max(entry.last_used_at, used_at),
            )
            self._rows[cache_key] = updated
            return updated

    def delete_by_key(self, cache_key: str) -> bool:
        with self._lock:
            return self._rows.pop(cache_key, None) is not None

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [key for key, entry in self._rows.items() if entry.last_used_at < cutoff]
            for key in stale:
                del self._rows[key]
        return len(stale)

    def scan_all(self) -> list[tuple[int, int]]:
        with self._lock:
            return [(entry.usage_count, entry.tokens_saved) for entry in self._rows.values()]

    def top_by_usage(self, limit: int = 10) -> list[CacheEntryEntity]:
        with self._lock:
            rows = list(self._rows.values())
        rows.sort(key=lambda e: e.usage_count, reverse=True)
        return rows[:limit]

    def clear_all(self) -> int:
        with self._lock:
            count = len(self._rows)
            self._rows.clear()
        return count

    def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._rows)
