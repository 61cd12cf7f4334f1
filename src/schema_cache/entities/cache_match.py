"""Cache match domain entity."""

from dataclasses import dataclass
from typing import Any

from .cache_entry import CacheEntryEntity


@dataclass(frozen=True)
class CacheMatchEntity:
    """Domain entity for a similarity search result.

    Attributes:
        entry: The matched cache entry
        similarity: Cosine similarity to the query (1 = identical)
    """

    entry: CacheEntryEntity
    similarity: float

    @property
    def cache_key(self) -> str:
        return self.entry.cache_key

    @property
    def schema(self) -> Any:
        return self.entry.schema

    @property
    def sql(self) -> str:
        return self.entry.sql

    @property
    def tokens_saved(self) -> int:
        return self.entry.tokens_saved
