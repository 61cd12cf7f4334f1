"""Cache entry domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached schema generation result.

    This is an internal representation used by services and repositories.
    For API contracts, use the DTO classes from the dto package.

    Attributes:
        cache_key: SHA-256 hex digest of the normalized prompt
        prompt: The original prompt text
        embedding: The embedding vector for the normalized prompt
        schema: The generated data-model definition
        sql: The SQL statements matching the schema
        model_used: Identifier of the model that generated the artifact
        tokens_saved: Tokens the original generation consumed
        usage_count: Number of uses, the initial store included
        created_at: When this entry was first stored
        last_used_at: When this entry was last stored or hit
    """

    cache_key: str
    prompt: str
    schema: Any
    sql: str
    model_used: str
    tokens_saved: int
    created_at: datetime
    last_used_at: datetime
    usage_count: int = 1
    embedding: list[float] = field(default_factory=list, repr=False)

    @property
    def hits(self) -> int:
        """Reuses beyond the initial store."""
        return self.usage_count - 1

    @property
    def total_tokens_saved(self) -> int:
        """Tokens saved by every reuse of this entry."""
        return self.tokens_saved * self.hits
