"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class LookupCacheRequest(BaseModel):
    """Request DTO for a cache lookup.

    The handler will convert this to internal calls to the service layer.
    """

    prompt: str = Field(..., description="The prompt to search for", min_length=1)
    threshold: float | None = Field(
        None,
        description="Override the default similarity threshold (0-1, higher = more strict)",
        gt=0.0,
        le=1.0,
    )


class SearchCacheRequest(BaseModel):
    """Request DTO for the public search endpoint (fixed, looser threshold)."""

    prompt: str = Field(..., description="The prompt to search for", min_length=1)


class StoreCacheRequest(BaseModel):
    """Request DTO for storing a generated artifact."""

    prompt: str = Field(..., description="The original user prompt", min_length=1)
    schema_: Any = Field(..., alias="schema", description="The generated schema definition")
    sql: str = Field(..., description="The generated SQL")
    tokens_used: int = Field(0, description="Tokens the generation consumed", ge=0)
    model_used: str | None = Field(None, description="Model that produced the artifact")

    model_config = {"populate_by_name": True}


class PruneCacheRequest(BaseModel):
    """Request DTO for the eviction sweep."""

    max_age_days: int | None = Field(
        None,
        description="Delete entries unused for longer than this many days",
        ge=0,
    )
