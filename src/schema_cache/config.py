import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "redis")  # "redis" or "memory"
    cache_index_name: str = os.getenv("CACHE_INDEX_NAME", "schema_cache")
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.95"))
    search_similarity_threshold: float = float(os.getenv("SEARCH_SIMILARITY_THRESHOLD", "0.90"))
    cache_candidate_limit: int = int(os.getenv("CACHE_CANDIDATE_LIMIT", "5"))
    cache_max_age_days: int = int(os.getenv("CACHE_MAX_AGE_DAYS", "30"))

    # Embedding
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "1536"))
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_embedding_model: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")

    # Generation accounting
    default_model: str = os.getenv("DEFAULT_MODEL", "claude-3-opus-20240229")
    # Blended input/output price per 1K tokens
    cost_per_1k_tokens: float = float(os.getenv("COST_PER_1K_TOKENS", "0.045"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "console")  # "console" or "json"

    @property
    def embeddings_configured(self) -> bool:
        """Check if a real embedding model is configured.

        Returns:
            True if an OpenAI API key is present, False otherwise
        """
        return bool(self.openai_api_key)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in ("cache_similarity_threshold", "search_similarity_threshold"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name.upper()} must be in (0, 1] for cosine similarity, got {value}")

        if self.cache_backend not in ("redis", "memory"):
            raise ValueError(f"CACHE_BACKEND must be 'redis' or 'memory', got {self.cache_backend!r}")

        if self.cache_candidate_limit < 1:
            raise ValueError("CACHE_CANDIDATE_LIMIT must be at least 1")

        if self.embedding_dimension < 1:
            raise ValueError("EMBEDDING_DIMENSION must be positive")

        if self.log_format not in ("console", "json"):
            raise ValueError(f"LOG_FORMAT must be 'console' or 'json', got {self.log_format!r}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
