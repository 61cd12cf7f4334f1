"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert prompt text to vector embeddings.

Implementations:
- SHA-256 pseudo-embedding (default, deterministic, not semantic)
- OpenAI embeddings API
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    Example:
        ```python
        from schema_cache.protocols import EmbeddingProvider

        provider: EmbeddingProvider = HashEmbeddingProvider()
        provider: EmbeddingProvider = OpenAIEmbeddingProvider(api_key=...)
        ```
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors.

        Returns:
            The vector dimension (1536 for both bundled providers)
        """
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model.

        Returns:
            Model name or identifier
        """
        ...

    @property
    def is_fallback(self) -> bool:
        """Whether this provider is the non-semantic hash placeholder."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available.

        Returns:
            True if available, False otherwise
        """
        ...
