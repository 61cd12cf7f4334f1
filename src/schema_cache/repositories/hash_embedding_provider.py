"""SHA-256 pseudo-embedding provider.

A deterministic placeholder for a real embedding model. The vector is the
SHA-256 digest of the normalized prompt, one dimension per byte scaled to
[0, 1], zero-padded to the target dimension.

Identical normalized prompts always produce identical vectors, so exact
repeats match with similarity 1.0. Paraphrases with different bytes do NOT
cluster: the vector carries no meaning beyond textual identity.
"""

from schema_cache.config import settings
from schema_cache.utils.hashing import prompt_digest


class HashEmbeddingProvider:
    """Hash-based implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.
    """

    MODEL_NAME = "sha256-pseudo-embedding"

    def __init__(self, dimension: int | None = None) -> None:
        """Initialize the hash embedding provider.

        Args:
            dimension: Output vector length. Defaults to settings.embedding_dimension.
        """
        self._dimension = dimension or settings.embedding_dimension

    @classmethod
    def create(cls, dimension: int | None = None) -> "HashEmbeddingProvider":
        """Factory method to create HashEmbeddingProvider with defaults.

        Args:
            dimension: Vector length. If None, uses settings.

        Returns:
            Configured HashEmbeddingProvider
        """
        return cls(dimension=dimension)

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self.MODEL_NAME

    @property
    def is_fallback(self) -> bool:
        return True

    def embed(self, text: str) -> list[float]:
        """Synchronous form of encode()."""
        vector = [byte / 255 for byte in prompt_digest(text)]
        if len(vector) < self._dimension:
            vector.extend([0.0] * (self._dimension - len(vector)))
        return vector[: self._dimension]

    async def encode(self, text: str) -> list[float]:
        """Generate the pseudo-embedding for a single text.

        Args:
            text: The text to encode (normalized before hashing)

        Returns:
            Vector of exactly `dimension` floats in [0, 1]
        """
        return self.embed(text)

    async def is_available(self) -> bool:
        """Hashing needs no external service."""
        return True
