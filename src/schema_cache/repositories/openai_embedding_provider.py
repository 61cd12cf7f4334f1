"""OpenAI-based embedding provider.

Uses the OpenAI embeddings API (or any API-compatible gateway) to produce
semantic embeddings in place of the hash placeholder, so that paraphrased
prompts can match each other.

Requirements:
    - OPENAI_API_KEY set in the environment
    - Optionally OPENAI_BASE_URL for a compatible gateway

The default model text-embedding-3-small returns 1536-dimensional vectors,
the same width as the hash placeholder, so a store built with one provider
keeps its index dimension when switching to the other. Stored vectors are
not comparable across providers: clear the cache after switching.
"""

import httpx

from schema_cache.config import settings
from schema_cache.utils.hashing import normalize_prompt

# Longer inputs are truncated to stay under the model's token limit
MAX_INPUT_CHARS = 8000


class OpenAIEmbeddingProvider:
    """OpenAI implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAIEmbeddingProvider.create(api_key="sk-...")

        embedding = await provider.encode("Create a blog schema")
        print(len(embedding))  # 1536
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            api_key: OpenAI API key. Defaults to settings.openai_api_key.
            model_name: Embedding model. Defaults to settings.openai_embedding_model.
            base_url: API base URL. Defaults to settings.openai_base_url.
            dimension: Requested vector length. Defaults to settings.embedding_dimension.
            timeout: Request timeout in seconds.
        """
        self._api_key = api_key or settings.openai_api_key
        self._model_name = model_name or settings.openai_embedding_model
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._dimension = dimension or settings.embedding_dimension
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults.

        Args:
            api_key: API key. If None, uses settings.
            model_name: Model name. If None, uses settings.
            base_url: API URL. If None, uses settings.

        Returns:
            Configured OpenAIEmbeddingProvider
        """
        return cls(api_key=api_key, model_name=model_name, base_url=base_url)

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    @property
    def is_fallback(self) -> bool:
        return False

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode (normalized before the request)

        Returns:
            The embedding vector as a list of floats

        Raises:
            RuntimeError: If the API request fails
            ValueError: If the response format is invalid
        """
        url = f"{self._base_url}/embeddings"
        payload = {
            "model": self._model_name,
            "input": normalize_prompt(text)[:MAX_INPUT_CHARS],
            "dimensions": self._dimension,
        }

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            error_msg = f"OpenAI embeddings API error: {e}"
            if isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 401:
                error_msg += "\n  → Check OPENAI_API_KEY"
            raise RuntimeError(error_msg) from e

        data = response.json()

        # {"data": [{"embedding": [...], "index": 0}], ...}
        items = data.get("data") or []
        if not items or "embedding" not in items[0]:
            raise ValueError(f"Unexpected response format: {data}")

        embedding = items[0]["embedding"]
        if len(embedding) != self._dimension:
            raise ValueError(
                f"Expected {self._dimension}-dimensional embedding, got {len(embedding)}"
            )
        return embedding

    async def is_available(self) -> bool:
        """Check if the embeddings API is reachable with the configured key.

        Returns:
            True if a test embedding succeeds, False otherwise
        """
        if not self._api_key:
            return False
        try:
            _ = await self.encode("test")
            return True
        except (RuntimeError, ValueError):
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
