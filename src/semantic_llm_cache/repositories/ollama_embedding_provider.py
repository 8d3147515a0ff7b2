"""Ollama embedding provider (EMBEDDING_PROVIDER=ollama).

Embeds prompts through a local Ollama server's `/api/embed` endpoint:

    ollama pull nomic-embed-text
    EMBEDDING_PROVIDER=ollama EMBEDDING_MODEL=nomic-embed-text
"""

import logging

import httpx

from semantic_llm_cache.config import settings
from semantic_llm_cache.errors import EmbeddingFailure

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION = 768


class OllamaEmbeddingProvider:
    """EmbeddingProvider backed by the Ollama HTTP API.

    The dimension of well-known models is taken from MODEL_DIMENSIONS until
    the first response reports the real vector length.
    """

    MODEL_DIMENSIONS = {
        "embeddinggemma": 768,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            model_name: Ollama model. Defaults to settings.embedding_model.
            base_url: Server URL. Defaults to settings.ollama_base_url.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (e.g. with a mock transport).
        """
        self._model_name = model_name or settings.embedding_model
        self._url = f"{(base_url or settings.ollama_base_url).rstrip('/')}/api/embed"
        self._timeout = timeout
        self._client = client
        base_model = self._model_name.split(":", 1)[0]
        self._dimension = self.MODEL_DIMENSIONS.get(base_model, DEFAULT_DIMENSION)

    @classmethod
    def create(cls, model_name: str | None = None, base_url: str | None = None) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with settings defaults."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _post(self, payload_input: str | list[str]) -> list[list[float]]:
        try:
            response = await self.client.post(self._url, json={"model": self._model_name, "input": payload_input})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            message = f"Ollama API error: {e}"
            if isinstance(e, httpx.ConnectError):
                message += " (is Ollama running? Try: ollama serve)"
            elif isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 404:
                message += f" (model not pulled? Try: ollama pull {self._model_name})"
            raise EmbeddingFailure(message) from e

        embeddings = data.get("embeddings")
        if not embeddings:
            raise EmbeddingFailure(f"Unexpected Ollama response format: {sorted(data)}")

        self._dimension = len(embeddings[0])
        return embeddings

    async def encode(self, text: str) -> list[float]:
        """Embed a single prompt.

        Raises:
            EmbeddingFailure: If the request fails or returns no vector
        """
        return (await self._post(text))[0]

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several prompts in one request."""
        if not texts:
            return []
        return await self._post(texts)

    async def is_available(self) -> bool:
        try:
            await self.encode("ping")
        except EmbeddingFailure as e:
            logger.warning("Ollama embeddings unavailable: %s", e)
            return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
