"""OpenAI embedding provider.

Calls the OpenAI embeddings API (default model: text-embedding-3-small).
Requires OPENAI_API_KEY.
"""

import openai
from openai import AsyncOpenAI

from semantic_llm_cache.config import settings
from semantic_llm_cache.errors import EmbeddingFailure


class OpenAIEmbeddingProvider:
    """OpenAI implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.
    """

    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            model_name: Embedding model. Defaults to settings.openai_embedding_model.
            api_key: API key. Defaults to settings.openai_api_key.
            timeout: Request timeout in seconds.
            client: Pre-built AsyncOpenAI client.
        """
        self._model_name = model_name or settings.openai_embedding_model
        self._api_key = api_key or settings.openai_api_key
        self._timeout = timeout
        self._client = client
        self._dimension: int | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults."""
        return cls(model_name=model_name)

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the AsyncOpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = self.MODEL_DIMENSIONS.get(self._model_name, 1536)
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one request.

        Raises:
            EmbeddingFailure: On auth, quota, rate-limit or network errors
        """
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(model=self._model_name, input=texts)
        except openai.OpenAIError as e:
            raise EmbeddingFailure(f"OpenAI embedding error ({self._model_name}): {e}") from e

        embeddings = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
        self._dimension = len(embeddings[0])
        return embeddings

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text."""
        embeddings = await self.encode_batch([text])
        return embeddings[0]

    async def is_available(self) -> bool:
        try:
            await self.encode("test")
            return True
        except EmbeddingFailure:
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
