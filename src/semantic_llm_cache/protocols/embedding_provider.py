"""Embedding provider protocol.

The cache compares prompts by the cosine similarity of their embeddings, so
a provider only has to turn text into fixed-length vectors. Vectors from
different models are not comparable: switching providers or models needs a
fresh index.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for turning prompts into vectors.

    Implementations: LocalEmbeddingProvider (sentence-transformers),
    OllamaEmbeddingProvider and OpenAIEmbeddingProvider. Every failure to
    produce a vector is raised as `EmbeddingFailure`.
    """

    @property
    def dimension(self) -> int:
        """Length of the vectors; the Redis index is created with it."""
        ...

    @property
    def model_name(self) -> str:
        """Model identifier, reported in stats and error messages."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Embed one prompt.

        Raises:
            EmbeddingFailure: If no vector could be produced
        """
        ...

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several prompts, in input order."""
        ...

    async def is_available(self) -> bool:
        """Whether encode() currently works. Never raises."""
        ...

    async def close(self) -> None:
        ...
