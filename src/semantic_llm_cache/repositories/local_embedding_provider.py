"""sentence-transformers embedding provider (EMBEDDING_PROVIDER=local).

Runs the model in-process; the first call downloads it from the Hugging Face
hub if it is not cached yet. Encoding is CPU/GPU bound and runs in a worker
thread so the event loop keeps serving other requests.
"""

import asyncio
import logging
import threading
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from semantic_llm_cache.config import settings
from semantic_llm_cache.errors import EmbeddingFailure

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """EmbeddingProvider backed by a local sentence-transformers model.

    Vectors are L2-normalized, so cosine similarity equals the dot product.
    Default model: paraphrase-multilingual-MiniLM-L12-v2 (384 dimensions).
    """

    def __init__(self, model_name: str | None = None) -> None:
        self._model_name = model_name or settings.embedding_model
        self._model: SentenceTransformer | None = None
        self._load_lock = threading.Lock()

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with settings defaults."""
        return cls(model_name=model_name)

    def _load(self) -> SentenceTransformer:
        # Worker threads may race to load on the first burst of requests
        with self._load_lock:
            if self._model is None:
                logger.info("Loading embedding model: %s", self._model_name)
                start_time = time.time()
                self._model = SentenceTransformer(self._model_name)
                logger.info("Model %s loaded in %.2fs", self._model_name, time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        """Vector length reported by the model (loads it if needed)."""
        return self._load().get_sentence_embedding_dimension()

    @property
    def model_name(self) -> str:
        return self._model_name

    def _encode_sync(self, texts: list[str]) -> list[list[float]]:
        vectors: np.ndarray = self._load().encode(
            texts,
            show_progress_bar=False,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        return vectors.astype(np.float32).tolist()

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several prompts in one model call.

        Raises:
            EmbeddingFailure: If the model cannot be loaded or encoding fails
        """
        if not texts:
            return []
        try:
            return await asyncio.to_thread(self._encode_sync, texts)
        except Exception as e:
            raise EmbeddingFailure(f"Local embedding failed ({self._model_name}): {e}") from e

    async def encode(self, text: str) -> list[float]:
        """Embed a single prompt."""
        vectors = await self.encode_batch([text])
        return vectors[0]

    async def is_available(self) -> bool:
        try:
            await asyncio.to_thread(self._load)
        except Exception as e:
            logger.warning("Embedding model %s unavailable: %s", self._model_name, e)
            return False
        return True

    async def close(self) -> None:
        # The model stays loaded for the lifetime of the process
        pass
