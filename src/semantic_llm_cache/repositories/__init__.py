"""Repository layer for data access.

This layer abstracts external dependencies (Redis, embedding APIs)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → in-memory, local → OpenAI, etc.)
- Unit testing with mock implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from semantic_llm_cache.config import Settings, settings
from semantic_llm_cache.protocols import CacheStore, EmbeddingProvider

from .local_embedding_provider import LocalEmbeddingProvider
from .memory_repository import InMemoryCacheRepository
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .redis_repository import RedisCacheRepository


def create_embedding_provider(config: Settings = settings) -> EmbeddingProvider:
    """Build the embedding provider selected by EMBEDDING_PROVIDER."""
    if config.embedding_provider == "ollama":
        return OllamaEmbeddingProvider.create(model_name=config.embedding_model)
    if config.embedding_provider == "openai":
        return OpenAIEmbeddingProvider.create(model_name=config.openai_embedding_model)
    return LocalEmbeddingProvider.create(model_name=config.embedding_model)


def create_cache_store(
    embedding_provider: EmbeddingProvider,
    config: Settings = settings,
) -> CacheStore:
    """Build the cache store selected by CACHE_BACKEND."""
    if config.cache_backend == "memory":
        return InMemoryCacheRepository.create()
    return RedisCacheRepository.create(
        embedding_provider=embedding_provider,
        index_name=config.cache_index_name,
    )


__all__ = [
    "CacheStore",
    "EmbeddingProvider",
    "InMemoryCacheRepository",
    "LocalEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "RedisCacheRepository",
    "create_cache_store",
    "create_embedding_provider",
]
