"""Protocols the cache service is written against.

    CacheStore         -> RedisCacheRepository, InMemoryCacheRepository
    EmbeddingProvider  -> Local / Ollama / OpenAI embedding providers

Both are runtime-checkable, so tests can assert that a fake conforms:

    ```python
    assert isinstance(InMemoryCacheRepository(), CacheStore)
    ```
"""

from .cache_store import CacheStore
from .embedding_provider import EmbeddingProvider

__all__ = [
    "CacheStore",
    "EmbeddingProvider",
]
