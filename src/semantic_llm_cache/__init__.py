"""Semantic LLM Cache - reuse LLM answers for semantically similar prompts.

A prompt is answered from the cache only when a stored prompt is similar
enough (vector search) AND was answered under the same generation
configuration (signature). Otherwise the answer is generated once and
written back with a TTL.

Layers:
    - protocols: Interface contracts (CacheStore, EmbeddingProvider)
    - repositories: Data access implementations
    - services: Business logic
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from semantic_llm_cache import SemanticCacheService, build_signature

    cache = SemanticCacheService.create(repository=repo, embedding_provider=provider)
    signature = build_signature("gpt-4o-mini", 0.7, 1024, "Answer casually.")
    result = await cache.lookup_or_generate(prompt, signature, generate)
    ```

For HTTP API:
    ```python
    from semantic_llm_cache.api.app import app
    ```
"""

from semantic_llm_cache.config import get_redis_client, settings
from semantic_llm_cache.entities import (
    UNCACHED_ID,
    CacheCandidate,
    CacheEntry,
    CacheOptions,
    CacheResult,
    CacheSource,
)
from semantic_llm_cache.errors import (
    CacheWriteFailure,
    EmbeddingFailure,
    GenerationFailure,
    SemanticCacheError,
    StoreFailure,
)
from semantic_llm_cache.protocols import CacheStore, EmbeddingProvider
from semantic_llm_cache.repositories import (
    InMemoryCacheRepository,
    LocalEmbeddingProvider,
    OllamaEmbeddingProvider,
    OpenAIEmbeddingProvider,
    RedisCacheRepository,
)
from semantic_llm_cache.services import OpenAIGenerationService, SemanticCacheService
from semantic_llm_cache.signature import build_signature

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheStore",
    "EmbeddingProvider",
    # Services (business logic)
    "SemanticCacheService",
    "OpenAIGenerationService",
    "build_signature",
    # Repositories (data access)
    "RedisCacheRepository",
    "InMemoryCacheRepository",
    "LocalEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    # Entities (domain models)
    "CacheCandidate",
    "CacheEntry",
    "CacheOptions",
    "CacheResult",
    "CacheSource",
    "UNCACHED_ID",
    # Errors
    "SemanticCacheError",
    "EmbeddingFailure",
    "StoreFailure",
    "CacheWriteFailure",
    "GenerationFailure",
]
