"""Service layer: cache orchestration and answer generation.

SemanticCacheService decides hit or miss and writes fresh answers back.
OpenAIGenerationService produces those fresh answers and knows the
signature of its own generation configuration.

Usage:
    ```python
    from semantic_llm_cache.services import OpenAIGenerationService, SemanticCacheService

    generator = OpenAIGenerationService.create()
    cache = SemanticCacheService.create(repository=repo, embedding_provider=provider)
    result = await cache.lookup_or_generate(
        prompt, generator.signature(), lambda: generator.complete(prompt)
    )
    ```
"""

from .cache_service import Generator, SemanticCacheService
from .generation_service import OpenAIGenerationService

__all__ = [
    "Generator",
    "OpenAIGenerationService",
    "SemanticCacheService",
]
