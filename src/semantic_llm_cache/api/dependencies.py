"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from semantic_llm_cache.config import settings
from semantic_llm_cache.handlers import CacheHandler
from semantic_llm_cache.logging_config import configure_logging
from semantic_llm_cache.repositories import create_cache_store, create_embedding_provider
from semantic_llm_cache.services import OpenAIGenerationService, SemanticCacheService

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Embedding provider and repository (data access), chosen by settings
    2. Service (business logic) - app.state.cache_service
    3. Generator (miss handler) - app.state.generator
    4. Handler (HTTP endpoints) - app.state.cache_handler

    A cache_service or generator already placed in app.state (e.g. by tests)
    is used as-is and left in place for its owner to close.

    Cleanup:
        Closes what was created here and removes only those attributes
    """
    configure_logging(settings.log_level)

    created: list[str] = []

    if getattr(app.state, "cache_service", None) is None:
        # ⚠️ IMPORTANT: When switching providers or dimensions, clear the cache index
        embedding_provider = create_embedding_provider(settings)
        app.state.cache_service = SemanticCacheService.create(
            repository=create_cache_store(embedding_provider, settings),
            embedding_provider=embedding_provider,
        )
        created.append("cache_service")

    if getattr(app.state, "generator", None) is None:
        app.state.generator = OpenAIGenerationService.create()
        created.append("generator")

    cache_service: SemanticCacheService = app.state.cache_service
    app.state.cache_handler = CacheHandler(cache_service=cache_service, generator=app.state.generator)

    logger.info(
        "Cache service initialized (backend=%s, embeddings=%s, threshold=%.2f, ttl=%dm)",
        settings.cache_backend,
        cache_service.embedding_provider.model_name,
        cache_service.options.similarity_threshold,
        cache_service.options.ttl_minutes,
    )

    try:
        yield
    finally:
        del app.state.cache_handler
        for name in created:
            await getattr(app.state, name).close()
            delattr(app.state, name)
        logger.info("Cache service shut down")


# Type alias for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
