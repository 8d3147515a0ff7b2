"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import dataclasses
import time

from fastapi import HTTPException, status

from semantic_llm_cache.dto import (
    CacheClearResponse,
    CacheEntryItem,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    GenerationParams,
    HealthCheckResponse,
    LookupCacheRequest,
    QueryRequest,
    QueryResponse,
    SignatureResponse,
    StoreCacheRequest,
)
from semantic_llm_cache.entities import CacheEntry
from semantic_llm_cache.errors import GenerationFailure
from semantic_llm_cache.services import OpenAIGenerationService, SemanticCacheService


def _entry_item(entry: CacheEntry) -> CacheEntryItem:
    return CacheEntryItem(
        id=entry.id,
        prompt=entry.prompt,
        signature=entry.signature,
        response=entry.response,
        created_at=entry.created_at,
        ttl_minutes=entry.ttl_minutes,
    )


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates business logic to SemanticCacheService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = CacheHandler(cache_service=cache_service, generator=generator)

        @app.post("/query", response_model=QueryResponse)
        async def query(request: QueryRequest):
            return await handler.query(request)
        ```
    """

    def __init__(self, cache_service: SemanticCacheService, generator: OpenAIGenerationService) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The cache service for business logic (required).
            generator: Produces fresh answers on a cache miss (required).
        """
        self._cache = cache_service
        self._generator = generator

    def _generator_for(self, params: GenerationParams) -> OpenAIGenerationService:
        return self._generator.with_overrides(
            model=params.model,
            temperature=params.temperature,
            max_tokens=params.max_tokens,
            system_prompt=params.system_prompt,
        )

    async def query(self, request: QueryRequest) -> QueryResponse:
        """Handle POST /query requests.

        Args:
            request: The query request DTO

        Returns:
            QueryResponse with the answer and where it came from

        Raises:
            HTTPException: 502 if generation fails, 500 for anything else
        """
        generator = self._generator_for(request)
        signature = generator.signature()

        overrides = {
            name: value
            for name, value in (
                ("similarity_threshold", request.similarity_threshold),
                ("candidate_count", request.candidate_count),
                ("ttl_minutes", request.ttl_minutes),
            )
            if value is not None
        }
        options = dataclasses.replace(self._cache.options, **overrides)

        try:
            result = await self._cache.lookup_or_generate(
                request.prompt,
                signature,
                lambda: generator.complete(request.prompt),
                options,
            )
        except GenerationFailure as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to generate response: {e}",
            ) from e
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to answer query: {e}",
            ) from e

        return QueryResponse(
            source=result.source.value,
            id=result.id,
            response=result.response,
            signature=signature,
        )

    async def lookup(self, request: LookupCacheRequest) -> CacheLookupResponse:
        """Handle POST /cache/lookup requests.

        Unlike /query, lookup errors are reported instead of becoming misses.
        """
        try:
            start_time = time.time()
            entry = await self._cache.lookup(
                request.prompt,
                request.signature,
                similarity_threshold=request.similarity_threshold,
                candidate_count=request.candidate_count,
            )
            lookup_time_ms = (time.time() - start_time) * 1000
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to check cache: {e}",
            ) from e

        return CacheLookupResponse(
            prompt=request.prompt,
            is_hit=entry is not None,
            entry=_entry_item(entry) if entry else None,
            lookup_time_ms=lookup_time_ms,
        )

    async def store(self, request: StoreCacheRequest) -> CacheStoreResponse:
        """Handle POST /cache/store requests.

        Args:
            request: The store cache request DTO

        Returns:
            CacheStoreResponse with storage confirmation

        Raises:
            HTTPException: If an error occurs during storage
        """
        try:
            entry_id = await self._cache.put(
                prompt=request.prompt,
                signature=request.signature,
                response=request.response,
                ttl_minutes=request.ttl_minutes,
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store entry: {e}",
            ) from e

        return CacheStoreResponse(success=True, id=entry_id, message="Entry stored successfully")

    async def signature(self, params: GenerationParams) -> SignatureResponse:
        """Handle POST /cache/signature requests."""
        return SignatureResponse(signature=self._generator_for(params).signature())

    async def clear(self, signature: str | None = None) -> CacheClearResponse:
        """Handle DELETE /cache requests.

        Args:
            signature: Only clear entries with this signature (None = all)

        Returns:
            CacheClearResponse with the number of entries removed
        """
        try:
            count = await self._cache.clear(signature)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        return CacheClearResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully",
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Returns:
            CacheStatsResponse with cache statistics

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            stats = await self._cache.get_stats()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

        return CacheStatsResponse(
            backend=stats.get("backend", "unknown"),
            total_entries=stats.get("total_entries", 0),
            similarity_threshold=stats["similarity_threshold"],
            candidate_count=stats["candidate_count"],
            ttl_minutes=stats["ttl_minutes"],
            embedding_model=stats["embedding_model"],
            metrics=stats["metrics"],
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with per-dependency status
        """
        health = await self._cache.health()
        is_healthy = all(health.values())

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=health["cache"],
            embedding_healthy=health["embedding"],
        )
