"""Cache service for core business logic.

This service orchestrates cache operations by coordinating
the repository (data access) and embedding provider (vector generation).

The cache is an optimization, never a dependency: a failed lookup becomes a
miss and a failed write-back leaves the response uncached. Only the
generation step can fail a request.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from semantic_llm_cache.config import settings
from semantic_llm_cache.entities import (
    UNCACHED_ID,
    CacheEntry,
    CacheOptions,
    CacheResult,
    CacheSource,
    LookupOutcome,
    LookupStatus,
)
from semantic_llm_cache.errors import (
    CacheWriteFailure,
    EmbeddingFailure,
    GenerationFailure,
    StoreFailure,
)
from semantic_llm_cache.metrics import CacheMetrics
from semantic_llm_cache.protocols import CacheStore, EmbeddingProvider

logger = logging.getLogger(__name__)

Generator = Callable[[], Awaitable[str]]


def _preview(text: str, length: int = 50) -> str:
    return text if len(text) <= length else f"{text[:length]}..."


class SemanticCacheService:
    """Core cache orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - CacheStore: can be Redis, in-memory, etc.
    - EmbeddingProvider: can be local, Ollama, OpenAI, etc.

    No locks are held: concurrent misses for the same prompt may both
    generate and both write. Duplicates only cost storage, since every read
    re-checks similarity and signature.

    Example:
        ```python
        from semantic_llm_cache.services import SemanticCacheService
        from semantic_llm_cache.signature import build_signature

        cache = SemanticCacheService.create(
            repository=RedisCacheRepository.create(),
            embedding_provider=LocalEmbeddingProvider.create(),
        )

        signature = build_signature("gpt-4o-mini", 0.7, 1024, system_prompt)
        result = await cache.lookup_or_generate(prompt, signature, generate)
        print(result.source, result.response)
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        options: CacheOptions | None = None,
        metrics: CacheMetrics | None = None,
    ) -> None:
        """Initialize the cache service.

        Args:
            repository: Cache storage backend (required).
            embedding_provider: Embedding generation service (required).
            options: Default options for lookups and write-backs.
            metrics: Outcome counters. A fresh CacheMetrics if None.
        """
        self._repository = repository
        self._embeddings = embedding_provider
        self._options = options or CacheOptions()
        self._metrics = metrics or CacheMetrics()

    @classmethod
    def create(
        cls,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        similarity_threshold: float | None = None,
        candidate_count: int | None = None,
        ttl_minutes: int | None = None,
    ) -> "SemanticCacheService":
        """Factory method to create SemanticCacheService with settings defaults.

        Args:
            repository: Cache storage backend (required).
            embedding_provider: Embedding generation service (required).
            similarity_threshold: Min score for a hit. If None, uses settings.
            candidate_count: Nearest neighbours to fetch. If None, uses settings.
            ttl_minutes: Entry freshness window. If None, uses settings.

        Returns:
            Configured SemanticCacheService instance
        """
        options = CacheOptions(
            similarity_threshold=(
                settings.cache_similarity_threshold if similarity_threshold is None else similarity_threshold
            ),
            candidate_count=settings.cache_candidate_count if candidate_count is None else candidate_count,
            ttl_minutes=settings.cache_ttl_minutes if ttl_minutes is None else ttl_minutes,
        )
        return cls(repository=repository, embedding_provider=embedding_provider, options=options)

    async def _embed(self, text: str) -> list[float]:
        try:
            return await self._embeddings.encode(text)
        except EmbeddingFailure:
            raise
        except Exception as e:
            raise EmbeddingFailure(f"Embedding provider {self._embeddings.model_name} failed: {e}") from e

    async def lookup(
        self,
        prompt: str,
        signature: str,
        similarity_threshold: float | None = None,
        candidate_count: int | None = None,
    ) -> CacheEntry | None:
        """Find a cached entry that answers this prompt under this signature.

        Business logic:
        1. Generate embedding for the query prompt
        2. Fetch the nearest `candidate_count` entries
        3. Take the best-scored candidate; below threshold is a miss
        4. Fetch it and require an exact signature match

        Args:
            prompt: The prompt to search for
            signature: Generation configuration of the request
            similarity_threshold: Override default minimum score
            candidate_count: Override default number of candidates

        Returns:
            The matching CacheEntry, or None on a miss

        Raises:
            EmbeddingFailure: If the prompt cannot be embedded
            StoreFailure: If the vector search or fetch fails
        """
        threshold = self._options.similarity_threshold if similarity_threshold is None else similarity_threshold
        k = self._options.candidate_count if candidate_count is None else candidate_count

        vector = await self._embed(prompt)
        candidates = await self._repository.vector_search(vector, k)

        if not candidates:
            logger.debug("No cached prompts found for %r", _preview(prompt))
            return None

        best = max(candidates, key=lambda c: c.score)
        if best.score < threshold:
            logger.debug("Best match %s scored %.4f, below threshold %.2f", best.id, best.score, threshold)
            return None

        entry = await self._repository.get_by_id(best.id)
        if entry is None:
            # Expired between search and fetch
            logger.debug("Candidate %s disappeared before fetch", best.id)
            return None

        if not entry.matches_signature(signature):
            logger.debug(
                "Signature mismatch for %s: expected %r, found %r",
                entry.id,
                signature,
                entry.signature,
            )
            return None

        logger.debug("Match %s scored %.4f", entry.id, best.score)
        return entry

    async def _try_lookup(self, prompt: str, signature: str, options: CacheOptions) -> LookupOutcome:
        try:
            entry = await self.lookup(
                prompt,
                signature,
                similarity_threshold=options.similarity_threshold,
                candidate_count=options.candidate_count,
            )
        except Exception as e:
            return LookupOutcome.degraded(e)

        if entry is None:
            return LookupOutcome.miss()
        return LookupOutcome.hit(entry)

    async def put(
        self,
        prompt: str,
        signature: str,
        response: str,
        ttl_minutes: int | None = None,
    ) -> str:
        """Store a prompt-response pair as a new cache entry.

        Business logic:
        1. Generate a new unique id
        2. Generate embedding for the prompt
        3. Create the domain entity
        4. Delegate to repository with the TTL

        Args:
            prompt: The original prompt text
            signature: Generation configuration that produced the response
            response: The LLM response to cache
            ttl_minutes: Freshness window. Defaults to the service options.

        Returns:
            The id of the new entry

        Raises:
            CacheWriteFailure: If embedding or storage fails
        """
        ttl = self._options.ttl_minutes if ttl_minutes is None else ttl_minutes
        entry_id = uuid.uuid4().hex

        try:
            vector = await self._embed(prompt)
            entry = CacheEntry(
                id=entry_id,
                prompt=prompt,
                signature=signature,
                response=response,
                embedding=tuple(vector),
                created_at=int(time.time() * 1000),
                ttl_minutes=ttl,
            )
            await self._repository.upsert_with_ttl(entry, ttl)
        except Exception as e:
            raise CacheWriteFailure(f"Failed to cache response as {entry_id}: {e}") from e

        logger.info(
            "Stored cache entry %s for %r (signature=%s, ttl=%dm)",
            entry_id,
            _preview(prompt),
            signature,
            ttl,
        )
        return entry_id

    async def lookup_or_generate(
        self,
        prompt: str,
        signature: str,
        generate: Generator,
        options: CacheOptions | None = None,
    ) -> CacheResult:
        """Return a cached response, or generate, cache and return a fresh one.

        `generate` is awaited at most once per call and never on a hit.
        A failing lookup counts as a miss; a failing write-back still returns
        the fresh response, with id UNCACHED_ID. Exceptions from `generate`
        propagate unchanged.

        Args:
            prompt: The user prompt
            signature: Generation configuration of the request
            generate: Async producer of the authoritative response
            options: Per-call options. Defaults to the service options.

        Returns:
            CacheResult with source HIT or MISS
        """
        options = options or self._options

        start_time = time.perf_counter()
        outcome = await self._try_lookup(prompt, signature, options)
        lookup_time_ms = (time.perf_counter() - start_time) * 1000

        if outcome.is_hit:
            self._metrics.record_hit(lookup_time_ms)
            logger.info("Cache hit %s for %r", outcome.entry.id, _preview(prompt))
            return CacheResult(source=CacheSource.HIT, id=outcome.entry.id, response=outcome.entry.response)

        if outcome.status is LookupStatus.DEGRADED:
            self._metrics.record_miss(lookup_time_ms, degraded=True)
            logger.warning(
                "Cache lookup failed, treating as miss: %s",
                outcome.error,
                exc_info=outcome.error,
            )
        else:
            self._metrics.record_miss(lookup_time_ms)
        logger.info("Cache miss for %r, generating fresh response", _preview(prompt))

        generation_start = time.perf_counter()
        try:
            response = await generate()
        finally:
            self._metrics.record_generation((time.perf_counter() - generation_start) * 1000)

        if not isinstance(response, str):
            raise GenerationFailure(f"Generator returned {type(response).__name__}, expected str")

        try:
            entry_id = await self.put(prompt, signature, response, options.ttl_minutes)
        except CacheWriteFailure as e:
            self._metrics.record_write_failure()
            logger.warning("Returning uncached response: %s", e, exc_info=True)
            return CacheResult(source=CacheSource.MISS, id=UNCACHED_ID, response=response)

        return CacheResult(source=CacheSource.MISS, id=entry_id, response=response)

    async def clear(self, signature: str | None = None) -> int:
        """Delete cache entries, optionally only those with a given signature.

        Each delete is independent: a failing delete is logged and skipped.

        Args:
            signature: Only delete entries with this exact signature

        Returns:
            Number of entries actually deleted

        Raises:
            StoreFailure: If the entries cannot be listed
        """
        entry_ids = await self._repository.query_ids(signature)

        deleted = 0
        for entry_id in entry_ids:
            try:
                if await self._repository.delete_by_id(entry_id):
                    deleted += 1
            except StoreFailure as e:
                logger.warning("Failed to delete cache entry %s: %s", entry_id, e)

        logger.info(
            "Cleared %d of %d cache entries%s",
            deleted,
            len(entry_ids),
            f" with signature {signature!r}" if signature is not None else "",
        )
        return deleted

    async def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with repository stats, options and outcome metrics
        """
        stats = await self._repository.get_stats()
        stats["similarity_threshold"] = self._options.similarity_threshold
        stats["candidate_count"] = self._options.candidate_count
        stats["ttl_minutes"] = self._options.ttl_minutes
        stats["embedding_model"] = self._embeddings.model_name
        stats["metrics"] = self._metrics.to_dict()
        return stats

    async def health(self) -> dict[str, bool]:
        """Check each dependency of the cache.

        Returns:
            {"cache": repository reachable, "embedding": provider available}
        """
        return {
            "cache": await self._repository.health_check(),
            "embedding": await self._embeddings.is_available(),
        }

    async def is_healthy(self) -> bool:
        """Check if cache is healthy.

        Returns:
            True if both repository and embeddings are healthy
        """
        return all((await self.health()).values())

    async def close(self) -> None:
        """Release the repository and embedding provider connections."""
        await self._repository.close()
        await self._embeddings.close()

    @property
    def options(self) -> CacheOptions:
        """Get the default options."""
        return self._options

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Get the underlying embedding provider (for testing)."""
        return self._embeddings
