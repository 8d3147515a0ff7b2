"""
Tests for SemanticCacheService: lookup, put, lookup_or_generate and clear.
"""

import asyncio
import logging

import pytest

from conftest import (
    PROMISE_PARAPHRASE,
    PROMISE_QUESTION,
    UNRELATED_QUESTION,
    CountingGenerator,
    FakeEmbeddingProvider,
)
from semantic_llm_cache.entities import (
    UNCACHED_ID,
    CacheCandidate,
    CacheEntry,
    CacheOptions,
    CacheSource,
)
from semantic_llm_cache.errors import (
    CacheWriteFailure,
    EmbeddingFailure,
    GenerationFailure,
    StoreFailure,
)
from semantic_llm_cache.services import SemanticCacheService


class StubCacheStore:
    """Store returning fixed candidates, for exact score boundaries."""

    def __init__(self, candidates: list[CacheCandidate], entries: dict[str, CacheEntry]) -> None:
        self.candidates = candidates
        self.entries = entries
        self.requested_k: int | None = None

    async def vector_search(self, vector, k):
        self.requested_k = k
        return list(self.candidates)

    async def get_by_id(self, entry_id):
        return self.entries.get(entry_id)


def make_entry(entry_id: str, signature: str, response: str = "R1") -> CacheEntry:
    return CacheEntry(
        id=entry_id,
        prompt=PROMISE_QUESTION,
        signature=signature,
        response=response,
        embedding=(1.0, 0.0, 0.0),
        created_at=1_700_000_000_000,
        ttl_minutes=1440,
    )


# ============================================================================
# lookup_or_generate
# ============================================================================


@pytest.mark.asyncio
async def test_first_request_is_a_miss_and_generates_once(cache, s1):
    generate = CountingGenerator("R1")

    result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert result.source is CacheSource.MISS
    assert result.response == "R1"
    assert result.id != UNCACHED_ID
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_similar_prompt_same_signature_is_a_hit(cache, s1):
    first = await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    generate = CountingGenerator("should not be used")

    result = await cache.lookup_or_generate(PROMISE_PARAPHRASE, s1, generate)

    assert result.source is CacheSource.HIT
    assert result.id == first.id
    assert result.response == "R1"
    assert generate.calls == 0


@pytest.mark.asyncio
async def test_signature_mismatch_overrides_similarity(cache, s1, s2):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    generate = CountingGenerator("R2")

    # Identical prompt, so similarity is maximal
    result = await cache.lookup_or_generate(PROMISE_QUESTION, s2, generate)

    assert result.source is CacheSource.MISS
    assert result.response == "R2"
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_paraphrase_under_other_signature_is_a_miss(cache, s1, s2):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    generate = CountingGenerator("R2")

    result = await cache.lookup_or_generate(PROMISE_PARAPHRASE, s2, generate)

    assert result.source is CacheSource.MISS
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_best_candidate_below_threshold_is_a_miss(cache, s1):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    generate = CountingGenerator("R2")
    strict = CacheOptions(similarity_threshold=0.95)

    result = await cache.lookup_or_generate(PROMISE_PARAPHRASE, s1, generate, strict)

    assert result.source is CacheSource.MISS
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_unrelated_prompt_is_a_miss(cache, s1):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    generate = CountingGenerator("R2")

    result = await cache.lookup_or_generate(UNRELATED_QUESTION, s1, generate)

    assert result.source is CacheSource.MISS
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_generation_failure_propagates_unchanged(cache, store, s1):
    error = GenerationFailure("upstream down")
    generate = CountingGenerator(error=error)

    with pytest.raises(GenerationFailure) as exc_info:
        await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert exc_info.value is error
    assert generate.calls == 1
    assert await store.count_all() == 0


@pytest.mark.asyncio
async def test_arbitrary_generator_exception_is_not_masked(cache, s1):
    generate = CountingGenerator(error=TimeoutError("completion timed out"))

    with pytest.raises(TimeoutError):
        await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert generate.calls == 1


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_miss(cache, store, s1, caplog):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    store.fail_search = True
    generate = CountingGenerator("R2")

    with caplog.at_level(logging.WARNING, logger="semantic_llm_cache.services.cache_service"):
        result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert result.source is CacheSource.MISS
    assert result.response == "R2"
    assert generate.calls == 1
    assert cache.metrics.degraded_lookups == 1
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "vector search unavailable" in warnings[0].getMessage()
    assert isinstance(warnings[0].exc_info[1], StoreFailure)


@pytest.mark.asyncio
async def test_fetch_failure_degrades_to_miss(cache, store, s1):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    store.fail_get = True
    generate = CountingGenerator("R2")

    result = await cache.lookup_or_generate(PROMISE_PARAPHRASE, s1, generate)

    assert result.source is CacheSource.MISS
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_embedding_outage_still_returns_fresh_answer(cache, embedder, s1):
    embedder.fail = True
    generate = CountingGenerator("R1")

    result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    # Lookup and write-back both fail; the answer still arrives
    assert result.source is CacheSource.MISS
    assert result.id == UNCACHED_ID
    assert result.response == "R1"
    assert generate.calls == 1
    assert cache.metrics.degraded_lookups == 1
    assert cache.metrics.write_failures == 1


@pytest.mark.asyncio
async def test_write_failure_returns_fresh_response_without_regenerating(cache, store, s1):
    store.fail_upsert = True
    generate = CountingGenerator("R1")

    result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert result.source is CacheSource.MISS
    assert result.id == UNCACHED_ID
    assert result.response == "R1"
    assert generate.calls == 1
    assert cache.metrics.write_failures == 1


@pytest.mark.asyncio
async def test_non_string_generation_is_a_generation_failure(cache, s1):
    async def generate():
        return None

    with pytest.raises(GenerationFailure):
        await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)


@pytest.mark.asyncio
async def test_miss_writes_entry_with_requested_ttl(cache, store, s1):
    result = await cache.lookup_or_generate(
        PROMISE_QUESTION,
        s1,
        CountingGenerator("R1"),
        CacheOptions(ttl_minutes=30),
    )

    entry = await store.get_by_id(result.id)
    assert entry is not None
    assert entry.prompt == PROMISE_QUESTION
    assert entry.signature == s1
    assert entry.response == "R1"
    assert entry.ttl_minutes == 30
    assert entry.embedding == (1.0, 0.0, 0.0)


@pytest.mark.asyncio
async def test_expired_entry_is_a_miss(cache, clock, s1):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"), CacheOptions(ttl_minutes=10))
    clock.advance_minutes(11)
    generate = CountingGenerator("R2")

    result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)

    assert result.source is CacheSource.MISS
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_concurrent_requests_never_generate_twice_each(cache, store, s1):
    generators = [CountingGenerator(f"R{i}") for i in range(3)]

    results = await asyncio.gather(
        *(cache.lookup_or_generate(PROMISE_QUESTION, s1, generate) for generate in generators)
    )

    misses = [result for result in results if result.source is CacheSource.MISS]
    assert misses
    assert all(generate.calls <= 1 for generate in generators)
    assert sum(generate.calls for generate in generators) == len(misses)
    assert await store.count_all() == len(misses)


@pytest.mark.asyncio
async def test_metrics_count_hits_and_misses(cache, s1):
    await cache.lookup_or_generate(PROMISE_QUESTION, s1, CountingGenerator("R1"))
    await cache.lookup_or_generate(PROMISE_PARAPHRASE, s1, CountingGenerator("R2"))

    metrics = cache.metrics.to_dict()
    assert metrics["total_queries"] == 2
    assert metrics["cache_hits"] == 1
    assert metrics["cache_misses"] == 1
    assert metrics["generation_calls"] == 1
    assert metrics["hit_rate"] == 0.5


# ============================================================================
# lookup
# ============================================================================


@pytest.mark.asyncio
async def test_lookup_empty_store_returns_none(cache, s1):
    assert await cache.lookup(PROMISE_QUESTION, s1) is None


@pytest.mark.asyncio
async def test_lookup_propagates_embedding_failure(cache, embedder, s1):
    embedder.fail = True

    with pytest.raises(EmbeddingFailure):
        await cache.lookup(PROMISE_QUESTION, s1)


@pytest.mark.asyncio
async def test_lookup_wraps_unexpected_provider_errors(store, s1):
    class BrokenProvider(FakeEmbeddingProvider):
        async def encode(self, text):
            raise ConnectionResetError("socket closed")

    cache = SemanticCacheService(repository=store, embedding_provider=BrokenProvider())

    with pytest.raises(EmbeddingFailure):
        await cache.lookup(PROMISE_QUESTION, s1)


@pytest.mark.asyncio
async def test_lookup_propagates_store_failure(cache, store, s1):
    store.fail_search = True

    with pytest.raises(StoreFailure):
        await cache.lookup(PROMISE_QUESTION, s1)


@pytest.mark.asyncio
async def test_score_equal_to_threshold_is_a_hit(embedder, s1):
    stub = StubCacheStore([CacheCandidate("a", 0.85)], {"a": make_entry("a", s1)})
    cache = SemanticCacheService(repository=stub, embedding_provider=embedder)

    entry = await cache.lookup(PROMISE_QUESTION, s1, similarity_threshold=0.85)

    assert entry is not None
    assert entry.id == "a"


@pytest.mark.asyncio
async def test_top_candidate_just_below_threshold_is_a_miss(embedder, s1):
    stub = StubCacheStore(
        [CacheCandidate("a", 0.8499), CacheCandidate("b", 0.80)],
        {"a": make_entry("a", s1), "b": make_entry("b", s1)},
    )
    cache = SemanticCacheService(repository=stub, embedding_provider=embedder)

    assert await cache.lookup(PROMISE_QUESTION, s1, similarity_threshold=0.85) is None


@pytest.mark.asyncio
async def test_only_best_candidate_is_considered(embedder, s1, s2):
    # The best candidate has the wrong signature; the runner-up is not tried
    stub = StubCacheStore(
        [CacheCandidate("b", 0.90), CacheCandidate("a", 0.97)],
        {"a": make_entry("a", s2), "b": make_entry("b", s1)},
    )
    cache = SemanticCacheService(repository=stub, embedding_provider=embedder)

    assert await cache.lookup(PROMISE_QUESTION, s1) is None


@pytest.mark.asyncio
async def test_candidate_missing_after_search_is_a_miss(embedder, s1):
    stub = StubCacheStore([CacheCandidate("gone", 0.99)], {})
    cache = SemanticCacheService(repository=stub, embedding_provider=embedder)

    assert await cache.lookup(PROMISE_QUESTION, s1) is None


@pytest.mark.asyncio
async def test_lookup_requests_candidate_count(embedder, s1):
    stub = StubCacheStore([], {})
    cache = SemanticCacheService(repository=stub, embedding_provider=embedder, options=CacheOptions(candidate_count=7))

    await cache.lookup(PROMISE_QUESTION, s1)
    assert stub.requested_k == 7

    await cache.lookup(PROMISE_QUESTION, s1, candidate_count=2)
    assert stub.requested_k == 2


# ============================================================================
# put
# ============================================================================


@pytest.mark.asyncio
async def test_put_creates_new_entry_each_time(cache, store, s1):
    first = await cache.put(PROMISE_QUESTION, s1, "R1")
    second = await cache.put(PROMISE_QUESTION, s1, "R1 revised")

    assert first != second
    assert (await store.get_by_id(first)).response == "R1"
    assert (await store.get_by_id(second)).response == "R1 revised"


@pytest.mark.asyncio
async def test_put_uses_default_ttl(cache, store, s1):
    entry_id = await cache.put(PROMISE_QUESTION, s1, "R1")

    assert (await store.get_by_id(entry_id)).ttl_minutes == 1440


@pytest.mark.asyncio
async def test_put_raises_cache_write_failure_on_store_error(cache, store, s1):
    store.fail_upsert = True

    with pytest.raises(CacheWriteFailure) as exc_info:
        await cache.put(PROMISE_QUESTION, s1, "R1")

    assert isinstance(exc_info.value.__cause__, StoreFailure)


@pytest.mark.asyncio
async def test_put_raises_cache_write_failure_on_embedding_error(cache, embedder, s1):
    embedder.fail = True

    with pytest.raises(CacheWriteFailure) as exc_info:
        await cache.put(PROMISE_QUESTION, s1, "R1")

    assert isinstance(exc_info.value.__cause__, EmbeddingFailure)


# ============================================================================
# clear
# ============================================================================


@pytest.mark.asyncio
async def test_clear_by_signature_only_removes_that_signature(cache, s1, s2):
    await cache.put(PROMISE_QUESTION, s1, "R1")
    await cache.put(UNRELATED_QUESTION, s1, "R3")
    kept = await cache.put(PROMISE_QUESTION, s2, "R2")

    deleted = await cache.clear(s1)

    assert deleted == 2
    generate = CountingGenerator("R1 again")
    result = await cache.lookup_or_generate(PROMISE_QUESTION, s1, generate)
    assert result.source is CacheSource.MISS
    assert generate.calls == 1

    entry = await cache.lookup(PROMISE_QUESTION, s2)
    assert entry is not None
    assert entry.id == kept


@pytest.mark.asyncio
async def test_clear_without_signature_removes_everything(cache, store, s1, s2):
    await cache.put(PROMISE_QUESTION, s1, "R1")
    await cache.put(PROMISE_QUESTION, s2, "R2")

    assert await cache.clear() == 2
    assert await store.count_all() == 0


@pytest.mark.asyncio
async def test_clear_continues_past_failed_deletes(cache, store, s1):
    ids = [await cache.put(f"question {i}", s1, f"answer {i}") for i in range(3)]
    store.fail_delete = {ids[1]}

    deleted = await cache.clear(s1)

    assert deleted == 2
    assert await store.query_ids(s1) == [ids[1]]


@pytest.mark.asyncio
async def test_clear_empty_cache_returns_zero(cache):
    assert await cache.clear() == 0


# ============================================================================
# factory / stats / health
# ============================================================================


def test_create_uses_explicit_overrides(store, embedder):
    cache = SemanticCacheService.create(
        repository=store,
        embedding_provider=embedder,
        similarity_threshold=0.9,
        candidate_count=5,
        ttl_minutes=60,
    )

    assert cache.options == CacheOptions(similarity_threshold=0.9, candidate_count=5, ttl_minutes=60)


@pytest.mark.asyncio
async def test_get_stats_includes_options_and_metrics(cache, s1):
    await cache.put(PROMISE_QUESTION, s1, "R1")

    stats = await cache.get_stats()

    assert stats["backend"] == "memory"
    assert stats["total_entries"] == 1
    assert stats["similarity_threshold"] == 0.85
    assert stats["candidate_count"] == 3
    assert stats["ttl_minutes"] == 1440
    assert stats["embedding_model"] == "fake-embedder"
    assert "hit_rate" in stats["metrics"]


@pytest.mark.asyncio
async def test_health_reports_each_dependency(cache, embedder):
    assert await cache.health() == {"cache": True, "embedding": True}
    assert await cache.is_healthy() is True

    embedder.fail = True
    assert await cache.health() == {"cache": True, "embedding": False}
    assert await cache.is_healthy() is False
