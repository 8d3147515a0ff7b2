"""
Shared fixtures: deterministic embeddings, a store with switchable
failures, and a counting generator.
"""

import math
import socket

import pytest

from semantic_llm_cache.entities import CacheOptions
from semantic_llm_cache.errors import EmbeddingFailure, StoreFailure
from semantic_llm_cache.repositories import InMemoryCacheRepository
from semantic_llm_cache.services import SemanticCacheService
from semantic_llm_cache.signature import build_signature

PROMISE_QUESTION = "What is a Promise?"
PROMISE_PARAPHRASE = "Explain what a Promise is"
UNRELATED_QUESTION = "How do I center a div?"

# Unit vectors chosen so that cos(question, paraphrase) = 0.91
VECTORS = {
    PROMISE_QUESTION: [1.0, 0.0, 0.0],
    PROMISE_PARAPHRASE: [0.91, math.sqrt(1 - 0.91**2), 0.0],
    UNRELATED_QUESTION: [0.0, 0.0, 1.0],
}


def is_redis_available() -> bool:
    """Check if a Redis server is listening locally."""
    try:
        with socket.create_connection(("localhost", 6379), timeout=1):
            return True
    except OSError:
        return False


redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_minutes(self, minutes: float) -> None:
        self.now += minutes * 60


class FakeEmbeddingProvider:
    """Looks vectors up in a table; unknown text maps to a fixed vector."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(VECTORS if vectors is None else vectors)
        self.calls: list[str] = []
        self.fail = False

    @property
    def dimension(self) -> int:
        return 3

    @property
    def model_name(self) -> str:
        return "fake-embedder"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingFailure("embedding service unavailable")
        return self.vectors.get(text, [0.0, 1.0, 0.0])

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.encode(text) for text in texts]

    async def is_available(self) -> bool:
        return not self.fail

    async def close(self) -> None:
        pass


class FlakyCacheRepository(InMemoryCacheRepository):
    """In-memory store whose operations can be made to fail."""

    def __init__(self, clock=None) -> None:
        super().__init__(clock or FakeClock())
        self.fail_search = False
        self.fail_get = False
        self.fail_upsert = False
        self.fail_delete: set[str] = set()
        self.upserts = 0

    async def vector_search(self, vector, k):
        if self.fail_search:
            raise StoreFailure("vector search unavailable")
        return await super().vector_search(vector, k)

    async def get_by_id(self, entry_id):
        if self.fail_get:
            raise StoreFailure("fetch unavailable")
        return await super().get_by_id(entry_id)

    async def upsert_with_ttl(self, entry, ttl_minutes):
        if self.fail_upsert:
            raise StoreFailure("upsert unavailable")
        self.upserts += 1
        await super().upsert_with_ttl(entry, ttl_minutes)

    async def delete_by_id(self, entry_id):
        if entry_id in self.fail_delete:
            raise StoreFailure(f"cannot delete {entry_id}")
        return await super().delete_by_id(entry_id)


class CountingGenerator:
    """Async miss handler that records how often it was awaited."""

    def __init__(self, response: str = "fresh answer", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def store(clock) -> FlakyCacheRepository:
    return FlakyCacheRepository(clock)


@pytest.fixture
def cache(store, embedder) -> SemanticCacheService:
    return SemanticCacheService(repository=store, embedding_provider=embedder, options=CacheOptions())


@pytest.fixture
def s1() -> str:
    return build_signature("gpt-4o-mini", 0.7, 1024, "You are a Web MDN Documentation expert.")


@pytest.fixture
def s2() -> str:
    return build_signature("gpt-4o-mini", 0.2, 1024, "You are a Web MDN Documentation expert.")
