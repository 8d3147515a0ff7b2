"""In-process implementation of CacheStore.

Keeps entries in a dict and scores them with numpy cosine similarity.
Useful for local development (`CACHE_BACKEND=memory`) and tests; nothing
survives a restart.
"""

import time
from collections.abc import Callable

import numpy as np

from semantic_llm_cache.entities import CacheCandidate, CacheEntry
from semantic_llm_cache.errors import StoreFailure


class InMemoryCacheRepository:
    """In-memory implementation of the CacheStore protocol.

    Expiry is enforced on access: an entry whose TTL has elapsed is dropped
    the next time the store is read.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty store.

        Args:
            clock: Returns the current time in seconds (injectable for tests)
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._expires_at: dict[str, float] = {}

    @classmethod
    def create(cls) -> "InMemoryCacheRepository":
        """Factory method to create InMemoryCacheRepository with defaults."""
        return cls()

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [entry_id for entry_id, deadline in self._expires_at.items() if deadline <= now]
        for entry_id in expired:
            self._entries.pop(entry_id, None)
            self._expires_at.pop(entry_id, None)

    async def upsert_with_ttl(self, entry: CacheEntry, ttl_minutes: int) -> None:
        self._entries[entry.id] = entry
        self._expires_at[entry.id] = self._clock() + ttl_minutes * 60

    async def vector_search(self, vector: list[float], k: int) -> list[CacheCandidate]:
        """Find the `k` nearest entries by cosine similarity."""
        self._purge_expired()
        if not self._entries:
            return []

        ids = list(self._entries)
        try:
            matrix = np.array([self._entries[entry_id].embedding for entry_id in ids], dtype=np.float32)
            query = np.asarray(vector, dtype=np.float32)

            norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
            norms[norms == 0] = 1.0
            scores = matrix @ query / norms
        except ValueError as e:
            # Stored and query vectors come from models of different dimension
            raise StoreFailure(f"Vector search failed: {e}") from e

        order = np.argsort(-scores)[:k]
        return [CacheCandidate(id=ids[i], score=float(scores[i])) for i in order]

    async def get_by_id(self, entry_id: str) -> CacheEntry | None:
        self._purge_expired()
        return self._entries.get(entry_id)

    async def delete_by_id(self, entry_id: str) -> bool:
        self._expires_at.pop(entry_id, None)
        return self._entries.pop(entry_id, None) is not None

    async def query_ids(self, signature: str | None = None) -> list[str]:
        self._purge_expired()
        return [
            entry.id
            for entry in self._entries.values()
            if signature is None or entry.signature == signature
        ]

    async def count_all(self) -> int:
        self._purge_expired()
        return len(self._entries)

    async def health_check(self) -> bool:
        return True

    async def get_stats(self) -> dict:
        return {
            "backend": "memory",
            "total_entries": await self.count_all(),
        }

    async def close(self) -> None:
        self._entries.clear()
        self._expires_at.clear()
