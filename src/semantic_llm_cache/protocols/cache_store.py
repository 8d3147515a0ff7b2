"""Cache storage protocol.

Defines the interface for any vector store that can hold cache entries
and answer nearest-neighbour queries over their prompt embeddings.

Implementations can include:
- Redis Stack with vector search (default)
- In-process memory store (development and tests)
- Any other vector database with per-document expiry
"""

from typing import Protocol, runtime_checkable

from semantic_llm_cache.entities import CacheCandidate, CacheEntry


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Similar to Go's interface pattern - any type that implements these
    methods satisfies the protocol, no explicit inheritance needed.

    All I/O failures are raised as `StoreFailure`.

    Example:
        ```python
        from semantic_llm_cache.protocols import CacheStore

        # Type check passes for any matching implementation
        repo: CacheStore = RedisCacheRepository()
        repo: CacheStore = InMemoryCacheRepository()
        ```
    """

    async def upsert_with_ttl(self, entry: CacheEntry, ttl_minutes: int) -> None:
        """Store a cache entry that the store expires after `ttl_minutes`.

        Args:
            entry: The entry to store, keyed by `entry.id`
            ttl_minutes: Time-to-live in minutes
        """
        ...

    async def vector_search(self, vector: list[float], k: int) -> list[CacheCandidate]:
        """Find the `k` entries nearest to a vector.

        Args:
            vector: The query embedding vector
            k: Maximum number of candidates to return

        Returns:
            Candidates ordered by score, most similar first
        """
        ...

    async def get_by_id(self, entry_id: str) -> CacheEntry | None:
        """Fetch a full entry.

        Args:
            entry_id: The entry id

        Returns:
            The entry, or None if it does not exist (or has expired)
        """
        ...

    async def delete_by_id(self, entry_id: str) -> bool:
        """Delete a specific entry.

        Args:
            entry_id: The entry id

        Returns:
            True if deleted, False if it did not exist
        """
        ...

    async def query_ids(self, signature: str | None = None) -> list[str]:
        """List entry ids, optionally only those with a given signature.

        Args:
            signature: Exact signature to filter on (None = all entries)

        Returns:
            Matching entry ids
        """
        ...

    async def count_all(self) -> int:
        """Count total entries in the cache."""
        ...

    async def health_check(self) -> bool:
        """Check if the store is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...

    async def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
