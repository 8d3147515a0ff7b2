"""Redis implementation of CacheStore.

This repository uses Redis Stack with vector search capabilities (HNSW index).
It's the default implementation and satisfies the CacheStore protocol.

Entries are stored as hashes under `{index_name}:{id}`; Redis expires each
hash on its own once its TTL elapses.
"""

import asyncio
import logging
import struct

import redis.asyncio as redis
from redis.exceptions import RedisError
from redisvl.index import AsyncSearchIndex
from redisvl.query import VectorQuery

from semantic_llm_cache.config import close_redis_client, get_redis_client, settings
from semantic_llm_cache.entities import CacheCandidate, CacheEntry
from semantic_llm_cache.errors import StoreFailure
from semantic_llm_cache.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

# Default dimension for paraphrase-multilingual-MiniLM-L12-v2
DEFAULT_DIMENSION = 384


def _to_str(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisCacheRepository:
    """Redis implementation using HNSW vector index.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Uses Redis Stack's vector search with:
    - HNSW (Hierarchical Navigable Small World) algorithm
    - COSINE distance metric, reported to callers as similarity (1 - distance)
    - Per-entry TTL via EXPIRE
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        index_name: str | None = None,
    ) -> None:
        """Initialize the Redis cache repository.

        The search index is created lazily on first use.

        Args:
            redis_client: Async Redis client. If None, uses the shared client.
            embedding_provider: Provider for getting vector dimension.
            index_name: Name of the Redis search index.
        """
        self._owns_client = redis_client is None
        self._client = redis_client or get_redis_client()
        self._index_name = index_name or settings.cache_index_name
        self._prefix = f"{self._index_name}:"
        self._dimension = embedding_provider.dimension if embedding_provider else DEFAULT_DIMENSION
        self._index: AsyncSearchIndex | None = None
        self._index_lock = asyncio.Lock()

    @classmethod
    def create(
        cls,
        embedding_provider: EmbeddingProvider | None = None,
        index_name: str | None = None,
    ) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository with defaults.

        Args:
            embedding_provider: Provider for vector dimension.
            index_name: Redis index name. If None, uses settings.

        Returns:
            Configured RedisCacheRepository
        """
        return cls(embedding_provider=embedding_provider, index_name=index_name)

    async def _ensure_index(self) -> AsyncSearchIndex:
        """Ensure the Redis vector index exists."""
        if self._index is not None:
            return self._index

        async with self._index_lock:
            if self._index is not None:
                return self._index

            index_schema = {
                "index": {
                    "name": self._index_name,
                    "prefix": self._prefix,
                    "storage_type": "hash",
                },
                "fields": [
                    {"name": "prompt", "type": "text"},
                    {"name": "signature", "type": "tag"},
                    {"name": "created_at", "type": "numeric"},
                    {
                        "name": "embedding",
                        "type": "vector",
                        "attrs": {
                            "dims": self._dimension,
                            "algorithm": "HNSW",
                            "metric": "COSINE",
                            "datatype": "float32",
                        },
                    },
                ],
            }

            index = AsyncSearchIndex.from_dict(index_schema, redis_client=self._client)

            try:
                await index.create(overwrite=False)
                logger.info("Created new index: %s", self._index_name)
            except Exception as e:
                if "already exists" in str(e):
                    logger.info("Using existing index: %s", self._index_name)
                else:
                    raise StoreFailure(f"Failed to create index {self._index_name}: {e}") from e

            self._index = index
            return index

    def _key(self, entry_id: str) -> str:
        return f"{self._prefix}{entry_id}"

    def _entry_id(self, key: bytes | str) -> str:
        key = _to_str(key)
        return key[len(self._prefix):] if key.startswith(self._prefix) else key

    async def upsert_with_ttl(self, entry: CacheEntry, ttl_minutes: int) -> None:
        """Store a cache entry in Redis with an expiry.

        Args:
            entry: The entry to store
            ttl_minutes: Time-to-live in minutes
        """
        await self._ensure_index()

        # Convert vector to float32 bytes for Redis
        vector_bytes = struct.pack(f"{len(entry.embedding)}f", *entry.embedding)
        key = self._key(entry.id)

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.hset(
                    key,
                    mapping={
                        "prompt": entry.prompt,
                        "signature": entry.signature,
                        "response": entry.response,
                        "embedding": vector_bytes,
                        "created_at": str(entry.created_at),
                        "ttl_minutes": str(entry.ttl_minutes),
                    },
                )
                pipe.expire(key, ttl_minutes * 60)
                await pipe.execute()
        except RedisError as e:
            raise StoreFailure(f"Failed to store cache entry {entry.id}: {e}") from e

    async def vector_search(self, vector: list[float], k: int) -> list[CacheCandidate]:
        """Find the `k` nearest entries by cosine similarity.

        Args:
            vector: The query embedding vector
            k: Maximum number of results to return

        Returns:
            Candidates sorted by score (most similar first)
        """
        index = await self._ensure_index()

        query = VectorQuery(
            vector=vector,
            vector_field_name="embedding",
            return_fields=["signature"],
            num_results=k,
        )

        try:
            results = await index.query(query)
        except Exception as e:
            raise StoreFailure(f"Vector search failed: {e}") from e

        candidates = []
        for result in results:
            distance = float(result.get("vector_distance", 2.0))
            candidates.append(CacheCandidate(id=self._entry_id(result["id"]), score=1.0 - distance))

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates[:k]

    async def get_by_id(self, entry_id: str) -> CacheEntry | None:
        """Fetch a full entry by id.

        Args:
            entry_id: The entry id

        Returns:
            The entry, or None if it does not exist (or has expired)
        """
        try:
            data = await self._client.hgetall(self._key(entry_id))
        except RedisError as e:
            raise StoreFailure(f"Failed to fetch cache entry {entry_id}: {e}") from e

        if not data:
            return None
        return self._entry_from_hash(entry_id, data)

    def _entry_from_hash(self, entry_id: str, data: dict) -> CacheEntry:
        """Validate a raw Redis hash and convert it into a CacheEntry."""
        fields = {_to_str(k): v for k, v in data.items()}
        try:
            vector_bytes = fields["embedding"]
            embedding = struct.unpack(f"{len(vector_bytes) // 4}f", vector_bytes)
            return CacheEntry(
                id=entry_id,
                prompt=_to_str(fields["prompt"]),
                signature=_to_str(fields["signature"]),
                response=_to_str(fields["response"]),
                embedding=tuple(embedding),
                created_at=int(fields["created_at"]),
                ttl_minutes=int(fields["ttl_minutes"]),
            )
        except (KeyError, ValueError, UnicodeDecodeError, struct.error) as e:
            raise StoreFailure(f"Malformed cache entry {entry_id}: {e!r}") from e

    async def delete_by_id(self, entry_id: str) -> bool:
        """Delete a specific entry by id.

        Args:
            entry_id: The entry id

        Returns:
            True if deleted, False otherwise
        """
        try:
            result: int = await self._client.delete(self._key(entry_id))
        except RedisError as e:
            raise StoreFailure(f"Failed to delete cache entry {entry_id}: {e}") from e
        return result > 0

    async def query_ids(self, signature: str | None = None) -> list[str]:
        """List entry ids, optionally filtered by exact signature.

        Args:
            signature: The signature to match (None = all entries)

        Returns:
            Matching entry ids
        """
        ids = []
        try:
            async for key in self._client.scan_iter(match=f"{self._prefix}*"):
                if signature is not None:
                    stored = await self._client.hget(key, "signature")
                    if stored is None or _to_str(stored) != signature:
                        continue
                ids.append(self._entry_id(key))
        except RedisError as e:
            raise StoreFailure(f"Failed to list cache entries: {e}") from e
        return ids

    async def count_all(self) -> int:
        """Count total entries in the cache.

        Returns:
            Total number of cached entries
        """
        return len(await self.query_ids())

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "redis",
            "index_name": self._index_name,
            "total_entries": await self.count_all(),
            "embedding_dimension": self._dimension,
        }

    async def close(self) -> None:
        """Close the Redis client if this repository uses the shared one."""
        if self._owns_client:
            await close_redis_client()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
