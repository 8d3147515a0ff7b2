"""Error taxonomy for cache operations.

A signature mismatch is not an error: it is reported as a plain miss.
"""


class SemanticCacheError(Exception):
    """Base class for all cache errors."""


class EmbeddingFailure(SemanticCacheError):
    """The embedding provider could not produce a vector (network, quota, auth)."""


class StoreFailure(SemanticCacheError):
    """A query, fetch, upsert or delete against the vector store failed."""


class CacheWriteFailure(SemanticCacheError):
    """Writing a fresh response back to the cache failed."""


class GenerationFailure(SemanticCacheError):
    """The upstream generation pipeline failed to produce a response."""
