"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    GenerationParams,
    LookupCacheRequest,
    QueryRequest,
    SignatureRequest,
    StoreCacheRequest,
)
from .responses import (
    CacheClearResponse,
    CacheEntryItem,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    HealthCheckResponse,
    QueryResponse,
    SignatureResponse,
)

__all__ = [
    "GenerationParams",
    "QueryRequest",
    "SignatureRequest",
    "LookupCacheRequest",
    "StoreCacheRequest",
    "QueryResponse",
    "CacheEntryItem",
    "CacheLookupResponse",
    "CacheStoreResponse",
    "CacheClearResponse",
    "SignatureResponse",
    "CacheStatsResponse",
    "HealthCheckResponse",
]
