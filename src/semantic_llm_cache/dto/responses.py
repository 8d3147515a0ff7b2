"""Response DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class QueryResponse(BaseModel):
    """Response DTO for a prompt answered through the cache."""

    source: Literal["hit", "miss"] = Field(..., description="'hit' if served from cache, 'miss' if generated")
    id: str = Field(..., description="Cache entry id ('uncached' if the write-back failed)")
    response: str = Field(..., description="The answer")
    signature: str = Field(..., description="Signature the answer is cached under")


class CacheEntryItem(BaseModel):
    """A stored cache entry (without its embedding)."""

    id: str
    prompt: str
    signature: str
    response: str
    created_at: int = Field(..., description="Creation time in epoch milliseconds")
    ttl_minutes: int


class CacheLookupResponse(BaseModel):
    """Response DTO for cache lookup operation."""

    prompt: str = Field(..., description="The original query prompt")
    is_hit: bool = Field(..., description="Whether an eligible entry was found")
    entry: CacheEntryItem | None = Field(None, description="The matching entry on a hit")
    lookup_time_ms: float = Field(..., description="Time taken for the cache lookup in milliseconds")


class CacheStoreResponse(BaseModel):
    """Response DTO for cache store operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    id: str = Field(..., description="The id of the new entry")
    message: str = Field(..., description="Human-readable status message")


class CacheClearResponse(BaseModel):
    """Response DTO for cache clear operation."""

    success: bool
    deleted_count: int = Field(..., ge=0)
    message: str


class SignatureResponse(BaseModel):
    signature: str


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    backend: str = Field(..., description="Storage backend ('redis' or 'memory')")
    total_entries: int = Field(..., description="Total number of cached entries", ge=0)
    similarity_threshold: float = Field(..., description="Default minimum similarity for a hit")
    candidate_count: int = Field(..., ge=1)
    ttl_minutes: int = Field(..., description="Default freshness window in minutes", ge=1)
    embedding_model: str
    metrics: dict[str, float | int] = Field(default_factory=dict, description="Hit/miss/degraded counters")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    embedding_healthy: bool = Field(..., description="Whether the embedding service is reachable")
