"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class GenerationParams(BaseModel):
    """Generation configuration fields; unset fields use the server defaults."""

    model: str | None = Field(None, description="Completion model name", min_length=1)
    temperature: float | None = Field(None, description="Sampling temperature", ge=0.0, le=2.0)
    max_tokens: int | None = Field(None, description="Maximum completion tokens", ge=1)
    system_prompt: str | None = Field(None, description="System instructions for the model")


class QueryRequest(GenerationParams):
    """Request DTO for answering a prompt through the cache.

    The handler builds the signature from the generation fields and
    generates a fresh answer only on a cache miss.
    """

    prompt: str = Field(..., description="The user prompt", min_length=1)
    similarity_threshold: float | None = Field(
        None,
        description="Override the minimum similarity for a hit (-1 to 1, higher = more strict)",
        ge=-1.0,
        le=1.0,
    )
    candidate_count: int | None = Field(
        None,
        description="Override the number of nearest neighbours checked",
        ge=1,
        le=100,
    )
    ttl_minutes: int | None = Field(None, description="Override the freshness window of a new entry", ge=1)


class SignatureRequest(GenerationParams):
    """Request DTO for building a signature."""


class LookupCacheRequest(BaseModel):
    """Request DTO for a read-only cache lookup."""

    prompt: str = Field(..., description="The prompt to search for", min_length=1)
    signature: str = Field(..., description="Generation configuration signature", min_length=1)
    similarity_threshold: float | None = Field(None, ge=-1.0, le=1.0)
    candidate_count: int | None = Field(None, ge=1, le=100)


class StoreCacheRequest(BaseModel):
    """Request DTO for storing in cache."""

    prompt: str = Field(..., description="The original user prompt", min_length=1)
    signature: str = Field(..., description="Generation configuration signature", min_length=1)
    response: str = Field(..., description="The LLM response to cache", min_length=1)
    ttl_minutes: int | None = Field(None, description="Freshness window in minutes", ge=1)
