"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """Domain entity for a cached prompt-response pair.

    Entries are write-once: a newer answer for the same prompt is stored as a
    new entry with a new id, never by mutating an existing one.

    Attributes:
        id: Unique identifier generated at write time
        prompt: The original user prompt
        signature: Generation configuration that produced the response
        response: The cached LLM response
        embedding: The embedding vector for the prompt
        created_at: Creation time in epoch milliseconds
        ttl_minutes: Freshness window requested at write time
    """

    id: str
    prompt: str
    signature: str
    response: str
    embedding: tuple[float, ...]
    created_at: int
    ttl_minutes: int

    def matches_signature(self, signature: str) -> bool:
        """Check whether this entry was produced by the given configuration."""
        return self.signature == signature
