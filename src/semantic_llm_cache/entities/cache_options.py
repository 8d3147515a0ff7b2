"""Per-request cache options."""

from dataclasses import dataclass

DEFAULT_SIMILARITY_THRESHOLD = 0.85
DEFAULT_CANDIDATE_COUNT = 3
DEFAULT_TTL_MINUTES = 1440


@dataclass(frozen=True)
class CacheOptions:
    """Options for a single `lookup_or_generate` call.

    Attributes:
        similarity_threshold: Minimum score for the best candidate to count as a hit
        candidate_count: Number of nearest neighbours fetched before taking the best
        ttl_minutes: Freshness window for entries written on a miss
    """

    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    candidate_count: int = DEFAULT_CANDIDATE_COUNT
    ttl_minutes: int = DEFAULT_TTL_MINUTES

    def __post_init__(self) -> None:
        if not -1 <= self.similarity_threshold <= 1:
            raise ValueError("similarity_threshold must be between -1 and 1 for cosine similarity")
        if self.candidate_count < 1:
            raise ValueError(f"candidate_count must be at least 1, got {self.candidate_count}")
        if self.ttl_minutes < 1:
            raise ValueError(f"ttl_minutes must be at least 1, got {self.ttl_minutes}")
