"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .cache_candidate import CacheCandidate
from .cache_entry import CacheEntry
from .cache_options import (
    DEFAULT_CANDIDATE_COUNT,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TTL_MINUTES,
    CacheOptions,
)
from .cache_result import UNCACHED_ID, CacheResult, CacheSource, LookupOutcome, LookupStatus

__all__ = [
    "CacheCandidate",
    "CacheEntry",
    "CacheOptions",
    "CacheResult",
    "CacheSource",
    "LookupOutcome",
    "LookupStatus",
    "UNCACHED_ID",
    "DEFAULT_CANDIDATE_COUNT",
    "DEFAULT_SIMILARITY_THRESHOLD",
    "DEFAULT_TTL_MINUTES",
]
