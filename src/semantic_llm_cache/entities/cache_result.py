"""Results of cache operations."""

from dataclasses import dataclass
from enum import Enum

from .cache_entry import CacheEntry

# Returned as the id when a fresh response could not be written back
UNCACHED_ID = "uncached"


class CacheSource(str, Enum):
    """Where a response came from."""

    HIT = "hit"
    MISS = "miss"


class LookupStatus(str, Enum):
    """Outcome of a best-effort lookup."""

    HIT = "hit"
    MISS = "miss"
    DEGRADED = "degraded"  # lookup failed, treated as a miss


@dataclass(frozen=True)
class LookupOutcome:
    """Explicit result of a best-effort lookup.

    Attributes:
        status: hit, miss or degraded
        entry: The matching entry (only set on hit)
        error: The failure that degraded the lookup (only set on degraded)
    """

    status: LookupStatus
    entry: CacheEntry | None = None
    error: Exception | None = None

    @classmethod
    def hit(cls, entry: CacheEntry) -> "LookupOutcome":
        return cls(status=LookupStatus.HIT, entry=entry)

    @classmethod
    def miss(cls) -> "LookupOutcome":
        return cls(status=LookupStatus.MISS)

    @classmethod
    def degraded(cls, error: Exception) -> "LookupOutcome":
        return cls(status=LookupStatus.DEGRADED, error=error)

    @property
    def is_hit(self) -> bool:
        return self.status is LookupStatus.HIT


@dataclass(frozen=True)
class CacheResult:
    """Uniform result of `lookup_or_generate`.

    Attributes:
        source: HIT for a stored response, MISS for a freshly generated one
        id: Id of the stored or newly written entry, or UNCACHED_ID
        response: The response text
    """

    source: CacheSource
    id: str
    response: str
