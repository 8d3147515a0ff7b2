"""Cache candidate domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheCandidate:
    """A single nearest-neighbour result from a vector search.

    Attributes:
        id: Id of the candidate cache entry
        score: Similarity to the query vector (higher = more similar)
    """

    id: str
    score: float
