from dataclasses import dataclass


@dataclass
class CacheMetrics:
    """Track outcomes of `lookup_or_generate` calls.

    Degraded lookups and failed write-backs look the same as ordinary misses
    to callers; these counters are where they show up.
    """

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    degraded_lookups: int = 0
    write_failures: int = 0
    total_lookup_time_ms: float = 0.0
    total_generation_time_ms: float = 0.0
    generation_calls: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_lookup_time_ms(self) -> float:
        """Calculate average lookup time."""
        if self.total_queries == 0:
            return 0.0
        return self.total_lookup_time_ms / self.total_queries

    def record_hit(self, lookup_time_ms: float) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        self.cache_hits += 1
        self.total_lookup_time_ms += lookup_time_ms

    def record_miss(self, lookup_time_ms: float, degraded: bool = False) -> None:
        """Record a cache miss (degraded = the lookup itself failed)."""
        self.total_queries += 1
        self.cache_misses += 1
        self.total_lookup_time_ms += lookup_time_ms
        if degraded:
            self.degraded_lookups += 1

    def record_generation(self, duration_ms: float) -> None:
        """Record an upstream generation call."""
        self.generation_calls += 1
        self.total_generation_time_ms += duration_ms

    def record_write_failure(self) -> None:
        self.write_failures += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "degraded_lookups": self.degraded_lookups,
            "write_failures": self.write_failures,
            "hit_rate": self.hit_rate,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
            "generation_calls": self.generation_calls,
            "total_generation_time_ms": self.total_generation_time_ms,
        }
