"""Cache statistics domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStatsEntity:
    """Aggregate usage statistics across every cached entry.

    Attributes:
        total_cached: Number of cached entries
        total_hits: Reuses beyond each entry's initial store
        total_tokens_saved: Sum of tokens_saved * (usage_count - 1)
    """

    total_cached: int = 0
    total_hits: int = 0
    total_tokens_saved: int = 0

    @property
    def hit_rate(self) -> float:
        """Share of uses served from cache: hits / (hits + cached)."""
        denominator = self.total_hits + self.total_cached
        if denominator == 0:
            return 0.0
        return self.total_hits / denominator
