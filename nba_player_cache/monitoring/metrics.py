"""Cache performance counters.

Usage:
    from nba_player_cache.monitoring.metrics import CacheMetrics

    cm = CacheMetrics()
    cm.record_hit()
    cm.record_miss(expired=True)
    print(f"Hit rate: {cm.hit_rate}%")
"""

from dataclasses import dataclass


@dataclass
class CacheMetrics:
    """Track cache read outcomes for one cache instance.

    Attributes:
        hits: Reads served from a fresh, current-version entry
        misses: Reads that found nothing usable (includes expired reads)
        expired: Entries evicted on read because they were stale or outdated
    """

    hits: int = 0
    misses: int = 0
    expired: int = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self, expired: bool = False) -> None:
        self.misses += 1
        if expired:
            self.expired += 1

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage, 0.0 before any reads."""
        total = self.hits + self.misses
        return round(self.hits / total * 100, 1) if total > 0 else 0.0

    def to_dict(self) -> dict:
        """Export metrics as dictionary for health reports."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expired": self.expired,
            "hit_rate": self.hit_rate,
        }
