"""NBA player performance aggregation and cache service.

Merges balldontlie box-score game logs with advanced per-game ratings into
regular-season / postseason splits and serves them through a versioned,
TTL-bound cache.
"""

__version__ = "0.1.0"
