"""Versioned, TTL-bound player caches.

- PlayerCacheStore: shared freshness/version rules, validation and metrics
- DiskPlayerCache: diskcache.FanoutCache backend
- DatabasePlayerCache: SQLAlchemy backend (player_cache table)
- create_player_cache: build a cache from Settings
"""

from nba_player_cache.cache.base import (
    IDENTITY_NAMESPACE,
    STATS_NAMESPACE,
    TTL_CONFIG,
    CacheEntry,
    CacheStats,
    PlayerCacheStore,
    validate_payload,
)
from nba_player_cache.cache.database import DatabasePlayerCache
from nba_player_cache.cache.disk import DiskPlayerCache
from nba_player_cache.cache.factory import create_player_cache

__all__ = [
    "PlayerCacheStore",
    "DiskPlayerCache",
    "DatabasePlayerCache",
    "CacheEntry",
    "CacheStats",
    "TTL_CONFIG",
    "STATS_NAMESPACE",
    "IDENTITY_NAMESPACE",
    "validate_payload",
    "create_player_cache",
]
