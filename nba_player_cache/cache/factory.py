"""Build cache instances from Settings.

Caches are created here and passed explicitly to the service and refresh
pipeline; nothing in the package holds a module-level cache instance.
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from nba_player_cache.cache.base import (
    IDENTITY_NAMESPACE,
    STATS_NAMESPACE,
    PlayerCacheStore,
)
from nba_player_cache.cache.database import DatabasePlayerCache
from nba_player_cache.cache.disk import DiskPlayerCache
from nba_player_cache.config import Settings, get_settings
from nba_player_cache.db.session import get_engine


def create_player_cache(
    namespace: str = STATS_NAMESPACE,
    settings: Settings | None = None,
    engine: AsyncEngine | None = None,
) -> PlayerCacheStore:
    """Create the cache for one TTL class using the configured backend.

    Args:
        namespace: STATS_NAMESPACE (1h payloads) or IDENTITY_NAMESPACE (24h identities)
        settings: Settings to read (defaults to get_settings())
        engine: Engine for the database backend (defaults to get_engine())

    Returns:
        DiskPlayerCache or DatabasePlayerCache
    """
    settings = settings or get_settings()
    ttl = (
        settings.identity_cache_ttl
        if namespace == IDENTITY_NAMESPACE
        else settings.stats_cache_ttl
    )
    options = {
        "namespace": namespace,
        "ttl": ttl,
        "version": settings.cache_version,
        "cleanup_probability": settings.cleanup_probability,
    }

    if settings.cache_backend == "database":
        return DatabasePlayerCache(engine or get_engine(), **options)
    return DiskPlayerCache(cache_dir=settings.cache_dir, **options)
