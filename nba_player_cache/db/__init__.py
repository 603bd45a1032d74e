"""Database layer for the datastore-backed player cache.

Public exports:
    - Base: SQLAlchemy declarative base
    - PlayerCacheModel: ORM model for cached payload rows
    - get_session: Async context manager for database sessions
    - get_database_url / create_engine / get_engine: Engine configuration
    - init_database: Create the schema
"""

from nba_player_cache.db.models import Base, PlayerCacheModel
from nba_player_cache.db.session import (
    create_engine,
    get_database_url,
    get_engine,
    get_session,
    get_session_factory,
    init_database,
)

__all__ = [
    "Base",
    "PlayerCacheModel",
    "create_engine",
    "get_database_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_database",
]
