"""SQLAlchemy ORM model for the datastore-backed player cache.

One row per (namespace, player_id). The payload column holds the serialized
PlayerPayload or PlayerIdentity; cache_version and updated_at drive the
freshness rules and the delete-by-predicate cleanup.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class PlayerCacheModel(Base):
    """SQLAlchemy model for a cached player payload.

    updated_at is stored as naive UTC.

    Indexes:
        - (namespace, updated_at): For cleanup scans of expired rows
    """

    __tablename__ = "player_cache"

    namespace: Mapped[str] = mapped_column(String(32), primary_key=True)
    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    cache_version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_player_cache_namespace_updated", "namespace", "updated_at"),
    )
