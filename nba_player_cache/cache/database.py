"""Datastore-backed player cache using SQLAlchemy.

Rows are upserted whole (INSERT ... ON CONFLICT DO UPDATE), so a reader sees
either the previous payload or the new one, never a mix. A batch write is a
single multi-row upsert statement in one transaction.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine

from nba_player_cache.cache.base import CacheEntry, PlayerCacheStore
from nba_player_cache.db.models import PlayerCacheModel
from nba_player_cache.db.session import get_session_factory, init_database


def _to_db_time(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)


def _from_db_time(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


class DatabasePlayerCache(PlayerCacheStore):
    """Player cache stored in the player_cache table.

    Each operation opens its own session, so concurrent refresh batches and
    request-path reads never share a transaction.

    Example:
        engine = create_engine("sqlite+aiosqlite:///./player_cache.db")
        cache = DatabasePlayerCache(engine)
        await cache.init_schema()
        await cache.set(237, payload)
    """

    def __init__(self, engine: AsyncEngine, **kwargs):
        """Initialize with an async engine.

        Args:
            engine: AsyncEngine for the cache database
            **kwargs: namespace, model, ttl, version, cleanup_probability
        """
        super().__init__(**kwargs)
        self._engine = engine
        self._session_factory = get_session_factory(engine)

    async def init_schema(self) -> None:
        """Create the player_cache table if it does not exist."""
        await init_database(self._engine)

    def _upsert(self, rows: list[dict]):
        if self._engine.dialect.name == "postgresql":
            stmt = pg_insert(PlayerCacheModel).values(rows)
        else:
            stmt = sqlite_insert(PlayerCacheModel).values(rows)
        return stmt.on_conflict_do_update(
            index_elements=["namespace", "player_id"],
            set_={
                "payload": stmt.excluded.payload,
                "cache_version": stmt.excluded.cache_version,
                "updated_at": stmt.excluded.updated_at,
            },
        )

    async def _read(self, key: str) -> CacheEntry | None:
        async with self._session_factory() as session:
            row = await session.get(PlayerCacheModel, (self.namespace, key))
            if row is None:
                return None
            return CacheEntry(
                payload=row.payload,
                timestamp=_from_db_time(row.updated_at),
                version=row.cache_version,
            )

    async def _write(self, rows: dict[str, dict], timestamp: float) -> None:
        updated_at = _to_db_time(timestamp)
        values = [
            {
                "namespace": self.namespace,
                "player_id": key,
                "payload": payload,
                "cache_version": self.version,
                "updated_at": updated_at,
            }
            for key, payload in rows.items()
        ]
        async with self._session_factory() as session:
            try:
                await session.execute(self._upsert(values))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _delete(self, key: str) -> None:
        stmt = delete(PlayerCacheModel).where(
            PlayerCacheModel.namespace == self.namespace,
            PlayerCacheModel.player_id == key,
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    def _stale(self, cutoff: float):
        return or_(
            PlayerCacheModel.updated_at <= _to_db_time(cutoff),
            PlayerCacheModel.cache_version != self.version,
        )

    async def _delete_if_stale(self, key: str, cutoff: float) -> bool:
        # The predicate is evaluated on the current row, so a rewrite since the read survives
        stmt = delete(PlayerCacheModel).where(
            PlayerCacheModel.namespace == self.namespace,
            PlayerCacheModel.player_id == key,
            self._stale(cutoff),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return bool(result.rowcount)

    async def _delete_stale(self, cutoff: float) -> int:
        stmt = delete(PlayerCacheModel).where(
            PlayerCacheModel.namespace == self.namespace,
            self._stale(cutoff),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    async def _clear(self) -> None:
        stmt = delete(PlayerCacheModel).where(PlayerCacheModel.namespace == self.namespace)
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def _summary(self) -> tuple[int, float | None, float | None]:
        stmt = select(
            func.count(),
            func.min(PlayerCacheModel.updated_at),
            func.max(PlayerCacheModel.updated_at),
        ).where(PlayerCacheModel.namespace == self.namespace)
        async with self._session_factory() as session:
            size, oldest, newest = (await session.execute(stmt)).one()
        return (
            size or 0,
            _from_db_time(oldest) if oldest is not None else None,
            _from_db_time(newest) if newest is not None else None,
        )
