"""Database backend specifics: schema, upserts and namespace isolation."""

from sqlalchemy import select

from conftest import make_identity, make_payload
from nba_player_cache.cache import DatabasePlayerCache
from nba_player_cache.cache.base import IDENTITY_NAMESPACE
from nba_player_cache.db import PlayerCacheModel, get_session


async def test_rows_are_stored_in_player_cache_table(db_cache, db_engine):
    await db_cache.set(237, make_payload())

    async with get_session(db_engine) as session:
        rows = (await session.execute(select(PlayerCacheModel))).scalars().all()

    assert len(rows) == 1
    assert rows[0].namespace == "player_stats"
    assert rows[0].player_id == "237"
    assert rows[0].cache_version == 1
    assert rows[0].payload["first_name"] == "LeBron"


async def test_upsert_keeps_one_row_per_player(db_cache, db_engine):
    await db_cache.set_batch({1: make_payload(player_id=1, points=10.0), 2: make_payload(player_id=2)})
    await db_cache.set_batch({1: make_payload(player_id=1, points=12.0)})

    async with get_session(db_engine) as session:
        rows = (await session.execute(select(PlayerCacheModel))).scalars().all()

    assert len(rows) == 2
    assert (await db_cache.get(1)).regular_season.points == 12.0


async def test_namespaces_are_isolated(db_cache, db_engine):
    identities = DatabasePlayerCache(db_engine, namespace=IDENTITY_NAMESPACE, cleanup_probability=0.0)

    await db_cache.set(237, make_payload())
    await identities.set(237, make_identity())
    await identities.clear()

    assert await identities.get(237) is None
    assert await db_cache.get(237) is not None
    assert (await db_cache.stats()).size == 1


async def test_cleanup_removes_other_versions(db_cache, db_engine):
    await db_cache.set(1, make_payload(player_id=1))

    bumped = DatabasePlayerCache(db_engine, version=2, cleanup_probability=0.0)
    await bumped.set(2, make_payload(player_id=2))

    assert await bumped.cleanup() == 1
    assert (await bumped.stats()).size == 1


async def test_sessions_come_from_shared_factory(db_cache, db_engine):
    factory = db_cache._session_factory
    assert factory.kw["bind"] is db_engine
    assert factory.kw["expire_on_commit"] is False

    async with factory() as session:
        assert session.bind is db_engine
