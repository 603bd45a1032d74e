"""Disk backend specifics: layout, corrupt entries and inline cleanup."""

import time
from pathlib import Path
from unittest.mock import patch

from conftest import make_payload
from nba_player_cache.cache import DiskPlayerCache

T0 = 1_700_000_000.0


def test_namespace_gets_its_own_directory(tmp_path):
    cache = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"))
    try:
        assert Path(cache._cache.directory) == tmp_path / "player_cache" / "player_stats"
    finally:
        cache.close()


async def test_corrupt_entry_is_dropped(disk_cache):
    disk_cache._cache.set(
        "237",
        {"payload": {"id": "not-an-int"}, "timestamp": time.time(), "version": 1},
    )

    assert await disk_cache.get(237) is None
    assert "237" not in disk_cache._cache


async def test_data_persists_across_instances(tmp_path):
    first = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), cleanup_probability=0.0)
    await first.set(237, make_payload())
    first.close()

    second = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), cleanup_probability=0.0)
    try:
        assert (await second.get(237)).id == 237
    finally:
        second.close()


async def test_set_triggers_inline_cleanup(tmp_path):
    cache = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), cleanup_probability=1.0)
    try:
        with patch("time.time", return_value=T0):
            await cache.set(1, make_payload(player_id=1))
        with patch("time.time", return_value=T0 + 4000):
            await cache.set(2, make_payload(player_id=2))
            stats = await cache.stats()

        assert stats.size == 1
        assert "1" not in cache._cache
    finally:
        cache.close()


async def test_no_inline_cleanup_when_probability_zero(disk_cache):
    with patch("time.time", return_value=T0):
        await disk_cache.set(1, make_payload(player_id=1))
    with patch("time.time", return_value=T0 + 4000):
        await disk_cache.set(2, make_payload(player_id=2))
        stats = await disk_cache.stats()

    assert stats.size == 2


async def test_inline_cleanup_failure_does_not_fail_set(tmp_path, monkeypatch):
    cache = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), cleanup_probability=1.0)

    async def broken(cutoff):
        raise OSError("disk full")

    monkeypatch.setattr(cache, "_delete_stale", broken)
    try:
        await cache.set(1, make_payload(player_id=1))
        assert await cache.get(1) is not None
    finally:
        cache.close()


async def test_cleanup_removes_other_versions(tmp_path):
    old = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), version=1, cleanup_probability=0.0)
    await old.set(1, make_payload(player_id=1))
    old.close()

    new = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), version=2, cleanup_probability=0.0)
    try:
        await new.set(2, make_payload(player_id=2))
        assert await new.cleanup() == 1
        assert (await new.stats()).size == 1
    finally:
        new.close()
