"""Disk-backed player cache using diskcache.FanoutCache.

FanoutCache is safe for concurrent readers and writers across threads and
processes, and each set() replaces a key atomically. Blocking diskcache calls
run in the default executor so the async API never stalls the event loop.

Cache directory structure:
    .cache/player_cache/
        player_stats/      # one FanoutCache per namespace
            000/ ... 007/
        player_identity/
            000/ ... 007/
"""

import asyncio
from functools import partial
from pathlib import Path
from typing import Any, Callable

from diskcache import FanoutCache

from nba_player_cache.cache.base import CacheEntry, PlayerCacheStore


class DiskPlayerCache(PlayerCacheStore):
    """Player cache stored on local disk.

    Example:
        cache = DiskPlayerCache(cache_dir=".cache/player_cache")
        await cache.set(237, payload)
        cached = await cache.get(237)
        print(await cache.stats())
    """

    def __init__(self, cache_dir: str = ".cache/player_cache", **kwargs):
        """Initialize FanoutCache with 8 shards under cache_dir/namespace.

        Args:
            cache_dir: Root directory for cache storage
            **kwargs: namespace, model, ttl, version, cleanup_probability
        """
        super().__init__(**kwargs)
        self._cache = FanoutCache(
            directory=str(Path(cache_dir) / self.namespace),
            shards=8,
            timeout=0.01,
        )

    async def _run(self, func: Callable, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    # Synchronous primitives

    def _read_sync(self, key: str) -> CacheEntry | None:
        raw = self._cache.get(key, default=None, retry=True)
        if raw is None:
            return None
        return CacheEntry(
            payload=raw["payload"],
            timestamp=raw["timestamp"],
            version=raw["version"],
        )

    def _write_sync(self, rows: dict[str, dict], timestamp: float) -> None:
        for key, payload in rows.items():
            stored = self._cache.set(
                key,
                {"payload": payload, "timestamp": timestamp, "version": self.version},
                retry=True,
            )
            if not stored:
                raise OSError(f"diskcache refused write for key {key}")

    def _entries_sync(self) -> list[tuple[str, dict]]:
        entries = []
        for key in list(self._cache):
            raw = self._cache.get(key, default=None, retry=True)
            if raw is not None:
                entries.append((key, raw))
        return entries

    def _is_stale(self, raw: dict, cutoff: float) -> bool:
        return raw["timestamp"] <= cutoff or raw["version"] != self.version

    def _delete_if_stale_sync(self, key: str, cutoff: float) -> bool:
        # Re-read and delete under one transaction so a concurrent set() wins
        with self._cache.transact(retry=True):
            raw = self._cache.get(key, default=None, retry=True)
            if raw is None or not self._is_stale(raw, cutoff):
                return False
            return bool(self._cache.delete(key, retry=True))

    def _delete_stale_sync(self, cutoff: float) -> int:
        removed = 0
        for key, raw in self._entries_sync():
            if self._is_stale(raw, cutoff) and self._delete_if_stale_sync(key, cutoff):
                removed += 1
        return removed

    def _summary_sync(self) -> tuple[int, float | None, float | None]:
        timestamps = [raw["timestamp"] for _, raw in self._entries_sync()]
        if not timestamps:
            return 0, None, None
        return len(timestamps), min(timestamps), max(timestamps)

    # Async primitives

    async def _read(self, key: str) -> CacheEntry | None:
        return await self._run(self._read_sync, key)

    async def _write(self, rows: dict[str, dict], timestamp: float) -> None:
        await self._run(self._write_sync, rows, timestamp)

    async def _delete(self, key: str) -> None:
        await self._run(partial(self._cache.delete, key, retry=True))

    async def _delete_if_stale(self, key: str, cutoff: float) -> bool:
        return await self._run(self._delete_if_stale_sync, key, cutoff)

    async def _delete_stale(self, cutoff: float) -> int:
        return await self._run(self._delete_stale_sync, cutoff)

    async def _clear(self) -> None:
        await self._run(partial(self._cache.clear, retry=True))

    async def _summary(self) -> tuple[int, float | None, float | None]:
        return await self._run(self._summary_sync)

    def close(self) -> None:
        self._cache.close()
