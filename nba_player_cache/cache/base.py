"""Versioned, TTL-bound player cache shared by the disk and database backends.

An entry is readable only while it is both fresh (``now - timestamp < ttl``)
and written under the current cache version. Anything else is a miss and is
deleted on the spot, so a version bump empties the cache lazily without a
migration.

Backends implement seven storage primitives (_read, _write, _delete,
_delete_if_stale, _delete_stale, _clear, _summary); this class owns
validation, freshness rules, error wrapping and metrics.

Eviction on read goes through _delete_if_stale, which re-checks the stored
entry, so a refresh that rewrites the key between the read and the delete
keeps its fresh entry.
"""

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from nba_player_cache.errors import (
    CacheErrorCode,
    CacheOperationError,
    PayloadValidationError,
    PlayerCacheError,
)
from nba_player_cache.monitoring import CacheMetrics, get_logger
from nba_player_cache.stats.models import PlayerIdentity, PlayerPayload

STATS_NAMESPACE = "player_stats"
IDENTITY_NAMESPACE = "player_identity"

# Default TTL per cache class, in seconds. Identity data changes far less
# often than per-game stats, so the two are configured independently.
TTL_CONFIG = {
    STATS_NAMESPACE: 3600,  # 1h
    IDENTITY_NAMESPACE: 86400,  # 24h
}

MODEL_FOR_NAMESPACE: dict[str, type[BaseModel]] = {
    STATS_NAMESPACE: PlayerPayload,
    IDENTITY_NAMESPACE: PlayerIdentity,
}

REQUIRED_FIELDS = ("id", "first_name", "last_name", "team")

CURRENT_CACHE_VERSION = 1


@dataclass
class CacheEntry:
    """A stored payload with its write metadata.

    Attributes:
        payload: JSON-compatible payload dict
        timestamp: Write time as epoch seconds
        version: Cache schema version the entry was written under
    """

    payload: dict
    timestamp: float
    version: int

    def is_valid(self, now: float, ttl: float, version: int) -> bool:
        return now - self.timestamp < ttl and self.version == version


class CacheStats(BaseModel):
    """Cache health snapshot."""

    namespace: str
    size: int
    version: int
    ttl_seconds: int
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None
    hits: int = 0
    misses: int = 0
    expired: int = 0
    hit_rate: float = 0.0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_payload(payload: Any) -> dict:
    """Check a payload's identity fields and net ratings.

    Args:
        payload: A pydantic model or a mapping

    Returns:
        The payload as a plain dict

    Raises:
        PayloadValidationError: INVALID_FORMAT, MISSING_FIELD or INVALID_NET_RATING
    """
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode="json")
    elif isinstance(payload, Mapping):
        data = dict(payload)
    else:
        raise PayloadValidationError(
            "Invalid player data format", CacheErrorCode.INVALID_FORMAT
        )

    for name in REQUIRED_FIELDS:
        if name not in data:
            raise PayloadValidationError(
                f"Missing required field: {name}", CacheErrorCode.MISSING_FIELD
            )

    sections = [data, data.get("regular_season"), data.get("postseason")]
    for section in sections:
        if isinstance(section, Mapping) and "net_rating" in section:
            if not _is_number(section["net_rating"]):
                raise PayloadValidationError(
                    "Invalid NET rating format", CacheErrorCode.INVALID_NET_RATING
                )

    return data


def _to_datetime(timestamp: float | None) -> datetime | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class PlayerCacheStore(ABC):
    """Base class for player caches.

    Attributes:
        namespace: Cache class name ("player_stats" or "player_identity")
        model: Pydantic model entries are decoded into
        ttl: Seconds an entry stays fresh
        version: Current cache schema version
        cleanup_probability: Chance that a set() triggers an inline cleanup
        metrics: Hit/miss counters for this instance
    """

    def __init__(
        self,
        namespace: str = STATS_NAMESPACE,
        model: type[BaseModel] | None = None,
        ttl: int | None = None,
        version: int = CURRENT_CACHE_VERSION,
        cleanup_probability: float = 0.1,
    ):
        self.namespace = namespace
        self.model = model or MODEL_FOR_NAMESPACE.get(namespace, PlayerPayload)
        self.ttl = ttl if ttl is not None else TTL_CONFIG.get(namespace, 3600)
        self.version = version
        self.cleanup_probability = cleanup_probability
        self.metrics = CacheMetrics()
        self.logger = get_logger()

    # Storage primitives

    @abstractmethod
    async def _read(self, key: str) -> CacheEntry | None:
        """Return the raw entry for key, or None."""

    @abstractmethod
    async def _write(self, rows: dict[str, dict], timestamp: float) -> None:
        """Store every row stamped with timestamp and the current version."""

    @abstractmethod
    async def _delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    async def _delete_if_stale(self, key: str, cutoff: float) -> bool:
        """Remove key only if its stored entry is still older than cutoff or outdated."""

    @abstractmethod
    async def _delete_stale(self, cutoff: float) -> int:
        """Remove entries written before cutoff or under another version."""

    @abstractmethod
    async def _clear(self) -> None:
        """Remove every entry of this namespace."""

    @abstractmethod
    async def _summary(self) -> tuple[int, float | None, float | None]:
        """Return (size, oldest timestamp, newest timestamp)."""

    # Public API

    def _prepare(self, payload: Any) -> dict:
        data = validate_payload(payload)
        try:
            model = self.model.model_validate(data)
        except ValidationError as e:
            raise PayloadValidationError(
                f"Invalid player data format: {e.error_count()} validation error(s)",
                CacheErrorCode.INVALID_FORMAT,
            ) from e
        return model.model_dump(mode="json")

    async def get(self, key: str | int) -> BaseModel | None:
        """Return the cached payload, or None on miss.

        Expired and version-mismatched entries are deleted before returning None.

        Raises:
            CacheOperationError: READ_ERROR when the store cannot be read
        """
        key = str(key)
        try:
            entry = await self._read(key)
            if entry is None:
                self.metrics.record_miss()
                self.logger.debug("player_cache_miss", namespace=self.namespace, key=key)
                return None

            now = time.time()
            if not entry.is_valid(now, self.ttl, self.version):
                await self._delete_if_stale(key, now - self.ttl)
                self.metrics.record_miss(expired=True)
                self.logger.debug(
                    "player_cache_expired",
                    namespace=self.namespace,
                    key=key,
                    entry_version=entry.version,
                )
                return None

            try:
                payload = self.model.model_validate(entry.payload)
            except ValidationError:
                # Only the unreadable write itself, not a newer one
                await self._delete_if_stale(key, entry.timestamp)
                self.metrics.record_miss(expired=True)
                self.logger.warning("player_cache_corrupt_entry", namespace=self.namespace, key=key)
                return None
        except PlayerCacheError:
            raise
        except Exception as e:
            self.logger.error("player_cache_read_failed", namespace=self.namespace, key=key, error=str(e))
            raise CacheOperationError("Failed to read from cache", CacheErrorCode.READ_ERROR) from e

        self.metrics.record_hit()
        return payload

    async def set(self, key: str | int, payload: Any) -> None:
        """Validate and store a payload, replacing any existing entry.

        Raises:
            PayloadValidationError: payload rejected, nothing written
            CacheOperationError: WRITE_ERROR when the store cannot be written
        """
        key = str(key)
        data = self._prepare(payload)
        try:
            await self._write({key: data}, time.time())
        except Exception as e:
            self.logger.error("player_cache_write_failed", namespace=self.namespace, key=key, error=str(e))
            raise CacheOperationError("Failed to write to cache", CacheErrorCode.WRITE_ERROR) from e

        if random.random() < self.cleanup_probability:
            await self._cleanup_inline()

    async def set_batch(
        self, entries: Mapping[str | int, Any] | Iterable[tuple[str | int, Any]]
    ) -> int:
        """Store several payloads in one logical write.

        Every payload is validated before anything is written. A storage
        failure fails the whole batch with a single error.

        Returns:
            Number of entries written

        Raises:
            PayloadValidationError: a payload was rejected, nothing written
            CacheOperationError: WRITE_ERROR when the batch write fails
        """
        items = entries.items() if isinstance(entries, Mapping) else entries
        rows = {str(key): self._prepare(payload) for key, payload in items}
        if not rows:
            return 0

        try:
            await self._write(rows, time.time())
        except Exception as e:
            self.logger.error(
                "player_cache_batch_write_failed",
                namespace=self.namespace,
                count=len(rows),
                error=str(e),
            )
            raise CacheOperationError("Failed to write batch to cache", CacheErrorCode.WRITE_ERROR) from e

        self.logger.info("player_cache_batch_written", namespace=self.namespace, count=len(rows))
        return len(rows)

    async def invalidate(self, key: str | int) -> None:
        """Delete one entry so the next read refetches it.

        Raises:
            CacheOperationError: CLEAR_ERROR when the delete fails
        """
        key = str(key)
        try:
            await self._delete(key)
        except Exception as e:
            self.logger.error("player_cache_invalidate_failed", namespace=self.namespace, key=key, error=str(e))
            raise CacheOperationError("Failed to invalidate cache entry", CacheErrorCode.CLEAR_ERROR) from e
        self.logger.info("player_cache_invalidated", namespace=self.namespace, key=key)

    async def cleanup(self) -> int:
        """Delete every expired or version-mismatched entry.

        Returns:
            Number of entries removed

        Raises:
            CacheOperationError: CLEANUP_ERROR when the scan or delete fails
        """
        try:
            removed = await self._delete_stale(time.time() - self.ttl)
        except Exception as e:
            self.logger.error("player_cache_cleanup_failed", namespace=self.namespace, error=str(e))
            raise CacheOperationError("Failed to clean up cache", CacheErrorCode.CLEANUP_ERROR) from e
        self.logger.info("player_cache_cleanup_completed", namespace=self.namespace, removed=removed)
        return removed

    async def _cleanup_inline(self) -> None:
        try:
            await self.cleanup()
        except CacheOperationError as e:
            self.logger.warning("player_cache_inline_cleanup_skipped", namespace=self.namespace, error=str(e))

    async def clear(self) -> None:
        """Remove every entry of this cache.

        Raises:
            CacheOperationError: CLEAR_ERROR when the store cannot be cleared
        """
        try:
            await self._clear()
        except Exception as e:
            self.logger.error("player_cache_clear_failed", namespace=self.namespace, error=str(e))
            raise CacheOperationError("Failed to clear cache", CacheErrorCode.CLEAR_ERROR) from e

    async def stats(self) -> CacheStats:
        """Return size, version, entry age range and hit/miss counters.

        Raises:
            CacheOperationError: READ_ERROR when the store cannot be scanned
        """
        try:
            size, oldest, newest = await self._summary()
        except Exception as e:
            raise CacheOperationError("Failed to read cache stats", CacheErrorCode.READ_ERROR) from e

        return CacheStats(
            namespace=self.namespace,
            size=size,
            version=self.version,
            ttl_seconds=self.ttl,
            oldest_entry=_to_datetime(oldest),
            newest_entry=_to_datetime(newest),
            **self.metrics.to_dict(),
        )
