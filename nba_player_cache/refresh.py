"""Batch refresh of the player stats cache.

Keeps the cache warm outside the request path:
- purge stale entries once up front
- page through the balldontlie roster (bounded page count)
- build payloads in fixed-size batches, concurrently within a batch
- pause between batches to stay under the upstream rate limit
- write each batch's successful payloads with one set_batch call

A player whose fetch fails is skipped for this run and picked up by the next
one (at most one attempt per player per run). A failed batch write is logged
and counted; later batches still run.
"""

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from nba_player_cache.errors import CacheOperationError, PlayerCacheError, UpstreamError
from nba_player_cache.monitoring import bind_correlation_id, get_logger, unbind_correlation_id
from nba_player_cache.service import PlayerStatsService
from nba_player_cache.stats import PlayerIdentity, PlayerPayload

log = get_logger()


@dataclass
class RefreshReport:
    """Outcome of one refresh run.

    Attributes:
        total_players: Players considered
        batches: Batches executed
        refreshed: Payloads written to the cache
        failed_players: IDs whose fetch failed this run
        failed_batches: Batches whose cache write failed
        delays: Inter-batch pauses taken
        duration_ms: Wall-clock duration of the run
    """

    total_players: int = 0
    batches: int = 0
    refreshed: int = 0
    failed_players: list[int] = field(default_factory=list)
    failed_batches: int = 0
    delays: int = 0
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "total_players": self.total_players,
            "batches": self.batches,
            "refreshed": self.refreshed,
            "failed_players": list(self.failed_players),
            "failed_batches": self.failed_batches,
            "delays": self.delays,
            "duration_ms": self.duration_ms,
        }


def chunk(players: list[PlayerIdentity], size: int) -> list[list[PlayerIdentity]]:
    """Split players into consecutive batches of at most ``size``."""
    return [players[i:i + size] for i in range(0, len(players), size)]


class RefreshPipeline:
    """Bounded-concurrency, rate-limited cache refresh.

    Example:
        pipeline = RefreshPipeline(service, batch_size=5, batch_delay=1.0)
        report = await pipeline.refresh_all()
        print(f"Refreshed {report.refreshed}/{report.total_players}")
    """

    def __init__(
        self,
        service: PlayerStatsService,
        batch_size: int = 5,
        batch_delay: float = 1.0,
        max_roster_pages: int = 60,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.service = service
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_roster_pages = max_roster_pages
        self._sleep = sleep

    async def fetch_roster(self) -> list[PlayerIdentity]:
        """Page through the roster until it runs out or max_roster_pages is hit.

        A page that fails ends the walk; players from earlier pages are kept.
        """
        players: list[PlayerIdentity] = []
        page = None
        for page_number in range(1, self.max_roster_pages + 1):
            try:
                result = await self.service.client.fetch_roster(page)
            except UpstreamError as e:
                log.error("roster_page_failed", page=page_number, error=str(e))
                break

            if not result.players:
                break
            players.extend(result.players)
            log.debug("roster_page_fetched", page=page_number, count=len(result.players))

            if result.next_page is None:
                break
            page = result.next_page
        else:
            log.warning("roster_page_limit_reached", max_pages=self.max_roster_pages)

        return players

    async def _refresh_batch(self, batch: list[PlayerIdentity], index: int, report: RefreshReport) -> None:
        results = await asyncio.gather(
            *(self.service.build_payload(player) for player in batch),
            return_exceptions=True,
        )

        successful: dict[int, PlayerPayload] = {}
        for player, result in zip(batch, results):
            if isinstance(result, Exception):
                report.failed_players.append(player.id)
                log.warning(
                    "refresh_player_failed",
                    player_id=player.id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                successful[player.id] = result

        if not successful:
            return

        try:
            report.refreshed += await self.service.stats_cache.set_batch(successful)
        except PlayerCacheError as e:
            report.failed_batches += 1
            log.error("refresh_batch_write_failed", batch=index, count=len(successful), error=str(e))
            return

        log.info("refresh_batch_completed", batch=index, refreshed=len(successful), failed=len(batch) - len(successful))

    async def refresh_all(self, players: list[PlayerIdentity] | None = None) -> RefreshReport:
        """Refresh the cache for the given players, or the whole roster.

        Args:
            players: Players to refresh (None fetches the roster)

        Returns:
            RefreshReport with per-run counters
        """
        start_time = time.perf_counter()
        bind_correlation_id(f"refresh-{uuid.uuid4().hex[:12]}")
        report = RefreshReport()

        try:
            try:
                await self.service.stats_cache.cleanup()
            except CacheOperationError as e:
                log.warning("refresh_cleanup_failed", error=str(e))

            if players is None:
                players = await self.fetch_roster()

            report.total_players = len(players)
            batches = chunk(players, self.batch_size)
            log.info("refresh_started", players=len(players), batches=len(batches), batch_size=self.batch_size)

            for index, batch in enumerate(batches):
                if index > 0:
                    await self._sleep(self.batch_delay)
                    report.delays += 1
                await self._refresh_batch(batch, index, report)
                report.batches += 1

            report.duration_ms = int((time.perf_counter() - start_time) * 1000)
            log.info("refresh_completed", **report.to_dict())
            return report
        finally:
            unbind_correlation_id()
