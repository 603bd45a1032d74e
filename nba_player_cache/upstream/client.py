"""balldontlie API client for player box scores, advanced stats and rosters.

Endpoints:
- v1 /players/{id}: player identity
- v1 /players: roster pages (cursor pagination)
- v1 /stats: per-game box scores
- v2 /stats/advanced: per-game advanced metrics (net rating)

"Not found" responses (HTTP 404) come back as empty results. Any other
failure raises UpstreamError. HTTP 429 is retried with exponential backoff;
repeated failures open a per-client circuit breaker so a struggling upstream
is not hammered by a refresh run.
"""

import os
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from circuitbreaker import CircuitBreaker, CircuitBreakerError
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nba_player_cache.config import Settings, get_settings
from nba_player_cache.errors import RateLimitedError, UpstreamError
from nba_player_cache.monitoring import get_logger
from nba_player_cache.stats.models import (
    AdvancedRating,
    GameRecord,
    PlayerIdentity,
    Team,
)

log = get_logger()

# Upper bound on cursor pages followed for one player-season
MAX_STAT_PAGES = 10
STATS_PAGE_SIZE = 100


@dataclass
class RosterPage:
    """One page of the player roster.

    Attributes:
        players: Players on this page
        next_page: Cursor for the following page, None on the last page
    """

    players: list[PlayerIdentity] = field(default_factory=list)
    next_page: int | None = None


def parse_team(data: Any) -> Team | None:
    if not isinstance(data, dict):
        return None
    return Team.model_validate(data)


def parse_player(data: dict) -> PlayerIdentity:
    return PlayerIdentity(
        id=data["id"],
        first_name=data.get("first_name") or "",
        last_name=data.get("last_name") or "",
        position=data.get("position") or None,
        team=parse_team(data.get("team")),
    )


def parse_game_record(row: dict) -> GameRecord:
    """Map a /stats row onto a GameRecord."""
    game = row.get("game") or {}
    return GameRecord(
        game_id=game.get("id"),
        game_date=game.get("date"),
        postseason=game.get("postseason"),
        points=row.get("pts"),
        rebounds=row.get("reb"),
        assists=row.get("ast"),
        minutes=row.get("min"),
        home_team_score=game.get("home_team_score"),
        visitor_team_score=game.get("visitor_team_score"),
        home_team_id=game.get("home_team_id"),
        visitor_team_id=game.get("visitor_team_id"),
        team=parse_team(row.get("team")),
    )


def parse_advanced_rating(row: dict) -> AdvancedRating:
    """Map a /stats/advanced row onto an AdvancedRating."""
    game = row.get("game") or {}
    return AdvancedRating(
        game_id=game.get("id"),
        game_date=game.get("date"),
        postseason=game.get("postseason"),
        net_rating=row.get("net_rating"),
    )


class BallDontLieClient:
    """Async client for the balldontlie API.

    Example:
        client = BallDontLieClient(api_key="...")
        games = await client.fetch_games(237, 2024)
        ratings = await client.fetch_advanced_ratings(237, 2024)
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
    ) -> None:
        """Initialize the balldontlie client.

        Args:
            api_key: API key. If not provided, reads BALLDONTLIE_API_KEY from
                     settings / environment.
            settings: Settings for base URLs and timeout
            failure_threshold: Consecutive failures before the circuit opens
            recovery_timeout: Seconds the circuit stays open

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        settings = settings or get_settings()
        self.api_key = api_key or settings.balldontlie_api_key or os.getenv("BALLDONTLIE_API_KEY")
        if not self.api_key:
            raise ValueError(
                "BALLDONTLIE_API_KEY not found in environment. "
                "Set it in .env or pass api_key parameter."
            )

        self.base_url = settings.balldontlie_base_url.rstrip("/")
        self.advanced_url = settings.balldontlie_advanced_url.rstrip("/")
        self.timeout = settings.request_timeout
        self.roster_page_size = settings.roster_page_size

        self._breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=UpstreamError,
            name=f"balldontlie-{id(self)}",
        )
        self._guarded_get = self._breaker(self._get_json)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RateLimitedError),
        reraise=True,
    )
    async def _get_json(self, url: str, params: list[tuple[str, Any]] | None = None) -> dict | None:
        """GET a JSON document.

        Returns:
            Parsed JSON body, or None when the resource does not exist (404)

        Raises:
            RateLimitedError: HTTP 429 (retried up to 3 attempts)
            UpstreamError: Network errors, other HTTP errors, invalid JSON
        """
        start_time = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Authorization": self.api_key},
            ) as client:
                response = await client.get(url, params=params)
        except httpx.RequestError as e:
            raise UpstreamError(f"network error: {e}", endpoint=url) from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        log.debug("balldontlie_request", url=url, status=response.status_code, duration_ms=duration_ms)

        if response.status_code == 404:
            return None
        if response.status_code == 429:
            log.warning("balldontlie_rate_limited", url=url)
            raise RateLimitedError("rate limited", endpoint=url, status_code=429)
        if response.is_error:
            raise UpstreamError(
                f"HTTP {response.status_code}", endpoint=url, status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("invalid JSON response", endpoint=url) from e

    async def _get(self, url: str, params: list[tuple[str, Any]] | None = None) -> dict | None:
        try:
            return await self._guarded_get(url, params)
        except CircuitBreakerError as e:
            raise UpstreamError("circuit open, upstream temporarily disabled", endpoint=url) from e

    async def _paginate(self, url: str, params: list[tuple[str, Any]]) -> list[dict]:
        """Follow meta.next_cursor until exhausted or MAX_STAT_PAGES is reached."""
        rows: list[dict] = []
        cursor = None
        for _ in range(MAX_STAT_PAGES):
            page_params = list(params)
            if cursor is not None:
                page_params.append(("cursor", cursor))

            body = await self._get(url, page_params)
            if not body:
                break
            rows.extend(body.get("data") or [])

            cursor = (body.get("meta") or {}).get("next_cursor")
            if cursor is None:
                break
        return rows

    async def fetch_games(self, player_id: int, season: int) -> list[GameRecord]:
        """Fetch every box-score line for a player in one season.

        Malformed rows are skipped with a warning.
        """
        rows = await self._paginate(
            f"{self.base_url}/stats",
            [
                ("player_ids[]", player_id),
                ("seasons[]", season),
                ("per_page", STATS_PAGE_SIZE),
            ],
        )
        games = []
        for row in rows:
            try:
                games.append(parse_game_record(row))
            except ValidationError as e:
                log.warning("balldontlie_game_row_skipped", player_id=player_id, error=str(e))
        return games

    async def fetch_advanced_ratings(self, player_id: int, season: int) -> list[AdvancedRating]:
        """Fetch every advanced-stat line for a player in one season."""
        rows = await self._paginate(
            f"{self.advanced_url}/stats/advanced",
            [
                ("player_ids[]", player_id),
                ("seasons[]", season),
                ("per_page", STATS_PAGE_SIZE),
            ],
        )
        ratings = []
        for row in rows:
            try:
                ratings.append(parse_advanced_rating(row))
            except ValidationError as e:
                log.warning("balldontlie_rating_row_skipped", player_id=player_id, error=str(e))
        return ratings

    async def fetch_player_identity(self, player_id: int) -> PlayerIdentity | None:
        """Fetch a player's identity, None when the player does not exist."""
        url = f"{self.base_url}/players/{player_id}"
        body = await self._get(url)
        if not body or not body.get("data"):
            return None
        try:
            return parse_player(body["data"])
        except (KeyError, ValidationError) as e:
            raise UpstreamError(f"malformed player record: {e}", endpoint=url) from e

    async def fetch_roster(self, page: int | None = None) -> RosterPage:
        """Fetch one page of the player roster.

        Args:
            page: Cursor from the previous RosterPage.next_page (None for the first page)
        """
        params: list[tuple[str, Any]] = [("per_page", self.roster_page_size)]
        if page is not None:
            params.append(("cursor", page))

        body = await self._get(f"{self.base_url}/players", params)
        if not body:
            return RosterPage()

        players = []
        for row in body.get("data") or []:
            try:
                players.append(parse_player(row))
            except (KeyError, ValidationError) as e:
                log.warning("balldontlie_player_row_skipped", error=str(e))

        meta = body.get("meta") or {}
        return RosterPage(players=players, next_page=meta.get("next_cursor", meta.get("next_page")))
