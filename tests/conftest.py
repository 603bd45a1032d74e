"""Shared pytest fixtures for player cache tests."""

import asyncio

import pytest

from nba_player_cache.cache import DatabasePlayerCache, DiskPlayerCache
from nba_player_cache.cache.base import IDENTITY_NAMESPACE
from nba_player_cache.db import create_engine
from nba_player_cache.errors import UpstreamError
from nba_player_cache.monitoring import configure_logging
from nba_player_cache.stats import (
    AdvancedRating,
    GameRecord,
    PlayerIdentity,
    PlayerPayload,
    SeasonSplit,
    Team,
)
from nba_player_cache.upstream import RosterPage


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Configure structlog for test output."""
    configure_logging("development")


def make_identity(player_id: int = 237, first_name: str = "LeBron", last_name: str = "James") -> PlayerIdentity:
    return PlayerIdentity(
        id=player_id,
        first_name=first_name,
        last_name=last_name,
        position="F",
        team=Team(id=14, abbreviation="LAL", full_name="Los Angeles Lakers"),
    )


def make_payload(player_id: int = 237, points: float = 25.0, net_rating: float = 4.5) -> PlayerPayload:
    return PlayerPayload(
        id=player_id,
        first_name="LeBron",
        last_name="James",
        position="F",
        team=Team(id=14, abbreviation="LAL", full_name="Los Angeles Lakers"),
        season=2024,
        regular_season=SeasonSplit(
            games_played=10, points=points, rebounds=7.5, assists=8.0, net_rating=net_rating
        ),
        postseason=SeasonSplit(),
    )


class FakeUpstream:
    """In-memory stand-in for BallDontLieClient.

    Attributes:
        games / ratings: Per-player records returned for any season
        identities: Players returned by fetch_player_identity
        roster_pages: Pages returned by fetch_roster, indexed by cursor
        failing: Player IDs whose stat fetches raise UpstreamError
        calls: Log of (method, player_id) calls
        max_in_flight: Highest number of concurrent stat fetches observed
    """

    def __init__(self):
        self.games: dict[int, list[GameRecord]] = {}
        self.ratings: dict[int, list[AdvancedRating]] = {}
        self.identities: dict[int, PlayerIdentity] = {}
        self.roster_pages: list[RosterPage] = []
        self.roster_error_page: int | None = None
        self.failing: set[int] = set()
        self.failing_seasons: set[int] = set()
        self.calls: list[tuple[str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _enter(self, method: str, player_id: int, season: int | None = None) -> None:
        self.calls.append((method, player_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        if player_id in self.failing or season in self.failing_seasons:
            raise UpstreamError("boom", endpoint=f"/{method}", status_code=500)

    async def fetch_games(self, player_id: int, season: int) -> list[GameRecord]:
        await self._enter("games", player_id, season)
        return list(self.games.get(player_id, []))

    async def fetch_advanced_ratings(self, player_id: int, season: int) -> list[AdvancedRating]:
        await self._enter("ratings", player_id, season)
        return list(self.ratings.get(player_id, []))

    async def fetch_player_identity(self, player_id: int) -> PlayerIdentity | None:
        self.calls.append(("identity", player_id))
        if player_id in self.failing:
            raise UpstreamError("boom", endpoint="/players", status_code=500)
        return self.identities.get(player_id)

    async def fetch_roster(self, page: int | None = None) -> RosterPage:
        index = page or 0
        self.calls.append(("roster", index))
        if self.roster_error_page is not None and index == self.roster_error_page:
            raise UpstreamError("roster down", endpoint="/players", status_code=503)
        if index >= len(self.roster_pages):
            return RosterPage()
        return self.roster_pages[index]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def disk_cache(tmp_path):
    """Fresh stats cache per test, no random inline cleanup."""
    cache = DiskPlayerCache(cache_dir=str(tmp_path / "player_cache"), cleanup_probability=0.0)
    yield cache
    cache.close()


@pytest.fixture
def identity_cache(tmp_path):
    cache = DiskPlayerCache(
        cache_dir=str(tmp_path / "player_cache"),
        namespace=IDENTITY_NAMESPACE,
        cleanup_probability=0.0,
    )
    yield cache
    cache.close()


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine so every session sees the same database."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'player_cache.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_cache(db_engine):
    cache = DatabasePlayerCache(db_engine, cleanup_probability=0.0)
    await cache.init_schema()
    return cache
