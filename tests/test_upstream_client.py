"""Tests for the balldontlie client (HTTP mocked with pytest-httpx)."""

import re

import httpx
import pytest

from nba_player_cache.config import Settings
from nba_player_cache.errors import RateLimitedError, UpstreamError
from nba_player_cache.upstream import BallDontLieClient, parse_game_record

STATS_URL = re.compile(r"https://api\.balldontlie\.io/v1/stats\?.*")
ADVANCED_URL = re.compile(r"https://api\.balldontlie\.io/v2/stats/advanced\?.*")
PLAYERS_URL = re.compile(r"https://api\.balldontlie\.io/v1/players\?.*")


@pytest.fixture
def settings():
    return Settings(balldontlie_api_key="test-key", roster_page_size=2)


@pytest.fixture
def client(settings):
    return BallDontLieClient(settings=settings)


@pytest.fixture
def no_backoff(monkeypatch):
    """Skip tenacity's real sleeps between 429 retries."""
    async def instant(seconds):
        return None

    monkeypatch.setattr(BallDontLieClient._get_json.retry, "sleep", instant)


def _stat_row(game_id, date, pts, minutes="30:00", postseason=False):
    return {
        "pts": pts,
        "reb": 5,
        "ast": 4,
        "min": minutes,
        "team": {"id": 14, "abbreviation": "LAL", "full_name": "Los Angeles Lakers"},
        "game": {
            "id": game_id,
            "date": date,
            "postseason": postseason,
            "home_team_id": 14,
            "visitor_team_id": 2,
            "home_team_score": 110,
            "visitor_team_score": 104,
        },
    }


def test_requires_api_key(monkeypatch):
    monkeypatch.delenv("BALLDONTLIE_API_KEY", raising=False)
    with pytest.raises(ValueError, match="BALLDONTLIE_API_KEY"):
        BallDontLieClient(settings=Settings(balldontlie_api_key=""))


def test_parse_game_record_maps_fields():
    record = parse_game_record(_stat_row(11, "2024-03-01", 20))

    assert record.game_id == 11
    assert record.points == 20.0
    assert record.minutes == "30:00"
    assert record.team.abbreviation == "LAL"
    assert record.opponent_team_id == 2
    assert record.played


async def test_fetch_games(client, httpx_mock):
    httpx_mock.add_response(
        url=STATS_URL,
        json={"data": [_stat_row(1, "2024-03-01", 20), _stat_row(2, "2024-03-02", 0, minutes="00")], "meta": {}},
    )

    games = await client.fetch_games(237, 2023)

    assert [g.game_id for g in games] == [1, 2]
    assert not games[1].played

    request = httpx_mock.get_request()
    assert request.headers["Authorization"] == "test-key"
    assert request.url.params["player_ids[]"] == "237"
    assert request.url.params["seasons[]"] == "2023"


async def test_fetch_games_follows_cursor(client, httpx_mock):
    httpx_mock.add_response(
        url=STATS_URL,
        json={"data": [_stat_row(1, "2024-03-01", 20)], "meta": {"next_cursor": 99}},
    )
    httpx_mock.add_response(
        url=STATS_URL,
        json={"data": [_stat_row(2, "2024-03-03", 25)], "meta": {"next_cursor": None}},
    )

    games = await client.fetch_games(237, 2023)

    assert [g.game_id for g in games] == [1, 2]
    assert httpx_mock.get_requests()[1].url.params["cursor"] == "99"


async def test_fetch_games_skips_malformed_rows(client, httpx_mock):
    httpx_mock.add_response(
        url=STATS_URL,
        json={"data": [{"game": {"id": "not-a-number"}}, _stat_row(2, "2024-03-02", 12)], "meta": {}},
    )

    games = await client.fetch_games(237, 2023)

    assert [g.game_id for g in games] == [2]


async def test_fetch_advanced_ratings(client, httpx_mock):
    httpx_mock.add_response(
        url=ADVANCED_URL,
        json={
            "data": [
                {"net_rating": 5.2, "game": {"id": 900, "date": "2024-03-01", "postseason": False}},
                {"net_rating": None, "game": {"id": 901, "date": "2024-03-03", "postseason": False}},
            ],
            "meta": {},
        },
    )

    ratings = await client.fetch_advanced_ratings(237, 2023)

    assert ratings[0].net_rating == 5.2
    assert ratings[0].game_date == "2024-03-01"
    assert ratings[1].net_rating is None


async def test_fetch_player_identity(client, httpx_mock):
    httpx_mock.add_response(
        url="https://api.balldontlie.io/v1/players/237",
        json={
            "data": {
                "id": 237,
                "first_name": "LeBron",
                "last_name": "James",
                "position": "F",
                "team": {"id": 14, "abbreviation": "LAL", "full_name": "Los Angeles Lakers"},
            }
        },
    )

    identity = await client.fetch_player_identity(237)

    assert identity.full_name == "LeBron James"
    assert identity.team.abbreviation == "LAL"


async def test_fetch_player_identity_not_found(client, httpx_mock):
    httpx_mock.add_response(url="https://api.balldontlie.io/v1/players/999999", status_code=404)
    assert await client.fetch_player_identity(999999) is None


async def test_fetch_roster_page(client, httpx_mock):
    httpx_mock.add_response(
        url=PLAYERS_URL,
        json={
            "data": [
                {"id": 1, "first_name": "A", "last_name": "One", "team": None},
                {"id": 2, "first_name": "B", "last_name": "Two"},
            ],
            "meta": {"next_cursor": 2},
        },
    )

    page = await client.fetch_roster()

    assert [p.id for p in page.players] == [1, 2]
    assert page.next_page == 2
    assert httpx_mock.get_request().url.params["per_page"] == "2"


async def test_fetch_roster_last_page(client, httpx_mock):
    httpx_mock.add_response(url=PLAYERS_URL, json={"data": [{"id": 3, "first_name": "C", "last_name": "Three"}], "meta": {}})

    page = await client.fetch_roster(2)

    assert page.next_page is None
    assert httpx_mock.get_request().url.params["cursor"] == "2"


async def test_server_error_raises_upstream_error(client, httpx_mock):
    httpx_mock.add_response(url=STATS_URL, status_code=500)

    with pytest.raises(UpstreamError) as exc_info:
        await client.fetch_games(237, 2023)

    assert exc_info.value.status_code == 500


async def test_network_error_raises_upstream_error(client, httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=STATS_URL)

    with pytest.raises(UpstreamError, match="network error"):
        await client.fetch_games(237, 2023)


async def test_rate_limit_is_retried(client, httpx_mock, no_backoff):
    httpx_mock.add_response(url=STATS_URL, status_code=429)
    httpx_mock.add_response(url=STATS_URL, json={"data": [_stat_row(1, "2024-03-01", 20)], "meta": {}})

    games = await client.fetch_games(237, 2023)

    assert len(games) == 1
    assert len(httpx_mock.get_requests()) == 2


async def test_rate_limit_gives_up_after_three_attempts(client, httpx_mock, no_backoff):
    for _ in range(3):
        httpx_mock.add_response(url=STATS_URL, status_code=429)

    with pytest.raises(RateLimitedError):
        await client.fetch_games(237, 2023)

    assert len(httpx_mock.get_requests()) == 3


async def test_circuit_opens_after_repeated_failures(settings, httpx_mock):
    client = BallDontLieClient(settings=settings, failure_threshold=2)
    httpx_mock.add_response(url=STATS_URL, status_code=500)
    httpx_mock.add_response(url=STATS_URL, status_code=500)

    for _ in range(2):
        with pytest.raises(UpstreamError):
            await client.fetch_games(237, 2023)

    with pytest.raises(UpstreamError, match="circuit open"):
        await client.fetch_games(237, 2023)

    # The third call never reached the network
    assert len(httpx_mock.get_requests()) == 2
