"""Cache-through player stats service.

Read path for one player:
1. Return the cached PlayerPayload if it is fresh and current-version
2. Otherwise load the player's identity (24h identity cache, then balldontlie)
3. Fetch the season's box scores and advanced ratings
4. Join them by game day, aggregate into regular-season / postseason splits
5. Store the new payload and return it

Upstream failures surface as PlayerLookupError; callers never get a partially
populated payload. Cache medium failures surface as CacheOperationError.
"""

from statistics import fmean

from nba_player_cache.cache import (
    IDENTITY_NAMESPACE,
    STATS_NAMESPACE,
    CacheStats,
    PlayerCacheStore,
    create_player_cache,
)
from nba_player_cache.config import Settings, get_settings
from nba_player_cache.errors import PlayerLookupError, PlayerNotFoundError, UpstreamError
from nba_player_cache.monitoring import get_logger
from nba_player_cache.stats import (
    MatchedGame,
    NetRatingPolicy,
    PlayerIdentity,
    PlayerPayload,
    SeasonNetRating,
    Team,
    aggregate,
    current_season,
    last_n_seasons,
    match_games,
)
from nba_player_cache.upstream import BallDontLieClient

log = get_logger()


def current_team(identity: PlayerIdentity, recent_games: list[MatchedGame]) -> Team | None:
    """Team from the most recent game that carries one, else the identity's team."""
    for matched in recent_games:
        if matched.game.team is not None:
            return matched.game.team
    return identity.team


class PlayerStatsService:
    """Serve player payloads through the player stats cache.

    Attributes:
        client: balldontlie client (or any object with the same fetch_* methods)
        stats_cache: Cache for PlayerPayload (1h TTL class)
        identity_cache: Cache for PlayerIdentity (24h TTL class), optional
    """

    def __init__(
        self,
        client: BallDontLieClient,
        stats_cache: PlayerCacheStore,
        identity_cache: PlayerCacheStore | None = None,
        recent_games_limit: int = 25,
        net_rating_policy: NetRatingPolicy = NetRatingPolicy.ZERO,
        history_seasons: int = 6,
    ):
        self.client = client
        self.stats_cache = stats_cache
        self.identity_cache = identity_cache
        self.recent_games_limit = recent_games_limit
        self.net_rating_policy = NetRatingPolicy(net_rating_policy)
        self.history_seasons = history_seasons

    async def get_player_identity(self, player_id: int) -> PlayerIdentity | None:
        """Identity from the identity cache, falling back to balldontlie.

        Raises:
            UpstreamError: balldontlie request failed
            CacheOperationError: identity cache medium failed
        """
        if self.identity_cache is not None:
            cached = await self.identity_cache.get(player_id)
            if cached is not None:
                return cached

        identity = await self.client.fetch_player_identity(player_id)
        if identity is not None and self.identity_cache is not None:
            await self.identity_cache.set(player_id, identity)
        return identity

    async def build_payload(self, identity: PlayerIdentity, season: int | None = None) -> PlayerPayload:
        """Fetch, join and aggregate one player's season into a payload.

        Box scores and advanced ratings are fetched one after the other so a
        refresh batch never has more than one request in flight per player.

        Raises:
            UpstreamError: either fetch failed
        """
        season = season if season is not None else current_season()
        games = await self.client.fetch_games(identity.id, season)
        ratings = await self.client.fetch_advanced_ratings(identity.id, season)

        matched = match_games(games, ratings, self.net_rating_policy)
        result = aggregate(matched, self.recent_games_limit)

        log.debug(
            "player_payload_built",
            player_id=identity.id,
            season=season,
            games=len(games),
            ratings=len(ratings),
            matched=sum(1 for m in matched if m.rating_matched),
        )

        return PlayerPayload(
            id=identity.id,
            first_name=identity.first_name,
            last_name=identity.last_name,
            position=identity.position,
            team=current_team(identity, result.recent_games),
            season=season,
            regular_season=result.regular_season,
            postseason=result.postseason,
            recent_games=result.recent_games,
        )

    async def get_player_payload(self, player_id: int) -> PlayerPayload:
        """Cache-through read of a player's current-season payload.

        Raises:
            PlayerNotFoundError: balldontlie has no such player
            PlayerLookupError: upstream failed, nothing partial is returned
            CacheOperationError: cache medium failed
        """
        cached = await self.stats_cache.get(player_id)
        if cached is not None:
            log.debug("player_payload_cache_hit", player_id=player_id)
            return cached

        try:
            identity = await self.get_player_identity(player_id)
            if identity is None:
                raise PlayerNotFoundError(player_id)
            payload = await self.build_payload(identity)
        except UpstreamError as e:
            log.error(
                "player_payload_fetch_failed",
                player_id=player_id,
                endpoint=e.endpoint,
                status_code=e.status_code,
                error=str(e),
            )
            raise PlayerLookupError(player_id, "upstream request failed") from e

        await self.stats_cache.set(player_id, payload)
        log.info("player_payload_cached", player_id=player_id, season=payload.season)
        return payload

    async def invalidate_player(self, player_id: int) -> None:
        """Drop the cached payload so the next read refetches it."""
        await self.stats_cache.invalidate(player_id)

    async def get_cache_health(self) -> dict[str, CacheStats]:
        """Stats for every cache the service uses, keyed by namespace."""
        health = {self.stats_cache.namespace: await self.stats_cache.stats()}
        if self.identity_cache is not None:
            health[self.identity_cache.namespace] = await self.identity_cache.stats()
        return health

    async def get_net_rating_history(
        self, player_id: int, seasons: int | None = None
    ) -> list[SeasonNetRating]:
        """Net rating per season over the last N seasons, oldest first.

        A season with no advanced data, or whose fetch failed, reports
        net_rating None instead of failing the whole history.
        """
        history = []
        for season in last_n_seasons(seasons or self.history_seasons):
            try:
                ratings = await self.client.fetch_advanced_ratings(player_id, season)
            except UpstreamError as e:
                log.warning("net_rating_history_season_failed", player_id=player_id, season=season, error=str(e))
                history.append(SeasonNetRating(season=season))
                continue

            values = [r.net_rating for r in ratings if r.net_rating is not None]
            history.append(
                SeasonNetRating(
                    season=season,
                    net_rating=fmean(values) if values else None,
                    games=len(values),
                )
            )
        return history


def build_service(settings: Settings | None = None) -> PlayerStatsService:
    """Wire a PlayerStatsService from Settings."""
    settings = settings or get_settings()
    return PlayerStatsService(
        client=BallDontLieClient(settings=settings),
        stats_cache=create_player_cache(STATS_NAMESPACE, settings),
        identity_cache=create_player_cache(IDENTITY_NAMESPACE, settings),
        recent_games_limit=settings.recent_games_limit,
        net_rating_policy=NetRatingPolicy(settings.net_rating_policy),
        history_seasons=settings.history_seasons,
    )
