"""Player stat models, season labels, game/rating matching and aggregation."""

from nba_player_cache.stats.aggregator import AggregateResult, aggregate, season_split
from nba_player_cache.stats.matcher import match_games, utc_game_day
from nba_player_cache.stats.models import (
    AdvancedRating,
    GameRecord,
    MatchedGame,
    NetRatingPolicy,
    PlayerIdentity,
    PlayerPayload,
    SeasonNetRating,
    SeasonSplit,
    Team,
)
from nba_player_cache.stats.season import current_season, last_n_seasons

__all__ = [
    # Models
    "Team",
    "PlayerIdentity",
    "GameRecord",
    "AdvancedRating",
    "MatchedGame",
    "SeasonSplit",
    "PlayerPayload",
    "SeasonNetRating",
    "NetRatingPolicy",
    # Seasons
    "current_season",
    "last_n_seasons",
    # Matching and aggregation
    "match_games",
    "utc_game_day",
    "aggregate",
    "season_split",
    "AggregateResult",
]
