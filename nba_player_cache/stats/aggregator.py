"""Regular-season / postseason splits from matched games.

Did-not-play lines are dropped before averaging so a healthy scratch never
drags a player's per-game numbers down. Averages are always finite: an empty
cohort yields all zeros.
"""

from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from nba_player_cache.stats.matcher import utc_game_day
from nba_player_cache.stats.models import MatchedGame, SeasonSplit

DEFAULT_RECENT_LIMIT = 25


@dataclass(frozen=True)
class AggregateResult:
    """Output of aggregate().

    Attributes:
        regular_season: Split over regular-season games
        postseason: Split over playoff games
        recent_games: Matched games newest first, capped at the page size
    """

    regular_season: SeasonSplit
    postseason: SeasonSplit
    recent_games: list[MatchedGame] = field(default_factory=list)


def _mean(series: pd.Series) -> float:
    value = series.mean()
    return 0.0 if pd.isna(value) else float(value)


def season_split(games: list[MatchedGame]) -> SeasonSplit:
    """Average the played games of one cohort.

    Games whose net_rating is None (EXCLUDE policy, no rating) count toward
    games_played and the box-score averages but not the net rating average.
    """
    played = [m for m in games if m.game.played]
    if not played:
        return SeasonSplit()

    df = pd.DataFrame(
        {
            "pts": [m.game.points for m in played],
            "reb": [m.game.rebounds for m in played],
            "ast": [m.game.assists for m in played],
            "net_rating": [m.net_rating for m in played],
        },
        dtype="float64",
    )

    return SeasonSplit(
        games_played=len(df),
        points=_mean(df["pts"]),
        rebounds=_mean(df["reb"]),
        assists=_mean(df["ast"]),
        net_rating=_mean(df["net_rating"]),
    )


def most_recent(games: list[MatchedGame], limit: int | None = DEFAULT_RECENT_LIMIT) -> list[MatchedGame]:
    """Sort games newest first; games with unparseable dates go last."""
    def sort_key(m: MatchedGame) -> tuple[bool, date]:
        day = utc_game_day(m.game.game_date)
        return (day is not None, day or date.min)

    ordered = sorted(games, key=sort_key, reverse=True)
    return ordered[:limit] if limit is not None else ordered


def aggregate(
    matched: list[MatchedGame], recent_limit: int | None = DEFAULT_RECENT_LIMIT
) -> AggregateResult:
    """Split matched games into cohorts and compute per-cohort averages.

    Args:
        matched: Output of match_games() for one player and season
        recent_limit: Page size for recent_games (None for no cap)

    Returns:
        AggregateResult with both splits and the recent games page

    Example:
        result = aggregate(match_games(games, ratings))
        print(result.regular_season.points, result.postseason.games_played)
    """
    regular = [m for m in matched if not m.game.postseason]
    playoffs = [m for m in matched if m.game.postseason]

    return AggregateResult(
        regular_season=season_split(regular),
        postseason=season_split(playoffs),
        recent_games=most_recent(matched, recent_limit),
    )
