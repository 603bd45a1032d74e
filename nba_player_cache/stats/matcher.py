"""Join box-score records to advanced ratings by calendar day.

The box-score and advanced endpoints assign different identifiers to the same
game, so the only reliable join key for a single player is the game date:
a player appears in at most one game per day. Dates are compared as UTC
year/month/day, ignoring time-of-day.

When several ratings share a day (duplicated provider rows), the first one in
input order wins.
"""

from datetime import date, datetime, timezone

from nba_player_cache.stats.models import (
    AdvancedRating,
    GameRecord,
    MatchedGame,
    NetRatingPolicy,
)


def utc_game_day(value: str | None) -> date | None:
    """Truncate a provider date string to its UTC calendar day.

    Accepts plain dates ("2024-03-01") and ISO timestamps with or without an
    offset ("2024-03-01T00:00:00.000Z"). Naive timestamps are taken as UTC.

    Returns:
        The UTC date, or None when the value is missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is not None:
            # Offsets at the edge of the datetime range overflow on conversion
            parsed = parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None
    return parsed.date()


def find_rating(
    game: GameRecord, ratings: list[AdvancedRating]
) -> AdvancedRating | None:
    """Return the first rating on the same UTC day and in the same cohort."""
    game_day = utc_game_day(game.game_date)
    if game_day is None:
        return None

    for rating in ratings:
        if rating.postseason is not None and rating.postseason != game.postseason:
            continue
        if utc_game_day(rating.game_date) == game_day:
            return rating
    return None


def match_games(
    games: list[GameRecord],
    ratings: list[AdvancedRating],
    policy: NetRatingPolicy = NetRatingPolicy.ZERO,
) -> list[MatchedGame]:
    """Pair every game with at most one advanced rating.

    Args:
        games: Box-score records for one player and season
        ratings: Advanced ratings for the same player and season
        policy: ZERO resolves missing net ratings to 0.0, EXCLUDE leaves None

    Returns:
        One MatchedGame per input game, in input order
    """
    missing = 0.0 if policy == NetRatingPolicy.ZERO else None

    matched = []
    for game in games:
        rating = find_rating(game, ratings)
        if rating is not None and rating.net_rating is not None:
            net_rating = rating.net_rating
        else:
            net_rating = missing
        matched.append(MatchedGame(game=game, rating=rating, net_rating=net_rating))
    return matched
