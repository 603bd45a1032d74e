"""Upstream stat provider (balldontlie) client."""

from nba_player_cache.upstream.client import (
    BallDontLieClient,
    RosterPage,
    parse_advanced_rating,
    parse_game_record,
    parse_player,
)

__all__ = [
    "BallDontLieClient",
    "RosterPage",
    "parse_game_record",
    "parse_advanced_rating",
    "parse_player",
]
