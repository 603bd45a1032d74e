"""Pydantic models for player box scores, advanced ratings and cached payloads.

Every model is frozen: records fetched from balldontlie are never edited, and a
cached payload is replaced wholesale on refresh instead of being patched.

Numeric box-score fields are coerced at parse time so that one malformed
record (e.g. ``"pts": "N/A"``) degrades to 0 instead of failing a whole
player's aggregation.
"""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, computed_field, field_validator


def coerce_number(value: Any) -> float:
    """Coerce a provider numeric field to float, 0.0 when malformed."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def coerce_optional_number(value: Any) -> float | None:
    """Like coerce_number but keeps None for missing or malformed values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def parse_minutes(value: Any) -> float:
    """Parse a minutes-played field into decimal minutes.

    balldontlie reports minutes as "34", "34:12", "00" or "" depending on the
    season, and occasionally as a number. Anything unparseable counts as 0.

    Examples:
        >>> parse_minutes("34:30")
        34.5
        >>> parse_minutes("00")
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        if ":" in text:
            mins, _, secs = text.partition(":")
            result = float(mins or 0) + float(secs or 0) / 60
        else:
            result = float(text)
    except ValueError:
        return 0.0
    return result if math.isfinite(result) and result > 0 else 0.0


class NetRatingPolicy(str, Enum):
    """How a played game without advanced rating data affects net rating.

    ZERO: counts as a 0.0 net rating (the provider-era default)
    EXCLUDE: left out of the net rating average entirely
    """

    ZERO = "zero"
    EXCLUDE = "exclude"


class Team(BaseModel):
    """NBA team reference as embedded in balldontlie responses."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    abbreviation: str = "UNK"
    full_name: str = "Unknown Team"
    city: str | None = None
    conference: str | None = None
    division: str | None = None

    @field_validator("abbreviation", "full_name", mode="before")
    @classmethod
    def default_blank_names(cls, v: Any, info: ValidationInfo) -> Any:
        if v in (None, ""):
            return "UNK" if info.field_name == "abbreviation" else "Unknown Team"
        return v


class PlayerIdentity(BaseModel):
    """Player identity and team metadata.

    Attributes:
        id: balldontlie player ID
        first_name: Player first name
        last_name: Player last name
        position: Position string ("G", "F-C", ...) when known
        team: Team the provider lists for the player
    """

    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    last_name: str
    position: str | None = None
    team: Team | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class GameRecord(BaseModel):
    """One player's box-score line for one game.

    Attributes:
        game_id: balldontlie game ID (not shared with the advanced endpoint)
        game_date: Raw date string from the provider
        postseason: Whether the game is a playoff game
        points: Points scored
        rebounds: Total rebounds
        assists: Assists
        minutes: Minutes played as reported ("34", "34:12", "00", None)
        home_team_score: Final home score
        visitor_team_score: Final visitor score
        home_team_id: Home team ID
        visitor_team_id: Visitor team ID
        team: Team the player suited up for
    """

    model_config = ConfigDict(frozen=True)

    game_id: int | None = None
    game_date: str | None = None
    postseason: bool = False
    points: float = 0.0
    rebounds: float = 0.0
    assists: float = 0.0
    minutes: str | None = None
    home_team_score: int | None = None
    visitor_team_score: int | None = None
    home_team_id: int | None = None
    visitor_team_id: int | None = None
    team: Team | None = None

    @field_validator("points", "rebounds", "assists", mode="before")
    @classmethod
    def coerce_counting_stat(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("minutes", mode="before")
    @classmethod
    def normalize_minutes(cls, v: Any) -> str | None:
        if v is None:
            return None
        return str(v).strip()

    @field_validator("postseason", mode="before")
    @classmethod
    def default_postseason(cls, v: Any) -> bool:
        return bool(v) if v is not None else False

    @field_validator("game_date", mode="before")
    @classmethod
    def stringify_date(cls, v: Any) -> str | None:
        if v is None:
            return None
        if hasattr(v, "isoformat"):
            return v.isoformat()
        return str(v)

    @field_validator(
        "home_team_score", "visitor_team_score", "home_team_id", "visitor_team_id",
        mode="before",
    )
    @classmethod
    def coerce_optional_int(cls, v: Any) -> int | None:
        number = coerce_optional_number(v)
        return int(number) if number is not None else None

    @computed_field
    @property
    def opponent_team_id(self) -> int | None:
        """Team ID on the other side of the floor, when it can be inferred."""
        if self.team is None or self.team.id is None:
            return None
        if self.team.id == self.home_team_id:
            return self.visitor_team_id
        if self.team.id == self.visitor_team_id:
            return self.home_team_id
        return None

    @property
    def played(self) -> bool:
        """False for did-not-play lines (minutes "00", "0", empty or missing)."""
        return parse_minutes(self.minutes) > 0


class AdvancedRating(BaseModel):
    """One player's advanced metric line for one game.

    Attributes:
        game_date: Raw date string from the advanced endpoint
        postseason: Playoff flag; None when the provider omits it
        net_rating: Net rating for the game, None when not computed
    """

    model_config = ConfigDict(frozen=True)

    game_id: int | None = None
    game_date: str | None = None
    postseason: bool | None = None
    net_rating: float | None = None

    @field_validator("net_rating", mode="before")
    @classmethod
    def coerce_rating(cls, v: Any) -> float | None:
        return coerce_optional_number(v)

    @field_validator("game_date", mode="before")
    @classmethod
    def stringify_date(cls, v: Any) -> str | None:
        if v is None:
            return None
        if hasattr(v, "isoformat"):
            return v.isoformat()
        return str(v)


class MatchedGame(BaseModel):
    """A box-score line joined with at most one same-day advanced rating.

    Attributes:
        game: The box-score record
        rating: The matched advanced rating, None when no candidate matched
        net_rating: Resolved net rating (0.0 or None when missing, per policy)
    """

    model_config = ConfigDict(frozen=True)

    game: GameRecord
    rating: AdvancedRating | None = None
    net_rating: float | None = 0.0

    @property
    def rating_matched(self) -> bool:
        return self.rating is not None


class SeasonSplit(BaseModel):
    """Per-cohort averages over played games.

    Invariant: games_played == 0 implies every average is 0.0.
    """

    model_config = ConfigDict(frozen=True)

    games_played: int = 0
    points: float = 0.0
    rebounds: float = 0.0
    assists: float = 0.0
    net_rating: float = 0.0


class PlayerPayload(BaseModel):
    """The unit stored in and served from the player stats cache.

    Attributes:
        id: balldontlie player ID
        first_name: Player first name
        last_name: Player last name
        position: Player position
        team: Current team (taken from the most recent game when available)
        season: Season label the splits were computed for
        regular_season: Regular-season cohort split
        postseason: Postseason cohort split
        recent_games: Most recent matched games, newest first
    """

    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    last_name: str
    position: str | None = None
    team: Team | None = None
    season: int
    regular_season: SeasonSplit = SeasonSplit()
    postseason: SeasonSplit = SeasonSplit()
    recent_games: list[MatchedGame] = []


class SeasonNetRating(BaseModel):
    """One season of a player's net rating history."""

    season: int
    net_rating: float | None = None
    games: int = 0
