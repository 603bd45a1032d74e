"""Exception taxonomy for the player cache service.

PlayerCacheError
    PayloadValidationError   malformed payload rejected before any write
    CacheOperationError      the cache medium failed to read/write/delete
UpstreamError                balldontlie request failed
PlayerLookupError            read path could not produce a complete payload
    PlayerNotFoundError      provider has no such player
"""

from enum import Enum


class CacheErrorCode(str, Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_NET_RATING = "INVALID_NET_RATING"
    READ_ERROR = "READ_ERROR"
    WRITE_ERROR = "WRITE_ERROR"
    CLEAR_ERROR = "CLEAR_ERROR"
    CLEANUP_ERROR = "CLEANUP_ERROR"


class PlayerCacheError(Exception):
    """Base class for cache failures, tagged with a CacheErrorCode."""

    def __init__(self, message: str, code: CacheErrorCode):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.args[0]}"


class PayloadValidationError(PlayerCacheError):
    """Payload is missing identity fields or carries a non-numeric net rating."""


class CacheOperationError(PlayerCacheError):
    """The underlying store (disk or database) failed."""


class UpstreamError(Exception):
    """A balldontlie request failed.

    Attributes:
        endpoint: Path that was requested
        status_code: HTTP status when the server answered, None for network errors
    """

    def __init__(self, message: str, endpoint: str, status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitedError(UpstreamError):
    """balldontlie answered 429 Too Many Requests."""


class PlayerLookupError(Exception):
    """Could not build a player payload; no partial data is returned."""

    def __init__(self, player_id: int, reason: str):
        super().__init__(f"Failed to load player {player_id}: {reason}")
        self.player_id = player_id
        self.reason = reason


class PlayerNotFoundError(PlayerLookupError):
    def __init__(self, player_id: int):
        super().__init__(player_id, "player not found")
