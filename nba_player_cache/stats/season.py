"""NBA season labels.

A season is labeled by the calendar year it starts in, and seasons start in
October: games played in March 2025 belong to season 2024.
"""

from datetime import date

SEASON_START_MONTH = 10


def current_season(today: date | None = None) -> int:
    """Return the season label in progress on ``today``.

    Args:
        today: Reference date (defaults to today's local date)

    Returns:
        Season start year, e.g. 2024 for any date from 2024-10-01 to 2025-09-30
    """
    today = today or date.today()
    if today.month < SEASON_START_MONTH:
        return today.year - 1
    return today.year


def last_n_seasons(n: int, today: date | None = None) -> list[int]:
    """Return ``n`` consecutive season labels ending at the current season.

    Examples:
        >>> last_n_seasons(3, date(2025, 3, 1))
        [2022, 2023, 2024]
    """
    if n <= 0:
        return []
    latest = current_season(today)
    return list(range(latest - n + 1, latest + 1))
