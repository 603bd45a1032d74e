"""Tests for season labels."""

from datetime import date

from freezegun import freeze_time

from nba_player_cache.stats import current_season, last_n_seasons


class TestCurrentSeason:
    def test_october_starts_new_season(self):
        assert current_season(date(2024, 10, 1)) == 2024

    def test_september_belongs_to_previous_season(self):
        assert current_season(date(2025, 9, 30)) == 2024

    def test_spring_games_belong_to_previous_year(self):
        assert current_season(date(2025, 3, 1)) == 2024

    def test_december(self):
        assert current_season(date(2024, 12, 25)) == 2024

    @freeze_time("2026-01-15")
    def test_defaults_to_today(self):
        assert current_season() == 2025


class TestLastNSeasons:
    def test_oldest_first_ending_at_current(self):
        assert last_n_seasons(3, date(2025, 3, 1)) == [2022, 2023, 2024]

    def test_six_seasons(self):
        seasons = last_n_seasons(6, date(2024, 11, 1))
        assert seasons == [2019, 2020, 2021, 2022, 2023, 2024]

    def test_zero_or_negative(self):
        assert last_n_seasons(0) == []
        assert last_n_seasons(-2) == []
