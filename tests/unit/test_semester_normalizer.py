"""
Unit Tests for Semester Normalizer

Tests for:
- Season and year extraction from free-text labels
- Year-range resolution per season
- Sort-key convention (academic-year alignment)
- Unknown labels and forecast buckets
"""

import pytest

from cgpa_engine.semester_normalizer import (
    detect_season,
    extract_year,
    forecast_name,
    forecast_sort_key,
    normalize,
    parse_forecast_sequence,
    sort_semester_names,
)


class TestNormalize:
    """Tests for normalize()"""

    def test_winter_range_takes_first_year(self):
        result = normalize("Winter 2020-2021")
        assert "Winter" in result.name
        assert result.name == "Winter 2020"

    def test_spring_range_takes_second_year(self):
        assert normalize("Spring 2020-2021").name == "Spring 2021"

    def test_short_range_is_expanded(self):
        """'2020-21' style ranges expand the second year with 20"""
        assert normalize("spring 2020-21").name == "Spring 2021"
        assert normalize("WINTER SEMESTER 2021-22").name == "Winter 2021"

    def test_summer_range_takes_second_year(self):
        assert normalize("Summer 2020-2021").name == "Summer 2021"

    def test_fall_range_takes_first_year(self):
        assert normalize("Fall 2019-2020").name == "Fall 2019"

    def test_single_year(self):
        assert normalize("fall 2019").name == "Fall 2019"

    def test_compact_shorthand(self):
        """Secondary-feed shorthand like 'Spring21'"""
        assert normalize("Spring21").name == "Spring 2021"
        assert normalize("winter-19").name == "Winter 2019"

    def test_season_without_year(self):
        result = normalize("spring")
        assert result.name == "Spring"
        assert result.sort_key == "9000-2"

    def test_unknown_label_is_capitalized_passthrough(self):
        """Unrecognized labels never fail"""
        result = normalize("special term")
        assert result.name == "Special term"
        assert result.sort_key == "9000-9-special term"

    def test_unknown_label_with_year(self):
        result = normalize("semester 2019")
        assert result.name == "Semester 2019"
        assert result.sort_key.startswith("2019-9")


class TestSortKeys:
    """Sort keys pin the academic-year convention"""

    def test_winter_uses_calendar_year(self):
        assert normalize("Winter 2020-2021").sort_key == "2020-1"

    def test_spring_and_summer_use_academic_year(self):
        """Spring/Summer keys subtract one from the calendar year"""
        assert normalize("Spring 2020-2021").sort_key == "2020-2"
        assert normalize("Summer 2020-2021").sort_key == "2020-3"
        assert normalize("Spring 2021").sort_key == "2020-2"

    def test_fall_key(self):
        assert normalize("Fall 2019").sort_key == "2019-4"

    def test_fall_sorts_after_spring_and_summer_of_same_calendar_year(self):
        """Fall keeps its calendar year, so Fall 2020 follows Spring/Summer 2021"""
        names = ["Winter 2021", "Fall 2020", "Summer 2021", "Spring 2021", "Winter 2020"]
        assert sort_semester_names(names) == [
            "Winter 2020", "Spring 2021", "Summer 2021", "Fall 2020", "Winter 2021",
        ]

    def test_chronological_order(self):
        labels = ["Winter 2021-2022", "Summer 2020-2021", "Spring 2020-2021", "Winter 2020-2021"]
        names = [normalize(label).name for label in labels]
        assert sort_semester_names(names) == [
            "Winter 2020", "Spring 2021", "Summer 2021", "Winter 2021",
        ]

    def test_forecasts_sort_after_everything(self):
        names = ["Forecast 2", "special term", "Forecast 1", "Winter 2030"]
        assert sort_semester_names(names) == [
            "Winter 2030", "special term", "Forecast 1", "Forecast 2",
        ]

    def test_unknown_labels_ordered_by_raw_text(self):
        assert sort_semester_names(["zeta term", "alpha term"]) == ["alpha term", "zeta term"]


class TestForecasts:
    """Forecast bucket naming"""

    def test_forecast_name_and_key(self):
        assert forecast_name(3) == "Forecast 3"
        assert forecast_sort_key(3) == "9999-03"

    def test_normalize_forecast(self):
        result = normalize("forecast 12")
        assert result.name == "Forecast 12"
        assert result.sort_key == "9999-12"

    @pytest.mark.parametrize("label,expected", [
        ("Forecast 2", 2),
        ("Forecast", 1),
        ("Winter 2020", None),
        ("", None),
    ])
    def test_parse_forecast_sequence(self, label, expected):
        assert parse_forecast_sequence(label) == expected


class TestHelpers:

    def test_detect_season(self):
        assert detect_season("WINTER semester") == "winter"
        assert detect_season("Autumn") is None

    def test_extract_year_prefers_range(self):
        assert extract_year("Spring 2019 (2020-2021)", "spring") == 2021
        assert extract_year("no year here") is None
