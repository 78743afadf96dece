from datetime import date

import pytest

from semesters import (
    chronological_key,
    current_season,
    latest_semester,
    normalize_season,
    parse_semester_label,
    renumber_chronologically,
    season_for_month,
    step_semesters,
)


class TestStepSemesters:
    @pytest.mark.parametrize("start, steps, expected", [
        (("Fall", 2025), 0, ("Fall", 2025)),
        (("Fall", 2025), 1, ("Spring", 2026)),
        (("Fall", 2025), 2, ("Summer", 2026)),
        (("Spring", 2026), 3, ("Spring", 2027)),
        (("Summer", 2026), 4, ("Fall", 2027)),
    ])
    def test_cyclic_steps(self, start, steps, expected):
        assert step_semesters(*start, steps) == expected


class TestCurrentSeason:
    @pytest.mark.parametrize("month, season", [
        (1, "Spring"), (4, "Spring"), (5, "Summer"), (8, "Summer"), (9, "Fall"), (12, "Fall"),
    ])
    def test_month_mapping(self, month, season):
        assert season_for_month(month) == season

    def test_current_season_from_date(self):
        assert current_season(date(2026, 10, 19)) == ("Fall", 2026)


class TestLabels:
    def test_normalize_season(self):
        assert normalize_season(" fall ") == "Fall"
        assert normalize_season("Winter") is None
        assert normalize_season(None) is None

    def test_parse_label(self):
        assert parse_semester_label("summer 2026") == ("Summer", 2026)
        assert parse_semester_label("Summer") is None


class TestOrdering:
    def test_chronological_key(self):
        semesters = [
            {"season": "Fall", "year": 2025},
            {"season": "Spring", "year": 2026},
            {"season": "Summer", "year": 2025},
        ]
        ordered = sorted(semesters, key=chronological_key)
        assert [(s["season"], s["year"]) for s in ordered] == [("Summer", 2025), ("Fall", 2025), ("Spring", 2026)]

    def test_latest_semester(self):
        semesters = [{"season": "Spring", "year": 2027}, {"season": "Fall", "year": 2026}]
        assert latest_semester(semesters) == {"season": "Spring", "year": 2027}
        assert latest_semester([]) is None

    def test_renumber_chronologically(self):
        semesters = [
            {"season": "Spring", "year": 2026, "semester_number": 1},
            {"season": "Fall", "year": 2025, "semester_number": 7},
        ]
        renumber_chronologically(semesters)
        assert [(s["season"], s["semester_number"]) for s in semesters] == [("Fall", 1), ("Spring", 2)]
