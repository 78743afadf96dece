import pytest

from errors import PlanError
from validators import (
    validate_add_course,
    validate_course_code,
    validate_notes,
    validate_remove_course,
    validate_semester_fields,
)


def _code(exc_info):
    return exc_info.value.error_code


class TestCourseInputs:
    def test_code_normalized(self):
        assert validate_course_code("mat-216") == "MAT 216"

    @pytest.mark.parametrize("raw", ["", None, "216", "calculus"])
    def test_bad_code(self, raw):
        with pytest.raises(PlanError) as exc:
            validate_course_code(raw)
        assert _code(exc) == "INVALID_COURSE_CODE"

    def test_notes(self):
        assert validate_notes(None) is None
        assert validate_notes("   ") is None
        with pytest.raises(PlanError):
            validate_notes("x" * 201)

    def test_duplicate_in_semester(self):
        semester = {"semester_name": "Fall 2025", "planned_courses": [{"course_code": "CSE 110"}]}
        with pytest.raises(PlanError) as exc:
            validate_add_course(semester, "CSE 110", False, [])
        assert _code(exc) == "DUPLICATE_COURSE"

    def test_repeat_needs_completed_status(self):
        semester = {"planned_courses": []}
        history = [{"course_code": "CSE 110", "status": "ongoing"}]
        with pytest.raises(PlanError) as exc:
            validate_add_course(semester, "CSE 110", True, history)
        assert _code(exc) == "REPEAT_NOT_COMPLETED"
        history[0]["status"] = "completed"
        validate_add_course(semester, "CSE 110", True, history)

    def test_remove_not_planned(self):
        with pytest.raises(PlanError) as exc:
            validate_remove_course({"planned_courses": []}, "CSE 110")
        assert _code(exc) == "COURSE_NOT_PLANNED"


class TestSemesterFields:
    def test_normalized(self):
        fields = validate_semester_fields("summer", "2026", "15", None, [])
        assert fields == {"season": "Summer", "year": 2026, "credit_limit": 15, "semester_number": None}

    def test_explicit_number_kept(self):
        existing = [{"season": "Fall", "year": 2025, "semester_number": 1}]
        assert validate_semester_fields("Spring", 2026, 12, "2", existing)["semester_number"] == 2

    def test_duplicate_season_and_year(self):
        existing = [{"season": "Fall", "year": 2025, "semester_number": 1}]
        with pytest.raises(PlanError) as exc:
            validate_semester_fields("fall", 2025, 12, None, existing)
        assert _code(exc) == "DUPLICATE_SEMESTER"

    @pytest.mark.parametrize("season, year, limit, number", [
        ("Winter", 2026, 12, None),
        ("Fall", 1999, 12, None),
        ("Fall", 2026, 2, None),
        ("Fall", 2026, 22, None),
        ("Fall", 2026, 12, 13),
        ("Fall", 2026, 12, 0),
    ])
    def test_out_of_range(self, season, year, limit, number):
        with pytest.raises(PlanError) as exc:
            validate_semester_fields(season, year, limit, number, [])
        assert _code(exc) == "INVALID_SEMESTER"

    def test_non_integer_year(self):
        with pytest.raises(PlanError) as exc:
            validate_semester_fields("Fall", "next", 12, None, [])
        assert _code(exc) == "INVALID_INPUT"
