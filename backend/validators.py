"""
Pure validation helpers for plan mutations.
No Flask or store imports: every function either returns normalized values
or raises PlanError with a machine-readable code.
"""

from errors import PlanError
from eligibility import completed_course_codes
from normalizer import normalize_code
from requirements import (
    MAX_CREDIT_LIMIT,
    MAX_SEMESTER_NUMBER,
    MIN_CREDIT_LIMIT,
    MIN_SEMESTER_NUMBER,
)
from semesters import normalize_season

MAX_NOTES_LENGTH = 200
MIN_PLAN_YEAR = 2000
MAX_PLAN_YEAR = 2100


def _coerce_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise PlanError("INVALID_INPUT", f"{field} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PlanError("INVALID_INPUT", f"{field} must be an integer.")


def validate_course_code(raw) -> str:
    code = normalize_code(str(raw or ""))
    if code is None:
        raise PlanError("INVALID_COURSE_CODE", f"'{raw}' is not a valid course code.")
    return code


def validate_notes(notes) -> str | None:
    if notes is None:
        return None
    text = str(notes).strip()
    if len(text) > MAX_NOTES_LENGTH:
        raise PlanError("INVALID_INPUT", f"notes must be at most {MAX_NOTES_LENGTH} characters.")
    return text or None


def validate_add_course(
    semester: dict,
    course_code: str,
    is_repeat: bool,
    completed_courses: list[dict],
) -> None:
    """
    A course may appear once per semester, and a repeat must retake a course
    the student has already completed.
    """
    if any(c["course_code"] == course_code for c in semester.get("planned_courses", [])):
        raise PlanError(
            "DUPLICATE_COURSE",
            f"{course_code} is already planned in {semester.get('semester_name')}.",
        )
    if is_repeat and course_code not in completed_course_codes(completed_courses):
        raise PlanError(
            "REPEAT_NOT_COMPLETED",
            f"Cannot mark {course_code} as repeat: course not yet completed.",
        )


def validate_remove_course(semester: dict, course_code: str) -> None:
    if not any(c["course_code"] == course_code for c in semester.get("planned_courses", [])):
        raise PlanError(
            "COURSE_NOT_PLANNED",
            f"{course_code} is not planned in {semester.get('semester_name')}.",
        )


def validate_semester_fields(
    season,
    year,
    credit_limit,
    semester_number,
    existing: list[dict],
) -> dict:
    """
    Normalize a new planned semester's fields against the plan's existing ones.

    semester_number is only range-checked here (None when omitted); the
    planner assigns ordinals by chronological rank.
    """
    season_norm = normalize_season(season)
    if season_norm is None:
        raise PlanError("INVALID_SEMESTER", f"season must be Spring, Summer or Fall, got {season!r}.")

    year_int = _coerce_int(year, "year")
    if not MIN_PLAN_YEAR <= year_int <= MAX_PLAN_YEAR:
        raise PlanError("INVALID_SEMESTER", f"year must be between {MIN_PLAN_YEAR} and {MAX_PLAN_YEAR}.")

    limit = _coerce_int(credit_limit, "credit_limit")
    if not MIN_CREDIT_LIMIT <= limit <= MAX_CREDIT_LIMIT:
        raise PlanError(
            "INVALID_SEMESTER",
            f"credit_limit must be between {MIN_CREDIT_LIMIT} and {MAX_CREDIT_LIMIT}.",
        )

    if any(s["season"] == season_norm and int(s["year"]) == year_int for s in existing):
        raise PlanError("DUPLICATE_SEMESTER", f"{season_norm} {year_int} is already in the plan.")

    number = None
    if semester_number is not None:
        number = _coerce_int(semester_number, "semester_number")
        if not MIN_SEMESTER_NUMBER <= number <= MAX_SEMESTER_NUMBER:
            raise PlanError(
                "INVALID_SEMESTER",
                f"semester_number must be between {MIN_SEMESTER_NUMBER} and {MAX_SEMESTER_NUMBER}.",
            )

    return {
        "season": season_norm,
        "year": year_int,
        "credit_limit": limit,
        "semester_number": number,
    }
