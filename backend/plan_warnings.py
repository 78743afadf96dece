"""
Advisory warnings for a semester plan.

Warnings never block a mutation; they are recomputed on every read and never
stored on the plan.
"""

from catalog import CourseCatalog
from eligibility import check_prerequisites, completed_course_codes, planned_before
from requirements import HEAVY_OVERLOAD_MARGIN, DEFAULT_CREDIT_LIMIT
from semesters import chronological_key

HEAVY_OVERLOAD = "heavy_overload"
LIGHT_OVERLOAD = "light_overload"
MISSING_HARD_PREREQ = "missing_hard_prereq"
MISSING_SOFT_PREREQ = "missing_soft_prereq"
REPEAT_COURSE = "repeat_course"


def ordered_semesters(plan: dict) -> list[dict]:
    return sorted(plan.get("planned_semesters", []), key=chronological_key)


def semester_credits(semester: dict, catalog: CourseCatalog) -> int:
    return sum(
        catalog.credits_for(c["course_code"])
        for c in semester.get("planned_courses", [])
    )


def _overload_warning(semester: dict, credits: int) -> dict | None:
    limit = semester.get("credit_limit", DEFAULT_CREDIT_LIMIT)
    name = semester.get("semester_name", "")
    if credits > limit + HEAVY_OVERLOAD_MARGIN:
        kind, label = HEAVY_OVERLOAD, "Heavy overload"
    elif credits > limit:
        kind, label = LIGHT_OVERLOAD, "Slight overload"
    else:
        return None
    return {
        "type": kind,
        "semester_id": semester.get("semester_id"),
        "semester_name": name,
        "credits": credits,
        "credit_limit": limit,
        "message": f"{label} in {name}: {credits} credits (limit: {limit})",
    }


def compute_warnings(
    plan: dict,
    catalog: CourseCatalog,
    completed_courses: list[dict],
    semester_totals: dict | None = None,
) -> list[dict]:
    """
    Walk the plan's semesters in chronological order and collect warnings.

    Within a semester the overload warning (if any) comes first, then for each
    planned course in list order: missing hard prerequisites, missing soft
    prerequisites, repeat.

    When `semester_totals` is given it is filled with semester_id → credits.
    """
    warnings: list[dict] = []
    completed = completed_course_codes(completed_courses)

    for semester in ordered_semesters(plan):
        credits = semester_credits(semester, catalog)
        if semester_totals is not None:
            semester_totals[semester.get("semester_id")] = credits

        overload = _overload_warning(semester, credits)
        if overload:
            warnings.append(overload)

        number = semester.get("semester_number") or 0
        satisfied = completed | planned_before(plan, number)
        for course in semester.get("planned_courses", []):
            code = course["course_code"]
            status = check_prerequisites(
                code,
                catalog,
                completed_courses,
                plan,
                number,
                satisfied=satisfied,
            )
            base = {
                "semester_id": semester.get("semester_id"),
                "semester_name": semester.get("semester_name", ""),
                "course_code": code,
            }
            if status["missing_hard"]:
                warnings.append({
                    **base,
                    "type": MISSING_HARD_PREREQ,
                    "missing": status["missing_hard"],
                    "message": f"{code} missing hard prerequisites: {', '.join(status['missing_hard'])}",
                })
            if status["missing_soft"]:
                warnings.append({
                    **base,
                    "type": MISSING_SOFT_PREREQ,
                    "missing": status["missing_soft"],
                    "message": f"{code} missing recommended prerequisites: {', '.join(status['missing_soft'])}",
                })
            if course.get("is_repeat"):
                warnings.append({
                    **base,
                    "type": REPEAT_COURSE,
                    "message": f"{code} is planned as a repeat course",
                })

    return warnings
