from catalog import CourseCatalog
from prereq_parser import build_prereq_check_string
from requirements import COMPLETED_STATUS


def completed_course_codes(completed_courses: list[dict]) -> set[str]:
    """Codes of history rows whose status is 'completed'. Ongoing/planned rows do not count."""
    return {
        c["course_code"]
        for c in completed_courses or []
        if c.get("status", COMPLETED_STATUS) == COMPLETED_STATUS and c.get("course_code")
    }


def planned_before(plan: dict | None, semester_number: int) -> set[str]:
    """Codes planned in any semester whose ordinal is strictly below semester_number."""
    earlier: set[str] = set()
    if not plan:
        return earlier
    for semester in plan.get("planned_semesters", []):
        number = semester.get("semester_number") or 0
        if number < semester_number:
            earlier.update(c["course_code"] for c in semester.get("planned_courses", []))
    return earlier


def all_planned_codes(plan: dict | None) -> set[str]:
    if not plan:
        return set()
    return {
        c["course_code"]
        for semester in plan.get("planned_semesters", [])
        for c in semester.get("planned_courses", [])
    }


def check_prerequisites(
    course_code: str,
    catalog: CourseCatalog,
    completed_courses: list[dict],
    plan: dict | None,
    target_semester_number: int,
    satisfied: set[str] | None = None,
) -> dict:
    """
    One-hop prerequisite check for course_code taken in target_semester_number.

    A prerequisite is satisfied when it is completed or planned in an earlier
    semester of the active plan. The prerequisite's own prerequisites are not
    examined. Soft prerequisites never block: met depends on hard ones only.

    `satisfied` may be passed precomputed when checking many courses for the
    same semester.

    Returns:
      {"met": bool, "missing_hard": [...], "missing_soft": [...],
       "hard_prerequisites": [...], "soft_prerequisites": [...]}
    """
    if satisfied is None:
        satisfied = completed_course_codes(completed_courses) | planned_before(plan, target_semester_number)

    details = catalog.get_course_details(course_code)
    hard = details.get("hard_prerequisites", [])
    soft = details.get("soft_prerequisites", [])
    missing_hard = [p for p in hard if p not in satisfied]
    missing_soft = [p for p in soft if p not in satisfied]
    return {
        "met": not missing_hard,
        "missing_hard": missing_hard,
        "missing_soft": missing_soft,
        "hard_prerequisites": list(hard),
        "soft_prerequisites": list(soft),
    }


def check_can_take(
    course_code: str,
    catalog: CourseCatalog,
    completed_courses: list[dict],
    plan: dict | None,
    target_semester_number: int,
) -> dict:
    """
    Single-course eligibility summary for a target semester ordinal.

    Already-completed courses report can_take=False with an explanation; the
    planner still allows them as repeats.
    """
    result = check_prerequisites(
        course_code,
        catalog,
        completed_courses,
        plan,
        target_semester_number,
    )
    already_completed = course_code in completed_course_codes(completed_courses)

    if already_completed:
        why_not = f"{course_code} is already completed. Plan it as a repeat to retake it."
    elif result["missing_hard"]:
        why_not = (
            f"Missing required prerequisite(s) for {course_code}: "
            f"{', '.join(result['missing_hard'])}."
        )
    else:
        why_not = None

    return {
        "course_code": course_code,
        "semester_number": target_semester_number,
        "can_take": result["met"] and not already_completed,
        "already_completed": already_completed,
        "why_not": why_not,
        "prereq_check": build_prereq_check_string(result["missing_hard"], result["missing_soft"]),
        "in_catalog": catalog.has_course(course_code),
        **result,
    }
