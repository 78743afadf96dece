import math
from datetime import date

from bottlenecks import BottleneckAnalyzer
from catalog import CourseCatalog
from eligibility import completed_course_codes
from requirements import (
    CALCULATION_METHOD,
    COMPLETED_STATUS,
    FALLBACK_AVERAGE_LOAD,
    MIN_AVERAGE_LOAD,
    TIMELINE_ASSUMPTIONS,
)
from semesters import current_season, latest_semester, semester_label, step_semesters

ANCHOR_LAST_PLANNED = "last_planned_semester"
ANCHOR_CURRENT_DATE = "current_calendar_season"


def total_credits_completed(progress: dict) -> int:
    return sum(
        int(c.get("credits", 0) or 0)
        for c in progress.get("completed_courses", [])
        if c.get("status", COMPLETED_STATUS) == COMPLETED_STATUS
    )


def sentinel_timeline(calculation_method: str, error: str | None = None) -> dict:
    """Renderable placeholder used when a projection cannot be made."""
    timeline = {
        "estimated_graduation_semester": "Unknown",
        "estimated_graduation_year": None,
        "total_remaining_semesters": 0,
        "bottleneck_courses": [],
        "calculation_method": calculation_method,
        "assumptions": ["Could not calculate graduation timeline"],
        "metadata": {},
    }
    if error:
        timeline["error"] = error[:100]
    return timeline


def planned_credit_totals(plan: dict, catalog: CourseCatalog) -> tuple[int, int]:
    """
    (non-repeat credits, all credits) over every planned course.

    Repeats occupy course load but never reduce outstanding degree credits.
    """
    non_repeat = 0
    load = 0
    for semester in plan.get("planned_semesters", []):
        for course in semester.get("planned_courses", []):
            credits = catalog.credits_for(course["course_code"])
            load += credits
            if not course.get("is_repeat"):
                non_repeat += credits
    return non_repeat, load


def estimate_timeline(
    plan: dict,
    catalog: CourseCatalog,
    program_total_credits: int,
    credits_completed: int,
    completed_courses: list[dict],
    analyzer: BottleneckAnalyzer,
    today: date | None = None,
) -> dict:
    """
    Project the graduation semester from credits and the plan's own pace.

    Graduation lands in the last planned semester when the plan already covers
    every outstanding credit; otherwise the missing semesters are stepped
    forward from the last planned semester, or from the current calendar
    season when nothing is planned.

    Returns:
        {
          "estimated_graduation_semester": "Summer",
          "estimated_graduation_year": 2026,
          "total_remaining_semesters": 3,
          "bottleneck_courses": ["CSE 221", ...],
          "calculation_method": "optimistic",
          "assumptions": [...],
          "metadata": {...every intermediate quantity...}
        }
    """
    semesters = plan.get("planned_semesters", [])
    non_repeat_credits, load_credits = planned_credit_totals(plan, catalog)
    credits_still_needed = max(0, program_total_credits - credits_completed - non_repeat_credits)

    planned_count = len(semesters)
    average_load = float(FALLBACK_AVERAGE_LOAD)
    if planned_count > 0:
        average_load = load_credits / planned_count
        if average_load < MIN_AVERAGE_LOAD:
            average_load = float(FALLBACK_AVERAGE_LOAD)

    additional_needed = math.ceil(credits_still_needed / average_load)
    total_remaining = planned_count + additional_needed

    last_planned = latest_semester(semesters)
    if last_planned is not None and additional_needed == 0:
        season, year = last_planned["season"], int(last_planned["year"])
        anchor = ANCHOR_LAST_PLANNED
    elif last_planned is not None:
        season, year = step_semesters(last_planned["season"], int(last_planned["year"]), additional_needed)
        anchor = ANCHOR_LAST_PLANNED
    else:
        now_season, now_year = current_season(today)
        season, year = step_semesters(now_season, now_year, total_remaining)
        anchor = ANCHOR_CURRENT_DATE

    if additional_needed == 0 and last_planned is not None:
        occurs_in = "Last planned semester"
    elif last_planned is not None:
        occurs_in = f"{additional_needed} semester(s) after last planned"
    else:
        occurs_in = f"{total_remaining} semester(s) after the current season"

    progress_percentage = 0.0
    if program_total_credits > 0:
        progress_percentage = round(min(100.0, credits_completed / program_total_credits * 100), 1)

    return {
        "estimated_graduation_semester": season,
        "estimated_graduation_year": year,
        "total_remaining_semesters": total_remaining,
        "bottleneck_courses": analyzer.rank(catalog, completed_courses, plan),
        "calculation_method": CALCULATION_METHOD,
        "assumptions": list(TIMELINE_ASSUMPTIONS),
        "metadata": {
            "program_total_credits": program_total_credits,
            "credits_completed": credits_completed,
            "credits_planned_non_repeat": non_repeat_credits,
            "credits_planned_total": load_credits,
            "credits_still_needed": credits_still_needed,
            "planned_semesters": planned_count,
            "additional_semesters_needed": additional_needed,
            "average_planned_load": round(average_load, 1),
            "graduation_anchor": anchor,
            "last_planned_semester": (
                semester_label(last_planned["season"], last_planned["year"]) if last_planned else "None"
            ),
            "graduation_occurs_in_semester": occurs_in,
            "progress_percentage": progress_percentage,
            "completed_course_count": len(completed_course_codes(completed_courses)),
        },
    }


def project_timeline(
    plan: dict,
    program: dict | None,
    progress: dict | None,
    catalog: CourseCatalog,
    analyzer: BottleneckAnalyzer,
    today: date | None = None,
) -> dict:
    """Graduation timeline for a plan. Never raises: failures yield a sentinel timeline."""
    if not program or not progress:
        missing = "program" if not program else "student progress"
        print(f"[WARN] Timeline for plan {plan.get('plan_id')} skipped: no {missing} found.")
        return sentinel_timeline("unknown", error=f"missing_{missing.replace(' ', '_')}")
    try:
        completed_courses = progress.get("completed_courses", [])
        return estimate_timeline(
            plan,
            catalog,
            int(program.get("total_credits_required", 0) or 0),
            total_credits_completed(progress),
            completed_courses,
            analyzer,
            today=today,
        )
    except Exception as exc:
        print(f"[WARN] Timeline calculation failed for plan {plan.get('plan_id')}: {exc}")
        return sentinel_timeline("error", error=str(exc))
