import sys
import os

import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))


def _course(code, category, credits=3, hard=(), soft=(), required=True):
    return {
        "course_code": code,
        "course_name": f"{code} Course",
        "credits": credits,
        "category": category,
        "is_required": required,
        "hard_prerequisites": list(hard),
        "soft_prerequisites": list(soft),
    }


@pytest.fixture
def program():
    """Small synthetic program: a CSE 110 -> CSE 400 chain plus math and gen-ed."""
    return {
        "program_code": "CSE",
        "program_name": "Computer Science and Engineering",
        "department": "CSE",
        "total_credits_required": 136,
        "active": True,
        "requirements": [
            {
                "category": "gen-ed",
                "category_name": "General Education",
                "credits_required": 3,
                "courses": [_course("ENG 101", "gen-ed")],
            },
            {
                "category": "school-core",
                "category_name": "School Core",
                "credits_required": 9,
                "courses": [
                    _course("MAT 110", "school-core"),
                    _course("MAT 120", "school-core", hard=["MAT 110"]),
                    _course("MAT 215", "school-core", hard=["MAT 120"]),
                ],
            },
            {
                "category": "program-core",
                "category_name": "Program Core",
                "credits_required": 15,
                "courses": [
                    _course("CSE 110", "program-core"),
                    _course("CSE 111", "program-core", hard=["CSE 110"]),
                    _course("CSE 220", "program-core", hard=["CSE 111"], soft=["MAT 110"]),
                    _course("CSE 221", "program-core", hard=["CSE 220"]),
                    _course("CSE 230", "program-core", soft=["MAT 110"]),
                ],
            },
            {
                "category": "project-thesis",
                "category_name": "Final Year Project",
                "credits_required": 4,
                "courses": [_course("CSE 400", "project-thesis", credits=4, hard=["CSE 221"])],
            },
        ],
    }


@pytest.fixture
def completed():
    """CSE 110 and MAT 110 completed; CSE 111 still ongoing."""
    return [
        {"course_code": "CSE 110", "credits": 3, "grade": "A", "status": "completed"},
        {"course_code": "MAT 110", "credits": 3, "grade": "B+", "status": "completed"},
        {"course_code": "CSE 111", "credits": 3, "grade": None, "status": "ongoing"},
    ]


@pytest.fixture
def make_semester():
    def _make(season, year, number, courses=(), credit_limit=12, semester_id=None):
        planned = []
        for c in courses:
            if isinstance(c, str):
                c = {"course_code": c}
            planned.append({"is_repeat": False, "notes": None, **c})
        return {
            "semester_id": semester_id or f"{season.lower()}-{year}",
            "semester_name": f"{season} {year}",
            "season": season,
            "year": year,
            "semester_number": number,
            "credit_limit": credit_limit,
            "planned_courses": planned,
        }
    return _make


@pytest.fixture
def make_plan():
    def _make(*semesters, student_id="S1", program_code="CSE"):
        return {
            "plan_id": "plan-1",
            "student_id": student_id,
            "program_code": program_code,
            "plan_name": "My Graduation Plan",
            "version": 1,
            "revision": 1,
            "is_active": True,
            "previous_version_id": None,
            "planned_semesters": list(semesters),
        }
    return _make
