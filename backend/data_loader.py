import os
import pandas as pd
from normalizer import normalize_code
from prereq_parser import parse_prereq_list
from requirements import (
    CATEGORIES,
    COURSE_STATUSES,
    COMPLETED_STATUS,
    DEFAULT_COURSE_CREDITS,
    DEFAULT_CATEGORY,
)


_BOOL_TRUTHY = {"true", "1", "yes", "y"}

PROGRAMS_FILE = "programs.csv"
PROGRAM_COURSES_FILE = "program_courses.csv"
STUDENTS_FILE = "students.csv"
STUDENT_COURSES_FILE = "student_courses.csv"


def _safe_bool_col(df: pd.DataFrame, col: str, default: bool = False) -> pd.DataFrame:
    """Normalize a boolean column to Python bool regardless of CSV format.

    Handles: Python bool, int/float (1/0), and string variants
    (TRUE/FALSE, true/false, 1/0, yes/no, y/n). NaN → default.
    """
    def _coerce(x):
        if pd.isna(x):
            return default
        if isinstance(x, bool):
            return x
        if isinstance(x, (int, float)):
            return bool(x)
        return str(x).strip().lower() in _BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce)
    else:
        df[col] = default
    return df


def _safe_int(val, default=None):
    try:
        if pd.isna(val):
            return default
        return int(float(val))
    except (TypeError, ValueError):
        return default


def _clean_str(val) -> str:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return ""
    return str(val).strip()


def _read_csv(data_path: str, filename: str, required: bool = True) -> pd.DataFrame:
    path = os.path.join(data_path, filename)
    if not os.path.isfile(path):
        if required:
            raise FileNotFoundError(path)
        return pd.DataFrame()
    return pd.read_csv(path, dtype=str, keep_default_na=True)


def _normalize_category(raw, fallback: str = DEFAULT_CATEGORY) -> str:
    category = _clean_str(raw).lower().replace("_", "-").replace(" ", "-")
    return category if category in CATEGORIES else fallback


def build_programs(programs_df: pd.DataFrame, courses_df: pd.DataFrame) -> dict[str, dict]:
    """
    Assemble program records from the programs and program_courses tables.

    Returns: {"CSE": {"program_code": "CSE", ..., "requirements": [
                 {"category": "program-core", "category_name": "...",
                  "credits_required": 42, "courses": [course_def, ...]}, ...]}}
    """
    programs_df = _safe_bool_col(programs_df.copy(), "active", default=True)
    programs: dict[str, dict] = {}
    for _, row in programs_df.iterrows():
        code = _clean_str(row.get("program_code")).upper()
        if not code:
            continue
        programs[code] = {
            "program_code": code,
            "program_name": _clean_str(row.get("program_name")) or code,
            "department": _clean_str(row.get("department")),
            "total_credits_required": _safe_int(row.get("total_credits_required"), 0),
            "active": bool(row.get("active")),
            "requirements": [],
        }

    if courses_df is None or len(courses_df) == 0:
        return programs

    courses_df = _safe_bool_col(courses_df.copy(), "is_required", default=True)
    for _, row in courses_df.iterrows():
        program_code = _clean_str(row.get("program_code")).upper()
        program = programs.get(program_code)
        if program is None:
            print(f"[WARN] program_courses row references unknown program '{program_code}'; skipped.")
            continue

        raw_code = _clean_str(row.get("course_code"))
        course_code = normalize_code(raw_code)
        if course_code is None:
            print(f"[WARN] Unparseable course code '{raw_code}' in program {program_code}; skipped.")
            continue

        category = _normalize_category(row.get("category"))
        requirement = next(
            (r for r in program["requirements"] if r["category"] == category),
            None,
        )
        if requirement is None:
            requirement = {
                "category": category,
                "category_name": _clean_str(row.get("category_name")) or category,
                "credits_required": _safe_int(row.get("credits_required"), 0),
                "courses": [],
            }
            program["requirements"].append(requirement)

        hard = parse_prereq_list(row.get("hard_prereqs"))
        soft = parse_prereq_list(row.get("soft_prereqs"))
        for bad in hard["invalid"] + soft["invalid"]:
            print(f"[WARN] {program_code} {course_code}: unparseable prerequisite token '{bad}' ignored.")

        credits = _safe_int(row.get("credits"), DEFAULT_COURSE_CREDITS)
        requirement["courses"].append({
            "course_code": course_code,
            "course_name": _clean_str(row.get("course_name")) or f"{course_code} Course",
            "credits": max(0, credits),
            "category": category,
            "is_required": bool(row.get("is_required")),
            "hard_prerequisites": hard["courses"],
            "soft_prerequisites": soft["courses"],
        })

    return programs


def build_progress(students_df: pd.DataFrame, student_courses_df: pd.DataFrame) -> dict[str, dict]:
    """Assemble per-student progress records (program + course history)."""
    progress: dict[str, dict] = {}
    if students_df is not None and len(students_df) > 0:
        for _, row in students_df.iterrows():
            student_id = _clean_str(row.get("student_id"))
            if not student_id:
                continue
            progress[student_id] = {
                "student_id": student_id,
                "program_code": _clean_str(row.get("program_code")).upper() or None,
                "admission_year": _safe_int(row.get("admission_year")),
                "completed_courses": [],
            }

    if student_courses_df is None or len(student_courses_df) == 0:
        return progress

    for _, row in student_courses_df.iterrows():
        student_id = _clean_str(row.get("student_id"))
        record = progress.get(student_id)
        if record is None:
            print(f"[WARN] student_courses row references unknown student '{student_id}'; skipped.")
            continue
        course_code = normalize_code(_clean_str(row.get("course_code")))
        if course_code is None:
            continue
        status = _clean_str(row.get("status")).lower() or COMPLETED_STATUS
        if status not in COURSE_STATUSES:
            status = COMPLETED_STATUS
        record["completed_courses"].append({
            "course_code": course_code,
            "course_name": _clean_str(row.get("course_name")) or f"{course_code} Course",
            "credits": max(0, _safe_int(row.get("credits"), DEFAULT_COURSE_CREDITS)),
            "grade": _clean_str(row.get("grade")).upper() or None,
            "status": status,
        })
    return progress


def _check_integrity(programs: dict[str, dict]) -> None:
    for program_code, program in programs.items():
        defined: set[str] = set()
        duplicates: set[str] = set()
        for requirement in program["requirements"]:
            for course in requirement["courses"]:
                if course["course_code"] in defined:
                    duplicates.add(course["course_code"])
                defined.add(course["course_code"])
        if duplicates:
            print(f"[WARN] {program_code}: {len(duplicates)} course(s) listed more than once: {sorted(duplicates)}")

        undefined: set[str] = set()
        for requirement in program["requirements"]:
            for course in requirement["courses"]:
                for prereq in course["hard_prerequisites"] + course["soft_prerequisites"]:
                    if prereq not in defined:
                        undefined.add(prereq)
        if undefined:
            print(f"[WARN] {program_code}: {len(undefined)} prerequisite(s) not defined in the program: {sorted(undefined)}")


def load_data(data_path: str) -> dict:
    """Load and parse the catalog CSV directory. Raises on missing program files."""
    if not os.path.isdir(data_path):
        raise FileNotFoundError(data_path)

    programs_df = _read_csv(data_path, PROGRAMS_FILE)
    program_courses_df = _read_csv(data_path, PROGRAM_COURSES_FILE)
    students_df = _read_csv(data_path, STUDENTS_FILE, required=False)
    student_courses_df = _read_csv(data_path, STUDENT_COURSES_FILE, required=False)

    programs = build_programs(programs_df, program_courses_df)
    progress = build_progress(students_df, student_courses_df)

    _check_integrity(programs)
    course_count = sum(
        len(r["courses"]) for p in programs.values() for r in p["requirements"]
    )
    print(f"[INFO] {len(programs)} program(s), {course_count} course row(s), {len(progress)} student(s)")

    return {
        "programs": programs,
        "progress": progress,
    }
