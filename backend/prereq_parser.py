import re
import pandas as pd
from normalizer import normalize_code

# Prerequisite cells list codes separated by ';' or ','.
LIST_SPLIT = re.compile(r'\s*[;,]\s*')

# Regex to strip parenthetical annotation clauses, e.g. "(may be concurrent)"
ANNOTATION_RE = re.compile(r'\s*\([^)]*\)')

NONE_VALUES = {"none", "none listed", "n/a", "nan", ""}


def _strip_annotations(s: str) -> str:
    """Remove parenthetical annotation clauses, e.g. '(may be concurrent)'."""
    return ANNOTATION_RE.sub('', s).strip()


def parse_prereq_list(prereq_str) -> dict:
    """
    Parses a hard_prereqs / soft_prereqs cell into a flat list of course codes.

    Supported grammar:
      none / none listed / blank  → {"courses": [], "invalid": []}
      CODE                        → {"courses": ["CSE 110"], "invalid": []}
      CODE; CODE, CODE ...        → {"courses": [...], "invalid": []}

    Every listed course is required (there is no OR grammar). Annotations in
    parentheses are stripped first, so "CSE 110 (min grade C)" → ["CSE 110"].
    Tokens that are not course codes are returned under "invalid" so the
    loader can flag them; duplicates are dropped, order is preserved.
    """
    if prereq_str is None or (isinstance(prereq_str, float) and pd.isna(prereq_str)):
        return {"courses": [], "invalid": []}
    if isinstance(prereq_str, (list, tuple)):
        prereq_str = ";".join(str(p) for p in prereq_str)

    s = _strip_annotations(str(prereq_str).strip())
    if s.lower() in NONE_VALUES:
        return {"courses": [], "invalid": []}

    courses: list[str] = []
    invalid: list[str] = []
    for token in LIST_SPLIT.split(s):
        if not token:
            continue
        code = normalize_code(token)
        if code is None:
            invalid.append(token)
        elif code not in courses:
            courses.append(code)
    return {"courses": courses, "invalid": invalid}


def build_prereq_check_string(missing_hard: list[str], missing_soft: list[str]) -> str:
    """Human-readable summary of a prerequisite check result."""
    if not missing_hard and not missing_soft:
        return "All prerequisites satisfied"
    parts = []
    if missing_hard:
        parts.append(f"missing required: {', '.join(missing_hard)}")
    if missing_soft:
        parts.append(f"missing recommended: {', '.join(missing_soft)}")
    return "; ".join(parts)
