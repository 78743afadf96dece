"""
Catalog validator for program course data.

Checks data-quality rules a program's CSV rows must pass before students
plan against it. Designed to be importable for tests and runnable as a
standalone CLI.

Usage:
    python scripts/validate_catalog.py --program CSE
    python scripts/validate_catalog.py --program CSE --path path/to/data
    python scripts/validate_catalog.py --all
"""

import argparse
import os
import sys

# Import backend modules (add backend/ to path)
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from unlocks import build_reverse_prereq_map, compute_chain_depths  # noqa: E402


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for a single program validation run."""

    def __init__(self, program_code: str):
        self.program_code = program_code
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.info: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] Program '{self.program_code}'"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        for i in self.info:
            lines.append(f"  [INFO]  {i}")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


def _program_courses(program: dict) -> list[dict]:
    return [c for r in program.get("requirements", []) for c in r.get("courses", [])]


# ── Individual checks ─────────────────────────────────────────────────────────

def check_has_courses(program: dict, result: ValidationResult) -> None:
    """Program must define at least one course."""
    if not _program_courses(program):
        result.error("No courses defined for this program.")


def check_total_credits(program: dict, result: ValidationResult) -> None:
    total = program.get("total_credits_required", 0) or 0
    if total <= 0:
        result.error("total_credits_required must be positive.")
        return
    category_total = sum(r.get("credits_required", 0) or 0 for r in program.get("requirements", []))
    if category_total and category_total > total:
        result.warn(
            f"Category credit targets add up to {category_total}, "
            f"more than total_credits_required={total}."
        )


def check_undefined_prereqs(program: dict, result: ValidationResult) -> None:
    """Every prerequisite must be a course the program defines."""
    defined = {c["course_code"] for c in _program_courses(program)}
    for course in _program_courses(program):
        for kind in ("hard_prerequisites", "soft_prerequisites"):
            missing = [p for p in course.get(kind, []) if p not in defined]
            if missing:
                label = "hard" if kind == "hard_prerequisites" else "soft"
                result.error(
                    f"{course['course_code']} lists undefined {label} prerequisite(s): {missing}"
                )


def check_self_prereqs(program: dict, result: ValidationResult) -> None:
    for course in _program_courses(program):
        code = course["course_code"]
        if code in course.get("hard_prerequisites", []) or code in course.get("soft_prerequisites", []):
            result.error(f"{code} lists itself as a prerequisite.")


def find_prereq_cycles(courses: list[dict]) -> list[list[str]]:
    """
    Hard-prerequisite cycles, each reported once as the path that closes it,
    e.g. ["CSE 220", "CSE 221", "CSE 220"].
    """
    graph = {c["course_code"]: list(c.get("hard_prerequisites", [])) for c in courses}
    state: dict[str, int] = {}  # 1 = on path, 2 = done
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()

    # Iterative DFS: `path` is the current chain, `pending` the unvisited
    # prerequisites of each course on it.
    for root in sorted(graph):
        if state.get(root) is not None:
            continue
        state[root] = 1
        path = [root]
        pending = [iter(graph[root])]
        while path:
            prereq = next(pending[-1], None)
            if prereq is None:
                state[path.pop()] = 2
                pending.pop()
                continue
            if prereq == path[-1]:
                continue  # reported by check_self_prereqs
            if state.get(prereq) == 1:
                cycle = path[path.index(prereq):] + [prereq]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle)
            elif prereq in graph and state.get(prereq) is None:
                state[prereq] = 1
                path.append(prereq)
                pending.append(iter(graph[prereq]))
    return cycles


def check_prereq_cycles(program: dict, result: ValidationResult) -> None:
    for cycle in find_prereq_cycles(_program_courses(program)):
        result.error(f"Hard prerequisite cycle: {' -> '.join(cycle)}")


def check_category_credits(program: dict, result: ValidationResult) -> None:
    """A category's listed courses must be able to meet its credit target."""
    for requirement in program.get("requirements", []):
        needed = requirement.get("credits_required", 0) or 0
        available = sum(c.get("credits", 0) or 0 for c in requirement.get("courses", []))
        if needed and available < needed:
            result.warn(
                f"Category '{requirement['category']}' needs {needed} credits "
                f"but its courses only total {available}."
            )


def report_longest_chain(program: dict, result: ValidationResult) -> None:
    depths = compute_chain_depths(build_reverse_prereq_map(_program_courses(program)))
    if not depths:
        return
    deepest = max(sorted(depths), key=lambda c: depths[c])
    result.info.append(
        f"Longest hard-prerequisite chain starts at {deepest} ({depths[deepest]} course(s) downstream)."
    )


def validate_program(program: dict) -> ValidationResult:
    result = ValidationResult(program.get("program_code", "?"))
    check_has_courses(program, result)
    check_total_credits(program, result)
    check_undefined_prereqs(program, result)
    check_self_prereqs(program, result)
    check_prereq_cycles(program, result)
    check_category_credits(program, result)
    if result.passed:
        report_longest_chain(program, result)
    return result


# ── CLI entry point ───────────────────────────────────────────────────────────

def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate program catalog data before students plan against it.",
    )
    parser.add_argument("--program", type=str, help="Program code to validate.")
    parser.add_argument("--all", action="store_true", help="Validate every program in the data directory.")
    parser.add_argument(
        "--path", type=str,
        default=os.path.join(os.path.dirname(__file__), "..", "data"),
        help="Path to the catalog CSV directory.",
    )
    opts = parser.parse_args(args)

    if not opts.program and not opts.all:
        parser.error("Provide --program PROGRAM_CODE or --all.")

    from data_loader import load_data

    data = load_data(opts.path)
    programs = data["programs"]

    if opts.all:
        program_codes = sorted(programs)
        if not program_codes:
            print("[INFO] No programs found in data directory.")
            return 0
    else:
        program_codes = [opts.program.strip().upper()]

    all_passed = True
    for code in program_codes:
        program = programs.get(code)
        if program is None:
            print(f"[FAIL] Program '{code}'\n  [ERROR] Program not found in programs.csv.")
            all_passed = False
            continue
        result = validate_program(program)
        print(result.summary())
        if not result.passed:
            all_passed = False

    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
