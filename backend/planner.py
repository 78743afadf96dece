"""
Semester plan orchestration.

Reads always recompute warnings, per-semester credit totals and the
graduation timeline from the stored plan; writes go through the PlanStore's
compare-and-swap so concurrent edits of one plan surface as VersionConflict.
"""

import copy
from datetime import date

from bottlenecks import BottleneckAnalyzer, format_bottleneck_warning
from catalog import CatalogRegistry, CourseCatalog
from eligibility import check_can_take
from errors import NotFound, PlanError, VersionConflict
from plan_warnings import compute_warnings
from requirements import DEFAULT_CREDIT_LIMIT, MAX_SEMESTER_NUMBER
from semesters import chronological_key, parse_semester_label, renumber_chronologically, semester_label
from stores import PlanStore, ProgramCatalog, StudentProgressStore, new_id, utc_now
from timeline import project_timeline
from validators import (
    validate_add_course,
    validate_course_code,
    validate_notes,
    validate_remove_course,
    validate_semester_fields,
)

VERSION_UPDATE_FIELDS = ("plan_name", "planned_semesters")
DEFAULT_PLAN_NAME = "My Graduation Plan"


def _season_and_year(season, year, label):
    """Fall back to a 'Fall 2026' style label when season and year are both omitted."""
    if season in (None, "") and year in (None, "") and label:
        parsed = parse_semester_label(str(label))
        if parsed is not None:
            return parsed
    return season, year


def _renumber_semesters(semesters: list[dict], requested: dict[str, int]) -> None:
    """
    Order semesters by date and number them 1..n in that order, so a lower
    semester_number always means an earlier semester. `requested` maps
    semester_id to an ordinal the caller supplied; it must match the
    semester's chronological rank.
    """
    if len(semesters) > MAX_SEMESTER_NUMBER:
        raise PlanError("INVALID_SEMESTER", f"A plan holds at most {MAX_SEMESTER_NUMBER} semesters.")
    renumber_chronologically(semesters)
    for semester in semesters:
        wanted = requested.get(semester["semester_id"])
        if wanted is not None and wanted != semester["semester_number"]:
            raise PlanError(
                "INVALID_SEMESTER",
                f"semester_number {wanted} does not match the chronological position of "
                f"{semester['semester_name']} ({semester['semester_number']}).",
            )


class Planner:
    def __init__(
        self,
        program_catalog: ProgramCatalog,
        progress_store: StudentProgressStore,
        plan_store: PlanStore,
        analyzer: BottleneckAnalyzer | None = None,
        catalogs: CatalogRegistry | None = None,
    ):
        self.program_catalog = program_catalog
        self.progress_store = progress_store
        self.plan_store = plan_store
        self.analyzer = analyzer or BottleneckAnalyzer()
        self.catalogs = catalogs or CatalogRegistry()

    # ── Collaborator lookups ───────────────────────────────────────────────────

    def catalog_for(self, program_code: str | None) -> CourseCatalog:
        program = self.program_catalog.find_program(program_code)
        return self.catalogs.get(program_code or "", program, self.program_catalog.catalog_version)

    def _completed_courses(self, student_id: str) -> list[dict]:
        return self.progress_store.get_completed_courses(student_id)

    def _active_plan(self, student_id: str, expected_revision: int | None = None) -> dict:
        plan = self.plan_store.get_active_plan(student_id)
        if plan is None:
            raise NotFound("PLAN_NOT_FOUND", f"No active plan for student {student_id}.")
        if expected_revision is not None and plan["revision"] != expected_revision:
            raise VersionConflict(plan["plan_id"], expected_revision, plan["revision"])
        return plan

    @staticmethod
    def _find_semester(plan: dict, semester_id: str) -> dict:
        for semester in plan.get("planned_semesters", []):
            if semester.get("semester_id") == semester_id:
                return semester
        raise NotFound("SEMESTER_NOT_FOUND", f"Semester {semester_id} not found in plan.")

    # ── Reads ──────────────────────────────────────────────────────────────────

    def get_or_create_plan(self, student_id: str) -> dict:
        """Active plan for the student, created empty on first access."""
        student_id = str(student_id)
        plan = self.plan_store.get_active_plan(student_id)
        if plan is not None:
            return plan

        progress = self.progress_store.get_progress(student_id)
        if not progress or not progress.get("program_code"):
            raise PlanError("PROGRAM_NOT_SET", "Please set up your graduation program first.")

        plan = self.plan_store.create_if_absent({
            "student_id": student_id,
            "program_code": progress["program_code"],
            "admission_year": progress.get("admission_year"),
            "plan_name": DEFAULT_PLAN_NAME,
            "planned_semesters": [],
            "version": 1,
            "previous_version_id": None,
        })
        print(f"[INFO] Created plan {plan['plan_id']} for student {student_id}")
        return plan

    def build_plan_view(self, plan: dict, today: date | None = None) -> dict:
        """Plan with resolved course details, warnings and a fresh timeline."""
        view = copy.deepcopy(plan)
        catalog = self.catalog_for(plan.get("program_code"))
        progress = self.progress_store.get_progress(plan["student_id"])
        completed_courses = progress["completed_courses"] if progress else []
        program = self.program_catalog.find_program(plan.get("program_code"))

        totals: dict = {}
        warnings = compute_warnings(plan, catalog, completed_courses, semester_totals=totals)

        view["planned_semesters"] = sorted(view.get("planned_semesters", []), key=chronological_key)
        for semester in view["planned_semesters"]:
            sid = semester.get("semester_id")
            semester["planned_courses"] = catalog.resolve_planned_courses(semester.get("planned_courses", []))
            semester["total_credits"] = totals.get(sid, 0)
            semester["warnings"] = [w for w in warnings if w.get("semester_id") == sid]

        view["warnings"] = warnings
        view["graduation_timeline"] = project_timeline(
            plan,
            program,
            progress,
            catalog,
            self.analyzer,
            today=today,
        )
        scored = self.analyzer.score_courses(catalog, completed_courses, plan)[: self.analyzer.top_n]
        view["bottleneck_details"] = [
            {**item, "summary": format_bottleneck_warning(item)} for item in scored
        ]
        return view

    def get_plan(self, student_id: str, today: date | None = None) -> dict:
        return self.build_plan_view(self.get_or_create_plan(student_id), today=today)

    def plan_history(self, student_id: str) -> list[dict]:
        return [
            {
                "plan_id": p["plan_id"],
                "plan_name": p.get("plan_name"),
                "version": p["version"],
                "revision": p["revision"],
                "is_active": p.get("is_active", False),
                "previous_version_id": p.get("previous_version_id"),
                "semester_count": len(p.get("planned_semesters", [])),
                "created_at": p.get("created_at"),
                "updated_at": p.get("updated_at"),
            }
            for p in self.plan_store.list_plans(str(student_id))
        ]

    def check_can_take(self, student_id: str, course_code, semester_number: int | None = None) -> dict:
        code = validate_course_code(course_code)
        plan = self.plan_store.get_active_plan(str(student_id))
        progress = self.progress_store.get_progress(str(student_id))
        program_code = (plan or {}).get("program_code") or (progress or {}).get("program_code")
        if semester_number is None:
            numbers = [s.get("semester_number") or 0 for s in (plan or {}).get("planned_semesters", [])]
            semester_number = max(numbers, default=0) + 1
        return check_can_take(
            code,
            self.catalog_for(program_code),
            progress["completed_courses"] if progress else [],
            plan,
            int(semester_number),
        )

    # ── Writes ─────────────────────────────────────────────────────────────────

    def add_semester(
        self,
        student_id: str,
        season,
        year,
        credit_limit=DEFAULT_CREDIT_LIMIT,
        semester_number=None,
        semester_name: str | None = None,
        expected_revision: int | None = None,
    ) -> dict:
        self.get_or_create_plan(student_id)
        plan = self._active_plan(str(student_id), expected_revision)
        season, year = _season_and_year(season, year, semester_name)
        fields = validate_semester_fields(
            season,
            year,
            credit_limit,
            semester_number,
            plan["planned_semesters"],
        )
        semester = {
            "semester_id": new_id(),
            "semester_name": (semester_name or "").strip() or semester_label(fields["season"], fields["year"]),
            **fields,
            "planned_courses": [],
        }
        plan["planned_semesters"].append(semester)
        _renumber_semesters(plan["planned_semesters"], {semester["semester_id"]: fields["semester_number"]})
        saved = self.plan_store.save(plan)
        return {"semester": semester, "plan_revision": saved["revision"]}

    def remove_semester(self, student_id: str, semester_id: str, expected_revision: int | None = None) -> dict:
        plan = self._active_plan(str(student_id), expected_revision)
        semester = self._find_semester(plan, semester_id)
        if semester.get("planned_courses"):
            raise PlanError(
                "SEMESTER_NOT_EMPTY",
                f"{semester.get('semester_name')} still has planned courses; remove them first.",
            )
        plan["planned_semesters"] = [
            s for s in plan["planned_semesters"] if s.get("semester_id") != semester_id
        ]
        _renumber_semesters(plan["planned_semesters"], {})
        saved = self.plan_store.save(plan)
        return {"removed_semester_id": semester_id, "plan_revision": saved["revision"]}

    def _mutation_result(self, saved: dict, semester_id: str) -> dict:
        view = self.build_plan_view(saved)
        semester = next(s for s in view["planned_semesters"] if s["semester_id"] == semester_id)
        return {
            "semester": semester,
            "warnings": view["warnings"],
            "plan_revision": saved["revision"],
        }

    def add_course(
        self,
        student_id: str,
        semester_id: str,
        course_code,
        is_repeat: bool = False,
        notes=None,
        expected_revision: int | None = None,
    ) -> dict:
        """Add a course to a planned semester; returns the semester and recomputed warnings."""
        code = validate_course_code(course_code)
        note_text = validate_notes(notes)
        plan = self._active_plan(str(student_id), expected_revision)
        semester = self._find_semester(plan, semester_id)
        validate_add_course(semester, code, bool(is_repeat), self._completed_courses(str(student_id)))

        semester["planned_courses"].append({
            "course_code": code,
            "is_repeat": bool(is_repeat),
            "notes": note_text,
            "added_at": utc_now(),
        })
        saved = self.plan_store.save(plan)
        return self._mutation_result(saved, semester_id)

    def remove_course(
        self,
        student_id: str,
        semester_id: str,
        course_code,
        expected_revision: int | None = None,
    ) -> dict:
        code = validate_course_code(course_code)
        plan = self._active_plan(str(student_id), expected_revision)
        semester = self._find_semester(plan, semester_id)
        validate_remove_course(semester, code)
        semester["planned_courses"] = [
            c for c in semester["planned_courses"] if c["course_code"] != code
        ]
        saved = self.plan_store.save(plan)
        return self._mutation_result(saved, semester_id)

    def _normalize_semesters(self, raw_semesters, completed_courses: list[dict]) -> list[dict]:
        if not isinstance(raw_semesters, list):
            raise PlanError("INVALID_INPUT", "planned_semesters must be a list.")
        semesters: list[dict] = []
        requested: dict[str, int] = {}
        for raw in raw_semesters:
            if not isinstance(raw, dict):
                raise PlanError("INVALID_INPUT", "Each planned semester must be an object.")
            season, year = _season_and_year(raw.get("season"), raw.get("year"), raw.get("semester_name"))
            fields = validate_semester_fields(
                season,
                year,
                raw.get("credit_limit", DEFAULT_CREDIT_LIMIT),
                raw.get("semester_number"),
                semesters,
            )
            semester = {
                "semester_id": new_id() if raw.get("semester_id") in (None, "", *requested) else raw["semester_id"],
                "semester_name": str(raw.get("semester_name") or "").strip()
                or semester_label(fields["season"], fields["year"]),
                **fields,
                "planned_courses": [],
            }
            for raw_course in raw.get("planned_courses", []) or []:
                if isinstance(raw_course, str):
                    raw_course = {"course_code": raw_course}
                code = validate_course_code(raw_course.get("course_code"))
                is_repeat = bool(raw_course.get("is_repeat", False))
                validate_add_course(semester, code, is_repeat, completed_courses)
                semester["planned_courses"].append({
                    "course_code": code,
                    "is_repeat": is_repeat,
                    "notes": validate_notes(raw_course.get("notes")),
                    "added_at": raw_course.get("added_at") or utc_now(),
                })
            semesters.append(semester)
            requested[semester["semester_id"]] = fields["semester_number"]
        _renumber_semesters(semesters, requested)
        return semesters

    def create_new_version(
        self,
        student_id: str,
        updates: dict | None = None,
        expected_revision: int | None = None,
    ) -> dict:
        """
        Archive the active plan and make a clone (plus updates) the new active
        version. Only plan_name and planned_semesters may be updated.
        """
        plan = self._active_plan(str(student_id), expected_revision)
        updates = dict(updates or {})
        unknown = sorted(set(updates) - set(VERSION_UPDATE_FIELDS))
        if unknown:
            raise PlanError("INVALID_INPUT", f"Unsupported update field(s): {', '.join(unknown)}.")

        clean: dict = {}
        if "plan_name" in updates:
            name = str(updates["plan_name"] or "").strip()
            if not name or len(name) > 50:
                raise PlanError("INVALID_INPUT", "plan_name must be 1-50 characters.")
            clean["plan_name"] = name
        if "planned_semesters" in updates:
            clean["planned_semesters"] = self._normalize_semesters(
                updates["planned_semesters"],
                self._completed_courses(str(student_id)),
            )

        new_plan = self.plan_store.archive_and_version(plan, clean)
        print(
            f"[INFO] Plan {plan['plan_id']} archived; version {new_plan['version']} "
            f"is now active ({new_plan['plan_id']})"
        )
        return self.build_plan_view(new_plan)
