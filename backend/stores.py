"""
Read-only program/progress collaborators and the semester plan store.
"""

import copy
import json
import os
import sys
import tempfile
import threading
import uuid
from datetime import datetime, timezone

from errors import NotFound, VersionConflict

# Derived view-model fields. Never persisted.
PLAN_COMPUTED_FIELDS = ("warnings", "graduation_timeline", "bottleneck_details")
SEMESTER_COMPUTED_FIELDS = ("total_credits", "warnings")
COURSE_COMPUTED_FIELDS = ("course_details",)


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def strip_computed(plan: dict) -> dict:
    """Deep copy of plan without any derived fields."""
    clean = copy.deepcopy(plan)
    for field in PLAN_COMPUTED_FIELDS:
        clean.pop(field, None)
    for semester in clean.get("planned_semesters", []):
        for field in SEMESTER_COMPUTED_FIELDS:
            semester.pop(field, None)
        for course in semester.get("planned_courses", []):
            for field in COURSE_COMPUTED_FIELDS:
                course.pop(field, None)
    return clean


class ProgramCatalog:
    """Program definitions keyed by program code, tagged with the data version."""

    def __init__(self, programs: dict[str, dict], version: str = "none"):
        self._lock = threading.Lock()
        self._programs = programs
        self._version = version

    @property
    def catalog_version(self) -> str:
        return self._version

    def replace(self, programs: dict[str, dict], version: str) -> None:
        with self._lock:
            self._programs = programs
            self._version = version

    def find_program(self, program_code: str | None) -> dict | None:
        if not program_code:
            return None
        with self._lock:
            return self._programs.get(str(program_code).strip().upper())

    def programs(self) -> list[dict]:
        with self._lock:
            items = list(self._programs.values())
        return [
            {
                "program_code": p["program_code"],
                "program_name": p["program_name"],
                "department": p.get("department", ""),
                "total_credits_required": p.get("total_credits_required", 0),
                "active": p.get("active", True),
                "categories": [r["category"] for r in p.get("requirements", [])],
            }
            for p in sorted(items, key=lambda p: p["program_code"])
        ]


class StudentProgressStore:
    """Per-student program and course history."""

    def __init__(self, progress: dict[str, dict], program_catalog: ProgramCatalog):
        self._lock = threading.Lock()
        self._progress = progress
        self._program_catalog = program_catalog

    def replace(self, progress: dict[str, dict]) -> None:
        with self._lock:
            self._progress = progress

    def get_progress(self, student_id: str) -> dict | None:
        with self._lock:
            record = self._progress.get(str(student_id))
        return copy.deepcopy(record) if record is not None else None

    def get_completed_courses(self, student_id: str) -> list[dict]:
        record = self.get_progress(student_id)
        return record["completed_courses"] if record else []

    def get_total_credits_required(self, program_code: str) -> int | None:
        program = self._program_catalog.find_program(program_code)
        if program is None:
            return None
        return int(program.get("total_credits_required", 0) or 0)


class PlanStore:
    """
    Thread-safe semester plan storage with compare-and-swap writes.

    Every stored plan carries a `revision`; `save()` only succeeds when the
    incoming plan's revision matches the stored one, then bumps it. A write
    based on a stale read raises VersionConflict instead of silently
    overwriting. At most one plan per student is active.

    With `path` set, every write is first snapshotted to that JSON file and
    only then applied in memory, so a failed snapshot leaves the store as it
    was. The file is reloaded on construction.
    """

    def __init__(self, path: str | None = None):
        self._lock = threading.Lock()
        self._plans: dict[str, dict] = {}
        self._path = path
        if path and os.path.isfile(path):
            self._load()

    def _load(self) -> None:
        try:
            with open(self._path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            print(f"[WARN] Could not read plan store {self._path}: {exc}. Starting empty.")
            return
        self._plans = {p["plan_id"]: p for p in raw.get("plans", [])}
        print(f"[OK] Loaded {len(self._plans)} plan(s) from {self._path}")

    def _persist(self, plans: dict[str, dict]) -> None:
        """Write `plans` to the snapshot file. Raises (leaving no temp file) on failure."""
        if not self._path:
            return
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump({"plans": list(plans.values())}, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except Exception as exc:
            print(f"[ERROR] Could not write plan store {self._path}: {exc}", file=sys.stderr)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def _commit(self, *records: dict) -> None:
        candidate = dict(self._plans)
        for record in records:
            candidate[record["plan_id"]] = record
        self._persist(candidate)
        self._plans = candidate

    def _active_for(self, student_id: str) -> dict | None:
        active = [
            p for p in self._plans.values()
            if p["student_id"] == student_id and p.get("is_active")
        ]
        if not active:
            return None
        return max(active, key=lambda p: p["version"])

    def clear(self) -> None:
        with self._lock:
            self._persist({})
            self._plans = {}

    def get_plan(self, plan_id: str) -> dict | None:
        with self._lock:
            plan = self._plans.get(plan_id)
            return copy.deepcopy(plan) if plan is not None else None

    def get_active_plan(self, student_id: str) -> dict | None:
        """Highest-version active plan for the student, or None."""
        with self._lock:
            plan = self._active_for(str(student_id))
            return copy.deepcopy(plan) if plan is not None else None

    def list_plans(self, student_id: str) -> list[dict]:
        with self._lock:
            plans = [p for p in self._plans.values() if p["student_id"] == str(student_id)]
            plans = copy.deepcopy(plans)
        return sorted(plans, key=lambda p: p["version"], reverse=True)

    def create_if_absent(self, plan: dict) -> dict:
        """Store plan as the student's first active plan unless one already exists."""
        with self._lock:
            existing = self._active_for(plan["student_id"])
            if existing is not None:
                return copy.deepcopy(existing)
            record = strip_computed(plan)
            record.setdefault("plan_id", new_id())
            record.setdefault("version", 1)
            record["revision"] = 1
            record["is_active"] = True
            record["created_at"] = record["updated_at"] = utc_now()
            self._commit(record)
            return copy.deepcopy(record)

    def save(self, plan: dict) -> dict:
        """Write plan back if nobody else wrote it since it was read."""
        with self._lock:
            stored = self._plans.get(plan["plan_id"])
            if stored is None:
                raise NotFound("PLAN_NOT_FOUND", f"Plan {plan['plan_id']} not found.")
            if stored["revision"] != plan.get("revision"):
                raise VersionConflict(plan["plan_id"], plan.get("revision"), stored["revision"])
            record = strip_computed(plan)
            record["revision"] = stored["revision"] + 1
            record["updated_at"] = utc_now()
            self._commit(record)
            return copy.deepcopy(record)

    def archive_and_version(self, plan: dict, updates: dict) -> dict:
        """
        Archive `plan` and store a clone with `updates` applied as the new
        active version. Derived fields are dropped so the next read
        recomputes them.
        """
        with self._lock:
            stored = self._plans.get(plan["plan_id"])
            if stored is None:
                raise NotFound("PLAN_NOT_FOUND", f"Plan {plan['plan_id']} not found.")
            if stored["revision"] != plan.get("revision"):
                raise VersionConflict(plan["plan_id"], plan.get("revision"), stored["revision"])

            now = utc_now()
            archived = copy.deepcopy(stored)
            archived["is_active"] = False
            archived["revision"] = stored["revision"] + 1
            archived["updated_at"] = now

            clone = strip_computed({**stored, **updates})
            clone["plan_id"] = new_id()
            clone["version"] = stored["version"] + 1
            clone["previous_version_id"] = stored["plan_id"]
            clone["revision"] = 1
            clone["is_active"] = True
            clone["created_at"] = clone["updated_at"] = now

            self._commit(archived, clone)
            return copy.deepcopy(clone)
