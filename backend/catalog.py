import threading

from requirements import DEFAULT_CATEGORY, DEFAULT_COURSE_CREDITS


def default_course_definition(course_code: str) -> dict:
    """Definition synthesized for a course code the program does not list."""
    return {
        "course_code": course_code,
        "course_name": f"{course_code} Course",
        "credits": DEFAULT_COURSE_CREDITS,
        "category": DEFAULT_CATEGORY,
        "is_required": True,
        "hard_prerequisites": [],
        "soft_prerequisites": [],
        "in_catalog": False,
    }


class CourseCatalog:
    """
    Resolves course codes against one program's requirement categories.

    Lookups are cached per instance and keyed by course code. The cache is
    tied to the catalog data version it was built from: `refresh()` with a new
    version drops the index and every cached lookup.
    """

    def __init__(self, program: dict | None, version: str = "none"):
        self._lock = threading.Lock()
        self._program = program
        self._version = version
        self._index: dict[str, dict] | None = None
        self._cache: dict[str, dict] = {}

    @property
    def version(self) -> str:
        return self._version

    @property
    def program(self) -> dict | None:
        return self._program

    def refresh(self, program: dict | None, version: str) -> bool:
        """Swap in new program data when the version changed. Returns True on swap."""
        with self._lock:
            if version == self._version:
                return False
            self._program = program
            self._version = version
            self._index = None
            self._cache.clear()
            return True

    def _build_index(self) -> dict[str, dict]:
        index: dict[str, dict] = {}
        if not self._program:
            return index
        for requirement in self._program.get("requirements", []):
            for course in requirement.get("courses", []):
                code = course.get("course_code")
                if not code or code in index:
                    continue
                index[code] = {
                    "course_code": code,
                    "course_name": course.get("course_name") or f"{code} Course",
                    "credits": int(course.get("credits", DEFAULT_COURSE_CREDITS) or 0),
                    "category": course.get("category") or requirement.get("category") or DEFAULT_CATEGORY,
                    "is_required": course.get("is_required", True) is not False,
                    "hard_prerequisites": list(course.get("hard_prerequisites", [])),
                    "soft_prerequisites": list(course.get("soft_prerequisites", [])),
                    "in_catalog": True,
                }
        return index

    def _ensure_index(self) -> dict[str, dict]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def get_course_details(self, course_code: str) -> dict:
        """Return the definition for course_code, synthesizing a default on a miss."""
        with self._lock:
            cached = self._cache.get(course_code)
            if cached is None:
                cached = self._ensure_index().get(course_code) or default_course_definition(course_code)
                self._cache[course_code] = cached
        return dict(cached)

    def has_course(self, course_code: str) -> bool:
        with self._lock:
            return course_code in self._ensure_index()

    def all_courses(self) -> list[dict]:
        """Every course the program defines, in requirement order, first listing wins."""
        with self._lock:
            return [dict(c) for c in self._ensure_index().values()]

    def credits_for(self, course_code: str) -> int:
        return self.get_course_details(course_code)["credits"]

    def resolve_planned_courses(self, planned_courses: list[dict]) -> list[dict]:
        """Return copies of planned courses with their resolved definitions attached."""
        resolved = []
        for planned in planned_courses:
            enriched = dict(planned)
            enriched["course_details"] = self.get_course_details(planned["course_code"])
            resolved.append(enriched)
        return resolved


class CatalogRegistry:
    """Process-wide CourseCatalog per program, invalidated by data version."""

    def __init__(self):
        self._lock = threading.Lock()
        self._catalogs: dict[str, CourseCatalog] = {}

    def get(self, program_code: str, program: dict | None, version: str) -> CourseCatalog:
        key = str(program_code or "").upper()
        with self._lock:
            catalog = self._catalogs.get(key)
            if catalog is None:
                catalog = CourseCatalog(program, version)
                self._catalogs[key] = catalog
                return catalog
        catalog.refresh(program, version)
        return catalog

    def clear(self) -> None:
        with self._lock:
            self._catalogs.clear()
