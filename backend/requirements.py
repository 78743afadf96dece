import json

# Requirement categories a program groups its courses under.
CATEGORIES = (
    "gen-ed",
    "school-core",
    "program-core",
    "program-elective",
    "project-thesis",
)

# Category assigned to catalog misses.
DEFAULT_CATEGORY = "program-core"

# Credits assumed for a course code the program does not define.
DEFAULT_COURSE_CREDITS = 3

# Completed-course statuses tracked per student. Only "completed" satisfies
# prerequisites or counts toward completed credits.
COURSE_STATUSES = ("completed", "ongoing", "planned", "remaining")
COMPLETED_STATUS = "completed"

SEASONS = ("Spring", "Summer", "Fall")
SEASON_ORDER = {"Spring": 0, "Summer": 1, "Fall": 2}

DEFAULT_CREDIT_LIMIT = 12
MIN_CREDIT_LIMIT = 3
MAX_CREDIT_LIMIT = 21
MIN_SEMESTER_NUMBER = 1
MAX_SEMESTER_NUMBER = 12

# Credits above the semester limit before a light overload becomes heavy.
HEAVY_OVERLOAD_MARGIN = 3

# Average planned load used when there is no usable planning pattern.
FALLBACK_AVERAGE_LOAD = 12
MIN_AVERAGE_LOAD = 3

CALCULATION_METHOD = "optimistic"

TIMELINE_ASSUMPTIONS = [
    "Continuous semester availability (Spring, Summer, Fall)",
    "Average credit load based on current planning patterns",
    "No prerequisites prevent planned course completion",
    "Repeat courses count toward workload but not degree requirements",
    "Graduation occurs in the semester when final requirements are met",
    "Planning assumes successful course completion",
]

# ── Bottleneck scoring ────────────────────────────────────────────────────────
BOTTLENECK_SCORE_CAP = 40
BOTTLENECK_TOP_N = 5
HARD_PREREQ_BASE = 15
HARD_PREREQ_EACH = 3
SOFT_PREREQ_BASE = 5
SOFT_PREREQ_EACH = 1
REQUIRED_COURSE_WEIGHT = 8
MAX_CREDIT_WEIGHT = 4
BLOCKING_WEIGHT_EACH = 2
MAX_BLOCKING_WEIGHT = 10

# Ordered (substring-of-course-code, weight) pairs. Only the first match counts.
DEFAULT_PATTERN_WEIGHTS = [
    ("MAT 2", 4),
    ("CSE 2", 3),
    ("CSE 3", 3),
    ("PHY 1", 2),
    ("CHE 1", 2),
    ("ENG 3", 1),
]

DEFAULT_CATEGORY_WEIGHTS = {
    "program-core": 3,
    "school-core": 2,
    "gen-ed": 1,
}


def load_bottleneck_weights(path: str | None) -> tuple[list[tuple[str, int]], dict[str, int]]:
    """
    Read institution-specific bottleneck weight tables from a JSON file.

    File shape:
      {
        "pattern_weights": [["MAT 2", 4], ["CSE 2", 3]],
        "category_weights": {"program-core": 3}
      }

    Either key may be omitted; omitted tables keep their defaults. A missing or
    malformed file keeps both defaults.
    """
    pattern_weights = list(DEFAULT_PATTERN_WEIGHTS)
    category_weights = dict(DEFAULT_CATEGORY_WEIGHTS)
    if not path:
        return pattern_weights, category_weights

    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as exc:
        print(f"[WARN] Could not read bottleneck weights from {path}: {exc}. Using defaults.")
        return pattern_weights, category_weights

    if isinstance(raw.get("pattern_weights"), list):
        pattern_weights = [
            (str(pattern), int(weight))
            for pattern, weight in raw["pattern_weights"]
        ]
    if isinstance(raw.get("category_weights"), dict):
        category_weights = {
            str(category).strip().lower(): int(weight)
            for category, weight in raw["category_weights"].items()
        }
    return pattern_weights, category_weights
