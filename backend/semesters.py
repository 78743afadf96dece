import re
from datetime import date

from requirements import SEASONS, SEASON_ORDER


SEM_RE = re.compile(r"^(Spring|Summer|Fall)\s+(\d{4})$", re.IGNORECASE)


def normalize_season(raw: str) -> str | None:
    """'fall' → 'Fall'. Returns None for anything that is not a season name."""
    s = str(raw or "").strip().capitalize()
    return s if s in SEASON_ORDER else None


def semester_label(season: str, year: int) -> str:
    return f"{season} {year}"


def parse_semester_label(label: str) -> tuple[str, int] | None:
    """'Fall 2026' → ('Fall', 2026). Returns None when the label does not parse."""
    m = SEM_RE.match((label or "").strip())
    if not m:
        return None
    return m.group(1).capitalize(), int(m.group(2))


def chronological_key(semester: dict) -> tuple[int, int]:
    """Sort key for planned semesters: (year, season order)."""
    return int(semester["year"]), SEASON_ORDER[semester["season"]]


def renumber_chronologically(semesters: list[dict]) -> list[dict]:
    """Sort semesters in place by date and set each semester_number to its 1-based rank."""
    semesters.sort(key=chronological_key)
    for rank, semester in enumerate(semesters, start=1):
        semester["semester_number"] = rank
    return semesters


def latest_semester(semesters: list[dict]) -> dict | None:
    """Chronologically latest semester; the first one listed wins a tie."""
    latest = None
    for semester in semesters:
        if latest is None or chronological_key(semester) > chronological_key(latest):
            latest = semester
    return latest


def season_for_month(month: int) -> str:
    """Jan–Apr → Spring, May–Aug → Summer, Sep–Dec → Fall."""
    if 1 <= month <= 4:
        return "Spring"
    if 5 <= month <= 8:
        return "Summer"
    return "Fall"


def current_season(today: date | None = None) -> tuple[str, int]:
    today = today or date.today()
    return season_for_month(today.month), today.year


def step_semesters(season: str, year: int, steps: int) -> tuple[str, int]:
    """
    Walk `steps` season slots forward through Spring → Summer → Fall → Spring.

    Fall 2025 + 1 → Spring 2026; Fall 2025 + 2 → Summer 2026.
    """
    total = SEASON_ORDER[season] + steps
    return SEASONS[total % len(SEASONS)], year + total // len(SEASONS)
