from catalog import CourseCatalog
from eligibility import all_planned_codes, completed_course_codes
from requirements import (
    BLOCKING_WEIGHT_EACH,
    BOTTLENECK_SCORE_CAP,
    BOTTLENECK_TOP_N,
    DEFAULT_CATEGORY_WEIGHTS,
    DEFAULT_PATTERN_WEIGHTS,
    HARD_PREREQ_BASE,
    HARD_PREREQ_EACH,
    MAX_BLOCKING_WEIGHT,
    MAX_CREDIT_WEIGHT,
    REQUIRED_COURSE_WEIGHT,
    SOFT_PREREQ_BASE,
    SOFT_PREREQ_EACH,
)
from unlocks import build_reverse_prereq_map, count_blocked_courses, get_direct_unlocks


def format_bottleneck_warning(bottleneck: dict) -> str:
    """'CSE 220 - Missing 1 hard prerequisite(s) (Priority: 29/40)'"""
    reasons = bottleneck.get("reasons") or []
    main_reason = reasons[0] if reasons else "Course may delay progress"
    return f"{bottleneck['course_code']} - {main_reason} (Priority: {bottleneck['score']}/{BOTTLENECK_SCORE_CAP})"


class BottleneckAnalyzer:
    """
    Ranks not-yet-completed catalog courses by how likely a delay in taking
    them is to push graduation back.

    The pattern and category tables are institution configuration. Pattern
    weights are an ordered list of (substring-of-course-code, weight); only the
    first matching pattern contributes.
    """

    def __init__(
        self,
        pattern_weights: list[tuple[str, int]] | None = None,
        category_weights: dict[str, int] | None = None,
        score_cap: int = BOTTLENECK_SCORE_CAP,
        top_n: int = BOTTLENECK_TOP_N,
    ):
        self.pattern_weights = list(DEFAULT_PATTERN_WEIGHTS if pattern_weights is None else pattern_weights)
        self.category_weights = dict(DEFAULT_CATEGORY_WEIGHTS if category_weights is None else category_weights)
        self.score_cap = score_cap
        self.top_n = top_n

    def _pattern_weight(self, course_code: str) -> tuple[str, int] | None:
        for pattern, weight in self.pattern_weights:
            if pattern in course_code:
                return pattern, weight
        return None

    def score_course(
        self,
        course: dict,
        completed: set[str],
        planned: set[str],
        reverse_map: dict[str, list[str]],
    ) -> dict:
        """Additive score for one candidate, with the reason for every contribution."""
        code = course["course_code"]
        score = 0
        reasons: list[str] = []

        # Anything planned anywhere in the plan counts as satisfied here.
        satisfied = completed | planned
        unmet_hard = [p for p in course.get("hard_prerequisites", []) if p not in satisfied]
        unmet_soft = [p for p in course.get("soft_prerequisites", []) if p not in satisfied]

        if unmet_hard:
            score += HARD_PREREQ_BASE + HARD_PREREQ_EACH * len(unmet_hard)
            reasons.append(f"Missing {len(unmet_hard)} hard prerequisite(s)")
        if unmet_soft:
            score += SOFT_PREREQ_BASE + SOFT_PREREQ_EACH * len(unmet_soft)
            reasons.append(f"Missing {len(unmet_soft)} recommended prerequisite(s)")

        if course.get("is_required"):
            score += REQUIRED_COURSE_WEIGHT
            reasons.append("Required course")

        credit_weight = min(int(course.get("credits", 0) or 0), MAX_CREDIT_WEIGHT)
        score += credit_weight
        if credit_weight > 3:
            reasons.append("High-credit course")

        matched = self._pattern_weight(code)
        if matched:
            pattern, weight = matched
            score += weight
            reasons.append(f"Critical {pattern} sequence course")

        blocks = count_blocked_courses(code, reverse_map, satisfied | {code})
        if blocks > 0:
            score += min(BLOCKING_WEIGHT_EACH * blocks, MAX_BLOCKING_WEIGHT)
            reasons.append(f"Prerequisite for {blocks} other course(s)")

        category = str(course.get("category") or "").strip().lower()
        category_weight = self.category_weights.get(category, 0)
        if category_weight:
            score += category_weight
            reasons.append(f"{category} requirement")

        return {
            "course_code": code,
            "raw_score": score,
            "score": min(score, self.score_cap),
            "reasons": reasons,
            "unmet_hard_prerequisites": unmet_hard,
            "unmet_soft_prerequisites": unmet_soft,
            "blocks": blocks,
            "unlocks": get_direct_unlocks(code, reverse_map, limit=3),
        }

    def score_courses(
        self,
        catalog: CourseCatalog,
        completed_courses: list[dict],
        plan: dict | None,
    ) -> list[dict]:
        """
        Score every catalog course the student has not completed.

        Only positive scores are kept. Ordered by score descending, then
        course code ascending.
        """
        courses = catalog.all_courses()
        completed = completed_course_codes(completed_courses)
        planned = all_planned_codes(plan)
        reverse_map = build_reverse_prereq_map(courses)

        scored = []
        for course in courses:
            if course["course_code"] in completed:
                continue
            result = self.score_course(course, completed, planned, reverse_map)
            if result["score"] > 0:
                scored.append(result)

        scored.sort(key=lambda r: (-r["score"], r["course_code"]))
        return scored

    def rank(
        self,
        catalog: CourseCatalog,
        completed_courses: list[dict],
        plan: dict | None,
    ) -> list[str]:
        """Top-N bottleneck course codes."""
        return [
            r["course_code"]
            for r in self.score_courses(catalog, completed_courses, plan)[: self.top_n]
        ]
