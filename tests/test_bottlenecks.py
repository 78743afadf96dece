import pytest

from bottlenecks import BottleneckAnalyzer, format_bottleneck_warning
from catalog import CourseCatalog
from unlocks import build_reverse_prereq_map


@pytest.fixture
def catalog(program):
    return CourseCatalog(program, "v1")


def _by_code(scored):
    return {r["course_code"]: r for r in scored}


class TestScoreCourses:
    def test_worked_scores(self, catalog, completed):
        scored = _by_code(BottleneckAnalyzer().score_courses(catalog, completed, None))
        # 18 hard + 8 required + 3 credits + 3 pattern + 2 blocking + 3 category
        assert scored["CSE 220"]["score"] == 37
        assert scored["MAT 215"]["score"] == 35
        assert scored["CSE 400"]["score"] == 30
        assert scored["MAT 120"]["score"] == 15
        assert scored["ENG 101"]["score"] == 12

    def test_completed_courses_excluded(self, catalog, completed):
        codes = [r["course_code"] for r in BottleneckAnalyzer().score_courses(catalog, completed, None)]
        assert "CSE 110" not in codes
        assert "MAT 110" not in codes

    def test_tie_broken_by_course_code(self, catalog, completed):
        ranked = BottleneckAnalyzer().rank(catalog, completed, None)
        assert ranked == ["CSE 220", "CSE 221", "MAT 215", "CSE 400", "CSE 230"]

    def test_rank_is_deterministic(self, catalog, completed):
        analyzer = BottleneckAnalyzer()
        assert analyzer.rank(catalog, completed, None) == analyzer.rank(catalog, completed, None)

    def test_top_n_configurable(self, catalog, completed):
        assert len(BottleneckAnalyzer(top_n=2).rank(catalog, completed, None)) == 2

    def test_planned_course_satisfies_prereq(self, catalog, completed, make_plan, make_semester):
        plan = make_plan(make_semester("Fall", 2025, 1, ["CSE 111"]))
        scored = _by_code(BottleneckAnalyzer().score_courses(catalog, completed, plan))
        assert scored["CSE 220"]["unmet_hard_prerequisites"] == []

    def test_planned_dependents_not_blocked(self, catalog, completed, make_plan, make_semester):
        plan = make_plan(make_semester("Spring", 2026, 2, ["CSE 221"]))
        scored = _by_code(BottleneckAnalyzer().score_courses(catalog, completed, plan))
        assert scored["CSE 220"]["blocks"] == 0


class TestScoreCourse:
    def test_score_capped(self):
        course = {
            "course_code": "MAT 299",
            "credits": 4,
            "category": "program-core",
            "is_required": True,
            "hard_prerequisites": ["MAT 101", "MAT 102", "MAT 103", "MAT 104", "MAT 105"],
            "soft_prerequisites": [],
        }
        result = BottleneckAnalyzer().score_course(course, set(), set(), {})
        assert result["raw_score"] > 40
        assert result["score"] == 40

    def test_first_matching_pattern_only(self):
        analyzer = BottleneckAnalyzer(pattern_weights=[("CSE", 5), ("CSE 2", 100)], category_weights={})
        course = {"course_code": "CSE 220", "credits": 3, "is_required": False}
        result = analyzer.score_course(course, set(), set(), {})
        assert result["score"] == 3 + 5
        assert "Critical CSE sequence course" in result["reasons"]

    def test_soft_prereqs_do_not_count_as_blocking(self, program):
        courses = CourseCatalog(program).all_courses()
        reverse_map = build_reverse_prereq_map(courses)
        mat_110 = next(c for c in courses if c["course_code"] == "MAT 110")
        result = BottleneckAnalyzer().score_course(mat_110, set(), set(), reverse_map)
        # CSE 220 and CSE 230 list MAT 110 only as a soft prerequisite.
        assert result["blocks"] == 1
        assert result["unlocks"] == ["MAT 120"]

    def test_soft_only_adds_soft_weight(self):
        analyzer = BottleneckAnalyzer(pattern_weights=[], category_weights={})
        course = {"course_code": "CSE 230", "credits": 0, "soft_prerequisites": ["MAT 110"]}
        result = analyzer.score_course(course, set(), set(), {})
        assert result["score"] == 6
        assert result["unmet_hard_prerequisites"] == []

    def test_custom_category_weights(self):
        analyzer = BottleneckAnalyzer(pattern_weights=[], category_weights={"gen-ed": 9})
        course = {"course_code": "ENG 101", "credits": 0, "category": "gen-ed"}
        assert analyzer.score_course(course, set(), set(), {})["score"] == 9


class TestFormatBottleneckWarning:
    def test_uses_first_reason(self):
        item = {"course_code": "CSE 220", "score": 37, "reasons": ["Missing 1 hard prerequisite(s)", "Required course"]}
        assert format_bottleneck_warning(item) == "CSE 220 - Missing 1 hard prerequisite(s) (Priority: 37/40)"

    def test_no_reasons(self):
        item = {"course_code": "ENG 101", "score": 1, "reasons": []}
        assert format_bottleneck_warning(item) == "ENG 101 - Course may delay progress (Priority: 1/40)"
