from catalog import CatalogRegistry, CourseCatalog, default_course_definition


class TestCourseCatalog:
    def test_known_course(self, program):
        catalog = CourseCatalog(program, "v1")
        details = catalog.get_course_details("CSE 220")
        assert details["credits"] == 3
        assert details["category"] == "program-core"
        assert details["hard_prerequisites"] == ["CSE 111"]
        assert details["soft_prerequisites"] == ["MAT 110"]
        assert details["in_catalog"] is True

    def test_unknown_course_gets_default(self, program):
        catalog = CourseCatalog(program, "v1")
        details = catalog.get_course_details("XYZ 999")
        assert details == default_course_definition("XYZ 999")
        assert details["credits"] == 3
        assert details["category"] == "program-core"
        assert details["hard_prerequisites"] == []
        assert catalog.has_course("XYZ 999") is False

    def test_missing_program_never_raises(self):
        catalog = CourseCatalog(None)
        assert catalog.get_course_details("CSE 110")["in_catalog"] is False
        assert catalog.all_courses() == []

    def test_returned_details_are_copies(self, program):
        catalog = CourseCatalog(program, "v1")
        catalog.get_course_details("CSE 110")["credits"] = 99
        assert catalog.credits_for("CSE 110") == 3

    def test_all_courses_in_requirement_order(self, program):
        codes = [c["course_code"] for c in CourseCatalog(program).all_courses()]
        assert codes[0] == "ENG 101"
        assert codes[-1] == "CSE 400"
        assert len(codes) == 10

    def test_refresh_same_version_keeps_cache(self, program):
        catalog = CourseCatalog(program, "v1")
        catalog.get_course_details("CSE 110")
        assert catalog.refresh({"requirements": []}, "v1") is False
        assert catalog.has_course("CSE 110")

    def test_refresh_new_version_drops_cache(self, program):
        catalog = CourseCatalog(program, "v1")
        assert catalog.credits_for("CSE 400") == 4
        updated = {"requirements": [{"category": "program-core", "courses": [
            {"course_code": "CSE 400", "credits": 6, "hard_prerequisites": [], "soft_prerequisites": []},
        ]}]}
        assert catalog.refresh(updated, "v2") is True
        assert catalog.credits_for("CSE 400") == 6
        assert catalog.version == "v2"

    def test_resolve_planned_courses(self, program):
        catalog = CourseCatalog(program)
        planned = [{"course_code": "CSE 400", "is_repeat": False}]
        resolved = catalog.resolve_planned_courses(planned)
        assert resolved[0]["course_details"]["credits"] == 4
        assert "course_details" not in planned[0]


class TestCatalogRegistry:
    def test_same_instance_per_program(self, program):
        registry = CatalogRegistry()
        first = registry.get("cse", program, "v1")
        assert registry.get("CSE", program, "v1") is first

    def test_new_version_refreshes(self, program):
        registry = CatalogRegistry()
        catalog = registry.get("CSE", program, "v1")
        catalog.get_course_details("CSE 110")
        registry.get("CSE", None, "v2")
        assert catalog.version == "v2"
        assert catalog.has_course("CSE 110") is False
