import pytest
from prereq_parser import parse_prereq_list, build_prereq_check_string


class TestParsePrereqList:
    @pytest.mark.parametrize("cell", ["none", "None listed", "N/A", "", None, float("nan")])
    def test_empty_values(self, cell):
        assert parse_prereq_list(cell) == {"courses": [], "invalid": []}

    def test_single(self):
        assert parse_prereq_list("CSE 110") == {"courses": ["CSE 110"], "invalid": []}

    def test_single_normalized(self):
        assert parse_prereq_list("cse110")["courses"] == ["CSE 110"]

    def test_semicolon_list(self):
        result = parse_prereq_list("CSE 321; CSE 370")
        assert result["courses"] == ["CSE 321", "CSE 370"]

    def test_comma_list(self):
        result = parse_prereq_list("MAT 110, PHY 111")
        assert result["courses"] == ["MAT 110", "PHY 111"]

    def test_annotation_stripped(self):
        result = parse_prereq_list("CSE 110 (min grade C); MAT 110")
        assert result["courses"] == ["CSE 110", "MAT 110"]

    def test_duplicates_dropped_in_order(self):
        result = parse_prereq_list("CSE 220; MAT 110; cse-220")
        assert result["courses"] == ["CSE 220", "MAT 110"]

    def test_invalid_tokens_reported(self):
        result = parse_prereq_list("CSE 110; instructor consent")
        assert result["courses"] == ["CSE 110"]
        assert result["invalid"] == ["instructor consent"]

    def test_list_input(self):
        assert parse_prereq_list(["CSE 110", "mat110"])["courses"] == ["CSE 110", "MAT 110"]


class TestBuildPrereqCheckString:
    def test_all_satisfied(self):
        assert build_prereq_check_string([], []) == "All prerequisites satisfied"

    def test_hard_only(self):
        assert build_prereq_check_string(["CSE 220"], []) == "missing required: CSE 220"

    def test_hard_and_soft(self):
        text = build_prereq_check_string(["CSE 220", "CSE 111"], ["MAT 110"])
        assert text == "missing required: CSE 220, CSE 111; missing recommended: MAT 110"
