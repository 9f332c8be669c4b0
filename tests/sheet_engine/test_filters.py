"""Tests for the filter engine."""

from services.sheet_engine import (
    FilterMode,
    FilterState,
    Sheet,
    apply_filters,
    apply_global_filters,
    clear_filters,
    filtered_row_indices,
)


class TestApplyFilters:
    """Per-column mode."""

    def test_empty_state_is_a_reset(self, ab_sheet):
        assert apply_filters([ab_sheet], ["", ""], "") is None
        assert apply_filters([ab_sheet], ["", ""], "   ") is None

    def test_column_filter(self, ab_sheet):
        result = apply_filters([ab_sheet], ["", "2"], "")
        assert result[0].rows == [["A", "B"], ["1", "2"]]

    def test_global_search(self, ab_sheet):
        result = apply_filters([ab_sheet], ["", ""], "3")
        assert result[0].rows == [["A", "B"], ["3", "4"]]

    def test_header_always_kept(self, ab_sheet):
        result = apply_filters([ab_sheet], ["zzz", ""], "nothing-matches")
        assert result[0].rows == [["A", "B"]]

    def test_case_insensitive(self):
        sheet = Sheet(name="s", rows=[["Name"], ["ALICE"], ["bob"]])
        assert apply_filters([sheet], ["alice"], "")[0].rows == [["Name"], ["ALICE"]]
        assert apply_filters([sheet], [""], "BOB")[0].rows == [["Name"], ["bob"]]

    def test_numbers_are_stringified(self):
        sheet = Sheet(name="s", rows=[["Qty"], [120], [35]])
        assert apply_filters([sheet], ["12"], "")[0].rows == [["Qty"], [120]]

    def test_empty_cell_fails_constrained_column_only(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["x", None], [None, "y"]])
        result = apply_filters([sheet], ["", "y"], "")
        assert result[0].rows == [["A", "B"], [None, "y"]]

    def test_global_search_and_column_filter_combine(self, people_workbook):
        result = apply_filters(people_workbook.sheets, ["", "", "2021"], "alice")
        assert result[0].rows == [["Name", "Age", "Joined"], ["Alice", 34, "2021-03-04"]]

    def test_applies_to_every_sheet(self, people_workbook):
        result = apply_filters(people_workbook.sheets, [], "france")
        assert [s.name for s in result] == ["People", "Cities"]
        assert result[0].rows == [["Name", "Age", "Joined"]]
        assert len(result[1].rows) == 3

    def test_does_not_mutate_original(self, people_workbook):
        before = people_workbook.model_copy(deep=True)
        apply_filters(people_workbook.sheets, ["bob"], "")
        assert people_workbook == before

    def test_deterministic(self, people_workbook):
        first = apply_filters(people_workbook.sheets, ["", "3"], "")
        second = apply_filters(people_workbook.sheets, ["", "3"], "")
        assert first == second


class TestApplyGlobalFilters:
    """Any-column mode: every cell must contain one of the filters."""

    def test_every_cell_must_match_some_filter(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["red", "blue"], ["red", "green"]])
        result = apply_global_filters([sheet], ["red", "blue"], "")
        assert result[0].rows == [["A", "B"], ["red", "blue"]]

    def test_stricter_than_per_column(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["1", "2"], ["3", "4"]])
        per_column = apply_filters([sheet], ["", "2"], "")
        any_column = apply_global_filters([sheet], ["", "2"], "")
        assert per_column[0].rows == [["A", "B"], ["1", "2"]]
        assert any_column[0].rows == [["A", "B"]]

    def test_empty_cell_never_matches(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["red", None]])
        assert apply_global_filters([sheet], ["red"], "")[0].rows == [["A", "B"]]

    def test_empty_state_is_a_reset(self, ab_sheet):
        assert apply_global_filters([ab_sheet], ["", ""], "") is None

    def test_global_search_only(self, ab_sheet):
        result = apply_global_filters([ab_sheet], ["", ""], "3")
        assert result[0].rows == [["A", "B"], ["3", "4"]]

    def test_global_search_only_keeps_rows_with_empty_cells(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["red", None], ["blue", "x"]])
        assert apply_global_filters([sheet], [""], "red")[0].rows == [["A", "B"], ["red", None]]


class TestFilteredRowIndices:

    def test_unfiltered_maps_every_row(self, ab_sheet):
        assert filtered_row_indices(ab_sheet, FilterState.empty(2)) == [0, 1, 2]

    def test_maps_displayed_rows_to_original(self, people_workbook):
        state = FilterState(filters=["", "", ""], global_search="bob")
        assert filtered_row_indices(people_workbook.sheets[0], state) == [0, 2]

    def test_follows_mode(self):
        sheet = Sheet(name="s", rows=[["A", "B"], ["1", "2"], ["2", "2"]])
        per_column = FilterState(filters=["", "2"])
        any_column = FilterState(filters=["", "2"], mode=FilterMode.ANY_COLUMN)
        assert filtered_row_indices(sheet, per_column) == [0, 1, 2]
        assert filtered_row_indices(sheet, any_column) == [0, 2]


class TestClearFilters:

    def test_resets_state_and_copies_baseline(self, people_workbook):
        state, working = clear_filters(people_workbook.sheets, 3)

        assert state == FilterState(filters=["", "", ""], global_search="")
        assert working == people_workbook.sheets
        assert working[0] is not people_workbook.sheets[0]
        assert working[0].rows is not people_workbook.sheets[0].rows
