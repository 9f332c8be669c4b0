"""Row filtering over the unfiltered baseline.

Two column-filter modes exist and are exposed as separate actions:
- per-column: every non-empty filter must be contained in its own column
- any-column: every cell must contain at least one of the non-empty filters

Both are combined with a global search that matches when any cell in the
row contains the search term. Matching is case-insensitive substring
matching on the stringified cell. Row 0 (header) is always kept.

Filtering is a pure projection: inputs are never mutated, and an empty
filter state returns None so callers fall back to the baseline.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .schemas import FilterMode, FilterState, Sheet


logger = logging.getLogger(__name__)

RowPredicate = Callable[[Sequence[Any], Sequence[str]], bool]


def _contains(cell: Any, needle: str) -> bool:
    if cell is None:
        return False
    return needle.lower() in str(cell).lower()


def is_filter_state_empty(filters: Sequence[str], global_search: str) -> bool:
    return all(f == "" for f in filters) and global_search.strip() == ""


def matches_global_search(row: Sequence[Any], global_search: str) -> bool:
    if global_search.strip() == "":
        return True
    return any(_contains(cell, global_search) for cell in row)


def matches_column_filters(row: Sequence[Any], filters: Sequence[str]) -> bool:
    """Per-column mode: each constrained column contains its filter."""
    for col_index, needle in enumerate(filters):
        if needle == "":
            continue
        cell = row[col_index] if col_index < len(row) else None
        if not _contains(cell, needle):
            return False
    return True


def matches_any_filter(row: Sequence[Any], filters: Sequence[str]) -> bool:
    """Any-column mode: every cell contains at least one non-empty filter.

    With no non-empty filter the mode imposes nothing, so a search-only run
    keeps whatever the global search keeps.
    """
    needles = [f for f in filters if f != ""]
    if not needles:
        return True
    return all(any(_contains(cell, n) for n in needles) for cell in row)


def _predicate_for(mode: FilterMode) -> RowPredicate:
    return matches_any_filter if mode == FilterMode.ANY_COLUMN else matches_column_filters


def _kept_row_indices(
    sheet: Sheet,
    filters: Sequence[str],
    global_search: str,
    predicate: RowPredicate,
) -> List[int]:
    if not sheet.rows:
        return []
    return [0] + [
        index
        for index, row in enumerate(sheet.rows[1:], start=1)
        if matches_global_search(row, global_search) and predicate(row, filters)
    ]


def _filter_sheets(
    original: Sequence[Sheet],
    filters: Sequence[str],
    global_search: str,
    predicate: RowPredicate,
) -> Optional[List[Sheet]]:
    if is_filter_state_empty(filters, global_search):
        return None

    filtered: List[Sheet] = []
    for sheet in original:
        kept = _kept_row_indices(sheet, filters, global_search, predicate)
        rows = [list(sheet.rows[i]) for i in kept]
        filtered.append(Sheet(name=sheet.name, rows=rows))
        logger.debug(f"Sheet '{sheet.name}': kept {max(len(rows) - 1, 0)} of {max(len(sheet.rows) - 1, 0)} rows")
    return filtered


def apply_filters(
    original: Sequence[Sheet],
    filters: Sequence[str],
    global_search: str = "",
) -> Optional[List[Sheet]]:
    """Filter every sheet in per-column mode.

    Returns None when all filters and the trimmed global search are empty,
    meaning "reset to the baseline", not "filter to nothing".
    """
    return _filter_sheets(original, filters, global_search, matches_column_filters)


def apply_global_filters(
    original: Sequence[Sheet],
    filters: Sequence[str],
    global_search: str = "",
) -> Optional[List[Sheet]]:
    """Filter every sheet in any-column mode. Same reset rule as apply_filters."""
    return _filter_sheets(original, filters, global_search, matches_any_filter)


def filter_workbook(original: Sequence[Sheet], state: FilterState) -> Optional[List[Sheet]]:
    """Dispatch on the filter state's mode."""
    return _filter_sheets(original, state.filters, state.global_search, _predicate_for(state.mode))


def copy_sheets(original: Sequence[Sheet]) -> List[Sheet]:
    return [sheet.model_copy(deep=True) for sheet in original]


def clear_filters(original: Sequence[Sheet], header_length: int) -> Tuple[FilterState, List[Sheet]]:
    """Reset the filter state and return a fresh copy of the baseline."""
    return FilterState.empty(header_length), copy_sheets(original)


def filtered_row_indices(sheet: Sheet, state: FilterState) -> List[int]:
    """Original row index of each row the filtered view of ``sheet`` shows.

    Position ``i`` of the result maps displayed row ``i`` back to the
    baseline, so edits made against the view land on the right row.
    """
    if is_filter_state_empty(state.filters, state.global_search):
        return list(range(len(sheet.rows)))
    return _kept_row_indices(sheet, state.filters, state.global_search, _predicate_for(state.mode))
