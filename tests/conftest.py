"""Shared fixtures for sheet editor tests."""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path (tests/ -> project root)
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from services.sheet_engine import Sheet, Workbook, matrices_to_xlsx


@pytest.fixture
def ab_sheet() -> Sheet:
    return Sheet(name="Sheet1", rows=[["A", "B"], ["1", "2"], ["3", "4"]])


@pytest.fixture
def people_workbook() -> Workbook:
    return Workbook(
        filename="people.xlsx",
        sheets=[
            Sheet(name="People", rows=[
                ["Name", "Age", "Joined"],
                ["Alice", 34, "2021-03-04"],
                ["Bob", 27, "2020-11-30"],
                ["Carol", None, "2019-01-15"],
            ]),
            Sheet(name="Cities", rows=[
                ["City", "Country"],
                ["Paris", "France"],
                ["Lyon", "France"],
                ["Berlin", "Germany"],
            ]),
        ],
    )


@pytest.fixture
def people_xlsx(people_workbook: Workbook) -> bytes:
    return matrices_to_xlsx([(s.name, s.rows) for s in people_workbook.sheets])


@pytest.fixture
def dated_sheet() -> Sheet:
    return Sheet(name="Events", rows=[
        ["Event", "When"],
        ["Launch", datetime(2024, 5, 1, 9, 30)],
    ])
