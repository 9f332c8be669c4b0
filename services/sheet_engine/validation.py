"""Cell value validation against an inferred column type.

This is a gate, not a coercion: values are accepted or rejected as
entered and never reformatted. The date rule defined here is the one
used by type inference as well.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as dateparser

from .errors import InvalidCellEditError
from .schemas import ColumnType


logger = logging.getLogger(__name__)

# Bare numbers ("42", "-3.5", "1e3") are never read as dates
_NUMERIC_TEXT = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# Two defaults differing in year and month; a real date resolves the same under both
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def is_valid_date(value: Any) -> bool:
    """Return True if a value is a calendar date under the canonical rule.

    Text must name at least a year and a month. Parsing twice against
    different defaults exposes fields dateutil filled in on its own, which
    rules out bare weekdays, month names, ordinals and times of day.
    """
    if isinstance(value, (datetime, date)):
        return True
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or _NUMERIC_TEXT.match(text):
        return False
    try:
        first, second = (dateparser.parse(text, default=d) for d in _FILL_DEFAULTS)
    except (ValueError, OverflowError):
        return False
    return (first.year, first.month) == (second.year, second.month)


def is_valid_number(value: Any) -> bool:
    """Return True if the trimmed text is a complete, finite number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    text = str(value).strip() if value is not None else ""
    if not _NUMERIC_TEXT.match(text):
        return False
    return math.isfinite(float(text))


def is_valid_value(value: Any, column_type: ColumnType) -> bool:
    if column_type == ColumnType.NUMBER:
        return is_valid_number(value)
    if column_type == ColumnType.DATE:
        return is_valid_date(value)
    return True


def validate_cell_edit(value: Any, column_type: ColumnType) -> Any:
    """Return ``value`` unchanged, or raise InvalidCellEditError."""
    if not is_valid_value(value, column_type):
        logger.warning(f"Rejected {value!r} for {ColumnType(column_type).value} column")
        raise InvalidCellEditError(value, column_type)
    return value
