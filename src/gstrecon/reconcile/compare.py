"""
Compare: field-level value comparison with a relative numeric tolerance.
"""
from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .models import FieldMismatch, Record

# 0.1% of the source value
RELATIVE_TOLERANCE = 0.001


def is_numeric(value: Any) -> bool:
    # bool is an int subclass but never an amount
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def stringify(value: Any) -> str:
    """
    Render a cell value as text for textual comparison and key matching.

    Integral floats drop their trailing ".0" so a 1000.0 read from a workbook
    equals the "1000" typed into a CSV.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def compare_field(field: str, source_value: Any, target_value: Any) -> Optional[FieldMismatch]:
    """
    Compare one mapped field of a matched pair.

    Both numeric: mismatch iff |source - target| > |source| * 0.001, so a zero
    source value tolerates no deviation at all. Anything else is compared as text.
    """
    if is_numeric(source_value) and is_numeric(target_value):
        s, t = float(source_value), float(target_value)
        tolerance = abs(s) * RELATIVE_TOLERANCE
        if abs(s - t) > tolerance:
            return FieldMismatch(field=field, source_value=source_value, target_value=target_value)
        return None

    if stringify(source_value) != stringify(target_value):
        return FieldMismatch(field=field, source_value=source_value, target_value=target_value)
    return None


def compare_records(
    source: Record,
    target: Record,
    mapped_fields: Mapping[str, str],
    key_fields: Iterable[str],
) -> List[FieldMismatch]:
    """Run compare_field over every mapped, non-key field in mapping order."""
    keys = set(key_fields)
    mismatches: List[FieldMismatch] = []
    for source_field, target_field in mapped_fields.items():
        if source_field in keys:
            continue
        mismatch = compare_field(source_field, source.get(source_field), target.get(target_field))
        if mismatch is not None:
            mismatches.append(mismatch)
    return mismatches
