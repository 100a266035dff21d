"""
Workbook: render a reconciliation result as a three-sheet XLSX report.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..reconcile.models import MatchedPair, MatchResult, Record
from .summary import mismatch_summary

SHEET_TITLE_MAX = 31
MISMATCH_FILL = PatternFill(start_color="FFF4CCCC", end_color="FFF4CCCC", fill_type="solid")
HEADER_FONT = Font(bold=True)
MIN_WIDTH = 8
MAX_WIDTH = 60
SUMMARY_COLUMN = "Mismatch Summary"


@dataclass
class ExportOptions:
    include_headers: bool = True
    highlight_mismatches: bool = True
    auto_width: bool = True
    freeze_header: bool = True


def _sheet_title(title: str) -> str:
    # Excel rejects these characters in sheet names
    for ch in "[]:*?/\\":
        title = title.replace(ch, " ")
    return title[:SHEET_TITLE_MAX]


def _collect_columns(records: Iterable[Record]) -> List[str]:
    """Ordered union of the keys of all records."""
    seen: Dict[str, None] = {}
    for rec in records:
        for key in rec.keys():
            seen.setdefault(key, None)
    return list(seen)


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool, datetime, date, time)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def _apply_formatting(ws: Worksheet, options: ExportOptions) -> None:
    if options.include_headers:
        for cell in ws[1]:
            cell.font = HEADER_FONT
        if options.freeze_header:
            ws.freeze_panes = "A2"

    if options.auto_width:
        widths: Dict[int, int] = {}
        for row in ws.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                length = len(str(cell.value))
                widths[cell.column] = max(widths.get(cell.column, 0), length)
        for col, length in widths.items():
            ws.column_dimensions[get_column_letter(col)].width = max(MIN_WIDTH, min(MAX_WIDTH, length + 2))


def _write_table(
    ws: Worksheet,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    options: ExportOptions,
) -> None:
    if options.include_headers:
        ws.append(list(columns))
    for row in rows:
        ws.append([_cell_value(v) for v in row])


def _write_common_sheet(
    ws: Worksheet,
    pairs: Sequence[MatchedPair],
    source_label: str,
    target_label: str,
    options: ExportOptions,
) -> None:
    if not pairs:
        ws.append(["No common entries found"])
        return

    source_cols = _collect_columns(p.source for p in pairs)
    target_cols = _collect_columns(p.target for p in pairs)
    columns = (
        [f"{source_label}: {c}" for c in source_cols]
        + [f"{target_label}: {c}" for c in target_cols]
        + [SUMMARY_COLUMN]
    )
    rows = (
        [p.source.get(c) for c in source_cols]
        + [p.target.get(c) for c in target_cols]
        + [mismatch_summary(p.mismatches)]
        for p in pairs
    )
    _write_table(ws, columns, rows, options)

    if options.highlight_mismatches:
        first_data_row = 2 if options.include_headers else 1
        for offset, pair in enumerate(pairs):
            if not pair.mismatches:
                continue
            for cell in ws[first_data_row + offset]:
                cell.fill = MISMATCH_FILL

    _apply_formatting(ws, options)


def _write_leftover_sheet(
    ws: Worksheet,
    records: Sequence[Record],
    label: str,
    options: ExportOptions,
) -> None:
    if not records:
        ws.append([f"No entries found only in {label}"])
        return
    columns = _collect_columns(records)
    _write_table(ws, columns, ([rec.get(c) for c in columns] for rec in records), options)
    _apply_formatting(ws, options)


def build_workbook(
    result: MatchResult,
    labels: Optional[Mapping[str, str]] = None,
    options: Optional[ExportOptions] = None,
) -> Workbook:
    """
    Build the report workbook.

    Sheets, in order: common entries with a mismatch summary column, records
    only in the source, records only in the target.
    """
    labels = dict(labels or {})
    source_label = labels.get("source", "Source")
    target_label = labels.get("target", "Target")
    options = options or ExportOptions()

    wb = Workbook()
    ws_common = wb.active
    ws_common.title = _sheet_title("✓ Common Entries")
    _write_common_sheet(ws_common, result.common, source_label, target_label, options)

    ws_source = wb.create_sheet(_sheet_title(f"+ Only in {source_label}"))
    _write_leftover_sheet(ws_source, result.only_in_source, source_label, options)

    ws_target = wb.create_sheet(_sheet_title(f"- Only in {target_label}"))
    _write_leftover_sheet(ws_target, result.only_in_target, target_label, options)

    return wb


def write_workbook(wb: Workbook, path: Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    wb.save(p)
    return p
