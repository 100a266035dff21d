from __future__ import annotations

import csv
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..reconcile.models import Dataset

CSV_SUFFIXES = {".csv"}
XLSX_SUFFIXES = {".xlsx", ".xlsm"}

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


class IngestionError(ValueError):
    """Raised when an input file cannot be turned into a dataset."""


def coerce_cell(value: Any) -> Any:
    """Empty text becomes None and numeric-looking text becomes int/float."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    # Leading zeros carry meaning in identifiers ("007"), keep them as text
    if _INT_RE.match(text):
        digits = text.lstrip("+-")
        if len(digits) > 1 and digits.startswith("0"):
            return text
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return text


def normalize_headers(raw: Sequence[Any]) -> List[str]:
    """Name blank header cells and suffix duplicates so headers stay distinct."""
    headers: List[str] = []
    seen: Dict[str, int] = {}
    for i, cell in enumerate(raw, 1):
        name = str(cell).strip() if cell is not None else ""
        if not name:
            name = f"column_{i}"
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            name = candidate
        seen.setdefault(name, 0)
        headers.append(name)
    return headers


def _is_blank_row(row: Iterable[Any]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in row)


def _rows_to_records(headers: List[str], rows: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for row in rows:
        if _is_blank_row(row):
            continue
        values = list(row)[: len(headers)]
        values += [None] * (len(headers) - len(values))
        records.append(dict(zip(headers, values)))
    return records


def load_csv(path: Path) -> Dataset:
    p = Path(path)
    with p.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        try:
            raw_headers = next(reader)
        except StopIteration:
            raise IngestionError(f"CSV file has no header row: {p}") from None
        except csv.Error as e:
            raise IngestionError(f"Failed to parse CSV at {p}: {e}") from e
        if _is_blank_row(raw_headers):
            raise IngestionError(f"CSV file has no header row: {p}")
        headers = normalize_headers(raw_headers)
        try:
            rows = [[coerce_cell(v) for v in row] for row in reader]
        except csv.Error as e:
            raise IngestionError(f"Failed to parse CSV at {p}: {e}") from e
    return Dataset.from_records(_rows_to_records(headers, rows), headers, name=p.name)


def load_xlsx(path: Path, sheet: Optional[str] = None) -> Dataset:
    p = Path(path)
    try:
        wb = load_workbook(p, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise IngestionError(f"Failed to open workbook at {p}: {e}") from e
    try:
        if sheet is not None:
            if sheet not in wb.sheetnames:
                raise IngestionError(f"Sheet {sheet!r} not found in {p} (have: {wb.sheetnames})")
            ws = wb[sheet]
        else:
            ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        raw_headers = next(rows, None)
        if raw_headers is None or _is_blank_row(raw_headers):
            raise IngestionError(f"Worksheet {ws.title!r} in {p} has no header row")
        headers = normalize_headers(raw_headers)
        records = _rows_to_records(headers, ([coerce_cell(v) for v in row] for row in rows))
    finally:
        wb.close()
    return Dataset.from_records(records, headers, name=p.name)


def load_dataset(path: str | Path, sheet: Optional[str] = None) -> Dataset:
    """
    Load a CSV or XLSX file into a Dataset.

    The first row is the header row; fully blank rows are skipped.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {p}")
    suffix = p.suffix.lower()
    if suffix in CSV_SUFFIXES:
        return load_csv(p)
    if suffix in XLSX_SUFFIXES:
        return load_xlsx(p, sheet=sheet)
    raise IngestionError(
        f"Unsupported file type {p.suffix!r} for {p}; expected one of "
        f"{sorted(CSV_SUFFIXES | XLSX_SUFFIXES)}"
    )
