from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from gstrecon.ingestion.loaders import IngestionError, coerce_cell, load_dataset, normalize_headers

FIXTURES = Path(__file__).parent / "fixtures"


def test_load_csv_fixture():
    ds = load_dataset(FIXTURES / "gstr2b.csv")
    assert ds.headers == (
        "GSTIN of Supplier",
        "Invoice Number",
        "Invoice Date",
        "Taxable Value",
        "Integrated Tax",
        "Trade Name",
    )
    assert len(ds) == 3
    first = ds.records[0]
    assert first["Invoice Number"] == "INV-001"
    assert first["Taxable Value"] == 1000
    assert first["Invoice Date"] == "2024-04-02"
    assert ds.name == "gstr2b.csv"


def test_csv_float_and_blank_rows(tmp_path: Path):
    p = tmp_path / "pr.csv"
    p.write_text("﻿Bill No,Amount,Note\nB-1,1000.50,\n,,\nB-2,007,x\n", encoding="utf-8")
    ds = load_dataset(p)
    assert ds.headers == ("Bill No", "Amount", "Note")
    assert len(ds) == 2
    assert ds.records[0] == {"Bill No": "B-1", "Amount": 1000.5, "Note": None}
    # leading zeros stay text
    assert ds.records[1]["Amount"] == "007"


def test_csv_short_rows_are_padded(tmp_path: Path):
    p = tmp_path / "short.csv"
    p.write_text("a,b,c\n1,2\n", encoding="utf-8")
    ds = load_dataset(p)
    assert ds.records[0] == {"a": 1, "b": 2, "c": None}


def test_empty_csv_raises(tmp_path: Path):
    p = tmp_path / "empty.csv"
    p.write_text("", encoding="utf-8")
    with pytest.raises(IngestionError):
        load_dataset(p)


def test_normalize_headers():
    assert normalize_headers(["Amount", None, "Amount", " ", "Amount"]) == [
        "Amount",
        "column_2",
        "Amount_1",
        "column_4",
        "Amount_2",
    ]


def test_coerce_cell():
    assert coerce_cell("  ") is None
    assert coerce_cell("42") == 42
    assert coerce_cell("-3.5") == -3.5
    assert coerce_cell("0") == 0
    assert coerce_cell("29ABCDE1234F1Z5") == "29ABCDE1234F1Z5"
    assert coerce_cell(12.0) == 12.0


def _write_workbook(path: Path, sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    wb.save(path)


def test_load_xlsx_first_sheet(tmp_path: Path):
    p = tmp_path / "gstr2b.xlsx"
    _write_workbook(
        p,
        {
            "B2B": [
                ["GSTIN", "Invoice", "Date", "Value"],
                ["29ABCDE1234F1Z5", "INV-001", datetime(2024, 4, 2), 1000],
                [None, None, None, None],
                ["27PQRSX5678K1Z2", "INV-002", datetime(2024, 4, 5), 2500.75],
            ],
            "Other": [["x"], [1]],
        },
    )
    ds = load_dataset(p)
    assert ds.headers == ("GSTIN", "Invoice", "Date", "Value")
    assert len(ds) == 2
    assert ds.records[0]["Date"] == datetime(2024, 4, 2)
    assert ds.records[1]["Value"] == 2500.75


def test_load_xlsx_named_sheet(tmp_path: Path):
    p = tmp_path / "book.xlsx"
    _write_workbook(p, {"First": [["a"], [1]], "Second": [["b"], [2], [3]]})
    ds = load_dataset(p, sheet="Second")
    assert ds.headers == ("b",)
    assert [r["b"] for r in ds.records] == [2, 3]

    with pytest.raises(IngestionError):
        load_dataset(p, sheet="Missing")


def test_unreadable_workbook(tmp_path: Path):
    p = tmp_path / "broken.xlsx"
    p.write_bytes(b"not a zip file")
    with pytest.raises(IngestionError):
        load_dataset(p)


def test_unsupported_and_missing_files(tmp_path: Path):
    p = tmp_path / "data.txt"
    p.write_text("a,b\n1,2\n", encoding="utf-8")
    with pytest.raises(IngestionError):
        load_dataset(p)
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "nope.csv")
