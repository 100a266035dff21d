from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from openpyxl import load_workbook

from gstrecon.cli import main
from gstrecon.utils.json_utils import read_json

FIXTURES = Path(__file__).parent / "fixtures"


def _write_config(tmp_path: Path, **reconcile) -> Path:
    cfg = yaml.safe_load((FIXTURES / "config.yml").read_text(encoding="utf-8"))
    cfg["io"] = {
        "source_path": str(FIXTURES / "gstr2b.csv"),
        "target_path": str(FIXTURES / "purchase_register.csv"),
        "runs_dir": str(tmp_path / "runs"),
    }
    cfg["reconcile"].update(reconcile)
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return path


def test_run_writes_outputs(tmp_path: Path):
    config = _write_config(tmp_path)
    assert main(["run", "--config", str(config), "--run-id", "t1"]) == 0

    run_dir = tmp_path / "runs" / "t1"
    result = read_json(run_dir / "result.json")
    assert result["counts"] == {
        "common": 2,
        "mismatched": 1,
        "fully_matched": 1,
        "only_in_source": 1,
        "only_in_target": 1,
    }
    summaries = [p["mismatch_summary"] for p in result["common"]]
    assert summaries == ["No mismatches", "Taxable Value: 2500 vs 2600"]
    assert result["only_in_source"][0]["Invoice Number"] == "INV-003"
    assert result["only_in_target"][0]["Bill No"] == "PR-999"

    meta = read_json(run_dir / "run_meta.json")
    assert meta["run_id"] == "t1"
    assert meta["options"]["threshold"] == 90
    assert meta["suggested_mapping"] is False

    wb = load_workbook(run_dir / "reconciliation.xlsx")
    assert wb.sheetnames == ["✓ Common Entries", "+ Only in GSTR-2B", "- Only in Purchase Register"]


def test_run_threshold_override_is_stricter(tmp_path: Path):
    config = _write_config(tmp_path)
    assert main(["run", "--config", str(config), "--run-id", "t2", "--threshold", "100"]) == 0
    result = read_json(tmp_path / "runs" / "t2" / "result.json")
    # "INV-001" vs "INV 001" no longer qualifies
    assert result["counts"]["common"] == 1
    assert result["counts"]["only_in_source"] == 2


def test_run_with_suggested_mapping(tmp_path: Path):
    config = _write_config(tmp_path, mapping={}, key_fields=[])
    assert main(["run", "--config", str(config), "--run-id", "t3"]) == 0
    meta = read_json(tmp_path / "runs" / "t3" / "run_meta.json")
    assert meta["suggested_mapping"] is True
    assert "GSTIN of Supplier" in meta["options"]["key_fields"]


def test_run_invalid_threshold_returns_2(tmp_path: Path):
    config = _write_config(tmp_path)
    assert main(["run", "--config", str(config), "--threshold", "150"]) == 2


def test_run_missing_input_returns_2(tmp_path: Path):
    config = _write_config(tmp_path)
    assert main(["run", "--config", str(config), "--source", str(tmp_path / "nope.csv")]) == 2


def test_run_missing_config_exits(tmp_path: Path):
    with pytest.raises(SystemExit) as exc:
        main(["run", "--config", str(tmp_path / "missing.yml")])
    assert exc.value.code == 2


def test_suggest_command():
    assert main(["suggest", str(FIXTURES / "gstr2b.csv"), str(FIXTURES / "purchase_register.csv")]) == 0
