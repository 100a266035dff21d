"""
Run: load both input files, reconcile them and write the run artefacts.

A run folder holds:
- result.json: the full match result
- reconciliation.xlsx: the three-sheet report
- run_meta.json: inputs, options, counts and output paths
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from ..ingestion.loaders import load_dataset
from ..reconcile.engine import build_options, reconcile
from ..reconcile.models import Dataset, MatchResult, ReconcileOptions
from ..reconcile.suggest import suggest_setup
from ..report.summary import mismatch_summary, result_summary, result_to_dict
from ..report.workbook import ExportOptions, build_workbook, write_workbook
from ..utils.json_utils import write_json
from ..utils.run_id import get_run_dir, utc_now_iso

console = Console()


@dataclass
class RunResult:
    run_id: str
    run_dir: Path
    result: MatchResult
    options: ReconcileOptions
    labels: Dict[str, str]
    counts: Dict[str, int]
    output_files: Dict[str, str] = field(default_factory=dict)
    suggested: bool = False


def export_options_from_config(cfg: Dict[str, Any]) -> ExportOptions:
    known = {f.name for f in fields(ExportOptions)}
    export_cfg = cfg.get("export", {})
    unknown = sorted(set(export_cfg) - known)
    if unknown:
        console.print(f"[yellow]Ignoring unknown export options:[/yellow] {', '.join(unknown)}")
    return ExportOptions(**{k: v for k, v in export_cfg.items() if k in known})


def resolve_options(
    source: Dataset,
    target: Dataset,
    recon_cfg: Dict[str, Any],
    threshold: Optional[int] = None,
) -> tuple[Dict[str, Any], bool]:
    """
    Reconcile options from the config, falling back to suggestions.

    An empty mapping is replaced by the suggested mapping; empty key fields by
    the suggested key fields. Returns the raw options and whether a suggestion was used.
    """
    mapping: Dict[str, str] = dict(recon_cfg.get("mapping") or {})
    key_fields: List[str] = list(recon_cfg.get("key_fields") or [])
    suggested = False

    if not mapping or not key_fields:
        suggested_mapping, suggested_keys = suggest_setup(list(source.headers), list(target.headers))
        if not mapping:
            mapping = suggested_mapping
            suggested = True
        if not key_fields:
            key_fields = [k for k in suggested_keys if k in mapping]
            suggested = True

    return (
        {
            "threshold": threshold if threshold is not None else recon_cfg.get("threshold", 90),
            "key_fields": key_fields,
            "mapped_fields": mapping,
        },
        suggested,
    )


def run_reconciliation(
    cfg: Dict[str, Any],
    run_id: str,
    source_path: Path,
    target_path: Path,
    threshold: Optional[int] = None,
) -> RunResult:
    """
    Execute one reconciliation run.

    Args:
        cfg: Loaded configuration (see config.load_config)
        run_id: Folder name for this run under io.runs_dir
        source_path: Source file (CSV/XLSX)
        target_path: Target file (CSV/XLSX)
        threshold: Optional override of reconcile.threshold

    Returns:
        RunResult with the match result and written file paths
    """
    labels = cfg["labels"]
    io_cfg = cfg["io"]

    source = load_dataset(source_path, sheet=io_cfg.get("source_sheet"))
    target = load_dataset(target_path, sheet=io_cfg.get("target_sheet"))
    console.print(
        f"[cyan]Loaded[/cyan]: {labels['source']}={len(source)} records ({len(source.headers)} columns), "
        f"{labels['target']}={len(target)} records ({len(target.headers)} columns)"
    )

    raw_options, suggested = resolve_options(source, target, cfg["reconcile"], threshold)
    options = build_options(raw_options)
    if suggested:
        console.print("[yellow]Using suggested field mapping / key fields[/yellow]")
    for src_field, tgt_field in options.mapped_fields.items():
        marker = " [bold](key)[/bold]" if src_field in options.key_fields else ""
        console.print(f"  {src_field} -> {tgt_field}{marker}")
    console.print(f"[cyan]Reconcile[/cyan]: threshold={options.threshold}")

    result = reconcile(source, target, options)
    counts = result_summary(result)

    run_dir = get_run_dir(io_cfg["runs_dir"], run_id)
    result_path = write_json(run_dir / "result.json", result_to_dict(result, labels))
    xlsx_path = write_workbook(
        build_workbook(result, labels, export_options_from_config(cfg)),
        run_dir / "reconciliation.xlsx",
    )
    output_files = {"result": str(result_path), "workbook": str(xlsx_path)}

    meta_path = run_dir / "run_meta.json"
    write_json(
        meta_path,
        {
            "run_id": run_id,
            "created_at": utc_now_iso(),
            "inputs": {"source": str(source_path), "target": str(target_path)},
            "labels": labels,
            "options": options.model_dump(),
            "suggested_mapping": suggested,
            "counts": counts,
            "output_files": {**output_files, "meta": str(meta_path)},
        },
    )
    output_files["meta"] = str(meta_path)

    console.print(
        f"[green]Reconciliation complete[/green]: common={counts['common']} "
        f"(mismatched={counts['mismatched']}) only_in_source={counts['only_in_source']} "
        f"only_in_target={counts['only_in_target']}"
    )

    return RunResult(
        run_id=run_id,
        run_dir=run_dir,
        result=result,
        options=options,
        labels=labels,
        counts=counts,
        output_files=output_files,
        suggested=suggested,
    )


def print_reconciliation_report(run: RunResult, limit: int = 10) -> None:
    """Print a formatted reconciliation report."""
    labels = run.labels
    counts = run.counts

    console.print()
    console.print("=" * 60)
    console.print("              RECONCILIATION REPORT")
    console.print("=" * 60)
    console.print()

    console.print(f"Common entries:           {counts['common']}")
    console.print(f"  fully matched:          {counts['fully_matched']}")
    console.print(f"  with mismatches:        {counts['mismatched']}")
    console.print(f"Only in {labels['source']}:".ljust(26) + f"{counts['only_in_source']}")
    console.print(f"Only in {labels['target']}:".ljust(26) + f"{counts['only_in_target']}")
    console.print()

    mismatched = run.result.mismatched
    if mismatched:
        console.print("-" * 60)
        console.print(f"MISMATCHES ({len(mismatched)}):")
        console.print("-" * 60)
        for i, pair in enumerate(mismatched[:limit], 1):
            keys = ", ".join(str(pair.source.get(k)) for k in run.options.key_fields)
            console.print(f"  [{i}] {keys}")
            console.print(f"      {mismatch_summary(pair.mismatches)}", markup=False)
        if len(mismatched) > limit:
            console.print(f"  ... and {len(mismatched) - limit} more")
        console.print()

    console.print("=" * 60)
    for name, path in run.output_files.items():
        console.print(f"[bold]{name}:[/bold] {path}")
