from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from .config import ConfigError, load_config, resolve_input
from .ingestion.loaders import IngestionError, load_dataset
from .pipeline.run import print_reconciliation_report, run_reconciliation
from .reconcile.engine import ConfigurationError
from .reconcile.suggest import suggest_setup
from .utils.run_id import new_run_id

console = Console()


def _load_config_or_exit(config_path: Path) -> Dict[str, Any]:
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(2)


def cmd_suggest(args: argparse.Namespace) -> int:
    try:
        source = load_dataset(Path(args.source), sheet=args.source_sheet)
        target = load_dataset(Path(args.target), sheet=args.target_sheet)
    except (FileNotFoundError, IngestionError) as e:
        console.print(f"[red]Input error:[/red] {e}")
        return 2

    mapping, key_fields = suggest_setup(list(source.headers), list(target.headers))

    table = Table(title="Suggested field mapping")
    table.add_column("Source field")
    table.add_column("Target field")
    table.add_column("Key", justify="center")
    for src_field, tgt_field in mapping.items():
        table.add_row(src_field, tgt_field, "yes" if src_field in key_fields else "")
    console.print(table)

    unmapped = [h for h in source.headers if h not in mapping]
    if unmapped:
        console.print(f"[yellow]Unmapped source fields:[/yellow] {', '.join(unmapped)}")
    if not key_fields:
        console.print("[yellow]No key field suggested; set reconcile.key_fields in the config.[/yellow]")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config_path = Path(args.config or "config.yml")
    cfg = _load_config_or_exit(config_path)

    run_id = args.run_id or new_run_id()
    source_path = resolve_input(cfg, "source", args.source)
    target_path = resolve_input(cfg, "target", args.target)

    try:
        run = run_reconciliation(cfg, run_id, source_path, target_path, threshold=args.threshold)
    except (FileNotFoundError, IngestionError) as e:
        console.print(f"[red]Input error:[/red] {e}")
        return 2
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 2

    console.print(f"[bold green]Run ID:[/bold green] {run.run_id}")
    console.print(f"[bold]Run directory:[/bold] {run.run_dir}")
    print_reconciliation_report(run)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gstrecon",
        description="Reconcile a GSTR-2B statement against a purchase register.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # suggest
    p_suggest = sub.add_parser("suggest", help="Suggest a field mapping and key fields for two files")
    p_suggest.add_argument("source", type=str, help="Source file (CSV/XLSX)")
    p_suggest.add_argument("target", type=str, help="Target file (CSV/XLSX)")
    p_suggest.add_argument("--source-sheet", type=str, help="Worksheet to read from the source workbook")
    p_suggest.add_argument("--target-sheet", type=str, help="Worksheet to read from the target workbook")
    p_suggest.set_defaults(func=cmd_suggest)

    # run
    p_run = sub.add_parser("run", help="Reconcile two files and write the run folder")
    p_run.add_argument("--config", type=str, default="config.yml", help="Path to config.yml")
    p_run.add_argument("--source", type=str, help="Override io.source_path")
    p_run.add_argument("--target", type=str, help="Override io.target_path")
    p_run.add_argument("--threshold", type=int, help="Override reconcile.threshold (0-100)")
    p_run.add_argument("--run-id", type=str, help="Provide a specific run id")
    p_run.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
