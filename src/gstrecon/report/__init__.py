"""
Report package: summaries, JSON documents and XLSX rendering of match results.
"""
from .summary import NO_MISMATCHES, mismatch_summary, result_summary, result_to_dict
from .workbook import ExportOptions, build_workbook, write_workbook

__all__ = [
    "NO_MISMATCHES",
    "ExportOptions",
    "build_workbook",
    "mismatch_summary",
    "result_summary",
    "result_to_dict",
    "write_workbook",
]
