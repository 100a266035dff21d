from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..reconcile.compare import stringify
from ..reconcile.models import FieldMismatch, MatchedPair, MatchResult

NO_MISMATCHES = "No mismatches"


def mismatch_summary(mismatches: Iterable[FieldMismatch]) -> str:
    """
    Render mismatches as "<field>: <source> vs <target>" joined with "; ".

    A pair without mismatches renders as the NO_MISMATCHES sentinel.
    """
    parts = [
        f"{m.field}: {stringify(m.source_value)} vs {stringify(m.target_value)}"
        for m in mismatches
    ]
    return "; ".join(parts) or NO_MISMATCHES


def result_summary(result: MatchResult) -> Dict[str, int]:
    mismatched = len(result.mismatched)
    return {
        "common": len(result.common),
        "mismatched": mismatched,
        "fully_matched": len(result.common) - mismatched,
        "only_in_source": len(result.only_in_source),
        "only_in_target": len(result.only_in_target),
    }


def _json_safe(obj: Any) -> Any:
    """
    Recursively convert objects to JSON-serializable forms.
    - date/datetime/time -> ISO strings
    - Decimal -> float
    - mappings/sequences -> walk recursively
    """
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Mapping):
        return {str(k): _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def _pair_to_dict(pair: MatchedPair) -> Dict[str, Any]:
    return {
        "source_index": pair.source_index,
        "target_index": pair.target_index,
        "score": round(pair.score, 6),
        "source": _json_safe(pair.source),
        "target": _json_safe(pair.target),
        "mismatches": [
            {
                "field": m.field,
                "source_value": _json_safe(m.source_value),
                "target_value": _json_safe(m.target_value),
            }
            for m in pair.mismatches
        ],
        "mismatch_summary": mismatch_summary(pair.mismatches),
    }


def result_to_dict(result: MatchResult, labels: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """JSON-safe document of a reconciliation result."""
    labels = dict(labels or {})
    common: List[Dict[str, Any]] = [_pair_to_dict(p) for p in result.common]
    return {
        "labels": {
            "source": labels.get("source", "source"),
            "target": labels.get("target", "target"),
        },
        "counts": result_summary(result),
        "common": common,
        "only_in_source": _json_safe(list(result.only_in_source)),
        "only_in_target": _json_safe(list(result.only_in_target)),
    }
