"""
Suggest: keyword-based field mapping and key-field proposals from two header lists.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

# (source keywords, target keywords), tried in declaration order
KEYWORD_GROUPS: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("gstin", "gst"), ("gstin", "gst")),
    (("invoice", "bill"), ("invoice", "bill")),
    (("date",), ("date",)),
    (("taxable", "value"), ("taxable", "value")),
    (("amount", "total"), ("amount", "total")),
    (("igst",), ("igst",)),
    (("cgst",), ("cgst",)),
    (("sgst",), ("sgst",)),
    (("supplier", "vendor"), ("supplier", "vendor")),
    (("party",), ("party",)),
]

KEY_FIELD_PATTERNS = [
    re.compile(r"invoice", re.IGNORECASE),
    re.compile(r"bill", re.IGNORECASE),
    re.compile(r"gstin", re.IGNORECASE),
    re.compile(r"gst.*no", re.IGNORECASE),
    re.compile(r"^gst$", re.IGNORECASE),
]


def _contains_any(header: str, keywords: Sequence[str]) -> bool:
    lowered = header.lower()
    return any(k.lower() in lowered for k in keywords)


def _first_target(target_headers: Sequence[str], keywords: Sequence[str]) -> Optional[str]:
    for header in target_headers:
        if _contains_any(header, keywords):
            return header
    return None


def suggest_mapping(source_headers: Sequence[str], target_headers: Sequence[str]) -> Dict[str, str]:
    """
    Propose a partial source -> target field mapping.

    For each source header the first keyword group it matches is tried; the
    first target header carrying one of that group's target keywords wins.
    When a group finds no target header the next group is tried. The result
    is not checked for injectivity; two source headers may share a target.
    """
    mapping: Dict[str, str] = {}
    for header in source_headers:
        for source_keywords, target_keywords in KEYWORD_GROUPS:
            if not _contains_any(header, source_keywords):
                continue
            target = _first_target(target_headers, target_keywords)
            if target is not None:
                mapping[header] = target
                break
    return mapping


def is_likely_key_field(name: str) -> bool:
    return any(p.search(name) for p in KEY_FIELD_PATTERNS)


def suggest_key_fields(mapping: Dict[str, str]) -> List[str]:
    """Identifier-like source fields, at most one per target field."""
    keys: List[str] = []
    claimed = set()
    for source, target in mapping.items():
        if is_likely_key_field(source) and target not in claimed:
            keys.append(source)
            claimed.add(target)
    return keys


def suggest_setup(
    source_headers: Sequence[str],
    target_headers: Sequence[str],
) -> Tuple[Dict[str, str], List[str]]:
    """Suggested mapping plus the mapped fields that look like identifiers."""
    mapping = suggest_mapping(source_headers, target_headers)
    return mapping, suggest_key_fields(mapping)
