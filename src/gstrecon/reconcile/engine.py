"""
Engine: validate options, match the two datasets and collect field mismatches.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Union

from pydantic import ValidationError

from .compare import compare_records
from .matcher import FuzzyIndex, match_records
from .models import Dataset, MatchedPair, MatchResult, ReconcileOptions


class ConfigurationError(ValueError):
    """Raised when reconciliation options are inconsistent with each other or the data."""


def build_options(options: Union[ReconcileOptions, Mapping[str, Any]]) -> ReconcileOptions:
    if isinstance(options, ReconcileOptions):
        return options
    try:
        return ReconcileOptions.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(_first_error(e)) from e


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    msg = err.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


def validate_options(source: Dataset, target: Dataset, options: ReconcileOptions) -> None:
    """
    Check options against the datasets before any matching starts.

    Field names in the mapping must exist in the declared headers of every
    non-empty dataset; key fields must be mapped.
    """
    if not options.key_fields:
        raise ConfigurationError("no key fields")
    if not 0 <= options.threshold <= 100:
        raise ConfigurationError(f"threshold must be within [0, 100], got {options.threshold}")

    unmapped = [k for k in options.key_fields if k not in options.mapped_fields]
    if unmapped:
        raise ConfigurationError(f"key fields are not mapped: {', '.join(unmapped)}")

    key_targets = [options.mapped_fields[k] for k in options.key_fields]
    shared = sorted({t for t in key_targets if key_targets.count(t) > 1})
    if shared:
        raise ConfigurationError(f"several key fields map to the same target field: {', '.join(shared)}")

    # An empty dataset may come without declared headers; there is nothing to check
    source_headers = set(source.headers)
    target_headers = set(target.headers)
    missing_source = [f for f in options.mapped_fields if f not in source_headers]
    if missing_source and source.records:
        raise ConfigurationError(
            f"mapped fields absent from source headers: {', '.join(missing_source)}"
        )
    missing_target = [f for f in options.mapped_fields.values() if f not in target_headers]
    if missing_target and target.records:
        raise ConfigurationError(
            f"mapped fields absent from target headers: {', '.join(missing_target)}"
        )


def reconcile(
    source: Dataset,
    target: Dataset,
    options: Union[ReconcileOptions, Mapping[str, Any]],
) -> MatchResult:
    """
    Reconcile source records against target records.

    Args:
        source: Dataset whose records drive matching (e.g. the GSTR-2B statement)
        target: Dataset searched for counterparts (e.g. the purchase register)
        options: threshold, key fields and source -> target field mapping

    Returns:
        MatchResult partitioning both datasets into common pairs and leftovers

    Raises:
        ConfigurationError: options are invalid for these datasets
    """
    opts = build_options(options)
    validate_options(source, target, opts)

    index = FuzzyIndex(target, opts.target_key_fields())
    outcome = match_records(source, index, opts.mapped_fields, opts.key_fields, opts.threshold)

    common: List[MatchedPair] = []
    for source_idx, target_idx, score in outcome.pairs:
        src = source.records[source_idx]
        tgt = target.records[target_idx]
        mismatches = compare_records(src, tgt, opts.mapped_fields, opts.key_fields)
        common.append(
            MatchedPair(
                source=src,
                target=tgt,
                mismatches=tuple(mismatches),
                source_index=source_idx,
                target_index=target_idx,
                score=score,
            )
        )

    return MatchResult(
        common=tuple(common),
        only_in_source=tuple(source.records[i] for i in outcome.unmatched_source),
        only_in_target=tuple(target.records[i] for i in outcome.unmatched_target(len(target))),
    )

