"""
Reconcile package: fuzzy matching and field comparison between two datasets.
"""
from .compare import compare_field, compare_records, stringify
from .engine import ConfigurationError, reconcile, validate_options
from .matcher import FuzzyIndex, match_records
from .models import Dataset, FieldMismatch, MatchedPair, MatchResult, ReconcileOptions
from .suggest import suggest_key_fields, suggest_mapping, suggest_setup

__all__ = [
    "ConfigurationError",
    "Dataset",
    "FieldMismatch",
    "FuzzyIndex",
    "MatchResult",
    "MatchedPair",
    "ReconcileOptions",
    "compare_field",
    "compare_records",
    "match_records",
    "reconcile",
    "stringify",
    "suggest_key_fields",
    "suggest_mapping",
    "suggest_setup",
    "validate_options",
]
