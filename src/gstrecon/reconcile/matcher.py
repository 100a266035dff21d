"""
Matcher: Fuzzy key-field index over the target dataset and greedy assignment
of source records to it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from rapidfuzz.distance import Indel

from .compare import stringify
from .models import Dataset, score_ceiling


def _normalize_string(s: Optional[str]) -> str:
    """Normalize a string for comparison."""
    if not s:
        return ""
    # Lowercase, strip, collapse whitespace
    return " ".join(s.strip().lower().split())


def _field_distance(s1: str, s2: str) -> float:
    """Normalized Indel distance in [0, 1]; 0 for identical strings."""
    if s1 == s2:
        return 0.0
    return Indel.normalized_distance(s1, s2)


class FuzzyIndex:
    """
    Approximate-match index over the key fields of one dataset.

    Scores are in [0, 1], lower is more similar: the mean of the per-field
    normalized edit distances, 0 when every key field agrees exactly.
    """

    def __init__(self, dataset: Dataset, key_fields: Sequence[str]):
        self.key_fields: Tuple[str, ...] = tuple(key_fields)
        self._entries: List[Tuple[str, ...]] = [
            tuple(_normalize_string(stringify(rec.get(k))) for k in self.key_fields)
            for rec in dataset.records
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def score(self, index: int, pattern: Mapping[str, str]) -> float:
        if not self.key_fields:
            return 0.0
        entry = self._entries[index]
        total = 0.0
        for key, value in zip(self.key_fields, entry):
            total += _field_distance(_normalize_string(pattern.get(key, "")), value)
        return total / len(self.key_fields)

    def query(self, pattern: Mapping[str, str]) -> List[Tuple[int, float]]:
        """
        Score every indexed record against the pattern.

        Returns (record_index, score) sorted by score; equal scores keep
        index order.
        """
        scored = [(i, self.score(i, pattern)) for i in range(len(self._entries))]
        scored.sort(key=lambda item: item[1])
        return scored

    def best(self, pattern: Mapping[str, str]) -> Optional[Tuple[int, float]]:
        best_match: Optional[Tuple[int, float]] = None
        for i in range(len(self._entries)):
            s = self.score(i, pattern)
            if best_match is None or s < best_match[1]:
                best_match = (i, s)
                if s == 0.0:
                    break
        return best_match


@dataclass
class MatchOutcome:
    pairs: List[Tuple[int, int, float]] = field(default_factory=list)
    unmatched_source: List[int] = field(default_factory=list)
    consumed_target: Set[int] = field(default_factory=set)

    def unmatched_target(self, target_size: int) -> List[int]:
        return [i for i in range(target_size) if i not in self.consumed_target]


def build_pattern(
    record: Mapping[str, object],
    mapping: Mapping[str, str],
    key_fields: Sequence[str],
) -> Dict[str, str]:
    """Key-field values of a source record, keyed by their target field names."""
    return {mapping[k]: stringify(record.get(k)) for k in key_fields}


def match_records(
    source: Dataset,
    index: FuzzyIndex,
    mapping: Mapping[str, str],
    key_fields: Sequence[str],
    threshold: int,
) -> MatchOutcome:
    """
    Greedily assign source records to indexed target records.

    Source records are processed in order. Each takes its lowest-scoring
    candidate when the score is at most (100 - threshold) / 100 and the candidate
    has not been taken by an earlier source record; otherwise it is left
    unmatched. First come, first served.
    """
    ceiling = score_ceiling(threshold)
    outcome = MatchOutcome()

    for source_idx, rec in enumerate(source.records):
        pattern = build_pattern(rec, mapping, key_fields)
        candidate = index.best(pattern)
        if candidate is None:
            outcome.unmatched_source.append(source_idx)
            continue

        target_idx, score = candidate
        if score <= ceiling and target_idx not in outcome.consumed_target:
            outcome.pairs.append((source_idx, target_idx, score))
            outcome.consumed_target.add(target_idx)
        else:
            outcome.unmatched_source.append(source_idx)

    return outcome
