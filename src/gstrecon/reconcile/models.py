from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

Record = Mapping[str, Any]


def score_ceiling(threshold: int) -> float:
    """Highest accepted match score for a 0-100 threshold; exact at whole percents."""
    return (100 - threshold) / 100


@dataclass(frozen=True)
class Dataset:
    """Records plus the header list declared by ingestion."""

    records: Tuple[Record, ...]
    headers: Tuple[str, ...]
    name: Optional[str] = None

    @classmethod
    def from_records(
        cls,
        records: List[Record],
        headers: Optional[List[str]] = None,
        name: Optional[str] = None,
    ) -> "Dataset":
        """
        Build a dataset from plain dicts.

        When headers are not given they are the ordered union of the record keys.
        """
        if headers is None:
            seen: Dict[str, None] = {}
            for rec in records:
                for key in rec.keys():
                    seen.setdefault(key, None)
            headers = list(seen)
        return cls(records=tuple(records), headers=tuple(headers), name=name)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class FieldMismatch:
    field: str
    source_value: Any
    target_value: Any


@dataclass(frozen=True)
class MatchedPair:
    source: Record
    target: Record
    mismatches: Tuple[FieldMismatch, ...] = ()
    source_index: int = -1
    target_index: int = -1
    score: float = 0.0

    @property
    def is_clean(self) -> bool:
        return not self.mismatches


@dataclass(frozen=True)
class MatchResult:
    common: Tuple[MatchedPair, ...] = field(default_factory=tuple)
    only_in_source: Tuple[Record, ...] = field(default_factory=tuple)
    only_in_target: Tuple[Record, ...] = field(default_factory=tuple)

    @property
    def mismatched(self) -> List[MatchedPair]:
        return [pair for pair in self.common if not pair.is_clean]


class ReconcileOptions(BaseModel):
    """Caller options for one reconciliation run."""

    threshold: int = 90
    key_fields: List[str]
    mapped_fields: Dict[str, str] = Field(default_factory=dict)

    @field_validator("threshold")
    @classmethod
    def _threshold_in_range(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"threshold must be within [0, 100], got {v}")
        return v

    @field_validator("key_fields")
    @classmethod
    def _key_fields_non_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("no key fields")
        # Order-preserving dedupe
        return list(dict.fromkeys(v))

    def target_key_fields(self) -> List[str]:
        return [self.mapped_fields[k] for k in self.key_fields if k in self.mapped_fields]

    @property
    def score_ceiling(self) -> float:
        return score_ceiling(self.threshold)
