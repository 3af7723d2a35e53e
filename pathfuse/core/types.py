"""Typed configuration and result containers for pathfuse analyses."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

import pandas as pd

from pathfuse.exceptions import ConfigurationError

COMBINED_LABEL = "combined"


class MergeMethod(str, Enum):
    """P-value fusion methods."""

    FISHER = "Fisher"
    STOUFFER = "Stouffer"
    BROWN = "Brown"
    STRUBE = "Strube"

    @classmethod
    def parse(cls, value: str | MergeMethod) -> MergeMethod:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ConfigurationError(
            f"Unknown merge method '{value}'.",
            {"supported": ", ".join(m.value for m in cls)},
        )


class CorrectionMethod(str, Enum):
    """Multiple-testing correction procedures (R ``p.adjust`` names)."""

    HOLM = "holm"
    HOCHBERG = "hochberg"
    BONFERRONI = "bonferroni"
    BH = "BH"
    BY = "BY"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | CorrectionMethod) -> CorrectionMethod:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "fdr":
            return cls.BH
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ConfigurationError(
            f"Unknown correction method '{value}'.",
            {"supported": ", ".join(m.value for m in cls) + ", fdr"},
        )


@dataclass(frozen=True)
class AnalysisConfig:
    """All tunables of one analysis run.

    - `cutoff`: lenient filter; ranked lists keep entities with p <= cutoff.
    - `significant`: adjusted p-value threshold for reported groups.
    - `detection_cutoff`: raw p-value a single dataset needs to count as
      evidence for a group; defaults to `cutoff`.
    """

    merge_method: str = "Fisher"
    geneset_filter: tuple[int, float] = (5, 1000)
    cutoff: float = 0.1
    significant: float = 0.1
    correction_method: str = "holm"
    detection_cutoff: float | None = None
    background: frozenset[str] | None = None
    return_all: bool = False
    n_jobs: int = 1
    backend: str = "loky"

    def validate(self) -> AnalysisConfig:
        MergeMethod.parse(self.merge_method)
        CorrectionMethod.parse(self.correction_method)
        for name in ("cutoff", "significant"):
            _check_unit_interval(name, getattr(self, name))
        if self.detection_cutoff is not None:
            _check_unit_interval("detection_cutoff", self.detection_cutoff)
        if len(self.geneset_filter) != 2:
            raise ConfigurationError("geneset_filter must be a (min, max) pair.")
        lo, hi = self.geneset_filter
        if lo is None or hi is None or lo < 0 or hi < lo:
            raise ConfigurationError(
                "geneset_filter must satisfy 0 <= min <= max.",
                {"geneset_filter": self.geneset_filter},
            )
        if int(self.n_jobs) == 0:
            raise ConfigurationError("n_jobs must be non-zero.")
        return self

    @property
    def merge(self) -> MergeMethod:
        return MergeMethod.parse(self.merge_method)

    @property
    def correction(self) -> CorrectionMethod:
        return CorrectionMethod.parse(self.correction_method)

    @property
    def effective_detection_cutoff(self) -> float:
        if self.detection_cutoff is None:
            return float(self.cutoff)
        return float(self.detection_cutoff)


def _check_unit_interval(name: str, value: Any) -> None:
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number.", {name: value}) from exc
    if not math.isfinite(v) or v < 0.0 or v > 1.0:
        raise ConfigurationError(f"{name} must lie in [0, 1].", {name: value})


@dataclass(frozen=True)
class Group:
    """A named set of entities (a pathway or annotation term)."""

    id: str
    name: str
    members: frozenset[str]

    @classmethod
    def create(cls, group_id: str, name: str, members: Iterable[str]) -> Group:
        return cls(id=str(group_id), name=str(name), members=frozenset(str(m) for m in members))

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class HypergeomResult:
    """Best prefix of one ranked list for one group."""

    p_value: float
    prefix_length: int
    overlap: tuple[str, ...]


@dataclass(frozen=True)
class EnrichmentResult:
    """One tested group of the combined ranking."""

    term_id: str
    term_name: str
    term_size: int
    p_value: float
    adjusted_p_value: float
    overlap: tuple[str, ...]
    evidence: frozenset[str]
    dataset_overlaps: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def dataset_overlap(self, dataset: str) -> tuple[str, ...]:
        """Overlap found by one detecting dataset; empty when it did not detect the group."""
        return dict(self.dataset_overlaps).get(dataset, ())

    @property
    def combined_only(self) -> bool:
        return self.evidence == frozenset({COMBINED_LABEL})


RESULT_COLUMNS = [
    "term_id",
    "term_name",
    "term_size",
    "p_val",
    "adjusted_p_val",
    "overlap",
    "evidence",
]


@dataclass(frozen=True)
class AnalysisResult:
    """Output of `run_analysis`."""

    results: tuple[EnrichmentResult, ...]
    datasets: tuple[str, ...]
    config: AnalysisConfig
    n_groups_tested: int = 0
    background_size: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def term_ids(self) -> list[str]:
        return [r.term_id for r in self.results]

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for r in self.results:
            row: dict[str, Any] = {
                "term_id": r.term_id,
                "term_name": r.term_name,
                "term_size": r.term_size,
                "p_val": r.p_value,
                "adjusted_p_val": r.adjusted_p_value,
                "overlap": list(r.overlap),
                "evidence": _ordered_evidence(r.evidence, self.datasets),
            }
            for name in self.datasets:
                row[f"Genes_{name}"] = list(r.dataset_overlap(name))
            rows.append(row)
        columns = RESULT_COLUMNS + [f"Genes_{name}" for name in self.datasets]
        return pd.DataFrame(rows, columns=columns)


def _ordered_evidence(evidence: frozenset[str], datasets: tuple[str, ...]) -> list[str]:
    if evidence == frozenset({COMBINED_LABEL}):
        return [COMBINED_LABEL]
    return [name for name in datasets if name in evidence]
