"""Per-dataset evidence for groups found in the combined ranking."""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from pathfuse.core.groups import GroupSet
from pathfuse.core.types import COMBINED_LABEL, HypergeomResult
from pathfuse.enrichment import enrichment_analysis
from pathfuse.ranking import rank_column

logger = logging.getLogger(__name__)


def column_significance(
    scores: pd.DataFrame,
    groups: GroupSet,
    background: frozenset[str],
    *,
    cutoff: float,
    detection_cutoff: float,
    n_jobs: int = 1,
    backend: str = "loky",
) -> dict[str, dict[str, HypergeomResult]]:
    """Re-test `groups` on each dataset's own ranking.

    No multiple-testing correction is applied here: a dataset detects a
    group when its raw p-value is <= `detection_cutoff`. Returns, per
    dataset, the detected groups with their test results.
    """
    detections: dict[str, dict[str, HypergeomResult]] = {}
    for column in scores.columns:
        ranked = rank_column(scores, column, background, cutoff)
        tested = enrichment_analysis(
            ranked, groups, len(background), n_jobs=n_jobs, backend=backend
        )
        detections[column] = {
            gid: res for gid, res in tested.items() if res.p_value <= detection_cutoff
        }
        logger.debug(
            "Dataset %s: %d ranked entities, %d/%d groups detected.",
            column,
            len(ranked),
            len(detections[column]),
            len(groups),
        )
    return detections


def label_evidence(
    group_ids: Iterable[str],
    detections: dict[str, dict[str, HypergeomResult]],
) -> dict[str, frozenset[str]]:
    """Datasets detecting each group, or {"combined"} when none does."""
    labels: dict[str, frozenset[str]] = {}
    for gid in group_ids:
        supporting = frozenset(name for name, found in detections.items() if gid in found)
        labels[gid] = supporting if supporting else frozenset({COMBINED_LABEL})
    return labels
