"""End-to-end integrative pathway enrichment over several p-value datasets."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from pathfuse.core.groups import GroupSet, resolve_background
from pathfuse.core.types import (
    COMBINED_LABEL,
    AnalysisConfig,
    AnalysisResult,
    EnrichmentResult,
)
from pathfuse.core.utils import as_score_frame, check_pvalues
from pathfuse.enrichment import enrichment_analysis
from pathfuse.evidence import column_significance, label_evidence
from pathfuse.exceptions import ConfigurationError, InputValidationError
from pathfuse.ranking import rank_entities
from pathfuse.stats.correction import adjust_p
from pathfuse.stats.merge import align_directions, merge_p_values

_DEFAULT_LOGGER = logging.getLogger("pathfuse")


def prepare_groups(
    groups: GroupSet,
    background: frozenset[str],
    geneset_filter: tuple[int, float],
) -> GroupSet:
    """Restrict groups to the background, then filter by restricted size."""
    lo, hi = geneset_filter
    filtered = groups.restrict(background).filter_by_size(int(lo), math.inf if hi is None else hi)
    if len(filtered) == 0:
        raise InputValidationError(
            "No groups remain after background restriction and size filtering.",
            {"n_groups": len(groups), "geneset_filter": tuple(geneset_filter)},
        )
    return filtered


def run_analysis(
    scores: pd.DataFrame | Mapping[str, Sequence[float]],
    groups: GroupSet,
    config: AnalysisConfig | None = None,
    *,
    scores_direction: pd.DataFrame | np.ndarray | None = None,
    constraints_vector: Sequence[float] | None = None,
    logger: logging.Logger | None = None,
) -> AnalysisResult:
    """Fuse dataset p-values, test groups on the fused ranking, attribute evidence.

    Args:
        scores: Entities x datasets p-values in (0, 1], no missing values.
        groups: Candidate groups.
        config: Thresholds and methods; defaults to `AnalysisConfig()`.
        scores_direction: Signed effects parallel to `scores`.
        constraints_vector: Expected sign per dataset (+1, -1, 0 = none).
        logger: Destination for progress messages.

    Returns:
        AnalysisResult holding the significant groups (all tested groups
        when `config.return_all`), in the order of `groups`.
    """
    cfg = (config or AnalysisConfig()).validate()
    log = logger or _DEFAULT_LOGGER

    frame = as_score_frame(scores)
    check_pvalues("scores", frame.to_numpy())
    if COMBINED_LABEL in frame.columns:
        raise InputValidationError(f"'{COMBINED_LABEL}' is reserved and cannot name a dataset.")
    if (scores_direction is None) != (constraints_vector is None):
        raise ConfigurationError("scores_direction and constraints_vector must be given together.")
    directions = _directions_frame(frame, scores_direction)

    background = resolve_background(groups, cfg.background)
    tested_groups = prepare_groups(groups, background, cfg.geneset_filter)

    in_bg = frame.index.isin(list(background))
    n_dropped = int((~in_bg).sum())
    if n_dropped:
        log.warning("Removed %d entities not present in the background.", n_dropped)
    frame = frame.loc[in_bg]
    if frame.shape[0] == 0:
        raise InputValidationError("No scored entities are present in the background.")
    if directions is not None:
        directions = directions.loc[frame.index]

    log.info(
        "Merging %d datasets over %d entities with %s; testing %d groups (background %d).",
        frame.shape[1],
        frame.shape[0],
        cfg.merge.value,
        len(tested_groups),
        len(background),
    )
    merged = merge_p_values(
        frame,
        cfg.merge,
        scores_direction=directions,
        constraints_vector=constraints_vector,
    )
    ranked = rank_entities(merged, background, cfg.cutoff)
    log.info("%d entities pass the cutoff %.3g.", len(ranked), cfg.cutoff)

    tested = enrichment_analysis(
        ranked, tested_groups, len(background), n_jobs=cfg.n_jobs, backend=cfg.backend
    )
    ids = list(tested)
    raw = np.array([tested[gid].p_value for gid in ids], dtype=float)
    adjusted = adjust_p(raw, cfg.correction)

    if cfg.return_all:
        keep = ids
    else:
        keep = [gid for gid, q in zip(ids, adjusted) if q <= cfg.significant]
    adjusted_by_id = dict(zip(ids, adjusted.tolist()))

    datasets = tuple(frame.columns)
    if not keep:
        log.info("No significant terms were found.")
        return AnalysisResult(
            results=(),
            datasets=datasets,
            config=cfg,
            n_groups_tested=len(ids),
            background_size=len(background),
            metadata=_metadata(frame, ranked),
        )

    selected = GroupSet(tested_groups[gid] for gid in keep)
    detections = column_significance(
        frame,
        selected,
        background,
        cutoff=cfg.cutoff,
        detection_cutoff=cfg.effective_detection_cutoff,
        n_jobs=cfg.n_jobs,
        backend=cfg.backend,
    )
    evidence = label_evidence(keep, detections)

    results = []
    for gid in keep:
        group = tested_groups[gid]
        res = tested[gid]
        results.append(
            EnrichmentResult(
                term_id=group.id,
                term_name=group.name,
                term_size=group.size,
                p_value=res.p_value,
                adjusted_p_value=float(adjusted_by_id[gid]),
                overlap=res.overlap,
                evidence=evidence[gid],
                dataset_overlaps=tuple(
                    (name, found[gid].overlap) for name, found in detections.items() if gid in found
                ),
            )
        )
    n_combined = sum(1 for r in results if r.combined_only)
    log.info(
        "%d significant terms (%d found only through the combined ranking).",
        len(results),
        n_combined,
    )
    return AnalysisResult(
        results=tuple(results),
        datasets=datasets,
        config=cfg,
        n_groups_tested=len(ids),
        background_size=len(background),
        metadata=_metadata(frame, ranked),
    )


def _directions_frame(frame: pd.DataFrame, scores_direction: Any) -> pd.DataFrame | None:
    if scores_direction is None:
        return None
    if isinstance(scores_direction, pd.DataFrame):
        return align_directions(frame, scores_direction).astype(float)
    arr = np.asarray(scores_direction, dtype=float)
    if arr.shape != frame.shape:
        raise InputValidationError(
            "scores_direction must have the same shape as scores.",
            {"scores": frame.shape, "scores_direction": arr.shape},
        )
    return pd.DataFrame(arr, index=frame.index, columns=frame.columns)


def _metadata(frame: pd.DataFrame, ranked: Sequence[str]) -> dict[str, Any]:
    return {
        "n_entities_scored": int(frame.shape[0]),
        "n_entities_ranked": int(len(ranked)),
        "ranked_entities": list(ranked),
    }
