"""Ranked entity lists built from fused or single-dataset p-values."""

from __future__ import annotations

from typing import Iterable

import pandas as pd


def rank_entities(
    pvalues: pd.Series,
    background: Iterable[str],
    cutoff: float = 1.0,
) -> tuple[str, ...]:
    """Order background entities by ascending p-value.

    Entities outside `background` or with p > `cutoff` are dropped. Ties keep
    the original row order.
    """
    bg = background if isinstance(background, (set, frozenset)) else frozenset(background)
    series = pd.Series(pvalues, dtype=float)
    series.index = series.index.map(str)
    keep = series.index.isin(list(bg)) & (series.to_numpy() <= float(cutoff))
    ordered = series[keep].sort_values(kind="mergesort")
    return tuple(ordered.index)


def rank_column(
    scores: pd.DataFrame,
    column: str,
    background: Iterable[str],
    cutoff: float = 1.0,
) -> tuple[str, ...]:
    """Ranking of one dataset's own raw p-values."""
    if column not in scores.columns:
        raise KeyError(f"Dataset column '{column}' not found in scores.")
    return rank_entities(scores[column], background, cutoff)
