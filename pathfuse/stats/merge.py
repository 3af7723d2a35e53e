"""P-value fusion: Fisher, Stouffer, Brown and Strube, with a directional penalty.

Every method maps a row of k per-dataset p-values to one p-value in (0, 1].
For k = 1 all four reduce to the input p-value.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
import pandas as pd
from scipy.stats import chi2, norm

from pathfuse.core.types import MergeMethod
from pathfuse.core.utils import check_constraints, check_directions, check_pvalues
from pathfuse.exceptions import ConfigurationError, InputValidationError

_P_FLOOR = np.finfo(float).tiny
_P_CEIL = np.nextafter(1.0, 0.0)


def _finish(p: np.ndarray) -> np.ndarray:
    return np.clip(p, _P_FLOOR, 1.0)


def _z_scores(p: np.ndarray) -> np.ndarray:
    # keep z finite at p = 1
    return norm.isf(np.clip(p, _P_FLOOR, _P_CEIL))


def fisher_merge(p: np.ndarray) -> np.ndarray:
    """Fisher: -2 sum ln p ~ chi2(2k)."""
    k = p.shape[1]
    stat = -2.0 * np.log(p).sum(axis=1)
    return _finish(chi2.sf(stat, 2 * k))


def stouffer_merge(p: np.ndarray) -> np.ndarray:
    """Stouffer: sum of one-sided z-scores scaled by sqrt(k)."""
    k = p.shape[1]
    z = _z_scores(p)
    return _finish(norm.sf(z.sum(axis=1) / np.sqrt(k)))


def empirical_transform(column: np.ndarray) -> np.ndarray:
    """-2 ln of the empirical CDF of one dataset column.

    Standardising the column first would not change the ECDF ranks, so the
    raw values are used directly.
    """
    x = np.asarray(column, dtype=float).ravel()
    ranks = np.searchsorted(np.sort(x), x, side="right")
    return -2.0 * np.log(ranks / float(x.size))


def brown_covariance(p: np.ndarray) -> np.ndarray:
    """k x k covariance of the empirically transformed dataset columns."""
    transformed = np.column_stack([empirical_transform(p[:, j]) for j in range(p.shape[1])])
    if transformed.shape[0] < 2:
        return np.zeros((p.shape[1], p.shape[1]), dtype=float)
    return np.atleast_2d(np.cov(transformed, rowvar=False))


def brown_parameters(cov: np.ndarray) -> tuple[float, float]:
    """Scale `c` and degrees of freedom of Brown's chi2 reference."""
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    k = cov.shape[0]
    df_fisher = 2.0 * k
    expected = 2.0 * k
    cov_sum = 2.0 * float(np.sum(np.tril(cov, k=-1)))
    var = 4.0 * k + cov_sum
    if var <= 0.0:
        return 1.0, df_fisher
    c = var / (2.0 * expected)
    df_brown = (2.0 * expected**2) / var
    if df_brown > df_fisher:
        df_brown = df_fisher
        c = 1.0
    return c, df_brown


def brown_merge(p: np.ndarray, cov: np.ndarray | None = None) -> np.ndarray:
    """Brown: Fisher's statistic against a scaled chi2 with corrected df."""
    if cov is None:
        if p.shape[0] < 2:
            return fisher_merge(p)
        cov = brown_covariance(p)
    c, df = brown_parameters(cov)
    stat = -2.0 * np.log(p).sum(axis=1)
    return _finish(chi2.sf(stat / c, df))


def strube_correlation(p: np.ndarray) -> np.ndarray:
    """|Pearson correlation| of the z-scored dataset columns; NaN treated as 0."""
    k = p.shape[1]
    if p.shape[0] < 2 or k == 1:
        return np.eye(k)
    z = _z_scores(p)
    with np.errstate(invalid="ignore", divide="ignore"):
        r = np.atleast_2d(np.corrcoef(z, rowvar=False))
    r = np.nan_to_num(r, nan=0.0)
    np.fill_diagonal(r, 1.0)
    return np.abs(r)


def strube_merge(p: np.ndarray, corr: np.ndarray | None = None) -> np.ndarray:
    """Strube: Stouffer's sum divided by sqrt of the summed |correlation|."""
    if corr is None:
        if p.shape[0] < 2:
            return stouffer_merge(p)
        corr = strube_correlation(p)
    z = _z_scores(p)
    denom = np.sqrt(float(np.sum(np.abs(corr))))
    return _finish(norm.sf(z.sum(axis=1) / denom))


MERGE_FUNCTIONS: dict[MergeMethod, Callable[..., np.ndarray]] = {
    MergeMethod.FISHER: fisher_merge,
    MergeMethod.STOUFFER: stouffer_merge,
    MergeMethod.BROWN: brown_merge,
    MergeMethod.STRUBE: strube_merge,
}


def apply_direction_penalty(
    p: np.ndarray,
    directions: np.ndarray,
    constraints: np.ndarray,
) -> np.ndarray:
    """Set p = 1 wherever an effect's sign contradicts its dataset's expected sign.

    A constraint of 0 leaves the dataset unconstrained; an effect of exactly 0
    never conflicts.
    """
    signs = np.sign(directions)
    expected = np.broadcast_to(constraints, p.shape)
    conflict = (expected != 0) & (signs != 0) & (signs != expected)
    out = p.copy()
    out[conflict] = 1.0
    return out


def align_directions(scores: pd.DataFrame, directions: pd.DataFrame) -> pd.DataFrame:
    """Reorder `directions` to the rows and columns of `scores`; both must match as sets."""
    d = directions.copy()
    d.index = d.index.map(str)
    d.columns = d.columns.map(str)
    if set(d.index) != set(scores.index.map(str)) or list(d.columns) != list(scores.columns.map(str)):
        raise InputValidationError(
            "scores_direction must have the same entities and dataset columns as scores.",
            {"scores": scores.shape, "scores_direction": directions.shape},
        )
    return d.loc[scores.index.map(str)]


def merge_p_values(
    scores: Any,
    method: str | MergeMethod = MergeMethod.FISHER,
    scores_direction: Any = None,
    constraints_vector: Any = None,
    *,
    covariance: np.ndarray | None = None,
) -> float | np.ndarray | pd.Series:
    """Fuse per-dataset p-values into one p-value per entity.

    Args:
        scores: 1-D vector (one entity), 2-D array or DataFrame (entities x datasets).
        method: One of Fisher, Stouffer, Brown, Strube.
        scores_direction: Signed effects with the shape of `scores`; enables
            the directional penalty together with `constraints_vector`.
        constraints_vector: Expected sign (+1, -1, or 0 for none) per dataset.
        covariance: Precomputed Brown covariance or Strube correlation; when
            omitted it is estimated from `scores` itself.

    Returns:
        A float for vector input, a Series indexed like `scores` for a
        DataFrame, otherwise a 1-D array.
    """
    merge = MergeMethod.parse(method)
    index = scores.index if isinstance(scores, pd.DataFrame) else None
    raw = np.asarray(scores, dtype=float) if isinstance(scores, pd.DataFrame) else scores
    arr = check_pvalues("scores", raw)
    single = arr.ndim == 1
    if single:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2:
        raise InputValidationError("scores must be a vector or a 2-D matrix.")

    if (scores_direction is None) != (constraints_vector is None):
        raise ConfigurationError(
            "scores_direction and constraints_vector must be given together."
        )

    p = arr
    if scores_direction is not None:
        if index is not None and isinstance(scores_direction, pd.DataFrame):
            scores_direction = align_directions(scores, scores_direction)
        d = np.asarray(scores_direction, dtype=float)
        d = check_directions(d.reshape(1, -1) if single else d, arr.shape)
        c = check_constraints(constraints_vector, arr.shape[1])
        p = apply_direction_penalty(arr, d, c)

    if arr.shape[1] == 1:
        merged = _finish(p[:, 0].copy())
    elif merge is MergeMethod.BROWN:
        cov = covariance if covariance is not None else (brown_covariance(arr) if arr.shape[0] > 1 else None)
        merged = brown_merge(p, cov)
    elif merge is MergeMethod.STRUBE:
        corr = covariance if covariance is not None else (strube_correlation(arr) if arr.shape[0] > 1 else None)
        merged = strube_merge(p, corr)
    else:
        merged = MERGE_FUNCTIONS[merge](p)

    if single:
        return float(merged[0])
    if index is not None:
        return pd.Series(merged, index=index, name="merged_p")
    return merged
