"""Multiple-testing correction of group p-values."""

from __future__ import annotations

from typing import Callable

import numpy as np

from pathfuse.core.types import CorrectionMethod
from pathfuse.exceptions import InputValidationError


def _step_down_holm(p: np.ndarray) -> np.ndarray:
    m = p.size
    order = np.argsort(p, kind="mergesort")
    adj = np.maximum.accumulate((m - np.arange(m)) * p[order])
    out = np.empty_like(adj)
    out[order] = adj
    return out


def _step_up(p: np.ndarray, factors: np.ndarray) -> np.ndarray:
    """Step-up adjustment: cumulative min from the largest p downwards.

    `factors[i]` multiplies the i-th largest p-value.
    """
    order = np.argsort(p, kind="mergesort")[::-1]
    adj = np.minimum.accumulate(factors * p[order])
    out = np.empty_like(adj)
    out[order] = adj
    return out


def _bonferroni(p: np.ndarray) -> np.ndarray:
    return p * p.size


def _hochberg(p: np.ndarray) -> np.ndarray:
    i = np.arange(p.size, 0, -1, dtype=float)
    return _step_up(p, p.size + 1.0 - i)


def _benjamini_hochberg(p: np.ndarray) -> np.ndarray:
    i = np.arange(p.size, 0, -1, dtype=float)
    return _step_up(p, p.size / i)


def _benjamini_yekutieli(p: np.ndarray) -> np.ndarray:
    m = p.size
    i = np.arange(m, 0, -1, dtype=float)
    harmonic = float(np.sum(1.0 / np.arange(1, m + 1)))
    return _step_up(p, harmonic * m / i)


_ADJUSTERS: dict[CorrectionMethod, Callable[[np.ndarray], np.ndarray]] = {
    CorrectionMethod.BONFERRONI: _bonferroni,
    CorrectionMethod.HOLM: _step_down_holm,
    CorrectionMethod.HOCHBERG: _hochberg,
    CorrectionMethod.BH: _benjamini_hochberg,
    CorrectionMethod.BY: _benjamini_yekutieli,
}


def adjust_p(pvals: np.ndarray, method: str | CorrectionMethod = CorrectionMethod.HOLM) -> np.ndarray:
    """Adjust raw p-values; NaN entries stay NaN and do not count towards m."""
    how = CorrectionMethod.parse(method)
    arr = np.asarray(pvals, dtype=float)
    flat = arr.ravel()
    if how is CorrectionMethod.NONE:
        return arr.copy()
    finite = np.isfinite(flat)
    if np.any((flat[finite] < 0.0) | (flat[finite] > 1.0)):
        raise InputValidationError(
            "p-values must be in [0,1] or NaN.",
            {"min": float(flat[finite].min()), "max": float(flat[finite].max())},
        )
    q = np.full_like(flat, np.nan)
    if np.any(finite):
        q[finite] = np.clip(_ADJUSTERS[how](flat[finite]), 0.0, 1.0)
    return q.reshape(arr.shape)


def bh_fdr(pvals: np.ndarray) -> np.ndarray:
    return adjust_p(pvals, CorrectionMethod.BH)
