"""Statistical kernels for pathfuse."""

from pathfuse.stats.correction import adjust_p, bh_fdr
from pathfuse.stats.hypergeom import ordered_hypergeometric
from pathfuse.stats.merge import (
    apply_direction_penalty,
    brown_covariance,
    brown_merge,
    fisher_merge,
    merge_p_values,
    stouffer_merge,
    strube_correlation,
    strube_merge,
)

__all__ = [
    "adjust_p",
    "bh_fdr",
    "ordered_hypergeometric",
    "apply_direction_penalty",
    "brown_covariance",
    "brown_merge",
    "fisher_merge",
    "merge_p_values",
    "stouffer_merge",
    "strube_correlation",
    "strube_merge",
]
