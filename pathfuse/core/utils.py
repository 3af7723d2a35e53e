"""Small pure helpers for validating analysis inputs."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from pathfuse.exceptions import ConfigurationError, InputValidationError


def as_score_frame(scores: pd.DataFrame | Mapping[str, Sequence[float]]) -> pd.DataFrame:
    """Coerce a score matrix (DataFrame or ``{entity: row}``) to a float DataFrame."""
    if isinstance(scores, pd.DataFrame):
        frame = scores.copy()
    elif isinstance(scores, Mapping):
        rows = {str(k): list(np.atleast_1d(v)) for k, v in scores.items()}
        frame = pd.DataFrame.from_dict(rows, orient="index")
        frame.columns = [f"dataset_{i + 1}" for i in range(frame.shape[1])]
    else:
        raise InputValidationError(
            f"scores must be a DataFrame or mapping, got {type(scores).__name__}."
        )
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise InputValidationError("scores must contain at least one entity and one dataset.")
    frame.index = frame.index.map(str)
    frame.columns = frame.columns.map(str)
    if frame.index.has_duplicates:
        dup = frame.index[frame.index.duplicated()].unique()[:5]
        raise InputValidationError("Duplicate entity ids in scores.", {"examples": list(dup)})
    if frame.columns.has_duplicates:
        raise InputValidationError("Duplicate dataset names in scores.")
    try:
        frame = frame.astype(float)
    except (TypeError, ValueError) as exc:
        raise InputValidationError("scores must be numeric.") from exc
    return frame


def check_pvalues(name: str, values: Any) -> np.ndarray:
    """Return `values` as a float array, requiring every entry in (0, 1]."""
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"{name} must be numeric.") from exc
    if arr.size == 0:
        raise InputValidationError(f"{name} must be non-empty.")
    if np.isnan(arr).any():
        raise InputValidationError(f"{name} contains missing values.", {"n_missing": int(np.isnan(arr).sum())})
    bad = ~((arr > 0.0) & (arr <= 1.0))
    if bad.any():
        raise InputValidationError(
            f"{name} must lie in (0, 1].",
            {"n_invalid": int(bad.sum()), "example": float(arr[bad].ravel()[0])},
        )
    return arr


def check_directions(
    directions: Any,
    shape: tuple[int, ...],
) -> np.ndarray:
    try:
        arr = np.asarray(directions, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InputValidationError("scores_direction must be numeric.") from exc
    if arr.shape != shape:
        raise InputValidationError(
            "scores_direction must have the same shape as scores.",
            {"scores": shape, "scores_direction": arr.shape},
        )
    if not np.isfinite(arr).all():
        raise InputValidationError("scores_direction must be finite.")
    return arr


def check_constraints(constraints: Any, n_datasets: int) -> np.ndarray:
    arr = np.asarray(constraints, dtype=float).ravel()
    if arr.size != n_datasets:
        raise ConfigurationError(
            "constraints_vector length must equal the number of datasets.",
            {"constraints": int(arr.size), "datasets": int(n_datasets)},
        )
    if not np.isin(arr, (-1.0, 0.0, 1.0)).all():
        raise ConfigurationError("constraints_vector entries must be -1, 0 or 1.")
    return arr
