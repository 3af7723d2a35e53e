"""Core data model subpackage."""

from pathfuse.core.groups import GroupSet, resolve_background
from pathfuse.core.types import (
    COMBINED_LABEL,
    AnalysisConfig,
    AnalysisResult,
    CorrectionMethod,
    EnrichmentResult,
    Group,
    HypergeomResult,
    MergeMethod,
)
from pathfuse.core.utils import as_score_frame, check_pvalues

__all__ = [
    "COMBINED_LABEL",
    "AnalysisConfig",
    "AnalysisResult",
    "CorrectionMethod",
    "EnrichmentResult",
    "Group",
    "GroupSet",
    "HypergeomResult",
    "MergeMethod",
    "resolve_background",
    "as_score_frame",
    "check_pvalues",
]
