"""pathfuse public API."""

from pathfuse._version import __version__
from pathfuse.analysis import run_analysis
from pathfuse.core.groups import GroupSet, resolve_background
from pathfuse.core.types import (
    AnalysisConfig,
    AnalysisResult,
    CorrectionMethod,
    EnrichmentResult,
    Group,
    MergeMethod,
)
from pathfuse.exceptions import ConfigurationError, InputValidationError, PathfuseError
from pathfuse.io import export_results, read_gmt, read_scores, write_gmt
from pathfuse.report import compare_results, evidence_indicator_table, write_cytoscape_files
from pathfuse.stats.correction import adjust_p
from pathfuse.stats.merge import merge_p_values

__all__ = [
    "__version__",
    "run_analysis",
    "merge_p_values",
    "adjust_p",
    "AnalysisConfig",
    "AnalysisResult",
    "EnrichmentResult",
    "Group",
    "GroupSet",
    "MergeMethod",
    "CorrectionMethod",
    "resolve_background",
    "read_gmt",
    "write_gmt",
    "read_scores",
    "export_results",
    "evidence_indicator_table",
    "compare_results",
    "write_cytoscape_files",
    "PathfuseError",
    "InputValidationError",
    "ConfigurationError",
]
