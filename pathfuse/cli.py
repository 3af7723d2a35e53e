"""Command-line interface for pathfuse."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Iterable

from pathfuse.analysis import run_analysis
from pathfuse.config import config_from_mapping, load_json_config
from pathfuse.io import (
    ensure_dir,
    export_results,
    read_gmt,
    read_scores,
    setup_logger,
    write_json,
)
from pathfuse.report import write_cytoscape_files
from pathfuse.stats.merge import merge_p_values


def _parse_constraints(text: str | None) -> list[float] | None:
    if text is None:
        return None
    return [float(tok) for tok in text.split(",") if tok.strip()]


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if args.merge_method is not None:
        out["merge_method"] = args.merge_method
    if args.cutoff is not None:
        out["cutoff"] = args.cutoff
    if args.significant is not None:
        out["significant"] = args.significant
    if args.correction_method is not None:
        out["correction_method"] = args.correction_method
    if args.min_size is not None or args.max_size is not None:
        lo = args.min_size if args.min_size is not None else 5
        hi = args.max_size if args.max_size is not None else 1000
        out["geneset_filter"] = (lo, hi)
    if args.n_jobs is not None:
        out["n_jobs"] = args.n_jobs
    if args.return_all:
        out["return_all"] = True
    return out


def _add_method_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--scores", required=True, help="Tab-separated entity x dataset p-value table")
    parser.add_argument("--config", default=None, help="Optional JSON config")
    parser.add_argument("--merge-method", default=None, help="Fisher, Stouffer, Brown or Strube")
    parser.add_argument("--directions", default=None, help="Table of signed effects parallel to --scores")
    parser.add_argument(
        "--constraints",
        default=None,
        help="Comma-separated expected sign per dataset, e.g. 1,-1,0",
    )
    parser.add_argument("--outdir", default=".", help="Output directory")


def run_main(argv: Iterable[str] | None = None) -> int:
    """Run the full enrichment analysis.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(description="pathfuse integrative enrichment analysis")
    _add_method_args(parser)
    parser.add_argument("--gmt", required=True, help="Group definition file")
    parser.add_argument("--cutoff", type=float, default=None, help="Ranked-list p-value filter")
    parser.add_argument("--significant", type=float, default=None, help="Adjusted p-value cutoff")
    parser.add_argument("--correction-method", default=None, help="holm, hochberg, bonferroni, BH, BY, fdr or none")
    parser.add_argument("--min-size", type=int, default=None, help="Minimum group size")
    parser.add_argument("--max-size", type=int, default=None, help="Maximum group size")
    parser.add_argument("--n-jobs", type=int, default=None, help="Parallel workers for group tests")
    parser.add_argument("--return-all", action="store_true", help="Report every tested group")
    parser.add_argument("--cytoscape", action="store_true", help="Also write network viewer files")
    parser.add_argument("--prefix", default="", help="Filename prefix for network viewer files")
    args = parser.parse_args(list(argv) if argv is not None else None)

    outdir = Path(args.outdir)
    ensure_dir(outdir)
    logger = setup_logger(outdir / "logs" / "pathfuse_run.log", "pathfuse")

    base = load_json_config(args.config) if args.config else {}
    config = config_from_mapping({**base, **_overrides(args)})
    scores = read_scores(args.scores)
    groups = read_gmt(args.gmt)
    directions = read_scores(args.directions) if args.directions else None

    result = run_analysis(
        scores,
        groups,
        config,
        scores_direction=directions,
        constraints_vector=_parse_constraints(args.constraints),
        logger=logger,
    )
    out_table = export_results(result, outdir / "enriched_pathways.tsv")
    logger.info("Wrote %s", out_table.as_posix())
    if args.cytoscape and len(result) > 0:
        paths = write_cytoscape_files(result, groups, outdir, prefix=args.prefix)
        logger.info("Wrote network files: %s", ", ".join(p.name for p in paths.values()))

    write_json(
        outdir / "run_summary.json",
        {
            "merge_method": config.merge.value,
            "correction_method": config.correction.value,
            "cutoff": config.cutoff,
            "significant": config.significant,
            "datasets": list(result.datasets),
            "n_groups_tested": result.n_groups_tested,
            "n_significant": len(result),
            "background_size": result.background_size,
        },
    )
    print(f"n_significant={len(result)}")
    return 0


def merge_main(argv: Iterable[str] | None = None) -> int:
    """Write fused p-values only."""
    parser = argparse.ArgumentParser(description="pathfuse p-value fusion")
    _add_method_args(parser)
    args = parser.parse_args(list(argv) if argv is not None else None)

    base = load_json_config(args.config) if args.config else {}
    method = args.merge_method or base.get("merge_method", "Fisher")
    scores = read_scores(args.scores)
    directions = read_scores(args.directions) if args.directions else None
    merged = merge_p_values(
        scores,
        method,
        scores_direction=directions,
        constraints_vector=_parse_constraints(args.constraints),
    )
    outdir = Path(args.outdir)
    ensure_dir(outdir)
    out = outdir / "merged_pvalues.tsv"
    merged.sort_values(kind="mergesort").to_frame().to_csv(out, sep="\t", index_label="entity")
    print(f"wrote={out.as_posix()}")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (if None, uses sys.argv).

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(description="pathfuse CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run integrative enrichment analysis", add_help=False)
    sub.add_parser("merge", help="Fuse p-values only", add_help=False)

    args, remainder = parser.parse_known_args(list(argv) if argv is not None else None)
    if args.command == "run":
        return run_main(remainder)
    if args.command == "merge":
        return merge_main(remainder)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
