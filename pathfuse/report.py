"""Tables for downstream viewers: evidence indicators, run comparison, network files."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from pathfuse.core.groups import GroupSet
from pathfuse.core.types import COMBINED_LABEL, AnalysisResult, Group
from pathfuse.io import ensure_dir, write_gmt

STATUS_SHARED = "shared"
STATUS_LOST = "lost"
STATUS_GAINED = "gained"


def evidence_indicator_table(result: AnalysisResult) -> pd.DataFrame:
    """0/1 evidence membership per dataset (plus "combined") for each term."""
    columns = [*result.datasets, COMBINED_LABEL]
    rows = [
        [1 if name in r.evidence else 0 for name in columns] for r in result.results
    ]
    frame = pd.DataFrame(rows, columns=columns, index=pd.Index(result.term_ids, name="term_id"))
    return frame.astype(int)


def compare_results(reference: AnalysisResult, other: AnalysisResult) -> pd.DataFrame:
    """Classify each term found by either run as shared, lost or gained.

    "lost" terms appear only in `reference`, "gained" only in `other`.
    """
    ref = {r.term_id: r for r in reference.results}
    oth = {r.term_id: r for r in other.results}
    rows = []
    for term_id in [*ref, *(t for t in oth if t not in ref)]:
        in_ref = term_id in ref
        in_oth = term_id in oth
        if in_ref and in_oth:
            status = STATUS_SHARED
        elif in_ref:
            status = STATUS_LOST
        else:
            status = STATUS_GAINED
        record = ref.get(term_id) or oth[term_id]
        rows.append(
            {
                "term_id": term_id,
                "term_name": record.term_name,
                "status": status,
                "adjusted_p_val_reference": ref[term_id].adjusted_p_value if in_ref else float("nan"),
                "adjusted_p_val_other": oth[term_id].adjusted_p_value if in_oth else float("nan"),
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            "term_id",
            "term_name",
            "status",
            "adjusted_p_val_reference",
            "adjusted_p_val_other",
        ],
    )


def write_cytoscape_files(
    result: AnalysisResult,
    groups: GroupSet,
    outdir: str | Path,
    prefix: str = "",
) -> dict[str, Path]:
    """Write pathways.txt, subgroups.txt and pathways.gmt for a network viewer.

    The gmt holds the significant terms, with members restricted to the
    configured background when one was given.
    """
    out = Path(outdir)
    ensure_dir(out)
    paths = {
        "pathways": out / f"{prefix}pathways.txt",
        "subgroups": out / f"{prefix}subgroups.txt",
        "gmt": out / f"{prefix}pathways.gmt",
    }
    pd.DataFrame(
        {
            "term_id": result.term_ids,
            "term_name": [r.term_name for r in result.results],
            "adjusted_p_val": [r.adjusted_p_value for r in result.results],
        }
    ).to_csv(paths["pathways"], sep="\t", index=False)
    evidence_indicator_table(result).reset_index().to_csv(paths["subgroups"], sep="\t", index=False)

    background = result.config.background
    selected = []
    for r in result.results:
        group = groups[r.term_id]
        members = group.members if background is None else group.members & background
        selected.append(Group(id=group.id, name=group.name, members=frozenset(members)))
    write_gmt(GroupSet(selected), paths["gmt"])
    return paths
