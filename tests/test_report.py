import pandas as pd

from pathfuse.analysis import run_analysis
from pathfuse.core.groups import GroupSet
from pathfuse.core.types import COMBINED_LABEL, AnalysisConfig
from pathfuse.io import read_gmt
from pathfuse.report import compare_results, evidence_indicator_table, write_cytoscape_files


def _make_study():
    genes = [f"g{i}" for i in range(60)]
    scores = pd.DataFrame({"rna": 0.9, "protein": 0.9}, index=genes)
    scores.loc[[f"g{i}" for i in range(5)], ["rna", "protein"]] = 0.06
    scores.loc[[f"g{i}" for i in range(5, 10)], "rna"] = 0.001
    groups = GroupSet.from_mapping(
        {
            "T": ("fused only", [f"g{i}" for i in range(5)]),
            "U": ("rna driven", [f"g{i}" for i in range(5, 10)]),
            "filler": ("filler", genes[10:]),
        }
    )
    return scores, groups


def _runs():
    scores, groups = _make_study()
    cfg = AnalysisConfig(cutoff=0.05, significant=0.05)
    plain = run_analysis(scores, groups, cfg)
    directions = pd.DataFrame(1.0, index=scores.index, columns=scores.columns)
    directions.loc[[f"g{i}" for i in range(5)], "protein"] = -1.0
    directional = run_analysis(
        scores, groups, cfg, scores_direction=directions, constraints_vector=[1, 1]
    )
    return plain, directional, groups


def test_evidence_indicator_table():
    plain, _, _ = _runs()
    table = evidence_indicator_table(plain)
    assert list(table.columns) == ["rna", "protein", COMBINED_LABEL]
    assert table.loc["T"].tolist() == [0, 0, 1]
    assert table.loc["U"].tolist() == [1, 0, 0]


def test_compare_results_lost_gained_shared():
    plain, directional, _ = _runs()
    cmp = compare_results(plain, directional).set_index("term_id")
    assert cmp.loc["T", "status"] == "lost"
    assert cmp.loc["U", "status"] == "shared"
    reverse = compare_results(directional, plain).set_index("term_id")
    assert reverse.loc["T", "status"] == "gained"
    assert pd.isna(reverse.loc["T", "adjusted_p_val_reference"])


def test_write_cytoscape_files(tmp_path):
    plain, _, groups = _runs()
    paths = write_cytoscape_files(plain, groups, tmp_path, prefix="run1_")
    assert paths["pathways"].name == "run1_pathways.txt"
    pathways = pd.read_csv(paths["pathways"], sep="\t")
    assert list(pathways["term_id"]) == ["T", "U"]
    subgroups = pd.read_csv(paths["subgroups"], sep="\t")
    assert list(subgroups.columns) == ["term_id", "rna", "protein", COMBINED_LABEL]
    gmt = read_gmt(paths["gmt"])
    assert list(gmt) == ["T", "U"]
    assert gmt["U"].members == groups["U"].members
