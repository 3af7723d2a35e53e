"""File I/O: group definitions, score tables, result tables and logging."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from pathfuse.core.groups import GroupSet
from pathfuse.core.types import AnalysisResult, Group
from pathfuse.exceptions import InputValidationError

LIST_SEPARATOR = "|"


def ensure_dir(path: str | Path) -> None:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)


def write_json(path: str | Path, payload: dict[str, Any]) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)


def setup_logger(log_path: str | Path, logger_name: str) -> logging.Logger:
    """Log run progress to `log_path` and to stderr, replacing earlier handlers."""
    log_path = Path(log_path)
    ensure_dir(log_path.parent)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)
    return logger


def read_gmt(path: str | Path) -> GroupSet:
    """Read tab-separated group definitions: id, name, member ids..."""
    gmt_path = Path(path)
    if not gmt_path.exists():
        raise FileNotFoundError(f"Group file '{gmt_path}' not found.")
    groups: list[Group] = []
    with gmt_path.open("r", encoding="utf-8") as handle:
        for lineno, raw_line in enumerate(handle, start=1):
            line = raw_line.rstrip("\r\n")
            if not line.strip():
                continue
            fields = line.split("\t")
            if len(fields) < 2:
                raise InputValidationError(
                    f"Malformed group line {lineno} in '{gmt_path}': expected id and name."
                )
            members = [m.strip() for m in fields[2:] if m.strip()]
            groups.append(Group.create(fields[0].strip(), fields[1].strip(), members))
    return GroupSet(groups)


def write_gmt(groups: GroupSet, path: str | Path) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as handle:
        for group in groups.values():
            handle.write("\t".join([group.id, group.name, *sorted(group.members)]) + "\n")


def read_scores(path: str | Path, sep: str = "\t") -> pd.DataFrame:
    """Read an entity x dataset table; the first column holds entity ids."""
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Score table '{table_path}' not found.")
    frame = pd.read_csv(table_path, sep=sep, index_col=0)
    frame.index = frame.index.map(str)
    return frame


def _join(values: Iterable[str]) -> str:
    return LIST_SEPARATOR.join(str(v) for v in values)


def results_table(result: AnalysisResult) -> pd.DataFrame:
    """Result frame with list columns flattened to `|`-joined strings."""
    frame = result.to_frame()
    for col in frame.columns:
        if col in ("overlap", "evidence") or col.startswith("Genes_"):
            frame[col] = frame[col].map(_join)
    return frame


def export_results(result: AnalysisResult, path: str | Path, sep: str = "\t") -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    results_table(result).to_csv(out, sep=sep, index=False)
    return out
