"""Configuration loading for pathfuse runs."""

from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

from pathfuse.core.types import AnalysisConfig
from pathfuse.exceptions import ConfigurationError


def load_json_config(path: str | Path) -> dict[str, Any]:
    """Load a run config from a JSON file with an object at its root."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ConfigurationError(
            f"Unsupported config format for '{config_path}'. Use a .json config file."
        )

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Invalid JSON in config '{config_path}' at line {exc.lineno}, "
            f"column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid config root in '{config_path}': expected JSON object, got {type(data).__name__}."
        )
    return data


def config_from_mapping(data: Mapping[str, Any], base: AnalysisConfig | None = None) -> AnalysisConfig:
    """Build an `AnalysisConfig`, overriding `base` with the keys in `data`."""
    allowed = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(
            f"Unknown config key(s): {', '.join(unknown)}.",
            {"allowed": ", ".join(sorted(allowed))},
        )
    values = {f.name: getattr(base or AnalysisConfig(), f.name) for f in fields(AnalysisConfig)}
    values.update(data)
    if values["geneset_filter"] is not None:
        lo, *rest = values["geneset_filter"]
        hi = rest[0] if rest else None
        values["geneset_filter"] = (int(lo), float("inf") if hi is None else hi)
    if values["background"] is not None:
        values["background"] = frozenset(str(x) for x in values["background"])
    return AnalysisConfig(**values).validate()
