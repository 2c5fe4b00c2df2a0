"""
Config loading utilities for programmatic entrypoints.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from moelab.foundation.core.experiment_config import StudyConfig
from moelab.foundation.exceptions import DependencyError


def load_config_mapping(path: str | Path) -> Dict[str, Any]:
    """
    Load a YAML or JSON study configuration file.
    """
    spec_path = Path(path).expanduser().resolve()
    if not spec_path.exists():
        raise FileNotFoundError(f"Config file '{spec_path}' does not exist.")
    suffix = spec_path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise DependencyError("pyyaml", "YAML study configs", "pip install moelab[yaml]") from exc
        with spec_path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    with spec_path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_study_config(path: str | Path) -> StudyConfig:
    """Load and validate a StudyConfig from a JSON or YAML file."""
    return StudyConfig.from_dict(load_config_mapping(path)).validate()


__all__ = ["load_config_mapping", "load_study_config"]
