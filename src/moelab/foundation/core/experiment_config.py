from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np

from moelab.foundation.exceptions import (
    ConfigurationError,
    InvalidRunCountError,
    InvalidWorkerCountError,
)

TITLE = "moelab study"
DEFAULT_STUDY_NAME = "study"
DEFAULT_INDEPENDENT_RUNS = 25
DEFAULT_ALPHA = 0.05
DEFAULT_SEED = 42
HV_REFERENCE_OFFSET = 0.1
DEFAULT_INDICATORS = ("EP", "SPREAD", "GD", "HV", "IGD", "IGD+")
EXECUTOR_KINDS = ("thread", "process")
OUTPUT_ROOT_ENV = "MOELAB_OUTPUT_ROOT"


def available_cores() -> int:
    return max(1, os.cpu_count() or 1)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and int(value) > 0


@dataclass(frozen=True)
class StudyConfig:
    """
    Configuration surface of a comparative study.

    Reference fronts (``reference_fronts``) and hypervolume reference points
    (``hv_reference_point``) may be keyed by problem label. ``hv_reference_point``
    also accepts a single vector applied to every problem.
    """

    name: str = DEFAULT_STUDY_NAME
    # Capture the environment at instantiation time so test fixtures that tweak
    # MOELAB_OUTPUT_ROOT take effect even if the module was imported earlier.
    output_root: str = field(default_factory=lambda: os.environ.get(OUTPUT_ROOT_ENV, "results"))
    independent_runs: int = DEFAULT_INDEPENDENT_RUNS
    n_workers: int | None = None
    seed: int = DEFAULT_SEED
    indicators: tuple[str, ...] = DEFAULT_INDICATORS
    alpha: float = DEFAULT_ALPHA
    reference_fronts: Mapping[str, Any] = field(default_factory=dict)
    reference_front_dir: str | None = None
    hv_reference_point: Sequence[float] | Mapping[str, Sequence[float]] | None = None
    hv_reference_offset: float = HV_REFERENCE_OFFSET
    dominance_tolerance: float = 0.0
    keep_duplicates: bool = False
    normalize: bool = False
    executor: str = "thread"
    job_timeout: float | None = None
    output_front_name: str = "FUN"
    output_set_name: str = "VAR"

    def resolved_workers(self) -> int:
        return int(self.n_workers) if self.n_workers is not None else available_cores()

    def study_dir(self) -> Path:
        return Path(self.output_root) / self.name

    def validate(self) -> "StudyConfig":
        """
        Check the configuration and return a copy with canonical indicator names.

        Raises ConfigurationError (or a subclass) on the first problem found.
        """
        from moelab.foundation.metrics.indicators import resolve_indicators

        if not _is_positive_int(self.independent_runs):
            raise InvalidRunCountError(self.independent_runs)
        if self.n_workers is not None and not _is_positive_int(self.n_workers):
            raise InvalidWorkerCountError(self.n_workers)
        if isinstance(self.indicators, str) or not self.indicators:
            raise ConfigurationError(
                "At least one quality indicator must be configured.",
                "Pass a list such as ['HV', 'IGD+']",
                {"indicators": self.indicators},
            )
        indicators = resolve_indicators(self.indicators)
        if not 0.0 < float(self.alpha) < 1.0:
            raise ConfigurationError(f"alpha must be in (0, 1), got {self.alpha!r}.", "The usual significance level is 0.05")
        if self.executor not in EXECUTOR_KINDS:
            raise ConfigurationError(
                f"Unknown executor '{self.executor}'.",
                f"Available executors: {', '.join(EXECUTOR_KINDS)}",
                {"executor": self.executor},
            )
        if self.job_timeout is not None and float(self.job_timeout) <= 0.0:
            raise ConfigurationError(f"job_timeout must be positive, got {self.job_timeout!r}.")
        if float(self.hv_reference_offset) < 0.0:
            raise ConfigurationError(f"hv_reference_offset must be non-negative, got {self.hv_reference_offset!r}.")
        if float(self.dominance_tolerance) < 0.0:
            raise ConfigurationError(f"dominance_tolerance must be non-negative, got {self.dominance_tolerance!r}.")
        if not self.name or any(sep in self.name for sep in ("/", "\\")):
            raise ConfigurationError(f"Invalid study name {self.name!r}.", "Use a plain directory name")
        return replace(self, independent_runs=int(self.independent_runs), indicators=indicators)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StudyConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown study configuration keys: {', '.join(unknown)}.",
                f"Valid keys: {', '.join(sorted(known))}",
                {"unknown": unknown},
            )
        kwargs = dict(data)
        if "indicators" in kwargs and not isinstance(kwargs["indicators"], str):
            kwargs["indicators"] = tuple(kwargs["indicators"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, Mapping):
                value = {k: (np.asarray(v).tolist() if not isinstance(v, (str, Path)) else str(v)) for k, v in value.items()}
            elif isinstance(value, np.ndarray):
                value = value.tolist()
            out[f.name] = value
        return out


__all__ = [
    "TITLE",
    "DEFAULT_STUDY_NAME",
    "DEFAULT_INDEPENDENT_RUNS",
    "DEFAULT_ALPHA",
    "DEFAULT_SEED",
    "HV_REFERENCE_OFFSET",
    "DEFAULT_INDICATORS",
    "EXECUTOR_KINDS",
    "OUTPUT_ROOT_ENV",
    "available_cores",
    "StudyConfig",
]
