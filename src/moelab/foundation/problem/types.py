from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from moelab.foundation.exceptions import ObjectiveCountError


class ProblemProtocol(Protocol):
    """Objective functions are only called by algorithms, never by the study pipeline."""

    n_obj: int

    def evaluate(self, *args: Any, **kwargs: Any) -> Any: ...


@dataclass(frozen=True)
class ExperimentProblem:
    """
    A problem registered in a study under a unique label.

    ``reference_front`` optionally supplies the true Pareto front as an array or a
    path to a front file; otherwise the study derives one from all runs.
    """

    label: str
    n_obj: int
    problem: Any = None
    reference_front: Any = None

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError("Problem label must be a non-empty string.")
        if int(self.n_obj) < 1:
            raise ObjectiveCountError(f"Problem '{self.label}' must have at least one objective.", actual=self.n_obj)

    @classmethod
    def of(cls, problem: ProblemProtocol, label: str | None = None, reference_front: Any = None) -> "ExperimentProblem":
        name = label or getattr(problem, "name", None) or type(problem).__name__
        return cls(label=str(name), n_obj=int(problem.n_obj), problem=problem, reference_front=reference_front)

    def check_objectives(self, F: np.ndarray) -> None:
        F = np.asarray(F)
        if F.ndim != 2 or F.shape[1] != self.n_obj:
            actual = int(F.shape[1]) if F.ndim == 2 else None
            raise ObjectiveCountError(
                f"Problem '{self.label}' expects {self.n_obj} objectives, got array of shape {F.shape}.",
                expected=self.n_obj,
                actual=actual,
            )


__all__ = ["ProblemProtocol", "ExperimentProblem"]
