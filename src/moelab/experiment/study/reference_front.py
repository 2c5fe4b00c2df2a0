"""
Reference front construction: supplied fronts are used as given, all others are
the non-dominated union of every successful run on the problem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import StudyPersister
from moelab.experiment.study.scheduler import ExecutionResult
from moelab.foundation.core.io_utils import read_matrix
from moelab.foundation.metrics.indicators import MIN_REFERENCE_POINTS
from moelab.foundation.metrics.pareto import count_distinct, pareto_filter
from moelab.foundation.problem.types import ExperimentProblem

SUPPLIED = "supplied"
DERIVED = "derived"
_FRONT_SUFFIXES = (".tsv", ".csv", ".pf", ".txt")


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceFront:
    """
    Reference Pareto front of one problem.

    ``origins`` holds, for derived fronts, the tag of the variant that first
    produced each front point; ``X`` is the matching Pareto set when every
    contributing run reported decision variables.
    """

    problem: str
    F: np.ndarray
    source: str
    X: np.ndarray | None = None
    origins: tuple[str, ...] = field(default_factory=tuple)

    @property
    def degenerate(self) -> bool:
        return count_distinct(self.F) < MIN_REFERENCE_POINTS

    @property
    def contributions(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for tag in self.origins:
            counts[tag] = counts.get(tag, 0) + 1
        return counts

    def points_of(self, tag: str) -> np.ndarray:
        mask = np.array([origin == tag for origin in self.origins], dtype=bool)
        if mask.size == 0:
            return self.F[:0]
        return self.F[mask]

    def __len__(self) -> int:
        return int(self.F.shape[0])


def _load_front(value: Any) -> np.ndarray:
    if isinstance(value, (str, Path)):
        return read_matrix(value)
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    return arr


class GenerateReferenceFronts:
    """
    Build one reference front per problem.

    This stage is a barrier: it only looks at the finished ``ExecutionResult``.
    """

    def __init__(self, experiment: Experiment, *, persister: StudyPersister | None = None) -> None:
        self.experiment = experiment
        self.persister = persister

    def supplied_front(self, problem: ExperimentProblem) -> np.ndarray | None:
        config = self.experiment.config
        if problem.label in config.reference_fronts:
            return _load_front(config.reference_fronts[problem.label])
        if problem.reference_front is not None:
            return _load_front(problem.reference_front)
        if config.reference_front_dir:
            base = Path(config.reference_front_dir)
            for suffix in _FRONT_SUFFIXES:
                candidate = base / f"{problem.label}{suffix}"
                if candidate.exists():
                    return read_matrix(candidate)
        return None

    def derive_front(self, problem: ExperimentProblem, execution: ExecutionResult) -> ReferenceFront:
        config = self.experiment.config
        tags: list[str] = []
        objectives: list[np.ndarray] = []
        decisions: list[np.ndarray] = []
        for variant in self.experiment.variants_for(problem.label):
            for record in execution.runs_of(variant.tag, problem.label):
                objectives.append(record.solutions.F)
                decisions.append(record.solutions.X)
                tags.extend([variant.tag] * len(record.solutions))
        if not objectives:
            _logger().warning("[Study] No successful run on %s; its reference front is empty.", problem.label)
            return ReferenceFront(problem.label, np.empty((0, problem.n_obj)), DERIVED)

        pooled = np.vstack(objectives)
        front, idx = pareto_filter(
            pooled,
            return_indices=True,
            tolerance=config.dominance_tolerance,
            keep_duplicates=config.keep_duplicates,
        )
        X = None
        widths = {d.shape[1] for d in decisions}
        if len(widths) == 1 and widths.pop() > 0:
            X = np.vstack(decisions)[idx]
        return ReferenceFront(problem.label, front, DERIVED, X=X, origins=tuple(tags[i] for i in idx))

    def run(self, execution: ExecutionResult) -> dict[str, ReferenceFront]:
        fronts: dict[str, ReferenceFront] = {}
        for problem in self.experiment.problems:
            supplied = self.supplied_front(problem)
            if supplied is not None:
                problem.check_objectives(supplied)
                front = ReferenceFront(problem.label, supplied, SUPPLIED)
            else:
                front = self.derive_front(problem, execution)
            if front.degenerate:
                _logger().warning(
                    "[Study] Reference front of %s is degenerate (%d point(s)); front-based indicators are undefined.",
                    problem.label,
                    len(front),
                )
            else:
                _logger().info("[Study] Reference front of %s: %d point(s) (%s)", problem.label, len(front), front.source)
            if self.persister is not None:
                self.persister.save_reference_front(self.experiment.config, front)
            fronts[problem.label] = front
        return fronts


__all__ = ["ReferenceFront", "GenerateReferenceFronts", "SUPPLIED", "DERIVED"]
