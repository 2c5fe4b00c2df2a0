from __future__ import annotations

from typing import Any, Callable

import pytest

from moelab.experiment.study.model import Experiment
from moelab.experiment.study.types import AlgorithmVariant
from moelab.foundation.core.experiment_config import OUTPUT_ROOT_ENV, StudyConfig
from moelab.foundation.problem.types import ExperimentProblem
from study_helpers import ConvexProblem, sampler


@pytest.fixture(autouse=True)
def _isolated_output_root(tmp_path, monkeypatch):
    monkeypatch.setenv(OUTPUT_ROOT_ENV, str(tmp_path / "results"))


@pytest.fixture
def convex_problem() -> ExperimentProblem:
    return ExperimentProblem.of(ConvexProblem(), label="Convex")


@pytest.fixture
def make_experiment(convex_problem: ExperimentProblem) -> Callable[..., Experiment]:
    """Experiment on the convex problem with one sampler per (tag, offset) pair."""

    def factory(offsets: dict[str, float] | None = None, **config: Any) -> Experiment:
        offsets = offsets if offsets is not None else {"A": 0.0, "B": 0.05, "C": 0.1}
        variants = [AlgorithmVariant(tag, convex_problem, sampler(offset=off)) for tag, off in offsets.items()]
        config.setdefault("independent_runs", 5)
        config.setdefault("n_workers", 1)
        return Experiment.of([convex_problem], variants, StudyConfig(**config))

    return factory
