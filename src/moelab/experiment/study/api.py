from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from moelab.experiment.study.comparison import ComparisonReport, StatisticalComparison
from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import StudyPersister
from moelab.experiment.study.quality import ComputeQualityIndicators, IndicatorTable
from moelab.experiment.study.reference_front import GenerateReferenceFronts, ReferenceFront
from moelab.experiment.study.scheduler import ExecuteAlgorithms, ExecutionResult
from moelab.experiment.study.types import AlgorithmBuilder, AlgorithmVariant
from moelab.foundation.core.experiment_config import StudyConfig
from moelab.foundation.exceptions import ConfigurationError
from moelab.foundation.problem.types import ExperimentProblem


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


class ExperimentBuilder:
    """
    Fluent builder for an :class:`Experiment`.

    Example:
        experiment = (
            ExperimentBuilder("ZDTStudy")
            .set_problem_list(problems)
            .set_algorithm_list(variants)
            .set_independent_runs(25)
            .set_number_of_cores(8)
            .set_indicator_list(["EP", "SPREAD", "GD", "HV", "IGD", "IGD+"])
            .build()
        )
    """

    def __init__(self, name: str | None = None, config: StudyConfig | None = None) -> None:
        self._cfg: dict[str, Any] = config.to_dict() if config is not None else {}
        if config is not None:
            # to_dict() flattens arrays; keep the caller's objects instead.
            self._cfg["reference_fronts"] = dict(config.reference_fronts)
            self._cfg["hv_reference_point"] = config.hv_reference_point
        if name is not None:
            self._cfg["name"] = name
        self._problems: list[ExperimentProblem] = []
        self._variants: list[AlgorithmVariant] = []

    def set_problem_list(self, problems: Iterable[ExperimentProblem]) -> "ExperimentBuilder":
        self._problems = list(problems)
        return self

    def add_problem(self, problem: ExperimentProblem) -> "ExperimentBuilder":
        self._problems.append(problem)
        return self

    def set_algorithm_list(self, variants: Iterable[AlgorithmVariant]) -> "ExperimentBuilder":
        self._variants = list(variants)
        return self

    def add_algorithm(
        self,
        tag: str,
        builder: AlgorithmBuilder,
        *,
        problems: Sequence[str] | None = None,
        **params: Any,
    ) -> "ExperimentBuilder":
        """Bind ``builder`` under ``tag`` to every registered problem (or the listed labels)."""
        if not self._problems:
            raise ConfigurationError(
                f"Cannot bind algorithm '{tag}' before any problem is registered.",
                "Call set_problem_list() first",
            )
        labels = set(problems) if problems is not None else None
        for problem in self._problems:
            if labels is None or problem.label in labels:
                self._variants.append(AlgorithmVariant(tag=tag, problem=problem, builder=builder, params=dict(params)))
        return self

    def set_experiment_base_directory(self, path: str | Path) -> "ExperimentBuilder":
        self._cfg["output_root"] = str(path)
        return self

    def set_reference_front_directory(self, path: str | Path) -> "ExperimentBuilder":
        self._cfg["reference_front_dir"] = str(path)
        return self

    def set_reference_fronts(self, fronts: Mapping[str, Any]) -> "ExperimentBuilder":
        self._cfg["reference_fronts"] = dict(fronts)
        return self

    def set_indicator_list(self, indicators: Sequence[str]) -> "ExperimentBuilder":
        self._cfg["indicators"] = tuple(indicators)
        return self

    def set_independent_runs(self, value: int) -> "ExperimentBuilder":
        self._cfg["independent_runs"] = value
        return self

    def set_number_of_cores(self, value: int) -> "ExperimentBuilder":
        self._cfg["n_workers"] = value
        return self

    def set_seed(self, value: int) -> "ExperimentBuilder":
        self._cfg["seed"] = int(value)
        return self

    def set_significance_level(self, value: float) -> "ExperimentBuilder":
        self._cfg["alpha"] = float(value)
        return self

    def set_hv_reference_point(self, point: Sequence[float] | Mapping[str, Sequence[float]]) -> "ExperimentBuilder":
        self._cfg["hv_reference_point"] = point
        return self

    def set_output_file_names(self, front: str = "FUN", solutions: str = "VAR") -> "ExperimentBuilder":
        self._cfg["output_front_name"] = front
        self._cfg["output_set_name"] = solutions
        return self

    def set_executor(self, kind: str, *, job_timeout: float | None = None) -> "ExperimentBuilder":
        self._cfg["executor"] = kind
        self._cfg["job_timeout"] = job_timeout
        return self

    def configure(self, **options: Any) -> "ExperimentBuilder":
        """Set any other :class:`StudyConfig` field by name."""
        self._cfg.update(options)
        return self

    def build(self) -> Experiment:
        config = StudyConfig.from_dict(self._cfg)
        return Experiment(problems=tuple(self._problems), variants=tuple(self._variants), config=config)


@dataclass
class StudyOutcome:
    experiment: Experiment
    execution: ExecutionResult
    fronts: dict[str, ReferenceFront]
    indicators: IndicatorTable
    comparison: ComparisonReport

    @property
    def ok(self) -> bool:
        return self.execution.ok


def run_study(
    experiment: Experiment,
    *,
    persister: StudyPersister | None = None,
    execution: ExecutionResult | None = None,
) -> StudyOutcome:
    """
    Execute algorithms, build reference fronts, compute indicators and compare.

    Pass ``execution`` (for example ``ExecutionResult.from_directory(experiment)``)
    to skip the algorithm runs and recompute the later stages. Nothing is
    written to disk unless a ``persister`` is given.
    """
    _logger().info(
        "[Study] %s: %d problem(s), %d variant(s), %d run(s) each",
        experiment.name,
        len(experiment.problems),
        len(experiment.variants),
        experiment.independent_runs,
    )
    if execution is None:
        execution = ExecuteAlgorithms(experiment, persister=persister).run()
    fronts = GenerateReferenceFronts(experiment, persister=persister).run(execution)
    table = ComputeQualityIndicators(experiment, persister=persister).run(execution, fronts)
    comparison = StatisticalComparison(experiment).run(table)
    if persister is not None:
        persister.save_statistics(experiment.config, comparison)
    return StudyOutcome(experiment, execution, fronts, table, comparison)


__all__ = ["Experiment", "ExperimentBuilder", "StudyOutcome", "run_study"]
