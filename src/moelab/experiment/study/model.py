from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from moelab.experiment.study.types import AlgorithmVariant
from moelab.foundation.core.experiment_config import StudyConfig
from moelab.foundation.exceptions import ConfigurationError, MissingConfigError
from moelab.foundation.problem.types import ExperimentProblem


@dataclass(frozen=True)
class Experiment:
    """
    Immutable description of a study: problems, algorithm variants bound to them,
    and the configuration. Construction validates everything that can be checked
    before a single job is scheduled.
    """

    problems: tuple[ExperimentProblem, ...]
    variants: tuple[AlgorithmVariant, ...]
    config: StudyConfig

    def __post_init__(self) -> None:
        object.__setattr__(self, "problems", tuple(self.problems))
        object.__setattr__(self, "variants", tuple(self.variants))
        if not self.problems:
            raise MissingConfigError("problems")
        if not self.variants:
            raise MissingConfigError("algorithms")

        labels = [p.label for p in self.problems]
        duplicated = sorted({label for label in labels if labels.count(label) > 1})
        if duplicated:
            raise ConfigurationError(f"Duplicated problem labels: {', '.join(duplicated)}.", "Give every problem a unique label")

        seen: set[tuple[str, str]] = set()
        for variant in self.variants:
            if variant.problem.label not in labels:
                raise ConfigurationError(
                    f"Algorithm '{variant.tag}' is bound to unregistered problem '{variant.problem.label}'.",
                    "Add the problem to the problem list",
                )
            if variant.key in seen:
                raise ConfigurationError(
                    f"Algorithm '{variant.tag}' is bound twice to problem '{variant.problem.label}'.",
                    "Use distinct tags for distinct configurations",
                )
            seen.add(variant.key)

        config = self.config.validate()
        object.__setattr__(self, "config", config)
        self._check_supplied_fronts()

    def _check_supplied_fronts(self) -> None:
        labels = {p.label for p in self.problems}
        for label, front in self.config.reference_fronts.items():
            if label not in labels:
                raise ConfigurationError(f"Reference front supplied for unknown problem '{label}'.")
            if isinstance(front, (str, Path)) and not Path(front).exists():
                raise ConfigurationError(f"Reference front file '{front}' for problem '{label}' does not exist.")
        for problem in self.problems:
            front = problem.reference_front
            if isinstance(front, (str, Path)) and not Path(front).exists():
                raise ConfigurationError(f"Reference front file '{front}' for problem '{problem.label}' does not exist.")

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def independent_runs(self) -> int:
        return self.config.independent_runs

    def problem(self, label: str) -> ExperimentProblem:
        for problem in self.problems:
            if problem.label == label:
                return problem
        raise KeyError(label)

    def variants_for(self, label: str) -> list[AlgorithmVariant]:
        return [v for v in self.variants if v.problem.label == label]

    def tags(self) -> list[str]:
        """Algorithm tags in configuration order, without repetitions."""
        out: list[str] = []
        for variant in self.variants:
            if variant.tag not in out:
                out.append(variant.tag)
        return out

    def jobs(self) -> list[tuple[AlgorithmVariant, int, int]]:
        """(variant, run index, seed) in submission order: variants outer, runs inner."""
        return [
            (variant, run, self.config.seed + run)
            for variant in self.variants
            for run in range(self.config.independent_runs)
        ]

    @classmethod
    def of(
        cls,
        problems: Sequence[ExperimentProblem],
        variants: Sequence[AlgorithmVariant],
        config: StudyConfig | None = None,
    ) -> "Experiment":
        return cls(problems=tuple(problems), variants=tuple(variants), config=config or StudyConfig())


__all__ = ["Experiment"]
