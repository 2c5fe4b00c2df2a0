from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from moelab.foundation.core.solutions import SolutionSet
from moelab.foundation.problem.types import ExperimentProblem


class Algorithm(Protocol):
    """Opaque search procedure bound to one problem."""

    def run(self) -> Any: ...


AlgorithmBuilder = Callable[[ExperimentProblem, int], Algorithm]


class _PrototypeBuilder:
    """Builds a fresh deep copy of a prototype algorithm per job; picklable."""

    def __init__(self, prototype: Any, seed_attribute: str | None = None) -> None:
        self.prototype = prototype
        self.seed_attribute = seed_attribute

    def __call__(self, problem: ExperimentProblem, seed: int) -> Any:
        algorithm = copy.deepcopy(self.prototype)
        if self.seed_attribute:
            setattr(algorithm, self.seed_attribute, seed)
        return algorithm


@dataclass(frozen=True)
class AlgorithmVariant:
    """
    An algorithm configuration bound to a problem.

    ``tag`` identifies the variant across problems (the same tag on several
    problems is the same algorithm configuration). ``builder(problem, seed)``
    returns a new algorithm instance for every job so runs never share state.
    """

    tag: str
    problem: ExperimentProblem
    builder: AlgorithmBuilder
    params: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not self.tag:
            raise ValueError("Algorithm tag must be a non-empty string.")
        if not callable(self.builder):
            raise TypeError(f"Builder for '{self.tag}' must be callable.")

    @classmethod
    def from_instance(
        cls,
        tag: str,
        problem: ExperimentProblem,
        algorithm: Any,
        *,
        seed_attribute: str | None = None,
    ) -> "AlgorithmVariant":
        """Wrap a configured algorithm object; each job runs a deep copy of it."""
        return cls(tag=tag, problem=problem, builder=_PrototypeBuilder(algorithm, seed_attribute))

    @property
    def key(self) -> tuple[str, str]:
        return (self.tag, self.problem.label)

    def build(self, seed: int) -> Any:
        return self.builder(self.problem, seed)


@dataclass(frozen=True)
class RunRecord:
    """Result of one successful (variant, run index) job."""

    tag: str
    problem: str
    run: int
    seed: int
    solutions: SolutionSet
    elapsed: float
    output_dir: str | None = None

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.tag, self.problem, self.run)

    def to_row(self) -> dict[str, Any]:
        return {
            "algorithm": self.tag,
            "problem": self.problem,
            "run": self.run,
            "seed": self.seed,
            "n_solutions": len(self.solutions),
            "time_ms": self.elapsed * 1000.0,
            "output_dir": self.output_dir,
        }


@dataclass(frozen=True)
class RunFailure:
    """A job whose algorithm raised, timed out, or returned an unusable result."""

    tag: str
    problem: str
    run: int
    seed: int
    error_type: str
    message: str
    elapsed: float = 0.0

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.tag, self.problem, self.run)

    def to_row(self) -> dict[str, Any]:
        return {
            "algorithm": self.tag,
            "problem": self.problem,
            "run": self.run,
            "seed": self.seed,
            "error_type": self.error_type,
            "message": self.message,
        }


__all__ = ["Algorithm", "AlgorithmBuilder", "AlgorithmVariant", "RunRecord", "RunFailure"]
