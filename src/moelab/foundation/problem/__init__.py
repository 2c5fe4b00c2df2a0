from .types import ExperimentProblem, ProblemProtocol

__all__ = ["ExperimentProblem", "ProblemProtocol"]
