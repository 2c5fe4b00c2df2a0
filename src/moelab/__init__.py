from .experiment.study import (
    AlgorithmVariant,
    ComparisonReport,
    ExecuteAlgorithms,
    ExecutionResult,
    Experiment,
    ExperimentBuilder,
    GenerateReferenceFronts,
    ComputeQualityIndicators,
    IndicatorTable,
    ReferenceFront,
    RunFailure,
    RunRecord,
    StatisticalComparison,
    StudyOutcome,
    TSVPersister,
    run_study,
)
from .foundation.core.config_loader import load_study_config
from .foundation.core.experiment_config import StudyConfig
from .foundation.core.solutions import Solution, SolutionSet
from .foundation.exceptions import MOELabError
from .foundation.logging import configure_moelab_logging
from .foundation.metrics import get_indicator, hypervolume, pareto_filter
from .foundation.problem import ExperimentProblem
from .foundation.version import get_version
from .ux.analysis import friedman_test, rank_sum_test

__version__ = get_version()

__all__ = [
    "AlgorithmVariant",
    "ComparisonReport",
    "ComputeQualityIndicators",
    "ExecuteAlgorithms",
    "ExecutionResult",
    "Experiment",
    "ExperimentBuilder",
    "ExperimentProblem",
    "GenerateReferenceFronts",
    "IndicatorTable",
    "MOELabError",
    "ReferenceFront",
    "RunFailure",
    "RunRecord",
    "Solution",
    "SolutionSet",
    "StatisticalComparison",
    "StudyConfig",
    "StudyOutcome",
    "TSVPersister",
    "configure_moelab_logging",
    "friedman_test",
    "get_indicator",
    "hypervolume",
    "load_study_config",
    "pareto_filter",
    "rank_sum_test",
    "run_study",
]
