from .api import ExperimentBuilder, StudyOutcome, run_study
from .comparison import ComparisonReport, StatisticalComparison, SummaryRow
from .model import Experiment
from .persistence import StudyPersister, TSVPersister
from .quality import ComputeQualityIndicators, IndicatorTable, IndicatorValue, best_and_median_runs
from .reference_front import GenerateReferenceFronts, ReferenceFront
from .scheduler import ExecuteAlgorithms, ExecutionResult
from .types import Algorithm, AlgorithmBuilder, AlgorithmVariant, RunFailure, RunRecord

__all__ = [
    "Algorithm",
    "AlgorithmBuilder",
    "AlgorithmVariant",
    "ComparisonReport",
    "ComputeQualityIndicators",
    "ExecuteAlgorithms",
    "ExecutionResult",
    "Experiment",
    "ExperimentBuilder",
    "GenerateReferenceFronts",
    "IndicatorTable",
    "IndicatorValue",
    "ReferenceFront",
    "RunFailure",
    "RunRecord",
    "StatisticalComparison",
    "StudyOutcome",
    "StudyPersister",
    "SummaryRow",
    "TSVPersister",
    "best_and_median_runs",
    "run_study",
]
