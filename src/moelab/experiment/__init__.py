"""
Experiment layer: study orchestration, scheduling, reference fronts, indicators and comparison.
"""

from .study.api import Experiment, ExperimentBuilder, StudyOutcome, run_study

__all__ = ["Experiment", "ExperimentBuilder", "StudyOutcome", "run_study"]
