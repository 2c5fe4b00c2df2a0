from .experiment_config import StudyConfig
from .solutions import Solution, SolutionSet

__all__ = ["StudyConfig", "Solution", "SolutionSet"]
