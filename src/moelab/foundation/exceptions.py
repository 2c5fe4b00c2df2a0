"""
moelab exception hierarchy.

Provides user-friendly exceptions with helpful error messages and suggestions.
All moelab-specific exceptions inherit from MOELabError for easy catching.

Example:
    try:
        outcome = run_study(experiment)
    except MOELabError as e:
        print(f"Study failed: {e}")
        print(f"Suggestion: {e.suggestion}")
"""

from __future__ import annotations

import difflib
from typing import Any


def _suggest_names(name: str, options: list[str], *, limit: int = 3) -> list[str]:
    lowered = {opt.lower(): opt for opt in options}
    matches = difflib.get_close_matches(name.lower(), list(lowered), n=limit, cutoff=0.5)
    return [lowered[m] for m in matches]


class MOELabError(Exception):
    """
    Base exception for all moelab errors.

    Attributes:
        message: Human-readable error description
        suggestion: Optional suggestion for fixing the error
        details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with suggestion."""
        msg = self.message
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(MOELabError):
    """Raised when the study configuration is invalid or incomplete."""

    pass


class InvalidIndicatorError(ConfigurationError):
    """Raised when an indicator outside the catalog is requested."""

    def __init__(self, indicator: str, available: list[str] | None = None) -> None:
        available = available or ["GD", "IGD", "IGD+", "EP", "SPREAD", "GSPREAD", "HV"]
        message = f"Unknown quality indicator '{indicator}'."
        close = _suggest_names(indicator, available)
        if close:
            suggestion = f"Did you mean {', '.join(close)}? Available indicators: {', '.join(available)}"
        else:
            suggestion = f"Available indicators: {', '.join(available)}"
        super().__init__(message, suggestion, {"indicator": indicator, "available": available})


class InvalidRunCountError(ConfigurationError):
    """Raised when the number of independent runs is not a positive integer."""

    def __init__(self, value: Any) -> None:
        message = f"independent_runs must be a positive integer, got {value!r}."
        suggestion = "Use at least one independent run (25-30 is common for significance testing)"
        super().__init__(message, suggestion, {"independent_runs": value})


class InvalidWorkerCountError(ConfigurationError):
    """Raised when the worker-pool size is not a positive integer."""

    def __init__(self, value: Any) -> None:
        message = f"n_workers must be a positive integer, got {value!r}."
        suggestion = "Leave n_workers unset to use every available core"
        super().__init__(message, suggestion, {"n_workers": value})


class MissingConfigError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(self, field: str, config_class: str | None = None) -> None:
        message = f"Missing required configuration: '{field}'."
        suggestion = f"Add '{field}' to your configuration"
        if config_class:
            suggestion += f" or use {config_class}() for sensible defaults"
        super().__init__(message, suggestion, {"field": field})


# =============================================================================
# Problem Errors
# =============================================================================


class ProblemError(MOELabError):
    """Base class for problem-related errors."""

    pass


class ObjectiveCountError(ProblemError):
    """Raised when objective vectors do not match the problem's objective count."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        suggestion = "Check that the algorithm returns one objective value per problem objective"
        super().__init__(message, suggestion, {"expected": expected, "actual": actual})


# =============================================================================
# Runtime Errors
# =============================================================================


class OptimizationError(MOELabError):
    """Raised when an optimization run fails during execution."""

    pass


class AlgorithmFailure(OptimizationError):
    """Raised inside a job when an algorithm faults or returns an empty result."""

    def __init__(self, message: str, tag: str | None = None, run: int | None = None) -> None:
        suggestion = "Inspect the algorithm's run() method; the scheduler records this run as failed"
        super().__init__(message, suggestion, {"tag": tag, "run": run})


# =============================================================================
# Data/IO Errors
# =============================================================================


class DataError(MOELabError):
    """Base class for data-related errors."""

    pass


class ResultsNotFoundError(DataError):
    """Raised when expected results files are missing."""

    def __init__(self, path: str) -> None:
        message = f"Results not found at '{path}'."
        suggestion = "Check the path or execute the algorithms first"
        super().__init__(message, suggestion, {"path": path})


class InvalidResultsError(DataError):
    """Raised when results data is invalid or corrupted."""

    def __init__(self, message: str, path: str | None = None) -> None:
        suggestion = "Results may be corrupted. Try re-running the study."
        super().__init__(message, suggestion, {"path": path})


# =============================================================================
# Dependency Errors
# =============================================================================


class DependencyError(MOELabError):
    """Raised when an optional dependency is missing."""

    def __init__(self, package: str, feature: str, install_cmd: str | None = None) -> None:
        message = f"'{package}' is required for {feature} but not installed."
        install_cmd = install_cmd or f"pip install {package}"
        suggestion = f"Install with: {install_cmd}"
        super().__init__(message, suggestion, {"package": package, "feature": feature})


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Base
    "MOELabError",
    # Configuration
    "ConfigurationError",
    "InvalidIndicatorError",
    "InvalidRunCountError",
    "InvalidWorkerCountError",
    "MissingConfigError",
    # Problem
    "ProblemError",
    "ObjectiveCountError",
    # Runtime
    "OptimizationError",
    "AlgorithmFailure",
    # Data/IO
    "DataError",
    "ResultsNotFoundError",
    "InvalidResultsError",
    # Dependencies
    "DependencyError",
]
