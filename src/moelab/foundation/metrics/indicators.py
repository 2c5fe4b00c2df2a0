"""
Quality indicator catalog.

Each indicator scores an approximation set against a reference front (or, for the
hypervolume, a reference point). Computations that cannot be carried out on the
given inputs (empty approximation, degenerate reference front, zero denominator)
return an undefined result (``value is None``) instead of raising, so callers can
record a missing cell rather than a misleading number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

import numpy as np
from scipy.spatial.distance import cdist  # type: ignore[import-untyped]

from moelab.foundation.core.experiment_config import HV_REFERENCE_OFFSET
from moelab.foundation.core.hv_reference import compute_hv_reference
from moelab.foundation.exceptions import InvalidIndicatorError
from moelab.foundation.metrics.hypervolume import hypervolume, hypervolume_monte_carlo, hypervolume_moocore
from moelab.foundation.metrics.pareto import lexicographic_order

# Reference fronts with fewer points than this are degenerate.
MIN_REFERENCE_POINTS = 2


@dataclass
class IndicatorResult:
    value: float | None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def defined(self) -> bool:
        return self.value is not None

    @classmethod
    def undefined(cls, reason: str, **details: Any) -> "IndicatorResult":
        return cls(value=None, details={"reason": reason, **details})


class QualityIndicator(Protocol):
    name: str
    higher_is_better: bool
    requires_reference_front: bool

    def compute(
        self,
        front: np.ndarray,
        reference_front: Optional[np.ndarray] = None,
        **kwargs: Any,
    ) -> IndicatorResult: ...


def _as_front(arr: Any) -> np.ndarray:
    out = np.asarray(arr, dtype=float)
    if out.ndim == 1:
        out = out.reshape(1, -1) if out.size else out.reshape(0, 0)
    return out


def _check_inputs(front: Any, reference_front: Any) -> tuple[np.ndarray, np.ndarray] | IndicatorResult:
    F = _as_front(front)
    if F.shape[0] == 0:
        return IndicatorResult.undefined("empty approximation set")
    if not np.isfinite(F).all():
        return IndicatorResult.undefined("approximation set contains non-finite values")
    if reference_front is None:
        return IndicatorResult.undefined("missing reference front")
    R = _as_front(reference_front)
    if not np.isfinite(R).all():
        return IndicatorResult.undefined("reference front contains non-finite values")
    if R.shape[0] < MIN_REFERENCE_POINTS:
        return IndicatorResult.undefined("degenerate reference front", n_points=int(R.shape[0]))
    if R.shape[1] != F.shape[1]:
        raise ValueError(f"Approximation set has {F.shape[1]} objectives but the reference front has {R.shape[1]}.")
    return F, R


def normalize_fronts(front: np.ndarray, reference_front: np.ndarray) -> tuple[np.ndarray, np.ndarray] | None:
    """
    Min-max normalise both sets with the bounds of the reference front.

    Returns None when some objective has zero range in the reference front.
    """
    R = _as_front(reference_front)
    F = _as_front(front)
    lower = R.min(axis=0)
    span = R.max(axis=0) - lower
    if np.any(span <= 0.0):
        return None
    return (F - lower) / span, (R - lower) / span


@dataclass
class GenerationalDistance:
    """Mean distance from each approximation point to its nearest reference point."""

    name: str = "GD"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        nearest = cdist(F, R).min(axis=1)
        return IndicatorResult(value=float(nearest.mean()))


@dataclass
class InvertedGenerationalDistance:
    """Mean distance from each reference point to its nearest approximation point."""

    name: str = "IGD"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        nearest = cdist(R, F).min(axis=1)
        return IndicatorResult(value=float(nearest.mean()))


@dataclass
class InvertedGenerationalDistancePlus:
    """IGD with the dominance-aware distance ``||max(a - z, 0)||``."""

    name: str = "IGD+"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        deltas = np.maximum(F[:, None, :] - R[None, :, :], 0.0)
        distances = np.linalg.norm(deltas, axis=2)
        return IndicatorResult(value=float(distances.min(axis=0).mean()))


@dataclass
class AdditiveEpsilon:
    """Smallest additive shift making the approximation weakly dominate every reference point."""

    name: str = "EP"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        shifts = np.max(F[:, None, :] - R[None, :, :], axis=2)
        return IndicatorResult(value=float(shifts.min(axis=0).max()))


@dataclass
class Spread:
    """
    Deb's spread (Delta) for bi-objective fronts.

    Both sets are sorted lexicographically; the extreme gaps to the reference
    front plus the deviation of consecutive gaps from their mean are normalised by
    the ideal total length. A single-point approximation scores 1.0.
    """

    name: str = "SPREAD"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        F = F[lexicographic_order(F)]
        R = R[lexicographic_order(R)]
        n = F.shape[0]
        d_first = float(np.linalg.norm(F[0] - R[0]))
        d_last = float(np.linalg.norm(F[-1] - R[-1]))
        if n == 1:
            return IndicatorResult(value=1.0, details={"d_first": d_first, "d_last": d_last})
        gaps = np.linalg.norm(np.diff(F, axis=0), axis=1)
        mean_gap = float(gaps.mean())
        denominator = d_first + d_last + (n - 1) * mean_gap
        if denominator <= 0.0:
            return IndicatorResult.undefined("zero spread denominator")
        numerator = d_first + d_last + float(np.abs(gaps - mean_gap).sum())
        return IndicatorResult(value=numerator / denominator, details={"d_first": d_first, "d_last": d_last})


@dataclass
class GeneralizedSpread:
    """
    Spread for any number of objectives.

    Uses the per-objective extreme points of the reference front and each
    approximation point's nearest-neighbour distance within the approximation.
    """

    name: str = "GSPREAD"
    higher_is_better: bool = False
    requires_reference_front: bool = True

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        checked = _check_inputs(front, reference_front)
        if isinstance(checked, IndicatorResult):
            return checked
        F, R = checked
        F = F[lexicographic_order(F)]
        if F.shape[0] == 1 or np.linalg.norm(F[0] - F[-1]) == 0.0:
            return IndicatorResult(value=1.0)
        extremes = R[np.argmax(R, axis=0)]
        d_extremes = float(cdist(extremes, F).min(axis=1).sum())
        inner = cdist(F, F)
        np.fill_diagonal(inner, np.inf)
        nearest = inner.min(axis=1)
        mean_nearest = float(nearest.mean())
        denominator = d_extremes + F.shape[0] * mean_nearest
        if denominator <= 0.0:
            return IndicatorResult.undefined("zero spread denominator")
        return IndicatorResult(value=(d_extremes + float(np.abs(nearest - mean_nearest).sum())) / denominator)


@dataclass
class Hypervolume:
    """
    Hypervolume bounded by ``reference_point``.

    When no reference point is configured it is derived from the reference front
    (worst value per objective plus ``offset``). ``method`` selects the exact
    slicing algorithm (default), a seeded Monte Carlo estimate, or moocore.
    """

    reference_point: Optional[np.ndarray] = None
    offset: float = HV_REFERENCE_OFFSET
    method: str = "exact"
    samples: int = 100_000
    seed: int = 0
    name: str = "HV"
    higher_is_better: bool = True
    requires_reference_front: bool = False

    def compute(self, front: np.ndarray, reference_front: Optional[np.ndarray] = None, **_: Any) -> IndicatorResult:
        F = _as_front(front)
        if F.shape[0] == 0:
            return IndicatorResult.undefined("empty approximation set")
        if not np.isfinite(F).all():
            return IndicatorResult.undefined("approximation set contains non-finite values")
        if self.reference_point is not None:
            ref = np.asarray(self.reference_point, dtype=float)
        elif reference_front is not None and np.asarray(reference_front).size:
            ref = compute_hv_reference([_as_front(reference_front)], offset=self.offset)
        else:
            return IndicatorResult.undefined("missing hypervolume reference point")
        if ref.shape[0] != F.shape[1]:
            raise ValueError(f"Reference point has {ref.shape[0]} objectives but the front has {F.shape[1]}.")

        if self.method == "exact":
            val = hypervolume(F, ref)
        elif self.method == "monte_carlo":
            val = hypervolume_monte_carlo(F, ref, samples=self.samples, seed=self.seed)
        elif self.method == "moocore":
            val = hypervolume_moocore(F, ref)
        else:
            raise ValueError(f"Unknown hypervolume method '{self.method}'.")
        return IndicatorResult(value=val, details={"reference_point": ref, "method": self.method})


_CATALOG: dict[str, type] = {
    "GD": GenerationalDistance,
    "IGD": InvertedGenerationalDistance,
    "IGD+": InvertedGenerationalDistancePlus,
    "EP": AdditiveEpsilon,
    "SPREAD": Spread,
    "GSPREAD": GeneralizedSpread,
    "HV": Hypervolume,
}

_ALIASES: dict[str, str] = {
    "gd": "GD",
    "generational_distance": "GD",
    "igd": "IGD",
    "inverted_generational_distance": "IGD",
    "igd+": "IGD+",
    "igd_plus": "IGD+",
    "ep": "EP",
    "eps": "EP",
    "epsilon": "EP",
    "epsilon_additive": "EP",
    "spread": "SPREAD",
    "delta": "SPREAD",
    "gspread": "GSPREAD",
    "generalized_spread": "GSPREAD",
    "hv": "HV",
    "hypervolume": "HV",
}

INDICATOR_NAMES: tuple[str, ...] = tuple(_CATALOG)


def canonical_indicator_name(name: str) -> str:
    key = str(name).strip().lower()
    try:
        return _ALIASES[key]
    except KeyError:
        raise InvalidIndicatorError(str(name), list(INDICATOR_NAMES)) from None


def indicator_is_minimization(name: str) -> bool:
    return canonical_indicator_name(name) != "HV"


def get_indicator(name: str, **kwargs: Any) -> QualityIndicator:
    return _CATALOG[canonical_indicator_name(name)](**kwargs)


def resolve_indicators(names: Sequence[str]) -> tuple[str, ...]:
    """Canonical, de-duplicated indicator names in the given order."""
    resolved: list[str] = []
    for name in names:
        canonical = canonical_indicator_name(name)
        if canonical not in resolved:
            resolved.append(canonical)
    return tuple(resolved)


__all__ = [
    "IndicatorResult",
    "QualityIndicator",
    "MIN_REFERENCE_POINTS",
    "normalize_fronts",
    "GenerationalDistance",
    "InvertedGenerationalDistance",
    "InvertedGenerationalDistancePlus",
    "AdditiveEpsilon",
    "Spread",
    "GeneralizedSpread",
    "Hypervolume",
    "INDICATOR_NAMES",
    "canonical_indicator_name",
    "indicator_is_minimization",
    "get_indicator",
    "resolve_indicators",
]
