from __future__ import annotations

import numpy as np
import pytest

from moelab.foundation.exceptions import InvalidIndicatorError
from moelab.foundation.metrics.indicators import (
    INDICATOR_NAMES,
    AdditiveEpsilon,
    GeneralizedSpread,
    GenerationalDistance,
    Hypervolume,
    InvertedGenerationalDistance,
    InvertedGenerationalDistancePlus,
    Spread,
    canonical_indicator_name,
    get_indicator,
    indicator_is_minimization,
    normalize_fronts,
    resolve_indicators,
)

REFERENCE = np.array([[0.0, 1.0], [0.25, 0.5], [0.5, 0.25], [1.0, 0.0]])


@pytest.mark.parametrize("name", ["GD", "IGD", "IGD+", "EP"])
def test_distance_indicators_are_zero_on_the_reference_front(name: str) -> None:
    result = get_indicator(name).compute(REFERENCE.copy(), REFERENCE)

    assert result.value == pytest.approx(0.0)


def test_generational_distance_of_shifted_front() -> None:
    shifted = REFERENCE + np.array([0.3, 0.4])

    result = GenerationalDistance().compute(shifted, REFERENCE)

    # each point is exactly 0.5 away from its own original, which is also the nearest
    assert result.value == pytest.approx(0.5)


def test_gd_and_igd_differ_for_partial_coverage() -> None:
    subset = REFERENCE[:1]

    assert GenerationalDistance().compute(subset, REFERENCE).value == pytest.approx(0.0)
    assert InvertedGenerationalDistance().compute(subset, REFERENCE).value > 0.0


def test_igd_plus_ignores_dominating_points() -> None:
    better = REFERENCE - 0.1

    assert InvertedGenerationalDistancePlus().compute(better, REFERENCE).value == pytest.approx(0.0)
    assert InvertedGenerationalDistance().compute(better, REFERENCE).value > 0.0


def test_additive_epsilon_is_translation_invariant() -> None:
    front = np.array([[0.1, 0.9], [0.6, 0.3]])
    shift = np.array([5.0, -2.0])

    base = AdditiveEpsilon().compute(front, REFERENCE).value
    moved = AdditiveEpsilon().compute(front + shift, REFERENCE + shift).value

    assert moved == pytest.approx(base)


def test_additive_epsilon_of_uniform_shift() -> None:
    assert AdditiveEpsilon().compute(REFERENCE + 0.2, REFERENCE).value == pytest.approx(0.2)


def test_spread_single_point_is_one() -> None:
    result = Spread().compute(np.array([[0.5, 0.5]]), REFERENCE)
    assert result.value == pytest.approx(1.0)


def test_spread_of_evenly_spaced_front_matching_extremes_is_zero() -> None:
    x = np.linspace(0.0, 1.0, 5)
    front = np.column_stack([x, 1.0 - x])

    result = Spread().compute(front, front)

    assert result.value == pytest.approx(0.0)


def test_spread_zero_denominator_is_undefined() -> None:
    R = np.array([[0.0, 1.0], [1.0, 0.0]])
    front = np.array([[0.0, 1.0], [0.0, 1.0]])

    result = Spread().compute(front, np.array([[0.0, 1.0], [0.0, 1.0]]))

    assert result.value is None
    assert result.details["reason"] == "zero spread denominator"
    assert Spread().compute(front, R).value is not None


def test_generalized_spread_handles_three_objectives() -> None:
    R = np.eye(3)
    F = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [0.4, 0.3, 0.3]])

    result = GeneralizedSpread().compute(F, R)

    assert result.defined
    assert result.value >= 0.0


@pytest.mark.parametrize("name", ["GD", "IGD", "IGD+", "EP", "SPREAD", "GSPREAD"])
def test_degenerate_reference_front_is_undefined(name: str) -> None:
    result = get_indicator(name).compute(np.array([[0.2, 0.3]]), np.array([[0.0, 0.0]]))

    assert result.value is None
    assert result.details["reason"] == "degenerate reference front"


@pytest.mark.parametrize("name", INDICATOR_NAMES)
def test_empty_approximation_is_undefined(name: str) -> None:
    result = get_indicator(name).compute(np.empty((0, 2)), REFERENCE)

    assert result.value is None


def test_non_finite_approximation_is_undefined() -> None:
    F = np.array([[0.1, np.inf]])
    assert GenerationalDistance().compute(F, REFERENCE).value is None
    assert Hypervolume(reference_point=np.array([1.0, 1.0])).compute(F).value is None


@pytest.mark.parametrize("name", ["GD", "IGD", "IGD+", "EP", "SPREAD", "GSPREAD"])
def test_non_finite_reference_front_is_undefined(name: str) -> None:
    reference = np.array([[np.nan, 0.5], [0.0, 1.0], [1.0, 0.0]])

    result = get_indicator(name).compute(np.array([[0.2, 0.8]]), reference)

    assert result.value is None
    assert result.details["reason"] == "reference front contains non-finite values"


def test_objective_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        GenerationalDistance().compute(np.array([[0.0, 0.0, 0.0]]), REFERENCE)


def test_hypervolume_derives_reference_point_from_front() -> None:
    front = np.array([[0.0, 1.0], [1.0, 0.0]])

    result = Hypervolume().compute(front, front)

    assert result.value == pytest.approx(0.21)
    np.testing.assert_allclose(result.details["reference_point"], [1.1, 1.1])


def test_hypervolume_single_point_front_is_defined() -> None:
    result = Hypervolume().compute(np.array([[0.5, 0.5]]), np.array([[0.5, 0.5]]))

    # margin is max(0.5 * 0.1, 0.1): reference (0.6, 0.6)
    assert result.value == pytest.approx(0.01)


def test_hypervolume_without_reference_is_undefined() -> None:
    assert Hypervolume().compute(np.array([[0.5, 0.5]])).value is None


def test_hypervolume_monte_carlo_method() -> None:
    front = np.array([[0.0, 1.0], [1.0, 0.0]])
    result = Hypervolume(reference_point=np.array([1.1, 1.1]), method="monte_carlo", samples=50_000).compute(front)
    assert result.value == pytest.approx(0.21, abs=0.01)


def test_catalog_names_and_aliases() -> None:
    assert canonical_indicator_name("hypervolume") == "HV"
    assert canonical_indicator_name("Epsilon") == "EP"
    assert canonical_indicator_name("igd_plus") == "IGD+"
    assert canonical_indicator_name("delta") == "SPREAD"
    assert resolve_indicators(["hv", "HV", "igd"]) == ("HV", "IGD")
    assert not indicator_is_minimization("hv")
    assert indicator_is_minimization("IGD+")


def test_unknown_indicator_suggests_close_names() -> None:
    with pytest.raises(InvalidIndicatorError) as excinfo:
        canonical_indicator_name("IGDD")

    assert "IGD" in excinfo.value.suggestion


def test_normalize_fronts_uses_reference_bounds() -> None:
    R = np.array([[0.0, 10.0], [2.0, 0.0]])
    F = np.array([[1.0, 5.0]])

    pair = normalize_fronts(F, R)

    assert pair is not None
    np.testing.assert_allclose(pair[0], [[0.5, 0.5]])
    np.testing.assert_allclose(pair[1], [[0.0, 1.0], [1.0, 0.0]])
    assert normalize_fronts(F, np.array([[0.0, 1.0], [0.0, 2.0]])) is None
