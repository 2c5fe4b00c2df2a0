from __future__ import annotations

import importlib

import numpy as np
import pytest

from moelab.foundation.exceptions import DependencyError
from moelab.foundation.metrics.hypervolume import hypervolume, hypervolume_moocore, hypervolume_monte_carlo

# the package re-exports the function under the submodule name
hv_module = importlib.import_module("moelab.foundation.metrics.hypervolume")


def test_two_point_front_against_offset_reference() -> None:
    F = np.array([[0.0, 1.0], [1.0, 0.0]])

    # Union of [0,1.1]x[1,1.1] and [1,1.1]x[0,1.1]: 1.1*0.1 + 0.1*1.0
    assert hypervolume(F, [1.1, 1.1]) == pytest.approx(0.21)


def test_single_point_is_a_box() -> None:
    assert hypervolume(np.array([[0.5, 0.5]]), [1.0, 1.0]) == pytest.approx(0.25)
    assert hypervolume(np.array([[0.0, 0.0, 0.0]]), [1.0, 2.0, 3.0]) == pytest.approx(6.0)


def test_three_objective_union_of_boxes() -> None:
    F = np.array([[0.0, 0.0, 1.0], [1.0, 1.0, 0.0]])

    # 2*2*1 + 1*1*2 - overlap 1*1*1
    assert hypervolume(F, [2.0, 2.0, 2.0]) == pytest.approx(5.0)


def test_points_outside_reference_do_not_count() -> None:
    assert hypervolume(np.array([[2.0, 2.0]]), [1.0, 1.0]) == 0.0
    assert hypervolume(np.array([[1.0, 0.5]]), [1.0, 1.0]) == 0.0
    assert hypervolume(np.empty((0, 2)), [1.0, 1.0]) == 0.0


def test_dominated_points_do_not_change_the_value() -> None:
    F = np.array([[0.2, 0.8], [0.5, 0.5], [0.8, 0.2]])
    with_dominated = np.vstack([F, [[0.9, 0.9], [0.6, 0.6]]])

    assert hypervolume(with_dominated, [1.0, 1.0]) == pytest.approx(hypervolume(F, [1.0, 1.0]))


def test_adding_a_dominating_point_never_decreases() -> None:
    rng = np.random.default_rng(11)
    F = rng.random((30, 3))
    base = hypervolume(F, [1.1, 1.1, 1.1])

    better = np.vstack([F, F.min(axis=0, keepdims=True) * 0.5])

    assert hypervolume(better, [1.1, 1.1, 1.1]) >= base


def test_exact_matches_monte_carlo_estimate() -> None:
    rng = np.random.default_rng(2)
    F = rng.random((15, 3))
    ref = [1.1, 1.1, 1.1]

    exact = hypervolume(F, ref)
    estimate = hypervolume_monte_carlo(F, ref, samples=200_000, seed=1)

    assert estimate == pytest.approx(exact, abs=0.01)


def test_monte_carlo_is_reproducible() -> None:
    F = np.array([[0.2, 0.6], [0.6, 0.2]])
    a = hypervolume_monte_carlo(F, [1.0, 1.0], samples=5_000, seed=7)
    b = hypervolume_monte_carlo(F, [1.0, 1.0], samples=5_000, seed=7)
    assert a == b


def test_reference_point_shape_is_validated() -> None:
    with pytest.raises(ValueError):
        hypervolume(np.array([[0.0, 1.0]]), [1.0, 1.0, 1.0])
    with pytest.raises(ValueError):
        hypervolume(np.array([[0.0, np.nan]]), [1.0, 1.0])


def test_moocore_backend_requires_dependency(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(hv_module, "_moocore", None)

    with pytest.raises(DependencyError, match="moocore"):
        hypervolume_moocore(np.array([[0.0, 1.0]]), [1.0, 2.0])
