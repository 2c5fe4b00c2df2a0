from __future__ import annotations

from typing import Sequence

import numpy as np

from moelab.foundation.exceptions import DependencyError
from moelab.foundation.metrics.pareto import nondominated_mask

try:  # pragma: no cover - optional dependency
    import moocore as _moocore  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    _moocore = None


def has_moocore() -> bool:
    return _moocore is not None


def _is_finite_array(arr: np.ndarray) -> bool:
    return bool(np.isfinite(arr).all())


def _validate(F: np.ndarray, ref: np.ndarray) -> None:
    if F.ndim != 2:
        raise ValueError(f"Points must be a 2D array; got shape {F.shape}.")
    if ref.ndim != 1 or ref.shape[0] != F.shape[1]:
        raise ValueError(f"Reference point of shape {ref.shape} does not match {F.shape[1]} objectives.")
    if not _is_finite_array(F) or not _is_finite_array(ref):
        raise ValueError("Points and reference point must contain finite numbers")


def _hv_2d(pts: np.ndarray, ref: np.ndarray) -> float:
    # Sweep by f1 ascending: each point adds the strip between its f2 and the best f2 seen so far.
    order = np.lexsort((pts[:, 1], pts[:, 0]))
    f1 = pts[order, 0]
    f2 = pts[order, 1]
    best_before = np.concatenate(([ref[1]], np.minimum.accumulate(f2)[:-1]))
    heights = np.maximum(best_before - f2, 0.0)
    return float(np.sum((ref[0] - f1) * heights))


def _hv_slicing(pts: np.ndarray, ref: np.ndarray) -> float:
    """
    Hypervolume by slicing objectives (HSO).

    Points are sorted by the last objective; between two consecutive values the
    dominated region is a prism whose cross-section is the hypervolume of the
    points seen so far, projected onto the remaining objectives.
    """
    n, m = pts.shape
    if n == 0:
        return 0.0
    if m == 1:
        return float(ref[0] - pts[:, 0].min())
    if m == 2:
        return _hv_2d(pts, ref)

    order = np.argsort(pts[:, -1], kind="mergesort")
    pts = pts[order]
    bounds = np.append(pts[1:, -1], ref[-1])
    volume = 0.0
    for i in range(n):
        depth = bounds[i] - pts[i, -1]
        if depth <= 0.0:
            continue
        section = pts[: i + 1, :-1]
        section = section[nondominated_mask(section)]
        volume += depth * _hv_slicing(section, ref[:-1])
    return float(volume)


def hypervolume(F: np.ndarray, reference_point: Sequence[float]) -> float:
    """
    Exact hypervolume of a minimization front.

    Parameters
    - F: array-like shape (n_points, n_objectives)
    - reference_point: sequence of length n_objectives (worst values)

    Returns
    - hypervolume (float); 0.0 when no point strictly dominates the reference point

    Notes
    - Two objectives use an O(n log n) sweep; more objectives recurse by slicing,
      which is exponential in the number of objectives but exact.
    """
    F = np.asarray(F, dtype=float)
    ref = np.asarray(reference_point, dtype=float)
    if F.size == 0:
        return 0.0
    _validate(F, ref)

    # Only points strictly better than the reference in every objective bound a box.
    pts = F[np.all(F < ref, axis=1)]
    if pts.shape[0] == 0:
        return 0.0
    pts = pts[nondominated_mask(pts)]
    return float(max(_hv_slicing(pts, ref), 0.0))


def hypervolume_monte_carlo(
    F: np.ndarray,
    reference_point: Sequence[float],
    *,
    samples: int = 100_000,
    seed: int = 0,
) -> float:
    """
    Monte Carlo estimate of the hypervolume, seeded for reproducibility.

    Samples are drawn uniformly in the box spanned by the ideal point of F and the reference point.
    """
    F = np.asarray(F, dtype=float)
    ref = np.asarray(reference_point, dtype=float)
    if F.size == 0:
        return 0.0
    _validate(F, ref)
    pts = F[np.all(F < ref, axis=1)]
    if pts.shape[0] == 0:
        return 0.0
    lower = pts.min(axis=0)
    box = float(np.prod(ref - lower))
    rng = np.random.default_rng(seed)
    hits = 0
    chunk = 10_000
    remaining = int(samples)
    while remaining > 0:
        size = min(chunk, remaining)
        draws = rng.uniform(lower, ref, size=(size, ref.shape[0]))
        covered = np.any(np.all(pts[None, :, :] <= draws[:, None, :], axis=2), axis=1)
        hits += int(covered.sum())
        remaining -= size
    return box * hits / float(samples)


def hypervolume_moocore(F: np.ndarray, reference_point: Sequence[float]) -> float:
    if not has_moocore():
        raise DependencyError("moocore", "the moocore hypervolume backend", "pip install moelab[backends]")
    F = np.asarray(F, dtype=float)
    ref = np.asarray(reference_point, dtype=float)
    if F.size == 0:
        return 0.0
    _validate(F, ref)
    return float(_moocore.hypervolume(F, ref=ref))


__all__ = ["hypervolume", "hypervolume_monte_carlo", "hypervolume_moocore", "has_moocore"]
