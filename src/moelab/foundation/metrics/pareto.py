from __future__ import annotations

from typing import Literal, overload

import numpy as np

# Rows compared per block when building dominance masks; bounds peak memory at
# roughly _BLOCK_ROWS * N * M booleans.
_BLOCK_ROWS = 256


def dominates(a: np.ndarray, b: np.ndarray, *, tolerance: float = 0.0) -> bool:
    """
    Pareto dominance for minimization.

    ``a`` dominates ``b`` when ``a_k <= b_k + tolerance`` for every objective and
    ``a_k < b_k - tolerance`` for at least one. Equal vectors never dominate each other.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"Cannot compare vectors of shapes {a.shape} and {b.shape}.")
    return bool(np.all(a <= b + tolerance) and np.any(a < b - tolerance))


def nondominated_mask(F: np.ndarray, *, tolerance: float = 0.0) -> np.ndarray:
    """
    Boolean mask of rows of ``F`` not dominated by any other row.

    Args:
        F: Objective values (n_points, n_objectives), minimization.
        tolerance: Dominance tolerance, see :func:`dominates`.
    """
    F = np.asarray(F, dtype=float)
    if F.ndim != 2:
        raise ValueError(f"F must be a 2D array; got shape {F.shape}.")
    n = F.shape[0]
    mask = np.ones(n, dtype=bool)
    if n <= 1:
        return mask
    for start in range(0, n, _BLOCK_ROWS):
        block = F[start : start + _BLOCK_ROWS]
        # le[i, j]: F[j] is no worse than block[i]; lt[i, j]: F[j] strictly better somewhere
        le = np.all(F[None, :, :] <= block[:, None, :] + tolerance, axis=2)
        lt = np.any(F[None, :, :] < block[:, None, :] - tolerance, axis=2)
        mask[start : start + block.shape[0]] = ~np.any(le & lt, axis=1)
    return mask


def lexicographic_order(F: np.ndarray) -> np.ndarray:
    """Stable order by the first objective, ties broken by the following ones."""
    F = np.asarray(F, dtype=float)
    if F.shape[0] == 0:
        return np.array([], dtype=int)
    return np.lexsort(F.T[::-1])


@overload
def pareto_filter(
    F: np.ndarray | None,
    *,
    return_indices: Literal[False] = False,
    tolerance: float = ...,
    keep_duplicates: bool = ...,
) -> np.ndarray | None: ...


@overload
def pareto_filter(
    F: np.ndarray | None,
    *,
    return_indices: Literal[True],
    tolerance: float = ...,
    keep_duplicates: bool = ...,
) -> tuple[np.ndarray, np.ndarray]: ...


def pareto_filter(
    F: np.ndarray | None,
    *,
    return_indices: bool = False,
    tolerance: float = 0.0,
    keep_duplicates: bool = True,
) -> np.ndarray | tuple[np.ndarray, np.ndarray] | None:
    """
    Return the non-dominated subset of points (first Pareto front).

    The result is ordered lexicographically (first objective ascending, ties broken
    by the following objectives), so identical inputs always produce identical
    outputs and filtering an already non-dominated set is idempotent.

    Args:
        F: Objective values array (n_solutions, n_objectives) or None.
        return_indices: When True, also return indices of the front in F.
        tolerance: Dominance tolerance, see :func:`dominates`.
        keep_duplicates: When False, identical objective vectors collapse to the first occurrence.

    Returns:
        Front array, or (front, indices) when return_indices is True.
    """
    if F is None:
        if return_indices:
            return np.empty((0, 0)), np.array([], dtype=int)
        return None
    F = np.asarray(F, dtype=float)
    if F.size == 0 or F.ndim < 2:
        if return_indices:
            n = int(F.shape[0]) if F.ndim > 0 else 0
            return F, np.arange(n, dtype=int)
        return F

    order = lexicographic_order(F)
    sorted_F = F[order]
    mask = nondominated_mask(sorted_F, tolerance=tolerance)
    idx = order[mask]
    if not keep_duplicates and idx.size > 1:
        front = F[idx]
        # duplicates are adjacent after the lexicographic sort
        repeated = np.all(front[1:] == front[:-1], axis=1)
        idx = idx[np.concatenate(([True], ~repeated))]
    front = F[idx]
    return (front, idx) if return_indices else front


def count_distinct(F: np.ndarray) -> int:
    F = np.asarray(F, dtype=float)
    if F.ndim != 2 or F.shape[0] == 0:
        return 0
    return int(np.unique(F, axis=0).shape[0])


__all__ = ["dominates", "nondominated_mask", "lexicographic_order", "pareto_filter", "count_distinct"]
