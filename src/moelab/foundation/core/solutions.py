"""
Immutable solution containers produced by algorithm runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

import numpy as np


@dataclass(frozen=True)
class Solution:
    variables: tuple[float, ...]
    objectives: tuple[float, ...]

    @classmethod
    def of(cls, variables: Iterable[Any], objectives: Iterable[Any]) -> "Solution":
        return cls(tuple(float(v) for v in variables), tuple(float(f) for f in objectives))

    @property
    def n_obj(self) -> int:
        return len(self.objectives)


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


class SolutionSet:
    """
    Read-only collection of solutions returned by one run.

    ``X`` holds decision variables (n, n_var) and ``F`` objectives (n, n_obj).
    A run without decision variables stores an (n, 0) ``X``.
    """

    __slots__ = ("_X", "_F")

    def __init__(self, X: Any, F: Any) -> None:
        F_arr = np.asarray(F, dtype=float)
        if F_arr.ndim == 1:
            F_arr = F_arr.reshape(1, -1) if F_arr.size else F_arr.reshape(0, 0)
        if F_arr.ndim != 2:
            raise ValueError(f"F must be a 2D array; got shape {F_arr.shape}.")
        if X is None:
            X_arr = np.empty((F_arr.shape[0], 0), dtype=float)
        else:
            X_arr = np.asarray(X, dtype=float)
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(1, -1) if F_arr.shape[0] == 1 else X_arr.reshape(-1, 1)
            if X_arr.size == 0:
                X_arr = X_arr.reshape(F_arr.shape[0], 0) if F_arr.shape[0] else np.empty((0, 0))
        if X_arr.shape[0] != F_arr.shape[0]:
            raise ValueError(f"X has {X_arr.shape[0]} rows but F has {F_arr.shape[0]}.")
        self._X = _readonly(X_arr)
        self._F = _readonly(F_arr)

    @classmethod
    def from_solutions(cls, solutions: Iterable[Solution]) -> "SolutionSet":
        items = list(solutions)
        if not items:
            return cls.empty()
        X = np.array([s.variables for s in items], dtype=float)
        F = np.array([s.objectives for s in items], dtype=float)
        return cls(X, F)

    @classmethod
    def empty(cls, n_obj: int = 0) -> "SolutionSet":
        return cls(np.empty((0, 0)), np.empty((0, n_obj)))

    @classmethod
    def coerce(cls, result: Any) -> "SolutionSet":
        """
        Accept the common shapes an algorithm may return: a SolutionSet, a
        sequence of Solution objects, an ``(X, F)`` pair, a mapping with
        ``"X"``/``"F"`` keys, any object exposing ``X`` and ``F`` attributes, or
        a bare objective matrix.
        """
        if isinstance(result, SolutionSet):
            return result
        if result is None:
            raise TypeError("Algorithm returned None instead of a solution set.")
        if isinstance(result, np.ndarray):
            return cls(None, result if result.ndim == 2 else np.atleast_2d(result))
        if isinstance(result, dict):
            if "F" not in result:
                raise TypeError("Result mapping must contain an 'F' entry.")
            return cls(result.get("X"), result["F"])
        if hasattr(result, "F") and not isinstance(result, (list, tuple)):
            return cls(getattr(result, "X", None), getattr(result, "F"))
        if isinstance(result, tuple) and len(result) == 2 and not isinstance(result[0], Solution):
            return cls(result[0], result[1])
        items = list(result)
        if all(isinstance(item, Solution) for item in items):
            return cls.from_solutions(items)
        raise TypeError(f"Cannot interpret algorithm result of type {type(result).__name__} as a solution set.")

    @property
    def X(self) -> np.ndarray:
        return self._X

    @property
    def F(self) -> np.ndarray:
        return self._F

    @property
    def n_obj(self) -> int:
        return int(self._F.shape[1])

    def is_empty(self) -> bool:
        return self._F.shape[0] == 0

    def __len__(self) -> int:
        return int(self._F.shape[0])

    def __iter__(self) -> Iterator[Solution]:
        for x, f in zip(self._X, self._F):
            yield Solution(tuple(float(v) for v in x), tuple(float(v) for v in f))

    def __repr__(self) -> str:
        return f"SolutionSet(n={len(self)}, n_var={self._X.shape[1]}, n_obj={self.n_obj})"


__all__ = ["Solution", "SolutionSet"]
