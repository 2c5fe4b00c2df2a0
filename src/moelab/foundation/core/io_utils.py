"""
Persistence helpers for run artifacts (tab-separated matrices, timings).
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from moelab.foundation.exceptions import InvalidResultsError, ResultsNotFoundError


def ensure_dir(path: str | Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_matrix(path: str | Path, values: np.ndarray) -> Path:
    """Write a 2D array as tab-separated rows (one solution per line)."""
    path = Path(path)
    ensure_dir(path.parent)
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    np.savetxt(path, arr, delimiter="\t", fmt="%.17g")
    return path


def read_matrix(path: str | Path) -> np.ndarray:
    """Read a whitespace, tab or comma separated matrix; always returns a 2D array."""
    path = Path(path)
    if not path.exists():
        raise ResultsNotFoundError(str(path))
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return np.empty((0, 0))
    delimiter = "," if "," in text.splitlines()[0] else None
    try:
        arr = np.loadtxt(path, delimiter=delimiter, ndmin=2)
    except ValueError as exc:
        raise InvalidResultsError(f"Could not parse matrix file '{path}': {exc}", str(path)) from exc
    return np.asarray(arr, dtype=float)


def write_values(path: str | Path, values: list[float | None]) -> Path:
    """Write one scalar per line; undefined values are written as NaN."""
    path = Path(path)
    ensure_dir(path.parent)
    lines = ["NaN" if v is None else repr(float(v)) for v in values]
    path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    return path


def write_timing(path: str | Path, elapsed_seconds: float) -> Path:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(f"{elapsed_seconds * 1000.0:.2f}\n", encoding="utf-8")
    return path


__all__ = ["ensure_dir", "write_matrix", "read_matrix", "write_values", "write_timing"]
