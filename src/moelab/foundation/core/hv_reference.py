"""
Hypervolume reference-point utilities for orchestration layers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from moelab.foundation.core.experiment_config import HV_REFERENCE_OFFSET


def compute_hv_reference(fronts: Iterable[np.ndarray | None], offset: float = HV_REFERENCE_OFFSET) -> np.ndarray:
    """
    Build a hypervolume reference point that weakly dominates all supplied fronts.
    A margin of ``max(|max| * offset, offset)`` is added per objective to keep the
    reference outside the sampled region even when solutions lie on the boundary.
    """
    collected = []
    for idx, front in enumerate(fronts):
        if front is None:
            continue
        arr = np.asarray(front, dtype=float)
        if arr.size == 0:
            continue
        if arr.ndim != 2:
            raise ValueError(f"Front {idx} must be a 2D array; got shape {arr.shape}.")
        collected.append(arr)

    if not collected:
        raise ValueError("At least one non-empty front is required to compute a reference point.")

    n_obj = collected[0].shape[1]
    for arr in collected:
        if arr.shape[1] != n_obj:
            raise ValueError("All fronts must have the same number of objectives.")

    stacked = np.vstack(collected)
    max_vals = stacked.max(axis=0)
    margin = np.maximum(np.abs(max_vals) * offset, offset)
    return np.asarray(max_vals + margin, dtype=float)


def resolve_hv_reference(
    label: str,
    configured: Sequence[float] | Mapping[str, Sequence[float]] | None,
    reference_front: np.ndarray | None,
    *,
    offset: float = HV_REFERENCE_OFFSET,
) -> np.ndarray | None:
    """
    Reference point for one problem: the configured vector (global or keyed by
    problem label) when present, otherwise derived from the reference front.
    Returns None when neither source is available.
    """
    if configured is not None:
        if isinstance(configured, Mapping):
            point = configured.get(label)
        else:
            point = configured
        if point is not None:
            return np.asarray(point, dtype=float)
    if reference_front is None or np.asarray(reference_front).size == 0:
        return None
    return compute_hv_reference([reference_front], offset=offset)


__all__ = ["compute_hv_reference", "resolve_hv_reference"]
