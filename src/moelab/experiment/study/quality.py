"""
Quality indicator computation for every successful run of a study.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

import numpy as np
from joblib import Parallel, delayed

from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import StudyPersister, import_pandas
from moelab.experiment.study.reference_front import ReferenceFront
from moelab.experiment.study.scheduler import ExecutionResult
from moelab.experiment.study.types import RunRecord
from moelab.foundation.core.hv_reference import resolve_hv_reference
from moelab.foundation.metrics.indicators import (
    IndicatorResult,
    QualityIndicator,
    get_indicator,
    indicator_is_minimization,
    normalize_fronts,
)


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class IndicatorValue:
    indicator: str
    tag: str
    problem: str
    run: int
    value: float | None
    reason: str | None = None

    @property
    def defined(self) -> bool:
        return self.value is not None

    @property
    def key(self) -> tuple[str, str, str, int]:
        return (self.indicator, self.tag, self.problem, self.run)


class IndicatorTable:
    """
    Append-only table of indicator values keyed by (indicator, tag, problem, run).

    Undefined cells are kept (``value is None``) so they can be counted, but are
    never part of the samples handed to the statistics.
    """

    def __init__(self) -> None:
        self._rows: list[IndicatorValue] = []
        self._index: dict[tuple[str, str, str, int], IndicatorValue] = {}
        self._lock = threading.Lock()

    def append(self, row: IndicatorValue) -> None:
        with self._lock:
            if row.key in self._index:
                raise ValueError(f"Duplicated indicator cell {row.key}.")
            self._index[row.key] = row
            self._rows.append(row)

    def extend(self, rows: list[IndicatorValue]) -> None:
        for row in rows:
            self.append(row)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[IndicatorValue]:
        return iter(list(self._rows))

    def get(self, indicator: str, tag: str, problem: str, run: int) -> IndicatorValue | None:
        return self._index.get((indicator, tag, problem, run))

    def _ordered(self, attr: str) -> list[str]:
        out: list[str] = []
        for row in self._rows:
            value = getattr(row, attr)
            if value not in out:
                out.append(value)
        return out

    def indicators(self) -> list[str]:
        return self._ordered("indicator")

    def tags(self) -> list[str]:
        return self._ordered("tag")

    def problems(self) -> list[str]:
        return self._ordered("problem")

    def groups(self) -> list[tuple[str, str, str]]:
        """(indicator, tag, problem) triples in insertion order."""
        out: list[tuple[str, str, str]] = []
        seen: set[tuple[str, str, str]] = set()
        for row in self._rows:
            key = (row.indicator, row.tag, row.problem)
            if key not in seen:
                seen.add(key)
                out.append(key)
        return out

    def cells(self, indicator: str, tag: str, problem: str) -> list[IndicatorValue]:
        rows = [r for r in self._rows if r.indicator == indicator and r.tag == tag and r.problem == problem]
        return sorted(rows, key=lambda r: r.run)

    def values(self, indicator: str, tag: str, problem: str) -> list[float | None]:
        """Per-run values in run order, None for undefined cells."""
        return [r.value for r in self.cells(indicator, tag, problem)]

    def samples(self, indicator: str, tag: str, problem: str) -> np.ndarray:
        """Defined values only, in run order."""
        return np.asarray([v for v in self.values(indicator, tag, problem) if v is not None], dtype=float)

    def to_frame(self) -> Any:
        pd = import_pandas()
        return pd.DataFrame(
            {
                "Algorithm": [r.tag for r in self._rows],
                "Problem": [r.problem for r in self._rows],
                "IndicatorName": [r.indicator for r in self._rows],
                "ExecutionId": [r.run for r in self._rows],
                "IndicatorValue": [np.nan if r.value is None else r.value for r in self._rows],
            }
        )


def _normalize_point(point: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Map a raw-space point with the same min-max bounds :func:`normalize_fronts` uses."""
    lower = reference.min(axis=0)
    span = reference.max(axis=0) - lower
    if np.any(span <= 0.0):
        return point
    return (np.asarray(point, dtype=float) - lower) / span


def _score_run(
    F: np.ndarray,
    reference: np.ndarray,
    degenerate: bool,
    indicators: Mapping[str, QualityIndicator],
    normalize: bool,
) -> dict[str, IndicatorResult]:
    if normalize and not degenerate:
        pair = normalize_fronts(F, reference)
        if pair is None:
            return {name: IndicatorResult.undefined("reference front has an objective with zero range") for name in indicators}
        F, reference = pair

    scores: dict[str, IndicatorResult] = {}
    for name, indicator in indicators.items():
        if degenerate and indicator.requires_reference_front:
            scores[name] = IndicatorResult.undefined("degenerate reference front", n_points=int(reference.shape[0]))
            continue
        try:
            scores[name] = indicator.compute(F, reference)
        except ValueError as exc:
            _logger().warning("[Study] %s could not be computed: %s", name, exc)
            scores[name] = IndicatorResult.undefined(str(exc))
    return scores


class ComputeQualityIndicators:
    """
    Score every successful run against its problem's reference front.

    Runs are independent and scored in parallel (joblib threads); rows are
    appended in (indicator, variant, run) order whatever the completion order.
    """

    def __init__(self, experiment: Experiment, *, persister: StudyPersister | None = None) -> None:
        self.experiment = experiment
        self.persister = persister

    def indicators_for(self, front: ReferenceFront) -> dict[str, QualityIndicator]:
        config = self.experiment.config
        out: dict[str, QualityIndicator] = {}
        for name in config.indicators:
            if name == "HV":
                point = resolve_hv_reference(
                    front.problem,
                    config.hv_reference_point,
                    None if config.normalize else front.F,
                    offset=config.hv_reference_offset,
                )
                if point is not None and config.normalize and not front.degenerate:
                    # configured points are given in raw objective space
                    point = _normalize_point(point, front.F)
                out[name] = get_indicator(name, reference_point=point, offset=config.hv_reference_offset)
            else:
                out[name] = get_indicator(name)
        return out

    def run(self, execution: ExecutionResult, fronts: Mapping[str, ReferenceFront]) -> IndicatorTable:
        config = self.experiment.config
        jobs: list[tuple[RunRecord, ReferenceFront, dict[str, QualityIndicator]]] = []
        for problem in self.experiment.problems:
            front = fronts[problem.label]
            indicators = self.indicators_for(front)
            for variant in self.experiment.variants_for(problem.label):
                for record in execution.runs_of(variant.tag, problem.label):
                    jobs.append((record, front, indicators))

        n_jobs = max(1, min(config.resolved_workers(), len(jobs) or 1))
        scores = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_score_run)(record.solutions.F, front.F, front.degenerate, indicators, config.normalize)
            for record, front, indicators in jobs
        )

        table = IndicatorTable()
        for name in config.indicators:
            for (record, _, _), result in zip(jobs, scores):
                cell = result[name]
                table.append(
                    IndicatorValue(
                        indicator=name,
                        tag=record.tag,
                        problem=record.problem,
                        run=record.run,
                        value=None if cell.value is None else float(cell.value),
                        reason=cell.details.get("reason") if cell.value is None else None,
                    )
                )

        undefined = sum(1 for row in table if not row.defined)
        _logger().info("[Study] Computed %d indicator value(s), %d undefined", len(table), undefined)
        if self.persister is not None:
            self.persister.save_indicators(config, table)
            fronts_by_run = execution.fronts()
            for name in config.indicators:
                self.persister.save_best_and_median(config, name, best_and_median_runs(table, name), fronts_by_run)
        return table


def best_and_median_runs(table: IndicatorTable, indicator: str) -> dict[tuple[str, str], tuple[int, int]]:
    """
    Best and median run index per (tag, problem) for ``indicator``.

    Runs are sorted from best to worst (stable on run index); the median is the
    run at position ``n // 2``. Undefined cells are ignored.
    """
    minimize = indicator_is_minimization(indicator)
    out: dict[tuple[str, str], tuple[int, int]] = {}
    for name, tag, problem in table.groups():
        if name != indicator:
            continue
        cells = [c for c in table.cells(indicator, tag, problem) if c.defined]
        if not cells:
            continue
        ranked = sorted(cells, key=lambda c: (c.value if minimize else -c.value, c.run))  # type: ignore[operator]
        out[(tag, problem)] = (ranked[0].run, ranked[len(ranked) // 2].run)
    return out


__all__ = ["IndicatorValue", "IndicatorTable", "ComputeQualityIndicators", "best_and_median_runs"]
