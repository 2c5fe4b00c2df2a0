"""
On-disk layout of a study.

    <output_root>/<study>/
        data/<tag>/<problem>/FUN<run>.tsv, VAR<run>.tsv, time<run>.txt, <IND>
        referenceFronts/<problem>.tsv, <problem>.ps.tsv, <problem>.<tag>.rf.tsv
        QualityIndicatorSummary.csv
        stats/Mean-<IND>.tsv, Median-<IND>.tsv, Wilcoxon-<IND>.tsv, Friedman-<IND>.tsv
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Protocol

import numpy as np

from moelab.experiment.study.types import RunFailure, RunRecord
from moelab.foundation.core.experiment_config import StudyConfig
from moelab.foundation.core.io_utils import ensure_dir, write_matrix, write_timing, write_values

if TYPE_CHECKING:
    from moelab.experiment.study.comparison import ComparisonReport
    from moelab.experiment.study.quality import IndicatorTable
    from moelab.experiment.study.reference_front import ReferenceFront

SUMMARY_FILE = "QualityIndicatorSummary.csv"
FAILURES_FILE = "failures.json"


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


def import_pandas() -> Any:
    try:
        import pandas as pd
    except ImportError as exc:  # pragma: no cover - pandas is a core dependency
        raise ImportError("Study reporting requires pandas. Install via 'pip install pandas'.") from exc
    return pd


def data_dir(config: StudyConfig) -> Path:
    return config.study_dir() / "data"


def run_dir(config: StudyConfig, tag: str, problem: str) -> Path:
    return data_dir(config) / tag / problem


def reference_front_dir(config: StudyConfig) -> Path:
    return config.study_dir() / "referenceFronts"


def stats_dir(config: StudyConfig) -> Path:
    return config.study_dir() / "stats"


class StudyPersister(Protocol):
    def save_run(self, config: StudyConfig, record: RunRecord) -> str | None: ...

    def save_failures(self, config: StudyConfig, failures: list[RunFailure]) -> None: ...

    def save_reference_front(self, config: StudyConfig, front: "ReferenceFront") -> None: ...

    def save_indicators(self, config: StudyConfig, table: "IndicatorTable") -> None: ...

    def save_best_and_median(
        self,
        config: StudyConfig,
        indicator: str,
        selections: Mapping[tuple[str, str], tuple[int, int]],
        fronts: Mapping[tuple[str, str, int], np.ndarray],
    ) -> None: ...

    def save_statistics(self, config: StudyConfig, report: "ComparisonReport") -> None: ...


class TSVPersister:
    """
    Tab-separated writer for every study artifact.

    With ``boxplots=True`` the indicator boxplots are also rendered into the
    stats directory (needs matplotlib; skipped with a warning otherwise).
    """

    def __init__(self, *, boxplots: bool = False) -> None:
        self.boxplots = boxplots

    def save_run(self, config: StudyConfig, record: RunRecord) -> str:
        out = ensure_dir(run_dir(config, record.tag, record.problem))
        write_matrix(out / f"{config.output_front_name}{record.run}.tsv", record.solutions.F)
        if record.solutions.X.shape[1] > 0:
            write_matrix(out / f"{config.output_set_name}{record.run}.tsv", record.solutions.X)
        write_timing(out / f"time{record.run}.txt", record.elapsed)
        return str(out)

    def save_failures(self, config: StudyConfig, failures: list[RunFailure]) -> None:
        if not failures:
            return
        path = ensure_dir(config.study_dir()) / FAILURES_FILE
        path.write_text(json.dumps([f.to_row() for f in failures], indent=2), encoding="utf-8")
        _logger().info("[Study] %d failed run(s) listed in %s", len(failures), path)

    def save_reference_front(self, config: StudyConfig, front: "ReferenceFront") -> None:
        out = ensure_dir(reference_front_dir(config))
        write_matrix(out / f"{front.problem}.tsv", front.F)
        if front.X is not None and front.X.size:
            write_matrix(out / f"{front.problem}.ps.tsv", front.X)
        for tag in front.contributions:
            write_matrix(out / f"{front.problem}.{tag}.rf.tsv", front.points_of(tag))

    def save_indicators(self, config: StudyConfig, table: "IndicatorTable") -> None:
        # line i holds run i; failed runs are written as NaN
        for indicator, tag, problem in table.groups():
            by_run = {cell.run: cell.value for cell in table.cells(indicator, tag, problem)}
            n_runs = max(config.independent_runs, max(by_run) + 1)
            write_values(run_dir(config, tag, problem) / indicator, [by_run.get(run) for run in range(n_runs)])
        frame = table.to_frame()
        path = ensure_dir(config.study_dir()) / SUMMARY_FILE
        frame.to_csv(path, index=False, encoding="utf-8")
        _logger().info("[Study] Indicator summary written to %s", path)
        if self.boxplots:
            from moelab.ux.visualization.plotting import save_indicator_boxplots

            save_indicator_boxplots(table, stats_dir(config))

    def save_best_and_median(
        self,
        config: StudyConfig,
        indicator: str,
        selections: Mapping[tuple[str, str], tuple[int, int]],
        fronts: Mapping[tuple[str, str, int], np.ndarray],
    ) -> None:
        for (tag, problem), (best, median) in selections.items():
            out = run_dir(config, tag, problem)
            if (tag, problem, best) in fronts:
                write_matrix(out / f"BEST_{indicator}_{config.output_front_name}.tsv", fronts[(tag, problem, best)])
            if (tag, problem, median) in fronts:
                write_matrix(out / f"MEDIAN_{indicator}_{config.output_front_name}.tsv", fronts[(tag, problem, median)])

    def save_statistics(self, config: StudyConfig, report: "ComparisonReport") -> None:
        out = ensure_dir(stats_dir(config))
        for indicator in report.indicators:
            for label in ("Mean", "Median", "Std", "IQR"):
                table = report.pivot(indicator, label.lower())
                table.to_csv(out / f"{label}-{indicator}.tsv", sep="\t", encoding="utf-8")
            report.wilcoxon_table(indicator).to_csv(out / f"Wilcoxon-{indicator}.tsv", sep="\t", encoding="utf-8")
            ranking = report.friedman_table(indicator)
            if ranking is not None:
                ranking.to_csv(out / f"Friedman-{indicator}.tsv", sep="\t", encoding="utf-8")
        report.summary_frame().to_csv(out / "summary.tsv", sep="\t", index=False, encoding="utf-8")
        (out / "stats.json").write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        _logger().info("[Study] Statistics written to %s", out)


__all__ = [
    "SUMMARY_FILE",
    "FAILURES_FILE",
    "StudyPersister",
    "TSVPersister",
    "import_pandas",
    "data_dir",
    "run_dir",
    "reference_front_dir",
    "stats_dir",
]
