"""
Descriptive statistics and non-parametric tests over a study's indicator table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import import_pandas
from moelab.experiment.study.quality import IndicatorTable
from moelab.foundation.metrics.indicators import indicator_is_minimization
from moelab.ux.analysis.stats import (
    FriedmanResult,
    NotApplicable,
    WilcoxonResult,
    friedman_test,
    rank_sum_test,
)

_AGGREGATES = ("mean", "median", "std", "iqr")


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryRow:
    indicator: str
    tag: str
    problem: str
    count: int
    undefined: int
    mean: float | None
    median: float | None
    std: float | None
    iqr: float | None

    @classmethod
    def of(cls, indicator: str, tag: str, problem: str, values: list[float | None]) -> "SummaryRow":
        defined = np.asarray([v for v in values if v is not None], dtype=float)
        undefined = len(values) - defined.size
        if defined.size == 0:
            return cls(indicator, tag, problem, 0, undefined, None, None, None, None)
        q75, q25 = np.percentile(defined, [75, 25])
        return cls(
            indicator,
            tag,
            problem,
            int(defined.size),
            undefined,
            float(defined.mean()),
            float(np.median(defined)),
            float(defined.std(ddof=1)) if defined.size > 1 else None,
            float(q75 - q25),
        )


PairResult = WilcoxonResult | NotApplicable
FriedmanOutcome = FriedmanResult | NotApplicable


@dataclass
class ComparisonReport:
    indicators: tuple[str, ...]
    problems: tuple[str, ...]
    tags: tuple[str, ...]
    alpha: float
    summary: list[SummaryRow] = field(default_factory=list)
    # (indicator, problem) -> NotApplicable, or {(tag_i, tag_j): result}
    wilcoxon: dict[tuple[str, str], dict[tuple[str, str], PairResult] | NotApplicable] = field(default_factory=dict)
    friedman: dict[tuple[str, str], FriedmanOutcome] = field(default_factory=dict)
    ranking: dict[str, FriedmanOutcome] = field(default_factory=dict)

    def row(self, indicator: str, tag: str, problem: str) -> SummaryRow | None:
        for r in self.summary:
            if (r.indicator, r.tag, r.problem) == (indicator, tag, problem):
                return r
        return None

    def summary_frame(self) -> Any:
        pd = import_pandas()
        return pd.DataFrame(
            [
                {
                    "Indicator": r.indicator,
                    "Algorithm": r.tag,
                    "Problem": r.problem,
                    "count": r.count,
                    "undefined": r.undefined,
                    "mean": np.nan if r.mean is None else r.mean,
                    "median": np.nan if r.median is None else r.median,
                    "std": np.nan if r.std is None else r.std,
                    "iqr": np.nan if r.iqr is None else r.iqr,
                }
                for r in self.summary
            ],
            columns=["Indicator", "Algorithm", "Problem", "count", "undefined", "mean", "median", "std", "iqr"],
        )

    def pivot(self, indicator: str, aggregate: str) -> Any:
        """Problem x algorithm table of one aggregate for one indicator."""
        if aggregate not in _AGGREGATES:
            raise ValueError(f"Unknown aggregation '{aggregate}'")
        pd = import_pandas()
        table = pd.DataFrame(index=list(self.problems), columns=list(self.tags), dtype=float)
        table.index.name = "Problem"
        for r in self.summary:
            if r.indicator == indicator:
                value = getattr(r, aggregate)
                table.loc[r.problem, r.tag] = np.nan if value is None else value
        return table

    def marker(self, indicator: str, problem: str, tag_i: str, tag_j: str) -> str:
        """Rank-sum marker of tag_i against tag_j; empty when the test was not run."""
        pairs = self.wilcoxon.get((indicator, problem))
        if not isinstance(pairs, dict):
            return ""
        result = pairs.get((tag_i, tag_j))
        if isinstance(result, WilcoxonResult):
            return result.marker
        return ""

    def wilcoxon_table(self, indicator: str) -> Any:
        """
        Upper-triangular table: cell (i, j) concatenates the markers of tag i
        against tag j over every problem, in problem order.
        """
        pd = import_pandas()
        tags = list(self.tags)
        table = pd.DataFrame("", index=tags[:-1], columns=tags[1:])
        for i, tag_i in enumerate(tags[:-1]):
            for tag_j in tags[i + 1 :]:
                table.loc[tag_i, tag_j] = "".join(self.marker(indicator, p, tag_i, tag_j) for p in self.problems)
        return table

    def friedman_table(self, indicator: str) -> Any | None:
        outcome = self.ranking.get(indicator)
        if not isinstance(outcome, FriedmanResult):
            return None
        pd = import_pandas()
        frame = pd.DataFrame(outcome.ranking, columns=["Algorithm", "Ranking"]).set_index("Algorithm")
        frame.attrs["statistic"] = outcome.statistic
        frame.attrs["p_value"] = outcome.p_value
        return frame

    def to_dict(self) -> dict[str, Any]:
        def _friedman(outcome: FriedmanOutcome) -> dict[str, Any]:
            if isinstance(outcome, NotApplicable):
                return {"not_applicable": outcome.reason}
            return {
                "statistic": outcome.statistic,
                "p_value": outcome.p_value,
                "significant": outcome.significant(self.alpha),
                "ranking": [list(item) for item in outcome.ranking],
            }

        def _pair(result: PairResult) -> dict[str, Any]:
            if isinstance(result, NotApplicable):
                return {"not_applicable": result.reason}
            return {
                "statistic": result.statistic,
                "u_statistic": result.u_statistic,
                "p_value": result.p_value,
                "significant": bool(result.significant),
                "marker": result.marker,
                "method": result.method,
                "n": [result.n_i, result.n_j],
            }

        wilcoxon: dict[str, Any] = {}
        for (ind, prob), pairs in self.wilcoxon.items():
            if isinstance(pairs, NotApplicable):
                wilcoxon[f"{ind}|{prob}"] = {"not_applicable": pairs.reason}
            else:
                wilcoxon[f"{ind}|{prob}"] = {f"{a}|{b}": _pair(r) for (a, b), r in pairs.items()}

        return {
            "alpha": self.alpha,
            "wilcoxon": wilcoxon,
            "friedman": {f"{ind}|{prob}": _friedman(o) for (ind, prob), o in self.friedman.items()},
            "ranking": {ind: _friedman(o) for ind, o in self.ranking.items()},
        }


class StatisticalComparison:
    """
    Compare the algorithm variants of a study on every indicator.

    Per (indicator, problem): pairwise rank-sum tests and a Friedman test with
    repetitions as blocks. Per indicator: a Friedman ranking over per-problem
    means with problems as blocks. Undefined cells never enter a test.
    """

    def __init__(self, experiment: Experiment) -> None:
        self.experiment = experiment

    def run(self, table: IndicatorTable) -> ComparisonReport:
        config = self.experiment.config
        report = ComparisonReport(
            indicators=tuple(config.indicators),
            problems=tuple(p.label for p in self.experiment.problems),
            tags=tuple(self.experiment.tags()),
            alpha=config.alpha,
        )
        for indicator in report.indicators:
            for problem in report.problems:
                tags = [v.tag for v in self.experiment.variants_for(problem)]
                for tag in tags:
                    report.summary.append(SummaryRow.of(indicator, tag, problem, table.values(indicator, tag, problem)))
                report.wilcoxon[(indicator, problem)] = self._pairwise(table, indicator, problem, tags)
                report.friedman[(indicator, problem)] = self._friedman_by_run(table, indicator, problem, tags)
            report.ranking[indicator] = self._friedman_by_problem(report, indicator)
        _logger().info(
            "[Study] Compared %d algorithm(s) on %d problem(s) for %d indicator(s)",
            len(report.tags),
            len(report.problems),
            len(report.indicators),
        )
        return report

    def _pairwise(
        self, table: IndicatorTable, indicator: str, problem: str, tags: list[str]
    ) -> dict[tuple[str, str], PairResult] | NotApplicable:
        if len(tags) < 2:
            return NotApplicable("fewer than 2 algorithm variants")
        higher = not indicator_is_minimization(indicator)
        out: dict[tuple[str, str], PairResult] = {}
        for i, tag_i in enumerate(tags):
            for tag_j in tags[i + 1 :]:
                a = table.samples(indicator, tag_i, problem)
                b = table.samples(indicator, tag_j, problem)
                if a.size == 0 or b.size == 0:
                    out[(tag_i, tag_j)] = NotApplicable("no defined values for one of the variants")
                    continue
                out[(tag_i, tag_j)] = rank_sum_test(
                    a, b, alpha=self.experiment.config.alpha, higher_is_better=higher, names=(tag_i, tag_j)
                )
        return out

    def _friedman_by_run(self, table: IndicatorTable, indicator: str, problem: str, tags: list[str]) -> FriedmanOutcome:
        if len(tags) < 3:
            return NotApplicable("fewer than 3 algorithm variants")
        runs = self.experiment.config.independent_runs
        scores = np.full((runs, len(tags)), np.nan)
        for j, tag in enumerate(tags):
            for cell in table.cells(indicator, tag, problem):
                if cell.value is not None and 0 <= cell.run < runs:
                    scores[cell.run, j] = cell.value
        complete = scores[np.isfinite(scores).all(axis=1)]
        if complete.shape[0] < 2:
            return NotApplicable("fewer than 2 repetitions with every variant defined")
        return friedman_test(complete, higher_is_better=not indicator_is_minimization(indicator), names=tags)

    def _friedman_by_problem(self, report: ComparisonReport, indicator: str) -> FriedmanOutcome:
        tags = [t for t in report.tags if all(report.row(indicator, t, p) is not None for p in report.problems)]
        if len(tags) < 3:
            return NotApplicable("fewer than 3 algorithm variants solved every problem")
        blocks = []
        for problem in report.problems:
            means = [report.row(indicator, t, problem).mean for t in tags]  # type: ignore[union-attr]
            if all(m is not None for m in means):
                blocks.append(means)
        if len(blocks) < 2:
            return NotApplicable("fewer than 2 problems with every variant defined")
        return friedman_test(
            np.asarray(blocks, dtype=float), higher_is_better=not indicator_is_minimization(indicator), names=tags
        )


__all__ = ["SummaryRow", "ComparisonReport", "StatisticalComparison"]
