from __future__ import annotations

import json
import math

import numpy as np
import pytest

from moelab.experiment.study.comparison import StatisticalComparison, SummaryRow
from moelab.experiment.study.quality import IndicatorTable, IndicatorValue
from moelab.ux.analysis.stats import FriedmanResult, NotApplicable, WilcoxonResult


def _table(values: dict[str, list[float | None]], indicator: str = "IGD", problem: str = "Convex") -> IndicatorTable:
    table = IndicatorTable()
    for tag, per_run in values.items():
        for run, value in enumerate(per_run):
            table.append(IndicatorValue(indicator, tag, problem, run, value))
    return table


ORDERED = {
    "A": [0.10, 0.11, 0.12, 0.13, 0.14],
    "B": [0.20, 0.21, 0.22, 0.23, 0.24],
    "C": [0.30, 0.31, 0.32, 0.33, 0.34],
}


def test_consistently_better_variant_ranks_first(make_experiment) -> None:
    experiment = make_experiment(indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table(ORDERED))

    friedman = report.friedman[("IGD", "Convex")]
    assert isinstance(friedman, FriedmanResult)
    assert friedman.statistic == pytest.approx(10.0)
    assert friedman.p_value == pytest.approx(math.exp(-5.0))
    assert friedman.significant(0.05)
    assert [name for name, _ in friedman.ranking] == ["A", "B", "C"]


def test_pairwise_markers_follow_indicator_direction(make_experiment) -> None:
    experiment = make_experiment(indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table(ORDERED))

    pairs = report.wilcoxon[("IGD", "Convex")]
    assert isinstance(pairs, dict)
    assert list(pairs) == [("A", "B"), ("A", "C"), ("B", "C")]
    ab = pairs[("A", "B")]
    assert isinstance(ab, WilcoxonResult)
    assert ab.p_value == pytest.approx(2.0 / 252.0)
    assert ab.marker == "+"
    assert report.marker("IGD", "Convex", "A", "C") == "+"


def test_summary_statistics(make_experiment) -> None:
    experiment = make_experiment(indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table(ORDERED))
    row = report.row("IGD", "A", "Convex")

    assert isinstance(row, SummaryRow)
    assert row.count == 5
    assert row.undefined == 0
    assert row.mean == pytest.approx(0.12)
    assert row.median == pytest.approx(0.12)
    assert row.std == pytest.approx(math.sqrt(0.00025))
    assert row.iqr == pytest.approx(0.02)


def test_undefined_cells_are_excluded(make_experiment) -> None:
    values = {tag: list(v) for tag, v in ORDERED.items()}
    values["B"][4] = None
    experiment = make_experiment(indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table(values))

    row_b = report.row("IGD", "B", "Convex")
    assert (row_b.count, row_b.undefined) == (4, 1)
    assert row_b.mean == pytest.approx(np.mean([0.20, 0.21, 0.22, 0.23]))
    friedman = report.friedman[("IGD", "Convex")]
    assert isinstance(friedman, FriedmanResult)
    assert friedman.n_blocks == 4
    assert report.wilcoxon[("IGD", "Convex")][("A", "B")].n_j == 4


def test_friedman_not_applicable_below_three_variants(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0, "B": 0.1}, indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table({"A": ORDERED["A"], "B": ORDERED["B"]}))

    assert isinstance(report.friedman[("IGD", "Convex")], NotApplicable)
    assert isinstance(report.wilcoxon[("IGD", "Convex")], dict)
    assert isinstance(report.ranking["IGD"], NotApplicable)


def test_single_variant_has_no_pairwise_test(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0}, indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table({"A": ORDERED["A"]}))

    assert report.wilcoxon[("IGD", "Convex")] == NotApplicable("fewer than 2 algorithm variants")


def test_variant_without_defined_values(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0, "B": 0.1}, indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table({"A": ORDERED["A"], "B": [None] * 5}))

    assert isinstance(report.wilcoxon[("IGD", "Convex")][("A", "B")], NotApplicable)
    assert report.row("IGD", "B", "Convex").mean is None


def test_identical_samples_are_not_different(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0, "B": 0.1}, indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table({"A": ORDERED["A"], "B": ORDERED["A"]}))

    result = report.wilcoxon[("IGD", "Convex")][("A", "B")]
    assert result.p_value == 1.0
    assert result.marker == "-"


def test_tables(make_experiment) -> None:
    pytest.importorskip("pandas")
    experiment = make_experiment(indicators=("IGD",))

    report = StatisticalComparison(experiment).run(_table(ORDERED))

    wilcoxon = report.wilcoxon_table("IGD")
    assert list(wilcoxon.index) == ["A", "B"]
    assert list(wilcoxon.columns) == ["B", "C"]
    assert wilcoxon.loc["A", "C"] == "+"
    assert wilcoxon.loc["B", "B"] == ""
    means = report.pivot("IGD", "mean")
    assert means.loc["Convex", "C"] == pytest.approx(0.32)
    frame = report.summary_frame()
    assert len(frame) == 3
    assert report.friedman_table("IGD") is None
    assert report.to_dict()["friedman"]["IGD|Convex"]["ranking"][0][0] == "A"


def test_to_dict_keeps_pairwise_statistics(make_experiment) -> None:
    experiment = make_experiment(indicators=("IGD",))

    data = StatisticalComparison(experiment).run(_table(ORDERED)).to_dict()

    pair = data["wilcoxon"]["IGD|Convex"]["A|B"]
    assert pair["p_value"] == pytest.approx(2.0 / 252.0)
    assert pair["statistic"] == pytest.approx(15.0)
    assert pair["marker"] == "+"
    assert pair["n"] == [5, 5]
    json.dumps(data)


def test_to_dict_reports_missing_pairwise_tests(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0}, indicators=("IGD",))

    data = StatisticalComparison(experiment).run(_table({"A": ORDERED["A"]})).to_dict()

    assert data["wilcoxon"]["IGD|Convex"] == {"not_applicable": "fewer than 2 algorithm variants"}
