from __future__ import annotations

import numpy as np
import pytest

from study_helpers import FixedFront, SampledFront, fixed
from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import SUMMARY_FILE, TSVPersister, run_dir
from moelab.experiment.study.quality import (
    ComputeQualityIndicators,
    IndicatorTable,
    IndicatorValue,
    best_and_median_runs,
)
from moelab.experiment.study.reference_front import GenerateReferenceFronts
from moelab.experiment.study.scheduler import ExecuteAlgorithms
from moelab.experiment.study.types import AlgorithmVariant
from moelab.foundation.core.experiment_config import StudyConfig
from moelab.foundation.problem.types import ExperimentProblem

FRONT = [[0.0, 1.0], [1.0, 0.0]]


def _score(experiment: Experiment, persister=None) -> IndicatorTable:
    execution = ExecuteAlgorithms(experiment, persister=persister).run()
    fronts = GenerateReferenceFronts(experiment, persister=persister).run(execution)
    return ComputeQualityIndicators(experiment, persister=persister).run(execution, fronts)


def test_hypervolume_of_the_reference_front_itself() -> None:
    problem = ExperimentProblem("P", n_obj=2)
    experiment = Experiment.of(
        [problem],
        [AlgorithmVariant("A", problem, fixed(FRONT))],
        StudyConfig(independent_runs=1, indicators=("HV", "IGD", "EP"), n_workers=1),
    )

    table = _score(experiment)

    assert table.values("HV", "A", "P") == [pytest.approx(0.21)]
    assert table.values("IGD", "A", "P") == [pytest.approx(0.0)]
    assert table.values("EP", "A", "P") == [pytest.approx(0.0)]


def test_rows_follow_indicator_variant_run_order(make_experiment) -> None:
    experiment = make_experiment(independent_runs=3, indicators=("IGD", "HV"), n_workers=4)

    table = _score(experiment)

    keys = [(row.indicator, row.tag, row.run) for row in table]
    assert keys == [(ind, tag, run) for ind in ("IGD", "HV") for tag in ("A", "B", "C") for run in range(3)]
    assert table.indicators() == ["IGD", "HV"]
    assert table.problems() == ["Convex"]


def test_better_variant_scores_better(make_experiment) -> None:
    experiment = make_experiment(offsets={"A": 0.0, "B": 0.2}, indicators=("IGD+", "HV"))

    table = _score(experiment)

    assert table.samples("IGD+", "A", "Convex").mean() < table.samples("IGD+", "B", "Convex").mean()
    assert table.samples("HV", "A", "Convex").mean() > table.samples("HV", "B", "Convex").mean()


def test_degenerate_reference_front_gives_undefined_cells() -> None:
    problem = ExperimentProblem("P", n_obj=2)
    experiment = Experiment.of(
        [problem],
        [AlgorithmVariant("A", problem, fixed([[0.5, 0.5]])), AlgorithmVariant("B", problem, fixed([[0.5, 0.5]]))],
        StudyConfig(independent_runs=2, indicators=("IGD", "SPREAD", "HV"), n_workers=1),
    )

    table = _score(experiment)

    assert table.values("IGD", "A", "P") == [None, None]
    assert {row.reason for row in table if row.indicator == "SPREAD"} == {"degenerate reference front"}
    assert table.samples("IGD", "A", "P").size == 0
    # HV only needs a reference point
    assert all(v is not None for v in table.values("HV", "A", "P"))


def test_configured_hv_reference_point_is_used() -> None:
    problem = ExperimentProblem("P", n_obj=2)
    experiment = Experiment.of(
        [problem],
        [AlgorithmVariant("A", problem, fixed([[0.5, 0.5]]))],
        StudyConfig(independent_runs=1, indicators=("HV",), hv_reference_point={"P": [1.0, 1.0]}, n_workers=1),
    )

    table = _score(experiment)

    assert table.values("HV", "A", "P") == [pytest.approx(0.25)]


def test_normalisation_rescales_with_reference_bounds() -> None:
    problem = ExperimentProblem("P", n_obj=2)
    wide = [[0.0, 10.0], [10.0, 0.0]]
    experiment = Experiment.of(
        [problem],
        [AlgorithmVariant("A", problem, fixed(wide))],
        StudyConfig(independent_runs=1, indicators=("HV", "IGD"), normalize=True, n_workers=1),
    )

    table = _score(experiment)

    # normalised to {(0, 1), (1, 0)} with reference point (1.1, 1.1)
    assert table.values("HV", "A", "P") == [pytest.approx(0.21)]
    assert table.values("IGD", "A", "P") == [pytest.approx(0.0)]


def test_table_rejects_duplicate_cells() -> None:
    table = IndicatorTable()
    table.append(IndicatorValue("HV", "A", "P", 0, 0.5))

    with pytest.raises(ValueError):
        table.append(IndicatorValue("HV", "A", "P", 0, 0.6))


def test_to_frame_keeps_undefined_as_nan() -> None:
    pytest.importorskip("pandas")
    table = IndicatorTable()
    table.extend([IndicatorValue("HV", "A", "P", 0, 0.5), IndicatorValue("HV", "A", "P", 1, None, "empty")])

    frame = table.to_frame()

    assert list(frame.columns) == ["Algorithm", "Problem", "IndicatorName", "ExecutionId", "IndicatorValue"]
    assert frame["IndicatorValue"].isna().tolist() == [False, True]


def test_best_and_median_runs_respect_direction() -> None:
    table = IndicatorTable()
    for run, value in enumerate([0.3, 0.1, 0.2, None]):
        table.append(IndicatorValue("IGD", "A", "P", run, value))
        table.append(IndicatorValue("HV", "A", "P", run, value))

    assert best_and_median_runs(table, "IGD") == {("A", "P"): (1, 2)}
    assert best_and_median_runs(table, "HV") == {("A", "P"): (0, 2)}


def test_indicator_files_are_persisted(make_experiment) -> None:
    experiment = make_experiment(independent_runs=2, indicators=("HV", "IGD"))

    _score(experiment, persister=TSVPersister())

    out = run_dir(experiment.config, "B", "Convex")
    assert len((out / "HV").read_text(encoding="utf-8").splitlines()) == 2
    assert (out / "BEST_IGD_FUN.tsv").exists()
    assert (out / "MEDIAN_HV_FUN.tsv").exists()
    summary = experiment.config.study_dir() / SUMMARY_FILE
    assert summary.read_text(encoding="utf-8").splitlines()[0] == "Algorithm,Problem,IndicatorName,ExecutionId,IndicatorValue"
    np.testing.assert_equal(len(summary.read_text(encoding="utf-8").splitlines()), 1 + 2 * 3 * 2)


def test_configured_hv_point_follows_normalisation() -> None:
    problem = ExperimentProblem("P", n_obj=2)
    experiment = Experiment.of(
        [problem],
        [AlgorithmVariant("A", problem, fixed([[10.0, 20.0], [20.0, 10.0]]))],
        StudyConfig(
            independent_runs=1, indicators=("HV",), hv_reference_point=(22.0, 22.0), normalize=True, n_workers=1
        ),
    )

    table = _score(experiment)

    # raw HV 44 over a 10 x 10 bounding box
    assert table.values("HV", "A", "P") == [pytest.approx(0.44)]


def test_failed_runs_keep_indicator_files_positional(convex_problem) -> None:
    def build(problem, seed):
        return FixedFront([[np.nan, 0.5]]) if seed == 1 else SampledFront(problem, seed)

    experiment = Experiment.of(
        [convex_problem],
        [AlgorithmVariant("A", convex_problem, build)],
        StudyConfig(independent_runs=3, seed=0, indicators=("HV",), n_workers=1),
    )

    _score(experiment, persister=TSVPersister())

    lines = (run_dir(experiment.config, "A", "Convex") / "HV").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert lines[1] == "NaN"
    assert lines[0] != "NaN" and lines[2] != "NaN"
