"""
Parallel execution of every (algorithm variant, independent run) job of a study.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from moelab.experiment.study.model import Experiment
from moelab.experiment.study.persistence import StudyPersister, run_dir
from moelab.experiment.study.types import AlgorithmVariant, RunFailure, RunRecord
from moelab.foundation.core.io_utils import read_matrix
from moelab.foundation.core.solutions import SolutionSet
from moelab.foundation.exceptions import AlgorithmFailure, ResultsNotFoundError


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


def _run_with_timeout(algorithm: Any, timeout: float) -> Any:
    """
    Run ``algorithm.run()`` on a daemon thread and wait at most ``timeout`` seconds.

    Threads cannot be killed: a run that misses the deadline is abandoned and
    keeps its thread (and CPU) until it returns on its own. The thread is a
    daemon so an abandoned run never blocks interpreter exit.
    """
    future: Future = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(algorithm.run())
        except Exception as exc:  # noqa: BLE001 - re-raised in the waiting job
            future.set_exception(exc)

    worker = threading.Thread(target=_target, name="moelab-timed-run", daemon=True)
    worker.start()
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        _logger().warning("[Study] Run abandoned after %g s; its thread keeps running until it returns", timeout)
        raise TimeoutError(f"run did not finish within {timeout:g} s") from None


def execute_job(variant: AlgorithmVariant, run: int, seed: int, timeout: float | None = None) -> RunRecord | RunFailure:
    """Build a fresh algorithm, run it once and validate what it returned."""
    start = time.perf_counter()
    try:
        algorithm = variant.build(seed)
        result = algorithm.run() if timeout is None else _run_with_timeout(algorithm, timeout)
        solutions = SolutionSet.coerce(result)
        if solutions.is_empty():
            raise AlgorithmFailure("Algorithm returned an empty solution set.", variant.tag, run)
        variant.problem.check_objectives(solutions.F)
        if not np.isfinite(solutions.F).all():
            raise AlgorithmFailure("Algorithm returned non-finite objective values.", variant.tag, run)
    except Exception as exc:  # noqa: BLE001 - a failing run must not abort its siblings
        return RunFailure(
            tag=variant.tag,
            problem=variant.problem.label,
            run=run,
            seed=seed,
            error_type=type(exc).__name__,
            message=str(exc),
            elapsed=time.perf_counter() - start,
        )
    return RunRecord(
        tag=variant.tag,
        problem=variant.problem.label,
        run=run,
        seed=seed,
        solutions=solutions,
        elapsed=time.perf_counter() - start,
    )


@dataclass
class ExecutionResult:
    runs: list[RunRecord] = field(default_factory=list)
    failures: list[RunFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def runs_for(self, problem: str) -> list[RunRecord]:
        return [r for r in self.runs if r.problem == problem]

    def runs_of(self, tag: str, problem: str) -> list[RunRecord]:
        return sorted((r for r in self.runs if r.tag == tag and r.problem == problem), key=lambda r: r.run)

    def failures_for(self, problem: str) -> list[RunFailure]:
        return [f for f in self.failures if f.problem == problem]

    def fronts(self) -> dict[tuple[str, str, int], Any]:
        return {r.key: r.solutions.F for r in self.runs}

    def summary(self) -> str:
        return f"{len(self.runs)} run(s) succeeded, {len(self.failures)} failed"

    @classmethod
    def from_directory(cls, experiment: Experiment) -> "ExecutionResult":
        """
        Reload the fronts persisted by an earlier execution of ``experiment``.

        Missing front files are reported as failures with error type
        ``ResultsNotFoundError``; timing files are optional.
        """
        config = experiment.config
        result = cls()
        for variant, run, seed in experiment.jobs():
            out = run_dir(config, variant.tag, variant.problem.label)
            try:
                F = read_matrix(out / f"{config.output_front_name}{run}.tsv")
            except ResultsNotFoundError as exc:
                result.failures.append(
                    RunFailure(variant.tag, variant.problem.label, run, seed, type(exc).__name__, exc.message)
                )
                continue
            var_path = out / f"{config.output_set_name}{run}.tsv"
            X = read_matrix(var_path) if var_path.exists() else None
            elapsed = 0.0
            time_path = out / f"time{run}.txt"
            if time_path.exists():
                elapsed = float(time_path.read_text(encoding="utf-8").strip() or 0.0) / 1000.0
            result.runs.append(
                RunRecord(variant.tag, variant.problem.label, run, seed, SolutionSet(X, F), elapsed, str(out))
            )
        _logger().info("[Study] Reloaded %s from %s", result.summary(), config.study_dir())
        return result


class ExecuteAlgorithms:
    """
    Run every job of ``experiment`` on a fixed-size worker pool.

    Jobs are submitted variants first, run indexes second, and the returned runs
    keep that order regardless of completion order. A pool of one worker runs
    the jobs inline.
    """

    def __init__(self, experiment: Experiment, *, persister: StudyPersister | None = None) -> None:
        self.experiment = experiment
        self.persister = persister

    def _executor(self, n_workers: int) -> Executor:
        if self.experiment.config.executor == "process":
            return ProcessPoolExecutor(max_workers=n_workers)
        return ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="moelab-job")

    def run(self) -> ExecutionResult:
        config = self.experiment.config
        jobs = self.experiment.jobs()
        n_workers = max(1, min(config.resolved_workers(), len(jobs)))
        timeout = config.job_timeout
        total = len(jobs)
        _logger().info(
            "[Study] %s: %d job(s) on %d worker(s) (%s executor)",
            config.name,
            total,
            n_workers,
            config.executor if n_workers > 1 else "inline",
        )

        outcomes: list[RunRecord | RunFailure] = []
        if n_workers == 1:
            for idx, (variant, run, seed) in enumerate(jobs, start=1):
                outcome = execute_job(variant, run, seed, timeout)
                self._report(idx, total, outcome)
                outcomes.append(outcome)
        else:
            with self._executor(n_workers) as pool:
                futures: list[Future] = [pool.submit(execute_job, variant, run, seed, timeout) for variant, run, seed in jobs]
                for idx, fut in enumerate(futures, start=1):
                    outcome = fut.result()
                    self._report(idx, total, outcome)
                    outcomes.append(outcome)

        result = ExecutionResult()
        for outcome in outcomes:
            if isinstance(outcome, RunFailure):
                result.failures.append(outcome)
                continue
            if self.persister is not None:
                output_dir = self.persister.save_run(config, outcome)
                if output_dir is not None:
                    outcome = RunRecord(
                        outcome.tag, outcome.problem, outcome.run, outcome.seed, outcome.solutions, outcome.elapsed, output_dir
                    )
            result.runs.append(outcome)
        if self.persister is not None:
            self.persister.save_failures(config, result.failures)

        log = _logger().info if result.ok else _logger().warning
        log("[Study] %s: %s", config.name, result.summary())
        return result

    @staticmethod
    def _report(idx: int, total: int, outcome: RunRecord | RunFailure) -> None:
        if isinstance(outcome, RunFailure):
            _logger().warning(
                "[Study] (%d/%d) %s | %s | run=%d failed: %s: %s",
                idx,
                total,
                outcome.tag,
                outcome.problem,
                outcome.run,
                outcome.error_type,
                outcome.message,
            )
        else:
            _logger().info(
                "[Study] (%d/%d) %s | %s | run=%d | %d solution(s) in %.3fs",
                idx,
                total,
                outcome.tag,
                outcome.problem,
                outcome.run,
                len(outcome.solutions),
                outcome.elapsed,
            )


__all__ = ["ExecuteAlgorithms", "ExecutionResult", "execute_job"]
