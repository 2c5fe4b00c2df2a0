from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING
from collections.abc import Sequence

import numpy as np
from scipy import stats as spstats  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from matplotlib.axes import Axes

# Both samples at or below this size (and no ties) use the exact null distribution.
EXACT_RANK_SUM_LIMIT = 20

BETTER = "+"
WORSE = "o"
NO_DIFFERENCE = "-"

# Nemenyi critical values q_alpha for k = 2..10 (Demšar, 2006).
_NEMENYI_Q = {
    0.05: (1.960, 2.343, 2.569, 2.728, 2.850, 2.949, 3.031, 3.102, 3.164),
    0.10: (1.645, 2.052, 2.291, 2.459, 2.589, 2.693, 2.780, 2.855, 2.920),
}


def _require_matplotlib() -> Any:
    try:
        import matplotlib.pyplot as plt

        return plt
    except ImportError as exc:
        raise ImportError(
            "Statistics plotting requires matplotlib. Install with `pip install moelab[plots]` or `pip install matplotlib`."
        ) from exc


@dataclass(frozen=True)
class NotApplicable:
    """A test that could not be run on the available samples."""

    reason: str


@dataclass
class FriedmanResult:
    statistic: float
    p_value: float
    ranks: np.ndarray
    avg_ranks: np.ndarray
    names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def n_blocks(self) -> int:
        return int(self.ranks.shape[0])

    @property
    def rank_sums(self) -> np.ndarray:
        return self.ranks.sum(axis=0)

    def significant(self, alpha: float = 0.05) -> bool:
        return self.p_value <= alpha

    @property
    def ranking(self) -> list[tuple[str, float]]:
        """(name, average rank) from best to worst; equal ranks keep input order."""
        names = self.names or tuple(str(i) for i in range(self.avg_ranks.shape[0]))
        order = np.argsort(self.avg_ranks, kind="stable")
        return [(names[i], float(self.avg_ranks[i])) for i in order]


@dataclass
class WilcoxonResult:
    algo_i: str
    algo_j: str
    statistic: float
    p_value: float
    u_statistic: float = float("nan")
    significant: bool = False
    marker: str = NO_DIFFERENCE
    method: str = "asymptotic"
    n_i: int = 0
    n_j: int = 0


def compute_ranks(scores: np.ndarray, higher_is_better: bool = True) -> np.ndarray:
    """
    Compute per-block ranks for algorithms (best gets rank 1, ties share the average).
    """
    scores = np.asarray(scores, dtype=float)
    if scores.ndim != 2:
        raise ValueError("scores must be 2-dimensional (n_blocks, n_algorithms).")
    n_blocks, _ = scores.shape
    ranks = np.empty_like(scores)
    for b in range(n_blocks):
        vals = scores[b]
        if not higher_is_better:
            vals = -vals
        ranks[b] = spstats.rankdata(-vals, method="average")  # -vals so best gets rank 1
    return ranks


def friedman_test(
    scores: np.ndarray,
    higher_is_better: bool = True,
    names: Sequence[str] | None = None,
) -> FriedmanResult:
    """
    Friedman test over a (blocks, algorithms) score matrix.

    Blocks are problems or repetitions. The statistic is tie-corrected; when every
    block is fully tied there is nothing to rank and the result is statistic 0,
    p-value 1.
    """
    scores = np.asarray(scores, dtype=float)
    if scores.ndim != 2:
        raise ValueError("scores must be 2-dimensional (n_blocks, n_algorithms).")
    n_blocks, k = scores.shape
    if k < 3:
        raise ValueError(f"The Friedman test needs at least 3 algorithms, got {k}.")
    if n_blocks < 1:
        raise ValueError("The Friedman test needs at least one block.")
    if not np.isfinite(scores).all():
        raise ValueError("scores must be finite; drop blocks with undefined values first.")
    if names is not None and len(names) != k:
        raise ValueError("names length must match number of algorithms.")

    ranks = compute_ranks(scores, higher_is_better=higher_is_better)
    avg_ranks = np.mean(ranks, axis=0)
    labels = tuple(names) if names is not None else ()
    if np.all(scores == scores[:, :1]):
        return FriedmanResult(statistic=0.0, p_value=1.0, ranks=ranks, avg_ranks=avg_ranks, names=labels)

    stat, p = spstats.friedmanchisquare(*[ranks[:, j] for j in range(k)])
    return FriedmanResult(statistic=float(stat), p_value=float(p), ranks=ranks, avg_ranks=avg_ranks, names=labels)


def rank_sum_test(
    a: Sequence[float] | np.ndarray,
    b: Sequence[float] | np.ndarray,
    *,
    alpha: float = 0.05,
    higher_is_better: bool = False,
    names: tuple[str, str] = ("A", "B"),
) -> WilcoxonResult:
    """
    Two-sided Wilcoxon rank-sum (Mann-Whitney) test of two independent samples.

    ``statistic`` is the rank sum of ``a`` in the pooled sample (average ranks for
    ties). The marker tells which sample is better according to the indicator
    direction: ``"+"`` for ``a``, ``"o"`` for ``b``, ``"-"`` when the difference is
    not significant.
    """
    x = np.asarray(a, dtype=float).ravel()
    y = np.asarray(b, dtype=float).ravel()
    if x.size == 0 or y.size == 0:
        raise ValueError("Both samples must contain at least one value.")
    if not (np.isfinite(x).all() and np.isfinite(y).all()):
        raise ValueError("Samples must be finite; drop undefined values first.")

    n1, n2 = x.size, y.size
    pooled = np.concatenate([x, y])
    ranks = spstats.rankdata(pooled, method="average")
    w = float(ranks[:n1].sum())
    u = w - n1 * (n1 + 1) / 2.0

    if np.all(pooled == pooled[0]):
        method, p = "constant", 1.0
    else:
        has_ties = np.unique(pooled).size < pooled.size
        method = "exact" if not has_ties and max(n1, n2) <= EXACT_RANK_SUM_LIMIT else "asymptotic"
        res = spstats.mannwhitneyu(x, y, alternative="two-sided", method=method, use_continuity=True)
        p = float(res.pvalue)

    significant = p <= alpha
    marker = NO_DIFFERENCE
    if significant:
        # Lower ranks mean lower values.
        mean_rank_x = w / n1
        mean_rank_y = float(ranks[n1:].sum()) / n2
        x_lower = mean_rank_x < mean_rank_y
        x_better = x_lower != higher_is_better
        marker = BETTER if x_better else WORSE
    return WilcoxonResult(
        algo_i=names[0],
        algo_j=names[1],
        statistic=w,
        p_value=p,
        u_statistic=u,
        significant=significant,
        marker=marker,
        method=method,
        n_i=n1,
        n_j=n2,
    )


def pairwise_rank_sum(
    samples: Sequence[Sequence[float] | np.ndarray],
    algo_names: Sequence[str],
    *,
    higher_is_better: bool = False,
    alpha: float = 0.05,
) -> list[WilcoxonResult]:
    """
    Rank-sum test for every pair (i < j) of samples, in input order.
    """
    if len(algo_names) != len(samples):
        raise ValueError("algo_names length must match number of samples.")
    results: list[WilcoxonResult] = []
    for i in range(len(samples)):
        for j in range(i + 1, len(samples)):
            results.append(
                rank_sum_test(
                    samples[i],
                    samples[j],
                    alpha=alpha,
                    higher_is_better=higher_is_better,
                    names=(algo_names[i], algo_names[j]),
                )
            )
    return results


def critical_distance(k: int, n_blocks: int, alpha: float = 0.05) -> float:
    """Nemenyi critical difference of average ranks for k algorithms and n blocks."""
    if alpha not in _NEMENYI_Q:
        raise ValueError(f"Critical values are tabulated for alpha in {sorted(_NEMENYI_Q)} only.")
    if not 2 <= k <= len(_NEMENYI_Q[alpha]) + 1:
        raise ValueError(f"Critical values are tabulated for 2..{len(_NEMENYI_Q[alpha]) + 1} algorithms.")
    q_alpha = _NEMENYI_Q[alpha][k - 2]
    return float(q_alpha * np.sqrt(k * (k + 1) / (6.0 * n_blocks)))


def plot_critical_distance(
    avg_ranks: np.ndarray,
    algo_names: Sequence[str],
    alpha: float = 0.05,
    n_problems: int | None = None,
    ax: Axes | None = None,
    show: bool = False,
) -> object:
    """
    Plot average ranks on a line, with the Nemenyi CD bar if n_problems is provided.
    """
    plt = _require_matplotlib()
    avg_ranks = np.asarray(avg_ranks, dtype=float)
    if avg_ranks.ndim != 1:
        raise ValueError("avg_ranks must be 1-dimensional.")
    if len(algo_names) != avg_ranks.shape[0]:
        raise ValueError("algo_names length must match avg_ranks length.")
    k = avg_ranks.shape[0]
    ax = ax or plt.figure().add_subplot(111)
    y = np.zeros_like(avg_ranks)
    ax.scatter(avg_ranks, y, c="black")
    for idx, name in enumerate(algo_names):
        ax.text(avg_ranks[idx], 0.02, name, rotation=45, ha="center", va="bottom")
    ax.set_yticks([])
    ax.set_xlabel("Average Rank (lower is better)")
    if n_problems is not None:
        cd = critical_distance(k, n_problems, alpha)
        xmin = avg_ranks.min()
        ax.hlines(0.1, xmin, xmin + cd, colors="black")
        ax.vlines([xmin, xmin + cd], 0.08, 0.12, colors="black")
        ax.text(xmin + cd / 2, 0.13, f"CD={cd:.2f}", ha="center")
    if show:
        plt.show()
    return ax


__all__ = [
    "EXACT_RANK_SUM_LIMIT",
    "NotApplicable",
    "FriedmanResult",
    "WilcoxonResult",
    "compute_ranks",
    "friedman_test",
    "rank_sum_test",
    "pairwise_rank_sum",
    "critical_distance",
    "plot_critical_distance",
]
