from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from moelab.experiment.study.quality import IndicatorTable
    from moelab.experiment.study.reference_front import ReferenceFront


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


def plot_indicator_boxplot(
    table: "IndicatorTable",
    indicator: str,
    problem: str,
    *,
    ax: Axes | None = None,
) -> Any:
    """Boxplot of the defined values of one indicator on one problem, one box per algorithm."""
    tags = [tag for ind, tag, prob in table.groups() if ind == indicator and prob == problem]
    samples = [table.samples(indicator, tag, problem) for tag in tags]
    if ax is None:
        import matplotlib.pyplot as plt

        ax = plt.figure(figsize=(7, 5)).add_subplot(111)
    ax.boxplot(samples, notch=False)
    ax.set_xticks(range(1, len(tags) + 1))
    ax.set_xticklabels(tags, rotation=30, ha="right")
    ax.set_ylabel(indicator)
    ax.set_title(f"{indicator} - {problem}")
    return ax


def save_indicator_boxplots(table: "IndicatorTable", output_dir: str | Path) -> list[str]:
    """
    Write one PNG per (indicator, problem); returns the created paths.

    Figures are built without pyplot so the caller's backend is left untouched.
    """
    try:
        from matplotlib.figure import Figure
    except ImportError as exc:
        _logger().warning("matplotlib is required for indicator boxplots (skipping plots: %s).", exc)
        return []

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    created: list[str] = []
    for indicator in table.indicators():
        for problem in table.problems():
            fig = Figure(figsize=(7, 5))
            plot_indicator_boxplot(table, indicator, problem, ax=fig.add_subplot(111))
            fig.tight_layout()
            path = out / f"{problem}.{indicator}.boxplot.png"
            fig.savefig(path, dpi=150)
            created.append(str(path))
    _logger().info("Indicator boxplots saved to: %s", out)
    return created


def plot_reference_front(front: "ReferenceFront", *, ax: Axes | None = None) -> Any:
    """Scatter the first two objectives of a reference front, coloured by contributing algorithm."""
    import matplotlib.pyplot as plt

    if front.F.ndim != 2 or front.F.shape[1] < 2:
        raise ValueError("Reference front plots need at least two objectives.")
    ax = ax or plt.figure(figsize=(7, 5)).add_subplot(111)
    if front.origins:
        for tag in front.contributions:
            pts = front.points_of(tag)
            ax.scatter(pts[:, 0], pts[:, 1], s=30, alpha=0.8, label=tag)
        ax.legend()
    else:
        ax.scatter(front.F[:, 0], front.F[:, 1], s=30, color="black")
    ax.set_xlabel("Objective 1")
    ax.set_ylabel("Objective 2")
    ax.set_title(f"Reference front - {front.problem}")
    return ax


__all__ = ["plot_indicator_boxplot", "save_indicator_boxplots", "plot_reference_front"]
