from .stats import (
    FriedmanResult,
    NotApplicable,
    WilcoxonResult,
    compute_ranks,
    critical_distance,
    friedman_test,
    pairwise_rank_sum,
    plot_critical_distance,
    rank_sum_test,
)

__all__ = [
    "FriedmanResult",
    "NotApplicable",
    "WilcoxonResult",
    "compute_ranks",
    "critical_distance",
    "friedman_test",
    "pairwise_rank_sum",
    "plot_critical_distance",
    "rank_sum_test",
]
