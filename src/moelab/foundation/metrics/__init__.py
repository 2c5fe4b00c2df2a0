from .hypervolume import hypervolume, hypervolume_monte_carlo, has_moocore
from .indicators import (
    IndicatorResult,
    QualityIndicator,
    INDICATOR_NAMES,
    canonical_indicator_name,
    indicator_is_minimization,
    get_indicator,
    GenerationalDistance,
    InvertedGenerationalDistance,
    InvertedGenerationalDistancePlus,
    AdditiveEpsilon,
    Spread,
    GeneralizedSpread,
    Hypervolume,
)
from .pareto import dominates, nondominated_mask, pareto_filter

__all__ = [
    "hypervolume",
    "hypervolume_monte_carlo",
    "has_moocore",
    "IndicatorResult",
    "QualityIndicator",
    "INDICATOR_NAMES",
    "canonical_indicator_name",
    "indicator_is_minimization",
    "get_indicator",
    "GenerationalDistance",
    "InvertedGenerationalDistance",
    "InvertedGenerationalDistancePlus",
    "AdditiveEpsilon",
    "Spread",
    "GeneralizedSpread",
    "Hypervolume",
    "dominates",
    "nondominated_mask",
    "pareto_filter",
]
