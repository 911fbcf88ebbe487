from ruinsim.analysis.binning import DistributionBinner
from ruinsim.analysis.statistics import (
    StatisticsAggregator,
    compute_risk_metrics,
    safe_ratio,
)
from ruinsim.analysis.timeline import TimelineAggregator

__all__ = [
    "DistributionBinner",
    "StatisticsAggregator",
    "TimelineAggregator",
    "compute_risk_metrics",
    "safe_ratio",
]
