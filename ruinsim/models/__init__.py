from ruinsim.models.config import (
    FixedStrategy,
    MartingaleStrategy,
    ProportionalStrategy,
    SimulationConfig,
    Strategy,
)
from ruinsim.models.result import (
    TrialState,
    TrialResult,
    DistributionHistogram,
    BatchResult,
)
from ruinsim.models.metrics import (
    RiskMetrics,
    BatchStatistics,
    TimelinePoint,
)

__all__ = [
    "FixedStrategy",
    "MartingaleStrategy",
    "ProportionalStrategy",
    "SimulationConfig",
    "Strategy",
    "TrialState",
    "TrialResult",
    "DistributionHistogram",
    "BatchResult",
    "RiskMetrics",
    "BatchStatistics",
    "TimelinePoint",
]
