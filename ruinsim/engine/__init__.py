from ruinsim.engine.rng import RandomSource
from ruinsim.engine.sizer import BetSizer, BettingState
from ruinsim.engine.trial import TrialEngine
from ruinsim.engine.batch import BatchRunner, summarize_results

__all__ = [
    "RandomSource",
    "BetSizer",
    "BettingState",
    "TrialEngine",
    "BatchRunner",
    "summarize_results",
]
