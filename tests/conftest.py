from typing import Optional

import pytest

from ruinsim.engine import summarize_results
from ruinsim.models import BatchResult, SimulationConfig, TrialResult


def trial_from_trace(run_id: int, trace: list[float], target: Optional[float] = None) -> TrialResult:
    final = trace[-1]
    return TrialResult(
        run_id=run_id,
        final_capital=final,
        bankrupt=final <= 0,
        reached_target=target is not None and final >= target,
        rounds=len(trace) - 1,
        trace=trace,
    )


@pytest.fixture
def make_config():
    """Factory for configs around the classic 10 -> 20 walk."""

    def _make(**overrides) -> SimulationConfig:
        data = {
            "initial_capital": 10,
            "target_capital": 20,
            "bet_size": 1,
            "win_prob": 0.5,
            "max_rounds": 10_000,
            "runs": 100,
        }
        data.update(overrides)
        return SimulationConfig(**data)

    return _make


@pytest.fixture
def make_batch():
    """Factory for batches built from hand-written traces."""

    def _make(traces: list[list[float]], initial: float = 10.0, target: Optional[float] = None) -> BatchResult:
        results = [trial_from_trace(i, trace, target) for i, trace in enumerate(traces)]
        return summarize_results(results, initial_capital=initial, target_capital=target)

    return _make
