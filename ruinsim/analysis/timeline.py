"""
Timeline Aggregator - Per-round cross-sectional statistics over a batch.
"""
import numpy as np
from loguru import logger

from ruinsim.analysis.statistics import (
    compute_risk_metrics,
    finite_fields,
    rank_value,
    safe_ratio,
    upper_median,
)
from ruinsim.models import BatchResult, TimelinePoint


class TimelineAggregator:
    """
    Builds one TimelinePoint per sampled round.

    At round r the alive set is every trial whose trace has an entry at r
    (rounds >= r). Bankrupt and target counts are cumulative: trials whose
    terminal round is <= r. Volatility is the population std dev of the
    average capital over the last ``volatility_window`` sampled points.
    """

    def __init__(self, stride: int = 1, volatility_window: int = 10):
        if stride < 1:
            raise ValueError("stride must be >= 1")
        if volatility_window < 1:
            raise ValueError("volatility_window must be >= 1")
        self.stride = stride
        self.volatility_window = volatility_window

    def sampled_rounds(self, last_round: int) -> list[int]:
        """Round indices to report; always includes 0 and ``last_round``."""
        rounds = list(range(0, last_round + 1, self.stride))
        if rounds[-1] != last_round:
            rounds.append(last_round)
        return rounds

    @np.errstate(all="ignore")
    def compute(self, batch: BatchResult) -> list[TimelinePoint]:
        results = batch.results
        if not results:
            return []

        initial = batch.initial_capital
        total = len(results)

        traces = [np.asarray(result.trace, dtype=float) for result in results]
        lengths = np.array([trace.size for trace in traces])
        offsets = np.concatenate(([0], np.cumsum(lengths)[:-1]))
        flat = np.concatenate(traces)

        # Running path extremes so that round r only sees rounds 0..r
        running_max = np.concatenate([np.maximum.accumulate(t) for t in traces])
        running_min = np.concatenate([np.minimum.accumulate(t) for t in traces])
        running_drawdown = np.concatenate(
            [np.maximum.accumulate(np.maximum.accumulate(t) - t) for t in traces]
        )

        bankrupt_rounds = np.sort([r.rounds for r in results if r.bankrupt])
        target_rounds = np.sort([r.rounds for r in results if r.reached_target])

        averages: list[float] = []
        points: list[TimelinePoint] = []

        for rnd in self.sampled_rounds(int(lengths.max()) - 1):
            alive = np.nonzero(lengths > rnd)[0]
            positions = offsets[alive] + rnd
            capitals = flat[positions]
            sorted_capitals = np.sort(capitals)

            average = float(capitals.mean())
            averages.append(average)
            window = np.asarray(averages[-self.volatility_window:])
            volatility = float(window.std())

            bankrupt_count = int(np.searchsorted(bankrupt_rounds, rnd, side="right"))
            target_count = int(np.searchsorted(target_rounds, rnd, side="right"))
            bankrupt_rate = bankrupt_count / total * 100
            target_rate = target_count / total * 100

            risk = compute_risk_metrics(
                profits=capitals - initial,
                drawdowns=running_drawdown[positions],
                maes=np.maximum(0.0, initial - running_min[positions]),
                mfes=np.maximum(0.0, running_max[positions] - initial),
                initial_capital=initial,
            )

            points.append(
                TimelinePoint(**finite_fields(dict(
                    round=rnd,
                    alive_count=int(alive.size),
                    active_runs_rate=alive.size / total * 100,
                    average_capital=average,
                    median_capital=upper_median(sorted_capitals),
                    p25_capital=rank_value(sorted_capitals, 0.25),
                    p75_capital=rank_value(sorted_capitals, 0.75),
                    min_capital=float(sorted_capitals[0]),
                    max_capital=float(sorted_capitals[-1]),
                    bankrupt_count=bankrupt_count,
                    target_reached_count=target_count,
                    bankrupt_rate=bankrupt_rate,
                    target_reached_rate=target_rate,
                    ongoing_rate=100 - bankrupt_rate - target_rate,
                    cumulative_profit=average - initial,
                    cumulative_profit_pct=safe_ratio(average - initial, initial) * 100,
                    volatility=volatility,
                    volatility_pct=safe_ratio(volatility, float(window.mean())) * 100,
                    risk=risk,
                )))
            )

        logger.debug(f"Timeline built: {len(points)} points over {total} runs")
        return points
