"""
Statistics Aggregator - Risk and performance statistics over a finished batch.
"""
import math
from typing import Any, Sequence

import numpy as np
from loguru import logger

from ruinsim.models import BatchResult, BatchStatistics, RiskMetrics, TrialResult

VAR_LEVEL = 0.05


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 for a zero denominator or a non-finite result."""
    if denominator == 0:
        return 0.0
    value = numerator / denominator
    if not math.isfinite(value):
        return 0.0
    return float(value)


def finite(value: float) -> float:
    """Replace NaN and infinities by 0.0."""
    value = float(value)
    return value if math.isfinite(value) else 0.0


def finite_fields(values: dict[str, Any]) -> dict[str, Any]:
    """Apply ``finite`` to every float in a model payload."""
    return {key: finite(value) if isinstance(value, float) else value for key, value in values.items()}


def upper_median(sorted_values: Sequence[float]) -> float:
    if len(sorted_values) == 0:
        return 0.0
    return float(sorted_values[len(sorted_values) // 2])


def rank_value(sorted_values: Sequence[float], quantile: float) -> float:
    """Element at rank floor(n * quantile) of an ascending sequence."""
    if len(sorted_values) == 0:
        return 0.0
    index = min(int(math.floor(len(sorted_values) * quantile)), len(sorted_values) - 1)
    return float(sorted_values[index])


def max_drawdown(trace: np.ndarray) -> float:
    """Largest running-peak-minus-current decline over one trace."""
    if trace.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(trace)
    return float((peaks - trace).max())


def excursions(trace: np.ndarray) -> tuple[float, float]:
    """Return (MAE, MFE) relative to the first trace value, floored at 0."""
    if trace.size == 0:
        return 0.0, 0.0
    start = trace[0]
    mae = max(0.0, float(start - trace.min()))
    mfe = max(0.0, float(trace.max() - start))
    return mae, mfe


def longest_streaks(profits: Sequence[float]) -> tuple[int, int]:
    """
    Longest runs of consecutive winning and losing trials, in run order.

    A zero profit breaks the current streak.
    """
    max_win = max_loss = 0
    current = 0
    sign = 0

    for profit in profits:
        step = 1 if profit > 0 else -1 if profit < 0 else 0
        if step == 0:
            current = 0
            sign = 0
            continue
        current = current + 1 if step == sign else 1
        sign = step
        if step > 0:
            max_win = max(max_win, current)
        else:
            max_loss = max(max_loss, current)

    return max_win, max_loss


@np.errstate(all="ignore")
def compute_risk_metrics(
    profits: Sequence[float],
    drawdowns: Sequence[float],
    maes: Sequence[float],
    mfes: Sequence[float],
    initial_capital: float,
) -> RiskMetrics:
    """
    Compute the shared risk battery.

    Args:
        profits: Per-trial profit, in run order
        drawdowns: Per-trial maximum drawdown
        maes: Per-trial maximum adverse excursion
        mfes: Per-trial maximum favorable excursion
        initial_capital: Starting capital, the base of every ``*_pct`` value

    Returns:
        RiskMetrics; all zeros when ``profits`` is empty. Values that
        overflow to NaN or infinity are reported as 0.0.
    """
    profits = np.asarray(profits, dtype=float)
    n = profits.size
    if n == 0:
        return RiskMetrics()

    drawdowns = np.asarray(drawdowns, dtype=float)
    maes = np.asarray(maes, dtype=float)
    mfes = np.asarray(mfes, dtype=float)

    total_profit = float(profits.sum())
    average_profit = total_profit / n

    wins = profits[profits > 0]
    losses = profits[profits < 0]
    win_fraction = wins.size / n
    average_win = float(wins.mean()) if wins.size else 0.0
    average_loss = float(losses.mean()) if losses.size else 0.0

    # Identical profits have no dispersion even if the mean is inexact
    if profits.max() == profits.min():
        std_dev = 0.0
        deviations = np.zeros(n)
    else:
        deviations = profits - average_profit
        std_dev = float(np.sqrt(np.mean(deviations ** 2)))

    sharpe = safe_ratio(average_profit, std_dev)
    downside_dev = float(np.sqrt(np.mean(losses ** 2))) if losses.size else 0.0
    sortino = safe_ratio(average_profit, downside_dev) if std_dev > 0 else 0.0

    payoff = abs(safe_ratio(average_win, average_loss))
    if win_fraction > 0 and payoff > 0:
        kelly = (win_fraction - (1 - win_fraction) / payoff) * 100
    else:
        kelly = 0.0

    average_drawdown = float(drawdowns.mean()) if drawdowns.size else 0.0
    worst_drawdown = float(drawdowns.max()) if drawdowns.size else 0.0
    ulcer = float(np.sqrt(np.mean(drawdowns ** 2))) if drawdowns.size else 0.0

    r_multiples = np.divide(profits, maes, out=np.zeros(n), where=maes != 0)

    sorted_profits = np.sort(profits)
    var_index = int(math.floor(n * VAR_LEVEL))
    var_95 = float(sorted_profits[var_index])
    cvar_95 = float(sorted_profits[: var_index + 1].mean())

    max_win_streak, max_loss_streak = longest_streaks(profits)

    return RiskMetrics(**finite_fields(dict(
        sample_size=n,
        winning_count=int(wins.size),
        losing_count=int(losses.size),
        win_rate=win_fraction * 100,
        loss_rate=losses.size / n * 100,
        total_profit=total_profit,
        average_profit=average_profit,
        max_profit=float(profits.max()),
        min_profit=float(profits.min()),
        average_win=average_win,
        average_loss=average_loss,
        std_dev=std_dev,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        profit_factor=payoff,
        expectancy=average_profit,
        kelly_percentage=kelly,
        risk_reward_ratio=safe_ratio(average_win, abs(average_loss)),
        information_ratio=sharpe,
        average_drawdown=average_drawdown,
        max_drawdown=worst_drawdown,
        average_drawdown_pct=safe_ratio(average_drawdown, initial_capital) * 100,
        max_drawdown_pct=safe_ratio(worst_drawdown, initial_capital) * 100,
        calmar_ratio=safe_ratio(average_profit, worst_drawdown),
        recovery_factor=abs(safe_ratio(total_profit, worst_drawdown)),
        ulcer_index=ulcer,
        martin_ratio=safe_ratio(average_profit, ulcer),
        average_mae=float(maes.mean()) if maes.size else 0.0,
        max_mae=float(maes.max()) if maes.size else 0.0,
        average_mfe=float(mfes.mean()) if mfes.size else 0.0,
        max_mfe=float(mfes.max()) if mfes.size else 0.0,
        average_r_multiple=float(r_multiples.mean()),
        coefficient_of_variation=safe_ratio(std_dev, abs(average_profit)) * 100,
        skewness=safe_ratio(float(np.mean(deviations ** 3)), std_dev ** 3),
        kurtosis=(
            safe_ratio(float(np.mean(deviations ** 4)), std_dev ** 4) - 3
            if std_dev > 0
            else 0.0
        ),
        var_95=var_95,
        var_95_pct=safe_ratio(var_95, initial_capital) * 100,
        cvar_95=cvar_95,
        cvar_95_pct=safe_ratio(cvar_95, initial_capital) * 100,
        omega_ratio=safe_ratio(float(wins.sum()), abs(float(losses.sum()))),
        max_win_streak=max_win_streak,
        max_loss_streak=max_loss_streak,
    )))


@np.errstate(all="ignore")
def average_capital_curve(traces: Sequence[np.ndarray]) -> np.ndarray:
    """Mean capital per round index over the trials whose trace reaches it."""
    if not traces:
        return np.zeros(0)
    values = np.concatenate(traces)
    indices = np.concatenate([np.arange(trace.size) for trace in traces])
    sums = np.bincount(indices, weights=values)
    counts = np.bincount(indices)
    return sums / counts


@np.errstate(all="ignore")
def linear_fit_r_squared(curve: np.ndarray) -> float:
    """R-squared of a least-squares line through (index, value)."""
    n = curve.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float) - (n - 1) / 2
    y = curve - curve.mean()
    denom_x = float(np.sum(x * x))
    denom_y = float(np.sum(y * y))
    if denom_x == 0 or denom_y == 0:
        return 0.0
    correlation = float(np.sum(x * y)) / math.sqrt(denom_x * denom_y)
    return correlation * correlation


@np.errstate(all="ignore")
def trial_paths(results: Sequence[TrialResult]) -> tuple[list[np.ndarray], np.ndarray, np.ndarray, np.ndarray]:
    """Per-trial trace arrays plus drawdown, MAE and MFE vectors."""
    traces = [np.asarray(result.trace, dtype=float) for result in results]
    drawdowns = np.array([max_drawdown(trace) for trace in traces], dtype=float)
    pairs = [excursions(trace) for trace in traces]
    maes = np.array([mae for mae, _ in pairs], dtype=float)
    mfes = np.array([mfe for _, mfe in pairs], dtype=float)
    return traces, drawdowns, maes, mfes


class StatisticsAggregator:
    """
    Computes the batch statistics panel from a completed BatchResult.

    Pure over its input: the results sequence is only read. An empty batch
    yields ``BatchStatistics.empty()``.
    """

    @np.errstate(all="ignore")
    def compute(self, batch: BatchResult) -> BatchStatistics:
        results = batch.results
        total = len(results)
        if total == 0:
            logger.debug("Empty batch, returning neutral statistics")
            return BatchStatistics.empty()

        initial = batch.initial_capital

        bankrupt_count = sum(1 for r in results if r.bankrupt)
        target_count = sum(1 for r in results if r.reached_target)
        ongoing_count = total - bankrupt_count - target_count

        rounds = np.array([r.rounds for r in results], dtype=float)
        finals = np.array([r.final_capital for r in results], dtype=float)
        sorted_rounds = np.sort(rounds)
        sorted_finals = np.sort(finals)
        average_rounds = float(rounds.mean())

        profits = finals - initial
        traces, drawdowns, maes, mfes = trial_paths(results)
        risk = compute_risk_metrics(profits, drawdowns, maes, mfes, initial)

        normalized_expectancy = (
            min(safe_ratio(risk.expectancy, initial), 1.0) if risk.expectancy > 0 else 0.0
        )
        trade_quality = (
            risk.win_rate / 100 * 0.3
            + min(risk.profit_factor / 2, 1.0) * 0.4
            + normalized_expectancy * 0.3
        ) * 100

        statistics = BatchStatistics(**finite_fields(dict(
            total_runs=total,
            bankrupt_count=bankrupt_count,
            target_reached_count=target_count,
            ongoing_count=ongoing_count,
            bankrupt_rate=bankrupt_count / total * 100,
            target_reached_rate=target_count / total * 100,
            ongoing_rate=ongoing_count / total * 100,
            average_rounds=average_rounds,
            median_rounds=upper_median(sorted_rounds),
            min_rounds=int(sorted_rounds[0]),
            max_rounds=int(sorted_rounds[-1]),
            rounds_std_dev=float(rounds.std()),
            average_final_capital=float(finals.mean()),
            median_final_capital=upper_median(sorted_finals),
            min_final_capital=float(sorted_finals[0]),
            max_final_capital=float(sorted_finals[-1]),
            total_return_pct=safe_ratio(risk.total_profit, initial * total) * 100,
            average_return_pct=safe_ratio(risk.average_profit, initial) * 100,
            max_return_pct=safe_ratio(risk.max_profit, initial) * 100,
            max_loss_pct=safe_ratio(risk.min_profit, initial) * 100,
            capital_efficiency=safe_ratio(risk.average_profit, average_rounds),
            stability_coefficient=linear_fit_r_squared(average_capital_curve(traces)),
            trade_quality=trade_quality,
            bankruptcy_probability=bankrupt_count / total * 100,
            risk=risk,
        )))

        logger.debug(
            f"Statistics computed for {total} runs: "
            f"sharpe={risk.sharpe_ratio:.3f}, max drawdown={risk.max_drawdown:.2f}"
        )
        return statistics
