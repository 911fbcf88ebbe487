"""Derived statistics models (batch panel and per-round timeline)."""
from pydantic import BaseModel, ConfigDict


class RiskMetrics(BaseModel):
    """
    Risk and performance battery over a set of per-trial profits.

    Rates and ``*_pct`` fields are percentages. Every ratio whose
    denominator can be zero is reported as 0.0 in that case.
    """

    model_config = ConfigDict(frozen=True)

    sample_size: int = 0
    winning_count: int = 0
    losing_count: int = 0
    win_rate: float = 0.0
    loss_rate: float = 0.0

    total_profit: float = 0.0
    average_profit: float = 0.0
    max_profit: float = 0.0
    min_profit: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0

    std_dev: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0
    kelly_percentage: float = 0.0
    risk_reward_ratio: float = 0.0
    information_ratio: float = 0.0

    average_drawdown: float = 0.0
    max_drawdown: float = 0.0
    average_drawdown_pct: float = 0.0
    max_drawdown_pct: float = 0.0
    calmar_ratio: float = 0.0
    recovery_factor: float = 0.0
    ulcer_index: float = 0.0
    martin_ratio: float = 0.0

    average_mae: float = 0.0
    max_mae: float = 0.0
    average_mfe: float = 0.0
    max_mfe: float = 0.0
    average_r_multiple: float = 0.0

    coefficient_of_variation: float = 0.0
    skewness: float = 0.0
    kurtosis: float = 0.0

    var_95: float = 0.0
    var_95_pct: float = 0.0
    cvar_95: float = 0.0
    cvar_95_pct: float = 0.0
    omega_ratio: float = 0.0

    max_win_streak: int = 0
    max_loss_streak: int = 0


class BatchStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_runs: int = 0
    bankrupt_count: int = 0
    target_reached_count: int = 0
    ongoing_count: int = 0
    bankrupt_rate: float = 0.0
    target_reached_rate: float = 0.0
    ongoing_rate: float = 0.0

    average_rounds: float = 0.0
    median_rounds: float = 0.0
    min_rounds: int = 0
    max_rounds: int = 0
    rounds_std_dev: float = 0.0

    average_final_capital: float = 0.0
    median_final_capital: float = 0.0
    min_final_capital: float = 0.0
    max_final_capital: float = 0.0

    total_return_pct: float = 0.0
    average_return_pct: float = 0.0
    max_return_pct: float = 0.0
    max_loss_pct: float = 0.0

    capital_efficiency: float = 0.0
    stability_coefficient: float = 0.0
    trade_quality: float = 0.0
    bankruptcy_probability: float = 0.0

    risk: RiskMetrics = RiskMetrics()

    @classmethod
    def empty(cls) -> "BatchStatistics":
        return cls()


class TimelinePoint(BaseModel):
    """Cross-sectional statistics of all trials still alive at one round."""

    model_config = ConfigDict(frozen=True)

    round: int
    alive_count: int
    active_runs_rate: float

    average_capital: float
    median_capital: float
    p25_capital: float
    p75_capital: float
    min_capital: float
    max_capital: float

    bankrupt_count: int
    target_reached_count: int
    bankrupt_rate: float
    target_reached_rate: float
    ongoing_rate: float

    cumulative_profit: float
    cumulative_profit_pct: float
    volatility: float
    volatility_pct: float

    risk: RiskMetrics
