"""
Trial Engine - Drives one gambler's-ruin trajectory to termination.
"""
import math
from typing import Optional

from loguru import logger

from ruinsim.engine.rng import RandomSource
from ruinsim.engine.sizer import BetSizer
from ruinsim.models import SimulationConfig, TrialResult, TrialState


def is_active(capital: float, rounds: int, config: SimulationConfig) -> bool:
    """Loop condition: the trial keeps playing while this holds."""
    if rounds >= config.max_rounds or capital <= 0:
        return False
    # Capital past the float range cannot be staked or settled further
    if not math.isfinite(capital):
        return False
    if config.target_capital is not None and capital >= config.target_capital:
        return False
    return True


def terminal_state(capital: float, target_capital: Optional[float]) -> TrialState:
    """Classify a finished trial from its final capital."""
    if capital <= 0:
        return TrialState.BANKRUPT
    if target_capital is not None and capital >= target_capital:
        return TrialState.TARGET_REACHED
    return TrialState.ROUND_CAPPED


def stop_trigger(capital: float, config: SimulationConfig) -> Optional[str]:
    """Return which profit threshold, if any, ends the trial this round."""
    profit = capital - config.initial_capital
    if config.stop_loss_amount is not None and profit <= -config.stop_loss_amount:
        return "stop_loss"
    if config.take_profit_amount is not None and profit >= config.take_profit_amount:
        return "take_profit"
    return None


class TrialEngine:
    """
    Runs single trials for a fixed config against a random source.

    The engine never validates the config: stakes are clamped to the
    available capital so out-of-range input degrades instead of failing.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[RandomSource] = None):
        """
        Initialize the engine.

        Args:
            config: Simulation parameters
            rng: Random source; a fresh one seeded from config.seed if omitted
        """
        self.config = config
        self.rng = rng if rng is not None else RandomSource(config.seed)
        self.sizer = BetSizer(config)

    def run(self, run_id: int = 0) -> TrialResult:
        config = self.config
        sizer = self.sizer
        rng = self.rng

        capital = float(config.initial_capital)
        betting = sizer.new_state()
        trace = [capital]
        rounds = 0
        trigger: Optional[str] = None

        while is_active(capital, rounds, config):
            stake = sizer.stake(capital, betting)
            capital -= sizer.commission(stake)

            won = rng.next() < config.win_prob
            if won:
                capital += stake * config.odd_ratio
            else:
                capital -= stake
            sizer.settle(betting, won, capital)

            rounds += 1
            trace.append(capital)

            trigger = stop_trigger(capital, config)
            if trigger is not None:
                break

        state = terminal_state(capital, config.target_capital)
        if state is TrialState.BANKRUPT:
            capital = 0.0
            trace[-1] = 0.0

        logger.debug(
            f"Trial {run_id}: {state.value} after {rounds} rounds, "
            f"final capital {capital:.2f}"
        )

        return TrialResult(
            run_id=run_id,
            final_capital=capital,
            bankrupt=state is TrialState.BANKRUPT,
            reached_target=state is TrialState.TARGET_REACHED,
            rounds=rounds,
            trace=trace,
            stop_trigger=trigger,
        )
