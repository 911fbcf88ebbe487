"""
Bet Sizer - Computes the stake for each round under the configured strategy.
"""
import math
from dataclasses import dataclass

from ruinsim.models import (
    MartingaleStrategy,
    ProportionalStrategy,
    SimulationConfig,
)


@dataclass
class BettingState:
    """Per-trial mutable state threaded through the round loop."""

    current_bet: float
    consecutive_losses: int = 0


class BetSizer:
    """
    Maps (capital, betting state, config) to the next stake.

    Strategies:
    - fixed: min(bet_size, capital)
    - martingale: min(current_bet, capital), current_bet doubles after each loss
    - proportional: max(1, floor(capital * proportion))

    Every stake is then raised to min_bet_size, capped at max_bet_size and
    finally capped at the available capital.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.strategy = config.strategy
        self.min_bet = config.min_bet_size
        self.max_bet = config.max_bet_size
        self.commission_rate = config.commission_rate

    def new_state(self) -> BettingState:
        return BettingState(current_bet=self.config.bet_size)

    def stake(self, capital: float, state: BettingState) -> float:
        if capital <= 0:
            return 0.0
        return self._clamp(self._base_stake(capital, state), capital)

    def commission(self, stake: float) -> float:
        """Fee charged on the placed stake whatever the outcome."""
        if self.commission_rate <= 0:
            return 0.0
        return stake * self.commission_rate

    def settle(self, state: BettingState, won: bool, capital: float) -> None:
        """Update the betting state once the round outcome is known."""
        if not isinstance(self.strategy, MartingaleStrategy):
            return

        if won:
            self._reset(state)
            return

        state.consecutive_losses += 1
        reset_after = self.strategy.streak_reset_count
        if reset_after is not None and state.consecutive_losses >= reset_after:
            self._reset(state)
            return

        if capital <= 0:
            return

        doubled = min(state.current_bet * 2, capital)
        if self.max_bet is not None:
            doubled = min(doubled, self.max_bet)
        state.current_bet = doubled

    def _base_stake(self, capital: float, state: BettingState) -> float:
        strategy = self.strategy
        if isinstance(strategy, ProportionalStrategy):
            share = capital * strategy.proportion
            if not math.isfinite(share):
                return share
            return max(1.0, float(math.floor(share)))
        if isinstance(strategy, MartingaleStrategy):
            return min(state.current_bet, capital)
        return min(self.config.bet_size, capital)

    def _clamp(self, stake: float, capital: float) -> float:
        if self.min_bet is not None:
            stake = max(stake, self.min_bet)
        if self.max_bet is not None:
            stake = min(stake, self.max_bet)
        return min(stake, capital)

    def _reset(self, state: BettingState) -> None:
        state.current_bet = self.config.bet_size
        state.consecutive_losses = 0
