import pytest

from ruinsim.engine import BetSizer


@pytest.fixture
def sizer_for(make_config):
    def _make(**overrides) -> BetSizer:
        return BetSizer(make_config(**overrides))

    return _make


class TestFixed:
    def test_stake_is_bet_size(self, sizer_for):
        sizer = sizer_for(bet_size=3)
        assert sizer.stake(10, sizer.new_state()) == 3

    def test_stake_capped_at_capital(self, sizer_for):
        sizer = sizer_for(bet_size=3)
        assert sizer.stake(2, sizer.new_state()) == 2

    def test_no_stake_without_capital(self, sizer_for):
        sizer = sizer_for()
        assert sizer.stake(0, sizer.new_state()) == 0.0


class TestProportional:
    def test_floor_of_fraction(self, sizer_for):
        sizer = sizer_for(strategy="proportional", proportion=0.1)
        assert sizer.stake(57, sizer.new_state()) == 5

    def test_minimum_stake_of_one(self, sizer_for):
        sizer = sizer_for(strategy="proportional", proportion=0.1)
        assert sizer.stake(9, sizer.new_state()) == 1

    def test_minimum_stake_still_capped_at_capital(self, sizer_for):
        sizer = sizer_for(strategy="proportional", proportion=0.1)
        assert sizer.stake(0.5, sizer.new_state()) == 0.5


class TestMartingale:
    def test_doubles_after_each_loss(self, sizer_for):
        sizer = sizer_for(strategy="martingale", bet_size=1)
        state = sizer.new_state()

        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 2
        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 4
        assert state.consecutive_losses == 2
        assert sizer.stake(100, state) == 4

    def test_win_resets(self, sizer_for):
        sizer = sizer_for(strategy="martingale", bet_size=1)
        state = sizer.new_state()
        sizer.settle(state, won=False, capital=100)
        sizer.settle(state, won=False, capital=100)

        sizer.settle(state, won=True, capital=100)

        assert state.current_bet == 1
        assert state.consecutive_losses == 0

    def test_doubling_clamped_to_capital(self, sizer_for):
        sizer = sizer_for(strategy="martingale", bet_size=8, initial_capital=20)
        state = sizer.new_state()
        sizer.settle(state, won=False, capital=10)
        assert state.current_bet == 10

    def test_doubling_clamped_to_max_bet(self, sizer_for):
        sizer = sizer_for(strategy="martingale", bet_size=4, max_bet_size=5)
        state = sizer.new_state()
        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 5

    def test_streak_reset(self, sizer_for):
        sizer = sizer_for(strategy="martingale", bet_size=1, streak_reset_count=3)
        state = sizer.new_state()

        sizer.settle(state, won=False, capital=100)
        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 4

        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 1
        assert state.consecutive_losses == 0

    def test_other_strategies_ignore_settle(self, sizer_for):
        sizer = sizer_for(bet_size=2)
        state = sizer.new_state()
        sizer.settle(state, won=False, capital=100)
        assert state.current_bet == 2
        assert state.consecutive_losses == 0


class TestClamping:
    def test_raised_to_min_bet(self, sizer_for):
        sizer = sizer_for(bet_size=1, min_bet_size=2)
        assert sizer.stake(10, sizer.new_state()) == 2

    def test_min_bet_never_exceeds_capital(self, sizer_for):
        sizer = sizer_for(bet_size=1, min_bet_size=2)
        assert sizer.stake(1.5, sizer.new_state()) == 1.5

    def test_capped_at_max_bet(self, sizer_for):
        sizer = sizer_for(strategy="proportional", proportion=0.5, max_bet_size=3)
        assert sizer.stake(100, sizer.new_state()) == 3


class TestCommission:
    def test_fee_on_stake(self, sizer_for):
        sizer = sizer_for(commission_rate=0.1)
        assert sizer.commission(4) == pytest.approx(0.4)

    def test_no_fee_by_default(self, sizer_for):
        assert sizer_for().commission(4) == 0.0


def test_proportional_stake_with_unbounded_capital(sizer_for):
    sizer = sizer_for(strategy="proportional", proportion=0.5)
    assert sizer.stake(float("inf"), sizer.new_state()) == float("inf")
