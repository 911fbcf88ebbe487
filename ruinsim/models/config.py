"""Simulation configuration and betting strategy variants."""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FixedStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["fixed"] = "fixed"


class MartingaleStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["martingale"] = "martingale"
    streak_reset_count: Optional[int] = Field(default=None, ge=1)


class ProportionalStrategy(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["proportional"] = "proportional"
    proportion: float = Field(gt=0.0, le=1.0)


Strategy = Annotated[
    Union[FixedStrategy, MartingaleStrategy, ProportionalStrategy],
    Field(discriminator="kind"),
]


class SimulationConfig(BaseModel):
    """
    Parameters of one simulation run (single trial or batch).

    Field constraints cover types and ranges only. Cross-field rules such as
    "target above initial capital" are checked by ``ruinsim.validation``.
    """

    model_config = ConfigDict(frozen=True)

    initial_capital: float = Field(gt=0)
    target_capital: Optional[float] = Field(default=None, gt=0)
    bet_size: float = Field(gt=0)
    win_prob: float = Field(ge=0.0, le=1.0)
    odd_ratio: float = Field(default=1.0, gt=0)
    max_rounds: int = Field(default=10_000, ge=1)
    runs: int = Field(default=10_000, ge=0)
    strategy: Strategy = Field(default_factory=FixedStrategy)
    seed: Optional[str] = None

    stop_loss_amount: Optional[float] = Field(default=None, gt=0)
    take_profit_amount: Optional[float] = Field(default=None, gt=0)
    min_bet_size: Optional[float] = Field(default=None, gt=0)
    max_bet_size: Optional[float] = Field(default=None, gt=0)
    commission_rate: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def fold_flat_strategy(cls, data: Any) -> Any:
        """Accept ``strategy="proportional", proportion=0.1`` style input."""
        if not isinstance(data, dict):
            return data

        strategy = data.get("strategy")
        if strategy is None or isinstance(strategy, (dict, BaseModel)):
            return data

        data = dict(data)
        kind = str(strategy).strip().lower()
        proportion = data.pop("proportion", None)
        streak_reset_count = data.pop("streak_reset_count", None)

        variant: dict[str, Any] = {"kind": kind}
        if kind == "proportional" and proportion is not None:
            variant["proportion"] = proportion
        if kind == "martingale" and streak_reset_count is not None:
            variant["streak_reset_count"] = streak_reset_count

        data["strategy"] = variant
        return data

    @property
    def strategy_name(self) -> str:
        return self.strategy.kind

    @property
    def has_target(self) -> bool:
        return self.target_capital is not None

    def flat_dict(self) -> dict[str, Any]:
        """Dump with the strategy flattened back into top-level keys."""
        payload = self.model_dump(exclude={"strategy"})
        payload["strategy"] = self.strategy.kind
        if isinstance(self.strategy, ProportionalStrategy):
            payload["proportion"] = self.strategy.proportion
        if isinstance(self.strategy, MartingaleStrategy):
            payload["streak_reset_count"] = self.strategy.streak_reset_count
        return payload
