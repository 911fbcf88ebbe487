"""Trial and batch result models."""
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class TrialState(str, Enum):
    ACTIVE = "active"
    BANKRUPT = "bankrupt"
    TARGET_REACHED = "target_reached"
    ROUND_CAPPED = "round_capped"


class TrialResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: int = Field(ge=0)
    final_capital: float
    bankrupt: bool
    reached_target: bool
    rounds: int = Field(ge=0)
    trace: list[float]
    stop_trigger: Optional[Literal["stop_loss", "take_profit"]] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "TrialResult":
        if self.bankrupt and self.reached_target:
            raise ValueError("a trial cannot be both bankrupt and at target")
        if len(self.trace) != self.rounds + 1:
            raise ValueError(
                f"trace length {len(self.trace)} does not match rounds + 1 = {self.rounds + 1}"
            )
        return self

    @computed_field
    @property
    def state(self) -> TrialState:
        if self.bankrupt:
            return TrialState.BANKRUPT
        if self.reached_target:
            return TrialState.TARGET_REACHED
        return TrialState.ROUND_CAPPED

    @property
    def initial_capital(self) -> float:
        return self.trace[0]

    @property
    def profit(self) -> float:
        return self.final_capital - self.trace[0]

    @property
    def max_capital(self) -> float:
        return max(self.trace)

    @property
    def min_capital(self) -> float:
        return min(self.trace)


class DistributionHistogram(BaseModel):
    model_config = ConfigDict(frozen=True)

    bin_count: int = Field(ge=1)
    min_value: float = 0.0
    max_value: float = 0.0
    counts: list[int]

    @computed_field
    @property
    def total(self) -> int:
        return sum(self.counts)

    @property
    def bin_width(self) -> float:
        return (self.max_value - self.min_value) / self.bin_count

    def bin_edges(self) -> list[float]:
        width = self.bin_width
        return [self.min_value + width * i for i in range(self.bin_count + 1)]


class BatchResult(BaseModel):
    """Aggregate of a batch run; ``results`` is ordered by run id."""

    model_config = ConfigDict(frozen=True)

    total_runs: int = Field(ge=0)
    bankrupt_count: int = 0
    target_reached_count: int = 0
    ongoing_count: int = 0
    bankruptcy_rate: float = 0.0
    target_reached_rate: float = 0.0
    ongoing_rate: float = 0.0
    average_rounds: float = 0.0
    rounds_std_dev: float = 0.0
    average_final_capital: float = 0.0
    final_capital_distribution: DistributionHistogram
    rounds_distribution: DistributionHistogram
    results: list[TrialResult] = []

    initial_capital: float
    target_capital: Optional[float] = None
    seed: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.results
