from pathlib import Path
from typing import Any, Mapping, Optional
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ruinsim.models import SimulationConfig
from ruinsim.validation import config_from_mapping, flatten_strategy


class SimulationDefaults(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RUIN_")

    initial_capital: float = 10.0
    target_capital: Optional[float] = 20.0
    bet_size: float = 1.0
    win_prob: float = 0.5
    odd_ratio: float = 1.0
    max_rounds: int = 10_000
    runs: int = 10_000
    strategy: str = "fixed"
    proportion: float = 0.1
    streak_reset_count: Optional[int] = None
    seed: Optional[str] = None

    def to_config(
        self,
        base: Optional[Mapping[str, Any]] = None,
        unbounded: bool = False,
        **overrides: Any,
    ) -> SimulationConfig:
        """
        Build a SimulationConfig from these defaults or from ``base``.

        None overrides are ignored. ``unbounded`` drops the target capital
        after the overrides are applied.
        """
        data = flatten_strategy(dict(base)) if base is not None else self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        if unbounded:
            data["target_capital"] = None
        return config_from_mapping(data)


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RUIN_ENGINE_")

    progress_interval: int = Field(default=100, ge=1)
    histogram_bins: int = Field(default=20, ge=1)
    workers: int = Field(default=1, ge=1)
    timeline_stride: int = Field(default=1, ge=1)
    volatility_window: int = Field(default=10, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")

    defaults: SimulationDefaults = Field(default_factory=SimulationDefaults)
    engine: EngineSettings = Field(default_factory=EngineSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
