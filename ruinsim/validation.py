"""Upstream validation of simulation configs and JSON config loading."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from loguru import logger
from pydantic import ValidationError

from ruinsim.models import SimulationConfig
from ruinsim.utils.exceptions import ConfigError, ConfigValidationError, FieldError

MAX_ROUNDS_LIMIT = 10_000_000
MAX_RUNS_LIMIT = 1_000_000
MAX_SAFE_CAPITAL = 2**53 - 1


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [str(item) for item in self.errors]


def validate_config(config: SimulationConfig) -> ValidationResult:
    """Collect every cross-field and limit violation of ``config``."""
    errors: list[FieldError] = []

    if not math.isfinite(config.initial_capital) or config.initial_capital > MAX_SAFE_CAPITAL:
        errors.append(FieldError("initial_capital", f"must be finite and at most {MAX_SAFE_CAPITAL}"))

    if config.target_capital is not None and (
        not math.isfinite(config.target_capital) or config.target_capital > MAX_SAFE_CAPITAL
    ):
        errors.append(FieldError("target_capital", f"must be finite and at most {MAX_SAFE_CAPITAL}"))

    if config.target_capital is not None and config.target_capital <= config.initial_capital:
        errors.append(FieldError("target_capital", "must be greater than initial_capital"))

    if config.bet_size > config.initial_capital:
        errors.append(FieldError("bet_size", "must not exceed initial_capital"))

    if config.max_rounds > MAX_ROUNDS_LIMIT:
        errors.append(FieldError("max_rounds", f"must be at most {MAX_ROUNDS_LIMIT:,}"))

    if config.runs < 1 or config.runs > MAX_RUNS_LIMIT:
        errors.append(FieldError("runs", f"must be between 1 and {MAX_RUNS_LIMIT:,}"))

    if (
        config.min_bet_size is not None
        and config.max_bet_size is not None
        and config.min_bet_size > config.max_bet_size
    ):
        errors.append(FieldError("min_bet_size", "must not exceed max_bet_size"))

    return ValidationResult(is_valid=not errors, errors=errors)


def ensure_valid(config: SimulationConfig) -> SimulationConfig:
    result = validate_config(config)
    if not result.is_valid:
        raise ConfigValidationError(result.errors)
    return config


def flatten_strategy(data: dict[str, Any]) -> dict[str, Any]:
    """Lift a nested ``strategy`` object into the flat config form."""
    strategy = data.get("strategy")
    if not isinstance(strategy, dict):
        return data
    flat = {key: value for key, value in data.items() if key != "strategy"}
    flat.update({key: value for key, value in strategy.items() if key != "kind"})
    flat["strategy"] = strategy.get("kind", "fixed")
    return flat


def config_from_mapping(data: Mapping[str, Any]) -> SimulationConfig:
    """
    Build a SimulationConfig, turning pydantic failures into ConfigValidationError.

    Args:
        data: Flat or nested-strategy config mapping

    Returns:
        The constructed (not yet cross-validated) config
    """
    try:
        return SimulationConfig.model_validate(dict(data))
    except ValidationError as exc:
        errors = [
            FieldError(".".join(str(part) for part in err["loc"]) or "config", err["msg"])
            for err in exc.errors()
        ]
        raise ConfigValidationError(errors) from exc


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON config file into a plain mapping."""
    if not path.exists():
        raise ConfigError(f"Config file not found: '{path}'")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read config file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"Invalid JSON in config file '{path}' at line {exc.lineno}, column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"Config file '{path}' must contain a JSON object at the root")

    return payload


def load_config(path: Path) -> SimulationConfig:
    config = config_from_mapping(read_config_file(path))
    logger.debug(f"Loaded simulation config from {path}")
    return config
