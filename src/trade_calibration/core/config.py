"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class SimulationConfig(BaseModel):
    default_size_usd: float = Field(default=1000.0, gt=0)  # Used when a rec has no size_usd


class CalibrationConfig(BaseModel):
    n_buckets: int = Field(default=10, ge=2)
    min_samples: int = Field(default=10, ge=1)
    high_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_age_days: float = 7.0  # Older calibrations are stale
    default_window_days: int = 60

    # HOLD / CLOSE decision evaluation
    evaluate_decisions: bool = False
    min_decision_confidence: float = 0.5
    opportunity_threshold_pct: float = 0.5  # Move a HOLD should have caught
    close_too_early_threshold_pct: float = 0.5  # Move left on the table by a CLOSE
    hold_penalty_weight: float = 1.0
    close_penalty_weight: float = 1.0


class HealthConfig(BaseModel):
    recalibrate_below_correlation: float = 0.1
    warn_below_correlation: float = 0.2
    warn_after_days: int = 7
    recalibrate_after_days: int = 14
    default_markets: list[str] = Field(default_factory=lambda: ["BTC", "ETH"])


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    # Infrastructure
    database_url: str = "sqlite+aiosqlite:///data/recommendations.db"

    model_config = {"env_prefix": "TRADECAL_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
