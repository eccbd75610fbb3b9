"""Configuration loader with Pydantic validation and environment variable interpolation."""

from __future__ import annotations

import math
import os
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables at module level
load_dotenv(find_dotenv(usecwd=True))

from quotefeed.constants import DEFAULT_POOL_SIZE, LogLevel


def interpolate_env_vars(value: Any) -> Any:
    """
    Interpolate environment variables in string values.

    Supports formats:
    - ${VAR_NAME} - replaced by the variable, empty string if unset
    - ${VAR_NAME:default} - optional with default value
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            return ""

    return re.sub(pattern, replacer, value)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively process config dict to interpolate env vars."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item) if isinstance(item, dict) else interpolate_env_vars(item)
                for item in value
            ]
        else:
            result[key] = interpolate_env_vars(value)
    return result


# ============================================
# Pydantic Configuration Models
# ============================================


class EnvironmentConfig(BaseModel):
    """Environment and runtime settings."""

    log_level: LogLevel = LogLevel.INFO


class FeedConfig(BaseModel):
    """Scheduling and random source settings for the simulated feed."""

    pool_size: int = DEFAULT_POOL_SIZE
    seed: int | None = None
    snapshot_on_start: bool = False

    @field_validator("pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Validate the worker pool has at least one thread."""
        if v < 1:
            raise ValueError(f"pool_size must be at least 1, got: {v}")
        return v

    @field_validator("seed", mode="before")
    @classmethod
    def blank_seed_is_none(cls, v: Any) -> Any:
        """Treat an empty interpolated value as no seed."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class InstrumentConfig(BaseModel):
    """Reference data for a single simulated instrument."""

    stock_name: str
    ref_price: Decimal
    open_price: Decimal
    min_price: Decimal
    max_price: Decimal
    mean_interval_ms: float
    stddev_interval_ms: float

    @field_validator("ref_price", "open_price", "min_price", "max_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal."""
        if isinstance(v, Decimal):
            return v
        return Decimal(str(v))

    @field_validator("ref_price", "open_price", "min_price", "max_price")
    @classmethod
    def validate_non_negative_price(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError(f"Price must be finite and non-negative, got: {v}")
        return v

    @field_validator("mean_interval_ms", "stddev_interval_ms")
    @classmethod
    def validate_positive_interval(cls, v: float) -> float:
        """Reject intervals that would stall the rejection sampler."""
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"Interval must be finite and positive, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_bounds(self) -> InstrumentConfig:
        """Validate the initial price band is ordered."""
        if self.min_price > self.max_price:
            raise ValueError(
                f"min_price ({self.min_price}) must not exceed max_price ({self.max_price})"
            )
        return self


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    # Empty list selects the built-in instrument table
    instruments: list[InstrumentConfig] = Field(default_factory=list)

    @property
    def uses_default_catalog(self) -> bool:
        """Check if the built-in instrument table is in effect."""
        return not self.instruments


# ============================================
# Configuration Loader
# ============================================


class ConfigLoader:
    """Load and validate configuration from YAML files with env var interpolation."""

    def __init__(self, config_path: str | Path) -> None:
        """
        Initialize config loader.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Load and validate configuration.

        Returns:
            Validated AppConfig instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            pydantic.ValidationError: If config validation fails.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        processed_config = process_config_dict(raw_config)

        self._config = AppConfig.model_validate(processed_config)

        return self._config

    @property
    def config(self) -> AppConfig:
        """Get loaded config, loading if necessary."""
        if self._config is None:
            return self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Force reload configuration from disk."""
        self._config = None
        return self.load()


def load_config(config_path: str | Path) -> AppConfig:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated AppConfig instance.
    """
    loader = ConfigLoader(config_path)
    return loader.load()


def load_config_with_overrides(
    config_path: str | Path | None,
    *,
    seed: int | None = None,
    pool_size: int | None = None,
    log_level: str | None = None,
) -> AppConfig:
    """
    Load configuration with CLI overrides.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults.
        seed: Override the random seed.
        pool_size: Override the worker pool size.
        log_level: Override the log level.

    Returns:
        Validated AppConfig instance with overrides applied.
    """
    config = load_config(config_path) if config_path is not None else AppConfig()

    updates: dict[str, Any] = {}

    feed_updates: dict[str, Any] = {}
    if seed is not None:
        feed_updates["seed"] = seed
    if pool_size is not None:
        feed_updates["pool_size"] = pool_size
    if feed_updates:
        # Re-validate so overrides go through the same checks as the file
        updates["feed"] = FeedConfig.model_validate(
            {**config.feed.model_dump(), **feed_updates}
        )

    if log_level is not None:
        level_enum = LogLevel(log_level.upper())
        updates["environment"] = config.environment.model_copy(update={"log_level": level_enum})

    if updates:
        return config.model_copy(update=updates)

    return config
