"""Configuration management for matchprob."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatchprobConfig(BaseSettings):
    """Configuration settings for the prediction kernel."""

    # Monte Carlo defaults
    default_trials: int = Field(
        default=10_000,
        ge=1,
        description="Trials run when a simulation does not specify a count",
        alias="MATCHPROB_TRIALS",
    )

    default_seed: int = Field(
        default=42,
        description="Seed used when a simulation does not specify one",
        alias="MATCHPROB_SEED",
    )

    # Poisson engine
    normal_threshold: float = Field(
        default=30.0,
        gt=0.0,
        description="Rates above this are sampled with the normal approximation",
        alias="MATCHPROB_NORMAL_THRESHOLD",
    )

    density_precision: int = Field(
        default=3,
        ge=0,
        description="Decimal places used to key the density cache",
        alias="MATCHPROB_DENSITY_PRECISION",
    )

    cache_max_entries: int | None = Field(
        default=None,
        ge=1,
        description="Upper bound on cached densities; unbounded when unset",
        alias="MATCHPROB_CACHE_MAX_ENTRIES",
    )

    # Analytic grid and output
    max_goals: int = Field(
        default=10,
        ge=1,
        description="Largest goal count per side summed by the analytic grid",
        alias="MATCHPROB_MAX_GOALS",
    )

    top_scorelines: int = Field(
        default=8,
        ge=1,
        description="Number of most likely scorelines reported",
        alias="MATCHPROB_TOP_SCORELINES",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level used by configure_logging and the CLI",
        alias="MATCHPROB_LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global configuration instance
config = MatchprobConfig()


def get_config() -> MatchprobConfig:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> None:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration option: {key}")


def reset_config() -> None:
    """Reset configuration to defaults."""
    global config
    config = MatchprobConfig()


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Configuration at {path} must be a mapping")
    return dict(data)


def load_config(path: str | os.PathLike[str]) -> MatchprobConfig:
    """Build a configuration from a YAML file layered over the environment.

    Keys in the file use the field names (``default_trials``, ``max_goals``
    and so on).  Values found in the file take precedence over environment
    variables; anything the file leaves out falls back to the usual
    ``MATCHPROB_*`` lookup.
    """

    data = _load_yaml(Path(path))
    unknown = sorted(key for key in data if key not in MatchprobConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown configuration option: {', '.join(unknown)}")
    return MatchprobConfig(**data)
