"""
Shooting Pulse - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variables for values the YAML leaves unset
- Type validation via Pydantic

Usage:
    from shooting_pulse.shared.config import get_config

    config = get_config()  # Uses SP_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    seed = config.modeling.classifier.random_state
    bounds = config.validation.geo_bounds
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Configuration Models
# =============================================================================


class QualityConfig(BaseModel):
    """Data quality thresholds applied when a snapshot is fetched."""

    min_row_count: int = 1


class GeoBoundsConfig(BaseModel):
    """Geographic bounds for New York City."""

    min_lat: float = 40.4
    max_lat: float = 41.0
    min_lon: float = -74.3
    max_lon: float = -73.6


class ValidationConfig(BaseModel):
    """Validation configuration."""

    quality: QualityConfig = Field(default_factory=QualityConfig)
    geo_bounds: GeoBoundsConfig = Field(default_factory=GeoBoundsConfig)


class ClassifierOptions(BaseModel):
    """
    Options for the murder-flag random forest.

    class_weight accepts "balanced", "balanced_subsample", an explicit
    {class: weight} mapping keyed by 0/1, or None for uniform weights.
    """

    train_fraction: float = Field(default=0.8, gt=0.0, lt=1.0)
    random_state: int = 42
    n_estimators: int = Field(default=500, ge=1)
    min_samples_leaf: int = Field(default=1, ge=1)
    class_weight: Literal["balanced", "balanced_subsample"] | dict[int, float] | None = (
        "balanced"
    )


class ModelingConfig(BaseModel):
    """Modeling configuration."""

    classifier: ClassifierOptions = Field(default_factory=ClassifierOptions)


class VisualizationConfig(BaseModel):
    """Chart and map output configuration."""

    output_dir: str = "outputs"
    figure_width: float = 10.0
    figure_height: float = 6.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"


class APIConfig(BaseModel):
    """Base URL and request timeout of one data portal."""

    base_url: str
    timeout_seconds: int = 60


class APIsConfig(BaseModel):
    """All API configurations."""

    nyc_open_data: APIConfig = Field(
        default_factory=lambda: APIConfig(
            base_url="https://data.cityofnewyork.us",
            timeout_seconds=120,
        )
    )


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for Shooting Pulse.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables (SP_ prefix, __ for nesting)

    Values passed from YAML take precedence; environment variables fill the rest.
    """

    model_config = SettingsConfigDict(
        env_prefix="SP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    modeling: ModelingConfig = Field(default_factory=ModelingConfig)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    apis: APIsConfig = Field(default_factory=APIsConfig)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path:
    """Get the configuration directory path."""
    # Try relative path from the repository root
    config_dir = Path(__file__).parent.parent.parent / "configs"
    if config_dir.exists():
        return config_dir

    # Try from current working directory
    config_dir = Path.cwd() / "configs"
    if config_dir.exists():
        return config_dir

    raise FileNotFoundError(
        "Could not find configs directory. Ensure you're running from the project root."
    )


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """Load and merge configuration for a specific environment."""
    env_dir = _get_config_dir() / "environments"

    base_config = _load_yaml_file(env_dir / "base.yaml")
    env_config = _load_yaml_file(env_dir / f"{environment}.yaml")

    # Remove inheritance marker if present
    env_config.pop("_inherit", None)

    merged = _deep_merge(base_config, env_config)
    merged["environment"] = environment

    return merged


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Get configuration for the specified environment.

    Args:
        environment: Environment name (dev, prod).
                    If None, uses SP_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.
    """
    if environment is None:
        environment = os.getenv("SP_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    # Create Settings object (also loads env vars)
    return Settings(**yaml_config)


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)


def get_dataset_config(dataset: str) -> dict[str, Any]:
    """
    Load the per-dataset YAML from configs/datasets/.

    Args:
        dataset: Dataset name (e.g., "shootings")

    Returns:
        Parsed YAML contents, or an empty dict if the file does not exist
    """
    return _load_yaml_file(_get_config_dir() / "datasets" / f"{dataset}.yaml")
