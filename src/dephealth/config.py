"""
Configuration management for dephealth.

Settings are resolved in priority order:
1. Explicit overrides passed by the caller
2. DEPHEALTH_* environment variables
3. [tool.dephealth] table of a TOML config file
4. Defaults
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

ENV_PREFIX = "DEPHEALTH_"
DEFAULT_CONFIG_FILE = Path(".dephealth.toml")

# Scorecard checks whose failure is reported as a critical finding
DEFAULT_CRITICAL_CHECKS = ("Dangerous-Workflow", "Token-Permissions", "Vulnerabilities")


class AnalysisSettings(BaseModel):
    """Tunable settings for an assessment run."""

    top_n: int = Field(default=3, ge=1)
    scorecard_top_n: int = Field(default=5, ge=1)
    critical_checks: list[str] = Field(default_factory=lambda: list(DEFAULT_CRITICAL_CHECKS))
    check_pass_threshold: int = Field(default=3, ge=0, le=10)
    max_workers: int = Field(default=1, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def load_config_file(config_path: Path) -> dict:
    """Load the [tool.dephealth] table from a TOML file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e
    return config.get("tool", {}).get("dephealth", {})


def _env_overrides() -> dict[str, Any]:
    """Collect DEPHEALTH_* environment variables for known settings."""
    overrides: dict[str, Any] = {}
    for name in AnalysisSettings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is None:
            continue
        if name == "critical_checks":
            overrides[name] = [item.strip() for item in value.split(",") if item.strip()]
        else:
            overrides[name] = value
    return overrides


def load_settings(config_path: Path | None = None, **overrides: Any) -> AnalysisSettings:
    """
    Build settings from config file, environment and explicit overrides.

    Args:
        config_path: TOML file to read. Defaults to ./.dephealth.toml.
        **overrides: Explicit values; None values are ignored.

    Returns:
        Validated AnalysisSettings.

    Raises:
        ValueError: If the config file is unreadable, names an unknown
            setting, or a value fails validation.
    """
    values = load_config_file(config_path or DEFAULT_CONFIG_FILE)

    unknown = set(values) - set(AnalysisSettings.model_fields)
    if unknown:
        raise ValueError(f"Unknown dephealth settings: {', '.join(sorted(unknown))}")

    values.update(_env_overrides())
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return AnalysisSettings(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid dephealth settings: {e}") from e
