"""Configuration loader for the scanner.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values using the LIVESCAN_ prefix.
Nested keys use double underscores: LIVESCAN_SCAN__COOLDOWN_SECONDS=2
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from src.interfaces.camera import CameraConstraints
from src.vision.retry import RetryPolicy


class CameraConfig(BaseModel):
    """Camera capability settings."""

    facing: str = Field(default="environment", pattern="^(environment|user)$")
    ideal_width: int = Field(default=1920, ge=160, le=7680)
    ideal_height: int = Field(default=1080, ge=120, le=4320)
    rear_device_index: int = Field(default=0, ge=0)
    front_device_index: int = Field(default=1, ge=0)
    jpeg_quality: int = Field(default=92, ge=1, le=95)

    def constraints(self) -> CameraConstraints:
        """Build camera constraints from these settings."""
        return CameraConstraints(
            facing=self.facing,
            ideal_width=self.ideal_width,
            ideal_height=self.ideal_height,
        )


class ScanConfig(BaseModel):
    """Scan coordinator settings."""

    cooldown_seconds: float = Field(default=5.0, ge=0.0, le=300.0)
    cancel_on_camera_stop: bool = Field(default=True)


class AnswerConfig(BaseModel):
    """Answer coordinator settings."""

    cooldown_seconds: float = Field(default=5.0, ge=0.0, le=300.0)


class LLMConfig(BaseModel):
    """Remote text service settings."""

    provider: str = Field(default="gemini", pattern="^(gemini|anthropic|openai)$")
    model: str | None = Field(default=None, description="Provider default if unset")
    max_tokens: int = Field(default=4096, ge=1, le=100000)
    max_retries: int = Field(default=2, ge=0, le=10, description="Retries after the first attempt")
    initial_retry_delay_ms: float = Field(default=2000.0, ge=0.0, le=60000.0)

    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy from these settings."""
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay_ms=self.initial_retry_delay_ms,
        )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="readable", pattern="^(readable|json)$")


class Config(BaseModel):
    """Root configuration model."""

    camera: CameraConfig = Field(default_factory=CameraConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    answer: AnswerConfig = Field(default_factory=AnswerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _get_env_value(key: str) -> str | None:
    """Get environment variable with LIVESCAN_ prefix."""
    env_key = f"LIVESCAN_{key.upper()}"
    return os.environ.get(env_key)


def _apply_env_overrides(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Apply environment variable overrides to config data.

    Only keys present in the data are considered, so the defaults are merged
    in first by the caller.

    Example: LIVESCAN_LLM__PROVIDER=openai sets llm.provider to "openai"
    """
    result = data.copy()

    for key, value in result.items():
        env_key = f"{prefix}__{key}" if prefix else key

        if isinstance(value, dict):
            result[key] = _apply_env_overrides(value, env_key)
        else:
            env_value = _get_env_value(env_key)
            if env_value is not None:
                # Convert to appropriate type based on original value
                if isinstance(value, bool):
                    result[key] = env_value.lower() in ("true", "1", "yes")
                elif isinstance(value, int):
                    result[key] = int(env_value)
                elif isinstance(value, float):
                    result[key] = float(env_value)
                else:
                    result[key] = env_value

    return result


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deep merge updates into base dict."""
    result = base.copy()

    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def default_config_path() -> Path:
    """Path of the bundled default configuration file."""
    project_root = Path(__file__).parent.parent.parent
    return project_root / "configs" / "default.yaml"


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses default.yaml.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config values are invalid.
    """
    config_path = default_config_path() if config_path is None else Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Defaults first so every field can be overridden from the environment
    data = _deep_merge(Config().model_dump(), data)
    data = _apply_env_overrides(data)

    return Config.model_validate(data)


def get_default_config() -> Config:
    """Get default configuration without loading from file."""
    return Config()
