"""Configuration management for the scanner."""

from src.config.loader import Config, get_default_config, load_config
from src.config.secrets import load_environment_secrets, resolve_api_key

__all__ = [
    "Config",
    "get_default_config",
    "load_config",
    "load_environment_secrets",
    "resolve_api_key",
]
