"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Optional

import yaml

from .config_models import QuoteSyncConfig

CONFIG_ENV_VAR = "QUOTESYNC_CONFIG"


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    env_path = os.getenv(CONFIG_ENV_VAR)
    locations = [Path(env_path).expanduser()] if env_path else []
    locations += [
        Path.cwd() / "quotesync.yaml",
        Path.home() / ".quotesync" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> QuoteSyncConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    if not isinstance(base_config, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(base_config).__name__}")

    try:
        return QuoteSyncConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict.

    Use load_config_model() for typed access.
    """
    return load_config_model(config_path).to_dict()
