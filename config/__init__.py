"""
Configuration loading utilities for SWITCHVAULT.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from config.settings import (
    ClockParams,
    GovernanceParams,
    LoggingParams,
    MigrationParams,
    Settings,
    SourceParams,
    VaultParams,
    load_settings,
    settings_from_dict,
)

CONFIG_DIR = Path(__file__).parent


def load_yaml(filename: str) -> Dict[str, Any]:
    """
    Load a YAML file from the config directory.

    Args:
        filename: Name of file in config directory

    Returns:
        Parsed YAML as dict
    """
    filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


__all__ = [
    "CONFIG_DIR",
    "ClockParams",
    "GovernanceParams",
    "LoggingParams",
    "MigrationParams",
    "Settings",
    "SourceParams",
    "VaultParams",
    "load_settings",
    "load_yaml",
    "settings_from_dict",
]
