"""
Configuration loader for sysobs.

Loads and validates the optional YAML configuration file.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sysobs.encoder import DEFAULT_BINARY, DEFAULT_TIMEOUT, SCHEMA_PATH

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "bebopc": DEFAULT_BINARY,
    "timeout": DEFAULT_TIMEOUT,
    "schema": str(SCHEMA_PATH),
    "strict": False,
    "event_log": None,
}

# Expected value type per key
CONFIG_TYPES = {
    "bebopc": str,
    "timeout": int,
    "schema": str,
    "strict": bool,
    "event_log": str,
}

PATH_KEYS = ("schema", "event_log")


class ConfigError(ValueError):
    """Raised when a config value has the wrong type or range."""

    pass


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration structure and return list of warnings.

    Args:
        config: Configuration dictionary loaded from YAML

    Returns:
        List of warning messages (empty if valid)

    Raises:
        ConfigError: If a known key has a value of the wrong type
    """
    issues = []

    unknown_keys = set(config.keys()) - set(CONFIG_TYPES)
    if unknown_keys:
        issues.append(
            f"Unknown config keys: {', '.join(sorted(unknown_keys))}. "
            f"Valid keys are: {', '.join(sorted(CONFIG_TYPES))}"
        )

    for key, expected in CONFIG_TYPES.items():
        value = config.get(key)
        if value is None:
            continue
        # bool is an int subclass; don't accept it as a timeout
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"'{key}' must be {expected.__name__}, got {type(value).__name__}"
            )

    timeout = config.get("timeout")
    if timeout is not None and timeout <= 0:
        raise ConfigError(f"'timeout' must be positive, got {timeout}")

    return issues


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file, merged over defaults.

    Args:
        config_path: Path to config file. If None, tries ~/sysobs.yml then
            ./sysobs.yml, falling back to defaults if neither exists

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        yaml.YAMLError: If config file is invalid YAML
        ConfigError: If config values have the wrong type
    """
    if config_path:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        home_config = Path.home() / "sysobs.yml"
        local_config = Path.cwd() / "sysobs.yml"

        if home_config.exists():
            path = home_config
        elif local_config.exists():
            path = local_config
        else:
            logger.debug("No config file found, using defaults")
            return dict(DEFAULT_CONFIG)

    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing config file {path}: {e}")

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    issues = validate_config(loaded)
    if issues:
        logger.warning("Configuration validation warnings:")
        for issue in issues:
            logger.warning(f"  - {issue}")

    config = dict(DEFAULT_CONFIG)
    config.update({k: v for k, v in loaded.items() if k in CONFIG_TYPES and v is not None})

    for key in PATH_KEYS:
        if config.get(key):
            config[key] = str(Path(config[key]).expanduser())

    logger.debug(f"Loaded config from: {path}")
    return config
