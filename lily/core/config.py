"""Centralized configuration loading for Lily.

This module provides utilities for loading patcher options from config.json
with support for environment variable fallbacks and default values.

Example config.json::

    {
      "lily": {
        "input_dir": "src",
        "output_dir": "build/patched",
        "auto_clean": true
      }
    }
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

CONFIG_SECTION = "lily"

# Options the Patcher accepts; anything else is ignored
VALID_OPTIONS = ("input_dir", "output_dir", "auto_clean")

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def load_config(config_path: str = "config.json") -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to config.json file (default: "config.json")

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        # Return empty dict on error, allowing code to use defaults
        return {}

    return data if isinstance(data, dict) else {}


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Supports dot-notation keys like ["lily", "output_dir"].
    Also checks environment variables as fallback (e.g., LILY_OUTPUT_DIR for lily.output_dir).

    Args:
        keys: List of keys to traverse (e.g., ["lily", "input_dir"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join(k.upper() for k in keys)
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def coerce_bool(value: Any) -> bool:
    """Interpret config and environment values such as "false" or "1" as booleans.

    Raises:
        ValueError: If a string value is not a recognizable boolean
    """
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Not a boolean value: {value!r}")
    return bool(value)


def load_patcher_options(
    config_path: str = "config.json", config: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Collect Patcher options from the ``lily`` section of the config.

    Only options that are set (in the file or the environment) are returned,
    so the Patcher keeps its own defaults for the rest.

    Args:
        config_path: Path to config.json file
        config: Optional pre-loaded config dict (skips reading config_path)

    Returns:
        Dict with a subset of ``input_dir``, ``output_dir``, ``auto_clean``
    """
    if config is None:
        config = load_config(config_path)

    options: Dict[str, Any] = {}
    for option in VALID_OPTIONS:
        value = get_config_value([CONFIG_SECTION, option], config=config)
        if value is None:
            continue
        options[option] = coerce_bool(value) if option == "auto_clean" else value

    return options
