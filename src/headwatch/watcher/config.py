"""
Configuration for the head watcher.
"""

import os
import sys
from typing import Any, Dict, Optional

from ..exceptions import ConfigError

WATCHER_CONFIG = {
    "debounce_ms": 100,  # Trailing window for directory changes and head file events
    "head_file": "HEAD",  # Head reference file inside the git dir
    "marker_name": ".git",  # Repository marker searched upward from the directory
    "git_executable": "git",
    "git_timeout": 5.0,  # Seconds before a git query is abandoned
    # Stopping and restarting a watch in the same loop turn can hang on Windows
    "restart_hazard": sys.platform == "win32",
}

ENV_OVERRIDES = {
    "HEADWATCH_DEBOUNCE_MS": ("debounce_ms", int),
    "HEADWATCH_GIT_TIMEOUT": ("git_timeout", float),
    "HEADWATCH_GIT_EXECUTABLE": ("git_executable", str),
    "HEADWATCH_RESTART_HAZARD": ("restart_hazard", "bool"),
}

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{raw}'")


def load_watcher_config(env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Build the effective watcher configuration.

    Args:
        env: Environment mapping to read overrides from (default: os.environ)

    Returns:
        Copy of WATCHER_CONFIG with environment overrides applied

    Raises:
        ConfigError: If an override cannot be parsed or is out of range
    """
    env = os.environ if env is None else env
    config = dict(WATCHER_CONFIG)

    for name, (key, kind) in ENV_OVERRIDES.items():
        raw = env.get(name)
        if raw is None or raw == "":
            continue
        if kind == "bool":
            config[key] = _parse_bool(name, raw)
            continue
        try:
            config[key] = kind(raw)
        except ValueError:
            raise ConfigError(f"{name} must be of type {kind.__name__}, got '{raw}'") from None

    if config["debounce_ms"] < 0:
        raise ConfigError(f"debounce_ms must be >= 0, got {config['debounce_ms']}")
    if config["git_timeout"] <= 0:
        raise ConfigError(f"git_timeout must be > 0, got {config['git_timeout']}")

    return config
