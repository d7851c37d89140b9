# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Configuration loading for mcp-chain.

Config file lookup order:
1. Explicit path (--config)
2. $MCPCHAIN_CONFIG
3. ~/.mcpchain/config.yaml (optional)

Example:

    executor:
      step_timeout_s: 60
      inter_step_delay_s: 0.5
      carry_forward: null        # or last_success
      fallback_delay_s: [1.0, 2.5]
      catalog: ~/.mcpchain/catalog.yaml
      event_log: ~/.mcpchain/events.jsonl
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = "~/.mcpchain/config.yaml"

CARRY_FORWARD_CHOICES = ("null", "last_success")


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class ExecutorSettings:
    """Executor settings from the `executor:` config section."""
    step_timeout_s: float = 300.0
    inter_step_delay_s: float = 0.0
    carry_forward: str = "null"
    fallback_delay_s: Tuple[float, float] = (1.0, 2.5)
    catalog: Optional[str] = None
    event_log: Optional[str] = None


def get_config_path(config_path: Optional[str] = None) -> Tuple[Path, bool]:
    """
    Pick the config file to load.

    Returns:
        (path, required) - required is False only for the default location
    """
    if config_path:
        return Path(config_path).expanduser(), True
    env_path = os.environ.get("MCPCHAIN_CONFIG")
    if env_path:
        return Path(env_path).expanduser(), True
    return Path(DEFAULT_CONFIG_PATH).expanduser(), False


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the YAML config file.

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist
        ConfigError: If the file is not a YAML mapping
    """
    path, required = get_config_path(config_path)
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {path}")
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")
    return data


def _number(section: Dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"executor.{key} must be a number, got: {value!r}")
    if value < 0:
        raise ConfigError(f"executor.{key} cannot be negative, got: {value}")
    return float(value)


def settings_from_config(config: Dict[str, Any]) -> ExecutorSettings:
    """Build ExecutorSettings from a loaded config dict."""
    section = config.get("executor") or {}
    if not isinstance(section, dict):
        raise ConfigError("executor section must be a mapping")

    defaults = ExecutorSettings()

    step_timeout_s = _number(section, "step_timeout_s", defaults.step_timeout_s)
    if step_timeout_s == 0:
        raise ConfigError("executor.step_timeout_s must be positive")

    # YAML reads a bare `null` as None
    carry_forward = section.get("carry_forward", defaults.carry_forward)
    if carry_forward is None:
        carry_forward = "null"
    if carry_forward not in CARRY_FORWARD_CHOICES:
        raise ConfigError(
            f"executor.carry_forward must be one of {CARRY_FORWARD_CHOICES}, got: {carry_forward!r}"
        )

    fallback_delay = section.get("fallback_delay_s", list(defaults.fallback_delay_s))
    if (
        not isinstance(fallback_delay, (list, tuple))
        or len(fallback_delay) != 2
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in fallback_delay)
    ):
        raise ConfigError(f"executor.fallback_delay_s must be [min, max], got: {fallback_delay!r}")
    low, high = float(fallback_delay[0]), float(fallback_delay[1])
    if low < 0 or high < low:
        raise ConfigError(f"executor.fallback_delay_s must satisfy 0 <= min <= max, got: {fallback_delay!r}")

    return ExecutorSettings(
        step_timeout_s=step_timeout_s,
        inter_step_delay_s=_number(section, "inter_step_delay_s", defaults.inter_step_delay_s),
        carry_forward=carry_forward,
        fallback_delay_s=(low, high),
        catalog=section.get("catalog"),
        event_log=section.get("event_log"),
    )
