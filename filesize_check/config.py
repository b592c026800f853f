"""Configuration loading for filesize_check."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_STATE_FILE = Path("/var/tmp/filesize_check.state")
CONFIG_ENV = "FILESIZE_CHECK_CONFIG"
STATE_FILE_ENV = "FILESIZE_CHECK_STATE_FILE"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_KNOWN_KEYS = frozenset({"state_file", "log_level", "log_file"})


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings for a single check invocation."""

    state_file: Path = DEFAULT_STATE_FILE
    log_level: str = "WARNING"
    log_file: Path | None = None

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build the configuration from defaults, a YAML file and the environment.

    *path* falls back to ``$FILESIZE_CHECK_CONFIG``; with neither set only
    the defaults and ``$FILESIZE_CHECK_STATE_FILE`` apply.
    """

    env = os.environ if environ is None else environ
    config = AppConfig()

    if path is None and env.get(CONFIG_ENV):
        path = Path(env[CONFIG_ENV])
    if path is not None:
        config = _apply_file(config, path)

    state_override = env.get(STATE_FILE_ENV)
    if state_override:
        config = replace(config, state_file=Path(state_override).expanduser())
    return config


def apply_overrides(
    config: AppConfig,
    *,
    state_file: Path | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
) -> AppConfig:
    """Return *config* with command line values taking precedence."""

    if state_file is not None:
        config = replace(config, state_file=state_file.expanduser())
    if log_level is not None:
        config = replace(config, log_level=_parse_log_level(log_level, "--log-level"))
    if log_file is not None:
        config = replace(config, log_file=log_file.expanduser())
    return config


def _apply_file(config: AppConfig, path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(map(str, unknown))}")

    if "state_file" in data:
        config = replace(config, state_file=_parse_path(data["state_file"], "state_file", base=path.parent))
    if "log_level" in data:
        config = replace(config, log_level=_parse_log_level(data["log_level"], "log_level"))
    if data.get("log_file") is not None:
        config = replace(config, log_file=_parse_path(data["log_file"], "log_file", base=path.parent))
    return config


def _parse_path(value: Any, field_name: str, *, base: Path) -> Path:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{field_name} must be a non-empty string")
    result = Path(value).expanduser()
    if not result.is_absolute():
        result = (base / result).resolve()
    return result


def _parse_log_level(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
        raise ConfigError(f"{field_name} must be one of: {', '.join(_LOG_LEVELS)}")
    return value.upper()


__all__ = [
    "AppConfig",
    "CONFIG_ENV",
    "ConfigError",
    "DEFAULT_STATE_FILE",
    "STATE_FILE_ENV",
    "apply_overrides",
    "load_config",
]
