"""Configuration models and loader for canopy.

Two config sources are supported:

1. A YAML file, given explicitly or through ``CANOPY_CONFIG_PATH``.
2. The ``[tool.canopy]`` table of ``pyproject.toml`` in the working
   directory (auto-discovery fallback).

Environment variables override file values:

.. code-block:: bash

    export CANOPY_ROOT=/srv/project
    export CANOPY_DEFAULT_IGNORE=node_modules,.git,dist
    export CANOPY_LOG_LEVEL=DEBUG
    export CANOPY_LOG_FORMAT=rich
    export CANOPY_LOG_FILE=/var/log/canopy.log
    export CANOPY_LOG_COLOR=false
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml

from canopy.kernel.exceptions import ConfigurationError
from canopy.kernel.logging import configure_logging, get_logger

logger = get_logger(__name__)

_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

DEFAULT_IGNORE: tuple[str, ...] = ("node_modules", ".git", ".DS_Store")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("console", "json", "structured", "rich")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration.

    Attributes
    ----------
    level : str, default="WARNING"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True

    def apply(self) -> None:
        """Install this configuration as the global logging setup."""
        configure_logging(
            level=self.level,
            format=self.format,
            output_file=self.output_file,
            use_color=self.use_color,
        )


@dataclass(frozen=True, slots=True)
class CanopyConfig:
    """Top-level canopy configuration.

    Attributes
    ----------
    root : str, default="."
        Directory that relative paths resolve against
    default_ignore : tuple[str, ...]
        Ignore patterns used by file streaming when no filter is given
    logging : LoggingConfig
        Logging setup
    """

    root: str = "."
    default_ignore: tuple[str, ...] = DEFAULT_IGNORE
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_bool_env(value: str) -> bool:
    """Parse a boolean from an environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


def _checked_choice(source: str, key: str, value: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        expected = list(choices)
        raise ConfigurationError(source, f"unknown {key} {value!r}; expected one of {expected}")
    return value


def _find_config_file(path: str | Path | None) -> Path | None:
    if path is not None:
        return Path(path)
    if env_path := os.getenv("CANOPY_CONFIG_PATH"):
        return Path(env_path)
    pyproject = Path.cwd() / "pyproject.toml"
    return pyproject if pyproject.exists() else None


def _read_config_data(config_path: Path) -> dict[str, Any]:
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(str(config_path), f"cannot read file: {e}") from e

    try:
        if config_path.suffix == ".toml":
            data = tomllib.loads(text).get("tool", {}).get("canopy", {})
        else:
            data = yaml.safe_load(text) or {}
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(str(config_path), f"cannot parse file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(str(config_path), "expected a mapping at top level")
    return data


def _parse_config(data: dict[str, Any], source: str) -> CanopyConfig:
    logging_data = data.get("logging", {})
    if not isinstance(logging_data, dict):
        raise ConfigurationError(source, "'logging' must be a mapping")
    level = str(logging_data.get("level", "WARNING")).upper()
    log_format = str(logging_data.get("format", "structured")).lower()

    ignore = data.get("default_ignore", DEFAULT_IGNORE)
    if isinstance(ignore, str) or not all(isinstance(item, str) for item in ignore):
        raise ConfigurationError(source, "'default_ignore' must be a list of patterns")

    return CanopyConfig(
        root=str(data.get("root", ".")),
        default_ignore=tuple(ignore),
        logging=LoggingConfig(
            level=_checked_choice(source, "log level", level, _LOG_LEVELS),  # type: ignore
            format=_checked_choice(source, "log format", log_format, _LOG_FORMATS),  # type: ignore
            output_file=logging_data.get("output_file"),
            use_color=bool(logging_data.get("use_color", True)),
        ),
    )


def _apply_env_overrides(config: CanopyConfig) -> CanopyConfig:
    logging_config = config.logging

    if env_root := os.getenv("CANOPY_ROOT"):
        config = replace(config, root=env_root)
        logger.debug("Overriding root from env: {}", env_root)

    if env_ignore := os.getenv("CANOPY_DEFAULT_IGNORE"):
        patterns = tuple(item.strip() for item in env_ignore.split(",") if item.strip())
        config = replace(config, default_ignore=patterns)
        logger.debug("Overriding default ignore from env: {}", patterns)

    if env_level := os.getenv("CANOPY_LOG_LEVEL"):
        level = _checked_choice("CANOPY_LOG_LEVEL", "log level", env_level.upper(), _LOG_LEVELS)
        logging_config = replace(logging_config, level=level)  # type: ignore[arg-type]

    if env_format := os.getenv("CANOPY_LOG_FORMAT"):
        fmt = _checked_choice("CANOPY_LOG_FORMAT", "log format", env_format.lower(), _LOG_FORMATS)
        logging_config = replace(logging_config, format=fmt)  # type: ignore[arg-type]

    if env_file := os.getenv("CANOPY_LOG_FILE"):
        logging_config = replace(logging_config, output_file=env_file)

    if env_color := os.getenv("CANOPY_LOG_COLOR"):
        try:
            logging_config = replace(logging_config, use_color=_parse_bool_env(env_color))
        except ValueError as e:
            logger.warning("Invalid CANOPY_LOG_COLOR value: {}", e)

    return replace(config, logging=logging_config)


def load_config(path: str | Path | None = None) -> CanopyConfig:
    """Load configuration from YAML or ``pyproject.toml``, then apply env overrides.

    Parameters
    ----------
    path : str | Path | None
        Config file. If None, ``CANOPY_CONFIG_PATH`` and then
        ``./pyproject.toml`` are tried; with neither, defaults are used.

    Raises
    ------
    ConfigurationError
        If an explicitly named file is missing, any file is unreadable or
        malformed, or a log level or format is not recognised
    """
    config_path = _find_config_file(path)
    if config_path is None:
        return _apply_env_overrides(CanopyConfig())

    if not config_path.exists():
        raise ConfigurationError(str(config_path), "file not found")

    logger.info("Loading configuration from {path}", path=config_path)
    config = _parse_config(_read_config_data(config_path), str(config_path))
    return _apply_env_overrides(config)


__all__ = ["DEFAULT_IGNORE", "CanopyConfig", "LoggingConfig", "load_config"]
