"""Configuration loading for Shunt.

This module is intentionally small and deterministic: it only reads
`shunt.toml` and performs light validation. A missing file means defaults.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shunt.errors import ShuntConfigError
from shunt.parser import DEFAULT_MAX_DEPTH
from shunt.runtime import DEFAULT_MAX_LENGTH

CONFIG_FILENAME = "shunt.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LimitsConfig:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_length: int = DEFAULT_MAX_LENGTH


@dataclass(frozen=True)
class OutputConfig:
    precision: int = 17


@dataclass(frozen=True)
class LogConfig:
    level: str = "WARNING"

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)


@dataclass(frozen=True)
class ShuntConfig:
    version: int = 1
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)


def find_config(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `shunt.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        # If `start` is a broken symlink or otherwise non-stat'able, treat as a
        # path we can still walk from.
        cur = cur.parent

    cur = cur.resolve()
    while True:
        candidate = cur / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ShuntConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ShuntConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise ShuntConfigError(f"Expected {name} to be a string.")
    return value


def parse_config(data: dict[str, Any]) -> ShuntConfig:
    """Validate a decoded TOML document and build a `ShuntConfig`."""

    version = data.get("version", None)
    if version is None:
        raise ShuntConfigError("Missing required `version = 1` in shunt.toml.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise ShuntConfigError(f"Unsupported config version: {version_i} (expected 1).")

    limits_tbl = _as_table(data.get("limits"), name="limits")
    output_tbl = _as_table(data.get("output"), name="output")
    log_tbl = _as_table(data.get("log"), name="log")

    if "max_depth" in limits_tbl:
        max_depth = _as_int(limits_tbl["max_depth"], name="limits.max_depth")
    else:
        max_depth = DEFAULT_MAX_DEPTH

    if "max_length" in limits_tbl:
        max_length = _as_int(limits_tbl["max_length"], name="limits.max_length")
    else:
        max_length = DEFAULT_MAX_LENGTH

    if "precision" in output_tbl:
        precision = _as_int(output_tbl["precision"], name="output.precision")
    else:
        precision = 17

    if "level" in log_tbl:
        level = _as_str(log_tbl["level"], name="log.level").upper()
    else:
        level = "WARNING"

    # Validation
    if max_depth < 1 or max_length < 1:
        raise ShuntConfigError("Invalid config: limits must be >= 1.")

    if not 1 <= precision <= 17:
        raise ShuntConfigError("Invalid config: output.precision must be between 1 and 17.")

    if level not in _LOG_LEVELS:
        raise ShuntConfigError(
            f"Invalid config: log.level must be one of {', '.join(_LOG_LEVELS)}."
        )

    return ShuntConfig(
        version=version_i,
        limits=LimitsConfig(max_depth=max_depth, max_length=max_length),
        output=OutputConfig(precision=precision),
        log=LogConfig(level=level),
    )


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> ShuntConfig:
    """Load and validate `shunt.toml`.

    An explicit `config_path` must exist. Otherwise the file is looked up in
    `root` (or by walking upward from the current working directory) and
    defaults apply when none is found.
    """

    if config_path is None:
        if root is not None:
            candidate = root / CONFIG_FILENAME
            config_path = candidate if candidate.is_file() else None
        else:
            config_path = find_config(Path.cwd())
        if config_path is None:
            return ShuntConfig()

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise ShuntConfigError(f"Missing shunt.toml at: {config_path}") from e
    except OSError as e:
        raise ShuntConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ShuntConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ShuntConfigError(f"Invalid TOML in {config_path}: {e}") from e

    return parse_config(data)
