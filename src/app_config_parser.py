"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    DEFAULT_STATE_FILE,
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    StorageSettings,
    TimerSettings,
    UIServerSettings,
)

MAX_HEARTBEAT_INTERVAL_SECONDS = 60.0
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        timer=_parse_timer_settings(_section(raw, "timer")),
        storage=_parse_storage_settings(_section(raw, "storage"), base_dir=base_dir),
        ui_server=_parse_ui_server_settings(_section(raw, "ui_server")),
        logging=_parse_logging_settings(_section(raw, "logging")),
        source_file=source_file,
    )


def _parse_timer_settings(section: Mapping[str, Any]) -> TimerSettings:
    heartbeat = _as_float(
        section.get("heartbeat_interval_seconds", 60.0),
        "timer.heartbeat_interval_seconds",
    )
    if not 0 < heartbeat <= MAX_HEARTBEAT_INTERVAL_SECONDS:
        raise AppConfigurationError(
            "timer.heartbeat_interval_seconds must be in (0, "
            f"{MAX_HEARTBEAT_INTERVAL_SECONDS:g}]."
        )
    return TimerSettings(
        focus_duration_seconds=_as_positive_int(
            section.get("focus_duration_seconds", 25 * 60),
            "timer.focus_duration_seconds",
        ),
        break_duration_seconds=_as_positive_int(
            section.get("break_duration_seconds", 5 * 60),
            "timer.break_duration_seconds",
        ),
        heartbeat_interval_seconds=heartbeat,
    )


def _parse_storage_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> StorageSettings:
    state_file = _as_str(
        section.get("state_file", DEFAULT_STATE_FILE),
        "storage.state_file",
    )
    return StorageSettings(state_file=_resolve_path(base_dir, state_file))


def _parse_ui_server_settings(section: Mapping[str, Any]) -> UIServerSettings:
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_int(section.get("port", 8765), "ui_server.port"),
    )


def _parse_logging_settings(section: Mapping[str, Any]) -> LoggingSettings:
    level = _as_str(section.get("level", "INFO"), "logging.level").upper()
    if level not in _ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}.")
    return LoggingSettings(level=level)


def log_level(settings: LoggingSettings) -> int:
    return logging.getLevelName(settings.level)


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_positive_int(value: Any, field: str) -> int:
    number = _as_int(value, field)
    if number < 1:
        raise AppConfigurationError(f"{field} must be at least 1.")
    return number


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    else:
        raise AppConfigurationError(f"{field} must be a float.")
    if not math.isfinite(number):
        raise AppConfigurationError(f"{field} must be finite.")
    return number


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
