"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_STATE_FILE = "state/timer_state.json"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimerSettings:
    """Default cycle durations and heartbeat period from `[timer]`."""
    focus_duration_seconds: int = 25 * 60
    break_duration_seconds: int = 5 * 60
    heartbeat_interval_seconds: float = 60.0


@dataclass(frozen=True)
class StorageSettings:
    """Persistence settings from `[storage]`; empty `state_file` keeps state in memory."""
    state_file: str = DEFAULT_STATE_FILE


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in websocket server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    timer: TimerSettings
    storage: StorageSettings
    ui_server: UIServerSettings
    logging: LoggingSettings
    source_file: str
