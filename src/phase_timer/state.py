"""Immutable config/state records and their flat persisted representation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .constants import (
    ALL_PHASES,
    DEFAULT_BREAK_DURATION_SECONDS,
    DEFAULT_FOCUS_DURATION_SECONDS,
    PAUSED_PHASES,
    PHASE_IDLE,
    PHASE_WAITING_CONFIRM,
    RUNNING_PHASES,
)
from .errors import StateDecodeError, ValidationError


@dataclass(frozen=True)
class TimerConfig:
    """Focus and break durations for one cycle, in whole seconds."""
    focus_duration_seconds: int = DEFAULT_FOCUS_DURATION_SECONDS
    break_duration_seconds: int = DEFAULT_BREAK_DURATION_SECONDS

    @classmethod
    def validated(cls, focus_duration_seconds: Any, break_duration_seconds: Any) -> "TimerConfig":
        """Build a config from raw durations, rejecting non-finite or sub-second values."""
        return cls(
            focus_duration_seconds=_as_duration(focus_duration_seconds, "focus"),
            break_duration_seconds=_as_duration(break_duration_seconds, "break"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "focus_duration_seconds": self.focus_duration_seconds,
            "break_duration_seconds": self.break_duration_seconds,
        }

    @classmethod
    def from_record(cls, record: Any) -> "TimerConfig":
        if not isinstance(record, Mapping):
            raise StateDecodeError("config record must be a mapping")
        try:
            return cls.validated(
                record.get("focus_duration_seconds"),
                record.get("break_duration_seconds"),
            )
        except ValidationError as error:
            raise StateDecodeError(f"invalid config record: {error}") from error


@dataclass(frozen=True)
class TimerState:
    """Persisted phase plus either an absolute end time or a frozen remainder."""
    phase: str = PHASE_IDLE
    end_timestamp: Optional[float] = None
    remaining_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if self.phase not in ALL_PHASES:
            raise StateDecodeError(f"unknown phase: {self.phase!r}")
        if self.phase in RUNNING_PHASES:
            if self.end_timestamp is None or self.remaining_seconds is not None:
                raise StateDecodeError(f"{self.phase} requires end_timestamp only")
        elif self.phase in PAUSED_PHASES:
            if self.remaining_seconds is None or self.end_timestamp is not None:
                raise StateDecodeError(f"{self.phase} requires remaining_seconds only")
            if self.remaining_seconds < 1:
                raise StateDecodeError("remaining_seconds must be at least 1")
        elif self.end_timestamp is not None or self.remaining_seconds is not None:
            raise StateDecodeError(f"{self.phase} must not carry timing fields")

    @property
    def is_running(self) -> bool:
        return self.phase in RUNNING_PHASES

    @property
    def is_paused(self) -> bool:
        return self.phase in PAUSED_PHASES

    @property
    def is_idle(self) -> bool:
        return self.phase == PHASE_IDLE

    def is_due(self, now: float) -> bool:
        """Return whether a running phase has reached its absolute end time."""
        return self.is_running and self.end_timestamp is not None and now >= self.end_timestamp

    def remaining_at(self, now: float) -> Optional[int]:
        """Remaining whole seconds at `now`, or None when no countdown applies."""
        if self.is_running and self.end_timestamp is not None:
            return max(0, int(math.ceil(self.end_timestamp - now)))
        if self.is_paused:
            return self.remaining_seconds
        if self.phase == PHASE_WAITING_CONFIRM:
            return 0
        return None

    def to_record(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "end_timestamp": self.end_timestamp,
            "remaining_seconds": self.remaining_seconds,
        }

    @classmethod
    def from_record(cls, record: Any) -> "TimerState":
        if not isinstance(record, Mapping):
            raise StateDecodeError("state record must be a mapping")
        phase = record.get("phase", PHASE_IDLE)
        if not isinstance(phase, str):
            raise StateDecodeError("state phase must be a string")
        return cls(
            phase=phase,
            end_timestamp=_optional_number(record.get("end_timestamp"), "end_timestamp"),
            remaining_seconds=_optional_int(record.get("remaining_seconds"), "remaining_seconds"),
        )


IDLE_STATE = TimerState()


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view handed to observers and returned by controller calls."""
    state: TimerState
    config: TimerConfig
    captured_at: float

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self.state.remaining_at(self.captured_at)


def _as_duration(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} duration must be a number")
    if not math.isfinite(value) or value < 1:
        raise ValidationError(f"{label} duration must be at least 1 second")
    return int(round(value))


def _optional_number(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StateDecodeError(f"{field} must be a number")
    if not math.isfinite(value):
        raise StateDecodeError(f"{field} must be finite")
    return float(value)


def _optional_int(value: Any, field: str) -> Optional[int]:
    number = _optional_number(value, field)
    if number is None:
        return None
    return int(math.ceil(number))
