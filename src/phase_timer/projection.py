"""Status text, countdown, and badge values derived from a timer state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import (
    FOCUS_PHASES,
    PHASE_IDLE,
    PHASE_PAUSED_BREAK,
    PHASE_PAUSED_FOCUS,
    PHASE_RUNNING_BREAK,
    PHASE_RUNNING_FOCUS,
    PHASE_WAITING_CONFIRM,
)
from .state import TimerState

EMPTY_COUNTDOWN = "--:--"

BADGE_TEXT_VISIBLE = " "
BADGE_COLOR_IDLE = "#B0B0B0"
BADGE_COLOR_PAUSED = "#999999"
BADGE_COLORS: dict[str, str] = {
    PHASE_IDLE: BADGE_COLOR_IDLE,
    PHASE_RUNNING_FOCUS: "#2a6f6b",
    PHASE_WAITING_CONFIRM: "#d38400",
    PHASE_RUNNING_BREAK: "#3b5998",
    PHASE_PAUSED_FOCUS: BADGE_COLOR_PAUSED,
    PHASE_PAUSED_BREAK: BADGE_COLOR_PAUSED,
}

_STATUS_TEXT: dict[str, tuple[str, str]] = {
    PHASE_IDLE: ("Ready", "Set durations and press Start."),
    PHASE_RUNNING_FOCUS: ("Focus Timer running", "Break Timer will wait for confirmation."),
    PHASE_PAUSED_FOCUS: ("Focus paused", "Resume to continue Focus."),
    PHASE_WAITING_CONFIRM: ("Focus Timer complete", "Press Start Break to begin."),
    PHASE_RUNNING_BREAK: ("Break Timer running", "Waiting for completion."),
    PHASE_PAUSED_BREAK: ("Break paused", "Resume to continue Break."),
}


@dataclass(frozen=True)
class StatusProjection:
    """Everything a UI needs to render the timer, computed from state alone."""
    phase: str
    paused: bool
    remaining_seconds: Optional[int]
    countdown: str
    title: str
    label: str
    message: str
    badge_text: str
    badge_color: str


def format_countdown(seconds: Optional[int]) -> str:
    """Format remaining seconds as `MM:SS`, or a placeholder when no countdown applies."""
    if seconds is None:
        return EMPTY_COUNTDOWN
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def phase_label(phase: str) -> str:
    return "Focus" if phase in FOCUS_PHASES else "Break"


def status_title(state: TimerState, now: float) -> str:
    """Short one-line title, e.g. for a toolbar tooltip."""
    if state.phase == PHASE_IDLE:
        return "Focus Timer: idle"
    if state.phase == PHASE_WAITING_CONFIRM:
        return "Focus done: start Break"
    if state.is_paused:
        return f"{phase_label(state.phase)} paused"
    remaining = state.remaining_at(now) or 0
    minutes, seconds = divmod(remaining, 60)
    return f"{phase_label(state.phase)}: {minutes}m {seconds:02d}s remaining"


def badge_for(state: TimerState) -> tuple[str, str]:
    """Return `(text, color)`; idle hides the badge with empty text."""
    color = BADGE_COLORS.get(state.phase, BADGE_COLOR_IDLE)
    if state.phase == PHASE_IDLE:
        return "", color
    return BADGE_TEXT_VISIBLE, color


def project_status(state: TimerState, now: float) -> StatusProjection:
    remaining = state.remaining_at(now)
    label, message = _STATUS_TEXT[state.phase]
    badge_text, badge_color = badge_for(state)
    return StatusProjection(
        phase=state.phase,
        paused=state.is_paused,
        remaining_seconds=remaining,
        countdown=format_countdown(remaining),
        title=status_title(state, now),
        label=label,
        message=message,
        badge_text=badge_text,
        badge_color=badge_color,
    )
