"""Phase, action, reason, and storage constants used by the phase controller."""

from __future__ import annotations

DEFAULT_FOCUS_DURATION_SECONDS = 25 * 60
DEFAULT_BREAK_DURATION_SECONDS = 5 * 60
DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 60.0

STORAGE_KEY_CONFIG = "config"
STORAGE_KEY_STATE = "state"

WAKEUP_PHASE_END = "phase_end"
WAKEUP_HEARTBEAT = "heartbeat"

PHASE_IDLE = "idle"
PHASE_RUNNING_FOCUS = "running_focus"
PHASE_WAITING_CONFIRM = "waiting_confirm"
PHASE_RUNNING_BREAK = "running_break"
PHASE_PAUSED_FOCUS = "paused_focus"
PHASE_PAUSED_BREAK = "paused_break"

ALL_PHASES: frozenset[str] = frozenset(
    {
        PHASE_IDLE,
        PHASE_RUNNING_FOCUS,
        PHASE_WAITING_CONFIRM,
        PHASE_RUNNING_BREAK,
        PHASE_PAUSED_FOCUS,
        PHASE_PAUSED_BREAK,
    }
)
RUNNING_PHASES: frozenset[str] = frozenset({PHASE_RUNNING_FOCUS, PHASE_RUNNING_BREAK})
PAUSED_PHASES: frozenset[str] = frozenset({PHASE_PAUSED_FOCUS, PHASE_PAUSED_BREAK})
FOCUS_PHASES: frozenset[str] = frozenset({PHASE_RUNNING_FOCUS, PHASE_PAUSED_FOCUS})

PAUSED_PHASE_FOR: dict[str, str] = {
    PHASE_RUNNING_FOCUS: PHASE_PAUSED_FOCUS,
    PHASE_RUNNING_BREAK: PHASE_PAUSED_BREAK,
}
RUNNING_PHASE_FOR: dict[str, str] = {
    PHASE_PAUSED_FOCUS: PHASE_RUNNING_FOCUS,
    PHASE_PAUSED_BREAK: PHASE_RUNNING_BREAK,
}

ACTION_START = "start"
ACTION_ACKNOWLEDGE = "acknowledge"
ACTION_PAUSE = "pause"
ACTION_RESUME = "resume"
ACTION_CANCEL = "cancel"
ACTION_CONFIGURE = "configure"
ACTION_SYNC = "sync"
ACTION_INITIALIZE = "initialize"

REASON_STARTED = "started"
REASON_ACKNOWLEDGED = "acknowledged"
REASON_PAUSED = "paused"
REASON_RESUMED = "resumed"
REASON_CANCELLED = "cancelled"
REASON_CONFIGURED = "configured"
REASON_SYNCED = "synced"
REASON_INVALID_DURATIONS = "invalid_durations"
REASON_ALREADY_RUNNING = "already_running"
REASON_NOTHING_TO_PAUSE = "nothing_to_pause"
REASON_NOTHING_TO_RESUME = "nothing_to_resume"
REASON_NOT_WAITING = "not_waiting"

ERROR_VALIDATION = "validation"
ERROR_ILLEGAL_TRANSITION = "illegal_transition"

REJECTION_MESSAGES: dict[str, str] = {
    REASON_INVALID_DURATIONS: "Invalid durations.",
    REASON_ALREADY_RUNNING: "Timer already running.",
    REASON_NOTHING_TO_PAUSE: "Nothing to pause.",
    REASON_NOTHING_TO_RESUME: "Nothing to resume.",
}

NOTIFICATION_FOCUS_COMPLETE = "focus_complete"
NOTIFICATION_BREAK_COMPLETE = "break_complete"
NOTIFICATION_ACTION_START_BREAK = "start_break"
