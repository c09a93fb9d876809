"""Web UI websocket event and command constants."""

from __future__ import annotations

from phase_timer.constants import PHASE_WAITING_CONFIRM

# Websocket event types (server -> client)
EVENT_HELLO = "hello"
EVENT_TIMER_STATE = "timer_state"
EVENT_NOTIFICATION = "notification"
EVENT_COMMAND_RESULT = "command_result"
EVENT_ERROR = "error"

# Websocket commands (client -> server)
COMMAND_START = "start"
COMMAND_PAUSE = "pause"
COMMAND_RESUME = "resume"
COMMAND_CANCEL = "cancel"
COMMAND_ACKNOWLEDGE = "acknowledge"
COMMAND_SYNC = "sync"
COMMAND_CONFIGURE = "configure"
COMMAND_NOTIFICATION_ACTION = "notification_action"


STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_TIMER_STATE,
        EVENT_NOTIFICATION,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_NOTIFICATION,
    EVENT_TIMER_STATE,
)

# Sticky notifications survive only timer_state events in these phases.
NOTIFICATION_REPLAY_PHASES: frozenset[str] = frozenset({PHASE_WAITING_CONFIRM})
