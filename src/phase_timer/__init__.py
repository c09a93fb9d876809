from .contracts import (
    KeyValueStore,
    NotificationRequest,
    NotificationSink,
    StateObserver,
    WakeupScheduler,
)
from .errors import (
    CollaboratorFailure,
    IllegalTransition,
    PhaseTimerError,
    StateDecodeError,
    ValidationError,
)
from .projection import StatusProjection, format_countdown, project_status
from .service import ActionResult, PhaseController
from .state import IDLE_STATE, TimerConfig, TimerSnapshot, TimerState

__all__ = [
    "ActionResult",
    "CollaboratorFailure",
    "IDLE_STATE",
    "IllegalTransition",
    "KeyValueStore",
    "NotificationRequest",
    "NotificationSink",
    "PhaseController",
    "PhaseTimerError",
    "StateDecodeError",
    "StateObserver",
    "StatusProjection",
    "TimerConfig",
    "TimerSnapshot",
    "TimerState",
    "ValidationError",
    "WakeupScheduler",
    "format_countdown",
    "project_status",
]
