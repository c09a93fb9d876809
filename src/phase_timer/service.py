"""Thread-safe focus/break state machine backed by persisted absolute timestamps."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .constants import (
    ACTION_ACKNOWLEDGE,
    ACTION_CANCEL,
    ACTION_CONFIGURE,
    ACTION_INITIALIZE,
    ACTION_PAUSE,
    ACTION_RESUME,
    ACTION_START,
    ACTION_SYNC,
    DEFAULT_HEARTBEAT_INTERVAL_SECONDS,
    ERROR_ILLEGAL_TRANSITION,
    ERROR_VALIDATION,
    NOTIFICATION_ACTION_START_BREAK,
    NOTIFICATION_BREAK_COMPLETE,
    NOTIFICATION_FOCUS_COMPLETE,
    PAUSED_PHASE_FOR,
    PHASE_RUNNING_BREAK,
    PHASE_RUNNING_FOCUS,
    PHASE_WAITING_CONFIRM,
    REASON_ACKNOWLEDGED,
    REASON_ALREADY_RUNNING,
    REASON_CANCELLED,
    REASON_CONFIGURED,
    REASON_INVALID_DURATIONS,
    REASON_NOT_WAITING,
    REASON_NOTHING_TO_PAUSE,
    REASON_NOTHING_TO_RESUME,
    REASON_PAUSED,
    REASON_RESUMED,
    REASON_STARTED,
    REASON_SYNCED,
    REJECTION_MESSAGES,
    RUNNING_PHASE_FOR,
    STORAGE_KEY_CONFIG,
    STORAGE_KEY_STATE,
    WAKEUP_HEARTBEAT,
    WAKEUP_PHASE_END,
)
from .contracts import (
    Clock,
    KeyValueStore,
    NotificationRequest,
    NotificationSink,
    StateObserver,
    WakeupScheduler,
)
from .errors import IllegalTransition, StateDecodeError, ValidationError
from .state import IDLE_STATE, TimerConfig, TimerSnapshot, TimerState

FOCUS_COMPLETE_NOTIFICATION = NotificationRequest(
    kind=NOTIFICATION_FOCUS_COMPLETE,
    title="Focus complete",
    body="Start Break when ready.",
    actions=(NOTIFICATION_ACTION_START_BREAK,),
)
BREAK_COMPLETE_NOTIFICATION = NotificationRequest(
    kind=NOTIFICATION_BREAK_COMPLETE,
    title="Break complete",
    body="Sequence finished.",
)

_Transition = Callable[..., tuple[TimerState, str]]


@dataclass(frozen=True)
class ActionResult:
    """Result envelope returned after applying a controller operation."""
    action: str
    accepted: bool
    reason: str
    snapshot: TimerSnapshot
    message: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.accepted

    @property
    def state(self) -> TimerState:
        return self.snapshot.state


class PhaseController:
    """Focus/break state machine that derives completion from persisted end times.

    Every entry point first reconciles the stored state against the clock, so a
    missed or late wake-up is corrected on the next call of any operation.
    State is persisted before notifications, scheduling, or observer pushes.
    """

    def __init__(
        self,
        *,
        store: KeyValueStore,
        scheduler: WakeupScheduler,
        notifier: Optional[NotificationSink] = None,
        observers: Sequence[StateObserver] = (),
        clock: Optional[Clock] = None,
        default_config: Optional[TimerConfig] = None,
        heartbeat_interval_seconds: float = DEFAULT_HEARTBEAT_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        if heartbeat_interval_seconds <= 0:
            raise ValueError("heartbeat_interval_seconds must be greater than zero")

        self._store = store
        self._scheduler = scheduler
        self._notifier = notifier
        self._observers: list[StateObserver] = list(observers)
        self._clock = clock or time.time
        self._default_config = default_config or TimerConfig()
        self._heartbeat_interval_seconds = float(heartbeat_interval_seconds)
        self._logger = logger or logging.getLogger("phase_timer")
        self._lock = threading.Lock()

    def add_observer(self, observer: StateObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    def initialize(self) -> ActionResult:
        """Restore timing after a process (re)start and install the heartbeat."""
        with self._lock:
            now = self._clock()
            if self._store.get(STORAGE_KEY_CONFIG) is None:
                self._store.set(STORAGE_KEY_CONFIG, self._default_config.to_record())
            self._ensure_heartbeat()

            state, completed = self._reconcile_locked(now)
            if state.is_running and state.end_timestamp is not None:
                self._schedule_phase_end(state.end_timestamp)
            if not completed:
                self._publish_locked(state, now)
            self._logger.info("Phase controller initialized: phase=%s", state.phase)
            return self._result_locked(ACTION_INITIALIZE, True, REASON_SYNCED, state, now)

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return self._snapshot_locked(self._load_state_locked(), self._clock())

    def poll(self) -> ActionResult:
        """Reconcile against the clock without requesting any transition."""
        return self._run(ACTION_SYNC, self._sync_locked)

    def start(
        self,
        focus_duration_seconds: Any = None,
        break_duration_seconds: Any = None,
    ) -> ActionResult:
        """Start a focus phase; omitting both durations reuses the stored config."""
        return self._run(
            ACTION_START,
            self._start_locked,
            focus_duration_seconds,
            break_duration_seconds,
        )

    def pause(self) -> ActionResult:
        return self._run(ACTION_PAUSE, self._pause_locked)

    def resume(self) -> ActionResult:
        return self._run(ACTION_RESUME, self._resume_locked)

    def cancel(self) -> ActionResult:
        return self._run(ACTION_CANCEL, self._cancel_locked)

    def configure(self, focus_duration_seconds: Any, break_duration_seconds: Any) -> ActionResult:
        return self._run(
            ACTION_CONFIGURE,
            self._configure_locked,
            focus_duration_seconds,
            break_duration_seconds,
        )

    def acknowledge(self) -> ActionResult:
        """Start the break after a finished focus phase; ignored in any other phase."""
        with self._lock:
            now = self._clock()
            state, _ = self._reconcile_locked(now)
            if state.phase != PHASE_WAITING_CONFIRM:
                self._logger.debug("Ignoring acknowledge in phase %s", state.phase)
                return self._result_locked(
                    ACTION_ACKNOWLEDGE, False, REASON_NOT_WAITING, state, now
                )

            config = self._load_config_locked()
            next_state = TimerState(
                phase=PHASE_RUNNING_BREAK,
                end_timestamp=now + config.break_duration_seconds,
            )
            self._commit_locked(next_state, now)
            self._schedule_phase_end(next_state.end_timestamp)
            self._ensure_heartbeat()
            self._logger.info("Break phase started: duration=%ss", config.break_duration_seconds)
            return self._result_locked(ACTION_ACKNOWLEDGE, True, REASON_ACKNOWLEDGED, next_state, now)

    def handle_wakeup(self, wakeup_id: str) -> None:
        """Scheduler callback for the one-shot completion check and the heartbeat."""
        with self._lock:
            now = self._clock()
            state, completed = self._reconcile_locked(now)

            if wakeup_id == WAKEUP_PHASE_END:
                # A check that fires before the stored end time re-arms itself.
                if state.is_running and state.end_timestamp is not None:
                    self._schedule_phase_end(state.end_timestamp)
                return

            if wakeup_id == WAKEUP_HEARTBEAT:
                if not completed:
                    self._publish_locked(state, now)
                return

            self._logger.debug("Ignoring unknown wake-up id: %s", wakeup_id)

    def _run(self, action: str, transition: _Transition, *args: Any) -> ActionResult:
        with self._lock:
            now = self._clock()
            state, _ = self._reconcile_locked(now)
            try:
                next_state, reason = transition(state, now, *args)
            except ValidationError as error:
                self._logger.warning("Rejected %s: %s", action, error)
                return self._result_locked(
                    action,
                    False,
                    REASON_INVALID_DURATIONS,
                    state,
                    now,
                    error=ERROR_VALIDATION,
                )
            except IllegalTransition as error:
                self._logger.warning(
                    "Rejected %s: reason=%s phase=%s",
                    action,
                    error.reason,
                    state.phase,
                )
                return self._result_locked(
                    action,
                    False,
                    error.reason,
                    state,
                    now,
                    error=ERROR_ILLEGAL_TRANSITION,
                )
            return self._result_locked(action, True, reason, next_state, now)

    def _sync_locked(self, state: TimerState, now: float) -> tuple[TimerState, str]:
        del now
        return state, REASON_SYNCED

    def _start_locked(
        self,
        state: TimerState,
        now: float,
        focus_duration_seconds: Any,
        break_duration_seconds: Any,
    ) -> tuple[TimerState, str]:
        if not state.is_idle:
            raise IllegalTransition(REASON_ALREADY_RUNNING)
        if focus_duration_seconds is None and break_duration_seconds is None:
            config = self._load_config_locked()
        else:
            config = TimerConfig.validated(focus_duration_seconds, break_duration_seconds)

        next_state = TimerState(
            phase=PHASE_RUNNING_FOCUS,
            end_timestamp=now + config.focus_duration_seconds,
        )
        self._store.set(STORAGE_KEY_CONFIG, config.to_record())
        self._commit_locked(next_state, now)
        self._schedule_phase_end(next_state.end_timestamp)
        self._ensure_heartbeat()
        self._logger.info(
            "Focus phase started: focus=%ss break=%ss",
            config.focus_duration_seconds,
            config.break_duration_seconds,
        )
        return next_state, REASON_STARTED

    def _pause_locked(self, state: TimerState, now: float) -> tuple[TimerState, str]:
        if not state.is_running or state.end_timestamp is None:
            raise IllegalTransition(REASON_NOTHING_TO_PAUSE)

        remaining = max(1, int(math.ceil(state.end_timestamp - now)))
        next_state = TimerState(
            phase=PAUSED_PHASE_FOR[state.phase],
            remaining_seconds=remaining,
        )
        self._commit_locked(next_state, now)
        self._cancel_phase_end()
        self._logger.info("Timer paused: phase=%s remaining=%ss", next_state.phase, remaining)
        return next_state, REASON_PAUSED

    def _resume_locked(self, state: TimerState, now: float) -> tuple[TimerState, str]:
        if not state.is_paused or state.remaining_seconds is None:
            raise IllegalTransition(REASON_NOTHING_TO_RESUME)

        next_state = TimerState(
            phase=RUNNING_PHASE_FOR[state.phase],
            end_timestamp=now + state.remaining_seconds,
        )
        self._commit_locked(next_state, now)
        self._schedule_phase_end(next_state.end_timestamp)
        self._ensure_heartbeat()
        self._logger.info(
            "Timer resumed: phase=%s remaining=%ss",
            next_state.phase,
            state.remaining_seconds,
        )
        return next_state, REASON_RESUMED

    def _cancel_locked(self, state: TimerState, now: float) -> tuple[TimerState, str]:
        self._commit_locked(IDLE_STATE, now)
        self._cancel_phase_end()
        self._logger.info("Timer cancelled from phase %s", state.phase)
        return IDLE_STATE, REASON_CANCELLED

    def _configure_locked(
        self,
        state: TimerState,
        now: float,
        focus_duration_seconds: Any,
        break_duration_seconds: Any,
    ) -> tuple[TimerState, str]:
        if not state.is_idle:
            raise IllegalTransition(REASON_ALREADY_RUNNING)
        config = TimerConfig.validated(focus_duration_seconds, break_duration_seconds)
        self._store.set(STORAGE_KEY_CONFIG, config.to_record())
        self._publish_locked(state, now)
        self._logger.info(
            "Timer configured: focus=%ss break=%ss",
            config.focus_duration_seconds,
            config.break_duration_seconds,
        )
        return state, REASON_CONFIGURED

    def _reconcile_locked(self, now: float) -> tuple[TimerState, bool]:
        state = self._load_state_locked()
        if not state.is_due(now):
            return state, False

        lateness = now - (state.end_timestamp or now)
        if state.phase == PHASE_RUNNING_FOCUS:
            next_state = TimerState(phase=PHASE_WAITING_CONFIRM)
            request = FOCUS_COMPLETE_NOTIFICATION
            self._logger.info("Focus phase completed (detected %.1fs after end)", lateness)
        else:
            next_state = IDLE_STATE
            request = BREAK_COMPLETE_NOTIFICATION
            self._logger.info("Break phase completed (detected %.1fs after end)", lateness)

        self._commit_locked(next_state, now)
        self._cancel_phase_end()
        self._notify(request)
        return next_state, True

    def _commit_locked(self, state: TimerState, now: float) -> None:
        self._store.set(STORAGE_KEY_STATE, state.to_record())
        self._publish_locked(state, now)

    def _load_state_locked(self) -> TimerState:
        raw = self._store.get(STORAGE_KEY_STATE)
        if raw is None:
            return IDLE_STATE
        try:
            return TimerState.from_record(raw)
        except StateDecodeError as error:
            self._logger.warning("Discarding unreadable timer state: %s", error)
            self._store.set(STORAGE_KEY_STATE, IDLE_STATE.to_record())
            return IDLE_STATE

    def _load_config_locked(self) -> TimerConfig:
        raw = self._store.get(STORAGE_KEY_CONFIG)
        if raw is None:
            return self._default_config
        try:
            return TimerConfig.from_record(raw)
        except StateDecodeError as error:
            self._logger.warning("Using default timer config: %s", error)
            return self._default_config

    def _snapshot_locked(self, state: TimerState, now: float) -> TimerSnapshot:
        return TimerSnapshot(state=state, config=self._load_config_locked(), captured_at=now)

    def _result_locked(
        self,
        action: str,
        accepted: bool,
        reason: str,
        state: TimerState,
        now: float,
        *,
        error: Optional[str] = None,
    ) -> ActionResult:
        return ActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(state, now),
            message="" if accepted else REJECTION_MESSAGES.get(reason, ""),
            error=error,
        )

    def _publish_locked(self, state: TimerState, now: float) -> None:
        if not self._observers:
            return
        snapshot = self._snapshot_locked(state, now)
        for observer in tuple(self._observers):
            try:
                observer.on_state_changed(snapshot)
            except Exception as error:
                self._logger.warning("State observer failed: %s", error)

    def _notify(self, request: NotificationRequest) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(request)
        except Exception as error:
            self._logger.warning("Notification %s failed: %s", request.kind, error)

    def _schedule_phase_end(self, when: Optional[float]) -> None:
        if when is None:
            return
        try:
            self._scheduler.schedule_at(WAKEUP_PHASE_END, when)
        except Exception as error:
            self._logger.warning("Failed to schedule completion check: %s", error)

    def _cancel_phase_end(self) -> None:
        try:
            self._scheduler.cancel(WAKEUP_PHASE_END)
        except Exception as error:
            self._logger.warning("Failed to cancel completion check: %s", error)

    def _ensure_heartbeat(self) -> None:
        try:
            self._scheduler.schedule_every(WAKEUP_HEARTBEAT, self._heartbeat_interval_seconds)
        except Exception as error:
            self._logger.warning("Failed to install heartbeat: %s", error)
