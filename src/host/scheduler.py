"""Threaded wake-up scheduler with one-shot and periodic entries keyed by id."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from phase_timer.contracts import Clock, WakeupHandler
from phase_timer.errors import CollaboratorFailure

DEFAULT_MAX_WAIT_SECONDS = 1.0


@dataclass
class _Entry:
    due: float
    interval_seconds: Optional[float] = None


class ThreadedWakeupScheduler:
    """Fires wake-up ids on a daemon worker thread.

    Due times are absolute wall-clock timestamps. The worker sleeps in bounded
    slices so that a host suspend or clock jump is noticed within
    `max_wait_seconds` of resuming.
    """

    def __init__(
        self,
        handler: Optional[WakeupHandler] = None,
        *,
        clock: Optional[Clock] = None,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        if max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be greater than zero")
        self._handler = handler
        self._clock = clock or time.time
        self._max_wait_seconds = float(max_wait_seconds)
        self._logger = logger or logging.getLogger("scheduler")
        self._entries: dict[str, _Entry] = {}
        self._condition = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._stop_requested = False
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_handler(self, handler: WakeupHandler) -> None:
        with self._condition:
            self._handler = handler

    def pending(self) -> dict[str, float]:
        """Return the next due time of every scheduled id."""
        with self._condition:
            return {wakeup_id: entry.due for wakeup_id, entry in self._entries.items()}

    def schedule_at(self, wakeup_id: str, when: float) -> None:
        with self._condition:
            self._ensure_open_locked()
            self._entries[wakeup_id] = _Entry(due=float(when))
            self._condition.notify_all()
        self._logger.debug("Wake-up %s scheduled at %.3f", wakeup_id, when)

    def schedule_every(self, wakeup_id: str, interval_seconds: float) -> None:
        """Install a periodic wake-up; an identical existing entry keeps its phase."""
        if interval_seconds <= 0:
            raise CollaboratorFailure("interval_seconds must be greater than zero")
        with self._condition:
            self._ensure_open_locked()
            existing = self._entries.get(wakeup_id)
            if existing is not None and existing.interval_seconds == float(interval_seconds):
                return
            self._entries[wakeup_id] = _Entry(
                due=self._clock() + interval_seconds,
                interval_seconds=float(interval_seconds),
            )
            self._condition.notify_all()
        self._logger.debug("Wake-up %s scheduled every %.1fs", wakeup_id, interval_seconds)

    def cancel(self, wakeup_id: str) -> None:
        with self._condition:
            removed = self._entries.pop(wakeup_id, None)
            self._condition.notify_all()
        if removed is not None:
            self._logger.debug("Wake-up %s cancelled", wakeup_id)

    def start(self) -> None:
        with self._condition:
            if self.is_running:
                self._logger.warning("Scheduler is already running")
                return
            self._stop_requested = False
            self._stopped = False
            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="wakeup-scheduler",
            )
            self._thread.start()

    def stop(self, timeout_seconds: float = 5.0) -> None:
        with self._condition:
            self._stop_requested = True
            self._stopped = True
            self._condition.notify_all()
            thread = self._thread

        if thread is None:
            return
        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("Scheduler thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    def run_due(self) -> list[str]:
        """Fire every entry that is due now and return the fired ids."""
        with self._condition:
            due_ids = self._pop_due_locked(self._clock())
        self._dispatch(due_ids)
        return due_ids

    def _run(self) -> None:
        while True:
            with self._condition:
                if self._stop_requested:
                    return
                now = self._clock()
                due_ids = self._pop_due_locked(now)
                if not due_ids:
                    self._condition.wait(self._wait_seconds_locked(now))
                    continue
            self._dispatch(due_ids)

    def _pop_due_locked(self, now: float) -> list[str]:
        due = sorted(
            (entry.due, wakeup_id)
            for wakeup_id, entry in self._entries.items()
            if entry.due <= now
        )
        fired: list[str] = []
        for _, wakeup_id in due:
            entry = self._entries[wakeup_id]
            if entry.interval_seconds is None:
                del self._entries[wakeup_id]
            else:
                # Missed beats collapse into a single firing.
                while entry.due <= now:
                    entry.due += entry.interval_seconds
            fired.append(wakeup_id)
        return fired

    def _wait_seconds_locked(self, now: float) -> float:
        if not self._entries:
            return self._max_wait_seconds
        next_due = min(entry.due for entry in self._entries.values())
        return max(0.0, min(self._max_wait_seconds, next_due - now))

    def _dispatch(self, wakeup_ids: list[str]) -> None:
        handler = self._handler
        for wakeup_id in wakeup_ids:
            if handler is None:
                self._logger.debug("No handler for wake-up %s", wakeup_id)
                continue
            try:
                handler(wakeup_id)
            except Exception as error:
                self._logger.error("Wake-up handler failed for %s: %s", wakeup_id, error, exc_info=True)

    def _ensure_open_locked(self) -> None:
        if self._stopped:
            raise CollaboratorFailure("scheduler has been stopped")
