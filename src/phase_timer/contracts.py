"""Protocols describing the host capabilities the phase controller depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from .state import TimerSnapshot

Clock = Callable[[], float]
WakeupHandler = Callable[[str], None]


@dataclass(frozen=True)
class NotificationRequest:
    """User-visible notification the host should deliver."""
    kind: str
    title: str
    body: str
    actions: tuple[str, ...] = ()


class KeyValueStore(Protocol):
    """Durable store with read-your-writes semantics for a single controller."""
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class WakeupScheduler(Protocol):
    """Deferred wake-up requests that call back into the controller by id."""
    def schedule_at(self, wakeup_id: str, when: float) -> None:
        ...

    def schedule_every(self, wakeup_id: str, interval_seconds: float) -> None:
        ...

    def cancel(self, wakeup_id: str) -> None:
        ...


class NotificationSink(Protocol):
    def notify(self, request: NotificationRequest) -> None:
        ...


class StateObserver(Protocol):
    def on_state_changed(self, snapshot: TimerSnapshot) -> None:
        ...
