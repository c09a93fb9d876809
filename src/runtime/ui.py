from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional, Protocol

from contracts.ui_protocol import EVENT_NOTIFICATION, EVENT_TIMER_STATE
from phase_timer import NotificationRequest, TimerSnapshot, project_status


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...


def timer_state_payload(snapshot: TimerSnapshot) -> dict[str, Any]:
    """Flatten a snapshot and its status projection into a websocket payload."""
    status = project_status(snapshot.state, snapshot.captured_at)
    payload: dict[str, Any] = asdict(status)
    payload.update(
        {
            "end_timestamp": snapshot.state.end_timestamp,
            "focus_duration_seconds": snapshot.config.focus_duration_seconds,
            "break_duration_seconds": snapshot.config.break_duration_seconds,
            "captured_at": snapshot.captured_at,
        }
    )
    return payload


class RuntimeUIPublisher:
    """State observer and notification sink that forwards to the websocket server."""

    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def on_state_changed(self, snapshot: TimerSnapshot) -> None:
        self.publish(EVENT_TIMER_STATE, **timer_state_payload(snapshot))

    def notify(self, request: NotificationRequest) -> None:
        self.publish(
            EVENT_NOTIFICATION,
            kind=request.kind,
            title=request.title,
            body=request.body,
            actions=list(request.actions),
        )
