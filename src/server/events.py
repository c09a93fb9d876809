"""Utilities for serializing UI events and preserving sticky state."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from contracts.ui_protocol import (
    EVENT_NOTIFICATION,
    EVENT_TIMER_STATE,
    NOTIFICATION_REPLAY_PHASES,
    STICKY_EVENT_ORDER,
    STICKY_EVENT_TYPES,
)


class CommandDecodeError(ValueError):
    """Raised when a client message is not a JSON command object."""


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        }
    )


def decode_command(raw: str | bytes) -> dict[str, Any]:
    """Parse a client message into a command mapping with a string `command` field."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as error:
            raise CommandDecodeError("message is not valid UTF-8") from error
    try:
        message = json.loads(raw)
    except ValueError as error:
        raise CommandDecodeError("message is not valid JSON") from error
    if not isinstance(message, Mapping):
        raise CommandDecodeError("message must be a JSON object")
    command = message.get("command")
    if not isinstance(command, str) or not command.strip():
        raise CommandDecodeError("message is missing a command")
    return {**message, "command": command.strip().lower()}


class StickyEventStore:
    """Thread-safe cache of sticky events replayed to new websocket clients.

    A cached notification is dropped as soon as a `timer_state` event reports a
    phase outside `NOTIFICATION_REPLAY_PHASES`, so late clients never see a
    prompt the timer has already moved past.
    """
    def __init__(self):
        self._events: dict[str, str] = {}
        self._lock = threading.Lock()

    def remember(self, event_type: str, message: str) -> None:
        if event_type not in STICKY_EVENT_TYPES:
            return
        with self._lock:
            self._events[event_type] = message
            if (
                event_type == EVENT_TIMER_STATE
                and _phase_of(message) not in NOTIFICATION_REPLAY_PHASES
            ):
                self._events.pop(EVENT_NOTIFICATION, None)

    def snapshot(self) -> list[str]:
        with self._lock:
            return [self._events[key] for key in STICKY_EVENT_ORDER if key in self._events]


def _phase_of(message: str) -> Any:
    try:
        payload = json.loads(message)
    except ValueError:
        return None
    return payload.get("phase") if isinstance(payload, Mapping) else None
