"""Dispatcher that turns websocket client commands into controller operations."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional

from contracts.ui_protocol import (
    COMMAND_ACKNOWLEDGE,
    COMMAND_CANCEL,
    COMMAND_CONFIGURE,
    COMMAND_NOTIFICATION_ACTION,
    COMMAND_PAUSE,
    COMMAND_RESUME,
    COMMAND_START,
    COMMAND_SYNC,
)
from phase_timer import ActionResult, PhaseController
from phase_timer.constants import NOTIFICATION_ACTION_START_BREAK

from .ui import timer_state_payload

REASON_UNSUPPORTED_COMMAND = "unsupported_command"
REASON_UNSUPPORTED_NOTIFICATION_ACTION = "unsupported_notification_action"

NOTIFICATION_ACTION_TO_COMMAND: dict[str, str] = {
    NOTIFICATION_ACTION_START_BREAK: COMMAND_ACKNOWLEDGE,
}


def parse_duration_seconds(
    arguments: Mapping[str, Any],
    *,
    seconds_key: str,
    minutes_key: str,
) -> Any:
    """Read a duration given either in seconds or in minutes.

    Minutes are converted to whole seconds. Values that cannot be read as
    numbers are returned unchanged so the controller rejects them as invalid.
    """
    if seconds_key in arguments:
        return _as_number(arguments[seconds_key])
    if minutes_key in arguments:
        minutes = _as_number(arguments[minutes_key])
        if isinstance(minutes, float) and math.isfinite(minutes):
            return int(round(minutes * 60))
        return minutes
    return None


def _as_number(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


class RuntimeCommandDispatcher:
    """Routes client commands to the phase controller and shapes the reply."""

    def __init__(
        self,
        *,
        controller: PhaseController,
        logger: Optional[logging.Logger] = None,
    ):
        self._controller = controller
        self._logger = logger or logging.getLogger("runtime")

    def handle_command(self, message: Mapping[str, Any]) -> dict[str, Any]:
        command = message.get("command")
        if command == COMMAND_NOTIFICATION_ACTION:
            action_id = message.get("action")
            mapped = (
                NOTIFICATION_ACTION_TO_COMMAND.get(action_id.strip().lower())
                if isinstance(action_id, str)
                else None
            )
            if mapped is None:
                self._logger.warning("Unsupported notification action: %r", action_id)
                return self._unsupported(command, REASON_UNSUPPORTED_NOTIFICATION_ACTION)
            command = mapped

        if command == COMMAND_START:
            focus, brk = self._durations(message)
            return self._reply(self._controller.start(focus, brk))
        if command == COMMAND_CONFIGURE:
            focus, brk = self._durations(message)
            return self._reply(self._controller.configure(focus, brk))
        if command == COMMAND_ACKNOWLEDGE:
            return self._reply(self._controller.acknowledge())
        if command == COMMAND_PAUSE:
            return self._reply(self._controller.pause())
        if command == COMMAND_RESUME:
            return self._reply(self._controller.resume())
        if command == COMMAND_CANCEL:
            return self._reply(self._controller.cancel())
        if command == COMMAND_SYNC:
            return self._reply(self._controller.poll())

        self._logger.warning("Unsupported command: %r", command)
        return self._unsupported(command, REASON_UNSUPPORTED_COMMAND)

    @staticmethod
    def _durations(message: Mapping[str, Any]) -> tuple[Any, Any]:
        focus = parse_duration_seconds(
            message,
            seconds_key="focus_duration_seconds",
            minutes_key="focus_minutes",
        )
        brk = parse_duration_seconds(
            message,
            seconds_key="break_duration_seconds",
            minutes_key="break_minutes",
        )
        return focus, brk

    @staticmethod
    def _reply(result: ActionResult) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": result.action,
            "accepted": result.accepted,
            "reason": result.reason,
            "state": timer_state_payload(result.snapshot),
        }
        if result.message:
            payload["message"] = result.message
        if result.error:
            payload["error"] = result.error
        return payload

    def _unsupported(self, command: Any, reason: str) -> dict[str, Any]:
        return {
            "action": command if isinstance(command, str) else "",
            "accepted": False,
            "reason": reason,
            "state": timer_state_payload(self._controller.snapshot()),
        }
