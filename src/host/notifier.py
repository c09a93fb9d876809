"""Notification sinks: a logging sink and a fan-out over several sinks."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from phase_timer.contracts import NotificationRequest, NotificationSink


class LoggingNotifier:
    """Writes notifications to the log; the fallback when no UI is attached."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, request: NotificationRequest) -> None:
        if request.actions:
            self._logger.info(
                "%s: %s (actions: %s)",
                request.title,
                request.body,
                ", ".join(request.actions),
            )
            return
        self._logger.info("%s: %s", request.title, request.body)


class FanOutNotifier:
    """Delivers each notification to every sink; one failing sink does not block others."""

    def __init__(
        self,
        sinks: Sequence[NotificationSink],
        logger: Optional[logging.Logger] = None,
    ):
        self._sinks = tuple(sinks)
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, request: NotificationRequest) -> None:
        for sink in self._sinks:
            try:
                sink.notify(request)
            except Exception as error:
                self._logger.warning(
                    "Notification sink %s failed: %s",
                    type(sink).__name__,
                    error,
                )
