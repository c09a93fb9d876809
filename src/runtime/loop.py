"""Runtime wiring of store, scheduler, notifier, controller, and UI server."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from app_config import AppConfig
from host import (
    FanOutNotifier,
    InMemoryStore,
    JsonFileStore,
    LoggingNotifier,
    ThreadedWakeupScheduler,
)
from phase_timer import KeyValueStore, PhaseController, TimerConfig
from server import UIServer

from .commands import RuntimeCommandDispatcher
from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime engine."""
    logger: logging.Logger
    app_config: AppConfig
    ui_server: Optional[UIServer] = None
    store: Optional[KeyValueStore] = None


def build_store(app_config: AppConfig) -> KeyValueStore:
    state_file = app_config.storage.state_file
    if not state_file:
        return InMemoryStore()
    return JsonFileStore(state_file, logger=logging.getLogger("store"))


class RuntimeEngine:
    """Owns the controller and its collaborators for one process lifetime."""

    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        timer_settings = bootstrap.app_config.timer

        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._scheduler = ThreadedWakeupScheduler(logger=logging.getLogger("scheduler"))
        self._controller = PhaseController(
            store=bootstrap.store or build_store(bootstrap.app_config),
            scheduler=self._scheduler,
            notifier=FanOutNotifier(
                [LoggingNotifier(), self._ui],
                logger=logging.getLogger("notifications"),
            ),
            observers=[self._ui],
            default_config=TimerConfig(
                focus_duration_seconds=timer_settings.focus_duration_seconds,
                break_duration_seconds=timer_settings.break_duration_seconds,
            ),
            heartbeat_interval_seconds=timer_settings.heartbeat_interval_seconds,
            logger=logging.getLogger("phase_timer"),
        )
        self._scheduler.set_handler(self._controller.handle_wakeup)
        self._dispatcher = RuntimeCommandDispatcher(
            controller=self._controller,
            logger=self._logger,
        )
        self._stop_requested = threading.Event()

    @property
    def controller(self) -> PhaseController:
        return self._controller

    @property
    def dispatcher(self) -> RuntimeCommandDispatcher:
        return self._dispatcher

    def request_stop(self) -> None:
        self._stop_requested.set()

    def run(self) -> int:
        ui_server = self._bootstrap.ui_server
        try:
            if ui_server is not None:
                ui_server.set_command_handler(self._dispatcher.handle_command)
                ui_server.start()

            self._scheduler.start()
            result = self._controller.initialize()
            self._logger.info("Timer ready: phase=%s", result.snapshot.phase)

            while not self._stop_requested.wait(timeout=0.5):
                pass
            self._logger.info("Shutdown requested.")
            return 0
        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            self._shutdown()

    def _shutdown(self) -> None:
        self._scheduler.stop()
        if self._bootstrap.ui_server is not None:
            self._bootstrap.ui_server.stop()
