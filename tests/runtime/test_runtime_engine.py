import logging
import tempfile
import unittest
from pathlib import Path

from app_config import AppConfig, LoggingSettings, StorageSettings, TimerSettings, UIServerSettings
from host import InMemoryStore, JsonFileStore
from runtime import RuntimeBootstrap, RuntimeEngine
from runtime.loop import build_store


def _app_config(state_file: str = "") -> AppConfig:
    return AppConfig(
        timer=TimerSettings(focus_duration_seconds=900, break_duration_seconds=180, heartbeat_interval_seconds=5.0),
        storage=StorageSettings(state_file=state_file),
        ui_server=UIServerSettings(enabled=False),
        logging=LoggingSettings(),
        source_file="config.toml",
    )


class _RecordingUIServer:
    def __init__(self):
        self.events = []
        self.command_handler = None
        self.started = False
        self.stopped = False

    def set_command_handler(self, handler) -> None:
        self.command_handler = handler

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def publish(self, event_type, **payload) -> None:
        self.events.append((event_type, payload))


class RuntimeEngineTests(unittest.TestCase):
    def test_build_store_selects_backend_from_settings(self) -> None:
        self.assertIsInstance(build_store(_app_config()), InMemoryStore)
        with tempfile.TemporaryDirectory() as temp_dir:
            path = str(Path(temp_dir) / "timer.json")
            store = build_store(_app_config(path))
            self.assertIsInstance(store, JsonFileStore)
            self.assertEqual(Path(path), store.path)

    def test_controller_uses_configured_defaults(self) -> None:
        engine = RuntimeEngine(
            RuntimeBootstrap(
                logger=logging.getLogger("test.runtime"),
                app_config=_app_config(),
                store=InMemoryStore(),
            )
        )

        reply = engine.dispatcher.handle_command({"command": "start"})

        self.assertTrue(reply["accepted"])
        self.assertEqual(900, reply["state"]["focus_duration_seconds"])
        self.assertEqual(180, reply["state"]["break_duration_seconds"])
        engine.controller.cancel()

    def test_run_wires_server_and_shuts_down_on_stop_request(self) -> None:
        ui_server = _RecordingUIServer()
        engine = RuntimeEngine(
            RuntimeBootstrap(
                logger=logging.getLogger("test.runtime"),
                app_config=_app_config(),
                ui_server=ui_server,
                store=InMemoryStore(),
            )
        )
        engine.request_stop()

        exit_code = engine.run()

        self.assertEqual(0, exit_code)
        self.assertTrue(ui_server.started)
        self.assertTrue(ui_server.stopped)
        self.assertEqual(engine.dispatcher.handle_command, ui_server.command_handler)
        self.assertIn("timer_state", [event_type for event_type, _ in ui_server.events])


if __name__ == "__main__":
    unittest.main()
