import logging
import unittest

from host.store import InMemoryStore
from phase_timer import PhaseController, TimerConfig
from runtime.commands import (
    REASON_UNSUPPORTED_COMMAND,
    REASON_UNSUPPORTED_NOTIFICATION_ACTION,
    RuntimeCommandDispatcher,
    parse_duration_seconds,
)

T0 = 1_700_000_000.0


class _FakeClock:
    def __init__(self):
        self.now = T0

    def __call__(self) -> float:
        return self.now


class _NullScheduler:
    def schedule_at(self, wakeup_id: str, when: float) -> None:
        return None

    def schedule_every(self, wakeup_id: str, interval_seconds: float) -> None:
        return None

    def cancel(self, wakeup_id: str) -> None:
        return None


class ParseDurationSecondsTests(unittest.TestCase):
    def test_seconds_take_precedence_over_minutes(self) -> None:
        value = parse_duration_seconds(
            {"focus_duration_seconds": "90", "focus_minutes": 5},
            seconds_key="focus_duration_seconds",
            minutes_key="focus_minutes",
        )
        self.assertEqual(90.0, value)

    def test_minutes_are_converted_to_whole_seconds(self) -> None:
        value = parse_duration_seconds(
            {"break_minutes": 2.5},
            seconds_key="break_duration_seconds",
            minutes_key="break_minutes",
        )
        self.assertEqual(150, value)

    def test_unparsable_and_missing_values(self) -> None:
        self.assertEqual(
            "soon",
            parse_duration_seconds(
                {"focus_minutes": "soon"},
                seconds_key="focus_duration_seconds",
                minutes_key="focus_minutes",
            ),
        )
        self.assertIsNone(
            parse_duration_seconds({}, seconds_key="focus_duration_seconds", minutes_key="focus_minutes")
        )


class RuntimeCommandDispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.controller = PhaseController(
            store=InMemoryStore(),
            scheduler=_NullScheduler(),
            clock=self.clock,
            default_config=TimerConfig(focus_duration_seconds=600, break_duration_seconds=120),
            logger=logging.getLogger("test.dispatch.controller"),
        )
        self.dispatcher = RuntimeCommandDispatcher(
            controller=self.controller,
            logger=logging.getLogger("test.dispatch"),
        )

    def test_start_with_minutes(self) -> None:
        reply = self.dispatcher.handle_command({"command": "start", "focus_minutes": 1, "break_minutes": 1})

        self.assertEqual("start", reply["action"])
        self.assertTrue(reply["accepted"])
        self.assertEqual("started", reply["reason"])
        self.assertEqual("running_focus", reply["state"]["phase"])
        self.assertEqual(T0 + 60, reply["state"]["end_timestamp"])
        self.assertEqual("01:00", reply["state"]["countdown"])
        self.assertNotIn("error", reply)

    def test_start_without_durations_uses_stored_config(self) -> None:
        reply = self.dispatcher.handle_command({"command": "start"})

        self.assertTrue(reply["accepted"])
        self.assertEqual(T0 + 600, reply["state"]["end_timestamp"])
        self.assertEqual(120, reply["state"]["break_duration_seconds"])

    def test_invalid_durations_are_reported(self) -> None:
        reply = self.dispatcher.handle_command(
            {"command": "start", "focus_duration_seconds": "abc", "break_duration_seconds": 60}
        )

        self.assertFalse(reply["accepted"])
        self.assertEqual("invalid_durations", reply["reason"])
        self.assertEqual("validation", reply["error"])
        self.assertEqual("Invalid durations.", reply["message"])
        self.assertEqual("idle", reply["state"]["phase"])

    def test_start_with_only_one_duration_is_invalid(self) -> None:
        reply = self.dispatcher.handle_command({"command": "start", "focus_minutes": 10})

        self.assertFalse(reply["accepted"])
        self.assertEqual("invalid_durations", reply["reason"])

    def test_start_break_notification_action_acknowledges(self) -> None:
        self.dispatcher.handle_command({"command": "start", "focus_duration_seconds": 60, "break_duration_seconds": 30})
        self.clock.now += 60

        reply = self.dispatcher.handle_command({"command": "notification_action", "action": "start_break"})

        self.assertEqual("acknowledge", reply["action"])
        self.assertTrue(reply["accepted"])
        self.assertEqual("running_break", reply["state"]["phase"])
        self.assertEqual(T0 + 90, reply["state"]["end_timestamp"])

    def test_notification_action_id_is_case_insensitive(self) -> None:
        self.dispatcher.handle_command({"command": "start", "focus_duration_seconds": 60, "break_duration_seconds": 30})
        self.clock.now += 60

        reply = self.dispatcher.handle_command({"command": "notification_action", "action": " Start_Break "})

        self.assertTrue(reply["accepted"])
        self.assertEqual("running_break", reply["state"]["phase"])

    def test_unknown_notification_action_is_rejected(self) -> None:
        reply = self.dispatcher.handle_command({"command": "notification_action", "action": "snooze"})

        self.assertFalse(reply["accepted"])
        self.assertEqual(REASON_UNSUPPORTED_NOTIFICATION_ACTION, reply["reason"])
        self.assertEqual("idle", reply["state"]["phase"])

    def test_pause_resume_cancel_and_sync(self) -> None:
        self.dispatcher.handle_command({"command": "start", "focus_duration_seconds": 60, "break_duration_seconds": 30})
        self.clock.now += 10

        paused = self.dispatcher.handle_command({"command": "pause"})
        resumed = self.dispatcher.handle_command({"command": "resume"})
        synced = self.dispatcher.handle_command({"command": "sync"})
        cancelled = self.dispatcher.handle_command({"command": "cancel"})

        self.assertEqual("paused_focus", paused["state"]["phase"])
        self.assertTrue(paused["state"]["paused"])
        self.assertEqual("running_focus", resumed["state"]["phase"])
        self.assertEqual("synced", synced["reason"])
        self.assertEqual("idle", cancelled["state"]["phase"])

    def test_rejected_transition_carries_message(self) -> None:
        reply = self.dispatcher.handle_command({"command": "resume"})

        self.assertFalse(reply["accepted"])
        self.assertEqual("nothing_to_resume", reply["reason"])
        self.assertEqual("illegal_transition", reply["error"])
        self.assertEqual("Nothing to resume.", reply["message"])

    def test_configure_updates_defaults_for_next_start(self) -> None:
        configured = self.dispatcher.handle_command(
            {"command": "configure", "focus_minutes": 20, "break_minutes": 4}
        )
        started = self.dispatcher.handle_command({"command": "start"})

        self.assertTrue(configured["accepted"])
        self.assertEqual(1200, configured["state"]["focus_duration_seconds"])
        self.assertEqual(T0 + 1200, started["state"]["end_timestamp"])

    def test_unsupported_command(self) -> None:
        with self.assertLogs("test.dispatch", level="WARNING"):
            reply = self.dispatcher.handle_command({"command": "snooze"})

        self.assertEqual("snooze", reply["action"])
        self.assertFalse(reply["accepted"])
        self.assertEqual(REASON_UNSUPPORTED_COMMAND, reply["reason"])


if __name__ == "__main__":
    unittest.main()
