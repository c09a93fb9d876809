import unittest

from phase_timer import IDLE_STATE, StateDecodeError, TimerConfig, TimerState, ValidationError


class TimerConfigTests(unittest.TestCase):
    def test_validated_rounds_fractional_seconds(self) -> None:
        config = TimerConfig.validated(90.4, 30.6)

        self.assertEqual(90, config.focus_duration_seconds)
        self.assertEqual(31, config.break_duration_seconds)

    def test_validated_rejects_non_numeric_and_sub_second_values(self) -> None:
        for value in (0, 0.5, -1, float("nan"), float("inf"), "60", None, False, [60]):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    TimerConfig.validated(value, 60)

    def test_from_record_wraps_validation_failures(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerConfig.from_record({"focus_duration_seconds": 0, "break_duration_seconds": 60})
        with self.assertRaises(StateDecodeError):
            TimerConfig.from_record(["not", "a", "mapping"])

    def test_record_shape(self) -> None:
        record = TimerConfig(focus_duration_seconds=120, break_duration_seconds=30).to_record()

        self.assertEqual({"focus_duration_seconds": 120, "break_duration_seconds": 30}, record)
        self.assertEqual(120, TimerConfig.from_record(record).focus_duration_seconds)


class TimerStateTests(unittest.TestCase):
    def test_running_phase_requires_end_timestamp_only(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerState(phase="running_focus")
        with self.assertRaises(StateDecodeError):
            TimerState(phase="running_break", end_timestamp=10.0, remaining_seconds=5)

    def test_paused_phase_requires_positive_remaining_only(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerState(phase="paused_focus")
        with self.assertRaises(StateDecodeError):
            TimerState(phase="paused_break", remaining_seconds=0)
        with self.assertRaises(StateDecodeError):
            TimerState(phase="paused_focus", end_timestamp=10.0, remaining_seconds=5)

    def test_idle_and_waiting_carry_no_timing_fields(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerState(phase="idle", end_timestamp=10.0)
        with self.assertRaises(StateDecodeError):
            TimerState(phase="waiting_confirm", remaining_seconds=3)

    def test_unknown_phase_is_rejected(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerState.from_record({"phase": "snoozing"})

    def test_from_record_defaults_missing_phase_to_idle(self) -> None:
        self.assertEqual(IDLE_STATE, TimerState.from_record({}))

    def test_from_record_rejects_non_numeric_timestamps(self) -> None:
        with self.assertRaises(StateDecodeError):
            TimerState.from_record({"phase": "running_focus", "end_timestamp": "soon"})
        with self.assertRaises(StateDecodeError):
            TimerState.from_record({"phase": "running_focus", "end_timestamp": True})

    def test_is_due_only_for_running_phases_at_or_after_end(self) -> None:
        running = TimerState(phase="running_focus", end_timestamp=100.0)

        self.assertFalse(running.is_due(99.9))
        self.assertTrue(running.is_due(100.0))
        self.assertTrue(running.is_due(5000.0))
        self.assertFalse(TimerState(phase="paused_focus", remaining_seconds=5).is_due(5000.0))
        self.assertFalse(IDLE_STATE.is_due(5000.0))

    def test_remaining_at_per_phase(self) -> None:
        self.assertEqual(3, TimerState(phase="running_break", end_timestamp=100.0).remaining_at(97.5))
        self.assertEqual(0, TimerState(phase="running_break", end_timestamp=100.0).remaining_at(130.0))
        self.assertEqual(42, TimerState(phase="paused_break", remaining_seconds=42).remaining_at(0.0))
        self.assertEqual(0, TimerState(phase="waiting_confirm").remaining_at(0.0))
        self.assertIsNone(IDLE_STATE.remaining_at(0.0))

    def test_record_keeps_every_field(self) -> None:
        state = TimerState(phase="paused_focus", remaining_seconds=17)

        self.assertEqual(
            {"phase": "paused_focus", "end_timestamp": None, "remaining_seconds": 17},
            state.to_record(),
        )
        self.assertEqual(state, TimerState.from_record(state.to_record()))


if __name__ == "__main__":
    unittest.main()
