import logging
import threading
import unittest

from host.scheduler import ThreadedWakeupScheduler
from phase_timer.errors import CollaboratorFailure


class _FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class WakeupSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.fired: list[str] = []
        self.scheduler = ThreadedWakeupScheduler(
            self.fired.append,
            clock=self.clock,
            logger=logging.getLogger("test.scheduler"),
        )

    def test_one_shot_fires_once_when_due(self) -> None:
        self.scheduler.schedule_at("phase_end", 1060.0)

        self.clock.now = 1059.9
        self.assertEqual([], self.scheduler.run_due())
        self.clock.now = 1060.0
        self.assertEqual(["phase_end"], self.scheduler.run_due())
        self.clock.now = 2000.0
        self.assertEqual([], self.scheduler.run_due())
        self.assertEqual(["phase_end"], self.fired)

    def test_rescheduling_replaces_previous_due_time(self) -> None:
        self.scheduler.schedule_at("phase_end", 1010.0)
        self.scheduler.schedule_at("phase_end", 1100.0)

        self.assertEqual({"phase_end": 1100.0}, self.scheduler.pending())

    def test_cancel_removes_entry(self) -> None:
        self.scheduler.schedule_at("phase_end", 1010.0)
        self.scheduler.cancel("phase_end")
        self.scheduler.cancel("phase_end")

        self.clock.now = 1100.0
        self.assertEqual([], self.scheduler.run_due())

    def test_periodic_entry_collapses_missed_beats(self) -> None:
        self.scheduler.schedule_every("heartbeat", 60.0)

        self.clock.now = 1000.0 + 60.0 * 5 + 1
        self.assertEqual(["heartbeat"], self.scheduler.run_due())
        self.assertEqual({"heartbeat": 1000.0 + 60.0 * 6}, self.scheduler.pending())

    def test_identical_periodic_entry_keeps_its_phase(self) -> None:
        self.scheduler.schedule_every("heartbeat", 60.0)
        self.clock.now = 1030.0
        self.scheduler.schedule_every("heartbeat", 60.0)

        self.assertEqual({"heartbeat": 1060.0}, self.scheduler.pending())

        self.scheduler.schedule_every("heartbeat", 30.0)
        self.assertEqual({"heartbeat": 1060.0}, self.scheduler.pending())

    def test_non_positive_interval_is_rejected(self) -> None:
        with self.assertRaises(CollaboratorFailure):
            self.scheduler.schedule_every("heartbeat", 0)

    def test_due_entries_fire_in_due_order(self) -> None:
        self.scheduler.schedule_at("b", 1020.0)
        self.scheduler.schedule_at("a", 1010.0)

        self.clock.now = 1030.0
        self.assertEqual(["a", "b"], self.scheduler.run_due())

    def test_handler_failure_is_logged_and_does_not_block_other_ids(self) -> None:
        def handler(wakeup_id: str) -> None:
            if wakeup_id == "a":
                raise RuntimeError("boom")
            self.fired.append(wakeup_id)

        self.scheduler.set_handler(handler)
        self.scheduler.schedule_at("a", 1001.0)
        self.scheduler.schedule_at("b", 1002.0)
        self.clock.now = 1005.0

        with self.assertLogs("test.scheduler", level="ERROR"):
            self.scheduler.run_due()

        self.assertEqual(["b"], self.fired)

    def test_scheduling_after_stop_raises(self) -> None:
        self.scheduler.stop()

        with self.assertRaises(CollaboratorFailure):
            self.scheduler.schedule_at("phase_end", 1010.0)
        with self.assertRaises(CollaboratorFailure):
            self.scheduler.schedule_every("heartbeat", 60.0)

    def test_worker_thread_fires_due_entries(self) -> None:
        fired = threading.Event()
        scheduler = ThreadedWakeupScheduler(
            lambda wakeup_id: fired.set(),
            max_wait_seconds=0.05,
        )
        scheduler.start()
        try:
            self.assertTrue(scheduler.is_running)
            scheduler.schedule_at("phase_end", 0.0)
            self.assertTrue(fired.wait(timeout=2.0))
        finally:
            scheduler.stop()

        self.assertFalse(scheduler.is_running)

    def test_max_wait_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            ThreadedWakeupScheduler(max_wait_seconds=0)


if __name__ == "__main__":
    unittest.main()
