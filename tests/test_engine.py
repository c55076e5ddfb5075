"""Tests for the countdown engine and its state.

Covers: cactus.core.engine, cactus.core.timer_state
"""

import os
import tempfile
import unittest
from unittest.mock import Mock

os.environ.setdefault("CACTUS_HOME", tempfile.mkdtemp(prefix="cactus-test-"))


class FakeClock:
    """Wall clock in seconds that only moves when told to."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeScheduler:
    """Records one-shot callbacks instead of running them on a real timer."""

    def __init__(self):
        self.calls = []

    def __call__(self, delay_ms, callback):
        self.calls.append((delay_ms, callback))

    def run_all(self):
        calls, self.calls = self.calls, []
        for _, callback in calls:
            callback()


def make_engine(work=25, brk=5, volume=100, start=0.0):
    from cactus.core.engine import TimerEngine
    from cactus.core.timer_state import TimerState

    settings = {"durations": {"work_minutes": work, "break_minutes": brk}, "sound_volume": volume}
    clock = FakeClock(start)
    scheduler = FakeScheduler()
    sound = Mock()
    flush = Mock()
    engine = TimerEngine(TimerState(), lambda: settings, clock=clock, schedule=scheduler,
                         play_sound=sound, flush=flush)
    engine.on_change = Mock()
    engine.on_end = Mock()
    return engine, clock, scheduler, sound, flush


def run_ticks(engine, clock, seconds):
    for _ in range(seconds):
        clock.advance(1)
        engine.tick()


# ──────────────────────────────────────────────────────────────────────────
# Engine operations
# ──────────────────────────────────────────────────────────────────────────

class TestTimerEngineOperations(unittest.TestCase):

    def assertAnchored(self, engine):
        """running is true exactly when there is an end timestamp."""
        self.assertEqual(engine.state.running, engine.state.end_ts != 0)

    def test_start_work_sets_full_duration(self):
        engine, *_ = make_engine(work=25)
        engine.start(False)
        self.assertEqual(engine.compute_remaining(), 25 * 60)
        self.assertEqual(engine.state.initial_seconds, 25 * 60)
        self.assertTrue(engine.state.running)
        self.assertFalse(engine.state.is_break)
        self.assertIsNone(engine.state.last_ended)
        self.assertAnchored(engine)
        engine.on_change.assert_called_once()

    def test_start_break_uses_break_duration(self):
        engine, *_ = make_engine(brk=5)
        engine.start(True)
        self.assertEqual(engine.compute_remaining(), 300)
        self.assertTrue(engine.state.is_break)

    def test_start_with_fractional_minutes(self):
        engine, *_ = make_engine(work=0.5)
        engine.start(False)
        self.assertEqual(engine.compute_remaining(), 30)

    def test_start_interrupts_running_timer(self):
        engine, clock, *_ = make_engine(work=25, brk=5)
        engine.start(False)
        clock.advance(100)
        engine.start(True)
        self.assertEqual(engine.compute_remaining(), 300)
        self.assertEqual(engine.state.initial_seconds, 300)

    def test_start_clears_last_ended(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        run_ticks(engine, clock, 60)
        self.assertIsNotNone(engine.state.last_ended)
        engine.start(False)
        self.assertIsNone(engine.state.last_ended)

    def test_compute_remaining_reads_wall_clock_not_cache(self):
        """No tick in between, the answer still follows the clock."""
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(42)
        self.assertEqual(engine.compute_remaining(), 1500 - 42)
        self.assertEqual(engine.state.remaining_seconds, 1500)

    def test_compute_remaining_floors_partial_seconds(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(0.3)
        self.assertEqual(engine.compute_remaining(), 1499)

    def test_compute_remaining_never_negative(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        clock.advance(500)
        self.assertEqual(engine.compute_remaining(), 0)

    def test_stop_keeps_remaining_seconds(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        run_ticks(engine, clock, 10)
        engine.stop()
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.end_ts, 0)
        self.assertEqual(engine.state.remaining_seconds, 1490)
        self.assertAnchored(engine)

    def test_pause_snapshots_remaining(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(10.4)
        engine.pause()
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.end_ts, 0)
        self.assertEqual(engine.state.remaining_seconds, 1489)
        self.assertEqual(engine.state.initial_seconds, 1500)
        self.assertAnchored(engine)

    def test_paused_timer_does_not_count_down(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        engine.pause()
        run_ticks(engine, clock, 30)
        self.assertEqual(engine.compute_remaining(), 1500)

    def test_pause_then_resume_keeps_remaining_and_initial(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(10.4)
        before = engine.compute_remaining()
        engine.pause()
        engine.resume()
        self.assertTrue(engine.state.running)
        self.assertLessEqual(abs(engine.compute_remaining() - before), 1)
        self.assertEqual(engine.state.initial_seconds, 1500)
        self.assertAnchored(engine)

    def test_pause_while_not_running_is_noop(self):
        engine, *_ = make_engine()
        engine.pause()
        self.assertFalse(engine.state.running)
        engine.on_change.assert_not_called()

    def test_resume_with_nothing_left_is_noop(self):
        engine, *_ = make_engine()
        engine.resume()
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.end_ts, 0)
        engine.on_change.assert_not_called()

    def test_resume_while_running_is_noop(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        end_ts = engine.state.end_ts
        engine.on_change.reset_mock()
        clock.advance(5)
        engine.resume()
        self.assertEqual(engine.state.end_ts, end_ts)
        engine.on_change.assert_not_called()

    def test_resume_sets_initial_when_unset(self):
        engine, *_ = make_engine()
        engine.state.remaining_seconds = 90
        engine.resume()
        self.assertTrue(engine.state.running)
        self.assertEqual(engine.state.initial_seconds, 90)
        self.assertEqual(engine.compute_remaining(), 90)

    def test_resume_after_stop(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        run_ticks(engine, clock, 100)
        engine.stop()
        engine.resume()
        self.assertTrue(engine.state.running)
        self.assertEqual(engine.compute_remaining(), 1400)

    def test_extend_while_running_moves_anchor(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(100)
        before = engine.compute_remaining()
        engine.extend(60)
        self.assertTrue(engine.state.running)
        self.assertEqual(engine.compute_remaining(), before + 60)
        self.assertEqual(engine.state.remaining_seconds, before + 60)
        self.assertEqual(engine.state.initial_seconds, 1500)

    def test_extend_negative_while_running(self):
        engine, *_ = make_engine(work=25)
        engine.start(False)
        engine.extend(-600)
        self.assertEqual(engine.compute_remaining(), 900)
        self.assertTrue(engine.state.running)

    def test_extend_negative_past_zero_ends_on_next_tick(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        engine.extend(-120)
        self.assertEqual(engine.compute_remaining(), 0)
        clock.advance(1)
        engine.tick()
        self.assertFalse(engine.state.running)
        self.assertIsNotNone(engine.state.last_ended)
        engine.on_end.assert_called_once()

    def test_extend_while_paused_stays_paused(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        engine.pause()
        engine.extend(60)
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.remaining_seconds, 1560)
        self.assertEqual(engine.state.end_ts, 0)

    def test_extend_idle_timer_does_not_start_it(self):
        engine, *_ = make_engine()
        engine.extend(120)
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.compute_remaining(), 120)
        self.assertAnchored(engine)

    def test_extend_ended_timer_revives_it(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        run_ticks(engine, clock, 60)
        self.assertIsNotNone(engine.state.last_ended)
        self.assertEqual(engine.compute_remaining(), 0)

        engine.extend(30)
        self.assertTrue(engine.state.running)
        self.assertEqual(engine.compute_remaining(), 30)
        self.assertIsNone(engine.state.last_ended)
        self.assertAnchored(engine)

    def test_extend_ended_timer_by_negative_stays_ended(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        run_ticks(engine, clock, 60)
        engine.extend(-30)
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.remaining_seconds, 0)
        self.assertIsNotNone(engine.state.last_ended)

    def test_extend_truncates_to_whole_seconds(self):
        engine, *_ = make_engine()
        engine.extend(10.9)
        self.assertEqual(engine.state.remaining_seconds, 10)

    def test_break_pause_then_overshooting_extend_clamps(self):
        """Break of 5 min, paused at 60 s, then -300 s: clamps at zero and stays paused."""
        engine, clock, *_ = make_engine(brk=5)
        engine.start(True)
        run_ticks(engine, clock, 60)
        engine.pause()
        self.assertEqual(engine.state.remaining_seconds, 240)

        engine.extend(-300)
        self.assertEqual(engine.state.remaining_seconds, 0)
        self.assertFalse(engine.state.running)
        self.assertIsNone(engine.state.last_ended)
        self.assertIn(engine.state.phase, ("paused", "idle"))


# ──────────────────────────────────────────────────────────────────────────
# Ticking and natural end
# ──────────────────────────────────────────────────────────────────────────

class TestTimerEngineTick(unittest.TestCase):

    def test_tick_refreshes_cache_and_notifies(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        engine.on_change.reset_mock()
        clock.advance(1)
        engine.tick()
        self.assertEqual(engine.state.remaining_seconds, 1499)
        engine.on_change.assert_called_once()

    def test_tick_without_change_does_not_notify(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        engine.on_change.reset_mock()
        engine.tick()
        engine.on_change.assert_not_called()

    def test_tick_while_idle_does_nothing(self):
        engine, clock, *_ = make_engine()
        run_ticks(engine, clock, 5)
        engine.on_change.assert_not_called()
        engine.on_end.assert_not_called()

    def test_work_run_ends_after_full_duration(self):
        engine, clock, scheduler, sound, flush = make_engine(work=25)
        engine.start(False)
        self.assertEqual(engine.compute_remaining(), 1500)

        run_ticks(engine, clock, 1499)
        self.assertTrue(engine.state.running)
        self.assertEqual(engine.compute_remaining(), 1)

        run_ticks(engine, clock, 1)
        st = engine.state
        self.assertFalse(st.running)
        self.assertEqual(st.end_ts, 0)
        self.assertEqual(st.remaining_seconds, 0)
        self.assertIsNotNone(st.last_ended)
        self.assertFalse(st.last_ended.is_break)
        self.assertEqual(st.last_ended.ended_at, 1_500_000)
        self.assertEqual(st.phase, "ended")
        engine.on_end.assert_called_once()

    def test_break_end_records_break_mode(self):
        engine, clock, *_ = make_engine(brk=5)
        engine.start(True)
        run_ticks(engine, clock, 300)
        self.assertTrue(engine.state.last_ended.is_break)

    def test_end_schedules_flush_after_250ms(self):
        engine, clock, scheduler, sound, flush = make_engine(work=1)
        engine.start(False)
        run_ticks(engine, clock, 60)
        self.assertEqual(len(scheduler.calls), 1)
        delay, _ = scheduler.calls[0]
        self.assertEqual(delay, 250)
        flush.assert_not_called()
        scheduler.run_all()
        flush.assert_called_once()

    def test_end_flushes_immediately_without_scheduler(self):
        from cactus.core.engine import TimerEngine
        from cactus.core.timer_state import TimerState
        clock = FakeClock()
        flush = Mock()
        settings = {"durations": {"work_minutes": 1, "break_minutes": 1}}
        engine = TimerEngine(TimerState(), lambda: settings, clock=clock, flush=flush)
        engine.start(False)
        run_ticks(engine, clock, 60)
        flush.assert_called_once()

    def test_end_plays_sound_with_scaled_volume(self):
        engine, clock, scheduler, sound, flush = make_engine(work=1, volume=40)
        engine.start(False)
        run_ticks(engine, clock, 60)
        sound.assert_called_once()
        self.assertAlmostEqual(sound.call_args[0][0], 0.4)

    def test_end_fires_only_once(self):
        engine, clock, *_ = make_engine(work=1)
        engine.start(False)
        run_ticks(engine, clock, 120)
        engine.on_end.assert_called_once()

    def test_missed_ticks_do_not_drift(self):
        """A long gap between ticks (system sleep) is caught up in one tick."""
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        run_ticks(engine, clock, 10)
        clock.advance(600)
        engine.tick()
        self.assertEqual(engine.state.remaining_seconds, 1500 - 610)

    def test_sleep_past_end_ends_on_wake(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        clock.advance(3600)
        engine.tick()
        self.assertFalse(engine.state.running)
        self.assertEqual(engine.state.last_ended.ended_at, 3_600_000)

    def test_tick_swallows_subscriber_errors(self):
        engine, clock, *_ = make_engine(work=25)
        engine.start(False)
        engine.on_change = Mock(side_effect=RuntimeError("ui went away"))
        clock.advance(1)
        with self.assertLogs("cactus", level="ERROR"):
            engine.tick()
        # And keeps going afterwards
        clock.advance(1)
        with self.assertLogs("cactus", level="ERROR"):
            engine.tick()
        self.assertEqual(engine.state.remaining_seconds, 1498)

    def test_failing_end_subscriber_still_sounds_and_flushes(self):
        engine, clock, scheduler, sound, flush = make_engine(work=1)
        engine.start(False)
        engine.on_end = Mock(side_effect=RuntimeError("window went away"))
        engine.on_change.reset_mock()
        with self.assertLogs("cactus", level="ERROR"):
            run_ticks(engine, clock, 60)
        self.assertFalse(engine.state.running)
        self.assertIsNotNone(engine.state.last_ended)
        sound.assert_called_once_with(1.0)
        self.assertEqual([delay for delay, _ in scheduler.calls], [250])
        scheduler.run_all()
        flush.assert_called_once()
        # The final change still goes out so the tray redraws
        engine.on_change.assert_called()
        self.assertEqual(engine.compute_remaining(), 0)

    def test_progress_fraction(self):
        engine, clock, *_ = make_engine(work=10)
        self.assertEqual(engine.progress_fraction(), 0.0)
        engine.start(False)
        self.assertEqual(engine.progress_fraction(), 0.0)
        clock.advance(300)
        self.assertAlmostEqual(engine.progress_fraction(), 0.5)
        engine.pause()
        self.assertAlmostEqual(engine.progress_fraction(), 0.5)

    def test_progress_fraction_without_run_length_is_zero(self):
        engine, *_ = make_engine(work=10)
        engine.state.remaining_seconds = 150
        self.assertEqual(engine.progress_fraction(), 0.0)


# ──────────────────────────────────────────────────────────────────────────
# timer_state.py
# ──────────────────────────────────────────────────────────────────────────

class TestTimerState(unittest.TestCase):

    def test_defaults(self):
        from cactus.core.timer_state import TimerState
        st = TimerState()
        self.assertFalse(st.running)
        self.assertEqual(st.remaining_seconds, 0)
        self.assertEqual(st.end_ts, 0)
        self.assertIsNone(st.last_ended)
        self.assertEqual(st.phase, "idle")

    def test_to_dict_layout(self):
        from cactus.core.timer_state import LastEnded, TimerState
        st = TimerState(remaining_seconds=5, initial_seconds=60, last_ended=LastEnded(True, 123))
        data = st.to_dict()
        self.assertEqual(data["timer"]["remaining_seconds"], 5)
        self.assertNotIn("last_ended", data["timer"])
        self.assertEqual(data["last_ended"], {"is_break": True, "ended_at": 123})

    def test_from_dict_restores_running_timer(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({
            "timer": {"running": True, "is_break": True, "remaining_seconds": 100,
                      "end_ts": 5_000_000, "initial_seconds": 300},
            "last_ended": None,
        })
        self.assertTrue(st.running)
        self.assertTrue(st.is_break)
        self.assertEqual(st.end_ts, 5_000_000)
        self.assertEqual(st.phase, "running")

    def test_from_dict_repairs_running_without_anchor(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({"timer": {"running": True, "end_ts": 0, "remaining_seconds": 50}})
        self.assertFalse(st.running)
        self.assertEqual(st.end_ts, 0)
        self.assertEqual(st.phase, "paused")

    def test_from_dict_drops_stray_anchor(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({"timer": {"running": False, "end_ts": 999}})
        self.assertEqual(st.end_ts, 0)

    def test_from_dict_ignores_malformed_last_ended(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({"timer": {}, "last_ended": {"is_break": True}})
        self.assertIsNone(st.last_ended)

    def test_from_dict_only_accepts_real_booleans(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({
            "timer": {"running": "false", "is_break": "true", "end_ts": 5_000_000, "remaining_seconds": 40},
            "last_ended": {"is_break": 1, "ended_at": 10},
        })
        self.assertFalse(st.running)
        self.assertFalse(st.is_break)
        self.assertEqual(st.end_ts, 0)
        self.assertFalse(st.last_ended.is_break)
        self.assertEqual(st.phase, "ended")

    def test_from_dict_clamps_negative_remaining(self):
        from cactus.core.timer_state import TimerState
        st = TimerState.from_dict({"timer": {"remaining_seconds": -20}})
        self.assertEqual(st.remaining_seconds, 0)


if __name__ == "__main__":
    unittest.main()
