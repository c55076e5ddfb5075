import time
from typing import Callable
from cactus.common.logger import log
from cactus.core.glyph import progress_fraction
from cactus.core.timer_state import LastEnded, TimerState

# How long after a natural end the state gets flushed to disk.
END_FLUSH_DELAY_MS = 250

# Runs the countdown for a single TimerState. Everything is anchored to an absolute end timestamp (epoch ms), so a
# late or skipped tick (laptop asleep, busy event loop) never makes the countdown drift, the next tick simply
# recomputes from the wall clock.
#
# The engine knows nothing about Qt. The host hands it a clock, a way to schedule one-shot callbacks, and the
# side-effect hooks, and drives tick() once a second.
class TimerEngine:

    def __init__(self,
                 state: TimerState,
                 get_settings: Callable[[], dict],
                 clock: Callable[[], float] = time.time,
                 schedule: Callable[[int, Callable[[], None]], None] | None = None,
                 play_sound: Callable[[float], None] | None = None,
                 flush: Callable[[], None] | None = None):
        self.state = state
        self._get_settings = get_settings
        self._clock = clock
        self._schedule = schedule
        self._play_sound = play_sound
        self._flush = flush

        # Subscribers, at most one each
        self.on_change: Callable[[], None] | None = None
        self.on_end: Callable[[], None] | None = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _duration_seconds(self, is_break: bool) -> int:
        durations = self._get_settings().get("durations", {})
        minutes = durations.get("break_minutes" if is_break else "work_minutes", 0)
        return max(0, int(minutes * 60))

    def _changed(self):
        if self.on_change is not None:
            self.on_change()

    #region === Reading ===

    # The only value anything should display. While running, remaining_seconds is a stale cache.
    def compute_remaining(self) -> int:
        if not self.state.running:
            return max(0, self.state.remaining_seconds)
        return max(0, (self.state.end_ts - self._now_ms()) // 1000)

    # Share of the current run that has elapsed, 0..1. No recorded run length means no progress.
    def progress_fraction(self) -> float:
        return progress_fraction(self.compute_remaining(), self.state.initial_seconds)

    #endregion === Reading ===

    #region === Operations ===

    def start(self, is_break: bool):
        seconds = self._duration_seconds(is_break)
        st = self.state
        st.is_break = bool(is_break)
        st.remaining_seconds = seconds
        st.initial_seconds = seconds
        st.end_ts = self._now_ms() + seconds * 1000
        st.running = True
        st.last_ended = None
        log.debug(f"Started {'break' if is_break else 'work'} timer for {seconds}s, ends at {st.end_ts}")
        self._changed()

    # Stops without touching remaining_seconds, so a stopped timer can't be told apart from a paused one except by
    # what the UI offers next.
    def stop(self):
        self.state.running = False
        self.state.end_ts = 0
        log.debug(f"Stopped timer with {self.state.remaining_seconds}s cached")
        self._changed()

    def pause(self):
        if not self.state.running:
            return
        self.state.remaining_seconds = self.compute_remaining()
        self.state.running = False
        self.state.end_ts = 0
        log.debug(f"Paused timer at {self.state.remaining_seconds}s")
        self._changed()

    def resume(self):
        if self.state.running or self.state.remaining_seconds <= 0:
            return
        self._run_from_remaining()
        log.debug(f"Resumed timer with {self.state.remaining_seconds}s left")
        self._changed()

    # Adds (or with a negative delta, removes) time. A running timer moves its end anchor. A stopped one changes
    # its remaining time, and if it had ended on its own, comes back to life.
    def extend(self, delta_seconds):
        delta = int(delta_seconds)
        st = self.state
        if st.running:
            st.end_ts += delta * 1000
            st.remaining_seconds = self.compute_remaining()
        else:
            st.remaining_seconds = max(0, st.remaining_seconds + delta)
            if st.remaining_seconds > 0 and st.last_ended is not None:
                self._run_from_remaining()
            else:
                st.end_ts = 0
        log.debug(f"Extended timer by {delta}s, now {self.compute_remaining()}s left (running={st.running})")
        self._changed()

    def _run_from_remaining(self):
        st = self.state
        st.end_ts = self._now_ms() + st.remaining_seconds * 1000
        st.running = True
        st.last_ended = None
        if not st.initial_seconds:
            st.initial_seconds = st.remaining_seconds

    #endregion === Operations ===

    #region === Tick ===

    # Called by the periodic driver once a second. Never raises: an exception escaping here would kill the driver
    # and freeze the countdown for the rest of the session.
    def tick(self):
        try:
            self._tick()
        except Exception:
            log.exception("Timer tick failed, countdown continues on next tick")

    def _tick(self):
        st = self.state
        if not st.running:
            return
        previous = st.remaining_seconds
        remaining = self.compute_remaining()
        st.remaining_seconds = remaining
        if remaining <= 0:
            self._end()
        if remaining != previous:
            self._changed()

    def _end(self):
        st = self.state
        st.running = False
        st.end_ts = 0
        st.last_ended = LastEnded(is_break=st.is_break, ended_at=self._now_ms())
        log.info(f"{'Break' if st.is_break else 'Work'} timer ended")

        # A failing subscriber must not cost the sound or the flush
        if self.on_end is not None:
            try:
                self.on_end()
            except Exception:
                log.exception("Timer end subscriber failed")
        self._end_sound()
        if self._flush is not None:
            if self._schedule is not None:
                self._schedule(END_FLUSH_DELAY_MS, self._flush)
            else:
                self._flush()

    def _end_sound(self):
        if self._play_sound is None:
            return
        volume = self._get_settings().get("sound_volume", 100)
        try:
            volume = max(0.0, min(1.0, float(volume) / 100))
        except (TypeError, ValueError):
            volume = 1.0
        self._play_sound(volume)

    #endregion === Tick ===
