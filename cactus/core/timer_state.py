"""Countdown state: plain data, no clock access, no UI."""

from dataclasses import dataclass, field, asdict


@dataclass
class LastEnded:
    """Set when a countdown reaches zero on its own."""
    is_break: bool
    ended_at: int  # epoch milliseconds

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict):
            return None
        try:
            return LastEnded(is_break=data.get("is_break") is True, ended_at=int(data["ended_at"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass
class TimerState:
    """The single countdown the app owns.

    While running, ``end_ts`` (epoch milliseconds) is the source of truth and
    ``remaining_seconds`` is only a cache refreshed by each tick.  While paused
    or stopped, ``remaining_seconds`` is authoritative and ``end_ts`` is 0.
    ``initial_seconds`` is the length of the current run, kept across pauses
    so the progress glyph does not jump.
    """
    running: bool = False
    is_break: bool = False
    remaining_seconds: int = 0
    end_ts: int = 0
    initial_seconds: int = 0
    last_ended: LastEnded | None = field(default=None)

    @property
    def phase(self):
        if self.running:
            return "running"
        if self.last_ended is not None:
            return "ended"
        if self.remaining_seconds > 0:
            return "paused"
        return "idle"

    # The persisted document keeps last_ended next to the timer, not inside it.
    def timer_dict(self):
        data = asdict(self)
        data.pop("last_ended")
        return data

    def to_dict(self):
        return {
            "timer": self.timer_dict(),
            "last_ended": asdict(self.last_ended) if self.last_ended else None,
        }

    @staticmethod
    def from_dict(state):
        timer = state.get("timer", {}) if isinstance(state, dict) else {}
        # Flags only count when they are real JSON booleans, a hand-edited "false" is not truthy here
        ts = TimerState(
            running=timer.get("running") is True,
            is_break=timer.get("is_break") is True,
            remaining_seconds=max(0, int(timer.get("remaining_seconds", 0) or 0)),
            end_ts=max(0, int(timer.get("end_ts", 0) or 0)),
            initial_seconds=max(0, int(timer.get("initial_seconds", 0) or 0)),
            last_ended=LastEnded.from_dict(state.get("last_ended")) if isinstance(state, dict) else None,
        )
        # running and end_ts only make sense together
        if ts.running != (ts.end_ts != 0):
            ts.running = False
            ts.end_ts = 0
        return ts
