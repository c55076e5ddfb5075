"""Owns the settings, the timer state and the engine, and is the only way in for the UI.

Every command returns the same public snapshot the notification sink gets,
with remaining_seconds freshly computed rather than read from the cache.
"""

import copy
import time
from typing import Callable
from cactus.common.logger import log
from cactus.core import config
from cactus.core.engine import TimerEngine
from cactus.core.timer_state import TimerState

EVENT_STATE = "state"
EVENT_TIMER_ENDED = "timer-ended"


class CactusController:

    def __init__(self, data=None, clock=time.time, schedule=None, play_sound=None, save=None):
        data = data if data is not None else config.load_data()
        self.settings = data.get("settings") or config.default_settings()
        config.normalize_settings(self.settings)
        try:
            self.timer = TimerState.from_dict(data.get("state", {}))
        except (TypeError, ValueError):
            log.warning("Stored timer state is unreadable, starting from an idle timer.", exc_info=True)
            self.timer = TimerState()

        self._save = save or config.save_data
        self.engine = TimerEngine(self.timer, lambda: self.settings, clock=clock, schedule=schedule,
                                  play_sound=play_sound, flush=self.save)
        self.engine.on_change = self._on_engine_change
        self.engine.on_end = self._on_engine_end

        # Sinks wired by the host
        self.notify: Callable[[str, dict], None] | None = None
        self.on_render: Callable[[int, float], None] | None = None

        self._commands = {
            "get-state": self.get_state,
            "start-work": self.start_work,
            "start-break": self.start_break,
            "stop": self.stop,
            "pause": self.pause,
            "resume": self.resume,
            "extend": self.extend,
            "save-settings": self.save_settings,
        }

    #region === Snapshots and persistence ===

    def document(self):
        return {"settings": self.settings, "state": self.timer.to_dict()}

    def public_state(self):
        state = self.timer.to_dict()
        state["timer"]["remaining_seconds"] = self.engine.compute_remaining()
        return {"settings": copy.deepcopy(self.settings), "state": state}

    def save(self) -> bool:
        return self._save(self.document())

    #endregion === Snapshots and persistence ===

    #region === Sinks ===

    def _emit(self, event):
        if self.notify is not None:
            self.notify(event, self.public_state())

    def refresh(self):
        """Push the current state to the UI and the tray, without changing anything."""
        self._emit(EVENT_STATE)
        if self.on_render is not None:
            self.on_render(self.engine.compute_remaining(), self.engine.progress_fraction())

    def _on_engine_change(self):
        self.refresh()

    def _on_engine_end(self):
        self._emit(EVENT_TIMER_ENDED)

    #endregion === Sinks ===

    #region === Commands ===

    def handle(self, name, *args):
        """Dispatch a command by its wire name, e.g. handle("extend", 60)."""
        try:
            command = self._commands[name]
        except KeyError:
            raise KeyError(f"Unknown command '{name}'") from None
        return command(*args)

    def get_state(self):
        return self.public_state()

    def start_work(self):
        self.engine.start(False)
        self.save()
        return self.public_state()

    def start_break(self):
        self.engine.start(True)
        self.save()
        return self.public_state()

    def stop(self):
        self.engine.stop()
        self.save()
        return self.public_state()

    def pause(self):
        self.engine.pause()
        self.save()
        return self.public_state()

    def resume(self):
        self.engine.resume()
        self.save()
        return self.public_state()

    def extend(self, seconds):
        self.engine.extend(int(seconds))
        self.save()
        return self.public_state()

    def save_settings(self, partial):
        settings = config.merge_settings(self.settings, partial)
        rejected = config.normalize_settings(settings)
        if rejected:
            log.warning(f"Ignored invalid settings values, kept defaults for: {', '.join(sorted(rejected))}")
        self.settings = settings
        log.info(f"Updated settings: {', '.join(sorted((partial or {}).keys()))}")
        self.save()
        self.refresh()
        return self.public_state()

    #endregion === Commands ===

    # Final flush, called once when the host shuts down.
    def shutdown(self):
        log.info("Shutting down, saving final state")
        self.save()
