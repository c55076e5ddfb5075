import sys
from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import QApplication
from cactus.common.logger import log
from cactus.core.controller import CactusController
from cactus.ui.sound import SoundPlayer
from cactus.ui.theme import glyph_color
from cactus.ui.tray import TrayManager
from cactus.ui.window import TimerWindow

TICK_INTERVAL_MS = 1000
AUTOSAVE_INTERVAL_MS = 2 * 60 * 1000


# Wires the controller to its Qt hosts: the 1 s tick driver, the autosave timer, the tray icon, the window, and
# the sound player. Everything runs on the Qt event loop thread, so no locking is needed around the timer state.
class CactusApp(QObject):

    def __init__(self, app: QApplication):
        super().__init__()
        self._app = app
        self.sound = SoundPlayer(self)
        self.controller = CactusController(
            schedule=lambda ms, callback: QTimer.singleShot(ms, callback),
            play_sound=self.sound.play_end_sound,
        )

        self.tray = TrayManager(self._toggle_window, self)
        self.window = TimerWindow(self.controller, tray_geometry=self.tray.geometry)
        self.controller.notify = self.window.on_notify
        self.controller.on_render = self._render_tray

        # -- Tick timer (1 s) --
        self._tick_timer = QTimer(self)
        self._tick_timer.timeout.connect(self.controller.engine.tick)

        # -- Autosave (2 min) --
        self._autosave_timer = QTimer(self)
        self._autosave_timer.timeout.connect(self.controller.save)

        app.aboutToQuit.connect(self.shutdown)

    def _toggle_window(self):
        self.window.toggle()

    def _render_tray(self, remaining_seconds, fraction):
        self.tray.update(remaining_seconds, fraction, glyph_color(self.controller.settings.get("theme")))

    def start(self):
        self.tray.show()
        self.controller.refresh()
        self._tick_timer.start(TICK_INTERVAL_MS)
        self._autosave_timer.start(AUTOSAVE_INTERVAL_MS)
        log.info("Cactus started")

    def shutdown(self):
        self._autosave_timer.stop()
        self._tick_timer.stop()
        self.controller.shutdown()
        self.tray.hide()


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Cactus")
    # Lives in the tray, closing the window must not end the process
    app.setQuitOnLastWindowClosed(False)
    cactus = CactusApp(app)
    cactus.start()
    sys.exit(app.exec())
