from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QDesktopServices, QGuiApplication
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from cactus.common.logger import log
from cactus.common.setup import PATHS
from cactus.core.controller import EVENT_TIMER_ENDED, CactusController
from cactus.ui.dialogs.settings import SettingsDialog
from cactus.ui.theme import build_stylesheet
from cactus.util import format_clock

_PHASE_TEXT = {
    "running": "{mode}",
    "paused": "{mode} (paused)",
    "ended": "{mode} finished",
    "idle": "Ready",
}


# Small popup window that sits by the tray icon. Everything it does goes through the controller's commands, and it
# redraws purely from the snapshots the controller pushes to on_notify().
class TimerWindow(QWidget):

    def __init__(self, controller: CactusController, tray_geometry=None):
        super().__init__()
        self.setObjectName("cactusRoot")
        self.setWindowTitle("Cactus")
        self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint | Qt.Tool)
        self._controller = controller
        self._tray_geometry = tray_geometry
        self._theme = None

        lay = QVBoxLayout(self)

        self._phase_lbl = QLabel()
        self._phase_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._phase_lbl)

        self._clock_lbl = QLabel()
        self._clock_lbl.setObjectName("clockLabel")
        self._clock_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._clock_lbl)

        grid = QGridLayout()
        self._work_btn = self._button("Work", controller.start_work)
        self._break_btn = self._button("Break", controller.start_break)
        self._pause_btn = self._button("Pause", self._on_pause_resume)
        self._stop_btn = self._button("Stop", controller.stop)
        grid.addWidget(self._work_btn, 0, 0)
        grid.addWidget(self._break_btn, 0, 1)
        grid.addWidget(self._pause_btn, 1, 0)
        grid.addWidget(self._stop_btn, 1, 1)
        lay.addLayout(grid)

        extend_row = QHBoxLayout()
        for label, seconds in (("-1 min", -60), ("+1 min", 60), ("+5 min", 300)):
            extend_row.addWidget(self._button(label, lambda s=seconds: controller.extend(s)))
        lay.addLayout(extend_row)

        footer = QHBoxLayout()
        footer.addWidget(self._button("Settings", self._on_settings))
        footer.addWidget(self._button("Data folder", self._on_open_data_folder))
        footer.addStretch()
        footer.addWidget(self._button("Quit", QApplication.quit))
        lay.addLayout(footer)

        self.on_notify("state", controller.get_state())

    def _button(self, text, slot):
        btn = QPushButton(text)
        btn.clicked.connect(lambda _checked=False: slot())
        return btn

    #region === Rendering from snapshots ===

    def on_notify(self, event, payload):
        settings = payload["settings"]
        timer = payload["state"]["timer"]
        ended = payload["state"]["last_ended"] is not None
        remaining = timer["remaining_seconds"]

        if settings["theme"] != self._theme:
            self._theme = settings["theme"]
            self.setStyleSheet(build_stylesheet(self._theme))

        if timer["running"]:
            phase = "running"
        elif ended:
            phase = "ended"
        elif remaining > 0:
            phase = "paused"
        else:
            phase = "idle"
        mode = "Break" if timer["is_break"] else "Work"
        self._phase_lbl.setText(_PHASE_TEXT[phase].format(mode=mode))
        self._clock_lbl.setText(format_clock(remaining))

        self._pause_btn.setText("Resume" if not timer["running"] else "Pause")
        self._pause_btn.setEnabled(timer["running"] or remaining > 0)
        self._stop_btn.setEnabled(timer["running"])

        if event == EVENT_TIMER_ENDED:
            log.debug(f"Window saw {mode.lower()} timer end")

    #endregion === Rendering from snapshots ===

    #region === Actions ===

    def _on_pause_resume(self):
        if self._controller.timer.running:
            self._controller.pause()
        else:
            self._controller.resume()

    def _on_settings(self):
        dlg = SettingsDialog(self, self._controller.settings)
        if dlg.exec() == QDialog.Accepted:
            self._controller.save_settings(dlg.chosen_settings())

    def _on_open_data_folder(self):
        if not QDesktopServices.openUrl(QUrl.fromLocalFile(str(PATHS.data))):
            log.warning(f"Could not open data folder '{PATHS.data}'")

    #endregion === Actions ===

    #region === Show / hide ===

    def toggle(self):
        if self.isVisible():
            self.hide()
        else:
            self.show_near_tray()

    # Puts the window just above (or below, for a top panel) the tray icon, kept inside the screen.
    def show_near_tray(self):
        self.adjustSize()
        rect = self._tray_geometry() if self._tray_geometry is not None else None
        screen = QGuiApplication.primaryScreen()
        if rect is not None and rect.isValid() and screen is not None:
            avail = screen.availableGeometry()
            x = rect.center().x() - self.width() // 2
            if rect.center().y() > avail.center().y():
                y = rect.top() - self.height() - 4
            else:
                y = rect.bottom() + 4
            x = max(avail.left(), min(x, avail.right() - self.width()))
            y = max(avail.top(), min(y, avail.bottom() - self.height()))
            self.move(x, y)
        self.show()
        self.raise_()
        self.activateWindow()

    # Closing only hides, the app lives in the tray until Quit.
    def closeEvent(self, event):
        event.ignore()
        self.hide()

    #endregion === Show / hide ===
