from typing import Callable
from PySide6.QtCore import QObject, Qt
from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import QSystemTrayIcon
from cactus.common.logger import log
from cactus.ui.glyph_renderer import canvas_size, glyph_icon, safe_render
from cactus.util import minutes_floor

# Whole minutes left as text, the number the tray shows next to the heart.
def tray_label(remaining_seconds):
    return str(minutes_floor(remaining_seconds))

def tray_tooltip(remaining_seconds):
    return f"Timer: {tray_label(remaining_seconds)} minutes remaining"

# Owns the tray icon. The icon itself is the progress heart, and the whole-minute count goes in the tooltip.
# No context menu, a single click toggles the main window.
class TrayManager(QObject):

    def __init__(self, on_toggle: Callable[[], None], parent=None):
        super().__init__(parent)
        self._on_toggle = on_toggle
        self.tray = None

    def create(self):
        if self.tray is not None:
            return self.tray
        if not QSystemTrayIcon.isSystemTrayAvailable():
            log.warning("No system tray available on this desktop, the tray icon will not be visible")
        self.tray = QSystemTrayIcon(self)
        self.tray.setIcon(self._placeholder_icon())
        self.tray.activated.connect(self._on_activated)
        return self.tray

    # Transparent stand-in until the first glyph renders
    @staticmethod
    def _placeholder_icon():
        size = canvas_size()
        pixmap = QPixmap(size.point_width, size.point_height)
        pixmap.fill(Qt.GlobalColor.transparent)
        return QIcon(pixmap)

    def show(self):
        self.create().show()

    def hide(self):
        if self.tray is not None:
            self.tray.hide()

    def geometry(self):
        return self.tray.geometry() if self.tray is not None else None

    def update(self, remaining_seconds, fraction, color):
        if self.tray is None:
            return
        image = safe_render(fraction, color)
        # On a failed render the previous icon stays up
        if image is not None:
            self.tray.setIcon(glyph_icon(image))
        self.tray.setToolTip(tray_tooltip(remaining_seconds))

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self._on_toggle()
