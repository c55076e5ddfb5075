"""Settings dialog: durations, sound volume and theme."""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QSpinBox,
    QVBoxLayout,
)
from cactus.ui.theme import THEME_PALETTES

# Opens from the Settings button in the main window. Nothing is written until Apply, the window reads
# chosen_settings() after the dialog is accepted and hands it to save-settings.
class SettingsDialog(QDialog):

    def __init__(self, parent, settings):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)
        self.setModal(True)

        durations = settings.get("durations", {})
        outer = QVBoxLayout(self)
        form = QFormLayout()

        self._work = QSpinBox()
        self._work.setRange(1, 240)
        self._work.setSuffix(" min")
        self._work.setValue(int(durations.get("work_minutes", 30)))
        form.addRow("Work:", self._work)

        self._break = QSpinBox()
        self._break.setRange(1, 120)
        self._break.setSuffix(" min")
        self._break.setValue(int(durations.get("break_minutes", 3)))
        form.addRow("Break:", self._break)

        volume_row = QHBoxLayout()
        self._volume = QSlider(Qt.Horizontal)
        self._volume.setRange(0, 100)
        self._volume.setValue(int(settings.get("sound_volume", 100)))
        self._volume_lbl = QLabel()
        self._volume_lbl.setMinimumWidth(40)
        self._volume.valueChanged.connect(self._on_volume_changed)
        self._on_volume_changed(self._volume.value())
        volume_row.addWidget(self._volume, 1)
        volume_row.addWidget(self._volume_lbl)
        form.addRow("Sound volume:", volume_row)

        self._theme = QComboBox()
        self._theme.addItems(list(THEME_PALETTES))
        self._theme.setCurrentText(settings.get("theme", "neutral"))
        form.addRow("Theme:", self._theme)

        outer.addLayout(form)

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        apply_btn = QPushButton("Apply")
        apply_btn.setDefault(True)
        apply_btn.clicked.connect(self.accept)
        btn_row.addWidget(cancel_btn)
        btn_row.addWidget(apply_btn)
        outer.addLayout(btn_row)

    def _on_volume_changed(self, value):
        self._volume_lbl.setText(f"{value}%")

    def chosen_settings(self):
        return {
            "durations": {
                "work_minutes": self._work.value(),
                "break_minutes": self._break.value(),
            },
            "sound_volume": self._volume.value(),
            "theme": self._theme.currentText(),
        }
