"""End-of-timer sound, with a plain system beep as the fallback for anything that goes wrong."""

import io
import math
import struct
import wave
from pathlib import Path

from PySide6.QtCore import QObject, QUrl
from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtWidgets import QApplication

from cactus.common.logger import log
from cactus.common.setup import PATHS

SOUND_FILE_NAME = "timer-end.wav"


def _tone(frequency, seconds, sample_rate, amplitude, fade_seconds):
    count = int(sample_rate * seconds)
    fade = max(1, int(sample_rate * fade_seconds))
    samples = []
    for i in range(count):
        value = amplitude * math.sin(2 * math.pi * frequency * i / sample_rate)
        # Fade in/out to avoid clicks
        if i < fade:
            value *= i / fade
        elif i > count - fade:
            value *= (count - i) / fade
        samples.append(int(value))
    return samples


def generate_end_tone(sample_rate=44100) -> bytes:
    """Two-tone chime (A5 then C6) as mono 16-bit WAV bytes."""
    amplitude = 32767 * 0.4
    samples = _tone(880, 0.1, sample_rate, amplitude, 0.01)
    samples += [0] * int(sample_rate * 0.05)
    samples += _tone(1046, 0.15, sample_rate, amplitude, 0.015)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(struct.pack(f"<{len(samples)}h", *samples))
    return buffer.getvalue()


class SoundPlayer(QObject):

    def __init__(self, parent=None, assets_dir: Path | None = None, cache_dir: Path | None = None):
        super().__init__(parent)
        self._assets_dir = assets_dir or PATHS.assets / "sounds"
        self._cache_dir = cache_dir or PATHS.data
        self._effect = None

    # Bundled sound if there is one, otherwise the generated chime cached in the data folder.
    def sound_path(self) -> Path:
        bundled = self._assets_dir / SOUND_FILE_NAME
        if bundled.exists():
            return bundled
        generated = self._cache_dir / SOUND_FILE_NAME
        if not generated.exists():
            generated.write_bytes(generate_end_tone())
            log.info(f"Generated end sound at '{generated}'")
        return generated

    # One effect for the life of the player, later plays only swap the source and volume.
    def _sound_effect(self) -> QSoundEffect:
        if self._effect is None:
            effect = QSoundEffect(self)
            effect.statusChanged.connect(lambda: self._on_status(effect))
            self._effect = effect
        return self._effect

    def play_end_sound(self, volume: float):
        try:
            path = self.sound_path()
            effect = self._sound_effect()
            url = QUrl.fromLocalFile(str(path))
            if effect.source() != url:
                effect.setSource(url)
            effect.setVolume(max(0.0, min(1.0, float(volume))))
            effect.play()
            log.debug(f"Playing end sound '{path}' at volume {volume:.2f}")
        except Exception:
            log.warning("Could not play end sound, falling back to beep", exc_info=True)
            self.beep()

    def _on_status(self, effect):
        if effect.status() == QSoundEffect.Status.Error:
            log.warning(f"Sound playback failed for '{effect.source().toLocalFile()}', falling back to beep")
            self.beep()

    @staticmethod
    def beep():
        try:
            QApplication.beep()
        except Exception:
            log.exception("Fallback beep failed too")
