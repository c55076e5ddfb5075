"""Tray glyph: a heart that fills from the bottom up as the run elapses.

Drawn at `scale`x on a QImage and then smoothly downscaled to point size,
which gives clean anti-aliased edges on high density displays.
"""

import math
from dataclasses import dataclass

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QIcon, QImage, QPainter, QPainterPath, QPixmap

from cactus.common.logger import log
from cactus.core.glyph import HeartOutline, fill_band, heart_outline

BASE_POINT_HEIGHT = 26
HEART_POINT_SIZE = 18
MIN_POINT_WIDTH = 32
FILL_OPACITY = 0.8


@dataclass(frozen=True)
class CanvasSize:
    width: int
    height: int
    point_width: int
    point_height: int


def canvas_size(base_size_pt=BASE_POINT_HEIGHT, scale=2):
    heart = heart_pixels(base_size_pt, scale)
    width = max(MIN_POINT_WIDTH * scale, math.ceil(heart + 8))
    return CanvasSize(width=width, height=base_size_pt * scale,
                      point_width=math.ceil(width / scale), point_height=base_size_pt)


def heart_pixels(base_size_pt=BASE_POINT_HEIGHT, scale=2):
    # Never taller than the canvas
    return min(HEART_POINT_SIZE, base_size_pt) * scale


def canvas_outline(size: CanvasSize, scale=2) -> HeartOutline:
    heart = heart_pixels(size.point_height, scale)
    return heart_outline(size.width / 2, size.height / 2, heart, heart)


def to_painter_path(outline: HeartOutline) -> QPainterPath:
    path = QPainterPath(QPointF(*outline.start))
    for seg in outline.segments:
        path.cubicTo(QPointF(*seg.c1), QPointF(*seg.c2), QPointF(*seg.end))
    path.closeSubpath()
    return path


def render_canvas(fraction, color, base_size_pt=BASE_POINT_HEIGHT, scale=2) -> QImage:
    """The full resolution image, before the final downscale."""
    size = canvas_size(base_size_pt, scale)
    image = QImage(size.width, size.height, QImage.Format.Format_ARGB32_Premultiplied)
    if image.isNull():
        raise RuntimeError(f"Could not allocate a {size.width}x{size.height} glyph canvas")
    image.fill(Qt.GlobalColor.transparent)

    outline = canvas_outline(size, scale)
    band = fill_band(outline, fraction)
    if band is not None:
        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setClipPath(to_painter_path(outline))
            painter.setOpacity(FILL_OPACITY)
            painter.fillRect(QRectF(*band), QColor(color))
        finally:
            painter.end()
    return image


def render_progress_glyph(fraction, color, base_size_pt=BASE_POINT_HEIGHT, scale=2) -> QImage:
    size = canvas_size(base_size_pt, scale)
    canvas = render_canvas(fraction, color, base_size_pt, scale)
    return canvas.scaled(size.point_width, size.point_height,
                         Qt.AspectRatioMode.IgnoreAspectRatio,
                         Qt.TransformationMode.SmoothTransformation)


# Rendering problems are never worth crashing over. Returns None so the caller keeps whatever icon it already had.
def safe_render(fraction, color, base_size_pt=BASE_POINT_HEIGHT, scale=2):
    try:
        return render_progress_glyph(fraction, color, base_size_pt, scale)
    except Exception:
        log.exception(f"Failed to render tray glyph (fraction={fraction}, color={color})")
        return None


def glyph_icon(image: QImage) -> QIcon:
    icon = QIcon(QPixmap.fromImage(image))
    # Full colour, don't let macOS treat it as a template/mask image
    icon.setIsMask(False)
    return icon
