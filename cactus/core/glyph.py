"""Heart glyph geometry, kept as plain data so it can be checked without a rasterizer.

The outline is four cubic Bezier segments starting and ending at the bottom
tip: up the left side to the left hump, over to the centre cusp, over to the
right hump, and back down to the tip.
"""

from dataclasses import dataclass

# Top of the humps sits this far below the top of the bounding box, as a share of its height.
CUSP_DROP = 0.15

Point = tuple[float, float]


@dataclass(frozen=True)
class CubicSegment:
    c1: Point
    c2: Point
    end: Point


@dataclass(frozen=True)
class HeartOutline:
    cx: float
    cy: float
    width: float
    height: float
    start: Point
    segments: tuple[CubicSegment, ...]

    @property
    def bounds(self):
        """(left, top, right, bottom) of the box the heart was laid out in."""
        return (self.cx - self.width / 2, self.cy - self.height / 2,
                self.cx + self.width / 2, self.cy + self.height / 2)

    def points(self):
        """Every anchor and control point, in drawing order."""
        yield self.start
        for seg in self.segments:
            yield seg.c1
            yield seg.c2
            yield seg.end


def heart_outline(cx, cy, width, height):
    """Lay out a heart centred on (cx, cy) inside a width x height box."""
    left = cx - width / 2
    right = cx + width / 2
    top = cy - height / 2
    bottom = cy + height / 2
    hump_y = top + height * CUSP_DROP

    segments = (
        # tip -> left hump, bulging out to the left edge at mid height
        CubicSegment((left + width * 0.25, bottom - height * 0.1),
                     (left, cy),
                     (left + width * 0.1, hump_y)),
        # left hump -> centre cusp
        CubicSegment((left + width * 0.15, top + height * 0.05),
                     (cx - width * 0.05, top + height * 0.1),
                     (cx, hump_y)),
        # centre cusp -> right hump
        CubicSegment((cx + width * 0.05, top + height * 0.1),
                     (right - width * 0.15, top + height * 0.05),
                     (right - width * 0.1, hump_y)),
        # right hump -> tip
        CubicSegment((right, cy),
                     (right - width * 0.25, bottom - height * 0.1),
                     (cx, bottom)),
    )
    return HeartOutline(cx=cx, cy=cy, width=width, height=height, start=(cx, bottom), segments=segments)


def fill_band(outline: HeartOutline, fraction):
    """The (x, y, width, height) rectangle that gets filled for `fraction`, anchored to the bottom of the box.

    Returns None when there is nothing to fill.
    """
    fraction = max(0.0, min(1.0, fraction))
    if fraction <= 0:
        return None
    left, _, _, bottom = outline.bounds
    band_h = outline.height * fraction
    return (left, bottom - band_h, outline.width, band_h)


def progress_fraction(remaining_seconds, initial_seconds):
    """Share of the run already elapsed, clamped to 0..1. A zero-length run counts as no progress."""
    if not initial_seconds or initial_seconds <= 0:
        return 0.0
    return max(0.0, min(1.0, 1 - remaining_seconds / initial_seconds))
