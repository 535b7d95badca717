"""Hidden high-contrast drawing surface fed by pointer strokes.

The visible pen is a presentation concern; this surface only records what
the model should see: thick white strokes on a black RGBA raster, mapped 1:1
to the coordinates of the visible canvas.
"""

from __future__ import annotations

import numpy as np

from mnist_canvas.constants import (
    INK_THRESHOLD,
    INK_VALUE,
    STROKE_WIDTH,
    SURFACE_HEIGHT,
    SURFACE_WIDTH,
)


class StrokeCanvas:
    """RGBA raster that stroke events paint into.

    Strokes are round-capped lines of ``stroke_width`` pixels. Edge pixels get
    partial intensity from their coverage, and overlapping strokes keep the
    brighter value.
    """

    def __init__(
        self,
        width: int = SURFACE_WIDTH,
        height: int = SURFACE_HEIGHT,
        stroke_width: float = STROKE_WIDTH,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        if stroke_width <= 0:
            raise ValueError(f"stroke_width must be positive, got {stroke_width}")
        self.stroke_width = float(stroke_width)
        self._raster = np.zeros((height, width, 4), dtype=np.uint8)
        self.clear()

    @property
    def width(self) -> int:
        return int(self._raster.shape[1])

    @property
    def height(self) -> int:
        return int(self._raster.shape[0])

    @property
    def raster(self) -> np.ndarray:
        """Live raster (mutated by later strokes); use `snapshot()` to keep one."""
        return self._raster

    def snapshot(self) -> np.ndarray:
        return self._raster.copy()

    def clear(self) -> None:
        """Reset to black background, fully opaque."""
        self._raster[..., :3] = 0
        self._raster[..., 3] = 255

    def resize(self, width: int, height: int) -> None:
        """Match a new display size; like a resized canvas, content is cleared."""
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        if (width, height) == (self.width, self.height):
            return
        self._raster = np.zeros((height, width, 4), dtype=np.uint8)
        self.clear()

    def has_ink(self, threshold: int = INK_THRESHOLD) -> bool:
        return bool(np.any(self._raster[..., 0] > threshold))

    def begin_stroke(self, x: float, y: float) -> None:
        """Stamp the initial dot of a stroke."""
        self._paint_segment(x, y, x, y)

    def on_stroke_segment(self, x0: float, y0: float, x1: float, y1: float) -> None:
        """Paint one pointer-move segment from (x0, y0) to (x1, y1)."""
        self._paint_segment(x0, y0, x1, y1)

    def _paint_segment(self, x0: float, y0: float, x1: float, y1: float) -> None:
        radius = self.stroke_width / 2.0

        # Only touch the window that the capsule can reach.
        c0 = max(0, int(np.floor(min(x0, x1) - radius - 1)))
        c1 = min(self.width, int(np.ceil(max(x0, x1) + radius + 1)))
        r0 = max(0, int(np.floor(min(y0, y1) - radius - 1)))
        r1 = min(self.height, int(np.ceil(max(y0, y1) + radius + 1)))
        if c0 >= c1 or r0 >= r1:
            return

        rr, cc = np.mgrid[r0:r1, c0:c1]
        px = cc + 0.5
        py = rr + 0.5

        # Distance from each pixel center to the segment.
        dx = x1 - x0
        dy = y1 - y0
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            t = np.zeros_like(px)
        else:
            t = np.clip(((px - x0) * dx + (py - y0) * dy) / length_sq, 0.0, 1.0)
        dist = np.hypot(px - (x0 + t * dx), py - (y0 + t * dy))

        coverage = np.clip(radius - dist + 0.5, 0.0, 1.0)
        stroke = np.rint(coverage * INK_VALUE).astype(np.uint8)
        window = self._raster[r0:r1, c0:c1, :3]
        np.maximum(window, stroke[..., np.newaxis], out=window)
