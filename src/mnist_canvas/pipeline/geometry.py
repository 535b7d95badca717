"""Ink geometry measured on a raster: tight bounding box and center of mass.

Coordinates follow image conventions: ``x`` is the column index and ``y``
the row index, both counted from the top-left sample.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from mnist_canvas.constants import INK_THRESHOLD


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive tight box around ink samples (width/height are >= 1)."""

    min_x: int
    min_y: int
    width: int
    height: int

    @property
    def max_x(self) -> int:
        return self.min_x + self.width - 1

    @property
    def max_y(self) -> int:
        return self.min_y + self.height - 1


@dataclass(frozen=True)
class Centroid:
    x: float
    y: float


def ink_channel(raster: np.ndarray) -> np.ndarray:
    """Return the governing ink channel of a raster as a 2D array.

    RGBA rasters (H, W, C) use channel 0; 2D rasters are returned as-is.
    """
    data = np.asarray(raster)
    if data.ndim == 3:
        data = data[..., 0]
    if data.ndim != 2:
        raise ValueError(f"raster must be 2D or (H, W, C), got shape {np.shape(raster)}")
    if data.shape[0] == 0 or data.shape[1] == 0:
        raise ValueError(f"raster must be non-empty, got shape {data.shape}")
    return data


def find_bounding_box(raster: np.ndarray, threshold: int = INK_THRESHOLD) -> BoundingBox | None:
    """Find the tightest box containing every ink sample.

    Returns ``None`` for a blank raster; that is a normal outcome meaning
    "nothing drawn", not a failure.
    """
    mask = ink_channel(raster) > threshold
    rows = np.where(mask.any(axis=1))[0]
    cols = np.where(mask.any(axis=0))[0]
    if len(rows) == 0 or len(cols) == 0:
        return None

    min_y, max_y = int(rows[0]), int(rows[-1])
    min_x, max_x = int(cols[0]), int(cols[-1])
    return BoundingBox(
        min_x=min_x,
        min_y=min_y,
        width=max_x - min_x + 1,
        height=max_y - min_y + 1,
    )


def center_of_mass(raster: np.ndarray, threshold: int = INK_THRESHOLD) -> Centroid | None:
    """Compute the intensity-weighted centroid of ink samples.

    Only samples above ``threshold`` contribute, each weighted by its own
    value, so thicker or brighter parts of a stroke pull the centroid.
    """
    channel = ink_channel(raster).astype(np.float64)
    weights = np.where(channel > threshold, channel, 0.0)
    mass = float(np.sum(weights))
    if mass == 0.0:
        return None

    rr, cc = np.indices(weights.shape)
    cx = float(np.sum(cc * weights) / mass)
    cy = float(np.sum(rr * weights) / mass)
    return Centroid(x=cx, y=cy)
