"""Area-coverage resampling onto small 8-bit drawing surfaces.

Drawing a source rectangle into a destination rectangle with fractional
position and size is separable: every destination pixel receives each source
pixel's value weighted by how much of the destination pixel that source
pixel covers. Pixels that are only partly covered blend with the black
background, which is what gives the downscaled digit its soft edges.
"""

from __future__ import annotations

import math

import numpy as np


def coverage_weights(n_dst: int, src_extent: float, offset: float, scale: float) -> np.ndarray:
    """Build the (n_dst, n_src) coverage matrix for one axis.

    Source pixel ``j`` spans ``[j, min(j + 1, src_extent))`` in source units
    and lands on ``offset + span * scale`` in destination units. The weight
    is the overlap length of that interval with destination pixel ``i``.
    """
    n_src = max(0, math.ceil(src_extent))
    j = np.arange(n_src, dtype=np.float64)
    lo = offset + j * scale
    hi = offset + np.minimum(j + 1.0, src_extent) * scale

    i = np.arange(n_dst, dtype=np.float64)[:, np.newaxis]
    overlap = np.minimum(i + 1.0, hi[np.newaxis, :]) - np.maximum(i, lo[np.newaxis, :])
    return np.clip(overlap, 0.0, None)


def draw_region(
    source: np.ndarray,
    src_rect: tuple[float, float, float, float],
    dst_rect: tuple[float, float, float, float],
    dst_size: int,
) -> np.ndarray:
    """Draw ``src_rect`` of a 2D source into ``dst_rect`` of a black square surface.

    Rectangles are ``(x, y, width, height)``. The source origin must be
    integral; widths, heights and the destination origin may be fractional.
    Returns float intensities (not yet quantized).
    """
    src_x, src_y, src_w, src_h = src_rect
    dst_x, dst_y, dst_w, dst_h = dst_rect
    surface = np.zeros((dst_size, dst_size), dtype=np.float64)
    if src_w <= 0 or src_h <= 0 or dst_w <= 0 or dst_h <= 0:
        return surface

    x0, y0 = int(src_x), int(src_y)
    region = np.asarray(source, dtype=np.float64)[
        y0 : y0 + math.ceil(src_h),
        x0 : x0 + math.ceil(src_w),
    ]
    weights_x = coverage_weights(dst_size, src_w, dst_x, dst_w / src_w)
    weights_y = coverage_weights(dst_size, src_h, dst_y, dst_h / src_h)
    # Slicing near an edge can return fewer samples than the rect asks for.
    weights_x = weights_x[:, : region.shape[1]]
    weights_y = weights_y[:, : region.shape[0]]
    return weights_y @ region @ weights_x.T


def quantize(values: np.ndarray) -> np.ndarray:
    """Store intensities the way an 8-bit surface does (round, clip, uint8)."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)
