"""Preprocessing for converting a user drawing into MNIST-style input.

Goal:
- Take a hand-drawn raster of any size from the drawing surface.
- Make it look like MNIST training examples.
- Return a 28x28 frame ready to be flattened for model inference.
"""

from __future__ import annotations

import logging

import numpy as np

from mnist_canvas.config import PipelineConfig
from mnist_canvas.pipeline.geometry import BoundingBox, center_of_mass, ink_channel
from mnist_canvas.pipeline.resample import draw_region, quantize

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = PipelineConfig()


def frame_geometry(box: BoundingBox, target_extent: int) -> tuple[float, float, float]:
    """Return ``(scale, scaled_width, scaled_height)`` for a bounding box.

    The larger box side maps to ``target_extent`` pixels; the aspect ratio is
    preserved and the scaled sizes are left unrounded.
    """
    scale = target_extent / max(box.width, box.height)
    return scale, box.width * scale, box.height * scale


def build_canonical_frame(
    raster: np.ndarray,
    box: BoundingBox | None,
    shift_x: int = 0,
    shift_y: int = 0,
    config: PipelineConfig = _DEFAULT_CONFIG,
) -> np.ndarray | None:
    """Normalize the boxed drawing into a (frame_size, frame_size) float32 frame.

    Pipeline summary:
    1) Scale the box so its longest side spans ``target_extent`` pixels.
    2) Resample the boxed ink into a scratch surface at the origin.
    3) Paste it centered on a second surface and measure its center of mass.
    4) Move the paste so the center of mass sits on the frame center.
    5) Apply the (shift_x, shift_y) jitter and render the final surface.
    6) Scale to [0,1] and apply the contrast boost.

    Returns ``None`` when ``box`` is ``None`` (nothing drawn).
    """
    if box is None:
        return None

    size = config.frame_size
    channel = ink_channel(raster)
    scale, sw, sh = frame_geometry(box, config.target_extent)

    # Downscale the boxed ink into the top-left corner of a scratch surface.
    scaled = quantize(
        draw_region(
            channel,
            src_rect=(box.min_x, box.min_y, box.width, box.height),
            dst_rect=(0.0, 0.0, sw, sh),
            dst_size=size,
        )
    )

    # Paste centered (no shift) to measure the centroid in frame coordinates.
    tx = (size - sw) / 2.0
    ty = (size - sh) / 2.0
    centered = quantize(
        draw_region(scaled, src_rect=(0, 0, sw, sh), dst_rect=(tx, ty, sw, sh), dst_size=size)
    )
    com = center_of_mass(centered, threshold=config.ink_threshold)
    if com is not None:
        tx += config.frame_center - com.x
        ty += config.frame_center - com.y

    tx += shift_x
    ty += shift_y
    logger.debug(
        "frame box=%s scale=%.4f scaled=(%.3f, %.3f) offset=(%.3f, %.3f) shift=(%d, %d)",
        box,
        scale,
        sw,
        sh,
        tx,
        ty,
        shift_x,
        shift_y,
    )

    final = quantize(
        draw_region(scaled, src_rect=(0, 0, sw, sh), dst_rect=(tx, ty, sw, sh), dst_size=size)
    )

    # Normalize, then boost contrast to compensate for anti-aliasing softening.
    frame = final.astype(np.float32) / 255.0
    return np.minimum(1.0, frame * np.float32(config.contrast_boost)).astype(np.float32)
