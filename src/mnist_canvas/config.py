"""Pipeline configuration bundle."""

from __future__ import annotations

from dataclasses import dataclass

from mnist_canvas.constants import (
    CONTRAST_BOOST,
    FRAME_SIZE,
    INK_THRESHOLD,
    TARGET_EXTENT,
    TOP_K,
    TTA_SHIFTS,
)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for one normalization + TTA pipeline instance.

    Defaults reproduce the reference behavior exactly; only change them
    after re-validating against real drawings.
    """

    frame_size: int = FRAME_SIZE
    target_extent: int = TARGET_EXTENT
    ink_threshold: int = INK_THRESHOLD
    contrast_boost: float = CONTRAST_BOOST
    shifts: tuple[tuple[int, int], ...] = TTA_SHIFTS
    top_k: int = TOP_K

    def __post_init__(self) -> None:
        if self.frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {self.frame_size}")
        if not 0 < self.target_extent <= self.frame_size:
            raise ValueError(
                f"target_extent must be in 1..{self.frame_size}, got {self.target_extent}"
            )
        if not 0 <= self.ink_threshold <= 255:
            raise ValueError(f"ink_threshold must be in 0..255, got {self.ink_threshold}")
        if self.contrast_boost <= 0.0:
            raise ValueError(f"contrast_boost must be positive, got {self.contrast_boost}")
        if len(self.shifts) == 0:
            raise ValueError("shifts must contain at least one offset")
        if self.top_k <= 0:
            raise ValueError(f"top_k must be positive, got {self.top_k}")

    @property
    def frame_pixels(self) -> int:
        return self.frame_size * self.frame_size

    @property
    def frame_center(self) -> float:
        # Index-space target for the ink centroid (14 for a 28 frame).
        return self.frame_size / 2.0
