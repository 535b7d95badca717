"""Test configuration shared across this project's pytest suite."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


# Ensure tests can import modules from src/ without requiring editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_rgba(height: int, width: int) -> np.ndarray:
    """Blank black RGBA raster, like a freshly cleared drawing surface."""
    raster = np.zeros((height, width, 4), dtype=np.uint8)
    raster[..., 3] = 255
    return raster


@pytest.fixture
def square_raster() -> np.ndarray:
    # 40x40 filled square centered on a 200x200 surface.
    raster = make_rgba(200, 200)
    raster[80:120, 80:120, :3] = 255
    return raster


class FakeModel:
    """Batched model stand-in that records every call.

    Each row puts ``peak`` probability on ``digit`` and spreads the rest
    evenly, so rows always sum to 1.
    """

    def __init__(self, digit: int = 3, peak: float = 0.9) -> None:
        self.digit = digit
        self.peak = peak
        self.calls: list[np.ndarray] = []

    def __call__(self, batch: np.ndarray) -> np.ndarray:
        self.calls.append(np.array(batch, copy=True))
        rows = np.full((len(batch), 10), (1.0 - self.peak) / 9.0)
        rows[:, self.digit] = self.peak
        return rows


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()
