"""Centralized constants for the drawing-to-digit pipeline.

This file only stores values (sizes, thresholds, offsets).
Keeping these in one place makes the pipeline easier to tune later because
you do not need to search through every module for each value.
"""

from pathlib import Path

# The model expects 28x28 pixel frames (MNIST format), flattened to 784.
FRAME_SIZE = 28
FRAME_PIXELS = FRAME_SIZE * FRAME_SIZE
# The larger side of the drawn digit is scaled to 20 pixels, leaving a
# 4 pixel border on each side like the MNIST training set.
TARGET_EXTENT = 20
NUM_CLASSES = 10

# Channel-0 values strictly above this count as ink (0..255 scale).
INK_THRESHOLD = 50
# Multiplier applied after /255 to undo anti-aliasing softening.
CONTRAST_BOOST = 1.3

# Test-time augmentation offsets as (dx, dy) in frame pixels.
TTA_SHIFTS = ((0, 0), (0, 1), (0, -1), (1, 0), (-1, 0))

# Drawing surface defaults (fixed-size variant of the input canvas).
SURFACE_WIDTH = 560
SURFACE_HEIGHT = 560
# Hidden data stroke is much thicker than the visible pen so that the
# downscaled digit keeps MNIST-like stroke weight.
STROKE_WIDTH = 45
INK_VALUE = 255

# Contenders listed next to the main prediction.
TOP_K = 3
# Confidence banding used by result summaries.
HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.6

MODEL_PATH = Path("models/basic_nn_mnist.keras")
