"""Test-time augmentation (TTA) inference over a drawn raster.

The same drawing is normalized several times with small integer jitters,
all frames go to the model in one batched call, and the per-frame
probabilities are averaged into a single decision.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from mnist_canvas.config import PipelineConfig
from mnist_canvas.constants import HIGH_CONFIDENCE, MEDIUM_CONFIDENCE, NUM_CLASSES
from mnist_canvas.pipeline.geometry import BoundingBox, find_bounding_box
from mnist_canvas.pipeline.preprocessing import build_canonical_frame

logger = logging.getLogger(__name__)

BatchPredictFn = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True, eq=False)
class PredictionResult:
    """Aggregated decision for one drawing.

    ``probs`` is the column-wise mean over all augmented frames, and
    ``contenders`` lists the strongest classes as ``(digit, probability)``.
    ``preview`` is the first frame of the batch (the unshifted one with the
    default shifts).
    """

    probs: np.ndarray
    digit: int
    confidence: float
    contenders: tuple[tuple[int, float], ...]
    latency_ms: float
    batch_size: int
    preview: np.ndarray

    @property
    def confidence_level(self) -> str:
        if self.confidence > HIGH_CONFIDENCE:
            return "high"
        if self.confidence > MEDIUM_CONFIDENCE:
            return "medium"
        return "low"


def average_probabilities(rows: np.ndarray) -> np.ndarray:
    """Arithmetic mean of per-frame probability rows (unweighted)."""
    return np.mean(np.asarray(rows, dtype=np.float64), axis=0)


def rank_contenders(probs: np.ndarray, top_k: int) -> tuple[tuple[int, float], ...]:
    """Rank classes by probability, highest first.

    ``sorted`` is stable, so equal probabilities keep class order and the
    lower digit wins the tie.
    """
    order = sorted(range(len(probs)), key=lambda i: -float(probs[i]))
    return tuple((i, float(probs[i])) for i in order[:top_k])


class TTAInferenceAggregator:
    """Drive frame building across the TTA shifts and combine model outputs."""

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()

    def predict(self, raster: np.ndarray, model_fn: BatchPredictFn) -> PredictionResult | None:
        """Classify a drawing with one batched model call.

        Returns ``None`` when the raster has no ink. Exceptions raised by
        ``model_fn`` are not retried; they propagate to the caller.
        """
        cfg = self.config
        box = find_bounding_box(raster, threshold=cfg.ink_threshold)
        if box is None:
            return None

        t0 = time.monotonic()
        batch = self._frames_for_box(raster, box)
        if batch is None:
            return None

        try:
            raw = model_fn(batch)
        except Exception as exc:
            logger.error("batched model call failed batch=%d error=%s", len(batch), exc)
            raise
        t1 = time.monotonic()

        rows = np.asarray(raw, dtype=np.float64)
        if rows.shape != (len(batch), NUM_CLASSES):
            raise ValueError(
                f"model returned shape {rows.shape}, expected {(len(batch), NUM_CLASSES)}"
            )

        probs = average_probabilities(rows)
        digit = int(np.argmax(probs))
        confidence = float(probs[digit])
        logger.debug("tta digit=%d confidence=%.4f batch=%d", digit, confidence, len(batch))
        return PredictionResult(
            probs=probs,
            digit=digit,
            confidence=confidence,
            contenders=rank_contenders(probs, cfg.top_k),
            latency_ms=(t1 - t0) * 1000.0,
            batch_size=len(batch),
            preview=batch[0].reshape(cfg.frame_size, cfg.frame_size),
        )

    def _frames_for_box(self, raster: np.ndarray, box: BoundingBox) -> np.ndarray | None:
        frames = []
        for shift_x, shift_y in self.config.shifts:
            frame = build_canonical_frame(raster, box, shift_x, shift_y, config=self.config)
            if frame is not None:
                frames.append(frame.reshape(-1))
        if len(frames) == 0:
            return None
        return np.stack(frames).astype(np.float32)


def format_result(result: PredictionResult | None) -> str:
    """Render a plain-text summary of a prediction."""
    if result is None:
        return "Prediction: ?"
    lines = [
        f"Prediction: {result.digit}  (confidence {result.confidence * 100:.1f}%, {result.confidence_level})",
        "Contenders:",
    ]
    lines += [f"  {digit}: {prob * 100:.1f}%" for digit, prob in result.contenders]
    # Half-up rounding for the displayed whole milliseconds.
    lines.append(f"Latency: {int(result.latency_ms + 0.5)} ms")
    return "\n".join(lines)
