"""Model lifecycle and batched inference helpers.

Callers should focus on drawings and results, not TensorFlow setup details.
A ``ModelSession`` is created once at startup, after the model artifact has
loaded, and every prediction reads the same session.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Callable

import numpy as np
from tensorflow import keras

from mnist_canvas.config import PipelineConfig
from mnist_canvas.constants import FRAME_PIXELS
from mnist_canvas.errors import ModelUnavailableError
from mnist_canvas.services.tta_inference import PredictionResult, TTAInferenceAggregator

logger = logging.getLogger(__name__)

_LOAD_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    ValueError,
    RuntimeError,
    TypeError,
    EOFError,
    zipfile.BadZipFile,
)


def load_model(model_path: Path) -> keras.Model:
    """Load a saved Keras model from disk.

    Training a fallback model is out of scope here; a missing or unreadable
    artifact is reported as ``ModelUnavailableError``.
    """
    if not model_path.exists():
        logger.error("model_missing path=%s", model_path)
        raise ModelUnavailableError(f"model artifact not found: {model_path}")
    try:
        model = keras.models.load_model(str(model_path))
    except _LOAD_ERRORS as exc:
        logger.error("model_load_failed path=%s error=%s", model_path, exc)
        raise ModelUnavailableError(f"could not load model from {model_path}: {exc}") from exc
    logger.info("model_loaded path=%s", model_path)
    return model


def ensure_model_callable(model: keras.Model, input_dim: int = FRAME_PIXELS) -> None:
    """Force the model graph to exist and warm it up with one zero batch.

    Keras Sequential models can exist in an "unbuilt" state until first call.
    """
    if not model.built:
        model.build((None, input_dim))
    _ = model(np.zeros((1, input_dim), dtype=np.float32), training=False)


def batch_predictor(model: keras.Model) -> Callable[[np.ndarray], np.ndarray]:
    """Wrap a Keras model as a plain ``(N, 784) -> (N, 10)`` numpy function."""

    def predict_batch(batch: np.ndarray) -> np.ndarray:
        # Calling the model directly avoids Model.predict overhead on small batches.
        probs = model(np.asarray(batch, dtype=np.float32), training=False)
        return probs.numpy()

    return predict_batch


class ModelSession:
    """Long-lived handle on the classification model.

    Holds the batched predict function and the pipeline configuration used
    for every request. A session without a model refuses predictions.
    """

    def __init__(
        self,
        predict_fn: Callable[[np.ndarray], np.ndarray] | None,
        config: PipelineConfig | None = None,
        source: str = "<callable>",
    ) -> None:
        self._predict_fn = predict_fn
        self.config = config or PipelineConfig()
        self.source = source
        self._aggregator = TTAInferenceAggregator(self.config)

    @classmethod
    def load(cls, model_path: Path, config: PipelineConfig | None = None) -> ModelSession:
        """Load, build and warm up a Keras model artifact."""
        cfg = config or PipelineConfig()
        model = load_model(model_path)
        ensure_model_callable(model, input_dim=cfg.frame_pixels)
        session = cls(batch_predictor(model), config=cfg, source=str(model_path))
        logger.info("session_ready source=%s shifts=%d", session.source, len(cfg.shifts))
        return session

    @classmethod
    def from_callable(
        cls,
        predict_fn: Callable[[np.ndarray], np.ndarray],
        config: PipelineConfig | None = None,
    ) -> ModelSession:
        return cls(predict_fn, config=config)

    @property
    def ready(self) -> bool:
        return self._predict_fn is not None

    def predict_batch(self, batch: np.ndarray) -> np.ndarray:
        if self._predict_fn is None:
            raise ModelUnavailableError("model not loaded")
        return self._predict_fn(batch)

    def predict(self, raster: np.ndarray) -> PredictionResult | None:
        """Classify a drawn raster; ``None`` when nothing is drawn."""
        if not self.ready:
            raise ModelUnavailableError("model not loaded")
        return self._aggregator.predict(raster, self.predict_batch)
