"""Exceptions raised by the inference pipeline.

An empty drawing is not an error: it is reported as ``None`` by the
extraction and prediction functions.
"""

from __future__ import annotations


class ModelUnavailableError(RuntimeError):
    """The classification model failed to load or was never loaded.

    Prediction requests are refused until a model session is ready.
    """
