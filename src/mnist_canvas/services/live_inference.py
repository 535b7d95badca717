"""Background live-inference worker.

This module owns all threading/queue behavior used for "predict while
drawing". The drawing surface keeps mutating its raster, so every request is
a private snapshot and only one prediction runs at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from queue import Empty, Full, Queue
from threading import Event, Thread
from typing import Callable

import numpy as np

from mnist_canvas.services.tta_inference import PredictionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveInferenceResult:
    """Single completed request produced by the worker.

    ``result`` is ``None`` for a blank raster. When the prediction raised,
    ``error`` holds the exception and ``unwrap()`` re-raises it.
    """

    raster: np.ndarray
    result: PredictionResult | None
    error: Exception | None = None

    def unwrap(self) -> PredictionResult | None:
        if self.error is not None:
            raise self.error
        return self.result


class LiveInferenceWorker:
    """Threaded worker that runs predictions off the caller's thread.

    Design goals:
    - keep queue size at 1 so old snapshots are dropped automatically
    - allow cheap non-blocking `submit(...)` from stroke handlers
    - expose `poll_latest(...)` so callers can apply only the freshest result
    """

    def __init__(self, predict_fn: Callable[[np.ndarray], PredictionResult | None]) -> None:
        self._predict_fn = predict_fn
        self._input_queue: Queue[np.ndarray] = Queue(maxsize=1)
        self._result_queue: Queue[LiveInferenceResult] = Queue(maxsize=1)
        self._stop_event = Event()
        self._thread: Thread | None = None

    def start(self) -> None:
        """Start the worker thread once."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._run_loop, name="live-inference", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal worker shutdown."""
        self._stop_event.set()

    def submit(self, raster: np.ndarray) -> bool:
        """Submit a snapshot of the current raster for inference.

        Returns `True` when queued. Returns `False` if another producer
        refilled the queue between draining and putting.
        """
        try:
            # Drain stale input first so only latest drawing state is processed.
            while True:
                self._input_queue.get_nowait()
        except Empty:
            pass

        try:
            self._input_queue.put_nowait(np.array(raster, copy=True))
        except Full:
            return False
        return True

    def poll_latest(self) -> LiveInferenceResult | None:
        """Return the newest completed result, dropping stale older ones."""
        latest: LiveInferenceResult | None = None
        try:
            while True:
                latest = self._result_queue.get_nowait()
        except Empty:
            return latest

    def is_stopped(self) -> bool:
        """Check whether worker has been requested to stop."""
        return self._stop_event.is_set()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                raster = self._input_queue.get(timeout=0.1)
            except Empty:
                continue

            try:
                result = LiveInferenceResult(raster=raster, result=self._predict_fn(raster))
            except Exception as exc:
                logger.error("live prediction failed error=%s", exc)
                result = LiveInferenceResult(raster=raster, result=None, error=exc)

            try:
                # Keep only freshest result.
                while True:
                    self._result_queue.get_nowait()
            except Empty:
                pass

            self._result_queue.put(result)
