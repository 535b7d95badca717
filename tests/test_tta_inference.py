"""Tests for test-time augmentation inference aggregation."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

import mnist_canvas.services.tta_inference as tta_mod
from conftest import FakeModel, make_rgba
from mnist_canvas.config import PipelineConfig
from mnist_canvas.services.tta_inference import (
    PredictionResult,
    TTAInferenceAggregator,
    average_probabilities,
    format_result,
    rank_contenders,
)


def test_blank_raster_returns_none_without_calling_model(fake_model: FakeModel) -> None:
    result = TTAInferenceAggregator().predict(make_rgba(100, 100), fake_model)

    assert result is None
    assert fake_model.calls == []


def test_single_batched_call_with_one_frame_per_shift(
    square_raster: np.ndarray, fake_model: FakeModel
) -> None:
    result = TTAInferenceAggregator().predict(square_raster, fake_model)

    assert len(fake_model.calls) == 1
    batch = fake_model.calls[0]
    assert batch.shape == (5, 784)
    assert batch.dtype == np.float32
    assert result is not None
    assert result.batch_size == 5
    assert result.digit == 3
    assert result.confidence == pytest.approx(0.9)
    assert result.preview.shape == (28, 28)
    assert np.array_equal(result.preview.reshape(-1), batch[0])


def test_shifted_frames_differ_from_unshifted(square_raster: np.ndarray, fake_model: FakeModel) -> None:
    TTAInferenceAggregator().predict(square_raster, fake_model)
    batch = fake_model.calls[0]

    for row in batch[1:]:
        assert not np.array_equal(row, batch[0])


def test_averaged_probabilities_sum_to_one(square_raster: np.ndarray) -> None:
    rng = np.random.default_rng(7)

    def dirichlet_model(batch: np.ndarray) -> np.ndarray:
        return rng.dirichlet(np.ones(10), size=len(batch))

    result = TTAInferenceAggregator().predict(square_raster, dirichlet_model)

    assert result is not None
    assert float(np.sum(result.probs)) == pytest.approx(1.0, abs=1e-6)
    assert result.confidence == float(np.max(result.probs))


def test_average_is_unweighted_column_mean() -> None:
    rows = np.zeros((2, 10))
    rows[0, 1] = 1.0
    rows[1, 4] = 1.0

    avg = average_probabilities(rows)

    assert avg[1] == 0.5
    assert avg[4] == 0.5


def test_contender_ties_prefer_lower_class() -> None:
    probs = np.array([0.1, 0.05, 0.6, 0.0, 0.05, 0.0, 0.1, 0.0, 0.1, 0.0])

    assert rank_contenders(probs, top_k=3) == ((2, 0.6), (0, 0.1), (6, 0.1))


def test_latency_covers_frame_building_and_model_call(
    square_raster: np.ndarray, fake_model: FakeModel, monkeypatch
) -> None:
    ticks = [10.0, 10.25]

    def _clock() -> float:
        return ticks.pop(0) if len(ticks) > 1 else ticks[0]

    monkeypatch.setattr(tta_mod.time, "monotonic", _clock)

    result = TTAInferenceAggregator().predict(square_raster, fake_model)

    assert result is not None
    assert result.latency_ms == pytest.approx(250.0)


def test_model_errors_propagate(square_raster: np.ndarray) -> None:
    def broken_model(_batch: np.ndarray) -> np.ndarray:
        raise RuntimeError("backend exploded")

    with pytest.raises(RuntimeError, match="backend exploded"):
        TTAInferenceAggregator().predict(square_raster, broken_model)


def test_wrong_model_output_shape_is_rejected(square_raster: np.ndarray) -> None:
    with pytest.raises(ValueError, match="expected"):
        TTAInferenceAggregator().predict(square_raster, lambda batch: np.ones((len(batch), 9)))


def test_custom_shift_set_controls_batch_size(square_raster: np.ndarray, fake_model: FakeModel) -> None:
    config = PipelineConfig(shifts=((0, 0), (2, 2)))
    result = TTAInferenceAggregator(config).predict(square_raster, fake_model)

    assert result is not None
    assert result.batch_size == 2
    assert fake_model.calls[0].shape == (2, 784)


def _result(confidence: float) -> PredictionResult:
    probs = np.full(10, (1.0 - confidence) / 9.0)
    probs[7] = confidence
    return PredictionResult(
        probs=probs,
        digit=7,
        confidence=confidence,
        contenders=rank_contenders(probs, top_k=3),
        latency_ms=12.4,
        batch_size=5,
        preview=np.zeros((28, 28), dtype=np.float32),
    )


@pytest.mark.parametrize(
    ("confidence", "level"),
    [(0.95, "high"), (0.9, "medium"), (0.7, "medium"), (0.6, "low"), (0.2, "low")],
)
def test_confidence_level_bands(confidence: float, level: str) -> None:
    assert _result(confidence).confidence_level == level


def test_format_result_lists_prediction_contenders_and_latency() -> None:
    text = format_result(_result(0.96))

    assert text.splitlines()[0] == "Prediction: 7  (confidence 96.0%, high)"
    assert "  7: 96.0%" in text
    assert "Latency: 12 ms" in text


def test_format_result_for_empty_drawing() -> None:
    assert format_result(None) == "Prediction: ?"


def test_results_compare_by_identity_without_array_errors() -> None:
    first = _result(0.8)
    second = _result(0.8)

    assert first == first
    assert first != second


@pytest.mark.parametrize(("latency_ms", "shown"), [(12.5, "13"), (12.49, "12"), (13.5, "14"), (0.4, "0")])
def test_format_result_rounds_latency_half_up(latency_ms: float, shown: str) -> None:
    result = dataclasses.replace(_result(0.8), latency_ms=latency_ms)

    assert format_result(result).splitlines()[-1] == f"Latency: {shown} ms"
