"""Command entrypoint for the mnist_canvas package."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from mnist_canvas.constants import MODEL_PATH, STROKE_WIDTH, SURFACE_HEIGHT, SURFACE_WIDTH
from mnist_canvas.errors import ModelUnavailableError
from mnist_canvas.model.runtime import ModelSession
from mnist_canvas.services.tta_inference import format_result
from mnist_canvas.ui.canvas import StrokeCanvas


def replay_strokes(
    strokes: list[list[list[float]]],
    width: int,
    height: int,
    stroke_width: float = STROKE_WIDTH,
) -> np.ndarray:
    """Replay recorded polylines onto a fresh surface and return its raster.

    Each stroke is a list of ``[x, y]`` points: the first point starts the
    stroke and every following point is one pointer-move segment.
    """
    surface = StrokeCanvas(width=width, height=height, stroke_width=stroke_width)
    for stroke in strokes:
        if len(stroke) == 0:
            continue
        last_x, last_y = stroke[0]
        surface.begin_stroke(last_x, last_y)
        for x, y in stroke[1:]:
            surface.on_stroke_segment(last_x, last_y, x, y)
            last_x, last_y = x, y
    return surface.snapshot()


def load_raster(args: argparse.Namespace) -> np.ndarray:
    if args.raster is not None:
        return np.load(args.raster, allow_pickle=False)
    with args.strokes.open("r", encoding="utf-8") as handle:
        strokes = json.load(handle)
    return replay_strokes(strokes, width=args.width, height=args.height, stroke_width=args.stroke_width)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify a drawn digit with test-time augmentation")
    parser.add_argument(
        "--model",
        type=Path,
        default=MODEL_PATH,
        help=f"Keras model artifact (default: {MODEL_PATH}).",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--raster", type=Path, help="Saved .npy raster, (H, W) or (H, W, 4).")
    source.add_argument("--strokes", type=Path, help="JSON list of polylines [[x, y], ...].")
    parser.add_argument("--width", type=int, default=SURFACE_WIDTH, help="Surface width for --strokes.")
    parser.add_argument("--height", type=int, default=SURFACE_HEIGHT, help="Surface height for --strokes.")
    parser.add_argument("--stroke-width", type=float, default=STROKE_WIDTH, help="Stroke width for --strokes.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        session = ModelSession.load(args.model)
    except ModelUnavailableError as exc:
        print(f"Model unavailable: {exc}", file=sys.stderr)
        return 1

    raster = load_raster(args)
    print(format_result(session.predict(raster)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
