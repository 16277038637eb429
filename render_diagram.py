#!/usr/bin/env python3
"""
Render a growing Voronoi diagram to PNG frames.

Runs the tessellation headless through a Canvas and writes every N-th
frame, plus the final one, to the output directory.

Usage:
    python render_diagram.py [seed] [--width 400] [--height 400] [--seeds 100]
"""

import argparse
from pathlib import Path

import numpy as np
from PIL import Image

from py_voronoi.api.canvas import Canvas, CanvasOptions
from py_voronoi.config import settings
from py_voronoi.core.alea_prng import AleaPRNG
from py_voronoi.core.tessellation import TessellationEngine, TieBreak


class PngFrameWriter:
    """Display sink that saves frames as numbered PNG files."""

    def __init__(self, out_dir: Path, width: int, height: int, every: int = 1):
        self.out_dir = out_dir
        self.width = width
        self.height = height
        self.every = max(1, every)
        self.index = 0
        self.last_frame = None
        self.written = []

    def __call__(self, pixels: bytes):
        self.last_frame = pixels
        if self.index % self.every == 0:
            self._write(pixels, self.index)
        self.index += 1

    def flush(self):
        """Write the last frame if it was skipped."""
        if self.last_frame is not None and (self.index - 1) % self.every != 0:
            self._write(self.last_frame, self.index - 1)

    def _write(self, pixels: bytes, index: int):
        array = np.frombuffer(pixels, dtype=np.uint8).reshape(self.height, self.width, 4)
        path = self.out_dir / f"frame_{index:04d}.png"
        Image.fromarray(array).save(path)
        self.written.append(path)


def render(seed, width, height, num_seeds, out_dir, every=1,
           hide_iterations=False, tie_break=TieBreak.FIRST_SEED):
    """Render one diagram and return the written frame paths."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    print("\nRendering Voronoi diagram...")
    print(f"  Dimensions: {width}x{height}")
    print(f"  Seeds: {num_seeds}")
    print(f"  Seed string: {seed}")

    engine = TessellationEngine(width, height, num_seeds,
                                tie_break=tie_break, prng=AleaPRNG(seed))
    canvas = Canvas(engine, CanvasOptions(hide_iterations=hide_iterations))
    writer = PngFrameWriter(out_dir, width, height, every)

    frames = canvas.run(writer)
    writer.flush()

    print(f"  Frames: {frames}, rings: {engine.radius}")
    print(f"  Wrote {len(writer.written)} images to {out_dir}")
    return writer.written


def main(argv=None):
    parser = argparse.ArgumentParser(description="Render a Voronoi diagram to PNG frames")
    parser.add_argument("seed", nargs="?", default=settings.random_seed or "default",
                        help="Seed string for the random source")
    parser.add_argument("--width", type=int, default=settings.default_width)
    parser.add_argument("--height", type=int, default=settings.default_height)
    parser.add_argument("--seeds", type=int, default=settings.default_num_seeds,
                        help="Number of seeds")
    parser.add_argument("--out", default="frames", help="Output directory")
    parser.add_argument("--every", type=int, default=1,
                        help="Write every N-th frame")
    parser.add_argument("--hide-iterations", action="store_true",
                        default=settings.hide_iterations,
                        help="Render only the finished diagram")
    parser.add_argument("--tie-break", choices=[t.value for t in TieBreak],
                        default=settings.tie_break.value)
    args = parser.parse_args(argv)

    render(args.seed, args.width, args.height, args.seeds, args.out,
           every=args.every, hide_iterations=args.hide_iterations,
           tie_break=TieBreak(args.tie_break))


if __name__ == "__main__":
    main()
