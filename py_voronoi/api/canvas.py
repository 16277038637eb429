"""
Frame-driven presentation adapter for the tessellation engine.

A Canvas advances the engine once per frame while it is running, lets the
user pause/resume and reseed, and hands every exported frame to a display
sink: any callable accepting the RGBA buffer.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import structlog

from ..core.tessellation import TessellationEngine

logger = structlog.get_logger()

PixelSink = Callable[[bytes], None]


@dataclass
class CanvasOptions:
    """Animation options for a canvas."""

    frame_delay: float = 0.0  # seconds slept before each frame is drawn
    hide_iterations: bool = False  # run every update to completion

    def __post_init__(self):
        if self.frame_delay < 0:
            raise ValueError(f"frame_delay must be >= 0, got {self.frame_delay}")

    @classmethod
    def from_settings(cls, settings) -> "CanvasOptions":
        """Build options from `Settings` or a diagram request (`frame_delay_ms`, `hide_iterations`)."""
        return cls(frame_delay=settings.frame_delay_ms / 1000.0,
                   hide_iterations=settings.hide_iterations)


class Canvas:
    """Drives one engine frame by frame."""

    def __init__(self, engine: TessellationEngine,
                 options: Optional[CanvasOptions] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.engine = engine
        self.options = options or CanvasOptions()
        self.running = True
        self.frames_drawn = 0
        self._sleep = sleep

    @property
    def frame_size(self) -> int:
        return self.engine.width * self.engine.height * 4

    def layout(self) -> Tuple[int, int]:
        return self.engine.layout()

    def toggle_running(self) -> bool:
        """Pause or resume the animation. Returns the new running flag."""
        self.running = not self.running
        logger.info("Canvas toggled", running=self.running)
        return self.running

    def reseed(self) -> None:
        """Restart the diagram with fresh random seeds, same dimensions."""
        self.engine.init()

    def update(self) -> bool:
        """
        Advance the engine by one frame's worth of growth.

        Returns:
            True if the engine was stepped
        """
        if not self.running or self.engine.is_complete:
            return False

        self.engine.step(self.options.hide_iterations)
        return True

    def draw(self, sink: PixelSink) -> None:
        """
        Export the current diagram to the sink.

        Raises:
            ValueError: If the exported buffer does not match the canvas size
        """
        if self.options.frame_delay > 0:
            self._sleep(self.options.frame_delay)

        pixels = self.engine.to_pixels()
        if len(pixels) != self.frame_size:
            raise ValueError(
                f"Frame holds {len(pixels)} bytes, display expects {self.frame_size}"
            )

        sink(pixels)
        self.frames_drawn += 1

    def run(self, sink: PixelSink, max_frames: Optional[int] = None) -> int:
        """
        Update and draw until the diagram is complete.

        The final, complete frame is always drawn. A paused canvas draws a
        single frame and returns.

        Args:
            sink: Display sink receiving every frame
            max_frames: Stop after this many frames

        Returns:
            Number of frames drawn
        """
        frames = 0
        while max_frames is None or frames < max_frames:
            advanced = self.update()
            if not advanced and frames > 0:
                break

            self.draw(sink)
            frames += 1

            if not advanced:
                break

        logger.info("Canvas run finished", frames=frames,
                    radius=self.engine.radius,
                    complete=self.engine.is_complete)
        return frames
