"""Progressive renderer driving the per-frame passes.

This module plays the host side of the render loop. It owns the
static_frame_index counter and keeps it coupled to the accumulation
buffers:

- every rendered frame while the camera is still increments the index;
- uploading a camera, resizing, or an explicit reset sets it back to 0, so
  the next Accumulate pass overwrites the running sum.

The buffers themselves are never cleared on reset; frame 0 replaces their
contents.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.pathtrace.core.progressive import ProgressiveRenderer
    >>> from src.pathtrace.scene.default_scene import create_default_camera, load_default_scene
    >>>
    >>> load_default_scene()
    >>> renderer = ProgressiveRenderer(512, 512)
    >>> renderer.set_camera(create_default_camera(512, 512))
    >>> renderer.render(100)  # Accumulate 100 frames
    >>> image = renderer.get_image_numpy()
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.pathtrace.camera.pinhole import Camera, setup_camera
from src.pathtrace.core.integrator import (
    MAX_FRAME_INDEX,
    SAMPLES_PER_PIXEL,
    System,
    get_image_numpy,
    render_frame,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (frames_accumulated, target_frames)
ProgressCallback = Callable[[int, int], None]


def frame_clock() -> float:
    """Seconds from the wall clock, wrapped to keep float32 precision.

    The low 24 bits of the millisecond timestamp are kept, so the value
    cycles every ~4.66 hours and always fits a float32 with millisecond
    resolution.
    """
    return (time.time_ns() // 1_000_000 & 0xFFFFFF) / 1000.0


class ProgressiveRenderer:
    """A renderer that converges a static view over successive frames.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        clock: Callable[[], float] = frame_clock,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            clock: Source of the per-frame time value.

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        self._clock = clock
        self._frame_index = 0
        self._camera: Camera | None = None
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def frame_index(self) -> int:
        """The static_frame_index the next frame will be rendered with."""
        return self._frame_index

    @property
    def frame_count(self) -> int:
        """Number of frames in the current running mean."""
        return self._frame_index

    @property
    def sample_count(self) -> int:
        """Number of path samples per pixel in the current running mean."""
        return self._frame_index * SAMPLES_PER_PIXEL

    @property
    def camera(self) -> Camera | None:
        """The camera last uploaded through set_camera()."""
        return self._camera

    def set_camera(self, camera: Camera) -> None:
        """Upload a new camera and restart accumulation."""
        setup_camera(camera)
        self._camera = camera
        self.reset()

    def reset(self) -> None:
        """Restart accumulation; the next frame overwrites the running sum."""
        if self._frame_index:
            logger.debug("Accumulation reset after %d frames", self._frame_index)
        self._frame_index = 0

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and restart accumulation.

        If a camera was set, its projection extent is left unchanged; upload
        a camera built for the new viewport to keep pixels square.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.reset()

    def render_frame(self, time_value: float | None = None) -> None:
        """Render one frame and advance the frame index.

        Args:
            time_value: Frame time in seconds. Defaults to the renderer clock.

        Raises:
            RuntimeError: If no camera has been uploaded.
        """
        if self._frame_index > MAX_FRAME_INDEX:
            # The running mean cannot take more frames; hold the last image
            return

        system = System.for_frame(
            self._width,
            self._height,
            time=self._clock() if time_value is None else time_value,
            static_frame_index=self._frame_index,
        )
        render_frame(system)
        self._frame_index += 1

    def render(
        self,
        num_frames: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render frames progressively with optional progress callback.

        Args:
            num_frames: Number of frames to add to the running mean.
            batch_size: Frames rendered between callbacks.
            callback: Optional callback called after each batch with
                (frames_accumulated, target_frames).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} frames")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_frames, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_frames: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render frames progressively, yielding progress after each batch.

        Args:
            num_frames: Number of frames to add to the running mean.
            batch_size: Frames rendered before each yield.

        Yields:
            Tuple of (frames_accumulated, target_frames).
        """
        if num_frames <= 0:
            return

        target_frames = self._frame_index + num_frames
        remaining = num_frames
        while remaining > 0:
            batch = min(max(batch_size, 1), remaining)
            for _ in range(batch):
                self.render_frame()
            remaining -= batch
            yield (self._frame_index, target_frames)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the current running mean as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear, unclamped).
                Other values clamp to [0, 1] before encoding.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        image = get_image_numpy()

        if gamma != 1.0:
            image = np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)

        return image

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frame_count})"
        )
