"""Interactive fly-through preview using Taichi GGUI.

The preview window drives the whole render loop:

1. Reads the held keys and feeds them to a CameraController
2. If the camera moved, uploads the new camera (restarting accumulation)
3. Renders one frame into the running mean
4. Displays the tone-mapped, gamma-encoded result

While the camera stays still the image keeps converging. The frame rate
is logged once per second.

Controls:
    W / S        forward / backward
    A / D        left / right
    R / F        up / down
    Arrow keys   turn and tilt
    Space        restart accumulation

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.pathtrace.preview.interactive import InteractivePreview
    >>> from src.pathtrace.scene.default_scene import load_default_scene
    >>>
    >>> load_default_scene()
    >>> preview = InteractivePreview(800, 600)
    >>> preview.run()  # Blocks until the window is closed
"""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from src.pathtrace.camera.controller import (
    KEY_BACKWARD,
    KEY_FALL,
    KEY_FORWARD,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_RISE,
    KEY_TILT_DOWN,
    KEY_TILT_UP,
    KEY_TURN_LEFT,
    KEY_TURN_RIGHT,
    CameraController,
    axes_from_keys,
)
from src.pathtrace.core.progressive import ProgressiveRenderer
from src.pathtrace.preview.display import ToneMapMethod, process_image_for_display
from src.pathtrace.scene.default_scene import CAMERA_LOCATION, CAMERA_LOOK_AT, CAMERA_UP

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

CONTROL_KEYS = (
    KEY_RIGHT,
    KEY_LEFT,
    KEY_RISE,
    KEY_FALL,
    KEY_FORWARD,
    KEY_BACKWARD,
    KEY_TURN_RIGHT,
    KEY_TURN_LEFT,
    KEY_TILT_DOWN,
    KEY_TILT_UP,
)

KEY_RESET = " "

# Seconds between FPS log lines
FPS_INTERVAL = 1.0


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        controller: The fly-camera state driven by the keyboard.
        display_image: Taichi field holding the displayed image.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Path Tracer - Interactive Preview",
        controller: CameraController | None = None,
        tone_map: ToneMapMethod = "reinhard",
        gamma: float = 2.2,
    ) -> None:
        """Initialize the preview.

        The window itself is created lazily on first use so the object can
        be constructed in headless environments.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.
            controller: Initial camera state. Defaults to the default
                scene's viewpoint.
            tone_map: Tone mapping applied before display.
            gamma: Gamma encoding applied before display.
        """
        self.width = width
        self.height = height
        self._title = title
        self._tone_map = tone_map
        self._gamma = gamma

        self.controller = controller or CameraController.looking_at(
            CAMERA_LOCATION, CAMERA_LOOK_AT, CAMERA_UP
        )
        self.renderer = ProgressiveRenderer(width, height)
        self.renderer.set_camera(self.controller.to_camera(width, height))

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Shape is (width, height) for the Taichi field, RGB values as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

        self._last_time: float | None = None
        self._fps_window_start: float | None = None
        self._fps_frames = 0

    def _initialize_window(self) -> None:
        if self._window is not None:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: npt.NDArray[np.float32]) -> None:
        """Update the display image from a NumPy array.

        Args:
            image: Display-ready array of shape (height, width, 3), row 0 at
                the top.

        Raises:
            ValueError: If the image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(f"Image shape {image.shape} doesn't match expected {expected_shape}")

        # Taichi fields are indexed (x, y) with the origin at the bottom-left
        image_transposed = np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))
        self.display_image.from_numpy(image_transposed)

    def pressed_keys(self) -> set[str]:
        """Get the control keys currently held down."""
        return {key for key in CONTROL_KEYS if self.window.is_pressed(key)}

    def apply_input(self, pressed: set[str], delta_time: float) -> bool:
        """Move the camera from held keys, restarting accumulation if it moved.

        Args:
            pressed: Names of the keys currently held down.
            delta_time: Seconds since the previous frame.

        Returns:
            True if the camera moved.
        """
        move_axis, rotate_axis = axes_from_keys(pressed)
        if not self.controller.update(move_axis, rotate_axis, delta_time):
            return False
        self.renderer.set_camera(self.controller.to_camera(self.width, self.height))
        return True

    def step(self, pressed: set[str], now: float) -> None:
        """Advance the preview by one displayed frame.

        Args:
            pressed: Names of the keys currently held down.
            now: Current time in seconds from a monotonic clock.
        """
        delta_time = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now

        self.apply_input(pressed, delta_time)
        self.renderer.render_frame()

        image = process_image_for_display(
            self.renderer.get_image_numpy(),
            tone_map=self._tone_map,
            gamma=self._gamma,
        )
        self.update_image(image)
        self._count_frame(now)

    def _count_frame(self, now: float) -> None:
        if self._fps_window_start is None:
            self._fps_window_start = now
        self._fps_frames += 1

        elapsed = now - self._fps_window_start
        if elapsed >= FPS_INTERVAL:
            logger.info(
                "FPS: %.1f (%d frames accumulated)",
                self._fps_frames / elapsed,
                self.renderer.frame_count,
            )
            self._fps_window_start = now
            self._fps_frames = 0

    def _handle_events(self) -> None:
        for event in self.window.get_events(ti.ui.PRESS):
            if event.key == KEY_RESET:
                self.renderer.reset()
            elif event.key == ti.ui.ESCAPE:
                self.window.running = False

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the display image in the window."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Run the render loop until the window is closed."""
        self._initialize_window()
        logger.debug("Interactive preview started at %dx%d", self.width, self.height)

        while self.is_running():
            self._handle_events()
            self.step(self.pressed_keys(), time.perf_counter())
            self.show_frame()

    def close(self) -> None:
        """Stop the render loop."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        if os.uname().sysname == "Darwin":
            # SSH sessions without X forwarding have no display
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)
