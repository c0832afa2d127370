"""Keyboard fly-camera controller.

Holds the free camera state (location, look-at point and basis) and
applies per-frame movement and rotation input to it:

    Movement:  D / A  right / left
               R / F  up / down
               W / S  forward / backward
    Rotation:  Right / Left arrows  turn (elevation angle)
               Down / Up arrows     tilt (azimuth from +Y)

The view direction is kept in spherical form around the world +Y axis.
Azimuth is clamped away from the poles so the basis never degenerates.

The controller is plain Python so it can be driven by any window system;
the interactive preview feeds it from Taichi GGUI key state.
"""

import math
from collections.abc import Collection
from dataclasses import dataclass, field

import numpy as np

from src.pathtrace.camera.pinhole import Camera, camera_basis, projection_extent

# World units per second at full movement input
MOVE_SPEED = 8.0

# Radians per second at full rotation input
ROTATE_SPEED = 2.0

# Input axis length below which the camera is left untouched
INPUT_DEADZONE = 0.01

# Azimuth stays within [AZIMUTH_MARGIN, pi - AZIMUTH_MARGIN]
AZIMUTH_MARGIN = 0.01

WORLD_UP = (0.0, 1.0, 0.0)

# Key names as reported by the preview window
KEY_RIGHT = "d"
KEY_LEFT = "a"
KEY_RISE = "r"
KEY_FALL = "f"
KEY_FORWARD = "w"
KEY_BACKWARD = "s"
KEY_TURN_RIGHT = "Right"
KEY_TURN_LEFT = "Left"
KEY_TILT_DOWN = "Down"
KEY_TILT_UP = "Up"


def _zeros() -> np.ndarray:
    return np.zeros(3, dtype=np.float32)


@dataclass
class CameraController:
    """Mutable fly-camera state.

    Attributes:
        location: Camera position.
        at: Point the camera looks at.
        direction: Unit view direction.
        right: Unit right vector.
        up: Unit up vector.
    """

    location: np.ndarray = field(default_factory=_zeros)
    at: np.ndarray = field(default_factory=_zeros)
    direction: np.ndarray = field(default_factory=_zeros)
    right: np.ndarray = field(default_factory=_zeros)
    up: np.ndarray = field(default_factory=_zeros)

    @classmethod
    def looking_at(
        cls,
        location: tuple[float, float, float],
        at: tuple[float, float, float],
        approx_up: tuple[float, float, float] = WORLD_UP,
    ) -> "CameraController":
        """Create a controller positioned at `location` and looking at `at`."""
        controller = cls()
        controller.set(location, at, approx_up)
        return controller

    def set(self, location, at, approx_up=WORLD_UP) -> None:
        """Place the camera and rebuild its basis.

        Args:
            location: Camera position.
            at: Point to look at.
            approx_up: Rough up direction.
        """
        self.direction, self.right, self.up = camera_basis(location, at, approx_up)
        self.location = np.asarray(location, dtype=np.float32)
        self.at = np.asarray(at, dtype=np.float32)

    def update(
        self,
        move_axis: tuple[float, float, float],
        rotate_axis: tuple[float, float],
        delta_time: float,
    ) -> bool:
        """Apply one frame of input.

        Args:
            move_axis: (right, up, forward) movement input, each in [-1, 1].
            rotate_axis: (turn, tilt) rotation input, each in [-1, 1].
            delta_time: Seconds since the previous frame.

        Returns:
            True if the camera changed (the accumulation must be reset),
            False if the input was below the dead zone.
        """
        move = np.asarray(move_axis, dtype=np.float32)
        rotate = np.asarray(rotate_axis, dtype=np.float32)
        if np.linalg.norm(move) <= INPUT_DEADZONE and np.linalg.norm(rotate) <= INPUT_DEADZONE:
            return False

        movement = (
            self.right * move[0] + self.up * move[1] + self.direction * move[2]
        ) * (delta_time * MOVE_SPEED)

        dx, dy, dz = (float(c) for c in self.direction)
        azimuth = math.acos(max(-1.0, min(1.0, dy)))
        horizontal = math.sqrt(dx * dx + dz * dz)
        cos_elevation = dx / horizontal if horizontal > 0.0 else 1.0
        elevation = math.copysign(1.0, dz) * math.acos(max(-1.0, min(1.0, cos_elevation)))

        elevation += float(rotate[0]) * delta_time * ROTATE_SPEED
        azimuth += float(rotate[1]) * delta_time * ROTATE_SPEED
        azimuth = min(max(azimuth, AZIMUTH_MARGIN), math.pi - AZIMUTH_MARGIN)

        new_direction = np.array(
            [
                math.sin(azimuth) * math.cos(elevation),
                math.cos(azimuth),
                math.sin(azimuth) * math.sin(elevation),
            ],
            dtype=np.float32,
        )

        new_location = self.location + movement
        self.set(new_location, new_location + new_direction, WORLD_UP)
        return True

    def to_camera(self, width: int, height: int, near: float = 1.0) -> Camera:
        """Build the camera record for a viewport of the given size."""
        projection_width, projection_height = projection_extent(width, height)
        return Camera(
            location=tuple(float(c) for c in self.location),
            direction=tuple(float(c) for c in self.direction),
            right=tuple(float(c) for c in self.right),
            up=tuple(float(c) for c in self.up),
            near=near,
            projection_width=projection_width,
            projection_height=projection_height,
        )


def axes_from_keys(pressed: Collection[str]) -> tuple[tuple[float, float, float], tuple[float, float]]:
    """Convert a set of pressed key names into movement and rotation axes.

    Args:
        pressed: Names of the keys currently held down.

    Returns:
        Tuple of (move_axis, rotate_axis).
    """

    def _axis(positive: str, negative: str) -> float:
        return float(positive in pressed) - float(negative in pressed)

    move_axis = (
        _axis(KEY_RIGHT, KEY_LEFT),
        _axis(KEY_RISE, KEY_FALL),
        _axis(KEY_FORWARD, KEY_BACKWARD),
    )
    rotate_axis = (
        _axis(KEY_TURN_RIGHT, KEY_TURN_LEFT),
        _axis(KEY_TILT_DOWN, KEY_TILT_UP),
    )
    return move_axis, rotate_axis
