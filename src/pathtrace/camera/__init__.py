"""Camera module for view setup and primary ray generation.

Components:
    pinhole: Camera record, look-at construction and pixel_to_ray()
    controller: Keyboard fly-camera state for the interactive preview

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across the image
    v in [0, 1]: bottom to top across the image
"""

from .controller import CameraController, axes_from_keys
from .pinhole import (
    Camera,
    camera_basis,
    get_camera_info,
    get_camera_location,
    is_camera_ready,
    look_at,
    pixel_to_ray,
    projection_extent,
    reset_camera,
    setup_camera,
)

__all__ = [
    "Camera",
    "camera_basis",
    "look_at",
    "projection_extent",
    "setup_camera",
    "reset_camera",
    "is_camera_ready",
    "pixel_to_ray",
    "get_camera_location",
    "get_camera_info",
    "CameraController",
    "axes_from_keys",
]
