"""Pinhole camera model for primary ray generation.

The camera is described by its location and three basis vectors. The
image plane sits at distance `near` along `direction` and spans
+/- projection_width along `right` and +/- projection_height along `up`:

    x, y      = 2 * tex_coord - 1
    direction = normalize(direction * near
                          + right * projection_width * x
                          + up * projection_height * y)

`right` and `up` are not required to be unit length; any scale they carry
multiplies the half-extents. There is no lens model.

The camera record is uploaded into Taichi fields with setup_camera(), after
which pixel_to_ray() can be called from kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.camera.pinhole import look_at, setup_camera
    >>>
    >>> camera = look_at((0.0, 1.0, 4.0), (0.0, 0.0, 0.0), viewport=(800, 600))
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = pixel_to_ray(vec2(0.5, 0.5))  # Ray through the image center
"""

import logging
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray, make_ray, vec2, vec3

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]

# =============================================================================
# Camera Record
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Per-frame pinhole camera record.

    Attributes:
        location: Camera position in world space.
        direction: Viewing direction (unit length).
        right: Image-plane horizontal axis.
        up: Image-plane vertical axis.
        near: Distance from the camera to the image plane.
        projection_width: Half-width of the image plane at `near`.
        projection_height: Half-height of the image plane at `near`.
    """

    location: Vector3
    direction: Vector3
    right: Vector3
    up: Vector3
    near: float = 1.0
    projection_width: float = 1.0
    projection_height: float = 1.0


def projection_extent(width: int, height: int) -> tuple[float, float]:
    """Compute image-plane half-extents that keep pixels square.

    The shorter viewport side spans [-1, 1]; the longer side is stretched
    by the aspect ratio.

    Args:
        width: Viewport width in pixels.
        height: Viewport height in pixels.

    Returns:
        Tuple of (projection_width, projection_height).

    Raises:
        ValueError: If either dimension is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Viewport dimensions must be positive, got {width}x{height}")
    shortest = float(min(width, height))
    return width / shortest, height / shortest


def camera_basis(
    location: Vector3,
    at: Vector3,
    approx_up: Vector3 = (0.0, 1.0, 0.0),
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Build an orthonormal (direction, right, up) basis looking from location to at.

    Args:
        location: Camera position.
        at: Point being looked at.
        approx_up: Rough up direction; must not be parallel to the view.

    Returns:
        Tuple of unit vectors (direction, right, up) as float32 arrays.

    Raises:
        ValueError: If location equals at or approx_up is parallel to the view.
    """
    loc = np.asarray(location, dtype=np.float32)
    target = np.asarray(at, dtype=np.float32)
    vup = np.asarray(approx_up, dtype=np.float32)

    direction = target - loc
    norm = np.linalg.norm(direction)
    if norm < 1e-8:
        raise ValueError("Camera location and target must differ")
    direction = direction / norm

    right = np.cross(direction, vup)
    norm = np.linalg.norm(right)
    if norm < 1e-8:
        raise ValueError("Up vector must not be parallel to the view direction")
    right = right / norm

    up = np.cross(right, direction)
    up = up / np.linalg.norm(up)

    return direction, right, up


def look_at(
    location: Vector3,
    at: Vector3,
    approx_up: Vector3 = (0.0, 1.0, 0.0),
    *,
    viewport: tuple[int, int] = (1, 1),
    near: float = 1.0,
) -> Camera:
    """Create a camera at `location` looking toward `at`.

    Args:
        location: Camera position.
        at: Point being looked at.
        approx_up: Rough up direction.
        viewport: Viewport size in pixels, used for the projection extent.
        near: Image-plane distance.

    Returns:
        A Camera record.
    """
    direction, right, up = camera_basis(location, at, approx_up)
    width, height = projection_extent(*viewport)
    return Camera(
        location=tuple(float(c) for c in location),
        direction=tuple(float(c) for c in direction),
        right=tuple(float(c) for c in right),
        up=tuple(float(c) for c in up),
        near=near,
        projection_width=width,
        projection_height=height,
    )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_location = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_near = ti.field(dtype=ti.f32, shape=())
# (projection_width, projection_height)
_camera_projection = ti.Vector.field(2, dtype=ti.f32, shape=())

_camera_initialized = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload a camera record for use by pixel_to_ray().

    Args:
        camera: The camera record for the coming frames.
    """
    _camera_location[None] = list(camera.location)
    _camera_direction[None] = list(camera.direction)
    _camera_right[None] = list(camera.right)
    _camera_up[None] = list(camera.up)
    _camera_near[None] = camera.near
    _camera_projection[None] = [camera.projection_width, camera.projection_height]
    _camera_initialized[None] = 1
    logger.debug("Camera uploaded: location=%s direction=%s", camera.location, camera.direction)


def is_camera_ready() -> bool:
    """Check whether a camera has been uploaded."""
    return bool(_camera_initialized[None])


def reset_camera() -> None:
    """Mark the camera as not uploaded."""
    _camera_initialized[None] = 0


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def pixel_to_ray(tex_coord: vec2) -> Ray:
    """Generate the primary ray through a normalized image coordinate.

    Args:
        tex_coord: Image coordinate in [0, 1] x [0, 1]; (0, 0) is the
            bottom-left corner and (1, 1) the top-right corner.

    Returns:
        A Ray from the camera location with unit-length direction.
    """
    x = tex_coord.x * 2.0 - 1.0
    y = tex_coord.y * 2.0 - 1.0
    extent = _camera_projection[None]

    direction = tm.normalize(
        _camera_direction[None] * _camera_near[None]
        + _camera_right[None] * extent.x * x
        + _camera_up[None] * extent.y * y
    )
    return make_ray(_camera_location[None], direction)


@ti.func
def get_camera_location() -> vec3:
    """Get the camera location in world space."""
    return _camera_location[None]


def get_camera_info() -> dict[str, tuple[float, ...]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with location, direction, right, up, near and projection.
    """

    def _as_tuple(value) -> tuple[float, ...]:
        return tuple(float(c) for c in value)

    return {
        "location": _as_tuple(_camera_location[None]),
        "direction": _as_tuple(_camera_direction[None]),
        "right": _as_tuple(_camera_right[None]),
        "up": _as_tuple(_camera_up[None]),
        "near": (float(_camera_near[None]),),
        "projection": _as_tuple(_camera_projection[None]),
    }
