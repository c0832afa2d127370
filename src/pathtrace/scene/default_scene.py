"""Default scene configuration.

The default scene is a small outdoor-style arrangement lit only by an
emissive sphere:

- Light: emissive sphere hovering above the ground
- Diffuse sphere: reddish ball resting on the ground
- Ground: infinite horizontal plane, guarded by a thin bounding slab
- Box: bluish axis-aligned block resting on the ground

There is no sky term, so everything not lit by the light sphere (directly
or through bounces) renders black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.pathtrace.scene.default_scene import create_default_camera, load_default_scene
    >>> from src.pathtrace.camera.pinhole import setup_camera
    >>>
    >>> load_default_scene()
    >>> setup_camera(create_default_camera(800, 600))
"""

import logging

from src.pathtrace.camera.pinhole import Camera, look_at
from src.pathtrace.core.ray import vec3
from src.pathtrace.scene.intersection import add_box, add_plane, add_sphere, clear_scene

logger = logging.getLogger(__name__)

# =============================================================================
# Default Scene Parameters
# =============================================================================

LIGHT_CENTER = (0.0, 3.0, -2.0)
LIGHT_RADIUS = 1.0
LIGHT_EMISSION = (8.0, 8.0, 8.0)

SPHERE_CENTER = (-1.0, 1.0, -2.5)
SPHERE_RADIUS = 1.0
SPHERE_COLOR = (0.8, 0.3, 0.3)

GROUND_POINT = (0.0, 0.0, 0.0)
GROUND_NORMAL = (0.0, 1.0, 0.0)
# Thin slab around y = 0; rays outside it skip the plane test
GROUND_BOUNDS_MIN = (-20.0, -0.01, -20.0)
GROUND_BOUNDS_MAX = (20.0, 0.01, 20.0)
GROUND_COLOR = (0.6, 0.6, 0.6)

BOX_MIN = (0.5, 0.0, -3.0)
BOX_MAX = (1.5, 1.5, -1.5)
BOX_COLOR = (0.3, 0.6, 0.8)

# Starting viewpoint of the interactive preview
CAMERA_LOCATION = (-3.2, 2.8, 0.3)
CAMERA_LOOK_AT = (-2.4, 2.4, -0.1)
CAMERA_UP = (0.0, 1.0, 0.0)


def load_default_scene() -> None:
    """Replace the scene tables with the default scene."""
    clear_scene()

    add_sphere(vec3(*LIGHT_CENTER), LIGHT_RADIUS, color=(0.0, 0.0, 0.0), emission=LIGHT_EMISSION)
    add_sphere(vec3(*SPHERE_CENTER), SPHERE_RADIUS, color=SPHERE_COLOR)
    add_plane(
        vec3(*GROUND_POINT),
        vec3(*GROUND_NORMAL),
        vec3(*GROUND_BOUNDS_MIN),
        vec3(*GROUND_BOUNDS_MAX),
        color=GROUND_COLOR,
    )
    add_box(vec3(*BOX_MIN), vec3(*BOX_MAX), color=BOX_COLOR)

    logger.debug("Default scene loaded: 2 spheres, 1 plane, 1 box")


def create_default_camera(width: int, height: int) -> Camera:
    """Create the default camera for a viewport.

    Args:
        width: Viewport width in pixels.
        height: Viewport height in pixels.

    Returns:
        A Camera at CAMERA_LOCATION looking at CAMERA_LOOK_AT.
    """
    return look_at(CAMERA_LOCATION, CAMERA_LOOK_AT, CAMERA_UP, viewport=(width, height))
