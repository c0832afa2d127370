"""Scene module for the primitive tables and nearest-hit queries.

Components:
    intersection: Structure-of-Arrays primitive tables and intersect_scene()
    default_scene: The default light/sphere/ground/box arrangement

Primitives are installed from Python with add_sphere(), add_plane() and
add_box(); kernels query them with intersect_scene().
"""

from .default_scene import create_default_camera, load_default_scene
from .intersection import (
    MAX_BOXES,
    MAX_PLANES,
    MAX_SPHERES,
    SceneHitRecord,
    add_box,
    add_plane,
    add_sphere,
    clear_scene,
    get_box_count,
    get_plane_count,
    get_sphere_count,
    intersect_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_plane",
    "add_box",
    "clear_scene",
    "get_sphere_count",
    "get_plane_count",
    "get_box_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_PLANES",
    "MAX_BOXES",
    # Default scene module
    "load_default_scene",
    "create_default_camera",
]
