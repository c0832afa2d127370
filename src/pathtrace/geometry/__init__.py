"""Geometry module for analytic primitives.

This module provides the ray-primitive intersection routines:

Components:
    sphere: Sphere primitive and the shared HitRecord
    plane: Infinite plane primitive
    box: Axis-aligned box with boolean and full slab tests

All intersection routines are Taichi functions (@ti.func) and follow the
pattern:
    record = hit_shape(ray, shape)
where record.distance and record.normal are only meaningful when
record.is_hit == 1.
"""

from .box import Box, hit_box, hit_box_any
from .plane import Plane, hit_plane
from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "HitRecord",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Plane",
    "hit_plane",
    "Box",
    "hit_box",
    "hit_box_any",
]
