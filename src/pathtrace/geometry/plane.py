"""Infinite plane primitive.

A plane is given by any point on it and its normal. The hit distance is

    t = dot(point - origin, normal) / dot(normal, direction)

and the ray hits iff t > 0. A ray parallel to the plane divides by zero;
the resulting infinity or NaN fails the t > 0 test (or loses every
nearest-hit comparison) without special handling.

The plane is one-sided only in its reported normal: the normal is returned
as stored, whichever side the ray arrives from.
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray, vec3
from src.pathtrace.geometry.sphere import HitRecord, make_miss_record


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane (vec3).
        normal: The plane normal (vec3, unit length).
    """

    point: vec3
    normal: vec3


@ti.func
def hit_plane(ray: Ray, plane: Plane) -> HitRecord:
    """Test a ray against an infinite plane.

    Args:
        ray: The ray to test. Its direction must be unit length.
        plane: The plane to test against.

    Returns:
        A HitRecord with the plane normal on a hit.
    """
    distance = tm.dot(plane.point - ray.origin, plane.normal) / tm.dot(
        plane.normal, ray.direction
    )

    record = make_miss_record()
    if distance > 0.0:
        record = HitRecord(is_hit=1, distance=distance, normal=plane.normal)

    return record
