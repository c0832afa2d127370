"""Axis-aligned box primitive using the slab test.

For each axis the ray enters and leaves the slab between the two box
corners at parametric distances (p0 - origin) / direction and
(p1 - origin) / direction. The box is hit when the latest entry (t_near)
comes no later than the earliest exit (t_far) and the exit is in front of
the origin:

    hit = t_far >= max(t_near, 0)

Two variants are provided. hit_box_any only answers the yes/no question and
is used as a cheap coarse rejection in front of more expensive tests.
hit_box also reports the entry distance and an axis-aligned normal.

The normal is assembled from every axis whose entry distance compares
exactly equal to t_near. A ray through an edge or corner can therefore
select two or three axes (a non-unit normal), and a NaN entry distance can
select none. This is kept as is.
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray, vec3
from src.pathtrace.geometry.sphere import HitRecord, make_miss_record


@ti.dataclass
class Box:
    """An axis-aligned box.

    Attributes:
        p0: The minimum corner (vec3).
        p1: The maximum corner (vec3).
    """

    p0: vec3
    p1: vec3


@ti.func
def _slab_entries(ray: Ray, box: Box):
    """Compute per-axis entry distances and the combined interval.

    Returns:
        A tuple (entries, t_near, t_far) where entries holds the per-axis
        entry distances.
    """
    inv_direction = 1.0 / ray.direction
    t0 = (box.p0 - ray.origin) * inv_direction
    t1 = (box.p1 - ray.origin) * inv_direction
    entries = tm.min(t0, t1)
    exits = tm.max(t0, t1)
    t_near = ti.max(ti.max(entries.x, entries.y), entries.z)
    t_far = ti.min(ti.min(exits.x, exits.y), exits.z)
    return entries, t_near, t_far


@ti.func
def hit_box_any(ray: Ray, box: Box) -> ti.i32:
    """Boolean slab test.

    Args:
        ray: The ray to test.
        box: The box to test against.

    Returns:
        1 if the ray hits the box, 0 otherwise.
    """
    _, t_near, t_far = _slab_entries(ray, box)
    result = 0
    if t_far >= ti.max(t_near, 0.0):
        result = 1
    return result


@ti.func
def hit_box(ray: Ray, box: Box) -> HitRecord:
    """Slab test reporting the entry distance and face normal.

    Args:
        ray: The ray to test. Its direction must be unit length.
        box: The box to test against.

    Returns:
        A HitRecord whose distance is t_near. The normal points against the
        ray on every axis whose entry distance equals t_near.
    """
    entries, t_near, t_far = _slab_entries(ray, box)

    record = make_miss_record()
    if t_far >= ti.max(t_near, 0.0):
        axis_mask = vec3(
            ti.cast(entries.x == t_near, ti.f32),
            ti.cast(entries.y == t_near, ti.f32),
            ti.cast(entries.z == t_near, ti.f32),
        )
        record = HitRecord(
            is_hit=1,
            distance=t_near,
            normal=-axis_mask * tm.sign(ray.direction),
        )

    return record
