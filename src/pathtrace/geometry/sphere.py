"""Sphere primitive with projection-based ray-sphere intersection.

The sphere test projects the sphere center onto the ray. The projection
length gives the closest-approach distance along the ray and the squared
perpendicular offset h^2 tells whether the ray passes within the radius:

    proj  = dot(center - origin, direction)
    h^2   = |center - origin|^2 - proj^2
    hit   = proj > 0 and h^2 <= radius^2
    t     = proj - sqrt(radius^2 - h^2)

When h > radius the square root argument is negative, so it is only
evaluated after the hit test passes. The distance and normal of a miss are
left at zero and must not be read.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import Ray, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of a single ray-primitive intersection test.

    Shared by the sphere, plane and box routines so the scene intersector
    can treat them uniformly.

    Attributes:
        is_hit: 1 if the ray hit the primitive, 0 otherwise.
        distance: Distance along the (unit) ray direction to the hit.
            Only meaningful if is_hit == 1.
        normal: Surface normal at the hit. Only meaningful if is_hit == 1.
    """

    is_hit: ti.i32
    distance: ti.f32
    normal: vec3


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(is_hit=0, distance=0.0, normal=vec3(0.0, 0.0, 0.0))


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere) -> HitRecord:
    """Test a ray against a sphere, returning the entry point.

    Args:
        ray: The ray to test. Its direction must be unit length.
        sphere: The sphere to test against.

    Returns:
        A HitRecord. On a hit, distance is the entry distance and normal
        points outward from the sphere center with unit length.
    """
    to_center = sphere.center - ray.origin
    proj_len = tm.dot(to_center, ray.direction)
    h_squared = tm.dot(to_center, to_center) - proj_len * proj_len
    radius_squared = sphere.radius * sphere.radius

    record = make_miss_record()
    if proj_len > 0.0 and h_squared <= radius_squared:
        distance = proj_len - ti.sqrt(radius_squared - h_squared)
        point = ray.origin + ray.direction * distance
        record = HitRecord(
            is_hit=1,
            distance=distance,
            normal=(point - sphere.center) / sphere.radius,
        )

    return record


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
