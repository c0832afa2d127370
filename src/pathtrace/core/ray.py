"""Ray data structure and small vector helpers.

This module provides the Ray dataclass shared by the camera, the geometry
routines and the integrator. All helpers are Taichi functions and can only
be called from within kernels.

Example (inside a kernel):
    >>> ray = normalized_ray(Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, 0.0, -2.0)))
    >>> hit_point = ray_at(ray, 3.0)  # (0, 1, -3)
"""

import taichi as ti
import taichi.math as tm

# Type aliases for Taichi vectors
vec2 = tm.vec2
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not guaranteed to
            be unit length at construction; the integrator normalizes it
            before tracing.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def normalized_ray(ray: Ray) -> Ray:
    """Return a copy of the ray with a unit-length direction."""
    return Ray(origin=ray.origin, direction=tm.normalize(ray.direction))
