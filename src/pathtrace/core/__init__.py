"""Core rendering module.

This module contains the building blocks of the path tracer:

Components:
    ray: Ray data structure and ray helpers
    rng: xorshift32 random state, uniform floats and unit-vector sampling
    integrator: Path tracing and the per-frame Accumulate/Present passes
    progressive: Host-side render loop owning the frame index

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import Ray, make_ray, normalized_ray, ray_at, vec2, vec3
from .rng import next_f32, next_u32, next_unit_vector, seed_from_pixel, xorshift32

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.pathtrace.core.integrator or src.pathtrace.core.progressive.
#
# For progressive rendering, use:
#   from src.pathtrace.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "normalized_ray",
    "vec2",
    "vec3",
    "xorshift32",
    "next_u32",
    "next_f32",
    "next_unit_vector",
    "seed_from_pixel",
]
