"""Scene-level nearest-hit queries over the primitive tables.

The scene is a small closed set of primitives: spheres, infinite planes
(each guarded by a coarse bounding box) and axis-aligned boxes. Every
primitive carries its own material, a diffuse color and an emitted
radiance. Primitives are stored in Taichi fields in Structure-of-Arrays
layout and are installed from Python before rendering starts; changing the
tables while frames are being accumulated requires an accumulation reset.

intersect_scene scans every primitive in a fixed order (spheres, then
planes, then boxes, each in insertion order) and keeps the closest hit. A
candidate only replaces the current best when it is strictly closer, so the
first primitive encountered wins exact ties.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.scene.intersection import (
    ...     add_sphere, add_box, clear_scene, intersect_scene, vec3
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, color=(0.8, 0.2, 0.2))
    >>> add_box(vec3(1, 0, -2), vec3(2, 1, -1), color=(0.2, 0.2, 0.8))
    >>> # Use intersect_scene within a Taichi kernel
"""

import math

import taichi as ti

from src.pathtrace.core.ray import Ray, vec3
from src.pathtrace.geometry.box import Box, hit_box, hit_box_any
from src.pathtrace.geometry.plane import Plane, hit_plane
from src.pathtrace.geometry.sphere import HitRecord, Sphere, hit_sphere

Color = tuple[float, float, float]


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        is_hit: 1 if any primitive was hit, 0 otherwise.
        distance: Distance along the ray to the closest hit.
            Only meaningful if is_hit == 1.
        normal: Surface normal at the closest hit.
            Only meaningful if is_hit == 1.
        color: Diffuse albedo of the hit surface.
        emission: Radiance emitted by the hit surface.
    """

    is_hit: ti.i32
    distance: ti.f32
    normal: vec3
    color: vec3
    emission: vec3


# Maximum number of primitives of each kind
MAX_SPHERES = 16
MAX_PLANES = 4
MAX_BOXES = 16

# Initial "closest so far" distance for nearest-hit searches
NO_HIT_DISTANCE = 1e30

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage: each plane has a coarse bounding box tested first
plane_points = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_bounds_min = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_bounds_max = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Box storage
box_min_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_max_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
num_boxes = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all primitives from the scene.

    Resets the primitive counts to zero. The field data is overwritten when
    new primitives are added.
    """
    num_spheres[None] = 0
    num_planes[None] = 0
    num_boxes[None] = 0


def add_sphere(
    center: vec3,
    radius: float,
    color: Color = (0.0, 0.0, 0.0),
    emission: Color = (0.0, 0.0, 0.0),
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        color: Diffuse albedo.
        emission: Emitted radiance.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_colors[idx] = color
    sphere_emissions[idx] = emission
    num_spheres[None] = idx + 1
    return idx


def add_plane(
    point: vec3,
    normal: vec3,
    bounds_min: vec3,
    bounds_max: vec3,
    color: Color = (0.0, 0.0, 0.0),
    emission: Color = (0.0, 0.0, 0.0),
) -> int:
    """Add an infinite plane guarded by a coarse bounding box.

    Rays that miss the bounding box never reach the plane test, so the box
    also limits how far the plane extends in practice.

    Args:
        point: Any point on the plane.
        normal: The plane normal. Normalized before storing.
        bounds_min: Minimum corner of the rejection box.
        bounds_max: Maximum corner of the rejection box.
        color: Diffuse albedo.
        emission: Emitted radiance.

    Returns:
        The index of the added plane.

    Raises:
        ValueError: If the normal has zero length or the bounds are inverted.
        RuntimeError: If the maximum number of planes is exceeded.
    """
    nx, ny, nz = float(normal[0]), float(normal[1]), float(normal[2])
    length = math.sqrt(nx * nx + ny * ny + nz * nz)
    if length < 1e-8:
        raise ValueError("Plane normal must have non-zero length")
    _check_corners(bounds_min, bounds_max)

    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    plane_points[idx] = point
    plane_normals[idx] = [nx / length, ny / length, nz / length]
    plane_bounds_min[idx] = bounds_min
    plane_bounds_max[idx] = bounds_max
    plane_colors[idx] = color
    plane_emissions[idx] = emission
    num_planes[None] = idx + 1
    return idx


def add_box(
    p0: vec3,
    p1: vec3,
    color: Color = (0.0, 0.0, 0.0),
    emission: Color = (0.0, 0.0, 0.0),
) -> int:
    """Add an axis-aligned box to the scene.

    Args:
        p0: The minimum corner.
        p1: The maximum corner.
        color: Diffuse albedo.
        emission: Emitted radiance.

    Returns:
        The index of the added box.

    Raises:
        ValueError: If any component of p0 exceeds the matching one of p1.
        RuntimeError: If the maximum number of boxes is exceeded.
    """
    _check_corners(p0, p1)
    idx = num_boxes[None]
    if idx >= MAX_BOXES:
        raise RuntimeError(f"Maximum number of boxes ({MAX_BOXES}) exceeded")
    box_min_corners[idx] = p0
    box_max_corners[idx] = p1
    box_colors[idx] = color
    box_emissions[idx] = emission
    num_boxes[None] = idx + 1
    return idx


def _check_corners(p0: vec3, p1: vec3) -> None:
    for axis in range(3):
        if float(p0[axis]) > float(p1[axis]):
            raise ValueError(f"Box corners are inverted on axis {axis}: {p0} > {p1}")


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_box_count() -> int:
    """Get the number of boxes in the scene."""
    return int(num_boxes[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, color: vec3, emission: vec3) -> SceneHitRecord:
    return SceneHitRecord(
        is_hit=rec.is_hit,
        distance=rec.distance,
        normal=rec.normal,
        color=color,
        emission=emission,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        is_hit=0,
        distance=NO_HIT_DISTANCE,
        normal=vec3(0.0, 0.0, 0.0),
        color=vec3(0.0, 0.0, 0.0),
        emission=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def intersect_scene(ray: Ray) -> SceneHitRecord:
    """Find the closest primitive hit along a ray.

    Args:
        ray: The ray to test. Its direction must be unit length.

    Returns:
        A SceneHitRecord for the closest hit carrying that primitive's
        normal, color and emission, or a miss record (is_hit == 0).
    """
    result = _make_miss_record()
    closest = NO_HIT_DISTANCE

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, Sphere(center=sphere_centers[i], radius=sphere_radii[i]))
        if rec.is_hit == 1 and rec.distance < closest:
            closest = rec.distance
            result = _to_scene_hit_record(rec, sphere_colors[i], sphere_emissions[i])

    for i in range(num_planes[None]):
        bounds = Box(p0=plane_bounds_min[i], p1=plane_bounds_max[i])
        if hit_box_any(ray, bounds) == 1:
            rec = hit_plane(ray, Plane(point=plane_points[i], normal=plane_normals[i]))
            if rec.is_hit == 1 and rec.distance < closest:
                closest = rec.distance
                result = _to_scene_hit_record(rec, plane_colors[i], plane_emissions[i])

    for i in range(num_boxes[None]):
        rec = hit_box(ray, Box(p0=box_min_corners[i], p1=box_max_corners[i]))
        if rec.is_hit == 1 and rec.distance < closest:
            closest = rec.distance
            result = _to_scene_hit_record(rec, box_colors[i], box_emissions[i])

    return result
