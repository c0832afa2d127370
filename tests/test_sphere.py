"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting a sphere head-on and off-center
- Ray missing a sphere (beside it and behind the origin)
- Ray grazing a sphere
- Ray starting inside a sphere (negative entry distance)
"""

import math

import taichi as ti


def _hit_sphere(origin, direction, center, radius):
    """Run hit_sphere on one ray and return (is_hit, distance, normal)."""
    from src.pathtrace.geometry.sphere import Sphere, hit_sphere
    from src.pathtrace.core.ray import Ray

    ray_origin = ti.field(dtype=ti.math.vec3, shape=())
    ray_direction = ti.field(dtype=ti.math.vec3, shape=())
    sphere_center = ti.field(dtype=ti.math.vec3, shape=())
    hit = ti.field(dtype=ti.i32, shape=())
    distance = ti.field(dtype=ti.f32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())

    ray_origin[None] = origin
    ray_direction[None] = direction
    sphere_center[None] = center

    @ti.kernel
    def test_kernel(r: ti.f32):
        ray = Ray(origin=ray_origin[None], direction=ti.math.normalize(ray_direction[None]))
        record = hit_sphere(ray, Sphere(center=sphere_center[None], radius=r))
        hit[None] = record.is_hit
        distance[None] = record.distance
        normal[None] = record.normal

    test_kernel(radius)
    n = normal[None]
    return hit[None], distance[None], (n[0], n[1], n[2])


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from src.pathtrace.geometry.sphere import make_sphere, vec3

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius_result[None] - 0.5) < 1e-6

    def test_miss_record_is_not_hit(self):
        """Test that make_miss_record reports no hit."""
        from src.pathtrace.geometry.sphere import make_miss_record

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            hit[None] = make_miss_record().is_hit

        test_kernel()
        assert hit[None] == 0


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        hit, distance, normal = _hit_sphere((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        assert abs(distance - 4.0) < 1e-5
        assert abs(normal[0]) < 1e-5
        assert abs(normal[1]) < 1e-5
        assert abs(normal[2] - 1.0) < 1e-5

    def test_off_center_hit(self):
        """Test that the entry distance follows the closed form."""
        # Ray along -z at height 0.6 through a unit sphere at z = -3
        hit, distance, normal = _hit_sphere((0.0, 0.6, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -3.0), 1.0)

        assert hit == 1
        assert abs(distance - (3.0 - 0.8)) < 1e-4
        assert abs(normal[0]) < 1e-4
        assert abs(normal[1] - 0.6) < 1e-4
        assert abs(normal[2] - 0.8) < 1e-4
        assert abs(math.sqrt(sum(c * c for c in normal)) - 1.0) < 1e-4

    def test_normal_is_unit_for_large_radius(self):
        """Test that dividing by the radius yields a unit normal."""
        hit, distance, normal = _hit_sphere((0.0, 0.0, 20.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 5.0)

        assert hit == 1
        assert abs(distance - 15.0) < 1e-4
        assert abs(normal[2] - 1.0) < 1e-5

    def test_miss_beside(self):
        """Test ray passing beside the sphere."""
        hit, _, _ = _hit_sphere((5.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_miss_behind_origin(self):
        """Test that a sphere behind the ray origin is not hit."""
        hit, _, _ = _hit_sphere((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_grazing_hit(self):
        """Test a ray touching the silhouette counts as a hit."""
        hit, distance, _ = _hit_sphere((1.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        assert abs(distance - 5.0) < 1e-3

    def test_origin_inside_reports_entry_behind(self):
        """Test a ray starting inside reports the entry point behind it.

        The center lies ahead of the origin, so the sphere counts as hit and
        the reported distance is the negative entry distance.
        """
        hit, distance, _ = _hit_sphere((0.0, 0.0, 0.5), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)

        assert hit == 1
        assert abs(distance - (-0.5)) < 1e-5
