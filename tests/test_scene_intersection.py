"""Tests for scene-level nearest-hit queries.

Tests cover:
- Host-side primitive tables (add, count, clear, validation)
- Empty scene misses
- Closest-hit selection across primitive kinds
- Material (color, emission) and normal carried from the closest primitive
- Coarse bounding-box rejection in front of planes
- Tie-breaking in evaluation order
"""

import pytest
import taichi as ti


def _intersect(origin, direction):
    """Run intersect_scene on one ray and return the record as a dict."""
    from src.pathtrace.core.ray import Ray
    from src.pathtrace.scene.intersection import intersect_scene

    inputs = ti.Vector.field(3, dtype=ti.f32, shape=2)
    hit = ti.field(dtype=ti.i32, shape=())
    distance = ti.field(dtype=ti.f32, shape=())
    vectors = ti.Vector.field(3, dtype=ti.f32, shape=3)

    inputs[0] = origin
    inputs[1] = direction

    @ti.kernel
    def test_kernel():
        ray = Ray(origin=inputs[0], direction=ti.math.normalize(inputs[1]))
        record = intersect_scene(ray)
        hit[None] = record.is_hit
        distance[None] = record.distance
        vectors[0] = record.normal
        vectors[1] = record.color
        vectors[2] = record.emission

    test_kernel()
    values = vectors.to_numpy()
    return {
        "is_hit": hit[None],
        "distance": distance[None],
        "normal": tuple(values[0]),
        "color": tuple(values[1]),
        "emission": tuple(values[2]),
    }


def _close(a, b, tol=1e-4):
    return all(abs(x - y) < tol for x, y in zip(a, b))


class TestSceneTables:
    """Tests for the host-side primitive tables."""

    def test_add_and_count(self):
        """Test that adding primitives updates the counts."""
        from src.pathtrace.scene.intersection import (
            add_box,
            add_plane,
            add_sphere,
            get_box_count,
            get_plane_count,
            get_sphere_count,
            vec3,
        )

        assert add_sphere(vec3(0, 0, -2), 0.5) == 0
        assert add_sphere(vec3(1, 0, -2), 0.5) == 1
        assert add_plane(vec3(0, 0, 0), vec3(0, 1, 0), vec3(-1, -1, -1), vec3(1, 1, 1)) == 0
        assert add_box(vec3(0, 0, 0), vec3(1, 1, 1)) == 0

        assert get_sphere_count() == 2
        assert get_plane_count() == 1
        assert get_box_count() == 1

    def test_clear_scene(self):
        """Test that clear_scene empties every table."""
        from src.pathtrace.scene.intersection import (
            add_box,
            add_sphere,
            clear_scene,
            get_box_count,
            get_sphere_count,
            vec3,
        )

        add_sphere(vec3(0, 0, -2), 0.5)
        add_box(vec3(0, 0, 0), vec3(1, 1, 1))
        clear_scene()

        assert get_sphere_count() == 0
        assert get_box_count() == 0

    def test_plane_normal_is_normalized(self):
        """Test that plane normals are stored with unit length."""
        from src.pathtrace.scene.intersection import add_plane, plane_normals, vec3

        add_plane(vec3(0, 0, 0), vec3(0, 5, 0), vec3(-1, -1, -1), vec3(1, 1, 1))
        n = plane_normals[0]
        assert abs(n[1] - 1.0) < 1e-6

    def test_invalid_primitives_rejected(self):
        """Test validation of primitive parameters."""
        from src.pathtrace.scene.intersection import add_box, add_plane, add_sphere, vec3

        with pytest.raises(ValueError, match="radius"):
            add_sphere(vec3(0, 0, 0), 0.0)
        with pytest.raises(ValueError, match="normal"):
            add_plane(vec3(0, 0, 0), vec3(0, 0, 0), vec3(-1, -1, -1), vec3(1, 1, 1))
        with pytest.raises(ValueError, match="inverted"):
            add_plane(vec3(0, 0, 0), vec3(0, 1, 0), vec3(1, -1, -1), vec3(-1, 1, 1))
        with pytest.raises(ValueError, match="inverted"):
            add_box(vec3(0, 2, 0), vec3(1, 1, 1))

    def test_full_table_raises(self):
        """Test that exceeding the sphere capacity raises RuntimeError."""
        from src.pathtrace.scene.intersection import MAX_SPHERES, add_sphere, vec3

        for i in range(MAX_SPHERES):
            add_sphere(vec3(float(i), 0, -5), 0.1)

        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere(vec3(0, 0, -5), 0.1)


class TestSceneQueries:
    """Tests for intersect_scene."""

    def test_empty_scene_misses(self):
        """Test that every ray misses an empty scene."""
        result = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result["is_hit"] == 0

    def test_closest_sphere_wins(self):
        """Test that the nearer of two spheres along the ray is returned."""
        from src.pathtrace.scene.intersection import add_sphere, vec3

        # Far sphere added first so insertion order does not decide
        add_sphere(vec3(0, 0, -10), 1.0, color=(0.0, 0.0, 1.0))
        add_sphere(vec3(0, 0, -4), 1.0, color=(1.0, 0.0, 0.0), emission=(2.0, 2.0, 2.0))

        result = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert result["is_hit"] == 1
        assert abs(result["distance"] - 3.0) < 1e-4
        assert _close(result["color"], (1.0, 0.0, 0.0))
        assert _close(result["emission"], (2.0, 2.0, 2.0))
        assert _close(result["normal"], (0.0, 0.0, 1.0))

    def test_box_in_front_of_sphere(self):
        """Test that a nearer box beats a sphere listed earlier."""
        from src.pathtrace.scene.intersection import add_box, add_sphere, vec3

        add_sphere(vec3(0, 0, -10), 1.0, color=(0.0, 0.0, 1.0))
        add_box(vec3(-1, -1, -5), vec3(1, 1, -3), color=(0.0, 1.0, 0.0))

        result = _intersect((0.1, 0.2, 0.0), (0.0, 0.0, -1.0))

        assert result["is_hit"] == 1
        assert abs(result["distance"] - 3.0) < 1e-4
        assert _close(result["color"], (0.0, 1.0, 0.0))
        assert _close(result["normal"], (0.0, 0.0, 1.0))

    def test_ground_plane_hit_inside_bounds(self):
        """Test a downward ray hits the bounded ground plane."""
        from src.pathtrace.scene.intersection import add_plane, vec3

        add_plane(
            vec3(0, 0, 0),
            vec3(0, 1, 0),
            vec3(-20, -0.01, -20),
            vec3(20, 0.01, 20),
            color=(0.5, 0.5, 0.5),
        )

        result = _intersect((0.0, 3.0, 0.0), (0.3, -1.0, 0.1))

        assert result["is_hit"] == 1
        # Closed form: height / cos(angle to the normal)
        expected = 3.0 * (0.3**2 + 1.0 + 0.1**2) ** 0.5
        assert abs(result["distance"] - expected) < 1e-4
        assert _close(result["normal"], (0.0, 1.0, 0.0))
        assert _close(result["color"], (0.5, 0.5, 0.5))

    def test_plane_outside_bounds_is_rejected(self):
        """Test that the coarse box hides the plane beyond its extent."""
        from src.pathtrace.scene.intersection import add_plane, vec3

        add_plane(vec3(0, 0, 0), vec3(0, 1, 0), vec3(-1, -0.01, -1), vec3(1, 0.01, 1))

        # Would meet y = 0 at x = 3, outside the [-1, 1] bounds
        result = _intersect((0.0, 3.0, 0.0), (1.0, -1.0, 0.0))
        assert result["is_hit"] == 0

    def test_sphere_on_ground(self):
        """Test a sphere resting on the ground occludes the plane below it."""
        from src.pathtrace.scene.intersection import add_plane, add_sphere, vec3

        add_sphere(vec3(0, 1, 0), 1.0, color=(0.8, 0.3, 0.3))
        add_plane(
            vec3(0, 0, 0),
            vec3(0, 1, 0),
            vec3(-20, -0.01, -20),
            vec3(20, 0.01, 20),
            color=(0.6, 0.6, 0.6),
        )

        result = _intersect((0.0, 5.0, 0.0), (0.0, -1.0, 0.0))

        assert result["is_hit"] == 1
        assert abs(result["distance"] - 3.0) < 1e-4
        assert _close(result["color"], (0.8, 0.3, 0.3))

    def test_exact_tie_keeps_first_primitive(self):
        """Test that the earlier of two coincident spheres wins."""
        from src.pathtrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -5), 1.0, color=(1.0, 0.0, 0.0))
        add_sphere(vec3(0, 0, -5), 1.0, color=(0.0, 1.0, 0.0))

        result = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert result["is_hit"] == 1
        assert _close(result["color"], (1.0, 0.0, 0.0))
