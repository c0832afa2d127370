"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Frame index bookkeeping
- Reset on camera change, resize and explicit reset
- Batch rendering, progress callbacks and generators
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _fixed_clock():
    return 0.75


def _make_renderer(width=16, height=12):
    from src.pathtrace.core.progressive import ProgressiveRenderer
    from src.pathtrace.scene.default_scene import create_default_camera, load_default_scene

    load_default_scene()
    renderer = ProgressiveRenderer(width, height, clock=_fixed_clock)
    renderer.set_camera(create_default_camera(width, height))
    return renderer


class TestFrameClock:
    """Test the default frame clock."""

    def test_clock_wraps_to_24_bits_of_milliseconds(self):
        """Test that the clock stays within the wrapped range."""
        from src.pathtrace.core.progressive import frame_clock

        value = frame_clock()
        assert 0.0 <= value < 0x1000000 / 1000.0

    def test_clock_matches_wall_time(self, monkeypatch):
        """Test the wrap arithmetic on a known timestamp."""
        from src.pathtrace.core import progressive

        # 0x1000000 + 1234 ms wraps to 1234 ms
        monkeypatch.setattr(progressive.time, "time_ns", lambda: (0x1000000 + 1234) * 1_000_000)
        assert progressive.frame_clock() == 1.234


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test that initialization creates a render target with correct dimensions."""
        from src.pathtrace.core.integrator import get_image_dimensions
        from src.pathtrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.frame_index == 0
        assert renderer.sample_count == 0
        assert renderer.camera is None
        assert get_image_dimensions() == (128, 96)

    def test_init_rejects_oversized_dimensions(self):
        """Test that initialization rejects dimensions exceeding max size."""
        from src.pathtrace.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_render_without_camera_raises(self):
        """Test that rendering before set_camera raises RuntimeError."""
        from src.pathtrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        with pytest.raises(RuntimeError, match="Camera"):
            renderer.render_frame()
        assert renderer.frame_index == 0


class TestFrameIndex:
    """Test frame index bookkeeping."""

    def test_render_advances_index(self):
        """Test that each rendered frame increments the index."""
        from src.pathtrace.core.integrator import SAMPLES_PER_PIXEL

        renderer = _make_renderer()
        renderer.render(5)

        assert renderer.frame_index == 5
        assert renderer.frame_count == 5
        assert renderer.sample_count == 5 * SAMPLES_PER_PIXEL

    def test_reset_restarts_accumulation(self):
        """Test that the frame after a reset replaces the running sum."""
        renderer = _make_renderer()

        renderer.render_frame()
        first = renderer.get_image_numpy().copy()

        renderer.render(3)
        renderer.reset()
        assert renderer.frame_index == 0

        renderer.render_frame()
        np.testing.assert_array_equal(renderer.get_image_numpy(), first)

    def test_set_camera_resets_index(self):
        """Test that uploading a camera restarts accumulation."""
        from src.pathtrace.camera.pinhole import get_camera_info, look_at

        renderer = _make_renderer()
        renderer.render(4)

        camera = look_at((0.0, 2.0, 5.0), (0.0, 1.0, -2.0), viewport=(16, 12))
        renderer.set_camera(camera)

        assert renderer.frame_index == 0
        assert renderer.camera == camera
        np.testing.assert_allclose(get_camera_info()["location"], (0.0, 2.0, 5.0), atol=1e-6)

    def test_resize_resets_index(self):
        """Test that resizing changes the target and restarts accumulation."""
        from src.pathtrace.core.integrator import get_image_dimensions

        renderer = _make_renderer()
        renderer.render(2)
        renderer.resize(24, 20)

        assert renderer.frame_index == 0
        assert (renderer.width, renderer.height) == (24, 20)
        assert get_image_dimensions() == (24, 20)

        renderer.render_frame()
        assert renderer.get_image_numpy().shape == (20, 24, 3)

    def test_explicit_time_matches_clock(self):
        """Test that an explicit frame time is used in place of the clock."""
        renderer = _make_renderer()

        renderer.render_frame(time_value=0.75)
        explicit = renderer.get_image_numpy().copy()

        renderer.reset()
        renderer.render_frame()
        np.testing.assert_array_equal(renderer.get_image_numpy(), explicit)


class TestProgressiveRendering:
    """Test batch rendering with progress reporting."""

    def test_render_progressive_yields_batches(self):
        """Test the generator yields after each batch."""
        renderer = _make_renderer()

        progress = list(renderer.render_progressive(10, batch_size=4))

        assert progress == [(4, 10), (8, 10), (10, 10)]
        assert renderer.frame_index == 10

    def test_render_progressive_continues_from_current_index(self):
        """Test that the target counts frames already accumulated."""
        renderer = _make_renderer()
        renderer.render(3)

        progress = list(renderer.render_progressive(2))
        assert progress == [(4, 5), (5, 5)]

    def test_render_with_callback(self):
        """Test that the callback receives progress updates."""
        renderer = _make_renderer()
        calls = []

        renderer.render(6, batch_size=3, callback=lambda current, target: calls.append((current, target)))

        assert calls == [(3, 6), (6, 6)]

    def test_zero_frames_is_noop(self):
        """Test that rendering zero frames does nothing."""
        renderer = _make_renderer()

        assert list(renderer.render_progressive(0)) == []
        assert renderer.frame_index == 0


class TestImageOutput:
    """Test image readback."""

    def test_image_shape_and_values(self):
        """Test the linear image is finite, non-negative and lit."""
        renderer = _make_renderer(20, 10)
        renderer.render(4)

        image = renderer.get_image_numpy()

        assert image.shape == (10, 20, 3)
        assert image.dtype == np.float32
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() > 0.0

    def test_gamma_output_is_clamped(self):
        """Test that gamma-encoded output lies in [0, 1]."""
        renderer = _make_renderer()
        renderer.render(2)

        image = renderer.get_image_numpy(gamma=2.2)

        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_repr(self):
        """Test the string representation."""
        renderer = _make_renderer(16, 12)
        renderer.render(2)

        assert repr(renderer) == "ProgressiveRenderer(width=16, height=12, frames=2)"
