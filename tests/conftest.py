"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Modules that own
    Taichi fields are imported inside tests so they are created after this.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_global_state():
    """Clear scene, camera and render target before and after each test."""
    from src.pathtrace.camera.pinhole import reset_camera
    from src.pathtrace.core.integrator import clear_render_target
    from src.pathtrace.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        reset_camera()
        clear_render_target()

    _clear_all()

    yield

    _clear_all()
