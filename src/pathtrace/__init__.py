"""Taichi-based progressive path tracer.

This package renders a small analytic scene with Monte Carlo path tracing
and converges it over successive frames of a static camera:
- Stochastic diffuse bounces with a fixed bounce budget
- Analytic primitives (spheres, bounded planes, axis-aligned boxes)
- Progressive accumulation with ping-pong buffers

Subpackages:
    core: Rays, random numbers, the path integrator and the frame passes
    geometry: Ray-primitive intersection routines
    scene: Primitive tables, nearest-hit queries and the default scene
    camera: Pinhole ray generation and the fly-camera controller
    preview: Tone mapping, Matplotlib preview and the GGUI viewer
"""

__version__ = "0.1.0"
