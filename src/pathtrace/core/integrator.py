"""Path tracing integrator and the per-frame Accumulate/Present passes.

Each displayed frame runs two Taichi kernels over every pixel:

1. Accumulate: seeds a per-pixel random state from the pixel coordinate and
   the frame time, traces SAMPLES_PER_PIXEL jittered camera paths, averages
   them and adds the average to the running sum of the previous frame. On
   the first frame after a reset (static_frame_index == 0) the average
   overwrites the buffer instead.
2. Present: divides the running sum by static_frame_index + 1.

The running sum lives in two ping-pong buffers. Frame N reads buffer
N & 1 and writes buffer (N + 1) & 1, and Present reads the buffer that was
just written. The two kernels are launched in order, so every Accumulate
write of a frame completes before any Present read of that frame.

Key features:
    - Fixed bounce budget (MAX_BOUNCES), no Russian roulette
    - Diffuse bounces sampled on the normal's hemisphere by sign flip
    - Self-intersection avoidance by offsetting along the normal
    - No background term: escaped paths contribute nothing further

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtrace.camera.pinhole import look_at, setup_camera
    >>> from src.pathtrace.core.integrator import System, render_frame, setup_render_target
    >>> from src.pathtrace.scene.default_scene import load_default_scene
    >>>
    >>> load_default_scene()
    >>> setup_camera(look_at((-3.2, 2.8, 0.3), (-2.4, 2.4, -0.1), viewport=(320, 240)))
    >>> setup_render_target(320, 240)
    >>> render_frame(System.for_frame(320, 240, time=0.0, static_frame_index=0))
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.pathtrace.camera.pinhole import is_camera_ready, pixel_to_ray
from src.pathtrace.core.ray import Ray, make_ray, normalized_ray, vec2, vec3
from src.pathtrace.core.rng import next_f32, next_unit_vector, seed_from_pixel
from src.pathtrace.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum scene queries per path
MAX_BOUNCES = 8

# Camera paths traced per pixel per frame
SAMPLES_PER_PIXEL = 4

# Offset along the surface normal for bounced ray origins
SURFACE_EPSILON = 0.001

# Largest value static_frame_index can hold
MAX_FRAME_INDEX = 0xFFFFFFFF

# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_counted(ray: Ray, state: ti.u32):
    """Trace one light path and report how many scene queries it used.

    Args:
        ray: The camera ray. Its direction is normalized here.
        state: The random state of the calling pixel.

    Returns:
        A tuple (radiance, new_state, queries) where queries never exceeds
        MAX_BOUNCES.
    """
    rng = state
    start = normalized_ray(ray)
    origin = start.origin
    direction = start.direction

    throughput = vec3(1.0, 1.0, 1.0)
    incoming_light = vec3(0.0, 0.0, 0.0)
    queries = 0

    # Cleared when the path leaves the scene
    active = 1

    for _ in range(MAX_BOUNCES):
        if active == 1:
            hit = intersect_scene(make_ray(origin, direction))
            queries += 1

            if hit.is_hit == 0:
                active = 0
            else:
                incoming_light += hit.emission * throughput

                origin = origin + direction * hit.distance + hit.normal * SURFACE_EPSILON

                sample, rng = next_unit_vector(rng)
                new_direction = sample * tm.sign(tm.dot(sample, hit.normal))

                # pi compensates for sampling the hemisphere uniformly
                throughput *= hit.color * ti.max(tm.dot(hit.normal, new_direction), 0.0) * tm.pi
                direction = new_direction

    return incoming_light, rng, queries


@ti.func
def trace(ray: Ray, state: ti.u32):
    """Estimate the radiance arriving along a camera ray.

    Args:
        ray: The camera ray.
        state: The random state of the calling pixel.

    Returns:
        A tuple (radiance, new_state).
    """
    radiance, new_state, _ = trace_counted(ray, state)
    return radiance, new_state


# =============================================================================
# System Record (per-frame uniforms)
# =============================================================================


@dataclass(frozen=True)
class System:
    """Per-frame system record.

    Attributes:
        resolution: Image size in pixels (width, height).
        time: Frame time in seconds; feeds the per-pixel seed.
        static_frame_index: Frames accumulated since the last reset;
            0 marks the first frame after a camera or scene change.
        texel_size: Reciprocal of the resolution.
    """

    resolution: tuple[int, int]
    time: float
    static_frame_index: int
    texel_size: tuple[float, float]

    @classmethod
    def for_frame(cls, width: int, height: int, time: float, static_frame_index: int) -> "System":
        """Build the record for a frame, deriving the texel size."""
        return cls(
            resolution=(width, height),
            time=time,
            static_frame_index=static_frame_index,
            texel_size=(1.0 / width, 1.0 / height),
        )


_system_resolution = ti.Vector.field(2, dtype=ti.i32, shape=())
_system_time = ti.field(dtype=ti.f32, shape=())
_system_frame_index = ti.field(dtype=ti.u32, shape=())
_system_texel_size = ti.Vector.field(2, dtype=ti.f32, shape=())


def upload_system(system: System) -> None:
    """Upload the per-frame system record for the pass kernels.

    Raises:
        ValueError: If the frame index does not fit an unsigned 32-bit value.
    """
    if not 0 <= system.static_frame_index <= MAX_FRAME_INDEX:
        raise ValueError(f"static_frame_index out of range: {system.static_frame_index}")
    _system_resolution[None] = list(system.resolution)
    _system_time[None] = system.time
    _system_frame_index[None] = system.static_frame_index
    _system_texel_size[None] = list(system.texel_size)


# =============================================================================
# Render Target (Accumulation Buffers)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Ping-pong running-sum buffers
_accumulation_buffers = [
    ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT)) for _ in range(2)
]

# Normalized output of the Present pass
_present_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    logger.debug("Render target set up: %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the accumulation and present buffers to zero."""
    fill_accumulation(0.0)
    _present_buffer.fill(0.0)


def fill_accumulation(value: float) -> None:
    """Overwrite both accumulation buffers with a constant.

    Args:
        value: The value written to every channel of every pixel.
    """
    for buffer in _accumulation_buffers:
        buffer.fill(value)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def buffer_slots(static_frame_index: int) -> tuple[int, int]:
    """Select the (read, write) accumulation buffer slots for a frame."""
    return static_frame_index & 1, (static_frame_index + 1) & 1


# =============================================================================
# Frame Passes
# =============================================================================


@ti.func
def accumulate_pixel(i: ti.i32, j: ti.i32) -> vec3:
    """Average SAMPLES_PER_PIXEL jittered path samples for one pixel.

    The random state is seeded from the pixel center and the frame time.
    Each sample jitters across the pixel footprint by texel_size * (u, v).

    Args:
        i: Pixel x-coordinate (0 = left).
        j: Pixel y-coordinate (0 = bottom).

    Returns:
        The average radiance of the pixel's samples for this frame.
    """
    texel = _system_texel_size[None]
    corner = vec2(ti.cast(i, ti.f32) * texel.x, ti.cast(j, ti.f32) * texel.y)
    state = seed_from_pixel(corner + 0.5 * texel, _system_time[None])

    total = vec3(0.0, 0.0, 0.0)
    for _ in range(SAMPLES_PER_PIXEL):
        u, state = next_f32(state)
        v, state = next_f32(state)
        ray = pixel_to_ray(corner + texel * vec2(u, v))
        radiance, state = trace(ray, state)
        total += radiance

    return total / SAMPLES_PER_PIXEL


@ti.kernel
def _accumulate_kernel(read_buffer: ti.template(), write_buffer: ti.template()):
    resolution = _system_resolution[None]
    for i, j in ti.ndrange(resolution.x, resolution.y):
        result = accumulate_pixel(i, j)
        if _system_frame_index[None] != 0:
            result += read_buffer[i, j]
        write_buffer[i, j] = result


@ti.kernel
def _present_kernel(source: ti.template()):
    resolution = _system_resolution[None]
    for i, j in ti.ndrange(resolution.x, resolution.y):
        frames = ti.cast(_system_frame_index[None], ti.f32) + 1.0
        _present_buffer[i, j] = source[i, j] / frames


def accumulate_pass(read_slot: int, write_slot: int) -> None:
    """Run the Accumulate pass with the uploaded camera and system record.

    Args:
        read_slot: Accumulation buffer holding the previous running sum.
        write_slot: Accumulation buffer receiving the new running sum.
    """
    _accumulate_kernel(_accumulation_buffers[read_slot], _accumulation_buffers[write_slot])


def present_pass(source_slot: int) -> None:
    """Run the Present pass, normalizing a running sum into the output image.

    Args:
        source_slot: Accumulation buffer written by this frame's Accumulate pass.
    """
    _present_kernel(_accumulation_buffers[source_slot])


def render_frame(system: System) -> None:
    """Render one frame: Accumulate, then Present.

    Args:
        system: The per-frame system record. Its resolution must match the
            render target.

    Raises:
        RuntimeError: If the render target or the camera has not been set up.
        ValueError: If the resolution does not match the render target.
    """
    _check_render_target_initialized()
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")
    if tuple(system.resolution) != get_image_dimensions():
        raise ValueError(
            f"System resolution {tuple(system.resolution)} does not match "
            f"render target {get_image_dimensions()}"
        )

    upload_system(system)
    read_slot, write_slot = buffer_slots(system.static_frame_index)
    accumulate_pass(read_slot, write_slot)
    present_pass(write_slot)


# =============================================================================
# Host-side Readback
# =============================================================================


def _field_to_image(field: "ti.MatrixField") -> npt.NDArray[np.float32]:
    width, height = get_image_dimensions()

    # Active region, transposed from (width, height, 3) to (height, width, 3)
    # and flipped so that row 0 is the top of the image
    image = field.to_numpy()[:width, :height, :]
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.float32)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the normalized (Present pass) image as a NumPy array.

    Values are linear radiance and are not clamped.

    Returns:
        NumPy array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _field_to_image(_present_buffer)


def get_accumulation_numpy(static_frame_index: int) -> npt.NDArray[np.float32]:
    """Get the running sum written by the frame with the given index.

    Args:
        static_frame_index: Index of the frame whose Accumulate output to read.

    Returns:
        NumPy array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _, write_slot = buffer_slots(static_frame_index)
    return _field_to_image(_accumulation_buffers[write_slot])
