"""Per-pixel xorshift32 random source.

Every pixel evaluation owns a single 32-bit unsigned state word. The state
is never stored in a field or shared between pixels: each function takes
the current state and returns the advanced state alongside its result, so
callers thread it through explicitly:

    seed = seed_from_pixel(tex_coord, time)
    u, seed = next_f32(seed)
    direction, seed = next_unit_vector(seed)

Identical seeds always produce identical sequences. There is no external
entropy source.
"""

import taichi as ti
import taichi.math as tm

from src.pathtrace.core.ray import vec2, vec3

# Largest float32 strictly below 1.0
_ONE_MINUS_EPSILON = 0.99999994

# Divisor mapping the full u32 range onto [0, 1]
U32_MAX_FLOAT = 4294967295.0

# Seeding hash constants: floor(u*K1) * floor(v*K2) * floor((cos(t)+C)*K3)
SEED_SCALE_U = 1973.0
SEED_SCALE_V = 9277.0
SEED_SCALE_TIME = 26699.0
SEED_TIME_OFFSET = 1.5

# xorshift32 has an all-zero fixed point, so a zero hash is replaced by this
SEED_ZERO_REPLACEMENT = 0x2545F491


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state (shifts 13, 17, 5).

    Arithmetic wraps modulo 2^32. The right shift is logical.
    """
    x = state
    x ^= x << ti.u32(13)
    x ^= ti.bit_shr(x, ti.u32(17))
    x ^= x << ti.u32(5)
    return x


@ti.func
def next_u32(state: ti.u32):
    """Draw a 32-bit unsigned integer.

    Args:
        state: The current generator state.

    Returns:
        A tuple (value, new_state). For xorshift32 both are the same word.
    """
    new_state = xorshift32(state)
    return new_state, new_state


@ti.func
def next_f32(state: ti.u32):
    """Draw a float uniformly distributed in [0, 1).

    The 32-bit output is divided by 2^32 - 1. Float32 rounding maps the very
    top of the u32 range onto 1.0, so the result is clamped just below one.

    Args:
        state: The current generator state.

    Returns:
        A tuple (value, new_state).
    """
    bits, new_state = next_u32(state)
    value = ti.cast(bits, ti.f32) / U32_MAX_FLOAT
    return ti.min(value, _ONE_MINUS_EPSILON), new_state


@ti.func
def next_unit_vector(state: ti.u32):
    """Draw a direction uniformly distributed on the unit sphere.

    Uses theta = 2*pi*u1 and phi = acos(1 - 2*u2), which is area-preserving
    on the sphere (not cosine weighted).

    Args:
        state: The current generator state.

    Returns:
        A tuple (direction, new_state) where direction has unit length.
    """
    u1, s1 = next_f32(state)
    u2, s2 = next_f32(s1)
    theta = 2.0 * tm.pi * u1
    phi = ti.acos(1.0 - 2.0 * u2)
    sin_phi = ti.sin(phi)
    direction = vec3(sin_phi * ti.cos(theta), sin_phi * ti.sin(theta), ti.cos(phi))
    return direction, s2


@ti.func
def seed_from_pixel(tex_coord: vec2, time: ti.f32) -> ti.u32:
    """Hash a normalized pixel coordinate and the frame time into a seed.

    Cheap and non-cryptographic: adjacent pixels get unrelated seeds most of
    the time, and faint correlation patterns are tolerated. Each factor is
    converted to u32 before the wrapping product.

    Args:
        tex_coord: Pixel coordinate in [0, 1] x [0, 1].
        time: Frame time in seconds.

    Returns:
        A non-zero u32 seed.
    """
    a = ti.cast(ti.floor(tex_coord.x * SEED_SCALE_U), ti.u32)
    b = ti.cast(ti.floor(tex_coord.y * SEED_SCALE_V), ti.u32)
    c = ti.cast(ti.floor((ti.cos(time) + SEED_TIME_OFFSET) * SEED_SCALE_TIME), ti.u32)
    seed = a * b * c
    if seed == ti.u32(0):
        seed = ti.u32(SEED_ZERO_REPLACEMENT)
    return seed
