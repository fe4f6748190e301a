"""Explicit random number source and Monte Carlo sampling helpers.

The path tracer never touches Taichi's global generator. Randomness is a
32-bit xorshift state that callers thread through every function that needs
it: each helper takes the current state and returns the advanced state next
to the sampled value. Independent parallel work items (pixels) each start from
their own state, derived by hashing a base seed with the pixel index, so a
render is reproducible for a fixed seed no matter how Taichi schedules the
work.

Example:
    >>> @ti.kernel
    ... def sample() -> ti.f32:
    ...     state = pixel_rng_state(ti.u32(7), ti.u32(0))
    ...     value, state = random_float(state)
    ...     return value
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Upper bound on rejection sampling iterations. The acceptance rate is above
# 50% for the unit ball and 78% for the unit disk, so this is never reached in
# practice.
MAX_REJECTION_ATTEMPTS = 64

# Scale mapping the top 24 bits of the state onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0

MAX_SEED = 2**32 - 1


@dataclass(frozen=True)
class RngFactory:
    """Source of independent per-pixel random states.

    The factory itself holds no mutable state; it only fixes the base seed
    that ``pixel_rng_state`` mixes with each pixel index inside the kernel.

    Attributes:
        seed: Base seed in [0, 2**32).
    """

    seed: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"Seed {self.seed} is outside [0, {MAX_SEED}]")

    def spawn(self, offset: int) -> "RngFactory":
        """Return a factory with a different, deterministic seed."""
        return RngFactory((self.seed + offset) % (MAX_SEED + 1))


# =============================================================================
# State Handling
# =============================================================================


@ti.func
def _wang_hash(value: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    h = (value ^ ti.cast(61, ti.u32)) ^ (value >> 16)
    h = h * ti.cast(9, ti.u32)
    h = h ^ (h >> 4)
    h = h * ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ (h >> 15)
    return h


@ti.func
def pixel_rng_state(seed: ti.u32, pixel_index: ti.u32) -> ti.u32:
    """Derive the initial random state for one pixel.

    Args:
        seed: The base seed of the render.
        pixel_index: Row-major index of the pixel.

    Returns:
        A non-zero xorshift state.
    """
    state = _wang_hash(seed ^ _wang_hash(pixel_index))
    # xorshift has a fixed point at zero
    return ti.select(state == ti.cast(0, ti.u32), ti.cast(1, ti.u32), state)


@ti.func
def next_state(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    s = state ^ (state << 13)
    s = s ^ (s >> 17)
    s = s ^ (s << 5)
    return s


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple of (value, new_state).
    """
    new_state = next_state(state)
    value = ti.cast(new_state >> 8, ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_range(a: ti.f32, b: ti.f32, state: ti.u32):
    """Draw a uniform float in [a, b).

    Returns:
        A tuple of (value, new_state).
    """
    u, new_state = random_float(state)
    return a + (b - a) * u, new_state


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a uniformly distributed point inside the unit ball.

    Draws points uniformly in [-1, 1]^3 and accepts the first one with
    squared length below 1.

    Returns:
        A tuple of (point, new_state).
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_range(-1.0, 1.0, s)
            y, s = random_range(-1.0, 1.0, s)
            z, s = random_range(-1.0, 1.0, s)
            candidate = vec3(x, y, z)
            if tm.dot(candidate, candidate) < 1.0:
                p = candidate
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Samples an azimuth in [0, 2*pi) and a height z in [-1, 1]; the point
    ``(r cos a, r sin a, z)`` with ``r = sqrt(1 - z^2)`` is uniform on the
    sphere surface (Archimedes' hat-box theorem).

    Returns:
        A tuple of (unit_vector, new_state).
    """
    azimuth, s = random_range(0.0, 2.0 * tm.pi, state)
    z, s = random_range(-1.0, 1.0, s)
    r = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    return vec3(r * ti.cos(azimuth), r * ti.sin(azimuth), z), s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for lens sampling in the depth-of-field camera.

    Returns:
        A tuple of (point, new_state) where point is (x, y, 0) with
        x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, s = random_range(-1.0, 1.0, s)
            y, s = random_range(-1.0, 1.0, s)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, s


@ti.func
def random_in_hemisphere(normal: vec3, state: ti.u32):
    """Generate a random point of the unit ball in the hemisphere of a normal.

    Samples the unit ball and negates the sample if it points away from the
    normal.

    Args:
        normal: The normal defining the hemisphere.
        state: The current random state.

    Returns:
        A tuple of (vector, new_state) with dot(vector, normal) >= 0.
    """
    in_sphere, s = random_in_unit_sphere(state)
    result = in_sphere
    if tm.dot(in_sphere, normal) < 0.0:
        result = -in_sphere
    return result, s
