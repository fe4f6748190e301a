"""Thin-lens perspective camera for primary ray generation.

The camera supports:
- Look-at positioning (look_from, look_at, vup)
- Vertical field of view and arbitrary aspect ratios
- Depth of field through a circular aperture focused at a given distance

It builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The focus plane sits ``focus_distance`` in front of the camera. Primary rays
start at a random point of the lens disk and pass through the focus plane, so
points on that plane stay sharp while everything else blurs. With an aperture
of zero all rays start at ``look_from`` (pinhole).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import Camera, setup_camera, cast_ray
    >>>
    >>> camera = Camera(
    ...     look_from=(-2.0, 2.0, 1.0),
    ...     look_at=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray, state = cast_ray(0.5, 0.5, state)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm
from loguru import logger

from pathtracer.core.ray import Ray
from pathtracer.core.rng import random_in_unit_disk

# Type alias for 3D vectors
vec3 = tm.vec3


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a thin-lens perspective camera.

    Attributes:
        look_from: Camera position in world space.
        look_at: Point the camera is looking at.
        vup: Up direction used to orient the camera (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables depth of field.
        focus_distance: Distance from the camera to the plane in focus.

    Raises:
        ValueError: On construction, if any parameter is out of range or the
            view direction is degenerate.
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if not self.aperture >= 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if not self.focus_distance > 0.0:
            raise ValueError(
                f"focus_distance must be positive, got {self.focus_distance}"
            )

        view = np.subtract(self.look_from, self.look_at, dtype=np.float64)
        view_length = np.linalg.norm(view)
        if view_length == 0.0:
            raise ValueError("look_from and look_at must be different points")
        vup = np.asarray(self.vup, dtype=np.float64)
        vup_length = np.linalg.norm(vup)
        if vup_length == 0.0 or np.linalg.norm(np.cross(vup, view)) <= (
            1e-9 * vup_length * view_length
        ):
            raise ValueError("vup must not be parallel to the view direction")

    @classmethod
    def simple(cls, aspect_ratio: float) -> "Camera":
        """Axis-aligned camera at the origin looking down -z.

        The viewport is 2 units high at distance 1 (a 90 degree vertical field
        of view) and there is no depth of field.
        """
        return cls(
            look_from=(0.0, 0.0, 0.0),
            look_at=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=aspect_ratio,
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Compute the camera basis and viewport and store them in Taichi fields.

    The viewport height is ``2 * tan(vfov / 2)`` at unit distance, scaled out
    to the focus plane:

        horizontal = focus_distance * viewport_width * u
        vertical = focus_distance * viewport_height * v
        lower_left = origin - horizontal/2 - vertical/2 - focus_distance * w

    Args:
        camera: Camera configuration.

    Note:
        This function writes to Taichi fields and must be called from Python
        scope before the kernel that casts rays is launched.
    """
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = look_from - look_at
    w = w / np.linalg.norm(w)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)
    v = np.cross(w, u)

    focus = camera.focus_distance
    horizontal = focus * viewport_width * u
    vertical = focus * viewport_height * v
    lower_left = look_from - horizontal / 2.0 - vertical / 2.0 - focus * w

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera at {} looking at {} (vfov={}, aspect={:.4f}, aperture={})",
        camera.look_from,
        camera.look_at,
        camera.vfov,
        camera.aspect_ratio,
        camera.aperture,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def cast_ray(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a primary ray through viewport coordinates (s, t).

    s = 0 is the left edge and s = 1 the right edge; t = 0 is the bottom
    edge and t = 1 the top edge. With a non-zero lens radius the origin is
    offset by a random point of the lens disk, which consumes random state.

    Args:
        s: Horizontal viewport coordinate.
        t: Vertical viewport coordinate.
        state: The current random state.

    Returns:
        A tuple of (ray, new_state). The ray direction is not normalized.
    """
    lens_radius = _lens_radius[None]
    offset = vec3(0.0, 0.0, 0.0)
    new_state = state
    if lens_radius > 0.0:
        disk, new_state = random_in_unit_disk(state)
        rd = lens_radius * disk
        offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    return Ray(origin=origin, direction=target - origin), new_state


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get the derived camera state for inspection.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (3-tuples) and lens_radius.
    """

    def as_tuple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": as_tuple(_camera_origin),
        "u": as_tuple(_camera_u),
        "v": as_tuple(_camera_v),
        "w": as_tuple(_camera_w),
        "horizontal": as_tuple(_viewport_horizontal),
        "vertical": as_tuple(_viewport_vertical),
        "lower_left": as_tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
