"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward ``normal + random_unit_vector``. Adding a
uniform sample of the unit sphere to the normal yields a cosine-weighted lobe
around the normal, so the attenuation is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, ray_in, rec, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, near_zero
from pathtracer.core.rng import random_unit_vector
from pathtracer.geometry.sphere import HitRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian:
    """Lambertian material description used when building scenes.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that a reflectance color has three components in [0, 1].

    Raises:
        ValueError: If the color has the wrong length or a component is
            outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@ti.func
def scatter_lambertian(albedo: vec3, ray_in: Ray, rec: HitRecord, state: ti.u32):
    """Scatter a ray off a Lambertian surface.

    The scattered direction is ``normal + random_unit_vector``. When the two
    nearly cancel, the normal itself is used so the scattered ray never has a
    degenerate direction.

    Args:
        albedo: The diffuse reflectance color.
        ray_in: The incoming ray (unused; diffuse scattering ignores it).
        rec: The hit record at the scattering point.
        state: The current random state.

    Returns:
        A tuple of (scattered, attenuation, did_scatter, new_state) where
        did_scatter is always 1.
    """
    unit, new_state = random_unit_vector(state)
    direction = rec.normal + unit
    if near_zero(direction):
        direction = rec.normal
    scattered = Ray(origin=rec.point, direction=direction)
    return scattered, albedo, 1, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]
