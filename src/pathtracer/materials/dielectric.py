"""Dielectric (glass/water) material implementation.

A dielectric either reflects or refracts every ray it scatters. Which one is
decided per ray:

    - Snell's law gives sin(theta_t) = eta * sin(theta_i); when that exceeds 1
      refraction is impossible and the ray is totally internally reflected.
    - Otherwise the ray reflects with probability equal to Schlick's Fresnel
      approximation and refracts the rest of the time.

Clear glass absorbs nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     refractive_index, ray_in, rec, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize, reflect, refract, schlick_reflectance
from pathtracer.core.rng import random_float
from pathtracer.geometry.sphere import HitRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Dielectric:
    """Dielectric material description used when building scenes.

    Attributes:
        refractive_index: Index of refraction relative to the surrounding
            medium. Air is 1.0, water 1.33, glass about 1.5, diamond 2.4.
    """

    refractive_index: float

    def __post_init__(self) -> None:
        validate_refractive_index(self.refractive_index)


def validate_refractive_index(refractive_index: float) -> None:
    """Raise ValueError unless the refractive index is positive."""
    if not refractive_index > 0.0:
        raise ValueError(
            f"Refractive index must be positive, got {refractive_index}"
        )


@ti.func
def refraction_ratio_for(refractive_index: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a ray entering or leaving."""
    ratio = refractive_index
    if front_face == 1:
        ratio = 1.0 / refractive_index
    return ratio


@ti.func
def cannot_refract(unit_direction: vec3, normal: vec3, refraction_ratio: ti.f32) -> ti.i32:
    """Return 1 when Snell's law has no solution (total internal reflection)."""
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    return refraction_ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    ray_in: Ray,
    rec: HitRecord,
    state: ti.u32,
):
    """Scatter a ray through or off a dielectric surface.

    A uniform number is drawn for every scatter event, including ones that
    end in total internal reflection, so the random stream does not depend on
    the branch taken.

    Args:
        refractive_index: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The hit record at the scattering point. ``front_face`` selects
            whether the ray is entering (1) or leaving (0) the material.
        state: The current random state.

    Returns:
        A tuple of (scattered, attenuation, did_scatter, new_state) where
        attenuation is white and did_scatter is always 1.
    """
    ratio = refraction_ratio_for(refractive_index, rec.front_face)
    unit_direction = normalize(ray_in.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)

    u, new_state = random_float(state)

    direction = vec3(0.0, 0.0, 0.0)
    # Schlick reflects a little even for matched media at oblique angles
    if cannot_refract(unit_direction, rec.normal, ratio) or (
        schlick_reflectance(cos_theta, ratio) > u
    ):
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, ratio)

    scattered = Ray(origin=rec.point, direction=direction)
    return scattered, vec3(1.0, 1.0, 1.0), 1, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: Index of refraction (must be positive).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    validate_refractive_index(refractive_index)

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_index(material_idx: ti.i32) -> ti.f32:
    return dielectric_indices[material_idx]
