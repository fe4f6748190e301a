"""Metal (specular reflective) material implementation.

The incoming direction is normalized and mirrored about the surface normal:

    R = I - 2(I . N)N

A fuzz factor in [0, 1] perturbs the mirror direction by a random point of a
ball of that radius, blurring the reflection. Rays perturbed below the surface
are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, ray_in, rec, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize, reflect
from pathtracer.core.rng import random_in_unit_sphere
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.lambertian import validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz factor into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


@dataclass(frozen=True)
class Metal:
    """Metal material description used when building scenes.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection blur. Values outside [0, 1] are clamped on
            construction; 0 is a perfect mirror.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))
        object.__setattr__(self, "fuzz", clamp_fuzz(self.fuzz))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    ray_in: Ray,
    rec: HitRecord,
    state: ti.u32,
):
    """Scatter a ray off a metal surface.

    The scattered direction is ``reflect(unit(d), n) + fuzz * p`` with p a
    random point of the unit ball. It is not renormalized. The ray is absorbed
    (did_scatter = 0) when the scattered direction does not point strictly
    into the normal's hemisphere.

    Args:
        albedo: The reflective color.
        fuzz: Reflection blur in [0, 1].
        ray_in: The incoming ray.
        rec: The hit record at the scattering point.
        state: The current random state.

    Returns:
        A tuple of (scattered, attenuation, did_scatter, new_state).
    """
    reflected = reflect(normalize(ray_in.direction), rec.normal)
    offset, new_state = random_in_unit_sphere(state)
    direction = reflected + fuzz * offset

    did_scatter = 1
    if tm.dot(direction, rec.normal) <= 0.0:
        did_scatter = 0

    scattered = Ray(origin=rec.point, direction=direction)
    return scattered, albedo, did_scatter, new_state


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The reflection blur. Clamped to [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
