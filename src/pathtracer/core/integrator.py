"""Monte Carlo radiance estimator.

Follows a camera ray through the scene, bouncing off surfaces until it escapes
to the sky, is absorbed, or runs out of bounces:

    - miss: the path carries the sky gradient, weighted by the product of the
      attenuations collected so far (the throughput)
    - absorption: the path contributes black
    - bounce budget exhausted: the path contributes black

The sky is the only light source, a vertical gradient from white at the
horizon and below to light blue overhead.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import estimate_radiance
    >>> # Use within a Taichi kernel:
    >>> # color, state = estimate_radiance(ray, max_depth, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.dielectric import get_dielectric_index, scatter_dielectric
from pathtracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from pathtracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Path Tracing Constants
# =============================================================================

# Minimum ray parameter; rejects the surface a scattered ray starts on
T_MIN = 0.001

# Maximum ray distance
T_MAX = tm.inf

# Sky gradient endpoints
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends linearly from white to light blue with ``t = 0.5 * (unit.y + 1)``.
    """
    unit = normalize(direction)
    t = 0.5 * (unit.y + 1.0)
    return (1.0 - t) * HORIZON_COLOR + t * ZENITH_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(ray_in: Ray, rec: HitRecord, state: ti.u32):
    """Dispatch to the scatter function of the material that was hit.

    Args:
        ray_in: The incoming ray.
        rec: The hit record; its material_id selects the material.
        state: The current random state.

    Returns:
        A tuple of (scattered, attenuation, did_scatter, new_state). An unknown
        material absorbs the ray.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    scattered = Ray(origin=rec.point, direction=rec.normal)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    new_state = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered, attenuation, did_scatter, new_state = scatter_lambertian(
            albedo, ray_in, rec, state
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered, attenuation, did_scatter, new_state = scatter_metal(
            albedo, fuzz, ray_in, rec, state
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        refractive_index = get_dielectric_index(type_index)
        scattered, attenuation, did_scatter, new_state = scatter_dielectric(
            refractive_index, ray_in, rec, state
        )

    return scattered, attenuation, did_scatter, new_state


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def estimate_radiance(ray: Ray, max_depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Iterative form of the recursive estimator
    ``L(r, d) = attenuation * L(scattered, d - 1)``, with ``L(r, 0) = 0``.

    Args:
        ray: The ray to follow.
        max_depth: Number of surface interactions allowed. 0 yields black.
        state: The current random state.

    Returns:
        A tuple of (color, new_state).
    """
    current = ray
    s = state
    throughput = vec3(1.0, 1.0, 1.0)
    radiance = vec3(0.0, 0.0, 0.0)

    # Path continuation flag; the loop has a fixed trip count
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current.origin, current.direction, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * background_color(current.direction)
                active = 0
            else:
                scattered, attenuation, did_scatter, s = scatter_material(current, rec, s)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput = throughput * attenuation
                    current = scattered

    return radiance, s
