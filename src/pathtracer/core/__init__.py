"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    rng: Explicit random state and Monte Carlo sampling helpers
    integrator: Radiance estimator with material dispatch
    renderer: Per-pixel sampling kernel and the public ``render`` function

Only field-free modules are imported here. Import integrator and renderer
directly (after ``ti.init()``) when needed:
    from pathtracer.core.renderer import render
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .rng import (
    MAX_REJECTION_ATTEMPTS,
    RngFactory,
    pixel_rng_state,
    random_float,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "RngFactory",
    "MAX_REJECTION_ATTEMPTS",
    "pixel_rng_state",
    "random_float",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_in_hemisphere",
]
