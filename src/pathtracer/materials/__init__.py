"""Materials module for surface scattering.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection blurred by a fuzz factor
    dielectric: Glass-like refraction with Fresnel reflection

Each module provides a Python value type used to describe scenes, a
``scatter_*`` Taichi function and a field-backed registry the scene manager
uploads into. Every scatter function returns
``(scattered, attenuation, did_scatter, new_state)``.
"""

from .dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_material_count,
    scatter_dielectric,
)
from .lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    "Lambertian",
    "Metal",
    "Dielectric",
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "add_lambertian_material",
    "add_metal_material",
    "add_dielectric_material",
    "clear_lambertian_materials",
    "clear_metal_materials",
    "clear_dielectric_materials",
    "get_lambertian_material_count",
    "get_metal_material_count",
    "get_dielectric_material_count",
]
