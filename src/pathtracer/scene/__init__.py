"""Scene module for scene description and ray-scene queries.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit search
    manager: Scene description, material ids and upload to the fields
    presets: Built-in scenes with matching cameras

Scene data is stored for kernel access as a structure of arrays and is only
written from Python scope, before a render starts.
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    load_scene_file,
)
from .presets import (
    SpheresSceneParams,
    create_scene,
    create_simple_scene,
    create_spheres_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "MaterialType",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "load_scene_file",
    # Presets
    "SpheresSceneParams",
    "create_scene",
    "create_spheres_scene",
    "create_simple_scene",
]
