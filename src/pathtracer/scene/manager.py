"""Scene description and upload of spheres and materials to Taichi fields.

A scene is an insertion-ordered list of spheres, each owning its material.
The Python side keeps the description; ``SceneManager.upload`` writes it into
the type-specific material registries and the sphere storage so kernels can
read it. Every uploaded material gets a unified material id that maps to
(MaterialType, type_local_index), which is what the integrator dispatches on.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import Lambertian
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, -1), 0.5, Lambertian((0.7, 0.3, 0.3)))
    0
    >>> scene.upload()
"""

import json
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Union

import taichi as ti
from loguru import logger

from pathtracer.materials.dielectric import (
    Dielectric,
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    Lambertian,
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    Metal,
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import MAX_SPHERES, add_sphere, clear_scene

Material = Union[Lambertian, Metal, Dielectric]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# One material per sphere
MAX_MATERIALS = MAX_SPHERES

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_tracking() -> None:
    """Forget all unified material ids."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a unified material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        unknown material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index into the type-specific registry for a material ID.

    Returns:
        The type-local index, or -1 for an unknown material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


def material_type_of(material: Material) -> MaterialType:
    """Return the MaterialType tag for a material description.

    Raises:
        TypeError: If the object is not one of the supported materials.
    """
    if isinstance(material, Lambertian):
        return MaterialType.LAMBERTIAN
    if isinstance(material, Metal):
        return MaterialType.METAL
    if isinstance(material, Dielectric):
        return MaterialType.DIELECTRIC
    raise TypeError(f"Unsupported material: {material!r}")


def material_to_dict(material: Material) -> dict[str, Any]:
    """Serialize a material description to a JSON-compatible dict."""
    kind = material_type_of(material)
    if kind == MaterialType.LAMBERTIAN:
        return {"type": "lambertian", "albedo": list(material.albedo)}
    if kind == MaterialType.METAL:
        return {"type": "metal", "albedo": list(material.albedo), "fuzz": material.fuzz}
    return {"type": "dielectric", "refractive_index": material.refractive_index}


def material_from_dict(data: dict[str, Any]) -> Material:
    """Build a material description from its dict form.

    Raises:
        ValueError: If the type is unknown, a required key is missing, or a
            value is out of range.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Material must be an object, got {data!r}")
    mat_type = str(data.get("type", "")).lower()
    try:
        if mat_type == "lambertian":
            return Lambertian(tuple(data["albedo"]))
        if mat_type == "metal":
            return Metal(tuple(data["albedo"]), data.get("fuzz", 0.0))
        if mat_type == "dielectric":
            return Dielectric(float(data["refractive_index"]))
    except KeyError as exc:
        raise ValueError(f"Material '{mat_type}' is missing key {exc}") from exc
    except TypeError as exc:
        raise ValueError(f"Material '{mat_type}' has a value of the wrong type: {exc}") from exc
    raise ValueError(f"Unknown material type: {mat_type!r}")


@dataclass(frozen=True)
class SphereInfo:
    """A sphere of the scene description.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        material: The material the sphere owns.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material


class SceneManager:
    """Insertion-ordered collection of spheres with their materials.

    Spheres are only described on the Python side until ``upload`` is called;
    the renderer uploads the scene before launching its kernel.

    Attributes:
        spheres: The spheres in insertion order.
    """

    def __init__(self) -> None:
        self.spheres: list[SphereInfo] = []

    def __len__(self) -> int:
        return len(self.spheres)

    def clear(self) -> None:
        """Remove every sphere from the description."""
        self.spheres.clear()

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> int:
        """Append a sphere that owns the given material.

        Args:
            center: The center point of the sphere.
            radius: The radius of the sphere.
            material: A Lambertian, Metal or Dielectric description.

        Returns:
            The index of the sphere in the scene.

        Raises:
            ValueError: If the radius is not positive or the center does not
                have three components.
            TypeError: If the material is not a supported description.
            RuntimeError: If the scene is full.
        """
        if len(center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {len(center)}")
        if not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        material_type_of(material)
        if len(self.spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        info = SphereInfo(
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
            material=material,
        )
        self.spheres.append(info)
        return len(self.spheres) - 1

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    # =========================================================================
    # Upload to Taichi fields
    # =========================================================================

    def _register_material(self, material: Material) -> int:
        """Write a material into its registry and assign a unified id."""
        kind = material_type_of(material)
        if kind == MaterialType.LAMBERTIAN:
            type_index = add_lambertian_material(material.albedo)
        elif kind == MaterialType.METAL:
            type_index = add_metal_material(material.albedo, material.fuzz)
        else:
            type_index = add_dielectric_material(material.refractive_index)

        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
        material_types[material_id] = int(kind)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1
        return material_id

    def upload(self) -> None:
        """Replace the contents of the scene fields with this description."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_tracking()

        for sphere in self.spheres:
            material_id = self._register_material(sphere.material)
            add_sphere(sphere.center, sphere.radius, material_id)

        logger.debug("Uploaded scene with {} spheres", len(self.spheres))

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {
            "spheres": [
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material": material_to_dict(sphere.material),
                }
                for sphere in self.spheres
            ]
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with the one described by a dictionary.

        Args:
            data: Dictionary with a 'spheres' list (see ``to_dict``).

        Raises:
            ValueError: If an entry is malformed.
        """
        spheres = data.get("spheres")
        if not isinstance(spheres, list):
            raise ValueError("Scene data must contain a 'spheres' list")

        self.clear()
        for i, entry in enumerate(spheres):
            try:
                center = tuple(entry["center"])
                radius = float(entry["radius"])
                material_data = entry["material"]
            except (KeyError, TypeError) as exc:
                raise ValueError(f"Sphere entry {i} is malformed: {exc}") from exc
            self.add_sphere(center, radius, material_from_dict(material_data))

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES


def load_scene_file(path: str | Path) -> SceneManager:
    """Load a scene from a JSON file written in the ``to_dict`` format.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Scene file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    scene = SceneManager()
    scene.from_dict(data)
    logger.info("Loaded {} spheres from {}", len(scene), path)
    return scene
