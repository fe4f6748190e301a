"""Built-in scenes.

Two scenes are provided:

- ``spheres``: a yellow diffuse ground sphere with three spheres in a row on
  top of it; glass on the left, blue-grey diffuse in the middle and polished
  gold on the right, viewed from above and to the left.
- ``simple``: a grey diffuse sphere resting on a grey diffuse ground sphere,
  seen by the axis-aligned camera from the origin.

Both factories return the scene together with a camera for the requested
aspect ratio.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_spheres_scene
    >>> scene, camera = create_spheres_scene(aspect_ratio=16 / 9)
    >>> len(scene)
    4
"""

from dataclasses import dataclass

from pathtracer.camera.thin_lens import Camera
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.lambertian import Lambertian
from pathtracer.materials.metal import Metal
from pathtracer.scene.manager import SceneManager

# Radius of the sphere standing in for the ground plane
GROUND_RADIUS = 100.0


@dataclass
class SpheresSceneParams:
    """Parameters of the ``spheres`` scene.

    Attributes:
        ground_color: Albedo of the ground sphere.
        center_color: Albedo of the middle diffuse sphere.
        metal_color: Albedo of the right metal sphere.
        metal_fuzz: Fuzz of the right metal sphere (0 is a mirror).
        glass_index: Refractive index of the left glass sphere.
        vfov: Vertical field of view of the camera in degrees.
        aperture: Lens diameter (0 disables depth of field).

    Example:
        >>> params = SpheresSceneParams(metal_fuzz=0.3, aperture=0.1)
        >>> scene, camera = create_spheres_scene(16 / 9, params)
    """

    ground_color: tuple[float, float, float] = (0.8, 0.8, 0.0)
    center_color: tuple[float, float, float] = (0.1, 0.2, 0.5)
    metal_color: tuple[float, float, float] = (0.8, 0.6, 0.2)
    metal_fuzz: float = 0.0
    glass_index: float = 1.5
    vfov: float = 20.0
    aperture: float = 0.0


def create_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
    params: SpheresSceneParams | None = None,
) -> tuple[SceneManager, Camera]:
    """Create the three-spheres scene and its camera.

    The camera looks from (-2, 2, 1) at the middle sphere at (0, 0, -1) and is
    focused on it.

    Args:
        aspect_ratio: Width divided by height of the output image.
        params: Optional overrides for colors, materials and camera.

    Returns:
        A tuple of (scene, camera).
    """
    if params is None:
        params = SpheresSceneParams()

    scene = SceneManager()
    scene.add_sphere((0.0, -GROUND_RADIUS - 0.5, -1.0), GROUND_RADIUS, Lambertian(params.ground_color))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian(params.center_color))
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, Dielectric(params.glass_index))
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, Metal(params.metal_color, params.metal_fuzz))

    look_from = (-2.0, 2.0, 1.0)
    look_at = (0.0, 0.0, -1.0)
    # Distance from the camera to the middle sphere
    focus_distance = sum((a - b) ** 2 for a, b in zip(look_from, look_at)) ** 0.5

    camera = Camera(
        look_from=look_from,
        look_at=look_at,
        vup=(0.0, 1.0, 0.0),
        vfov=params.vfov,
        aspect_ratio=aspect_ratio,
        aperture=params.aperture,
        focus_distance=focus_distance,
    )
    return scene, camera


def create_simple_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, Camera]:
    """Create a diffuse sphere on a diffuse ground and the axis-aligned camera."""
    scene = SceneManager()
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.5, 0.5, 0.5)))
    scene.add_sphere((0.0, -GROUND_RADIUS - 0.5, -1.0), GROUND_RADIUS, Lambertian((0.5, 0.5, 0.5)))
    return scene, Camera.simple(aspect_ratio)


# Scene factories by CLI name
SCENES = {
    "spheres": create_spheres_scene,
    "simple": create_simple_scene,
}


def create_scene(name: str, aspect_ratio: float) -> tuple[SceneManager, Camera]:
    """Create a built-in scene by name.

    Raises:
        ValueError: If no scene has that name.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene {name!r}; choose one of {', '.join(sorted(SCENES))}"
        ) from None
    return factory(aspect_ratio)
