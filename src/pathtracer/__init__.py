"""Monte Carlo path tracer for scenes of spheres, built on Taichi.

Renders Lambertian, metal and dielectric spheres lit by a sky gradient, with
a thin-lens camera, explicit per-pixel random streams and 8-bit output.

Subpackages:
    core: Vector utilities, random sampling, the radiance estimator and the
        image renderer
    geometry: Sphere primitive and hit records
    materials: Scattering models and their material registries
    scene: Sphere storage, the scene manager and built-in scenes
    camera: Thin-lens camera with ray generation
    preview: Image export and viewers

Modules that allocate Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
