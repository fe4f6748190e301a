"""Unit tests for the built-in scenes."""

import math

import pytest


class TestSpheresScene:
    """Tests for the three-spheres scene."""

    def test_layout(self):
        from pathtracer.materials.dielectric import Dielectric
        from pathtracer.materials.lambertian import Lambertian
        from pathtracer.materials.metal import Metal
        from pathtracer.scene.presets import create_spheres_scene

        scene, _ = create_spheres_scene()
        assert [s.center for s in scene.spheres] == [
            (0.0, -100.5, -1.0),
            (0.0, 0.0, -1.0),
            (-1.0, 0.0, -1.0),
            (1.0, 0.0, -1.0),
        ]
        assert [s.radius for s in scene.spheres] == [100.0, 0.5, 0.5, 0.5]
        assert scene.spheres[0].material == Lambertian((0.8, 0.8, 0.0))
        assert scene.spheres[1].material == Lambertian((0.1, 0.2, 0.5))
        assert scene.spheres[2].material == Dielectric(1.5)
        assert scene.spheres[3].material == Metal((0.8, 0.6, 0.2), 0.0)

    def test_camera_is_focused_on_center_sphere(self):
        from pathtracer.scene.presets import create_spheres_scene

        _, camera = create_spheres_scene(aspect_ratio=2.0)
        assert camera.look_from == (-2.0, 2.0, 1.0)
        assert camera.look_at == (0.0, 0.0, -1.0)
        assert camera.vfov == 20.0
        assert camera.aspect_ratio == 2.0
        assert camera.aperture == 0.0
        assert camera.focus_distance == pytest.approx(math.sqrt(12.0))

    def test_params_override_materials_and_lens(self):
        from pathtracer.scene.presets import SpheresSceneParams, create_spheres_scene

        params = SpheresSceneParams(metal_fuzz=0.3, glass_index=1.33, aperture=0.1, vfov=40.0)
        scene, camera = create_spheres_scene(16 / 9, params)
        assert scene.spheres[3].material.fuzz == 0.3
        assert scene.spheres[2].material.refractive_index == 1.33
        assert camera.aperture == 0.1
        assert camera.vfov == 40.0


class TestSceneRegistry:
    """Tests for looking up scenes by name."""

    def test_simple_scene(self):
        from pathtracer.scene.presets import create_scene

        scene, camera = create_scene("simple", 1.5)
        assert len(scene) == 2
        assert camera.look_from == (0.0, 0.0, 0.0)
        assert camera.vfov == 90.0
        assert camera.aspect_ratio == 1.5

    def test_spheres_by_name(self):
        from pathtracer.scene.presets import create_scene

        scene, _ = create_scene("spheres", 16 / 9)
        assert len(scene) == 4

    def test_unknown_scene_raises(self):
        from pathtracer.scene.presets import create_scene

        with pytest.raises(ValueError, match="Unknown scene"):
            create_scene("cornell", 1.0)
