"""Unit tests for the dielectric material.

Tests cover:
- Refractive index validation
- Total internal reflection
- Fresnel reflection probability at normal incidence
- Index-matched media
"""

import math

import pytest
import taichi as ti


def _scatter_dielectric(direction, refractive_index, front_face, samples=1):
    """Scatter rays off a dielectric with normal +y; return numpy arrays."""
    from pathtracer.core.ray import Ray
    from pathtracer.core.rng import pixel_rng_state
    from pathtracer.geometry.sphere import HitRecord
    from pathtracer.materials.dielectric import scatter_dielectric

    incoming = ti.Vector.field(3, dtype=ti.f32, shape=())
    incoming[None] = direction
    directions = ti.Vector.field(3, dtype=ti.f32, shape=samples)
    attenuations = ti.Vector.field(3, dtype=ti.f32, shape=samples)
    flags = ti.field(dtype=ti.i32, shape=samples)

    @ti.kernel
    def test_kernel(refractive_index: ti.f32, front_face: ti.i32):
        for i in range(samples):
            state = pixel_rng_state(ti.cast(41, ti.u32), ti.cast(i, ti.u32))
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=ti.math.vec3(0.0, 0.0, 0.0),
                normal=ti.math.vec3(0.0, 1.0, 0.0),
                front_face=front_face,
                material_id=0,
            )
            ray_in = Ray(origin=-incoming[None], direction=incoming[None])
            scattered, attenuation, did_scatter, _ = scatter_dielectric(
                refractive_index, ray_in, rec, state
            )
            directions[i] = scattered.direction
            attenuations[i] = attenuation
            flags[i] = did_scatter

    test_kernel(refractive_index, front_face)
    return directions.to_numpy(), attenuations.to_numpy(), flags.to_numpy()


class TestDielectricValue:
    """Tests for the Dielectric scene description."""

    def test_valid_index(self):
        from pathtracer.materials.dielectric import Dielectric

        assert Dielectric(1.5).refractive_index == 1.5

    @pytest.mark.parametrize("refractive_index", [0.0, -1.5])
    def test_non_positive_index_raises(self, refractive_index):
        from pathtracer.materials.dielectric import Dielectric

        with pytest.raises(ValueError, match="positive"):
            Dielectric(refractive_index)

    def test_registry_rejects_invalid_index(self):
        from pathtracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_material_count,
        )

        with pytest.raises(ValueError):
            add_dielectric_material(0.0)
        assert get_dielectric_material_count() == 0


class TestScatterDielectric:
    """Tests for scatter_dielectric inside kernels."""

    def test_total_internal_reflection(self):
        s = 1.0 / math.sqrt(2.0)
        # Leaving glass at 45 degrees: 1.5 * sin(45) > 1
        directions, attenuations, flags = _scatter_dielectric(
            (s, -s, 0.0), 1.5, front_face=0, samples=64
        )
        assert (flags == 1).all()
        assert abs(directions - [s, s, 0.0]).max() < 1e-5
        assert abs(attenuations - 1.0).max() == 0.0

    def test_normal_incidence_reflects_schlick_fraction(self):
        n = 20000
        directions, attenuations, flags = _scatter_dielectric(
            (0.0, -1.0, 0.0), 1.5, front_face=1, samples=n
        )
        reflected = directions[:, 1] > 0.0
        fraction = reflected.mean()
        # Schlick at normal incidence: ((1 - 1.5) / (1 + 1.5))^2 = 0.04
        assert 0.03 <= fraction <= 0.05
        assert (flags == 1).all()
        assert abs(attenuations - 1.0).max() == 0.0

        refracted = directions[~reflected]
        assert abs(refracted - [0.0, -1.0, 0.0]).max() < 1e-5

    def test_matched_index_never_reflects_head_on(self):
        directions, _, _ = _scatter_dielectric(
            (0.0, -1.0, 0.0), 1.0, front_face=1, samples=4096
        )
        assert (directions[:, 1] < 0.0).all()

    def test_refraction_follows_snell(self):
        s = 1.0 / math.sqrt(2.0)
        # Entering glass at 45 degrees reflects only ~5% of the time
        directions, _, _ = _scatter_dielectric((s, -s, 0.0), 1.5, front_face=1, samples=256)
        refracted = directions[directions[:, 1] < 0.0]
        assert len(refracted) > 200
        sin_t = s / 1.5
        assert abs(refracted[:, 0] - sin_t).max() < 1e-5


class TestDielectricRegistry:
    """Tests for the dielectric material table."""

    def test_add_and_read_back(self):
        from pathtracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_index,
            get_dielectric_material_count,
        )

        add_dielectric_material(1.5)
        add_dielectric_material(2.4)
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_dielectric_index(1)

        test_kernel()
        assert abs(result[None] - 2.4) < 1e-6


class TestMatchedIndexOblique:
    """Tests for index-matched glass away from normal incidence."""

    def test_oblique_rays_pass_straight_or_reflect_by_schlick(self):
        # 60 degrees from the normal: Schlick gives (1 - cos 60)^5 = 1/32
        s = math.sqrt(3.0) / 2.0
        directions, _, _ = _scatter_dielectric((s, -0.5, 0.0), 1.0, front_face=1, samples=8192)
        reflected = directions[:, 1] > 0.0
        assert 0.02 <= reflected.mean() <= 0.045

        refracted = directions[~reflected]
        assert abs(refracted - [s, -0.5, 0.0]).max() < 1e-5
