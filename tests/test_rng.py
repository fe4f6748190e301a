"""Unit tests for the explicit random source and sampling helpers.

Tests cover:
- RngFactory seed validation
- Reproducibility of random streams
- Distribution bounds of every sampling helper
"""

import math

import pytest
import taichi as ti


class TestRngFactory:
    """Tests for the Python-side seed holder."""

    def test_default_seed_is_zero(self):
        from pathtracer.core.rng import RngFactory

        assert RngFactory().seed == 0

    @pytest.mark.parametrize("seed", [-1, 2**32])
    def test_seed_out_of_range_raises(self, seed):
        from pathtracer.core.rng import RngFactory

        with pytest.raises(ValueError, match="outside"):
            RngFactory(seed)

    def test_spawn_is_deterministic_and_wraps(self):
        from pathtracer.core.rng import RngFactory

        assert RngFactory(5).spawn(3) == RngFactory(8)
        assert RngFactory(2**32 - 1).spawn(1) == RngFactory(0)


class TestRandomStream:
    """Tests for state derivation and uniform floats."""

    def test_same_seed_gives_same_sequence(self):
        from pathtracer.core.rng import pixel_rng_state, random_float

        n = 32
        values = ti.field(dtype=ti.f32, shape=(2, n))

        @ti.kernel
        def test_kernel(seed: ti.u32):
            for run in range(2):
                state = pixel_rng_state(seed, ti.cast(7, ti.u32))
                for k in range(n):
                    v, state = random_float(state)
                    values[run, k] = v

        test_kernel(12345)
        data = values.to_numpy()
        assert (data[0] == data[1]).all()
        # The stream is not constant
        assert len(set(data[0].tolist())) > n // 2

    def test_different_pixels_get_different_states(self):
        from pathtracer.core.rng import pixel_rng_state

        n = 256
        states = ti.field(dtype=ti.u32, shape=n)

        @ti.kernel
        def test_kernel(seed: ti.u32):
            for i in range(n):
                states[i] = pixel_rng_state(seed, ti.cast(i, ti.u32))

        test_kernel(0)
        data = states.to_numpy()
        assert len(set(data.tolist())) == n
        assert (data != 0).all()

    def test_seed_changes_states(self):
        from pathtracer.core.rng import pixel_rng_state

        states = ti.field(dtype=ti.u32, shape=2)

        @ti.kernel
        def test_kernel():
            states[0] = pixel_rng_state(ti.cast(1, ti.u32), ti.cast(0, ti.u32))
            states[1] = pixel_rng_state(ti.cast(2, ti.u32), ti.cast(0, ti.u32))

        test_kernel()
        assert states[0] != states[1]

    def test_random_float_in_unit_interval(self):
        from pathtracer.core.rng import pixel_rng_state, random_float

        n = 4096
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = pixel_rng_state(ti.cast(3, ti.u32), ti.cast(i, ti.u32))
                v, _ = random_float(state)
                values[i] = v

        test_kernel()
        data = values.to_numpy()
        assert data.min() >= 0.0
        assert data.max() < 1.0
        assert abs(data.mean() - 0.5) < 0.03

    def test_random_range_bounds(self):
        from pathtracer.core.rng import pixel_rng_state, random_range

        n = 1024
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = pixel_rng_state(ti.cast(9, ti.u32), ti.cast(i, ti.u32))
                v, _ = random_range(-2.0, 3.0, state)
                values[i] = v

        test_kernel()
        data = values.to_numpy()
        assert data.min() >= -2.0
        assert data.max() < 3.0


class TestSamplingHelpers:
    """Tests for the geometric sampling routines."""

    def test_random_in_unit_sphere_inside_ball(self):
        from pathtracer.core.rng import pixel_rng_state, random_in_unit_sphere

        n = 2048
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = pixel_rng_state(ti.cast(1, ti.u32), ti.cast(i, ti.u32))
                p, _ = random_in_unit_sphere(state)
                points[i] = p

        test_kernel()
        data = points.to_numpy()
        lengths_sq = (data**2).sum(axis=1)
        assert (lengths_sq < 1.0).all()
        # Mean of a uniform ball sample is the center
        assert abs(data.mean(axis=0)).max() < 0.05

    def test_random_unit_vector_has_unit_length(self):
        from pathtracer.core.rng import pixel_rng_state, random_unit_vector

        n = 2048
        vectors = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = pixel_rng_state(ti.cast(2, ti.u32), ti.cast(i, ti.u32))
                v, _ = random_unit_vector(state)
                vectors[i] = v

        test_kernel()
        data = vectors.to_numpy()
        lengths = (data**2).sum(axis=1) ** 0.5
        assert abs(lengths - 1.0).max() < 1e-4
        assert abs(data.mean(axis=0)).max() < 0.05

    def test_random_in_unit_disk_is_planar(self):
        from pathtracer.core.rng import pixel_rng_state, random_in_unit_disk

        n = 2048
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = pixel_rng_state(ti.cast(4, ti.u32), ti.cast(i, ti.u32))
                p, _ = random_in_unit_disk(state)
                points[i] = p

        test_kernel()
        data = points.to_numpy()
        assert (data[:, 2] == 0.0).all()
        assert ((data[:, 0] ** 2 + data[:, 1] ** 2) < 1.0).all()

    def test_random_in_hemisphere_faces_normal(self):
        from pathtracer.core.rng import pixel_rng_state, random_in_hemisphere

        n = 2048
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = ti.math.normalize(ti.math.vec3(1.0, 1.0, 0.0))
            for i in range(n):
                state = pixel_rng_state(ti.cast(5, ti.u32), ti.cast(i, ti.u32))
                v, _ = random_in_hemisphere(normal, state)
                dots[i] = ti.math.dot(v, normal)

        test_kernel()
        assert dots.to_numpy().min() >= 0.0

    def test_sampling_advances_state(self):
        from pathtracer.core.rng import pixel_rng_state, random_unit_vector

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            state = pixel_rng_state(ti.cast(6, ti.u32), ti.cast(0, ti.u32))
            a, state = random_unit_vector(state)
            b, state = random_unit_vector(state)
            result[None] = ti.math.length(a - b)

        test_kernel()
        assert result[None] > 0.0
        assert not math.isnan(result[None])
