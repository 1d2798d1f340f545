"""Tests for the CPU shading stage (easing, explosion, noise, point size, sprite)."""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from particle_canvas.visualization.camera import perspective, translation
from particle_canvas.visualization.config import EngineConfig
from particle_canvas.visualization.shading import (
    FrameUniforms,
    ease_in_out_cubic,
    explosion_offset,
    interpolate_base,
    noise_offset,
    point_sprite,
    shade_particles,
)


def _single_particle(color=(1.0, 0.0, 0.0), random=0.0):
    c = np.asarray(color, dtype=np.float32)
    return SimpleNamespace(
        count=1,
        position=np.zeros(3, dtype=np.float32),
        target_position=np.zeros(3, dtype=np.float32),
        start_color=c.copy(),
        target_color=c.copy(),
        random=np.array([random], dtype=np.float32),
    )


def _uniforms(time=0.0, progress=1.0):
    return FrameUniforms(
        time=time,
        progress=progress,
        model_view=translation(0.0, 0.0, -12.0),
        projection=perspective(60.0, 16 / 9, 0.1, 100.0),
    )


class TestEase:
    def test_boundary_values(self):
        assert ease_in_out_cubic(0.0) == 0.0
        assert ease_in_out_cubic(1.0) == 1.0
        assert ease_in_out_cubic(0.5) == pytest.approx(0.5)

    def test_monotonic(self):
        xs = np.linspace(0.0, 1.0, 1001)
        ys = ease_in_out_cubic(xs)
        assert np.all(np.diff(ys) >= 0.0)

    def test_clamps_outside_unit_range(self):
        assert ease_in_out_cubic(-0.5) == 0.0
        assert ease_in_out_cubic(1.5) == 1.0

    def test_scalar_and_array_agree(self):
        xs = [0.1, 0.3, 0.7, 0.9]
        np.testing.assert_allclose(ease_in_out_cubic(np.array(xs)),
                                   [ease_in_out_cubic(x) for x in xs])


class TestOffsets:
    def test_explosion_vanishes_at_ends(self, rng):
        pos = rng.random_sample((50, 3))
        target = rng.random_sample((50, 3)) * 10.0
        random = rng.random_sample(50)
        for t in (0.0, 1.0):
            np.testing.assert_allclose(explosion_offset(pos, target, random, t), 0.0, atol=1e-12)

    def test_explosion_peaks_mid_morph(self, rng):
        pos = np.zeros((20, 3))
        target = rng.random_sample((20, 3)) * 5.0
        random = rng.random_sample(20)
        offset = explosion_offset(pos, target, random, 0.5, scale=12.0)
        np.testing.assert_allclose(np.linalg.norm(offset, axis=1), random * 12.0)

    def test_zero_direction_is_finite(self):
        offset = explosion_offset(np.zeros((1, 3)), np.zeros((1, 3)), np.zeros(1), 0.5)
        assert np.all(np.isfinite(offset))
        assert not offset.any()

    def test_noise_bounded(self, rng):
        random = rng.random_sample(500)
        for time in (0.0, 1.3, 42.0):
            assert np.abs(noise_offset(random, time)).max() <= 0.15 + 1e-12

    def test_interpolate_base_endpoints(self, rng):
        a, b = rng.random_sample((4, 3)), rng.random_sample((4, 3))
        ca, cb = rng.random_sample((4, 3)), rng.random_sample((4, 3))
        pos, col = interpolate_base(a, b, ca, cb, 0.0)
        np.testing.assert_allclose(pos, a)
        pos, col = interpolate_base(a, b, ca, cb, 1.0)
        np.testing.assert_allclose(pos, b)
        np.testing.assert_allclose(col, cb)


class TestShadeParticles:
    def test_point_size_and_alpha_at_rest(self):
        shaded = shade_particles(_single_particle(), _uniforms())
        # (8 * 0 + 6 + 1 ** 2.5 * 45) / depth 12
        assert shaded.point_size[0] == pytest.approx(51.0 / 12.0)
        assert shaded.alpha[0] == pytest.approx(1.0)
        np.testing.assert_allclose(shaded.color[0], [1.0, 0.0, 0.0])

    def test_alpha_dips_mid_morph(self):
        shaded = shade_particles(_single_particle(), _uniforms(progress=0.5))
        assert shaded.alpha[0] == pytest.approx(0.7)

    def test_dim_particles_are_smaller(self):
        bright = shade_particles(_single_particle((1.0, 0.0, 0.0)), _uniforms())
        dim = shade_particles(_single_particle((0.2, 0.0, 0.0)), _uniforms())
        assert dim.point_size[0] < bright.point_size[0]

    def test_point_scale(self):
        config = EngineConfig(point_scale=2.0)
        shaded = shade_particles(_single_particle(), _uniforms(), config)
        assert shaded.point_size[0] == pytest.approx(2.0 * 51.0 / 12.0)

    def test_clip_position_in_front_of_camera(self):
        shaded = shade_particles(_single_particle(), _uniforms())
        clip = shaded.clip_position[0]
        assert clip[3] == pytest.approx(12.0)
        assert -1.0 < clip[2] / clip[3] < 1.0

    def test_behind_camera_collapses(self):
        particle = _single_particle()
        particle.position[:] = (0.0, 0.0, 20.0)
        particle.target_position[:] = (0.0, 0.0, 20.0)
        shaded = shade_particles(particle, _uniforms())
        assert shaded.point_size[0] == 0.0


class TestPointSprite:
    def test_outside_disc_discarded(self):
        _, alpha = point_sprite(np.array([1.0, 0.0, 0.0]), 1.0, 0.6)
        assert alpha == 0.0

    def test_falloff(self):
        _, center = point_sprite(np.array([1.0, 0.0, 0.0]), 1.0, 0.0)
        _, mid = point_sprite(np.array([1.0, 0.0, 0.0]), 1.0, 0.25)
        assert center == pytest.approx(1.0)
        assert mid == pytest.approx(math.pow(0.5, 1.2))

    def test_bright_core_goes_white(self):
        rgb, _ = point_sprite(np.array([1.0, 0.0, 0.0]), 1.0, 0.0)
        np.testing.assert_allclose(rgb, [1.0, 1.0, 1.0])

    def test_dark_particles_keep_color(self):
        rgb, _ = point_sprite(np.array([0.0, 0.0, 0.0]), 1.0, 0.0)
        np.testing.assert_allclose(rgb, [0.0, 0.0, 0.0])
