"""Tests for the shape generator library."""

import math

import numpy as np
import pytest

from particle_canvas.visualization.config import EngineConfig
from particle_canvas.visualization.particles import fisher_yates_shuffle
from particle_canvas.visualization.shapes import (
    NETWORK_NODES,
    SHAPES,
    ambient,
    generate_ambient,
    generate_atom,
    generate_cyber_globe,
    generate_data_network,
    generate_infinite_loop,
    generate_processor,
    generate_signal_wave,
    shape_limit,
)

GENERATORS = [shape.generator for shape in SHAPES]


def _run(generator, count, rng, indices=None, config=None):
    pos = np.full(count * 3, np.nan, dtype=np.float32)
    col = np.full(count * 3, np.nan, dtype=np.float32)
    if config is None:
        generator(pos, col, count, indices, rng)
    else:
        generator(pos, col, count, indices, rng, config)
    return pos.reshape(count, 3), col.reshape(count, 3)


def _shuffled(count, rng):
    indices = np.arange(count, dtype=np.int32)
    fisher_yates_shuffle(indices, rng)
    return indices


class TestRegistry:
    def test_six_named_shapes(self):
        assert [s.name for s in SHAPES] == [
            "Core Processor", "Quantum Atom", "Signal Wave",
            "Cyber Globe", "Data Network", "Infinite Loop",
        ]

    def test_shape_limit_floors(self):
        assert shape_limit(1000, 0.55) == 550
        assert shape_limit(6, 0.55) == 3
        assert shape_limit(1, 0.55) == 0
        assert shape_limit(30000, 0.55) == 16500


@pytest.mark.parametrize("generator", GENERATORS, ids=[s.name for s in SHAPES])
class TestSharedContract:
    @pytest.mark.parametrize("count", [1, 2, 7, 1000])
    def test_buffers_fully_written_and_finite(self, generator, count, rng):
        pos, col = _run(generator, count, rng, _shuffled(count, rng))
        assert np.all(np.isfinite(pos))
        assert np.all(np.isfinite(col))

    def test_shape_ambient_split_follows_shuffled_order(self, generator, rng):
        count = 1000
        indices = _shuffled(count, rng)
        _, col = _run(generator, count, rng, indices)
        # Silhouette reds are >= 0.6, ambient reds stay below 0.45
        on_shape = np.flatnonzero(col[:, 0] >= 0.5)
        k = shape_limit(count, 0.55)
        assert len(on_shape) == k
        assert set(on_shape.tolist()) == set(indices[:k].tolist())

    def test_ambient_particles_stay_in_box(self, generator, rng):
        count = 1000
        indices = _shuffled(count, rng)
        pos, col = _run(generator, count, rng, indices)
        amb = indices[shape_limit(count, 0.55):]
        assert np.all(np.abs(pos[amb, 0]) <= 40.0)
        assert np.all(np.abs(pos[amb, 1]) <= 40.0)
        assert np.all((pos[amb, 2] >= -45.0) & (pos[amb, 2] <= 15.0))
        assert np.all((col[amb, 0] >= 0.2) & (col[amb, 0] < 0.45))
        assert np.all(col[amb, 1:] == 0.0)

    def test_color_channels_in_unit_range(self, generator, rng):
        _, col = _run(generator, 2000, rng)
        assert col.min() >= 0.0
        assert col.max() <= 1.0

    def test_identity_order_tolerated(self, generator, rng):
        pos, col = _run(generator, 50, rng, indices=None)
        assert np.all(np.isfinite(pos))
        assert np.all(col[:shape_limit(50, 0.55), 0] >= 0.5)

    def test_seeded_rng_is_reproducible(self, generator):
        a, ca = _run(generator, 300, np.random.RandomState(5))
        b, cb = _run(generator, 300, np.random.RandomState(5))
        np.testing.assert_array_equal(a, b)
        np.testing.assert_array_equal(ca, cb)

    def test_not_deterministic_across_sources(self, generator):
        a, _ = _run(generator, 300, np.random.RandomState(1))
        b, _ = _run(generator, 300, np.random.RandomState(2))
        assert not np.array_equal(a, b)

    def test_rejects_empty_count(self, generator, rng):
        pos = np.zeros(3, dtype=np.float32)
        col = np.zeros(3, dtype=np.float32)
        with pytest.raises(ValueError):
            generator(pos, col, 0, None, rng)

    def test_rejects_undersized_buffers(self, generator, rng):
        pos = np.zeros(5, dtype=np.float32)
        col = np.zeros(6, dtype=np.float32)
        with pytest.raises(ValueError):
            generator(pos, col, 2, None, rng)


class TestSilhouettes:
    def test_processor_is_flat_board(self, rng):
        count = 2000
        pos, _ = _run(generate_processor, count, rng)
        shape = pos[:shape_limit(count, 0.55)]
        assert np.all(np.abs(shape[:, 2]) <= 0.25)
        assert np.all(np.abs(shape[:, :2]) <= 6.0 + 1e-5)

    def test_atom_nucleus_and_orbits(self, rng):
        count = 2000
        pos, _ = _run(generate_atom, count, rng)
        k = shape_limit(count, 0.55)
        n_core = math.ceil(k * 0.2)
        radii = np.linalg.norm(pos[:k], axis=1)
        assert np.all(radii[:n_core] <= 2.0 + 1e-5)
        assert np.all((radii[n_core:] >= 6.7) & (radii[n_core:] <= 7.3))

    def test_signal_wave_sits_above_emitter(self, rng):
        count = 2000
        pos, _ = _run(generate_signal_wave, count, rng)
        shape = pos[:shape_limit(count, 0.55)]
        # Lowest point is the emitter ball around y = -4
        assert shape[:, 1].min() >= -5.5 - 1e-5
        assert np.all(np.abs(shape[:, 2]) <= 1.5)

    def test_globe_radius_and_accents(self):
        count = 20000
        rng = np.random.RandomState(11)
        pos, col = _run(generate_cyber_globe, count, rng)
        k = shape_limit(count, 0.55)
        radii = np.linalg.norm(pos[:k], axis=1)
        assert np.all((radii >= 6.8 - 1e-4) & (radii <= 7.2 + 1e-4))
        nodes = np.isclose(col[:k, 1], 0.9)
        assert 0.03 < nodes.mean() < 0.07

    def test_data_network_nodes_and_links(self):
        count = 4000
        pos, col = _run(generate_data_network, count, np.random.RandomState(5))
        k = shape_limit(count, 0.55)

        # Same seed: the node layout is the first thing drawn
        replay = np.random.RandomState(5)
        centers = ((replay.random_sample(NETWORK_NODES * 3) - 0.5) * 16.0).reshape(NETWORK_NODES, 3)
        radii = replay.random_sample(NETWORK_NODES) * 2.5 + 0.5

        slot = np.arange(k)
        a = centers[slot % NETWORK_NODES]
        b = centers[(slot + 1) % NETWORK_NODES]
        pts = pos[:k].astype(np.float64)

        in_ball = np.linalg.norm(pts - a, axis=1) <= radii[slot % NETWORK_NODES] + 1e-4
        ab = b - a
        s = np.clip(np.sum((pts - a) * ab, axis=1) / np.sum(ab * ab, axis=1), 0.0, 1.0)
        to_link = np.linalg.norm(pts - (a + s[:, None] * ab), axis=1)
        on_link = to_link <= math.sqrt(3) * 0.1 + 1e-4

        assert np.all(in_ball | on_link)
        # Roughly 30% sit on links; the rest of those ends fall inside a ball
        assert 0.05 < np.mean(~in_ball) < 0.33
        assert np.all(col[:k, 0] >= 0.8 - 1e-6)
        assert np.all(col[:k, 1] == 0.0)

    def test_infinite_loop_is_figure_eight(self, rng):
        count = 2000
        pos, _ = _run(generate_infinite_loop, count, rng)
        shape = pos[:shape_limit(count, 0.55)]
        assert np.all(np.abs(shape[:, 0]) <= 8.75 + 1e-5)
        assert np.all(np.abs(shape[:, 1]) <= 4.75 + 1e-5)
        assert np.all(np.abs(shape[:, 2]) <= 2.75 + 1e-5)
        # The lobes pinch together at the crossing point
        assert np.all(np.abs(shape[:, 1]) <= np.abs(shape[:, 0]) + 1.5 + 1e-5)
        assert shape[:, 0].max() > 7.0 and shape[:, 0].min() < -7.0

    def test_custom_fraction(self, rng):
        config = EngineConfig(particle_count=100, shape_fraction=0.25)
        _, col = _run(generate_processor, 100, rng, config=config)
        assert np.count_nonzero(col[:, 0] >= 0.5) == 25


class TestAmbient:
    def test_ambient_helper_shapes(self, rng):
        pts, cols = ambient(10, rng)
        assert pts.shape == (10, 3)
        assert cols.shape == (10, 3)

    def test_generate_ambient_fills_everything(self, rng):
        pos, col = _run(generate_ambient, 400, rng)
        assert np.all(np.isfinite(pos))
        assert np.all(col[:, 0] < 0.45)
