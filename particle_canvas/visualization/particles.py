"""Particle buffer store: per-particle arrays shared by the controller and renderer.

Five parallel float32 arrays describe the particle set. position/target_position
and start_color/target_color are the two endpoints of the current morph;
random is assigned once and never rewritten, so every particle keeps its own
noise phase, size and brightness personality across all shapes.
"""

import logging

import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig

logger = logging.getLogger(__name__)


def fisher_yates_shuffle(array: np.ndarray, rng: np.random.RandomState):
    """Shuffle array in place with a uniform Fisher-Yates permutation."""
    n = len(array)
    if n < 2:
        return
    # j_i uniform in [0, i] for i = n-1 .. 1, drawn up front
    bounds = np.arange(n - 1, 0, -1)
    picks = (rng.random_sample(n - 1) * (bounds + 1)).astype(np.int64)
    for i, j in zip(bounds.tolist(), picks.tolist()):
        array[i], array[j] = array[j], array[i]


def identity_shuffle(array: np.ndarray, rng: np.random.RandomState):
    """Leave the index order untouched (deterministic placement)."""


class ParticleBuffers:
    """Owns the particle arrays for the lifetime of one mounted visualization."""

    def __init__(self, count: int, rng: np.random.RandomState,
                 config: EngineConfig = DEFAULT_CONFIG):
        if count <= 0:
            raise ValueError(f"count must be > 0, got {count}")
        self.count = count

        # Initial random scatter, dim grey
        self.position = ((rng.random_sample(count * 3) - 0.5) * config.scatter_extent).astype(np.float32)
        self.target_position = np.zeros(count * 3, dtype=np.float32)
        self.start_color = np.tile(np.asarray(config.scatter_color, dtype=np.float32), count)
        self.target_color = np.zeros(count * 3, dtype=np.float32)

        self.random = rng.random_sample(count).astype(np.float32)
        self.random.flags.writeable = False

        self.indices = np.arange(count, dtype=np.int32)

        # Bumped on every rewrite so GPU copies know to re-upload
        self.version = 0
        self.released = False

    def promote_targets(self):
        """Make the last target the new start: position <- target, start color <- target color."""
        self.position[:] = self.target_position
        self.start_color[:] = self.target_color
        self.version += 1

    def settle(self, t: float, offset: np.ndarray | None = None):
        """Freeze the eased in-flight state at t as the new start.

        offset (flat, 3 * count) is added to the settled positions; pass the
        explosion burst at t so the start matches what is on screen.
        """
        t = float(np.clip(t, 0.0, 1.0))
        self.position += (self.target_position - self.position) * t
        if offset is not None:
            self.position += np.asarray(offset, dtype=np.float32).reshape(-1)
        self.start_color += (self.target_color - self.start_color) * t
        self.version += 1

    def clear_targets(self):
        """Zero the target arrays so a failing generator leaves finite values behind."""
        self.target_position.fill(0.0)
        self.target_color.fill(0.0)
        self.version += 1

    def shuffle(self, shuffle_fn, rng: np.random.RandomState):
        shuffle_fn(self.indices, rng)

    def release(self):
        """Drop the arrays. The store is unusable afterwards."""
        if self.released:
            return
        self.released = True
        logger.debug("[Particles] Releasing %d particle buffers", self.count)
        empty = np.zeros(0, dtype=np.float32)
        self.position = empty
        self.target_position = empty
        self.start_color = empty
        self.target_color = empty
        self.random = empty
        self.indices = np.zeros(0, dtype=np.int32)
