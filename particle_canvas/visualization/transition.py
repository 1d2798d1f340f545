"""Transition controller: which shape is current, which is pending, and how far along.

Only one morph runs at a time. Requests that arrive while a shape-to-shape
morph is in flight are dropped rather than queued; the mount-time intro from
the random scatter into the first shape is the one exception and may be
redirected.
"""

import logging
from enum import Enum, auto

import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig
from particle_canvas.visualization.particles import ParticleBuffers, fisher_yates_shuffle
from particle_canvas.visualization.shading import ease_in_out_cubic, explosion_offset
from particle_canvas.visualization.shapes import SHAPES

logger = logging.getLogger(__name__)


class TransitionState(Enum):
    IDLE = auto()
    TRANSITIONING = auto()


class TransitionController:
    """State machine driving shape morphs over a ParticleBuffers store."""

    def __init__(self, buffers: ParticleBuffers, shapes=SHAPES,
                 rng: np.random.RandomState | None = None,
                 shuffle=fisher_yates_shuffle,
                 config: EngineConfig = DEFAULT_CONFIG):
        if not shapes:
            raise ValueError("at least one shape is required")
        self.buffers = buffers
        self.shapes = list(shapes)
        self.config = config
        self._rng = rng if rng is not None else np.random.RandomState()
        self._shuffle = shuffle

        self.current_index = 0
        self.progress = 0.0
        self.state = TransitionState.IDLE
        self.completed_transitions = 0
        self._intro = True

        # Intro: scatter -> first shape, without promoting the (empty) targets
        self._generate_targets(0)
        self.state = TransitionState.TRANSITIONING
        logger.debug("[Particles] Intro transition into %s", self.shapes[0].name)

    @property
    def shape_count(self) -> int:
        return len(self.shapes)

    @property
    def is_transitioning(self) -> bool:
        return self.state is TransitionState.TRANSITIONING

    @property
    def current_name(self) -> str:
        return self.shapes[self.current_index].name

    def request_cycle(self, direction: int) -> bool:
        """Step to the previous (-1) or next (+1) shape. Returns True if a morph started."""
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or +1, got {direction}")
        if not self._can_start():
            logger.debug("[Particles] Cycle %+d dropped: transition in progress", direction)
            return False
        n = self.shape_count
        self._begin((self.current_index + direction + n) % n)
        return True

    def request_direct(self, index: int) -> bool:
        """Jump straight to shape index. No-op when already current or mid-morph."""
        if not 0 <= index < self.shape_count:
            logger.warning("[Particles] Ignoring unknown shape index %r", index)
            return False
        if index == self.current_index:
            return False
        if not self._can_start():
            logger.debug("[Particles] Direct %d dropped: transition in progress", index)
            return False
        self._begin(index)
        return True

    def tick(self, delta_time: float) -> bool:
        """Advance progress. Returns True on the tick that completes a morph."""
        if self.state is not TransitionState.TRANSITIONING:
            return False
        self.progress = min(self.progress + max(delta_time, 0.0) * self.config.transition_rate, 1.0)
        # Tolerate float drift when the deltas sum to exactly one full morph
        if self.progress < 1.0 - 1e-9:
            return False
        self.progress = 1.0
        self.state = TransitionState.IDLE
        self._intro = False
        self.completed_transitions += 1
        logger.debug("[Particles] Transition into %s complete", self.current_name)
        return True

    def _can_start(self) -> bool:
        if self.state is TransitionState.IDLE:
            return True
        return self._intro and self.config.intro_preemptible

    def _begin(self, index: int):
        if self.state is TransitionState.TRANSITIONING:
            # Redirecting the intro: start from where the particles are drawn now
            self._settle_in_flight()
            self._intro = False
        else:
            self.buffers.promote_targets()
        self.current_index = index
        self._generate_targets(index)
        self.progress = 0.0
        self.state = TransitionState.TRANSITIONING
        logger.debug("[Particles] Transition into %s", self.current_name)

    def _settle_in_flight(self):
        buffers = self.buffers
        n = buffers.count
        t = ease_in_out_cubic(self.progress)
        burst = explosion_offset(
            buffers.position.reshape(n, 3).astype(np.float64),
            buffers.target_position.reshape(n, 3).astype(np.float64),
            buffers.random.astype(np.float64),
            t, self.config.explosion_scale,
        )
        buffers.settle(t, burst)

    def _generate_targets(self, index: int):
        buffers = self.buffers
        buffers.clear_targets()
        buffers.shuffle(self._shuffle, self._rng)
        shape = self.shapes[index]
        try:
            shape.generator(
                buffers.target_position, buffers.target_color,
                buffers.count, buffers.indices, self._rng, self.config,
            )
        except Exception:
            # Cosmetic layer: leave the zeroed targets in place and keep animating
            logger.exception("[Particles] Shape generator %s failed", shape.name)
        buffers.version += 1
