"""Particle engine: owns buffers, controller, camera and renderer for one mount.

The host creates an engine, calls start() with a drawable moderngl context,
feeds it pointer/resize/section signals and calls frame() once per display
refresh. stop() tears everything down; any signal that arrives afterwards is
ignored. The engine never raises into the host: it is a decorative layer and
the page must keep working without it.
"""

import logging
import math

import numpy as np

from particle_canvas.visualization.camera import IdleCamera
from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig
from particle_canvas.visualization.particles import ParticleBuffers, fisher_yates_shuffle
from particle_canvas.visualization.renderer import Renderer
from particle_canvas.visualization.shapes import SHAPES
from particle_canvas.visualization.transition import TransitionController

logger = logging.getLogger(__name__)


class ParticleEngine:
    """Scoped handle around one running particle visualization."""

    def __init__(self, config: EngineConfig | None = None,
                 rng: np.random.RandomState | None = None,
                 shuffle=fisher_yates_shuffle,
                 renderer_factory=Renderer,
                 shapes=SHAPES):
        self.config = config or DEFAULT_CONFIG
        self._rng = rng if rng is not None else np.random.RandomState()
        self._shuffle = shuffle
        self._renderer_factory = renderer_factory
        self._shapes = shapes

        self.buffers: ParticleBuffers | None = None
        self.controller: TransitionController | None = None
        self.camera: IdleCamera | None = None
        self.renderer = None
        self._observer = None

        self.elapsed_time = 0.0
        self.pointer = (0.0, 0.0)
        self.width = 1
        self.height = 1
        self._pending_section: int | None = None
        self._render_failed = False
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    # --- Lifecycle ---

    def start(self, ctx, width: int = 1280, height: int = 720, observer=None) -> bool:
        """Mount against a drawable context. Returns False (and does nothing) without one."""
        if self._mounted:
            return True
        if ctx is None:
            logger.warning("[Particles] No drawable surface; visualization disabled")
            return False

        self.width = max(1, int(width))
        self.height = max(1, int(height))
        try:
            self.buffers = ParticleBuffers(self.config.particle_count, self._rng, self.config)
            self.controller = TransitionController(
                self.buffers, self._shapes, self._rng, self._shuffle, self.config,
            )
            self.camera = IdleCamera(self.config)
            self.renderer = self._renderer_factory(
                ctx, self.buffers, self.width, self.height, self.config,
            )
        except Exception:
            logger.exception("[Particles] Failed to initialize; visualization disabled")
            self._release()
            return False

        self.elapsed_time = 0.0
        self._render_failed = False
        self._mounted = True
        logger.info("[Particles] Started with %d particles (%dx%d)",
                    self.buffers.count, self.width, self.height)

        if observer is not None:
            self._observer = observer
            observer.connect(self.on_section_visible)
        return True

    def stop(self):
        """Tear down: stop frames, detach the observer, then release buffers."""
        if not self._mounted:
            return
        self._mounted = False
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None
        self._pending_section = None
        self._release()
        logger.info("[Particles] Stopped")

    def _release(self):
        if self.renderer is not None:
            try:
                self.renderer.cleanup()
            except Exception:
                logger.exception("[Particles] Renderer cleanup failed")
        if self.buffers is not None:
            self.buffers.release()
        self.renderer = None
        self.controller = None
        self.camera = None
        self.buffers = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    # --- Input signals ---

    def on_section_visible(self, section_id: int):
        """Queue a viewport signal for the next frame.

        The latest id wins. It stays queued while a running morph blocks it.
        """
        if not self._mounted:
            return
        self._pending_section = section_id

    def on_pointer_move(self, x: float, y: float):
        if not self._mounted:
            return
        x, y = float(x), float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            logger.debug("[Particles] Ignoring non-finite pointer (%r, %r)", x, y)
            return
        self.pointer = (min(max(x, -1.0), 1.0), min(max(y, -1.0), 1.0))

    def on_viewport_resize(self, width: int, height: int):
        if not self._mounted or width <= 0 or height <= 0:
            return
        self.width = int(width)
        self.height = int(height)
        self.renderer.resize(self.width, self.height)

    def request_cycle(self, direction: int) -> bool:
        if not self._mounted:
            return False
        try:
            return self.controller.request_cycle(direction)
        except ValueError as e:
            logger.warning("[Particles] %s", e)
            return False

    # --- Render loop ---

    def frame(self, delta_time: float) -> bool:
        """Advance one frame and draw. Returns False when not mounted."""
        if not self._mounted:
            return False
        delta = float(delta_time)
        delta = min(max(delta, 0.0), self.config.max_frame_delta) if math.isfinite(delta) else 0.0

        if self._pending_section is not None:
            self._apply_pending_section()

        self.elapsed_time += delta
        self.controller.tick(delta)
        self.camera.update(delta, *self.pointer)

        try:
            self.renderer.render(
                self.elapsed_time,
                self.controller.progress,
                self.camera.model_view(),
                self.camera.projection(self.width / self.height),
            )
        except Exception:
            # Logged once per mount
            if not self._render_failed:
                logger.exception("[Particles] Render failed")
            self._render_failed = True
        return True

    def _apply_pending_section(self):
        """Request the queued shape; keep it queued while a morph blocks it."""
        section = self._pending_section
        controller = self.controller
        try:
            index = int(section)
        except (TypeError, ValueError):
            logger.warning("[Particles] Ignoring malformed section id %r", section)
            self._pending_section = None
            return
        if not 0 <= index < controller.shape_count:
            logger.warning("[Particles] Ignoring unknown section id %r", section)
            self._pending_section = None
            return
        if index == controller.current_index or controller.request_direct(index):
            self._pending_section = None
