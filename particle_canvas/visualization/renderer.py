"""OpenGL rendering pipeline: particle buffers -> additive point sprites."""

import logging
import os

import moderngl
import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig
from particle_canvas.visualization.particles import ParticleBuffers

logger = logging.getLogger(__name__)

SHADER_DIR = os.path.join(os.path.dirname(__file__), "shaders")

# (buffer attribute, format, shader input)
_ATTRIBUTES = [
    ("position", "3f", "in_position"),
    ("target_position", "3f", "in_target_pos"),
    ("start_color", "3f", "in_start_color"),
    ("target_color", "3f", "in_target_color"),
    ("random", "1f", "in_random"),
]


def _load_shader(name: str) -> str:
    path = os.path.join(SHADER_DIR, name)
    with open(path, "r") as f:
        return f.read()


class Renderer:
    """Draws one ParticleBuffers store with the morph shaders."""

    def __init__(self, ctx: moderngl.Context, buffers: ParticleBuffers,
                 width: int, height: int, config: EngineConfig = DEFAULT_CONFIG):
        self.ctx = ctx
        self.buffers = buffers
        self.config = config
        self.width = width
        self.height = height
        self._uploaded_version = -1
        self._build_shaders()
        self._build_geometry()

    def _build_shaders(self):
        self.prog = self.ctx.program(
            vertex_shader=_load_shader("particle.vert"),
            fragment_shader=_load_shader("particle.frag"),
        )

    def _build_geometry(self):
        # One VBO per attribute; the random scalars never change after this upload
        self._vbos = {}
        content = []
        for attr, fmt, name in _ATTRIBUTES:
            data = getattr(self.buffers, attr)
            vbo = self.ctx.buffer(np.ascontiguousarray(data, dtype="f4").tobytes())
            self._vbos[attr] = vbo
            content.append((vbo, fmt, name))
        self.vao = self.ctx.vertex_array(self.prog, content)
        self._uploaded_version = self.buffers.version

    def _upload(self):
        if self._uploaded_version == self.buffers.version:
            return
        for attr, _, _ in _ATTRIBUTES:
            if attr == "random":
                continue
            self._vbos[attr].write(getattr(self.buffers, attr).tobytes())
        self._uploaded_version = self.buffers.version

    def _set_uniform(self, name: str, value):
        uniform = self.prog.get(name, None)
        if uniform is None:
            logger.debug("[Particles] Uniform %s not found (may be optimized out)", name)
            return
        uniform.value = value

    def resize(self, width: int, height: int):
        """Track the drawable size; the viewport follows on the next render."""
        if width <= 0 or height <= 0:
            return
        self.width = width
        self.height = height

    @property
    def aspect(self) -> float:
        return self.width / max(1.0, float(self.height))

    def render(self, time: float, progress: float,
               model_view: np.ndarray, projection: np.ndarray):
        """Render one frame into the currently bound framebuffer."""
        self._upload()

        self.ctx.viewport = (0, 0, self.width, self.height)
        r, g, b = self.config.background
        self.ctx.clear(r, g, b, 1.0)

        # GLSL mat4 is column-major
        self.prog["u_model_view"].write(np.ascontiguousarray(model_view.T, dtype="f4").tobytes())
        self.prog["u_projection"].write(np.ascontiguousarray(projection.T, dtype="f4").tobytes())
        self._set_uniform("u_time", float(time))
        self._set_uniform("u_transition", float(progress))
        self._set_uniform("u_explosion_scale", self.config.explosion_scale)
        self._set_uniform("u_noise_amplitude", self.config.noise_amplitude)
        self._set_uniform("u_point_scale", self.config.point_scale)

        self.ctx.enable(moderngl.PROGRAM_POINT_SIZE | moderngl.BLEND)
        self.ctx.disable(moderngl.DEPTH_TEST)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE

        self.vao.render(moderngl.POINTS, vertices=self.buffers.count)

        self.ctx.disable(moderngl.BLEND)

    def cleanup(self):
        """Release all GPU resources."""
        objs = [self.vao, self.prog, *self._vbos.values()]
        for obj in objs:
            try:
                obj.release()
            except Exception:
                pass
        self._vbos = {}
