"""CPU reference of the particle shading stage.

Mirrors shaders/particle.vert and shaders/particle.frag with numpy so the
interpolation math can run without a GL context: the transition controller
uses it to settle an in-flight morph, and the tests use it to check the
easing, explosion and noise terms.
"""

import math
from dataclasses import dataclass

import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig


def ease_in_out_cubic(x):
    """Cubic ease in-out on [0, 1]. Accepts floats or arrays."""
    if np.ndim(x) == 0:
        x = min(max(float(x), 0.0), 1.0)
        if x < 0.5:
            return 4.0 * x * x * x
        return 1.0 - (-2.0 * x + 2.0) ** 3 / 2.0
    x = np.clip(np.asarray(x, dtype=np.float64), 0.0, 1.0)
    return np.where(x < 0.5, 4.0 * x ** 3, 1.0 - (-2.0 * x + 2.0) ** 3 / 2.0)


def interpolate_base(position, target_position, start_color, target_color, progress: float):
    """Eased lerp of position and color, before explosion and noise."""
    t = ease_in_out_cubic(progress)
    pos = position + (target_position - position) * t
    col = start_color + (target_color - start_color) * t
    return pos, col


def explosion_offset(position, target_position, random, t: float,
                     scale: float = DEFAULT_CONFIG.explosion_scale) -> np.ndarray:
    """Outward burst along the (skewed) travel direction, peaking mid-morph.

    position/target_position are (N, 3); random is (N,). t is already eased.
    """
    expansion = math.sin(t * math.pi)
    r = random[:, None]
    skew = np.concatenate([r, r * 2.0, r * 3.0], axis=1)
    direction = target_position - position + skew
    length = np.linalg.norm(direction, axis=1, keepdims=True)
    direction = np.divide(direction, length, out=np.zeros_like(direction), where=length > 0.0)
    return direction * expansion * (r * scale)


def noise_offset(random, time: float,
                 amplitude: float = DEFAULT_CONFIG.noise_amplitude) -> np.ndarray:
    """Per-particle sinusoidal drift that keeps the field moving at rest."""
    phase = random * 20.0
    return np.column_stack([
        np.sin(time * 1.5 + phase),
        np.cos(time * 1.2 + phase),
        np.sin(time * 1.8 + phase),
    ]) * amplitude


@dataclass
class FrameUniforms:
    """Per-frame inputs shared by all particles."""

    time: float
    progress: float
    model_view: np.ndarray
    projection: np.ndarray


@dataclass
class ShadedParticles:
    clip_position: np.ndarray  # (N, 4)
    color: np.ndarray          # (N, 3)
    alpha: np.ndarray          # (N,)
    point_size: np.ndarray     # (N,)


def shade_particles(buffers, uniforms: FrameUniforms,
                    config: EngineConfig = DEFAULT_CONFIG) -> ShadedParticles:
    """Run the vertex stage for every particle of a ParticleBuffers-like object."""
    n = buffers.count
    position = buffers.position.reshape(n, 3).astype(np.float64)
    target = buffers.target_position.reshape(n, 3).astype(np.float64)
    start_color = buffers.start_color.reshape(n, 3).astype(np.float64)
    target_color = buffers.target_color.reshape(n, 3).astype(np.float64)
    random = buffers.random.astype(np.float64)

    t = float(ease_in_out_cubic(uniforms.progress))
    color = start_color + (target_color - start_color) * t
    pos = position + (target - position) * t
    pos += explosion_offset(position, target, random, t, config.explosion_scale)
    pos += noise_offset(random, uniforms.time, config.noise_amplitude)

    homogeneous = np.concatenate([pos, np.ones((n, 1))], axis=1)
    mv = homogeneous @ np.asarray(uniforms.model_view, dtype=np.float64).T
    clip = mv @ np.asarray(uniforms.projection, dtype=np.float64).T

    brightness = color.max(axis=1)
    intensity_size = np.power(np.clip(brightness, 0.0, None), 2.5) * 45.0
    depth = -mv[:, 2]
    # Behind the camera the sprite collapses instead of dividing by zero
    size = np.divide(8.0 * random + 6.0 + intensity_size, depth,
                     out=np.zeros(n), where=depth > 0.0) * config.point_scale

    alpha = np.full(n, 1.0 - math.sin(t * math.pi) * 0.3)
    return ShadedParticles(clip, color, alpha, size)


def _smoothstep(edge0: float, edge1: float, x):
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def point_sprite(color, alpha, r):
    """Fragment stage for one sprite sample at distance r from the sprite center.

    Returns (rgb, alpha); samples with r > 0.5 are discarded (alpha 0).
    """
    color = np.asarray(color, dtype=np.float64)
    r = np.asarray(r, dtype=np.float64)
    inside = r <= 0.5
    falloff = np.power(np.clip(1.0 - r * 2.0, 0.0, 1.0), 1.2) * alpha
    out_alpha = np.where(inside, falloff, 0.0)

    brightness = color.max(axis=-1)
    core_mix = _smoothstep(0.0, 0.4, r * 2.0)[..., None]
    core = np.ones_like(color) * (1.0 - core_mix) + color * core_mix
    b = brightness[..., None]
    final = color * (1.0 - b) + core * b
    return final, out_alpha
