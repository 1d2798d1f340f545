"""Idle camera drift and the matrix helpers used by the renderer.

Matrices are built row-major for column vectors (p' = M @ p); transpose
before uploading to GLSL, whose mat4 constructor is column-major.
"""

import math

import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig


def perspective(fov_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    f = 1.0 / math.tan(math.radians(fov_deg) / 2.0)
    m = np.zeros((4, 4), dtype=np.float32)
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = (far + near) / (near - far)
    m[2, 3] = 2.0 * far * near / (near - far)
    m[3, 2] = -1.0
    return m


def translation(x: float, y: float, z: float) -> np.ndarray:
    m = np.eye(4, dtype=np.float32)
    m[:3, 3] = (x, y, z)
    return m


def rotation_xy(pitch: float, yaw: float) -> np.ndarray:
    """Rotation about X then Y, applied in object space (XYZ Euler order)."""
    cx, sx = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    rx = np.array([
        [1, 0, 0, 0],
        [0, cx, -sx, 0],
        [0, sx, cx, 0],
        [0, 0, 0, 1],
    ], dtype=np.float32)
    ry = np.array([
        [cy, 0, sy, 0],
        [0, 1, 0, 0],
        [-sy, 0, cy, 0],
        [0, 0, 0, 1],
    ], dtype=np.float32)
    return rx @ ry


class IdleCamera:
    """Constant idle spin plus pointer parallax, eased toward the target each frame."""

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.base_rotation = 0.0
        self.pitch = 0.0
        self.yaw = 0.0

    def update(self, delta_time: float, pointer_x: float, pointer_y: float):
        cfg = self.config
        self.base_rotation += delta_time * cfg.idle_spin_rate
        target_yaw = self.base_rotation + pointer_x * cfg.pointer_yaw
        target_pitch = pointer_y * cfg.pointer_pitch

        # Exponential approach: never overshoots, frame-rate independent
        smoothing = 1.0 - math.exp(-cfg.rotation_damping * delta_time)
        self.yaw += (target_yaw - self.yaw) * smoothing
        self.pitch += (target_pitch - self.pitch) * smoothing

    def model_view(self) -> np.ndarray:
        return translation(0.0, 0.0, -self.config.camera_distance) @ rotation_xy(self.pitch, self.yaw)

    def projection(self, aspect: float) -> np.ndarray:
        cfg = self.config
        return perspective(cfg.camera_fov, aspect, cfg.camera_near, cfg.camera_far)
