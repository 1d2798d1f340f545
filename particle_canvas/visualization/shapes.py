"""Procedural point-cloud generators for the six named shapes.

Every generator fills two flat float32 buffers (positions, colors) of length
3 * count in place. The first floor(count * shape_fraction) entries of the
shuffled index order are placed on the shape silhouette; the rest are handed
to the ambient generator, which keeps a diffuse red background field alive
whatever shape is active.
"""

import math
from typing import Callable, NamedTuple

import numpy as np

from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig


NETWORK_NODES = 15


def shape_limit(count: int, fraction: float) -> int:
    """Number of particles placed on the silhouette (the rest are ambient)."""
    return int(math.floor(count * fraction))


def _sphere_directions(n: int, rng: np.random.RandomState) -> tuple[np.ndarray, np.ndarray]:
    """Uniform (theta, phi) pairs on the unit sphere."""
    theta = rng.random_sample(n) * 2.0 * math.pi
    phi = np.arccos(2.0 * rng.random_sample(n) - 1.0)
    return theta, phi


def _spherical(r, theta, phi) -> np.ndarray:
    # y is the polar axis
    return np.column_stack([
        r * np.sin(phi) * np.cos(theta),
        r * np.cos(phi),
        r * np.sin(phi) * np.sin(theta),
    ])


def _jitter(n: int, rng: np.random.RandomState, spread: float) -> np.ndarray:
    return (rng.random_sample(n) - 0.5) * spread


def _prepare(out_positions: np.ndarray, out_colors: np.ndarray, count: int,
             indices: np.ndarray | None) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Validate the contract and return (N, 3) views plus the index order."""
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")
    if out_positions.size < count * 3 or out_colors.size < count * 3:
        raise ValueError(
            f"buffers too small for {count} particles: "
            f"{out_positions.size} / {out_colors.size} floats"
        )
    if indices is None:
        indices = np.arange(count)
    elif len(indices) < count:
        raise ValueError(f"index order has {len(indices)} entries, need {count}")
    pos = out_positions[:count * 3].reshape(count, 3)
    col = out_colors[:count * 3].reshape(count, 3)
    return pos, col, np.asarray(indices[:count])


def ambient(n: int, rng: np.random.RandomState,
            config: EngineConfig = DEFAULT_CONFIG) -> tuple[np.ndarray, np.ndarray]:
    """Scatter n particles uniformly in the ambient box with a dim red tint."""
    ex, ey, ez = config.ambient_extent
    pts = np.column_stack([
        _jitter(n, rng, ex),
        _jitter(n, rng, ey),
        _jitter(n, rng, ez) + config.ambient_depth_offset,
    ])
    lo, hi = config.ambient_red
    cols = np.zeros((n, 3))
    cols[:, 0] = lo + rng.random_sample(n) * (hi - lo)
    return pts, cols


def _fill(out_positions, out_colors, count, indices, rng, config, silhouette):
    """Shared split: silhouette(k, rng) for the first k shuffled slots, ambient for the rest."""
    if rng is None:
        rng = np.random.RandomState()
    pos, col, order = _prepare(out_positions, out_colors, count, indices)
    k = shape_limit(count, config.shape_fraction)

    if k > 0:
        pts, cols = silhouette(k, rng)
        pos[order[:k]] = pts
        col[order[:k]] = cols

    n_ambient = count - k
    if n_ambient > 0:
        pts, cols = ambient(n_ambient, rng, config)
        pos[order[k:]] = pts
        col[order[k:]] = cols


# --- Silhouettes: each returns ((k, 3) positions, (k, 3) colors) ---

def _processor(k: int, rng: np.random.RandomState):
    pts = np.empty((k, 3))

    # Chip frame edges
    on_edge = rng.random_sample(k) > 0.6
    edge = rng.randint(0, 4, k)
    val = _jitter(k, rng, 12.0)
    frame_x = np.select([edge == 0, edge == 1, edge == 2], [val, val, np.full(k, 6.0)], -6.0)
    frame_y = np.select([edge == 0, edge == 1, edge == 2], [np.full(k, 6.0), np.full(k, -6.0), val], val)
    frame_z = _jitter(k, rng, 0.5)

    # Pad grid
    grid_x = (rng.randint(0, 10, k) - 4.5) + _jitter(k, rng, 0.2)
    grid_y = (rng.randint(0, 10, k) - 4.5) + _jitter(k, rng, 0.2)

    pts[:, 0] = np.where(on_edge, frame_x, grid_x)
    pts[:, 1] = np.where(on_edge, frame_y, grid_y)
    pts[:, 2] = np.where(on_edge, frame_z, 0.0)

    cols = np.column_stack([
        0.9 + rng.random_sample(k) * 0.1,
        rng.random_sample(k) * 0.15,
        rng.random_sample(k) * 0.15,
    ])
    return pts, cols


def _atom(k: int, rng: np.random.RandomState):
    pts = np.empty((k, 3))
    n_core = min(k, int(math.ceil(k * 0.2)))

    # Nucleus
    r = rng.random_sample(n_core) * 2.0
    theta, phi = _sphere_directions(n_core, rng)
    pts[:n_core] = _spherical(r, theta, phi)

    # Electron orbits, tilted 120 degrees apart about X, then 45 degrees about Y
    n_orbit = k - n_core
    orbit = rng.randint(0, 3, n_orbit)
    t = rng.random_sample(n_orbit) * 2.0 * math.pi
    r = 7.0 + _jitter(n_orbit, rng, 0.5)
    x = r * np.cos(t)
    y = r * np.sin(t)
    z = _jitter(n_orbit, rng, 0.5)
    angle_x = orbit * (math.pi / 1.5)
    y1 = y * np.cos(angle_x) - z * np.sin(angle_x)
    z1 = y * np.sin(angle_x) + z * np.cos(angle_x)
    angle_y = math.pi / 4.0
    x2 = x * math.cos(angle_y) - z1 * math.sin(angle_y)
    z2 = x * math.sin(angle_y) + z1 * math.cos(angle_y)
    pts[n_core:] = np.column_stack([x2, y1, z2])

    bright = rng.random_sample(k) > 0.95
    cols = np.column_stack([
        0.9 + rng.random_sample(k) * 0.1,
        np.where(bright, 0.6, rng.random_sample(k) * 0.1),
        np.where(bright, 0.4, 0.0),
    ])
    return pts, cols


def _signal_wave(k: int, rng: np.random.RandomState):
    pts = np.empty((k, 3))
    band = rng.randint(0, 4, k)
    source = band == 0

    # Emitter ball
    n_src = int(source.sum())
    r = rng.random_sample(n_src) * 1.5
    theta, phi = _sphere_directions(n_src, rng)
    ball = _spherical(r, theta, phi)
    ball[:, 1] -= 4.0
    pts[source] = ball

    # Arcs at stepped radii
    arcs = ~source
    n_arc = k - n_src
    radius = band[arcs] * 3.0 + 1.0 + _jitter(n_arc, rng, 0.6)
    t = _jitter(n_arc, rng, math.pi * 0.7)
    pts[arcs] = np.column_stack([
        radius * np.sin(t),
        radius * np.cos(t) - 4.0,
        _jitter(n_arc, rng, 1.0),
    ])

    cols = np.column_stack([
        0.95 + rng.random_sample(k) * 0.05,
        rng.random_sample(k) * 0.2,
        rng.random_sample(k) * 0.2,
    ])
    return pts, cols


def _cyber_globe(k: int, rng: np.random.RandomState):
    theta, phi = _sphere_directions(k, rng)

    # Snap onto meridians / parallels to draw the wireframe
    snap_theta = rng.random_sample(k) > 0.3
    theta = np.where(snap_theta, np.floor(theta * 16.0 + 0.5) / 16.0, theta)
    snap_phi = rng.random_sample(k) > 0.5
    phi = np.where(snap_phi, np.floor(phi * 12.0 + 0.5) / 12.0, phi)

    r = 7.0 + _jitter(k, rng, 0.4)
    pts = _spherical(r, theta, phi)

    node = rng.random_sample(k) > 0.95
    cols = np.column_stack([
        np.where(node, 1.0, 0.6 + rng.random_sample(k) * 0.4),
        np.where(node, 0.9, 0.0),
        np.where(node, 0.9, 0.0),
    ])
    return pts, cols


def _data_network(k: int, rng: np.random.RandomState):
    centers = _jitter(NETWORK_NODES * 3, rng, 16.0).reshape(NETWORK_NODES, 3)
    radii = rng.random_sample(NETWORK_NODES) * 2.5 + 0.5

    slot = np.arange(k)
    node = slot % NETWORK_NODES
    neighbour = (slot + 1) % NETWORK_NODES
    on_link = rng.random_sample(k) > 0.7

    # Links between consecutive nodes
    lerp = rng.random_sample(k)[:, None]
    link = centers[node] * lerp + centers[neighbour] * (1.0 - lerp)
    link += _jitter(k * 3, rng, 0.2).reshape(k, 3)

    # Solid node balls (cube root keeps the density uniform)
    theta, phi = _sphere_directions(k, rng)
    r = radii[node] * np.cbrt(rng.random_sample(k))
    ball = centers[node] + _spherical(r, theta, phi)

    pts = np.where(on_link[:, None], link, ball)
    cols = np.column_stack([
        0.8 + rng.random_sample(k) * 0.2,
        np.zeros(k),
        np.full(k, 0.05),
    ])
    return pts, cols


def _infinite_loop(k: int, rng: np.random.RandomState):
    t = rng.random_sample(k) * 2.0 * math.pi
    a = 8.0
    pts = np.column_stack([
        a * np.sin(t) + _jitter(k, rng, 1.5),
        a * np.sin(t) * np.cos(t) + _jitter(k, rng, 1.5),
        np.sin(t * 3.0) * 2.0 + _jitter(k, rng, 1.5),
    ])
    cols = np.column_stack([
        0.9 + rng.random_sample(k) * 0.1,
        rng.random_sample(k) * 0.05,
        rng.random_sample(k) * 0.1,
    ])
    return pts, cols


# --- Public generators ---

def generate_processor(out_positions, out_colors, count, indices=None, rng=None,
                       config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _processor)


def generate_atom(out_positions, out_colors, count, indices=None, rng=None,
                  config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _atom)


def generate_signal_wave(out_positions, out_colors, count, indices=None, rng=None,
                         config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _signal_wave)


def generate_cyber_globe(out_positions, out_colors, count, indices=None, rng=None,
                         config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _cyber_globe)


def generate_data_network(out_positions, out_colors, count, indices=None, rng=None,
                          config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _data_network)


def generate_infinite_loop(out_positions, out_colors, count, indices=None, rng=None,
                           config: EngineConfig = DEFAULT_CONFIG):
    _fill(out_positions, out_colors, count, indices, rng, config, _infinite_loop)


def generate_ambient(out_positions, out_colors, count, indices=None, rng=None,
                     config: EngineConfig = DEFAULT_CONFIG):
    """Fill every particle with ambient scatter (no silhouette)."""
    if rng is None:
        rng = np.random.RandomState()
    pos, col, order = _prepare(out_positions, out_colors, count, indices)
    pts, cols = ambient(count, rng, config)
    pos[order] = pts
    col[order] = cols


class Shape(NamedTuple):
    name: str
    generator: Callable


SHAPES = [
    Shape("Core Processor", generate_processor),
    Shape("Quantum Atom", generate_atom),
    Shape("Signal Wave", generate_signal_wave),
    Shape("Cyber Globe", generate_cyber_globe),
    Shape("Data Network", generate_data_network),
    Shape("Infinite Loop", generate_infinite_loop),
]
