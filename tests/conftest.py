import numpy as np
import pytest

from particle_canvas.visualization.config import EngineConfig


class RecordingRenderer:
    """Stand-in for the GL renderer: records frames instead of drawing."""

    def __init__(self, ctx, buffers, width, height, config):
        self.ctx = ctx
        self.buffers = buffers
        self.size = (width, height)
        self.config = config
        self.frames = []
        self.released = False

    def resize(self, width, height):
        self.size = (width, height)

    def render(self, time, progress, model_view, projection):
        self.frames.append((time, progress))

    def cleanup(self):
        self.released = True


@pytest.fixture
def rng():
    return np.random.RandomState(1234)


@pytest.fixture
def small_config():
    return EngineConfig(particle_count=600)


@pytest.fixture
def surface():
    """Any non-None object stands in for a drawable context."""
    return object()
