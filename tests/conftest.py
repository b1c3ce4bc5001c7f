import numpy as np
import pytest

from motion_overlay.core import BackgroundParser, ParticleSimulation, SimulationSettings
from motion_overlay.errors import EncodingFailure


@pytest.fixture
def store():
    """Three distinct gray frames, 20x16, 100 ms each"""
    frames = [np.full((16, 20, 3), value, dtype=np.uint8) for value in (40, 120, 200)]
    return BackgroundParser.from_arrays(frames, [100, 100, 100], name="test")


@pytest.fixture
def settings():
    return SimulationSettings(particle_count=25, radius_min=1.0, radius_max=3.0, seed=1234)


@pytest.fixture
def simulation(store, settings):
    sim = ParticleSimulation()
    sim.initialize(store.dimensions, settings)
    return sim


class EmptySimulation:
    """Initialized population of zero particles"""

    def __init__(self):
        self.steps = 0
        self.calls = []

    def step(self):
        self.steps += 1
        self.calls.append("step")

    def render(self, frame_index):
        self.calls.append(f"render {frame_index}")
        return []


class RecordingSink:
    """Keeps every frame handed to it"""

    extension = '.bin'

    def __init__(self):
        self.frames = []
        self.durations = []
        self.finalized = False

    def add_frame(self, pixels, duration_ms):
        self.frames.append(pixels.copy())
        self.durations.append(duration_ms)

    def finalize(self):
        self.finalized = True
        return b"frames:%d" % len(self.frames)


class FailingSink(RecordingSink):
    """Raises EncodingFailure on the Nth add_frame (1-based)"""

    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on

    def add_frame(self, pixels, duration_ms):
        if len(self.frames) + 1 == self.fail_on:
            raise EncodingFailure(f"disk full on frame {self.fail_on}")
        super().add_frame(pixels, duration_ms)


@pytest.fixture
def empty_simulation():
    return EmptySimulation()


@pytest.fixture
def recording_sink():
    return RecordingSink()
