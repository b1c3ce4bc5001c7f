import numpy as np
import pytest

from motion_overlay.core import OverlaySettings, Playback
from motion_overlay.errors import IndexOutOfRange


@pytest.fixture
def playback(store, simulation):
    return Playback(store, simulation, OverlaySettings(visible=False))


def test_advance_wraps_and_steps_once(playback, store):
    frames = [playback.advance() for _ in range(store.frame_count)]
    assert playback.current_frame == 0
    assert playback.simulation.tick == store.frame_count
    assert np.array_equal(frames[0], store.get_frame(1))
    assert np.array_equal(frames[-1], store.get_frame(0))


def test_seek_and_current_do_not_step(playback, store):
    frame = playback.seek(2)
    assert playback.current_frame == 2
    assert np.array_equal(frame, store.get_frame(2))
    playback.current()
    assert playback.simulation.tick == 0


def test_seek_out_of_range(playback):
    with pytest.raises(IndexOutOfRange):
        playback.seek(3)


def test_tick_uses_frame_durations(playback):
    assert playback.tick(500) == 0

    playback.play()
    assert playback.tick(50) == 0
    assert playback.tick(60) == 1
    assert playback.current_frame == 1
    assert playback.tick(250) == 2
    assert playback.current_frame == 0
    assert playback.simulation.tick == 3


def test_pause_stop_toggle(playback):
    playback.toggle()
    assert playback.playing
    playback.advance()
    playback.stop()
    assert not playback.playing
    assert playback.current_frame == 0
    playback.toggle()
    assert playback.playing
    playback.pause()
    assert not playback.playing


def test_overlay_defaults():
    from motion_overlay.core import ParticleSimulation
    from motion_overlay.core import BackgroundParser

    store = BackgroundParser.from_arrays([np.zeros((2, 2, 3), dtype=np.uint8)])
    playback = Playback(store, ParticleSimulation())
    assert playback.overlay.opacity == 1.0
