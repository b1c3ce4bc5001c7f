import numpy as np
import pytest
from PIL import Image

from motion_overlay.core import BackgroundFrameStore, BackgroundParser, DEFAULT_FRAME_DURATION
from motion_overlay.errors import IndexOutOfRange, InvalidConfiguration


def write_gif(path, colors, durations=None):
    images = [Image.new('RGB', (12, 9), color) for color in colors]
    options = dict(save_all=True, append_images=images[1:], loop=0)
    if durations is not None:
        options['duration'] = durations
    images[0].save(path, format='GIF', **options)
    return path


def test_from_arrays_adds_alpha(store):
    assert store.frame_count == 3
    assert store.dimensions == (20, 16)
    assert store.total_duration == 300
    frame = store.get_frame(0)
    assert frame.shape == (16, 20, 4)
    assert (frame[:, :, 3] == 255).all()


def test_from_arrays_default_durations():
    store = BackgroundParser.from_arrays([np.zeros((2, 2, 4), dtype=np.uint8)])
    assert store.durations == [DEFAULT_FRAME_DURATION]


def test_from_arrays_rejects_bad_input():
    with pytest.raises(InvalidConfiguration):
        BackgroundParser.from_arrays([])
    with pytest.raises(InvalidConfiguration):
        BackgroundParser.from_arrays([np.zeros((2, 2), dtype=np.uint8)])


def test_store_validation():
    frame = np.zeros((4, 4, 4), dtype=np.uint8)
    with pytest.raises(InvalidConfiguration):
        BackgroundFrameStore(4, 4, frames=[frame], durations=[])
    with pytest.raises(InvalidConfiguration):
        BackgroundFrameStore(4, 4, frames=[frame], durations=[0])
    with pytest.raises(InvalidConfiguration):
        BackgroundFrameStore(5, 4, frames=[frame], durations=[100])


@pytest.mark.parametrize("index", [-1, 3, 100])
def test_index_out_of_range(store, index):
    with pytest.raises(IndexOutOfRange):
        store.get_frame(index)
    with pytest.raises(IndexOutOfRange):
        store.get_frame_duration(index)


def test_parse_animated_gif(tmp_path):
    path = write_gif(tmp_path / "loop.gif", ['red', 'green', 'blue'], [50, 150, 250])
    store = BackgroundParser.parse(path)
    assert store.frame_count == 3
    assert store.dimensions == (12, 9)
    assert store.durations == [50, 150, 250]
    assert store.name == "loop"
    assert store.source_path == path
    assert tuple(store.get_frame(2)[0, 0]) == (0, 0, 255, 255)


def test_parse_gif_without_delays_uses_default(tmp_path):
    path = write_gif(tmp_path / "plain.gif", ['red', 'blue'])
    store = BackgroundParser.parse(path)
    assert store.durations == [DEFAULT_FRAME_DURATION] * 2


def test_parse_still_image(tmp_path):
    path = tmp_path / "still.png"
    Image.new('RGBA', (5, 7), (1, 2, 3, 255)).save(path)
    store = BackgroundParser.parse(path)
    assert store.frame_count == 1
    assert store.durations == [DEFAULT_FRAME_DURATION]


def test_parse_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        BackgroundParser.parse(tmp_path / "missing.gif")
    other = tmp_path / "notes.txt"
    other.write_text("hello")
    with pytest.raises(ValueError):
        BackgroundParser.parse(other)
