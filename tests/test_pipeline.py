import asyncio

import numpy as np
import pytest

from motion_overlay.core import (
    BackgroundParser, ExportPipeline, ExportState, GifEncoder, OverlaySettings,
)
from motion_overlay.errors import (
    EncodingFailure, ExportCancelled, ExportInProgress, NotInitialized,
)

from .conftest import FailingSink, RecordingSink


@pytest.fixture
def five_frames():
    frames = [np.full((8, 8, 3), 30 * i, dtype=np.uint8) for i in range(5)]
    return BackgroundParser.from_arrays(frames, [100, 120, 140, 160, 180])


def test_zero_particle_export_copies_background(store, empty_simulation, recording_sink):
    pipeline = ExportPipeline()
    blob = pipeline.export_sync(store, empty_simulation, OverlaySettings(), recording_sink)

    assert blob == b"frames:3"
    assert pipeline.state == ExportState.DONE
    assert recording_sink.durations == [100, 100, 100]
    assert empty_simulation.steps == 3
    for index, frame in enumerate(recording_sink.frames):
        assert np.array_equal(frame, store.get_frame(index))


def test_durations_follow_background(five_frames, empty_simulation, recording_sink):
    ExportPipeline().export_sync(five_frames, empty_simulation, OverlaySettings(), recording_sink)
    assert recording_sink.durations == [100, 120, 140, 160, 180]


def test_encoding_failure_aborts_and_is_resettable(five_frames, empty_simulation):
    pipeline = ExportPipeline()
    sink = FailingSink(fail_on=2)

    with pytest.raises(EncodingFailure):
        pipeline.export_sync(five_frames, empty_simulation, OverlaySettings(), sink)

    assert pipeline.state == ExportState.FAILED
    assert isinstance(pipeline.last_error, EncodingFailure)
    assert not sink.finalized
    assert len(sink.frames) == 1

    pipeline.reset()
    assert pipeline.state == ExportState.IDLE
    assert pipeline.last_error is None

    blob = pipeline.export_sync(five_frames, empty_simulation, OverlaySettings(), RecordingSink())
    assert blob == b"frames:5"
    assert pipeline.state == ExportState.DONE


def test_unexpected_sink_error_is_wrapped(store, empty_simulation):
    class BrokenSink(RecordingSink):
        def finalize(self):
            raise OSError("no space left")

    pipeline = ExportPipeline()
    with pytest.raises(EncodingFailure) as excinfo:
        pipeline.export_sync(store, empty_simulation, OverlaySettings(), BrokenSink())
    assert isinstance(excinfo.value.__cause__, OSError)
    assert pipeline.state == ExportState.FAILED


def test_simulation_errors_fail_the_export(store, recording_sink):
    from motion_overlay.core import ParticleSimulation

    pipeline = ExportPipeline()
    with pytest.raises(NotInitialized):
        pipeline.export_sync(store, ParticleSimulation(), OverlaySettings(), recording_sink)
    assert pipeline.state == ExportState.FAILED
    assert recording_sink.frames == []


def test_progress_reports(five_frames, empty_simulation, recording_sink):
    reports = []
    ExportPipeline().export_sync(
        five_frames, empty_simulation, OverlaySettings(), recording_sink,
        lambda percent, message: reports.append((percent, message))
    )
    percents = [p for p, _ in reports]
    assert percents == sorted(percents)
    assert reports[0] == (18, "Rendering frame 1/5")
    assert (95, "Encoding...") in reports
    assert reports[-1] == (100, "Export complete")


def test_export_yields_to_event_loop(empty_simulation, recording_sink):
    frames = [np.zeros((4, 4, 3), dtype=np.uint8)] * 20
    store = BackgroundParser.from_arrays(frames)
    pipeline = ExportPipeline(yield_every=5)
    ticks = []

    async def heartbeat():
        while True:
            ticks.append(pipeline.state)
            await asyncio.sleep(0)

    async def run():
        beat = asyncio.create_task(heartbeat())
        await asyncio.sleep(0)
        blob = await pipeline.export(store, empty_simulation, OverlaySettings(), recording_sink)
        beat.cancel()
        return blob

    assert asyncio.run(run()) == b"frames:20"
    assert ticks.count(ExportState.RENDERING) >= 3


def test_second_export_while_busy(store, empty_simulation):
    pipeline = ExportPipeline(yield_every=1)

    async def run():
        first = asyncio.create_task(
            pipeline.export(store, empty_simulation, OverlaySettings(), RecordingSink())
        )
        await asyncio.sleep(0)
        assert pipeline.busy
        with pytest.raises(ExportInProgress):
            await pipeline.export(store, empty_simulation, OverlaySettings(), RecordingSink())
        with pytest.raises(ExportInProgress):
            pipeline.reset()
        return await first

    assert asyncio.run(run()) == b"frames:3"
    assert pipeline.state == ExportState.DONE


def test_cancel_returns_to_idle(five_frames, empty_simulation, recording_sink):
    pipeline = ExportPipeline()

    def progress(percent, message):
        pipeline.cancel()

    with pytest.raises(ExportCancelled):
        pipeline.export_sync(five_frames, empty_simulation, OverlaySettings(), recording_sink, progress)
    assert pipeline.state == ExportState.IDLE
    assert len(recording_sink.frames) == 1
    assert not recording_sink.finalized


def test_real_simulation_gif_export(store, simulation):
    blob = ExportPipeline().export_sync(store, simulation, OverlaySettings(), GifEncoder())
    assert blob[:6] == b"GIF89a"
    assert simulation.tick == store.frame_count


def test_yield_every_validation():
    with pytest.raises(ValueError):
        ExportPipeline(yield_every=0)


def test_hidden_overlay_still_renders_every_frame(store, empty_simulation, recording_sink):
    ExportPipeline().export_sync(store, empty_simulation, OverlaySettings(visible=False), recording_sink)
    assert empty_simulation.calls == [
        "step", "render 0", "step", "render 1", "step", "render 2",
    ]


def test_gif_export_keeps_identical_frames(empty_simulation):
    import io

    from PIL import Image, ImageSequence

    frames = [np.full((8, 8, 3), 100, dtype=np.uint8)] * 3
    store = BackgroundParser.from_arrays(frames, [100, 100, 100])
    blob = ExportPipeline().export_sync(store, empty_simulation, OverlaySettings(), GifEncoder())

    with Image.open(io.BytesIO(blob)) as gif:
        durations = [frame.info['duration'] for frame in ImageSequence.Iterator(gif)]
    assert durations == [100, 100, 100]
