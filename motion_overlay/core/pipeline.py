"""
Export Pipeline

Drives the compositor over every background frame in order and streams the
results into an encoding sink.

    IDLE -> RENDERING -> ENCODING -> DONE
               |            |
               +-> FAILED <-+

Frames are rendered strictly in index order: one simulation step, one
render, one composite, one add_frame. Every `yield_every` frames the loop
awaits asyncio.sleep(0) so other tasks on the event loop keep running during
long exports. Any failure aborts the export; nothing is returned and the
pipeline can be reset to IDLE and run again.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from ..errors import EncodingFailure, ExportCancelled, ExportInProgress
from .compositor import Compositor, OverlaySettings
from .exporter import EncodingSink
from .parser import BackgroundFrameStore
from .particles import ParticleSimulation

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, str], None]

RENDER_PROGRESS_SHARE = 90   # percent of the bar used by rendering
ENCODING_PROGRESS = 95


class ExportState(Enum):
    """Export state machine states"""
    IDLE = "idle"
    RENDERING = "rendering"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


class ExportPipeline:
    """
    Renders and encodes a full animation.

    Example:
        pipeline = ExportPipeline()
        blob = await pipeline.export(store, simulation, OverlaySettings(), GifEncoder())
    """

    def __init__(self, yield_every: int = 5):
        if yield_every < 1:
            raise ValueError(f"yield_every must be >= 1, got {yield_every}")
        self.yield_every = yield_every
        self.state = ExportState.IDLE
        self.last_error: Optional[BaseException] = None
        self._cancel_requested = False

    @property
    def busy(self) -> bool:
        return self.state in (ExportState.RENDERING, ExportState.ENCODING)

    def reset(self) -> None:
        """Return a finished or failed pipeline to IDLE"""
        if self.busy:
            raise ExportInProgress("Cannot reset while an export is running")
        self.state = ExportState.IDLE
        self.last_error = None
        self._cancel_requested = False

    def cancel(self) -> None:
        """Abandon the running export before its next frame"""
        if self.busy:
            self._cancel_requested = True

    async def export(
        self,
        store: BackgroundFrameStore,
        simulation: ParticleSimulation,
        overlay: OverlaySettings,
        sink: EncodingSink,
        progress: Optional[ProgressSink] = None
    ) -> bytes:
        """
        Render every frame of `store` and return the encoded animation.

        Raises:
            EncodingFailure: the sink rejected a frame or failed to finalize
            ExportCancelled: cancel() was called mid-export
            ExportInProgress: another export is running on this pipeline
        """
        if self.busy:
            raise ExportInProgress("An export is already running")
        self.reset()

        report = progress or (lambda percent, message: None)
        compositor = Compositor(overlay)
        total = store.frame_count

        logger.info("Export started: %d frames at %dx%d", total, *store.dimensions)
        self.state = ExportState.RENDERING

        try:
            for index in range(total):
                if self._cancel_requested:
                    raise ExportCancelled(f"Export cancelled before frame {index + 1}/{total}")

                simulation.step()
                frame = compositor.render_frame(store, simulation, index)
                duration = store.get_frame_duration(index)

                try:
                    sink.add_frame(frame, duration)
                except EncodingFailure:
                    raise
                except Exception as e:
                    raise EncodingFailure(f"Encoder rejected frame {index + 1}/{total}: {e}") from e
                del frame

                percent = int((index + 1) * RENDER_PROGRESS_SHARE / total)
                report(percent, f"Rendering frame {index + 1}/{total}")

                if (index + 1) % self.yield_every == 0:
                    await asyncio.sleep(0)

            self.state = ExportState.ENCODING
            report(ENCODING_PROGRESS, "Encoding...")

            try:
                blob = sink.finalize()
            except EncodingFailure:
                raise
            except Exception as e:
                raise EncodingFailure(f"Encoder failed to finalize: {e}") from e

        except ExportCancelled:
            logger.info("Export cancelled")
            self.state = ExportState.IDLE
            self._cancel_requested = False
            raise
        except BaseException as e:
            self.state = ExportState.FAILED
            self.last_error = e
            logger.error("Export failed: %s", e)
            raise

        self.state = ExportState.DONE
        report(100, "Export complete")
        logger.info("Export finished: %d frames, %d bytes", total, len(blob))
        return blob

    def export_sync(
        self,
        store: BackgroundFrameStore,
        simulation: ParticleSimulation,
        overlay: OverlaySettings,
        sink: EncodingSink,
        progress: Optional[ProgressSink] = None
    ) -> bytes:
        """Blocking export for callers without an event loop"""
        return asyncio.run(self.export(store, simulation, overlay, sink, progress))
