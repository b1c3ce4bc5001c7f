"""
Playback controller

Loops the background with the overlay for interactive display. Each newly
displayed frame costs exactly one simulation step; redrawing or scrubbing
does not advance the simulation.
"""

from typing import Optional

import numpy as np

from ..errors import IndexOutOfRange
from .compositor import Compositor, OverlaySettings
from .parser import BackgroundFrameStore
from .particles import ParticleSimulation


class Playback:
    """Play / pause / stop / scrub over a background frame store"""

    def __init__(
        self,
        store: BackgroundFrameStore,
        simulation: ParticleSimulation,
        overlay: Optional[OverlaySettings] = None
    ):
        self.store = store
        self.simulation = simulation
        self.compositor = Compositor(overlay)
        self.current_frame = 0
        self.playing = False
        self._elapsed = 0.0

    @property
    def overlay(self) -> OverlaySettings:
        return self.compositor.overlay

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False
        self._elapsed = 0.0

    def stop(self) -> None:
        self.pause()
        self.current_frame = 0

    def toggle(self) -> None:
        if self.playing:
            self.pause()
        else:
            self.play()

    def seek(self, index: int) -> np.ndarray:
        """Jump to a frame without stepping the simulation"""
        if not 0 <= index < self.store.frame_count:
            raise IndexOutOfRange(f"Frame index {index} outside [0, {self.store.frame_count})")
        self.current_frame = index
        return self.current()

    def current(self) -> np.ndarray:
        """Composite the current frame from the current particle state"""
        return self.compositor.render_frame(self.store, self.simulation, self.current_frame)

    def advance(self) -> np.ndarray:
        """Move to the next frame (looping) and step the simulation once"""
        self.current_frame = (self.current_frame + 1) % self.store.frame_count
        self.simulation.step()
        return self.current()

    def tick(self, elapsed_ms: float) -> int:
        """
        Feed wall-clock time while playing.

        Returns:
            Number of frames advanced
        """
        if not self.playing:
            return 0

        self._elapsed += elapsed_ms
        advanced = 0
        while self._elapsed >= self.store.get_frame_duration(self.current_frame):
            self._elapsed -= self.store.get_frame_duration(self.current_frame)
            self.current_frame = (self.current_frame + 1) % self.store.frame_count
            self.simulation.step()
            advanced += 1
        return advanced
