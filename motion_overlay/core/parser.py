"""
Background Parser - Decodes background animations into a random-access frame store
Supports: animated GIF, animated WebP/PNG, and still images (PNG, JPEG, BMP)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageSequence

from ..errors import IndexOutOfRange, InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_FRAME_DURATION = 100  # ms, used when the file carries no usable delay


@dataclass
class BackgroundFrameStore:
    """Decoded background animation: RGBA frames plus per-frame durations"""
    width: int
    height: int
    frames: List[np.ndarray] = field(default_factory=list)  # HxWx4 uint8
    durations: List[int] = field(default_factory=list)      # milliseconds
    name: str = "background"
    source_path: Optional[Path] = None

    def __post_init__(self):
        if len(self.frames) != len(self.durations):
            raise InvalidConfiguration(
                f"Got {len(self.frames)} frames but {len(self.durations)} durations"
            )
        if any(d <= 0 for d in self.durations):
            raise InvalidConfiguration("Frame durations must be positive")
        for frame in self.frames:
            if frame.shape[:2] != (self.height, self.width):
                raise InvalidConfiguration(
                    f"Frame shape {frame.shape[:2]} does not match {self.height}x{self.width}"
                )

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)

    @property
    def total_duration(self) -> int:
        return sum(self.durations)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.frame_count:
            raise IndexOutOfRange(
                f"Frame index {index} outside [0, {self.frame_count})"
            )

    def get_frame(self, index: int) -> np.ndarray:
        """Read-only view of one background frame"""
        self._check_index(index)
        return self.frames[index]

    def get_frame_duration(self, index: int) -> int:
        """Display duration of one frame in milliseconds"""
        self._check_index(index)
        return self.durations[index]


class BackgroundParser:
    """Parses image files into BackgroundFrameStore objects"""

    SUPPORTED_FORMATS = {'.png', '.gif', '.jpg', '.jpeg', '.bmp', '.webp'}

    @classmethod
    def parse(cls, path: str | Path) -> BackgroundFrameStore:
        """Decode every frame of an image file"""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in cls.SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format: {suffix}")

        with Image.open(path) as img:
            frames = []
            durations = []
            for frame in ImageSequence.Iterator(img):
                frames.append(np.array(frame.convert('RGBA')))
                durations.append(cls._frame_duration(frame.info.get('duration')))
            width, height = img.width, img.height

        logger.debug("Decoded %d frame(s) from %s (%dx%d)", len(frames), path, width, height)

        return BackgroundFrameStore(
            width=width,
            height=height,
            frames=frames,
            durations=durations,
            name=path.stem,
            source_path=path
        )

    @staticmethod
    def _frame_duration(value) -> int:
        """Missing or non-positive delays fall back to the default"""
        try:
            duration = int(round(float(value)))
        except (TypeError, ValueError):
            return DEFAULT_FRAME_DURATION
        return duration if duration > 0 else DEFAULT_FRAME_DURATION

    @classmethod
    def from_arrays(
        cls,
        frames: Sequence[np.ndarray],
        durations: Optional[Sequence[int]] = None,
        name: str = "background"
    ) -> BackgroundFrameStore:
        """Create a store from HxWx3 or HxWx4 numpy arrays"""
        if not frames:
            raise InvalidConfiguration("At least one frame is required")

        rgba_frames = []
        for pixels in frames:
            if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
                raise InvalidConfiguration("Pixels must be HxWx3 or HxWx4 array")
            if pixels.shape[2] == 3:
                alpha = np.full((*pixels.shape[:2], 1), 255, dtype=np.uint8)
                pixels = np.concatenate([pixels.astype(np.uint8), alpha], axis=2)
            rgba_frames.append(pixels.astype(np.uint8))

        if durations is None:
            durations = [DEFAULT_FRAME_DURATION] * len(rgba_frames)

        height, width = rgba_frames[0].shape[:2]
        return BackgroundFrameStore(
            width=width,
            height=height,
            frames=rgba_frames,
            durations=[int(d) for d in durations],
            name=name
        )
