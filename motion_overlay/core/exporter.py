"""
Encoding Sinks - Turn rendered frames into animation files

A sink accepts frames in order through add_frame() and produces the encoded
file with finalize(). Raw buffers are converted as they arrive so the caller
does not need to keep them around.
"""

import io
import json
import zipfile
from pathlib import Path
from typing import List, Optional, Protocol

import numpy as np
from PIL import Image

from ..errors import EncodingFailure

TRANSPARENT_INDEX = 255


class EncodingSink(Protocol):
    """Anything the export pipeline can stream frames into"""

    def add_frame(self, pixels: np.ndarray, duration_ms: int) -> None:
        ...

    def finalize(self) -> bytes:
        ...


class GifEncoder:
    """Encodes frames as a looping animated GIF"""

    extension = '.gif'

    def __init__(self, loop: int = 0, colors: int = 255):
        self.loop = loop
        self.colors = colors
        self._images: List[Image.Image] = []
        self._durations: List[int] = []
        self._has_transparency = False
        self._previous: Optional[np.ndarray] = None
        self._finalized = False

    @property
    def frame_count(self) -> int:
        return len(self._images)

    def add_frame(self, pixels: np.ndarray, duration_ms: int) -> None:
        if self._finalized:
            raise EncodingFailure("GIF already finalized")

        img = Image.fromarray(pixels.astype(np.uint8), 'RGBA')
        img_p = img.convert('RGB').convert('P', palette=Image.Palette.ADAPTIVE, colors=self.colors)

        # Reserve index 255 for pixels that are mostly transparent
        alpha = img.split()[3]
        mask = Image.eval(alpha, lambda a: 255 if a < 128 else 0)
        if mask.getbbox() is not None:
            img_p.paste(TRANSPARENT_INDEX, mask)
            self._has_transparency = True

        rendered = np.asarray(img_p.convert('RGB'))
        if self._previous is not None and np.array_equal(rendered, self._previous):
            self._keep_distinct(img_p)
            rendered = np.asarray(img_p.convert('RGB'))

        self._previous = rendered
        self._images.append(img_p)
        self._durations.append(int(duration_ms))

    @staticmethod
    def _keep_distinct(img_p: Image.Image) -> None:
        """
        Pillow folds a frame that repeats the previous one into it and sums
        their durations. Shift one pixel by a single red step so every frame
        keeps its own delay.
        """
        indices = np.array(img_p)
        palette = list(img_p.getpalette() or [])
        palette += [0] * (768 - len(palette))

        ys, xs = np.nonzero(indices != TRANSPARENT_INDEX)
        if len(ys) == 0:
            # Fully transparent: retint the hidden entry instead
            palette[TRANSPARENT_INDEX * 3] ^= 1
            img_p.putpalette(palette)
            return

        x, y = int(xs[0]), int(ys[0])
        index = int(indices[y, x])
        r, g, b = palette[index * 3:index * 3 + 3]

        free = sorted(set(range(TRANSPARENT_INDEX)) - set(np.unique(indices).tolist()))
        if free:
            target = free[0]
            palette[target * 3:target * 3 + 3] = [r ^ 1, g, b]
            img_p.putpalette(palette)
        else:
            # Every entry is in use: borrow the closest different color
            colors = np.array(palette[:TRANSPARENT_INDEX * 3], dtype=np.int32).reshape(-1, 3)
            distance = np.abs(colors - (r, g, b)).sum(axis=1)
            distance[distance == 0] = np.iinfo(np.int32).max
            target = int(np.argmin(distance))
        img_p.putpixel((x, y), target)

    def finalize(self) -> bytes:
        if self._finalized:
            raise EncodingFailure("GIF already finalized")
        if not self._images:
            raise EncodingFailure("No frames to export")
        self._finalized = True

        options = dict(
            save_all=True,
            append_images=self._images[1:],
            duration=self._durations,
            loop=self.loop,
            disposal=2
        )
        if self._has_transparency:
            options['transparency'] = TRANSPARENT_INDEX

        buffer = io.BytesIO()
        self._images[0].save(buffer, format='GIF', **options)
        self._images = []
        return buffer.getvalue()


class PngSequenceEncoder:
    """Encodes frames as a ZIP of numbered PNGs plus a timing.json"""

    extension = '.zip'

    def __init__(self, prefix: str = "frame"):
        self.prefix = prefix
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, 'w', zipfile.ZIP_DEFLATED)
        self._durations: List[int] = []
        self._finalized = False

    @property
    def frame_count(self) -> int:
        return len(self._durations)

    def add_frame(self, pixels: np.ndarray, duration_ms: int) -> None:
        if self._finalized:
            raise EncodingFailure("PNG sequence already finalized")

        png = io.BytesIO()
        Image.fromarray(pixels.astype(np.uint8), 'RGBA').save(png, 'PNG')
        index = len(self._durations)
        self._zip.writestr(f"{self.prefix}-{index:04d}.png", png.getvalue())
        self._durations.append(int(duration_ms))

    def finalize(self) -> bytes:
        if self._finalized:
            raise EncodingFailure("PNG sequence already finalized")
        if not self._durations:
            raise EncodingFailure("No frames to export")
        self._finalized = True

        timing = {
            'frames': len(self._durations),
            'durations_ms': self._durations,
        }
        self._zip.writestr('timing.json', json.dumps(timing, indent=2))
        self._zip.close()
        return self._buffer.getvalue()


ENCODERS = {
    'gif': GifEncoder,
    'png-zip': PngSequenceEncoder,
}


def get_encoder(format: str) -> EncodingSink:
    """Create a fresh sink for an output format"""
    try:
        return ENCODERS[format]()
    except KeyError:
        raise ValueError(f"Unknown format: {format}. Available: {list(ENCODERS)}") from None


def write_blob(blob: bytes, path: str | Path) -> Path:
    """Write an encoded animation to disk"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(blob)
    return path
