"""
Frame Compositor

Draws a background frame and the particle overlay into a fresh RGBA buffer.

Particles are filled discs. Each disc's alpha is the overlay opacity scaled by
the particle's remaining lifetime, and one blend mode applies to the whole
overlay:

- NORMAL:   source-over
- ADDITIVE: add the weighted color, clipped at 255
- MULTIPLY: darken by the particle color
- SCREEN:   lighten by the inverted particle color

Discs are drawn in population order, so overlap is order dependent for every
mode except ADDITIVE.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

from ..errors import InvalidConfiguration
from .parser import BackgroundFrameStore
from .particles import ParticleSimulation, ParticleVisual


class BlendMode(Enum):
    """Blend modes for the particle overlay"""
    NORMAL = "normal"
    ADDITIVE = "additive"
    MULTIPLY = "multiply"
    SCREEN = "screen"

    @classmethod
    def parse(cls, name: "str | BlendMode") -> "BlendMode":
        """Look up a mode by name; accepts 'add' and 'lighter' for ADDITIVE"""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        if key in ("add", "lighter"):
            return cls.ADDITIVE
        try:
            return cls(key)
        except ValueError:
            available = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(f"Unknown blend mode '{name}'. Available: {available}") from None

    def blend(self, dst: np.ndarray, src_rgb: np.ndarray, alpha: float) -> np.ndarray:
        """
        Blend a solid color into destination pixels.

        Args:
            dst: Nx4 float RGBA destination pixels (0-255)
            src_rgb: RGB source color (0-255)
            alpha: Source alpha (0-1)

        Returns:
            Nx4 float RGBA pixels
        """
        result = dst.copy()
        base_c = dst[:, :3]
        base_alpha = dst[:, 3:4] / 255.0

        if self is BlendMode.ADDITIVE:
            result[:, :3] = np.minimum(255.0, base_c + src_rgb * alpha)
            result[:, 3:4] = np.minimum(1.0, base_alpha + alpha) * 255.0
            return result

        if self is BlendMode.MULTIPLY:
            blended = base_c * src_rgb / 255.0
        elif self is BlendMode.SCREEN:
            blended = 255.0 - (255.0 - base_c) * (255.0 - src_rgb) / 255.0
        else:
            blended = np.broadcast_to(src_rgb, base_c.shape)

        # Straight-alpha source-over
        out_alpha = alpha + base_alpha * (1 - alpha)
        safe_alpha = np.where(out_alpha > 0, out_alpha, 1)
        result[:, :3] = (blended * alpha + base_c * base_alpha * (1 - alpha)) / safe_alpha
        result[:, 3:4] = out_alpha * 255.0
        return result


@dataclass
class OverlaySettings:
    """How the particle layer is laid over the background"""
    opacity: float = 1.0
    blend_mode: BlendMode = BlendMode.NORMAL
    visible: bool = True
    target_origin: Tuple[int, int] = (0, 0)

    def __post_init__(self):
        self.blend_mode = BlendMode.parse(self.blend_mode)
        if not 0.0 <= self.opacity <= 1.0:
            raise InvalidConfiguration(f"opacity must be in [0, 1], got {self.opacity}")


def _to_rgba(frame: np.ndarray) -> np.ndarray:
    if frame.shape[2] == 4:
        return frame
    alpha = np.full((*frame.shape[:2], 1), 255, dtype=frame.dtype)
    return np.concatenate([frame, alpha], axis=2)


def _draw_disc(
    canvas: np.ndarray,
    cx: float,
    cy: float,
    radius: float,
    color: np.ndarray,
    alpha: float,
    mode: BlendMode
) -> None:
    """Blend one filled disc into canvas in place (pixel-center coverage)"""
    h, w = canvas.shape[:2]

    x_min = max(0, int(np.floor(cx - radius)))
    x_max = min(w, int(np.ceil(cx + radius)) + 1)
    y_min = max(0, int(np.floor(cy - radius)))
    y_max = min(h, int(np.ceil(cy + radius)) + 1)
    if x_min >= x_max or y_min >= y_max:
        return

    ys, xs = np.mgrid[y_min:y_max, x_min:x_max]
    mask = (xs + 0.5 - cx) ** 2 + (ys + 0.5 - cy) ** 2 <= radius * radius
    if not mask.any():
        return

    window = canvas[y_min:y_max, x_min:x_max]
    window[mask] = mode.blend(window[mask], color, alpha)


def composite(
    background_frame: np.ndarray,
    visuals: Sequence[ParticleVisual],
    target_origin: Tuple[int, int] = (0, 0),
    opacity: float = 1.0,
    blend_mode: BlendMode = BlendMode.NORMAL
) -> np.ndarray:
    """
    Composite one finished frame.

    Args:
        background_frame: HxWx3 or HxWx4 background pixels (not modified)
        visuals: Particle visual state in population order
        target_origin: Where the background's top-left corner lands
        opacity: Overlay opacity (0-1)
        blend_mode: Blend mode for every particle

    Returns:
        New HxWx4 uint8 buffer
    """
    mode = BlendMode.parse(blend_mode)
    background = _to_rgba(background_frame)
    h, w = background.shape[:2]
    ox, oy = int(round(target_origin[0])), int(round(target_origin[1]))

    canvas = np.zeros((h, w, 4), dtype=np.float32)

    # Background, clipped to the canvas
    x0, x1 = max(0, ox), min(w, ox + w)
    y0, y1 = max(0, oy), min(h, oy + h)
    if x0 < x1 and y0 < y1:
        canvas[y0:y1, x0:x1] = background[y0 - oy:y1 - oy, x0 - ox:x1 - ox]

    for v in visuals:
        alpha = opacity * v.life_fraction
        if alpha <= 0 or v.radius <= 0:
            continue
        color = np.asarray(v.color[:3], dtype=np.float32)
        _draw_disc(canvas, ox + v.x, oy + v.y, v.radius, color, alpha, mode)

    return np.clip(np.rint(canvas), 0, 255).astype(np.uint8)


class Compositor:
    """Composites frames with a fixed set of overlay settings"""

    def __init__(self, overlay: OverlaySettings = None):
        self.overlay = overlay or OverlaySettings()

    def render_frame(
        self,
        store: BackgroundFrameStore,
        simulation: ParticleSimulation,
        index: int
    ) -> np.ndarray:
        """Composite frame `index` from the simulation's current state (no step)"""
        background = store.get_frame(index)
        visuals = simulation.render(index)
        return composite(
            background,
            visuals if self.overlay.visible else [],
            target_origin=self.overlay.target_origin,
            opacity=self.overlay.opacity,
            blend_mode=self.overlay.blend_mode
        )
