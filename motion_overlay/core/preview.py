"""
Real-Time Preview Window

Plays the background with the particle overlay and lets the user draw a
containment region with the mouse.

Controls:
    SPACE       - Play/pause
    LEFT/RIGHT  - Previous/next frame (RIGHT steps the simulation)
    Mouse drag  - Draw a stroke; release installs the derived region
    C           - Clear the containment region
    +/-         - Zoom in/out
    E           - Export animation
    H           - Show/hide help
    ESC/Q       - Quit

Requires: pygame (pip install pygame)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from .playback import Playback
from .region import ContainmentRegion, RegionKind, StrokeRecorder

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False
    pygame = None

logger = logging.getLogger(__name__)


@dataclass
class PreviewConfig:
    """Configuration for the preview window"""
    window_width: int = 960
    window_height: int = 720
    window_title: str = "Motion Overlay Preview"
    background_color: Tuple[int, int, int] = (26, 26, 26)
    fps: int = 60

    initial_zoom: float = 1.0
    min_zoom: float = 0.25
    max_zoom: float = 8.0
    zoom_step: float = 1.25

    stroke_color: Tuple[int, int, int] = (16, 185, 129)
    region_color: Tuple[int, int, int] = (255, 255, 255)
    show_region: bool = True
    show_help: bool = False


class PreviewWindow:
    """
    Interactive playback window.

    Example:
        playback = Playback(store, simulation, overlay)
        PreviewWindow(playback).run()
    """

    def __init__(
        self,
        playback: Playback,
        config: Optional[PreviewConfig] = None,
        region_kind: RegionKind = RegionKind.CIRCLE,
        on_export: Optional[Callable[[Optional[ContainmentRegion]], Any]] = None
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError(
                "pygame is required for preview. Install with: pip install pygame"
            )

        self.playback = playback
        self.config = config or PreviewConfig()
        self.recorder = StrokeRecorder(region_kind)
        self.on_export = on_export
        self.zoom = self.config.initial_zoom
        self._frame: Optional[np.ndarray] = None

        pygame.init()
        pygame.display.set_caption(self.config.window_title)
        self.screen = pygame.display.set_mode(
            (self.config.window_width, self.config.window_height),
            pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 20)

    # -------------------------------------------------------------------------
    # Coordinates
    # -------------------------------------------------------------------------

    def _frame_origin(self) -> Tuple[int, int]:
        """Top-left of the zoomed frame in window coordinates"""
        width, height = self.playback.store.dimensions
        x = (self.config.window_width - int(width * self.zoom)) // 2
        y = (self.config.window_height - int(height * self.zoom)) // 2
        return x, y

    def _to_background(self, pos: Tuple[int, int]) -> Tuple[float, float]:
        ox, oy = self._frame_origin()
        return ((pos[0] - ox) / self.zoom, (pos[1] - oy) / self.zoom)

    def _to_window(self, point: Tuple[float, float]) -> Tuple[int, int]:
        ox, oy = self._frame_origin()
        return (int(ox + point[0] * self.zoom), int(oy + point[1] * self.zoom))

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def run(self) -> None:
        """Run the preview window main loop"""
        self._frame = self.playback.current()
        self.playback.play()
        running = True

        while running:
            elapsed_ms = self.clock.tick(self.config.fps)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    running = self._handle_key(event.key)
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.recorder.begin(*self._to_background(event.pos))
                elif event.type == pygame.MOUSEMOTION and self.recorder.drawing:
                    self.recorder.add_point(*self._to_background(event.pos))
                elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                    self._finish_stroke()
                elif event.type == pygame.VIDEORESIZE:
                    self.config.window_width = event.w
                    self.config.window_height = event.h
                    self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)

            if self.playback.tick(elapsed_ms):
                self._frame = self.playback.current()

            self._render()
            pygame.display.flip()

        pygame.quit()

    def _finish_stroke(self) -> None:
        if not self.recorder.drawing:
            return
        region = self.recorder.finish()
        if region is not None:
            self.playback.simulation.install_region(region)

    def _handle_key(self, key: int) -> bool:
        """Handle keyboard input. Returns False to quit."""
        if key in (pygame.K_ESCAPE, pygame.K_q):
            return False

        if key == pygame.K_SPACE:
            self.playback.toggle()
        elif key == pygame.K_RIGHT:
            self.playback.pause()
            self._frame = self.playback.advance()
        elif key == pygame.K_LEFT:
            # Scrubbing back redraws without running the simulation backwards
            self.playback.pause()
            index = (self.playback.current_frame - 1) % self.playback.store.frame_count
            self._frame = self.playback.seek(index)
        elif key == pygame.K_c:
            self.playback.simulation.install_region(None)
            logger.info("Containment region cleared")
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.zoom = min(self.config.max_zoom, self.zoom * self.config.zoom_step)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self.zoom = max(self.config.min_zoom, self.zoom / self.config.zoom_step)
        elif key == pygame.K_h:
            self.config.show_help = not self.config.show_help
        elif key == pygame.K_e:
            self._export()

        return True

    def _export(self) -> None:
        if self.on_export is None:
            logger.warning("No export handler configured")
            return
        self.playback.pause()
        self.on_export(self.playback.simulation.region)

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def _array_to_surface(self, array: np.ndarray):
        """Convert an RGBA numpy array to a pygame surface"""
        h, w = array.shape[:2]
        surf = pygame.Surface((w, h), pygame.SRCALPHA)
        pygame.surfarray.pixels3d(surf)[:] = array[:, :, :3].swapaxes(0, 1)
        pygame.surfarray.pixels_alpha(surf)[:] = array[:, :, 3].swapaxes(0, 1)
        return surf

    def _render(self) -> None:
        self.screen.fill(self.config.background_color)

        surf = self._array_to_surface(self._frame)
        size = (int(surf.get_width() * self.zoom), int(surf.get_height() * self.zoom))
        self.screen.blit(pygame.transform.scale(surf, size), self._frame_origin())

        region = self.playback.simulation.region
        if self.config.show_region and region is not None:
            self._draw_region(region)

        points = self.recorder.points
        if len(points) >= 2:
            pygame.draw.lines(
                self.screen, self.config.stroke_color, False,
                [self._to_window(p) for p in points], 2
            )

        self._render_info()
        if self.config.show_help:
            self._render_help()

    def _draw_region(self, region: ContainmentRegion) -> None:
        color = self.config.region_color
        if region.kind == RegionKind.POLYGON:
            pygame.draw.lines(self.screen, color, True, [self._to_window(p) for p in region.points], 1)
        else:
            pygame.draw.circle(
                self.screen, color, self._to_window(region.center),
                max(1, int(region.radius * self.zoom)), 1
            )

    def _render_info(self) -> None:
        store = self.playback.store
        lines = [
            f"Frame: {self.playback.current_frame + 1}/{store.frame_count}",
            f"Particles: {self.playback.simulation.particle_count}",
            f"Zoom: {self.zoom:.2f}x",
            "PLAYING" if self.playback.playing else "PAUSED",
        ]
        if self.playback.simulation.region is not None:
            lines.append(f"Region: {self.playback.simulation.region.kind.value}")

        y = 10
        for line in lines:
            self._render_text(line, (10, y))
            y += 18

    def _render_help(self) -> None:
        help_text: List[str] = [
            "SPACE      Play/Pause",
            "LEFT/RIGHT Prev/Next frame",
            "Drag       Draw region",
            "C          Clear region",
            "+/-        Zoom",
            "E          Export",
            "ESC/Q      Quit",
        ]
        panel = pygame.Surface((260, len(help_text) * 20 + 20), pygame.SRCALPHA)
        panel.fill((0, 0, 0, 180))
        x = (self.config.window_width - 260) // 2
        y = (self.config.window_height - len(help_text) * 20) // 2
        self.screen.blit(panel, (x, y))
        for i, line in enumerate(help_text):
            self._render_text(line, (x + 20, y + 10 + i * 20), color=(255, 255, 255))

    def _render_text(
        self,
        text: str,
        pos: Tuple[int, int],
        color: Tuple[int, int, int] = (200, 200, 200)
    ) -> None:
        """Render text with shadow"""
        shadow = self.font.render(text, True, (0, 0, 0))
        self.screen.blit(shadow, (pos[0] + 1, pos[1] + 1))
        self.screen.blit(self.font.render(text, True, color), pos)


def check_pygame_available() -> bool:
    """Check if pygame is available for preview"""
    return PYGAME_AVAILABLE
