"""
Motion Overlay - Particle overlays for looping animations
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .core import (
    BackgroundParser, BackgroundFrameStore,
    ParticleSimulation, SimulationSettings,
    BlendMode, OverlaySettings,
    RegionKind, ContainmentRegion, derive, contains,
    ExportPipeline, get_encoder, write_blob,
    get_preset,
)
from .core.pipeline import ProgressSink
from .errors import (
    MotionOverlayError, InvalidConfiguration, NotInitialized,
    InsufficientPoints, IndexOutOfRange, EncodingFailure,
    ExportInProgress, ExportCancelled,
)

__version__ = "0.1.0"
__all__ = [
    'BackgroundParser',
    'BackgroundFrameStore',
    'ParticleSimulation',
    'SimulationSettings',
    'BlendMode',
    'OverlaySettings',
    'RegionKind',
    'ContainmentRegion',
    'derive',
    'contains',
    'ExportPipeline',
    'MotionOverlayError',
    'InvalidConfiguration',
    'NotInitialized',
    'InsufficientPoints',
    'IndexOutOfRange',
    'EncodingFailure',
    'ExportInProgress',
    'ExportCancelled',
    'load_background',
    'overlay',
]

logger = logging.getLogger(__name__)


def load_background(path: str | Path) -> BackgroundFrameStore:
    """Decode a GIF or still image into a frame store"""
    return BackgroundParser.parse(path)


def overlay(
    input_path: str | Path,
    output_path: str | Path = None,
    preset: str = "drift",
    stroke: Optional[Sequence[Tuple[float, float]]] = None,
    region_kind: RegionKind = RegionKind.CIRCLE,
    format: str = "gif",
    opacity: float = None,
    blend: str = None,
    direction: float = None,
    particles: int = None,
    seed: int = None,
    progress: Optional[ProgressSink] = None,
) -> Path:
    """
    Render a particle overlay onto an animation and write the result.

    Args:
        input_path: Background GIF or image
        output_path: Output path (auto-generated if None)
        preset: Preset name supplying the base settings
        stroke: Optional freehand stroke confining the particles
        region_kind: Shape derived from the stroke
        format: Output format ('gif', 'png-zip')
        opacity: Overlay opacity override (0-1)
        blend: Blend mode override ('normal', 'additive', 'multiply', 'screen')
        direction: Drift direction override in degrees
        particles: Particle count override
        seed: Random seed for reproducible output
        progress: Callable receiving (percent, message)

    Returns:
        Path to the written file
    """
    store = BackgroundParser.parse(input_path)

    base = get_preset(preset)
    if base is None:
        raise ValueError(f"Unknown preset: {preset}")

    overrides = {}
    if opacity is not None:
        overrides['opacity'] = opacity
    if blend is not None:
        overrides['blend_mode'] = blend
    if direction is not None:
        overrides['direction_angle'] = direction
    if particles is not None:
        overrides['particle_count'] = particles
    base = replace(base, **overrides)

    simulation = ParticleSimulation()
    simulation.initialize(store.dimensions, base.to_settings(seed))

    if stroke:
        try:
            simulation.install_region(derive(stroke, region_kind))
        except InsufficientPoints as e:
            logger.warning("Ignoring stroke: %s", e)

    sink = get_encoder(format)
    pipeline = ExportPipeline()
    blob = pipeline.export_sync(store, simulation, base.to_overlay(), sink, progress)

    if output_path is None:
        input_path = Path(input_path)
        output_path = input_path.parent / f"{input_path.stem}_overlay{sink.extension}"

    return write_blob(blob, output_path)
