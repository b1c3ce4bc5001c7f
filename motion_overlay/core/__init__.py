"""
Motion Overlay - Core Modules
"""

from .parser import BackgroundParser, BackgroundFrameStore, DEFAULT_FRAME_DURATION
from .utils import ColorUtils, MathUtils
from .region import (
    RegionKind, ContainmentRegion,
    smooth_stroke, derive, contains,
    StrokeRecorder,
)
from .particles import (
    SimulationSettings, Particle, ParticleVisual, ParticleSimulation,
    BOUNCE_DAMPING,
)
from .compositor import BlendMode, OverlaySettings, Compositor, composite
from .exporter import (
    EncodingSink, GifEncoder, PngSequenceEncoder,
    ENCODERS, get_encoder, write_blob,
)
from .pipeline import ExportPipeline, ExportState
from .playback import Playback
from .presets import (
    OverlayPreset, PresetManager, BUILTIN_PRESETS,
    apply_preset_to_args, get_preset_manager, get_preset, list_presets,
)
from .preview import PreviewConfig, PreviewWindow, check_pygame_available

__all__ = [
    # Background
    'BackgroundParser', 'BackgroundFrameStore', 'DEFAULT_FRAME_DURATION',
    'ColorUtils', 'MathUtils',
    # Regions
    'RegionKind', 'ContainmentRegion',
    'smooth_stroke', 'derive', 'contains',
    'StrokeRecorder',
    # Simulation
    'SimulationSettings', 'Particle', 'ParticleVisual', 'ParticleSimulation',
    'BOUNCE_DAMPING',
    # Compositing
    'BlendMode', 'OverlaySettings', 'Compositor', 'composite',
    # Encoding
    'EncodingSink', 'GifEncoder', 'PngSequenceEncoder',
    'ENCODERS', 'get_encoder', 'write_blob',
    # Export / playback
    'ExportPipeline', 'ExportState',
    'Playback',
    # Presets
    'OverlayPreset', 'PresetManager', 'BUILTIN_PRESETS',
    'apply_preset_to_args', 'get_preset_manager', 'get_preset', 'list_presets',
    # Preview
    'PreviewConfig', 'PreviewWindow', 'check_pygame_available',
]
