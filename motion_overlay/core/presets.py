"""
Overlay Presets Library - Pre-configured particle overlays
Allows users to pick a complete look (particles, motion, blending) by name
"""

import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .compositor import BlendMode, OverlaySettings
from .particles import SimulationSettings

logger = logging.getLogger(__name__)


# ============================================================================
# Preset Data Structures
# ============================================================================

@dataclass
class OverlayPreset:
    """A single overlay preset configuration"""

    name: str
    description: str = ""

    # Particles
    particle_count: int = 200
    radius_min: float = 2.0
    radius_max: float = 8.0
    color: str = "#6366f1"

    # Motion
    speed: float = 1.0
    direction_angle: Optional[float] = 0.0   # Degrees; None = no drift
    spread: float = 0.5
    lifetime: int = 100

    # Compositing
    opacity: float = 1.0
    blend_mode: str = "normal"

    # Tags for organization
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML serialization"""
        return {k: v for k, v in asdict(self).items() if v is not None and v != []}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OverlayPreset':
        """Create from dictionary, ignoring unknown keys"""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    def to_settings(self, seed: Optional[int] = None) -> SimulationSettings:
        """Simulation settings for this preset"""
        settings = SimulationSettings(
            particle_count=int(self.particle_count),
            radius_min=float(self.radius_min),
            radius_max=float(self.radius_max),
            speed=float(self.speed),
            direction=(0.0, 0.0),
            spread=float(self.spread),
            lifetime=int(self.lifetime),
            color=self.color,
            seed=seed
        )
        if self.direction_angle is not None:
            settings = settings.with_direction_angle(float(self.direction_angle))
        return settings

    def to_overlay(self) -> OverlaySettings:
        """Compositing settings for this preset"""
        return OverlaySettings(
            opacity=float(self.opacity),
            blend_mode=BlendMode.parse(self.blend_mode)
        )


# ============================================================================
# Built-in Presets
# ============================================================================

BUILTIN_PRESETS: Dict[str, Dict[str, Any]] = {
    "drift": {
        "name": "drift",
        "description": "Indigo dots drifting to the right",
        "particle_count": 200,
        "radius_min": 2,
        "radius_max": 8,
        "color": "#6366f1",
        "speed": 1.0,
        "direction_angle": 0,
        "spread": 0.5,
        "lifetime": 100,
        "tags": ["default", "ambient"],
    },

    "snow": {
        "name": "snow",
        "description": "Soft snowflakes falling straight down",
        "particle_count": 250,
        "radius_min": 1,
        "radius_max": 4,
        "color": "#ffffff",
        "speed": 0.8,
        "direction_angle": 90,
        "spread": 0.3,
        "lifetime": 160,
        "opacity": 0.9,
        "blend_mode": "screen",
        "tags": ["weather", "winter"],
    },

    "rain": {
        "name": "rain",
        "description": "Fast thin drops slanting down",
        "particle_count": 400,
        "radius_min": 0.8,
        "radius_max": 1.5,
        "color": "#9ecbff",
        "speed": 6.0,
        "direction_angle": 100,
        "spread": 0.1,
        "lifetime": 40,
        "opacity": 0.7,
        "tags": ["weather"],
    },

    "fireflies": {
        "name": "fireflies",
        "description": "Glowing points wandering without drift",
        "particle_count": 60,
        "radius_min": 2,
        "radius_max": 4,
        "color": "#fff27a",
        "speed": 0.6,
        "direction_angle": None,
        "spread": 1.0,
        "lifetime": 90,
        "blend_mode": "additive",
        "tags": ["night", "glow", "ambient"],
    },

    "embers": {
        "name": "embers",
        "description": "Hot embers rising from below",
        "particle_count": 120,
        "radius_min": 1,
        "radius_max": 3,
        "color": "#ff7a1a",
        "speed": 1.5,
        "direction_angle": 270,
        "spread": 0.6,
        "lifetime": 70,
        "blend_mode": "additive",
        "tags": ["fire", "glow"],
    },

    "bubbles": {
        "name": "bubbles",
        "description": "Large translucent bubbles floating up",
        "particle_count": 40,
        "radius_min": 6,
        "radius_max": 14,
        "color": "#bfe9ff",
        "speed": 0.7,
        "direction_angle": 270,
        "spread": 0.4,
        "lifetime": 180,
        "opacity": 0.5,
        "blend_mode": "screen",
        "tags": ["water"],
    },

    "dust": {
        "name": "dust",
        "description": "Dim dust motes darkening the scene",
        "particle_count": 300,
        "radius_min": 0.5,
        "radius_max": 2,
        "color": "#8a7560",
        "speed": 0.3,
        "direction_angle": 20,
        "spread": 0.8,
        "lifetime": 200,
        "opacity": 0.6,
        "blend_mode": "multiply",
        "tags": ["ambient", "environment"],
    },
}


# ============================================================================
# Preset Manager
# ============================================================================

class PresetManager:
    """
    Manages loading, saving, and looking up overlay presets.
    """

    def __init__(self, user_presets_dir: Optional[Path] = None):
        """
        Initialize preset manager.

        Args:
            user_presets_dir: Directory for user presets (default: ~/.motion-overlay/presets)
        """
        self.user_presets_dir = Path(user_presets_dir or Path.home() / '.motion-overlay' / 'presets')

        self._builtin: Dict[str, OverlayPreset] = {}
        self._user: Dict[str, OverlayPreset] = {}

        self._load_builtin_presets()
        self._load_user_presets()

    def _load_builtin_presets(self) -> None:
        for name, data in BUILTIN_PRESETS.items():
            self._builtin[name] = OverlayPreset.from_dict(data)

    def _load_user_presets(self) -> None:
        """Load user-defined presets from YAML files"""
        if not self.user_presets_dir.is_dir():
            return

        for yaml_file in sorted(self.user_presets_dir.glob('*.yaml')):
            try:
                with open(yaml_file, 'r') as f:
                    data = yaml.safe_load(f)

                if not isinstance(data, dict):
                    continue

                if 'presets' in data:
                    # Multiple presets in one file
                    for name, preset_data in data['presets'].items():
                        preset_data['name'] = name
                        self._user[name] = OverlayPreset.from_dict(preset_data)
                else:
                    name = yaml_file.stem
                    data['name'] = name
                    self._user[name] = OverlayPreset.from_dict(data)
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning("Could not load preset file %s: %s", yaml_file, e)

    def get(self, name: str) -> Optional[OverlayPreset]:
        """
        Get a preset by name.
        User presets override built-in presets with same name.
        """
        return self._user.get(name) or self._builtin.get(name)

    def exists(self, name: str) -> bool:
        return name in self._user or name in self._builtin

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin and name not in self._user

    def list_all(self) -> List[str]:
        return sorted(set(self._builtin) | set(self._user))

    def list_by_tag(self, tag: str) -> List[str]:
        """List presets with a specific tag"""
        matches = []
        for name, preset in {**self._builtin, **self._user}.items():
            if tag.lower() in [t.lower() for t in preset.tags]:
                matches.append(name)
        return sorted(matches)

    def save_preset(self, preset: OverlayPreset, filename: Optional[str] = None) -> Path:
        """
        Save a user preset to YAML file.

        Returns:
            Path to saved file
        """
        filename = filename or f"{preset.name}.yaml"
        if not filename.endswith('.yaml'):
            filename += '.yaml'

        self.user_presets_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.user_presets_dir / filename

        with open(filepath, 'w') as f:
            yaml.safe_dump(preset.to_dict(), f, default_flow_style=False, sort_keys=False)

        self._user[preset.name] = preset
        return filepath

    def delete_preset(self, name: str) -> bool:
        """
        Delete a user preset.

        Returns:
            True if deleted, False if not found or is builtin
        """
        if name not in self._user:
            return False

        yaml_file = self.user_presets_dir / f"{name}.yaml"
        if yaml_file.exists():
            yaml_file.unlink()

        del self._user[name]
        return True


# ============================================================================
# Preset Application
# ============================================================================

PRESET_ARG_FIELDS = ('particles', 'opacity', 'blend', 'direction', 'speed', 'color')


def apply_preset_to_args(preset: OverlayPreset, args: Any) -> Any:
    """
    Fill unset CLI overrides from a preset.

    Args:
        preset: The preset to apply
        args: argparse namespace; attributes left as None take preset values

    Returns:
        Modified args namespace
    """
    defaults = {
        'particles': preset.particle_count,
        'opacity': preset.opacity,
        'blend': preset.blend_mode,
        'direction': preset.direction_angle,
        'speed': preset.speed,
        'color': preset.color,
    }
    for name in PRESET_ARG_FIELDS:
        if getattr(args, name, None) is None:
            setattr(args, name, defaults[name])

    return args


# ============================================================================
# Global Instance & Convenience Functions
# ============================================================================

_manager: Optional[PresetManager] = None


def get_preset_manager() -> PresetManager:
    """Get or create global preset manager"""
    global _manager
    if _manager is None:
        _manager = PresetManager()
    return _manager


def get_preset(name: str) -> Optional[OverlayPreset]:
    """Get a preset by name"""
    return get_preset_manager().get(name)


def list_presets(tag: Optional[str] = None) -> List[str]:
    """List available presets, optionally filtered by tag"""
    manager = get_preset_manager()
    if tag:
        return manager.list_by_tag(tag)
    return manager.list_all()
