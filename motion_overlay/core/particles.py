"""
Overlay Particle Simulation

A fixed-size population of particles advanced one discrete tick per rendered
frame.

Physics per tick:
- Drift: velocity plus the global direction scaled by speed
- Boundaries: clamp to the background and bounce with 0.8 damping
- Containment: leaving the installed region respawns the particle
- Lifetime: counts down one per tick, respawn at zero

Respawn moves a particle to a uniformly random position and refills its
lifetime. Velocity, radius and color are kept, so a particle keeps its
identity across respawns. Respawn positions are not checked against the
containment region; a particle placed outside it is respawned again on the
next tick.

Example:
    sim = ParticleSimulation()
    sim.initialize((320, 240), SimulationSettings(particle_count=150))
    sim.install_region(region)

    for index in range(frame_count):
        sim.step()
        visuals = sim.render(index)
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from ..errors import InvalidConfiguration, NotInitialized
from .region import ContainmentRegion, contains
from .utils import ColorLike, ColorUtils, MathUtils

logger = logging.getLogger(__name__)

BOUNCE_DAMPING = 0.8


# =============================================================================
# Settings
# =============================================================================

@dataclass(frozen=True)
class SimulationSettings:
    """Immutable configuration for one simulation run"""
    particle_count: int = 200
    radius_min: float = 2.0
    radius_max: float = 8.0
    speed: float = 1.0
    direction: Tuple[float, float] = (1.0, 0.0)   # Unit vector, or (0, 0) for no drift
    spread: float = 0.5
    lifetime: int = 100                            # Ticks
    color: ColorLike = '#6366f1'
    seed: Optional[int] = None

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return ColorUtils.parse(self.color)

    def with_direction_angle(self, degrees: float) -> 'SimulationSettings':
        """Copy with direction pointing at the given angle (0 = right, 90 = down)"""
        return replace(self, direction=MathUtils.angle_to_vector(degrees))

    def validate(self) -> None:
        """Raise InvalidConfiguration for settings no simulation can run with"""
        numbers = [
            ('radius_min', self.radius_min),
            ('radius_max', self.radius_max),
            ('speed', self.speed),
            ('spread', self.spread),
            ('direction', self.direction[0]),
            ('direction', self.direction[1]),
        ]
        for name, value in numbers:
            if not math.isfinite(value):
                raise InvalidConfiguration(f"{name} must be finite, got {value}")

        if self.particle_count <= 0:
            raise InvalidConfiguration(f"particle_count must be > 0, got {self.particle_count}")
        if self.radius_min < 0:
            raise InvalidConfiguration(f"radius_min must be >= 0, got {self.radius_min}")
        if self.radius_min > self.radius_max:
            raise InvalidConfiguration(
                f"Inverted radius range: min {self.radius_min} > max {self.radius_max}"
            )
        if self.speed < 0:
            raise InvalidConfiguration(f"speed must be >= 0, got {self.speed}")
        if not 0.0 <= self.spread <= 1.0:
            raise InvalidConfiguration(f"spread must be in [0, 1], got {self.spread}")
        if self.lifetime < 1:
            raise InvalidConfiguration(f"lifetime must be >= 1 tick, got {self.lifetime}")

        dx, dy = self.direction
        length = math.hypot(dx, dy)
        if length != 0.0 and abs(length - 1.0) > 1e-6:
            raise InvalidConfiguration(f"direction must be a unit vector, got {self.direction}")

        # Raises for malformed colors
        self.rgb


# =============================================================================
# Particle
# =============================================================================

@dataclass
class Particle:
    """Individual particle state"""
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    radius: float = 1.0
    color: Tuple[int, int, int] = (255, 255, 255)

    # Lifetime in ticks
    life: int = 1
    max_life: int = 1

    @property
    def life_fraction(self) -> float:
        """Remaining lifetime as 0-1 fraction"""
        return self.life / self.max_life if self.max_life > 0 else 0.0


class ParticleVisual(NamedTuple):
    """What the compositor needs to draw one particle"""
    x: float
    y: float
    radius: float
    color: Tuple[int, int, int]
    life_fraction: float


# =============================================================================
# Simulation
# =============================================================================

class ParticleSimulation:
    """
    Owns the particle population and advances it one tick per frame.

    step() must be called exactly once per displayed frame index, in
    increasing order, before render() for that index.
    """

    def __init__(self):
        self._particles: List[Particle] = []
        self._settings: Optional[SimulationSettings] = None
        self._width = 0
        self._height = 0
        self._region: Optional[ContainmentRegion] = None
        self._rng = np.random.default_rng()
        self.tick = 0

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def initialize(self, dimensions: Tuple[int, int], settings: SimulationSettings) -> None:
        """Seed a fresh population inside (width, height)"""
        width, height = dimensions
        if width <= 0 or height <= 0:
            raise InvalidConfiguration(f"Background dimensions must be positive, got {dimensions}")
        settings.validate()

        rng = np.random.default_rng(settings.seed)
        color = settings.rgb
        speed = settings.speed

        particles = []
        for _ in range(settings.particle_count):
            particles.append(Particle(
                x=rng.random() * width,
                y=rng.random() * height,
                vx=(rng.random() - 0.5) * speed * 2,
                vy=(rng.random() - 0.5) * speed * 2,
                radius=settings.radius_min + rng.random() * (settings.radius_max - settings.radius_min),
                color=color,
                life=settings.lifetime,
                max_life=settings.lifetime
            ))

        self._rng = rng
        self._width = width
        self._height = height
        self._settings = settings
        self._particles = particles
        self.tick = 0

        logger.debug(
            "Seeded %d particles in %dx%d (speed=%.2f, lifetime=%d)",
            settings.particle_count, width, height, speed, settings.lifetime
        )

    def reconfigure(self, settings: SimulationSettings) -> None:
        """Replace settings and re-seed every particle"""
        self._require_initialized()
        self.initialize((self._width, self._height), settings)

    def install_region(self, region: Optional[ContainmentRegion]) -> None:
        """Swap the containment region; used from the next step on"""
        self._region = region

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._settings is not None

    @property
    def settings(self) -> Optional[SimulationSettings]:
        return self._settings

    @property
    def region(self) -> Optional[ContainmentRegion]:
        return self._region

    @property
    def dimensions(self) -> Tuple[int, int]:
        return (self._width, self._height)

    @property
    def particle_count(self) -> int:
        return len(self._particles)

    @property
    def particles(self) -> Tuple[Particle, ...]:
        """Snapshot copies; mutating them does not affect the simulation"""
        return tuple(replace(p) for p in self._particles)

    def _require_initialized(self) -> None:
        if self._settings is None:
            raise NotInitialized("ParticleSimulation.initialize() has not been called")

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def _respawn(self, p: Particle) -> None:
        p.x = self._rng.random() * self._width
        p.y = self._rng.random() * self._height
        p.life = p.max_life

    def step(self) -> None:
        """Advance every particle by one tick"""
        self._require_initialized()

        settings = self._settings
        drift_x = settings.direction[0] * settings.speed
        drift_y = settings.direction[1] * settings.speed
        width, height = self._width, self._height
        region = self._region

        for p in self._particles:
            p.x += p.vx + drift_x
            p.y += p.vy + drift_y

            # Inelastic bounce off the background edges
            if p.x < 0 or p.x > width:
                p.vx *= -BOUNCE_DAMPING
                p.x = MathUtils.clamp(p.x, 0, width)
            if p.y < 0 or p.y > height:
                p.vy *= -BOUNCE_DAMPING
                p.y = MathUtils.clamp(p.y, 0, height)

            if region is not None and not contains(region, (p.x, p.y)):
                self._respawn(p)

            p.life -= 1
            if p.life <= 0:
                self._respawn(p)

        self.tick += 1

    def render(self, frame_index: int) -> List[ParticleVisual]:
        """
        Visual state of the population for compositing.

        Does not advance time; frame_index is informational.
        """
        self._require_initialized()
        return [
            ParticleVisual(p.x, p.y, p.radius, p.color, p.life_fraction)
            for p in self._particles
        ]
