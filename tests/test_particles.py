import math

import pytest

from motion_overlay.core import (
    ParticleSimulation, SimulationSettings, RegionKind, ContainmentRegion, BOUNCE_DAMPING, contains,
)
from motion_overlay.errors import InvalidConfiguration, NotInitialized


def test_initialize_seeds_requested_population(simulation, settings):
    assert simulation.initialized
    assert simulation.particle_count == settings.particle_count
    assert simulation.tick == 0
    for p in simulation.particles:
        assert 0 <= p.x <= 20 and 0 <= p.y <= 16
        assert settings.radius_min <= p.radius <= settings.radius_max
        assert p.life == p.max_life == settings.lifetime
        assert p.color == (99, 102, 241)


def test_population_size_never_changes(simulation, settings):
    for _ in range(250):
        simulation.step()
        assert simulation.particle_count == settings.particle_count
    assert simulation.tick == 250


def test_positions_stay_inside_bounds():
    sim = ParticleSimulation()
    sim.initialize((30, 10), SimulationSettings(particle_count=50, speed=7.0, seed=3))
    for _ in range(200):
        sim.step()
        for p in sim.particles:
            assert 0 <= p.x <= 30
            assert 0 <= p.y <= 10


def test_lifetime_one_respawns_at_max_life():
    sim = ParticleSimulation()
    sim.initialize((50, 50), SimulationSettings(particle_count=10, lifetime=1, speed=0.0, seed=5))
    for _ in range(5):
        sim.step()
        for p in sim.particles:
            assert p.life == p.max_life == 1


def test_life_counts_down_and_never_goes_negative():
    sim = ParticleSimulation()
    sim.initialize((50, 50), SimulationSettings(particle_count=10, lifetime=4, seed=9))
    seen = []
    for _ in range(12):
        sim.step()
        lives = {p.life for p in sim.particles}
        assert min(lives) >= 1
        seen.append(lives)
    assert seen[:4] == [{3}, {2}, {1}, {4}]


def test_bounce_damps_velocity():
    sim = ParticleSimulation()
    sim.initialize((10, 10), SimulationSettings(particle_count=1, speed=0.0, seed=1))
    particle = sim._particles[0]
    particle.x, particle.vx = 9.5, 2.0
    sim.step()
    p = sim.particles[0]
    assert p.x == 10
    assert p.vx == pytest.approx(-2.0 * BOUNCE_DAMPING)


def test_leaving_region_respawns_particle():
    region = ContainmentRegion(RegionKind.CIRCLE, (5.0, 5.0), 1.0)
    sim = ParticleSimulation()
    sim.initialize((100, 100), SimulationSettings(particle_count=1, speed=0.0, lifetime=50, seed=2))
    particle = sim._particles[0]
    particle.x, particle.y, particle.vx, particle.vy = 80.0, 80.0, 0.0, 0.0
    particle.life = 10
    sim.install_region(region)
    sim.step()
    p = sim.particles[0]
    assert (p.x, p.y) != (80.0, 80.0)
    # Respawn refills life before this tick's countdown
    assert p.life == p.max_life - 1


def test_respawn_ignores_region_and_retries_next_step():
    # A tiny region makes an in-region respawn practically impossible
    region = ContainmentRegion(RegionKind.CIRCLE, (50.0, 50.0), 0.5)
    sim = ParticleSimulation()
    sim.initialize((100, 100), SimulationSettings(particle_count=1, speed=0.0, lifetime=50, seed=11))
    sim.install_region(region)

    sim.step()
    first = sim.particles[0]
    assert 0 <= first.x <= 100 and 0 <= first.y <= 100
    assert not contains(region, (first.x, first.y))
    assert first.life == first.max_life - 1

    sim.step()
    second = sim.particles[0]
    assert (second.x, second.y) != (first.x, first.y)
    # Without the second respawn life would have dropped to max_life - 2
    assert second.life == second.max_life - 1


def test_step_and_render_before_initialize():
    sim = ParticleSimulation()
    with pytest.raises(NotInitialized):
        sim.step()
    with pytest.raises(NotInitialized):
        sim.render(0)


@pytest.mark.parametrize("overrides", [
    dict(particle_count=0),
    dict(particle_count=-3),
    dict(radius_min=-1.0),
    dict(radius_min=5.0, radius_max=2.0),
    dict(speed=-0.5),
    dict(spread=1.5),
    dict(lifetime=0),
    dict(direction=(2.0, 0.0)),
    dict(color="#12"),
    dict(speed=float("nan")),
    dict(speed=float("inf")),
    dict(radius_min=float("nan")),
    dict(radius_max=float("inf")),
    dict(spread=float("nan")),
    dict(direction=(float("nan"), 0.0)),
    dict(direction=(1.0, float("nan"))),
])
def test_invalid_settings_leave_simulation_untouched(simulation, settings, overrides):
    before = simulation.particles
    bad = SimulationSettings(**{**settings.__dict__, **overrides})
    with pytest.raises(InvalidConfiguration):
        simulation.initialize((20, 16), bad)
    assert simulation.particles == before
    assert simulation.settings == settings


def test_invalid_dimensions():
    with pytest.raises(InvalidConfiguration):
        ParticleSimulation().initialize((0, 10), SimulationSettings())


def test_zero_direction_means_no_drift():
    SimulationSettings(direction=(0.0, 0.0)).validate()


def test_render_is_a_pure_read(simulation):
    simulation.step()
    first = simulation.render(0)
    second = simulation.render(0)
    assert first == second
    assert simulation.tick == 1


def test_seed_makes_runs_reproducible(store, settings):
    a, b = ParticleSimulation(), ParticleSimulation()
    a.initialize(store.dimensions, settings)
    b.initialize(store.dimensions, settings)
    for _ in range(30):
        a.step()
        b.step()
    assert a.render(0) == b.render(0)


def test_reconfigure_reseeds(simulation, settings):
    simulation.step()
    simulation.reconfigure(SimulationSettings(particle_count=7, seed=1))
    assert simulation.particle_count == 7
    assert simulation.tick == 0
    assert simulation.dimensions == (20, 16)


def test_reconfigure_requires_initialize():
    with pytest.raises(NotInitialized):
        ParticleSimulation().reconfigure(SimulationSettings())


def test_with_direction_angle():
    down = SimulationSettings().with_direction_angle(90)
    assert down.direction[0] == pytest.approx(0.0, abs=1e-12)
    assert down.direction[1] == pytest.approx(1.0)
    assert math.hypot(*down.direction) == pytest.approx(1.0)
    down.validate()


def test_particles_snapshot_is_a_copy(simulation):
    snapshot = simulation.particles
    snapshot[0].x = -999
    assert simulation.particles[0].x != -999
