"""Universe state arithmetic, population bookkeeping and the system derivative."""
import numpy as np
import pytest

from nbody.particle import ParticleState, ParticleType
from nbody.universe import Universe, UniverseState
from nbody.vector import Vector2D


def make_universe(size=100.0, force_factor=1.0, gravity=0.0, **kwargs):
    universe = Universe(size, size, force_factor, gravity, **kwargs)
    type_id = universe.add_type(ParticleType(
        "test", mass=1.0, radius=5.0, exclusion_constant=1.0, dipole_moment=0.0, range=10.0,
    ))
    return universe, type_id


def random_state(rng, n):
    return UniverseState([
        ParticleState(Vector2D(*rng.normal(size=2)), Vector2D(*rng.normal(size=2)))
        for _ in range(n)
    ])


def assert_states_close(a, b):
    assert len(a) == len(b)
    for sa, sb in zip(a, b):
        assert sa.pos.x == pytest.approx(sb.pos.x)
        assert sa.pos.y == pytest.approx(sb.pos.y)
        assert sa.v.x == pytest.approx(sb.v.x)
        assert sa.v.y == pytest.approx(sb.v.y)


def test_universe_state_vector_space_laws():
    rng = np.random.default_rng(3)
    for n in (0, 1, 5, 20):
        a = random_state(rng, n)
        b = random_state(rng, n)
        k = float(rng.uniform(-3, 3))
        assert_states_close((a + b) * k, a * k + b * k)
        assert_states_close(a + b, b + a)


def test_universe_state_length_mismatch_is_a_defect():
    rng = np.random.default_rng(0)
    with pytest.raises(AssertionError):
        random_state(rng, 2) + random_state(rng, 3)


def test_add_and_remove_keep_sequences_aligned():
    universe, type_id = make_universe()
    rng = np.random.default_rng(11)
    for _ in range(300):
        if len(universe) and rng.random() < 0.4:
            universe.remove_particle(int(rng.integers(len(universe))))
        else:
            universe.add_particle(type_id, ParticleState(Vector2D(*rng.uniform(0, 100, 2))))
        assert len(universe.state) == len(universe.diff.type_ids)


def test_remove_shifts_later_indices():
    universe, type_id = make_universe()
    for x in (10.0, 20.0, 30.0):
        universe.add_particle(type_id, ParticleState(Vector2D(x, 50.0)))
    universe.remove_particle(1)
    assert [s.pos.x for s in universe] == [10.0, 30.0]


@pytest.mark.parametrize("index", [-1, 3])
def test_remove_out_of_range_is_a_defect(index):
    universe, type_id = make_universe()
    for _ in range(3):
        universe.add_particle(type_id, ParticleState(Vector2D(50.0, 50.0)))
    with pytest.raises(AssertionError):
        universe.remove_particle(index)


def test_add_particle_with_unknown_type_is_a_defect():
    universe, _ = make_universe()
    with pytest.raises(AssertionError):
        universe.add_particle(42, ParticleState())


def test_clamp_into_world():
    universe, _ = make_universe(size=100.0)
    assert universe.clamp_into(Vector2D(-5.0, 120.0)) == Vector2D(0.0, 100.0)
    assert universe.clamp_into(Vector2D(30.0, 40.0)) == Vector2D(30.0, 40.0)


def test_no_wall_force_at_the_wall():
    universe, type_id = make_universe(size=100.0)
    universe.add_particle(type_id, ParticleState(Vector2D(100.0, 50.0), Vector2D(5.0, 0.0)))
    der = universe.diff.derivative(universe.state)
    assert der[0].v == Vector2D(0.0, 0.0)
    assert der[0].pos == Vector2D(5.0, 0.0)


def test_wall_force_is_quartic_and_points_inward():
    universe, _ = make_universe(size=100.0, force_factor=2.0)
    diff = universe.diff
    assert diff.bound_force(0.0) == 0.0
    assert diff.bound_force(-3.0) == 0.0
    assert diff.bound_force(1.0) == pytest.approx(2.0)
    assert diff.bound_force(2.0) == pytest.approx(32.0)

    previous = 0.0
    for over in (0.5, 1.0, 1.5, 2.0, 3.0):
        right = diff.wall_force(Vector2D(100.0 + over, 50.0)).x
        left = diff.wall_force(Vector2D(-over, 50.0)).x
        assert right < 0.0 < left
        assert abs(right) > previous
        previous = abs(right)

    assert diff.wall_force(Vector2D(50.0, -1.0)).y == pytest.approx(2.0)
    assert diff.wall_force(Vector2D(50.0, 101.0)).y == pytest.approx(-2.0)


def test_gravity_scales_with_mass():
    universe, _ = make_universe(gravity=9.8)
    heavy = universe.add_type(ParticleType(
        "heavy", mass=3.0, radius=1.0, exclusion_constant=0.0, dipole_moment=0.0, range=1.0,
    ))
    universe.add_particle(heavy, ParticleState(Vector2D(50.0, 50.0)))
    der = universe.diff.derivative(universe.state)
    # F = g * m, a = F / m
    assert der[0].v.y == pytest.approx(9.8)
    assert der[0].v.x == 0.0


def test_pair_forces_are_equal_and_opposite():
    universe, type_id = make_universe()
    universe.add_particle(type_id, ParticleState(Vector2D(48.0, 50.0)))
    universe.add_particle(type_id, ParticleState(Vector2D(52.0, 50.0)))
    der = universe.diff.derivative(universe.state)
    assert der[0].v.x == pytest.approx(-der[1].v.x)
    assert der[0].v.x < 0.0


def test_two_overlapping_particles_fly_apart_symmetrically():
    universe, type_id = make_universe(size=100.0)
    universe.add_particle(type_id, ParticleState(Vector2D(48.0, 50.0)))
    universe.add_particle(type_id, ParticleState(Vector2D(52.0, 50.0)))

    universe.advance(0.01)

    left, right = universe.state
    assert left.pos.x < 48.0
    assert right.pos.x > 52.0
    assert (left.pos.x + right.pos.x) / 2 == pytest.approx(50.0)
    assert left.pos.y == pytest.approx(50.0)
    assert right.pos.y == pytest.approx(50.0)
    assert left.v.x == pytest.approx(-right.v.x)
    assert right.v.x > 0.0


def test_particles_snapshot_for_rendering():
    universe, type_id = make_universe()
    universe.add_particle(type_id, ParticleState(Vector2D(10.0, 20.0), Vector2D(1.0, 0.0)))
    (view,) = universe.particles()
    assert (view.x, view.y) == (10.0, 20.0)
    assert view.radius == pytest.approx(3.0)
    assert view.type == "test"


def test_unknown_integrator_rejected():
    with pytest.raises(ValueError):
        Universe(100.0, 100.0, 1.0, 0.0, integrator="leapfrog")
