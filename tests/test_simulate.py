import numpy as np
import pytest

from crn_composer import (
    ODESystem,
    birth_death_network,
    compare_with_rhs,
    simulate,
)
from crn_composer.simulate import numeric_rhs


def sir_reference(du, u, p, t):
    du[0] = -(0.1 / 1000) * u[0] * u[1]
    du[1] = (0.1 / 1000) * u[0] * u[1] - p[0] * u[1]
    du[2] = p[0] * u[1]


def test_numeric_rhs_matches_hand_written_equations(sir):
    f = numeric_rhs(sir, {"p1": 0.01})
    np.testing.assert_allclose(f(0.0, np.array([990.0, 10.0, 0.0])), [-0.99, 0.89, 0.1])


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_sir_agrees_with_reference_rhs(sir, seed):
    rng = np.random.default_rng(seed)
    u0 = [990.0 + 200 * rng.random(), 10.0 + 2 * rng.random(), 0.0]
    t_end = 10.0 + 5 * rng.random()

    cmp = compare_with_rhs(sir, sir_reference, u0, (0.0, t_end), [0.01])
    assert cmp.agrees(tol=1e-4)
    assert cmp.network.species == ("s", "i", "r")
    np.testing.assert_allclose(cmp.network.final()["s"], cmp.reference.y[0, -1], rtol=1e-6)


def test_birth_death_approaches_steady_state():
    traj = simulate(birth_death_network(), {"X": 0.0}, (0.0, 20.0), {"d": 1.0})
    assert traj.y.shape == (1, 200)
    assert abs(traj.final()["X"] - 1000.0) < 1e-2
    assert np.all(np.diff(traj.series("X")) >= -1e-3)


def test_repressilator_runs_with_qualified_names(repressilator):
    system = ODESystem.from_node(repressilator)
    params = {p.name: 1.0 for p in system.parameters}
    params.update({"v": 10.0, "n": 3.0})
    u0 = {s.name: 0.0 for s in system.species}
    u0["G1.m"] = 1.0

    traj = simulate(system, u0, (0.0, 5.0), params, n_eval=50)
    assert traj.y.shape == (6, 50)
    assert np.all(np.isfinite(traj.y))
    assert traj.final()["G2.P"] > 0.0


def test_bad_values_are_reported(sir):
    with pytest.raises(ValueError):
        simulate(sir, [1.0, 2.0], (0.0, 1.0), [0.01])
    with pytest.raises(ValueError):
        simulate(sir, [990.0, 10.0, 0.0], (0.0, 1.0))
    with pytest.raises(ValueError):
        simulate(sir, [990.0, 10.0, 0.0], (0.0, 1.0), {"p1": 0.01, "p2": 1.0})


def test_series_of_unknown_species(sir):
    traj = simulate(sir, [990.0, 10.0, 0.0], (0.0, 1.0), [0.01], n_eval=5)
    with pytest.raises(KeyError):
        traj.series("x")
