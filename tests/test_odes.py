import sympy as sp

from crn_composer import ODESystem, birth_death_network, binding_network, extend, unbinding_network


def test_sir_rhs(sir):
    system = ODESystem.from_node(sir)
    s, i, r = system.species
    (p1,) = system.parameters
    F = system.rhs()

    assert F.shape == (3, 1)
    assert sp.simplify(F[2] - p1 * i) == 0
    assert sp.simplify(F[0] + F[1] + F[2]) == 0
    assert sp.simplify(F[1] - (-F[0] - p1 * i)) == 0


def test_sir_conserves_total_population(sir):
    system = ODESystem.from_node(sir)
    assert system.stoichiometric_first_integrals() == [sp.Matrix([[1, 1, 1]])]


def test_birth_death_jacobian():
    system = ODESystem.from_node(birth_death_network())
    (X,) = system.species
    (d,) = system.parameters
    assert sp.simplify(system.rhs()[0] - (1000 - d * X)) == 0
    assert system.jacobian() == sp.Matrix([[-d]])


def test_stoichiometric_and_reactant_matrices():
    system = ODESystem.from_node(extend(binding_network(), unbinding_network()))
    S = system.stoichiometric_matrix()
    M = system.reactant_matrix()
    # Species A, B, C; reactions A + B -> C, C -> A + B.
    assert S == sp.Matrix([[-1, 1], [-1, 1], [1, -1]])
    assert M == sp.Matrix([[1, 0], [1, 0], [0, 1]])
    integrals = system.stoichiometric_first_integrals()
    assert len(integrals) == 2
    for mu in integrals:
        assert mu * S == sp.zeros(1, S.cols)


def test_trees_are_flattened_on_the_fly(repressilator):
    system = ODESystem.from_node(repressilator)
    assert [s.name for s in system.species] == ["G1.m", "G1.P", "G2.m", "G2.P", "G3.m", "G3.P"]
    assert system.stoichiometric_matrix().shape == (6, 12)
    G1_m = system.species[0]
    G3_P = system.species[5]
    # G1 transcription is repressed by G3's protein.
    assert G3_P in system.rhs(simplify=False)[0].free_symbols
    assert G1_m not in system.jacobian()[0, 5].free_symbols


def test_latex_exports(sir):
    system = ODESystem.from_node(sir)
    tex = system.to_latex()
    assert tex.startswith("\\begin{align}")
    assert tex.count("&=") == 3
    assert system.reactions_to_latex().count("\\xrightarrow") == 2
    assert "Parameters: p1" in system.summary()
