import pytest
import sympy as sp

from crn_composer import (
    DuplicateChildName,
    NameConflict,
    Reaction,
    ReactionNode,
    binding_network,
    extend,
    parent_scope,
    unbinding_network,
)


def test_binding_extended_with_unbinding():
    rn1 = binding_network()
    rn2 = unbinding_network()
    merged = extend(rn1, rn2)

    assert merged.name == "rn2"
    assert [s.name for s in merged.species] == ["A", "B", "C"]
    assert len(merged.reactions) == 2
    assert [str(r) for r in merged.reactions] == ["k: A + B -> C", "r: C -> A + B"]
    assert merged.reactions[0] == rn1.reactions[0]
    assert merged.children == []


def test_disjoint_extend_concatenates_reactions_in_order():
    base = ReactionNode.from_string("base", "A ->[k1] B; B ->[k2] A")
    overlay = ReactionNode.from_string("overlay", "X ->[q1] Y; Y ->[q2] 0; 0 ->[q3] X")
    merged = extend(base, overlay)
    assert len(merged.reactions) == len(base.reactions) + len(overlay.reactions)
    assert merged.reactions == base.reactions + overlay.reactions
    assert [p.name for p in merged.parameters] == ["k1", "k2", "q1", "q2", "q3"]


def test_name_can_be_overridden():
    assert extend(binding_network(), unbinding_network(), name="rn").name == "rn"


def test_inputs_are_not_mutated():
    rn1, rn2 = binding_network(), unbinding_network()
    species1, reactions2 = rn1.species, rn2.reactions
    extend(rn1, rn2)
    assert rn1.species == species1
    assert rn2.reactions == reactions2


def test_first_occurrence_keeps_its_symbol():
    A_real = sp.Symbol("A", real=True)
    A_plain, B = sp.symbols("A B")
    base = ReactionNode("base", species=[A_real])
    overlay = ReactionNode("overlay", reactions=[Reaction(1, {A_plain: 1}, {B: 1})])
    merged = extend(base, overlay)
    assert merged.species[0] == A_real
    assert merged.reactions[0].reactants == ((A_real, 1),)


def test_species_versus_parameter_is_a_conflict():
    base = ReactionNode("base", species=["A"])
    overlay = ReactionNode("overlay", parameters=["A"])
    with pytest.raises(NameConflict):
        extend(base, overlay)


def test_local_versus_scoped_is_a_conflict():
    base = ReactionNode("base", parameters=["k"])
    overlay = ReactionNode("overlay", scoped=[parent_scope("k")])
    with pytest.raises(NameConflict):
        extend(base, overlay)


def test_scoped_references_are_unioned():
    base = ReactionNode("base", scoped=[parent_scope("k")])
    overlay = ReactionNode("overlay", scoped=[parent_scope("k"), parent_scope("q")])
    merged = extend(base, overlay)
    assert [ref.name for ref in merged.scoped] == ["k", "q"]

    clash = ReactionNode("clash", scoped=[parent_scope("other", alias="k")])
    with pytest.raises(NameConflict):
        extend(base, clash)


def test_children_are_copied_and_must_not_collide():
    g = ReactionNode("g", species=["X"])
    base = ReactionNode("base", children=[g])
    overlay = ReactionNode("overlay", children=[ReactionNode("h")])
    merged = extend(base, overlay)
    assert [c.name for c in merged.children] == ["g", "h"]
    assert merged.children[0] is not g
    assert merged.children[0].parent is merged
    assert g.parent is base

    with pytest.raises(DuplicateChildName):
        extend(base, ReactionNode("again", children=[ReactionNode("g")]))
