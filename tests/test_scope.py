import pytest
import sympy as sp

from crn_composer import (
    ReactionNode,
    ScopedReference,
    UnresolvedScope,
    ancestor_scope,
    global_scope,
    parent_scope,
    resolve_all,
    resolve_reference,
    resolve_scoped,
    sibling_scope,
)


def _tree():
    """root(k) -> mid(k, q) -> leaf; root -> other(X)."""
    leaf = ReactionNode("leaf", species=["Y"])
    mid = ReactionNode("mid", parameters=["k", "q"], children=[leaf])
    other = ReactionNode("other", species=["X"])
    root = ReactionNode("root", parameters=["k"], children=[mid, other])
    return root, mid, leaf, other


def test_one_level_up_resolves_to_the_parent_symbol():
    root, mid, leaf, _ = _tree()
    binding = resolve_reference(leaf, parent_scope("k"))
    assert binding.owner is mid
    assert binding.symbol == mid.symbol("k")
    assert binding.role == "parameter"


def test_missing_symbol_at_the_target_is_unresolved():
    _, _, leaf, _ = _tree()
    with pytest.raises(UnresolvedScope):
        resolve_reference(leaf, parent_scope("nope"))


def test_walking_above_the_root_is_unresolved():
    root, _, leaf, _ = _tree()
    with pytest.raises(UnresolvedScope):
        resolve_reference(leaf, ancestor_scope("k", 3))
    with pytest.raises(UnresolvedScope):
        resolve_reference(root, parent_scope("k"))


def test_positional_binding_picks_the_named_level():
    # 'k' exists both at mid and at root: the level decides, no search.
    root, mid, leaf, _ = _tree()
    assert resolve_reference(leaf, ancestor_scope("k", 1)).owner is mid
    assert resolve_reference(leaf, ancestor_scope("k", 2)).owner is root
    assert resolve_reference(leaf, global_scope("k")).owner is root


def test_sibling_of_an_ancestor_is_reachable_by_path():
    root, _, leaf, other = _tree()
    binding = resolve_reference(leaf, ScopedReference("X", 2, ("other",)))
    assert binding.owner is other
    assert binding.role == "species"
    with pytest.raises(UnresolvedScope):
        resolve_reference(leaf, ScopedReference("X", 2, ("missing",)))


def test_walk_stops_at_the_given_root():
    _, mid, leaf, _ = _tree()
    assert resolve_reference(leaf, global_scope("k"), root=mid).owner is mid
    with pytest.raises(UnresolvedScope):
        resolve_reference(leaf, ancestor_scope("k", 2), root=mid)


def test_resolution_does_not_mutate_nodes():
    root, mid, leaf, _ = _tree()
    before = (mid.species, mid.parameters, list(mid.children))
    resolve_reference(leaf, parent_scope("q"))
    assert (mid.species, mid.parameters, list(mid.children)) == before


def test_resolve_all_reports_every_reference(repressilator):
    bindings = resolve_all(repressilator)
    assert bindings[(("G1",), "R")].owner is repressilator.child("G3")
    assert bindings[(("G2",), "R")].owner is repressilator.child("G1")
    assert bindings[(("G3",), "v")].owner is repressilator
    assert len(bindings) == 12

    qualified = resolve_scoped(repressilator)
    assert qualified[(("G1",), "R")].name == "G3.P"
    assert qualified[(("G1",), "v")] == sp.Symbol("v", positive=True)


def test_levels_up_must_be_positive():
    with pytest.raises(ValueError):
        ScopedReference("k", 0)
    assert ScopedReference("k", None).levels_up is None


@pytest.mark.parametrize("levels_up", [1.5, 2.0, "1", True])
def test_levels_up_must_be_an_integer(levels_up):
    with pytest.raises(ValueError):
        ScopedReference("k", levels_up)


def test_alias_and_helpers():
    ref = sibling_scope("G3", "P", alias="R")
    assert ref.name == "R"
    assert ref.local_symbol == sp.Symbol("R")
    assert ref.levels_up == 1 and ref.path == ("G3",)
    assert parent_scope("k").name == "k"
    assert ref.describe() == "R -> G3.P (1 up)"
