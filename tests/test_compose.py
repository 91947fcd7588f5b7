import gc

import pytest

from crn_composer import (
    CompositionError,
    CyclicComposition,
    DuplicateChildName,
    ReactionNode,
    UnresolvedScope,
    compose,
    flatten,
    repressilator_network,
)


def _leaf(name: str) -> ReactionNode:
    return ReactionNode.from_string(name, "0 ->[a] X; X ->[d] 0")


def test_children_keep_the_supplied_order():
    root = ReactionNode("root")
    kids = [_leaf("c"), _leaf("a"), _leaf("b")]
    out = compose(root, kids)
    assert out is root
    assert root.children == kids
    assert all(k.parent is root for k in kids)


def test_compose_does_not_merge_reactions():
    root = ReactionNode("root")
    leaf = _leaf("c")
    root.compose(leaf)
    assert root.reactions == ()
    assert root.species == ()
    assert len(leaf.reactions) == 2


def test_duplicate_name_in_arguments_leaves_parent_unchanged():
    root = ReactionNode("root")
    with pytest.raises(DuplicateChildName):
        compose(root, [_leaf("g"), _leaf("g")])
    assert root.children == []


def test_duplicate_name_against_existing_child_leaves_parent_unchanged():
    first = _leaf("g")
    root = ReactionNode("root", children=[first])
    other = _leaf("h")
    with pytest.raises(DuplicateChildName):
        compose(root, [other, _leaf("g")])
    assert root.children == [first]
    assert other.parent is None


def test_composing_an_ancestor_is_cyclic():
    x = ReactionNode("x")
    y = ReactionNode("y", children=[x])
    with pytest.raises(CyclicComposition):
        compose(x, [y])
    assert x.children == []

    with pytest.raises(CyclicComposition):
        compose(x, [x])


def test_composing_a_non_root_ancestor_is_cyclic():
    z = ReactionNode("z")
    y = ReactionNode("y", children=[z])
    x = ReactionNode("x", children=[y])
    with pytest.raises(CyclicComposition):
        compose(z, [y])
    assert z.children == []
    assert x.children == [y]


def test_a_node_has_at_most_one_parent():
    leaf = _leaf("g")
    p1 = ReactionNode("p1", children=[leaf])
    p2 = ReactionNode("p2")
    with pytest.raises(CompositionError):
        compose(p2, [leaf])
    assert p2.children == []
    assert leaf.parent is p1


def test_dropping_the_parent_detaches_its_children():
    leaf = _leaf("g")
    p1 = ReactionNode("p1", children=[leaf])
    assert leaf.parent is p1
    del p1
    gc.collect()
    assert leaf.parent is None
    assert leaf.path == ("g",)

    p2 = compose(ReactionNode("p2"), [leaf])
    assert leaf.parent is p2


def test_children_of_a_dropped_tree_lose_their_scope():
    g1 = repressilator_network().child("G1")
    gc.collect()
    assert g1.parent is None
    with pytest.raises(UnresolvedScope):
        flatten(g1)


def test_flattened_nodes_are_sealed(repressilator):
    flat = flatten(repressilator)
    with pytest.raises(CompositionError):
        flat.compose(_leaf("extra"))


def test_errors_are_value_errors():
    assert issubclass(DuplicateChildName, ValueError)
    assert issubclass(CyclicComposition, CompositionError)
