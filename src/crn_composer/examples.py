from __future__ import annotations

import sympy as sp

from .node import ReactionNode
from .reaction import Reaction
from .scope import parent_scope, sibling_scope


def sir_network() -> ReactionNode:
    """SIR epidemic model.

    Network:
        s + i -> 2i    (rate 0.1/1000)
        i -> r         (rate p1)

    Species order: [s, i, r]
    Parameters: p1
    """
    return ReactionNode.from_string(
        "sir",
        """
        s + i ->[0.1/1000] 2i
        i ->[p1] r
        """,
    )


def birth_death_network() -> ReactionNode:
    """Linear birth-death process X <-> 0 with degradation d and constant production 1000."""
    return ReactionNode.from_string("birth_death", "X <->[d][1000] 0")


def binding_network() -> ReactionNode:
    """A + B -> C with rate k (name 'rn1')."""
    A, B, C = sp.symbols("A B C", real=True)
    k = sp.Symbol("k", positive=True)
    return ReactionNode(
        "rn1",
        species=[A, B, C],
        reactions=[Reaction(k, {A: 1, B: 1}, {C: 1})],
    )


def unbinding_network() -> ReactionNode:
    """C -> A + B with rate r (name 'rn2'). B is inferred from the reaction."""
    A, B, C = sp.symbols("A B C", real=True)
    r = sp.Symbol("r", positive=True)
    return ReactionNode(
        "rn2",
        species=[A, C],
        reactions=[Reaction(r, {C: 1}, {A: 1, B: 1})],
    )


def repressilator_gene(name: str, repressor: str) -> ReactionNode:
    """One gene of the repressilator, repressed by the protein of sibling `repressor`.

    Species: m (mRNA), P (protein). The promoter strength v, Hill constant K
    and Hill coefficient n belong to the enclosing network; the repressor
    protein is the sibling's P, used locally as R.
    """
    return ReactionNode.from_string(
        name,
        """
        0 ->[hillr(R, v, K, n)] m
        m ->[delta] 0
        m ->[beta] m + P
        P ->[mu] 0
        """,
        species=["m", "P"],
        scoped=[
            sibling_scope(repressor, "P", alias="R"),
            parent_scope("v"),
            parent_scope("K"),
            parent_scope("n"),
        ],
    )


def repressilator_network() -> ReactionNode:
    """Three genes G1, G2, G3 in a ring, G1 repressed by G3, G2 by G1, G3 by G2.

    Flattened species order: [G1.m, G1.P, G2.m, G2.P, G3.m, G3.P]
    Shared parameters (root): v, K, n
    """
    root = ReactionNode("repressilator", parameters=sp.symbols("v K n", positive=True))
    return root.compose(
        repressilator_gene("G1", "G3"),
        repressilator_gene("G2", "G1"),
        repressilator_gene("G3", "G2"),
    )
