"""Top-level package API for crn_composer.

This package assembles **hierarchical chemical reaction networks** from named
symbolic sub-networks (SymPy expressions for rates), and turns the result
into mass-action ODEs that SciPy can integrate.

Public API:
- Reaction, ReactionNode, ReactionParser
- extend, compose, flatten (tree assembly)
- ScopedReference and helpers (deferred cross-node symbols)
- ODESystem, simulate, compare_with_rhs
- Built-in example networks
"""

from .errors import (
    CompositionError,
    NameConflict,
    DuplicateChildName,
    UnresolvedScope,
    CyclicComposition,
)
from .reaction import Reaction
from .scope import (
    ScopedReference,
    Binding,
    parent_scope,
    ancestor_scope,
    global_scope,
    sibling_scope,
    resolve_reference,
    resolve_all,
)
from .node import ReactionNode
from .parser import ReactionParser
from .compose import extend, compose, flatten, resolve_scoped
from .odes import ODESystem
from .simulate import Trajectory, RHSComparison, simulate, compare_with_rhs
from .ratelaws import mm, mmr, hill, hillr
from .report import ReportOptions, format_node, format_tree, format_flat
from .examples import (
    sir_network,
    birth_death_network,
    binding_network,
    unbinding_network,
    repressilator_gene,
    repressilator_network,
)

__all__ = [
    "CompositionError",
    "NameConflict",
    "DuplicateChildName",
    "UnresolvedScope",
    "CyclicComposition",
    "Reaction",
    "ScopedReference",
    "Binding",
    "parent_scope",
    "ancestor_scope",
    "global_scope",
    "sibling_scope",
    "resolve_reference",
    "resolve_all",
    "ReactionNode",
    "ReactionParser",
    "extend",
    "compose",
    "flatten",
    "resolve_scoped",
    "ODESystem",
    "Trajectory",
    "RHSComparison",
    "simulate",
    "compare_with_rhs",
    "mm",
    "mmr",
    "hill",
    "hillr",
    "ReportOptions",
    "format_node",
    "format_tree",
    "format_flat",
    "sir_network",
    "birth_death_network",
    "binding_network",
    "unbinding_network",
    "repressilator_gene",
    "repressilator_network",
]
