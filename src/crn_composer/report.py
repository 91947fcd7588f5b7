"""Human-readable reporting utilities.

This module provides lightweight helpers to produce readable console text
for reaction-network trees:

- an indented outline of a composition tree,
- a per-node listing of species, parameters, scoped references and reactions,
- a listing of a flattened network.

Nothing here is required for composition; it is strictly presentation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import sympy as sp

from .compose import flatten
from .node import ReactionNode
from .reaction import complex_to_str


def _expr_to_str(e: sp.Expr) -> str:
    """Stable string for SymPy expressions in reports."""
    return sp.sstr(e)


def _names(symbols: Sequence[sp.Symbol]) -> str:
    return ", ".join(str(s) for s in symbols) if symbols else "-"


@dataclass
class ReportOptions:
    """Tunable knobs for report verbosity."""

    indent: str = "  "
    show_reactions: bool = True
    max_reactions: int = 20


def format_node(
    node: ReactionNode,
    *,
    options: Optional[ReportOptions] = None,
    depth: int = 0,
) -> List[str]:
    """Format one node (without its children) as indented lines."""
    opt = options or ReportOptions()
    pad = opt.indent * depth
    lines: List[str] = []

    lines.append(f"{pad}{node.name}")
    lines.append(f"{pad}{opt.indent}species: {_names(node.species)}")
    lines.append(f"{pad}{opt.indent}parameters: {_names(node.parameters)}")
    if node.scoped:
        lines.append(f"{pad}{opt.indent}scoped: " + "; ".join(ref.describe() for ref in node.scoped))

    if opt.show_reactions and node.reactions:
        lines.append(f"{pad}{opt.indent}reactions:")
        for r in list(node.reactions)[: int(opt.max_reactions)]:
            lines.append(f"{pad}{opt.indent * 2}{r}")
        if len(node.reactions) > opt.max_reactions:
            lines.append(f"{pad}{opt.indent * 2}... ({len(node.reactions) - opt.max_reactions} more)")
    return lines


def format_tree(node: ReactionNode, *, options: Optional[ReportOptions] = None) -> str:
    """Format `node` and all of its descendants, depth-first."""
    lines: List[str] = []
    for path, n in node.walk():
        lines.extend(format_node(n, options=options, depth=len(path)))
    return "\n".join(lines)


def format_flat(node: ReactionNode, *, options: Optional[ReportOptions] = None) -> str:
    """Format the flattened form of `node` as a species/parameter/reaction listing."""
    opt = options or ReportOptions(max_reactions=10**9)
    node = node if node.is_flat else flatten(node)
    lines = [f"{node.name} ({len(node.species)} species, {len(node.reactions)} reactions)"]
    lines.append("Species: " + _names(node.species))
    lines.append("Parameters: " + _names(node.parameters))
    for r in list(node.reactions)[: int(opt.max_reactions)]:
        lines.append(f"  {_expr_to_str(r.rate)}: {complex_to_str(r.reactants)} -> {complex_to_str(r.products)}")
    return "\n".join(lines) + "\n"
