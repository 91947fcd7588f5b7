"""Deferred (scoped) symbol references between nodes of a composition tree.

A node's rate expressions may use a symbol that the node does not own, for
instance a repressor protein declared by a sibling gene or a rate constant
shared by the enclosing system. Such symbols are declared as
:class:`ScopedReference` objects. They stay unresolved while the tree is being
assembled and are bound only when :func:`resolve_all` (or ``flatten``) runs,
because the owning node may not have all of its children attached yet.

Binding is positional: a reference names an exact number of levels to walk up
(or the tree root) plus an optional path of child names to walk down. There is
no search through intermediate ancestors, so a name declared at several levels
is never ambiguous.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple

import sympy as sp

from .errors import UnresolvedScope

if TYPE_CHECKING:
    from .node import ReactionNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopedReference:
    """A symbol owned by another node of the tree.

    Parameters
    ----------
    symbol:
        Identifier of the species or parameter at the owning node.
    levels_up:
        Number of parent steps from the referencing node; ``None`` means the
        root of the tree being resolved.
    path:
        Child names to descend after walking up (reaches siblings).
    alias:
        Name of the placeholder symbol used in the local rate expressions.
        Defaults to `symbol`.
    """

    symbol: str
    levels_up: Optional[int] = 1
    path: Tuple[str, ...] = ()
    alias: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("scoped reference needs a symbol name")
        if self.levels_up is not None and (
            isinstance(self.levels_up, bool) or not isinstance(self.levels_up, int) or self.levels_up < 1
        ):
            raise ValueError(
                f"levels_up must be an integer of at least 1 (or None for the root); got {self.levels_up!r}"
            )
        object.__setattr__(self, "path", tuple(self.path))

    @property
    def name(self) -> str:
        """Local name under which the reference is used in rate expressions."""
        return self.alias or self.symbol

    @property
    def local_symbol(self) -> sp.Symbol:
        return sp.Symbol(self.name)

    def describe(self) -> str:
        up = "root" if self.levels_up is None else f"{self.levels_up} up"
        target = ".".join(self.path + (self.symbol,))
        return f"{self.name} -> {target} ({up})"


def parent_scope(symbol: str, alias: Optional[str] = None) -> ScopedReference:
    return ScopedReference(symbol, 1, (), alias)


def ancestor_scope(symbol: str, levels_up: int, alias: Optional[str] = None) -> ScopedReference:
    return ScopedReference(symbol, levels_up, (), alias)


def global_scope(symbol: str, alias: Optional[str] = None) -> ScopedReference:
    return ScopedReference(symbol, None, (), alias)


def sibling_scope(child: str, symbol: str, alias: Optional[str] = None) -> ScopedReference:
    """Reference `symbol` owned by the sibling node called `child`."""
    return ScopedReference(symbol, 1, (child,), alias)


@dataclass(frozen=True)
class Binding:
    """Result of resolving a scoped reference."""

    owner: "ReactionNode"
    symbol: sp.Symbol
    role: str


def resolve_reference(
    node: "ReactionNode",
    ref: ScopedReference,
    root: Optional["ReactionNode"] = None,
) -> Binding:
    """Bind `ref`, as used by `node`, to the symbol it designates.

    The upward walk stops at `root` when given, so a reference escaping the
    tree being flattened is reported instead of silently binding outside it.
    Nothing is mutated.
    """
    target = node
    if ref.levels_up is None:
        while target is not root and target.parent is not None:
            target = target.parent
    else:
        for _ in range(ref.levels_up):
            if target is root or target.parent is None:
                raise UnresolvedScope(
                    f"'{ref.describe()}' used in '{node.name}' walks above the top of the tree"
                )
            target = target.parent

    for child_name in ref.path:
        by_name = {c.name: c for c in target.children}
        if child_name not in by_name:
            raise UnresolvedScope(
                f"'{ref.describe()}' used in '{node.name}': '{target.name}' has no child '{child_name}'"
            )
        target = by_name[child_name]

    role = target.role_of(ref.symbol)
    if role is None:
        raise UnresolvedScope(
            f"'{ref.describe()}' used in '{node.name}': '{target.name}' declares no symbol '{ref.symbol}'"
        )
    return Binding(owner=target, symbol=target.symbol(ref.symbol), role=role)


def resolve_all(root: "ReactionNode") -> Dict[Tuple[Tuple[str, ...], str], Binding]:
    """Resolve every scoped reference in the subtree of `root`.

    Returns a mapping ``(relative_path, alias) -> Binding`` in depth-first
    pre-order. Raises `UnresolvedScope` on the first reference that cannot be
    bound.
    """
    bindings: Dict[Tuple[Tuple[str, ...], str], Binding] = {}
    for path, node in root.walk():
        for ref in node.scoped:
            binding = resolve_reference(node, ref, root=root)
            logger.debug("resolved %s in %s to %s.%s", ref.name, node.name, binding.owner.name, binding.symbol)
            bindings[(path, ref.name)] = binding
    return bindings
