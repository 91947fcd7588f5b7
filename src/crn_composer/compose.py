"""Assembly operations on reaction-network trees.

- `extend` merges two networks into one flat node (union of symbols,
  concatenation of reactions).
- `compose` attaches sub-networks to a parent, keeping them namespaced.
- `flatten` collapses a tree into a single node whose symbols carry the
  dot-joined path of the node that declared them (``G1.P``).

Every operation validates its inputs completely before building or mutating
anything, so a failure leaves all nodes as they were.
"""

from __future__ import annotations

import logging
import weakref
from typing import Dict, Iterable, List, Optional, Tuple

import sympy as sp

from .errors import CompositionError, CyclicComposition, DuplicateChildName, NameConflict
from .node import SEPARATOR, ReactionNode
from .reaction import Reaction
from .scope import resolve_all

logger = logging.getLogger(__name__)


def _roles(node: ReactionNode) -> Dict[str, str]:
    roles = {s.name: "species" for s in node.species}
    roles.update({p.name: "parameter" for p in node.parameters})
    roles.update({ref.name: "scoped" for ref in node.scoped})
    return roles


def extend(base: ReactionNode, overlay: ReactionNode, name: Optional[str] = None) -> ReactionNode:
    """Merge `overlay` into a copy of `base`.

    The result is named after `overlay` unless `name` is given. Species and
    parameters are unioned by name, base first; when a name occurs in both,
    the base symbol object is kept and the overlay reactions are rewritten to
    use it. Reactions are base reactions followed by overlay reactions.

    Raises
    ------
    NameConflict
        If a name is a species in one network and a parameter (or a scoped
        reference) in the other, or if one alias refers to two targets.
    DuplicateChildName
        If both networks carry a sub-network with the same name.
    """
    base_roles = _roles(base)
    overlay_roles = _roles(overlay)
    clashes = sorted(
        f"{nm} ({base_roles[nm]} in '{base.name}', {overlay_roles[nm]} in '{overlay.name}')"
        for nm in base_roles.keys() & overlay_roles.keys()
        if base_roles[nm] != overlay_roles[nm]
    )
    if clashes:
        raise NameConflict("incompatible roles: " + "; ".join(clashes))

    surviving: Dict[str, sp.Symbol] = {}
    for sym in base.species + base.parameters + overlay.species + overlay.parameters:
        surviving.setdefault(sym.name, sym)

    overlay_reactions: List[Reaction] = []
    for r in overlay.reactions:
        mapping = {s: surviving[s.name] for s in r.free_symbols if s.name in surviving and surviving[s.name] != s}
        overlay_reactions.append(r.renamed(mapping))

    merged = ReactionNode(
        name=name if name is not None else overlay.name,
        species=[surviving[s.name] for s in base.species + overlay.species],
        parameters=[surviving[p.name] for p in base.parameters + overlay.parameters],
        reactions=list(base.reactions) + overlay_reactions,
        scoped=list(base.scoped) + list(overlay.scoped),
        children=[c.clone() for c in list(base.children) + list(overlay.children)],
    )
    logger.debug(
        "extended '%s' with '%s' -> '%s' (%d species, %d reactions)",
        base.name,
        overlay.name,
        merged.name,
        len(merged.species),
        len(merged.reactions),
    )
    return merged


def compose(parent: ReactionNode, children: Iterable[ReactionNode]) -> ReactionNode:
    """Attach `children` to `parent`, in order, and return `parent`.

    Children keep their own species, parameters and reactions; from outside
    they are addressed as ``child.symbol`` below `parent`.

    Raises
    ------
    CyclicComposition
        If a child is `parent` itself or one of its ancestors.
    DuplicateChildName
        If two children share a name, or a name is already taken.
    CompositionError
        If a child already has a parent, or `parent` is a flattened (sealed) node.
    """
    children = list(children)
    if parent.sealed:
        raise CompositionError(f"'{parent.name}' is a flattened network and cannot take children")

    lineage = [parent] + list(parent.ancestors())
    for c in children:
        if not isinstance(c, ReactionNode):
            raise ValueError(f"children must be ReactionNode objects; got {c!r}")
        if any(c is a for a in lineage):
            raise CyclicComposition(f"'{c.name}' is '{parent.name}' or one of its ancestors")
        if c.parent is not None:
            raise CompositionError(f"'{c.name}' is already a child of '{c.parent.name}'")

    taken = [c.name for c in parent.children]
    for c in children:
        if c.name in taken:
            raise DuplicateChildName(f"'{parent.name}' already has a child named '{c.name}'")
        taken.append(c.name)

    for c in children:
        parent.children.append(c)
        c._parent = weakref.ref(parent)
    logger.debug("composed '%s' with children %s", parent.name, [c.name for c in children])
    return parent


def _relative_path(node: ReactionNode, root: ReactionNode) -> Tuple[str, ...]:
    return node.path[len(root.path):]


def _rename(path: Tuple[str, ...], sym: sp.Symbol, separator: str) -> sp.Symbol:
    if not path:
        return sym
    return sp.Symbol(separator.join(path + (sym.name,)), **sym.assumptions0)


def flatten(root: ReactionNode, separator: str = SEPARATOR) -> ReactionNode:
    """Collapse the tree below `root` into one node without children.

    Nodes are visited depth-first, pre-order, children in stored order. Each
    node's symbols are prefixed with its path relative to `root`; scoped
    references are replaced by the qualified symbol they resolve to. The
    source tree is not modified.

    Raises
    ------
    UnresolvedScope
        If any scoped reference in the tree cannot be resolved.
    NameConflict
        If a scoped reference used as a reactant or product resolves to a
        parameter, or two qualified names coincide.
    """
    bindings = resolve_all(root)

    species: Dict[str, sp.Symbol] = {}
    parameters: Dict[str, sp.Symbol] = {}
    reactions: List[Reaction] = []

    for path, node in root.walk():
        mapping: Dict[sp.Symbol, sp.Symbol] = {}
        for sym in node.species + node.parameters:
            new = _rename(path, sym, separator)
            if new.name in species or new.name in parameters:
                raise NameConflict(f"qualified name '{new.name}' occurs twice in '{root.name}'")
            mapping[sym] = new
            if sym in node.species:
                species[new.name] = new
            else:
                parameters[new.name] = new

        complex_names = {s.name for r in node.reactions for s in r.species}
        for ref in node.scoped:
            binding = bindings[(path, ref.name)]
            if ref.name in complex_names and binding.role != "species":
                raise NameConflict(
                    f"'{ref.name}' is a reactant or product in '{node.name}' but resolves to a parameter"
                )
            owner_path = _relative_path(binding.owner, root)
            mapping[ref.local_symbol] = _rename(owner_path, binding.symbol, separator)

        reactions.extend(r.renamed(mapping) for r in node.reactions)

    flat = ReactionNode(
        name=root.name,
        species=list(species.values()),
        parameters=list(parameters.values()),
        reactions=reactions,
        sealed=True,
    )
    logger.debug(
        "flattened '%s': %d species, %d parameters, %d reactions",
        root.name,
        len(flat.species),
        len(flat.parameters),
        len(flat.reactions),
    )
    return flat


def resolve_scoped(root: ReactionNode) -> Dict[Tuple[Tuple[str, ...], str], sp.Symbol]:
    """Resolve all scoped references below `root` to the qualified symbols `flatten` would use."""
    out: Dict[Tuple[Tuple[str, ...], str], sp.Symbol] = {}
    for key, binding in resolve_all(root).items():
        out[key] = _rename(_relative_path(binding.owner, root), binding.symbol, SEPARATOR)
    return out


