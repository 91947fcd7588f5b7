from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import sympy as sp

from .errors import NameConflict
from .reaction import Reaction
from .scope import ScopedReference


SymbolLike = Union[str, sp.Symbol]

SEPARATOR = "."


def _as_symbol(value: SymbolLike) -> sp.Symbol:
    if isinstance(value, sp.Symbol):
        return value
    if isinstance(value, str) and value:
        return sp.Symbol(value)
    raise ValueError(f"expected a symbol or a non-empty name; got {value!r}")


def _unique_by_name(symbols: Iterable[SymbolLike]) -> Tuple[sp.Symbol, ...]:
    # First occurrence of a name wins.
    out: Dict[str, sp.Symbol] = {}
    for s in symbols:
        sym = _as_symbol(s)
        out.setdefault(sym.name, sym)
    return tuple(out.values())


@dataclass(eq=False)
class ReactionNode:
    """A named reaction network, possibly containing named sub-networks.

    Parameters
    ----------
    name:
        Identifier, unique among the siblings of this node.
    species, parameters:
        Local symbols, in order. Strings are turned into SymPy symbols.
    reactions:
        Local reactions.
    scoped:
        Symbols used by the reactions but owned by another node of the tree.
    children:
        Sub-networks; attached through `compose`, which validates them.

    Notes
    -----
    Symbols are identified by name. A reaction symbol whose name matches a
    declaration is replaced by the declared object; undeclared reaction
    symbols are inferred. Complex members become species in order of first
    appearance. The remaining rate symbols become parameters, reaction by
    reaction, sorted by name within one rate (a SymPy expression does not
    keep the order it was written in). `from_string` declares parameters in
    written order, so this rule only applies to `Reaction` objects built
    directly.

    Nodes compare by identity. The parent link is a weak reference: a parent
    does not stay alive through its children. Keep a reference to the root of
    any tree you work with; once the last reference to a parent is dropped,
    its children are detached (``parent`` is None) and can be composed again.
    """

    name: str
    species: Sequence[SymbolLike] = ()
    parameters: Sequence[SymbolLike] = ()
    reactions: Sequence[Reaction] = ()
    scoped: Sequence[ScopedReference] = ()
    children: List["ReactionNode"] = field(default_factory=list)
    sealed: bool = False
    _parent: Optional["weakref.ReferenceType[ReactionNode]"] = field(
        default=None, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("node name must be a non-empty string")
        if SEPARATOR in self.name:
            raise ValueError(f"node name may not contain '{SEPARATOR}': '{self.name}'")

        species = list(_unique_by_name(self.species))
        parameters = list(_unique_by_name(self.parameters))
        scoped = self._check_scoped(self.scoped)

        species_names = {s.name for s in species}
        clash = [p.name for p in parameters if p.name in species_names]
        if clash:
            raise NameConflict(f"'{self.name}': {clash} declared both as species and as parameters")
        local_names = species_names | {p.name for p in parameters}
        clash = [ref.name for ref in scoped if ref.name in local_names]
        if clash:
            raise NameConflict(f"'{self.name}': {clash} declared both locally and as scoped references")

        declared: Dict[str, sp.Symbol] = {s.name: s for s in species + parameters}
        declared.update({ref.name: ref.local_symbol for ref in scoped})

        reactions = [r if isinstance(r, Reaction) else Reaction(*r) for r in self.reactions]

        # Complex members first, so a regulator appearing in an early rate law
        # and produced by a later reaction is still a species.
        for r in reactions:
            for sym in r.species:
                if sym.name not in declared:
                    declared[sym.name] = sym
                    species.append(sym)
        for r in reactions:
            for sym in sorted(r.rate.free_symbols, key=lambda z: str(z)):
                if sym.name not in declared:
                    declared[sym.name] = sym
                    parameters.append(sym)

        normalized = []
        for r in reactions:
            mapping = {s: declared[s.name] for s in r.free_symbols if declared[s.name] != s}
            normalized.append(r.renamed(mapping))

        self.species = tuple(species)
        self.parameters = tuple(parameters)
        self.reactions = tuple(normalized)
        self.scoped = tuple(scoped)

        children = list(self.children)
        self.children = []
        if children:
            self.compose(*children)

    def _check_scoped(self, scoped: Iterable[ScopedReference]) -> List[ScopedReference]:
        by_name: Dict[str, ScopedReference] = {}
        for ref in scoped:
            if not isinstance(ref, ScopedReference):
                raise ValueError(f"scoped entries must be ScopedReference objects; got {ref!r}")
            prev = by_name.get(ref.name)
            if prev is not None and prev != ref:
                raise NameConflict(
                    f"'{self.name}': alias '{ref.name}' refers to both {prev.describe()} and {ref.describe()}"
                )
            by_name.setdefault(ref.name, ref)
        return list(by_name.values())

    # -----------------------------
    # Tree structure
    # -----------------------------

    @property
    def parent(self) -> Optional["ReactionNode"]:
        return self._parent() if self._parent is not None else None

    def ancestors(self) -> Iterator["ReactionNode"]:
        """Yield the parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def root(self) -> "ReactionNode":
        node = self
        for node in self.ancestors():
            pass
        return node

    @property
    def path(self) -> Tuple[str, ...]:
        """Names from the tree root down to this node (inclusive)."""
        names = [self.name] + [a.name for a in self.ancestors()]
        return tuple(reversed(names))

    @property
    def namespace(self) -> str:
        """Dot-joined path below the root; empty for the root itself."""
        return SEPARATOR.join(self.path[1:])

    def child(self, name: str) -> "ReactionNode":
        for c in self.children:
            if c.name == name:
                return c
        raise KeyError(f"'{self.name}' has no child '{name}'")

    def walk(self) -> Iterator[Tuple[Tuple[str, ...], "ReactionNode"]]:
        """Depth-first pre-order traversal yielding (path relative to self, node)."""
        stack: List[Tuple[Tuple[str, ...], ReactionNode]] = [((), self)]
        while stack:
            path, node = stack.pop()
            yield path, node
            for c in reversed(node.children):
                stack.append((path + (c.name,), c))

    def compose(self, *children: "ReactionNode") -> "ReactionNode":
        """Attach `children` in order; see `crn_composer.compose.compose`."""
        from .compose import compose  # local import to avoid circular import

        return compose(self, children)

    # -----------------------------
    # Symbols
    # -----------------------------

    def role_of(self, name: str) -> Optional[str]:
        """'species', 'parameter' or None for a local name."""
        if any(s.name == name for s in self.species):
            return "species"
        if any(p.name == name for p in self.parameters):
            return "parameter"
        return None

    def symbol(self, name: str) -> sp.Symbol:
        """Return the local species or parameter called `name`."""
        for s in self.species + self.parameters:
            if s.name == name:
                return s
        raise KeyError(f"'{self.name}' declares no symbol '{name}'")

    def qualified(self, dotted: str) -> sp.Symbol:
        """Return the symbol that `flatten(self)` emits for a dotted name such as 'G1.P'."""
        *child_names, sym_name = dotted.split(SEPARATOR)
        node = self
        for c in child_names:
            node = node.child(c)
        local = node.symbol(sym_name)
        return sp.Symbol(dotted, **local.assumptions0)

    @property
    def is_flat(self) -> bool:
        return not self.children and not self.scoped

    def clone(self) -> "ReactionNode":
        """Detached copy of the subtree. Symbols and reactions are shared (immutable)."""
        return ReactionNode(
            name=self.name,
            species=self.species,
            parameters=self.parameters,
            reactions=self.reactions,
            scoped=self.scoped,
            children=[c.clone() for c in self.children],
        )

    def __str__(self) -> str:
        from .report import format_tree

        return format_tree(self)

    # -----------------------------
    # Constructors
    # -----------------------------

    @classmethod
    def from_string(
        cls,
        name: str,
        text: str,
        species: Optional[Sequence[SymbolLike]] = None,
        parameters: Optional[Sequence[SymbolLike]] = None,
        scoped: Sequence[ScopedReference] = (),
        rate_prefix: str = "k",
    ) -> "ReactionNode":
        """Build a node from reaction lines such as ``"s + i ->[b] 2i"``.

        See `crn_composer.parser.ReactionParser` for the accepted syntax.
        Names listed in `scoped` are used as-is in rate expressions.
        """
        from .parser import ReactionParser

        parser = ReactionParser(rate_prefix=rate_prefix)
        return parser.parse_node(
            name,
            text,
            species=species,
            parameters=parameters,
            scoped=scoped,
        )
