from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Tuple, Union

import sympy as sp


Complex = Tuple[Tuple[sp.Symbol, int], ...]
ComplexLike = Union[Mapping[sp.Symbol, int], Iterable[Tuple[sp.Symbol, int]]]


def _as_complex(items: ComplexLike) -> Complex:
    """Normalize a multiset of species into ((symbol, coefficient), ...).

    Repeated species are merged (first appearance fixes the position) and
    zero coefficients are dropped.
    """
    pairs = items.items() if isinstance(items, Mapping) else items
    merged: Dict[sp.Symbol, int] = {}
    for sym, coeff in pairs:
        if not isinstance(sym, sp.Symbol):
            raise ValueError(f"complex entries must be SymPy symbols; got {sym!r}")
        c = int(coeff)
        if c < 0 or c != coeff:
            raise ValueError("stoichiometric coefficients must be nonnegative integers")
        if c == 0:
            continue
        merged[sym] = merged.get(sym, 0) + c
    return tuple(merged.items())


def complex_to_str(cplx: Complex) -> str:
    terms = []
    for sym, c in cplx:
        terms.append(f"{sym}" if c == 1 else f"{c}{sym}")
    return " + ".join(terms) if terms else "0"


@dataclass(frozen=True)
class Reaction:
    """A single mass-action reaction.

    Parameters
    ----------
    rate:
        SymPy expression for the rate. It may reference parameters, species
        (e.g. Hill-type regulation) or be a plain number.
    reactants:
        Reactant multiset, as a mapping or as (symbol, coefficient) pairs.
    products:
        Product multiset, same format as `reactants`.

    Notes
    -----
    For a reaction with reactant coefficients m_i and product coefficients
    r_i, mass action kinetics yields the term

        rate * prod_i x_i**m_i * (r - m)

    in the ODE system dx/dt.
    """

    rate: sp.Expr
    reactants: Complex = ()
    products: Complex = ()

    def __post_init__(self) -> None:
        if isinstance(self.rate, str):
            raise ValueError("rate must be a SymPy expression or a number, not a string")
        object.__setattr__(self, "rate", sp.sympify(self.rate))
        object.__setattr__(self, "reactants", _as_complex(self.reactants))
        object.__setattr__(self, "products", _as_complex(self.products))

    @property
    def species(self) -> Tuple[sp.Symbol, ...]:
        """Species appearing in either complex, reactants first."""
        seen = {}
        for sym, _c in self.reactants + self.products:
            seen.setdefault(sym, None)
        return tuple(seen)

    @property
    def free_symbols(self) -> set:
        return set(self.rate.free_symbols) | set(self.species)

    def net_change(self, symbol: sp.Symbol) -> int:
        """Net stoichiometric change of `symbol` (products minus reactants)."""
        produced = sum(c for s, c in self.products if s == symbol)
        consumed = sum(c for s, c in self.reactants if s == symbol)
        return produced - consumed

    def reactant_monomial(self) -> sp.Expr:
        """Return the mass-action monomial φ(x) = ∏ x_i^{m_i}."""
        mon = sp.Integer(1)
        for sym, c in self.reactants:
            mon *= sym ** c
        return mon

    def flux(self) -> sp.Expr:
        """Rate times mass-action monomial."""
        return self.rate * self.reactant_monomial()

    def renamed(self, mapping: Mapping[sp.Symbol, sp.Symbol]) -> "Reaction":
        """Return a copy with symbols substituted in the rate and both complexes."""
        if not mapping:
            return self
        mapping = dict(mapping)
        return Reaction(
            rate=self.rate.xreplace(mapping),
            reactants=tuple((mapping.get(s, s), c) for s, c in self.reactants),
            products=tuple((mapping.get(s, s), c) for s, c in self.products),
        )

    def is_reverse_of(self, other: "Reaction") -> bool:
        return self.reactants == other.products and self.products == other.reactants

    def __str__(self) -> str:
        return f"{self.rate}: {complex_to_str(self.reactants)} -> {complex_to_str(self.products)}"

    @staticmethod
    def from_dicts(
        reactants: Mapping[sp.Symbol, int],
        products: Mapping[sp.Symbol, int],
        rate: sp.Expr,
    ) -> "Reaction":
        return Reaction(rate, tuple(reactants.items()), tuple(products.items()))
