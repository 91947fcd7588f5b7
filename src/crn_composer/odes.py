from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import sympy as sp

from .compose import flatten
from .node import ReactionNode
from .reaction import Reaction, complex_to_str


@dataclass(frozen=True)
class ODESystem:
    """Mass-action ODE view of a flat reaction network.

    Parameters
    ----------
    name:
        Name of the network the system was built from.
    species, parameters, reactions:
        Ordered, as exposed by a flattened `ReactionNode`.

    Notes
    -----
    The ODE system is
        dx/dt = Σ_j rate_j φ_j(x) v_j
    with mass action monomials φ_j and net stoichiometry vectors v_j.
    """

    name: str
    species: Tuple[sp.Symbol, ...]
    parameters: Tuple[sp.Symbol, ...]
    reactions: Tuple[Reaction, ...]

    @classmethod
    def from_node(cls, node: ReactionNode) -> "ODESystem":
        """Build the system of `node`, flattening it first when it is a tree."""
        flat = node if node.is_flat else flatten(node)
        return cls(flat.name, tuple(flat.species), tuple(flat.parameters), tuple(flat.reactions))

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def species_index(self) -> Dict[sp.Symbol, int]:
        return {s: i for i, s in enumerate(self.species)}

    def rhs(self, simplify: bool = True) -> sp.Matrix:
        """Return the RHS F(x,p) as an n×1 SymPy Matrix."""
        F = sp.Matrix.zeros(self.n_species, 1)
        index = self.species_index
        for r in self.reactions:
            flux = r.flux()
            for sym in r.species:
                change = r.net_change(sym)
                if change:
                    F[index[sym], 0] += change * flux
        return sp.simplify(F) if simplify else F

    def jacobian(self) -> sp.Matrix:
        """Return the Jacobian DF(x,p) as an n×n SymPy Matrix."""
        F = self.rhs()
        J = F.jacobian(self.species)
        return sp.simplify(J)

    def stoichiometric_matrix(self) -> sp.Matrix:
        """Return the stoichiometric matrix S with columns the net reaction vectors."""
        if not self.reactions:
            return sp.Matrix.zeros(self.n_species, 0)
        cols = [sp.Matrix([r.net_change(s) for s in self.species]) for r in self.reactions]
        return sp.Matrix.hstack(*cols)

    def reactant_matrix(self) -> sp.Matrix:
        """Return the reactant stoichiometry matrix with columns the reactant complexes."""
        if not self.reactions:
            return sp.Matrix.zeros(self.n_species, 0)
        cols = []
        for r in self.reactions:
            coeffs = dict(r.reactants)
            cols.append(sp.Matrix([coeffs.get(s, 0) for s in self.species]))
        return sp.Matrix.hstack(*cols)

    def stoichiometric_first_integrals(self, integer_basis: bool = True) -> List[sp.Matrix]:
        """Return a basis of stoichiometric first integrals (conservation laws).

        Each element is returned as a 1×n row vector μ^T such that μ^T S = 0.
        """
        S = self.stoichiometric_matrix()
        if S.cols == 0:
            # No reactions: every coordinate is an integral.
            return [sp.Matrix([[1 if i == j else 0 for j in range(self.n_species)]]) for i in range(self.n_species)]

        # Left nullspace of S is right nullspace of S.T.
        out: List[sp.Matrix] = []
        for v in S.T.nullspace():
            row = sp.Matrix(v).T
            if integer_basis:
                row = _make_integer_row(row)
            out.append(row)
        return out

    def summary(self) -> str:
        """Human-readable summary."""
        lines = []
        lines.append(f"ODESystem({self.name}, n_species={self.n_species}, n_reactions={len(self.reactions)})")
        lines.append("Species: " + ", ".join(str(s) for s in self.species))
        lines.append("Parameters: " + ", ".join(str(p) for p in self.parameters))
        return "\n".join(lines)

    def to_latex(self) -> str:
        """Export the ODE system to LaTeX.

        Returns an ``align`` environment with equations of the form
            \\dot{x}_i = F_i(x,p).
        """
        F = self.rhs()
        lines = []
        for i, xi in enumerate(self.species):
            lhs = f"\\dot{{{sp.latex(xi)}}}"
            rhs = sp.latex(F[i, 0])
            lines.append(f"{lhs} &= {rhs}")
        body = " \\\\\n".join(lines)
        return "\\begin{align}\n" + body + "\n\\end{align}"

    def reactions_to_latex(self) -> str:
        """Export directed reactions to LaTeX, one line per reaction."""
        lines = []
        for r in self.reactions:
            lhs = complex_to_str(r.reactants)
            rhs = complex_to_str(r.products)
            k = sp.latex(r.rate)
            lines.append(f"{lhs} &\\xrightarrow{{{k}}} {rhs}")

        body = " \\\\\n".join(lines)
        return "\\begin{align}\n" + body + "\n\\end{align}"


def _make_integer_row(row: sp.Matrix) -> sp.Matrix:
    """Scale a rational row vector to a primitive integer row vector."""
    if row.shape[0] != 1:
        raise ValueError("row must be 1×n")

    # Clear denominators.
    nums = []
    dens = []
    for entry in row.tolist()[0]:
        num, den = sp.fraction(sp.nsimplify(entry))
        nums.append(num)
        dens.append(den)

    lcm = 1
    for d in dens:
        lcm = sp.ilcm(lcm, int(d))
    ints = [int(sp.expand(num * (lcm // int(den)))) for num, den in zip(nums, dens)]
    if all(v == 0 for v in ints):
        return row

    # Make primitive by dividing gcd.
    g = 0
    for v in ints:
        g = sp.igcd(g, abs(v))
    prim = [sp.Integer(v // int(g)) for v in ints]

    # Canonical sign: make first nonzero entry positive.
    first = next(v for v in prim if v != 0)
    if first < 0:
        prim = [-v for v in prim]
    return sp.Matrix([prim])
