"""Common rate laws as SymPy expressions.

These are the non-mass-action rate functions that regulatory networks use
most, e.g. a promoter repressed by a protein made elsewhere in the tree:
``0 ->[hillr(R, v, K, n)] m``. The reaction's mass-action monomial still
multiplies the returned expression.
"""

from __future__ import annotations

import sympy as sp


def mm(x, v, K) -> sp.Expr:
    """Michaelis-Menten: v*x/(K + x)."""
    return v * x / (K + x)


def mmr(x, v, K) -> sp.Expr:
    """Repressive Michaelis-Menten: v*K/(K + x)."""
    return v * K / (K + x)


def hill(x, v, K, n) -> sp.Expr:
    """Activating Hill function: v*x^n/(K^n + x^n)."""
    return v * x**n / (K**n + x**n)


def hillr(x, v, K, n) -> sp.Expr:
    """Repressive Hill function: v*K^n/(K^n + x^n)."""
    return v * K**n / (K**n + x**n)


RATE_LAWS = {
    "mm": mm,
    "mmr": mmr,
    "hill": hill,
    "hillr": hillr,
}
