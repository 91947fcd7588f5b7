"""Numerical integration of composed networks with SciPy.

The network is flattened, turned into its mass-action right-hand side and
handed to `scipy.integrate.solve_ivp`. `compare_with_rhs` integrates a
hand-written right-hand side under the same settings, which is how model
definitions are checked against reference equations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import sympy as sp
from scipy.integrate import solve_ivp

from .node import ReactionNode
from .odes import ODESystem

logger = logging.getLogger(__name__)

Values = Union[Sequence[float], Mapping[Union[str, sp.Symbol], float]]
SystemLike = Union[ODESystem, ReactionNode]


@dataclass
class Trajectory:
    """Solution of an integration: `y` has one row per species."""

    t: np.ndarray
    y: np.ndarray
    species: Tuple[str, ...]

    def series(self, name: str) -> np.ndarray:
        try:
            return self.y[self.species.index(name)]
        except ValueError:
            raise KeyError(f"unknown species '{name}'") from None

    def final(self) -> Dict[str, float]:
        """Species values at the last time point."""
        return {nm: float(self.y[i, -1]) for i, nm in enumerate(self.species)}


@dataclass
class RHSComparison:
    network: Trajectory
    reference: Trajectory
    max_abs_error: float

    def agrees(self, tol: float = 1e-6) -> bool:
        return self.max_abs_error <= tol


def _as_system(system: SystemLike) -> ODESystem:
    if isinstance(system, ODESystem):
        return system
    return ODESystem.from_node(system)


def _ordered_values(symbols: Sequence[sp.Symbol], values: Optional[Values], what: str) -> np.ndarray:
    """Arrange `values` in the order of `symbols`.

    Sequences must already be in declaration order; mappings may be keyed by
    symbol or by (qualified) name.
    """
    if values is None:
        values = {}
    if isinstance(values, Mapping):
        by_name = {(k.name if isinstance(k, sp.Symbol) else str(k)): v for k, v in values.items()}
        unknown = sorted(set(by_name) - {s.name for s in symbols})
        if unknown:
            raise ValueError(f"unknown {what}: {unknown}")
        missing = [s.name for s in symbols if s.name not in by_name]
        if missing:
            raise ValueError(f"missing values for {what}: {missing}")
        return np.array([float(by_name[s.name]) for s in symbols], dtype=float)

    arr = np.array(values, dtype=float).reshape(-1)
    if arr.size != len(symbols):
        raise ValueError(f"expected {len(symbols)} {what}; got {arr.size}")
    return arr


def numeric_rhs(system: SystemLike, parameters: Optional[Values] = None) -> Callable[[float, np.ndarray], np.ndarray]:
    """Return f(t, x) for `solve_ivp` with the parameter values substituted."""
    system = _as_system(system)
    p = _ordered_values(system.parameters, parameters, "parameters")
    n = system.n_species

    F = system.rhs(simplify=False)
    f_num = sp.lambdify((system.species, system.parameters), F, modules="numpy", dummify=True)

    def rhs(t: float, x: np.ndarray) -> np.ndarray:
        return np.array(f_num(x, p), dtype=float).reshape((n,))

    return rhs


def _integrate(
    f: Callable[[float, np.ndarray], np.ndarray],
    u0: np.ndarray,
    t_span: Tuple[float, float],
    n_eval: int,
    rtol: float,
    atol: float,
    method: str,
) -> Tuple[np.ndarray, np.ndarray]:
    t_eval = np.linspace(float(t_span[0]), float(t_span[1]), int(n_eval))
    sol = solve_ivp(f, (float(t_span[0]), float(t_span[1])), u0, t_eval=t_eval, rtol=rtol, atol=atol, method=method)
    if not sol.success:
        raise RuntimeError(f"integration failed: {sol.message}")
    return sol.t, sol.y


def simulate(
    system: SystemLike,
    u0: Values,
    t_span: Tuple[float, float] = (0.0, 10.0),
    parameters: Optional[Values] = None,
    *,
    n_eval: int = 200,
    rtol: float = 1e-8,
    atol: float = 1e-10,
    method: str = "LSODA",
) -> Trajectory:
    """Integrate the mass-action ODEs of `system`.

    Parameters
    ----------
    system:
        An `ODESystem` or a `ReactionNode` (flattened on the fly).
    u0:
        Initial species values, in species order or keyed by qualified name.
    parameters:
        Parameter values, in parameter order or keyed by qualified name.
    """
    system = _as_system(system)
    x0 = _ordered_values(system.species, u0, "initial values")
    f = numeric_rhs(system, parameters)

    logger.debug("integrating '%s' over %s with %s", system.name, t_span, method)
    t, y = _integrate(f, x0, t_span, n_eval, rtol, atol, method)
    return Trajectory(t=t, y=y, species=tuple(s.name for s in system.species))


def compare_with_rhs(
    system: SystemLike,
    f: Callable[[np.ndarray, np.ndarray, np.ndarray, float], None],
    u0: Values,
    t_span: Tuple[float, float] = (0.0, 10.0),
    parameters: Optional[Values] = None,
    *,
    n_eval: int = 200,
    rtol: float = 1e-8,
    atol: float = 1e-10,
    method: str = "LSODA",
) -> RHSComparison:
    """Integrate `system` and a hand-written RHS and report their deviation.

    `f(du, u, p, t)` fills `du` in place; `u` is in species order and `p` in
    parameter order of the flattened system.
    """
    system = _as_system(system)
    x0 = _ordered_values(system.species, u0, "initial values")
    p = _ordered_values(system.parameters, parameters, "parameters")

    net = simulate(system, x0, t_span, p, n_eval=n_eval, rtol=rtol, atol=atol, method=method)

    def reference(t: float, u: np.ndarray) -> np.ndarray:
        du = np.zeros_like(u, dtype=float)
        f(du, u, p, t)
        return du

    t, y = _integrate(reference, x0, t_span, n_eval, rtol, atol, method)
    ref = Trajectory(t=t, y=y, species=net.species)

    err = float(np.max(np.abs(net.y - ref.y))) if net.y.size else 0.0
    logger.debug("'%s' deviates from the reference RHS by %g", system.name, err)
    return RHSComparison(network=net, reference=ref, max_abs_error=err)
