"""Check the SIR network against hand-written ODEs.

The network

    s + i -> 2i   (0.1/1000)
    i -> r        (p1)

is integrated next to an explicit right-hand side for randomized initial
conditions and horizons; both should agree to solver precision.

Run:
    python examples/sir_reference_check.py
"""

from __future__ import annotations

import numpy as np

from crn_composer import ODESystem, compare_with_rhs, sir_network


def f(du, u, p, t):
    du[0] = -(0.1 / 1000) * u[0] * u[1]
    du[1] = (0.1 / 1000) * u[0] * u[1] - 0.01 * u[1]
    du[2] = p[0] * u[1]


def main() -> None:
    system = ODESystem.from_node(sir_network())
    print(system.summary())
    print(system.to_latex())

    rng = np.random.default_rng(42)
    worst = 0.0
    for _ in range(100):
        u0 = [990.0 + 200 * rng.random(), 10.0 + 2 * rng.random(), 0.0]
        t_end = 10.0 + 5 * rng.random()
        cmp = compare_with_rhs(system, f, u0, (0.0, t_end), [0.01], n_eval=20)
        worst = max(worst, cmp.max_abs_error)

    print(f"\nLargest deviation over 100 runs: {worst:.3e}")


if __name__ == "__main__":
    main()
