"""
Minimal pose solvers.

Each solver reduces its correspondence problem to three quadrics in the Cayley
rotation parameters, solves them with `minimalpose.core.re3q3`, then recovers
the remaining linear unknowns.
"""
