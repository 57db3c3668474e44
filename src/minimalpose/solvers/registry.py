from __future__ import annotations

from minimalpose.solvers.base import MinimalSolver
from minimalpose.solvers.gp4ps import SolverGP4PS


class UnknownSolverError(KeyError):
    pass


_SOLVERS: dict[str, type] = {
    "gp4ps": SolverGP4PS,
}


def available_solvers() -> list[str]:
    return sorted(_SOLVERS)


def get_solver(name: str) -> MinimalSolver:
    key = str(name).lower()
    if key not in _SOLVERS:
        raise UnknownSolverError(f"unknown solver {name!r} (available: {', '.join(available_solvers())})")
    return _SOLVERS[key]()
