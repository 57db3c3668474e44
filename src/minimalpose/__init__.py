from minimalpose.core.cayley import cayley_param, rotation_to_3q3, rotation_to_cayley
from minimalpose.core.re3q3 import re3q3
from minimalpose.pose import CameraPose
from minimalpose.sim.problem_generator import ProblemInstance, ProblemOptions, generate_problems
from minimalpose.solvers.gp4ps import SolverGP4PS, gp4ps
from minimalpose.solvers.registry import available_solvers, get_solver

__all__ = [
    "CameraPose",
    "ProblemInstance",
    "ProblemOptions",
    "SolverGP4PS",
    "available_solvers",
    "cayley_param",
    "generate_problems",
    "get_solver",
    "gp4ps",
    "re3q3",
    "rotation_to_3q3",
    "rotation_to_cayley",
]
