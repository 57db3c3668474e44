from __future__ import annotations

from typing import Protocol

from minimalpose.pose import CameraPose
from minimalpose.sim.problem_generator import ProblemInstance, ProblemOptions


class MinimalSolver(Protocol):
    """
    What the benchmark harness needs from a minimal solver: solving an
    instance, plus the validator matching its problem family.
    """

    name: str

    def solve(self, instance: ProblemInstance) -> list[CameraPose]: ...

    def validate(self, instance: ProblemInstance, pose: CameraPose, tol: float) -> bool: ...

    def pose_error(self, instance: ProblemInstance, pose: CameraPose) -> float: ...

    def problem_options(self, camera_fov_deg: float = 75.0) -> ProblemOptions: ...
