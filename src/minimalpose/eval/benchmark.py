from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np

from minimalpose.sim.problem_generator import ProblemOptions, generate_problems
from minimalpose.solvers.base import MinimalSolver

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkResult:
    name: str
    instances: int = 0
    solutions: int = 0
    valid_solutions: int = 0
    found_gt_pose: int = 0
    runtime_ns: int = 0  # median over timing passes, all instances
    options: ProblemOptions = field(default_factory=ProblemOptions)

    @property
    def solutions_per_instance(self) -> float:
        return self.solutions / self.instances if self.instances else float("nan")

    @property
    def valid_percent(self) -> float:
        return 100.0 * self.valid_solutions / self.solutions if self.solutions else float("nan")

    @property
    def gt_found_percent(self) -> float:
        return 100.0 * self.found_gt_pose / self.instances if self.instances else float("nan")

    @property
    def runtime_ns_per_instance(self) -> float:
        return self.runtime_ns / self.instances if self.instances else float("nan")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "instances": self.instances,
            "solutions": self.solutions,
            "valid_solutions": self.valid_solutions,
            "found_gt_pose": self.found_gt_pose,
            "runtime_ns": self.runtime_ns,
            "solutions_per_instance": self.solutions_per_instance,
            "valid_percent": self.valid_percent,
            "gt_found_percent": self.gt_found_percent,
            "runtime_ns_per_instance": self.runtime_ns_per_instance,
            "options": asdict(self.options),
        }


def benchmark(
    solver: MinimalSolver,
    n_problems: int,
    options: ProblemOptions | None = None,
    *,
    tol: float = 1e-6,
    rng: np.random.Generator | int | None = None,
    timing_iters: int = 10,
) -> BenchmarkResult:
    """
    Solution quality and runtime of one solver on generated instances.

    Quality pass: every returned pose is checked with the solver's validator;
    an instance counts as "GT found" when the closest pose is within `tol` of
    the ground truth. Timing pass: `timing_iters` passes over all instances,
    the median pass time is kept.
    """
    if options is None:
        options = solver.problem_options()
    if n_problems < 1:
        raise ValueError("n_problems must be >= 1")
    if timing_iters < 1:
        raise ValueError("timing_iters must be >= 1")

    instances = generate_problems(n_problems, options, rng)
    result = BenchmarkResult(name=solver.name, instances=len(instances), options=options)
    logger.info("%s: %d instances, tol=%g", solver.name, len(instances), tol)

    for instance in instances:
        poses = solver.solve(instance)
        result.solutions += len(poses)
        pose_error = float("inf")
        for pose in poses:
            if solver.validate(instance, pose, tol):
                result.valid_solutions += 1
            pose_error = min(pose_error, solver.pose_error(instance, pose))
        if pose_error < tol:
            result.found_gt_pose += 1

    runtimes: list[int] = []
    for _ in range(int(timing_iters)):
        start = time.perf_counter_ns()
        for instance in instances:
            solver.solve(instance)
        runtimes.append(time.perf_counter_ns() - start)
    runtimes.sort()
    result.runtime_ns = int(runtimes[len(runtimes) // 2])

    logger.info(
        "%s: %.3f sols/instance, %.2f%% valid, %.2f%% gt found",
        solver.name,
        result.solutions_per_instance,
        result.valid_percent,
        result.gt_found_percent,
    )
    return result


def format_runtime(runtime_ns: float) -> str:
    if runtime_ns < 1e3:
        return f"{runtime_ns:.6g} ns"
    if runtime_ns < 1e6:
        return f"{runtime_ns / 1e3:.6g} us"
    if runtime_ns < 1e9:
        return f"{runtime_ns / 1e6:.6g} ms"
    return f"{runtime_ns / 1e9:.6g} s"


def format_results(results: list[BenchmarkResult], width: int = 13) -> str:
    header = ("Solver", "Solutions", "Valid", "GT found", "Runtime")
    lines = ["".join(h.rjust(width) for h in header), "-" * (width * len(header))]
    for r in results:
        cells = (
            r.name,
            f"{r.solutions_per_instance:.6g}",
            f"{r.valid_percent:.6g}",
            f"{r.gt_found_percent:.6g}",
            format_runtime(r.runtime_ns_per_instance),
        )
        lines.append("".join(c.rjust(width) for c in cells))
    return "\n".join(lines)
