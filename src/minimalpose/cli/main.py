from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import numpy as np

from minimalpose.eval.benchmark import benchmark, format_results
from minimalpose.instance_io import InstanceValidationError, has_ground_truth, load_problem_instances, save_problem_instances
from minimalpose.sim.problem_generator import generate_problems
from minimalpose.solvers.registry import UnknownSolverError, available_solvers, get_solver

logger = logging.getLogger(__name__)


def _solve_instances(path: Path, solver_name: str, tol: float) -> None:
    solver = get_solver(solver_name)
    try:
        instances = load_problem_instances(path)
    except (OSError, json.JSONDecodeError, InstanceValidationError) as exc:
        raise SystemExit(f"Invalid instances file {path}: {exc}") from exc

    for i, instance in enumerate(instances):
        try:
            poses = solver.solve(instance)
        except ValueError as exc:
            raise SystemExit(f"Invalid instance {i} in {path}: {exc}") from exc
        line: dict[str, object] = {
            "instance": i,
            "n_solutions": len(poses),
            "poses": [pose.to_dict() for pose in poses],
        }
        if has_ground_truth(instance):
            errors = [solver.pose_error(instance, pose) for pose in poses]
            line["min_pose_error"] = float(min(errors)) if errors else None
            line["n_valid"] = sum(1 for pose in poses if solver.validate(instance, pose, tol))
        print(json.dumps(line, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="minimalpose")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    bench = sub.add_parser("benchmark", help="Benchmark solvers on generated noise-free instances.")
    bench.add_argument(
        "--solver",
        type=str,
        action="append",
        choices=available_solvers(),
        help="Solver to run (repeatable, default: all).",
    )
    bench.add_argument("--problems", type=int, default=10000)
    bench.add_argument("--fov", type=float, default=120.0, help="Camera field of view (degrees).")
    bench.add_argument("--tol", type=float, default=1e-6)
    bench.add_argument("--seed", type=int, default=0)
    bench.add_argument("--timing-iters", type=int, default=10)
    bench.add_argument("--out-json", type=Path, default=None, help="Write the benchmark report as JSON.")

    gen = sub.add_parser("generate", help="Generate problem instances for a solver and write them as JSON.")
    gen.add_argument("--out", type=Path, required=True)
    gen.add_argument("--solver", type=str, default="gp4ps", choices=available_solvers())
    gen.add_argument("--problems", type=int, default=10)
    gen.add_argument("--fov", type=float, default=120.0, help="Camera field of view (degrees).")
    gen.add_argument("--seed", type=int, default=0)

    solve = sub.add_parser("solve", help="Solve instances from a JSON file; one JSON line per instance.")
    solve.add_argument("instances", type=Path)
    solve.add_argument("--solver", type=str, default="gp4ps", choices=available_solvers())
    solve.add_argument("--tol", type=float, default=1e-6, help="Validation tolerance (with ground truth).")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.cmd == "benchmark":
        names = args.solver or available_solvers()
        rng = np.random.default_rng(args.seed)
        results = []
        for name in names:
            solver = get_solver(name)
            results.append(
                benchmark(
                    solver,
                    args.problems,
                    solver.problem_options(camera_fov_deg=args.fov),
                    tol=args.tol,
                    rng=rng,
                    timing_iters=args.timing_iters,
                )
            )
        print(format_results(results))
        if args.out_json is not None:
            args.out_json.parent.mkdir(parents=True, exist_ok=True)
            report = {"tol": args.tol, "seed": args.seed, "results": [r.to_dict() for r in results]}
            args.out_json.write_text(json.dumps(report, indent=2, sort_keys=True), encoding="utf-8")
            print(f"Wrote {args.out_json}")
        return 0

    if args.cmd == "generate":
        solver = get_solver(args.solver)
        instances = generate_problems(args.problems, solver.problem_options(camera_fov_deg=args.fov), args.seed)
        path = save_problem_instances(args.out, instances)
        print(f"Wrote {path}")
        return 0

    if args.cmd == "solve":
        try:
            _solve_instances(args.instances, args.solver, args.tol)
        except UnknownSolverError as exc:
            raise SystemExit(str(exc)) from exc
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
