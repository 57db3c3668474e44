"""
gP4Ps demo: generate a noise-free generalized instance, solve it and compare
the returned poses to the ground truth.
"""

from __future__ import annotations

import argparse

import numpy as np

from minimalpose import ProblemOptions, generate_problems, gp4ps
from minimalpose.eval.validator import GeneralizedPoseValidator


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--fov", type=float, default=75.0)
    args = ap.parse_args(argv)

    options = ProblemOptions(n_point_point=4, generalized=True, unknown_scale=True, camera_fov_deg=args.fov)
    (instance,) = generate_problems(1, options, args.seed)

    poses, n = gp4ps(instance.p_point, instance.x_point, instance.X_point)
    print(f"{n} solution(s)")
    for k, pose in enumerate(poses):
        err = GeneralizedPoseValidator.compute_pose_error(instance, pose)
        valid = GeneralizedPoseValidator.is_valid(instance, pose, 1e-6)
        print(f"  [{k}] scale={pose.scale:.6f} pose_error={err:.3e} valid={valid}")

    gt = instance.pose_gt
    print("ground truth:")
    print(np.array2string(gt.R, precision=6))
    print(f"t={np.array2string(gt.t, precision=6)} scale={gt.scale:.6f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
