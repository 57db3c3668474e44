from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from minimalpose.pose import CameraPose


@dataclass(frozen=True)
class ProblemOptions:
    """
    Configuration of a synthetic minimal problem.

    The counts and flags enumerate every problem family; only point-point
    correspondences (optionally generalized, unknown-scale or upright) are
    generated here.
    """

    n_point_point: int = 0
    n_point_line: int = 0
    n_line_line: int = 0
    n_line_point: int = 0
    generalized: bool = False
    unknown_scale: bool = False
    unknown_focal: bool = False
    upright: bool = False
    radial_lines: bool = False
    camera_fov_deg: float = 75.0
    min_depth: float = 0.1
    max_depth: float = 10.0
    min_scale: float = 0.1
    max_scale: float = 10.0


@dataclass(frozen=True)
class ProblemInstance:
    """
    One synthetic problem: ground-truth pose and point correspondences
    satisfying scale*p + lambda*x = R X + t exactly.
    """

    pose_gt: CameraPose
    p_point: np.ndarray  # (N,3) ray origins in the rig frame
    x_point: np.ndarray  # (N,3) unit ray directions
    X_point: np.ndarray  # (N,3) world points

    @property
    def n_points(self) -> int:
        return int(self.x_point.shape[0])


def _check_options(options: ProblemOptions) -> None:
    if options.n_point_line or options.n_line_line or options.n_line_point:
        raise ValueError("line correspondences are not generated")
    if options.unknown_focal or options.radial_lines:
        raise ValueError("unknown_focal and radial_lines are not generated")
    if options.n_point_point < 1:
        raise ValueError("n_point_point must be >= 1")
    if not 0.0 < options.camera_fov_deg < 180.0:
        raise ValueError("camera_fov_deg must be in (0, 180)")
    if not 0.0 < options.min_depth <= options.max_depth:
        raise ValueError("need 0 < min_depth <= max_depth")
    if not 0.0 < options.min_scale <= options.max_scale:
        raise ValueError("need 0 < min_scale <= max_scale")


def random_pose(rng: np.random.Generator, *, upright: bool = False) -> tuple[np.ndarray, np.ndarray]:
    if upright:
        R = Rotation.from_rotvec([0.0, rng.uniform(-np.pi, np.pi), 0.0]).as_matrix()
    else:
        R = Rotation.from_quat(rng.normal(size=4)).as_matrix()
    t = rng.uniform(-1.0, 1.0, size=3)
    return R, t


def generate_problem(options: ProblemOptions, rng: np.random.Generator) -> ProblemInstance:
    _check_options(options)

    R, t = random_pose(rng, upright=options.upright)
    if options.unknown_scale:
        scale = float(rng.uniform(options.min_scale, options.max_scale))
    else:
        scale = 1.0

    n = int(options.n_point_point)
    fov_scale = math.tan(math.radians(options.camera_fov_deg) / 2.0)

    if options.generalized:
        p = rng.uniform(-1.0, 1.0, size=(n, 3))
    else:
        p = np.zeros((n, 3), dtype=np.float64)
    x = np.ones((n, 3), dtype=np.float64)
    x[:, :2] = rng.uniform(-fov_scale, fov_scale, size=(n, 2))
    x /= np.linalg.norm(x, axis=1, keepdims=True)
    depth = rng.uniform(options.min_depth, options.max_depth, size=(n, 1))

    X_rig = scale * p + depth * x
    X = (X_rig - t[None, :]) @ R  # R^T (X_rig - t), row-wise

    pose_gt = CameraPose(R=R, t=t, scale=scale if options.unknown_scale else None)
    return ProblemInstance(pose_gt=pose_gt, p_point=p, x_point=x, X_point=X)


def generate_problems(
    n_problems: int,
    options: ProblemOptions,
    rng: np.random.Generator | int | None = None,
) -> list[ProblemInstance]:
    rng = np.random.default_rng(rng)
    return [generate_problem(options, rng) for _ in range(int(n_problems))]
