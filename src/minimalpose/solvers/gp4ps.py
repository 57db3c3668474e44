from __future__ import annotations

import logging

import numpy as np

from minimalpose.core.cayley import cayley_param, rotation_to_3q3
from minimalpose.core.re3q3 import re3q3
from minimalpose.eval.validator import GeneralizedPoseValidator
from minimalpose.pose import CameraPose
from minimalpose.sim.problem_generator import ProblemInstance, ProblemOptions

logger = logging.getLogger(__name__)

N_CORRESPONDENCES = 4
N_LINEAR = 4  # t (3) + scale (1)
N_ROTATION = 9  # vec(R), column-major
N_ROWS = 2 * N_CORRESPONDENCES


def _as_points(a: np.ndarray, name: str) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    if a.size != 3 * N_CORRESPONDENCES:
        raise ValueError(f"{name} must hold {N_CORRESPONDENCES} 3-vectors, got shape {a.shape}")
    return a.reshape(N_CORRESPONDENCES, 3)


def build_coefficient_matrix(p: np.ndarray, x: np.ndarray, X: np.ndarray) -> np.ndarray:
    """
    Linear constraints on [t; scale; vec(R)] from scale*p + lambda*x = R X + t.

    The depth lambda is eliminated with xx = [[x3, 0, -x1], [0, x3, -x2]]
    (xx @ x = 0), which leaves two rows per correspondence:

      [xx, -xx p, kron(X^T, xx)] @ [t; scale; vec(R)] = 0
    """
    p = _as_points(p, "p")
    x = _as_points(x, "x")
    X = _as_points(X, "X")

    A = np.empty((N_ROWS, N_LINEAR + N_ROTATION), dtype=np.float64)
    for i in range(N_CORRESPONDENCES):
        xx = np.array([[x[i, 2], 0.0, -x[i, 0]], [0.0, x[i, 2], -x[i, 1]]], dtype=np.float64)
        A[2 * i : 2 * i + 2, 0:3] = xx
        A[2 * i : 2 * i + 2, 3] = -xx @ p[i]
        A[2 * i : 2 * i + 2, 4:] = np.kron(X[i][None, :], xx)
    return A


def eliminate_linear_unknowns(A: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Schur-complement the translation and scale out of the system.

    Returns (B_inv, A_rot) with B_inv the inverse of the leading 4x4 block and
    A_rot (3,9) the reduced constraints on vec(R). Raises LinAlgError when the
    leading block is exactly singular.
    """
    A = np.asarray(A, dtype=np.float64).reshape(N_ROWS, N_LINEAR + N_ROTATION)
    B_inv = np.linalg.inv(A[:N_LINEAR, :N_LINEAR])
    rows = slice(N_LINEAR, N_LINEAR + 3)
    A_rot = A[rows, N_LINEAR:] - A[rows, :N_LINEAR] @ B_inv @ A[:N_LINEAR, N_LINEAR:]
    return B_inv, A_rot


def recover_linear_unknowns(B_inv: np.ndarray, A: np.ndarray, R: np.ndarray) -> tuple[np.ndarray, float]:
    ts = -B_inv @ (A[:N_LINEAR, N_LINEAR:] @ np.asarray(R, dtype=np.float64).ravel("F"))
    return ts[:3], float(ts[3])


def gp4ps(
    p: np.ndarray,
    x: np.ndarray,
    X: np.ndarray,
    output: list[CameraPose] | None = None,
) -> tuple[list[CameraPose], int]:
    """
    Generalized absolute pose with unknown scale from 4 correspondences.

    Solves scale*p_i + lambda_i*x_i = R X_i + t for (R, t, scale). Poses are
    appended to `output` (a new list if None); returns (output, n_appended)
    with 0 <= n_appended <= 8. Solutions are not filtered.
    """
    if output is None:
        output = []

    A = build_coefficient_matrix(p, x, X)
    try:
        B_inv, A_rot = eliminate_linear_unknowns(A)
    except np.linalg.LinAlgError:
        logger.debug("gp4ps: singular linear block, no solutions")
        return output, 0

    coeffs = rotation_to_3q3(A_rot)
    solutions = re3q3(coeffs)

    for c in solutions:
        R = cayley_param(c)
        t, scale = recover_linear_unknowns(B_inv, A, R)
        output.append(CameraPose(R=R, t=t, scale=scale))
    return output, int(solutions.shape[0])


class SolverGP4PS:
    name = "gP4Ps"
    validator = GeneralizedPoseValidator

    def solve(self, instance: ProblemInstance) -> list[CameraPose]:
        poses, _ = gp4ps(instance.p_point, instance.x_point, instance.X_point)
        return poses

    def validate(self, instance: ProblemInstance, pose: CameraPose, tol: float) -> bool:
        return self.validator.is_valid(instance, pose, tol)

    def pose_error(self, instance: ProblemInstance, pose: CameraPose) -> float:
        return self.validator.compute_pose_error(instance, pose)

    def problem_options(self, camera_fov_deg: float = 75.0) -> ProblemOptions:
        return ProblemOptions(
            n_point_point=N_CORRESPONDENCES,
            generalized=True,
            unknown_scale=True,
            camera_fov_deg=float(camera_fov_deg),
        )
