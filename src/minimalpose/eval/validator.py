from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from minimalpose.pose import CameraPose

if TYPE_CHECKING:
    from minimalpose.sim.problem_generator import ProblemInstance


class GeneralizedPoseValidator:
    """
    Checks poses against the non-eliminated generalized-camera constraints

      scale * p_i + lambda_i * x_i = R X_i + t
    """

    @staticmethod
    def _scale(pose: CameraPose) -> float:
        return 1.0 if pose.scale is None else float(pose.scale)

    @classmethod
    def residuals(cls, instance: ProblemInstance, pose: CameraPose) -> np.ndarray:
        """Cross-product residuals x_i x (R X_i + t - scale p_i), shape (N,3)."""
        v = pose.transform(instance.X_point) - cls._scale(pose) * instance.p_point
        return np.cross(instance.x_point, v)

    @classmethod
    def is_valid(cls, instance: ProblemInstance, pose: CameraPose, tol: float) -> bool:
        R = np.asarray(pose.R, dtype=np.float64)
        if np.linalg.norm(R.T @ R - np.eye(3)) > tol:
            return False

        v = pose.transform(instance.X_point) - cls._scale(pose) * instance.p_point
        norms = np.linalg.norm(v, axis=1)
        if np.any(norms == 0.0):
            return False
        x = instance.x_point / np.linalg.norm(instance.x_point, axis=1, keepdims=True)
        err = 1.0 - np.abs(np.sum(x * v, axis=1) / norms)
        return bool(np.all(err <= tol))

    @staticmethod
    def compute_pose_error(instance: ProblemInstance, pose: CameraPose) -> float:
        gt = instance.pose_gt
        err = float(np.linalg.norm(gt.R - pose.R) + np.linalg.norm(gt.t - pose.t))
        if gt.scale is not None and pose.scale is not None:
            err += abs(float(gt.scale) - float(pose.scale))
        return err
