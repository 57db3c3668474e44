from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class CameraPose:
    """
    Rigid camera pose, optionally with a scale for unknown-scale problems.

    Convention (generalized camera): a world point X seen along the ray
    (p, x) satisfies

      scale * p + lambda * x = R @ X + t

    `scale` is None for variants where the scale is known.
    """

    R: np.ndarray  # (3,3)
    t: np.ndarray  # (3,)
    scale: float | None = None

    def transform(self, X: np.ndarray) -> np.ndarray:
        """World -> rig coordinates for (3,) or (N,3) points."""
        X = np.asarray(X, dtype=np.float64)
        return X @ self.R.T + self.t

    def center(self) -> np.ndarray:
        return -self.R.T @ self.t

    def to_dict(self) -> dict[str, Any]:
        return {
            "R": np.asarray(self.R, dtype=np.float64).tolist(),
            "t": np.asarray(self.t, dtype=np.float64).reshape(3).tolist(),
            "scale": None if self.scale is None else float(self.scale),
        }


def make_pose(R: np.ndarray, t: np.ndarray, scale: float | None = None) -> CameraPose:
    return CameraPose(
        R=np.asarray(R, dtype=np.float64).reshape(3, 3),
        t=np.asarray(t, dtype=np.float64).reshape(3),
        scale=None if scale is None else float(scale),
    )


def camera_pose_from_dict(d: dict[str, Any]) -> CameraPose:
    return make_pose(d["R"], d["t"], d.get("scale"))
