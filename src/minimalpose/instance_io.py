from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from minimalpose.pose import CameraPose, make_pose
from minimalpose.sim.problem_generator import ProblemInstance

SCHEMA_VERSION = "minimalpose.instances.v0"


class InstanceValidationError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise InstanceValidationError(msg)


def _vectors(raw: Any, name: str, n: int | None = None) -> np.ndarray:
    _require(isinstance(raw, (list, tuple)), f"{name} must be a list of [x,y,z]")
    try:
        arr = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InstanceValidationError(f"{name} must contain numbers") from exc
    _require(arr.ndim == 2 and arr.shape[1] == 3, f"{name} must be a list of [x,y,z]")
    _require(bool(np.all(np.isfinite(arr))), f"{name} must be finite")
    if n is not None:
        _require(arr.shape[0] == n, f"{name} must have {n} entries (got {arr.shape[0]})")
    return arr


def parse_camera_pose(data: dict[str, Any], name: str = "pose_gt") -> CameraPose:
    _require(isinstance(data, dict), f"{name} must be an object")
    try:
        R = np.asarray(data.get("R", []), dtype=np.float64)
        t = np.asarray(data.get("t", []), dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InstanceValidationError(f"{name}.R and {name}.t must contain numbers") from exc
    _require(R.shape == (3, 3), f"{name}.R must be 3x3")
    _require(t.shape == (3,), f"{name}.t must be [x,y,z]")
    scale = data.get("scale")
    _require(scale is None or isinstance(scale, (int, float)), f"{name}.scale must be a number or null")
    return make_pose(R, t, scale)


def parse_problem_instance(data: dict[str, Any], index: int = 0) -> ProblemInstance:
    """
    Parse one instance. Without `pose_gt` the ground truth is left as the
    identity pose with NaN translation, so pose errors are NaN.
    """
    where = f"instances[{index}]"
    _require(isinstance(data, dict), f"{where} must be an object")
    x = _vectors(data.get("x"), f"{where}.x")
    n = int(x.shape[0])
    _require(n >= 1, f"{where}.x must not be empty")
    X = _vectors(data.get("X"), f"{where}.X", n)
    p_raw = data.get("p")
    p = np.zeros((n, 3), dtype=np.float64) if p_raw is None else _vectors(p_raw, f"{where}.p", n)

    if data.get("pose_gt") is not None:
        pose_gt = parse_camera_pose(data["pose_gt"], f"{where}.pose_gt")
    else:
        pose_gt = make_pose(np.eye(3), np.full(3, np.nan))
    return ProblemInstance(pose_gt=pose_gt, p_point=p, x_point=x, X_point=X)


def has_ground_truth(instance: ProblemInstance) -> bool:
    return bool(np.all(np.isfinite(instance.pose_gt.t)))


def parse_problem_instances(data: dict[str, Any]) -> list[ProblemInstance]:
    _require(isinstance(data, dict), "instances file must be a JSON object")
    _require(data.get("schema_version") == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")
    raw = data.get("instances")
    _require(isinstance(raw, list), "instances must be a list")
    return [parse_problem_instance(d, i) for i, d in enumerate(raw)]


def problem_instance_to_dict(instance: ProblemInstance) -> dict[str, Any]:
    out: dict[str, Any] = {
        "p": np.asarray(instance.p_point, dtype=np.float64).tolist(),
        "x": np.asarray(instance.x_point, dtype=np.float64).tolist(),
        "X": np.asarray(instance.X_point, dtype=np.float64).tolist(),
    }
    if has_ground_truth(instance):
        out["pose_gt"] = instance.pose_gt.to_dict()
    return out


def load_problem_instances(path: Path) -> list[ProblemInstance]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_problem_instances(data)


def save_problem_instances(path: Path, instances: list[ProblemInstance]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "schema_version": SCHEMA_VERSION,
        "instances": [problem_instance_to_dict(inst) for inst in instances],
    }
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
