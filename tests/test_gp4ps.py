from __future__ import annotations

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from minimalpose.core.re3q3 import MAX_SOLUTIONS
from minimalpose.eval.validator import GeneralizedPoseValidator
from minimalpose.pose import CameraPose
from minimalpose.sim.problem_generator import ProblemInstance, generate_problems
from minimalpose.solvers.gp4ps import (
    SolverGP4PS,
    build_coefficient_matrix,
    eliminate_linear_unknowns,
    gp4ps,
)


def _instance(seed: int = 0) -> ProblemInstance:
    rng = np.random.default_rng(seed)
    R = Rotation.from_rotvec([0.2, -0.4, 0.3]).as_matrix()
    t = np.array([0.3, -0.5, 0.8])
    scale = 2.5
    p = rng.uniform(-1.0, 1.0, size=(4, 3))
    x = np.ones((4, 3))
    x[:, :2] = rng.uniform(-0.8, 0.8, size=(4, 2))
    x /= np.linalg.norm(x, axis=1, keepdims=True)
    depth = rng.uniform(1.0, 5.0, size=(4, 1))
    X = (scale * p + depth * x - t) @ R
    return ProblemInstance(pose_gt=CameraPose(R=R, t=t, scale=scale), p_point=p, x_point=x, X_point=X)


def _closest(instance: ProblemInstance, poses: list[CameraPose]) -> tuple[CameraPose, float]:
    errors = [GeneralizedPoseValidator.compute_pose_error(instance, pose) for pose in poses]
    k = int(np.argmin(errors))
    return poses[k], errors[k]


def test_coefficient_matrix_vanishes_at_ground_truth():
    inst = _instance()
    A = build_coefficient_matrix(inst.p_point, inst.x_point, inst.X_point)
    assert A.shape == (8, 13)
    gt = inst.pose_gt
    z = np.concatenate([gt.t, [gt.scale], gt.R.ravel("F")])
    assert np.max(np.abs(A @ z)) < 1e-12


def test_reduced_system_vanishes_at_ground_truth():
    inst = _instance()
    A = build_coefficient_matrix(inst.p_point, inst.x_point, inst.X_point)
    B_inv, A_rot = eliminate_linear_unknowns(A)
    assert B_inv.shape == (4, 4)
    assert A_rot.shape == (3, 9)
    assert np.max(np.abs(A_rot @ inst.pose_gt.R.ravel("F"))) < 1e-10


def test_recovers_ground_truth_pose():
    inst = _instance()
    poses, n = gp4ps(inst.p_point, inst.x_point, inst.X_point)
    assert n == len(poses)
    assert 1 <= n <= MAX_SOLUTIONS

    pose, err = _closest(inst, poses)
    assert err < 1e-6
    assert np.linalg.norm(pose.R - inst.pose_gt.R) < 1e-6
    assert np.linalg.norm(pose.t - inst.pose_gt.t) < 1e-6
    assert abs(pose.scale - inst.pose_gt.scale) < 1e-6
    assert GeneralizedPoseValidator.is_valid(inst, pose, 1e-6)


def test_back_substitution_residuals_are_small():
    inst = _instance(seed=4)
    poses, _ = gp4ps(inst.p_point, inst.x_point, inst.X_point)
    pose, _ = _closest(inst, poses)
    r = GeneralizedPoseValidator.residuals(inst, pose)
    assert np.max(np.abs(r)) < 1e-9 * max(1.0, float(np.max(np.abs(inst.X_point))))


def test_every_pose_is_a_rotation_and_satisfies_reduced_system():
    inst = _instance(seed=2)
    poses, _ = gp4ps(inst.p_point, inst.x_point, inst.X_point)
    A = build_coefficient_matrix(inst.p_point, inst.x_point, inst.X_point)
    for pose in poses:
        assert np.linalg.norm(pose.R.T @ pose.R - np.eye(3)) < 1e-9
        assert np.linalg.det(pose.R) > 0.0
        z = np.concatenate([pose.t, [pose.scale], pose.R.ravel("F")])
        # The first seven rows are enforced exactly; the eighth is redundant only at true solutions.
        assert np.max(np.abs(A[:7] @ z)) < 1e-6 * max(1.0, float(np.max(np.abs(z))))


def test_appends_to_output():
    inst = _instance()
    sentinel = CameraPose(R=np.eye(3), t=np.zeros(3))
    out = [sentinel]
    poses, n = gp4ps(inst.p_point, inst.x_point, inst.X_point, output=out)
    assert poses is out
    assert out[0] is sentinel
    assert len(out) == n + 1


def test_is_deterministic():
    inst = _instance(seed=3)
    poses1, n1 = gp4ps(inst.p_point, inst.x_point, inst.X_point)
    poses2, n2 = gp4ps(inst.p_point.copy(), inst.x_point.copy(), inst.X_point.copy())
    assert n1 == n2
    for a, b in zip(poses1, poses2):
        assert np.array_equal(a.R, b.R)
        assert np.array_equal(a.t, b.t)
        assert a.scale == b.scale


def test_does_not_modify_inputs():
    inst = _instance()
    p, x, X = inst.p_point.copy(), inst.x_point.copy(), inst.X_point.copy()
    gp4ps(inst.p_point, inst.x_point, inst.X_point)
    assert np.array_equal(p, inst.p_point)
    assert np.array_equal(x, inst.x_point)
    assert np.array_equal(X, inst.X_point)


def test_parallel_rays_do_not_raise():
    inst = _instance()
    x = np.tile(np.array([0.1, -0.2, 1.0]) / np.linalg.norm([0.1, -0.2, 1.0]), (4, 1))
    poses, n = gp4ps(inst.p_point, x, inst.X_point)
    assert 0 <= n <= MAX_SOLUTIONS
    assert len(poses) == n


def test_rejects_wrong_number_of_correspondences():
    inst = _instance()
    with pytest.raises(ValueError):
        gp4ps(inst.p_point[:3], inst.x_point[:3], inst.X_point[:3])


def test_solver_interface_on_generated_instances():
    solver = SolverGP4PS()
    options = solver.problem_options(camera_fov_deg=120.0)
    assert options.n_point_point == 4 and options.generalized and options.unknown_scale

    instances = generate_problems(30, options, 7)
    found = 0
    for inst in instances:
        poses = solver.solve(inst)
        assert len(poses) <= MAX_SOLUTIONS
        if poses and min(solver.pose_error(inst, pose) for pose in poses) < 1e-6:
            found += 1
    assert found >= 25
