import numpy as np
from scipy.spatial.transform import Rotation

from minimalpose.eval.validator import GeneralizedPoseValidator
from minimalpose.pose import CameraPose
from minimalpose.sim.problem_generator import ProblemOptions, generate_problem


def _instance():
    opts = ProblemOptions(n_point_point=4, generalized=True, unknown_scale=True)
    return generate_problem(opts, np.random.default_rng(10))


def test_ground_truth_is_valid_with_zero_error():
    inst = _instance()
    assert GeneralizedPoseValidator.is_valid(inst, inst.pose_gt, 1e-10)
    assert GeneralizedPoseValidator.compute_pose_error(inst, inst.pose_gt) == 0.0


def test_perturbed_pose_is_rejected():
    inst = _instance()
    gt = inst.pose_gt
    dR = Rotation.from_rotvec([0.0, 0.05, 0.0]).as_matrix()
    pose = CameraPose(R=dR @ gt.R, t=gt.t + 0.1, scale=gt.scale * 1.1)
    assert not GeneralizedPoseValidator.is_valid(inst, pose, 1e-6)
    assert GeneralizedPoseValidator.compute_pose_error(inst, pose) > 1e-3


def test_non_orthonormal_rotation_is_rejected():
    inst = _instance()
    gt = inst.pose_gt
    pose = CameraPose(R=2.0 * gt.R, t=gt.t, scale=gt.scale)
    assert not GeneralizedPoseValidator.is_valid(inst, pose, 1e-6)


def test_pose_error_terms():
    inst = _instance()
    gt = inst.pose_gt
    pose = CameraPose(R=gt.R, t=gt.t + np.array([0.0, 0.3, 0.4]), scale=gt.scale + 0.5)
    assert abs(GeneralizedPoseValidator.compute_pose_error(inst, pose) - 1.0) < 1e-12
    # Without a scale estimate only R and t are compared.
    pose = CameraPose(R=gt.R, t=gt.t + np.array([0.0, 0.3, 0.4]))
    assert abs(GeneralizedPoseValidator.compute_pose_error(inst, pose) - 0.5) < 1e-12
