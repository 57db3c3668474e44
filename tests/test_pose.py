import json

import numpy as np
from scipy.spatial.transform import Rotation

from minimalpose.pose import CameraPose, camera_pose_from_dict, make_pose


def test_transform_and_center():
    R = Rotation.from_rotvec([0.1, 0.2, -0.3]).as_matrix()
    t = np.array([1.0, -2.0, 0.5])
    pose = make_pose(R, t)
    X = np.array([[0.0, 1.0, 2.0], [3.0, -1.0, 0.5]])
    assert np.allclose(pose.transform(X), (R @ X.T).T + t)
    assert np.allclose(pose.transform(pose.center()), 0.0)


def test_dict_roundtrip():
    pose = make_pose(np.eye(3), [1.0, 2.0, 3.0], 0.5)
    d = json.loads(json.dumps(pose.to_dict()))
    back = camera_pose_from_dict(d)
    assert np.array_equal(back.R, pose.R)
    assert np.array_equal(back.t, pose.t)
    assert back.scale == 0.5
    assert camera_pose_from_dict(CameraPose(R=np.eye(3), t=np.zeros(3)).to_dict()).scale is None
