import numpy as np
from scipy.spatial.transform import Rotation

from minimalpose.core.cayley import CAYLEY_BASIS, cayley_param, rotation_to_3q3, rotation_to_cayley, skew
from minimalpose.core.re3q3 import monomial_vector


def test_cayley_param_is_rotation():
    rng = np.random.default_rng(0)
    for _ in range(50):
        c = rng.normal(scale=3.0, size=3)
        R = cayley_param(c)
        assert np.linalg.norm(R.T @ R - np.eye(3)) < 1e-12
        assert abs(np.linalg.det(R) - 1.0) < 1e-12


def test_cayley_zero_is_identity():
    assert np.allclose(cayley_param(np.zeros(3)), np.eye(3))


def test_cayley_matches_axis_angle():
    axis = np.array([1.0, -2.0, 0.5])
    axis /= np.linalg.norm(axis)
    theta = 1.1
    R = cayley_param(np.tan(theta / 2.0) * axis)
    R_ref = Rotation.from_rotvec(theta * axis).as_matrix()
    assert np.max(np.abs(R - R_ref)) < 1e-12


def test_rotation_cayley_roundtrip():
    rng = np.random.default_rng(1)
    for _ in range(100):
        axis = rng.normal(size=3)
        axis /= np.linalg.norm(axis)
        theta = rng.uniform(-3.0, 3.0)  # stays away from the 180 degree singularity
        R = Rotation.from_rotvec(theta * axis).as_matrix()
        c = rotation_to_cayley(R)
        assert np.max(np.abs(cayley_param(c) - R)) < 1e-10


def test_rotation_to_cayley_is_not_finite_at_half_turn():
    R = np.diag([-1.0, -1.0, 1.0])  # 180 degrees about z
    assert not np.all(np.isfinite(rotation_to_cayley(R)))


def test_cayley_basis_expands_unnormalized_rotation():
    rng = np.random.default_rng(2)
    for _ in range(20):
        c = rng.normal(size=3)
        lhs = CAYLEY_BASIS @ monomial_vector(c)
        rhs = (1.0 + c @ c) * cayley_param(c).ravel("F")
        assert np.max(np.abs(lhs - rhs)) < 1e-12


def test_rotation_to_3q3_clears_denominator():
    rng = np.random.default_rng(3)
    A = rng.normal(size=(3, 9))
    coeffs = rotation_to_3q3(A)
    assert coeffs.shape == (3, 10)
    for _ in range(20):
        c = rng.normal(size=3)
        q = coeffs @ monomial_vector(c)
        expected = (1.0 + c @ c) * (A @ cayley_param(c).ravel("F"))
        assert np.max(np.abs(q - expected)) < 1e-10


def test_skew_is_cross_product():
    a = np.array([0.3, -1.2, 2.0])
    b = np.array([1.5, 0.1, -0.7])
    assert np.allclose(skew(a) @ b, np.cross(a, b))
