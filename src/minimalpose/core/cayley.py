from __future__ import annotations

import numpy as np

# Monomial basis for quadrics in (x, y, z), column order of every (.., 10) coefficient array.
MONOMIALS_Q = ("1", "x", "y", "z", "xy", "xz", "yz", "xx", "yy", "zz")
MONOMIAL_EXPONENTS_Q = np.array(
    [
        [0, 0, 0],
        [1, 0, 0],
        [0, 1, 0],
        [0, 0, 1],
        [1, 1, 0],
        [1, 0, 1],
        [0, 1, 1],
        [2, 0, 0],
        [0, 2, 0],
        [0, 0, 2],
    ],
    dtype=np.int64,
)


def _cayley_basis() -> np.ndarray:
    """
    (9,10) matrix C such that (1 + |c|^2) * vec(R(c)) = C @ m(c), with vec()
    column-major and m(c) the monomial vector in MONOMIALS_Q order.
    """
    C = np.zeros((9, 10), dtype=np.float64)
    # R00, R10, R20
    C[0, [0, 7, 8, 9]] = [1.0, 1.0, -1.0, -1.0]
    C[1, [3, 4]] = [2.0, 2.0]
    C[2, [2, 5]] = [-2.0, 2.0]
    # R01, R11, R21
    C[3, [3, 4]] = [-2.0, 2.0]
    C[4, [0, 7, 8, 9]] = [1.0, -1.0, 1.0, -1.0]
    C[5, [1, 6]] = [2.0, 2.0]
    # R02, R12, R22
    C[6, [2, 5]] = [2.0, 2.0]
    C[7, [1, 6]] = [-2.0, 2.0]
    C[8, [0, 7, 8, 9]] = [1.0, -1.0, -1.0, 1.0]
    C.setflags(write=False)
    return C


CAYLEY_BASIS = _cayley_basis()


def skew(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64).reshape(3)
    return np.array(
        [[0.0, -v[2], v[1]], [v[2], 0.0, -v[0]], [-v[1], v[0], 0.0]],
        dtype=np.float64,
    )


def cayley_param(c: np.ndarray) -> np.ndarray:
    """
    Rotation matrix from Cayley parameters c = tan(theta/2) * axis:

      R = ((1 - |c|^2) I + 2 [c]_x + 2 c c^T) / (1 + |c|^2)
    """
    c = np.asarray(c, dtype=np.float64).reshape(3)
    n2 = float(c @ c)
    R = (1.0 - n2) * np.eye(3) + 2.0 * skew(c) + 2.0 * np.outer(c, c)
    return R / (1.0 + n2)


def rotation_to_cayley(R: np.ndarray) -> np.ndarray:
    """
    Inverse of `cayley_param`. Not defined for 180 degree rotations
    (1 + trace(R) = 0), where the result is non-finite.
    """
    R = np.asarray(R, dtype=np.float64).reshape(3, 3)
    w = np.array([R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]], dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return w / (1.0 + np.trace(R))


def rotation_to_3q3(A: np.ndarray) -> np.ndarray:
    """
    Turn three linear equations A @ vec(R) = 0 (A is (3,9), vec column-major)
    into three quadrics in the Cayley parameters, denominators cleared.

    Returns (3,10) coefficients over MONOMIALS_Q.
    """
    A = np.asarray(A, dtype=np.float64).reshape(3, 9)
    return A @ CAYLEY_BASIS
