"""
Solver for three quadratic equations in three unknowns.

Each equation is given by 10 coefficients over the monomials
[1, x, y, z, xy, xz, yz, x^2, y^2, z^2]. A generic system has 8 complex
solutions (Bezout); only the real ones are returned.

Method (null-space / action-matrix formulation):

1. Multiply every equation by the 10 monomials of degree <= 2. This gives a
   30x35 Macaulay matrix M over the monomials of degree <= 4. For a generic
   system rank(M) = 27 and the 8-dimensional null space is spanned by the
   monomial vectors m(s_k) of the solutions s_k.
2. Pick 8 basis monomials of degree <= 3 from a column-pivoted QR of the
   null-space rows, so that multiplying them by x, y or z stays inside the
   35 columns.
3. Build the action matrix of a fixed linear form l(x, y, z) on that basis.
   Its eigenvectors are the basis monomials evaluated at the solutions.
4. Lift each eigenvector back to the full monomial vector and read off
   (x, y, z) as ratios to the constant monomial, then polish with Newton.
"""

from __future__ import annotations

import numpy as np
import scipy.linalg

from minimalpose.core.cayley import MONOMIAL_EXPONENTS_Q

MAX_SOLUTIONS = 8

# Relative imaginary part above which a root is considered complex.
IMAG_TOL = 1e-6
# Relative size of the constant monomial below which a root is at infinity.
INFINITY_TOL = 1e-12
# Ratio of the last to the first pivot of the basis selection below which the
# system is considered degenerate.
BASIS_RCOND = 1e-10
NEWTON_ITERS = 3

# Fixed linear form l = x + 0.5377 y + 0.2785 z used as the action polynomial.
_ACTION_WEIGHTS = np.array([1.0, 0.5377, 0.2785], dtype=np.float64)


def _monomials(max_degree: int) -> list[tuple[int, int, int]]:
    out: list[tuple[int, int, int]] = []
    for d in range(max_degree + 1):
        for i in range(d, -1, -1):
            for j in range(d - i, -1, -1):
                out.append((i, j, d - i - j))
    return out


_MONOMIALS_4 = _monomials(4)  # 35, sorted by degree
_INDEX_4 = {m: k for k, m in enumerate(_MONOMIALS_4)}
_N_MULTIPLIERS = 10  # monomials of degree <= 2
_N_CANDIDATES = 20  # monomials of degree <= 3


def _macaulay_columns() -> np.ndarray:
    cols = np.empty((_N_MULTIPLIERS, 10), dtype=np.int64)
    for k in range(_N_MULTIPLIERS):
        mult = _MONOMIALS_4[k]
        for j, term in enumerate(MONOMIAL_EXPONENTS_Q):
            cols[k, j] = _INDEX_4[(mult[0] + int(term[0]), mult[1] + int(term[1]), mult[2] + int(term[2]))]
    return cols


def _shift_table() -> np.ndarray:
    shift = np.empty((_N_CANDIDATES, 3), dtype=np.int64)
    for b in range(_N_CANDIDATES):
        e = _MONOMIALS_4[b]
        shift[b, 0] = _INDEX_4[(e[0] + 1, e[1], e[2])]
        shift[b, 1] = _INDEX_4[(e[0], e[1] + 1, e[2])]
        shift[b, 2] = _INDEX_4[(e[0], e[1], e[2] + 1)]
    return shift


_MACAULAY_COLS = _macaulay_columns()  # (10 multipliers, 10 terms) -> column in M
_MACAULAY_ROWS = np.arange(_N_MULTIPLIERS)[:, None]
_SHIFT = _shift_table()  # (20 candidates, 3 variables) -> column in M
_IDX_ONE = _INDEX_4[(0, 0, 0)]
_IDX_XYZ = np.array([_INDEX_4[(1, 0, 0)], _INDEX_4[(0, 1, 0)], _INDEX_4[(0, 0, 1)]], dtype=np.int64)


def monomial_vector(s: np.ndarray) -> np.ndarray:
    """[1, x, y, z, xy, xz, yz, x^2, y^2, z^2] evaluated at s = (x, y, z)."""
    x, y, z = np.asarray(s).reshape(3)
    return np.array([1.0, x, y, z, x * y, x * z, y * z, x * x, y * y, z * z])


def _monomial_jacobian(s: np.ndarray) -> np.ndarray:
    x, y, z = np.asarray(s, dtype=np.float64).reshape(3)
    return np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
            [y, x, 0.0],
            [z, 0.0, x],
            [0.0, z, y],
            [2.0 * x, 0.0, 0.0],
            [0.0, 2.0 * y, 0.0],
            [0.0, 0.0, 2.0 * z],
        ],
        dtype=np.float64,
    )


def evaluate_quadrics(coeffs: np.ndarray, s: np.ndarray) -> np.ndarray:
    """Residuals (3,) of the three quadrics at s."""
    return np.asarray(coeffs, dtype=np.float64).reshape(3, 10) @ monomial_vector(s)


def macaulay_matrix(coeffs: np.ndarray) -> np.ndarray:
    """(30,35) matrix of the equations times all monomials of degree <= 2."""
    coeffs = np.asarray(coeffs, dtype=np.float64).reshape(3, 10)
    M = np.zeros((3, _N_MULTIPLIERS, len(_MONOMIALS_4)), dtype=np.float64)
    M[:, _MACAULAY_ROWS, _MACAULAY_COLS] = coeffs[:, None, :]
    return M.reshape(3 * _N_MULTIPLIERS, len(_MONOMIALS_4))


def _polish(coeffs: np.ndarray, s: np.ndarray, iters: int) -> np.ndarray:
    r = coeffs @ monomial_vector(s)
    best = float(np.linalg.norm(r))
    for _ in range(int(iters)):
        if best == 0.0:
            break
        J = coeffs @ _monomial_jacobian(s)
        try:
            ds = np.linalg.solve(J, r)
        except np.linalg.LinAlgError:
            break
        s_new = s - ds
        r_new = coeffs @ monomial_vector(s_new)
        n_new = float(np.linalg.norm(r_new))
        if not np.isfinite(n_new) or n_new >= best:
            break
        s, r, best = s_new, r_new, n_new
    return s


def re3q3(coeffs: np.ndarray, *, polish_iters: int = NEWTON_ITERS) -> np.ndarray:
    """
    Real solutions of three quadrics in (x, y, z).

    Returns an (n, 3) array with 0 <= n <= 8. Order is arbitrary. Degenerate
    or non-finite systems yield n = 0.
    """
    coeffs = np.asarray(coeffs, dtype=np.float64)
    if coeffs.shape != (3, 10):
        raise ValueError(f"coeffs must have shape (3, 10), got {coeffs.shape}")

    empty = np.zeros((0, 3), dtype=np.float64)
    if not np.all(np.isfinite(coeffs)):
        return empty
    norms = np.linalg.norm(coeffs, axis=1, keepdims=True)
    if np.any(norms == 0.0):
        return empty
    coeffs = coeffs / norms

    M = macaulay_matrix(coeffs)
    try:
        _, _, vh = scipy.linalg.svd(M)
        N = vh[-MAX_SOLUTIONS:].T  # (35, 8) null-space basis
        # Basis monomials: the best-conditioned 8 rows among degree <= 3.
        _, R, piv = scipy.linalg.qr(N[:_N_CANDIDATES].T, mode="economic", pivoting=True)
    except np.linalg.LinAlgError:
        return empty
    diag = np.abs(np.diag(R))
    if diag[0] == 0.0 or diag[-1] < BASIS_RCOND * diag[0]:
        return empty
    basis = piv[:MAX_SOLUTIONS]

    N_basis = N[basis]
    N_action = np.einsum("bvk,v->bk", N[_SHIFT[basis]], _ACTION_WEIGHTS)  # (8, 8)
    try:
        # Action matrix on the basis values: A @ N_basis = N_action.
        A = scipy.linalg.solve(N_basis.T, N_action.T).T
        _, W = scipy.linalg.eig(A)
        V = N @ scipy.linalg.solve(N_basis, W)  # (35, 8) monomial vectors, up to scale
    except (np.linalg.LinAlgError, ValueError):
        return empty

    sols: list[np.ndarray] = []
    for k in range(V.shape[1]):
        v = V[:, k]
        v_one = v[_IDX_ONE]
        if abs(v_one) <= INFINITY_TOL * np.linalg.norm(v):
            continue
        s = v[_IDX_XYZ] / v_one
        if np.max(np.abs(s.imag)) > IMAG_TOL * max(1.0, float(np.max(np.abs(s.real)))):
            continue
        s = _polish(coeffs, s.real.copy(), polish_iters)
        if np.all(np.isfinite(s)):
            sols.append(s)

    if not sols:
        return empty
    return np.stack(sols, axis=0)
