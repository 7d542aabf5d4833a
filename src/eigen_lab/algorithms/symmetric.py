"""Symmetric eigenvalue path: Householder tridiagonalization and implicit QL.

Implements the two stages used when the input matrix is exactly symmetric:

- ``tridiagonalize``: Householder reduction to tridiagonal form, with the
  orthogonal factor accumulated in the matrix's own storage
- ``tridiagonal_ql``: implicit-shift QL iteration on the tridiagonal form,
  rotating the accumulated factor into the eigenvector matrix

Both stages work in place on caller-provided numpy arrays.

References:
- Bowdler, Martin, Reinsch & Wilkinson: procedures tred2 and tql2,
  Handbook for Automatic Computation, Vol. II - Linear Algebra (1971)
- EISPACK subroutines TRED2 and TQL2
- Golub & Van Loan: "Matrix Computations" (4th ed.), §8.3
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from eigen_lab.algorithms.errors import ConvergenceError

if TYPE_CHECKING:
    from numpy.typing import NDArray


def is_symmetric(a: NDArray[np.float64]) -> bool:
    """Return True when every mirrored off-diagonal pair is exactly equal.

    No tolerance is applied; the diagonal is ignored, and a NaN anywhere off
    the diagonal makes the matrix non-symmetric.
    """
    return bool(np.array_equal(np.tril(a, -1), np.triu(a, 1).T))


def tridiagonalize(
    a: NDArray[np.float64],
    d: NDArray[np.float64],
    e: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Reduce a symmetric matrix to tridiagonal form in place.

    Works from the last row upwards. Each step scales the active row to
    avoid under/overflow, builds a Householder vector and applies the
    similarity transform to the leading submatrix. The Householder vectors
    are kept in ``a`` and expanded into an explicit orthogonal matrix in a
    second pass.

    Args:
        a: Symmetric n×n matrix; overwritten and returned as the orthogonal
            factor Q with A = Q @ T @ Q.T.
        d: Output, length n. Diagonal of T.
        e: Output, length n. Sub-diagonal of T in e[1:], with e[0] = 0.

    Returns:
        The orthogonal factor (the same array object as ``a``).
    """
    n = d.shape[0]
    v = a

    d[:] = v[n - 1, :]

    # Householder reduction to tridiagonal form.
    for i in range(n - 1, 0, -1):
        h = 0.0
        # Scale to avoid under/overflow.
        scale = np.abs(d[:i]).sum()

        if scale == 0.0:
            e[i] = d[i - 1]
            d[:i] = v[i - 1, :i]
            v[i, :i] = 0.0
            v[:i, i] = 0.0
        else:
            # Generate Householder vector.
            d[:i] /= scale
            h = d[:i] @ d[:i]
            f = d[i - 1]
            g = math.sqrt(h)
            if f > 0:
                g = -g
            e[i] = scale * g
            h -= f * g
            d[i - 1] = f - g
            e[:i] = 0.0

            # Apply similarity transformation to remaining columns.
            for j in range(i):
                f = d[j]
                v[j, i] = f
                g = e[j] + v[j, j] * f
                g += v[j + 1 : i, j] @ d[j + 1 : i]
                e[j + 1 : i] += v[j + 1 : i, j] * f
                e[j] = g

            e[:i] /= h
            f = e[:i] @ d[:i]
            hh = f / (h + h)
            e[:i] -= hh * d[:i]

            for j in range(i):
                f = d[j]
                g = e[j]
                v[j:i, j] -= f * e[j:i] + g * d[j:i]
                d[j] = v[i - 1, j]
                v[i, j] = 0.0

        d[i] = h

    # Accumulate transformations.
    for i in range(n - 1):
        v[n - 1, i] = v[i, i]
        v[i, i] = 1.0
        h = d[i + 1]
        if h != 0.0:
            d[: i + 1] = v[: i + 1, i + 1] / h
            g = v[: i + 1, i + 1] @ v[: i + 1, : i + 1]
            v[: i + 1, : i + 1] -= np.outer(d[: i + 1], g)
        v[: i + 1, i + 1] = 0.0

    d[:] = v[n - 1, :]
    v[n - 1, :] = 0.0
    v[n - 1, n - 1] = 1.0
    e[0] = 0.0

    return v


def tridiagonal_ql(
    d: NDArray[np.float64],
    e: NDArray[np.float64],
    v: NDArray[np.float64],
    epsilon: float,
    *,
    max_iterations: int | None = None,
) -> None:
    """Diagonalize a symmetric tridiagonal matrix by implicit QL iteration.

    On entry ``d``/``e`` hold the output of :func:`tridiagonalize` and ``v``
    its orthogonal factor. On exit ``d`` holds the eigenvalues in ascending
    order, ``v`` the matching orthonormal eigenvectors (as columns) and ``e``
    is all zeros.

    Args:
        d: Diagonal, length n; eigenvalues on exit.
        e: Sub-diagonal with e[0] = 0; zeros on exit.
        v: n×n orthogonal factor; eigenvectors on exit.
        epsilon: Relative threshold for negligible off-diagonal entries.
        max_iterations: Sweeps allowed per eigenvalue (None = unbounded).

    Raises:
        ConvergenceError: If an eigenvalue needs more than max_iterations sweeps.
    """
    n = d.shape[0]
    if n == 0:
        return

    e[:-1] = e[1:]
    e[n - 1] = 0.0

    f = 0.0
    tst1 = 0.0
    for l in range(n):  # noqa: E741
        # Find small subdiagonal element.
        tst1 = max(tst1, abs(d[l]) + abs(e[l]))
        m = l
        while m < n:
            if abs(e[m]) <= epsilon * tst1:
                break
            m += 1

        # If m == l, d[l] is an eigenvalue, otherwise iterate.
        if m > l:
            iterations = 0
            while True:
                # Compute implicit shift.
                g = d[l]
                p = (d[l + 1] - g) / (2.0 * e[l])
                r = math.hypot(p, 1.0)
                if p < 0:
                    r = -r
                d[l] = e[l] / (p + r)
                d[l + 1] = e[l] * (p + r)
                dl1 = d[l + 1]
                h = g - d[l]
                d[l + 2 :] -= h
                f += h

                # Implicit QL transformation.
                p = d[m]
                c = c2 = c3 = 1.0
                el1 = e[l + 1]
                s = s2 = 0.0
                for i in range(m - 1, l - 1, -1):
                    c3 = c2
                    c2 = c
                    s2 = s
                    g = c * e[i]
                    h = c * p
                    r = math.hypot(p, e[i])
                    e[i + 1] = s * r
                    s = e[i] / r
                    c = p / r
                    p = c * d[i] - s * g
                    d[i + 1] = h + s * (c * g + s * d[i])

                    # Accumulate transformation.
                    col = v[:, i + 1].copy()
                    v[:, i + 1] = s * v[:, i] + c * col
                    v[:, i] = c * v[:, i] - s * col

                p = -s * s2 * c3 * el1 * e[l] / dl1
                e[l] = s * p
                d[l] = c * p
                iterations += 1

                # Check for convergence.
                if abs(e[l]) <= epsilon * tst1:
                    break
                if max_iterations is not None and iterations >= max_iterations:
                    raise ConvergenceError("tridiagonal QL", l, iterations)

        d[l] += f
        e[l] = 0.0

    sort_eigenpairs(d, v)


def sort_eigenpairs(d: NDArray[np.float64], v: NDArray[np.float64]) -> None:
    """Selection-sort eigenvalues ascending, swapping columns of v in lockstep.

    Ties keep their original relative order (the first minimum is selected).
    """
    n = d.shape[0]
    for i in range(n - 1):
        k = i + int(np.argmin(d[i:]))
        if k != i:
            d[i], d[k] = d[k], d[i]
            v[:, [i, k]] = v[:, [k, i]]


__all__ = [
    "is_symmetric",
    "sort_eigenpairs",
    "tridiagonal_ql",
    "tridiagonalize",
]
