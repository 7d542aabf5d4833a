"""Orthogonal reduction of a general matrix to upper Hessenberg form.

The reduction works over the fixed index range ``[0, n-1]``: the matrix is
not balanced first, so no eigenvalues are isolated ahead of the QR stage.

References:
- Martin & Wilkinson: procedures orthes and ortran, Handbook for Automatic
  Computation, Vol. II - Linear Algebra (1971)
- EISPACK subroutines ORTHES and ORTRAN
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def reduce_to_hessenberg(
    a: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Reduce ``a`` to upper Hessenberg form by Householder similarity.

    The matrix is overwritten. Entries below the first sub-diagonal are left
    holding reflector residue; downstream code reads only the Hessenberg band.

    Args:
        a: Square matrix, consumed.

    Returns:
        (hess, v) where ``hess`` is ``a`` itself and ``v`` is the accumulated
        orthogonal factor, A = v @ triu(hess, -1) @ v.T.
    """
    n = a.shape[0]
    hess = a
    ort = np.zeros(n)

    low = 0
    high = n - 1

    for m in range(low + 1, high):
        # Scale column.
        scale = np.abs(hess[m : high + 1, m - 1]).sum()
        if scale == 0.0:
            continue

        # Compute Householder transformation.
        ort[m : high + 1] = hess[m : high + 1, m - 1] / scale
        h = ort[m : high + 1] @ ort[m : high + 1]
        g = math.sqrt(h)
        if ort[m] > 0:
            g = -g
        h -= ort[m] * g
        ort[m] -= g

        # Apply Householder similarity transformation
        # hess = (I - u*u'/h) * hess * (I - u*u'/h)
        u = ort[m : high + 1]
        f = (u @ hess[m : high + 1, m:]) / h
        hess[m : high + 1, m:] -= np.outer(u, f)

        f = (hess[: high + 1, m : high + 1] @ u) / h
        hess[: high + 1, m : high + 1] -= np.outer(f, u)

        ort[m] *= scale
        hess[m, m - 1] = scale * g

    # Accumulate transformations (Algol's ortran).
    v = np.eye(n)
    for m in range(high - 1, low, -1):
        if hess[m, m - 1] == 0.0:
            continue

        ort[m + 1 : high + 1] = hess[m + 1 : high + 1, m - 1]
        u = ort[m : high + 1]
        g = u @ v[m : high + 1, m : high + 1]

        # Double division avoids possible underflow.
        g = (g / ort[m]) / hess[m, m - 1]
        v[m : high + 1, m : high + 1] += np.outer(u, g)

    return hess, v


__all__ = ["reduce_to_hessenberg"]
