"""Dense real eigenvalue decomposition.

``decompose`` tests the input for exact symmetry and dispatches to one of two
pipelines:

- Symmetric: Householder tridiagonalization followed by implicit QL.
  Eigenvalues are real and ascending, eigenvectors orthonormal, and
  A = V @ diag(d) @ V.T.
- General: Householder reduction to Hessenberg form followed by double-shift
  QR to real Schur form. Eigenvalues may come in complex-conjugate pairs and
  A @ V = V @ D, with D the block-diagonal matrix from ``block_diagonal``.
  V may be badly conditioned or even singular, so A = V @ D @ inv(V) holds
  only as far as the condition number of V allows.

Ownership:
    By default the input array is consumed: it becomes the working storage of
    the reduction and is left holding meaningless intermediate values (on the
    symmetric path it becomes the read-only eigenvector matrix). Pass
    ``overwrite_a=False`` to work on a private copy instead.

Example:
    >>> import numpy as np
    >>> from eigen_lab.algorithms.eigen import decompose
    >>> factors = decompose(np.array([[2.0, 1.0], [1.0, 2.0]]), 1e-15)
    >>> factors.real
    array([1., 3.])
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from eigen_lab.algorithms.errors import ShapeError
from eigen_lab.algorithms.hessenberg import reduce_to_hessenberg
from eigen_lab.algorithms.schur import hessenberg_to_schur
from eigen_lab.algorithms.symmetric import (
    is_symmetric,
    tridiagonal_ql,
    tridiagonalize,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS: int = 50
"""Default sweep budget per eigenvalue.

Comfortably above the exceptional-shift iterations (10 and 30) of the QR
solver; inputs that converge under this budget behave exactly as with an
unbounded solver.
"""


@dataclass(frozen=True, slots=True)
class EigenFactors:
    """Eigenvalues and eigenvectors of a real square matrix.

    The arrays are read-only once the container is built.
    """

    vectors: NDArray[np.float64]
    """n×n eigenvector matrix V (eigenvectors as columns)."""

    real: NDArray[np.float64]
    """Real parts of the eigenvalues (d)."""

    imag: NDArray[np.float64]
    """Imaginary parts of the eigenvalues (e); e[i] = +mu, e[i+1] = -mu for a pair."""

    symmetric: bool
    """True when the symmetric (tridiagonal QL) path produced these factors."""

    def __post_init__(self) -> None:
        for array in (self.vectors, self.real, self.imag):
            array.setflags(write=False)

    @property
    def size(self) -> int:
        """Matrix order n."""
        return int(self.real.shape[0])

    @property
    def eigenvalues(self) -> NDArray[np.complex128]:
        """Eigenvalues as a complex array, in storage order."""
        return self.real + 1j * self.imag

    @property
    def complex_vectors(self) -> NDArray[np.complex128]:
        """Complex eigenvectors matching :attr:`eigenvalues` column by column.

        A conjugate pair at (i, i+1) is stored in real form as two columns;
        the eigenvector of real[i] + i*imag[i] is V[:, i] + 1j * V[:, i+1]
        and its partner is the conjugate.
        """
        vectors = self.vectors.astype(np.complex128)
        i = 0
        while i < self.size:
            if self.imag[i] > 0 and i + 1 < self.size:
                re = self.vectors[:, i]
                im = self.vectors[:, i + 1]
                vectors[:, i] = re + 1j * im
                vectors[:, i + 1] = re - 1j * im
                i += 2
            else:
                i += 1
        return vectors

    @property
    def is_real(self) -> bool:
        """True when every eigenvalue is real."""
        return not bool(np.any(self.imag))

    def block_diagonal(self) -> NDArray[np.float64]:
        """Block-diagonal eigenvalue matrix D (see :func:`block_diagonal`)."""
        return block_diagonal(self)


@dataclass(frozen=True, slots=True)
class TridiagonalForm:
    """Symmetric tridiagonal factorization A = Q @ T @ Q.T."""

    diagonal: NDArray[np.float64]
    """Diagonal of T."""

    off_diagonal: NDArray[np.float64]
    """Sub-diagonal of T, length n-1."""

    q: NDArray[np.float64]
    """Orthogonal factor Q."""

    def matrix(self) -> NDArray[np.float64]:
        """Assemble T as a dense matrix."""
        return (
            np.diag(self.diagonal)
            + np.diag(self.off_diagonal, -1)
            + np.diag(self.off_diagonal, 1)
        )


@dataclass(frozen=True, slots=True)
class HessenbergForm:
    """Hessenberg factorization A = Q @ H @ Q.T."""

    h: NDArray[np.float64]
    """Upper Hessenberg matrix H (zero below the first sub-diagonal)."""

    q: NDArray[np.float64]
    """Orthogonal factor Q."""


def decompose(
    matrix: ArrayLike,
    epsilon: float,
    *,
    overwrite_a: bool = True,
    max_iterations: int | None = DEFAULT_MAX_ITERATIONS,
) -> EigenFactors:
    """Compute the eigenvalues and eigenvectors of a real square matrix.

    Args:
        matrix: Square matrix. A float64 ndarray is overwritten unless
            ``overwrite_a`` is False; any other input is converted to a new
            float64 array first. On the symmetric path an overwritten
            ``matrix`` becomes the returned eigenvector matrix and is left
            read-only.
        epsilon: Relative convergence tolerance, typically machine epsilon
            (see :func:`eigen_lab.data.precision_types.get_eps`).
        overwrite_a: Consume ``matrix`` as working storage (default) or copy it.
        max_iterations: Sweeps allowed per eigenvalue; None never gives up.

    Returns:
        EigenFactors with eigenvectors, real and imaginary parts.

    Raises:
        ShapeError: If the matrix is not square.
        ValueError: If epsilon or max_iterations is out of range.
        ConvergenceError: If an eigenvalue exceeds max_iterations sweeps.
    """
    a = _as_square(matrix)

    if not (math.isfinite(epsilon) and epsilon > 0):
        msg = f"epsilon must be a positive finite number, got {epsilon}"
        raise ValueError(msg)
    if max_iterations is not None and max_iterations < 1:
        msg = f"max_iterations must be at least 1 or None, got {max_iterations}"
        raise ValueError(msg)

    if not overwrite_a or not a.flags.writeable:
        a = a.copy()

    n = a.shape[0]
    d = np.zeros(n)
    e = np.zeros(n)
    symmetric = is_symmetric(a)

    if n == 0:
        return EigenFactors(vectors=a, real=d, imag=e, symmetric=symmetric)

    if symmetric:
        logger.debug("Decomposing %dx%d matrix on the symmetric path", n, n)
        # Tridiagonalize, then diagonalize.
        v = tridiagonalize(a, d, e)
        tridiagonal_ql(d, e, v, epsilon, max_iterations=max_iterations)
    else:
        logger.debug("Decomposing %dx%d matrix on the general path", n, n)
        # Reduce to Hessenberg form, then to real Schur form.
        hess, v = reduce_to_hessenberg(a)
        hessenberg_to_schur(d, e, hess, v, epsilon, max_iterations=max_iterations)

    return EigenFactors(vectors=v, real=d, imag=e, symmetric=symmetric)


def block_diagonal(factors: EigenFactors) -> NDArray[np.float64]:
    """Build the block-diagonal eigenvalue matrix D.

    Real eigenvalues sit in 1×1 blocks; a complex pair lambda ± i*mu sits in
    the 2×2 block [[lambda, mu], [-mu, lambda]].

    Raises:
        ShapeError: If the real and imaginary vectors differ in length.
        ValueError: If a nonzero imaginary part has no opposite-sign partner.
    """
    d, e = factors.real, factors.imag
    n = d.shape[0]
    if n != e.shape[0]:
        msg = f"Eigenvalue parts differ in length: {n} real vs {e.shape[0]} imaginary"
        raise ShapeError(msg)

    for i in range(n):
        if e[i] > 0 and (i + 1 == n or e[i + 1] != -e[i]):
            msg = f"Unpaired imaginary part {e[i]} at index {i}"
            raise ValueError(msg)
        if e[i] < 0 and (i == 0 or e[i - 1] != -e[i]):
            msg = f"Unpaired imaginary part {e[i]} at index {i}"
            raise ValueError(msg)

    dm = np.diag(d).astype(np.float64)
    for i in range(n):
        if e[i] > 0:
            dm[i, i + 1] = e[i]
        elif e[i] < 0:
            dm[i, i - 1] = e[i]
    return dm


def tridiagonal(matrix: ArrayLike) -> TridiagonalForm:
    """Householder tridiagonal form of a symmetric matrix (input untouched).

    Raises:
        ShapeError: If the matrix is not square.
        ValueError: If the matrix is not exactly symmetric.
    """
    a = _as_square(matrix).copy()
    if not is_symmetric(a):
        msg = "tridiagonal() requires an exactly symmetric matrix"
        raise ValueError(msg)

    n = a.shape[0]
    d = np.zeros(n)
    e = np.zeros(n)
    if n == 0:
        return TridiagonalForm(diagonal=d, off_diagonal=e, q=a)

    q = tridiagonalize(a, d, e)
    return TridiagonalForm(diagonal=d, off_diagonal=e[1:].copy(), q=q)


def hessenberg(matrix: ArrayLike) -> HessenbergForm:
    """Householder Hessenberg form of a square matrix (input untouched).

    Raises:
        ShapeError: If the matrix is not square.
    """
    a = _as_square(matrix).copy()
    hess, q = reduce_to_hessenberg(a)
    return HessenbergForm(h=np.triu(hess, -1), q=q)


def _as_square(matrix: ArrayLike) -> NDArray[np.float64]:
    """View ``matrix`` as a float64 array and check that it is square."""
    a = np.asarray(matrix, dtype=np.float64)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        msg = f"Matrix must be square, got shape {a.shape}"
        raise ShapeError(msg)
    return a


__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "EigenFactors",
    "HessenbergForm",
    "TridiagonalForm",
    "block_diagonal",
    "decompose",
    "hessenberg",
    "tridiagonal",
]
