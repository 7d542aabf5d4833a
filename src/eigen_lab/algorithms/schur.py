"""Double-shift implicit QR iteration from Hessenberg to real Schur form.

Given a Hessenberg matrix and the orthogonal factor that produced it, this
module extracts all eigenvalues (real, or complex-conjugate pairs encoded in
the real/imaginary vectors) and then recovers the eigenvectors by
back-substitution on the quasi-triangular Schur form followed by
back-transformation through the accumulated orthogonal factor.

The QR phase is a state machine over a shrinking active block ``[low, n]``:

1. Deflation search for a negligible sub-diagonal entry
2. One root isolated at the bottom: accept it, shrink by one
3. Two roots isolated in a trailing 2×2 block: solve it, shrink by two
4. Otherwise form a shift (with exceptional shifts at iterations 10 and 30),
   locate the bulge and apply one double-shift QR sweep

The temporaries of one sweep are carried in two small value objects,
``_Shift`` and ``_Reflector``, rather than shared mutable scalars.

References:
- Martin, Peters & Wilkinson: procedure hqr2, Handbook for Automatic
  Computation, Vol. II - Linear Algebra (1971)
- EISPACK subroutine HQR2
- Golub & Van Loan: "Matrix Computations" (4th ed.), §7.5
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from eigen_lab.algorithms.errors import ConvergenceError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

WILKINSON_SHIFT_ITERATION: int = 10
"""Iteration at which Wilkinson's ad hoc exceptional shift is applied."""

MATLAB_SHIFT_ITERATION: int = 30
"""Iteration at which the second (MATLAB-style) exceptional shift is applied."""


@dataclass(frozen=True, slots=True)
class _Shift:
    """Implicit double shift for one QR sweep.

    ``x`` and ``y`` are the trailing diagonal entries, ``w`` the product of
    the trailing off-diagonal pair.
    """

    x: float
    y: float
    w: float


@dataclass(frozen=True, slots=True)
class _Reflector:
    """First column (p, q, r) of the shifted double-step, normalized."""

    p: float
    q: float
    r: float


def complex_divide(xr: float, xi: float, yr: float, yi: float) -> tuple[float, float]:
    """Divide (xr + i*xi) by (yr + i*yi) using real arithmetic only.

    Uses Smith's scaling to avoid overflow in the intermediate products.

    Returns:
        (real, imaginary) parts of the quotient.
    """
    if abs(yr) > abs(yi):
        r = yi / yr
        d = yr + r * yi
        return (xr + r * xi) / d, (xi - r * xr) / d
    r = yr / yi
    d = yi + r * yr
    return (r * xr + xi) / d, (r * xi - xr) / d


class SchurSolver:
    """Hessenberg-to-real-Schur QR solver with eigenvector recovery.

    All arrays are modified in place. Use :func:`hessenberg_to_schur` rather
    than driving the phases individually.
    """

    __slots__ = (
        "_d",
        "_e",
        "_hess",
        "_v",
        "_epsilon",
        "_max_iterations",
        "_size",
        "_low",
        "_high",
        "_norm",
        "_exshift",
    )

    def __init__(
        self,
        d: NDArray[np.float64],
        e: NDArray[np.float64],
        hess: NDArray[np.float64],
        v: NDArray[np.float64],
        epsilon: float,
        *,
        max_iterations: int | None = None,
    ) -> None:
        self._d = d
        self._e = e
        self._hess = hess
        self._v = v
        self._epsilon = epsilon
        self._max_iterations = max_iterations
        self._size = d.shape[0]

        # No balancing: the active range always spans the whole matrix.
        self._low = 0
        self._high = self._size - 1
        self._norm = 0.0
        self._exshift = 0.0

    def solve(self) -> None:
        """Run the QR phase, then back-substitution and back-transformation."""
        self._store_isolated_roots()
        self._reduce()

        if self._norm == 0.0:
            return

        self._back_substitute()
        self._copy_isolated_vectors()
        self._back_transform()

    # ------------------------------------------------------------------
    # QR phase
    # ------------------------------------------------------------------

    def _store_isolated_roots(self) -> None:
        """Record roots outside [low, high] and compute the matrix norm."""
        hess, d, e = self._hess, self._d, self._e
        for i in range(self._size):
            if i < self._low or i > self._high:
                d[i] = hess[i, i]
                e[i] = 0.0
        self._norm = float(np.abs(np.triu(hess, -1)).sum())

    def _reduce(self) -> None:
        hess, d, e = self._hess, self._d, self._e
        n = self._size - 1
        iteration = 0

        while n >= self._low:
            l = self._find_small_subdiagonal(n)  # noqa: E741

            if l == n:
                # One root found.
                hess[n, n] += self._exshift
                d[n] = hess[n, n]
                e[n] = 0.0
                n -= 1
                iteration = 0
            elif l == n - 1:
                # Two roots found.
                self._accept_pair(n)
                n -= 2
                iteration = 0
            else:
                # No convergence yet.
                if self._max_iterations is not None and iteration >= self._max_iterations:
                    raise ConvergenceError("Hessenberg QR", n, iteration)
                shift = self._form_shift(n, iteration)
                iteration += 1
                m, reflector = self._find_bulge(n, l, shift)
                self._double_qr_step(n, l, m, reflector)

    def _find_small_subdiagonal(self, n: int) -> int:
        """Scan upward from row n for a negligible sub-diagonal entry."""
        hess = self._hess
        l = n  # noqa: E741
        while l > self._low:
            s = abs(hess[l - 1, l - 1]) + abs(hess[l, l])
            if s == 0.0:
                s = self._norm
            if abs(hess[l, l - 1]) < self._epsilon * s:
                break
            l -= 1  # noqa: E741
        return l

    def _accept_pair(self, n: int) -> None:
        """Resolve the trailing 2×2 block at rows n-1, n."""
        hess, v, d, e = self._hess, self._v, self._d, self._e

        w = hess[n, n - 1] * hess[n - 1, n]
        p = (hess[n - 1, n - 1] - hess[n, n]) / 2.0
        q = p * p + w
        z = math.sqrt(abs(q))
        hess[n, n] += self._exshift
        hess[n - 1, n - 1] += self._exshift
        x = hess[n, n]

        if q < 0:
            # Complex pair: positive imaginary part first.
            d[n - 1] = x + p
            d[n] = x + p
            e[n - 1] = z
            e[n] = -z
            return

        # Real pair.
        z = p + z if p >= 0 else p - z
        d[n - 1] = x + z
        d[n] = d[n - 1]
        if z != 0:
            d[n] = x - w / z
        e[n - 1] = 0.0
        e[n] = 0.0

        x = hess[n, n - 1]
        s = abs(x) + abs(z)
        p = x / s
        q = z / s
        r = math.hypot(p, q)
        p /= r
        q /= r

        # Row modification.
        row = hess[n - 1, n - 1 :].copy()
        hess[n - 1, n - 1 :] = q * row + p * hess[n, n - 1 :]
        hess[n, n - 1 :] = q * hess[n, n - 1 :] - p * row

        # Column modification.
        col = hess[: n + 1, n - 1].copy()
        hess[: n + 1, n - 1] = q * col + p * hess[: n + 1, n]
        hess[: n + 1, n] = q * hess[: n + 1, n] - p * col

        # Accumulate transformations.
        rows = slice(self._low, self._high + 1)
        col = v[rows, n - 1].copy()
        v[rows, n - 1] = q * col + p * v[rows, n]
        v[rows, n] = q * v[rows, n] - p * col

    def _form_shift(self, n: int, iteration: int) -> _Shift:
        """Shift from the trailing 2×2 block, or an exceptional shift."""
        hess = self._hess
        x = hess[n, n]
        y = hess[n - 1, n - 1]
        w = hess[n, n - 1] * hess[n - 1, n]
        diag = np.arange(self._low, n + 1)

        # Wilkinson's original ad hoc shift.
        if iteration == WILKINSON_SHIFT_ITERATION:
            logger.debug("Exceptional shift (Wilkinson) at row %d", n)
            self._exshift += x
            hess[diag, diag] -= x
            s = abs(hess[n, n - 1]) + abs(hess[n - 1, n - 2])
            x = 0.75 * s
            y = x
            w = -0.4375 * s * s

        # MATLAB's new ad hoc shift.
        if iteration == MATLAB_SHIFT_ITERATION:
            s = (y - x) / 2.0
            s = s * s + w
            if s > 0:
                logger.debug("Exceptional shift (MATLAB) at row %d", n)
                s = math.sqrt(s)
                if y < x:
                    s = -s
                s = x - w / ((y - x) / 2.0 + s)
                hess[diag, diag] -= s
                self._exshift += s
                x = y = w = 0.964

        return _Shift(x=x, y=y, w=w)

    def _find_bulge(self, n: int, l: int, shift: _Shift) -> tuple[int, _Reflector]:  # noqa: E741
        """Look for two consecutive small sub-diagonal elements.

        Returns the row m where the sweep starts and its initial reflector.
        """
        hess, epsilon = self._hess, self._epsilon
        x, y, w = shift.x, shift.y, shift.w

        m = n - 2
        while True:
            z = hess[m, m]
            r = x - z
            s = y - z
            p = (r * s - w) / hess[m + 1, m] + hess[m, m + 1]
            q = hess[m + 1, m + 1] - z - r - s
            r = hess[m + 2, m + 1]
            s = abs(p) + abs(q) + abs(r)
            p /= s
            q /= s
            r /= s
            if m == l:
                break
            coupling = abs(hess[m, m - 1]) * (abs(q) + abs(r))
            local = abs(p) * (abs(hess[m - 1, m - 1]) + abs(z) + abs(hess[m + 1, m + 1]))
            if coupling < epsilon * local:
                break
            m -= 1

        for i in range(m + 2, n + 1):
            hess[i, i - 2] = 0.0
            if i > m + 2:
                hess[i, i - 3] = 0.0

        return m, _Reflector(p=p, q=q, r=r)

    def _double_qr_step(self, n: int, l: int, m: int, reflector: _Reflector) -> None:  # noqa: E741
        """Chase the bulge through rows l:n and columns m:n."""
        hess, v = self._hess, self._v
        p, q, r = reflector.p, reflector.q, reflector.r
        x = 0.0
        accumulate = slice(self._low, self._high + 1)

        for k in range(m, n):
            notlast = k != n - 1
            if k != m:
                p = hess[k, k - 1]
                q = hess[k + 1, k - 1]
                r = hess[k + 2, k - 1] if notlast else 0.0
                x = abs(p) + abs(q) + abs(r)
                if x == 0.0:
                    continue
                p /= x
                q /= x
                r /= x

            s = math.sqrt(p * p + q * q + r * r)
            if p < 0:
                s = -s
            if s == 0.0:
                continue

            if k != m:
                hess[k, k - 1] = -s * x
            elif l != m:
                hess[k, k - 1] = -hess[k, k - 1]
            p += s
            x = p / s
            y = q / s
            z = r / s
            q /= p
            r /= p

            # Row modification.
            cols = slice(k, self._size)
            t = hess[k, cols] + q * hess[k + 1, cols]
            if notlast:
                t += r * hess[k + 2, cols]
                hess[k + 2, cols] -= t * z
            hess[k, cols] -= t * x
            hess[k + 1, cols] -= t * y

            # Column modification.
            rows = slice(0, min(n, k + 3) + 1)
            t = x * hess[rows, k] + y * hess[rows, k + 1]
            if notlast:
                t += z * hess[rows, k + 2]
                hess[rows, k + 2] -= t * r
            hess[rows, k] -= t
            hess[rows, k + 1] -= t * q

            # Accumulate transformations.
            t = x * v[accumulate, k] + y * v[accumulate, k + 1]
            if notlast:
                t += z * v[accumulate, k + 2]
                v[accumulate, k + 2] -= t * r
            v[accumulate, k] -= t
            v[accumulate, k + 1] -= t * q

    # ------------------------------------------------------------------
    # Eigenvector recovery
    # ------------------------------------------------------------------

    def _back_substitute(self) -> None:
        """Solve for eigenvectors of the quasi-triangular Schur form."""
        d, e = self._d, self._e
        for n in range(self._size - 1, -1, -1):
            if e[n] == 0:
                self._real_vector(n, d[n])
            elif e[n] < 0:
                self._complex_vector(n, d[n], e[n])

    def _real_vector(self, n: int, p: float) -> None:
        hess, d, e = self._hess, self._d, self._e
        epsilon, norm = self._epsilon, self._norm
        z = s = 0.0

        l = n  # noqa: E741
        hess[n, n] = 1.0
        for i in range(n - 1, -1, -1):
            w = hess[i, i] - p
            r = hess[i, l : n + 1] @ hess[l : n + 1, n]

            if e[i] < 0:
                z = w
                s = r
                continue

            l = i  # noqa: E741
            if e[i] == 0:
                if w != 0:
                    hess[i, n] = -r / w
                else:
                    hess[i, n] = -r / (epsilon * norm)
            else:
                # Solve real equations.
                x = hess[i, i + 1]
                y = hess[i + 1, i]
                denom = (d[i] - p) * (d[i] - p) + e[i] * e[i]
                t = (x * s - z * r) / denom
                hess[i, n] = t
                if abs(x) > abs(z):
                    hess[i + 1, n] = (-r - w * t) / x
                else:
                    hess[i + 1, n] = (-s - y * t) / z

            # Overflow control.
            t = abs(hess[i, n])
            if epsilon * t * t > 1:
                hess[i : n + 1, n] /= t

    def _complex_vector(self, n: int, p: float, q: float) -> None:
        hess, d, e = self._hess, self._d, self._e
        epsilon, norm = self._epsilon, self._norm
        z = r = s = 0.0

        l = n - 1  # noqa: E741

        # Last vector component imaginary so matrix is triangular.
        if abs(hess[n, n - 1]) > abs(hess[n - 1, n]):
            hess[n - 1, n - 1] = q / hess[n, n - 1]
            hess[n - 1, n] = -(hess[n, n] - p) / hess[n, n - 1]
        else:
            hess[n - 1, n - 1], hess[n - 1, n] = complex_divide(
                0.0, -hess[n - 1, n], hess[n - 1, n - 1] - p, q
            )
        hess[n, n - 1] = 0.0
        hess[n, n] = 1.0

        for i in range(n - 2, -1, -1):
            ra = hess[i, l : n + 1] @ hess[l : n + 1, n - 1]
            sa = hess[i, l : n + 1] @ hess[l : n + 1, n]
            w = hess[i, i] - p

            if e[i] < 0:
                z = w
                r = ra
                s = sa
                continue

            l = i  # noqa: E741
            if e[i] == 0:
                hess[i, n - 1], hess[i, n] = complex_divide(-ra, -sa, w, q)
            else:
                # Solve complex equations.
                x = hess[i, i + 1]
                y = hess[i + 1, i]
                vr = (d[i] - p) * (d[i] - p) + e[i] * e[i] - q * q
                vi = (d[i] - p) * 2.0 * q
                if vr == 0 and vi == 0:
                    vr = epsilon * norm * (abs(w) + abs(q) + abs(x) + abs(y) + abs(z))
                hess[i, n - 1], hess[i, n] = complex_divide(
                    x * r - z * ra + q * sa, x * s - z * sa - q * ra, vr, vi
                )
                if abs(x) > abs(z) + abs(q):
                    hess[i + 1, n - 1] = (-ra - w * hess[i, n - 1] + q * hess[i, n]) / x
                    hess[i + 1, n] = (-sa - w * hess[i, n] - q * hess[i, n - 1]) / x
                else:
                    hess[i + 1, n - 1], hess[i + 1, n] = complex_divide(
                        -r - y * hess[i, n - 1], -s - y * hess[i, n], z, q
                    )

            # Overflow control.
            t = max(abs(hess[i, n - 1]), abs(hess[i, n]))
            if (epsilon * t) * t > 1:
                hess[i : n + 1, n - 1] /= t
                hess[i : n + 1, n] /= t

    def _copy_isolated_vectors(self) -> None:
        """Vectors of roots isolated outside [low, high] pass through unchanged."""
        for i in range(self._size):
            if i < self._low or i > self._high:
                self._v[i, i:] = self._hess[i, i:]

    def _back_transform(self) -> None:
        """Map Schur-form eigenvectors back to the original basis."""
        hess, v = self._hess, self._v
        low, high = self._low, self._high
        rows = slice(low, high + 1)
        for j in range(self._size - 1, low - 1, -1):
            k = min(j, high) + 1
            v[rows, j] = v[rows, low:k] @ hess[low:k, j]


def hessenberg_to_schur(
    d: NDArray[np.float64],
    e: NDArray[np.float64],
    hess: NDArray[np.float64],
    v: NDArray[np.float64],
    epsilon: float,
    *,
    max_iterations: int | None = None,
) -> None:
    """Compute eigenvalues and eigenvectors from Hessenberg form.

    Args:
        d: Output, length n. Real parts of the eigenvalues.
        e: Output, length n. Imaginary parts; a conjugate pair at (i, i+1)
            is stored as e[i] = +mu, e[i+1] = -mu.
        hess: Hessenberg matrix from :func:`reduce_to_hessenberg`; destroyed.
        v: Orthogonal factor from the reduction; eigenvectors on exit.
        epsilon: Relative threshold for negligible sub-diagonal entries.
        max_iterations: QR sweeps allowed per deflation (None = unbounded).

    Raises:
        ConvergenceError: If a block does not deflate within max_iterations.
    """
    SchurSolver(d, e, hess, v, epsilon, max_iterations=max_iterations).solve()


__all__ = [
    "MATLAB_SHIFT_ITERATION",
    "SchurSolver",
    "WILKINSON_SHIFT_ITERATION",
    "complex_divide",
    "hessenberg_to_schur",
]
