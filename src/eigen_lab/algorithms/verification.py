"""Accuracy checks and timed runs for the eigendecomposition.

Implements precision-aware acceptance criteria:
- Normalized residual: ||A*V - V*D||_F / (||A||_F * ||V||_F) < tol
- Orthogonality (symmetric path): ||V^T*V - I||_F < tol

with tol = factor * epsilon * n, the factor taken from the precision
presets in :mod:`eigen_lab.data.precision_types`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from eigen_lab.algorithms.eigen import (
    DEFAULT_MAX_ITERATIONS,
    EigenFactors,
    decompose,
)
from eigen_lab.data.precision_types import (
    PrecisionFormat,
    get_eps,
    get_tolerance,
    parse_format,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecompositionCheck:
    """Result of a decomposition accuracy check."""

    residual_norm: float
    """Normalized residual ||A*V - V*D||_F / (||A||_F * ||V||_F)."""

    orthogonality_error: float
    """||V^T*V - I||_F on the symmetric path, NaN on the general path."""

    sorted: bool
    """True if real parts are non-decreasing (always expected when symmetric)."""

    pairs_consistent: bool
    """True if every e[i] > 0 is followed by e[i+1] == -e[i] and d[i+1] == d[i]."""

    residual_tolerance: float
    """Threshold applied to residual_norm."""

    orthogonality_tolerance: float
    """Threshold applied to orthogonality_error."""

    residual_passed: bool
    """True if residual_norm <= residual_tolerance."""

    orthogonality_passed: bool
    """True if orthogonality holds (or is not applicable)."""

    check_time: float
    """Time for the check (seconds)."""

    @property
    def passed(self) -> bool:
        """All criteria satisfied."""
        return (
            self.residual_passed
            and self.orthogonality_passed
            and self.pairs_consistent
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "residual_norm": self.residual_norm,
            "orthogonality_error": self.orthogonality_error,
            "sorted": self.sorted,
            "pairs_consistent": self.pairs_consistent,
            "residual_tolerance": self.residual_tolerance,
            "orthogonality_tolerance": self.orthogonality_tolerance,
            "passed": self.passed,
        }


def _pairs_consistent(d: np.ndarray, e: np.ndarray) -> bool:
    n = d.shape[0]
    i = 0
    while i < n:
        if e[i] > 0:
            if i + 1 >= n or e[i + 1] != -e[i] or d[i + 1] != d[i]:
                return False
            i += 2
        elif e[i] < 0:
            return False
        else:
            i += 1
    return True


def check_decomposition(
    a: ArrayLike,
    factors: EigenFactors,
    *,
    epsilon: float,
    precision: PrecisionFormat | str = PrecisionFormat.FP64,
) -> DecompositionCheck:
    """Check decomposition factors against the original matrix.

    Args:
        a: The matrix that was decomposed (an untouched copy).
        factors: Output of :func:`decompose`.
        epsilon: Tolerance used for the decomposition.
        precision: Preset whose verification factors scale the thresholds.

    Returns:
        DecompositionCheck with metrics and pass/fail status.
    """
    start = time.perf_counter()

    a = np.asarray(a, dtype=np.float64)
    n = factors.size
    v = factors.vectors
    d, e = factors.real, factors.imag

    pairs_consistent = _pairs_consistent(d, e)

    # Residual: R = A*V - V*D (D is undefined for a broken pair encoding)
    if not pairs_consistent:
        residual_norm = float("inf")
    elif n == 0:
        residual_norm = 0.0
    else:
        residual = a @ v - v @ factors.block_diagonal()
        scale = np.linalg.norm(a, "fro") * np.linalg.norm(v, "fro")
        if scale == 0.0:
            residual_norm = float(np.linalg.norm(residual, "fro"))
        else:
            residual_norm = float(np.linalg.norm(residual, "fro") / scale)

    if factors.symmetric:
        orthogonality_error = float(np.linalg.norm(v.T @ v - np.eye(n), "fro"))
    else:
        orthogonality_error = float("nan")

    size_scale = epsilon * max(n, 1)
    residual_tol = get_tolerance(precision, "residual_factor") * size_scale
    orthogonality_tol = get_tolerance(precision, "orthogonality_factor") * size_scale

    return DecompositionCheck(
        residual_norm=residual_norm,
        orthogonality_error=orthogonality_error,
        sorted=bool(np.all(np.diff(d) >= 0)),
        pairs_consistent=pairs_consistent,
        residual_tolerance=residual_tol,
        orthogonality_tolerance=orthogonality_tol,
        residual_passed=residual_norm <= residual_tol,
        orthogonality_passed=(
            not factors.symmetric or orthogonality_error <= orthogonality_tol
        ),
        check_time=time.perf_counter() - start,
    )


@dataclass(frozen=True, slots=True)
class DecompositionTrace:
    """Complete trace of one decomposition run."""

    factors: EigenFactors
    """Eigenvalues and eigenvectors."""

    check: DecompositionCheck
    """Accuracy of the factors."""

    precision: PrecisionFormat
    """Preset used for the tolerance and thresholds."""

    epsilon: float
    """Tolerance passed to the solver."""

    algorithm_time: float
    """Time spent in decompose() (seconds)."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (no arrays)."""
        return {
            "matrix_size": self.factors.size,
            "symmetric": self.factors.symmetric,
            "precision": self.precision.value,
            "epsilon": self.epsilon,
            "algorithm_time": self.algorithm_time,
            "complex_pairs": int(np.count_nonzero(self.factors.imag > 0)),
            **self.check.to_dict(),
        }


def run_decomposition(
    matrix: ArrayLike,
    precision: PrecisionFormat | str = PrecisionFormat.FP64,
    *,
    epsilon: float | None = None,
    max_iterations: int | None = DEFAULT_MAX_ITERATIONS,
) -> DecompositionTrace:
    """Decompose a copy of ``matrix`` and verify the result.

    Convenience function that handles cloning, timing and checking.

    Args:
        matrix: Input matrix (left untouched).
        precision: Preset providing the default epsilon and check factors.
        epsilon: Explicit tolerance (defaults to the preset's machine epsilon).
        max_iterations: Sweep budget per eigenvalue.

    Returns:
        DecompositionTrace with factors, check and timing.

    Raises:
        ConvergenceError: If the solver exceeds max_iterations.
    """
    fmt = parse_format(precision)
    if epsilon is None:
        epsilon = get_eps(fmt)

    original = np.array(matrix, dtype=np.float64)

    start = time.perf_counter()
    factors = decompose(
        original, epsilon, overwrite_a=False, max_iterations=max_iterations
    )
    algorithm_time = time.perf_counter() - start

    check = check_decomposition(original, factors, epsilon=epsilon, precision=fmt)
    logger.debug(
        "Decomposed %dx%d matrix in %.3fs (residual %.2e)",
        factors.size,
        factors.size,
        algorithm_time,
        check.residual_norm,
    )

    return DecompositionTrace(
        factors=factors,
        check=check,
        precision=fmt,
        epsilon=epsilon,
        algorithm_time=algorithm_time,
    )


__all__ = [
    "DecompositionCheck",
    "DecompositionTrace",
    "check_decomposition",
    "run_decomposition",
]
