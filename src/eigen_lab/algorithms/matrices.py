"""Matrix generation utilities for eigendecomposition experiments.

This module provides functions for creating test matrices with controlled
spectra, for both the symmetric and the general decomposition paths.

Key Features:
- Reproducible matrix generation with seed control
- Exactly symmetric matrices (linear, slow-gap, geometric spectra)
- Nonsymmetric matrices with complex-conjugate eigenvalue pairs
- Matrix fingerprinting for experiment verification

Symmetric generators return matrices whose mirrored entries are bit-for-bit
equal: Q @ diag(λ) @ Q.T is only symmetric up to rounding, so the product is
averaged with its transpose before it is returned.

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), Sections 7.3 and 8.1
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


DEFAULT_SEED: int = 42
"""Default random seed for reproducible experiments."""

SPECTRUM_TYPES: tuple[str, ...] = ("linear", "slow", "geometric", "complex", "random")
"""Matrix kinds understood by :func:`create_experiment`."""


@dataclass(frozen=True, slots=True)
class MatrixFingerprint:
    """Fingerprint for matrix identification and verification.

    Used to verify that different experiments use identical matrices.
    """

    matrix_size: int
    """Matrix dimension n."""

    symmetric: bool
    """True when the matrix is exactly symmetric."""

    frobenius_norm: float
    """||A||_F for additional verification."""

    spectral_radius: float
    """max |λ| over the reference spectrum."""

    seed: int
    """Random seed used for generation."""

    spectrum_type: str
    """Matrix kind, one of SPECTRUM_TYPES."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "matrix_size": self.matrix_size,
            "symmetric": self.symmetric,
            "frobenius_norm": self.frobenius_norm,
            "spectral_radius": self.spectral_radius,
            "random_seed": self.seed,
            "spectrum_type": self.spectrum_type,
        }


def _random_orthogonal(n: int, rng: np.random.Generator) -> NDArray[np.float64]:
    Q, _ = np.linalg.qr(rng.standard_normal((n, n)))
    return Q


def _symmetric_from_spectrum(
    eigenvalues: NDArray[np.float64],
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    Q = _random_orthogonal(eigenvalues.shape[0], rng)
    A = Q @ np.diag(eigenvalues) @ Q.T
    return 0.5 * (A + A.T)


def create_linear_spectrum_matrix(
    n: int,
    condition_number: float,
    *,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create symmetric matrix with linearly spaced eigenvalues.

    Eigenvalue distribution: [1.0, ..., κ] (linearly spaced)

    Mathematical Construction:
        λ_i = 1 + (κ-1) * (i-1)/(n-1)  for i = 1, ..., n
        A = Q @ diag(λ) @ Q^T  where Q is random orthogonal

    Args:
        n: Matrix dimension.
        condition_number: Desired condition number κ = λ_max / λ_min.
        seed: Random seed for reproducibility.

    Returns:
        n×n exactly symmetric positive definite matrix.

    Example:
        >>> A = create_linear_spectrum_matrix(100, condition_number=100, seed=42)
        >>> bool((A == A.T).all())
        True
    """
    rng = np.random.default_rng(seed)
    return _symmetric_from_spectrum(np.linspace(1.0, condition_number, n), rng)


def create_slow_convergence_matrix(
    n: int,
    condition_number: float,
    *,
    eigenvalue_gap: float = 1.1,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create symmetric matrix with a small gap between dominant eigenvalues.

    Eigenvalue distribution:
        λ₁ = κ (largest)
        λ₂ = κ / eigenvalue_gap (only ~10% smaller by default)
        λ₃...λₙ = geometric decay from λ₂ to 1.0

    Clustered eigenvalues make deflation slower and stress the ordering of
    the symmetric solver.

    Args:
        n: Matrix dimension.
        condition_number: Desired condition number κ = λ_max / λ_min.
        eigenvalue_gap: Ratio λ₁/λ₂ (default 1.1 for 10% gap).
        seed: Random seed for reproducibility.

    Returns:
        n×n exactly symmetric positive definite matrix.
    """
    rng = np.random.default_rng(seed)

    eigenvalues = np.zeros(n)
    eigenvalues[0] = condition_number
    if n > 1:
        eigenvalues[1:] = np.geomspace(condition_number / eigenvalue_gap, 1.0, n - 1)

    return _symmetric_from_spectrum(eigenvalues, rng)


def create_geometric_spectrum_matrix(
    n: int,
    condition_number: float,
    *,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create symmetric matrix with geometrically spaced eigenvalues.

    Mathematical Construction:
        λ_i = κ^((i-1)/(n-1))  for i = 1, ..., n
        A = Q @ diag(λ) @ Q^T  where Q is random orthogonal
    """
    rng = np.random.default_rng(seed)
    return _symmetric_from_spectrum(np.geomspace(1.0, condition_number, n), rng)


def create_complex_spectrum_matrix(
    n: int,
    condition_number: float,
    *,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create nonsymmetric matrix whose eigenvalues are complex-conjugate pairs.

    Eigenvalue distribution:
        a_k ± i * a_k / 2 with a_k linearly spaced in [1.0, κ]
        plus one real eigenvalue κ when n is odd

    Mathematical Construction:
        B = block-diagonal with blocks [[a, b], [-b, a]]
        A = Q @ B @ Q^T  where Q is random orthogonal

    Args:
        n: Matrix dimension.
        condition_number: Largest real part κ.
        seed: Random seed for reproducibility.

    Returns:
        n×n real matrix (nonsymmetric for n >= 2).
    """
    rng = np.random.default_rng(seed)

    pairs = n // 2
    real_parts = np.linspace(1.0, condition_number, pairs)
    B = np.zeros((n, n))
    for k, a in enumerate(real_parts):
        i = 2 * k
        b = 0.5 * a
        B[i : i + 2, i : i + 2] = [[a, b], [-b, a]]
    if n % 2:
        B[n - 1, n - 1] = condition_number

    Q = _random_orthogonal(n, rng)
    return Q @ B @ Q.T


def create_random_matrix(
    n: int,
    *,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create n×n matrix with independent standard normal entries."""
    rng = np.random.default_rng(seed)
    return rng.standard_normal((n, n))


def reference_spectrum(matrix: NDArray[np.float64]) -> NDArray[np.complex128]:
    """Eigenvalues from numpy's LAPACK bindings, sorted by (real, imag)."""
    if np.array_equal(matrix, matrix.T):
        eigenvalues = np.linalg.eigvalsh(matrix).astype(np.complex128)
    else:
        eigenvalues = np.linalg.eigvals(matrix)
    order = np.lexsort((eigenvalues.imag, eigenvalues.real))
    return eigenvalues[order]


def compute_fingerprint(
    matrix: NDArray[np.float64],
    *,
    seed: int = DEFAULT_SEED,
    spectrum_type: str = "unknown",
    eigenvalues: NDArray[np.complex128] | None = None,
) -> MatrixFingerprint:
    """Compute fingerprint for matrix identification.

    Args:
        matrix: Input matrix.
        seed: Random seed used for generation.
        spectrum_type: Matrix type identifier.
        eigenvalues: Precomputed reference spectrum (computed if None).

    Returns:
        MatrixFingerprint for verification.
    """
    if eigenvalues is None:
        eigenvalues = reference_spectrum(matrix)
    radius = float(np.max(np.abs(eigenvalues))) if eigenvalues.size else 0.0

    return MatrixFingerprint(
        matrix_size=int(matrix.shape[0]),
        symmetric=bool(np.array_equal(matrix, matrix.T)),
        frobenius_norm=float(np.linalg.norm(matrix, "fro")),
        spectral_radius=radius,
        seed=seed,
        spectrum_type=spectrum_type,
    )


@dataclass(frozen=True, slots=True)
class ExperimentSetup:
    """Container for experiment matrix with metadata."""

    matrix: NDArray[np.float64]
    """The n×n test matrix."""

    fingerprint: MatrixFingerprint
    """Matrix fingerprint for verification."""

    reference_eigenvalues: NDArray[np.complex128]
    """Ground-truth spectrum from numpy, sorted by (real, imag)."""


def create_experiment(
    n: int,
    condition_number: float = 100.0,
    *,
    seed: int = DEFAULT_SEED,
    spectrum_type: str = "slow",
) -> ExperimentSetup:
    """Create matrix for experiments with full metadata.

    This is the canonical function for creating matrices in experiments.
    It returns both the matrix and metadata for verification.

    Args:
        n: Matrix dimension.
        condition_number: Desired condition number (ignored for "random").
        seed: Random seed (default: 42 for reproducibility).
        spectrum_type: "slow" (10% gap), "linear", "geometric", "complex"
            or "random".

    Returns:
        ExperimentSetup with matrix, fingerprint and reference spectrum.

    Example:
        >>> setup = create_experiment(64, spectrum_type="complex")
        >>> setup.fingerprint.symmetric
        False
    """
    if spectrum_type == "slow":
        matrix = create_slow_convergence_matrix(n, condition_number, seed=seed)
    elif spectrum_type == "linear":
        matrix = create_linear_spectrum_matrix(n, condition_number, seed=seed)
    elif spectrum_type == "geometric":
        matrix = create_geometric_spectrum_matrix(n, condition_number, seed=seed)
    elif spectrum_type == "complex":
        matrix = create_complex_spectrum_matrix(n, condition_number, seed=seed)
    elif spectrum_type == "random":
        matrix = create_random_matrix(n, seed=seed)
    else:
        msg = f"Unknown spectrum_type: {spectrum_type}. Valid: {list(SPECTRUM_TYPES)}"
        raise ValueError(msg)

    eigenvalues = reference_spectrum(matrix)
    fingerprint = compute_fingerprint(
        matrix, seed=seed, spectrum_type=spectrum_type, eigenvalues=eigenvalues
    )

    return ExperimentSetup(
        matrix=matrix,
        fingerprint=fingerprint,
        reference_eigenvalues=eigenvalues,
    )


__all__ = [
    "DEFAULT_SEED",
    "SPECTRUM_TYPES",
    "ExperimentSetup",
    "MatrixFingerprint",
    "compute_fingerprint",
    "create_complex_spectrum_matrix",
    "create_experiment",
    "create_geometric_spectrum_matrix",
    "create_linear_spectrum_matrix",
    "create_random_matrix",
    "create_slow_convergence_matrix",
    "reference_spectrum",
]
