"""Numerical algorithms module.

This module contains implementations of:
- Eigenvalue decomposition dispatcher (symmetric and general paths)
- Householder tridiagonalization and implicit QL iteration
- Householder Hessenberg reduction and double-shift QR to real Schur form
- Verification of decomposition accuracy and timed runs
- Matrix generation utilities with controlled spectra
"""

from eigen_lab.algorithms.eigen import (
    DEFAULT_MAX_ITERATIONS,
    EigenFactors,
    HessenbergForm,
    TridiagonalForm,
    block_diagonal,
    decompose,
    hessenberg,
    tridiagonal,
)
from eigen_lab.algorithms.errors import ConvergenceError, EigenError, ShapeError
from eigen_lab.algorithms.matrices import (
    DEFAULT_SEED,
    SPECTRUM_TYPES,
    ExperimentSetup,
    MatrixFingerprint,
    compute_fingerprint,
    create_complex_spectrum_matrix,
    create_experiment,
    create_geometric_spectrum_matrix,
    create_linear_spectrum_matrix,
    create_random_matrix,
    create_slow_convergence_matrix,
    reference_spectrum,
)
from eigen_lab.algorithms.verification import (
    DecompositionCheck,
    DecompositionTrace,
    check_decomposition,
    run_decomposition,
)

__all__ = [
    # Decomposition
    "DEFAULT_MAX_ITERATIONS",
    "EigenFactors",
    "HessenbergForm",
    "TridiagonalForm",
    "block_diagonal",
    "decompose",
    "hessenberg",
    "tridiagonal",
    # Errors
    "ConvergenceError",
    "EigenError",
    "ShapeError",
    # Matrix generation
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
    # Verification
    "DecompositionCheck",
    "DecompositionTrace",
    "check_decomposition",
    "run_decomposition",
]
