"""Exceptions raised by the eigenvalue decomposition."""

from __future__ import annotations


class EigenError(Exception):
    """Base class for decomposition failures."""


class ShapeError(EigenError, ValueError):
    """Input dimensions are incompatible with the requested operation.

    Raised for non-square matrices and for mismatched eigenvalue vectors,
    always before any array is modified.
    """


class ConvergenceError(EigenError, RuntimeError):
    """An iterative solver exceeded its per-eigenvalue sweep budget.

    Attributes:
        stage: Which solver gave up ('tridiagonal QL' or 'Hessenberg QR').
        index: Eigenvalue index that failed to converge.
        iterations: Sweeps spent on that index.
    """

    def __init__(self, stage: str, index: int, iterations: int) -> None:
        self.stage = stage
        self.index = index
        self.iterations = iterations
        super().__init__(
            f"{stage} failed to converge for eigenvalue {index} "
            f"after {iterations} iterations"
        )


__all__ = [
    "ConvergenceError",
    "EigenError",
    "ShapeError",
]
