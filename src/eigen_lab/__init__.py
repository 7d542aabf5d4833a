"""Eigen Lab: dense real eigenvalue decomposition with numpy."""

__version__ = "0.1.0"

from eigen_lab.algorithms.eigen import (
    EigenFactors,
    block_diagonal,
    decompose,
    hessenberg,
    tridiagonal,
)
from eigen_lab.algorithms.errors import ConvergenceError, EigenError, ShapeError
from eigen_lab.data.precision_types import (
    PrecisionFormat,
    get_eps,
    get_precision_hierarchy,
)

__all__ = [
    "__version__",
    "ConvergenceError",
    "EigenError",
    "EigenFactors",
    "PrecisionFormat",
    "ShapeError",
    "block_diagonal",
    "decompose",
    "get_eps",
    "get_precision_hierarchy",
    "hessenberg",
    "tridiagonal",
]
