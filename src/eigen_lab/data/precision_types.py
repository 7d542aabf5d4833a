"""
Precision Presets - Single Source of Truth

This module defines the floating-point precision formats whose machine epsilon
is offered as a convergence tolerance for the eigenvalue solvers, together with
the verification factors used when checking a finished decomposition.

The decomposition itself always runs in float64. Choosing a coarser preset
(fp32, fp16) only loosens the deflation tests, which trades accuracy for fewer
QL/QR sweeps.

References:
    - IEEE 754-2019 Standard for Floating-Point Arithmetic
    - Golub & Van Loan: "Matrix Computations" (4th ed.), Section 7.5
    - Higham: "Accuracy and Stability of Numerical Algorithms" (2nd ed.)
"""

from dataclasses import dataclass
from enum import Enum


class PrecisionFormat(Enum):
    """Supported floating-point precision presets."""

    FP64 = "fp64"
    FP32 = "fp32"
    FP16 = "fp16"


@dataclass(frozen=True, slots=True)
class PrecisionSpec:
    """Specification for a floating-point precision format."""

    format: PrecisionFormat
    bits: int
    mantissa_bits: int
    exponent_bits: int
    machine_epsilon: float

    @property
    def bytes(self) -> int:
        """Number of bytes for this format."""
        return self.bits // 8


# =============================================================================
# PRECISION SPECIFICATIONS
# =============================================================================
# Machine epsilon: 2^(-mantissa_bits)

_PRECISION_SPECS: dict[PrecisionFormat, PrecisionSpec] = {
    PrecisionFormat.FP64: PrecisionSpec(
        format=PrecisionFormat.FP64,
        bits=64,
        mantissa_bits=52,
        exponent_bits=11,
        machine_epsilon=2.220446049250313e-16,  # 2^(-52)
    ),
    PrecisionFormat.FP32: PrecisionSpec(
        format=PrecisionFormat.FP32,
        bits=32,
        mantissa_bits=23,
        exponent_bits=8,
        machine_epsilon=1.1920928955078125e-07,  # 2^(-23)
    ),
    PrecisionFormat.FP16: PrecisionSpec(
        format=PrecisionFormat.FP16,
        bits=16,
        mantissa_bits=10,
        exponent_bits=5,
        machine_epsilon=9.765625e-04,  # 2^(-10)
    ),
}


# =============================================================================
# VERIFICATION TOLERANCES
# =============================================================================
# A decomposition passes when its error is below factor * epsilon * n.
# Coarse presets stop iterating earlier, so their residuals sit closer to
# epsilon itself and need less headroom.

_VERIFICATION_TOLERANCES: dict[PrecisionFormat, dict[str, float]] = {
    PrecisionFormat.FP64: {
        "residual_factor": 100.0,
        "orthogonality_factor": 100.0,
    },
    PrecisionFormat.FP32: {
        "residual_factor": 20.0,
        "orthogonality_factor": 20.0,
    },
    PrecisionFormat.FP16: {
        "residual_factor": 10.0,
        "orthogonality_factor": 10.0,
    },
}


# =============================================================================
# PUBLIC API
# =============================================================================


def get_spec(fmt: PrecisionFormat | str) -> PrecisionSpec:
    """
    Get the full specification for a precision format.

    Args:
        fmt: Precision format (enum or string like 'fp32', 'FP16')

    Returns:
        PrecisionSpec with all format properties

    Raises:
        ValueError: If format is unknown

    Example:
        >>> spec = get_spec("fp32")
        >>> spec.mantissa_bits
        23
    """
    return _PRECISION_SPECS[parse_format(fmt)]


def get_eps(fmt: PrecisionFormat | str) -> float:
    """
    Get machine epsilon for a precision format.

    This is the value usually passed as ``epsilon`` to
    :func:`eigen_lab.algorithms.eigen.decompose`.

    Args:
        fmt: Precision format

    Returns:
        Machine epsilon value

    Example:
        >>> get_eps("fp64")
        2.220446049250313e-16
    """
    return get_spec(fmt).machine_epsilon


def get_tolerance(
    fmt: PrecisionFormat | str,
    tolerance_type: str = "residual_factor",
) -> float:
    """
    Get a verification factor for a precision format.

    Args:
        fmt: Precision format
        tolerance_type: One of 'residual_factor', 'orthogonality_factor'

    Returns:
        Tolerance factor (multiplied by epsilon * n by the checker)

    Example:
        >>> get_tolerance("fp32", "residual_factor")
        20.0
    """
    tols = _VERIFICATION_TOLERANCES[parse_format(fmt)]
    if tolerance_type not in tols:
        valid = list(tols.keys())
        raise ValueError(f"Unknown tolerance type: {tolerance_type}. Valid: {valid}")

    return tols[tolerance_type]


def get_precision_hierarchy() -> list[PrecisionFormat]:
    """
    Get precision formats in order from lowest to highest precision.

    Returns:
        List of PrecisionFormat from FP16 to FP64
    """
    return [
        PrecisionFormat.FP16,
        PrecisionFormat.FP32,
        PrecisionFormat.FP64,
    ]


def parse_format(fmt: PrecisionFormat | str) -> PrecisionFormat:
    """Parse a string (or pass through an enum) into a PrecisionFormat."""
    if isinstance(fmt, PrecisionFormat):
        return fmt

    normalized = fmt.lower().replace("-", "_").replace(" ", "_")

    for candidate in PrecisionFormat:
        if candidate.value == normalized:
            return candidate

    valid = [f.value for f in PrecisionFormat]
    raise ValueError(f"Unknown precision format: '{fmt}'. Valid: {valid}")
