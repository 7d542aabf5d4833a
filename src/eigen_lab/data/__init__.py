"""Data module for precision presets and verification tolerances."""

from eigen_lab.data.precision_types import (
    PrecisionFormat,
    PrecisionSpec,
    get_eps,
    get_precision_hierarchy,
    get_spec,
    get_tolerance,
    parse_format,
)

__all__ = [
    "PrecisionFormat",
    "PrecisionSpec",
    "get_eps",
    "get_precision_hierarchy",
    "get_spec",
    "get_tolerance",
    "parse_format",
]
