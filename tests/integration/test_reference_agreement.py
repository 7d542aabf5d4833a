"""Integration tests against numpy's LAPACK-backed eigensolvers.

These tests run the full decomposition on every generated matrix kind and
compare the spectrum with np.linalg.eigvalsh / np.linalg.eigvals. Any change
to numerical behavior that moves an eigenvalue will cause them to fail.
"""

import numpy as np
import pytest

from eigen_lab.algorithms.eigen import decompose
from eigen_lab.algorithms.matrices import SPECTRUM_TYPES, create_experiment
from eigen_lab.algorithms.verification import run_decomposition
from eigen_lab.data.precision_types import get_eps

# Test parameters
MATRIX_SIZES = [5, 32, 80]
CONDITION_NUMBER = 100.0
SEED = 42

# Spectrum agreement, relative to the spectral radius
TOLERANCES = {
    "fp64": 1e-9,
    "fp32": 1e-5,
}


def sort_spectrum(values: np.ndarray) -> np.ndarray:
    """Sort eigenvalues by (real, imag)."""
    return values[np.lexsort((values.imag, values.real))]


class TestSpectrumAgreement:
    """Eigenvalues agree with numpy for every matrix kind."""

    @pytest.mark.parametrize("n", MATRIX_SIZES)
    @pytest.mark.parametrize("spectrum_type", SPECTRUM_TYPES)
    def test_fp64(self, spectrum_type: str, n: int) -> None:
        """Machine-epsilon tolerance reproduces numpy's spectrum."""
        setup = create_experiment(
            n, CONDITION_NUMBER, seed=SEED, spectrum_type=spectrum_type
        )
        factors = decompose(setup.matrix.copy(), get_eps("fp64"))

        actual = sort_spectrum(factors.eigenvalues)
        radius = setup.fingerprint.spectral_radius
        assert np.allclose(
            actual, setup.reference_eigenvalues, rtol=0.0, atol=TOLERANCES["fp64"] * radius
        )

    @pytest.mark.parametrize("n", MATRIX_SIZES)
    @pytest.mark.parametrize("spectrum_type", ["linear", "geometric"])
    def test_fp32_symmetric(self, spectrum_type: str, n: int) -> None:
        """The fp32 preset stops earlier but stays within its own precision."""
        setup = create_experiment(
            n, CONDITION_NUMBER, seed=SEED, spectrum_type=spectrum_type
        )
        factors = decompose(setup.matrix.copy(), get_eps("fp32"))

        actual = factors.real
        expected = setup.reference_eigenvalues.real
        radius = setup.fingerprint.spectral_radius
        assert np.allclose(actual, expected, rtol=0.0, atol=TOLERANCES["fp32"] * radius)


class TestVerifiedRuns:
    """Every generated matrix passes its own verification."""

    @pytest.mark.parametrize("spectrum_type", SPECTRUM_TYPES)
    def test_passes(self, spectrum_type: str) -> None:
        """run_decomposition reports success for each kind."""
        setup = create_experiment(48, CONDITION_NUMBER, seed=SEED, spectrum_type=spectrum_type)
        trace = run_decomposition(setup.matrix, "fp64")

        assert trace.check.passed
        assert trace.factors.symmetric is setup.fingerprint.symmetric

    def test_reproducible(self) -> None:
        """Identical inputs give bit-identical factors."""
        setup = create_experiment(40, CONDITION_NUMBER, seed=SEED, spectrum_type="random")
        first = decompose(setup.matrix.copy(), get_eps("fp64"))
        second = decompose(setup.matrix.copy(), get_eps("fp64"))

        assert np.array_equal(first.real, second.real)
        assert np.array_equal(first.imag, second.imag)
        assert np.array_equal(first.vectors, second.vectors)
