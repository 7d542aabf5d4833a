"""Tests for decomposition checks and timed runs."""

import math

import numpy as np
import pytest

from eigen_lab.algorithms.eigen import EigenFactors, decompose
from eigen_lab.algorithms.errors import ConvergenceError
from eigen_lab.algorithms.matrices import (
    create_complex_spectrum_matrix,
    create_linear_spectrum_matrix,
    create_random_matrix,
)
from eigen_lab.algorithms.verification import (
    DecompositionCheck,
    DecompositionTrace,
    check_decomposition,
    run_decomposition,
)
from eigen_lab.data.precision_types import PrecisionFormat, get_eps, get_tolerance

EPS = get_eps("fp64")


@pytest.fixture
def symmetric_matrix() -> np.ndarray:
    """16×16 exactly symmetric matrix."""
    return create_linear_spectrum_matrix(16, condition_number=100.0, seed=42)


@pytest.fixture
def general_matrix() -> np.ndarray:
    """16×16 nonsymmetric matrix with complex pairs."""
    return create_complex_spectrum_matrix(16, condition_number=100.0, seed=42)


class TestCheckDecomposition:
    """Tests for check_decomposition."""

    def test_symmetric_passes(self, symmetric_matrix: np.ndarray) -> None:
        """A correct symmetric decomposition passes every criterion."""
        factors = decompose(symmetric_matrix.copy(), EPS)
        check = check_decomposition(symmetric_matrix, factors, epsilon=EPS)

        assert isinstance(check, DecompositionCheck)
        assert check.passed
        assert check.sorted
        assert check.pairs_consistent
        assert check.orthogonality_error < check.orthogonality_tolerance

    def test_general_passes(self, general_matrix: np.ndarray) -> None:
        """A correct general decomposition passes; orthogonality is not applicable."""
        factors = decompose(general_matrix.copy(), EPS)
        check = check_decomposition(general_matrix, factors, epsilon=EPS)

        assert check.passed
        assert check.pairs_consistent
        assert math.isnan(check.orthogonality_error)
        assert check.orthogonality_passed

    def test_tolerance_scales_with_size(self, symmetric_matrix: np.ndarray) -> None:
        """Thresholds are factor * epsilon * n."""
        factors = decompose(symmetric_matrix.copy(), EPS)
        check = check_decomposition(symmetric_matrix, factors, epsilon=EPS)

        expected = get_tolerance("fp64", "residual_factor") * EPS * 16
        assert check.residual_tolerance == pytest.approx(expected)

    def test_wrong_eigenvalues_fail(self, symmetric_matrix: np.ndarray) -> None:
        """Perturbed eigenvalues produce a large residual."""
        factors = decompose(symmetric_matrix.copy(), EPS)
        wrong = EigenFactors(
            vectors=factors.vectors.copy(),
            real=factors.real + 1.0,
            imag=factors.imag.copy(),
            symmetric=True,
        )
        check = check_decomposition(symmetric_matrix, wrong, epsilon=EPS)

        assert not check.residual_passed
        assert not check.passed

    def test_inconsistent_pairs_detected(self) -> None:
        """A lone positive imaginary part breaks the pair encoding."""
        factors = EigenFactors(
            vectors=np.eye(2),
            real=np.array([1.0, 2.0]),
            imag=np.array([0.5, 0.0]),
            symmetric=False,
        )
        check = check_decomposition(np.eye(2), factors, epsilon=EPS)

        assert not check.pairs_consistent
        assert check.residual_norm == float("inf")
        assert not check.passed

    def test_unsorted_flag(self) -> None:
        """General-path output in storage order may be unsorted."""
        a = np.array([[3.0, 2.0], [0.0, 1.0]])
        factors = decompose(a.copy(), EPS)
        check = check_decomposition(a, factors, epsilon=EPS)

        assert not check.sorted
        assert check.passed

    def test_to_dict(self, symmetric_matrix: np.ndarray) -> None:
        """to_dict exposes metrics and the overall verdict."""
        factors = decompose(symmetric_matrix.copy(), EPS)
        data = check_decomposition(symmetric_matrix, factors, epsilon=EPS).to_dict()

        assert data["passed"] is True
        assert set(data) >= {"residual_norm", "orthogonality_error", "sorted"}


class TestRunDecomposition:
    """Tests for run_decomposition."""

    def test_input_untouched(self, general_matrix: np.ndarray) -> None:
        """The caller's matrix is cloned before decomposition."""
        original = general_matrix.copy()
        trace = run_decomposition(general_matrix)

        assert isinstance(trace, DecompositionTrace)
        assert np.array_equal(general_matrix, original)
        assert trace.check.passed

    def test_default_epsilon_from_precision(self, symmetric_matrix: np.ndarray) -> None:
        """epsilon defaults to the preset's machine epsilon."""
        trace = run_decomposition(symmetric_matrix, "fp32")

        assert trace.precision is PrecisionFormat.FP32
        assert trace.epsilon == get_eps("fp32")
        assert trace.check.passed

    def test_explicit_epsilon(self, symmetric_matrix: np.ndarray) -> None:
        """An explicit epsilon overrides the preset."""
        trace = run_decomposition(symmetric_matrix, epsilon=1e-12)
        assert trace.epsilon == 1e-12

    def test_timing_recorded(self, symmetric_matrix: np.ndarray) -> None:
        """Algorithm and check times are non-negative."""
        trace = run_decomposition(symmetric_matrix)
        assert trace.algorithm_time >= 0.0
        assert trace.check.check_time >= 0.0

    def test_to_dict(self, general_matrix: np.ndarray) -> None:
        """to_dict merges run metadata and check metrics."""
        data = run_decomposition(general_matrix).to_dict()

        assert data["matrix_size"] == 16
        assert data["symmetric"] is False
        assert data["precision"] == "fp64"
        assert data["complex_pairs"] == 8
        assert data["passed"] is True

    def test_convergence_failure_propagates(self) -> None:
        """ConvergenceError is not swallowed."""
        with pytest.raises(ConvergenceError):
            run_decomposition(create_random_matrix(10, seed=0), max_iterations=1)

    def test_unknown_precision(self, symmetric_matrix: np.ndarray) -> None:
        """Unknown presets raise ValueError."""
        with pytest.raises(ValueError, match="Unknown precision format"):
            run_decomposition(symmetric_matrix, "fp8")
