"""Tests for the eigendecomposition dispatcher and result accessors."""

import logging

import numpy as np
import pytest

from eigen_lab.algorithms.eigen import (
    DEFAULT_MAX_ITERATIONS,
    EigenFactors,
    block_diagonal,
    decompose,
    hessenberg,
    tridiagonal,
)
from eigen_lab.algorithms.errors import ConvergenceError, EigenError, ShapeError
from eigen_lab.algorithms.matrices import (
    create_complex_spectrum_matrix,
    create_linear_spectrum_matrix,
    create_random_matrix,
)

EPS = np.finfo(np.float64).eps


def relative_residual(a: np.ndarray, factors: EigenFactors) -> float:
    """||A V - V D||_F / (||A||_F ||V||_F)."""
    v = factors.vectors
    r = a @ v - v @ factors.block_diagonal()
    return float(np.linalg.norm(r) / (np.linalg.norm(a) * np.linalg.norm(v)))


@pytest.fixture
def random_matrix() -> np.ndarray:
    """8×8 nonsymmetric Gaussian matrix."""
    return create_random_matrix(8, seed=7)


@pytest.fixture
def symmetric_matrix() -> np.ndarray:
    """8×8 exactly symmetric matrix with eigenvalues 1..8."""
    return create_linear_spectrum_matrix(8, condition_number=8.0, seed=7)


class TestConcreteCases:
    """Small matrices with known decompositions."""

    def test_symmetric_2x2(self) -> None:
        """[[2,1],[1,2]] has eigenvalues 1, 3 with vectors (1,-1) and (1,1)."""
        factors = decompose(np.array([[2.0, 1.0], [1.0, 2.0]]), EPS)

        assert factors.symmetric
        assert np.allclose(factors.real, [1.0, 3.0], atol=1e-14)
        assert np.all(factors.imag == 0.0)

        v = factors.vectors
        s = 1.0 / np.sqrt(2.0)
        assert np.allclose(np.abs(v), s, atol=1e-14)
        assert np.isclose(v[0, 0], -v[1, 0])
        assert np.isclose(v[0, 1], v[1, 1])

    def test_rotation_gives_conjugate_pair(self) -> None:
        """[[0,-1],[1,0]] has eigenvalues ±i, positive imaginary part first."""
        a = np.array([[0.0, -1.0], [1.0, 0.0]])
        factors = decompose(a.copy(), EPS)

        assert not factors.symmetric
        assert np.allclose(factors.real, [0.0, 0.0], atol=1e-15)
        assert np.allclose(factors.imag, [1.0, -1.0], atol=1e-15)
        assert relative_residual(a, factors) < 1e-15

    def test_identity(self) -> None:
        """3×3 identity: eigenvalues all 1 and A = V D V^T."""
        a = np.eye(3)
        factors = decompose(a.copy(), EPS)

        assert np.array_equal(factors.real, [1.0, 1.0, 1.0])
        v = factors.vectors
        assert np.allclose(v @ np.diag(factors.real) @ v.T, a)

    def test_diagonal_sorted_with_permuted_basis(self) -> None:
        """diag(5,3,1) gives ascending eigenvalues and permuted basis vectors."""
        factors = decompose(np.diag([5.0, 3.0, 1.0]), EPS)

        assert np.array_equal(factors.real, [1.0, 3.0, 5.0])
        expected = np.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
        assert np.array_equal(np.abs(factors.vectors), expected)

    def test_upper_triangular(self) -> None:
        """[[1,2],[0,3]] keeps storage order and has exact eigenvectors."""
        factors = decompose(np.array([[1.0, 2.0], [0.0, 3.0]]), EPS)

        assert not factors.symmetric
        assert np.array_equal(factors.real, [1.0, 3.0])
        assert np.array_equal(factors.imag, [0.0, 0.0])
        assert np.array_equal(factors.vectors, [[1.0, 1.0], [0.0, 1.0]])

    def test_defective_matrix(self) -> None:
        """A Jordan block still satisfies A V = V D although V is singular."""
        a = np.array([[0.0, 1.0], [0.0, 0.0]])
        factors = decompose(a.copy(), EPS)

        assert np.array_equal(factors.real, [0.0, 0.0])
        assert relative_residual(a, factors) < 10 * EPS
        assert abs(np.linalg.det(factors.vectors)) < 1e-12

    def test_single_element(self) -> None:
        """1×1 matrix is its own eigenvalue with vector [1]."""
        factors = decompose(np.array([[-4.5]]), EPS)

        assert np.array_equal(factors.real, [-4.5])
        assert np.array_equal(factors.vectors, [[1.0]])

    def test_empty(self) -> None:
        """0×0 input gives empty factors."""
        factors = decompose(np.zeros((0, 0)), EPS)

        assert factors.size == 0
        assert factors.vectors.shape == (0, 0)
        assert factors.real.shape == (0,)

    def test_cyclic_permutation(self) -> None:
        """The 4-cycle needs exceptional shifts but converges under the default cap."""
        a = np.roll(np.eye(4), 1, axis=0)
        factors = decompose(a.copy(), EPS)

        eigenvalues = np.sort_complex(factors.eigenvalues)
        assert np.allclose(eigenvalues, [-1.0, -1j, 1j, 1.0], atol=1e-12)
        assert relative_residual(a, factors) < 1e-13


class TestSymmetricPath:
    """Properties of the tridiagonal QL path."""

    @pytest.mark.parametrize("n", [2, 5, 16, 40])
    def test_orthogonal_sorted_reconstruction(self, n: int) -> None:
        """V orthogonal, d ascending, A = V diag(d) V^T."""
        a = create_linear_spectrum_matrix(n, condition_number=50.0, seed=n)
        factors = decompose(a.copy(), EPS)
        v, d = factors.vectors, factors.real

        assert factors.symmetric
        assert np.all(np.diff(d) >= 0)
        assert np.allclose(v.T @ v, np.eye(n), atol=100 * n * EPS)
        assert np.allclose(v @ np.diag(d) @ v.T, a, atol=100 * n * EPS * 50.0)
        assert np.allclose(d, np.linspace(1.0, 50.0, n), rtol=1e-12)

    def test_repeated_eigenvalues(self) -> None:
        """Multiplicity is preserved and eigenvectors stay orthonormal."""
        rng = np.random.default_rng(3)
        q, _ = np.linalg.qr(rng.standard_normal((6, 6)))
        a = q @ np.diag([2.0, 2.0, 2.0, 5.0, 5.0, 9.0]) @ q.T
        a = 0.5 * (a + a.T)
        factors = decompose(a, EPS)

        assert np.allclose(factors.real, [2.0, 2.0, 2.0, 5.0, 5.0, 9.0], atol=1e-13)
        v = factors.vectors
        assert np.allclose(v.T @ v, np.eye(6), atol=1e-13)


class TestGeneralPath:
    """Properties of the Hessenberg QR path."""

    @pytest.mark.parametrize("n", [3, 7, 16, 40])
    def test_residual(self, n: int) -> None:
        """A V = V D for random matrices."""
        a = create_random_matrix(n, seed=n)
        factors = decompose(a.copy(), EPS)

        assert not factors.symmetric
        assert relative_residual(a, factors) < 100 * n * EPS

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_pair_encoding(self, seed: int) -> None:
        """e[i] > 0 implies e[i+1] == -e[i] and d[i+1] == d[i]."""
        factors = decompose(create_random_matrix(12, seed=seed), EPS)
        d, e = factors.real, factors.imag

        i = 0
        while i < factors.size:
            assert e[i] >= 0
            if e[i] > 0:
                assert e[i + 1] == -e[i]
                assert d[i + 1] == d[i]
                i += 2
            else:
                i += 1

    def test_prescribed_complex_spectrum(self) -> None:
        """Eigenvalues of Q B Q^T match the blocks of B."""
        a = create_complex_spectrum_matrix(8, condition_number=4.0, seed=11)
        factors = decompose(a.copy(), EPS)

        real_parts = np.linspace(1.0, 4.0, 4)
        expected = np.concatenate([real_parts + 0.5j * real_parts, real_parts - 0.5j * real_parts])
        assert np.allclose(np.sort_complex(factors.eigenvalues), np.sort_complex(expected), atol=1e-11)
        assert np.count_nonzero(factors.imag > 0) == 4

    def test_complex_vectors(self, random_matrix: np.ndarray) -> None:
        """Each complex column is an eigenvector of the matching eigenvalue."""
        factors = decompose(random_matrix.copy(), EPS)
        cv = factors.complex_vectors
        lam = factors.eigenvalues

        residual = random_matrix @ cv - cv * lam
        assert np.linalg.norm(residual) < 1e3 * EPS * np.linalg.norm(random_matrix) * np.linalg.norm(cv)


class TestOwnership:
    """Input consumption and argument validation."""

    def test_input_consumed_by_default(self, random_matrix: np.ndarray) -> None:
        """The float64 input becomes working storage."""
        original = random_matrix.copy()
        decompose(random_matrix, EPS)
        assert not np.array_equal(random_matrix, original)

    def test_overwrite_false_preserves_input(self, random_matrix: np.ndarray) -> None:
        """overwrite_a=False leaves the input untouched."""
        original = random_matrix.copy()
        decompose(random_matrix, EPS, overwrite_a=False)
        assert np.array_equal(random_matrix, original)

    def test_non_float64_input_is_copied(self) -> None:
        """Integer input is converted, so the caller's array is untouched."""
        a = np.array([[2, 1], [1, 2]])
        factors = decompose(a, EPS)
        assert np.array_equal(a, [[2, 1], [1, 2]])
        assert np.allclose(factors.real, [1.0, 3.0])

    def test_nested_list_input(self) -> None:
        """Plain lists are accepted."""
        factors = decompose([[0.0, -1.0], [1.0, 0.0]], EPS)
        assert np.allclose(factors.imag, [1.0, -1.0])

    @pytest.mark.parametrize(
        "shape", [(2, 3), (3, 2), (4,), (2, 2, 2)]
    )
    def test_non_square_raises_without_mutation(self, shape: tuple[int, ...]) -> None:
        """Non-square input raises ShapeError before anything is written."""
        a = np.arange(np.prod(shape), dtype=np.float64).reshape(shape)
        original = a.copy()
        with pytest.raises(ShapeError, match="square"):
            decompose(a, EPS)
        assert np.array_equal(a, original)

    def test_shape_error_is_value_error(self) -> None:
        """ShapeError can be caught as ValueError or EigenError."""
        with pytest.raises(ValueError):
            decompose(np.zeros((2, 3)), EPS)
        with pytest.raises(EigenError):
            decompose(np.zeros((2, 3)), EPS)

    @pytest.mark.parametrize("epsilon", [0.0, -1e-16, float("nan"), float("inf")])
    def test_invalid_epsilon(self, epsilon: float) -> None:
        """epsilon must be positive and finite."""
        with pytest.raises(ValueError, match="epsilon"):
            decompose(np.eye(2), epsilon)

    def test_invalid_max_iterations(self) -> None:
        """max_iterations must be None or at least 1."""
        with pytest.raises(ValueError, match="max_iterations"):
            decompose(np.eye(2), EPS, max_iterations=0)

    def test_results_are_read_only(self, symmetric_matrix: np.ndarray) -> None:
        """Returned arrays cannot be written."""
        factors = decompose(symmetric_matrix, EPS)
        with pytest.raises(ValueError):
            factors.real[0] = 0.0
        with pytest.raises(ValueError):
            factors.vectors[0, 0] = 0.0

    def test_consumed_symmetric_input_becomes_read_only(self) -> None:
        """On the symmetric path the overwritten input is the frozen V."""
        a = np.array([[2.0, 1.0], [1.0, 2.0]])
        factors = decompose(a, EPS)

        assert factors.vectors is a
        assert not a.flags.writeable

    def test_copied_input_stays_writeable(self) -> None:
        """overwrite_a=False leaves the caller's array writeable."""
        a = np.array([[2.0, 1.0], [1.0, 2.0]])
        decompose(a, EPS, overwrite_a=False)
        assert a.flags.writeable


class TestIterationCap:
    """Typed failure when a solver exceeds its sweep budget."""

    def test_default_cap(self) -> None:
        """Default budget sits above the exceptional-shift iterations."""
        assert DEFAULT_MAX_ITERATIONS == 50

    def test_symmetric_cap(self, symmetric_matrix: np.ndarray) -> None:
        """One sweep is not enough for the QL solver."""
        with pytest.raises(ConvergenceError) as excinfo:
            decompose(symmetric_matrix, EPS, max_iterations=1)
        assert excinfo.value.stage == "tridiagonal QL"
        assert excinfo.value.iterations == 1

    def test_general_cap(self, random_matrix: np.ndarray) -> None:
        """One sweep is not enough for the QR solver."""
        with pytest.raises(ConvergenceError) as excinfo:
            decompose(random_matrix, EPS, max_iterations=1)
        assert excinfo.value.stage == "Hessenberg QR"
        assert 0 <= excinfo.value.index < 8

    def test_convergence_error_is_runtime_error(self, random_matrix: np.ndarray) -> None:
        """ConvergenceError can be caught as RuntimeError."""
        with pytest.raises(RuntimeError, match="failed to converge"):
            decompose(random_matrix, EPS, max_iterations=1)

    def test_unbounded(self, random_matrix: np.ndarray) -> None:
        """max_iterations=None never gives up."""
        a = random_matrix.copy()
        factors = decompose(random_matrix, EPS, max_iterations=None)
        assert relative_residual(a, factors) < 1e-13


class TestBlockDiagonal:
    """Tests for block_diagonal."""

    def test_diagonal_matrix_reproduced(self) -> None:
        """Factors of a sorted diagonal matrix rebuild it exactly."""
        a = np.diag([1.0, 2.0, 3.0])
        factors = decompose(a.copy(), EPS)
        assert np.array_equal(block_diagonal(factors), a)

    def test_pair_block_layout(self) -> None:
        """A pair λ ± iμ becomes [[λ, μ], [-μ, λ]]."""
        factors = EigenFactors(
            vectors=np.eye(3),
            real=np.array([2.0, 2.0, 7.0]),
            imag=np.array([0.5, -0.5, 0.0]),
            symmetric=False,
        )
        expected = np.array([[2.0, 0.5, 0.0], [-0.5, 2.0, 0.0], [0.0, 0.0, 7.0]])
        assert np.array_equal(factors.block_diagonal(), expected)

    def test_mismatched_lengths_raise(self) -> None:
        """len(d) != len(e) raises ShapeError."""
        factors = EigenFactors(
            vectors=np.eye(2),
            real=np.array([1.0, 2.0]),
            imag=np.array([0.0]),
            symmetric=True,
        )
        with pytest.raises(ShapeError):
            block_diagonal(factors)

    @pytest.mark.parametrize(
        "imag",
        [
            [-0.5, 0.0, 0.0],
            [0.0, 0.0, 0.5],
            [0.5, -0.25, 0.0],
            [0.5, -0.5, -0.5],
        ],
    )
    def test_unpaired_imaginary_parts_raise(self, imag: list[float]) -> None:
        """A nonzero imaginary part without its conjugate partner is rejected."""
        factors = EigenFactors(
            vectors=np.eye(3),
            real=np.array([1.0, 1.0, 1.0]),
            imag=np.array(imag),
            symmetric=False,
        )
        with pytest.raises(ValueError, match="Unpaired imaginary part"):
            block_diagonal(factors)


class TestOverflowControl:
    """Back-substitution rescales eigenvectors that would grow past 1/sqrt(eps)."""

    def test_real_vector_rescaled(self) -> None:
        """A large coupling above a real eigenvalue is normalized away."""
        a = np.array([[1.0, 1e9], [0.0, 2.0]])
        factors = decompose(a.copy(), EPS)
        v = factors.vectors

        assert np.array_equal(factors.real, [1.0, 2.0])
        assert np.abs(v).max() <= 1.0
        assert np.isclose(abs(v[1, 1]), 1e-9, rtol=1e-6)
        assert relative_residual(a, factors) < 1e3 * 2 * EPS

    def test_complex_vector_rescaled(self) -> None:
        """A large coupling above a conjugate pair is normalized away."""
        a = np.array([[1.0, 1e9, 1e9], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]])
        factors = decompose(a.copy(), EPS)
        v = factors.vectors

        assert np.allclose(factors.real, [1.0, 0.0, 0.0], atol=1e-12)
        assert np.allclose(factors.imag, [0.0, 1.0, -1.0], atol=1e-12)
        assert np.abs(v).max() <= 1.0
        assert np.isclose(np.abs(v[1:, 1:]).max(), 1e-9, rtol=1e-6)
        assert relative_residual(a, factors) < 1e3 * 3 * EPS


class TestIntermediateForms:
    """Tests for tridiagonal() and hessenberg()."""

    def test_tridiagonal_reconstructs(self, symmetric_matrix: np.ndarray) -> None:
        """A = Q T Q^T with Q orthogonal; input untouched."""
        original = symmetric_matrix.copy()
        form = tridiagonal(symmetric_matrix)

        assert np.array_equal(symmetric_matrix, original)
        assert form.off_diagonal.shape == (7,)
        q = form.q
        assert np.allclose(q.T @ q, np.eye(8), atol=1e-13)
        assert np.allclose(q @ form.matrix() @ q.T, original, atol=1e-12)

    def test_tridiagonal_rejects_nonsymmetric(self, random_matrix: np.ndarray) -> None:
        """Nonsymmetric input raises ValueError."""
        with pytest.raises(ValueError, match="symmetric"):
            tridiagonal(random_matrix)

    def test_hessenberg_reconstructs(self, random_matrix: np.ndarray) -> None:
        """A = Q H Q^T with H upper Hessenberg; input untouched."""
        original = random_matrix.copy()
        form = hessenberg(random_matrix)

        assert np.array_equal(random_matrix, original)
        assert np.array_equal(np.tril(form.h, -2), np.zeros((8, 8)))
        q = form.q
        assert np.allclose(q.T @ q, np.eye(8), atol=1e-13)
        assert np.allclose(q @ form.h @ q.T, original, atol=1e-12)

    def test_hessenberg_non_square(self) -> None:
        """Non-square input raises ShapeError."""
        with pytest.raises(ShapeError):
            hessenberg(np.zeros((3, 4)))


class TestLogging:
    """The chosen path is logged at DEBUG."""

    def test_path_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Both paths announce themselves."""
        with caplog.at_level(logging.DEBUG, logger="eigen_lab.algorithms.eigen"):
            decompose(np.eye(2), EPS)
            decompose(np.array([[1.0, 2.0], [0.0, 3.0]]), EPS)

        messages = [r.getMessage() for r in caplog.records]
        assert any("symmetric path" in m for m in messages)
        assert any("general path" in m for m in messages)
