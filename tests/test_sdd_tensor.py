"""
Tests for the greedy tensor SDD driver.

These tests verify:
1. Result structure (term count, factor shapes, discrete entries)
2. Residual invariants (deflation identity, non-increasing rho)
3. Exact recovery of rank-one sign tensors
4. Stopping criteria and inner-loop convergence
5. Determinism and engine agreement
6. Parameter validation
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from sddtensor import (
    InvalidArgumentError,
    MissingInputError,
    NumpyContractionEngine,
    SDDConfig,
    extract_term,
    sdd_tensor,
)


@pytest.fixture
def random_tensor():
    np.random.seed(42)
    return np.random.randn(5, 4, 6)


@pytest.fixture
def rank_one_tensor():
    """2.5 · a o b o c with sign vectors whose sums are positive."""
    a = np.array([1.0, -1.0, 1.0])
    b = np.array([1.0, 1.0, -1.0, 1.0])
    c = np.array([-1.0, 1.0, 1.0])
    A = 2.5 * np.multiply.outer(np.multiply.outer(a, b), c)
    return A, (a, b, c)


class TestResultStructure:
    """Shapes and value sets of the result."""

    def test_term_count_bounded_by_kmax(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=5)
        assert result.n_terms <= 5
        # With rhomin=0 the floor is never reached
        assert result.n_terms == 5

    def test_factor_shapes(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=4)

        assert result.shape == (5, 4, 6)
        assert result.ndim == 3
        assert [F.shape for F in result.factors] == [(5, 4), (4, 4), (6, 4)]
        assert result.weights.shape == (4,)
        assert result.iterations.shape == (4,)
        assert result.rho.shape == (4,)
        assert result.residual.shape == (5, 4, 6)

    def test_entries_are_discrete(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=6)
        for F in result.factors:
            assert set(np.unique(F)).issubset({-1.0, 0.0, 1.0})

    def test_every_term_has_nonzeros(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=6)
        for F in result.factors:
            assert np.all(np.count_nonzero(F, axis=0) >= 1)

    def test_weights_non_negative(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=6)
        assert np.all(result.weights >= 0)

    def test_iterations_within_lmax(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=6, lmax=3)
        assert np.all(result.iterations >= 1)
        assert np.all(result.iterations <= 3)

    def test_input_not_modified(self, random_tensor):
        A = random_tensor.copy()
        sdd_tensor(random_tensor, kmax=3)
        assert_array_equal(random_tensor, A)

    def test_repr(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=2)
        assert repr(result) == "SDDResult(shape=(5, 4, 6), n_terms=2)"


class TestResidualInvariants:
    """Deflation and residual-norm trace."""

    def test_reconstruction_matches_deflation(self, random_tensor):
        """sum_k d_k expand(x_k) == A - residual."""
        result = sdd_tensor(random_tensor, kmax=8)
        assert_allclose(
            result.to_full(), random_tensor - result.residual, rtol=1e-12, atol=1e-12
        )

    def test_rho_non_increasing_and_non_negative(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=10)

        assert np.all(result.rho >= 0)
        assert np.all(np.diff(result.rho) <= 0)
        assert result.rho[0] <= result.initial_norm_sq

    def test_rho_tracks_residual_norm(self, random_tensor):
        """Each beta is exactly the squared-norm reduction of its term."""
        result = sdd_tensor(random_tensor, kmax=5)
        assert_allclose(result.rho[-1], np.sum(result.residual**2), rtol=1e-9)

    def test_initial_norm(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=1)
        assert_allclose(result.initial_norm_sq, np.sum(random_tensor**2), rtol=1e-12)

    def test_matrix_input(self):
        """Order-2 inputs give the matrix SDD X diag(d) Y'."""
        np.random.seed(0)
        A = np.random.randn(7, 5)
        result = sdd_tensor(A, kmax=6)
        X, d, Y = result.matrix_factors()

        assert X.shape == (7, 6)
        assert Y.shape == (5, 6)
        assert_allclose(X @ np.diag(d) @ Y.T, A - result.residual, rtol=1e-12, atol=1e-12)

    def test_matrix_factors_require_order_two(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=1)
        with pytest.raises(InvalidArgumentError, match="order-2"):
            result.matrix_factors()


class TestRankOneRecovery:
    """Exact rank-one sign tensors are recovered in one term."""

    def test_recovers_weight_and_vectors(self, rank_one_tensor):
        A, (a, b, c) = rank_one_tensor
        result = sdd_tensor(A, kmax=1)

        assert result.n_terms == 1
        assert_allclose(result.weights, [2.5], rtol=1e-12)
        assert_array_equal(result.factors[0][:, 0], a)
        assert_array_equal(result.factors[1][:, 0], b)
        assert_array_equal(result.factors[2][:, 0], c)

    def test_zero_residual(self, rank_one_tensor):
        A, _ = rank_one_tensor
        result = sdd_tensor(A, kmax=1)

        assert_allclose(result.residual, 0.0, atol=1e-12)
        assert_allclose(result.rho, [0.0], atol=1e-12)

    def test_second_pass_converges(self, rank_one_tensor):
        """The first pass already finds the term; the second sees no gain."""
        A, _ = rank_one_tensor
        result = sdd_tensor(A, kmax=1)
        assert_array_equal(result.iterations, [2])

    def test_term_accessor(self, rank_one_tensor):
        A, (a, b, c) = rank_one_tensor
        term = sdd_tensor(A, kmax=1).term(0)

        assert term.weight == pytest.approx(2.5)
        assert_allclose(term.to_full(), A, rtol=1e-12)

    def test_term_index_out_of_range(self, rank_one_tensor):
        A, _ = rank_one_tensor
        result = sdd_tensor(A, kmax=1)
        with pytest.raises(InvalidArgumentError, match="Term index"):
            result.term(1)

    def test_signed_matrix(self):
        """Order-2 rank-one sign matrix with negative weight absorbed in x."""
        x = np.array([1.0, -1.0, 1.0, 1.0])
        y = np.array([1.0, 1.0, -1.0])
        A = -3.0 * np.outer(x, y)

        result = sdd_tensor(A, kmax=1)

        assert_allclose(result.weights, [3.0], rtol=1e-12)
        assert_allclose(result.to_full(), A, rtol=1e-12)


class TestStoppingCriteria:
    """Outer-loop stopping and zero residuals."""

    def test_rhomin_stops_early(self, rank_one_tensor):
        A, _ = rank_one_tensor
        result = sdd_tensor(A, kmax=5, rhomin=1e-6)

        assert result.n_terms == 1

    def test_rhomin_is_a_norm(self, random_tensor):
        """rhomin is compared against the residual norm, not its square."""
        norm = np.sqrt(np.sum(random_tensor**2))
        result = sdd_tensor(random_tensor, kmax=10, rhomin=norm)

        assert result.n_terms == 1

    def test_rhomin_not_reached_warns(self, random_tensor):
        with pytest.warns(UserWarning, match="not reached"):
            sdd_tensor(random_tensor, kmax=2, rhomin=1e-12)

    def test_zero_residual_continues_with_zero_weights(self, rank_one_tensor):
        """Without a floor, terms after an exact fit have zero weight."""
        A, _ = rank_one_tensor
        result = sdd_tensor(A, kmax=3, lmax=4)

        assert result.n_terms == 3
        assert_allclose(result.weights[1:], 0.0, atol=1e-12)
        # beta stays zero, so the inner loop never reports convergence
        assert_array_equal(result.iterations[1:], [4, 4])

    def test_zero_tensor(self):
        result = sdd_tensor(np.zeros((2, 3, 2)), kmax=2)

        assert_array_equal(result.weights, [0.0, 0.0])
        assert_array_equal(result.rho, [0.0, 0.0])
        # All-zero scores keep the full support
        for F in result.factors:
            assert_array_equal(F, np.ones_like(F))


class TestExtractTerm:
    """Inner loop in isolation."""

    def test_info_fields(self, random_tensor):
        x, info = extract_term(random_tensor, lmax=10, alphamin=0.01)

        assert len(x) == 3
        assert set(info) == {"beta", "axsqr", "nnz", "iterations", "converged"}
        assert info["nnz"] == [int(np.count_nonzero(v)) for v in x]

    def test_beta_is_projection_energy(self, random_tensor):
        """beta = <R, x>^2 / ||x||^2 for the returned vectors."""
        x, info = extract_term(random_tensor)
        inner = np.einsum("ijk,i,j,k->", random_tensor, *x)
        norm_sq = np.prod([np.dot(v, v) for v in x])

        assert_allclose(info["axsqr"], inner**2, rtol=1e-10)
        assert_allclose(info["beta"], inner**2 / norm_sq, rtol=1e-10)

    def test_lmax_one_never_converges(self, random_tensor):
        _, info = extract_term(random_tensor, lmax=1)
        assert info["iterations"] == 1
        assert info["converged"] is False

    def test_residual_not_modified(self, random_tensor):
        R = random_tensor.copy()
        extract_term(random_tensor)
        assert_array_equal(random_tensor, R)

    def test_large_alphamin_stops_after_two_passes(self, random_tensor):
        _, info = extract_term(random_tensor, lmax=10, alphamin=1e6)
        assert info["iterations"] == 2
        assert info["converged"] is True


class TestDeterminism:
    """Repeated runs and engines."""

    def test_bit_identical_runs(self, random_tensor):
        first = sdd_tensor(random_tensor, kmax=6)
        second = sdd_tensor(random_tensor, kmax=6)

        assert_array_equal(first.weights, second.weights)
        for F1, F2 in zip(first.factors, second.factors):
            assert_array_equal(F1, F2)
        assert_array_equal(first.iterations, second.iterations)
        assert_array_equal(first.rho, second.rho)
        assert_array_equal(first.residual, second.residual)

    def test_numba_engine_agrees(self, random_tensor):
        ref = sdd_tensor(random_tensor, kmax=4, engine="numpy")
        fast = sdd_tensor(random_tensor, kmax=4, engine="numba")

        for F1, F2 in zip(ref.factors, fast.factors):
            assert_array_equal(F1, F2)
        assert_allclose(fast.weights, ref.weights, rtol=1e-10)
        assert_allclose(fast.rho, ref.rho, rtol=1e-8, atol=1e-10)

    def test_engine_instance(self, random_tensor):
        ref = sdd_tensor(random_tensor, kmax=2)
        custom = sdd_tensor(random_tensor, kmax=2, engine=NumpyContractionEngine())
        assert_array_equal(ref.weights, custom.weights)


class TestVerbose:
    """Progress output."""

    def test_prints_one_line_per_term(self, random_tensor, capsys):
        sdd_tensor(random_tensor, kmax=3, verbose=True)
        out = capsys.readouterr().out

        assert "Term 1:" in out
        assert "Term 3:" in out
        assert "Term 4:" not in out

    def test_silent_by_default(self, random_tensor, capsys):
        sdd_tensor(random_tensor, kmax=2)
        assert capsys.readouterr().out == ""


class TestValidation:
    """Parameter checks."""

    def test_missing_input(self):
        with pytest.raises(MissingInputError, match="required"):
            sdd_tensor(None)

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"kmax": 0}, "kmax must be >= 1"),
            ({"kmax": 2.5}, "kmax must be an integer"),
            ({"kmax": True}, "kmax must be an integer"),
            ({"lmax": 0}, "lmax must be >= 1"),
            ({"alphamin": -0.1}, "alphamin"),
            ({"alphamin": float("nan")}, "alphamin"),
            ({"rhomin": -1.0}, "rhomin"),
            ({"engine": "gpu"}, "engine"),
        ],
    )
    def test_invalid_parameters(self, random_tensor, kwargs, match):
        with pytest.raises(InvalidArgumentError, match=match):
            sdd_tensor(random_tensor, **kwargs)

    def test_order_one_rejected(self):
        with pytest.raises(InvalidArgumentError, match="order >= 2"):
            sdd_tensor(np.ones(4))

    def test_config_defaults(self):
        config = SDDConfig()
        assert config.kmax == 10
        assert config.alphamin == 0.01
        assert config.lmax == 10
        assert config.rhomin == 0.0
        assert config.engine == "numpy"
        assert config.verbose is False

    def test_numpy_integer_counts_accepted(self, random_tensor):
        result = sdd_tensor(random_tensor, kmax=np.int64(2), lmax=np.int32(3))
        assert result.n_terms == 2
