"""
Greedy semidiscrete decomposition (SDD) of n-dimensional tensors.

The decomposition approximates a tensor A of order n by

    A ≈ sum_{k=1}^K d_k · x_1^(k) o x_2^(k) o ... o x_n^(k)

with every mode vector x_j^(k) in {-1, 0, 1}^{m_j}. For n = 2 this is the
matrix SDD A ≈ X diag(d) Y'.

Terms are extracted one at a time (outer loop). Each term is refined by
alternating over the modes (inner loop): with the other vectors fixed, the
best vector for mode j solves a discrete subproblem on the scores
s = contract_except(R, x, j), where R is the current residual. After a term
is found, its expansion is subtracted from the residual (deflation).

References:
- Kolda & O'Leary (1998), "A semidiscrete matrix decomposition for latent
  semantic indexing in information retrieval", ACM TOIS
- Kolda & O'Leary (2000), "Algorithm 805: Computation and uses of the
  semidiscrete matrix decomposition", ACM TOMS
"""

import math
import warnings
from dataclasses import dataclass
from typing import Iterator, Optional, Union

import numpy as np

from sddtensor.core.engines import ContractionEngine, get_engine
from sddtensor.core.expand import expand, reconstruct
from sddtensor.core.subproblem import solve_mode
from sddtensor.exceptions import InvalidArgumentError
from sddtensor.utils.shapes import canonicalize_tensor, stack_factors, term_vectors


@dataclass
class SDDConfig:
    """
    Configuration for the tensor SDD solver.

    Parameters
    ----------
    kmax : int, default=10
        Maximum number of terms
    alphamin : float, default=0.01
        Inner-loop tolerance: refinement of a term stops once the relative
        improvement of its quality score drops to alphamin or below
    lmax : int, default=10
        Maximum number of inner passes per term
    rhomin : float, default=0.0
        Residual Frobenius-norm floor: stop once ||A - B||_F < rhomin
        (compared as squared norms)
    verbose : bool, default=False
        Print one progress line per term
    engine : str or ContractionEngine, default='numpy'
        Contraction backend: 'numpy', 'numba' or an engine instance
    """

    kmax: int = 10
    alphamin: float = 0.01
    lmax: int = 10
    rhomin: float = 0.0
    verbose: bool = False
    engine: Union[str, ContractionEngine] = "numpy"

    def __post_init__(self):
        """Validate configuration."""
        for name in ("kmax", "lmax"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidArgumentError(f"{name} must be >= 1, got {value}")
        if not self.alphamin >= 0:
            raise InvalidArgumentError(f"alphamin must be >= 0, got {self.alphamin}")
        if not self.rhomin >= 0:
            raise InvalidArgumentError(f"rhomin must be >= 0, got {self.rhomin}")
        if isinstance(self.engine, str) and self.engine not in ("numpy", "numba"):
            raise InvalidArgumentError(
                f"engine must be 'numpy' or 'numba', got '{self.engine}'"
            )


@dataclass
class SDDTerm:
    """One rank-one term d · x_1 o ... o x_n."""

    weight: float
    vectors: list[np.ndarray]

    def to_full(self) -> np.ndarray:
        """Full tensor of this term."""
        return self.weight * expand(self.vectors)


@dataclass
class SDDResult:
    """
    Result of a tensor SDD.

    Attributes
    ----------
    weights : np.ndarray
        Term weights d, shape (K,)
    factors : list of np.ndarray
        One matrix per mode, factors[j] has shape (m_j, K) with entries in
        {-1, 0, 1}; column k belongs to term k
    iterations : np.ndarray
        Inner passes used by each term, shape (K,)
    rho : np.ndarray
        Residual squared-norm estimate after each term, shape (K,)
    initial_norm_sq : float
        Squared Frobenius norm of the input tensor
    residual : np.ndarray
        Residual tensor after the last term
    """

    weights: np.ndarray
    factors: list[np.ndarray]
    iterations: np.ndarray
    rho: np.ndarray
    initial_norm_sq: float
    residual: np.ndarray

    @property
    def n_terms(self) -> int:
        """Number of committed terms (K)."""
        return int(self.weights.shape[0])

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the decomposed tensor."""
        return tuple(F.shape[0] for F in self.factors)

    @property
    def ndim(self) -> int:
        """Order of the decomposed tensor."""
        return len(self.factors)

    def term(self, k: int) -> SDDTerm:
        """Term k (0-based)."""
        if not 0 <= k < self.n_terms:
            raise InvalidArgumentError(f"Term index must be in [0, {self.n_terms}), got {k}")
        return SDDTerm(
            weight=float(self.weights[k]),
            vectors=[v.copy() for v in term_vectors(self.factors, k)],
        )

    def terms(self) -> Iterator[SDDTerm]:
        """Iterate over the terms in extraction order."""
        for k in range(self.n_terms):
            yield self.term(k)

    def to_full(self, n_terms: Optional[int] = None) -> np.ndarray:
        """Approximation built from the first n_terms terms (default: all)."""
        return reconstruct(self.weights, self.factors, n_terms)

    def matrix_factors(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Matrix SDD factors (X, d, Y) with A ≈ X @ diag(d) @ Y.T.

        Only defined for order-2 inputs.
        """
        if self.ndim != 2:
            raise InvalidArgumentError(
                f"Matrix factors require an order-2 tensor, got order {self.ndim}"
            )
        return self.factors[0], self.weights, self.factors[1]

    def __repr__(self) -> str:
        """String representation showing shape and number of terms."""
        return f"SDDResult(shape={self.shape}, n_terms={self.n_terms})"


def extract_term(
    R: np.ndarray,
    lmax: int = 10,
    alphamin: float = 0.01,
    engine: Optional[ContractionEngine] = None,
) -> tuple[list[np.ndarray], dict]:
    """
    Find one SDD term of a residual tensor by alternating over the modes.

    Starting from all-ones vectors, each pass updates modes 0..n-1 in order
    and every update uses the vectors already updated in the same pass
    (Gauss-Seidel). After each pass the quality score

        beta = f · nnz_last / prod(nnz)

    is computed, where f is the objective of the last mode's subproblem and
    nnz the nonzero counts of all modes. From the second pass on, refinement
    stops once (beta - beta_prev) / beta_prev <= alphamin.

    Parameters
    ----------
    R : np.ndarray
        Residual tensor, shape (m_1, ..., m_n); not modified
    lmax : int, default=10
        Maximum number of passes
    alphamin : float, default=0.01
        Relative-improvement tolerance
    engine : ContractionEngine, optional
        Contraction backend (default: NumPy)

    Returns
    -------
    x : list of np.ndarray
        Mode vectors of the term, entries in {-1, 0, 1}
    info : dict
        'beta' (squared-norm reduction of the term), 'axsqr'
        (<R, x_1 o ... o x_n>^2), 'nnz' (nonzeros per mode), 'iterations',
        'converged'

    Notes
    -----
    When beta_prev is zero the relative improvement is undefined and the
    pass is not treated as converged.
    """
    if engine is None:
        engine = get_engine()

    n = R.ndim
    m = R.shape
    x = [np.ones(m_j) for m_j in m]
    nnz = list(m)

    beta_prev = 0.0
    converged = False
    f = 0.0
    axsqr = 0.0
    beta = 0.0

    for sweep in range(1, lmax + 1):
        for j in range(n):
            s = engine.contract_except(R, x, j)
            x[j], nnz[j], f = solve_mode(s, m[j])

        axsqr = f * nnz[n - 1]
        beta = axsqr / math.prod(nnz)

        if sweep > 1:
            if beta_prev > 0:
                alpha = (beta - beta_prev) / beta_prev
            else:
                alpha = np.inf
            if alpha <= alphamin:
                converged = True
                break

        beta_prev = beta

    info = {
        "beta": beta,
        "axsqr": axsqr,
        "nnz": list(nnz),
        "iterations": sweep,
        "converged": converged,
    }

    return x, info


def sdd_tensor(
    A,
    kmax: int = 10,
    alphamin: float = 0.01,
    lmax: int = 10,
    rhomin: float = 0.0,
    verbose: bool = False,
    engine: Union[str, ContractionEngine] = "numpy",
) -> SDDResult:
    """
    Semidiscrete decomposition of an n-dimensional tensor.

    Parameters
    ----------
    A : array_like
        Tensor of order n >= 2; not modified
    kmax : int, default=10
        Maximum number of terms
    alphamin : float, default=0.01
        Inner-loop relative-improvement tolerance
    lmax : int, default=10
        Maximum number of inner passes per term
    rhomin : float, default=0.0
        Stop once the residual Frobenius norm drops below rhomin
    verbose : bool, default=False
        Print progress
    engine : str or ContractionEngine, default='numpy'
        Contraction backend

    Returns
    -------
    result : SDDResult
        Weights, factor matrices and per-term diagnostics

    Raises
    ------
    MissingInputError
        If A is None
    InvalidArgumentError
        If a parameter or the tensor shape is invalid

    Examples
    --------
    >>> a, b = np.array([1.0, -1.0]), np.array([1.0, 1.0, -1.0])
    >>> A = 2.0 * np.multiply.outer(a, b)
    >>> result = sdd_tensor(A, kmax=1)
    >>> result.weights
    array([2.])
    """
    config = SDDConfig(
        kmax=kmax,
        alphamin=alphamin,
        lmax=lmax,
        rhomin=rhomin,
        verbose=verbose,
        engine=engine,
    )
    return decompose(A, config)


def decompose(A, config: SDDConfig) -> SDDResult:
    """
    Semidiscrete decomposition driven by an SDDConfig.

    Same as sdd_tensor(), with the parameters taken from ``config``.
    """
    R = canonicalize_tensor(A, copy=True)
    contraction = get_engine(config.engine)
    rhomin_sq = config.rhomin**2

    rho = float(np.sum(R * R))
    initial_norm_sq = rho

    terms = []
    weights = []
    iterations = []
    rho_trace = []

    for k in range(config.kmax):
        x, info = extract_term(R, config.lmax, config.alphamin, contraction)

        d = math.sqrt(info["axsqr"]) / math.prod(info["nnz"])
        R -= d * expand(x)

        terms.append(x)
        weights.append(d)
        iterations.append(info["iterations"])
        rho = max(rho - info["beta"], 0.0)
        rho_trace.append(rho)

        if config.verbose:
            print(
                f"Term {k + 1}: d={d:.6e}, nnz={info['nnz']}, "
                f"inner={info['iterations']}, rho={rho:.6e}"
            )

        if rho < rhomin_sq:
            if config.verbose:
                print(f"Residual floor reached after {k + 1} terms")
            break
    else:
        if rhomin_sq > 0:
            warnings.warn(
                f"Residual norm floor rhomin={config.rhomin} not reached "
                f"within kmax={config.kmax} terms (rho={rho:.6e}).",
                UserWarning,
                stacklevel=3,
            )

    return SDDResult(
        weights=np.array(weights, dtype=np.float64),
        factors=stack_factors(R.shape, terms),
        iterations=np.array(iterations, dtype=np.int64),
        rho=np.array(rho_trace, dtype=np.float64),
        initial_norm_sq=initial_norm_sq,
        residual=R,
    )
