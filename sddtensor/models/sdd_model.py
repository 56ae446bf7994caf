"""
TensorSDD: estimator-style API for semidiscrete tensor decomposition.

Typical usage:
--------------
    from sddtensor.models import TensorSDD
    from sddtensor import SDDConfig

    model = TensorSDD(SDDConfig(kmax=20, rhomin=1e-3))
    model.fit(A)
    A_hat = model.reconstruct()
    print(model.explained_energy()[-1])
"""

from typing import Iterator, Optional

import numpy as np

from sddtensor.core.solver import SDDConfig, SDDResult, SDDTerm, decompose


class TensorSDD:
    """
    Semidiscrete decomposition of an n-dimensional tensor.

    Attributes
    ----------
    config : SDDConfig
        Decomposition configuration
    is_fitted : bool
        Whether fit() has been called
    result_ : Optional[SDDResult]
        Raw decomposition result (set after fit())

    Examples
    --------
    >>> import numpy as np
    >>> from sddtensor.models import TensorSDD
    >>> A = np.random.randn(4, 5, 6)
    >>> model = TensorSDD().fit(A)
    >>> model.n_terms_ <= 10
    True
    >>> model.reconstruct().shape
    (4, 5, 6)
    """

    def __init__(self, config: Optional[SDDConfig] = None):
        self.config = config or SDDConfig()
        self.result_: Optional[SDDResult] = None

    @property
    def is_fitted(self) -> bool:
        """Whether the model has been fitted."""
        return self.result_ is not None

    def _check_fitted(self) -> SDDResult:
        if self.result_ is None:
            raise RuntimeError("TensorSDD must be fitted before use. Call fit() first.")
        return self.result_

    def fit(self, A) -> "TensorSDD":
        """
        Decompose a tensor.

        Parameters
        ----------
        A : array_like
            Tensor of order >= 2; not modified

        Returns
        -------
        self : TensorSDD
            Fitted model (for chaining)

        Raises
        ------
        MissingInputError
            If A is None
        InvalidArgumentError
            If the tensor shape is invalid
        """
        self.result_ = decompose(A, self.config)
        return self

    @property
    def weights_(self) -> np.ndarray:
        return self._check_fitted().weights

    @property
    def factors_(self) -> list[np.ndarray]:
        return self._check_fitted().factors

    @property
    def iterations_(self) -> np.ndarray:
        return self._check_fitted().iterations

    @property
    def rho_(self) -> np.ndarray:
        return self._check_fitted().rho

    @property
    def residual_(self) -> np.ndarray:
        return self._check_fitted().residual

    @property
    def n_terms_(self) -> int:
        return self._check_fitted().n_terms

    def terms(self) -> Iterator[SDDTerm]:
        """Iterate over the fitted terms."""
        return self._check_fitted().terms()

    def reconstruct(self, n_terms: Optional[int] = None) -> np.ndarray:
        """
        Approximation from the first n_terms terms.

        Parameters
        ----------
        n_terms : int, optional
            Number of leading terms to use (default: all)

        Returns
        -------
        A_hat : np.ndarray
            Approximation with the shape of the fitted tensor
        """
        return self._check_fitted().to_full(n_terms)

    def explained_energy(self) -> np.ndarray:
        """
        Cumulative fraction of ||A||_F^2 removed after each term.

        Computed from the residual trace as 1 - rho_k / ||A||_F^2. A zero
        input tensor has nothing to explain and reports ones.
        """
        result = self._check_fitted()
        if result.initial_norm_sq == 0:
            return np.ones_like(result.rho)
        return 1.0 - result.rho / result.initial_norm_sq

    def relative_error(self) -> float:
        """||A - A_hat||_F / ||A||_F from the final residual tensor."""
        result = self._check_fitted()
        if result.initial_norm_sq == 0:
            return 0.0
        return float(np.linalg.norm(result.residual) / np.sqrt(result.initial_norm_sq))
