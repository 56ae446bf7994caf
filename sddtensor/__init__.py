"""
Semidiscrete decomposition (SDD) of n-dimensional arrays.

This package approximates a tensor by a sum of weighted outer products of
vectors whose entries are restricted to {-1, 0, +1}, generalizing the matrix
SDD to tensors of any order.

Features:
---------
- Greedy term extraction with alternating per-mode refinement
- Exact discrete per-mode subproblem solver
- NumPy and Numba (parallel) contraction engines
- Estimator-style API with reconstruction and error diagnostics

Typical usage:
--------------
    import numpy as np
    from sddtensor import sdd_tensor

    A = np.random.randn(10, 12, 8)
    result = sdd_tensor(A, kmax=20, rhomin=1e-2)

    # A ≈ sum_k d[k] * X1[:, k] o X2[:, k] o X3[:, k]
    A_hat = result.to_full()
    print(result.rho)  # residual norm-squared after each term
"""

from sddtensor.core import (
    ContractionEngine,
    NumbaContractionEngine,
    NumpyContractionEngine,
    SDDConfig,
    SDDResult,
    SDDTerm,
    contract,
    contract_except,
    decompose,
    expand,
    extract_term,
    get_engine,
    reconstruct,
    sdd_tensor,
    solve_mode,
)
from sddtensor.exceptions import InvalidArgumentError, MissingInputError
from sddtensor.models import TensorSDD

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "sdd_tensor",
    "decompose",
    "TensorSDD",
    "SDDConfig",
    "SDDResult",
    "SDDTerm",
    # Primitives
    "contract",
    "contract_except",
    "solve_mode",
    "expand",
    "reconstruct",
    "extract_term",
    # Engines
    "ContractionEngine",
    "NumpyContractionEngine",
    "NumbaContractionEngine",
    "get_engine",
    # Errors
    "MissingInputError",
    "InvalidArgumentError",
]
