"""
Semidiscrete tensor decomposition primitives.

This module provides the numerical building blocks:
- Tensor-vector contraction (full and with one free mode)
- Contraction engines (NumPy reference, Numba parallel)
- The discrete per-mode subproblem solver
- Term expansion and reconstruction
- The greedy outer loop and alternating inner loop

Internal module - the public API re-exports what most callers need.
"""

from sddtensor.core.contraction import (
    contract,
    contract_except,
)

from sddtensor.core.engines import (
    ContractionEngine,
    NumpyContractionEngine,
    NumbaContractionEngine,
    get_engine,
)

from sddtensor.core.subproblem import solve_mode

from sddtensor.core.expand import (
    expand,
    reconstruct,
)

from sddtensor.core.solver import (
    SDDConfig,
    SDDResult,
    SDDTerm,
    decompose,
    extract_term,
    sdd_tensor,
)

__all__ = [
    # Contraction
    "contract",
    "contract_except",
    # Engines
    "ContractionEngine",
    "NumpyContractionEngine",
    "NumbaContractionEngine",
    "get_engine",
    # Subproblem
    "solve_mode",
    # Expansion
    "expand",
    "reconstruct",
    # Solver
    "SDDConfig",
    "SDDResult",
    "SDDTerm",
    "decompose",
    "extract_term",
    "sdd_tensor",
]
