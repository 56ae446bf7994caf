"""
Contraction engines for the inner loop of tensor SDD.

The partial contraction ``contract_except`` dominates the cost of a
decomposition: every inner pass calls it once per mode and each call reads
the whole residual tensor. Engines implement it with different backends:

- NumpyContractionEngine: reshape/matmul reference path (default)
- NumbaContractionEngine: JIT kernel with stride arithmetic over the
  flattened tensor, parallel across the slices of the free mode

Both engines return the same scores up to floating-point summation order.
"""

from typing import Protocol, Union

import numpy as np
from numba import njit, prange

from sddtensor.core.contraction import contract_except
from sddtensor.exceptions import InvalidArgumentError
from sddtensor.utils.shapes import validate_mode_index, validate_mode_vectors


class ContractionEngine(Protocol):
    """Strategy interface for the partial contraction."""

    name: str

    def contract_except(self, T: np.ndarray, x: list[np.ndarray], idx: int) -> np.ndarray:
        """
        Contract T with every mode vector except x[idx].

        Args:
            T: Residual tensor (m_1, ..., m_n)
            x: Mode vectors, x[j] has shape (m_j,)
            idx: Free mode

        Returns:
            Score vector (m_idx,)
        """
        ...


class NumpyContractionEngine:
    """
    NumPy-based contraction engine (reference implementation).

    Collapses one mode per BLAS matrix-vector product.
    """

    name = "numpy"

    def contract_except(self, T: np.ndarray, x: list[np.ndarray], idx: int) -> np.ndarray:
        return contract_except(T, x, idx)


@njit(parallel=True, cache=True)
def _numba_contract_except(
    data: np.ndarray,
    shape: np.ndarray,
    xs_flat: np.ndarray,
    offsets: np.ndarray,
    idx: int
) -> np.ndarray:
    """
    Partial contraction over flattened C-order storage.

    s[i] = Σ_r data[pos(i, r)] · Π_{j≠idx} x_j[k_j(r)]

    where r enumerates the multi-indices of the other modes and pos() is
    built from the C-order strides of ``shape``.
    """
    n = shape.shape[0]

    strides = np.empty(n, dtype=np.int64)
    acc = 1
    for j in range(n - 1, -1, -1):
        strides[j] = acc
        acc *= shape[j]

    m_idx = shape[idx]
    n_rest = data.shape[0] // m_idx
    s = np.zeros(m_idx, dtype=np.float64)

    for i in prange(m_idx):
        accum = 0.0
        base = i * strides[idx]
        for r in range(n_rest):
            rem = r
            pos = base
            w = 1.0
            for j in range(n - 1, -1, -1):
                if j != idx:
                    k = rem % shape[j]
                    rem = rem // shape[j]
                    pos += k * strides[j]
                    w *= xs_flat[offsets[j] + k]
            accum += data[pos] * w
        s[i] = accum

    return s


class NumbaContractionEngine:
    """
    Numba-accelerated contraction engine.

    Slices of the free mode are independent and are reduced in parallel;
    each slice is summed sequentially, so repeated runs are bit-identical.
    """

    name = "numba"

    def __init__(self):
        # Warmup JIT compilation
        self._warmup()

    def _warmup(self):
        """Pre-compile the kernel to avoid first-call overhead."""
        T = np.ones((2, 2, 2), dtype=np.float64)
        self.contract_except(T, [np.ones(2), np.ones(2), np.ones(2)], 0)

    def contract_except(self, T: np.ndarray, x: list[np.ndarray], idx: int) -> np.ndarray:
        idx = validate_mode_index(T.ndim, idx)
        validate_mode_vectors(T.shape, x, skip=idx)

        shape = np.array(T.shape, dtype=np.int64)
        # Placeholder ones for the free mode keep offsets aligned with modes
        vectors = [
            np.ones(T.shape[j]) if j == idx else np.asarray(x[j], dtype=np.float64)
            for j in range(T.ndim)
        ]
        offsets = np.zeros(T.ndim, dtype=np.int64)
        offsets[1:] = np.cumsum(shape[:-1])
        xs_flat = np.concatenate(vectors)

        data = np.ascontiguousarray(T, dtype=np.float64).reshape(-1)
        return _numba_contract_except(data, shape, xs_flat, offsets, idx)


_ENGINES = {
    "numpy": NumpyContractionEngine,
    "numba": NumbaContractionEngine,
}


def get_engine(engine: Union[str, ContractionEngine, None] = None) -> ContractionEngine:
    """
    Resolve an engine name or instance.

    Parameters
    ----------
    engine : str, ContractionEngine or None
        'numpy', 'numba', an object with a ``contract_except`` method, or
        None for the default NumPy engine

    Returns
    -------
    engine : ContractionEngine

    Raises
    ------
    InvalidArgumentError
        If the name is unknown
    """
    if engine is None:
        return NumpyContractionEngine()
    if isinstance(engine, str):
        if engine not in _ENGINES:
            raise InvalidArgumentError(
                f"engine must be one of {sorted(_ENGINES)}, got '{engine}'"
            )
        return _ENGINES[engine]()
    if not hasattr(engine, "contract_except"):
        raise InvalidArgumentError(
            f"engine must implement contract_except(), got {type(engine).__name__}"
        )
    return engine
