"""
Shape validation and canonicalization for tensor SDD.

Tensor Conventions
------------------
The library uses the following conventions:

Tensor A:
    - shape (m_1, ..., m_n) with order n >= 2
    - every extent m_j >= 1
    - stored as C-contiguous float64 for the duration of a decomposition

Mode vectors x:
    - a list of n 1D arrays, x[j] has shape (m_j,)
    - x[j] is the j-th factor of one rank-one term

Factor matrices:
    - factors[j] has shape (m_j, K), column k is mode vector j of term k

This module provides utilities to:
1. Canonicalize an input array to a float64 working copy
2. Validate mode vectors against a tensor shape
3. Stack/unstack per-term mode vectors into factor matrices
"""

import warnings

import numpy as np

from sddtensor.exceptions import InvalidArgumentError, MissingInputError


def canonicalize_tensor(A, copy: bool = True) -> np.ndarray:
    """
    Canonicalize input data to a C-contiguous float64 tensor.

    Parameters
    ----------
    A : array_like
        Input tensor, order >= 2
    copy : bool, default=True
        If True, always return a fresh array that can be mutated in place

    Returns
    -------
    T : np.ndarray
        Float64 tensor with the same shape as A

    Raises
    ------
    MissingInputError
        If A is None
    InvalidArgumentError
        If A has order < 2 or an empty mode

    Examples
    --------
    >>> T = canonicalize_tensor([[1, 2], [3, 4]])
    >>> T.dtype, T.shape
    (dtype('float64'), (2, 2))
    """
    if A is None:
        raise MissingInputError("Input tensor A is required")

    if copy:
        T = np.array(A, dtype=np.float64, order="C")
    else:
        T = np.ascontiguousarray(A, dtype=np.float64)

    if T.ndim < 2:
        raise InvalidArgumentError(f"Tensor must have order >= 2, got shape {T.shape}")
    if T.size == 0:
        raise InvalidArgumentError(f"Tensor cannot have an empty mode, got shape {T.shape}")

    if not np.all(np.isfinite(T)):
        warnings.warn(
            "Input tensor contains non-finite values; decomposition results are undefined.",
            UserWarning,
            stacklevel=3,
        )

    return T


def validate_mode_vectors(shape: tuple[int, ...], x: list[np.ndarray], skip: int = -1) -> None:
    """
    Validate that mode vectors match a tensor shape.

    Checks:
    1. One vector per mode
    2. Every vector is 1D
    3. Vector j has length m_j (mode ``skip`` is not checked)

    Parameters
    ----------
    shape : tuple of int
        Tensor shape (m_1, ..., m_n)
    x : list of np.ndarray
        Mode vectors
    skip : int, default=-1
        Mode whose vector is ignored (the free mode of a partial contraction)

    Raises
    ------
    InvalidArgumentError
        If the vectors are incompatible with the shape
    """
    if len(x) != len(shape):
        raise InvalidArgumentError(
            f"Need {len(shape)} mode vectors for tensor of shape {shape}, got {len(x)}"
        )

    for j, (m_j, x_j) in enumerate(zip(shape, x)):
        if j == skip:
            continue
        x_j = np.asarray(x_j)
        if x_j.ndim != 1:
            raise InvalidArgumentError(f"Mode vector {j} must be 1D, got shape {x_j.shape}")
        if x_j.shape[0] != m_j:
            raise InvalidArgumentError(
                f"Mode vector {j} has length {x_j.shape[0]}, but mode {j} has extent {m_j}"
            )


def validate_mode_index(ndim: int, idx: int) -> int:
    """Return ``idx`` as a non-negative mode index, or raise."""
    if not -ndim <= idx < ndim:
        raise InvalidArgumentError(f"Mode index {idx} out of range for order {ndim}")
    return idx % ndim


def stack_factors(shape: tuple[int, ...], terms: list[list[np.ndarray]]) -> list[np.ndarray]:
    """
    Stack per-term mode vectors into one factor matrix per mode.

    Parameters
    ----------
    shape : tuple of int
        Tensor shape (m_1, ..., m_n)
    terms : list of list of np.ndarray
        terms[k][j] is mode vector j of term k

    Returns
    -------
    factors : list of np.ndarray
        factors[j] has shape (m_j, K)

    Examples
    --------
    >>> F = stack_factors((2, 3), [[np.ones(2), np.ones(3)]])
    >>> [f.shape for f in F]
    [(2, 1), (3, 1)]
    """
    K = len(terms)
    factors = []
    for j, m_j in enumerate(shape):
        F = np.zeros((m_j, K))
        for k in range(K):
            F[:, k] = terms[k][j]
        factors.append(F)
    return factors


def term_vectors(factors: list[np.ndarray], k: int) -> list[np.ndarray]:
    """Mode vectors of term ``k`` (column k of every factor matrix)."""
    return [F[:, k] for F in factors]
