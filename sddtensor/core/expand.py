"""
Expansion of SDD terms to full tensors.

WARNING: expansions materialize arrays of the full tensor size. They are used
to deflate the residual (which is already full size) and to validate results.
"""

from typing import Optional

import numpy as np

from sddtensor.exceptions import InvalidArgumentError
from sddtensor.utils.shapes import term_vectors


def expand(x: list[np.ndarray]) -> np.ndarray:
    """
    Outer product of mode vectors as a full tensor.

    Built incrementally: the outer product of x[0] and x[1] is flattened and
    multiplied out with x[2], and so on; the flat result is reshaped to
    (len(x[0]), ..., len(x[n-1])).

    Parameters
    ----------
    x : list of np.ndarray
        Mode vectors, x[j] has shape (m_j,)

    Returns
    -------
    B : np.ndarray
        Tensor, shape (m_1, ..., m_n), B[i_1, ..., i_n] = x_1[i_1] ... x_n[i_n]

    Raises
    ------
    InvalidArgumentError
        If x is empty or contains a non-1D vector

    Examples
    --------
    >>> expand([np.array([1.0, -1.0]), np.array([1.0, 0.0, 1.0])])
    array([[ 1.,  0.,  1.],
           [-1., -0., -1.]])
    """
    if len(x) == 0:
        raise InvalidArgumentError("Need at least one mode vector to expand")

    vectors = [np.asarray(v, dtype=np.float64) for v in x]
    for j, v in enumerate(vectors):
        if v.ndim != 1:
            raise InvalidArgumentError(f"Mode vector {j} must be 1D, got shape {v.shape}")

    shape = tuple(v.shape[0] for v in vectors)

    tmp = vectors[0]
    for v in vectors[1:]:
        tmp = np.outer(tmp, v).reshape(-1)

    return tmp.reshape(shape)


def reconstruct(
    weights: np.ndarray,
    factors: list[np.ndarray],
    n_terms: Optional[int] = None
) -> np.ndarray:
    """
    Sum of weighted term expansions.

    Parameters
    ----------
    weights : np.ndarray
        Term weights, shape (K,)
    factors : list of np.ndarray
        Factor matrices, factors[j] has shape (m_j, K)
    n_terms : int, optional
        Use only the first n_terms terms (default: all K)

    Returns
    -------
    B : np.ndarray
        Approximation sum_k weights[k] * expand(column k of each factor)

    Raises
    ------
    InvalidArgumentError
        If n_terms is out of range or factors disagree with weights
    """
    weights = np.asarray(weights, dtype=np.float64)
    K = weights.shape[0]

    for j, F in enumerate(factors):
        if F.ndim != 2 or F.shape[1] != K:
            raise InvalidArgumentError(
                f"Factor {j} must have shape (m_{j}, {K}), got {F.shape}"
            )

    if n_terms is None:
        n_terms = K
    if not 0 <= n_terms <= K:
        raise InvalidArgumentError(f"n_terms must be in [0, {K}], got {n_terms}")

    shape = tuple(F.shape[0] for F in factors)
    B = np.zeros(shape)
    for k in range(n_terms):
        B += weights[k] * expand(term_vectors(factors, k))

    return B
