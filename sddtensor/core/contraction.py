"""
Tensor-vector contraction for semidiscrete tensor decomposition.

For a tensor T of shape (m_1, ..., m_n) and mode vectors x_1, ..., x_n:

    contract(T, x)          = sum_{i_1..i_n} T[i_1, ..., i_n] x_1[i_1] ... x_n[i_n]
    contract_except(T, x, j)[i] = contract(T[..., i, ...], x without x_j)

where the slice in the second form fixes mode j at index i.

Both forms collapse one mode at a time, starting from the last: the remaining
data is reshaped to (prod(remaining extents), m_last) and right-multiplied by
the last mode vector, reducing the order by one per step.
"""

import numpy as np

from sddtensor.utils.shapes import validate_mode_index, validate_mode_vectors


def _collapse_trailing(T: np.ndarray, vectors: list[np.ndarray]) -> np.ndarray:
    """
    Collapse the last len(vectors) modes of T, the last mode first.

    vectors[-1] contracts the last mode of T, vectors[-2] the one before it.
    """
    tmp = T
    for v in reversed(vectors):
        m_last = tmp.shape[-1]
        lead = tmp.shape[:-1]
        tmp = (tmp.reshape(-1, m_last) @ v).reshape(lead)
    return tmp


def contract(T: np.ndarray, x: list[np.ndarray]) -> float:
    """
    Full inner product of a tensor with the outer product of mode vectors.

    Parameters
    ----------
    T : np.ndarray
        Tensor, shape (m_1, ..., m_n)
    x : list of np.ndarray
        Mode vectors, x[j] has shape (m_j,)

    Returns
    -------
    s : float
        <T, x_1 o x_2 o ... o x_n>

    Raises
    ------
    InvalidArgumentError
        If the mode vectors do not match T's shape

    Examples
    --------
    >>> T = np.arange(6.0).reshape(2, 3)
    >>> contract(T, [np.array([1.0, -1.0]), np.ones(3)])
    -9.0
    """
    validate_mode_vectors(T.shape, x)
    vectors = [np.asarray(v, dtype=np.float64) for v in x]
    return float(_collapse_trailing(T, vectors))


def contract_except(T: np.ndarray, x: list[np.ndarray], idx: int) -> np.ndarray:
    """
    Contract a tensor with every mode vector except the one for mode ``idx``.

    Entry i of the result is the full contraction of the slice of T with mode
    ``idx`` fixed at i, using the remaining mode vectors. This is the kernel
    that dominates the cost of the decomposition: it touches every element of
    T once per call.

    Mode ``idx`` is moved to the front and the other modes are collapsed from
    the last one inwards, so all slices are reduced in one pass.

    Parameters
    ----------
    T : np.ndarray
        Tensor, shape (m_1, ..., m_n)
    x : list of np.ndarray
        Mode vectors, x[j] has shape (m_j,). x[idx] is ignored.
    idx : int
        Free mode

    Returns
    -------
    s : np.ndarray
        Score vector, shape (m_idx,)

    Raises
    ------
    InvalidArgumentError
        If idx is out of range or the mode vectors do not match T's shape

    Examples
    --------
    >>> T = np.arange(6.0).reshape(2, 3)
    >>> contract_except(T, [None, np.array([1.0, 0.0, -1.0])], 0)
    array([-2., -2.])
    """
    idx = validate_mode_index(T.ndim, idx)
    validate_mode_vectors(T.shape, x, skip=idx)

    others = [np.asarray(x[j], dtype=np.float64) for j in range(T.ndim) if j != idx]
    T_front = np.ascontiguousarray(np.moveaxis(T, idx, 0))

    return _collapse_trailing(T_front, others)
