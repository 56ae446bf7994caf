"""
Discrete per-mode subproblem of the semidiscrete decomposition.

Given scores s (one per index of the mode being updated), find

    max_{x in {-1, 0, 1}^m}  (x's)^2 / (x'x)

For a fixed support size i the best x takes the signs of s on the i entries
of largest |s|, so the problem reduces to a scan over the sorted magnitudes:

    f_i = (|s|_(1) + ... + |s|_(i))^2 / i

and the optimum keeps the top imax entries, imax = argmax_i f_i.
"""

from typing import Optional

import numpy as np

from sddtensor.exceptions import InvalidArgumentError


def solve_mode(s: np.ndarray, m: Optional[int] = None) -> tuple[np.ndarray, int, float]:
    """
    Solve the SDD subproblem for one mode.

    Parameters
    ----------
    s : np.ndarray
        Score vector, shape (m,)
    m : int, optional
        Length of s; checked against s when given

    Returns
    -------
    x : np.ndarray
        Discrete vector, shape (m,), entries in {-1, 0, 1}
    imax : int
        Number of nonzeros in x
    fmax : float
        Objective value (x's)^2 / (x'x) at x

    Raises
    ------
    InvalidArgumentError
        If s is not a non-empty 1D array or m disagrees with its length

    Notes
    -----
    Magnitudes are sorted with a stable sort, so equal magnitudes keep their
    index order. When several support sizes reach the same objective the
    largest one wins. An all-zero score vector therefore keeps every entry
    (imax = m, x = all ones, fmax = 0).

    Examples
    --------
    >>> x, imax, fmax = solve_mode(np.array([3.0, -1.0, 2.0]))
    >>> x, imax, fmax
    (array([1., 0., 1.]), 2, 12.5)
    """
    s = np.asarray(s, dtype=np.float64)
    if s.ndim != 1 or s.shape[0] == 0:
        raise InvalidArgumentError(f"Scores must be a non-empty 1D array, got shape {s.shape}")
    if m is not None and m != s.shape[0]:
        raise InvalidArgumentError(f"Scores have length {s.shape[0]}, expected m={m}")
    m = s.shape[0]

    x = np.where(s < 0, -1.0, 1.0)
    abs_s = np.abs(s)

    order = np.argsort(-abs_s, kind="stable")
    f = np.cumsum(abs_s[order])
    f = f**2 / np.arange(1, m + 1)

    # Last occurrence of the maximum (a sequential >= scan)
    imax = m - int(np.argmax(f[::-1]))
    fmax = float(f[imax - 1])

    x[order[imax:]] = 0.0

    return x, imax, fmax
