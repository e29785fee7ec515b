# aad_hmm/err/checks.py
"""
Precondition checks on primal (plain float) values.

Every check takes (function, name, y): the name of the calling operation,
the argument name used in the message, and the value itself. Checks raise
ShapeError or DomainError and return None on success. Vectorized checks
report the first offending element.

Differentiable operations call these before touching the tape, so a failed
check leaves no node or arena allocation behind.
"""

import numpy as np

from .errors import ShapeError, DomainError, domain_error, domain_error_vec


def _index(flat_index: int, shape):
    """Flat index -> int for vectors, tuple for matrices."""
    idx = np.unravel_index(flat_index, shape)
    if len(idx) == 1:
        return int(idx[0])
    return tuple(int(i) for i in idx)


# ----------------------------- shape checks ----------------------------- #
def check_matrix(function: str, name: str, y) -> None:
    y = np.asarray(y)
    if y.ndim != 2:
        raise ShapeError(function, name, f"must be a matrix, but has {y.ndim} dimension(s)")


def check_square(function: str, name: str, y) -> None:
    y = np.asarray(y)
    check_matrix(function, name, y)
    if y.shape[0] != y.shape[1]:
        raise ShapeError(
            function, name,
            f"must be a square matrix; rows ({y.shape[0]}) and columns ({y.shape[1]}) "
            f"must match in size"
        )


def check_vector(function: str, name: str, y) -> None:
    y = np.asarray(y)
    if y.ndim != 1:
        raise ShapeError(function, name, f"must be a vector, but has {y.ndim} dimension(s)")


def check_consistent_size(function: str, name: str, y, expected_size: int) -> None:
    size = np.asarray(y).size
    if size != expected_size:
        raise ShapeError(
            function, name,
            f"has dimension = {size}, expecting dimension = {expected_size}"
        )


def check_matching_sizes(function: str, name1: str, y1, name2: str, y2) -> None:
    size1, size2 = np.asarray(y1).size, np.asarray(y2).size
    if size1 != size2:
        raise ShapeError(
            function, name1,
            f"size ({size1}) and {name2} size ({size2}) must match in size"
        )


def check_nonzero_size(function: str, name: str, y) -> None:
    if np.asarray(y).size == 0:
        raise ShapeError(function, name, "has size 0, but must have a non-zero size")


# ----------------------------- domain checks ----------------------------- #
def check_finite(function: str, name: str, y) -> None:
    y = np.asarray(y, dtype=float)
    if y.ndim == 0:
        if not np.isfinite(y):
            domain_error(function, name, float(y), "is ", ", but must be finite!")
        return
    bad = np.flatnonzero(~np.isfinite(y))
    if bad.size:
        k = int(bad[0])
        domain_error_vec(function, name, float(y.ravel()[k]), _index(k, y.shape),
                         "is ", ", but must be finite!")


def check_nonnegative(function: str, name: str, y) -> None:
    y = np.asarray(y, dtype=float)
    if y.ndim == 0:
        # NaN fails `y >= 0`
        if not y >= 0:
            domain_error(function, name, float(y), "is ", ", but must be >= 0!")
        return
    bad = np.flatnonzero(~(y >= 0))
    if bad.size:
        k = int(bad[0])
        domain_error_vec(function, name, float(y.ravel()[k]), _index(k, y.shape),
                         "is ", ", but must be >= 0!")


def check_simplex(function: str, name: str, theta, tolerance: float = None) -> None:
    """
    Check that `theta` is a non-empty vector of non-negative entries summing
    to 1 within `tolerance` (AADConfig.simplex_tolerance by default).
    """
    if tolerance is None:
        from ..aad.config import get_config
        tolerance = get_config().simplex_tolerance

    theta = np.asarray(theta, dtype=float)
    check_nonzero_size(function, name, theta)

    total = float(np.sum(theta))
    if not abs(1.0 - total) <= tolerance:
        raise DomainError(
            function, name, total,
            f"is not a valid simplex. sum({name}) = {total}, but should be 1"
        )
    flat = theta.ravel()
    bad = np.flatnonzero(~(flat >= 0))
    if bad.size:
        k = int(bad[0])
        raise DomainError(
            function, name, float(flat[k]),
            f"is not a valid simplex. {name}[{k}] = {flat[k]}, "
            f"but should be greater than or equal to 0",
            index=_index(k, theta.shape),
        )


def check_ordered(function: str, name: str, y) -> None:
    y = np.asarray(y, dtype=float)
    check_vector(function, name, y)
    for n in range(1, y.size):
        if not y[n] > y[n - 1]:
            raise DomainError(
                function, name, float(y[n]),
                f"is not a valid ordered vector. The element at {n} is {y[n]}, "
                f"but should be greater than the previous element, {y[n - 1]}",
                index=n,
            )


def check_positive_ordered(function: str, name: str, y) -> None:
    y = np.asarray(y, dtype=float)
    check_vector(function, name, y)
    if y.size and not y[0] > 0:
        raise DomainError(
            function, name, float(y[0]),
            f"is not a valid positive_ordered vector. The element at 0 is {y[0]}, "
            f"but should be positive",
            index=0,
        )
    check_ordered(function, name, y)
