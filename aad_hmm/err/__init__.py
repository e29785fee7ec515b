# aad_hmm/err/__init__.py

from .errors import AADError, ShapeError, DomainError, ArenaExhaustion, domain_error, domain_error_vec
from .checks import (
    check_matrix,
    check_square,
    check_vector,
    check_consistent_size,
    check_matching_sizes,
    check_nonzero_size,
    check_finite,
    check_nonnegative,
    check_simplex,
    check_ordered,
    check_positive_ordered,
)

__all__ = [
    "AADError", "ShapeError", "DomainError", "ArenaExhaustion",
    "domain_error", "domain_error_vec",
    "check_matrix", "check_square", "check_vector",
    "check_consistent_size", "check_matching_sizes", "check_nonzero_size",
    "check_finite", "check_nonnegative", "check_simplex",
    "check_ordered", "check_positive_ordered",
]
