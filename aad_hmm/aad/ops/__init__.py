# aad/ops/__init__.py

from . import arithmetic
from . import transcendental
from . import special

# Convenience re-exports so users can do: from aad_hmm.aad.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow
from .transcendental import exp, log, log1p, sqrt, erf
from .special import norm_cdf
from .squared_distance import squared_distance
from .reductions import sum, dot_product
from .constraints import (
    ordered_constrain,
    positive_ordered_constrain,
    softmax,
    ordered_free,
    positive_ordered_free,
)

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow",
    "exp", "log", "log1p", "sqrt", "erf",
    "norm_cdf",
    "squared_distance",
    "sum", "dot_product",
    "ordered_constrain", "positive_ordered_constrain", "softmax",
    "ordered_free", "positive_ordered_free",
]
