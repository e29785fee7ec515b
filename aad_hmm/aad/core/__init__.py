# aad/core/__init__.py

"""
Core public API for the AAD package.

This module exposes the minimal set of symbols that users of the AAD framework
should import from `aad.core`.

Exports:
    ADVar         : Handle to a differentiable scalar on the tape.
    Node          : Base tape node (value, adjoint, propagate()).
    Tape          : Ordered node record plus the arena for node payloads.
    Arena         : Bump allocator addressed by integer handles.
    current_tape  : The calling thread's active tape.
    use_tape      : Context manager to temporarily switch the active tape.
    nested        : Context manager that discards everything recorded inside it.
    reverse       : Run a single reverse pass to accumulate first-order adjoints.
    zero_adjoints : Reset all adjoints on the active tape to zero.
    grad          : Convenience: gradient of a scalar function at a point.
    value         : Convenience: extract the primal value(s) from ADVar.
"""

from .arena import Arena
from .node import Node, PrecomputedGradientsNode
from .tape import Tape, current_tape, use_tape, nested
from .var import ADVar, record, to_var, value_of, adjoint_of, is_constant, var_nodes
from .engine import reverse, zero_adjoints
from .seeds import grad, grads, grads_list, gradient, value, finite_diff_gradient

__all__ = [
    "Arena",
    "Node", "PrecomputedGradientsNode",
    "Tape", "current_tape", "use_tape", "nested",
    "ADVar", "record", "to_var", "value_of", "adjoint_of", "is_constant", "var_nodes",
    "reverse", "zero_adjoints",
    "grad", "grads", "grads_list", "gradient", "value", "finite_diff_gradient",
]
