# aad/functor/operands_and_partials.py
"""
Adjoint output builder.

For a scalar function of several arguments of different shapes (scalar,
vector, matrix), the caller computes d f / d argument for each argument into
that argument's `partials` buffer, then calls `build(value)`. The result is
one tape node whose propagate() multiplies the output adjoint into every
buffer and accumulates into the argument nodes.

Constant arguments get no buffer (`partials is None`) and cost nothing in
the reverse sweep. Whether an argument is constant is decided once, when
the builder is created, so the caller can skip computing its partials:

    ops_partials = OperandsAndPartials(log_omegas, Gamma, rho)
    if not ops_partials[1].is_constant:
        ops_partials[1].partials[:] = dGamma
    return ops_partials.build(logp)
"""
from __future__ import annotations

from typing import Any, List

import numpy as np

from ..core.node import Node, PrecomputedGradientsNode
from ..core.tape import current_tape
from ..core.var import record, is_constant, value_of, var_nodes


class Edge:
    """
    One argument of the function.

    Attributes
    ----------
    operand : Any
        The argument as passed (ADVar, float, array of either).
    is_constant : bool
        True if the argument holds no differentiable ADVar.
    partials : np.ndarray | None
        d f / d operand, shaped like the operand (0-d for scalars), zero
        initialised. None for constant arguments.
    """

    def __init__(self, operand: Any):
        self.operand = operand
        self.is_constant = is_constant(operand)
        self.shape = np.shape(value_of(operand))
        self.partials = None if self.is_constant else np.zeros(self.shape, dtype=np.float64)

    @property
    def size(self) -> int:
        return int(np.prod(self.shape, dtype=int))

    def __repr__(self):
        kind = "const" if self.is_constant else "var"
        return f"Edge({kind}, shape={self.shape})"


class OperandsAndPartials:
    """Collects per-argument partials and turns them into one tape node."""

    def __init__(self, *operands: Any):
        self.edges: List[Edge] = [Edge(op) for op in operands]

    def __getitem__(self, i: int) -> Edge:
        return self.edges[i]

    def __len__(self):
        return len(self.edges)

    def build(self, value: float, op_tag: str = "operands_and_partials"):
        """
        Return the function's result.

        A float if every argument is constant; otherwise an ADVar whose node
        distributes its adjoint over all partial buffers.
        """
        var_edges = [e for e in self.edges if not e.is_constant]
        if not var_edges:
            return float(value)

        gradients = []
        for e in var_edges:
            g = np.asarray(e.partials, dtype=np.float64)
            if g.shape != e.shape:
                raise ValueError(
                    f"partials of shape {g.shape} do not match operand shape {e.shape}"
                )
            gradients.append(g.ravel())

        tape = current_tape()
        operands: List[Node] = []
        for e in var_edges:
            operands.extend(var_nodes(e.operand, tape))

        node = PrecomputedGradientsNode(tape, value, operands, np.concatenate(gradients), op_tag=op_tag)
        return record(node, tape)
