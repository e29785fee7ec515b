# aad/functor/adj_jac_apply.py
"""
Generic operator adapter: turn a forward function plus a vector-Jacobian
product into one tape node, without writing a node class per operation.

An operation subclasses AdjJacOp and implements

    forward(*args)                 plain floats / float ndarrays -> float or ndarray
    multiply_adjoint_jacobian(adj) output-shaped adjoint -> one gradient per argument

`forward` runs once, while recording. Whatever the VJP needs later is kept
on the op object, with array intermediates allocated from `self.arena` so
they share the tape's lifetime. `self.is_var[i]` tells whether argument i
is differentiable; the VJP may return None for constant arguments.

Tape layout for one call with m outputs:

    [AdjJacNode][out_0][out_1]...[out_{m-1}]

The output nodes are plain leaves that collect adjoints from their
consumers. They sit after the AdjJacNode, so by the time the reverse sweep
reaches it every output adjoint is final; its propagate() calls the VJP
and accumulates into the inputs.
"""
from __future__ import annotations

import math
from typing import Any, List, Optional, Tuple

import numpy as np

from ..core.arena import Arena
from ..core.node import Node
from ..core.tape import current_tape
from ..core.var import ADVar, is_constant, value_of, var_nodes


class AdjJacOp:
    """
    Base class of operations run through adj_jac_apply().

    Attributes set by adj_jac_apply before forward():
        arena  : Arena of the recording tape
        is_var : tuple of bools, one per argument
    """
    arena: Optional[Arena] = None
    is_var: Tuple[bool, ...] = ()

    def forward(self, *args):
        raise NotImplementedError

    def multiply_adjoint_jacobian(self, adj):
        raise NotImplementedError


class AdjJacOutputNode(Node):
    op_tag = "adj_jac_output"


class AdjJacNode(Node):
    """Holds the op, the input node indices (arena) and the output shape."""

    def __init__(self, tape, op: AdjJacOp, inputs: List[Optional[List[Node]]], arg_shapes, out_shape):
        super().__init__(math.nan)
        self.tape = tape
        self.op = op
        self.op_tag = type(op).__name__
        self.arg_shapes = arg_shapes
        self.out_shape = out_shape
        self.out_size = int(np.prod(out_shape, dtype=int))
        self.input_handles = [
            None if nodes is None else tape.arena.allocate_copy([vi.index for vi in nodes], np.int64)
            for nodes in inputs
        ]

    def _input_nodes(self, k) -> List[Node]:
        size = int(np.prod(self.arg_shapes[k], dtype=int))
        return self.tape.nodes_at(self.input_handles[k], size)

    def operands(self):
        nodes = []
        for k, handle in enumerate(self.input_handles):
            if handle is not None:
                nodes.extend(self._input_nodes(k))
        return nodes

    def output_nodes(self) -> List[Node]:
        start = self.index + 1
        return self.tape.nodes[start:start + self.out_size]

    def propagate(self):
        adj = np.array([vi.adj for vi in self.output_nodes()], dtype=np.float64)
        if self.out_shape == ():
            adj = float(adj[0])
        else:
            adj = adj.reshape(self.out_shape)

        grads = self.op.multiply_adjoint_jacobian(adj)
        # A list or tuple holds one gradient per argument when there are several
        if not (isinstance(grads, (list, tuple)) and len(self.input_handles) > 1):
            grads = (grads,)

        for k, handle in enumerate(self.input_handles):
            if handle is None:
                continue
            g = np.asarray(grads[k], dtype=np.float64).ravel().tolist()
            for vi, gi in zip(self._input_nodes(k), g):
                vi.adj += gi


def adj_jac_apply(op: Any, *args):
    """
    Apply an AdjJacOp (class or instance) to `args`.

    Each argument may be a scalar or an array of ADVars and/or numbers. The
    result mirrors the output of `forward`: an ADVar for a scalar output, an
    object ndarray of ADVars otherwise. If no argument is differentiable the
    plain forward result is returned and nothing is recorded.
    """
    if isinstance(op, type):
        op = op()
    is_var = tuple(not is_constant(a) for a in args)
    values = [value_of(a) for a in args]

    tape = current_tape()
    op.arena = tape.arena
    op.is_var = is_var

    if not any(is_var):
        # Nothing is recorded, so whatever forward() caches is released at once
        mark = tape.arena.mark()
        out = op.forward(*values)
        tape.arena.rewind(mark)
        return float(out) if np.ndim(out) == 0 else np.asarray(out, dtype=np.float64)

    inputs = [var_nodes(a, tape) if v else None for a, v in zip(args, is_var)]
    arg_shapes = [np.shape(v) for v in values]

    out = op.forward(*values)
    out_arr = np.asarray(out, dtype=np.float64)

    node = AdjJacNode(tape, op, inputs, arg_shapes, out_arr.shape)
    tape.push(node)

    outputs = []
    for y in out_arr.ravel().tolist():
        vi = AdjJacOutputNode(y)
        tape.push(vi)
        outputs.append(ADVar.from_node(vi))

    if out_arr.ndim == 0:
        return outputs[0]
    result = np.empty(out_arr.shape, dtype=object)
    for i, v in enumerate(outputs):
        result.flat[i] = v
    return result
