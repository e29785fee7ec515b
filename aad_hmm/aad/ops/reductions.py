# aad/ops/reductions.py
import numpy as np

from ..core.node import PrecomputedGradientsNode
from ..core.tape import current_tape
from ..core.var import record, is_constant, value_of, var_nodes
from ..functor.operands_and_partials import OperandsAndPartials
from ...err import check_vector, check_matching_sizes


def sum(x):
    """
    Sum of all elements: one node with unit partials, instead of a chain of adds.
    """
    x_val = np.asarray(value_of(x), dtype=np.float64)
    total = float(np.sum(x_val))
    if is_constant(x) or x_val.size == 0:
        return total
    tape = current_tape()
    nodes = var_nodes(x, tape)
    return record(PrecomputedGradientsNode(tape, total, nodes, np.ones(len(nodes)), op_tag="sum"), tape)


def dot_product(x, y):
    """
    Dot product of two vectors of equal size.
      ∂/∂x = y, ∂/∂y = x
    """
    function = "dot_product"
    x_val, y_val = value_of(x), value_of(y)
    check_vector(function, "v1", x_val)
    check_vector(function, "v2", y_val)
    check_matching_sizes(function, "v1", x_val, "v2", y_val)

    ops_partials = OperandsAndPartials(x, y)
    if not ops_partials[0].is_constant:
        ops_partials[0].partials[:] = y_val
    if not ops_partials[1].is_constant:
        ops_partials[1].partials[:] = x_val
    return ops_partials.build(float(np.dot(x_val, y_val)), op_tag="dot_product")
