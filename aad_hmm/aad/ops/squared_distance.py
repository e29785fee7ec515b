# aad/ops/squared_distance.py
"""
Squared distance f(a, b) = (a - b)^2, for scalars and for vectors
(sum of squared element differences).

Scalar records pick the operand shape (vv / vd / dv) so only differentiable
operands are referenced. The vector records keep one arena array of operand
tape indices per argument instead of one scalar node per element; their
propagate() loops over the elements.

Backward rule: d = 2 (a - b); a.adj += adj * d; b.adj -= adj * d.
"""
import numpy as np

from ..core.node import Node, OpVVNode, OpVDNode, OpDVNode
from ..core.tape import current_tape
from ..core.var import ADVar, record, is_constant, value_of, var_nodes
from ...err import check_vector, check_matching_sizes


# ----------------------------- scalar records ----------------------------- #
class SquaredDistanceVVNode(OpVVNode):
    op_tag = "squared_distance_vv"

    def __init__(self, avi, bvi):
        diff = avi.val - bvi.val
        super().__init__(diff * diff, avi, bvi)

    def propagate(self):
        d = 2.0 * (self.avi.val - self.bvi.val)
        self.avi.adj += self.adj * d
        self.bvi.adj -= self.adj * d


class SquaredDistanceVDNode(OpVDNode):
    op_tag = "squared_distance_vd"

    def __init__(self, avi, b):
        diff = avi.val - b
        super().__init__(diff * diff, avi, b)

    def propagate(self):
        self.avi.adj += self.adj * 2.0 * (self.avi.val - self.bd)


class SquaredDistanceDVNode(OpDVNode):
    op_tag = "squared_distance_dv"

    def __init__(self, a, bvi):
        diff = a - bvi.val
        super().__init__(diff * diff, a, bvi)

    def propagate(self):
        self.bvi.adj -= self.adj * 2.0 * (self.ad - self.bvi.val)


# ----------------------------- vector records ----------------------------- #
class SquaredDistanceVecVVNode(Node):
    """Both vectors differentiable: two arena arrays of operand indices."""
    op_tag = "squared_distance_vec_vv"

    def __init__(self, tape, v1, v2):
        diff = np.array([a.val - b.val for a, b in zip(v1, v2)], dtype=np.float64)
        super().__init__(float(np.dot(diff, diff)))
        self.tape = tape
        self.length = len(v1)
        self.v1_handle = tape.arena.allocate_copy([vi.index for vi in v1], np.int64)
        self.v2_handle = tape.arena.allocate_copy([vi.index for vi in v2], np.int64)

    def operands(self):
        return (self.tape.nodes_at(self.v1_handle, self.length)
                + self.tape.nodes_at(self.v2_handle, self.length))

    def propagate(self):
        v1 = self.tape.nodes_at(self.v1_handle, self.length)
        v2 = self.tape.nodes_at(self.v2_handle, self.length)
        for a, b in zip(v1, v2):
            di = 2.0 * self.adj * (a.val - b.val)
            a.adj += di
            b.adj -= di


class SquaredDistanceVecVDNode(Node):
    """First vector differentiable, second constant (copied into the arena)."""
    op_tag = "squared_distance_vec_vd"

    def __init__(self, tape, v1, v2):
        v2 = np.asarray(v2, dtype=np.float64).ravel()
        diff = np.array([a.val for a in v1], dtype=np.float64) - v2
        super().__init__(float(np.dot(diff, diff)))
        self.tape = tape
        self.length = len(v1)
        self.v1_handle = tape.arena.allocate_copy([vi.index for vi in v1], np.int64)
        self.v2_handle = tape.arena.allocate_copy(v2, np.float64)

    def operands(self):
        return self.tape.nodes_at(self.v1_handle, self.length)

    def propagate(self):
        v1 = self.tape.nodes_at(self.v1_handle, self.length)
        v2 = self.tape.arena.view(self.v2_handle, self.length, np.float64).tolist()
        for a, b in zip(v1, v2):
            a.adj += 2.0 * self.adj * (a.val - b)


# ----------------------------- entry point ----------------------------- #
def _is_vector_arg(x):
    return isinstance(x, (np.ndarray, list, tuple))


def squared_distance(a, b):
    """
    Squared distance between two scalars or two vectors of equal size.

    Returns a float when neither argument is differentiable.
    Raises ShapeError for non-vector or mismatched arguments, before
    anything is recorded.
    """
    if not (_is_vector_arg(a) or _is_vector_arg(b)):
        a_var, b_var = not is_constant(a), not is_constant(b)
        if a_var and b_var:
            return record(SquaredDistanceVVNode(a.vi, b.vi))
        if a_var:
            return record(SquaredDistanceVDNode(a.vi, value_of(b)))
        if b_var:
            return record(SquaredDistanceDVNode(value_of(a), b.vi))
        diff = value_of(a) - value_of(b)
        return diff * diff

    function = "squared_distance"
    a_val, b_val = value_of(a), value_of(b)
    check_vector(function, "v1", a_val)
    check_vector(function, "v2", b_val)
    check_matching_sizes(function, "v1", a_val, "v2", b_val)

    a_var, b_var = not is_constant(a), not is_constant(b)
    if not (a_var or b_var):
        diff = a_val - b_val
        return float(np.dot(diff, diff))

    tape = current_tape()
    if a_var and b_var:
        node = SquaredDistanceVecVVNode(tape, var_nodes(a, tape), var_nodes(b, tape))
    elif a_var:
        node = SquaredDistanceVecVDNode(tape, var_nodes(a, tape), b_val)
    else:
        # (a - b)^2 is symmetric: reuse the vd record with the arguments swapped
        node = SquaredDistanceVecVDNode(tape, var_nodes(b, tape), a_val)
    return record(node, tape)
