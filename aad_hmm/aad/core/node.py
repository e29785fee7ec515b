# aad/core/node.py
"""
Tape nodes.

A Node holds a primal value `val`, an accumulated adjoint `adj` and a local
derivative rule `propagate()`. Subclasses are the operator records: each
stores only what its rule needs, i.e. references to the operand nodes that
are differentiable and plain floats for constant operands.

During the reverse sweep `propagate()` runs once per node, in reverse
creation order, and adds `adj * (d val / d operand)` into every operand's
adjoint. Adjoints are only ever accumulated because a node may feed several
consumers.

Records read operand values from the operand nodes at propagate time rather
than copying them at construction.
"""
from __future__ import annotations

from typing import Callable, List, Sequence

import numpy as np


class Node:
    """
    Leaf node / base class of every operator record.

    Attributes
    ----------
    val : float
        Primal value.
    adj : float
        Accumulated adjoint (d output / d val), 0.0 until the reverse sweep.
    index : int | None
        Position on the tape, set by Tape.push().
    op_tag : str
        Debug tag (e.g. "var", "add").
    """
    op_tag = "var"

    def __init__(self, val):
        self.val = float(val)
        self.adj = 0.0
        self.index = None

    def accumulate(self, delta) -> None:
        self.adj += delta

    def propagate(self) -> None:
        """Leaves have nothing to propagate."""

    def operands(self) -> List["Node"]:
        return []

    def set_zero_adjoint(self) -> None:
        self.adj = 0.0

    def __repr__(self):
        return f"{type(self).__name__}({self.op_tag}, val={self.val!r}, adj={self.adj!r}, index={self.index})"


# ------------------------- fixed-arity base shapes ------------------------- #
class OpVNode(Node):
    """Unary record: one operand node."""

    def __init__(self, val, avi: Node):
        super().__init__(val)
        self.avi = avi

    def operands(self):
        return [self.avi]


class OpVVNode(Node):
    """Binary record, both operands differentiable."""

    def __init__(self, val, avi: Node, bvi: Node):
        super().__init__(val)
        self.avi = avi
        self.bvi = bvi

    def operands(self):
        return [self.avi, self.bvi]


class OpVDNode(Node):
    """Binary record, left operand differentiable, right operand a constant."""

    def __init__(self, val, avi: Node, bd: float):
        super().__init__(val)
        self.avi = avi
        self.bd = float(bd)

    def operands(self):
        return [self.avi]


class OpDVNode(Node):
    """Binary record, left operand a constant, right operand differentiable."""

    def __init__(self, val, ad: float, bvi: Node):
        super().__init__(val)
        self.ad = float(ad)
        self.bvi = bvi

    def operands(self):
        return [self.bvi]


# ------------------- records driven by partial-derivative rules ------------------- #
# A rule has the signature rule(a, b, y) -> d y / d operand, where a and b are
# the operand values (constants included) and y is the node value.
Rule = Callable[[float, float, float], float]


class UnaryRuleNode(OpVNode):
    def __init__(self, val, avi: Node, dfda: Rule, op_tag: str):
        super().__init__(val, avi)
        self.dfda = dfda
        self.op_tag = op_tag

    def propagate(self):
        self.avi.adj += self.adj * self.dfda(self.avi.val, None, self.val)


class BinaryRuleVVNode(OpVVNode):
    def __init__(self, val, avi: Node, bvi: Node, dfda: Rule, dfdb: Rule, op_tag: str):
        super().__init__(val, avi, bvi)
        self.dfda = dfda
        self.dfdb = dfdb
        self.op_tag = op_tag

    def propagate(self):
        a, b = self.avi.val, self.bvi.val
        self.avi.adj += self.adj * self.dfda(a, b, self.val)
        self.bvi.adj += self.adj * self.dfdb(a, b, self.val)


class BinaryRuleVDNode(OpVDNode):
    def __init__(self, val, avi: Node, bd: float, dfda: Rule, op_tag: str):
        super().__init__(val, avi, bd)
        self.dfda = dfda
        self.op_tag = op_tag

    def propagate(self):
        self.avi.adj += self.adj * self.dfda(self.avi.val, self.bd, self.val)


class BinaryRuleDVNode(OpDVNode):
    def __init__(self, val, ad: float, bvi: Node, dfdb: Rule, op_tag: str):
        super().__init__(val, ad, bvi)
        self.dfdb = dfdb
        self.op_tag = op_tag

    def propagate(self):
        self.bvi.adj += self.adj * self.dfdb(self.ad, self.bvi.val, self.val)


# ----------------------------- generic N-ary ----------------------------- #
class PrecomputedGradientsNode(Node):
    """
    N-ary record with partial derivatives known at construction.

    The operand tape indices and the partials are copied into the tape's
    arena; propagate() adds `adj * partials[i]` into operand i. An operand
    may appear more than once; each occurrence contributes. Every partial is
    multiplied in, even for a zero adjoint, so an infinite or NaN partial
    yields NaN.
    """
    op_tag = "precomputed_gradients"

    def __init__(self, tape, val, operands: Sequence[Node], gradients, op_tag: str = None):
        super().__init__(val)
        gradients = np.asarray(gradients, dtype=np.float64).ravel()
        if gradients.size != len(operands):
            raise ValueError(
                f"got {gradients.size} partials for {len(operands)} operands"
            )
        self.tape = tape
        self.size = len(operands)
        self.operands_handle = tape.arena.allocate_copy([vi.index for vi in operands], np.int64)
        self.gradients_handle = tape.arena.allocate_copy(gradients, np.float64)
        if op_tag is not None:
            self.op_tag = op_tag

    def operands(self):
        return self.tape.nodes_at(self.operands_handle, self.size)

    def gradients(self) -> np.ndarray:
        return self.tape.arena.view(self.gradients_handle, self.size, np.float64)

    def propagate(self):
        adj = self.adj
        for vi, g in zip(self.operands(), self.gradients().tolist()):
            vi.adj += adj * g
