# aad/core/var.py
from __future__ import annotations

from typing import Any, List, Optional

import numpy as np

from .node import Node
from .tape import Tape, current_tape

_REAL_TYPES = (int, float, np.integer, np.floating)


class ADVar:
    """
    Handle to a differentiable scalar on the tape.

    An ADVar does not own its value: `val` and `adj` live on the Node it
    references (`vi`). Copying the handle (assignment, copy.copy, storing it
    in several arrays) shares the node, so every copy sees the same adjoint.

    Attributes
    ----------
    vi : Node
        The referenced node.
    requires_grad : bool
        If False the handle is a constant: its node is never pushed on the
        tape and operations treat it like a plain float.
    name : Optional[str]
        Optional debug/pretty-print name.
    """

    # Binary operators with numpy scalars/arrays on the left defer to ADVar
    __array_ufunc__ = None
    __array_priority__ = 1000

    def __init__(self, val: Any, *, requires_grad: bool = True, name: Optional[str] = None):
        # Type check: only real scalars; arrays go through to_var()
        if isinstance(val, bool) or not isinstance(val, _REAL_TYPES):
            raise TypeError(
                f"ADVar only accepts real scalars (int, float, numpy scalar), "
                f"but got {type(val)}; use to_var() for arrays"
            )
        self.vi = Node(val)
        self.requires_grad = requires_grad
        self.name = name
        if requires_grad:
            current_tape().push(self.vi)

    @classmethod
    def from_node(cls, node: Node, name: Optional[str] = None) -> "ADVar":
        """Wrap an existing (already pushed) node without creating a new one."""
        v = cls.__new__(cls)
        v.vi = node
        v.requires_grad = True
        v.name = name
        return v

    @property
    def val(self) -> float:
        return self.vi.val

    @property
    def adj(self) -> float:
        return self.vi.adj

    @property
    def index(self) -> Optional[int]:
        return self.vi.index

    def __repr__(self):
        # Short label: "req" if requires_grad=True, else "const"
        rg = "req" if self.requires_grad else "const"
        return f"ADVar({self.val!r}, {rg}, name={self.name!r})"

    def __float__(self):
        return self.val

    # Comparisons act on primal values only
    def __lt__(self, other):
        return self.val < value_of(other)

    def __le__(self, other):
        return self.val <= value_of(other)

    def __gt__(self, other):
        return self.val > value_of(other)

    def __ge__(self, other):
        return self.val >= value_of(other)

    # Operator overloading for arithmetic operations
    def __add__(self, other):
        from ..ops.arithmetic import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return mul(other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return div(other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return pow(self, other)

    def __rpow__(self, other):
        from ..ops.arithmetic import pow
        return pow(other, self)

    # Let numpy ufuncs on object arrays (np.exp(xs), ...) reach the ops
    def exp(self):
        from ..ops.transcendental import exp
        return exp(self)

    def log(self):
        from ..ops.transcendental import log
        return log(self)

    def sqrt(self):
        from ..ops.transcendental import sqrt
        return sqrt(self)


def record(node: Node, tape: Optional[Tape] = None) -> ADVar:
    """Push `node` on the (active) tape and return a handle to it."""
    (tape if tape is not None else current_tape()).push(node)
    return ADVar.from_node(node)


# ----------------------------- array helpers ----------------------------- #
def to_var(x: Any, name: Optional[str] = None):
    """
    Wrap numbers as differentiable leaves.

    A scalar gives an ADVar; anything array-like gives an object ndarray of
    ADVars with the same shape (one leaf per element, C order).
    """
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim == 0:
        return ADVar(float(arr), name=name)
    out = np.empty(arr.shape, dtype=object)
    for idx in np.ndindex(arr.shape):
        label = None if name is None else f"{name}{list(idx)}"
        out[idx] = ADVar(float(arr[idx]), name=label)
    return out


def value_of(x: Any):
    """Primal value(s): float for scalars, float ndarray for arrays."""
    if isinstance(x, ADVar):
        return x.val
    arr = np.asarray(x)
    if arr.dtype == object:
        vals = [v.val if isinstance(v, ADVar) else float(v) for v in arr.ravel()]
        out = np.array(vals, dtype=np.float64).reshape(arr.shape)
        return float(out) if out.ndim == 0 else out
    if arr.ndim == 0:
        return float(arr)
    return arr.astype(np.float64)


def adjoint_of(x: Any):
    """Adjoint(s) with the shape of `x`; constants report 0.0."""
    if isinstance(x, ADVar):
        return x.adj if x.requires_grad else 0.0
    arr = np.asarray(x, dtype=object)
    adjs = [v.adj if isinstance(v, ADVar) and v.requires_grad else 0.0 for v in arr.ravel()]
    out = np.array(adjs, dtype=np.float64).reshape(arr.shape)
    return float(out) if out.ndim == 0 else out


def is_constant(x: Any) -> bool:
    """True when `x` contains no differentiable ADVar."""
    if isinstance(x, ADVar):
        return not x.requires_grad
    arr = np.asarray(x)
    if arr.dtype != object:
        return True
    return not any(isinstance(v, ADVar) and v.requires_grad for v in arr.ravel())


def var_nodes(x: Any, tape: Optional[Tape] = None) -> List[Node]:
    """
    Nodes of every element of `x` in C order.

    Constant elements of a mixed array are promoted to fresh leaves so each
    element has a node to receive its adjoint.
    """
    if isinstance(x, ADVar) and x.requires_grad:
        return [x.vi]
    nodes = []
    for v in np.asarray(x, dtype=object).ravel():
        if not (isinstance(v, ADVar) and v.requires_grad):
            node = Node(value_of(v))
            (tape if tape is not None else current_tape()).push(node)
            nodes.append(node)
        else:
            nodes.append(v.vi)
    return nodes
