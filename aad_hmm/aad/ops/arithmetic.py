# aad/ops/arithmetic.py
import numpy as np
from ..core.node import BinaryRuleVVNode, BinaryRuleVDNode, BinaryRuleDVNode, UnaryRuleNode
from ..core.var import ADVar, record, is_constant, value_of


def _scalar(x, function):
    """Reject arrays: scalar ops take ADVars or real numbers."""
    if isinstance(x, ADVar):
        return x
    if np.ndim(x) != 0:
        raise TypeError(f"{function} takes scalars, got an array of shape {np.shape(x)}")
    return x


def _binary(x, y, f, dfdx, dfdy, tag):
    """
    Generic binary primitive:
      - computes the value f(x.val, y.val)
      - records only the differentiable operands, picking the vv / vd / dv record
      - the partial rules dfdx(a, b, out) / dfdy(a, b, out) are evaluated in the
        reverse sweep from the operand values
    If both operands are constants the plain float is returned and nothing is recorded.
    """
    x, y = _scalar(x, tag), _scalar(y, tag)
    x_var, y_var = not is_constant(x), not is_constant(y)
    a, b = value_of(x), value_of(y)
    val = f(a, b)

    if x_var and y_var:
        return record(BinaryRuleVVNode(val, x.vi, y.vi, dfdx, dfdy, tag))
    if x_var:
        return record(BinaryRuleVDNode(val, x.vi, b, dfdx, tag))
    if y_var:
        return record(BinaryRuleDVNode(val, a, y.vi, dfdy, tag))
    return float(val)


def _unary(x, f, dfdx, tag):
    x = _scalar(x, tag)
    val = f(value_of(x))
    if is_constant(x):
        return float(val)
    return record(UnaryRuleNode(val, x.vi, dfdx, tag))


def add(x, y): return _binary(x, y, lambda a,b:a+b, lambda a,b,o:1.0,     lambda a,b,o:1.0,      "add")
def sub(x, y): return _binary(x, y, lambda a,b:a-b, lambda a,b,o:1.0,     lambda a,b,o:-1.0,     "sub")
def mul(x, y): return _binary(x, y, lambda a,b:a*b, lambda a,b,o:b,       lambda a,b,o:a,        "mul")
def div(x, y): return _binary(x, y, lambda a,b:a/b, lambda a,b,o:1.0/b,   lambda a,b,o:-o/b,     "div")


def neg(x):
    """
    Unary negation:
      out.val = -x.val
      ∂out/∂x = -1
    """
    return _unary(x, lambda a: -a, lambda a, _, o: -1.0, "neg")


def _pow_dfdx(a, b, out):
    # ∂out/∂x = y * x^(y-1)
    return b * np.power(a, b - 1.0)


def _pow_dfdy(a, b, out):
    # ∂out/∂y = x^y * log(x), requires x>0 (taken as 0 elsewhere)
    return out * np.log(a) if a > 0 else 0.0


def pow(x, y):
    """
    Power (demo-level domain handling):
      out.val = x.val ** y.val

    Local partials:
      ∂out/∂x = y * x^(y-1)
      ∂out/∂y = x^y * log(x)        (requires x>0 for non-integer y)
    """
    return _binary(x, y, lambda a, b: np.power(a, b), _pow_dfdx, _pow_dfdy, "pow")
