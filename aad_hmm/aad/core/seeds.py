# aad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the scalar output and let gradients grow
# backwards through the tape.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Tuple, Union
import numpy as np

from .var import ADVar, to_var, adjoint_of, value_of as _value_of
from .tape import use_tape
from .engine import reverse, zero_adjoints

Numeric = Union[float, np.ndarray]


def value(x: Any) -> Any:
    """Return the numeric value of an ADVar (or array of them); pass through plain numbers unchanged."""
    if isinstance(x, (ADVar, np.ndarray, list, tuple)):
        return _value_of(x)
    return x


def _ensure_ad(v: Any, *, name: str):
    """Wrap a plain value as ADVar (scalar) or ADVar array; otherwise return it unchanged."""
    if isinstance(v, ADVar):
        return v
    if isinstance(v, np.ndarray) and v.dtype == object:
        return v
    return to_var(v, name=name)


def _check_scalar_output(y, caller: str):
    """Expect scalar output; plain numbers are wrapped as constants."""
    if isinstance(y, ADVar):
        return y
    if np.ndim(y) != 0:
        raise ValueError(f"{caller} expects scalar output.")
    return ADVar(float(_value_of(y)), requires_grad=False, name="y")


# ----------------------------- single-input grad ----------------------------- #
def grad(f: Callable[[Any], ADVar], x0: Numeric) -> Numeric:
    """
    Gradient of a scalar-output function y=f(x) at x0 (single input).
    x0 may be a scalar or an array; the result has the same shape.
    Runs one reverse pass within a fresh, isolated tape.
    """
    with use_tape():
        x = _ensure_ad(x0, name="x")
        y = _check_scalar_output(f(x), "grad(f, x0)")
        zero_adjoints()
        reverse(y, seed=1.0)
        return adjoint_of(x)


def gradient(f: Callable[[Any], ADVar], x0: Numeric) -> Tuple[float, Numeric]:
    """
    Value and gradient of y=f(x) at x0 in one forward and one reverse pass.

    Returns
    -------
    (fx, grad_fx) with grad_fx shaped like x0.
    """
    with use_tape():
        x = _ensure_ad(x0, name="x")
        y = _check_scalar_output(f(x), "gradient(f, x0)")
        reverse(y, seed=1.0)
        return y.val, adjoint_of(x)


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, Any]], ADVar],
          inputs: Dict[str, Numeric]) -> Dict[str, Numeric]:
    """
    Gradient of a scalar-output function y=f(vars) w.r.t. ALL inputs (dict form).
    Performs ONE reverse pass to obtain all ∂y/∂var simultaneously.

    Parameters
    ----------
    f       : function taking a dict {name: ADVar or ADVar array} and returning a scalar ADVar
    inputs  : dict {name: numeric}

    Returns
    -------
    dict {name: numeric}  # gradients in the same key order as `inputs`
    """
    with use_tape():
        vars_ad: Dict[str, Any] = {k: _ensure_ad(v, name=k) for k, v in inputs.items()}
        y = _check_scalar_output(f(vars_ad), "grads(f, inputs)")
        zero_adjoints()
        reverse(y, seed=1.0)
        return {k: adjoint_of(vars_ad[k]) for k in inputs.keys()}


def grads_list(f: Callable[[List[Any]], ADVar],
               x0_list: Iterable[Numeric]) -> List[Numeric]:
    """
    Same as grads(), but the inputs are provided as a list and the result is a list
    of partials in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    grads_list(f, [2.0, 4.0]) -> [4.0, 3.0]
    """
    with use_tape():
        xs: List[Any] = [_ensure_ad(v, name=f"x{i}") for i, v in enumerate(x0_list)]
        y = _check_scalar_output(f(xs), "grads_list(f, x0_list)")
        zero_adjoints()
        reverse(y, seed=1.0)
        return [adjoint_of(x) for x in xs]


# ----------------------------- reference ----------------------------- #
def finite_diff_gradient(f: Callable[[Any], float], x0: Numeric, epsilon: float = 1e-6) -> Numeric:
    """
    Central finite-difference gradient of a plain-float function.

    Each component costs two evaluations of f: (f(x + h e_i) - f(x - h e_i)) / 2h.
    Used as the reference the adjoints are checked against.
    """
    x = np.array(x0, dtype=np.float64)
    if x.ndim == 0:
        return (float(f(float(x) + epsilon)) - float(f(float(x) - epsilon))) / (2.0 * epsilon)
    g = np.zeros_like(x)
    for idx in np.ndindex(x.shape):
        orig = x[idx]
        x[idx] = orig + epsilon
        f_plus = float(f(x.copy()))
        x[idx] = orig - epsilon
        f_minus = float(f(x.copy()))
        x[idx] = orig
        g[idx] = (f_plus - f_minus) / (2.0 * epsilon)
    return g
