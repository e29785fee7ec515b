# aad/ops/transcendental.py
import numpy as np
from scipy.special import erf as scipy_erf

from .arithmetic import _unary


def exp(x):
    # ∂exp(x)/∂x = exp(x): the rule reads the node's own value
    return _unary(x, np.exp, lambda a, _, o: o, "exp")


def log(x):
    return _unary(x, np.log, lambda a, _, o: 1.0 / a, "log")


def sqrt(x):
    return _unary(x, np.sqrt, lambda a, _, o: 0.5 / o, "sqrt")


def log1p(x):
    return _unary(x, np.log1p, lambda a, _, o: 1.0 / (1.0 + a), "log1p")


def erf(x):
    """
    Error function: erf(x) = (2/√π) ∫₀ˣ e^(-t²) dt

    Derivative: d/dx erf(x) = (2/√π) * e^(-x²)
    """
    return _unary(x, scipy_erf, lambda a, _, o: (2.0 / np.sqrt(np.pi)) * np.exp(-a * a), "erf")
