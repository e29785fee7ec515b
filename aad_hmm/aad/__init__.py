# aad/__init__.py
# Automatic Adjoint Differentiation library

from .config import AADConfig, get_config, configure
from .core.arena import Arena
from .core.var import ADVar, to_var, value_of, adjoint_of, is_constant
from .core.tape import Tape, current_tape, use_tape, nested
from .core.engine import reverse, zero_adjoints
from .core.seeds import grad, grads, grads_list, gradient, finite_diff_gradient
from .functor import AdjJacOp, adj_jac_apply, OperandsAndPartials
from . import ops

__all__ = [
    # Config
    'AADConfig',
    'get_config',
    'configure',
    # Core
    'Arena',
    'ADVar',
    'to_var',
    'value_of',
    'adjoint_of',
    'is_constant',
    'Tape',
    'current_tape',
    'use_tape',
    'nested',
    # Engine
    'reverse',
    'zero_adjoints',
    'grad',
    'grads',
    'grads_list',
    'gradient',
    'finite_diff_gradient',
    # Functors
    'AdjJacOp',
    'adj_jac_apply',
    'OperandsAndPartials',
    'ops',
]
