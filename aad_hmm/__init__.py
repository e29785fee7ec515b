# aad_hmm/__init__.py
# Reverse-mode automatic differentiation with a forward-backward HMM case study

import logging

from .err import AADError, ShapeError, DomainError, ArenaExhaustion
from .aad import (
    ADVar,
    Tape,
    Arena,
    current_tape,
    use_tape,
    nested,
    reverse,
    zero_adjoints,
    to_var,
    value_of,
    adjoint_of,
    grad,
    grads,
    gradient,
)
from .prob import hmm_marginal_lpdf, hmm_hidden_state_prob, hmm_latent_rng

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    'AADError',
    'ShapeError',
    'DomainError',
    'ArenaExhaustion',
    # Engine
    'ADVar',
    'Tape',
    'Arena',
    'current_tape',
    'use_tape',
    'nested',
    'reverse',
    'zero_adjoints',
    'to_var',
    'value_of',
    'adjoint_of',
    'grad',
    'grads',
    'gradient',
    # HMM
    'hmm_marginal_lpdf',
    'hmm_hidden_state_prob',
    'hmm_latent_rng',
]
