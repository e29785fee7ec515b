"""
Probability functions built on the AAD engine.

Provides:
1. hmm_marginal_lpdf: HMM log marginal density with adjoint gradients
2. hmm_hidden_state_prob: smoothed hidden state probabilities
3. hmm_latent_rng: posterior draw of a hidden path
"""

from .hmm_marginal import (
    HMMForwardState,
    hmm_forward,
    hmm_adjoints,
    hmm_marginal_lpdf,
    hmm_hidden_state_prob,
    hmm_latent_rng,
)

__all__ = [
    'HMMForwardState',
    'hmm_forward',
    'hmm_adjoints',
    'hmm_marginal_lpdf',
    'hmm_hidden_state_prob',
    'hmm_latent_rng',
]
