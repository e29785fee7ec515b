"""
Hidden Markov Model marginal likelihood with adjoint gradients

For a Hidden Markov Model with observations y_0..y_T, hidden states
x_n ∈ {0, ..., K-1} and parameters

    log_omegas : (K, T+1)  log_omegas[i, n] = log p(y_n | x_n = i)
    Gamma      : (K, K)    Gamma[i, j] = p(x_{n+1} = j | x_n = i), rows are simplexes
    rho        : (K,)      p(x_0 = i), a simplex

the log marginal density log p(y | Gamma, rho) is obtained by the forward
algorithm in probability space:

    alpha_0     = omega_0 ∘ rho
    alpha_{n+1} = omega_{n+1} ∘ (Gammaᵀ alpha_n)
    log p(y)    = log(Σ_i alpha_T[i])

Each alpha column is divided by its maximum coefficient to stay in floating
point range; the removed scale is tracked as the running sum
alpha_log_norms[n] = Σ_{m<=n} log(norm_m).

Gradients come from a backward ("kappa") recursion rescaled the same way,
with a per-step correction exp(alpha_log_norms[n] + kappa_log_norms[n] -
alpha_log_norms[T]) that reconciles the two rescalings with the single
normalisation of the marginal (Betancourt, Margossian & Leos-Barajas, 2020).

The result is one tape node built by OperandsAndPartials: the forward
recursion gives the value, the kappa recursion the partials, and only the
non-constant arguments get partials computed.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..aad.core.var import value_of
from ..aad.functor.operands_and_partials import OperandsAndPartials
from ..err import (
    ShapeError,
    check_matrix,
    check_vector,
    check_nonzero_size,
    check_square,
    check_consistent_size,
    check_simplex,
)

logger = logging.getLogger(__name__)


@dataclass
class HMMForwardState:
    """Intermediates of the forward recursion kept for the adjoint pass."""
    alphas: np.ndarray           # (K, T+1) column-wise rescaled forward variables
    alpha_log_norms: np.ndarray  # (T+1,) cumulative log rescaling factors
    omegas: np.ndarray           # (K, T+1) exp(log_omegas)
    log_marginal_density: float

    @property
    def n_transitions(self) -> int:
        return self.alphas.shape[1] - 1


def _check_hmm_arguments(function: str, log_omegas, Gamma, rho) -> None:
    """Shape and simplex preconditions shared by every HMM function."""
    check_matrix(function, "log_omegas", log_omegas)
    check_nonzero_size(function, "log_omegas", log_omegas)
    n_states = log_omegas.shape[0]

    check_square(function, "Gamma", Gamma)
    if Gamma.shape[0] != n_states:
        raise ShapeError(
            function, "Gamma",
            f"has dimension = {Gamma.shape[0]}, expecting dimension = {n_states}"
        )
    for i in range(Gamma.shape[0]):
        check_simplex(function, "Gamma[i, ]", Gamma[i])

    check_vector(function, "rho", rho)
    check_consistent_size(function, "rho", rho, n_states)
    check_simplex(function, "rho", rho)


# --------------------------------- forward --------------------------------- #
def hmm_forward(log_omegas: np.ndarray, Gamma: np.ndarray, rho: np.ndarray) -> HMMForwardState:
    """
    Rescaled forward recursion on plain float arrays (no checks).

    Returns:
        HMMForwardState with alphas, alpha_log_norms, omegas and the log
        marginal density.
    """
    log_omegas = np.asarray(log_omegas, dtype=np.float64)
    Gamma = np.asarray(Gamma, dtype=np.float64)
    rho = np.asarray(rho, dtype=np.float64)

    omegas = np.exp(log_omegas)
    n_states, n_obs = omegas.shape
    n_transitions = n_obs - 1

    alphas = np.empty((n_states, n_obs))
    alpha_log_norms = np.empty(n_obs)

    with np.errstate(divide='ignore', invalid='ignore'):
        alphas[:, 0] = omegas[:, 0] * rho
        norm = alphas[:, 0].max()
        alphas[:, 0] /= norm
        alpha_log_norms[0] = np.log(norm)

        for n in range(n_transitions):
            alphas[:, n + 1] = omegas[:, n + 1] * (Gamma.T @ alphas[:, n])

            norm = alphas[:, n + 1].max()
            alphas[:, n + 1] /= norm
            alpha_log_norms[n + 1] = np.log(norm) + alpha_log_norms[n]

        log_marginal_density = float(np.log(alphas[:, n_transitions].sum())
                                     + alpha_log_norms[n_transitions])

    if not np.isfinite(log_marginal_density):
        warnings.warn(
            f"hmm_marginal_lpdf: log marginal density is {log_marginal_density}; "
            f"the observations have zero probability under every hidden path",
            RuntimeWarning,
            stacklevel=3,
        )

    return HMMForwardState(alphas, alpha_log_norms, omegas, log_marginal_density)


# --------------------------------- adjoint --------------------------------- #
def hmm_adjoints(state: HMMForwardState, Gamma: np.ndarray, rho: np.ndarray, *,
                 need_log_omegas: bool = True, need_Gamma: bool = True,
                 need_rho: bool = True) -> Tuple[Optional[np.ndarray], ...]:
    """
    Partial derivatives of the log marginal density from the kappa recursion.

    Args:
        state: result of hmm_forward
        Gamma, rho: the float arguments hmm_forward was called with
        need_*: compute the partials of that argument (None otherwise)

    Returns:
        (d_log_omegas, d_Gamma, d_rho), each shaped like its argument or None
    """
    Gamma = np.asarray(Gamma, dtype=np.float64)
    rho = np.asarray(rho, dtype=np.float64)
    alphas = state.alphas
    alpha_log_norms = state.alpha_log_norms
    omegas = state.omegas
    n_states = alphas.shape[0]
    n_transitions = state.n_transitions

    # Shared by all three Jacobian-adjoint products
    norm_norm = alpha_log_norms[n_transitions]
    unnormed_marginal = alphas[:, n_transitions].sum()

    kappa = np.empty((n_states, n_transitions))
    kappa_log_norms = np.empty(n_transitions)
    grad_corr = np.empty(n_transitions)

    if n_transitions > 0:
        kappa[:, n_transitions - 1] = 1.0
        kappa_log_norms[n_transitions - 1] = 0.0
        grad_corr[n_transitions - 1] = np.exp(alpha_log_norms[n_transitions - 1] - norm_norm)

    for n in range(n_transitions - 2, -1, -1):
        kappa[:, n] = Gamma @ (omegas[:, n + 2] * kappa[:, n + 1])

        norm = kappa[:, n].max()
        kappa[:, n] /= norm
        kappa_log_norms[n] = np.log(norm) + kappa_log_norms[n + 1]
        grad_corr[n] = np.exp(alpha_log_norms[n] + kappa_log_norms[n] - norm_norm)

    d_Gamma = None
    if need_Gamma:
        d_Gamma = np.zeros((n_states, n_states))
        for n in range(n_transitions - 1, -1, -1):
            d_Gamma += grad_corr[n] * np.outer(alphas[:, n], kappa[:, n] * omegas[:, n + 1])
        d_Gamma /= unnormed_marginal

    d_log_omegas = None
    d_rho = None
    if need_log_omegas or need_rho:
        log_omega_jacad = np.zeros((n_states, n_transitions + 1))

        if need_log_omegas:
            for n in range(n_transitions - 1, -1, -1):
                log_omega_jacad[:, n + 1] = grad_corr[n] * kappa[:, n] * (Gamma.T @ alphas[:, n])

        # Boundary terms
        if n_transitions == 0:
            marginal = np.exp(state.log_marginal_density)
            if need_log_omegas:
                log_omega_jacad[:, 0] = omegas[:, 0] * rho / marginal
                d_log_omegas = log_omega_jacad
            if need_rho:
                d_rho = omegas[:, 0] / marginal
        else:
            grad_corr_boundary = np.exp(kappa_log_norms[0] - norm_norm)
            c = Gamma @ (omegas[:, 1] * kappa[:, 0])

            if need_log_omegas:
                log_omega_jacad[:, 0] = grad_corr_boundary * c * rho
                d_log_omegas = log_omega_jacad * omegas / unnormed_marginal
            if need_rho:
                d_rho = grad_corr_boundary * c * omegas[:, 0] / unnormed_marginal

    return d_log_omegas, d_Gamma, d_rho


# --------------------------------- public --------------------------------- #
def hmm_marginal_lpdf(log_omegas, Gamma, rho):
    """
    Log marginal density of an HMM, differentiable in any of its arguments.

    Args:
        log_omegas: (K, T+1) log observation densities, floats or ADVars
        Gamma: (K, K) transition matrix with simplex rows, floats or ADVars
        rho: (K,) initial state distribution, floats or ADVars

    Returns:
        float if every argument is constant, otherwise an ADVar

    Raises:
        ShapeError: log_omegas not a non-empty matrix, Gamma not square or
            not K x K, rho not of size K
        DomainError: a row of Gamma or rho is not a simplex
    """
    function = "hmm_marginal_lpdf"
    log_omegas_val = np.asarray(value_of(log_omegas), dtype=np.float64)
    Gamma_val = np.asarray(value_of(Gamma), dtype=np.float64)
    rho_val = np.asarray(value_of(rho), dtype=np.float64)

    _check_hmm_arguments(function, log_omegas_val, Gamma_val, rho_val)

    ops_partials = OperandsAndPartials(log_omegas, Gamma, rho)
    logger.debug("%s: %d states, %d observations", function, *log_omegas_val.shape)

    state = hmm_forward(log_omegas_val, Gamma_val, rho_val)

    need_log_omegas = not ops_partials[0].is_constant
    need_Gamma = not ops_partials[1].is_constant
    need_rho = not ops_partials[2].is_constant
    if need_log_omegas or need_Gamma or need_rho:
        d_log_omegas, d_Gamma, d_rho = hmm_adjoints(
            state, Gamma_val, rho_val,
            need_log_omegas=need_log_omegas, need_Gamma=need_Gamma, need_rho=need_rho,
        )
        if need_log_omegas:
            ops_partials[0].partials[:] = d_log_omegas
        if need_Gamma:
            ops_partials[1].partials[:] = d_Gamma
        if need_rho:
            ops_partials[2].partials[:] = d_rho

    return ops_partials.build(state.log_marginal_density, op_tag=function)


def hmm_hidden_state_prob(log_omegas, Gamma, rho) -> np.ndarray:
    """
    Marginal posterior probability of each hidden state at each time,
    p(x_n = i | y), as a (K, T+1) matrix whose columns sum to 1.

    Primal only: ADVar arguments are read through their values.
    """
    function = "hmm_hidden_state_prob"
    log_omegas_val = np.asarray(value_of(log_omegas), dtype=np.float64)
    Gamma_val = np.asarray(value_of(Gamma), dtype=np.float64)
    rho_val = np.asarray(value_of(rho), dtype=np.float64)
    _check_hmm_arguments(function, log_omegas_val, Gamma_val, rho_val)

    state = hmm_forward(log_omegas_val, Gamma_val, rho_val)
    alphas, omegas = state.alphas, state.omegas
    n_transitions = state.n_transitions

    probs = np.empty_like(alphas)
    probs[:, n_transitions] = alphas[:, n_transitions] / alphas[:, n_transitions].sum()

    beta = np.ones(alphas.shape[0])
    for n in range(n_transitions - 1, -1, -1):
        beta = Gamma_val @ (omegas[:, n + 1] * beta)
        beta /= beta.max()
        probs[:, n] = alphas[:, n] * beta
        probs[:, n] /= probs[:, n].sum()
    return probs


def hmm_latent_rng(log_omegas, Gamma, rho, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Draw one hidden path from p(x | y) by forward filtering, backward sampling.

    Args:
        rng: numpy Generator (a fresh default_rng() if None)

    Returns:
        int array of T+1 hidden states in {0, ..., K-1}
    """
    function = "hmm_latent_rng"
    log_omegas_val = np.asarray(value_of(log_omegas), dtype=np.float64)
    Gamma_val = np.asarray(value_of(Gamma), dtype=np.float64)
    rho_val = np.asarray(value_of(rho), dtype=np.float64)
    _check_hmm_arguments(function, log_omegas_val, Gamma_val, rho_val)

    if rng is None:
        rng = np.random.default_rng()

    state = hmm_forward(log_omegas_val, Gamma_val, rho_val)
    alphas = state.alphas
    n_states = alphas.shape[0]
    n_transitions = state.n_transitions

    hidden = np.empty(n_transitions + 1, dtype=int)
    probs = alphas[:, n_transitions] / alphas[:, n_transitions].sum()
    hidden[n_transitions] = rng.choice(n_states, p=probs)

    # p(x_n = i | x_{n+1} = j, y_0..y_n) ∝ alpha_n[i] Gamma[i, j]
    for n in range(n_transitions - 1, -1, -1):
        probs = alphas[:, n] * Gamma_val[:, hidden[n + 1]]
        probs /= probs.sum()
        hidden[n] = rng.choice(n_states, p=probs)
    return hidden
