# aad/ops/constraints.py
"""
Constraining transforms built on adj_jac_apply.

ordered_constrain maps an unconstrained vector x to a strictly increasing y:

    y[0] = x[0]
    y[n] = y[n-1] + exp(x[n])        n >= 1

Output n depends on every input up to n, so the Jacobian is lower
triangular and adj^T J is a suffix sum of the output adjoint:

    rolling = sum_{m >= n} adj[m]
    grad[n] = exp(x[n]) * rolling    n >= 1
    grad[0] = rolling(over m >= 1) + adj[0]

one backward scan, no Jacobian matrix. exp(x[n]) is cached in the arena
during the forward pass.
"""
import numpy as np

from ..functor.adj_jac_apply import AdjJacOp, adj_jac_apply
from ..core.var import value_of
from ...err import check_vector, check_nonzero_size, check_ordered, check_positive_ordered


class OrderedConstrainOp(AdjJacOp):

    def forward(self, x):
        self.N = x.size
        y = np.empty(self.N, dtype=np.float64)
        if self.N == 0:
            return y

        self.exp_x_handle = self.arena.allocate_array(self.N - 1)
        exp_x = self.arena.view(self.exp_x_handle, self.N - 1)

        y[0] = x[0]
        for n in range(1, self.N):
            exp_x[n - 1] = np.exp(x[n])
            y[n] = y[n - 1] + exp_x[n - 1]
        return y

    def multiply_adjoint_jacobian(self, adj):
        adj_times_jac = np.empty(self.N, dtype=np.float64)
        rolling_adjoint_sum = 0.0

        if self.N > 0:
            exp_x = self.arena.view(self.exp_x_handle, self.N - 1)
            for n in range(self.N - 1, 0, -1):
                rolling_adjoint_sum += adj[n]
                adj_times_jac[n] = exp_x[n - 1] * rolling_adjoint_sum
            adj_times_jac[0] = rolling_adjoint_sum + adj[0]

        return adj_times_jac


class PositiveOrderedConstrainOp(AdjJacOp):
    """
    y[0] = exp(x[0]), y[n] = y[n-1] + exp(x[n]); every element is positive.
    grad[n] = exp(x[n]) * sum_{m >= n} adj[m]
    """

    def forward(self, x):
        self.N = x.size
        y = np.empty(self.N, dtype=np.float64)
        if self.N == 0:
            return y

        self.exp_x_handle = self.arena.allocate_array(self.N)
        exp_x = self.arena.view(self.exp_x_handle, self.N)

        exp_x[0] = np.exp(x[0])
        y[0] = exp_x[0]
        for n in range(1, self.N):
            exp_x[n] = np.exp(x[n])
            y[n] = y[n - 1] + exp_x[n]
        return y

    def multiply_adjoint_jacobian(self, adj):
        adj_times_jac = np.empty(self.N, dtype=np.float64)
        if self.N == 0:
            return adj_times_jac

        exp_x = self.arena.view(self.exp_x_handle, self.N)
        rolling_adjoint_sum = 0.0
        for n in range(self.N - 1, -1, -1):
            rolling_adjoint_sum += adj[n]
            adj_times_jac[n] = exp_x[n] * rolling_adjoint_sum
        return adj_times_jac


class SoftmaxOp(AdjJacOp):
    """
    y = exp(x - max x) / sum(exp(x - max x))
    adj^T J = y * (adj - adj . y)
    """

    def forward(self, alpha):
        self.N = alpha.size
        theta = np.exp(alpha - np.max(alpha))
        theta /= np.sum(theta)
        self.y_handle = self.arena.allocate_copy(theta)
        return theta

    def multiply_adjoint_jacobian(self, adj):
        y = self.arena.view(self.y_handle, self.N)
        return y * (adj - np.dot(adj, y))


# ----------------------------- entry points ----------------------------- #
def ordered_constrain(x):
    """Increasing ordered vector from an unconstrained vector of the same size."""
    check_vector("ordered_constrain", "x", value_of(x))
    return adj_jac_apply(OrderedConstrainOp, x)


def positive_ordered_constrain(x):
    """Positive, increasing ordered vector from an unconstrained vector."""
    check_vector("positive_ordered_constrain", "x", value_of(x))
    return adj_jac_apply(PositiveOrderedConstrainOp, x)


def softmax(alpha):
    """Softmax of a non-empty vector."""
    alpha_val = value_of(alpha)
    check_vector("softmax", "alpha", alpha_val)
    check_nonzero_size("softmax", "alpha", alpha_val)
    return adj_jac_apply(SoftmaxOp, alpha)


# ----------------------------- inverse transforms ----------------------------- #
def ordered_free(y):
    """Unconstrained vector x with ordered_constrain(x) == y (plain floats)."""
    y = np.asarray(value_of(y), dtype=np.float64)
    check_ordered("ordered_free", "y", y)
    x = np.empty_like(y)
    if y.size == 0:
        return x
    x[0] = y[0]
    x[1:] = np.log(np.diff(y))
    return x


def positive_ordered_free(y):
    """Unconstrained vector x with positive_ordered_constrain(x) == y (plain floats)."""
    y = np.asarray(value_of(y), dtype=np.float64)
    check_positive_ordered("positive_ordered_free", "y", y)
    x = np.empty_like(y)
    if y.size == 0:
        return x
    x[0] = np.log(y[0])
    x[1:] = np.log(np.diff(y))
    return x
