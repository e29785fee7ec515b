"""
Scalar primitives, reductions and squared distance: values and adjoints.
"""

import math

import numpy as np
import pytest
from scipy.special import erf as scipy_erf, ndtr

from aad_hmm.aad import ADVar, reverse, to_var, adjoint_of, grad, finite_diff_gradient
from aad_hmm.aad import ops
from aad_hmm.err import ShapeError


@pytest.mark.parametrize("f, df, x0", [
    (ops.exp, math.exp, 0.7),
    (ops.log, lambda a: 1.0 / a, 0.7),
    (ops.sqrt, lambda a: 0.5 / math.sqrt(a), 2.3),
    (ops.log1p, lambda a: 1.0 / (1.0 + a), 0.4),
    (ops.erf, lambda a: 2.0 / math.sqrt(math.pi) * math.exp(-a * a), -0.3),
    (ops.norm_cdf, lambda a: math.exp(-0.5 * a * a) / math.sqrt(2.0 * math.pi), 1.1),
    (ops.neg, lambda a: -1.0, 1.9),
])
def test_unary_adjoints(f, df, x0):
    x = ADVar(x0)
    y = f(x)
    reverse(y)
    assert x.adj == pytest.approx(df(x0))


def test_unary_values():
    assert ops.erf(ADVar(0.5)).val == pytest.approx(scipy_erf(0.5))
    assert ops.norm_cdf(ADVar(-8.0)).val == pytest.approx(ndtr(-8.0))


def test_binary_adjoints():
    a, b = 1.7, 0.6
    x, y = ADVar(a), ADVar(b)
    reverse(x / y)
    assert x.adj == pytest.approx(1.0 / b)
    assert y.adj == pytest.approx(-a / b ** 2)

    x, y = ADVar(a), ADVar(b)
    reverse(x ** y)
    assert x.adj == pytest.approx(b * a ** (b - 1.0))
    assert y.adj == pytest.approx(a ** b * math.log(a))

    x, y = ADVar(a), ADVar(b)
    reverse(x - y)
    assert (x.adj, y.adj) == (1.0, -1.0)


def test_mixed_constant_operands():
    x = ADVar(2.0)
    reverse(3.0 / x)
    assert x.adj == pytest.approx(-3.0 / 4.0)

    x = ADVar(2.0)
    reverse(2.0 ** x)
    assert x.adj == pytest.approx(4.0 * math.log(2.0))


def test_pow_at_zero_base_has_zero_exponent_partial():
    x, y = ADVar(0.0), ADVar(2.0)
    reverse(x ** y)
    assert y.adj == 0.0
    assert x.adj == 0.0


def test_scalar_ops_reject_arrays():
    with pytest.raises(TypeError):
        ops.exp(np.array([1.0, 2.0]))


def test_constant_arguments_give_floats(tape):
    assert ops.add(1.0, 2.0) == 3.0
    assert isinstance(ops.exp(0.0), float)
    assert len(tape) == 0


# ----------------------------- reductions ----------------------------- #
def test_sum_is_one_node(tape):
    xs = to_var([1.0, 2.0, 3.0])
    s = ops.sum(xs)
    assert s.val == 6.0
    assert len(tape) == 4
    assert tape.nodes[-1].op_tag == "sum"

    reverse(s * 2.0)
    np.testing.assert_array_equal(adjoint_of(xs), [2.0, 2.0, 2.0])


def test_sum_of_constants():
    assert ops.sum(np.array([1.0, 2.0])) == 3.0
    assert ops.sum(np.array([])) == 0.0


def test_dot_product():
    x = to_var([1.0, 2.0, 3.0])
    w = np.array([0.5, -1.0, 2.0])
    d = ops.dot_product(x, w)
    assert d.val == pytest.approx(4.5)
    reverse(d)
    np.testing.assert_allclose(adjoint_of(x), w)


def test_dot_product_both_vars():
    x = to_var([1.0, 2.0])
    y = to_var([3.0, 4.0])
    reverse(ops.dot_product(x, y))
    np.testing.assert_allclose(adjoint_of(x), [3.0, 4.0])
    np.testing.assert_allclose(adjoint_of(y), [1.0, 2.0])


def test_dot_product_size_mismatch(tape):
    x = to_var([1.0, 2.0])
    n_nodes = len(tape)
    with pytest.raises(ShapeError, match="dot_product: v1 size \\(2\\) and v2 size \\(3\\)"):
        ops.dot_product(x, np.ones(3))
    assert len(tape) == n_nodes


# ----------------------------- squared distance ----------------------------- #
def test_squared_distance_scalars():
    a, b = ADVar(3.0), ADVar(1.0)
    d = ops.squared_distance(a, b)
    assert d.val == 4.0
    reverse(d)
    assert (a.adj, b.adj) == (4.0, -4.0)

    b = ADVar(1.0)
    reverse(ops.squared_distance(3.0, b))
    assert b.adj == -4.0

    assert ops.squared_distance(3.0, 1.0) == 4.0


def test_squared_distance_vectors():
    a = to_var([1.0, 2.0, 3.0])
    b = to_var([0.0, 4.0, 3.5])
    d = ops.squared_distance(a, b)
    assert d.val == pytest.approx(1.0 + 4.0 + 0.25)
    reverse(d)
    np.testing.assert_allclose(adjoint_of(a), [2.0, -4.0, -1.0])
    np.testing.assert_allclose(adjoint_of(b), [-2.0, 4.0, 1.0])


def test_squared_distance_vector_with_constant():
    a = to_var([1.0, 2.0])
    reverse(ops.squared_distance(a, [0.0, 0.0]))
    np.testing.assert_allclose(adjoint_of(a), [2.0, 4.0])

    b = to_var([1.0, 2.0])
    reverse(ops.squared_distance(np.zeros(2), b))
    np.testing.assert_allclose(adjoint_of(b), [2.0, 4.0])


def test_squared_distance_matches_finite_differences():
    target = np.array([0.3, -1.2, 2.0, 0.0])
    x0 = np.array([1.0, 0.5, -0.7, 2.2])
    g = grad(lambda x: ops.squared_distance(x, target), x0)
    ref = finite_diff_gradient(lambda x: ops.squared_distance(x, target), x0)
    np.testing.assert_allclose(g, ref, rtol=1e-6)


def test_squared_distance_rejects_before_recording(tape):
    a = to_var([1.0, 2.0])
    n_nodes = len(tape)
    n_allocations = tape.arena.n_allocations

    with pytest.raises(ShapeError, match="squared_distance: v1 size \\(2\\) and v2 size \\(3\\) must match"):
        ops.squared_distance(a, [1.0, 2.0, 3.0])
    with pytest.raises(ShapeError, match="must be a vector"):
        ops.squared_distance(np.ones((2, 2)), a)

    assert len(tape) == n_nodes
    assert tape.arena.n_allocations == n_allocations


def test_same_operand_twice_accumulates():
    x = ADVar(1.5)
    reverse(ops.add(x, x))
    assert x.adj == 2.0

    x = ADVar(1.5)
    reverse(ops.mul(x, x))
    assert x.adj == pytest.approx(3.0)

    x = ADVar(1.5)
    reverse(ops.squared_distance(x, x))
    assert x.adj == 0.0


@pytest.mark.parametrize("n", [0, 1, 7])
def test_squared_distance_vector_lengths(n):
    rng = np.random.default_rng(n)
    target = rng.normal(size=n)
    x0 = rng.normal(size=n)

    def f(x):
        return ops.squared_distance(x, target)

    g = grad(f, x0)
    assert np.shape(g) == (n,)
    np.testing.assert_allclose(g, finite_diff_gradient(f, x0), rtol=1e-6, atol=1e-9)


@pytest.mark.parametrize("n", [1, 2, 9])
def test_squared_distance_both_vectors_variable(n, tape):
    rng = np.random.default_rng(100 + n)
    z0 = rng.normal(size=2 * n)

    def f(z):
        return ops.squared_distance(z[:n], z[n:])

    g = grad(f, z0)
    np.testing.assert_allclose(g, finite_diff_gradient(f, z0), rtol=1e-6, atol=1e-9)

    a = to_var(z0[:n])
    b = to_var(z0[n:])
    ops.squared_distance(a, b)
    assert tape.nodes[-1].op_tag == "squared_distance_vec_vv"
