"""
Adjoint output builder: one node for a function of mixed-shape arguments.
"""

import numpy as np
import pytest

from aad_hmm.aad import ADVar, OperandsAndPartials, reverse, to_var, adjoint_of


def test_mixed_shapes_one_node(tape):
    s = ADVar(2.0)
    v = to_var([1.0, 2.0])
    m = to_var([[1.0, 0.0], [0.0, 1.0]])
    n_before = len(tape)

    ops_partials = OperandsAndPartials(s, v, m)
    assert len(ops_partials) == 3
    assert ops_partials[0].shape == ()
    assert ops_partials[2].shape == (2, 2)

    ops_partials[0].partials[...] = 5.0
    ops_partials[1].partials[:] = [1.0, -1.0]
    ops_partials[2].partials[:] = [[1.0, 2.0], [3.0, 4.0]]
    out = ops_partials.build(7.0)

    assert out.val == 7.0
    assert len(tape) == n_before + 1
    assert tape.nodes[-1].op_tag == "operands_and_partials"

    reverse(out * 2.0)
    assert s.adj == 10.0
    np.testing.assert_array_equal(adjoint_of(v), [2.0, -2.0])
    np.testing.assert_array_equal(adjoint_of(m), [[2.0, 4.0], [6.0, 8.0]])


def test_constant_edges_have_no_partials(tape):
    v = to_var([1.0, 2.0])
    ops_partials = OperandsAndPartials(3.0, v, np.ones((2, 2)))

    assert ops_partials[0].is_constant and ops_partials[0].partials is None
    assert ops_partials[2].is_constant and ops_partials[2].partials is None
    assert not ops_partials[1].is_constant

    ops_partials[1].partials[:] = [0.5, 0.25]
    out = ops_partials.build(1.0, op_tag="custom")
    assert tape.nodes[-1].op_tag == "custom"
    assert tape.nodes[-1].operands() == [x.vi for x in v]

    reverse(out)
    np.testing.assert_array_equal(adjoint_of(v), [0.5, 0.25])


def test_all_constant_returns_float(tape):
    ops_partials = OperandsAndPartials(1.0, np.zeros(3))
    out = ops_partials.build(4.0)
    assert out == 4.0
    assert isinstance(out, float)
    assert len(tape) == 0
    assert tape.arena.n_allocations == 0


def test_repeated_operand_accumulates():
    x = ADVar(3.0)
    ops_partials = OperandsAndPartials(x, x)
    ops_partials[0].partials[...] = 1.0
    ops_partials[1].partials[...] = 2.0
    reverse(ops_partials.build(0.0))
    assert x.adj == 3.0


def test_wrong_partials_shape_rejected():
    ops_partials = OperandsAndPartials(to_var([1.0, 2.0]))
    ops_partials[0].partials = np.zeros(3)
    with pytest.raises(ValueError, match="do not match operand shape"):
        ops_partials.build(0.0)


def test_unused_output_contributes_nothing():
    x = ADVar(1.0)
    ops_partials = OperandsAndPartials(x)
    ops_partials[0].partials[...] = 5.0
    ops_partials.build(0.0)
    other = x * 2.0
    reverse(other)
    assert x.adj == 2.0


def test_infinite_partial_with_zero_adjoint_gives_nan():
    x = ADVar(1.0)
    ops_partials = OperandsAndPartials(x)
    ops_partials[0].partials[...] = np.inf
    ops_partials.build(0.0)
    reverse(x * 2.0)
    assert np.isnan(x.adj)
