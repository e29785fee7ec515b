"""
Precondition checks, error messages and the engine configuration.
"""

from dataclasses import asdict

import numpy as np
import pytest

from aad_hmm.aad.config import get_config, configure
from aad_hmm.aad.core.tape import Tape
from aad_hmm.err import (
    AADError, ShapeError, DomainError,
    check_matrix, check_square, check_vector, check_consistent_size,
    check_matching_sizes, check_nonzero_size, check_finite, check_nonnegative,
    check_simplex, check_ordered, check_positive_ordered,
)


@pytest.fixture
def restore_config():
    saved = asdict(get_config())
    yield
    configure(**saved)


def test_error_hierarchy():
    assert issubclass(ShapeError, AADError) and issubclass(ShapeError, ValueError)
    assert issubclass(DomainError, AADError) and issubclass(DomainError, ValueError)


def test_shape_checks():
    check_matrix("f", "m", np.zeros((2, 3)))
    check_square("f", "m", np.eye(3))
    check_vector("f", "v", [1.0, 2.0])

    with pytest.raises(ShapeError, match="f: m must be a matrix, but has 1 dimension"):
        check_matrix("f", "m", np.zeros(3))
    with pytest.raises(ShapeError, match=r"rows \(2\) and columns \(3\)"):
        check_square("f", "m", np.zeros((2, 3)))
    with pytest.raises(ShapeError, match="v must be a vector"):
        check_vector("f", "v", np.zeros((2, 2)))
    with pytest.raises(ShapeError, match="has dimension = 2, expecting dimension = 3"):
        check_consistent_size("f", "v", [1.0, 2.0], 3)
    with pytest.raises(ShapeError, match=r"a size \(1\) and b size \(2\)"):
        check_matching_sizes("f", "a", [1.0], "b", [1.0, 2.0])
    with pytest.raises(ShapeError, match="has size 0"):
        check_nonzero_size("f", "v", [])


def test_shape_error_attributes():
    with pytest.raises(ShapeError) as excinfo:
        check_vector("softmax", "alpha", np.zeros((1, 1)))
    assert excinfo.value.function == "softmax"
    assert excinfo.value.name == "alpha"


def test_finite_and_nonnegative_report_first_bad_element():
    with pytest.raises(DomainError) as excinfo:
        check_finite("f", "m", np.array([[1.0, 2.0], [np.nan, np.inf]]))
    assert excinfo.value.index == (1, 0)
    assert str(excinfo.value).startswith("f: m[1, 0] is nan")

    with pytest.raises(DomainError, match=r"f: y is -1.0, but must be >= 0!"):
        check_nonnegative("f", "y", -1.0)
    with pytest.raises(DomainError) as excinfo:
        check_nonnegative("f", "y", [0.0, 2.0, -3.0])
    assert excinfo.value.index == 2


def test_simplex():
    check_simplex("f", "theta", [0.2, 0.3, 0.5])
    check_simplex("f", "theta", [1.0 - 1e-10, 1e-10])

    with pytest.raises(DomainError, match=r"sum\(theta\) = 1.5, but should be 1"):
        check_simplex("f", "theta", [0.5, 1.0])
    with pytest.raises(DomainError, match="should be greater than or equal to 0") as excinfo:
        check_simplex("f", "theta", [1.5, -0.5])
    assert excinfo.value.index == 1
    with pytest.raises(ShapeError):
        check_simplex("f", "theta", [])


def test_simplex_tolerance_from_config(restore_config):
    theta = [0.5, 0.5 + 1e-6]
    with pytest.raises(DomainError):
        check_simplex("f", "theta", theta)
    configure(simplex_tolerance=1e-4)
    check_simplex("f", "theta", theta)
    check_simplex("f", "theta", [0.5, 0.6], tolerance=0.2)


def test_ordered_checks():
    check_ordered("f", "y", [-1.0, 0.0, 3.0])
    check_positive_ordered("f", "y", [0.1, 0.2])
    with pytest.raises(DomainError) as excinfo:
        check_ordered("f", "y", [0.0, 1.0, 1.0])
    assert excinfo.value.index == 2
    with pytest.raises(DomainError, match="should be positive"):
        check_positive_ordered("f", "y", [-0.1, 0.2])


def test_configure_arena_sizes(restore_config):
    configure(arena_initial_bytes=128, arena_max_bytes=256)
    arena = Tape().arena
    assert arena.capacity == 128
    assert arena.max_bytes == 256


def test_configure_rejects_bad_values(restore_config):
    with pytest.raises(ValueError):
        configure(arena_alignment=0)
    with pytest.raises(ValueError):
        configure(arena_initial_bytes=10, arena_max_bytes=5)
    with pytest.raises(TypeError):
        configure(no_such_field=1)
    assert get_config().arena_alignment == 8
