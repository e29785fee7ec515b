"""
Arena allocator: aligned handles, growth, exhaustion and epochs.
"""

import numpy as np
import pytest

from aad_hmm.aad.core.arena import Arena
from aad_hmm.err import ArenaExhaustion


def test_handles_are_aligned():
    arena = Arena(initial_bytes=64, max_bytes=1024, alignment=8)
    h0 = arena.allocate(3)
    h1 = arena.allocate(1)
    h2 = arena.allocate_array(2, np.float64)

    assert h0 == 0
    assert h1 == 8
    assert h2 == 16
    assert arena.bytes_used == 32
    assert arena.n_allocations == 3


def test_copy_and_view():
    arena = Arena()
    h = arena.allocate_copy([1.5, 2.5, 3.5])
    np.testing.assert_array_equal(arena.view(h, 3), [1.5, 2.5, 3.5])

    idx = arena.allocate_copy([4, 7], np.int64)
    assert arena.view(idx, 2, np.int64).tolist() == [4, 7]


def test_growth_keeps_contents():
    arena = Arena(initial_bytes=16, max_bytes=4096)
    h = arena.allocate_copy([1.0, 2.0])
    arena.allocate(200)

    assert arena.capacity >= 216
    np.testing.assert_array_equal(arena.view(h, 2), [1.0, 2.0])


def test_growth_past_limit_raises():
    arena = Arena(initial_bytes=16, max_bytes=64)
    arena.allocate(48)
    with pytest.raises(ArenaExhaustion):
        arena.allocate(32)


def test_exhaustion_is_a_memory_error():
    arena = Arena(initial_bytes=8, max_bytes=8)
    with pytest.raises(MemoryError):
        arena.allocate_array(2)


def test_negative_allocation_rejected():
    with pytest.raises(ValueError):
        Arena().allocate(-1)


def test_mark_and_rewind():
    arena = Arena()
    arena.allocate(24)
    mark = arena.mark()
    arena.allocate(100)
    arena.rewind(mark)

    assert arena.bytes_used == 24
    assert arena.allocate(8) == 24

    with pytest.raises(ValueError):
        arena.rewind(arena.bytes_used + 1)


def test_reset_starts_new_epoch():
    arena = Arena()
    arena.allocate_copy([1.0, 2.0, 3.0])
    capacity = arena.capacity
    arena.reset()

    assert arena.epoch == 1
    assert arena.bytes_used == 0
    assert arena.n_allocations == 0
    # The buffer is reused, not released
    assert arena.capacity == capacity
    assert arena.allocate(8) == 0
