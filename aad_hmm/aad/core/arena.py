# aad/core/arena.py
"""
Bump allocator for tape payloads.

Node payloads that are arrays (operand index lists, cached intermediates,
partial derivatives) live in one contiguous byte buffer owned by the tape's
Arena. An allocation returns an integer handle (an aligned byte offset);
`view(handle, n, dtype)` turns it back into a typed numpy view.

Allocations are never freed one by one. `reset()` ends the epoch and makes
every earlier handle invalid; `mark()` / `rewind()` give back everything
allocated after a mark (nested recording).

When the buffer is full it doubles, up to `max_bytes`. The buffer moves when
it grows, so callers keep handles, not views.
"""
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from ..config import get_config
from ...err import ArenaExhaustion

logger = logging.getLogger(__name__)


class Arena:
    """
    Growable byte arena addressed by integer handles.

    Attributes
    ----------
    n_allocations : int
        Number of allocations since the last reset().
    epoch : int
        Incremented by every reset().
    """

    def __init__(self, initial_bytes: int = None, max_bytes: int = None, alignment: int = None):
        cfg = get_config()
        self.max_bytes = int(cfg.arena_max_bytes if max_bytes is None else max_bytes)
        self.alignment = int(cfg.arena_alignment if alignment is None else alignment)
        initial = int(cfg.arena_initial_bytes if initial_bytes is None else initial_bytes)
        initial = min(initial, self.max_bytes)

        self._buf = np.empty(initial, dtype=np.uint8)
        self._offset = 0
        self.n_allocations = 0
        self.epoch = 0

    # ------------------------------------------------------------------ #
    @property
    def capacity(self) -> int:
        return int(self._buf.size)

    @property
    def bytes_used(self) -> int:
        return self._offset

    def __repr__(self):
        return (f"Arena(used={self._offset}, capacity={self.capacity}, "
                f"allocations={self.n_allocations}, epoch={self.epoch})")

    # ------------------------------------------------------------------ #
    def allocate(self, n_bytes: int) -> int:
        """
        Reserve `n_bytes` and return the handle of the block.

        Contents are not initialised. Raises ArenaExhaustion if the arena
        would have to grow past max_bytes.
        """
        n_bytes = int(n_bytes)
        if n_bytes < 0:
            raise ValueError(f"cannot allocate a negative number of bytes ({n_bytes})")

        a = self.alignment
        start = -(-self._offset // a) * a
        end = start + n_bytes
        if end > self._buf.size:
            self._grow(end)

        self._offset = end
        self.n_allocations += 1
        return start

    def allocate_array(self, n: int, dtype=np.float64) -> int:
        """Reserve room for `n` elements of `dtype`."""
        return self.allocate(int(n) * np.dtype(dtype).itemsize)

    def allocate_copy(self, values: Iterable, dtype=np.float64) -> int:
        """Allocate an array and fill it with `values` (flattened)."""
        values = np.asarray(values, dtype=dtype).ravel()
        handle = self.allocate_array(values.size, dtype)
        self.view(handle, values.size, dtype)[:] = values
        return handle

    def view(self, handle: int, n: int, dtype=np.float64) -> np.ndarray:
        """Typed view of `n` elements starting at `handle`."""
        dtype = np.dtype(dtype)
        return self._buf[handle:handle + int(n) * dtype.itemsize].view(dtype)

    # ------------------------------------------------------------------ #
    def mark(self) -> int:
        return self._offset

    def rewind(self, mark: int) -> None:
        """Release every allocation made after `mark`."""
        if not 0 <= mark <= self._offset:
            raise ValueError(f"invalid arena mark {mark} (in use: {self._offset})")
        self._offset = mark

    def reset(self) -> None:
        """End the epoch: every handle handed out so far becomes invalid."""
        logger.debug("arena reset: epoch %d released %d bytes in %d allocations",
                     self.epoch, self._offset, self.n_allocations)
        self._offset = 0
        self.n_allocations = 0
        self.epoch += 1

    def _grow(self, required: int) -> None:
        if required > self.max_bytes:
            raise ArenaExhaustion(
                f"arena needs {required} bytes but is limited to {self.max_bytes} bytes"
            )
        new_capacity = max(self._buf.size, self.alignment)
        while new_capacity < required:
            new_capacity *= 2
        new_capacity = min(new_capacity, self.max_bytes)

        new_buf = np.empty(new_capacity, dtype=np.uint8)
        new_buf[:self._offset] = self._buf[:self._offset]
        logger.debug("arena grow: %d -> %d bytes", self._buf.size, new_capacity)
        self._buf = new_buf
