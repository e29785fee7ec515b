# aad/core/tape.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import List, NamedTuple, Optional

import numpy as np

from .arena import Arena
from .node import Node

logger = logging.getLogger(__name__)


class TapeMark(NamedTuple):
    n_nodes: int
    arena_mark: int


class Tape:
    """
    Records Nodes in creation order and owns the Arena their payloads live in.

    Creation order is a topological order: a node's operands are always
    pushed before the node itself, so walking the tape backwards visits every
    consumer before its operands.

    One tape serves one recording epoch: build the expression (forward),
    run one reverse sweep, then reset().
    """

    def __init__(self, arena: Optional[Arena] = None):
        self.nodes: List[Node] = []
        self.arena = arena if arena is not None else Arena()

    def __len__(self):
        return len(self.nodes)

    def __repr__(self):
        return f"Tape(nodes={len(self.nodes)}, {self.arena!r})"

    def push(self, node: Node) -> int:
        """Append `node` and return its tape index."""
        node.index = len(self.nodes)
        self.nodes.append(node)
        return node.index

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def nodes_at(self, handle: int, n: int) -> List[Node]:
        """Resolve an arena array of `n` tape indices into nodes."""
        nodes = self.nodes
        return [nodes[i] for i in self.arena.view(handle, n, np.int64).tolist()]

    def set_zero_all_adjoints(self) -> None:
        for node in self.nodes:
            node.set_zero_adjoint()

    def reset(self) -> None:
        """End the epoch: drop every node and reclaim the arena."""
        logger.debug("tape reset: %d nodes", len(self.nodes))
        self.nodes.clear()
        self.arena.reset()

    def mark(self) -> TapeMark:
        return TapeMark(len(self.nodes), self.arena.mark())

    def rewind(self, mark: TapeMark) -> None:
        """Drop every node and allocation recorded after `mark`."""
        logger.debug("tape rewind: %d -> %d nodes", len(self.nodes), mark.n_nodes)
        del self.nodes[mark.n_nodes:]
        self.arena.rewind(mark.arena_mark)


# One active tape per thread. Threads never share a tape; parallel
# differentiation of independent problems gives each thread its own.
_state = threading.local()


def current_tape() -> Tape:
    """Return the calling thread's active tape, creating it on first use."""
    tape = getattr(_state, "tape", None)
    if tape is None:
        tape = _state.tape = Tape()
    return tape


@contextmanager
def use_tape(tape: Optional[Tape] = None):
    """
    Context manager to temporarily use a fresh (or the given) tape:
        with use_tape() as tape:
            ... build computation ...
            reverse(y)
    """
    prev = getattr(_state, "tape", None)
    try:
        _state.tape = tape if tape is not None else Tape()
        yield _state.tape
    finally:
        _state.tape = prev


@contextmanager
def nested():
    """
    Record a nested computation on the active tape and discard it on exit:
        with nested():
            y = f(x_inner)
            reverse(y)
            g = x_inner.adj
    Nodes created before entering are kept; their adjoints are not reset.
    """
    tape = current_tape()
    mark = tape.mark()
    try:
        yield tape
    finally:
        tape.rewind(mark)
