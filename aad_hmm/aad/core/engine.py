# aad/core/engine.py
from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from .tape import Tape, current_tape
from .var import ADVar

logger = logging.getLogger(__name__)


def zero_adjoints(tape: Optional[Tape] = None):
    """
    Set all adjoints (bar variables) on the tape to zero.
    Needed before a second reverse sweep over the same tape.
    """
    (tape if tape is not None else current_tape()).set_zero_all_adjoints()


def reverse(outputs: Union[ADVar, Sequence[ADVar]], seed=1.0, tape: Optional[Tape] = None):
    """
    Run a single reverse pass from the given output(s).

    Args:
        outputs: an ADVar or a (list/tuple) of ADVars to seed.
        seed: scalar added to the output adjoint. If `outputs` is a sequence,
              each output is seeded with 1.0 (the `seed` arg is ignored in
              that case).
        tape: tape to sweep; defaults to the active tape.

    Notes:
        - Every node's propagate() runs exactly once, from the last created
          node to the first. Each one adds adj * (d node / d operand) into
          its operands.
        - Sweeping the same tape twice without zero_adjoints() accumulates
          the adjoints twice; that is not detected.
    """
    tape = tape if tape is not None else current_tape()

    # Seed adjoints
    if isinstance(outputs, (list, tuple)):
        for y in outputs:
            _seed(y, 1.0)
    else:
        _seed(outputs, seed)

    # Backward sweep
    nodes = tape.nodes
    logger.debug("reverse sweep over %d nodes", len(nodes))
    for i in range(len(nodes) - 1, -1, -1):
        nodes[i].propagate()


def _seed(v: ADVar, seed):
    if not isinstance(v, ADVar) or not v.requires_grad:
        logger.debug("reverse: output %r is constant, nothing to seed", v)
        return
    v.vi.adj += float(seed)
