# aad/functor/__init__.py

from .adj_jac_apply import AdjJacOp, AdjJacNode, adj_jac_apply
from .operands_and_partials import Edge, OperandsAndPartials

__all__ = [
    "AdjJacOp", "AdjJacNode", "adj_jac_apply",
    "Edge", "OperandsAndPartials",
]
