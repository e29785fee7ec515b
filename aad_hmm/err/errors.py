# aad_hmm/err/errors.py
"""
Error taxonomy for the AD engine.

    ShapeError      : structural mismatch (dimensions, non-square, sizes)
    DomainError     : numerically invalid input (simplex, NaN, sign)
    ArenaExhaustion : the arena cannot grow any further (fatal)

ShapeError and DomainError derive from ValueError so callers that only know
about built-in exceptions still catch them.
"""

from typing import Any, Optional, Tuple, Union

Index = Union[int, Tuple[int, ...]]


class AADError(Exception):
    """Base class for every error raised by aad_hmm."""


class ShapeError(AADError, ValueError):
    """
    Structural mismatch between arguments.

    Attributes
    ----------
    function : str
        Name of the operation that rejected the argument.
    name : str
        Name of the offending argument.
    """

    def __init__(self, function: str, name: str, message: str):
        self.function = function
        self.name = name
        super().__init__(f"{function}: {name} {message}")


class DomainError(AADError, ValueError):
    """
    Numerically invalid argument.

    Attributes
    ----------
    function : str
        Name of the operation that rejected the argument.
    name : str
        Name of the offending argument.
    value : Any
        The offending value (the element for vectorized checks).
    index : int | tuple | None
        Position of the first offending element, None for scalar checks.
    """

    def __init__(self, function: str, name: str, value: Any, message: str,
                 index: Optional[Index] = None):
        self.function = function
        self.name = name
        self.value = value
        self.index = index
        super().__init__(f"{function}: {_label(name, index)} {message}")


class ArenaExhaustion(AADError, MemoryError):
    """The arena reached its configured byte limit. Not recoverable."""


def _label(name: str, index: Optional[Index]) -> str:
    if index is None:
        return name
    if isinstance(index, tuple):
        return f"{name}[{', '.join(str(i) for i in index)}]"
    return f"{name}[{index}]"


def domain_error(function: str, name: str, y: Any, msg1: str, msg2: str):
    """Raise DomainError formatted as '<function>: <name> <msg1><y><msg2>'."""
    raise DomainError(function, name, y, f"{msg1}{y}{msg2}")


def domain_error_vec(function: str, name: str, y: Any, index: Index, msg1: str, msg2: str):
    """Raise DomainError for element `index` of `y`."""
    raise DomainError(function, name, y, f"{msg1}{y}{msg2}", index=index)
