"""Rivulet errors — base class and runtime faults."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokens import Token


class RivuletError(Exception):
    """Base error for tokenizing, parsing and evaluating Rivulet programs."""

    def __init__(self, msg: str, line: int | None = None):
        if line is None:
            super().__init__(msg)
        else:
            super().__init__(f"{msg} at line {line}")
        self.msg = msg
        self.line = line


class RivuletRuntimeError(RivuletError):
    """Fault raised while a day's statements are executing.

    Aborts the remaining statements of the day and every later day.
    """

    def __init__(self, tok: Token, msg: str):
        super().__init__(msg, tok.line)
        self.tok = tok


class UndefinedVariable(RivuletRuntimeError):
    """Name is bound in no enclosing scope and is not a known river."""


class RivuletTypeError(RivuletRuntimeError):
    """Operand of the wrong kind for an operator or a numeric context."""


class InvalidDamFactor(RivuletRuntimeError):
    """A dam adjustment produced a negative pass-through factor."""
