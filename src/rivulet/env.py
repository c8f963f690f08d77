"""Rivulet scopes — chained name bindings."""

from __future__ import annotations

from .errors import UndefinedVariable
from .tokens import Token


class Environment:
    """One lexical scope; lookups walk outward through ``enclosing``."""

    def __init__(self, enclosing: Environment | None = None) -> None:
        self.values: dict[str, object] = {}
        self.enclosing = enclosing

    def child(self) -> Environment:
        return Environment(self)

    def define(self, name: str, value: object) -> None:
        # Redeclaration in the same scope overwrites.
        self.values[name] = value

    def get(self, tok: Token) -> object:
        scope: Environment | None = self
        while scope is not None:
            if tok.value in scope.values:
                return scope.values[tok.value]
            scope = scope.enclosing
        raise UndefinedVariable(tok, f"Undefined variable '{tok.value}'.")
