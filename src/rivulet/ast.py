"""Rivulet AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class Binary(Expr):
    """left op right — arithmetic, comparison, equality."""

    op: Token
    left: Expr
    right: Expr


@dataclass
class Logical(Expr):
    """left and/or right, short-circuiting."""

    op: Token
    left: Expr
    right: Expr


@dataclass
class Unary(Expr):
    """-x, !x."""

    op: Token
    operand: Expr


@dataclass
class Grouping(Expr):
    """( inner )."""

    inner: Expr


@dataclass
class Literal(Expr):
    """Number, string, true/false or nil."""

    value: float | str | bool | None


@dataclass
class Variable(Expr):
    """Bare name: a river's current flow or a scoped variable."""

    name: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""


@dataclass
class Block(Stmt):
    """{ stmts } — runs in its own scope."""

    stmts: list[Stmt]


@dataclass
class ExprStmt(Stmt):
    """Expression evaluated for its effects."""

    expr: Expr


@dataclass
class Print(Stmt):
    """print expr."""

    expr: Expr


@dataclass
class VarDecl(Stmt):
    """var name [= initializer]."""

    name: Token
    initializer: Expr | None


@dataclass
class River(Stmt):
    """river name [= flow_rate] — flow_rate defaults to the day's rainfall."""

    name: Token
    flow_rate: Expr | None


@dataclass
class Output(Stmt):
    """output river."""

    river: Token


@dataclass
class Combine(Stmt):
    """combine name = s1 + s2 + ..."""

    name: Token
    sources: list[Token]


@dataclass
class Flow(Stmt):
    """flow source -> target."""

    source: Token
    target: Token


@dataclass
class Dam(Stmt):
    """dam river open | close | adjust expr.

    mode is the keyword token; adjustment is set only for 'adjust'.
    """

    river: Token
    mode: Token
    adjustment: Expr | None
