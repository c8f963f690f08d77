"""Rivulet AST printer — fully parenthesized rendering for debugging.

Total over the node types in `rivulet/ast.py`: if a node type is added, this
printer should be updated alongside it.
"""

from __future__ import annotations

from typing import Sequence

from .ast import (
    Binary,
    Block,
    Combine,
    Dam,
    Expr,
    ExprStmt,
    Flow,
    Grouping,
    Literal,
    Logical,
    Output,
    Print,
    River,
    Stmt,
    Unary,
    VarDecl,
    Variable,
)


def to_sexpr(node: Stmt | Expr) -> str:
    """Render one statement or expression, e.g. ``(* (group (+ 1.0 2.0)) x)``."""
    if isinstance(node, Stmt):
        return _stmt(node)
    return _expr(node)


def program_to_sexpr(stmts: Sequence[Stmt]) -> str:
    """Render a whole program, one top-level statement per line."""
    return "\n".join(_stmt(st) for st in stmts)


def _paren(name: str, *parts: str) -> str:
    return "(" + " ".join((name,) + parts) + ")"


def _literal(value: float | str | bool | None) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _expr(expr: Expr) -> str:
    if isinstance(expr, (Binary, Logical)):
        return _paren(expr.op.value, _expr(expr.left), _expr(expr.right))
    if isinstance(expr, Unary):
        return _paren(expr.op.value, _expr(expr.operand))
    if isinstance(expr, Grouping):
        return _paren("group", _expr(expr.inner))
    if isinstance(expr, Literal):
        return _literal(expr.value)
    if isinstance(expr, Variable):
        return expr.name.value
    raise TypeError(f"cannot print expression {type(expr).__name__}")


def _stmt(st: Stmt) -> str:
    if isinstance(st, River):
        if st.flow_rate is None:
            return _paren("river", st.name.value)
        return _paren("river", st.name.value, "=", _expr(st.flow_rate))
    if isinstance(st, Output):
        return _paren("output", st.river.value)
    if isinstance(st, Combine):
        sources = " + ".join(src.value for src in st.sources)
        return _paren("combine", st.name.value, "=", sources)
    if isinstance(st, Flow):
        return _paren("flow", st.source.value, "->", st.target.value)
    if isinstance(st, Dam):
        if st.adjustment is None:
            return _paren("dam", st.river.value, st.mode.value)
        return _paren("dam", st.river.value, st.mode.value, _expr(st.adjustment))
    if isinstance(st, VarDecl):
        if st.initializer is None:
            return _paren("var", st.name.value)
        return _paren("var", st.name.value, _expr(st.initializer))
    if isinstance(st, Print):
        return _paren("print", _expr(st.expr))
    if isinstance(st, ExprStmt):
        return _paren(";", _expr(st.expr))
    if isinstance(st, Block):
        return _paren("block", *(_stmt(inner) for inner in st.stmts))
    raise TypeError(f"cannot print statement {type(st).__name__}")
