"""Rivulet river-network language — public API."""

from __future__ import annotations

from .ast import Stmt
from .diagnostics import Reporter
from .errors import RivuletError
from .parse import ParseError as ParseError, Parser
from .runtime import RunResult, Simulation, run
from .tokens import TokenizeError as TokenizeError, tokenize


def _compile(source: str) -> tuple[list[Stmt], list[RivuletError]]:
    """Lex and parse in one pass, collecting every static error."""
    lex_errors: list[TokenizeError] = []
    tokens = tokenize(source, lex_errors)
    parser = Parser(tokens)
    stmts = parser.parse_program()
    errors: list[RivuletError] = []
    errors.extend(lex_errors)
    errors.extend(parser.errors)
    return stmts, errors


def parse(source: str) -> list[Stmt]:
    """Parse Rivulet source into statements, raising the first static error."""
    stmts, errors = _compile(source)
    if errors:
        raise errors[0]
    return stmts


def check(source: str) -> list[RivuletError]:
    """Lex and parse Rivulet source. Returns list of errors (empty = ok)."""
    return _compile(source)[1]


def run_source(source: str, *, days: int = 1, rainfall: float = 1.0) -> RunResult:
    """Lex, parse and simulate ``days`` days of ``source``.

    Any lexical or syntax error skips evaluation entirely.
    """
    reporter = Reporter()
    stmts, errors = _compile(source)
    for err in errors:
        reporter.report(err)
    if reporter.had_error:
        return RunResult(reporter.exit_code, "", reporter.text())
    return run(stmts, days=days, rainfall=rainfall, sim=Simulation(reporter))
