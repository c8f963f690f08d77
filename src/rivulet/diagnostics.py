"""Rivulet diagnostics — user-facing error lines and exit statuses."""

from __future__ import annotations

from .errors import RivuletError, RivuletRuntimeError
from .parse import ParseError

EXIT_OK = 0
EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


class Reporter:
    """Collects error lines for one run and remembers which kinds occurred.

    Static (lexical/syntax) errors render as ``[line N] Error<where>: msg``;
    runtime errors as ``msg`` followed by ``[line N]``.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.had_error: bool = False
        self.had_runtime_error: bool = False

    def static_error(self, line: int, where: str, message: str) -> None:
        self.lines.append(f"[line {line}] Error{where}: {message}")
        self.had_error = True

    def report(self, err: RivuletError) -> None:
        """Route a lexical or syntax error to ``static_error``."""
        where = err.where if isinstance(err, ParseError) else ""
        self.static_error(err.line if err.line is not None else 0, where, err.msg)

    def runtime_error(self, err: RivuletRuntimeError) -> None:
        self.lines.append(f"{err.msg}\n[line {err.tok.line}]")
        self.had_runtime_error = True

    @property
    def exit_code(self) -> int:
        if self.had_error:
            return EXIT_STATIC_ERROR
        if self.had_runtime_error:
            return EXIT_RUNTIME_ERROR
        return EXIT_OK

    def text(self) -> str:
        return "".join(line + "\n" for line in self.lines)
