"""Rivulet CLI — run .rv programs from a file or an interactive prompt."""

from __future__ import annotations

import math
import sys

from . import check, parse, run_source
from .diagnostics import EXIT_NO_INPUT, EXIT_OK, EXIT_USAGE, Reporter
from .printer import program_to_sexpr


USAGE: str = """\
rivulet [OPTIONS] [SCRIPT [DAYS] RAINFALL]

Simulate a river network described by a Rivulet program.
With no SCRIPT, read programs line by line from an interactive prompt.

Arguments:
  DAYS       Number of days to simulate (positive integer, default 1)
  RAINFALL   Daily rainfall in mm (non-negative number, default 1.0)

Options:
  --ast      Print the parsed program instead of running it
  --help     Show this help message
"""


def _usage_error(msg: str) -> int:
    print("rivulet: " + msg, file=sys.stderr)
    print(USAGE, end="", file=sys.stderr)
    return EXIT_USAGE


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _parse_days(text: str) -> int | None:
    try:
        days = int(text)
    except ValueError:
        return None
    return days if days >= 1 else None


def _parse_rainfall(text: str) -> float | None:
    try:
        rainfall = float(text)
    except ValueError:
        return None
    if not math.isfinite(rainfall) or rainfall < 0:
        return None
    return rainfall


def _print_ast(source: str) -> int:
    errors = check(source)
    if errors:
        reporter = Reporter()
        for err in errors:
            reporter.report(err)
        sys.stderr.write(reporter.text())
        return reporter.exit_code
    text = program_to_sexpr(parse(source))
    if text:
        print(text)
    return EXIT_OK


def _run(source: str, *, days: int, rainfall: float, show_ast: bool) -> int:
    if show_ast:
        return _print_ast(source)
    result = run_source(source, days=days, rainfall=rainfall)
    sys.stdout.write(result.stdout)
    sys.stderr.write(result.stderr)
    return result.exit_code


def _prompt(*, days: int, rainfall: float, show_ast: bool) -> int:
    """Each line is an independent program; errors do not end the session."""
    while True:
        sys.stdout.write("> ")
        sys.stdout.flush()
        line = sys.stdin.readline()
        if line == "":
            break
        _run(line, days=days, rainfall=rainfall, show_ast=show_ast)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    show_ast = False
    positional: list[str] = []
    for arg in args:
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--ast":
            show_ast = True
        elif arg.startswith("-") and not _is_number(arg):
            return _usage_error("unknown flag '" + arg + "'")
        else:
            positional.append(arg)
    if len(positional) > 3:
        return _usage_error("too many arguments")

    days = 1
    rainfall = 1.0
    if len(positional) == 2:
        parsed_rain = _parse_rainfall(positional[1])
        if parsed_rain is None:
            return _usage_error("rainfall must be a non-negative number")
        rainfall = parsed_rain
    elif len(positional) == 3:
        parsed_days = _parse_days(positional[1])
        if parsed_days is None:
            return _usage_error("days must be a positive integer")
        parsed_rain = _parse_rainfall(positional[2])
        if parsed_rain is None:
            return _usage_error("rainfall must be a non-negative number")
        days = parsed_days
        rainfall = parsed_rain

    if not positional:
        return _prompt(days=days, rainfall=rainfall, show_ast=show_ast)

    filepath = positional[0]
    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("rivulet: " + filepath + ": No such file or directory", file=sys.stderr)
        return EXIT_NO_INPUT
    except OSError as e:
        print("rivulet: " + filepath + ": " + str(e), file=sys.stderr)
        return EXIT_NO_INPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("rivulet: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EXIT_NO_INPUT

    return _run(source, days=days, rainfall=rainfall, show_ast=show_ast)


if __name__ == "__main__":
    sys.exit(main())
