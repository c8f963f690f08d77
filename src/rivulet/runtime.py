"""Rivulet runtime — evaluate a parsed program against the river network.

One ``Simulation`` holds everything a program run mutates: the river registry,
which persists across days, and the captured output. A fresh ``Runtime`` is
built for every simulated day; it owns that day's root scope and resets the
transient river fields before any statement runs.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
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
from .diagnostics import Reporter
from .env import Environment
from .errors import (
    InvalidDamFactor,
    RivuletError,
    RivuletRuntimeError,
    RivuletTypeError,
)
from .tokens import Token


# ============================================================
# River state
# ============================================================


@dataclass
class RiverState:
    """Per-river record. Only dam_level survives from one day to the next."""

    intrinsic_flow: float = 0.0
    incoming_flow: float = 0.0
    dam_factor: float = 1.0
    dam_level: float = 0.0

    def start_day(self) -> None:
        self.intrinsic_flow = 0.0
        self.incoming_flow = 0.0
        self.dam_factor = 1.0

    def add_incoming_flow(self, flow: float) -> None:
        self.incoming_flow += flow

    def set_dam_factor(self, factor: float) -> None:
        if not math.isfinite(factor) or factor < 0:
            raise ValueError(f"dam factor must be finite and non-negative, got {factor}")
        self.dam_factor = factor

    def update_dam_level(self, delta: float) -> None:
        self.dam_level = max(0.0, self.dam_level + delta)

    @property
    def inflow(self) -> float:
        return self.intrinsic_flow + self.incoming_flow

    @property
    def current_flow(self) -> float:
        return self.inflow * self.dam_factor


class Simulation:
    """State shared by every day of one program run."""

    def __init__(self, reporter: Reporter | None = None) -> None:
        self.rivers: dict[str, RiverState] = {}
        self.reporter = reporter if reporter is not None else Reporter()
        self.stdout: list[str] = []

    def river(self, name: str) -> RiverState:
        """Return the named river, registering a zero-state one if unseen."""
        state = self.rivers.get(name)
        if state is None:
            state = RiverState()
            self.rivers[name] = state
        return state

    def write(self, line: str) -> None:
        self.stdout.append(line)

    def output_text(self) -> str:
        return "".join(line + "\n" for line in self.stdout)


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str


# ============================================================
# Values
# ============================================================


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def values_equal(a: object, b: object) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # true == 1 would hold for plain Python values
    if type(a) is not type(b):
        return False
    return a == b


def stringify(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _divide(a: float, b: float) -> float:
    """IEEE-754 division: zero divisors give inf or nan."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


# ============================================================
# Evaluator
# ============================================================


class Runtime:
    """Executes one day's statements against a shared ``Simulation``."""

    def __init__(
        self,
        sim: Simulation,
        *,
        rainfall: float = 1.0,
        day: int = 1,
        total_days: int = 1,
    ):
        self.sim = sim
        self.rainfall = float(rainfall)
        self.day = day
        self.total_days = total_days
        self.globals = Environment()
        self.globals.define("rainfall", self.rainfall)
        self.globals.define("day", float(day))
        self.env = self.globals
        for state in sim.rivers.values():
            state.start_day()

    # ---- Running -----------------------------------------------------------

    def execute(self, stmts: Sequence[Stmt]) -> bool:
        """Run the day. Returns False if a runtime error aborted it."""
        self.sim.write("")
        self.sim.write(
            f"=== Day {self.day} of {self.total_days} "
            f"with {self.rainfall:.1f} mm rainfall ==="
        )
        try:
            for st in stmts:
                self._exec_stmt(st)
        except RivuletRuntimeError as e:
            self.sim.reporter.runtime_error(e)
            return False
        self._write_summary()
        return True

    def _write_summary(self) -> None:
        rivers = self.sim.rivers
        if not rivers:
            self.sim.write("No river flows computed.")
            return
        self.sim.write("")
        self.sim.write(f"== River flows after day {self.day} ==")
        for name, state in rivers.items():
            self.sim.write(
                f"{name:<20} {state.current_flow:.2f} L/s "
                f"(dam {state.dam_factor:.2f}x, level {state.dam_level:.2f} m3)"
            )

    # ---- Statements --------------------------------------------------------

    def _exec_block(self, stmts: Sequence[Stmt], env: Environment) -> None:
        previous = self.env
        self.env = env
        try:
            for st in stmts:
                self._exec_stmt(st)
        finally:
            self.env = previous

    def _exec_stmt(self, st: Stmt) -> None:
        if isinstance(st, River):
            if st.flow_rate is None:
                flow = self.rainfall
            else:
                flow = self._require_number(st.flow_rate, st.name)
            self.sim.river(st.name.value).intrinsic_flow = flow
            return

        if isinstance(st, Output):
            flow = self.sim.river(st.river.value).current_flow
            self.sim.write(f"{st.river.value} flow: {flow:.2f} L/s")
            return

        if isinstance(st, Combine):
            total = 0.0
            for src in st.sources:
                total += self.sim.river(src.value).current_flow
            self.sim.river(st.name.value).intrinsic_flow = total
            return

        if isinstance(st, Flow):
            transfer = self.sim.river(st.source.value).current_flow
            self.sim.river(st.target.value).add_incoming_flow(transfer)
            return

        if isinstance(st, Dam):
            self._exec_dam(st)
            return

        if isinstance(st, VarDecl):
            value = None
            if st.initializer is not None:
                value = self._eval_expr(st.initializer)
            self.env.define(st.name.value, value)
            return

        if isinstance(st, Print):
            self.sim.write(stringify(self._eval_expr(st.expr)))
            return

        if isinstance(st, ExprStmt):
            self._eval_expr(st.expr)
            return

        if isinstance(st, Block):
            self._exec_block(st.stmts, self.env.child())
            return

        raise RivuletError(f"unsupported statement: {type(st).__name__}")

    def _exec_dam(self, st: Dam) -> None:
        state = self.sim.river(st.river.value)
        inflow = state.inflow
        if st.mode.type == "open":
            factor = 1.0
        elif st.mode.type == "close":
            factor = 0.0
        elif st.mode.type == "adjust" and st.adjustment is not None:
            factor = self._eval_adjustment(st, inflow, state.dam_level)
        else:
            raise RivuletRuntimeError(st.mode, "Unsupported dam mode.")
        if not math.isfinite(factor):
            raise InvalidDamFactor(st.mode, "Dam factor must be finite.")
        if factor < 0:
            raise InvalidDamFactor(st.mode, "Dam factor cannot be negative.")
        state.set_dam_factor(factor)
        outflow = inflow * factor
        state.update_dam_level(self.rainfall + inflow - outflow)

    def _eval_adjustment(self, st: Dam, inflow: float, dam_level: float) -> float:
        """Evaluate an adjust expression with inflow and damLevel in scope."""
        assert st.adjustment is not None
        scope = self.env.child()
        scope.define("inflow", inflow)
        scope.define("damLevel", dam_level)
        previous = self.env
        self.env = scope
        try:
            return self._require_number(st.adjustment, st.mode)
        finally:
            self.env = previous

    # ---- Expressions -------------------------------------------------------

    def _require_number(self, expr: Expr, context: Token) -> float:
        value = self._eval_expr(expr)
        if not isinstance(value, float):
            raise RivuletTypeError(context, "Expected number.")
        return value

    def _eval_expr(self, expr: Expr) -> object:
        if isinstance(expr, Literal):
            return expr.value

        if isinstance(expr, Grouping):
            return self._eval_expr(expr.inner)

        if isinstance(expr, Variable):
            name = expr.name.value
            if name in self.sim.rivers:
                return self.sim.rivers[name].current_flow
            return self.env.get(expr.name)

        if isinstance(expr, Unary):
            operand = self._eval_expr(expr.operand)
            if expr.op.value == "-":
                if not isinstance(operand, float):
                    raise RivuletTypeError(expr.op, "Operand must be a number.")
                return -operand
            return not is_truthy(operand)

        if isinstance(expr, Logical):
            left = self._eval_expr(expr.left)
            if expr.op.type == "or":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self._eval_expr(expr.right)

        if isinstance(expr, Binary):
            left = self._eval_expr(expr.left)
            right = self._eval_expr(expr.right)
            return self._eval_binary(expr.op, left, right)

        raise RivuletError(f"unsupported expression: {type(expr).__name__}")

    def _eval_binary(self, op: Token, left: object, right: object) -> object:
        if op.value == "==":
            return values_equal(left, right)
        if op.value == "!=":
            return not values_equal(left, right)

        if op.value == "+":
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise RivuletTypeError(op, "Operands must be two numbers or two strings.")

        if not isinstance(left, float) or not isinstance(right, float):
            raise RivuletTypeError(op, "Operands must be numbers.")
        if op.value == "-":
            return left - right
        if op.value == "*":
            return left * right
        if op.value == "/":
            return _divide(left, right)
        if op.value == "<":
            return left < right
        if op.value == "<=":
            return left <= right
        if op.value == ">":
            return left > right
        if op.value == ">=":
            return left >= right
        raise RivuletRuntimeError(op, f"Unsupported operator '{op.value}'.")


# ============================================================
# Day loop
# ============================================================


def run(
    stmts: Sequence[Stmt],
    *,
    days: int = 1,
    rainfall: float = 1.0,
    sim: Simulation | None = None,
) -> RunResult:
    """Evaluate a parsed program once per day, sharing one river registry.

    Stops scheduling days after the first runtime error.
    """
    if sim is None:
        sim = Simulation()
    for day in range(1, days + 1):
        rt = Runtime(sim, rainfall=rainfall, day=day, total_days=days)
        if not rt.execute(stmts):
            break
    return RunResult(sim.reporter.exit_code, sim.output_text(), sim.reporter.text())
