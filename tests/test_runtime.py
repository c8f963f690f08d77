"""Tests for the Rivulet evaluator and river state model."""

import math

import pytest

from rivulet import parse
from rivulet.errors import InvalidDamFactor, UndefinedVariable
from rivulet.runtime import (
    RiverState,
    Runtime,
    Simulation,
    run,
    stringify,
    values_equal,
)


def _day(source: str, *, rainfall: float = 1.0, sim: Simulation | None = None, day: int = 1):
    """Run one day of source. Returns (simulation, succeeded)."""
    if sim is None:
        sim = Simulation()
    ok = Runtime(sim, rainfall=rainfall, day=day).execute(parse(source))
    return sim, ok


def _errors(sim: Simulation) -> list[str]:
    return sim.reporter.lines


# ---------------------------------------------------------------------------
# River state
# ---------------------------------------------------------------------------


def test_river_state_defaults():
    state = RiverState()
    assert state.inflow == 0.0
    assert state.current_flow == 0.0
    assert state.dam_factor == 1.0


def test_start_day_keeps_dam_level():
    state = RiverState(intrinsic_flow=3.0, incoming_flow=2.0, dam_factor=0.5, dam_level=9.0)
    state.start_day()
    assert (state.intrinsic_flow, state.incoming_flow, state.dam_factor) == (0.0, 0.0, 1.0)
    assert state.dam_level == 9.0


def test_negative_dam_factor_rejected_on_assignment():
    state = RiverState()
    with pytest.raises(ValueError):
        state.set_dam_factor(-0.1)
    assert state.dam_factor == 1.0


@pytest.mark.parametrize("factor", [math.inf, math.nan])
def test_non_finite_dam_factor_rejected_on_assignment(factor):
    state = RiverState()
    with pytest.raises(ValueError):
        state.set_dam_factor(factor)
    assert state.dam_factor == 1.0


def test_dam_level_floor():
    state = RiverState(dam_level=2.0)
    state.update_dam_level(-5.0)
    assert state.dam_level == 0.0


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("k", [0.0, 1.0, 10.0, 2.75, 1234.5])
def test_undammed_river_flows_at_declared_rate(k):
    sim, ok = _day(f"river r = {k}")
    assert ok
    assert sim.rivers["r"].current_flow == k


def test_river_without_initializer_uses_rainfall():
    sim, _ = _day("river A", rainfall=5.0)
    assert sim.rivers["A"].intrinsic_flow == 5.0


def test_output_line():
    sim, _ = _day("river A = 10\noutput A", rainfall=5.0)
    assert "A flow: 10.00 L/s" in sim.stdout


def test_close_zeroes_flow_regardless_of_inflow():
    sim, _ = _day("river A = 40\nflow A -> B\nriver B = 7\ndam B close")
    assert sim.rivers["B"].inflow == 47.0
    assert sim.rivers["B"].current_flow == 0.0


def test_adjust_binds_inflow():
    sim, ok = _day("river A = 10\ndam A adjust inflow * 0.5")
    assert ok
    assert sim.rivers["A"].dam_factor == 5.0


def test_negative_adjustment_aborts_day():
    sim, ok = _day("river A = 10\ndam A adjust 0 - 1\noutput A")
    assert not ok
    assert sim.reporter.had_runtime_error
    assert _errors(sim) == ["Dam factor cannot be negative.\n[line 2]"]
    assert not any("flow:" in line for line in sim.stdout)
    assert sim.rivers["A"].dam_factor == 1.0


@pytest.mark.parametrize("adjustment", ["1 / 0", "0 / 0"])
def test_non_finite_adjustment_keeps_reservoir(adjustment):
    sim = Simulation()
    Runtime(sim, rainfall=3.0).execute(parse("river A = 2\ndam A adjust 0.5"))
    assert sim.rivers["A"].dam_level == 4.0
    ok = Runtime(sim, rainfall=3.0, day=2).execute(parse(f"river A = 2\ndam A adjust {adjustment}"))
    assert not ok
    assert sim.reporter.lines[-1] == "Dam factor must be finite.\n[line 2]"
    assert sim.rivers["A"].dam_factor == 1.0
    assert sim.rivers["A"].dam_level == 4.0


def test_invalid_dam_factor_is_raised_internally():
    sim = Simulation()
    rt = Runtime(sim)
    with pytest.raises(InvalidDamFactor):
        for st in parse("dam A adjust -2"):
            rt._exec_stmt(st)


def test_undefined_variable_stops_later_statements():
    sim, ok = _day("print 1\nprint z\nprint 2")
    assert not ok
    assert "1" in sim.stdout
    assert "2" not in sim.stdout
    assert _errors(sim) == ["Undefined variable 'z'.\n[line 2]"]


def test_undefined_variable_is_raised_internally():
    rt = Runtime(Simulation())
    with pytest.raises(UndefinedVariable):
        for st in parse("print missing"):
            rt._exec_stmt(st)


def test_flow_accumulates_with_flow_at_execution_time():
    sim, _ = _day("river a = 2\nflow a -> b\nriver a = 5\nflow a -> b")
    assert sim.rivers["b"].incoming_flow == 7.0


def test_repeated_flow_doubles_transfer():
    sim, _ = _day("river a = 3.5\nflow a -> b\nflow a -> b")
    assert sim.rivers["b"].incoming_flow == 2 * sim.rivers["a"].current_flow


def test_flow_from_undeclared_river_creates_it():
    sim, _ = _day("flow Spring -> Pond")
    assert list(sim.rivers) == ["Spring", "Pond"]
    assert sim.rivers["Pond"].incoming_flow == 0.0


def test_combine_uses_current_flows():
    sim, _ = _day("river a = 4\nriver b = 6\ndam b adjust 0.5\ncombine c = a + b + ghost")
    assert sim.rivers["c"].intrinsic_flow == 7.0
    assert "ghost" in sim.rivers


def test_adjust_scope_is_restored_after_failure():
    sim = Simulation()
    rt = Runtime(sim)
    with pytest.raises(UndefinedVariable):
        for st in parse("river A = 1\ndam A adjust nope"):
            rt._exec_stmt(st)
    assert rt.env is rt.globals


def test_block_scope_is_restored():
    sim = Simulation()
    rt = Runtime(sim)
    for st in parse("var x = 1\n{ var x = 2 }\nprint x"):
        rt._exec_stmt(st)
    assert rt.env is rt.globals
    assert sim.stdout == ["1"]


# ---------------------------------------------------------------------------
# Days
# ---------------------------------------------------------------------------


def test_dam_level_never_negative_over_many_days():
    stmts = parse("river A = rainfall + day\ndam A adjust 1 + day / 2")
    sim = Simulation()
    for day in range(1, 31):
        assert Runtime(sim, rainfall=0.5, day=day, total_days=30).execute(stmts)
        assert sim.rivers["A"].dam_level >= 0.0


def test_transient_fields_reset_every_day():
    stmts = parse("river A = 3\nriver B = 4\nflow A -> B\ncombine C = A + B")
    sim = Simulation()
    flows = []
    for day in range(1, 4):
        Runtime(sim, day=day, total_days=3).execute(stmts)
        flows.append({name: s.current_flow for name, s in sim.rivers.items()})
    assert flows[0] == flows[1] == flows[2] == {"A": 3.0, "B": 7.0, "C": 10.0}


def test_dam_level_accumulates_across_days():
    result_sim = Simulation()
    run(parse("river A = 4\ndam A adjust 0.5"), days=3, rainfall=2.0, sim=result_sim)
    assert result_sim.rivers["A"].dam_level == 12.0


def test_run_stops_after_runtime_error():
    result = run(parse("print day\nprint nothing"), days=3)
    assert result.exit_code == 70
    assert "=== Day 2" not in result.stdout
    assert result.stderr == "Undefined variable 'nothing'.\n[line 2]\n"


def test_simulations_are_independent():
    stmts = parse("river A = rainfall\ndam A adjust 0")
    first = Simulation()
    second = Simulation()
    run(stmts, days=2, rainfall=1.0, sim=first)
    run(stmts, days=1, rainfall=3.0, sim=second)
    assert first.rivers["A"].dam_level == 4.0
    assert second.rivers["A"].dam_level == 6.0


def test_summary_lists_rivers_in_registration_order():
    sim, _ = _day("river Zed = 1\nriver Amp = 2")
    summary = [line for line in sim.stdout if "L/s" in line]
    assert summary[0].startswith("Zed ")
    assert summary[1].startswith("Amp ")


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def test_stringify():
    assert stringify(None) == "nil"
    assert stringify(True) == "true"
    assert stringify(10.0) == "10"
    assert stringify(-3.0) == "-3"
    assert stringify(2.5) == "2.5"
    assert stringify("text") == "text"
    assert stringify(math.inf) == "inf"


def test_values_equal():
    assert values_equal(None, None)
    assert not values_equal(None, 0.0)
    assert not values_equal(True, 1.0)
    assert values_equal("a", "a")
    assert values_equal(2.0, 2.0)
