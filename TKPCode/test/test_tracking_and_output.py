import math
import time

import pandas as pd
import pytest

from TKPCode.tkpopt import SolutionState
from TKPCode.tabutrack import TabuTracker, NullSink, calculate_gap
from TKPCode.check_solution import SolutionValidator, check_solution
from TKPCode.optutility import LogPrinter
from TKPCode.OutputDataTKP import (
    TABU_COLUMNS,
    EXACT_COLUMNS,
    COMPARE_COLUMNS,
    write_tabu_result,
    write_exact_result,
    write_compare_result,
    load_results,
    is_file_in_use,
)


@pytest.mark.parametrize("heuristic, exact, expected", [
    (90, 100, 10.0),
    (100, 100, 0.0),
    (0, 0, 0.0),
])
def test_calculate_gap(heuristic, exact, expected):
    assert calculate_gap(heuristic, exact) == pytest.approx(expected)


def test_calculate_gap_zero_exact_with_positive_heuristic():
    assert calculate_gap(5, 0) == -math.inf


def test_null_sink_accepts_events():
    assert NullSink()(0.1, 5, [1, 2]) is None


def test_tracker_records_iterations_and_csv(tmp_path, conflicting_instance):
    csv_path = tmp_path / "track" / "trace.csv"
    tracker = TabuTracker(output_file=str(csv_path), verbose=False)
    base = SolutionState.baseline(conflicting_instance)
    best = SolutionState.from_selection(conflicting_instance, [0])

    tracker(0.5, 9, [0])
    tracker.on_iteration(1, best, best)
    tracker.on_iteration(2, base, best)

    assert tracker.current_profits == [9, 0]
    assert tracker.best_profits == [9, 9]
    assert tracker.best_history[0][0] == 1
    assert tracker.best_history[0][2:] == (9, [0])

    stats = tracker.get_statistics()
    assert stats["total_iterations"] == 2
    assert stats["best_profit"] == 9
    assert stats["improvements"] == 1

    df = pd.read_csv(csv_path)
    assert list(df.columns) == ["Iteration", "Current_Profit", "Best_Profit"]
    assert df["Current_Profit"].tolist() == [9, 0]


def test_tracker_prints_plain_text(capsys, conflicting_instance):
    printer = LogPrinter(time.time())
    printer.set_output_mode(force_plain=True)
    tracker = TabuTracker(print_every=1, log_printer=printer)
    tracker(0.25, 9, [0])
    state = SolutionState.from_selection(conflicting_instance, [0])
    tracker.on_iteration(1, state, state)
    out = capsys.readouterr().out
    assert "new best profit 9" in out
    assert "Current: 9" in out


def test_log_printer_statistics_table(capsys):
    printer = LogPrinter(time.time())
    printer.set_output_mode(force_plain=True)
    printer.print_table("Stats", {"iterations": 3, "operator_usage": {"slack_fill_greedy": 2}, "elapsed_time": 0.5})
    out = capsys.readouterr().out
    assert "operator_usage.slack_fill_greedy" in out
    assert "0.500" in out
    assert "\x1b[" not in out


def test_log_printer_strip_ansi():
    assert LogPrinter.strip_ansi("\x1b[1;32mok\x1b[0m") == "ok"


def test_check_solution(conflicting_instance):
    assert check_solution(conflicting_instance, [0])
    assert check_solution(conflicting_instance, [])
    assert not check_solution(conflicting_instance, [0, 1])
    with pytest.raises(IndexError):
        check_solution(conflicting_instance, [5])


def test_validator_reports_each_constraint(conflicting_instance):
    state = SolutionState.from_selection(conflicting_instance, [0])
    state.total_profit = 100
    validator = SolutionValidator(conflicting_instance, state)
    ok, results = validator.validate_all()
    assert not ok
    by_name = {r.constraint_name: r for r in results}
    assert by_name["capacity"].is_satisfied
    assert not by_name["profit"].is_satisfied
    assert by_name["profit"].details == {"recorded": 100, "expected": 9}
    assert by_name["incremental_state"].is_satisfied

    printer = LogPrinter(time.time())
    printer.set_output_mode(force_plain=True)
    validator.print_validation_summary(printer)


def test_validator_flags_overload(conflicting_instance):
    state = SolutionState.from_selection(conflicting_instance, [0, 1])
    ok, results = SolutionValidator(conflicting_instance, state).validate_all()
    assert not ok
    capacity = results[0]
    assert capacity.total_violations == 2
    assert capacity.details["peak_demand"] == 12


def test_tabu_rows_append_with_single_header(tmp_path):
    path = tmp_path / "out" / "tabu.csv"
    write_tabu_result(path, "I01", 7, 100, 10, 20, 55, 1.5)
    write_tabu_result(path, "I02", 7, 100, 10, 20, 60, 2.0)
    df = load_results(path)
    assert list(df.columns) == TABU_COLUMNS
    assert df["name"].tolist() == ["I01", "I02"]
    assert df["total_profit"].tolist() == [55, 60]
    assert path.read_text().count("name,") == 1


def test_exact_and_compare_rows(tmp_path):
    exact = tmp_path / "exact.csv"
    write_exact_result(exact, "I01", 61.0, 3.25)
    assert list(load_results(exact).columns) == EXACT_COLUMNS

    compare = tmp_path / "compare.csv"
    write_compare_result(compare, "I01", 7, 100, 10, 20, 55, 1.5, 61.0, 3.25, calculate_gap(55, 61.0))
    df = load_results(compare)
    assert list(df.columns) == COMPARE_COLUMNS
    assert df["gap"].iloc[0] == pytest.approx(6 / 61 * 100)


def test_load_missing_results(tmp_path):
    assert load_results(tmp_path / "missing.csv").empty
    assert not is_file_in_use(tmp_path / "missing.csv")
