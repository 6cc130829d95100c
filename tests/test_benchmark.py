import pytest

from gloxide.benchmark import BenchmarkRun, format_results, print_results, run_benchmark

RULE = "---------------------------------------------------------------"


def test_run_benchmark_calls_body_each_iteration():
    calls = []
    run = run_benchmark("count", 5, lambda: calls.append(1))
    assert len(calls) == 5
    assert run.name == "count"
    assert run.iterations == 5
    assert run.total_time_ns >= 0


def test_run_benchmark_accepts_float_iteration_count():
    calls = []
    run = run_benchmark("float", 3e0, lambda: calls.append(1))
    assert run.iterations == 3
    assert len(calls) == 3


def test_run_benchmark_zero_iterations_never_calls_body():
    calls = []
    run = run_benchmark("none", 0, lambda: calls.append(1))
    assert calls == []
    assert run.iterations == 0
    assert run.avg_us == 0.0


def test_run_benchmark_rejects_negative_iterations():
    with pytest.raises(ValueError):
        run_benchmark("bad", -1, lambda: None)


def test_format_results_layout():
    text = format_results([BenchmarkRun("x", 4, 2_000_000)])
    lines = text.split("\n")
    assert lines[0] == ""
    assert lines[1] == "Voxel Benchmarks"
    assert lines[2] == RULE
    assert lines[3] == "name                                     total ms    avg us/op"
    assert lines[4] == RULE
    assert lines[5] == "x".ljust(40) + " " + "     2.000" + " " + "     500.000"
    assert lines[6] == RULE
    assert text.endswith("\n")


def test_format_results_zero_iterations_reports_zero_average():
    text = format_results([BenchmarkRun("idle", 0, 0)])
    row = text.split("\n")[5]
    assert row.startswith("idle".ljust(40))
    assert row.endswith("0.000")


def test_format_results_without_runs_has_only_frame():
    lines = format_results([]).split("\n")
    assert lines[:6] == ["", "Voxel Benchmarks", RULE, lines[3], RULE, RULE]


def test_long_names_are_not_truncated():
    name = "n" * 50
    row = format_results([BenchmarkRun(name, 1, 1000)]).split("\n")[5]
    assert row.startswith(name + " ")


def test_print_results_writes_table(capsys):
    runs = [BenchmarkRun("a", 2, 3_000), BenchmarkRun("b", 1, 5_000_000)]
    print_results(runs)
    assert capsys.readouterr().out == format_results(runs)