"""Timing helpers and the results table for voxel benchmarks."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

_RULE = "---------------------------------------------------------------"
_HEADER = "name                                     total ms    avg us/op"


@dataclass(frozen=True)
class BenchmarkRun:
    """Result of running a benchmark body a number of times."""

    name: str = ""
    iterations: int = 0
    total_time_ns: int = 0

    @property
    def total_ms(self) -> float:
        return self.total_time_ns / 1_000_000.0

    @property
    def avg_us(self) -> float:
        if self.iterations <= 0:
            return 0.0
        return self.total_time_ns / self.iterations / 1_000.0


def run_benchmark(name: str, iterations: int, body: Callable[[], object]) -> BenchmarkRun:
    """Call body the given number of times and measure the total wall time."""
    iterations = int(iterations)
    if iterations < 0:
        raise ValueError(f"iteration count must not be negative: {iterations}")
    start = time.perf_counter_ns()
    for _ in range(iterations):
        body()
    end = time.perf_counter_ns()
    return BenchmarkRun(name=name, iterations=iterations, total_time_ns=end - start)


def format_results(runs: Iterable[BenchmarkRun]) -> str:
    """The results table, one row per run."""
    lines = ["", "Voxel Benchmarks", _RULE, _HEADER, _RULE]
    lines.extend(f"{run.name:<40} {run.total_ms:10.3f} {run.avg_us:12.3f}" for run in runs)
    lines.append(_RULE)
    return "\n".join(lines) + "\n"


def print_results(runs: Iterable[BenchmarkRun]) -> None:
    print(format_results(runs), end="")