"""
Base benchmark harness for flowfield.
"""
import abc
import time
from typing import Any, Callable

import taichi as ti

from flowfield.config import init_taichi


class Benchmark(abc.ABC):
    """Abstract base class for all benchmarks."""

    def __init__(self, profile: bool = False, backend: str | None = None):
        self.profile = profile
        self.backend = init_taichi(
            backend=backend, debug=False, kernel_profiler=profile
        )

    @abc.abstractmethod
    def run(self) -> Any:
        """Run the benchmark logic. Returns results."""
        pass

    def teardown(self):
        if self.profile:
            print("\nProfiler Output:")
            ti.profiler.print_kernel_profiler_info()
            ti.profiler.clear_kernel_profiler_info()

    def time_ticks(self, fn: Callable[[], None], ticks: int, warmup: int = 10) -> float:
        """Seconds per call of ``fn`` after ``warmup`` untimed calls."""
        for _ in range(warmup):
            fn()
        ti.sync()
        start = time.perf_counter()
        for _ in range(ticks):
            fn()
        ti.sync()
        return (time.perf_counter() - start) / ticks

    def print_header(self, title: str):
        print("\n" + "=" * 80)
        print(f"{title:^80}")
        print("=" * 80)

    def print_footer(self):
        print("=" * 80)
