from benchmarks.harness import Benchmark
from flowfield.params import FlowConfig
from flowfield.simulation import Flow


class ScalingBenchmark(Benchmark):
    """Tick cost as the grid grows."""

    def run(self, sizes=(32, 64, 128, 256), ticks: int = 50):
        self.print_header("GRID SCALING")
        print(f"{'Grid':>10} {'Cells':>10} {'ms/tick':>10} {'ns/cell':>10}")

        results = []
        for n in sizes:
            flow = Flow(FlowConfig().with_updates(grid={"width": n, "height": n}))
            flow.add_impulse(n / 2, n / 2, n / 10, 20.0, 0.0)
            seconds = self.time_ticks(lambda: flow.step(1 / 60), ticks)
            results.append((n, seconds))
            print(
                f"{n:>5}x{n:<4} {n * n:>10} {1e3 * seconds:>10.3f} "
                f"{1e9 * seconds / (n * n):>10.2f}"
            )

        self.print_footer()
        self.teardown()
        return results
