from benchmarks.harness import Benchmark
from flowfield.params import FlowConfig
from flowfield.simulation import Flow


class VariantBenchmark(Benchmark):
    """Compares the in-place and Jacobi relaxation sweeps per tick."""

    def run(self, size: int = 128, ticks: int = 100):
        self.print_header("RELAXATION VARIANT COMPARISON")
        print(f"Grid size: {size}x{size}, backend={self.backend}")

        results = {}
        for variant in ("in_place", "jacobi"):
            config = FlowConfig().with_updates(
                grid={"width": size, "height": size},
                solver={"variant": variant},
            )
            flow = Flow(config)
            flow.add_impulse(size / 2, size / 2, size / 10, 20.0, 0.0)
            ms = 1e3 * self.time_ticks(lambda: flow.step(1 / 60), ticks)
            stats = flow.pressure(measure=True)
            results[variant] = ms
            print(
                f"  {variant:<10} {ms:8.3f} ms/tick, "
                f"divergence after projection = {stats.divergence_after:.3e}"
            )

        print(f"\nJacobi / in-place time ratio: {results['jacobi'] / results['in_place']:.2f}")
        self.print_footer()
        self.teardown()
        return results
