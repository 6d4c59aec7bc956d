import argparse

from benchmarks.scaling import ScalingBenchmark
from benchmarks.variants import VariantBenchmark

# Registry of available benchmarks
BENCHMARKS = {
    "scaling": ScalingBenchmark,
    "variants": VariantBenchmark,
}


def main():
    parser = argparse.ArgumentParser(description="flowfield benchmark harness")
    parser.add_argument(
        "benchmark",
        nargs="?",
        choices=list(BENCHMARKS.keys()) + ["all"],
        default="all",
        help="Benchmark to run (default: all)",
    )
    parser.add_argument(
        "--profile", action="store_true", help="Enable Taichi kernel profiler"
    )
    parser.add_argument("--backend", choices=["cuda", "vulkan", "cpu"])
    args = parser.parse_args()

    if args.benchmark == "all":
        to_run = list(BENCHMARKS.values())
    else:
        to_run = [BENCHMARKS[args.benchmark]]

    for bench_cls in to_run:
        print(f"\nRunning {bench_cls.__name__}...")
        # Each benchmark re-runs ti.init, which discards earlier fields
        bench = bench_cls(profile=args.profile, backend=args.backend)
        bench.run()


if __name__ == "__main__":
    main()
