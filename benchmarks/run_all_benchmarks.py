"""Run every geostats benchmark and write a JSON report.

Usage:
    python run_all_benchmarks.py [n_jobs]

Solver benchmarks run once serially and once with ``n_jobs`` worker threads
(default: one per CPU) so the threading speedup is reported.
"""

import json
import sys
from pathlib import Path

from benchmark_kriging import run_all_kriging_benchmarks
from benchmark_simulation import run_all_simulation_benchmarks
from benchmark_variogram import run_all_variogram_benchmarks

from geostats.utils.parallel import get_parallel_info, resolve_n_jobs

RESULTS_FILE = Path(__file__).parent / "results.json"


def to_native(obj):
    """Replace numpy scalars by Python numbers for JSON output."""
    if isinstance(obj, dict):
        return {key: to_native(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_native(item) for item in obj]
    if hasattr(obj, "item"):
        return obj.item()
    return obj


def speedup(serial: dict, parallel: dict, key: str) -> float:
    return serial[key] / parallel[key]


def print_summary(results: dict, n_jobs: int) -> None:
    """Print the headline numbers of each benchmark group."""
    print("\n" + "=" * 60)
    print("BENCHMARK SUMMARY")
    print("=" * 60)

    scalability = results["variogram"]["variogram_scalability"]
    print("\nEmpirical variogram + fit:")
    for size in ("small", "xlarge"):
        data = scalability[size]
        print(
            f"  {data['n_samples']:5d} samples: "
            f"{data['total_time_seconds']*1000:8.2f} ms"
        )

    solver = results["kriging"]["solver"]
    print(f"\nKriging solver ({solver['serial']['n_targets']} targets, KNearest):")
    print(f"  1 thread:   {solver['serial']['solve_time_seconds']:6.2f} s")
    print(f"  {n_jobs} threads: {solver['parallel']['solve_time_seconds']:6.2f} s")
    print(
        f"  Speedup:    "
        f"{speedup(solver['serial'], solver['parallel'], 'solve_time_seconds'):5.2f}x"
    )

    simulation = results["simulation"]
    print(f"\nSGS ({simulation['sgs_serial']['n_realizations']} realizations):")
    print(f"  1 thread:   {simulation['sgs_serial']['total_time_seconds']:6.2f} s")
    print(f"  {n_jobs} threads: {simulation['sgs_parallel']['total_time_seconds']:6.2f} s")
    print(
        f"  Speedup:    "
        f"{speedup(simulation['sgs_serial'], simulation['sgs_parallel'], 'total_time_seconds'):5.2f}x"
    )


def main(n_jobs=None):
    """Run all benchmark groups and save the results."""
    n_jobs = resolve_n_jobs(n_jobs)
    info = get_parallel_info()
    print(f"GEOSTATS BENCHMARKS ({info['num_threads']} CPUs, n_jobs={n_jobs})")

    results = {"parallel_info": info, "n_jobs": n_jobs}
    print("\n[1/3] Variogram")
    results["variogram"] = run_all_variogram_benchmarks()
    print("\n[2/3] Kriging")
    results["kriging"] = run_all_kriging_benchmarks(n_jobs=n_jobs)
    print("\n[3/3] Simulation")
    results["simulation"] = run_all_simulation_benchmarks(n_jobs=n_jobs)

    with open(RESULTS_FILE, "w") as f:
        json.dump(to_native(results), f, indent=2)
    print(f"\nResults saved to {RESULTS_FILE}")

    print_summary(results, n_jobs)


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
