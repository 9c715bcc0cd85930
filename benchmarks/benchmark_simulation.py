"""Performance benchmarks for simulation operations."""

import time
from typing import Dict

import numpy as np
import pandas as pd

from geostats import (
    GeoDataFrame,
    PointSet,
    SequentialGaussianSimulation,
    SGSParameters,
    SimulationProblem,
)
from geostats.primitives.variogram import SphericalVariogram


def benchmark_sgs(
    n_samples: int = 50,
    n_targets: int = 1000,
    n_realizations: int = 10,
    n_jobs: int = 1,
) -> Dict[str, float]:
    """Benchmark Sequential Gaussian Simulation performance.

    Args:
        n_samples: Number of sample points.
        n_targets: Number of target points to simulate.
        n_realizations: Number of realizations to generate.
        n_jobs: Worker threads.

    Returns:
        Dictionary with timing results.
    """
    np.random.seed(42)

    coords = np.random.rand(n_samples, 2) * 1000
    frame = pd.DataFrame({"x": coords[:, 0], "y": coords[:, 1]})
    frame["z"] = np.random.rand(n_samples) * 10
    problem = SimulationProblem(
        GeoDataFrame(frame, ("x", "y")),
        PointSet(np.random.rand(n_targets, 2) * 1000),
        "z",
    )

    variogram = SphericalVariogram(sill=1.9, range_param=100.0, nugget=0.1)
    solver = SequentialGaussianSimulation(
        SGSParameters(variogram, neighbors=12),
        nreals=n_realizations,
        seed=42,
        n_jobs=n_jobs,
    )

    start = time.perf_counter()
    solver.solve(problem)
    total_time = time.perf_counter() - start

    return {
        "n_samples": n_samples,
        "n_targets": n_targets,
        "n_realizations": n_realizations,
        "total_time_seconds": total_time,
        "time_per_realization": total_time / n_realizations,
        "targets_per_second": (n_targets * n_realizations) / total_time,
    }


def benchmark_sgs_scalability() -> Dict[str, Dict[str, float]]:
    """Benchmark SGS across different problem sizes.

    Returns:
        Dictionary with results for different sizes.
    """
    results = {}

    configs = [
        ("small", 30, 500, 5),
        ("medium", 50, 1000, 10),
        ("large", 100, 2000, 10),
    ]

    for size_name, n_samples, n_targets, n_realizations in configs:
        print(f"  Benchmarking {size_name} ({n_samples} samples, {n_targets} targets, {n_realizations} realizations)...")
        results[size_name] = benchmark_sgs(
            n_samples=n_samples,
            n_targets=n_targets,
            n_realizations=n_realizations,
        )

    return results


def run_all_simulation_benchmarks(n_jobs: int = 4) -> Dict[str, Dict]:
    """Run all simulation benchmarks and return results.

    Args:
        n_jobs: Worker threads for the threaded simulation run.

    Returns:
        Dictionary with all benchmark results.
    """
    results = {}

    print("Benchmarking Sequential Gaussian Simulation scalability...")
    results["sgs_scalability"] = benchmark_sgs_scalability()

    print("Benchmarking parallel realizations...")
    results["sgs_serial"] = benchmark_sgs(50, 1000, 8, n_jobs=1)
    results["sgs_parallel"] = benchmark_sgs(50, 1000, 8, n_jobs=n_jobs)

    return results


if __name__ == "__main__":
    """Run benchmarks and print results."""
    results = run_all_simulation_benchmarks()

    print("\n" + "=" * 60)
    print("SIMULATION PERFORMANCE BENCHMARKS")
    print("=" * 60)

    print("\nSequential Gaussian Simulation Scalability:")
    for size, data in results["sgs_scalability"].items():
        print(f"  {size:8s}: {data['n_samples']:3d} samples, {data['n_targets']:5d} targets, {data['n_realizations']:2d} realizations")
        print(f"            Total time: {data['total_time_seconds']:6.2f} s")
        print(f"            Time per realization: {data['time_per_realization']:6.2f} s")
        print(f"            Throughput: {data['targets_per_second']:8.0f} targets/s")

    parallel = results["sgs_parallel"]
    serial = results["sgs_serial"]
    print(f"\nSerial (8 realizations): {serial['total_time_seconds']:6.2f} s")
    print(f"Parallel (4 workers, 8 realizations): {parallel['total_time_seconds']:6.2f} s")
