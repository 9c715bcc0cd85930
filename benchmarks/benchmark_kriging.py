"""Performance benchmarks for kriging operations."""

import time
from typing import Dict

import numpy as np
import pandas as pd

from geostats import (
    EstimationProblem,
    GeoDataFrame,
    KNearest,
    Kriging,
    KrigingParameters,
    PointSet,
)
from geostats.primitives.kriging import OrdinaryKriging, SimpleKriging
from geostats.primitives.variogram import SphericalVariogram

VARIOGRAM = SphericalVariogram(sill=1.9, range_param=100.0, nugget=0.1)


def benchmark_ordinary_kriging(
    n_samples: int = 100,
    n_targets: int = 1000,
    n_dims: int = 3,
) -> Dict[str, float]:
    """Benchmark Ordinary Kriging estimator performance.

    Args:
        n_samples: Number of sample points.
        n_targets: Number of target points to estimate.
        n_dims: Number of dimensions (2 or 3).

    Returns:
        Dictionary with timing results.
    """
    np.random.seed(42)

    sample_coords = np.random.rand(n_samples, n_dims) * 1000
    sample_values = np.random.rand(n_samples) * 10
    target_coords = np.random.rand(n_targets, n_dims) * 1000

    kriging = OrdinaryKriging(VARIOGRAM)
    start = time.perf_counter()
    kriging.fit(sample_coords, sample_values)
    fit_time = time.perf_counter() - start

    start = time.perf_counter()
    for point in target_coords:
        kriging.estimate(point)
    predict_time = time.perf_counter() - start

    return {
        "n_samples": n_samples,
        "n_targets": n_targets,
        "n_dims": n_dims,
        "fit_time_seconds": fit_time,
        "predict_time_seconds": predict_time,
        "predictions_per_second": n_targets / predict_time,
    }


def benchmark_kriging_types(
    n_samples: int = 50,
    n_targets: int = 500,
) -> Dict[str, Dict[str, float]]:
    """Benchmark ordinary and simple kriging estimators.

    Args:
        n_samples: Number of sample points.
        n_targets: Number of target points.

    Returns:
        Dictionary with results for each kriging type.
    """
    np.random.seed(42)

    sample_coords = np.random.rand(n_samples, 2) * 1000
    sample_values = np.random.rand(n_samples) * 10
    target_coords = np.random.rand(n_targets, 2) * 1000

    estimators = {
        "ordinary": OrdinaryKriging(VARIOGRAM),
        "simple": SimpleKriging(VARIOGRAM, mean=float(np.mean(sample_values))),
    }

    results = {}
    for name, kriging in estimators.items():
        start = time.perf_counter()
        kriging.fit(sample_coords, sample_values)
        fit_time = time.perf_counter() - start
        start = time.perf_counter()
        for point in target_coords:
            kriging.estimate(point)
        predict_time = time.perf_counter() - start
        results[name] = {
            "fit_time": fit_time,
            "predict_time": predict_time,
        }

    return results


def benchmark_solver(
    n_samples: int = 500,
    n_targets: int = 5000,
    neighbors: int = 16,
    n_jobs: int = 1,
) -> Dict[str, float]:
    """Benchmark the Kriging solver with a local neighborhood.

    Args:
        n_samples: Number of sample points.
        n_targets: Number of target points.
        neighbors: Conditioning points per target.
        n_jobs: Worker threads.

    Returns:
        Dictionary with timing results.
    """
    np.random.seed(42)

    coords = np.random.rand(n_samples, 2) * 1000
    frame = pd.DataFrame({"x": coords[:, 0], "y": coords[:, 1]})
    frame["z"] = np.random.rand(n_samples) * 10
    problem = EstimationProblem(
        GeoDataFrame(frame, ("x", "y")),
        PointSet(np.random.rand(n_targets, 2) * 1000),
        "z",
    )
    solver = Kriging(
        KrigingParameters(VARIOGRAM, neighborhood=KNearest(neighbors)), n_jobs=n_jobs
    )

    start = time.perf_counter()
    solver.solve(problem)
    solve_time = time.perf_counter() - start

    return {
        "n_samples": n_samples,
        "n_targets": n_targets,
        "n_jobs": n_jobs,
        "solve_time_seconds": solve_time,
        "predictions_per_second": n_targets / solve_time,
    }


def run_all_kriging_benchmarks(n_jobs: int = 4) -> Dict[str, Dict]:
    """Run all kriging benchmarks and return results.

    Args:
        n_jobs: Worker threads for the threaded solver run.

    Returns:
        Dictionary with all benchmark results.
    """
    results = {}

    print("Benchmarking Ordinary Kriging scalability...")
    results["ordinary_scalability"] = {
        "small": benchmark_ordinary_kriging(50, 500, 2),
        "medium": benchmark_ordinary_kriging(200, 2000, 2),
        "large": benchmark_ordinary_kriging(500, 5000, 2),
        "3d": benchmark_ordinary_kriging(100, 1000, 3),
    }

    print("Benchmarking different kriging types...")
    results["kriging_types"] = benchmark_kriging_types(50, 500)

    print("Benchmarking the Kriging solver...")
    results["solver"] = {
        "serial": benchmark_solver(n_jobs=1),
        "parallel": benchmark_solver(n_jobs=n_jobs),
    }

    return results


if __name__ == "__main__":
    """Run benchmarks and print results."""
    results = run_all_kriging_benchmarks()

    print("\n" + "=" * 60)
    print("KRIGING PERFORMANCE BENCHMARKS")
    print("=" * 60)

    print("\nOrdinary Kriging Scalability:")
    for size, data in results["ordinary_scalability"].items():
        print(f"  {size:8s}: {data['n_samples']:4d} samples, {data['n_targets']:5d} targets")
        print(f"            Fit: {data['fit_time_seconds']*1000:6.2f} ms")
        print(f"            Predict: {data['predict_time_seconds']*1000:6.2f} ms")
        print(f"            Throughput: {data['predictions_per_second']:8.0f} pred/s")

    print("\nKriging Type Comparison (50 samples, 500 targets):")
    for ktype, data in results["kriging_types"].items():
        print(f"  {ktype:10s}: Fit {data['fit_time']*1000:6.2f} ms, "
              f"Predict {data['predict_time']*1000:6.2f} ms")

    print("\nKriging Solver (500 samples, 5000 targets, 16 neighbors):")
    for mode, data in results["solver"].items():
        print(f"  {mode:8s}: {data['solve_time_seconds']:6.2f} s "
              f"({data['predictions_per_second']:8.0f} pred/s)")
