"""Performance benchmarks for variogram computation."""

import time
from typing import Dict

import numpy as np
import pandas as pd

from geostats import EmpiricalVariogram, GeoDataFrame, fit_variogram
from geostats.primitives.variogram import VARIOGRAM_MODELS, SphericalVariogram


def make_geodata(n_samples: int, n_dims: int = 2) -> GeoDataFrame:
    """Random samples in a 1000-unit cube."""
    coords = np.random.rand(n_samples, n_dims) * 1000
    frame = pd.DataFrame(coords, columns=[f"x{i + 1}" for i in range(n_dims)])
    frame["z"] = np.random.rand(n_samples) * 10
    return GeoDataFrame(frame, tuple(frame.columns[:n_dims]))


def benchmark_variogram_computation(
    n_samples: int = 1000,
    n_lags: int = 15,
) -> Dict[str, float]:
    """Benchmark empirical variogram computation and fitting.

    Args:
        n_samples: Number of sample points.
        n_lags: Number of lag bins.

    Returns:
        Dictionary with timing results.
    """
    np.random.seed(42)
    geodata = make_geodata(n_samples)

    start = time.perf_counter()
    empirical = EmpiricalVariogram.from_geodata(geodata, "z", nlags=n_lags)
    compute_time = time.perf_counter() - start

    start = time.perf_counter()
    fit_variogram(empirical, SphericalVariogram)
    fit_time = time.perf_counter() - start

    return {
        "n_samples": n_samples,
        "n_lags": n_lags,
        "compute_time_seconds": compute_time,
        "fit_time_seconds": fit_time,
        "total_time_seconds": compute_time + fit_time,
        "pairs_per_second": (n_samples * (n_samples - 1) / 2) / compute_time,
    }


def benchmark_model_evaluation(n_lags: int = 1_000_000) -> Dict[str, float]:
    """Benchmark evaluating each variogram model on a lag vector.

    Args:
        n_lags: Number of lag distances to evaluate.

    Returns:
        Dictionary with evaluation time per model name.
    """
    lags = np.linspace(0.0, 500.0, n_lags)
    results = {}
    for name, model_class in VARIOGRAM_MODELS.items():
        model = model_class()
        start = time.perf_counter()
        model.lag(lags)
        results[name] = time.perf_counter() - start
    return results


def benchmark_variogram_scalability() -> Dict[str, Dict[str, float]]:
    """Benchmark empirical variograms across sample sizes.

    Returns:
        Dictionary with results for different sizes.
    """
    results = {}
    configs = [
        ("small", 100),
        ("medium", 500),
        ("large", 1000),
        ("xlarge", 5000),
    ]
    for size_name, n_samples in configs:
        print(f"  Benchmarking {size_name} ({n_samples} samples)...")
        results[size_name] = benchmark_variogram_computation(n_samples=n_samples)
    return results


def run_all_variogram_benchmarks() -> Dict[str, Dict]:
    """Run all variogram benchmarks and return results.

    Returns:
        Dictionary with all benchmark results.
    """
    results = {}

    print("Benchmarking empirical variogram scalability...")
    results["variogram_scalability"] = benchmark_variogram_scalability()

    print("Benchmarking model evaluation...")
    results["model_evaluation"] = benchmark_model_evaluation()

    return results


if __name__ == "__main__":
    """Run benchmarks and print results."""
    results = run_all_variogram_benchmarks()

    print("\n" + "=" * 60)
    print("VARIOGRAM PERFORMANCE BENCHMARKS")
    print("=" * 60)

    print("\nEmpirical Variogram Scalability:")
    for size, data in results["variogram_scalability"].items():
        print(f"  {size:8s}: {data['n_samples']:5d} samples")
        print(f"            Compute: {data['compute_time_seconds']*1000:8.2f} ms")
        print(f"            Fit: {data['fit_time_seconds']*1000:8.2f} ms")
        print(f"            Throughput: {data['pairs_per_second']:10.0f} pairs/s")

    print("\nModel Evaluation (1M lags):")
    for name, seconds in results["model_evaluation"].items():
        print(f"  {name:12s}: {seconds*1000:6.2f} ms")
