"""Integration tests for complete geostatistical workflows.

Tests end-to-end workflows combining variography, estimation, validation
and simulation.
"""

import numpy as np
import pandas as pd
import pytest

pytestmark = pytest.mark.integration

from geostats import (
    Ellipsoidal,
    EmpiricalVariogram,
    EstimationProblem,
    ExponentialVariogram,
    GeoDataFrame,
    KNearest,
    Kriging,
    KrigingParameters,
    PointSet,
    RegularGrid,
    SequentialGaussianSimulation,
    SGSParameters,
    SimulationProblem,
    SphericalVariogram,
    fit_variogram,
    leave_one_out,
)


def synthetic_survey(n_samples=80, seed=42):
    """Smooth grade field sampled at random drillhole collars."""
    rng = np.random.default_rng(seed)
    x = rng.uniform(0, 100, n_samples)
    y = rng.uniform(0, 100, n_samples)
    grade = 2.0 + np.sin(x / 20.0) + 0.5 * np.cos(y / 15.0) + rng.normal(0, 0.05, n_samples)
    return GeoDataFrame(pd.DataFrame({"x": x, "y": y, "grade": grade}), ("x", "y"))


class TestGradeEstimationWorkflow:
    """Variography, kriging and cross-validation on one dataset."""

    def test_complete_workflow(self):
        """Test workflow from samples to a validated grade model."""
        geodata = synthetic_survey()

        # Step 1: variography
        empirical = EmpiricalVariogram.from_geodata(geodata, "grade", nlags=12)
        model = fit_variogram(empirical, SphericalVariogram)
        assert model.range_param > 0
        assert model.total_sill > 0

        # Step 2: estimation on a block grid
        grid = RegularGrid.from_extents((0.0, 0.0), (100.0, 100.0), (21, 21))
        problem = EstimationProblem(geodata, grid, "grade")
        solver = Kriging(
            KrigingParameters(model, neighborhood=KNearest(16)), n_jobs=2
        )
        solution = solver.solve(problem)
        solution.raise_for_failures()

        mean, variance = solution["grade"]
        assert mean.shape == (441,)
        observed = geodata.values("grade")
        assert observed.min() - 0.5 < mean.min()
        assert mean.max() < observed.max() + 0.5
        assert np.all(variance >= 0)

        # Step 3: cross-validation
        result = leave_one_out(problem, solver)
        assert result.rmse < np.std(observed)

        # Step 4: tabular output
        frame = solution.to_dataframe()
        assert list(frame.columns) == ["x1", "x2", "grade", "grade_variance"]


class TestSimulationWorkflow:
    """Conditional simulation honoring data."""

    def test_conditional_simulation(self):
        """Test that realizations reproduce data at sample locations."""
        grid = RegularGrid((20, 20), spacing=(5.0, 5.0))
        coords = grid.coordinates()[::37]
        rng = np.random.default_rng(0)
        frame = pd.DataFrame(
            {"x": coords[:, 0], "y": coords[:, 1], "z": rng.normal(size=len(coords))}
        )
        geodata = GeoDataFrame(frame, ("x", "y"))
        problem = SimulationProblem(geodata, grid, "z")

        solver = SequentialGaussianSimulation(
            SGSParameters(ExponentialVariogram(sill=1.0, range_param=15.0), neighbors=8),
            nreals=3,
            seed=2024,
            n_jobs=2,
        )
        solution = solver.solve(problem)

        sample_nodes = np.arange(0, grid.npoints(), 37)
        for real in solution["z"]:
            np.testing.assert_array_equal(real[sample_nodes], frame["z"].to_numpy())

        frame_out = solution.to_dataframe("z")
        assert frame_out.shape == (400, 5)


class TestAnisotropicWorkflow:
    """Estimation with an ellipsoidal metric."""

    def test_continuity_follows_major_axis(self):
        """Test that estimates propagate further along the major axis."""
        frame = pd.DataFrame({"x": [0.0, 50.0], "y": [0.0, 0.0], "z": [10.0, 0.0]})
        geodata = GeoDataFrame(frame, ("x", "y"))
        model = ExponentialVariogram(
            sill=1.0, range_param=1.0, distance=Ellipsoidal((20.0, 2.0))
        )
        targets = PointSet([[8.0, 0.0], [0.0, 8.0]])

        solution = Kriging(KrigingParameters(model, kind="simple", mean=0.0)).solve(
            EstimationProblem(geodata, targets, "z")
        )
        mean, _ = solution["z"]

        assert mean[0] > mean[1]


class TestThreeDimensionalWorkflow:
    """Estimation in 3-D."""

    def test_block_model(self):
        """Test kriging a small 3-D block model."""
        rng = np.random.default_rng(5)
        xyz = rng.uniform(0, 10, size=(30, 3))
        frame = pd.DataFrame(xyz, columns=["east", "north", "elev"])
        frame["cu"] = xyz[:, 2] / 10.0
        geodata = GeoDataFrame(frame, ("east", "north", "elev"))
        grid = RegularGrid((4, 4, 4), origin=(1.0, 1.0, 1.0), spacing=(2.5, 2.5, 2.5))

        model = SphericalVariogram(
            sill=0.1, range_param=1.0, distance=Ellipsoidal((15.0, 15.0, 5.0), (0.0, 0.0, 0.0))
        )
        solution = Kriging(KrigingParameters(model)).solve(
            EstimationProblem(geodata, grid, "cu")
        )

        mean, _ = solution["cu"]
        assert solution.succeeded
        assert str(solution) == "3D EstimationSolution"
        # Grade increases with elevation
        deep = mean[grid.coordinates()[:, 2] == 1.0].mean()
        shallow = mean[grid.coordinates()[:, 2] == 8.5].mean()
        assert shallow > deep
