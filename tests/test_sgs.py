"""Tests for sequential Gaussian simulation."""

import threading

import numpy as np
import pandas as pd
import pytest

from geostats.objects import GeoDataFrame, PointSet, RegularGrid
from geostats.primitives.variogram import (
    ExponentialVariogram,
    PowerVariogram,
    SphericalVariogram,
)
from geostats.problems import EstimationProblem, SimulationProblem
from geostats.solvers import SequentialGaussianSimulation, SGSParameters
from geostats.utils.errors import ParameterError, SolveCancelled


@pytest.fixture
def grid():
    return RegularGrid((8, 8))


@pytest.fixture
def conditional_problem(grid):
    """Samples placed on grid nodes plus one between nodes."""
    frame = pd.DataFrame(
        {
            "x": [0.0, 3.0, 7.0, 4.5],
            "y": [0.0, 5.0, 2.0, 4.5],
            "z": [10.0, -3.0, 4.0, 1.0],
        }
    )
    return SimulationProblem(GeoDataFrame(frame, ("x", "y")), grid, "z")


def params(**kwargs):
    kwargs.setdefault("variogram", ExponentialVariogram(sill=1.0, range_param=3.0))
    return SGSParameters(**kwargs)


class TestSGSParameters:
    """Tests for SGSParameters validation."""

    def test_defaults(self):
        """Test default configuration."""
        p = params()
        assert p.mean is None
        assert p.neighbors == 12

    def test_unbounded_variogram(self):
        """Test that simulation needs a sill."""
        with pytest.raises(ParameterError, match="bounded"):
            SGSParameters(PowerVariogram())

    def test_neighbors_positive(self):
        """Test that at least one neighbor is used."""
        with pytest.raises(ParameterError, match="neighbors"):
            params(neighbors=0)

    def test_mean_finite(self):
        """Test that the mean must be finite."""
        with pytest.raises(ParameterError, match="mean"):
            params(mean=np.inf)


class TestSequentialGaussianSimulation:
    """Tests for SequentialGaussianSimulation."""

    def test_unconditional(self, grid):
        """Test simulation without data."""
        problem = SimulationProblem(grid, ["z"])
        solver = SequentialGaussianSimulation(params(mean=0.0), nreals=3, seed=1)

        solution = solver.solve(problem)

        assert solution.nreals == 3
        for real in solution["z"]:
            assert real.shape == (64,)
            assert np.all(np.isfinite(real))
        assert not np.allclose(solution["z"][0], solution["z"][1])

    def test_reproducible(self, conditional_problem):
        """Test that a fixed seed gives identical realizations."""
        first = SequentialGaussianSimulation(params(), nreals=3, seed=42).solve(
            conditional_problem
        )
        second = SequentialGaussianSimulation(params(), nreals=3, seed=42).solve(
            conditional_problem
        )

        for a, b in zip(first["z"], second["z"]):
            np.testing.assert_array_equal(a, b)

    def test_independent_of_n_jobs(self, conditional_problem):
        """Test that the result does not depend on the number of workers."""
        serial = SequentialGaussianSimulation(params(), nreals=4, seed=7, n_jobs=1)
        parallel = SequentialGaussianSimulation(params(), nreals=4, seed=7, n_jobs=4)

        for a, b in zip(
            serial.solve(conditional_problem)["z"],
            parallel.solve(conditional_problem)["z"],
        ):
            np.testing.assert_array_equal(a, b)

    def test_seeds_differ(self, conditional_problem):
        """Test that different seeds give different realizations."""
        a = SequentialGaussianSimulation(params(), seed=1).solve(conditional_problem)
        b = SequentialGaussianSimulation(params(), seed=2).solve(conditional_problem)
        assert not np.allclose(a["z"][0], b["z"][0])

    def test_honors_data(self, grid, conditional_problem):
        """Test that nodes at sample locations take the sample values."""
        solution = SequentialGaussianSimulation(params(), nreals=5, seed=3).solve(
            conditional_problem
        )
        coords = grid.coordinates()
        nodes = {
            (0.0, 0.0): 10.0,
            (3.0, 5.0): -3.0,
            (7.0, 2.0): 4.0,
        }

        for real in solution["z"]:
            for (x, y), value in nodes.items():
                i = int(np.flatnonzero((coords[:, 0] == x) & (coords[:, 1] == y))[0])
                assert real[i] == value

    def test_mean_reverts_without_data(self):
        """Test that unconditional realizations fluctuate around the mean."""
        problem = SimulationProblem(RegularGrid((15, 15)), "z")
        solver = SequentialGaussianSimulation(
            params(variogram=SphericalVariogram(sill=1.0, range_param=3.0), mean=10.0),
            nreals=4,
            seed=11,
        )

        realizations = np.array(solver.solve(problem)["z"])

        assert abs(realizations.mean() - 10.0) < 1.0
        assert 0.3 < realizations.var() < 2.0

    def test_several_variables(self, grid):
        """Test per-variable parameters and realization counts."""
        problem = SimulationProblem(grid, ["a", "b"])
        solver = SequentialGaussianSimulation(
            {"a": params(mean=0.0), "b": params(mean=100.0)}, nreals=2, seed=5
        )

        solution = solver.solve(problem)

        assert solution.variables == ("a", "b")
        assert solution.nreals == 2
        assert np.mean(solution["b"][0]) > np.mean(solution["a"][0]) + 50

    def test_point_set_domain(self, conditional_problem):
        """Test simulation on scattered points."""
        points = PointSet([[1.0, 1.0], [2.5, 6.0], [6.0, 6.0]])
        problem = SimulationProblem(conditional_problem.geodata, points, "z")

        solution = SequentialGaussianSimulation(params(), nreals=2, seed=0).solve(problem)

        assert solution.to_dataframe("z").shape == (3, 4)

    def test_data_mean_default(self, conditional_problem, caplog):
        """Test that the data mean is used and logged when no mean is given."""
        with caplog.at_level("INFO", logger="geostats.solvers.sgs"):
            SequentialGaussianSimulation(params(), seed=0).solve(conditional_problem)
        assert "using 3" in caplog.text

    def test_nreals_positive(self):
        """Test that at least one realization is requested."""
        with pytest.raises(ParameterError, match="nreals"):
            SequentialGaussianSimulation(params(), nreals=0)

    def test_wrong_problem_type(self, conditional_problem):
        """Test that estimation problems are rejected."""
        problem = EstimationProblem(
            conditional_problem.geodata, conditional_problem.domain, "z"
        )
        with pytest.raises(ParameterError, match="SimulationProblem"):
            SequentialGaussianSimulation(params()).solve(problem)

    def test_cancel(self, conditional_problem):
        """Test that a set event cancels the simulation."""
        event = threading.Event()
        event.set()
        with pytest.raises(SolveCancelled):
            SequentialGaussianSimulation(params(), nreals=3, seed=0).solve(
                conditional_problem, cancel_event=event
            )

    def test_variance_includes_nugget(self):
        """Test that nearly independent nodes reach the total sill."""
        grid = RegularGrid((20, 20), spacing=(50.0, 50.0))
        model = ExponentialVariogram(sill=1.0, range_param=5.0, nugget=1.0)
        solver = SequentialGaussianSimulation(
            params(variogram=model, mean=0.0), nreals=10, seed=8
        )

        realizations = np.array(solver.solve(SimulationProblem(grid, "z"))["z"])

        assert realizations.var() == pytest.approx(model.total_sill, abs=0.25)

    def test_duplicate_samples_averaged(self, grid, caplog):
        """Test that samples sharing a location are merged before simulating."""
        frame = pd.DataFrame(
            {"x": [0.0, 0.0, 3.0], "y": [0.0, 0.0, 5.0], "z": [1.0, 3.0, -3.0]}
        )
        problem = SimulationProblem(GeoDataFrame(frame, ("x", "y")), grid, "z")

        with caplog.at_level("WARNING", logger="geostats.solvers.sgs"):
            solution = SequentialGaussianSimulation(params(), nreals=2, seed=4).solve(
                problem
            )

        assert "Averaged 1 duplicate sample" in caplog.text
        for real in solution["z"]:
            assert real[0] == pytest.approx(2.0)
            assert np.all(np.isfinite(real))
