"""Tests for the kriging estimation solver."""

import threading

import numpy as np
import pandas as pd
import pytest

from geostats.objects import GeoDataFrame, PointSet, RegularGrid
from geostats.primitives import kriging as kriging_primitives
from geostats.primitives.neighborhoods import KNearest, Radius
from geostats.primitives.variogram import (
    ExponentialVariogram,
    GaussianVariogram,
    PowerVariogram,
    SphericalVariogram,
)
from geostats.problems import EstimationProblem, SimulationProblem
from geostats.solvers import Kriging, KrigingParameters
from geostats.utils.errors import (
    InsufficientDataError,
    ParameterError,
    SingularSystemError,
    SolveCancelled,
)


@pytest.fixture
def scenario():
    """Three samples and one target location."""
    frame = pd.DataFrame(
        {"x": [0.0, 10.0, 5.0], "y": [0.0, 0.0, 5.0], "z": [1.0, 2.0, 1.5]}
    )
    return GeoDataFrame(frame, ("x", "y"))


@pytest.fixture
def field_data():
    """Samples of a smooth field."""
    rng = np.random.default_rng(7)
    x = rng.uniform(0, 20, 40)
    y = rng.uniform(0, 20, 40)
    frame = pd.DataFrame(
        {"x": x, "y": y, "z": np.sin(x / 4.0) + np.cos(y / 5.0), "w": x / 10.0}
    )
    return GeoDataFrame(frame, ("x", "y"))


class TestKrigingParameters:
    """Tests for KrigingParameters validation."""

    def test_defaults(self):
        """Test default configuration."""
        params = KrigingParameters(GaussianVariogram())
        assert params.kind == "ordinary"
        assert params.mean is None

    def test_unknown_kind(self):
        """Test that unknown kinds are rejected."""
        with pytest.raises(ParameterError, match="kind"):
            KrigingParameters(GaussianVariogram(), kind="universal")

    def test_simple_needs_bounded_variogram(self):
        """Test that simple kriging rejects unbounded models."""
        with pytest.raises(ParameterError, match="bounded"):
            KrigingParameters(PowerVariogram(), kind="simple")

    def test_variogram_type(self):
        """Test that a variogram model is required."""
        with pytest.raises(ParameterError, match="VariogramModel"):
            KrigingParameters("gaussian")

    def test_neighborhood_type(self):
        """Test that a neighborhood object is required."""
        with pytest.raises(ParameterError, match="Neighborhood"):
            KrigingParameters(GaussianVariogram(), neighborhood=5)

    def test_frozen(self):
        """Test that parameters are immutable."""
        params = KrigingParameters(GaussianVariogram())
        with pytest.raises(AttributeError):
            params.kind = "simple"


class TestKriging:
    """Tests for the Kriging solver."""

    def test_scenario(self, scenario):
        """Test the three-sample scenario through the solver."""
        model = GaussianVariogram(sill=1.0, range_param=5.0, nugget=0.0)
        problem = EstimationProblem(scenario, PointSet([[5.0, 0.0]]), "z")

        solution = Kriging({"z": KrigingParameters(model)}).solve(problem)
        mean, variance = solution["z"]

        assert 1.0 < mean[0] < 2.0
        assert 0.0 < variance[0] < model.total_sill
        assert solution.succeeded

    def test_single_sample(self):
        """Test that one sample at 5.0 is reproduced everywhere."""
        frame = pd.DataFrame({"x": [2.0], "y": [3.0], "z": [5.0]})
        geodata = GeoDataFrame(frame, ("x", "y"))
        model = SphericalVariogram(sill=1.0, range_param=4.0, nugget=0.25)
        problem = EstimationProblem(geodata, RegularGrid((4, 4)), "z")

        solution = Kriging(KrigingParameters(model)).solve(problem)
        mean, variance = solution["z"]

        np.testing.assert_allclose(mean, 5.0)
        np.testing.assert_allclose(variance, 1.25)

    def test_exact_at_samples(self, scenario):
        """Test that estimates at sample locations reproduce the data."""
        problem = EstimationProblem(scenario, PointSet(scenario.coordinate_matrix()), "z")
        solution = Kriging(KrigingParameters(GaussianVariogram(range_param=5.0))).solve(
            problem
        )
        mean, variance = solution["z"]

        np.testing.assert_allclose(mean, [1.0, 2.0, 1.5])
        np.testing.assert_allclose(variance, 0.0, atol=1e-8)

    def test_grid_output(self, field_data):
        """Test that every grid location gets an estimate."""
        grid = RegularGrid((8, 6), spacing=(2.5, 3.0))
        problem = EstimationProblem(field_data, grid, "z")
        params = KrigingParameters(ExponentialVariogram(range_param=5.0))

        solution = Kriging(params, n_jobs=1).solve(problem)
        mean, variance = solution["z"]

        assert mean.shape == (48,)
        assert np.all(np.isfinite(mean))
        assert np.all(variance >= 0)
        frame = solution.to_dataframe()
        assert list(frame.columns) == ["x1", "x2", "z", "z_variance"]

    def test_parallel_matches_serial(self, field_data):
        """Test that the result does not depend on n_jobs."""
        grid = RegularGrid((20, 20), spacing=(1.0, 1.0))
        problem = EstimationProblem(field_data, grid, "z")
        params = KrigingParameters(
            ExponentialVariogram(range_param=6.0), neighborhood=KNearest(8)
        )

        serial = Kriging(params, n_jobs=1).solve(problem)
        parallel = Kriging(params, n_jobs=4).solve(problem)

        np.testing.assert_allclose(serial.mean["z"], parallel.mean["z"])
        np.testing.assert_allclose(serial.variance["z"], parallel.variance["z"])

    def test_variables_are_independent(self, field_data):
        """Test that each variable uses its own parameters."""
        grid = RegularGrid((5, 5), spacing=(4.0, 4.0))
        problem = EstimationProblem(field_data, grid, ["z", "w"])
        solver = Kriging(
            {
                "z": KrigingParameters(SphericalVariogram(range_param=8.0)),
                "w": KrigingParameters(
                    ExponentialVariogram(range_param=10.0), kind="simple", mean=1.0
                ),
            }
        )

        solution = solver.solve(problem)

        assert solution.variables == ("z", "w")
        only_w = Kriging(
            KrigingParameters(
                ExponentialVariogram(range_param=10.0), kind="simple", mean=1.0
            )
        ).solve(EstimationProblem(field_data, grid, "w"))
        np.testing.assert_allclose(solution.mean["w"], only_w.mean["w"])

    def test_missing_parameters(self, field_data):
        """Test that every target variable needs parameters."""
        problem = EstimationProblem(field_data, RegularGrid((2, 2)), ["z", "w"])
        solver = Kriging({"z": KrigingParameters(GaussianVariogram())})

        with pytest.raises(ParameterError, match="'w'"):
            solver.solve(problem)

    def test_invalid_parameters_type(self):
        """Test that parameters must be KrigingParameters."""
        with pytest.raises(ParameterError, match="KrigingParameters"):
            Kriging({"z": GaussianVariogram()})

    def test_invalid_n_jobs(self):
        """Test that n_jobs must be positive, -1 or None."""
        with pytest.raises(ParameterError, match="n_jobs"):
            Kriging(KrigingParameters(GaussianVariogram()), n_jobs=0)

    def test_no_data(self):
        """Test that estimating without data raises InsufficientDataError."""
        empty = GeoDataFrame.empty(["x", "y"], ["z"])
        problem = EstimationProblem(empty, RegularGrid((3, 3)), "z")

        with pytest.raises(InsufficientDataError, match="'z'"):
            Kriging(KrigingParameters(GaussianVariogram())).solve(problem)

    def test_all_missing_values(self):
        """Test that a column of missing values counts as no data."""
        frame = pd.DataFrame({"x": [0.0, 1.0], "y": [0.0, 1.0], "z": [np.nan, np.nan]})
        problem = EstimationProblem(
            GeoDataFrame(frame, ("x", "y")), RegularGrid((2, 2)), "z"
        )
        with pytest.raises(InsufficientDataError):
            Kriging(KrigingParameters(GaussianVariogram())).solve(problem)

    def test_missing_values_dropped(self, scenario, caplog):
        """Test that rows with missing target values are ignored."""
        frame = scenario.data.copy()
        frame.loc[len(frame)] = [20.0, 20.0, np.nan]
        with_missing = GeoDataFrame(frame, ("x", "y"))
        params = KrigingParameters(GaussianVariogram(range_param=5.0))
        domain = PointSet([[5.0, 0.0], [3.0, 2.0]])

        with caplog.at_level("WARNING", logger="geostats.solvers.kriging"):
            dropped = Kriging(params).solve(EstimationProblem(with_missing, domain, "z"))
        reference = Kriging(params).solve(EstimationProblem(scenario, domain, "z"))

        np.testing.assert_allclose(dropped.mean["z"], reference.mean["z"])
        assert "Dropped 1 sample" in caplog.text

    def test_wrong_problem_type(self, scenario):
        """Test that simulation problems are rejected."""
        problem = SimulationProblem(scenario, RegularGrid((2, 2)), "z")
        with pytest.raises(ParameterError, match="EstimationProblem"):
            Kriging(KrigingParameters(GaussianVariogram())).solve(problem)


class TestKrigingFailures:
    """Tests for per-location failure reporting."""

    def test_singular_system_reported_per_location(self, caplog):
        """Test that a singular system fails locations without aborting."""
        frame = pd.DataFrame(
            {"x": [0.0, 0.0, 5.0], "y": [0.0, 0.0, 5.0], "z": [1.0, 2.0, 3.0]}
        )
        problem = EstimationProblem(
            GeoDataFrame(frame, ("x", "y")), RegularGrid((3, 3)), "z"
        )

        with caplog.at_level("WARNING", logger="geostats.solvers.kriging"):
            solution = Kriging(
                KrigingParameters(GaussianVariogram(range_param=5.0))
            ).solve(problem)

        mean, _ = solution["z"]
        assert mean.mask.all()
        assert solution.failed_locations("z") == list(range(9))
        assert all(
            isinstance(error, SingularSystemError)
            for error in solution.failures["z"].values()
        )
        assert "failed at 9 of 9 locations" in caplog.text
        with pytest.raises(SingularSystemError):
            solution.raise_for_failures()

    def test_local_singularity_is_isolated(self):
        """Test that only locations whose neighborhood is singular fail."""
        frame = pd.DataFrame(
            {
                "x": [0.0, 0.0, 100.0, 101.0],
                "y": [0.0, 0.0, 100.0, 100.0],
                "z": [1.0, 2.0, 3.0, 4.0],
            }
        )
        problem = EstimationProblem(
            GeoDataFrame(frame, ("x", "y")),
            PointSet([[0.5, 0.5], [100.5, 100.0]]),
            "z",
        )
        params = KrigingParameters(
            ExponentialVariogram(range_param=10.0), neighborhood=KNearest(2)
        )

        solution = Kriging(params).solve(problem)
        mean, _ = solution["z"]

        assert solution.failed_locations("z") == [0]
        assert mean[1] == pytest.approx(3.5)

    def test_empty_radius_recorded(self, scenario):
        """Test that an empty neighborhood fails only that location."""
        problem = EstimationProblem(
            scenario, PointSet([[5.0, 1.0], [100.0, 100.0]]), "z"
        )
        params = KrigingParameters(
            GaussianVariogram(range_param=5.0), neighborhood=Radius(8.0)
        )

        solution = Kriging(params).solve(problem)

        assert solution.failed_locations("z") == [1]
        assert isinstance(solution.failures["z"][1], InsufficientDataError)
        mean, _ = solution["z"]
        assert np.isfinite(mean[0])
        assert mean.mask.tolist() == [False, True]


class TestKrigingCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_start(self, scenario):
        """Test that a set event cancels the solve."""
        event = threading.Event()
        event.set()
        problem = EstimationProblem(scenario, RegularGrid((10, 10)), "z")

        with pytest.raises(SolveCancelled) as excinfo:
            Kriging(KrigingParameters(GaussianVariogram(range_param=5.0))).solve(
                problem, cancel_event=event
            )
        assert excinfo.value.details["completed"] == 0
        assert excinfo.value.details["total"] == 100

    def test_unset_event(self, scenario):
        """Test that an unset event does not interfere."""
        problem = EstimationProblem(scenario, RegularGrid((3, 3)), "z")
        solution = Kriging(KrigingParameters(GaussianVariogram(range_param=5.0))).solve(
            problem, cancel_event=threading.Event()
        )
        assert solution.succeeded


class TestKrigingFactorization:
    """Tests for when kriging systems are factorized."""

    @pytest.fixture
    def factorized_sizes(self, monkeypatch):
        """Record the size of every factorized kriging matrix."""
        sizes = []
        original = kriging_primitives._Factorization

        class Recording(original):
            def __init__(self, matrix):
                sizes.append(matrix.shape[0])
                super().__init__(matrix)

        monkeypatch.setattr(kriging_primitives, "_Factorization", Recording)
        return sizes

    def test_local_neighborhood_skips_full_system(self, field_data, factorized_sizes):
        """Test that only neighborhood-sized systems are built."""
        grid = RegularGrid((5, 5), spacing=(4.0, 4.0))
        problem = EstimationProblem(field_data, grid, "z")
        params = KrigingParameters(
            ExponentialVariogram(range_param=6.0), neighborhood=KNearest(5)
        )

        Kriging(params, n_jobs=1).solve(problem)

        assert len(factorized_sizes) == 25
        assert set(factorized_sizes) == {6}

    def test_unlimited_factorizes_once(self, field_data, factorized_sizes):
        """Test that the full system is built once, on first use."""
        estimator = KrigingParameters(ExponentialVariogram(range_param=6.0)).estimator()
        coords, values = field_data.valid("z")

        estimator.fit(coords, values)
        assert factorized_sizes == []

        estimator.estimate([1.0, 1.0])
        estimator.estimate([9.0, 4.0])
        assert factorized_sizes == [41]
