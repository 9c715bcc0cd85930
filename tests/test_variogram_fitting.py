"""Tests for empirical variograms and model fitting."""

import numpy as np
import pandas as pd
import pytest

from geostats.objects.geodataframe import GeoDataFrame
from geostats.primitives.distances import Ellipsoidal, Euclidean
from geostats.primitives.variogram import (
    ExponentialVariogram,
    GaussianVariogram,
    PowerVariogram,
)
from geostats.primitives.variogram_fitting import EmpiricalVariogram, fit_variogram
from geostats.utils.errors import InsufficientDataError, ParameterError


def exact_empirical(model, lags):
    """Empirical variogram lying exactly on ``model``."""
    lags = np.asarray(lags, dtype=float)
    return EmpiricalVariogram(
        lags=lags,
        semivariances=np.asarray(model(lags)),
        npairs=np.full(len(lags), 10),
        distance=Euclidean(),
    )


@pytest.fixture
def sample_data():
    """Smooth field sampled at random locations."""
    rng = np.random.default_rng(42)
    x = rng.uniform(0, 100, 150)
    y = rng.uniform(0, 100, 150)
    z = np.sin(x / 15.0) + np.cos(y / 20.0) + rng.normal(0, 0.05, 150)
    return GeoDataFrame(pd.DataFrame({"x": x, "y": y, "z": z}), ("x", "y"))


class TestEmpiricalVariogram:
    """Tests for EmpiricalVariogram.from_geodata."""

    def test_bins(self, sample_data):
        """Test the shape and ordering of the bins."""
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", nlags=10)

        assert 0 < len(empirical.lags) <= 10
        assert len(empirical.semivariances) == len(empirical.lags)
        assert np.all(np.diff(empirical.lags) > 0)
        assert np.all(empirical.npairs > 0)
        assert np.all(empirical.semivariances >= 0)

    def test_maxlag(self, sample_data):
        """Test that no bin center exceeds maxlag."""
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", maxlag=30.0)
        assert empirical.lags.max() < 30.0

    def test_spatial_structure(self, sample_data):
        """Test that semivariance grows with lag for a smooth field."""
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", nlags=10)
        assert empirical.semivariances[-1] > empirical.semivariances[0]

    def test_two_points(self):
        """Test the semivariance of a single pair."""
        data = GeoDataFrame(
            pd.DataFrame({"x": [0.0, 1.0], "z": [1.0, 3.0]}), ("x",)
        )
        empirical = EmpiricalVariogram.from_geodata(data, "z", nlags=1, maxlag=2.0)

        assert empirical.npairs.tolist() == [1]
        assert empirical.semivariances[0] == pytest.approx(2.0)

    def test_metric_is_kept(self, sample_data):
        """Test that lags are measured with the given metric."""
        metric = Ellipsoidal((20.0, 5.0))
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", distance=metric)
        assert empirical.distance == metric

    def test_insufficient_data(self):
        """Test that a single sample is rejected."""
        data = GeoDataFrame(pd.DataFrame({"x": [0.0], "z": [1.0]}), ("x",))
        with pytest.raises(InsufficientDataError):
            EmpiricalVariogram.from_geodata(data, "z")

    def test_missing_values_ignored(self):
        """Test that rows with missing values do not form pairs."""
        data = GeoDataFrame(
            pd.DataFrame({"x": [0.0, 1.0, 2.0], "z": [1.0, np.nan, 3.0]}), ("x",)
        )
        empirical = EmpiricalVariogram.from_geodata(data, "z", nlags=1, maxlag=3.0)
        assert int(empirical.npairs.sum()) == 1


class TestFitVariogram:
    """Tests for fit_variogram."""

    def test_recovers_exponential(self):
        """Test that noise-free semivariances recover the parameters."""
        truth = ExponentialVariogram(sill=2.0, range_param=5.0, nugget=0.5)
        empirical = exact_empirical(truth, np.linspace(0.5, 30.0, 30))

        fitted = fit_variogram(empirical, ExponentialVariogram)

        assert isinstance(fitted, ExponentialVariogram)
        assert fitted.sill == pytest.approx(2.0, rel=1e-2)
        assert fitted.range_param == pytest.approx(5.0, rel=1e-2)
        assert fitted.nugget == pytest.approx(0.5, abs=1e-2)

    def test_model_by_name(self):
        """Test that registry names are accepted."""
        truth = GaussianVariogram(sill=1.0, range_param=8.0)
        empirical = exact_empirical(truth, np.linspace(1.0, 25.0, 20))

        fitted = fit_variogram(empirical, "gaussian")

        assert isinstance(fitted, GaussianVariogram)
        assert fitted.total_sill == pytest.approx(1.0, rel=5e-2)

    def test_recovers_power(self):
        """Test fitting the unbounded power model."""
        truth = PowerVariogram(scaling=0.5, exponent=1.5, nugget=0.2)
        empirical = exact_empirical(truth, np.linspace(0.5, 10.0, 20))

        fitted = fit_variogram(empirical, PowerVariogram)

        assert isinstance(fitted, PowerVariogram)
        assert fitted.exponent == pytest.approx(1.5, rel=1e-2)
        assert fitted.scaling == pytest.approx(0.5, rel=1e-2)

    def test_fitted_model_uses_empirical_metric(self, sample_data):
        """Test that the fitted model keeps the empirical metric."""
        metric = Ellipsoidal((20.0, 5.0))
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", distance=metric)
        fitted = fit_variogram(empirical, ExponentialVariogram)
        assert fitted.distance == metric

    def test_fit_on_data(self, sample_data):
        """Test that fitting real bins gives valid parameters."""
        empirical = EmpiricalVariogram.from_geodata(sample_data, "z", nlags=12)
        fitted = fit_variogram(empirical, GaussianVariogram)

        assert fitted.sill >= 0
        assert fitted.range_param > 0
        assert fitted.nugget >= 0

    def test_unknown_model(self):
        """Test that unknown model names are rejected."""
        empirical = exact_empirical(GaussianVariogram(), [1.0, 2.0, 3.0])
        with pytest.raises(ParameterError, match="model"):
            fit_variogram(empirical, "linear")

    def test_too_few_bins(self):
        """Test that two bins are not enough to fit three parameters."""
        empirical = exact_empirical(GaussianVariogram(), [1.0, 2.0])
        with pytest.raises(ParameterError, match="lag bins"):
            fit_variogram(empirical)
