"""Empirical variograms and model fitting.

Pairs of samples are binned by lag distance and the mean half squared
difference of each bin estimates ``γ`` at the bin center. Theoretical
models are then fitted to the bins with ``scipy.optimize.curve_fit``.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Type, Union

import numpy as np
from scipy.optimize import curve_fit
from scipy.spatial.distance import pdist

from geostats.objects.geodataframe import GeoDataFrame
from geostats.primitives.distances import DistanceMetric, Euclidean
from geostats.primitives.variogram import (
    VARIOGRAM_MODELS,
    GaussianVariogram,
    PowerVariogram,
    VariogramModel,
)
from geostats.utils.errors import InsufficientDataError, raise_parameter_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EmpiricalVariogram:
    """Experimental semi-variogram.

    Attributes:
        lags: Bin centers with at least one pair.
        semivariances: Mean half squared difference per bin.
        npairs: Number of pairs per bin.
        distance: Metric used to measure lags.
    """

    lags: np.ndarray
    semivariances: np.ndarray
    npairs: np.ndarray
    distance: DistanceMetric

    @classmethod
    def from_geodata(
        cls,
        geodata: GeoDataFrame,
        var: str,
        nlags: int = 15,
        maxlag: Optional[float] = None,
        distance: Optional[DistanceMetric] = None,
    ) -> "EmpiricalVariogram":
        """Compute the empirical variogram of a variable.

        Args:
            geodata: Sample data.
            var: Variable to analyse.
            nlags: Number of lag bins.
            maxlag: Maximum lag distance (default: half of max distance).
            distance: Metric for lags (default: Euclidean).

        Returns:
            EmpiricalVariogram with empty bins dropped.

        Raises:
            InsufficientDataError: If fewer than two valid samples exist.
        """
        if nlags < 1:
            raise_parameter_error("nlags", nlags, constraint="nlags must be >= 1")

        metric = distance if distance is not None else Euclidean()
        coordinates, values = geodata.valid(var)

        if len(values) < 2:
            raise InsufficientDataError(
                f"Need at least 2 samples for a variogram, got {len(values)}",
                details={"variable": var},
            )

        distances = pdist(metric.transform(coordinates))
        semivariance_pairs = 0.5 * pdist(values.reshape(-1, 1), "sqeuclidean")

        if maxlag is None:
            maxlag = distances.max() / 2.0
        if maxlag <= 0:
            raise_parameter_error("maxlag", maxlag, constraint="maxlag must be positive")

        edges = np.linspace(0.0, maxlag, nlags + 1)
        centers = (edges[:-1] + edges[1:]) / 2
        bins = np.digitize(distances, edges) - 1
        inside = (bins >= 0) & (bins < nlags)

        npairs = np.bincount(bins[inside], minlength=nlags)
        sums = np.bincount(bins[inside], weights=semivariance_pairs[inside], minlength=nlags)

        filled = npairs > 0
        logger.debug(
            f"Empirical variogram of '{var}': {len(values)} samples, "
            f"{int(filled.sum())}/{nlags} non-empty bins"
        )
        return cls(
            lags=centers[filled],
            semivariances=sums[filled] / npairs[filled],
            npairs=npairs[filled],
            distance=metric,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"EmpiricalVariogram(n_bins={len(self.lags)}, "
            f"n_pairs={int(self.npairs.sum())})"
        )


def fit_variogram(
    empirical: EmpiricalVariogram,
    model: Union[str, Type[VariogramModel]] = GaussianVariogram,
    weighted: bool = True,
) -> VariogramModel:
    """Fit a theoretical variogram model to an empirical variogram.

    Args:
        empirical: Empirical variogram.
        model: Model class (or registry name) to fit.
        weighted: Weight bins by their number of pairs.

    Returns:
        Fitted model using the empirical variogram's distance metric.

    Raises:
        ParameterError: If the model is unknown or there are too few bins.
    """
    if isinstance(model, str):
        if model not in VARIOGRAM_MODELS:
            raise_parameter_error("model", model, valid_values=list(VARIOGRAM_MODELS))
        model = VARIOGRAM_MODELS[model]  # type: ignore[assignment]

    lags = empirical.lags
    semivariances = empirical.semivariances
    if len(lags) < 3:
        raise_parameter_error(
            "empirical", len(lags), constraint="need at least 3 non-empty lag bins"
        )

    sigma = 1.0 / np.sqrt(empirical.npairs) if weighted else None

    if issubclass(model, PowerVariogram):  # type: ignore[arg-type]
        return _fit_power(empirical, sigma)

    # Initial parameter guesses
    nugget_guess = float(max(semivariances[0] - (semivariances[1] - semivariances[0]), 0.0))
    sill_guess = float(max(np.max(semivariances) - nugget_guess, 1e-12))
    range_guess = float(lags[-1] / 2.0)

    def func(h: np.ndarray, sill: float, range_param: float, nugget: float) -> np.ndarray:
        return model(sill=sill, range_param=range_param, nugget=nugget).lag(h)  # type: ignore[operator]

    upper_sill = 10.0 * float(np.max(semivariances)) + 1e-12
    try:
        popt, _ = curve_fit(
            func,
            lags,
            semivariances,
            p0=[sill_guess, range_guess, nugget_guess],
            sigma=sigma,
            bounds=([0.0, 1e-12, 0.0], [upper_sill, 10.0 * lags[-1], upper_sill]),
        )
        sill, range_param, nugget = (float(p) for p in popt)
    except (RuntimeError, ValueError) as exc:
        # Fallback to initial guesses
        logger.warning(
            f"Variogram fit of {model.__name__} did not converge ({exc}); "
            f"using initial guesses"
        )
        sill, range_param, nugget = sill_guess, range_guess, nugget_guess

    return model(  # type: ignore[operator]
        sill=sill,
        range_param=range_param,
        nugget=nugget,
        distance=empirical.distance,
    )


def _fit_power(
    empirical: EmpiricalVariogram, sigma: Optional[np.ndarray]
) -> PowerVariogram:
    lags = empirical.lags
    semivariances = empirical.semivariances

    def func(h: np.ndarray, scaling: float, exponent: float, nugget: float) -> np.ndarray:
        return nugget + scaling * h**exponent

    nugget_guess = float(max(semivariances[0], 0.0))
    scaling_guess = float(max(semivariances[-1] - nugget_guess, 1e-12) / lags[-1])
    try:
        popt, _ = curve_fit(
            func,
            lags,
            semivariances,
            p0=[scaling_guess, 1.0, nugget_guess],
            sigma=sigma,
            bounds=([0.0, 0.01, 0.0], [np.inf, 1.99, np.inf]),
        )
        scaling, exponent, nugget = (float(p) for p in popt)
    except (RuntimeError, ValueError) as exc:
        logger.warning(f"Power variogram fit did not converge ({exc})")
        scaling, exponent, nugget = scaling_guess, 1.0, nugget_guess

    return PowerVariogram(
        scaling=scaling,
        exponent=exponent,
        nugget=nugget,
        distance=empirical.distance,
    )
