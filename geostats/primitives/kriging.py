"""Kriging primitives for spatial interpolation.

Pure kriging operations on coordinate and value arrays. An estimator is
fitted once to the conditioning data and then queried location by
location, optionally restricted to a subset of the data (a neighborhood).

Supports:
- Ordinary Kriging (OK): constant but unknown mean, variogram form with a
  Lagrange multiplier enforcing unit-sum weights
- Simple Kriging (SK): known mean, covariance form ``C(h) = total_sill - γ(h)``

Kriging systems that are singular or numerically ill-conditioned raise
``SingularSystemError``; they are never regularized or pseudo-inverted.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import scipy.linalg

from geostats.primitives.variogram import VariogramModel
from geostats.utils.errors import (
    DimensionMismatch,
    InsufficientDataError,
    ParameterError,
    SingularSystemError,
)

logger = logging.getLogger(__name__)

# Largest condition number accepted for a kriging matrix.
MAX_CONDITION = 1.0 / np.finfo(np.float64).eps


@dataclass
class KrigingEstimate:
    """Kriging prediction at a single location.

    Attributes:
        mean: Estimated value.
        variance: Kriging (estimation) variance.
        weights: Kriging weights of the conditioning points used.
        neighbors: Indices of the conditioning points used.
        lagrange_multiplier: Lagrange multiplier (ordinary kriging only).
    """

    mean: float
    variance: float
    weights: np.ndarray
    neighbors: np.ndarray
    lagrange_multiplier: Optional[float] = None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"KrigingEstimate(mean={self.mean:.4f}, variance={self.variance:.4f}, "
            f"n_neighbors={len(self.neighbors)})"
        )


class _Factorization:
    """LU factorization of a kriging matrix, checked for conditioning."""

    def __init__(self, matrix: np.ndarray):
        condition = np.linalg.cond(matrix)
        if not np.isfinite(condition) or condition > MAX_CONDITION:
            raise SingularSystemError(
                f"Kriging system of size {matrix.shape[0]} is singular or "
                f"ill-conditioned (condition number {condition:.3g})",
                suggestion=(
                    "Remove duplicate or collinear data points, or use a "
                    "variogram with a nugget or a different range"
                ),
                details={"condition": float(condition), "size": matrix.shape[0]},
            )
        self.lu_piv = scipy.linalg.lu_factor(matrix, check_finite=False)

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        solution = scipy.linalg.lu_solve(self.lu_piv, rhs, check_finite=False)
        if not np.all(np.isfinite(solution)):
            raise SingularSystemError("Kriging system produced non-finite weights")
        return solution


class KrigingEstimator(ABC):
    """Base class for kriging estimators.

    Attributes:
        variogram: Variogram model of the estimated variable.
    """

    def __init__(self, variogram: VariogramModel):
        if not isinstance(variogram, VariogramModel):
            raise ParameterError(
                f"variogram must be a VariogramModel, got {type(variogram).__name__}"
            )
        self.variogram = variogram
        self.coordinates: Optional[np.ndarray] = None
        self.values: Optional[np.ndarray] = None
        self._full: Union[_Factorization, SingularSystemError, None] = None
        self._full_lock = threading.Lock()
        self._fitted = False

    @property
    def is_fitted(self) -> bool:
        return self._fitted

    @property
    def npoints(self) -> int:
        return 0 if self.values is None else len(self.values)

    def fit(self, coordinates: np.ndarray, values: np.ndarray) -> "KrigingEstimator":
        """Fit the estimator to conditioning data.

        The system over all points is factorized on the first estimate
        that uses every point and reused afterwards. Estimates restricted
        to neighbors never build it.

        Args:
            coordinates: Sample coordinates (n_samples, n_dims).
            values: Sample values (n_samples,).

        Returns:
            Self for method chaining.

        Raises:
            ValueError: If inputs have inconsistent lengths.
        """
        coordinates = np.asarray(coordinates, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if coordinates.ndim == 1:
            coordinates = coordinates.reshape(-1, 1)

        if len(coordinates) != len(values):
            raise ValueError(
                f"Coordinates ({len(coordinates)}) and values ({len(values)}) "
                f"must have same length"
            )

        self.coordinates = coordinates
        self.values = values
        self._prepare(values)
        self._full = None
        self._fitted = True
        return self

    def _full_factorization(self) -> _Factorization:
        """Factorization of the system over every point, built once."""
        with self._full_lock:
            if self._full is None:
                try:
                    self._full = _Factorization(self._lhs(self.coordinates))
                except SingularSystemError as exc:
                    logger.debug(f"Full kriging system is singular: {exc.message}")
                    self._full = exc
        if isinstance(self._full, SingularSystemError):
            raise self._full
        return self._full

    def estimate(
        self, point: np.ndarray, neighbors: Optional[np.ndarray] = None
    ) -> KrigingEstimate:
        """Estimate at one location.

        Args:
            point: Target coordinates (n_dims,).
            neighbors: Indices of the conditioning points to use.
                None uses every point.

        Returns:
            KrigingEstimate at ``point``.

        Raises:
            InsufficientDataError: If there are no conditioning points.
            SingularSystemError: If the kriging system cannot be solved.
        """
        if not self.is_fitted:
            raise ValueError("Model not fitted. Call fit() first.")

        point = np.asarray(point, dtype=np.float64).ravel()
        if point.shape[0] != self.coordinates.shape[1]:  # type: ignore[union-attr]
            raise DimensionMismatch(
                f"Point has {point.shape[0]} dimensions, data has "
                f"{self.coordinates.shape[1]}"  # type: ignore[union-attr]
            )

        use_full = neighbors is None
        idx = np.arange(self.npoints) if use_full else np.asarray(neighbors, dtype=int)
        n = len(idx)

        if n == 0:
            raise InsufficientDataError(
                "No conditioning points available for the estimate",
                suggestion="Add data or enlarge the search neighborhood",
            )

        coords = self.coordinates[idx]  # type: ignore[index]
        values = self.values[idx]  # type: ignore[index]

        # Only single-sample data takes the shortcut. A neighborhood holding
        # one point solves its system, so estimates at samples interpolate.
        if self.npoints == 1:
            return self._single_point(coords, values, point, idx)

        if use_full:
            factorization = self._full_factorization()
        else:
            factorization = _Factorization(self._lhs(coords))

        return self._solve(factorization, coords, values, point, idx)

    def _single_point(
        self,
        coords: np.ndarray,
        values: np.ndarray,
        point: np.ndarray,
        idx: np.ndarray,
    ) -> KrigingEstimate:
        # With one point the weight is 1 and the value is reproduced.
        if self.variogram.bounded:
            variance = self.variogram.total_sill
        else:
            gamma0 = self.variogram(coords[0], point)
            variance = 2.0 * gamma0 - self.variogram.lag(0.0)
        return KrigingEstimate(
            mean=float(values[0]),
            variance=float(variance),
            weights=np.ones(1),
            neighbors=idx,
        )

    def _prepare(self, values: np.ndarray) -> None:
        """Hook run on fit, before the system is factorized."""

    @abstractmethod
    def _lhs(self, coords: np.ndarray) -> np.ndarray:
        """Kriging matrix for the given conditioning points."""

    @abstractmethod
    def _solve(
        self,
        factorization: _Factorization,
        coords: np.ndarray,
        values: np.ndarray,
        point: np.ndarray,
        idx: np.ndarray,
    ) -> KrigingEstimate:
        """Solve for the weights and combine them into an estimate."""


class OrdinaryKriging(KrigingEstimator):
    """Ordinary Kriging interpolation.

    Assumes a constant but unknown mean. The system is written in
    variogram form with a Lagrange multiplier forcing the weights to sum
    to one.
    """

    def _lhs(self, coords: np.ndarray) -> np.ndarray:
        n = len(coords)
        K = np.zeros((n + 1, n + 1))
        K[:n, :n] = self.variogram.pairwise(coords)
        K[:n, n] = 1.0
        K[n, :n] = 1.0
        return K

    def _solve(
        self,
        factorization: _Factorization,
        coords: np.ndarray,
        values: np.ndarray,
        point: np.ndarray,
        idx: np.ndarray,
    ) -> KrigingEstimate:
        n = len(coords)
        k = np.ones(n + 1)
        k[:n] = self.variogram.pairwise(coords, point)[:, 0]

        solution = factorization.solve(k)
        weights = solution[:n]
        lagrange = float(solution[n])

        mean = float(np.dot(weights, values))
        variance = float(np.dot(weights, k[:n]) + lagrange)
        return KrigingEstimate(
            mean=mean,
            variance=max(variance, 0.0),
            weights=weights,
            neighbors=idx,
            lagrange_multiplier=lagrange,
        )


class SimpleKriging(KrigingEstimator):
    """Simple Kriging interpolation with known mean.

    Attributes:
        variogram: Bounded variogram model.
        mean: Known mean. When None, the mean of the data passed to
            ``fit`` is used.
    """

    def __init__(self, variogram: VariogramModel, mean: Optional[float] = None):
        super().__init__(variogram)
        if not variogram.bounded:
            raise ParameterError(
                f"Simple kriging needs a bounded variogram, got {type(variogram).__name__}",
                suggestion="Use ordinary kriging with unbounded variograms",
            )
        self.mean = mean
        self._mean: float = 0.0 if mean is None else float(mean)

    def _prepare(self, values: np.ndarray) -> None:
        if self.mean is None:
            self._mean = float(np.mean(values)) if len(values) else 0.0
            logger.info(f"Simple kriging mean not given, using data mean {self._mean:.6g}")

    @property
    def fitted_mean(self) -> float:
        """Mean actually used by the estimator."""
        return self._mean

    def _lhs(self, coords: np.ndarray) -> np.ndarray:
        return self.variogram.pairwise_covariance(coords)

    def _solve(
        self,
        factorization: _Factorization,
        coords: np.ndarray,
        values: np.ndarray,
        point: np.ndarray,
        idx: np.ndarray,
    ) -> KrigingEstimate:
        k = self.variogram.pairwise_covariance(coords, point)[:, 0]
        weights = factorization.solve(k)

        # Prediction: weighted sum of centered values + mean
        mean = float(self._mean + np.dot(weights, values - self._mean))
        c0 = self.variogram.covariance(0.0)
        variance = float(c0 - np.dot(weights, k))
        return KrigingEstimate(
            mean=mean,
            variance=max(variance, 0.0),
            weights=weights,
            neighbors=idx,
        )


def simple_kriging_estimate(
    variogram: VariogramModel,
    mean: float,
    coords: np.ndarray,
    values: np.ndarray,
    point: np.ndarray,
) -> KrigingEstimate:
    """Solve one simple kriging system without fitting an estimator.

    The conditioning points and the target are taken as distinct
    locations, each carrying the full variance ``total_sill``: the nugget
    is a jump at zero lag rather than the limit of ``γ(h)``. The
    conditional distribution therefore keeps the nugget variance, which is
    what sequential simulation draws from. A single conditioning point is
    solved as a 1x1 system, pulling the estimate towards ``mean``.

    Args:
        variogram: Bounded variogram model.
        mean: Known mean.
        coords: Conditioning coordinates (n, n_dims), n >= 1.
        values: Conditioning values (n,).
        point: Target coordinates (n_dims,).

    Returns:
        KrigingEstimate at ``point``.

    Raises:
        ParameterError: If the variogram is unbounded.
        SingularSystemError: If the kriging system cannot be solved.
    """
    point = np.asarray(point, dtype=np.float64)
    lhs = variogram.pairwise_covariance(coords)
    lhs[np.diag_indices_from(lhs)] += variogram.nugget
    k = variogram.pairwise_covariance(coords, point)[:, 0]

    weights = _Factorization(lhs).solve(k)
    estimate = float(mean + np.dot(weights, values - mean))
    variance = float(variogram.total_sill - np.dot(weights, k))
    return KrigingEstimate(
        mean=estimate,
        variance=max(variance, 0.0),
        weights=weights,
        neighbors=np.arange(len(coords)),
    )


def make_estimator(
    variogram: VariogramModel,
    kind: str = "ordinary",
    mean: Optional[float] = None,
) -> KrigingEstimator:
    """Build a kriging estimator by kind name.

    Args:
        variogram: Variogram model.
        kind: 'ordinary' or 'simple'.
        mean: Known mean for simple kriging.

    Returns:
        Unfitted estimator.
    """
    if kind == "ordinary":
        return OrdinaryKriging(variogram)
    if kind == "simple":
        return SimpleKriging(variogram, mean=mean)
    raise ParameterError(
        f"Unknown kriging kind: {kind}. Must be one of: 'ordinary', 'simple'"
    )
