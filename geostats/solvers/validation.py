"""Cross-validation of estimation solvers.

Provides leave-one-out and k-fold cross-validation to assess prediction
quality and compare variogram model choices. Samples are held out, the
solver estimates them from the remaining data, and the prediction errors
are summarized.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold

from geostats.objects.geodataframe import GeoDataFrame
from geostats.objects.pointset import PointSet
from geostats.problems.estimation import EstimationProblem
from geostats.solvers.kriging import Kriging
from geostats.utils.errors import InsufficientDataError, ParameterError

logger = logging.getLogger(__name__)


@dataclass
class CrossValidationResult:
    """Results from cross-validation.

    Attributes:
        variable: Cross-validated variable.
        observed: Observed sample values (n_samples,).
        predictions: Cross-validated predictions (n_samples,). NaN where the
            held-out sample could not be estimated.
        variances: Estimation variances of the predictions.
        errors: Prediction errors (observed - predicted).
        mae: Mean Absolute Error.
        rmse: Root Mean Squared Error.
        r2: Coefficient of determination (R²).
        mean_error: Mean error (bias).
        std_error: Standard deviation of errors.
    """

    variable: str
    observed: np.ndarray
    predictions: np.ndarray
    variances: np.ndarray
    errors: np.ndarray
    mae: float
    rmse: float
    r2: float
    mean_error: float
    std_error: float

    @property
    def bias(self) -> float:
        return self.mean_error

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CrossValidationResult(MAE={self.mae:.4f}, RMSE={self.rmse:.4f}, "
            f"R²={self.r2:.4f}, Bias={self.mean_error:.4f})"
        )


def _target(problem: EstimationProblem, var: Optional[str]) -> str:
    if var is None:
        if len(problem.targetvars) != 1:
            raise ParameterError(
                f"var is required with several target variables: "
                f"{list(problem.targetvars)}"
            )
        return problem.targetvars[0]
    if var not in problem.targetvars:
        raise ParameterError(
            f"'{var}' is not a target variable of the problem: "
            f"{list(problem.targetvars)}"
        )
    return var


def _samples(
    problem: EstimationProblem, var: str, min_samples: int
) -> tuple[np.ndarray, np.ndarray]:
    if not isinstance(problem, EstimationProblem):
        raise ParameterError(
            f"Cross-validation needs an EstimationProblem, got {type(problem).__name__}"
        )
    coords, values = problem.geodata.valid(var)
    if len(values) < min_samples:
        raise InsufficientDataError(
            f"Need at least {min_samples} samples for cross-validation, "
            f"got {len(values)}"
        )
    return coords, values


def _predict(
    problem: EstimationProblem,
    solver: Kriging,
    var: str,
    coords: np.ndarray,
    values: np.ndarray,
    train_idx: np.ndarray,
    test_idx: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    names = list(problem.geodata.coordnames())
    train = GeoDataFrame(
        _frame(names, var, coords[train_idx], values[train_idx]), tuple(names)
    )
    fold = EstimationProblem(train, PointSet(coords[test_idx]), var)
    solution = solver.solve(fold)
    mean, variance = solution[var]
    return mean.filled(np.nan), variance.filled(np.nan)


def _frame(
    names: list[str], var: str, coords: np.ndarray, values: np.ndarray
) -> pd.DataFrame:
    frame = pd.DataFrame(coords, columns=names)
    frame[var] = values
    return frame


def _summarize(
    var: str, observed: np.ndarray, predictions: np.ndarray, variances: np.ndarray
) -> CrossValidationResult:
    errors = observed - predictions
    ok = np.isfinite(errors)
    if not np.all(ok):
        logger.warning(
            f"{int(np.sum(~ok))} of {len(errors)} held-out samples of '{var}' "
            f"could not be estimated and are excluded from the metrics"
        )
    if not np.any(ok):
        raise InsufficientDataError(
            f"No held-out sample of '{var}' could be estimated"
        )
    e = errors[ok]

    mae = float(np.mean(np.abs(e)))
    rmse = float(np.sqrt(np.mean(e**2)))
    mean_error = float(np.mean(e))
    std_error = float(np.std(e))

    # R²
    ss_res = np.sum(e**2)
    ss_tot = np.sum((observed[ok] - np.mean(observed[ok])) ** 2)
    r2 = float(1.0 - ss_res / ss_tot) if ss_tot > 0 else 0.0

    return CrossValidationResult(
        variable=var,
        observed=observed,
        predictions=predictions,
        variances=variances,
        errors=errors,
        mae=mae,
        rmse=rmse,
        r2=r2,
        mean_error=mean_error,
        std_error=std_error,
    )


def leave_one_out(
    problem: EstimationProblem,
    solver: Kriging,
    var: Optional[str] = None,
) -> CrossValidationResult:
    """Perform leave-one-out cross-validation.

    Each sample is estimated by ``solver`` from all other samples.

    Args:
        problem: Estimation problem providing the samples. Its domain is
            not used.
        solver: Configured kriging solver.
        var: Variable to validate. Defaults to the only target variable.

    Returns:
        CrossValidationResult with metrics and predictions.

    Example:
        >>> result = leave_one_out(problem, Kriging(KrigingParameters(model)))
        >>> print(f"RMSE: {result.rmse:.2f}, R²: {result.r2:.3f}")
    """
    var = _target(problem, var)
    coords, values = _samples(problem, var, min_samples=3)
    n = len(values)

    predictions = np.full(n, np.nan)
    variances = np.full(n, np.nan)
    everything = np.arange(n)
    for i in range(n):
        train_idx = everything[everything != i]
        mean, variance = _predict(
            problem, solver, var, coords, values, train_idx, np.array([i])
        )
        predictions[i], variances[i] = mean[0], variance[0]

    result = _summarize(var, values, predictions, variances)
    logger.info(f"Leave-one-out '{var}' over {n} samples: {result!r}")
    return result


def k_fold(
    problem: EstimationProblem,
    solver: Kriging,
    n_splits: int = 5,
    seed: Optional[int] = None,
    var: Optional[str] = None,
) -> CrossValidationResult:
    """Perform k-fold cross-validation.

    Splits the samples into ``n_splits`` shuffled folds; each fold is
    estimated from the other folds. Cheaper than leave-one-out for large
    datasets.

    Args:
        problem: Estimation problem providing the samples.
        solver: Configured kriging solver.
        n_splits: Number of folds (default: 5).
        seed: Random seed for fold splitting.
        var: Variable to validate. Defaults to the only target variable.

    Returns:
        CrossValidationResult with metrics and predictions.
    """
    if n_splits < 2:
        raise ParameterError(f"n_splits must be >= 2, got {n_splits}")
    var = _target(problem, var)
    coords, values = _samples(problem, var, min_samples=max(n_splits, 3))
    n = len(values)

    predictions = np.full(n, np.nan)
    variances = np.full(n, np.nan)
    kf = KFold(n_splits=n_splits, shuffle=True, random_state=seed)
    for train_idx, test_idx in kf.split(coords):
        mean, variance = _predict(
            problem, solver, var, coords, values, train_idx, test_idx
        )
        predictions[test_idx] = mean
        variances[test_idx] = variance

    result = _summarize(var, values, predictions, variances)
    logger.info(f"{n_splits}-fold '{var}' over {n} samples: {result!r}")
    return result
