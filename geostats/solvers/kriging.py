"""Kriging solver for estimation problems.

Each target variable is estimated independently from its own data and
parameters. Locations are solved in parallel; a location whose system
cannot be solved is recorded in the solution instead of aborting the solve.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

import numpy as np

from geostats.primitives.kriging import KrigingEstimator, make_estimator
from geostats.primitives.neighborhoods import Neighborhood, Unlimited
from geostats.primitives.variogram import VariogramModel
from geostats.problems.estimation import EstimationProblem, EstimationSolution
from geostats.solvers.base import Solver
from geostats.utils.errors import (
    GeoStatsError,
    InsufficientDataError,
    ParameterError,
    SingularSystemError,
    raise_parameter_error,
)
from geostats.utils.parallel import parallel_map

logger = logging.getLogger(__name__)

KRIGING_KINDS = ("ordinary", "simple")


@dataclass(frozen=True)
class KrigingParameters:
    """Kriging configuration of one variable.

    Attributes:
        variogram: Variogram model of the variable.
        kind: 'ordinary' or 'simple'.
        neighborhood: Conditioning points used per location.
        mean: Known mean for simple kriging. Defaults to the data mean.
    """

    variogram: VariogramModel
    kind: str = "ordinary"
    neighborhood: Neighborhood = field(default_factory=Unlimited)
    mean: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate KrigingParameters."""
        if not isinstance(self.variogram, VariogramModel):
            raise ParameterError(
                f"variogram must be a VariogramModel, got {type(self.variogram).__name__}"
            )
        if self.kind not in KRIGING_KINDS:
            raise_parameter_error("kind", self.kind, valid_values=list(KRIGING_KINDS))
        if not isinstance(self.neighborhood, Neighborhood):
            raise ParameterError(
                f"neighborhood must be a Neighborhood, got "
                f"{type(self.neighborhood).__name__}"
            )
        if self.kind == "simple" and not self.variogram.bounded:
            raise ParameterError(
                "Simple kriging needs a bounded variogram",
                suggestion="Use kind='ordinary' with unbounded variograms",
            )
        if self.mean is not None and not np.isfinite(self.mean):
            raise_parameter_error("mean", self.mean, constraint="mean must be finite")
        if self.mean is not None and self.kind != "simple":
            logger.warning(f"mean={self.mean} is ignored by {self.kind} kriging")

    def estimator(self) -> KrigingEstimator:
        """Unfitted estimator built from these parameters."""
        return make_estimator(self.variogram, kind=self.kind, mean=self.mean)


class Kriging(Solver[KrigingParameters]):
    """Kriging estimation solver.

    Example:
        >>> from geostats import GaussianVariogram, Kriging, KrigingParameters
        >>> solver = Kriging({"z": KrigingParameters(GaussianVariogram(range_param=5.0))})
        >>> solution = solver.solve(problem)
        >>> mean, variance = solution["z"]
    """

    parameter_type = KrigingParameters

    def __init__(
        self,
        parameters: Union[KrigingParameters, Mapping[str, KrigingParameters]],
        n_jobs: Optional[int] = None,
    ):
        super().__init__(parameters, n_jobs=n_jobs)

    def solve(
        self,
        problem: EstimationProblem,
        cancel_event: Optional[threading.Event] = None,
    ) -> EstimationSolution:
        """Estimate every target variable on every domain location.

        Args:
            problem: Estimation problem.
            cancel_event: Optional event for cooperative cancellation.

        Returns:
            EstimationSolution with per-location failures recorded.

        Raises:
            InsufficientDataError: If a variable has no data at all.
            SolveCancelled: If ``cancel_event`` was set during the solve.
        """
        if not isinstance(problem, EstimationProblem):
            raise ParameterError(
                f"Kriging solves EstimationProblem, got {type(problem).__name__}"
            )
        self._check_problem(problem)

        domain = problem.domain
        locations = domain.coordinates()
        logger.info(
            f"Kriging {len(problem.targetvars)} variable(s) on "
            f"{domain.npoints()} locations"
        )

        means: dict[str, np.ndarray] = {}
        variances: dict[str, np.ndarray] = {}
        failures: dict[str, dict[int, GeoStatsError]] = {}

        for var in problem.targetvars:
            means[var], variances[var], failures[var] = self._solve_variable(
                problem, var, locations, cancel_event
            )

        solution = EstimationSolution(domain, means, variances, failures)
        n_failed = sum(len(f) for f in failures.values())
        logger.info(
            f"Kriging finished: {domain.npoints()} locations, {n_failed} failed"
        )
        return solution

    def _solve_variable(
        self,
        problem: EstimationProblem,
        var: str,
        locations: np.ndarray,
        cancel_event: Optional[threading.Event],
    ) -> tuple[np.ndarray, np.ndarray, dict[int, GeoStatsError]]:
        params = self.parameters_for(var)
        coords, values = problem.geodata.valid(var)
        n_dropped = problem.geodata.npoints() - len(values)
        if n_dropped:
            logger.warning(f"Dropped {n_dropped} sample(s) with missing '{var}'")
        if len(values) == 0:
            raise InsufficientDataError(
                f"No data available to estimate '{var}'",
                suggestion="Provide samples with non-missing values",
                details={"variable": var},
            )

        estimator = params.estimator().fit(coords, values)
        searcher = params.neighborhood.searcher(coords, params.variogram.distance)
        logger.debug(
            f"Variable '{var}': {len(values)} samples, {params.kind} kriging, "
            f"{params.neighborhood!r}"
        )

        def estimate_at(i: int) -> Union[tuple[float, float], GeoStatsError]:
            point = locations[i]
            neighbors = None if searcher.unlimited else searcher.query(point)
            try:
                result = estimator.estimate(point, neighbors)
            except (InsufficientDataError, SingularSystemError) as exc:
                return exc
            return result.mean, result.variance

        results = parallel_map(
            estimate_at,
            range(len(locations)),
            n_jobs=self.n_jobs,
            cancel_event=cancel_event,
        )

        mean = np.full(len(locations), np.nan)
        variance = np.full(len(locations), np.nan)
        failed: dict[int, GeoStatsError] = {}
        for i, result in enumerate(results):
            if isinstance(result, GeoStatsError):
                failed[i] = result
            else:
                mean[i], variance[i] = result

        if failed:
            first = min(failed)
            logger.warning(
                f"Kriging '{var}' failed at {len(failed)} of {len(locations)} "
                f"locations (first at {first}): {failed[first].message}"
            )
        return mean, variance, failed
