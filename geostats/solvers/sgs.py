"""Sequential Gaussian simulation.

Each realization visits the domain locations along a random path. At every
location a simple kriging system built from the data and the previously
simulated locations (the ``neighbors`` closest ones) gives a conditional
Gaussian distribution, from which the value is drawn. The nugget is kept
as a jump at zero lag, so realizations carry the full ``total_sill``
variance.

Realizations are independent: each one owns a ``numpy.random.Generator``
spawned from ``numpy.random.SeedSequence(seed)``, so the result for a given
seed does not depend on ``n_jobs`` or on execution order.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional, Union

import numpy as np
from sklearn.neighbors import KDTree

from geostats.primitives.kriging import simple_kriging_estimate
from geostats.primitives.variogram import VariogramModel
from geostats.problems.simulation import SimulationProblem, SimulationSolution
from geostats.solvers.base import Solver
from geostats.utils.errors import ParameterError, raise_parameter_error
from geostats.utils.parallel import parallel_map

logger = logging.getLogger(__name__)

# Locations closer than this to a sample take the sample value.
COINCIDENCE_TOLERANCE = 1e-8


@dataclass(frozen=True)
class SGSParameters:
    """Simulation configuration of one variable.

    Attributes:
        variogram: Bounded variogram model of the variable.
        mean: Mean of the Gaussian field. Defaults to the data mean, or 0
            without data.
        neighbors: Maximum number of conditioning points per location.
    """

    variogram: VariogramModel
    mean: Optional[float] = None
    neighbors: int = 12

    def __post_init__(self) -> None:
        """Validate SGSParameters."""
        if not isinstance(self.variogram, VariogramModel):
            raise ParameterError(
                f"variogram must be a VariogramModel, got {type(self.variogram).__name__}"
            )
        if not self.variogram.bounded:
            raise ParameterError(
                "Sequential Gaussian simulation needs a bounded variogram",
                suggestion="Use a model with a finite sill",
            )
        if self.mean is not None and not np.isfinite(self.mean):
            raise_parameter_error("mean", self.mean, constraint="mean must be finite")
        if self.neighbors < 1:
            raise_parameter_error(
                "neighbors", self.neighbors, constraint="neighbors must be >= 1"
            )


class SequentialGaussianSimulation(Solver[SGSParameters]):
    """Sequential Gaussian simulation solver.

    Attributes:
        nreals: Number of realizations per variable.
        seed: Seed of the ``SeedSequence`` realizations are spawned from.
    """

    parameter_type = SGSParameters

    def __init__(
        self,
        parameters: Union[SGSParameters, Mapping[str, SGSParameters]],
        nreals: int = 1,
        seed: Optional[int] = None,
        n_jobs: Optional[int] = None,
    ):
        super().__init__(parameters, n_jobs=n_jobs)
        if nreals < 1:
            raise_parameter_error("nreals", nreals, constraint="nreals must be >= 1")
        self.nreals = nreals
        self.seed = seed

    def solve(
        self,
        problem: SimulationProblem,
        cancel_event: Optional[threading.Event] = None,
    ) -> SimulationSolution:
        """Simulate ``nreals`` realizations of every target variable.

        Samples at the same location are averaged before simulating.

        Args:
            problem: Simulation problem, with or without data.
            cancel_event: Optional event for cooperative cancellation.

        Returns:
            SimulationSolution.

        Raises:
            SingularSystemError: If a kriging system along a path is still
                singular, for instance with nearly coincident samples under
                a Gaussian model. Later nodes depend on earlier draws, so the
                simulation stops rather than skipping the node.
            SolveCancelled: If ``cancel_event`` was set during the solve.
        """
        if not isinstance(problem, SimulationProblem):
            raise ParameterError(
                f"SequentialGaussianSimulation solves SimulationProblem, "
                f"got {type(problem).__name__}"
            )
        self._check_problem(problem)

        sequence = np.random.SeedSequence(self.seed)
        logger.debug(f"SGS seed entropy: {sequence.entropy}")
        var_sequences = sequence.spawn(len(problem.targetvars))

        locations = problem.domain.coordinates()
        logger.info(
            f"Simulating {self.nreals} realization(s) of "
            f"{len(problem.targetvars)} variable(s) on {len(locations)} locations "
            f"({'conditional' if problem.hasdata else 'unconditional'})"
        )

        realizations: dict[str, list[np.ndarray]] = {}
        for var, var_sequence in zip(problem.targetvars, var_sequences):
            realizations[var] = self._simulate_variable(
                problem, var, locations, var_sequence, cancel_event
            )

        logger.info("Simulation finished")
        return SimulationSolution(problem.domain, realizations)

    def _simulate_variable(
        self,
        problem: SimulationProblem,
        var: str,
        locations: np.ndarray,
        sequence: np.random.SeedSequence,
        cancel_event: Optional[threading.Event],
    ) -> list[np.ndarray]:
        params = self.parameters_for(var)
        coords, values = _merge_coincident(*problem.geodata.valid(var), var)

        mean = params.mean
        if mean is None:
            mean = float(np.mean(values)) if len(values) else 0.0
            logger.info(f"SGS mean of '{var}' not given, using {mean:.6g}")

        hard = _coincident_samples(coords, locations)
        logger.debug(
            f"Variable '{var}': {len(values)} samples, "
            f"{int(np.sum(hard >= 0))} locations fixed by data"
        )

        path = _SimulationPath(params, mean, coords, values, locations, hard)
        return parallel_map(
            path.realize,
            sequence.spawn(self.nreals),
            n_jobs=self.n_jobs,
            cancel_event=cancel_event,
            batch_size=1,
        )

    def __repr__(self) -> str:
        """String representation."""
        params = self.parameters if self.parameters is not None else self.default
        return (
            f"SequentialGaussianSimulation({params!r}, nreals={self.nreals}, "
            f"seed={self.seed}, n_jobs={self.n_jobs})"
        )


def _merge_coincident(
    coords: np.ndarray, values: np.ndarray, var: str
) -> tuple[np.ndarray, np.ndarray]:
    """Average samples sharing a location, which would make kriging singular."""
    if len(coords) < 2:
        return coords, values
    groups = KDTree(coords).query_radius(coords, r=COINCIDENCE_TOLERANCE)
    first = np.array([group.min() for group in groups])
    keep = np.unique(first)
    if len(keep) == len(coords):
        return coords, values
    merged = np.array([values[first == i].mean() for i in keep])
    logger.warning(
        f"Averaged {len(coords) - len(keep)} duplicate sample(s) of '{var}' "
        f"into {len(keep)} locations"
    )
    return coords[keep], merged


def _coincident_samples(coords: np.ndarray, locations: np.ndarray) -> np.ndarray:
    """Index of the sample located at each location, or -1."""
    hard = np.full(len(locations), -1, dtype=int)
    if len(coords) == 0 or len(locations) == 0:
        return hard
    dist, idx = KDTree(coords).query(locations, k=1)
    found = dist[:, 0] <= COINCIDENCE_TOLERANCE
    hard[found] = idx[found, 0]
    return hard


class _SimulationPath:
    """Simulates single realizations of one variable."""

    def __init__(
        self,
        params: SGSParameters,
        mean: float,
        coords: np.ndarray,
        values: np.ndarray,
        locations: np.ndarray,
        hard: np.ndarray,
    ):
        self.variogram = params.variogram
        self.neighbors = params.neighbors
        self.mean = mean
        self.coords = coords
        self.values = values
        self.locations = locations
        self.hard = hard
        distance = params.variogram.distance
        self.coords_t = distance.transform(coords) if len(coords) else coords
        self.locations_t = distance.transform(locations)
        self.c0 = float(params.variogram.total_sill)

    def realize(self, sequence: np.random.SeedSequence) -> np.ndarray:
        """Simulate one realization with a generator seeded by ``sequence``."""
        rng = np.random.default_rng(sequence)
        n = len(self.locations)
        ndata = len(self.values)
        ndims = self.locations.shape[1]

        # Conditioning set: samples first, then simulated locations.
        cond = np.empty((ndata + n, ndims))
        cond_t = np.empty((ndata + n, ndims))
        cond_values = np.empty(ndata + n)
        cond[:ndata] = self.coords
        cond_t[:ndata] = self.coords_t
        cond_values[:ndata] = self.values
        count = ndata

        realization = np.empty(n)
        for i in rng.permutation(n):
            if self.hard[i] >= 0:
                realization[i] = self.values[self.hard[i]]
                continue

            if count == 0:
                mu, var = self.mean, self.c0
            else:
                k = min(self.neighbors, count)
                d2 = np.sum((cond_t[:count] - self.locations_t[i]) ** 2, axis=1)
                idx = np.argpartition(d2, k - 1)[:k] if k < count else np.arange(count)
                estimate = simple_kriging_estimate(
                    self.variogram,
                    self.mean,
                    cond[idx],
                    cond_values[idx],
                    self.locations[i],
                )
                mu, var = estimate.mean, estimate.variance

            value = rng.normal(mu, np.sqrt(var))
            realization[i] = value
            cond[count] = self.locations[i]
            cond_t[count] = self.locations_t[i]
            cond_values[count] = value
            count += 1

        return realization
