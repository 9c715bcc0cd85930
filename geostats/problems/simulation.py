"""Simulation problems and their solutions."""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from geostats.objects.domain import Domain
from geostats.objects.geodataframe import GeoDataFrame
from geostats.problems.base import Problem
from geostats.utils.errors import SchemaError


class SimulationProblem(Problem):
    """A spatial simulation problem.

    The variables listed in ``targetvars`` are simulated on ``domain``. For
    conditional simulation the data of the problem is stored in
    ``geodata``.

    For unconditional simulation, build the problem from the domain and
    the target variables only, ``SimulationProblem(domain, targetvars)``.
    An empty ``geodata`` with columns ``x1..xD`` followed by the target
    variables is then created, so every simulation solver can assume that
    a valid (possibly empty) GeoDataFrame exists.

    Raises:
        ConstructionError: If the target variables are not data columns, are
            coordinates, or the data and domain dimensions differ.
    """

    def __init__(
        self,
        geodata: Union[GeoDataFrame, Domain, None],
        domain: Union[Domain, str, Sequence[str], None] = None,
        targetvars: Union[str, Sequence[str], None] = None,
    ):
        if isinstance(geodata, Domain):
            # SimulationProblem(domain, targetvars)
            if targetvars is not None:
                raise TypeError(
                    "SimulationProblem(domain, targetvars) takes two arguments"
                )
            geodata, domain, targetvars = None, geodata, domain

        if not isinstance(domain, Domain):
            raise TypeError(f"domain must be a Domain, got {type(domain).__name__}")
        if targetvars is None:
            raise TypeError("targetvars is required")

        if geodata is None:
            geodata = _empty_geodata(domain, targetvars)  # type: ignore[arg-type]

        super().__init__(geodata, domain, targetvars)  # type: ignore[arg-type]

    @classmethod
    def unconditional(
        cls, domain: Domain, targetvars: Union[str, Sequence[str]]
    ) -> "SimulationProblem":
        """Create a problem without conditioning data."""
        return cls(None, domain, targetvars)

    @property
    def hasdata(self) -> bool:
        """True for conditional simulation (the data has rows)."""
        return self.geodata.npoints() > 0

    def _kind(self) -> str:
        return "conditional" if self.hasdata else "unconditional"


def _empty_geodata(
    domain: Domain, targetvars: Union[str, Sequence[str]]
) -> GeoDataFrame:
    variables = [targetvars] if isinstance(targetvars, str) else list(targetvars)
    coordnames = [f"x{i + 1}" for i in range(domain.ndims)]
    return GeoDataFrame.empty(
        coordnames, variables, coordtype=domain.coordtype, vartype=np.float64
    )


def hasdata(problem: SimulationProblem) -> bool:
    """Return True if ``problem`` has conditioning data and False otherwise."""
    return problem.hasdata


class SimulationSolution:
    """A solution to a spatial simulation problem.

    Attributes:
        domain: Domain of the solved problem.
        realizations: Mapping from variable name to the ordered list of
            realizations, each aligned with the domain enumeration order.
    """

    def __init__(self, domain: Domain, realizations: dict[str, list[np.ndarray]]):
        n = domain.npoints()
        checked: dict[str, list[np.ndarray]] = {}
        for var, reals in realizations.items():
            arrays = [np.asarray(real) for real in reals]
            for i, real in enumerate(arrays):
                if real.shape != (n,):
                    raise ValueError(
                        f"Realization {i} of '{var}' must have shape ({n},), "
                        f"got {real.shape}"
                    )
            checked[var] = arrays
        self.domain = domain
        self.realizations = checked

    @property
    def variables(self) -> tuple[str, ...]:
        return tuple(self.realizations)

    @property
    def nreals(self) -> int:
        """Number of realizations per variable."""
        if not self.realizations:
            return 0
        return len(next(iter(self.realizations.values())))

    def __getitem__(self, var: str) -> list[np.ndarray]:
        if var not in self.realizations:
            raise SchemaError(
                f"Variable '{var}' not in solution. Available: {list(self.realizations)}"
            )
        return self.realizations[var]

    def to_dataframe(self, var: Optional[str] = None) -> pd.DataFrame:
        """Tabulate realizations with location coordinates.

        Args:
            var: Variable to tabulate. Defaults to the only variable.

        Returns:
            DataFrame with columns ``x1..xD`` and ``real_1..real_N``.
        """
        if var is None:
            if len(self.realizations) != 1:
                raise ValueError(
                    f"var is required with several variables: {list(self.realizations)}"
                )
            var = next(iter(self.realizations))
        reals = self[var]
        frame = pd.DataFrame(
            self.domain.coordinates(),
            columns=[f"x{i + 1}" for i in range(self.domain.ndims)],
        )
        for i, real in enumerate(reals):
            frame[f"real_{i + 1}"] = real
        return frame

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SimulationSolution(variables={list(self.variables)}, "
            f"nreals={self.nreals}, n_locations={self.domain.npoints()})"
        )

    def __str__(self) -> str:
        return f"{self.domain.ndims}D SimulationSolution"
