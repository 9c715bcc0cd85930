"""Estimation problems and their solutions."""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from geostats.objects.domain import Domain
from geostats.objects.geodataframe import GeoDataFrame
from geostats.problems.base import Problem
from geostats.utils.errors import GeoStatsError, SchemaError


class EstimationProblem(Problem):
    """A spatial estimation problem.

    The variables listed in ``targetvars`` are estimated on every location
    of ``domain`` from the samples stored in ``geodata``.

    Args:
        geodata: Conditioning data.
        domain: Domain to estimate on.
        targetvars: Variable name or ordered names of variables.

    Raises:
        ConstructionError: If the target variables are not data columns, are
            coordinates, or the data and domain dimensions differ.
    """

    def __init__(
        self,
        geodata: GeoDataFrame,
        domain: Domain,
        targetvars: Union[str, Sequence[str]],
    ):
        super().__init__(geodata, domain, targetvars)


class EstimationSolution:
    """A solution to a spatial estimation problem.

    Means and variances are masked arrays aligned with the domain
    enumeration order; locations that failed are masked and their errors
    are kept in ``failures``.

    Attributes:
        domain: Domain of the solved problem.
        mean: Mapping from variable name to estimated means.
        variance: Mapping from variable name to estimation variances.
        failures: Mapping from variable name to {location index: error}.
    """

    def __init__(
        self,
        domain: Domain,
        mean: dict[str, np.ndarray],
        variance: dict[str, np.ndarray],
        failures: Optional[dict[str, dict[int, GeoStatsError]]] = None,
    ):
        failures = failures or {}
        n = domain.npoints()
        self.domain = domain
        self.mean: dict[str, np.ma.MaskedArray] = {}
        self.variance: dict[str, np.ma.MaskedArray] = {}
        self.failures: dict[str, dict[int, GeoStatsError]] = {}

        for var in mean:
            if len(mean[var]) != n or len(variance[var]) != n:
                raise ValueError(
                    f"Solution of '{var}' must have {n} values, "
                    f"got {len(mean[var])} means and {len(variance[var])} variances"
                )
            var_failures = dict(failures.get(var, {}))
            mask = np.zeros(n, dtype=bool)
            mask[list(var_failures)] = True
            self.mean[var] = np.ma.masked_array(
                np.asarray(mean[var], dtype=np.float64), mask=mask.copy()
            )
            self.variance[var] = np.ma.masked_array(
                np.asarray(variance[var], dtype=np.float64), mask=mask.copy()
            )
            self.failures[var] = var_failures

    @property
    def variables(self) -> tuple[str, ...]:
        return tuple(self.mean)

    @property
    def succeeded(self) -> bool:
        """True when every location of every variable was estimated."""
        return not any(self.failures.values())

    def failed_locations(self, var: str) -> list[int]:
        """Sorted indices of the locations where ``var`` failed."""
        self._check_var(var)
        return sorted(self.failures[var])

    def raise_for_failures(self) -> None:
        """Re-raise the first recorded failure, if any."""
        for var in self.variables:
            if self.failures[var]:
                location = min(self.failures[var])
                raise self.failures[var][location]

    def _check_var(self, var: str) -> None:
        if var not in self.mean:
            raise SchemaError(
                f"Variable '{var}' not in solution. Available: {list(self.mean)}"
            )

    def __getitem__(self, var: str) -> tuple[np.ma.MaskedArray, np.ma.MaskedArray]:
        self._check_var(var)
        return self.mean[var], self.variance[var]

    def to_dataframe(self) -> pd.DataFrame:
        """Tabulate the solution with location coordinates.

        Failed locations hold missing values.

        Returns:
            DataFrame with columns ``x1..xD``, ``<var>`` and ``<var>_variance``.
        """
        coords = self.domain.coordinates()
        frame = pd.DataFrame(
            coords, columns=[f"x{i + 1}" for i in range(self.domain.ndims)]
        )
        for var in self.variables:
            frame[var] = self.mean[var].filled(np.nan)
            frame[f"{var}_variance"] = self.variance[var].filled(np.nan)
        return frame

    def __repr__(self) -> str:
        """String representation."""
        n_failed = sum(len(f) for f in self.failures.values())
        return (
            f"EstimationSolution(variables={list(self.variables)}, "
            f"n_locations={self.domain.npoints()}, n_failed={n_failed})"
        )

    def __str__(self) -> str:
        return f"{self.domain.ndims}D EstimationSolution"
