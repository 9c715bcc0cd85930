"""Shared behaviour of spatial problems.

A problem binds conditioning data, a domain and the target variables, and
checks once, at construction, that the three are consistent.
"""

from typing import Sequence, Union

from geostats.objects.domain import Domain
from geostats.objects.geodataframe import GeoDataFrame
from geostats.utils.errors import raise_construction_error


def _as_targetvars(targetvars: Union[str, Sequence[str]]) -> tuple[str, ...]:
    if isinstance(targetvars, str):
        return (targetvars,)
    return tuple(targetvars)


class Problem:
    """Base class for estimation and simulation problems.

    Attributes:
        geodata: Conditioning data (possibly empty).
        domain: Locations where the targets are solved.
        targetvars: Ordered names of the target variables.
    """

    def __init__(
        self,
        geodata: GeoDataFrame,
        domain: Domain,
        targetvars: Union[str, Sequence[str]],
    ):
        targetvars = _as_targetvars(targetvars)
        self._validate(geodata, domain, targetvars)
        self._geodata = geodata
        self._domain = domain
        self._targetvars = targetvars

    @staticmethod
    def _validate(
        geodata: GeoDataFrame, domain: Domain, targetvars: tuple[str, ...]
    ) -> None:
        if not isinstance(geodata, GeoDataFrame):
            raise_construction_error(
                "geodata-type",
                f"geodata must be a GeoDataFrame, got {type(geodata).__name__}",
            )
        if not isinstance(domain, Domain):
            raise_construction_error(
                "domain-type",
                f"domain must be a Domain, got {type(domain).__name__}",
            )
        if len(targetvars) == 0:
            raise_construction_error(
                "targetvars-nonempty", "at least one target variable is required"
            )
        if len(set(targetvars)) != len(targetvars):
            raise_construction_error(
                "targetvars-unique", f"target variables must be unique, got {targetvars}"
            )

        columns = set(map(str, geodata.data.columns))
        missing = [var for var in targetvars if var not in columns]
        if missing:
            raise_construction_error(
                "targetvars-in-data",
                f"target variables must be columns of geodata, missing {missing}",
                suggestion=f"Available columns: {sorted(columns)}",
            )

        coordinates = [var for var in targetvars if var in geodata.coordnames()]
        if coordinates:
            raise_construction_error(
                "targetvars-not-coordinates",
                f"target variables can't be coordinates, got {coordinates}",
            )

        if domain.ndims != geodata.ndims:
            raise_construction_error(
                "ndims-match",
                f"data and domain must have the same number of dimensions, "
                f"got {geodata.ndims} coordinate column(s) and a "
                f"{domain.ndims}-D domain",
            )

    @property
    def geodata(self) -> GeoDataFrame:
        return self._geodata

    @property
    def domain(self) -> Domain:
        return self._domain

    @property
    def targetvars(self) -> tuple[str, ...]:
        return self._targetvars

    @property
    def ndims(self) -> int:
        return self._domain.ndims

    def _kind(self) -> str:
        return ""

    def __str__(self) -> str:
        kind = self._kind()
        suffix = f" ({kind})" if kind else ""
        return f"{self.ndims}D {type(self).__name__}{suffix}"

    def describe(self) -> str:
        """Multi-line summary of data, domain and variables."""
        variables = list(self.targetvars)
        joined = (
            variables[0]
            if len(variables) == 1
            else ", ".join(variables[:-1]) + " and " + variables[-1]
        )
        return "\n".join(
            [
                str(self),
                f"  data:      {self.geodata!r}",
                f"  domain:    {self.domain}",
                f"  variables: {joined}",
            ]
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"{type(self).__name__}(npoints={self.geodata.npoints()}, "
            f"domain={self.domain!r}, targetvars={list(self.targetvars)})"
        )
