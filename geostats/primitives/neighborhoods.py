"""Neighborhoods limiting the conditioning points of a local estimate.

Searches run on a ``sklearn.neighbors.KDTree`` built in the space returned by
``DistanceMetric.transform``, where every supported metric is Euclidean, so
anisotropic neighborhoods need no special handling.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

import numpy as np
from sklearn.neighbors import KDTree

from geostats.primitives.distances import DistanceMetric
from geostats.utils.errors import raise_parameter_error


class Neighborhood(ABC):
    """Rule selecting conditioning points around a target location."""

    @abstractmethod
    def searcher(
        self, coordinates: np.ndarray, distance: DistanceMetric
    ) -> "NeighborSearcher":
        """Build a searcher over ``coordinates``."""


@dataclass(frozen=True)
class Unlimited(Neighborhood):
    """Use every data point."""

    def searcher(
        self, coordinates: np.ndarray, distance: DistanceMetric
    ) -> "NeighborSearcher":
        return NeighborSearcher(self, coordinates, distance)


@dataclass(frozen=True)
class KNearest(Neighborhood):
    """Use the ``k`` nearest data points.

    Attributes:
        k: Maximum number of neighbors.
    """

    k: int

    def __post_init__(self) -> None:
        """Validate KNearest parameters."""
        if self.k < 1:
            raise_parameter_error("k", self.k, constraint="k must be >= 1")

    def searcher(
        self, coordinates: np.ndarray, distance: DistanceMetric
    ) -> "NeighborSearcher":
        return NeighborSearcher(self, coordinates, distance)


@dataclass(frozen=True)
class Radius(Neighborhood):
    """Use data points within ``radius``, measured with the variogram metric.

    Attributes:
        radius: Search radius.
        max_neighbors: Optional cap, keeping the closest points.
    """

    radius: float
    max_neighbors: Union[int, None] = None

    def __post_init__(self) -> None:
        """Validate Radius parameters."""
        if self.radius <= 0:
            raise_parameter_error(
                "radius", self.radius, constraint="radius must be positive"
            )
        if self.max_neighbors is not None and self.max_neighbors < 1:
            raise_parameter_error(
                "max_neighbors",
                self.max_neighbors,
                constraint="max_neighbors must be >= 1",
            )

    def searcher(
        self, coordinates: np.ndarray, distance: DistanceMetric
    ) -> "NeighborSearcher":
        return NeighborSearcher(self, coordinates, distance)


class NeighborSearcher:
    """Answers neighbor queries for one neighborhood over fixed points."""

    def __init__(
        self,
        neighborhood: Neighborhood,
        coordinates: np.ndarray,
        distance: DistanceMetric,
    ):
        self.neighborhood = neighborhood
        self.distance = distance
        self.npoints = len(coordinates)
        self._all = np.arange(self.npoints)
        self._tree = (
            None
            if isinstance(neighborhood, Unlimited) or self.npoints == 0
            else KDTree(distance.transform(coordinates))
        )

    @property
    def unlimited(self) -> bool:
        return isinstance(self.neighborhood, Unlimited)

    def query(self, point: np.ndarray) -> np.ndarray:
        """Indices of the conditioning points for ``point``, nearest first.

        Unlimited neighborhoods return every index in data order.
        """
        if self._tree is None:
            return self._all

        target = self.distance.transform(point)
        neighborhood = self.neighborhood
        if isinstance(neighborhood, KNearest):
            k = min(neighborhood.k, self.npoints)
            _, idx = self._tree.query(target, k=k)
            return idx[0].astype(int)

        assert isinstance(neighborhood, Radius)
        idx, _ = self._tree.query_radius(
            target, r=neighborhood.radius, return_distance=True, sort_results=True
        )
        idx = idx[0].astype(int)
        if neighborhood.max_neighbors is not None:
            idx = idx[: neighborhood.max_neighbors]
        return idx
