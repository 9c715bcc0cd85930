"""Abstract spatial domain.

A domain is an enumerable set of locations. Solvers only rely on this
interface, so new domain types can be added without touching them.
"""

from abc import ABC, abstractmethod

import numpy as np


class Domain(ABC):
    """Enumerable set of locations in D-dimensional space."""

    @property
    @abstractmethod
    def ndims(self) -> int:
        """Number of spatial dimensions."""

    @property
    @abstractmethod
    def coordtype(self) -> np.dtype:
        """Numeric type of the location coordinates."""

    @abstractmethod
    def npoints(self) -> int:
        """Number of locations."""

    @abstractmethod
    def location(self, i: int) -> np.ndarray:
        """Coordinates of the location with linear index ``i``."""

    def coordinates(self) -> np.ndarray:
        """All locations as an ``(npoints, ndims)`` array in enumeration order."""
        return np.array(
            [self.location(i) for i in range(self.npoints())], dtype=self.coordtype
        ).reshape(self.npoints(), self.ndims)

    def _check_index(self, i: int) -> int:
        n = self.npoints()
        if not -n <= i < n:
            raise IndexError(f"Location index {i} out of range for {n} locations")
        return i % n

    def __len__(self) -> int:
        return self.npoints()
