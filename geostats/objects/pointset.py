"""Point set domain."""

from dataclasses import dataclass

import numpy as np

from geostats.objects.domain import Domain


@dataclass(frozen=True, eq=False)
class PointSet(Domain):
    """Domain made of arbitrary point locations.

    Attributes:
        coordinates_array: Array of shape (n_points, n_dims).
    """

    coordinates_array: np.ndarray

    def __post_init__(self) -> None:
        """Validate PointSet parameters."""
        coords = np.array(self.coordinates_array, dtype=np.float64)
        if coords.ndim == 1:
            coords = coords.reshape(-1, 1)
        if coords.ndim != 2:
            raise ValueError(
                f"coordinates must be 2D array (n_points, n_dims), got shape {coords.shape}"
            )
        if coords.shape[1] < 1:
            raise ValueError("coordinates must have at least one dimension")
        if not np.all(np.isfinite(coords)):
            raise ValueError("coordinates must be finite")
        coords.setflags(write=False)
        object.__setattr__(self, "coordinates_array", coords)

    @property
    def ndims(self) -> int:
        return self.coordinates_array.shape[1]

    @property
    def coordtype(self) -> np.dtype:
        return self.coordinates_array.dtype

    def npoints(self) -> int:
        return self.coordinates_array.shape[0]

    def location(self, i: int) -> np.ndarray:
        return self.coordinates_array[self._check_index(i)].copy()

    def coordinates(self) -> np.ndarray:
        return self.coordinates_array

    def __repr__(self) -> str:
        """String representation."""
        return f"PointSet(n_points={self.npoints()}, n_dims={self.ndims})"

    def __str__(self) -> str:
        return f"{self.npoints()} PointSet"
