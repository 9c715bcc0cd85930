"""Regular grid domain.

Locations are enumerated in C (row-major) order of their integer
multi-index: the last axis varies fastest.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from geostats.objects.domain import Domain


@dataclass(frozen=True, eq=False)
class RegularGrid(Domain):
    """Evenly spaced grid of locations.

    Attributes:
        dims: Number of nodes along each axis.
        origin: Coordinates of the node with multi-index (0, ..., 0).
        spacing: Distance between consecutive nodes along each axis.
    """

    dims: tuple[int, ...]
    origin: Optional[np.ndarray] = None
    spacing: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        """Validate RegularGrid parameters."""
        dims = tuple(int(n) for n in np.atleast_1d(self.dims))
        if any(n < 1 for n in dims):
            raise ValueError(f"dims must be positive, got {dims}")

        ndims = len(dims)
        origin = (
            np.zeros(ndims)
            if self.origin is None
            else np.asarray(self.origin, dtype=np.float64).ravel()
        )
        spacing = (
            np.ones(ndims)
            if self.spacing is None
            else np.asarray(self.spacing, dtype=np.float64).ravel()
        )
        if origin.shape != (ndims,) or spacing.shape != (ndims,):
            raise ValueError(
                f"origin and spacing must have {ndims} entries, "
                f"got {origin.shape[0]} and {spacing.shape[0]}"
            )
        if np.any(spacing <= 0):
            raise ValueError(f"spacing must be positive, got {spacing}")

        origin.setflags(write=False)
        spacing.setflags(write=False)
        object.__setattr__(self, "dims", dims)
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "spacing", spacing)

    @classmethod
    def from_extents(
        cls,
        lower: Sequence[float],
        upper: Sequence[float],
        dims: Sequence[int],
    ) -> "RegularGrid":
        """Create a grid whose first and last nodes sit on the given corners.

        Args:
            lower: Coordinates of the first node.
            upper: Coordinates of the last node.
            dims: Number of nodes along each axis.

        Returns:
            RegularGrid covering the box.
        """
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        dims_array = np.asarray(dims, dtype=int)
        if np.any(upper <= lower):
            raise ValueError("upper corner must be greater than lower corner")
        steps = np.maximum(dims_array - 1, 1)
        return cls(dims=tuple(dims_array), origin=lower, spacing=(upper - lower) / steps)

    @property
    def ndims(self) -> int:
        return len(self.dims)

    @property
    def coordtype(self) -> np.dtype:
        return np.dtype(np.float64)

    def npoints(self) -> int:
        return int(np.prod(self.dims))

    def location(self, i: int) -> np.ndarray:
        index = np.array(np.unravel_index(self._check_index(i), self.dims))
        return self.origin + index * self.spacing

    def coordinates(self) -> np.ndarray:
        axes = [
            self.origin[d] + np.arange(n) * self.spacing[d]
            for d, n in enumerate(self.dims)
        ]
        mesh = np.meshgrid(*axes, indexing="ij")
        return np.column_stack([m.ravel() for m in mesh])

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"RegularGrid(dims={self.dims}, origin={tuple(self.origin)}, "
            f"spacing={tuple(self.spacing)})"
        )

    def __str__(self) -> str:
        return f"{'×'.join(map(str, self.dims))} RegularGrid"
