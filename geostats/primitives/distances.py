"""Distance metrics consumed by variogram models.

Every metric can evaluate a single pair of points, a full pairwise matrix,
and transform coordinates into the space in which it is plain Euclidean.
The last capability lets neighbor searches run on a k-d tree regardless of
the metric.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from geostats.utils.errors import DimensionMismatch, raise_parameter_error


def _as_matrix(points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points.reshape(1, -1)
    return points


class DistanceMetric(ABC):
    """Distance between points in D-dimensional space."""

    @abstractmethod
    def evaluate(self, a: np.ndarray, b: np.ndarray) -> float:
        """Distance between points ``a`` and ``b``."""

    @abstractmethod
    def transform(self, points: np.ndarray) -> np.ndarray:
        """Map points into the space where this metric is Euclidean."""

    def pairwise(self, x: np.ndarray, y: Optional[np.ndarray] = None) -> np.ndarray:
        """Distance matrix between rows of ``x`` and rows of ``y``.

        Args:
            x: Array of shape (n, n_dims).
            y: Array of shape (m, n_dims). Defaults to ``x``.

        Returns:
            Array of shape (n, m).
        """
        tx = self.transform(_as_matrix(x))
        ty = tx if y is None else self.transform(_as_matrix(y))
        return cdist(tx, ty)

    def __call__(self, a: np.ndarray, b: np.ndarray) -> float:
        return self.evaluate(a, b)


@dataclass(frozen=True)
class Euclidean(DistanceMetric):
    """Standard L2 distance."""

    def evaluate(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
        return float(np.sqrt(np.dot(diff, diff)))

    def transform(self, points: np.ndarray) -> np.ndarray:
        return _as_matrix(points)

    def __repr__(self) -> str:
        return "Euclidean()"


def rotation_matrix(angles: Sequence[float]) -> np.ndarray:
    """Rotation whose columns are the ellipsoid principal axes.

    In 2-D a single counter-clockwise angle about the z axis is expected.
    In 3-D three angles are applied as the intrinsic z-x-z Euler sequence.

    Args:
        angles: Rotation angles in radians.

    Returns:
        Orthogonal matrix of shape (2, 2) or (3, 3).
    """
    angles = np.asarray(angles, dtype=np.float64)
    if angles.size == 1:
        c, s = np.cos(angles[0]), np.sin(angles[0])
        return np.array([[c, -s], [s, c]])

    def rz(theta: float) -> np.ndarray:
        c, s = np.cos(theta), np.sin(theta)
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    def rx(theta: float) -> np.ndarray:
        c, s = np.cos(theta), np.sin(theta)
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])

    alpha, beta, gamma = angles
    return rz(alpha) @ rx(beta) @ rz(gamma)


@dataclass(frozen=True)
class Ellipsoidal(DistanceMetric):
    """Anisotropic distance defined by a rotated ellipsoid.

    The difference vector is rotated into the ellipsoid principal frame,
    each component is divided by the matching semiaxis and the Euclidean
    norm of the result is returned. With all semiaxes equal to ``r`` the
    distance is the Euclidean distance divided by ``r``.

    Attributes:
        semiaxes: Semiaxis lengths (2 in 2-D, 3 in 3-D).
        angles: Rotation angles in radians (1 in 2-D, 3 in 3-D).
            Defaults to no rotation.
    """

    semiaxes: tuple[float, ...]
    angles: Optional[tuple[float, ...]] = None
    _matrix: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate Ellipsoidal parameters."""
        semiaxes = tuple(float(s) for s in np.atleast_1d(self.semiaxes))
        ndims = len(semiaxes)
        if ndims not in (2, 3):
            raise DimensionMismatch(
                f"Ellipsoidal distance needs 2 or 3 semiaxes, got {ndims}",
                details={"semiaxes": ndims},
            )

        n_angles = 1 if ndims == 2 else 3
        angles = (
            (0.0,) * n_angles
            if self.angles is None
            else tuple(float(a) for a in np.atleast_1d(self.angles))
        )
        if len(angles) != n_angles:
            raise DimensionMismatch(
                f"{ndims} semiaxes require {n_angles} rotation angle(s), "
                f"got {len(angles)}",
                suggestion="Use 1 angle in 2-D and 3 angles in 3-D",
                details={"semiaxes": ndims, "angles": len(angles)},
            )

        if any(s <= 0 for s in semiaxes):
            raise_parameter_error(
                "semiaxes", semiaxes, constraint="semiaxes must be positive"
            )

        scale = np.diag(1.0 / np.array(semiaxes))
        if len(set(semiaxes)) == 1:
            # Rotation has no effect on a sphere.
            matrix = scale
        else:
            matrix = scale @ rotation_matrix(angles).T
        matrix.setflags(write=False)

        object.__setattr__(self, "semiaxes", semiaxes)
        object.__setattr__(self, "angles", angles)
        object.__setattr__(self, "_matrix", matrix)

    @property
    def ndims(self) -> int:
        return len(self.semiaxes)

    @property
    def matrix(self) -> np.ndarray:
        """Linear map from world coordinates to the scaled principal frame."""
        return self._matrix

    def _check_dims(self, n: int) -> None:
        if n != self.ndims:
            raise DimensionMismatch(
                f"Ellipsoidal distance is {self.ndims}-D, got {n}-D points"
            )

    def evaluate(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
        self._check_dims(diff.shape[-1])
        scaled = self._matrix @ diff
        return float(np.sqrt(np.dot(scaled, scaled)))

    def transform(self, points: np.ndarray) -> np.ndarray:
        points = _as_matrix(points)
        self._check_dims(points.shape[1])
        return points @ self._matrix.T

    def __repr__(self) -> str:
        return f"Ellipsoidal(semiaxes={self.semiaxes}, angles={self.angles})"
