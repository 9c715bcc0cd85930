"""Geospatial data container.

A GeoDataFrame is a pandas DataFrame in which an ordered subset of the
columns holds point coordinates. Every remaining column is an attribute that
can be estimated or simulated.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from geostats.utils.errors import SchemaError


@dataclass(frozen=True, eq=False)
class GeoDataFrame:
    """Tabular data tagged with coordinate columns.

    The wrapped frame is copied on construction and never handed out
    mutably, so the object is read-only after it is built.

    Attributes:
        data: Table with coordinate and attribute columns.
        coordinate_names: Ordered names of the coordinate columns.
    """

    data: pd.DataFrame
    coordinate_names: tuple[str, ...]
    _coordinates: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate GeoDataFrame parameters."""
        if not isinstance(self.data, pd.DataFrame):
            raise ValueError(f"data must be pandas DataFrame, got {type(self.data)}")

        names = (
            (self.coordinate_names,)
            if isinstance(self.coordinate_names, str)
            else tuple(self.coordinate_names)
        )
        if len(names) == 0:
            raise ValueError("At least one coordinate column is required")

        missing = [name for name in names if name not in self.data.columns]
        if missing:
            raise SchemaError(
                f"Coordinate column(s) {missing} not found in data. "
                f"Available columns: {list(self.data.columns)}",
                details={"missing": missing},
            )

        frame = self.data.copy()
        coordinates = frame[list(names)].to_numpy(dtype=np.float64)
        coordinates.setflags(write=False)

        object.__setattr__(self, "data", frame)
        object.__setattr__(self, "coordinate_names", names)
        object.__setattr__(self, "_coordinates", coordinates)

    @classmethod
    def empty(
        cls,
        coordnames: Sequence[str],
        variables: Sequence[str],
        coordtype: Union[type, np.dtype] = np.float64,
        vartype: Union[type, np.dtype] = np.float64,
    ) -> "GeoDataFrame":
        """Create a zero-row GeoDataFrame with the given schema.

        Args:
            coordnames: Names of the coordinate columns.
            variables: Names of the attribute columns.
            coordtype: dtype of the coordinate columns.
            vartype: dtype of the attribute columns.

        Returns:
            GeoDataFrame without rows.
        """
        columns = {name: pd.Series([], dtype=coordtype) for name in coordnames}
        columns.update({name: pd.Series([], dtype=vartype) for name in variables})
        return cls(data=pd.DataFrame(columns), coordinate_names=tuple(coordnames))

    @property
    def ndims(self) -> int:
        """Number of coordinate columns."""
        return len(self.coordinate_names)

    def coordnames(self) -> tuple[str, ...]:
        """Ordered names of the coordinate columns."""
        return self.coordinate_names

    def variables(self) -> tuple[str, ...]:
        """Names of the non-coordinate columns."""
        return tuple(
            str(name) for name in self.data.columns if name not in self.coordinate_names
        )

    def npoints(self) -> int:
        """Number of rows (points)."""
        return len(self.data)

    def coordinates(self, i: int) -> np.ndarray:
        """Coordinates of row ``i``.

        Args:
            i: Row position.

        Returns:
            Coordinate vector of length ``ndims``.
        """
        return self._coordinates[i].copy()

    def coordinate_matrix(self) -> np.ndarray:
        """All point coordinates as a read-only ``(npoints, ndims)`` array."""
        return self._coordinates

    def values(self, var: str) -> np.ndarray:
        """Values of column ``var`` in row order.

        Raises:
            SchemaError: If ``var`` is not a column of the data.
        """
        if var not in self.data.columns:
            raise SchemaError(
                f"Column '{var}' not found in data. "
                f"Available columns: {list(self.data.columns)}",
                details={"missing": [var]},
            )
        return self.data[var].to_numpy(copy=True)

    def valid(self, var: str) -> tuple[np.ndarray, np.ndarray]:
        """Coordinates and float values of the rows where ``var`` is present.

        Args:
            var: Attribute column.

        Returns:
            Tuple of (coordinates, values) with missing values dropped.
        """
        values = np.asarray(self.values(var), dtype=np.float64)
        mask = ~np.isnan(values)
        return self._coordinates[mask], values[mask]

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"GeoDataFrame(npoints={self.npoints()}, "
            f"coordnames={list(self.coordinate_names)}, "
            f"variables={list(self.variables())})"
        )


def as_geodataframe(
    data: Union[GeoDataFrame, pd.DataFrame],
    coordnames: Optional[Sequence[str]] = None,
) -> GeoDataFrame:
    """Wrap a DataFrame as a GeoDataFrame, passing GeoDataFrames through.

    Args:
        data: Table or existing GeoDataFrame.
        coordnames: Coordinate column names, required for plain DataFrames.

    Returns:
        GeoDataFrame.
    """
    if isinstance(data, GeoDataFrame):
        return data
    if coordnames is None:
        raise ValueError("coordnames is required to wrap a pandas DataFrame")
    return GeoDataFrame(data=data, coordinate_names=tuple(coordnames))
