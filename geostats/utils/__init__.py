"""Utility modules for GeoStats."""

from geostats.utils.errors import (
    ConstructionError,
    DimensionMismatch,
    GeoStatsError,
    InsufficientDataError,
    ParameterError,
    SchemaError,
    SingularSystemError,
    SolveCancelled,
    format_parameter_error,
    raise_construction_error,
    raise_parameter_error,
)
from geostats.utils.parallel import get_parallel_info, parallel_map, resolve_n_jobs

__all__ = [
    "GeoStatsError",
    "ConstructionError",
    "SchemaError",
    "DimensionMismatch",
    "ParameterError",
    "InsufficientDataError",
    "SingularSystemError",
    "SolveCancelled",
    "format_parameter_error",
    "raise_construction_error",
    "raise_parameter_error",
    "get_parallel_info",
    "parallel_map",
    "resolve_n_jobs",
]
