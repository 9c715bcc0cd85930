"""Standardized errors for GeoStats.

Every error carries a primary message, an optional suggestion for fixing it
and an optional dictionary of details, so failures collected during a solve
can be reported uniformly.
"""

from typing import Any, Optional

import numpy as np


class GeoStatsError(Exception):
    """Base exception for GeoStats errors."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize GeoStats error.

        Args:
            message: Primary error message.
            suggestion: Optional suggestion for fixing the error.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with suggestion if available."""
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConstructionError(GeoStatsError, ValueError):
    """Error raised when a problem is built from inconsistent inputs."""

    pass


class SchemaError(GeoStatsError, KeyError):
    """Error raised when a requested column is absent from a table."""

    pass


class DimensionMismatch(GeoStatsError, ValueError):
    """Error raised when parameter counts disagree with dimensionality."""

    pass


class ParameterError(GeoStatsError, ValueError):
    """Error raised when parameters are invalid."""

    pass


class InsufficientDataError(GeoStatsError):
    """Error raised when there are no conditioning points for an estimate."""

    pass


class SingularSystemError(GeoStatsError, np.linalg.LinAlgError):
    """Error raised when a kriging system cannot be solved."""

    pass


class SolveCancelled(GeoStatsError):
    """Error raised when a solve is cancelled before completion."""

    pass


def format_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
) -> str:
    """Format a standardized parameter error message.

    Args:
        parameter_name: Name of the invalid parameter.
        value: Invalid value that was provided.
        valid_values: List of valid values (optional).
        constraint: Constraint that was violated (optional).

    Returns:
        Formatted error message string.
    """
    parts = [f"Invalid value for parameter '{parameter_name}': {value}"]
    if valid_values:
        parts.append(f"Valid values: {', '.join(map(str, valid_values))}")
    if constraint:
        parts.append(f"Constraint: {constraint}")
    return "\n".join(parts)


def raise_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> None:
    """Raise a standardized parameter error.

    Args:
        parameter_name: Name of the invalid parameter.
        value: Invalid value that was provided.
        valid_values: List of valid values (optional).
        constraint: Constraint that was violated (optional).
        suggestion: How to fix the error (optional).

    Raises:
        ParameterError: Always raises this exception.
    """
    error_msg = format_parameter_error(parameter_name, value, valid_values, constraint)
    raise ParameterError(
        error_msg, suggestion=suggestion, details={"parameter": parameter_name}
    )


def raise_construction_error(
    invariant: str,
    message: str,
    suggestion: Optional[str] = None,
) -> None:
    """Raise a construction error naming the violated invariant.

    Args:
        invariant: Short name of the violated invariant.
        message: Primary error message.
        suggestion: How to fix the error (optional).

    Raises:
        ConstructionError: Always raises this exception.
    """
    raise ConstructionError(
        f"{message} (violated: {invariant})",
        suggestion=suggestion,
        details={"invariant": invariant},
    )
