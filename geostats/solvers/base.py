"""Base class shared by estimation and simulation solvers."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, TypeVar, Union

from geostats.problems.base import Problem
from geostats.utils.errors import ParameterError
from geostats.utils.parallel import resolve_n_jobs

P = TypeVar("P")


class Solver(ABC, Generic[P]):
    """Solver configured with parameters per target variable.

    Parameters are either one object applied to every variable or a
    mapping from variable name to parameters.

    Attributes:
        parameters: Per-variable parameters, or None when shared.
        default: Parameters used for variables absent from ``parameters``.
        n_jobs: Number of worker threads (None for one per CPU).
    """

    parameter_type: type = object

    def __init__(
        self,
        parameters: Union[P, Mapping[str, P]],
        n_jobs: Optional[int] = None,
    ):
        if isinstance(parameters, Mapping):
            for var, params in parameters.items():
                self._check_parameters(params, var)
            self.parameters: Optional[dict[str, P]] = dict(parameters)
            self.default: Optional[P] = None
        else:
            self._check_parameters(parameters)
            self.parameters = None
            self.default = parameters
        resolve_n_jobs(n_jobs)
        self.n_jobs = n_jobs

    def _check_parameters(self, params: Any, var: Optional[str] = None) -> None:
        if not isinstance(params, self.parameter_type):
            where = f" for '{var}'" if var is not None else ""
            raise ParameterError(
                f"{type(self).__name__} parameters{where} must be "
                f"{self.parameter_type.__name__}, got {type(params).__name__}"
            )

    def parameters_for(self, var: str) -> P:
        """Parameters of ``var``.

        Raises:
            ParameterError: If no parameters were given for ``var``.
        """
        if self.parameters is not None and var in self.parameters:
            return self.parameters[var]
        if self.default is not None:
            return self.default
        raise ParameterError(
            f"No {type(self).__name__} parameters for variable '{var}'",
            suggestion=f"Configured variables: {sorted(self.parameters or {})}",
        )

    def _check_problem(self, problem: Problem) -> None:
        for var in problem.targetvars:
            self.parameters_for(var)

    @abstractmethod
    def solve(
        self, problem: Problem, cancel_event: Optional[threading.Event] = None
    ) -> Any:
        """Solve ``problem``.

        Args:
            problem: Problem to solve.
            cancel_event: Optional event; once set no new work is started
                and ``SolveCancelled`` is raised.
        """

    def __repr__(self) -> str:
        """String representation."""
        params = self.parameters if self.parameters is not None else self.default
        return f"{type(self).__name__}({params!r}, n_jobs={self.n_jobs})"
