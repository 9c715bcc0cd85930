"""Layer 3: Problems - what to solve, and the shape of the answer."""

from geostats.problems.base import Problem
from geostats.problems.estimation import EstimationProblem, EstimationSolution
from geostats.problems.simulation import (
    SimulationProblem,
    SimulationSolution,
    hasdata,
)

__all__ = [
    "EstimationProblem",
    "EstimationSolution",
    "Problem",
    "SimulationProblem",
    "SimulationSolution",
    "hasdata",
]
