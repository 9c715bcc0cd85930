"""Layer 4: Solvers - Turn problems into solutions.

Solvers are configured per target variable and parallelize over domain
locations (estimation) or realizations (simulation).
"""

from geostats.solvers.base import Solver
from geostats.solvers.kriging import Kriging, KrigingParameters
from geostats.solvers.sgs import SequentialGaussianSimulation, SGSParameters
from geostats.solvers.validation import CrossValidationResult, k_fold, leave_one_out

__all__ = [
    "CrossValidationResult",
    "Kriging",
    "KrigingParameters",
    "SGSParameters",
    "SequentialGaussianSimulation",
    "Solver",
    "k_fold",
    "leave_one_out",
]
