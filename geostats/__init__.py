"""GeoStats: spatial estimation and simulation.

Layered like:
    objects     immutable data (GeoDataFrame, RegularGrid, PointSet)
    primitives  distances, variogram models, neighborhoods, kriging
    problems    estimation and simulation problems and their solutions
    solvers     kriging, sequential Gaussian simulation, cross-validation
"""

from geostats.objects import (
    Domain,
    GeoDataFrame,
    PointSet,
    RegularGrid,
    as_geodataframe,
)
from geostats.primitives import (
    CompositeVariogram,
    CubicVariogram,
    Ellipsoidal,
    EmpiricalVariogram,
    Euclidean,
    ExponentialVariogram,
    GaussianVariogram,
    KNearest,
    MaternVariogram,
    PentaSphericalVariogram,
    PowerVariogram,
    Radius,
    SineHoleVariogram,
    SphericalVariogram,
    Unlimited,
    VariogramModel,
    fit_variogram,
)
from geostats.problems import (
    EstimationProblem,
    EstimationSolution,
    SimulationProblem,
    SimulationSolution,
    hasdata,
)
from geostats.solvers import (
    Kriging,
    KrigingParameters,
    SequentialGaussianSimulation,
    SGSParameters,
    k_fold,
    leave_one_out,
)
from geostats.utils.errors import (
    ConstructionError,
    DimensionMismatch,
    GeoStatsError,
    InsufficientDataError,
    ParameterError,
    SchemaError,
    SingularSystemError,
    SolveCancelled,
)

__version__ = "0.1.0"

__all__ = [
    # Objects
    "Domain",
    "GeoDataFrame",
    "PointSet",
    "RegularGrid",
    "as_geodataframe",
    # Primitives
    "CompositeVariogram",
    "CubicVariogram",
    "Ellipsoidal",
    "EmpiricalVariogram",
    "Euclidean",
    "ExponentialVariogram",
    "GaussianVariogram",
    "KNearest",
    "MaternVariogram",
    "PentaSphericalVariogram",
    "PowerVariogram",
    "Radius",
    "SineHoleVariogram",
    "SphericalVariogram",
    "Unlimited",
    "VariogramModel",
    "fit_variogram",
    # Problems
    "EstimationProblem",
    "EstimationSolution",
    "SimulationProblem",
    "SimulationSolution",
    "hasdata",
    # Solvers
    "Kriging",
    "KrigingParameters",
    "SGSParameters",
    "SequentialGaussianSimulation",
    "k_fold",
    "leave_one_out",
    # Errors
    "ConstructionError",
    "DimensionMismatch",
    "GeoStatsError",
    "InsufficientDataError",
    "ParameterError",
    "SchemaError",
    "SingularSystemError",
    "SolveCancelled",
]
