"""Layer 2: Primitives - Pure operations on arrays.

Distance metrics, variogram models and their fitting, neighbor search and
kriging estimators. Depends on numpy, scipy and scikit-learn. No file I/O or
plotting.
"""

from geostats.primitives.distances import (
    DistanceMetric,
    Ellipsoidal,
    Euclidean,
    rotation_matrix,
)
from geostats.primitives.kriging import (
    KrigingEstimate,
    KrigingEstimator,
    OrdinaryKriging,
    SimpleKriging,
    make_estimator,
    simple_kriging_estimate,
)
from geostats.primitives.neighborhoods import (
    KNearest,
    NeighborSearcher,
    Neighborhood,
    Radius,
    Unlimited,
)
from geostats.primitives.variogram import (
    VARIOGRAM_MODELS,
    CompositeVariogram,
    CubicVariogram,
    ExponentialVariogram,
    GaussianVariogram,
    MaternVariogram,
    ParametricVariogram,
    PentaSphericalVariogram,
    PowerVariogram,
    SineHoleVariogram,
    SphericalVariogram,
    VariogramModel,
    variogram_from_name,
)
from geostats.primitives.variogram_fitting import EmpiricalVariogram, fit_variogram

__all__ = [
    # Distances
    "DistanceMetric",
    "Ellipsoidal",
    "Euclidean",
    "rotation_matrix",
    # Variograms
    "VARIOGRAM_MODELS",
    "CompositeVariogram",
    "CubicVariogram",
    "ExponentialVariogram",
    "GaussianVariogram",
    "MaternVariogram",
    "ParametricVariogram",
    "PentaSphericalVariogram",
    "PowerVariogram",
    "SineHoleVariogram",
    "SphericalVariogram",
    "VariogramModel",
    "variogram_from_name",
    "EmpiricalVariogram",
    "fit_variogram",
    # Neighborhoods
    "KNearest",
    "NeighborSearcher",
    "Neighborhood",
    "Radius",
    "Unlimited",
    # Kriging
    "KrigingEstimate",
    "KrigingEstimator",
    "OrdinaryKriging",
    "SimpleKriging",
    "make_estimator",
    "simple_kriging_estimate",
]
