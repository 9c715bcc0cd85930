"""Theoretical variogram models.

Every model can be evaluated on lags, ``γ(h)``, or on pairs of points,
``γ(x, y) = γ(d(x, y))`` where ``d`` is the configured distance metric.
Anisotropy is obtained by configuring an ``Ellipsoidal`` distance; there is
no separate anisotropic model type.

Conventions:
    - ``γ(0) = nugget`` and ``γ(h) -> sill + nugget`` as ``h -> inf``,
      so ``sill`` is the partial sill and ``total_sill = sill + nugget``.
    - ``range_param`` scales the lag directly (``s = h / range_param``);
      bounded models reach the sill at ``s = 1``, asymptotic ones approach it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Union

import numpy as np
from scipy.special import gamma as gamma_function
from scipy.special import kv

from geostats.primitives.distances import DistanceMetric, Euclidean
from geostats.utils.errors import ParameterError, raise_parameter_error

ArrayLike = Union[float, np.ndarray]


class VariogramModel(ABC):
    """Interface shared by all variogram models.

    Solvers only depend on this interface: lag evaluation, spatial
    evaluation, pairwise evaluation and the distance metric.

    Implementations expose ``sill`` (partial sill), ``nugget``,
    ``range_param`` and ``distance`` (a ``DistanceMetric``).
    """

    sill: float
    nugget: float
    range_param: float
    distance: DistanceMetric

    @abstractmethod
    def lag(self, h: ArrayLike) -> ArrayLike:
        """Evaluate the model on lag distances ``h >= 0``."""

    @property
    def total_sill(self) -> float:
        """Asymptotic value of the model (``sill + nugget``)."""
        return self.sill + self.nugget

    @property
    def bounded(self) -> bool:
        """Whether the model reaches a finite sill."""
        return True

    @property
    def has_hole_effect(self) -> bool:
        """Whether the model is non-monotonic (hole effect)."""
        return False

    def __call__(self, *args: ArrayLike) -> ArrayLike:
        """Evaluate as ``γ(h)`` with one argument or ``γ(x, y)`` with two."""
        if len(args) == 1:
            return self.lag(args[0])
        if len(args) == 2:
            return self.lag(self.distance.evaluate(args[0], args[1]))
        raise TypeError(
            f"Variogram takes 1 (lag) or 2 (points) arguments, got {len(args)}"
        )

    def pairwise(self, x: np.ndarray, y: Union[np.ndarray, None] = None) -> np.ndarray:
        """Variogram matrix between rows of ``x`` and rows of ``y``.

        Args:
            x: Points of shape (n, n_dims).
            y: Points of shape (m, n_dims). Defaults to ``x``.

        Returns:
            Array of shape (n, m).
        """
        return self.lag(self.distance.pairwise(x, y))

    def covariance(self, h: ArrayLike) -> ArrayLike:
        """Covariance ``C(h) = total_sill - γ(h)`` of a bounded model."""
        if not self.bounded:
            raise ParameterError(
                f"{type(self).__name__} has no sill, covariance is undefined",
                suggestion="Use ordinary kriging or a bounded variogram model",
            )
        return self.total_sill - self.lag(h)

    def pairwise_covariance(
        self, x: np.ndarray, y: Union[np.ndarray, None] = None
    ) -> np.ndarray:
        """Covariance matrix between rows of ``x`` and rows of ``y``."""
        return self.covariance(self.distance.pairwise(x, y))

    def __add__(self, other: "VariogramModel") -> "CompositeVariogram":
        """Nest two structures into a ``CompositeVariogram``."""
        left = self.components if isinstance(self, CompositeVariogram) else (self,)
        right = other.components if isinstance(other, CompositeVariogram) else (other,)
        return CompositeVariogram(left + right)


@dataclass(frozen=True)
class ParametricVariogram(VariogramModel):
    """Variogram defined by a normalized structure function.

    ``γ(h) = nugget + sill * f(h / range_param)`` where ``f`` rises from 0.

    Attributes:
        sill: Partial sill (contribution above the nugget).
        range_param: Range parameter (correlation length).
        nugget: Nugget effect (small-scale variance).
        distance: Distance metric for spatial evaluation.
    """

    sill: float = 1.0
    range_param: float = 1.0
    nugget: float = 0.0
    distance: DistanceMetric = field(default_factory=Euclidean)

    def __post_init__(self) -> None:
        """Validate variogram parameters."""
        if not isinstance(self.distance, DistanceMetric):
            raise_parameter_error(
                "distance",
                self.distance,
                constraint="distance must be a DistanceMetric",
            )
        if self.sill < 0:
            raise_parameter_error("sill", self.sill, constraint="sill must be >= 0")
        if self.nugget < 0:
            raise_parameter_error(
                "nugget", self.nugget, constraint="nugget must be >= 0"
            )
        if self.range_param <= 0:
            raise_parameter_error(
                "range_param",
                self.range_param,
                constraint="range_param must be positive",
            )
        object.__setattr__(self, "sill", float(self.sill))
        object.__setattr__(self, "nugget", float(self.nugget))
        object.__setattr__(self, "range_param", float(self.range_param))

    @abstractmethod
    def _structure(self, s: np.ndarray) -> np.ndarray:
        """Normalized structure at scaled lags ``s = h / range_param``."""

    def lag(self, h: ArrayLike) -> ArrayLike:
        h_array = np.asarray(h, dtype=np.float64)
        if np.any(h_array < 0):
            raise ValueError("Lag distances must be non-negative")
        gamma = self.nugget + self.sill * self._structure(h_array / self.range_param)
        if np.ndim(h) == 0:
            return float(gamma)
        return gamma

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"{type(self).__name__}(sill={self.sill:.4g}, range={self.range_param:.4g}, "
            f"nugget={self.nugget:.4g}, distance={self.distance!r})"
        )


class GaussianVariogram(ParametricVariogram):
    """Gaussian model, ``1 - exp(-s²)``: parabolic near the origin."""

    def _structure(self, s: np.ndarray) -> np.ndarray:
        return 1.0 - np.exp(-(s**2))


class ExponentialVariogram(ParametricVariogram):
    """Exponential model, ``1 - exp(-s)``."""

    def _structure(self, s: np.ndarray) -> np.ndarray:
        return 1.0 - np.exp(-s)


class SphericalVariogram(ParametricVariogram):
    """Spherical model, reaches the sill exactly at the range."""

    def _structure(self, s: np.ndarray) -> np.ndarray:
        s = np.minimum(s, 1.0)
        return 1.5 * s - 0.5 * s**3


class CubicVariogram(ParametricVariogram):
    """Cubic model, reaches the sill exactly at the range."""

    def _structure(self, s: np.ndarray) -> np.ndarray:
        s = np.minimum(s, 1.0)
        return 7.0 * s**2 - 8.75 * s**3 + 3.5 * s**5 - 0.75 * s**7


class PentaSphericalVariogram(ParametricVariogram):
    """Penta-spherical model, reaches the sill exactly at the range."""

    def _structure(self, s: np.ndarray) -> np.ndarray:
        s = np.minimum(s, 1.0)
        return 1.875 * s - 1.25 * s**3 + 0.375 * s**5


class SineHoleVariogram(ParametricVariogram):
    """Sine hole-effect model, ``1 - sin(πs) / (πs)``.

    Oscillates around the sill, so it is not monotonic.
    """

    @property
    def has_hole_effect(self) -> bool:
        return True

    def _structure(self, s: np.ndarray) -> np.ndarray:
        # np.sinc(s) == sin(πs) / (πs), with sinc(0) == 1
        return 1.0 - np.sinc(s)


@dataclass(frozen=True, repr=False)
class MaternVariogram(ParametricVariogram):
    """Matérn model with smoothness ``order``.

    ``order = 0.5`` gives the exponential model and large orders approach
    the Gaussian model.

    Attributes:
        order: Smoothness parameter (ν > 0).
    """

    order: float = 1.0

    def __post_init__(self) -> None:
        """Validate Matérn parameters."""
        super().__post_init__()
        if self.order <= 0:
            raise_parameter_error(
                "order", self.order, constraint="order must be positive"
            )

    def _structure(self, s: np.ndarray) -> np.ndarray:
        nu = self.order
        delta = np.sqrt(2.0 * nu) * s
        out = np.zeros_like(delta)
        positive = delta > 0
        d = delta[positive]
        out[positive] = 1.0 - 2.0 ** (1.0 - nu) / gamma_function(nu) * d**nu * kv(nu, d)
        # kv underflows to 0 for very large arguments
        return np.clip(np.nan_to_num(out, nan=1.0), 0.0, 1.0)


@dataclass(frozen=True, repr=False)
class PowerVariogram(VariogramModel):
    """Power model ``nugget + scaling * h**exponent``.

    The model grows without bound, so it has neither a sill nor a range;
    ``sill``, ``range_param`` and ``total_sill`` are infinite.

    Attributes:
        scaling: Multiplicative factor.
        exponent: Power exponent, in (0, 2).
        nugget: Nugget effect.
        distance: Distance metric for spatial evaluation.
    """

    scaling: float = 1.0
    exponent: float = 1.0
    nugget: float = 0.0
    distance: DistanceMetric = field(default_factory=Euclidean)

    def __post_init__(self) -> None:
        """Validate power model parameters."""
        if not isinstance(self.distance, DistanceMetric):
            raise_parameter_error(
                "distance",
                self.distance,
                constraint="distance must be a DistanceMetric",
            )
        if self.nugget < 0:
            raise_parameter_error(
                "nugget", self.nugget, constraint="nugget must be >= 0"
            )
        if self.scaling < 0:
            raise_parameter_error(
                "scaling", self.scaling, constraint="scaling must be >= 0"
            )
        if not 0 < self.exponent < 2:
            raise_parameter_error(
                "exponent", self.exponent, constraint="0 < exponent < 2"
            )
        object.__setattr__(self, "nugget", float(self.nugget))
        object.__setattr__(self, "scaling", float(self.scaling))
        object.__setattr__(self, "exponent", float(self.exponent))

    @property
    def sill(self) -> float:
        return np.inf

    @property
    def range_param(self) -> float:
        return np.inf

    @property
    def bounded(self) -> bool:
        return False

    def lag(self, h: ArrayLike) -> ArrayLike:
        h_array = np.asarray(h, dtype=np.float64)
        if np.any(h_array < 0):
            raise ValueError("Lag distances must be non-negative")
        gamma = self.nugget + self.scaling * h_array**self.exponent
        if np.ndim(h) == 0:
            return float(gamma)
        return gamma

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"PowerVariogram(scaling={self.scaling:.4g}, exponent={self.exponent:.4g}, "
            f"nugget={self.nugget:.4g}, distance={self.distance!r})"
        )


@dataclass(frozen=True)
class CompositeVariogram(VariogramModel):
    """Nested variogram: the sum of several structures.

    Common in mining applications where multiple scales of variability
    exist. All components must share the same distance metric.

    Attributes:
        components: Variogram components (ordered from short to long range).
    """

    components: tuple[VariogramModel, ...]

    def __post_init__(self) -> None:
        """Validate nested variogram."""
        components = tuple(self.components)
        if len(components) == 0:
            raise ParameterError("Must have at least one component")
        metrics = {repr(component.distance) for component in components}
        if len(metrics) > 1:
            raise ParameterError(
                f"Components must share one distance metric, got {sorted(metrics)}"
            )
        object.__setattr__(self, "components", components)

    @property
    def sill(self) -> float:
        return sum(component.sill for component in self.components)

    @property
    def nugget(self) -> float:
        return sum(component.nugget for component in self.components)

    @property
    def range_param(self) -> float:
        """Largest range among the components."""
        return max(component.range_param for component in self.components)

    @property
    def distance(self) -> DistanceMetric:
        return self.components[0].distance

    @property
    def bounded(self) -> bool:
        return all(component.bounded for component in self.components)

    @property
    def total_sill(self) -> float:
        return sum(component.total_sill for component in self.components)

    @property
    def has_hole_effect(self) -> bool:
        return any(component.has_hole_effect for component in self.components)

    def lag(self, h: ArrayLike) -> ArrayLike:
        gamma = sum(component.lag(h) for component in self.components)
        if np.ndim(h) == 0:
            return float(gamma)
        return gamma

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CompositeVariogram(n_components={len(self.components)}, "
            f"nugget={self.nugget:.4g}, sill={self.sill:.4g}, "
            f"max_range={self.range_param:.4g})"
        )


# Model registry
VARIOGRAM_MODELS: dict[str, Callable[..., VariogramModel]] = {
    "gaussian": GaussianVariogram,
    "exponential": ExponentialVariogram,
    "spherical": SphericalVariogram,
    "cubic": CubicVariogram,
    "pentaspherical": PentaSphericalVariogram,
    "matern": MaternVariogram,
    "sinehole": SineHoleVariogram,
    "power": PowerVariogram,
}


def variogram_from_name(model_type: str, **params: float) -> VariogramModel:
    """Build a variogram model from its registry name.

    Args:
        model_type: Key of ``VARIOGRAM_MODELS``.
        **params: Model parameters.

    Returns:
        Variogram model instance.
    """
    if model_type not in VARIOGRAM_MODELS:
        raise_parameter_error(
            "model_type", model_type, valid_values=list(VARIOGRAM_MODELS)
        )
    return VARIOGRAM_MODELS[model_type](**params)
