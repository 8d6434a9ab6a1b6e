"""Random variables for traffic generation.

This module provides the random variables a PPBP application is configured
with, such as the mean burst arrival rate and the mean burst time length.
Each variable exposes sample() and draws from its own numpy Generator.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union
import numpy as np

RandomVariableSpec = Union["RandomVariable", str, float, int, Mapping[str, Any]]


class RandomVariable(ABC):
    """Abstract base class for random variables."""

    name = "base"

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """
        Initialize the random variable

        Args:
            rng: numpy Generator to draw from (default: a fresh unseeded one)
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def sample(self) -> float:
        """Draw one value."""
        pass

    @property
    @abstractmethod
    def mean(self) -> float:
        """Expected value of the distribution."""
        pass

    @property
    @abstractmethod
    def lower_bound(self) -> float:
        """Infimum of the values sample() can return."""
        pass

    @abstractmethod
    def params(self) -> Dict[str, float]:
        pass

    def to_spec(self) -> Dict[str, Any]:
        """Serialize to a dict accepted by make_random_variable."""
        return {"type": self.name, **self.params()}

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in self.params().items())
        return f"{type(self).__name__}({args})"


class ConstantVariable(RandomVariable):
    """Always returns the same value."""

    name = "constant"

    def __init__(self, value: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.value = float(value)

    def sample(self) -> float:
        return self.value

    @property
    def mean(self) -> float:
        return self.value

    @property
    def lower_bound(self) -> float:
        return self.value

    def params(self) -> Dict[str, float]:
        return {"value": self.value}


class UniformVariable(RandomVariable):
    """Uniform distribution on [low, high)."""

    name = "uniform"

    def __init__(self, low: float, high: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        if high < low:
            raise ValueError(f"Uniform bounds are reversed: low={low}, high={high}")
        self.low = float(low)
        self.high = float(high)

    def sample(self) -> float:
        return float(self.rng.uniform(self.low, self.high))

    @property
    def mean(self) -> float:
        return (self.low + self.high) / 2

    @property
    def lower_bound(self) -> float:
        return self.low

    def params(self) -> Dict[str, float]:
        return {"low": self.low, "high": self.high}


class ExponentialVariable(RandomVariable):
    """Exponential distribution with the given mean."""

    name = "exponential"

    def __init__(self, mean: float, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        if mean <= 0:
            raise ValueError(f"Exponential mean must be positive, got {mean}")
        self._mean = float(mean)

    def sample(self) -> float:
        return float(self.rng.exponential(self._mean))

    @property
    def mean(self) -> float:
        return self._mean

    @property
    def lower_bound(self) -> float:
        return 0.0

    def params(self) -> Dict[str, float]:
        return {"mean": self._mean}


class ParetoVariable(RandomVariable):
    """Pareto (type I) distribution with support [scale, inf).

    The mean is finite only for shape > 1 and the variance only for shape > 2.
    """

    name = "pareto"

    def __init__(
        self, scale: float, shape: float, rng: Optional[np.random.Generator] = None
    ):
        super().__init__(rng)
        if scale <= 0:
            raise ValueError(f"Pareto scale must be positive, got {scale}")
        if shape <= 0:
            raise ValueError(f"Pareto shape must be positive, got {shape}")
        self.scale = float(scale)
        self.shape = float(shape)

    def sample(self) -> float:
        # numpy draws the Lomax (Pareto II) form, shifted by one here.
        return float((self.rng.pareto(self.shape) + 1.0) * self.scale)

    @property
    def mean(self) -> float:
        if self.shape <= 1:
            return float("inf")
        return self.shape * self.scale / (self.shape - 1)

    @property
    def lower_bound(self) -> float:
        return self.scale

    def params(self) -> Dict[str, float]:
        return {"scale": self.scale, "shape": self.shape}


VARIABLE_TYPES = {
    cls.name: cls
    for cls in (ConstantVariable, UniformVariable, ExponentialVariable, ParetoVariable)
}

# Parameter used when a spec string carries a single unnamed value.
_DEFAULT_PARAM = {"constant": "value", "exponential": "mean"}


def parse_variable_spec(spec: str) -> Dict[str, Any]:
    """Parse a textual random variable description.

    Accepted forms are "20", "constant:20", "exponential:0.05" and
    "uniform:low=10,high=30".

    Args:
        spec: Text description.

    Returns:
        Dictionary with a "type" key and the distribution parameters.
    """
    text = spec.strip()
    name, sep, rest = text.partition(":")
    if not sep:
        try:
            return {"type": "constant", "value": float(text)}
        except ValueError:
            raise ValueError(f"Cannot parse random variable {spec!r}") from None

    name = name.strip().lower()
    if name not in VARIABLE_TYPES:
        raise ValueError(f"Unknown random variable type: {name}")

    params: Dict[str, Any] = {"type": name}
    for item in filter(None, (part.strip() for part in rest.split(","))):
        key, eq, value = item.partition("=")
        if not eq:
            if name not in _DEFAULT_PARAM:
                raise ValueError(f"{name} needs named parameters, got {spec!r}")
            key, value = _DEFAULT_PARAM[name], item
        try:
            params[key.strip()] = float(value)
        except ValueError:
            raise ValueError(f"Invalid value for {key.strip()!r} in {spec!r}") from None
    return params


def make_random_variable(
    spec: RandomVariableSpec, rng: Optional[np.random.Generator] = None
) -> RandomVariable:
    """Build a random variable from a number, string, mapping or instance.

    Args:
        spec: Variable description. Instances are returned unchanged.
        rng: Generator to attach to newly built variables.

    Returns:
        The random variable.
    """
    if isinstance(spec, RandomVariable):
        return spec
    if isinstance(spec, bool):
        raise ValueError(f"Cannot build a random variable from {spec!r}")
    if isinstance(spec, (int, float)):
        return ConstantVariable(spec, rng)
    if isinstance(spec, str):
        spec = parse_variable_spec(spec)
    if not isinstance(spec, Mapping):
        raise ValueError(f"Cannot build a random variable from {spec!r}")

    params = dict(spec)
    name = str(params.pop("type", "constant")).lower()
    if name not in VARIABLE_TYPES:
        raise ValueError(f"Unknown random variable type: {name}")
    try:
        return VARIABLE_TYPES[name](rng=rng, **params)
    except TypeError as e:
        raise ValueError(f"Invalid parameters for {name} variable: {e}") from None
