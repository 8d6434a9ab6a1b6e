"""Burst inter-arrival and duration sampling.

This module provides BurstVariates, which turns the configured mean burst
arrival rate and mean burst time length into Exponential inter-arrival times
and Pareto burst durations.
"""

from typing import Optional
import numpy as np

from ppbp_sim.traffic.random_variables import (
    ExponentialVariable,
    ParetoVariable,
    RandomVariable,
)


def pareto_shape(hurst: float) -> float:
    """Pareto shape giving a burst process with the requested Hurst parameter.

    Args:
        hurst: Hurst parameter, in (0.5, 1) for long-range dependence.

    Returns:
        Shape parameter alpha = 3 - 2H.
    """
    return 3 - 2 * hurst


def time_slot(shape: float, scale: float) -> float:
    """Time slot (alpha - 1) * scale / alpha of a Pareto burst length."""
    return (shape - 1) * scale / shape


class BurstVariates:
    """Draws burst inter-arrival times and burst durations.

    Attributes:
        burst_arrivals: Variable giving the mean burst arrival rate (bursts/s).
        burst_length: Variable giving the Pareto scale of burst lengths (s).
        shape: Pareto shape of burst lengths.
        rng: Generator used for the Exponential and Pareto draws.
        last_scale: Burst length scale used by the latest duration draw.
    """

    def __init__(
        self,
        burst_arrivals: RandomVariable,
        burst_length: RandomVariable,
        hurst: float,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize the variate sources.

        Args:
            burst_arrivals: Mean burst arrival rate variable.
            burst_length: Mean burst time length variable.
            hurst: Hurst parameter.
            rng: Generator for the Exponential and Pareto draws.

        Raises:
            ValueError: If the derived shape does not exceed 1.
        """
        self.shape = pareto_shape(hurst)
        if self.shape <= 1:
            raise ValueError(
                f"Pareto shape {self.shape} from H={hurst} must exceed 1 for a finite mean"
            )
        self.burst_arrivals = burst_arrivals
        self.burst_length = burst_length
        self.rng = rng if rng is not None else np.random.default_rng()
        self.last_scale: Optional[float] = None

    def draw_inter_arrival(self) -> float:
        """Draw the time until the next burst arrival.

        Returns:
            Exponential sample with mean 1/lambda, strictly positive.
        """
        rate = self.burst_arrivals.sample()
        if rate <= 0:
            raise ValueError(f"Mean burst arrival rate must be positive, got {rate}")
        exp = ExponentialVariable(1 / rate, self.rng)
        interval = exp.sample()
        while interval <= 0:
            interval = exp.sample()
        return interval

    def draw_burst_duration(self) -> float:
        """Draw the length of one burst.

        Returns:
            Pareto sample with the current burst length as scale.
        """
        scale = self.burst_length.sample()
        if scale <= 0:
            raise ValueError(f"Mean burst time length must be positive, got {scale}")
        self.last_scale = scale
        return ParetoVariable(scale, self.shape, self.rng).sample()

    def time_slot(self) -> Optional[float]:
        """Time slot of the latest duration draw, or None before the first."""
        if self.last_scale is None:
            return None
        return time_slot(self.shape, self.last_scale)
