"""Burst population tracking and the burst arrival loop.

This module defines BurstPopulation, which counts the bursts active at the
current time, and BurstLifecycleScheduler, which drives that count with
Poisson burst arrivals and Pareto distributed burst departures.
"""

import logging
from typing import Callable, Optional

from ppbp_sim.core.enums import EventRole
from ppbp_sim.core.events import EventHandle, EventRegistry
from ppbp_sim.traffic.variates import BurstVariates

logger = logging.getLogger(__name__)


class BurstPopulation:
    """Number of active bursts and whether the aggregate is in an off period.

    off_period is True exactly when no burst is active.

    Attributes:
        active_bursts: Number of bursts active at the current time.
        off_period: Whether the aggregate process is idle.
        peak: Largest number of simultaneously active bursts seen.
    """

    def __init__(self) -> None:
        self.active_bursts = 0
        self.off_period = True
        self.peak = 0

    def increment(self) -> bool:
        """Record a burst arrival.

        Returns:
            True if the arrival ended an off period.
        """
        was_off = self.off_period
        self.active_bursts += 1
        self.off_period = False
        self.peak = max(self.peak, self.active_bursts)
        return was_off

    def decrement(self) -> bool:
        """Record a burst departure. The count never drops below zero.

        Returns:
            True if the departure started an off period.
        """
        if self.active_bursts == 0:
            logger.debug("Burst departure with no active bursts ignored")
            return False
        self.active_bursts -= 1
        if self.active_bursts == 0:
            self.off_period = True
            return True
        return False

    def is_active(self) -> bool:
        return self.active_bursts > 0

    def reset(self) -> None:
        self.active_bursts = 0
        self.off_period = True
        self.peak = 0

    def __repr__(self) -> str:
        return f"BurstPopulation(active={self.active_bursts}, off={self.off_period})"


class BurstLifecycleScheduler:
    """Recursive Poisson arrival loop with Pareto burst lengths.

    Each cycle draws an inter-arrival time and a burst duration, then schedules
    the burst arrival, its departure and the next cycle.

    Attributes:
        registry: Event registry the loop's handles are tracked in.
        variates: Source of inter-arrival times and burst durations.
        population: Burst count driven by the loop.
        arrivals: Number of burst arrivals processed since the last start.
        departures: Number of burst departures processed since the last start.
        cycles: Number of cycles run since the last start.
    """

    def __init__(
        self,
        registry: EventRegistry,
        variates: BurstVariates,
        population: BurstPopulation,
        on_off_period_end: Optional[Callable[[], None]] = None,
        on_off_period_start: Optional[Callable[[], None]] = None,
    ) -> None:
        """Initialize the burst loop.

        Args:
            registry: Event registry owned by the application.
            variates: Inter-arrival and duration sampler.
            population: Active burst counter.
            on_off_period_end: Called when an arrival ends an off period.
            on_off_period_start: Called when a departure leaves no burst active.
        """
        self.registry = registry
        self.variates = variates
        self.population = population
        self.on_off_period_end = on_off_period_end
        self.on_off_period_start = on_off_period_start
        self.arrivals = 0
        self.departures = 0
        self.cycles = 0

    def start(self) -> EventHandle:
        """Reset the counters and schedule the first cycle immediately."""
        self.arrivals = 0
        self.departures = 0
        self.cycles = 0
        return self.registry.schedule(EventRole.CONTINUATION, 0.0, self.run_cycle)

    def run_cycle(self) -> None:
        """Schedule the next burst arrival, its departure and the next cycle."""
        interval = self.variates.draw_inter_arrival()
        duration = self.variates.draw_burst_duration()
        self.cycles += 1

        arrival = self.registry.schedule(EventRole.ARRIVAL, interval, self.on_arrival)
        self.registry.schedule(
            EventRole.DEPARTURE, interval + duration, self.on_departure, arrival
        )
        self.registry.schedule(EventRole.CONTINUATION, interval, self.run_cycle)
        logger.debug(
            "Burst %d scheduled: arrival in %.6fs, length %.6fs",
            self.cycles,
            interval,
            duration,
        )

    def on_arrival(self) -> None:
        self.arrivals += 1
        ended_off_period = self.population.increment()
        if ended_off_period and self.on_off_period_end is not None:
            self.on_off_period_end()

    def on_departure(self, arrival: EventHandle) -> None:
        if arrival.cancelled:
            return
        self.departures += 1
        started_off_period = self.population.decrement()
        if started_off_period and self.on_off_period_start is not None:
            self.on_off_period_start()

    def cancel(self) -> int:
        """Cancel the pending arrival, continuation and every pending departure.

        Returns:
            Number of events cancelled.
        """
        return (
            self.registry.cancel(EventRole.ARRIVAL)
            + self.registry.cancel(EventRole.CONTINUATION)
            + self.registry.cancel(EventRole.DEPARTURE)
        )
