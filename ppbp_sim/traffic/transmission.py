"""Packet send scheduling driven by the active burst count.

This module defines the TransmissionScheduler, which paces packet sends so
that the aggregate rate follows the number of active bursts.
"""

import logging
from typing import Callable, Optional

from ppbp_sim.core.enums import EventRole
from ppbp_sim.core.events import EventHandle, EventRegistry
from ppbp_sim.traffic.bursts import BurstPopulation

logger = logging.getLogger(__name__)


class TransmissionScheduler:
    """Schedules the next packet send from the current burst population.

    Each active burst is a constant bit-rate flow of bit_rate, so with n bursts
    active one packet leaves every (packet_bits / bit_rate) / n seconds.

    Attributes:
        registry: Event registry the send handle is tracked in.
        population: Active burst counter.
        packet_bits: Bits per packet, header overhead included.
        bit_rate: Burst intensity in bits per second.
        send: Callback that emits one packet.
    """

    def __init__(
        self,
        registry: EventRegistry,
        population: BurstPopulation,
        packet_bits: int,
        bit_rate: float,
        send: Callable[[], None],
    ) -> None:
        if packet_bits <= 0:
            raise ValueError(f"Packet bits must be positive, got {packet_bits}")
        if bit_rate <= 0:
            raise ValueError(f"Bit rate must be positive, got {bit_rate}")
        self.registry = registry
        self.population = population
        self.packet_bits = packet_bits
        self.bit_rate = bit_rate
        self.send = send

    def next_interval(self) -> Optional[float]:
        """Time until the next send, or None while no burst is active."""
        active = self.population.active_bursts
        if active == 0:
            return None
        return (self.packet_bits / self.bit_rate) / active

    def schedule_next(self) -> Optional[EventHandle]:
        """(Re)schedule the next send from the current burst count.

        Returns:
            Handle of the scheduled send, or None in an off period.
        """
        self.registry.cancel(EventRole.SEND)
        interval = self.next_interval()
        if interval is None:
            self.population.off_period = True
            return None
        self.population.off_period = False
        return self.registry.schedule(EventRole.SEND, interval, self.send)

    def resume(self) -> None:
        """Restart sending after an off period.

        The rate is derived in a zero-delay pass, so every arrival sharing the
        current timestamp is counted first.
        """
        if self.registry.is_pending(EventRole.SEND):
            return
        logger.debug("Off period ended, resuming transmission")
        self.registry.schedule(EventRole.SEND, 0.0, self.schedule_next)

    def cancel(self) -> int:
        """Cancel the pending send, if any."""
        return self.registry.cancel(EventRole.SEND)
