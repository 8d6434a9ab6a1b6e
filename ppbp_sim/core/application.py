"""PPBP traffic generator application.

This module defines the PPBPApplication class, which generates traffic to a
single destination according to a Poisson Pareto Burst Process.

Bursts arrive as a Poisson process of rate lambda and last a Pareto distributed
time with shape 3 - 2H, H being the Hurst parameter. Each active burst is a
constant bit-rate flow of rate r. By Little's law the mean number of active
bursts is E[n] = lambda * Ton, so the mean offered rate is lambda * Ton * r.
The overlapping bursts form long-range dependent traffic because the burst
lengths have infinite variance for 0.5 < H < 1.
"""

import logging
from typing import Any, Callable, List, Optional
import numpy as np

from ppbp_sim.config import PPBPConfig
from ppbp_sim.core.enums import AppState, EventRole, Protocol
from ppbp_sim.core.events import EventRegistry, EventScheduler
from ppbp_sim.core.packet import Packet
from ppbp_sim.core.transport import Transport
from ppbp_sim.traffic.bursts import BurstLifecycleScheduler, BurstPopulation
from ppbp_sim.traffic.transmission import TransmissionScheduler
from ppbp_sim.traffic.variates import BurstVariates

logger = logging.getLogger(__name__)


class PPBPApplication:
    """Generates PPBP traffic to one destination.

    Attributes:
        scheduler: Event scheduler providing the virtual clock.
        config: Traffic parameters.
        name: Label used in log messages.
        registry: Pending events of this application, by role.
        population: Active burst counter.
        variates: Inter-arrival and burst length sampler.
        lifecycle: Burst arrival loop.
        transmission: Packet send scheduler.
        socket: Transport handle, created on first start.
        state: Current lifecycle state.
        connected: Whether the socket reported a successful connection.
        total_bytes: Payload bytes accepted by the socket since the last start.
        packets_sent: Packets accepted by the socket since the last start.
        packets_refused: Packets the socket did not accept.
        last_send_time: Time of the last send, or of the last start.
    """

    def __init__(
        self,
        scheduler: EventScheduler,
        socket_factory: Callable[[Protocol], Transport],
        config: Optional[PPBPConfig] = None,
        rng: Optional[np.random.Generator] = None,
        name: str = "ppbp",
    ) -> None:
        """Initialize the application.

        Args:
            scheduler: Event scheduler.
            socket_factory: Creates a transport for the configured protocol.
            config: Traffic parameters (default: PPBPConfig()).
            rng: Generator for every random draw of this application.
            name: Label used in log messages.
        """
        self.scheduler = scheduler
        self.socket_factory = socket_factory
        self.config = config if config is not None else PPBPConfig()
        self.name = name
        self.peer = self.config.remote_address

        rng = rng if rng is not None else np.random.default_rng()
        burst_arrivals, burst_length = self.config.build_variables(rng, rng)

        self.registry = EventRegistry(scheduler)
        self.population = BurstPopulation()
        self.variates = BurstVariates(burst_arrivals, burst_length, self.config.hurst, rng)
        self.transmission = TransmissionScheduler(
            self.registry,
            self.population,
            self.config.packet_bits,
            self.config.bit_rate,
            self.send_packet,
        )
        self.lifecycle = BurstLifecycleScheduler(
            self.registry,
            self.variates,
            self.population,
            on_off_period_end=self.transmission.resume,
            on_off_period_start=self.transmission.cancel,
        )

        self.socket: Optional[Transport] = None
        self.state = AppState.STOPPED
        self.connected = False
        self.total_bytes = 0
        self.packets_sent = 0
        self.packets_refused = 0
        self.last_send_time = 0.0
        self._tx_listeners: List[Callable[[Packet], Any]] = []
        self._accept_listeners: List[Callable[[Packet], Any]] = []

    def add_tx_listener(self, callback: Callable[[Packet], Any]) -> None:
        """Register a callback invoked with every packet the application sends.

        Listeners run before the packet is handed to the socket, so packets
        the socket then refuses are reported too.
        """
        self._tx_listeners.append(callback)

    def add_accept_listener(self, callback: Callable[[Packet], Any]) -> None:
        """Register a callback invoked with every packet the socket accepts."""
        self._accept_listeners.append(callback)

    def get_total_bytes(self) -> int:
        return self.total_bytes

    @property
    def shape(self) -> float:
        return self.variates.shape

    @property
    def time_slot(self) -> Optional[float]:
        return self.variates.time_slot()

    @property
    def active_bursts(self) -> int:
        return self.population.active_bursts

    @property
    def off_period(self) -> bool:
        return self.population.off_period

    def start(self) -> None:
        """Start generating traffic at the current time.

        Creates the socket on the first call and reconnects it if a previous
        stop closed it. Any pending event is cancelled first.
        """
        logger.info("%s starting at %.6fs", self.name, self.scheduler.now)
        self.state = AppState.STARTING
        if self.socket is None:
            self.socket = self.socket_factory(self.config.protocol)
            self.socket.set_connect_callback(
                self.connection_succeeded, self.connection_failed
            )
            self.socket.bind()
            self.socket.connect(self.peer)
        elif self.socket.is_closed:
            self.socket.bind()
            self.socket.connect(self.peer)

        self.total_bytes = 0
        self.packets_sent = 0
        self.packets_refused = 0
        self.cancel_events()
        self._schedule_start_event()

    def stop(self) -> None:
        """Stop generating traffic and close the socket. Safe to call repeatedly."""
        self.state = AppState.STOPPING
        cancelled = self.cancel_events()
        if self.socket is None:
            logger.warning("%s found no socket to close on stop", self.name)
        elif self.socket.is_closed:
            logger.warning("%s socket already closed on stop", self.name)
        else:
            self.socket.close()
        self.connected = False
        self.state = AppState.STOPPED
        logger.info(
            "%s stopped at %.6fs (%d events cancelled, %d bytes sent)",
            self.name,
            self.scheduler.now,
            cancelled,
            self.total_bytes,
        )

    def dispose(self) -> None:
        """Stop if needed and drop the socket so the next start creates a new one."""
        if self.state is not AppState.STOPPED:
            self.stop()
        self.socket = None

    def cancel_events(self) -> int:
        """Cancel every pending event of the application.

        Returns:
            Number of events cancelled.
        """
        return self.registry.cancel_all()

    def _schedule_start_event(self) -> None:
        self.population.reset()
        self.lifecycle.start()
        self.registry.schedule(EventRole.START_STOP, 0.0, self.start_sending)

    def start_sending(self) -> None:
        self.state = AppState.RUNNING
        self.last_send_time = self.scheduler.now
        self.transmission.schedule_next()

    def send_packet(self) -> None:
        """Emit one packet and schedule the next send."""
        packet = Packet(
            self.socket.local,
            self.peer,
            self.config.packet_size,
            creation_time=self.scheduler.now,
        )
        for callback in self._tx_listeners:
            callback(packet)

        if self.socket.send(packet):
            self.total_bytes += packet.size
            self.packets_sent += 1
            for callback in self._accept_listeners:
                callback(packet)
        else:
            self.packets_refused += 1
            logger.debug("%s socket refused packet %d", self.name, packet.id)
        self.last_send_time = self.scheduler.now
        self.transmission.schedule_next()

    def connection_succeeded(self, socket: Transport) -> None:
        """Restart the scheduling chain once the socket is connected."""
        self.connected = True
        if self.state in (AppState.STOPPED, AppState.STOPPING):
            return
        logger.debug("%s connected, restarting burst process", self.name)
        self.cancel_events()
        self._schedule_start_event()

    def connection_failed(self, socket: Transport) -> None:
        """Report a failed connection. There is no retry."""
        self.connected = False
        logger.error("%s connection to %s failed", self.name, socket)

    def __repr__(self) -> str:
        return (
            f"PPBPApplication({self.name}, {self.state.name}, "
            f"active={self.active_bursts}, bytes={self.total_bytes})"
        )
