"""Simulated transport for PPBP simulation.

This module defines the Transport interface a traffic generator sends through,
and a minimal simulated implementation: sockets that deliver packets to sinks
after a fixed propagation delay. There is no queuing or contention.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ppbp_sim.core.enums import Protocol
from ppbp_sim.core.events import EventHandle, EventScheduler
from ppbp_sim.core.packet import Address, Packet, format_address

logger = logging.getLogger(__name__)

ConnectCallback = Callable[["Transport"], None]


class Transport(ABC):
    """Abstract base class for the socket a traffic generator owns."""

    local: Optional[Address] = None

    @abstractmethod
    def bind(self, address: Optional[Address] = None) -> None:
        """
        Bind the socket to a local address

        Args:
            address: Local address, or None for an ephemeral one
        """
        pass

    @abstractmethod
    def connect(self, address: Address) -> None:
        """
        Connect the socket to a remote address

        The outcome is reported asynchronously through the connect callbacks.

        Args:
            address: Remote address
        """
        pass

    @abstractmethod
    def send(self, packet: Packet) -> bool:
        """
        Send a packet to the connected peer

        Args:
            packet: Packet to send

        Returns:
            True if the packet was accepted for delivery
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the socket"""
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        pass

    def set_connect_callback(
        self,
        succeeded: Optional[ConnectCallback],
        failed: Optional[ConnectCallback],
    ) -> None:
        """
        Register the connect outcome callbacks

        Args:
            succeeded: Called once the connection is established
            failed: Called if the connection cannot be established
        """
        self._connect_succeeded = succeeded
        self._connect_failed = failed


class PacketSink:
    """Receiving endpoint that records every delivered packet.

    Attributes:
        scheduler: Event scheduler providing the clock.
        address: Address the sink is bound to.
        received: Packets received, in arrival order.
        bytes_received: Total payload bytes received.
    """

    def __init__(self, scheduler: EventScheduler, address: Address) -> None:
        self.scheduler = scheduler
        self.address = address
        self.received: List[Packet] = []
        self.bytes_received = 0
        self._listeners: List[Callable[[Packet], Any]] = []

    def add_receive_listener(self, callback: Callable[[Packet], Any]) -> None:
        self._listeners.append(callback)

    def receive(self, packet: Packet) -> None:
        """Handle delivery of a packet.

        Args:
            packet: The packet that arrived.
        """
        packet.arrival_time = self.scheduler.now
        self.received.append(packet)
        self.bytes_received += packet.size
        for callback in self._listeners:
            callback(packet)

    def __repr__(self) -> str:
        return f"PacketSink({format_address(self.address)}, {len(self.received)} packets)"


class SimNetwork:
    """Delivers packets between simulated sockets and sinks.

    Attributes:
        scheduler: Event scheduler used for delivery and handshakes.
        propagation_delay: One-way delay in seconds.
        tcp_handshake_rtts: Round trips before a TCP connection is reported.
        sinks: Sinks keyed by address.
    """

    def __init__(
        self,
        scheduler: EventScheduler,
        propagation_delay: float = 0.0,
        tcp_handshake_rtts: float = 1.5,
    ) -> None:
        if propagation_delay < 0:
            raise ValueError("Propagation delay must be non-negative")
        self.scheduler = scheduler
        self.propagation_delay = propagation_delay
        self.tcp_handshake_rtts = tcp_handshake_rtts
        self.sinks: Dict[Address, PacketSink] = {}
        self._next_port = 49153

    def add_sink(self, address: Address) -> PacketSink:
        """Bind a new sink to an address.

        Args:
            address: Address to listen on.

        Returns:
            The created PacketSink.
        """
        if address in self.sinks:
            raise ValueError(f"Address {format_address(address)} is already bound")
        sink = PacketSink(self.scheduler, address)
        self.sinks[address] = sink
        return sink

    def create_socket(self, protocol: Protocol, host: str = "10.1.1.1") -> "SimSocket":
        return SimSocket(self, protocol, host)

    def allocate_port(self) -> int:
        port = self._next_port
        self._next_port += 1
        return port

    def connect_delay(self, protocol: Protocol) -> float:
        if protocol is Protocol.TCP:
            return self.tcp_handshake_rtts * 2 * self.propagation_delay
        return 0.0

    def deliver(self, packet: Packet) -> bool:
        sink = self.sinks.get(packet.destination)
        if sink is None:
            return False
        self.scheduler.schedule_after(self.propagation_delay, sink.receive, packet)
        return True


class SimSocket(Transport):
    """Socket on a SimNetwork.

    UDP sockets may send as soon as connect() finds a sink at the peer
    address. TCP sockets may send only after the handshake completes.
    """

    def __init__(self, network: SimNetwork, protocol: Protocol, host: str) -> None:
        self.network = network
        self.protocol = protocol
        self.host = host
        self.local: Optional[Address] = None
        self.peer: Optional[Address] = None
        self.connected = False
        self.close_count = 0
        self._closed = False
        self._connect_event: Optional[EventHandle] = None
        self._connect_succeeded: Optional[ConnectCallback] = None
        self._connect_failed: Optional[ConnectCallback] = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def bind(self, address: Optional[Address] = None) -> None:
        if address is None:
            address = (self.host, self.network.allocate_port())
        self.local = address
        self._closed = False

    def connect(self, address: Address) -> None:
        if self.local is None:
            self.bind()
        self._closed = False
        self.peer = address
        self.connected = False
        reachable = address in self.network.sinks
        if reachable and self.protocol is Protocol.UDP:
            self.connected = True
        self.network.scheduler.cancel(self._connect_event)
        self._connect_event = self.network.scheduler.schedule_after(
            self.network.connect_delay(self.protocol),
            self._complete_connect,
            reachable,
        )

    def _complete_connect(self, reachable: bool) -> None:
        if reachable:
            self.connected = True
            logger.debug(
                "%s socket %s connected to %s",
                self.protocol.name,
                format_address(self.local),
                format_address(self.peer),
            )
            if self._connect_succeeded is not None:
                self._connect_succeeded(self)
        else:
            self.connected = False
            if self._connect_failed is not None:
                self._connect_failed(self)

    def send(self, packet: Packet) -> bool:
        if self._closed or not self.connected:
            return False
        packet.source = self.local
        packet.destination = self.peer
        return self.network.deliver(packet)

    def close(self) -> None:
        self.network.scheduler.cancel(self._connect_event)
        self._connect_event = None
        self.connected = False
        self._closed = True
        self.close_count += 1

    def __repr__(self) -> str:
        return (
            f"SimSocket({self.protocol.name}, {format_address(self.local)}"
            f"->{format_address(self.peer)})"
        )
