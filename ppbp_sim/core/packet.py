"""Packet class for PPBP simulation.

This module defines the Packet class, which represents a packet emitted by a
traffic generator and delivered to a sink.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Tuple

Address = Tuple[str, int]


@dataclass
class Packet:
    """Represents a generated packet.

    Attributes:
        source: Address of the sending socket.
        destination: Address of the receiving sink.
        size: Size of packet payload in bytes.
        creation_time: Time when packet was created.
        id: Unique identifier for the packet.
        arrival_time: Time when packet arrived at the sink.
        flow_id: Identifier for the flow (source-destination pair).
    """

    source: Optional[Address]
    destination: Optional[Address]
    size: int
    creation_time: float = 0
    id: int = field(init=False)
    arrival_time: Optional[float] = None
    flow_id: str = field(init=False)

    _id_counter: ClassVar[int] = 0

    def __post_init__(self):
        """Initialize derived attributes after initialization."""
        type(self)._id_counter += 1
        self.id = type(self)._id_counter
        self.flow_id = f"{format_address(self.source)}-{format_address(self.destination)}"

    def get_total_delay(self) -> Optional[float]:
        """Calculate total delay if packet has arrived.

        Returns:
            Total delay in seconds or None if packet hasn't arrived.
        """
        if self.arrival_time is None:
            return None
        return self.arrival_time - self.creation_time


def format_address(address: Optional[Address]) -> str:
    if address is None:
        return "?"
    host, port = address
    return f"{host}:{port}"


def parse_address(value: str) -> Address:
    """Parse a "host:port" string.

    Args:
        value: Address string, e.g. "10.1.1.2:9".

    Returns:
        Tuple of host and port.

    Raises:
        ValueError: If the string has no port or the port is not a valid number.
    """
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Address {value!r} must have the form host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"Port out of range in address {value!r}")
    return host, port_number
