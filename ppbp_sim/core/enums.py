"""Enumerations for PPBP simulation.

This module defines enumerations used throughout the traffic generator.
"""

from enum import Enum


class Protocol(Enum):
    """Enum for the transport protocol used by an application socket.

    Attributes:
        UDP: Connectionless datagram transport, connects immediately.
        TCP: Connection-oriented transport, connects after a handshake.
    """

    UDP = "udp"
    TCP = "tcp"


class AppState(Enum):
    """Enum for the lifecycle states of a PPBP application.

    Attributes:
        STOPPED: Not generating traffic (initial and terminal state).
        STARTING: Start requested, scheduling chain not yet running.
        RUNNING: Burst and transmission schedulers are active.
        STOPPING: Stop requested, pending events being cancelled.
    """

    STOPPED = 1
    STARTING = 2
    RUNNING = 3
    STOPPING = 4


class EventRole(Enum):
    """Enum for the roles of the scheduled events owned by an application.

    Attributes:
        ARRIVAL: Next burst arrival.
        DEPARTURE: Departure of a burst scheduled to arrive.
        CONTINUATION: Next cycle of the burst arrival loop.
        SEND: Next packet send.
        START_STOP: Next application start or stop transition.
    """

    ARRIVAL = 1
    DEPARTURE = 2
    CONTINUATION = 3
    SEND = 4
    START_STOP = 5
