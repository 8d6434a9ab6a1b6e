"""PPBP simulator class for traffic generation experiments.

This module defines the PPBPSimulator class, which hosts PPBP applications and
packet sinks on a SimPy environment, starts and stops the applications at
their configured times, and collects traffic metrics.
"""

import logging
import simpy
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ppbp_sim.config import Config, PPBPConfig
from ppbp_sim.core.application import PPBPApplication
from ppbp_sim.core.events import EventHandle, EventScheduler
from ppbp_sim.core.packet import Address, Packet, parse_address
from ppbp_sim.core.transport import PacketSink, SimNetwork
from ppbp_sim.traffic.variates import time_slot
from ppbp_sim.utils.metrics import (
    bin_counts,
    estimate_hurst_aggregated_variance,
    littles_law_active_bursts,
    pareto_mean,
    time_average,
)
from ppbp_sim.utils.rng import RandomStreams

logger = logging.getLogger(__name__)


class PPBPSimulator:
    """Simulation environment for PPBP traffic generators.

    Attributes:
        env: SimPy environment.
        scheduler: Event scheduler on top of env.
        network: Delivers packets from application sockets to sinks.
        streams: Source of independent random generators.
        applications: Applications keyed by name.
        sinks: Packet sinks keyed by address.
        sent_packets: (send time, packet) pairs per application, for packets
            the socket accepted.
        active_burst_history: (time, active bursts) samples per application.
        schedule: Start and stop times per application.
        metrics: Performance metrics for the simulation.
    """

    def __init__(
        self,
        env: simpy.Environment,
        seed: Optional[int] = 42,
        propagation_delay: float = 0.0,
        tcp_handshake_rtts: float = 1.5,
        sample_interval: float = 0.01,
    ):
        """Initialize the simulator.

        Args:
            env: SimPy environment.
            seed: Random seed for reproducibility.
            propagation_delay: One-way delay between sockets and sinks.
            tcp_handshake_rtts: Round trips before a TCP connect completes.
            sample_interval: Period at which active bursts are sampled.
        """
        if sample_interval <= 0:
            raise ValueError("Sample interval must be positive")
        self.env = env
        self.scheduler = EventScheduler(env)
        self.network = SimNetwork(self.scheduler, propagation_delay, tcp_handshake_rtts)
        self.streams = RandomStreams(seed)
        self.sample_interval = sample_interval
        self.applications: Dict[str, PPBPApplication] = {}
        self.sinks: Dict[Address, PacketSink] = {}
        self.sent_packets: Dict[str, List[Tuple[float, Packet]]] = defaultdict(list)
        self.active_burst_history: Dict[str, List[Tuple[float, int]]] = defaultdict(list)
        self.schedule: Dict[str, Tuple[float, Optional[float]]] = {}
        self._host_events: List[EventHandle] = []
        self.metrics: Dict[str, Any] = {}

        self.hooks: Dict[str, List[Callable[..., Any]]] = {
            "packet_sent": [],  # application emits a packet, before the socket send
            "packet_received": [],  # packet reaches a sink
            "sim_end": [],  # the simulation ends
        }

        self.env.process(self._sample_active_bursts())

    @classmethod
    def from_config(cls, config: Config) -> "PPBPSimulator":
        """Build a two-node scenario: one application sending to one sink.

        Args:
            config: Full configuration.

        Returns:
            Simulator with the sink and application installed.
        """
        sim_config = config.simulation
        simulator = cls(
            simpy.Environment(),
            seed=sim_config.seed,
            propagation_delay=sim_config.propagation_delay,
            tcp_handshake_rtts=sim_config.tcp_handshake_rtts,
            sample_interval=sim_config.sample_interval,
        )
        simulator.add_sink(config.ppbp.remote)
        simulator.add_application(
            config.ppbp,
            name=config.experiment_name,
            start_time=sim_config.start_time,
            stop_time=sim_config.effective_stop_time,
        )
        return simulator

    def add_sink(self, address: Union[str, Address]) -> PacketSink:
        """Add a packet sink.

        Args:
            address: Address to listen on, as "host:port" or a tuple.

        Returns:
            The created PacketSink.
        """
        if isinstance(address, str):
            address = parse_address(address)
        sink = self.network.add_sink(address)
        sink.add_receive_listener(
            lambda packet: self.call_hooks("packet_received", packet, sink, self.env.now)
        )
        self.sinks[address] = sink
        return sink

    def add_application(
        self,
        config: PPBPConfig,
        name: Optional[str] = None,
        host: str = "10.1.1.1",
        start_time: float = 0.0,
        stop_time: Optional[float] = None,
    ) -> PPBPApplication:
        """Add a PPBP application and schedule its start and stop.

        Args:
            config: Traffic parameters.
            name: Unique name (default: "ppbp-<index>").
            host: Local host address of the application's socket.
            start_time: Simulated time at which the application starts.
            stop_time: Simulated time at which it stops (default: never).

        Returns:
            The created PPBPApplication.
        """
        if name is None:
            name = f"ppbp-{len(self.applications)}"
        if name in self.applications:
            raise ValueError(f"Application {name} already exists")
        if start_time < self.env.now:
            raise ValueError("Start time must not be in the past")
        if stop_time is not None and stop_time < start_time:
            raise ValueError("Stop time must not precede start time")

        application = PPBPApplication(
            self.scheduler,
            lambda protocol: self.network.create_socket(protocol, host),
            config,
            rng=self.streams.stream(),
            name=name,
        )

        def trace(packet: Packet) -> None:
            self.call_hooks("packet_sent", packet, application, self.env.now)

        def record(packet: Packet) -> None:
            self.sent_packets[name].append((self.env.now, packet))

        application.add_tx_listener(trace)
        application.add_accept_listener(record)
        self.applications[name] = application
        self.schedule[name] = (start_time, stop_time)

        self._host_events.append(
            self.scheduler.schedule_after(start_time - self.env.now, application.start)
        )
        if stop_time is not None:
            self._host_events.append(
                self.scheduler.schedule_after(stop_time - self.env.now, application.stop)
            )
        return application

    def _sample_active_bursts(self):
        while True:
            for name, application in self.applications.items():
                self.active_burst_history[name].append(
                    (self.env.now, application.active_bursts)
                )
            yield self.env.timeout(self.sample_interval)

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback function for a specific event type.

        Args:
            event_type: The type of event to register for.
            callback: The function to call when the event occurs.
        """
        if event_type not in self.hooks:
            raise ValueError(f"Unknown hook type: {event_type}")
        self.hooks[event_type].append(callback)

    def call_hooks(self, event_type: str, *args: Any, **kwargs: Any) -> None:
        """Call all registered callbacks for the given event type.

        Args:
            event_type: The type of event that occurred.
            *args, **kwargs: Arguments to pass to the callback functions.
        """
        if event_type in self.hooks:
            for callback in self.hooks[event_type]:
                callback(*args, **kwargs)

    def calculate_metrics(
        self, end_time: Optional[float] = None, bin_width: float = 0.01
    ) -> Dict[str, Any]:
        """Calculate traffic metrics for every application.

        Args:
            end_time: End of the measurement window (defaults to current time).
            bin_width: Bin width for the Hurst estimate, in seconds.

        Returns:
            Dictionary of metrics keyed by application name, plus totals.
        """
        if end_time is None:
            end_time = self.env.now

        per_application: Dict[str, Dict[str, Any]] = {}
        for name, application in self.applications.items():
            start, stop = self.schedule[name]
            window_end = end_time if stop is None else min(stop, end_time)
            active_time = max(window_end - start, 0.0)
            config = application.config

            arrivals = application.variates.burst_arrivals.mean
            length = application.variates.burst_length.mean
            shape = application.shape
            offered = application.total_bytes * 8 / active_time if active_time > 0 else 0.0

            history = [
                (t, n) for t, n in self.active_burst_history[name] if start <= t <= window_end
            ]
            send_times = [t for t, _ in self.sent_packets[name]]
            counts = bin_counts(send_times, bin_width, start, window_end) if active_time > 0 else []

            per_application[name] = {
                "packets_sent": application.packets_sent,
                "packets_refused": application.packets_refused,
                "bytes_sent": application.total_bytes,
                "offered_throughput": offered,
                "mean_active_bursts": time_average(history, window_end),
                "peak_active_bursts": max((n for _, n in history), default=0),
                "burst_arrivals": application.lifecycle.arrivals,
                "burst_departures": application.lifecycle.departures,
                "shape": shape,
                "time_slot": time_slot(shape, length),
                "littles_law_active_bursts": littles_law_active_bursts(arrivals, length),
                "expected_active_bursts": littles_law_active_bursts(
                    arrivals, pareto_mean(length, shape)
                ),
                "expected_throughput": littles_law_active_bursts(arrivals, length)
                * config.bit_rate,
                "hurst_target": config.hurst,
                "hurst_estimate": estimate_hurst_aggregated_variance(counts),
            }

        self.metrics = {
            "applications": per_application,
            "packets_received": sum(len(s.received) for s in self.sinks.values()),
            "bytes_received": sum(s.bytes_received for s in self.sinks.values()),
            "simulation_time": end_time,
        }
        return self.metrics

    def run(self, duration: float, updates: bool = False) -> Dict[str, Any]:
        """Run the simulation for a specified duration.

        Args:
            duration: Simulation duration in seconds.
            updates: Whether to print progress.

        Returns:
            Dictionary of calculated metrics.
        """
        if updates:
            count = 10
            interval = duration / count

            def update():
                counter = 0
                while True:
                    yield self.env.timeout(interval)
                    counter += 1
                    progress = counter / count * 100
                    print(f"Progress: {progress:.2f}%", end="\r")

            self.env.process(update())

        logger.info("Running simulation for %.3fs", duration)
        self.env.run(until=self.env.now + duration)

        self.calculate_metrics()

        self.call_hooks("sim_end", self.metrics)

        return self.metrics
