"""
Configuration management using dataclasses.
Provides validated PPBP and simulation settings with YAML serialization.
"""

import numbers
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

from ppbp_sim.core.enums import Protocol
from ppbp_sim.core.packet import Address, parse_address
from ppbp_sim.traffic.random_variables import (
    RandomVariable,
    RandomVariableSpec,
    make_random_variable,
)


class ConfigurationError(ValueError):
    """Raised when a configuration value is invalid."""


_RATE_UNITS = {
    "": 1.0,
    "k": 1e3,
    "m": 1e6,
    "g": 1e9,
    "ki": 1024.0,
    "mi": 1024.0**2,
    "gi": 1024.0**3,
}
_RATE_PATTERN = re.compile(
    r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([kKmMgG]i?)?\s*(b/s|bps|B/s|Bps)?\s*$"
)


def parse_data_rate(value: Union[str, float, int]) -> float:
    """Convert a data rate to bits per second.

    Accepts plain numbers (bit/s) and strings such as "1Mb/s", "100Mbps",
    "500kb/s" or "2MB/s" (bytes per second).

    Args:
        value: Rate to convert.

    Returns:
        Rate in bits per second.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid data rate: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    match = _RATE_PATTERN.match(value)
    if match is None:
        raise ConfigurationError(f"Invalid data rate: {value!r}")
    number, prefix, unit = match.groups()
    prefix = (prefix or "").lower()
    rate = float(number) * _RATE_UNITS[prefix]
    if unit in ("B/s", "Bps"):
        rate *= 8
    return rate


@dataclass
class PPBPConfig:
    """Traffic parameters of one PPBP application.

    Rate and length variables must have a positive lower bound, so a
    variable that can draw zero or less is rejected here rather than mid-run.
    """
    burst_intensity: Union[str, float] = "1Mb/s"  # per-burst bit rate
    packet_size: int = 1470  # bytes
    mean_burst_arrivals: RandomVariableSpec = "constant:20.0"  # bursts/s
    mean_burst_time_length: RandomVariableSpec = "constant:0.2"  # s
    hurst: float = 0.7
    remote: str = "10.1.1.2:9"
    protocol: Union[str, Protocol] = Protocol.UDP
    header_overhead: int = 30  # bytes added per packet when pacing

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check every field, raising ConfigurationError on the first bad one."""
        for name in ("hurst", "packet_size", "header_overhead"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        if not 0.5 < self.hurst < 1.0:
            raise ConfigurationError(
                f"Hurst parameter must lie in (0.5, 1), got {self.hurst}"
            )
        if not float(self.packet_size).is_integer():
            raise ConfigurationError(f"Packet size must be an integer, got {self.packet_size!r}")
        if self.packet_size < 1:
            raise ConfigurationError(f"Packet size must be at least 1 byte, got {self.packet_size}")
        if self.header_overhead < 0:
            raise ConfigurationError(
                f"Header overhead must be non-negative, got {self.header_overhead}"
            )
        if self.bit_rate <= 0:
            raise ConfigurationError(
                f"Burst intensity must be positive, got {self.burst_intensity!r}"
            )
        try:
            parse_address(self.remote)
        except ValueError as e:
            raise ConfigurationError(str(e)) from None
        self.protocol = self._parse_protocol(self.protocol)
        for name in ("mean_burst_arrivals", "mean_burst_time_length"):
            try:
                variable = make_random_variable(getattr(self, name))
            except ValueError as e:
                raise ConfigurationError(f"{name}: {e}") from None
            if variable.lower_bound <= 0:
                raise ConfigurationError(
                    f"{name} must be positive, but {variable!r} can draw {variable.lower_bound}"
                )

    @staticmethod
    def _parse_protocol(value: Union[str, Protocol]) -> Protocol:
        if isinstance(value, Protocol):
            return value
        try:
            return Protocol(str(value).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown protocol: {value!r}") from None

    @property
    def bit_rate(self) -> float:
        """Burst intensity in bits per second."""
        return parse_data_rate(self.burst_intensity)

    @property
    def shape(self) -> float:
        """Pareto shape derived from the Hurst parameter."""
        return 3 - 2 * self.hurst

    @property
    def packet_bits(self) -> int:
        return (self.packet_size + self.header_overhead) * 8

    @property
    def remote_address(self) -> Address:
        return parse_address(self.remote)

    def build_variables(self, arrivals_rng=None, length_rng=None):
        """Instantiate the arrival-rate and burst-length variables.

        Returns:
            Tuple of (mean_burst_arrivals, mean_burst_time_length) variables.
        """
        arrivals: RandomVariable = make_random_variable(self.mean_burst_arrivals, arrivals_rng)
        length: RandomVariable = make_random_variable(self.mean_burst_time_length, length_rng)
        return arrivals, length

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["protocol"] = self.protocol.value
        for name in ("mean_burst_arrivals", "mean_burst_time_length"):
            if isinstance(data[name], RandomVariable):
                data[name] = data[name].to_spec()
        return data


@dataclass
class SimulationConfig:
    """Host simulation settings."""
    duration: float = 5.0  # seconds
    start_time: float = 0.0
    stop_time: Optional[float] = None  # defaults to duration
    seed: Optional[int] = 42
    sample_interval: float = 0.01  # active burst sampling period
    propagation_delay: float = 6.56e-6  # seconds
    tcp_handshake_rtts: float = 1.5
    output_dir: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if self.duration <= 0:
            raise ConfigurationError(f"Duration must be positive, got {self.duration}")
        if self.start_time < 0:
            raise ConfigurationError(f"Start time must be non-negative, got {self.start_time}")
        if self.stop_time is not None and self.stop_time < self.start_time:
            raise ConfigurationError("Stop time must not precede start time")
        if self.sample_interval <= 0:
            raise ConfigurationError("Sample interval must be positive")
        if self.propagation_delay < 0:
            raise ConfigurationError("Propagation delay must be non-negative")

    @property
    def effective_stop_time(self) -> float:
        return self.duration if self.stop_time is None else self.stop_time


@dataclass
class Config:
    """Main configuration container."""
    experiment_name: str = "ppbp"
    ppbp: PPBPConfig = field(default_factory=PPBPConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "experiment_name": self.experiment_name,
            "ppbp": self.ppbp.to_dict(),
            "simulation": asdict(self.simulation),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        data = dict(data)
        try:
            if "ppbp" in data:
                data["ppbp"] = PPBPConfig(**(data["ppbp"] or {}))
            if "simulation" in data:
                data["simulation"] = SimulationConfig(**(data["simulation"] or {}))
            return cls(**data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from None


def load_config(path: str) -> Config:
    """Load configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return Config.from_dict(data) if data else Config()


def save_config(config: Config, path: str) -> None:
    """Save configuration to YAML file."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
