"""
Poisson Pareto Burst Process traffic generation

Synthesizes self-similar packet traffic from overlapping constant bit-rate
bursts with Poisson arrivals and Pareto distributed lengths.

Modules:
    config: Configuration management
    core: Event scheduling, transport, application and simulator
    traffic: Random variables and burst/transmission scheduling
    utils: Logging, metrics, random streams and visualization
"""

__version__ = "0.1.0"

from .config import Config, ConfigurationError, PPBPConfig, SimulationConfig, load_config, save_config
from .core.application import PPBPApplication
from .core.simulator import PPBPSimulator

__all__ = [
    "Config",
    "ConfigurationError",
    "PPBPConfig",
    "SimulationConfig",
    "load_config",
    "save_config",
    "PPBPApplication",
    "PPBPSimulator",
]
