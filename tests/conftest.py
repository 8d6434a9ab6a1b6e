import numpy as np
import pytest
import simpy

from ppbp_sim.config import PPBPConfig
from ppbp_sim.core.application import PPBPApplication
from ppbp_sim.core.events import EventRegistry, EventScheduler
from ppbp_sim.core.transport import SimNetwork


class ScriptedVariates:
    """Returns preset inter-arrival times and durations, then waits forever."""

    def __init__(self, intervals, durations):
        self.intervals = list(intervals)
        self.durations = list(durations)

    def draw_inter_arrival(self):
        return self.intervals.pop(0) if self.intervals else 1e9

    def draw_burst_duration(self):
        return self.durations.pop(0) if self.durations else 1e9


@pytest.fixture
def env():
    return simpy.Environment()


@pytest.fixture
def scheduler(env):
    return EventScheduler(env)


@pytest.fixture
def registry(scheduler):
    return EventRegistry(scheduler)


@pytest.fixture
def network(scheduler):
    network = SimNetwork(scheduler)
    network.add_sink(("10.1.1.2", 9))
    return network


@pytest.fixture
def make_app(scheduler, network):
    def _make(config=None, seed=1, host="10.1.1.1"):
        return PPBPApplication(
            scheduler,
            lambda protocol: network.create_socket(protocol, host),
            config or PPBPConfig(),
            rng=np.random.default_rng(seed),
        )

    return _make
