import pytest

from ppbp_sim.core.enums import EventRole
from ppbp_sim.traffic.bursts import BurstPopulation
from ppbp_sim.traffic.transmission import TransmissionScheduler

PACKET_BITS = (1470 + 30) * 8
BIT_RATE = 1e6


@pytest.fixture
def population():
    return BurstPopulation()


@pytest.fixture
def sends():
    return []


@pytest.fixture
def transmission(registry, population, sends, scheduler):
    def send():
        sends.append((scheduler.now, population.active_bursts))
        transmission.schedule_next()

    transmission = TransmissionScheduler(registry, population, PACKET_BITS, BIT_RATE, send)
    return transmission


def test_nothing_is_scheduled_without_active_bursts(transmission, population, registry):
    assert transmission.schedule_next() is None
    assert population.off_period
    assert not registry.is_pending(EventRole.SEND)


@pytest.mark.parametrize("active", [1, 2, 5])
def test_interval_shrinks_with_active_bursts(transmission, population, active):
    for _ in range(active):
        population.increment()
    handle = transmission.schedule_next()

    assert handle.time == pytest.approx(PACKET_BITS / BIT_RATE / active)
    assert transmission.next_interval() == pytest.approx(0.012 / active)
    assert not population.off_period


def test_schedule_next_keeps_a_single_pending_send(transmission, population, registry):
    population.increment()
    transmission.schedule_next()
    transmission.schedule_next()
    assert len(registry.pending(EventRole.SEND)) == 1


def test_sends_repeat_at_the_burst_rate(env, transmission, population, sends):
    population.increment()
    transmission.schedule_next()
    env.run(until=0.1)

    # 0.012 s per packet for one 1 Mb/s burst
    assert len(sends) == 8
    assert sends[0][0] == pytest.approx(0.012)


def test_resume_counts_every_arrival_at_the_same_time(env, transmission, population, registry):
    population.increment()
    transmission.resume()
    population.increment()
    transmission.resume()

    assert len(registry.pending(EventRole.SEND)) == 1
    env.run(until=0.001)

    pending = registry.pending(EventRole.SEND)
    assert len(pending) == 1
    assert pending[0].time == pytest.approx(PACKET_BITS / BIT_RATE / 2)


def test_cancel_drops_pending_send(env, transmission, population, sends):
    population.increment()
    transmission.schedule_next()
    assert transmission.cancel() == 1
    env.run(until=1)
    assert sends == []


def test_invalid_rates_are_rejected(registry, population):
    with pytest.raises(ValueError):
        TransmissionScheduler(registry, population, PACKET_BITS, 0.0, lambda: None)
    with pytest.raises(ValueError):
        TransmissionScheduler(registry, population, 0, BIT_RATE, lambda: None)
