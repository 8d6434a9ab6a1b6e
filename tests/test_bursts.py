from ppbp_sim.core.enums import EventRole
from ppbp_sim.traffic.bursts import BurstLifecycleScheduler, BurstPopulation

from conftest import ScriptedVariates


def test_population_increment_and_decrement():
    population = BurstPopulation()
    assert population.off_period and not population.is_active()

    assert population.increment() is True
    assert population.increment() is False
    assert population.active_bursts == 2
    assert population.off_period is False
    assert population.peak == 2

    assert population.decrement() is False
    assert population.decrement() is True
    assert population.active_bursts == 0
    assert population.off_period is True


def test_population_never_goes_negative():
    population = BurstPopulation()
    assert population.decrement() is False
    assert population.active_bursts == 0
    assert population.off_period is True


def test_population_reset():
    population = BurstPopulation()
    population.increment()
    population.reset()
    assert population.active_bursts == 0
    assert population.off_period
    assert population.peak == 0


def make_lifecycle(registry, intervals, durations):
    calls = []
    lifecycle = BurstLifecycleScheduler(
        registry,
        ScriptedVariates(intervals, durations),
        BurstPopulation(),
        on_off_period_end=lambda: calls.append(("end", registry.scheduler.now)),
        on_off_period_start=lambda: calls.append(("start", registry.scheduler.now)),
    )
    return lifecycle, calls


def test_arrivals_and_departures_follow_the_drawn_times(env, registry):
    # bursts arrive at 1.0 and 1.5, and leave at 3.0 and 1.75
    lifecycle, calls = make_lifecycle(registry, [1.0, 0.5], [2.0, 0.25])
    lifecycle.start()

    counts = {}
    for t in (0.9, 1.2, 1.6, 2.0, 3.5):
        env.run(until=t)
        counts[t] = lifecycle.population.active_bursts

    assert counts == {0.9: 0, 1.2: 1, 1.6: 2, 2.0: 1, 3.5: 0}
    assert lifecycle.arrivals == 2
    assert lifecycle.departures == 2
    assert calls == [("end", 1.0), ("start", 3.0)]


def test_each_cycle_schedules_one_arrival_and_continuation(env, registry):
    lifecycle, _ = make_lifecycle(registry, [1.0], [2.0])
    lifecycle.start()
    env.run(until=0.5)

    assert len(registry.pending(EventRole.ARRIVAL)) == 1
    assert len(registry.pending(EventRole.CONTINUATION)) == 1
    assert len(registry.pending(EventRole.DEPARTURE)) == 1
    assert registry.pending(EventRole.DEPARTURE)[0].time == 3.0


def test_cancel_stops_every_pending_burst_event(env, registry):
    lifecycle, _ = make_lifecycle(registry, [1.0, 0.5], [2.0, 0.25])
    lifecycle.start()
    env.run(until=1.6)
    assert lifecycle.population.active_bursts == 2

    assert lifecycle.cancel() > 0
    env.run(until=10)

    assert lifecycle.population.active_bursts == 2
    assert lifecycle.departures == 0
    assert lifecycle.arrivals == 2
    assert len(registry) == 0


def test_departure_of_cancelled_arrival_never_fires(env, registry):
    lifecycle, _ = make_lifecycle(registry, [1.0], [0.5])
    lifecycle.start()
    env.run(until=0.5)

    registry.cancel(EventRole.ARRIVAL)
    env.run(until=5)

    assert lifecycle.arrivals == 0
    assert lifecycle.departures == 0
    assert lifecycle.population.active_bursts == 0


def test_simultaneous_arrivals_both_count(env, registry):
    lifecycle, calls = make_lifecycle(registry, [], [])
    registry.schedule(EventRole.ARRIVAL, 1.0, lifecycle.on_arrival)
    registry.schedule(EventRole.ARRIVAL, 1.0, lifecycle.on_arrival)
    env.run(until=1.5)

    assert lifecycle.population.active_bursts == 2
    assert calls == [("end", 1.0)]
