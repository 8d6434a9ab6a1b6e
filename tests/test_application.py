import logging

import pytest

from ppbp_sim.config import PPBPConfig
from ppbp_sim.core.enums import AppState, EventRole


def watch_invariants(env, app, violations, interval=0.001):
    def check():
        while True:
            if app.off_period != (app.active_bursts == 0):
                violations.append(("off_period", env.now))
            if app.active_bursts < 0:
                violations.append(("negative", env.now))
            if app.active_bursts == 0 and app.registry.is_pending(EventRole.SEND):
                violations.append(("send while idle", env.now))
            yield env.timeout(interval)

    env.process(check())


def test_default_scenario_generates_traffic(env, make_app, network):
    app = make_app(seed=7)
    sent = []
    app.add_tx_listener(lambda packet: sent.append((env.now, app.active_bursts)))
    violations = []
    watch_invariants(env, app, violations)

    app.start()
    env.run(until=5.0)

    assert app.state is AppState.RUNNING
    assert app.total_bytes > 0
    assert app.get_total_bytes() == app.packets_sent * 1470
    assert len(sent) == app.packets_sent
    assert all(active > 0 for _, active in sent)
    assert violations == []
    assert len(network.sinks[("10.1.1.2", 9)].received) == app.packets_sent


def test_total_bytes_is_non_decreasing_while_running(env, make_app):
    app = make_app(seed=2)
    totals = []
    app.start()
    for step in range(1, 21):
        env.run(until=step * 0.25)
        totals.append(app.total_bytes)

    assert totals == sorted(totals)
    assert totals[-1] > 0


def test_no_send_before_first_arrival(env, make_app):
    app = make_app(PPBPConfig(mean_burst_arrivals=1.0), seed=11)
    app.start()
    env.run(until=1e-9)

    assert app.active_bursts == 0
    assert not app.registry.is_pending(EventRole.SEND)
    first_arrival = app.registry.pending(EventRole.ARRIVAL)[0].time

    first_send = []
    app.add_tx_listener(lambda packet: first_send.append(env.now))
    env.run(until=first_arrival + 1.0)

    assert app.packets_sent > 0
    assert first_send[0] > first_arrival


def test_nothing_fires_after_stop(env, make_app):
    app = make_app(seed=5)
    app.start()
    env.run(until=2.0)
    app.stop()

    snapshot = (
        app.packets_sent,
        app.lifecycle.arrivals,
        app.lifecycle.departures,
        app.lifecycle.cycles,
        app.active_bursts,
    )
    assert len(app.registry) == 0
    env.run(until=10.0)

    assert snapshot == (
        app.packets_sent,
        app.lifecycle.arrivals,
        app.lifecycle.departures,
        app.lifecycle.cycles,
        app.active_bursts,
    )
    assert app.state is AppState.STOPPED
    assert app.socket.is_closed


def test_stop_twice_closes_socket_once(env, make_app, caplog):
    app = make_app()
    app.start()
    env.run(until=0.5)

    app.stop()
    with caplog.at_level(logging.WARNING):
        app.stop()

    assert app.socket.close_count == 1
    assert "already closed" in caplog.text


def test_stop_without_socket_only_warns(make_app, caplog):
    app = make_app()
    with caplog.at_level(logging.WARNING):
        app.stop()
    assert "no socket" in caplog.text
    assert app.state is AppState.STOPPED


def test_restart_reuses_socket_and_resets_accounting(env, make_app):
    app = make_app(seed=9)
    app.start()
    env.run(until=2.0)
    socket = app.socket
    app.stop()
    bytes_before = app.total_bytes
    assert bytes_before > 0

    app.start()
    assert app.socket is socket
    assert not socket.is_closed
    assert app.total_bytes == 0

    env.run(until=6.0)
    assert app.total_bytes > 0
    assert app.total_bytes == app.packets_sent * app.config.packet_size


def test_dispose_drops_the_socket(env, make_app):
    app = make_app()
    app.start()
    env.run(until=0.1)
    socket = app.socket
    app.dispose()

    assert app.socket is None
    app.start()
    assert app.socket is not socket


def test_connection_failure_is_reported_without_retry(env, make_app, caplog):
    app = make_app(PPBPConfig(remote="10.9.9.9:9"), seed=4)
    with caplog.at_level(logging.ERROR):
        app.start()
        env.run(until=2.0)

    assert "connection" in caplog.text
    assert not app.connected
    assert app.total_bytes == 0
    assert app.packets_refused > 0


def test_tcp_sends_after_handshake(env, scheduler, make_app, network):
    network.propagation_delay = 0.01
    app = make_app(PPBPConfig(protocol="tcp"), seed=6)
    app.start()
    env.run(until=3.0)

    handshake = network.connect_delay(app.config.protocol)
    assert handshake == pytest.approx(0.03)
    assert app.connected
    received = network.sinks[("10.1.1.2", 9)].received
    assert received
    assert all(packet.creation_time >= handshake for packet in received)
    assert all(packet.get_total_delay() == pytest.approx(0.01) for packet in received)


def test_derived_parameters(make_app):
    app = make_app(PPBPConfig(hurst=0.8))
    assert app.shape == pytest.approx(1.4)
    assert app.time_slot is None


def test_restart_resets_burst_counters(env, make_app):
    app = make_app(seed=12)
    app.start()
    env.run(until=2.0)
    app.stop()
    assert app.lifecycle.arrivals > 0

    app.start()
    assert (app.lifecycle.arrivals, app.lifecycle.departures, app.lifecycle.cycles) == (0, 0, 0)

    env.run(until=3.0)
    assert 0 < app.lifecycle.arrivals < 60


def test_accept_listeners_only_see_accepted_packets(env, make_app):
    app = make_app(PPBPConfig(remote="10.9.9.9:9"), seed=8)
    traced, accepted = [], []
    app.add_tx_listener(traced.append)
    app.add_accept_listener(accepted.append)
    app.start()
    env.run(until=2.0)

    assert len(traced) == app.packets_refused > 0
    assert accepted == []
