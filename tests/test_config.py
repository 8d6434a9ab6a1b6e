import dataclasses

import pytest

from ppbp_sim.config import (
    Config,
    ConfigurationError,
    PPBPConfig,
    SimulationConfig,
    load_config,
    parse_data_rate,
    save_config,
)
from ppbp_sim.core.enums import Protocol


def test_defaults_match_the_reference_scenario():
    config = PPBPConfig()
    assert config.bit_rate == 1e6
    assert config.packet_size == 1470
    assert config.hurst == 0.7
    assert config.shape == pytest.approx(1.6)
    assert config.packet_bits == 1500 * 8
    assert config.protocol is Protocol.UDP
    assert config.remote_address == ("10.1.1.2", 9)


@pytest.mark.parametrize("hurst", [0.5, 1.0, 0.3, 1.2])
def test_hurst_outside_open_interval_is_rejected(hurst):
    with pytest.raises(ConfigurationError):
        PPBPConfig(hurst=hurst)


@pytest.mark.parametrize(
    "field, value",
    [
        ("packet_size", 0),
        ("packet_size", -10),
        ("burst_intensity", 0),
        ("burst_intensity", "-1Mb/s"),
        ("burst_intensity", "fast"),
        ("header_overhead", -1),
        ("remote", "10.1.1.2"),
        ("protocol", "sctp"),
        ("mean_burst_arrivals", 0.0),
        ("mean_burst_time_length", "constant:-0.2"),
        ("mean_burst_arrivals", "gamma:1"),
        ("mean_burst_arrivals", "uniform:low=-10,high=30"),
        ("mean_burst_arrivals", "uniform:low=0,high=30"),
        ("mean_burst_arrivals", "exponential:20"),
        ("mean_burst_time_length", {"type": "uniform", "low": -0.1, "high": 0.3}),
        ("packet_size", "large"),
        ("packet_size", 1470.5),
        ("packet_size", True),
        ("hurst", "0.7"),
        ("hurst", None),
        ("header_overhead", "30"),
    ],
)
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ConfigurationError):
        PPBPConfig(**{field: value})


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        PPBPConfig(packet_size=0)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1Mb/s", 1e6),
        ("100Mbps", 1e8),
        ("500kb/s", 5e5),
        ("1.5 Gbps", 1.5e9),
        ("2MB/s", 1.6e7),
        (64000, 64000.0),
    ],
)
def test_parse_data_rate(text, expected):
    assert parse_data_rate(text) == pytest.approx(expected)


def test_protocol_strings_are_parsed():
    assert PPBPConfig(protocol="TCP").protocol is Protocol.TCP


def test_replace_revalidates():
    config = PPBPConfig()
    with pytest.raises(ConfigurationError):
        dataclasses.replace(config, hurst=0.4)


def test_simulation_config_validation():
    with pytest.raises(ConfigurationError):
        SimulationConfig(duration=0)
    with pytest.raises(ConfigurationError):
        SimulationConfig(start_time=2.0, stop_time=1.0)
    assert SimulationConfig(duration=3.0).effective_stop_time == 3.0


def test_yaml_round_trip(tmp_path):
    config = Config(
        experiment_name="tcp-run",
        ppbp=PPBPConfig(hurst=0.8, protocol="tcp", mean_burst_arrivals="uniform:low=10,high=30"),
        simulation=SimulationConfig(duration=10.0, seed=7),
    )
    path = tmp_path / "nested" / "config.yaml"
    save_config(config, str(path))
    loaded = load_config(str(path))

    assert loaded.experiment_name == "tcp-run"
    assert loaded.ppbp.hurst == 0.8
    assert loaded.ppbp.protocol is Protocol.TCP
    assert loaded.ppbp.mean_burst_arrivals == "uniform:low=10,high=30"
    assert loaded.simulation.duration == 10.0
    assert loaded.simulation.seed == 7


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)) == Config()


def test_unknown_keys_are_rejected():
    with pytest.raises(ConfigurationError):
        Config.from_dict({"ppbp": {"hurst": 0.7, "colour": "blue"}})


def test_positive_stochastic_variables_are_accepted():
    config = PPBPConfig(
        mean_burst_arrivals="uniform:low=10,high=30",
        mean_burst_time_length={"type": "pareto", "scale": 0.1, "shape": 1.5},
    )
    arrivals, length = config.build_variables()
    assert arrivals.lower_bound == 10.0
    assert length.lower_bound == 0.1
