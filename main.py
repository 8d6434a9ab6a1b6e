#!/usr/bin/env python3
"""Run a two-node PPBP simulation: one generator sending to one sink."""

import argparse
import dataclasses
import logging
import os
from pprint import pprint

from ppbp_sim.config import Config, ConfigurationError, load_config, save_config
from ppbp_sim.core.simulator import PPBPSimulator
from ppbp_sim.utils.logging import setup_logging
from ppbp_sim.utils.metrics import save_metrics_to_json

logger = logging.getLogger("ppbp")


def build_config(args: argparse.Namespace) -> Config:
    """Load the YAML config, if any, and apply command line overrides."""
    config = load_config(args.config) if args.config else Config()

    ppbp_overrides = {
        "hurst": args.hurst,
        "mean_burst_arrivals": args.arrival_rate,
        "mean_burst_time_length": args.burst_length,
        "burst_intensity": args.burst_intensity,
        "packet_size": args.packet_size,
        "protocol": args.protocol,
        "remote": args.remote,
    }
    ppbp_overrides = {k: v for k, v in ppbp_overrides.items() if v is not None}

    sim_overrides = {
        "duration": args.simulation_time,
        "seed": args.seed,
        "output_dir": args.output_dir,
    }
    sim_overrides = {k: v for k, v in sim_overrides.items() if v is not None}
    if args.verbose:
        sim_overrides["verbose"] = True

    return dataclasses.replace(
        config,
        ppbp=dataclasses.replace(config.ppbp, **ppbp_overrides),
        simulation=dataclasses.replace(config.simulation, **sim_overrides),
    )


def main():
    """Main function to run the simulation"""
    parser = argparse.ArgumentParser(description="PPBP traffic generator simulation")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--simulation-time", type=float, help="Simulation time in seconds")
    parser.add_argument("--hurst", type=float, help="Hurst parameter, in (0.5, 1)")
    parser.add_argument(
        "--arrival-rate",
        help='Mean burst arrival rate, e.g. "20" or "uniform:low=10,high=30"',
    )
    parser.add_argument("--burst-length", help='Mean burst time length, e.g. "0.2"')
    parser.add_argument("--burst-intensity", help='Bit rate of one burst, e.g. "1Mb/s"')
    parser.add_argument("--packet-size", type=int, help="Packet size in bytes")
    parser.add_argument("--protocol", choices=["udp", "tcp"], help="Transport protocol")
    parser.add_argument("--remote", help='Destination address, e.g. "10.1.1.2:9"')
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Output transmission and reception timestamps",
    )
    parser.add_argument("--output-dir", help="Directory for metrics, config and plots")
    parser.add_argument("--plot", action="store_true", help="Plot active bursts and throughput")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        parser.error(str(e))

    simulator = PPBPSimulator.from_config(config)

    if config.simulation.verbose:
        simulator.register_hook(
            "packet_sent",
            lambda packet, app, now: logger.info(
                "Packet transmitted by %s Time: %.9f", app.name, now
            ),
        )
        simulator.register_hook(
            "packet_received",
            lambda packet, sink, now: logger.info("Received one packet at %.9f", now),
        )

    metrics = simulator.run(config.simulation.duration)
    pprint(metrics)

    output_dir = config.simulation.output_dir
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        save_metrics_to_json(metrics, os.path.join(output_dir, "metrics.json"))
        save_config(config, os.path.join(output_dir, "config.yaml"))

    if args.plot:
        from ppbp_sim.utils.visualization import plot_active_bursts, plot_throughput

        plot_active_bursts(
            simulator,
            filename=os.path.join(output_dir, "active_bursts.png") if output_dir else None,
        )
        plot_throughput(
            simulator,
            filename=os.path.join(output_dir, "throughput.png") if output_dir else None,
        )


if __name__ == "__main__":
    main()
