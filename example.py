#!/usr/bin/env python3
"""Example PPBP simulations using the ppbp_sim package.

This script runs the same burst process for several Hurst parameters and
compares the configured H with the one estimated from the generated traffic.
"""

import argparse
from typing import Dict, List, Optional
import simpy

from ppbp_sim.config import PPBPConfig
from ppbp_sim.core.simulator import PPBPSimulator
from ppbp_sim.utils.metrics import (
    bin_counts,
    estimate_hurst_aggregated_variance,
    estimate_hurst_rescaled_range,
    save_metrics_to_json,
)
from ppbp_sim.utils.visualization import plot_hurst_comparison


def run_hurst_sweep(
    hurst_values: List[float],
    duration: float = 200.0,
    bin_width: float = 0.05,
    seed: int = 42,
) -> Dict[float, Dict[str, Optional[float]]]:
    """Simulate one generator per Hurst value and estimate H from its traffic.

    Args:
        hurst_values: Hurst parameters to simulate.
        duration: Simulated time per run in seconds.
        bin_width: Bin width used to count packets, in seconds.
        seed: Random seed for reproducibility.

    Returns:
        Estimates keyed by configured Hurst parameter.
    """
    results: Dict[float, Dict[str, Optional[float]]] = {}
    for hurst in hurst_values:
        simulator = PPBPSimulator(simpy.Environment(), seed=seed)
        config = PPBPConfig(hurst=hurst)
        simulator.add_sink(config.remote)
        application = simulator.add_application(config, name=f"H={hurst}")
        metrics = simulator.run(duration)

        send_times = [t for t, _ in simulator.sent_packets[application.name]]
        counts = bin_counts(send_times, bin_width, 0.0, duration)
        app_metrics = metrics["applications"][application.name]
        results[hurst] = {
            "aggregated_variance": estimate_hurst_aggregated_variance(counts),
            "rescaled_range": estimate_hurst_rescaled_range(counts),
            "mean_active_bursts": app_metrics["mean_active_bursts"],
            "offered_throughput": app_metrics["offered_throughput"],
        }
        print(
            f"H={hurst:.2f}: variance-time H={results[hurst]['aggregated_variance']}, "
            f"R/S H={results[hurst]['rescaled_range']}, "
            f"mean bursts={app_metrics['mean_active_bursts']:.2f}"
        )
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Compare Hurst parameters of PPBP traffic")
    parser.add_argument("--duration", type=float, default=200.0)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output", default=None, help="JSON file for the results")
    parser.add_argument("--plot", action="store_true")
    args = parser.parse_args()

    results = run_hurst_sweep([0.6, 0.7, 0.8, 0.9], duration=args.duration, seed=args.seed)

    if args.output:
        save_metrics_to_json({str(h): r for h, r in results.items()}, args.output)

    if args.plot:
        plot_hurst_comparison({h: r["aggregated_variance"] for h, r in results.items()})


if __name__ == "__main__":
    main()
