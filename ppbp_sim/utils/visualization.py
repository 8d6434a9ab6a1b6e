"""Visualization utilities for PPBP simulation.

This module provides functions for plotting the number of active bursts and
the throughput generated by PPBP applications.
"""

from typing import Dict, List, Optional, Tuple
import matplotlib.pyplot as plt
import numpy as np
import os

from ppbp_sim.core.simulator import PPBPSimulator
from ppbp_sim.utils.metrics import bin_counts


def _finish(fig, filename: Optional[str], show: bool) -> None:
    plt.tight_layout()
    if filename:
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(filename)
    if show:
        plt.show()
    else:
        plt.close(fig)


def plot_active_bursts(
    simulator: PPBPSimulator,
    filename: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 4),
    show: bool = True,
) -> None:
    """Plot the number of active bursts over time for every application.

    Args:
        simulator: PPBPSimulator instance after a run.
        filename: Output filename, or None to skip saving.
        figsize: Figure size as (width, height) in inches.
        show: Whether to display the figure.
    """
    fig, ax = plt.subplots(figsize=figsize)

    for name, history in simulator.active_burst_history.items():
        if not history:
            continue
        times, counts = zip(*history)
        ax.step(times, counts, where="post", label=name)

        metrics = simulator.metrics.get("applications", {}).get(name)
        if metrics:
            ax.axhline(
                metrics["mean_active_bursts"],
                linestyle="--",
                alpha=0.6,
                label=f"{name} mean",
            )

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Active bursts")
    ax.set_title("Poisson Pareto Burst Process")
    ax.legend()
    ax.grid(True, alpha=0.3)

    _finish(fig, filename, show)


def plot_throughput(
    simulator: PPBPSimulator,
    bin_width: float = 0.1,
    filename: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 4),
    show: bool = True,
) -> None:
    """Plot the sent throughput of every application in fixed time bins.

    Args:
        simulator: PPBPSimulator instance after a run.
        bin_width: Bin width in seconds.
        filename: Output filename, or None to skip saving.
        figsize: Figure size as (width, height) in inches.
        show: Whether to display the figure.
    """
    fig, ax = plt.subplots(figsize=figsize)

    for name, sent in simulator.sent_packets.items():
        if not sent:
            continue
        times: List[float] = [t for t, _ in sent]
        sizes: List[int] = [packet.size for _, packet in sent]
        start = simulator.schedule[name][0]
        bits = bin_counts(times, bin_width, start, simulator.env.now, weights=sizes) * 8
        centers = start + bin_width * (np.arange(len(bits)) + 0.5)
        ax.plot(centers, bits / bin_width / 1e6, label=name)

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Throughput (Mbps)")
    ax.set_title(f"Sent throughput ({bin_width * 1000:.0f} ms bins)")
    ax.legend()
    ax.grid(True, alpha=0.3)

    _finish(fig, filename, show)


def plot_hurst_comparison(
    results: Dict[float, Optional[float]],
    filename: Optional[str] = None,
    show: bool = True,
) -> None:
    """Plot estimated against configured Hurst parameters.

    Args:
        results: Estimated H keyed by configured H.
        filename: Output filename, or None to skip saving.
        show: Whether to display the figure.
    """
    fig, ax = plt.subplots(figsize=(5, 5))
    targets = [h for h, est in results.items() if est is not None]
    estimates = [results[h] for h in targets]
    ax.plot([0.5, 1.0], [0.5, 1.0], color="gray", linestyle="--", label="ideal")
    ax.scatter(targets, estimates, color="blue", label="estimate")
    ax.set_xlabel("Configured H")
    ax.set_ylabel("Estimated H")
    ax.legend()
    ax.grid(True, alpha=0.3)

    _finish(fig, filename, show)
