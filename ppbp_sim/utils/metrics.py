"""Metrics utilities for PPBP simulation.

This module provides functions for analysing generated traffic, including
binned packet counts, Hurst parameter estimators and Little's law estimates,
and for saving metrics to disk.
"""

import os
import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np


def littles_law_active_bursts(arrival_rate: float, burst_length: float) -> float:
    """Mean number of active bursts, E[n] = lambda * Ton.

    Args:
        arrival_rate: Mean burst arrival rate in bursts per second.
        burst_length: Mean burst time length in seconds.

    Returns:
        Expected number of simultaneously active bursts.
    """
    return arrival_rate * burst_length


def pareto_mean(scale: float, shape: float) -> float:
    """Mean of a Pareto distribution, infinite for shape <= 1."""
    if shape <= 1:
        return float("inf")
    return shape * scale / (shape - 1)


def time_average(samples: Sequence[Tuple[float, float]], end_time: Optional[float] = None) -> float:
    """Time-weighted average of a piecewise constant signal.

    Args:
        samples: (time, value) pairs sorted by time; each value holds until
            the next sample.
        end_time: Time the last value holds until (default: last sample time).

    Returns:
        Average value, or 0.0 if the samples span no time.
    """
    if not samples:
        return 0.0
    times = np.array([t for t, _ in samples], dtype=float)
    values = np.array([v for _, v in samples], dtype=float)
    if end_time is None:
        end_time = times[-1]
    widths = np.diff(np.append(times, end_time))
    total = widths.sum()
    if total <= 0:
        return float(values.mean())
    return float((values * widths).sum() / total)


def bin_counts(
    times: Iterable[float],
    bin_width: float,
    start: float = 0.0,
    end: Optional[float] = None,
    weights: Optional[Iterable[float]] = None,
) -> np.ndarray:
    """Count events (or sum weights) in consecutive time bins.

    Args:
        times: Event times in seconds.
        bin_width: Width of each bin in seconds.
        start: Start of the first bin.
        end: End of the last bin (default: last event time).
        weights: Optional per-event weights, e.g. packet sizes.

    Returns:
        Array of per-bin totals.
    """
    if bin_width <= 0:
        raise ValueError("Bin width must be positive")
    times = np.asarray(list(times), dtype=float)
    if end is None:
        end = float(times.max()) if times.size else start
    n_bins = max(int(np.ceil((end - start) / bin_width)), 1)
    edges = start + bin_width * np.arange(n_bins + 1)
    if weights is not None:
        weights = np.asarray(list(weights), dtype=float)
    counts, _ = np.histogram(times, bins=edges, weights=weights)
    return counts


def _aggregation_levels(n: int, min_blocks: int) -> List[int]:
    max_level = n // min_blocks
    if max_level < 2:
        return []
    levels = np.unique(np.logspace(0, np.log10(max_level), num=20).astype(int))
    return [int(m) for m in levels if m >= 1]


def estimate_hurst_aggregated_variance(
    series: Sequence[float], min_blocks: int = 8
) -> Optional[float]:
    """Estimate the Hurst parameter with the aggregated variance method.

    The variance of the series averaged over blocks of m samples decays as
    m ** (2H - 2) for a long-range dependent process.

    Args:
        series: Evenly spaced samples, e.g. packets per time bin.
        min_blocks: Fewest blocks an aggregation level may have.

    Returns:
        The Hurst estimate, or None if the series is too short or constant.
    """
    x = np.asarray(series, dtype=float)
    levels = _aggregation_levels(x.size, min_blocks)
    log_m, log_var = [], []
    for m in levels:
        n_blocks = x.size // m
        blocks = x[: n_blocks * m].reshape(n_blocks, m).mean(axis=1)
        variance = blocks.var()
        if variance > 0:
            log_m.append(np.log10(m))
            log_var.append(np.log10(variance))
    if len(log_m) < 2:
        return None
    slope, _ = np.polyfit(log_m, log_var, 1)
    return float(1 + slope / 2)


def estimate_hurst_rescaled_range(
    series: Sequence[float], min_window: int = 8
) -> Optional[float]:
    """Estimate the Hurst parameter with rescaled range (R/S) analysis.

    Args:
        series: Evenly spaced samples.
        min_window: Smallest window size.

    Returns:
        The Hurst estimate, or None if the series is too short or constant.
    """
    x = np.asarray(series, dtype=float)
    n = x.size
    if n < 2 * min_window:
        return None
    windows = np.unique(
        np.logspace(np.log10(min_window), np.log10(n // 2), num=15).astype(int)
    )
    log_w, log_rs = [], []
    for w in windows:
        n_windows = n // w
        chunks = x[: n_windows * w].reshape(n_windows, w)
        deviations = chunks - chunks.mean(axis=1, keepdims=True)
        profile = np.cumsum(deviations, axis=1)
        ranges = profile.max(axis=1) - profile.min(axis=1)
        stds = chunks.std(axis=1)
        valid = stds > 0
        if not valid.any():
            continue
        log_w.append(np.log10(w))
        log_rs.append(np.log10((ranges[valid] / stds[valid]).mean()))
    if len(log_w) < 2:
        return None
    slope, _ = np.polyfit(log_w, log_rs, 1)
    return float(slope)


def _to_serializable(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            (k if isinstance(k, str) else str(k)): _to_serializable(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_to_serializable(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def save_metrics_to_json(
    metrics: Dict[str, Any], filename: str = "results/metrics.json"
) -> None:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w") as f:
        json.dump(_to_serializable(metrics), f, indent=2)
