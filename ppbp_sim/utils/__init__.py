"""Utilities for PPBP simulation: logging, metrics, random streams and plots."""
