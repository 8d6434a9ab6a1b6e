"""Traffic generation for PPBP simulation.

This module provides random variables, burst variate sampling, the burst
population tracker and the burst and transmission schedulers.
"""
