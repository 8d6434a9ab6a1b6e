"""Core components for PPBP simulation.

This module contains the fundamental classes for PPBP simulation, including
the event scheduler, Packet, the simulated transport, PPBPApplication and
PPBPSimulator.
"""
