"""Simulation and viewer configuration modules."""
