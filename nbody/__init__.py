"""Brute-force N-body engine with CUDA, Torch and CPU backends."""

from .backend import Backend, force_backend, get_backend
from .errors import (
    AllocationError,
    BackendUnavailable,
    ContractViolation,
    LaunchError,
    NBodyError,
)
from .simulation import Simulation, SimulationState

__all__ = [
    "Backend",
    "force_backend",
    "get_backend",
    "AllocationError",
    "BackendUnavailable",
    "ContractViolation",
    "LaunchError",
    "NBodyError",
    "Simulation",
    "SimulationState",
]
