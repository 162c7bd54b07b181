"""
CPU Backend (Numba parallel)
============================

Brute-force O(n²) engine on the host. Each kernel is a ``prange`` loop over
bodies; a kernel call returns only after every iteration has finished, so
returning from one kernel is the barrier before the next.
"""

import logging
import multiprocessing
import platform

import numpy as np
from numba import njit, prange

from .device_math import build_device_functions
from .errors import AllocationError


logger = logging.getLogger(__name__)

_dev = build_device_functions(njit)
_disc_position = _dev['disc_position']
_orbital_velocity = _dev['orbital_velocity']
_body_acceleration = _dev['body_acceleration']
_integrate_body = _dev['integrate_body']
_project_body = _dev['project_body']


# ============================================================================
# KERNELS
# ============================================================================

@njit(parallel=True, cache=True)
def generate_disc_positions(positions, seed, scale, n):
    """Scatter bodies over a flattened disc of radius ``scale``."""
    for i in prange(n):
        # Keep the hash input signed 64-bit regardless of the prange index type
        x, y, z = _disc_position(np.int64(i), seed, scale)
        positions[i, 0] = x
        positions[i, 1] = y
        positions[i, 2] = z


@njit(parallel=True, cache=True)
def generate_orbital_velocities(positions, velocities, G, central_mass, epsilon, n):
    """Give each body the circular-orbit velocity for its current position."""
    for i in prange(n):
        vx, vy, vz = _orbital_velocity(
            positions[i, 0], positions[i, 1], G, central_mass, epsilon
        )
        velocities[i, 0] = vx
        velocities[i, 1] = vy
        velocities[i, 2] = vz


@njit(parallel=True, fastmath=True, cache=True)
def compute_accelerations_brute(positions, accelerations, G, central_mass,
                                body_mass, epsilon, n):
    """Net acceleration on every body from the central mass and all bodies."""
    for i in prange(n):
        ax, ay, az = _body_acceleration(
            i, positions, n, G, central_mass, body_mass, epsilon
        )
        accelerations[i, 0] = ax
        accelerations[i, 1] = ay
        accelerations[i, 2] = az


@njit(parallel=True, fastmath=True, cache=True)
def integrate_bodies(positions, velocities, accelerations, dt, n):
    """Semi-implicit Euler step for every body."""
    for i in prange(n):
        _integrate_body(i, positions, velocities, accelerations, dt)


@njit(parallel=True, cache=True)
def project_positions(positions, dest, c_scale, n):
    """Write (x, y, z, 1) * c_scale vertices for every body."""
    for i in prange(n):
        _project_body(i, positions, dest, c_scale)


# ============================================================================
# BACKEND
# ============================================================================

class CPUBackend:
    """Runs every engine operation with Numba ``prange`` on the host."""

    def __init__(self):
        self.dtype = np.float64
        self.itemsize = np.dtype(self.dtype).itemsize

    def describe(self) -> str:
        cores = multiprocessing.cpu_count()
        return f"{platform.processor() or 'Unknown CPU'} ({cores} cores)"

    def allocate(self, n: int, what: str):
        try:
            return np.zeros((n, 3), dtype=self.dtype)
        except (MemoryError, ValueError) as e:
            raise AllocationError(f"allocate {what} buffer", f"{n:,} bodies on cpu") from e

    def release_memory(self):
        # Host arrays are reclaimed by the garbage collector
        pass

    def upload(self, array, host: np.ndarray):
        array[:] = host

    def download(self, array) -> np.ndarray:
        return np.array(array, dtype=np.float64, copy=True)

    def generate_positions(self, positions, seed: int, scale: float):
        generate_disc_positions(positions, seed, scale, len(positions))

    def generate_velocities(self, positions, velocities, G: float,
                            central_mass: float, epsilon: float):
        generate_orbital_velocities(
            positions, velocities, G, central_mass, epsilon, len(positions)
        )

    def compute_accelerations(self, positions, accelerations, G: float,
                              central_mass: float, body_mass: float, epsilon: float):
        compute_accelerations_brute(
            positions, accelerations, G, central_mass, body_mass, epsilon,
            len(positions)
        )

    def integrate(self, positions, velocities, accelerations, dt: float):
        integrate_bodies(positions, velocities, accelerations, dt, len(positions))

    def project(self, positions, dest: np.ndarray, scale: float):
        project_positions(positions, dest, -1.0 / scale, len(positions))

    def synchronize(self):
        pass

    def warmup(self):
        """Pre-compile the kernels with a handful of bodies."""
        n = 8
        pos = np.zeros((n, 3), dtype=self.dtype)
        vel = np.zeros((n, 3), dtype=self.dtype)
        acc = np.zeros((n, 3), dtype=self.dtype)
        dest = np.zeros(4 * n, dtype=np.float32)

        self.generate_positions(pos, 1, 10.0)
        self.generate_velocities(pos, vel, 1.0, 1.0, 1e-4)
        self.compute_accelerations(pos, acc, 1.0, 1.0, 1.0, 1e-4)
        self.integrate(pos, vel, acc, 0.01)
        self.project(pos, dest, 10.0)
        logger.debug("Numba CPU kernels compiled")
