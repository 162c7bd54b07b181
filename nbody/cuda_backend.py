"""
CUDA Backend (NVIDIA)
=====================

Brute-force O(n²) engine on an NVIDIA GPU via Numba CUDA. One thread per
body on a 1-D grid; kernels are compiled lazily the first time a backend is
constructed.
"""

import logging

import numpy as np

from .device_math import build_device_functions
from .errors import AllocationError


logger = logging.getLogger(__name__)

_KERNELS = None


def _init_cuda_kernels():
    """Compile the CUDA kernels for the N-body engine."""
    from numba import cuda

    dev = build_device_functions(cuda.jit(device=True))
    disc_position = dev['disc_position']
    orbital_velocity = dev['orbital_velocity']
    body_acceleration = dev['body_acceleration']
    integrate_body = dev['integrate_body']
    project_body = dev['project_body']

    @cuda.jit
    def generate_positions_cuda(positions, seed, scale, n):
        i = cuda.grid(1)
        if i >= n:
            return
        x, y, z = disc_position(i, seed, scale)
        positions[i, 0] = x
        positions[i, 1] = y
        positions[i, 2] = z

    @cuda.jit
    def generate_velocities_cuda(positions, velocities, G, central_mass, epsilon, n):
        i = cuda.grid(1)
        if i >= n:
            return
        vx, vy, vz = orbital_velocity(
            positions[i, 0], positions[i, 1], G, central_mass, epsilon
        )
        velocities[i, 0] = vx
        velocities[i, 1] = vy
        velocities[i, 2] = vz

    @cuda.jit(fastmath=True)
    def compute_accelerations_cuda(positions, accelerations, G, central_mass,
                                   body_mass, epsilon, n):
        i = cuda.grid(1)
        if i >= n:
            return
        ax, ay, az = body_acceleration(
            i, positions, n, G, central_mass, body_mass, epsilon
        )
        accelerations[i, 0] = ax
        accelerations[i, 1] = ay
        accelerations[i, 2] = az

    @cuda.jit(fastmath=True)
    def integrate_bodies_cuda(positions, velocities, accelerations, dt, n):
        i = cuda.grid(1)
        if i >= n:
            return
        integrate_body(i, positions, velocities, accelerations, dt)

    @cuda.jit
    def project_positions_cuda(positions, dest, c_scale, n):
        i = cuda.grid(1)
        if i >= n:
            return
        project_body(i, positions, dest, c_scale)

    return {
        'positions': generate_positions_cuda,
        'velocities': generate_velocities_cuda,
        'accelerations': compute_accelerations_cuda,
        'integrate': integrate_bodies_cuda,
        'project': project_positions_cuda,
    }


def get_cuda_kernels():
    global _KERNELS
    if _KERNELS is None:
        _KERNELS = _init_cuda_kernels()
        logger.debug("CUDA kernels compiled")
    return _KERNELS


class CUDABackend:
    """Runs every engine operation as a CUDA kernel."""

    def __init__(self, threads_per_block: int = 128):
        from numba import cuda

        self._cuda = cuda
        self.dtype = np.float64
        self.itemsize = np.dtype(self.dtype).itemsize
        self.threads_per_block = threads_per_block
        self.kernels = get_cuda_kernels()
        # Device-side vertex staging for copy_positions_to_buffer
        self._d_vertices = None

    def describe(self) -> str:
        device = self._cuda.get_current_device()
        name = device.name.decode() if isinstance(device.name, bytes) else device.name
        cc = device.compute_capability
        return f"{name} (CC {cc[0]}.{cc[1]})"

    def _blocks(self, n: int) -> int:
        return (n + self.threads_per_block - 1) // self.threads_per_block

    def allocate(self, n: int, what: str):
        try:
            return self._cuda.device_array((n, 3), dtype=self.dtype)
        except Exception as e:
            raise AllocationError(f"allocate {what} buffer", f"{n:,} bodies on cuda: {e}") from e

    def release_memory(self):
        """Return device memory whose last reference has been dropped."""
        self._d_vertices = None
        self._cuda.current_context().deallocations.clear()

    def upload(self, array, host: np.ndarray):
        array.copy_to_device(np.ascontiguousarray(host, dtype=self.dtype))

    def download(self, array) -> np.ndarray:
        return array.copy_to_host().astype(np.float64)

    def generate_positions(self, positions, seed: int, scale: float):
        n = positions.shape[0]
        self.kernels['positions'][self._blocks(n), self.threads_per_block](
            positions, seed, scale, n
        )

    def generate_velocities(self, positions, velocities, G: float,
                            central_mass: float, epsilon: float):
        n = positions.shape[0]
        self.kernels['velocities'][self._blocks(n), self.threads_per_block](
            positions, velocities, G, central_mass, epsilon, n
        )

    def compute_accelerations(self, positions, accelerations, G: float,
                              central_mass: float, body_mass: float, epsilon: float):
        n = positions.shape[0]
        self.kernels['accelerations'][self._blocks(n), self.threads_per_block](
            positions, accelerations, G, central_mass, body_mass, epsilon, n
        )

    def integrate(self, positions, velocities, accelerations, dt: float):
        n = positions.shape[0]
        self.kernels['integrate'][self._blocks(n), self.threads_per_block](
            positions, velocities, accelerations, dt, n
        )

    def project(self, positions, dest: np.ndarray, scale: float):
        n = positions.shape[0]
        if self._d_vertices is None or self._d_vertices.shape[0] != 4 * n:
            self._d_vertices = self._cuda.device_array(4 * n, dtype=np.float32)
        self.kernels['project'][self._blocks(n), self.threads_per_block](
            positions, self._d_vertices, -1.0 / scale, n
        )
        self._d_vertices.copy_to_host(dest)

    def synchronize(self):
        self._cuda.synchronize()
