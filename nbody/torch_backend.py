"""
Torch Backend (Apple MPS / CUDA / CPU tensors)
==============================================

Vectorized brute-force engine on whatever device PyTorch exposes. The
O(n²) interaction matrix is evaluated in tiles to keep memory bounded.
MPS has no float64 support, so bodies are stored as float32 there.
"""

import logging
from typing import Optional

import numpy as np

from .device_math import DISC_RIM, DISC_THICKNESS, GOLDEN_GAMMA, HOST, UNIT_SCALE
from .errors import AllocationError


logger = logging.getLogger(__name__)

_hash32 = HOST['hash32']


def select_torch_device(preferred: Optional[str] = None):
    """Pick a torch device, preferring MPS, then CUDA, then CPU."""
    import torch

    if preferred:
        return torch.device(preferred)
    if torch.backends.mps.is_available():
        return torch.device("mps")
    if torch.cuda.is_available():
        return torch.device("cuda")
    return torch.device("cpu")


class TorchBackend:
    """Runs every engine operation as tiled PyTorch tensor math."""

    def __init__(self, device: Optional[str] = None, tile_size: int = 2048):
        import torch

        self._torch = torch
        self.device = select_torch_device(device)
        self.dtype = torch.float32 if self.device.type == "mps" else torch.float64
        self.itemsize = torch.empty((), dtype=self.dtype).element_size()
        self.tile_size = tile_size
        logger.debug("Torch backend on %s (%s, tile %d)", self.device, self.dtype, tile_size)

    def describe(self) -> str:
        return f"torch {self._torch.__version__} on {self.device} ({self.dtype})"

    def allocate(self, n: int, what: str):
        torch = self._torch
        try:
            return torch.zeros((n, 3), dtype=self.dtype, device=self.device)
        except RuntimeError as e:
            raise AllocationError(
                f"allocate {what} buffer", f"{n:,} bodies on {self.device}: {e}"
            ) from e

    def release_memory(self):
        if self.device.type == "cuda":
            self._torch.cuda.empty_cache()
        elif self.device.type == "mps":
            self._torch.mps.empty_cache()

    def upload(self, array, host: np.ndarray):
        array.copy_(self._torch.as_tensor(np.asarray(host), dtype=self.dtype))

    def download(self, array) -> np.ndarray:
        return array.detach().cpu().numpy().astype(np.float64)

    def generate_positions(self, positions, seed: int, scale: float):
        torch = self._torch
        n = positions.shape[0]

        index = torch.arange(n, dtype=torch.int64, device=self.device)
        key = _hash32(index) ^ _hash32(seed + GOLDEN_GAMMA)
        rx, ry, rz = (
            (_hash32(key + k) >> 8).to(self.dtype) * UNIT_SCALE - 1.0
            for k in (1, 2, 3)
        )

        theta = np.pi * rx
        rho = scale * DISC_RIM * torch.sqrt(0.5 * (ry + 1.0))
        positions[:, 0] = rho * torch.cos(theta)
        positions[:, 1] = rho * torch.sin(theta)
        positions[:, 2] = DISC_THICKNESS * rho * rz

    def generate_velocities(self, positions, velocities, G: float,
                            central_mass: float, epsilon: float):
        torch = self._torch
        px = positions[:, 0]
        py = positions[:, 1]

        planar = torch.sqrt(px * px + py * py)
        inside = planar > 0
        safe = torch.where(inside, planar, torch.ones_like(planar))
        speed = torch.sqrt(G * central_mass / (planar + epsilon))

        velocities[:, 0] = torch.where(inside, speed * py / safe, torch.zeros_like(px))
        velocities[:, 1] = torch.where(inside, -speed * px / safe, torch.zeros_like(px))
        velocities[:, 2] = 0.0

    def _inv_dist3(self, r2, epsilon: float):
        """1 / r^3 where r^2 > epsilon, zero inside the cutoff."""
        torch = self._torch
        outside = r2 > epsilon
        safe = torch.where(outside, r2, torch.ones_like(r2))
        inv = torch.rsqrt(safe)
        return torch.where(outside, inv * inv * inv, torch.zeros_like(r2))

    def compute_accelerations(self, positions, accelerations, G: float,
                              central_mass: float, body_mass: float, epsilon: float):
        n = positions.shape[0]
        tile = min(self.tile_size, n)

        # Central mass at the origin: direction is -position
        r2 = (positions * positions).sum(dim=1)
        accelerations[:] = (
            -positions * (G * central_mass * self._inv_dist3(r2, epsilon)).unsqueeze(1)
        )

        for i_start in range(0, n, tile):
            pos_i = positions[i_start:i_start + tile]
            acc_i = accelerations[i_start:i_start + tile]

            for j_start in range(0, n, tile):
                pos_j = positions[j_start:j_start + tile]

                # (tile_i, tile_j, 3) displacement from i to j
                diff = pos_j.unsqueeze(0) - pos_i.unsqueeze(1)
                r2 = (diff * diff).sum(dim=2)

                # Self pairs fall inside the cutoff (r^2 = 0)
                factor = G * body_mass * self._inv_dist3(r2, epsilon)
                acc_i += (factor.unsqueeze(2) * diff).sum(dim=1)

    def integrate(self, positions, velocities, accelerations, dt: float):
        velocities.add_(accelerations * dt)
        positions.add_(velocities * dt)

    def project(self, positions, dest: np.ndarray, scale: float):
        torch = self._torch
        n = positions.shape[0]
        vertices = torch.ones((n, 4), dtype=self.dtype, device=self.device)
        vertices[:, :3] = positions * (-1.0 / scale)
        dest[:] = vertices.reshape(-1).cpu().numpy().astype(np.float32)

    def synchronize(self):
        if self.device.type == "cuda":
            self._torch.cuda.synchronize()
        elif self.device.type == "mps":
            self._torch.mps.synchronize()
