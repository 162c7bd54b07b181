"""Device-resident body storage (structure of arrays)."""

import logging

import numpy as np

from .errors import AllocationError, ContractViolation


logger = logging.getLogger(__name__)

BUFFER_NAMES = ("position", "velocity", "acceleration")


class BodyBuffers:
    """
    Owns the position, velocity and acceleration arrays for N bodies.

    Either all three buffers exist or none do. Storage lives on the
    backend's device; callers outside the engine only ever see host copies.
    """

    def __init__(self, backend):
        self.backend = backend
        self._n = 0
        self._arrays = None

    @property
    def allocated(self) -> bool:
        return self._arrays is not None

    @property
    def n(self) -> int:
        return self._n

    @property
    def positions(self):
        return self._require()["position"]

    @property
    def velocities(self):
        return self._require()["velocity"]

    @property
    def accelerations(self):
        return self._require()["acceleration"]

    def _require(self) -> dict:
        if self._arrays is None:
            raise ContractViolation("body buffers are not allocated")
        return self._arrays

    def allocate(self, n: int):
        """Reserve all three buffers for ``n`` bodies."""
        if self._arrays is not None:
            raise ContractViolation("body buffers are already allocated")
        if n < 1:
            raise ContractViolation(f"body count must be at least 1, got {n}")

        arrays = {}
        try:
            for name in BUFFER_NAMES:
                arrays[name] = self.backend.allocate(n, name)
        except AllocationError:
            # Drop whatever was reserved so no partial state survives
            arrays.clear()
            self.backend.release_memory()
            raise

        self._arrays = arrays
        self._n = n

        nbytes = 3 * n * 3 * self.backend.itemsize
        logger.debug("Allocated %d bodies (~%.1f MB)", n, nbytes / 1e6)

    def release(self):
        """Free all three buffers. Valid exactly once, after ``allocate``."""
        if self._arrays is None:
            raise ContractViolation("body buffers released twice or never allocated")
        self._arrays = None
        self.backend.release_memory()
        logger.debug("Released %d bodies", self._n)
        self._n = 0

    def upload(self, name: str, host: np.ndarray):
        """Copy a host ``(N, 3)`` array into the named buffer."""
        host = np.asarray(host, dtype=np.float64)
        if host.shape != (self._n, 3):
            raise ContractViolation(
                f"{name} data must have shape ({self._n}, 3), got {host.shape}"
            )
        self.backend.upload(self._require()[name], host)

    def download(self, name: str) -> np.ndarray:
        """Return a host copy of the named buffer."""
        return self.backend.download(self._require()[name])
