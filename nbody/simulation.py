"""
Brute-force N-body simulation around a dominant central mass.

Bodies start on a thin disc in circular orbits around a state-free central
mass at the origin, then evolve under the central mass plus every other
body, O(n²) per tick, integrated with semi-implicit Euler.

Lifecycle:
    UNINITIALIZED --init_simulation--> READY --step_simulation--> STEPPING
    READY/STEPPING --end_simulation--> TORN_DOWN (terminal)
"""

import inspect
import logging
import os
from enum import Enum
from typing import Optional, Union

import numpy as np

from config import nbody as config

from .backend import Backend, create_backend, resolve_backend
from .buffers import BodyBuffers
from .errors import ContractViolation, LaunchError, NBodyError


logger = logging.getLogger(__name__)


class SimulationState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    STEPPING = "stepping"
    TORN_DOWN = "torn_down"


_LIVE = (SimulationState.READY, SimulationState.STEPPING)


class Simulation:
    """
    Owns the device buffers and physical constants for one run.

    Every keyword argument defaults to the matching entry in
    ``config.nbody.NBODY``.

    Args:
        backend: Backend, backend name ("auto", "cuda", "torch", "cpu") or None
        G: Gravitational constant
        epsilon: Squared-distance cutoff for pairwise forces; also keeps the
            initial orbital speed finite near the origin
        central_mass: Mass of the fixed body at the origin
        body_mass: Mass of every simulated body
        scale: Radius of the initial disc
        seed: Integer tag keying the position hash
    """

    def __init__(self, backend: Union[Backend, str, None] = None, *,
                 G: Optional[float] = None,
                 epsilon: Optional[float] = None,
                 central_mass: Optional[float] = None,
                 body_mass: Optional[float] = None,
                 scale: Optional[float] = None,
                 seed: Optional[int] = None):
        cfg = config.NBODY
        self.G = float(cfg["G"] if G is None else G)
        self.epsilon = float(cfg["epsilon"] if epsilon is None else epsilon)
        self.central_mass = float(cfg["star_mass"] if central_mass is None else central_mass)
        self.body_mass = float(cfg["planet_mass"] if body_mass is None else body_mass)
        self.scale = float(cfg["scene_scale"] if scale is None else scale)
        self.seed = int(cfg["seed"] if seed is None else seed)

        if backend is None:
            backend = cfg["backend"]
        if isinstance(backend, str):
            backend = resolve_backend(backend)
        self.backend = backend

        self._engine = create_backend(backend)
        self._buffers = BodyBuffers(self._engine)

        self.state = SimulationState.UNINITIALIZED
        self.tick = 0
        self.elapsed = 0.0

    def __repr__(self):
        return (f"Simulation(n={self.n}, backend={self.backend.value}, "
                f"state={self.state.value}, tick={self.tick})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.state in _LIVE:
            self.end_simulation()
        return False

    @property
    def n(self) -> int:
        return self._buffers.n

    @property
    def engine(self):
        """The backend object running the kernels."""
        return self._engine

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def init_simulation(self, n: int, positions: Optional[np.ndarray] = None,
                        velocities: Optional[np.ndarray] = None):
        """
        Allocate storage for ``n`` bodies and populate it.

        Without explicit arrays the disc scene is generated from the seed;
        with them, the given (n, 3) positions and velocities are uploaded.
        """
        if self.state != SimulationState.UNINITIALIZED:
            raise ContractViolation(f"init_simulation called in state {self.state.value}")
        if (positions is None) != (velocities is None):
            raise ContractViolation("positions and velocities must be given together")

        self._buffers.allocate(n)
        buffers = self._buffers
        try:
            if positions is None:
                self._launch("generate positions", self._engine.generate_positions,
                             buffers.positions, self.seed, self.scale)
                self._launch("generate velocities", self._engine.generate_velocities,
                             buffers.positions, buffers.velocities,
                             self.G, self.central_mass, self.epsilon)
            else:
                buffers.upload("position", positions)
                buffers.upload("velocity", velocities)
        except NBodyError:
            buffers.release()
            raise

        self.state = SimulationState.READY
        logger.info("Initialized %s bodies on %s (scale %g, seed %d)",
                    f"{n:,}", self.backend.value, self.scale, self.seed)

    def step_simulation(self, dt: float):
        """Advance every body by one tick of ``dt`` seconds."""
        self._require_live("step_simulation")
        if not dt > 0:
            raise ContractViolation(f"dt must be positive, got {dt}")

        buffers = self._buffers

        # Accelerations for the whole system are complete before any body moves
        self._launch("compute accelerations", self._engine.compute_accelerations,
                     buffers.positions, buffers.accelerations,
                     self.G, self.central_mass, self.body_mass, self.epsilon)
        self._launch("integrate bodies", self._engine.integrate,
                     buffers.positions, buffers.velocities, buffers.accelerations, dt)

        self.state = SimulationState.STEPPING
        self.tick += 1
        self.elapsed += dt

    def copy_positions_to_buffer(self, dest: np.ndarray):
        """
        Project positions into ``dest`` as (x, y, z, 1) per body.

        ``dest`` is a caller-owned, C-contiguous float32 array of length 4*N.
        Coordinates are negated and divided by the scene scale.
        """
        self._require_live("copy_positions_to_buffer")
        expected = 4 * self.n
        if not isinstance(dest, np.ndarray) or dest.dtype != np.float32:
            raise ContractViolation("destination buffer must be a float32 numpy array")
        if dest.shape != (expected,) or not dest.flags.c_contiguous:
            raise ContractViolation(
                f"destination buffer must be contiguous with {expected} floats, got {dest.shape}"
            )

        self._launch("project positions", self._engine.project,
                     self._buffers.positions, dest, self.scale)

    def end_simulation(self):
        """Release all engine-owned storage."""
        if self.state not in _LIVE:
            raise ContractViolation(f"end_simulation called in state {self.state.value}")
        self._buffers.release()
        self.state = SimulationState.TORN_DOWN
        logger.info("Simulation torn down after %d ticks (t=%g s)", self.tick, self.elapsed)

    # ------------------------------------------------------------------
    # Host copies
    # ------------------------------------------------------------------

    def get_positions(self) -> np.ndarray:
        self._require_live("get_positions")
        return self._buffers.download("position")

    def get_velocities(self) -> np.ndarray:
        self._require_live("get_velocities")
        return self._buffers.download("velocity")

    def get_accelerations(self) -> np.ndarray:
        """Accelerations from the most recent tick (zero before the first)."""
        self._require_live("get_accelerations")
        return self._buffers.download("acceleration")

    # ------------------------------------------------------------------

    def _require_live(self, operation: str):
        if self.state not in _LIVE:
            raise ContractViolation(f"{operation} called in state {self.state.value}")

    def _launch(self, operation: str, kernel, *args):
        """Dispatch ``kernel`` and wait for it; failures become LaunchError."""
        caller = inspect.currentframe().f_back
        location = (f"{os.path.basename(caller.f_code.co_filename)}:{caller.f_lineno} "
                    f"in {caller.f_code.co_name}")
        try:
            kernel(*args)
            self._engine.synchronize()
        except NBodyError:
            raise
        except Exception as e:
            raise LaunchError(operation, location, f"{type(e).__name__}: {e}") from e
