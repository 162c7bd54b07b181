"""
Compute Backend Detection and Selection
=======================================

Automatically detects and uses the best available compute backend:
1. CUDA (NVIDIA GPUs) - via Numba CUDA kernels
2. Torch (Apple MPS, or CUDA through PyTorch) - tiled tensor math
3. CPU (fallback) - via Numba parallel loops

Every backend runs the same brute-force O(n²) engine; they differ only in
where the per-body work is dispatched.
"""

import logging
import platform
from enum import Enum
from typing import Optional, Tuple

from config import nbody as config

from .errors import BackendUnavailable


logger = logging.getLogger(__name__)


class Backend(Enum):
    CUDA = "cuda"
    TORCH = "torch"
    CPU = "cpu"


def detect_backend() -> Tuple[Backend, str]:
    """Detect the best available compute backend."""

    # Try CUDA first (NVIDIA GPUs)
    cuda_available, cuda_info = _check_cuda()
    if cuda_available:
        return Backend.CUDA, cuda_info

    # Torch is only worth it with an accelerator behind it
    torch_available, torch_info = _check_torch()
    if torch_available:
        return Backend.TORCH, torch_info

    return Backend.CPU, _get_cpu_info()


def _check_cuda() -> Tuple[bool, str]:
    """Check if CUDA is available via Numba."""
    try:
        from numba import cuda
        if cuda.is_available():
            device = cuda.get_current_device()
            name = device.name.decode() if isinstance(device.name, bytes) else device.name
            cc = device.compute_capability
            return True, f"{name} (CC {cc[0]}.{cc[1]})"
    except Exception as e:
        logger.debug("CUDA probe failed: %s", e)
    return False, ""


def _check_torch() -> Tuple[bool, str]:
    """Check if PyTorch has an MPS or CUDA device."""
    try:
        import torch
        if torch.backends.mps.is_available():
            chip = platform.processor() or "Apple Silicon"
            return True, f"Apple {chip} (MPS)"
        if torch.cuda.is_available():
            return True, f"{torch.cuda.get_device_name(0)} (torch CUDA)"
    except ImportError:
        logger.debug("torch not installed")
    except Exception as e:
        logger.debug("torch probe failed: %s", e)
    return False, ""


def _get_cpu_info() -> str:
    """Get CPU info for fallback."""
    import multiprocessing
    cores = multiprocessing.cpu_count()
    return f"{platform.processor() or 'Unknown CPU'} ({cores} cores)"


# Global backend state
_BACKEND: Optional[Backend] = None
_BACKEND_INFO: str = ""


def get_backend() -> Tuple[Backend, str]:
    """Get the current backend (cached)."""
    global _BACKEND, _BACKEND_INFO
    if _BACKEND is None:
        _BACKEND, _BACKEND_INFO = detect_backend()
        logger.info("Using backend: %s - %s", _BACKEND.value, _BACKEND_INFO)
    return _BACKEND, _BACKEND_INFO


def force_backend(backend: Optional[Backend]):
    """Force a specific backend, or pass None to re-detect on next use."""
    global _BACKEND, _BACKEND_INFO
    _BACKEND = backend
    _BACKEND_INFO = f"Forced: {backend.value}" if backend is not None else ""


def resolve_backend(name: str) -> Backend:
    """Map a config/CLI name ("auto", "cuda", "torch", "cpu") to a Backend."""
    if name == "auto":
        return get_backend()[0]
    try:
        return Backend(name)
    except ValueError:
        choices = ", ".join(["auto"] + [b.value for b in Backend])
        raise ValueError(f"Unknown backend '{name}' (choose from {choices})") from None


def create_backend(backend: Backend):
    """Instantiate the engine object for ``backend``.

    Raises BackendUnavailable when the backend's runtime is missing.
    """
    cfg = config.NBODY

    if backend == Backend.CUDA:
        available, _ = _check_cuda()
        if not available:
            raise BackendUnavailable("cuda", "no CUDA device visible to numba")
        from .cuda_backend import CUDABackend
        return CUDABackend(threads_per_block=int(cfg["threads_per_block"]))

    if backend == Backend.TORCH:
        from .torch_backend import TorchBackend
        try:
            return TorchBackend(device=cfg.get("torch_device"), tile_size=int(cfg["tile_size"]))
        except ImportError as e:
            raise BackendUnavailable("torch", "install the 'torch' extra") from e

    from .cpu_backend import CPUBackend
    return CPUBackend()
