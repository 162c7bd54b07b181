import sys

import pytest

from nbody import backend as backend_module
from nbody import cpu_backend
from nbody.backend import Backend, create_backend, force_backend, get_backend, resolve_backend
from nbody.cpu_backend import CPUBackend
from nbody.errors import BackendUnavailable


def test_forced_backend_is_reported():
    force_backend(Backend.CPU)
    backend, info = get_backend()
    assert backend == Backend.CPU
    assert "cpu" in info


def test_detection_is_cached(monkeypatch):
    force_backend(None)
    calls = []

    def fake_detect():
        calls.append(1)
        return Backend.CPU, "test cpu"

    monkeypatch.setattr(backend_module, "detect_backend", fake_detect)
    assert get_backend() == (Backend.CPU, "test cpu")
    assert get_backend() == (Backend.CPU, "test cpu")
    assert len(calls) == 1


def test_detection_prefers_cuda_then_torch(monkeypatch):
    monkeypatch.setattr(backend_module, "_check_cuda", lambda: (True, "gpu"))
    monkeypatch.setattr(backend_module, "_check_torch", lambda: (True, "mps"))
    assert backend_module.detect_backend() == (Backend.CUDA, "gpu")

    monkeypatch.setattr(backend_module, "_check_cuda", lambda: (False, ""))
    assert backend_module.detect_backend() == (Backend.TORCH, "mps")

    monkeypatch.setattr(backend_module, "_check_torch", lambda: (False, ""))
    assert backend_module.detect_backend()[0] == Backend.CPU


@pytest.mark.parametrize("name, expected", [
    ("cpu", Backend.CPU),
    ("cuda", Backend.CUDA),
    ("torch", Backend.TORCH),
    ("auto", Backend.CPU),
])
def test_resolve_backend(name, expected):
    assert resolve_backend(name) == expected


def test_resolve_unknown_backend():
    with pytest.raises(ValueError, match="metal"):
        resolve_backend("metal")


def test_create_cpu_backend():
    engine = create_backend(Backend.CPU)
    assert isinstance(engine, CPUBackend)
    assert "cores" in engine.describe()


def test_missing_torch_is_reported_as_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "torch", None)
    with pytest.raises(BackendUnavailable) as info:
        create_backend(Backend.TORCH)
    assert info.value.backend == "torch"
    assert isinstance(info.value.__cause__, ImportError)


def test_missing_cuda_device_is_reported_as_unavailable(monkeypatch):
    monkeypatch.setattr(backend_module, "_check_cuda", lambda: (False, ""))
    with pytest.raises(BackendUnavailable, match="cuda"):
        create_backend(Backend.CUDA)


def test_unavailable_backend_aborts_the_cli(monkeypatch):
    import nbody_main

    monkeypatch.setitem(sys.modules, "torch", None)
    monkeypatch.setattr(nbody_main, "setup_logging", lambda level, log_file: None)
    assert nbody_main.main(["--headless", "--backend", "torch", "-n", "4"]) == 1


@pytest.mark.parametrize("kernel", [
    cpu_backend.generate_disc_positions,
    cpu_backend.generate_orbital_velocities,
    cpu_backend.compute_accelerations_brute,
    cpu_backend.integrate_bodies,
    cpu_backend.project_positions,
])
def test_cpu_kernels_are_cached_on_disk(kernel):
    assert type(kernel._cache).__name__ != "NullCache"
