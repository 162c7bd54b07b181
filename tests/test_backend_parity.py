"""The accelerated backends must agree with the Numba CPU engine."""

import numpy as np
import pytest

from nbody import Backend, Simulation


def run(backend, n=200, steps=5, **kwargs):
    kwargs.setdefault("G", 1.0)
    kwargs.setdefault("central_mass", 50.0)
    kwargs.setdefault("body_mass", 0.01)
    kwargs.setdefault("scale", 10.0)
    with Simulation(backend, **kwargs) as sim:
        sim.init_simulation(n)
        initial = (sim.get_positions(), sim.get_velocities())
        for _ in range(steps):
            sim.step_simulation(0.01)
        dest = np.zeros(4 * n, dtype=np.float32)
        sim.copy_positions_to_buffer(dest)
        final = (sim.get_positions(), sim.get_velocities(), sim.get_accelerations(), dest)
    return initial, final


@pytest.fixture
def torch_cpu(monkeypatch):
    pytest.importorskip("torch")
    from config import nbody as config
    monkeypatch.setitem(config.NBODY, "torch_device", "cpu")
    monkeypatch.setitem(config.NBODY, "tile_size", 64)


def test_torch_scene_matches_cpu(torch_cpu):
    (pos_t, vel_t), _ = run(Backend.TORCH, steps=0)
    (pos_c, vel_c), _ = run(Backend.CPU, steps=0)

    np.testing.assert_allclose(pos_t, pos_c, rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(vel_t, vel_c, rtol=1e-12, atol=1e-12)


def test_torch_steps_match_cpu(torch_cpu):
    _, torch_final = run(Backend.TORCH)
    _, cpu_final = run(Backend.CPU)

    for got, want in zip(torch_final, cpu_final):
        np.testing.assert_allclose(got, want, rtol=1e-9, atol=1e-9)


def test_torch_tiling_handles_partial_tiles(torch_cpu):
    # 130 bodies over 64-wide tiles leaves a ragged last tile
    _, final = run(Backend.TORCH, n=130, steps=1)
    assert np.all(np.isfinite(final[2]))


def test_torch_coincident_bodies_are_finite(torch_cpu):
    with Simulation(Backend.TORCH, G=1.0, central_mass=1.0, body_mass=1.0) as sim:
        sim.init_simulation(2, positions=np.ones((2, 3)), velocities=np.zeros((2, 3)))
        sim.step_simulation(0.1)
        assert np.all(np.isfinite(sim.get_accelerations()))


def cuda_available():
    try:
        from numba import cuda
        return cuda.is_available()
    except Exception:
        return False


@pytest.mark.skipif(not cuda_available(), reason="CUDA device not available")
def test_cuda_matches_cpu():
    (pos_g, vel_g), gpu_final = run(Backend.CUDA, n=300)
    (pos_c, vel_c), cpu_final = run(Backend.CPU, n=300)

    np.testing.assert_allclose(pos_g, pos_c, rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(vel_g, vel_c, rtol=1e-12, atol=1e-12)
    for got, want in zip(gpu_final, cpu_final):
        np.testing.assert_allclose(got, want, rtol=1e-9, atol=1e-9)
