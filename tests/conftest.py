import math

import numpy as np
import pytest

from nbody import Backend, Simulation, SimulationState, force_backend


@pytest.fixture(autouse=True)
def cpu_backend():
    """Run every test on the Numba CPU backend unless it asks otherwise."""
    force_backend(Backend.CPU)
    yield
    force_backend(None)


@pytest.fixture
def make_sim():
    """Factory for simulations that are torn down after the test."""
    created = []

    def factory(backend="cpu", **kwargs):
        sim = Simulation(backend, **kwargs)
        created.append(sim)
        return sim

    yield factory

    for sim in created:
        if sim.state in (SimulationState.READY, SimulationState.STEPPING):
            sim.end_simulation()


@pytest.fixture
def unit_orbit(make_sim):
    """One planet on a circular orbit of radius 1 around a unit central mass."""
    sim = make_sim(G=1.0, central_mass=1.0, body_mass=1e-6, epsilon=1e-9)
    speed = math.sqrt(sim.G * sim.central_mass / 1.0)
    sim.init_simulation(
        1,
        positions=np.array([[1.0, 0.0, 0.0]]),
        velocities=np.array([[0.0, speed, 0.0]]),
    )
    return sim
