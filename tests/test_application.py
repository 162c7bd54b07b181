from collections import defaultdict
from unittest import mock

import pytest

from nbody import AllocationError, Simulation, SimulationState

try:
    from core import application, input_handler
except Exception as e:  # PyOpenGL needs a loadable GL library
    pytest.skip(f"viewer modules unavailable: {e}", allow_module_level=True)


@pytest.fixture
def headless_viewer(monkeypatch):
    """Application with the window, GL state and HUD stubbed out."""
    fake_pygame = mock.MagicMock()
    monkeypatch.setattr(application, "pygame", fake_pygame)
    monkeypatch.setattr(input_handler, "pygame", fake_pygame)
    monkeypatch.setattr(application, "DiscGuide", mock.MagicMock())
    monkeypatch.setattr(application, "TextRenderer", mock.MagicMock())
    monkeypatch.setattr(application.Application, "_setup_gl", lambda self: None)
    return fake_pygame


def test_first_init_failure_still_shuts_pygame_down(headless_viewer, monkeypatch):
    created = []

    class FailingSimulation(Simulation):
        def init_simulation(self, n, positions=None, velocities=None):
            created.append(self)
            raise AllocationError("allocate position buffer", "out of memory")

    monkeypatch.setattr(application, "Simulation", FailingSimulation)

    app = application.Application(16, 0.1, backend="cpu")
    headless_viewer.quit.assert_not_called()

    with pytest.raises(AllocationError):
        app.run()

    headless_viewer.quit.assert_called_once()
    assert created[0].state == SimulationState.UNINITIALIZED


def test_quit_event_tears_the_simulation_down(headless_viewer, monkeypatch):
    app = application.Application(16, 0.1, backend="cpu")
    monkeypatch.setattr(app, "_handle_events", lambda: setattr(app, "running", False))
    monkeypatch.setattr(app, "_render", lambda: None)
    headless_viewer.key.get_pressed.return_value = defaultdict(bool)
    headless_viewer.time.Clock.return_value.tick.return_value = 16
    headless_viewer.time.Clock.return_value.get_fps.return_value = 60.0

    app.run()

    assert app.simulation.state == SimulationState.TORN_DOWN
    assert app.simulation.tick == 1
    headless_viewer.quit.assert_called_once()
