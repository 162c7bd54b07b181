"""Interactive viewer: owns the window, the frame loop and one Simulation."""

import logging

import pygame
from pygame.locals import *
from OpenGL.GL import *
from OpenGL.GLU import *

from config import nbody as config
from nbody import Simulation, SimulationState
from rendering import DiscGuide, PointCloud, TextRenderer
from .camera import Camera
from .input_handler import InputHandler


logger = logging.getLogger(__name__)


class Application:
    """
    Steps the simulation with a fixed tick and draws the projected bodies.

    Args:
        num_bodies: Body count for every (re)initialization
        dt: Simulated seconds per tick
        backend: Backend name passed through to ``Simulation``
        seed: Position hash seed
    """

    def __init__(self, num_bodies: int, dt: float, backend: str = "auto", seed: int = 1):
        self.num_bodies = num_bodies
        self.dt = dt
        self.backend = backend
        self.seed = seed

        pygame.init()
        pygame.display.set_mode(
            (config.WINDOW["width"], config.WINDOW["height"]),
            DOUBLEBUF | OPENGL
        )
        pygame.display.set_caption(config.WINDOW["title"])

        self.camera = Camera()
        self.input_handler = InputHandler(self.camera)

        self.guide = DiscGuide()
        self.text_renderer = TextRenderer()
        self.points = PointCloud(num_bodies)

        self.simulation = None

        self.clock = pygame.time.Clock()
        self.running = True
        self.paused = False
        self.show_help = True
        self.fps = 0.0

        self._setup_gl()
        logger.info("Viewer ready")

    def _start_simulation(self):
        if self.simulation is not None:
            self.simulation.end_simulation()
            self.simulation = None
        self.simulation = Simulation(self.backend, seed=self.seed)
        self.simulation.init_simulation(self.num_bodies)
        self.points.refresh(self.simulation)

    def _setup_gl(self):
        glClearColor(*config.COLORS["background"])
        glEnable(GL_DEPTH_TEST)
        glDepthFunc(GL_LEQUAL)

        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        gluPerspective(
            config.CAMERA["fov"],
            config.WINDOW["width"] / config.WINDOW["height"],
            config.CAMERA["near_clip"],
            config.CAMERA["far_clip"]
        )
        glMatrixMode(GL_MODELVIEW)

    def _handle_events(self):
        for event in pygame.event.get():
            if not self.input_handler.handle_event(event):
                self.running = False

        handler = self.input_handler
        if handler.toggle_pause:
            handler.toggle_pause = False
            self.paused = not self.paused
            logger.info("Paused" if self.paused else "Running")
        if handler.toggle_help:
            handler.toggle_help = False
            self.show_help = not self.show_help
        if handler.reset_requested:
            handler.reset_requested = False
            logger.info("Resetting simulation")
            self._start_simulation()

    def _update(self, frame_dt: float):
        self.input_handler.handle_continuous_input(frame_dt)
        self.camera.update(frame_dt)

        if not self.paused:
            self.simulation.step_simulation(self.dt)
            self.points.refresh(self.simulation)

    def _render(self):
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
        self.camera.apply()

        self.guide.draw()
        self.points.draw()

        sim = self.simulation
        status = "PAUSED" if self.paused else "RUNNING"
        lines = [
            f"Bodies: {sim.n:,}  |  FPS: {self.fps:.0f}  |  {status}",
            f"Backend: {sim.backend.value}  |  tick {sim.tick:,}  |  t = {sim.elapsed:,.1f} s",
        ]
        if self.show_help:
            lines.append("WASD: Rotate | QE: Zoom | SPACE: Pause | R: Reset | H: Toggle help")

        screen_size = (config.WINDOW["width"], config.WINDOW["height"])
        self.text_renderer.draw_lines(lines, 10, 10, screen_size)

        pygame.display.flip()

    def run(self):
        """Main loop; always tears the simulation down on the way out."""
        try:
            self._start_simulation()
            while self.running:
                frame_dt = min(self.clock.tick() / 1000.0, 0.05)
                self.fps = self.clock.get_fps()

                self._handle_events()
                self._update(frame_dt)
                self._render()
        finally:
            sim = self.simulation
            if sim is not None and sim.state in (SimulationState.READY, SimulationState.STEPPING):
                sim.end_simulation()
            self.points.release()
            pygame.quit()
            logger.info("Shutdown complete")
