"""Point-cloud rendering of the projected body positions."""

import logging

import numpy as np
from OpenGL.GL import *
from OpenGL.arrays import vbo

from config import nbody as config


logger = logging.getLogger(__name__)


class PointCloud:
    """
    Host vertex buffer plus VBO fed from ``Simulation.copy_positions_to_buffer``.

    The buffer holds 4 floats per body (x, y, z, 1) in projected space.
    The simulation only ever writes into it; the VBO is uploaded from it.
    """

    def __init__(self, num_bodies: int):
        self.num_bodies = num_bodies
        self.vertices = np.zeros(4 * num_bodies, dtype=np.float32)
        self.point_size = float(config.POINTS["size"])
        self.color = config.POINTS["color"]

        self._vbo = None
        self._vbo_initialized = False

    def _init_vbo(self):
        """Create the VBO (needs a current GL context)."""
        if self._vbo_initialized:
            return
        try:
            self._vbo = vbo.VBO(self.vertices, usage=GL_DYNAMIC_DRAW)
            self._vbo_initialized = True
        except Exception as e:
            logger.warning("VBO init failed, drawing from client memory: %s", e)
            self._vbo = None
            self._vbo_initialized = True

    def refresh(self, simulation):
        """Pull the current positions out of the simulation."""
        simulation.copy_positions_to_buffer(self.vertices)
        if self._vbo is not None:
            self._vbo.set_array(self.vertices)

    def draw(self):
        """Render bodies as additive point sprites."""
        if not self._vbo_initialized:
            self._init_vbo()

        glEnable(GL_POINT_SMOOTH)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE)
        glPointSize(self.point_size)
        glColor4f(*self.color)

        glEnableClientState(GL_VERTEX_ARRAY)
        if self._vbo is not None:
            self._vbo.bind()
            glVertexPointer(4, GL_FLOAT, 0, None)
            glDrawArrays(GL_POINTS, 0, self.num_bodies)
            self._vbo.unbind()
        else:
            glVertexPointer(4, GL_FLOAT, 0, self.vertices)
            glDrawArrays(GL_POINTS, 0, self.num_bodies)
        glDisableClientState(GL_VERTEX_ARRAY)

        glDisable(GL_BLEND)
        glDisable(GL_POINT_SMOOTH)

    def release(self):
        if self._vbo is not None:
            self._vbo.delete()
            self._vbo = None
        self._vbo_initialized = False
