"""Reference rings and axes drawn in projected (unit-disc) space."""

import math

from OpenGL.GL import *
from config import nbody as config


class DiscGuide:
    """Concentric rings in the disc plane plus short x/y/z axes."""

    def __init__(self):
        self.rings = config.GRID["rings"]
        self.segments = int(config.GRID["segments"])
        self.color = config.GRID["color"]

    def draw(self):
        glColor3f(*self.color)

        for radius in self.rings:
            glBegin(GL_LINE_LOOP)
            for k in range(self.segments):
                angle = 2.0 * math.pi * k / self.segments
                glVertex3f(radius * math.cos(angle), radius * math.sin(angle), 0.0)
            glEnd()

        e = max(self.rings)
        glBegin(GL_LINES)
        glVertex3f(-e, 0.0, 0.0); glVertex3f(e, 0.0, 0.0)
        glVertex3f(0.0, -e, 0.0); glVertex3f(0.0, e, 0.0)
        glVertex3f(0.0, 0.0, -0.2 * e); glVertex3f(0.0, 0.0, 0.2 * e)
        glEnd()
