"""Text rendering for HUD elements."""

import pygame
from OpenGL.GL import *

from config import nbody as config


class TextRenderer:
    """Renders HUD lines using pygame fonts blitted through OpenGL."""

    def __init__(self, font_name: str = "monospace", font_size: int = 16,
                 line_height: int = 22):
        pygame.font.init()
        self.font = pygame.font.SysFont(font_name, font_size)
        self.line_height = line_height
        self.color = tuple(int(c * 255) for c in config.COLORS["text"])

    def draw_lines(self, lines, x: int, y: int, screen_size: tuple):
        """Draw ``lines`` top-down starting at (x, y) from the top-left."""
        glMatrixMode(GL_PROJECTION)
        glPushMatrix()
        glLoadIdentity()
        glOrtho(0, screen_size[0], 0, screen_size[1], -1, 1)
        glMatrixMode(GL_MODELVIEW)
        glPushMatrix()
        glLoadIdentity()

        glDisable(GL_DEPTH_TEST)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)

        for row, text in enumerate(lines):
            surface = self.font.render(text, True, self.color)
            data = pygame.image.tostring(surface, "RGBA", True)
            w, h = surface.get_size()
            glRasterPos2f(x, screen_size[1] - (y + row * self.line_height) - h)
            glDrawPixels(w, h, GL_RGBA, GL_UNSIGNED_BYTE, data)

        glDisable(GL_BLEND)
        glEnable(GL_DEPTH_TEST)

        glPopMatrix()
        glMatrixMode(GL_PROJECTION)
        glPopMatrix()
        glMatrixMode(GL_MODELVIEW)
